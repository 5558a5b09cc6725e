"""Logging infrastructure built on loguru.

A single stderr sink is installed on first use. Modules obtain a logger bound
to their name with get_logger(__name__); tests call reset_logging() to get a
clean slate between cases.
"""

import sys
import typing as t

from loguru import logger as _logger

from ..config.settings import Environment, LogLevel, Settings

if t.TYPE_CHECKING:
    import loguru

_DEVELOPMENT_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)
_PLAIN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]} - {message}"

_configured = False


def configure_logger(
    level: LogLevel | str = LogLevel.INFO,
    environment: Environment = Environment.PRODUCTION,
) -> None:
    """Install the stderr sink, replacing any previously installed sinks.

    Args:
        level: Minimum level to emit.
        environment: Development gets a colourised format, everything else a
            plain one suitable for log collectors.
    """
    global _configured

    _logger.remove()
    _logger.configure(extra={"name": "ariasync"})
    development = environment == Environment.DEVELOPMENT
    _logger.add(
        sys.stderr,
        level=str(level),
        format=_DEVELOPMENT_FORMAT if development else _PLAIN_FORMAT,
        colorize=development,
        backtrace=development,
        diagnose=development,
    )
    _configured = True


def setup_logging(settings: Settings) -> None:
    """Configure logging from application settings."""
    configure_logger(level=settings.log_level, environment=settings.environment)


def get_logger(name: str) -> "loguru.Logger":
    """Return a logger bound to the given module name.

    Configures logging with defaults if nothing has configured it yet.
    """
    if not _configured:
        configure_logger()
    return _logger.bind(name=name)


def is_configured() -> bool:
    """Whether a sink has been installed by this module."""
    return _configured


def reset_logging() -> None:
    """Remove all sinks and forget the configuration."""
    global _configured

    _logger.remove()
    _configured = False
