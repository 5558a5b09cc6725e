import dataclasses
import os
import typing as t
from dataclasses import dataclass, field
from enum import Enum, StrEnum
from pathlib import Path

from ..domain.backoff import BackoffConfig
from ..domain.exceptions import ConfigurationError

ENV_PREFIX = "ARIASYNC_"


class Environment(Enum):
    """Runtime environment for the application.

    Kept small and explicit to support simple environment-driven behavior
    without introducing configuration dependencies.
    """

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(StrEnum):
    """Log levels understood by loguru."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _default_state_dir() -> Path:
    return Path.home() / ".ariasync" / "jobs"


@dataclass(frozen=True)
class Settings:
    """Settings container used to bootstrap the engine.

    The CLI layer decides how values are populated (flags, env vars);
    the engine only depends on this shape.
    """

    environment: Environment = Environment.PRODUCTION
    log_level: LogLevel = LogLevel.INFO

    # Daemon endpoint
    rpc_host: str = "localhost"
    rpc_port: int = 6800
    rpc_path: str = "/jsonrpc"
    rpc_secure: bool = False
    rpc_secret: str | None = None

    # Supervision and polling cadence (seconds)
    verify_timeout: float = 3.0
    poll_interval: float = 1.0
    backoff_base: float = 2.0
    backoff_step: float = 1.0
    backoff_max: float = 10.0
    backoff_reset_after: int = 10

    # Paging for waiting/stopped queries
    page_size: int = 100
    max_items: int = 1000

    state_dir: Path = field(default_factory=_default_state_dir)
    download_dir: Path | None = None

    @property
    def rpc_url(self) -> str:
        """Full JSON-RPC endpoint URL."""
        scheme = "https" if self.rpc_secure else "http"
        path = self.rpc_path.lstrip("/")
        return f"{scheme}://{self.rpc_host}:{self.rpc_port}/{path}"

    def backoff(self) -> BackoffConfig:
        """Backoff configuration for the connection retry driver."""
        return BackoffConfig(
            base_delay=self.backoff_base,
            step=self.backoff_step,
            max_delay=self.backoff_max,
            reset_after=self.backoff_reset_after,
        )


def build_settings(**overrides: t.Any) -> Settings:
    """Build Settings applying only the overrides that are not None."""
    filtered = {key: value for key, value in overrides.items() if value is not None}
    return Settings(**filtered)


def _coerce(field_type: t.Any, raw: str) -> t.Any:
    if field_type is bool:
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    if field_type is int:
        return int(raw)
    if field_type is float:
        return float(raw)
    if field_type is Environment:
        return Environment(raw.strip().lower())
    if field_type is LogLevel:
        return LogLevel(raw.strip().upper())
    if field_type is Path or Path in t.get_args(field_type):
        return Path(raw).expanduser()
    return raw


def settings_from_env(
    environ: t.Mapping[str, str] | None = None, **overrides: t.Any
) -> Settings:
    """Build Settings from ARIASYNC_* environment variables.

    Explicit overrides win over the environment, None overrides are ignored.
    Unparseable values raise ConfigurationError naming the variable.

    Example:
        ARIASYNC_RPC_PORT=6801 ARIASYNC_RPC_SECRET=s3cret
    """
    environ = os.environ if environ is None else environ
    hints = t.get_type_hints(Settings)
    values: dict[str, t.Any] = {}
    for settings_field in dataclasses.fields(Settings):
        if overrides.get(settings_field.name) is not None:
            continue
        variable = f"{ENV_PREFIX}{settings_field.name.upper()}"
        raw = environ.get(variable)
        if raw is None or raw == "":
            continue
        try:
            values[settings_field.name] = _coerce(hints[settings_field.name], raw)
        except ValueError as exc:
            raise ConfigurationError(variable, raw, str(exc)) from exc

    values.update({key: value for key, value in overrides.items() if value is not None})
    return build_settings(**values)
