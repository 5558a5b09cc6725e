from dataclasses import dataclass

from .config.settings import Settings
from .engine import DownloadEngine
from .gateway import Aria2Gateway
from .infrastructure.logging import get_logger, setup_logging
from .storage import JsonRecordStore


@dataclass(frozen=True)
class App:
    """Application wiring container.

    Holds references to cross-cutting concerns (currently only `Settings`).
    Tests build it with explicit `Settings` instead of relying on the
    environment.
    """

    settings: Settings

    def create_engine(self) -> DownloadEngine:
        return create_engine(self.settings)


def create_app(settings: Settings | None = None) -> App:
    """Create an `App` with provided settings or defaults and configure logging."""
    settings = settings or Settings()
    setup_logging(settings)
    return App(settings=settings)


def create_engine(settings: Settings) -> DownloadEngine:
    """Build a DownloadEngine talking JSON-RPC to an aria2 daemon.

    The engine owns the gateway and closes its HTTP session on stop. Records
    are mirrored as JSON documents under settings.state_dir.
    """
    logger = get_logger("ariasync")
    return DownloadEngine(
        gateway=Aria2Gateway.from_settings(settings),
        store=JsonRecordStore(settings.state_dir, logger=logger),
        settings=settings,
        owns_gateway=True,
        logger=logger,
    )
