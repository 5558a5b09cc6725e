"""CLI state container."""

import typing as t

from ..app import create_engine
from ..config.settings import Settings
from ..engine import DownloadEngine

EngineFactory = t.Callable[[Settings], DownloadEngine]


class CLIState:
    """Application state container for CLI commands.

    Holds Settings and the factory commands use to build a DownloadEngine.
    Tests pass a factory returning a mocked engine.
    """

    def __init__(self, settings: Settings, engine_factory: EngineFactory | None = None):
        self.settings = settings
        self._engine_factory = engine_factory or create_engine

    def create_engine(self) -> DownloadEngine:
        return self._engine_factory(self.settings)
