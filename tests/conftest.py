"""Pytest configuration and fixtures for ariasync tests."""

import typing as t

import loguru
import pytest
import pytest_asyncio
from blockbuster import BlockBuster, blockbuster_ctx
from typer.testing import CliRunner

from ariasync.app import create_app
from ariasync.cli.app import create_cli_app
from ariasync.config.settings import Environment, LogLevel, Settings
from ariasync.engine import DownloadEngine
from ariasync.events import BaseEmitter, EventEmitter
from ariasync.infrastructure.logging import reset_logging
from ariasync.storage import InMemoryRecordStore
from tests.fixtures.daemon import FakeGateway


@pytest.fixture(autouse=True)
def blockbuster() -> t.Iterator[BlockBuster]:
    """Detect blocking calls in async event loop during tests.

    This fixture automatically activates Blockbuster for all tests,
    which will raise a BlockingError if any blocking I/O operations
    (like synchronous file.write()) are called within an async context.
    """
    with blockbuster_ctx(
        scanned_modules=["ariasync"],
    ) as bb:
        # Third party modules use these functions, so we deactivate them
        # for now
        bb.functions["os.path.abspath"].deactivate()

        yield bb


@pytest.fixture
def test_settings(tmp_path):
    """Provide test-specific settings with fast timings."""
    return Settings(
        environment=Environment.TESTING,
        log_level=LogLevel.CRITICAL,  # Minimal logging during tests
        verify_timeout=0.2,
        poll_interval=0.01,
        backoff_base=0.01,
        backoff_step=0.01,
        backoff_max=0.05,
        state_dir=tmp_path / "state",
    )


@pytest.fixture
def test_app(test_settings):
    """Provide a test app with clean logging state."""
    reset_logging()
    app = create_app(settings=test_settings)
    yield app
    reset_logging()


@pytest.fixture
def mock_logger(mocker):
    """Provide a mock logger for testing that captures log calls."""
    logger = mocker.Mock(spec=loguru.logger)
    return logger


@pytest.fixture
def mock_emitter(mocker):
    """Provide a mock event emitter for testing event emission."""

    emitter = mocker.Mock(spec=BaseEmitter)
    return emitter


@pytest.fixture
def real_emitter(mock_logger):
    """Provide a real EventEmitter for tests that need handlers to run.

    For simple tests that only verify emit() was called, use mock_emitter instead.
    """

    return EventEmitter(mock_logger)


@pytest.fixture(autouse=True)
def clean_logging_state():
    """Automatically reset logging before each test for isolation."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def fake_gateway():
    """Provide a FakeGateway with an empty daemon."""
    return FakeGateway()


@pytest.fixture
def memory_store():
    return InMemoryRecordStore()


@pytest.fixture
def engine_factory(fake_gateway, memory_store, test_settings, mock_logger, real_emitter):
    """Build DownloadEngines wired to the fake gateway and memory store."""

    def _create_engine(**overrides: t.Any) -> DownloadEngine:
        kwargs: dict[str, t.Any] = {
            "gateway": fake_gateway,
            "store": memory_store,
            "settings": test_settings,
            "emitter": real_emitter,
            "logger": mock_logger,
        }
        kwargs.update(overrides)
        return DownloadEngine(**kwargs)

    return _create_engine


@pytest_asyncio.fixture
async def engine(engine_factory):
    """Provide an opened engine without background tasks."""
    engine = engine_factory()
    await engine.open()
    yield engine
    await engine.stop()


@pytest_asyncio.fixture
async def connected_engine(engine):
    """Provide an opened engine whose health check has succeeded."""
    assert await engine.verify()
    return engine


# CLI-specific fixtures (shared across all tests)


@pytest.fixture
def cli_runner():
    """Provide Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def default_app():
    """Provide CLI app with default settings."""
    return create_cli_app()
