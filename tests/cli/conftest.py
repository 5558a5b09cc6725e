"""Shared fixtures for CLI tests."""

import pytest

from ariasync.cli.app import create_cli_app
from ariasync.cli.state import CLIState
from ariasync.domain.connection import ConnectionState
from ariasync.engine import DownloadEngine, ModelSnapshot


@pytest.fixture
def mock_engine(mocker):
    """Provide a fully mocked DownloadEngine with spec for type safety."""
    mock = mocker.AsyncMock(spec=DownloadEngine)
    mock.sync.return_value = True
    mock.verify.return_value = True
    mock.snapshot.return_value = ModelSnapshot(
        connection_state=ConnectionState.connected()
    )
    # Properties are plain attributes on the mock
    mock.last_error = None
    mock.daemon_version = "1.37.0"
    mock.connection_state = ConnectionState.connected()
    return mock


@pytest.fixture
def cli_state_with_mock_engine(test_settings, mock_engine):
    """CLIState whose engine factory returns the mocked engine."""

    def mock_engine_factory(settings):
        return mock_engine

    return CLIState(test_settings, engine_factory=mock_engine_factory)


@pytest.fixture
def app_with_mock_engine(cli_state_with_mock_engine):
    """CLI app with mocked engine factory for testing."""
    return create_cli_app(state=cli_state_with_mock_engine)


@pytest.fixture
def with_jobs(mock_engine):
    """Make the mocked engine publish the given records."""

    def _with_jobs(*records):
        mock_engine.snapshot.return_value = ModelSnapshot(
            all_jobs=records,
            active_jobs=tuple(r for r in records if r.phase in ("active", "pending")),
            paused_jobs=tuple(r for r in records if r.phase == "paused"),
            completed_jobs=tuple(r for r in records if r.phase == "completed"),
            connection_state=ConnectionState.connected(),
        )

    return _with_jobs
