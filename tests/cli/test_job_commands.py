"""Tests for the job commands."""

from ariasync.domain.connection import ConnectionState
from ariasync.domain.exceptions import GatewayConnectivityError
from ariasync.domain.jobs import JobRecord, Phase

URL = "https://example.com/files/ubuntu.iso"


def job(job_id: str, phase: Phase = Phase.ACTIVE, name: str = "file.bin") -> JobRecord:
    return JobRecord(
        id=job_id,
        remote_handle=f"gid-{job_id}",
        display_name=name,
        total_size=2048,
        transferred_size=1024,
        download_rate=512,
        phase=phase,
    )


class TestListCommand:
    def test_lists_jobs_grouped_by_phase(
        self, cli_runner, app_with_mock_engine, mock_engine, with_jobs
    ):
        with_jobs(
            job("aaaa1111", Phase.ACTIVE, "ubuntu.iso"),
            job("bbbb2222", Phase.PAUSED, "debian.iso"),
        )

        result = cli_runner.invoke(app_with_mock_engine, ["list"])

        assert result.exit_code == 0
        assert "Active (1)" in result.stdout
        assert "Paused (1)" in result.stdout
        assert "ubuntu.iso" in result.stdout
        assert "aaaa1111" in result.stdout
        mock_engine.open.assert_awaited_once()
        mock_engine.sync.assert_awaited_once()
        mock_engine.close.assert_awaited_once()

    def test_empty_model(self, cli_runner, app_with_mock_engine):
        result = cli_runner.invoke(app_with_mock_engine, ["list"])

        assert result.exit_code == 0
        assert "No downloads" in result.stdout

    def test_failed_sync_warns_and_exits_with_error(
        self, cli_runner, app_with_mock_engine, mock_engine
    ):
        mock_engine.sync.return_value = False
        mock_engine.last_error = "Failed to connect to daemon: Connection refused"

        result = cli_runner.invoke(app_with_mock_engine, ["list"])

        assert result.exit_code == 1
        assert "could not refresh" in result.stdout
        assert "Connection refused" in result.stdout


class TestAddCommand:
    def test_add_submits_locator(self, cli_runner, app_with_mock_engine, mock_engine):
        mock_engine.add.return_value = job("cafe0001", Phase.PENDING, "ubuntu.iso")

        result = cli_runner.invoke(app_with_mock_engine, ["add", URL])

        assert result.exit_code == 0
        mock_engine.add.assert_awaited_once_with(URL, None)
        assert "Added: ubuntu.iso" in result.stdout
        assert "cafe0001" in result.stdout

    def test_add_passes_dir_and_out(
        self, cli_runner, app_with_mock_engine, mock_engine
    ):
        mock_engine.add.return_value = job("cafe0001", Phase.PENDING)

        result = cli_runner.invoke(
            app_with_mock_engine, ["add", URL, "-d", "/data", "--out", "image.iso"]
        )

        assert result.exit_code == 0
        mock_engine.add.assert_awaited_once_with(
            URL, {"dir": "/data", "out": "image.iso"}
        )

    def test_rejected_add_exits_with_error(
        self, cli_runner, app_with_mock_engine, mock_engine
    ):
        mock_engine.add.return_value = None
        mock_engine.last_error = "Failed to add download: Invalid URI"

        result = cli_runner.invoke(app_with_mock_engine, ["add", URL])

        assert result.exit_code == 1
        assert "Failed to add" in result.stdout
        assert "Invalid URI" in result.stdout


class TestChangeCommands:
    def test_pause_resolves_unique_prefix(
        self, cli_runner, app_with_mock_engine, mock_engine, with_jobs
    ):
        with_jobs(job("abcdef0123"), job("ffff0000"))
        mock_engine.pause.return_value = True

        result = cli_runner.invoke(app_with_mock_engine, ["pause", "abcd"])

        assert result.exit_code == 0
        mock_engine.pause.assert_awaited_once_with("abcdef0123")
        assert "Pause: abcdef0123" in result.stdout

    def test_exact_id_wins_over_longer_matches(
        self, cli_runner, app_with_mock_engine, mock_engine, with_jobs
    ):
        with_jobs(job("abc"), job("abcdef"))
        mock_engine.resume.return_value = True

        result = cli_runner.invoke(app_with_mock_engine, ["resume", "abc"])

        assert result.exit_code == 0
        mock_engine.resume.assert_awaited_once_with("abc")

    def test_ambiguous_prefix_exits_with_error(
        self, cli_runner, app_with_mock_engine, mock_engine, with_jobs
    ):
        with_jobs(job("abc1"), job("abc2"))

        result = cli_runner.invoke(app_with_mock_engine, ["cancel", "abc"])

        assert result.exit_code == 1
        assert "Ambiguous" in result.stdout
        mock_engine.cancel.assert_not_awaited()

    def test_unknown_job_exits_with_error(
        self, cli_runner, app_with_mock_engine, mock_engine
    ):
        result = cli_runner.invoke(app_with_mock_engine, ["pause", "nope"])

        assert result.exit_code == 1
        assert "No job with id nope" in result.stdout
        mock_engine.close.assert_awaited_once()

    def test_failed_operation_exits_with_error(
        self, cli_runner, app_with_mock_engine, mock_engine, with_jobs
    ):
        with_jobs(job("abcdef"))
        mock_engine.cancel.return_value = False
        mock_engine.last_error = "Failed to cancel download: refused"

        result = cli_runner.invoke(app_with_mock_engine, ["cancel", "abcdef"])

        assert result.exit_code == 1
        assert "Failed to cancel abcdef" in result.stdout

    def test_unexpected_error_is_reported(
        self, cli_runner, app_with_mock_engine, mock_engine
    ):
        mock_engine.open.side_effect = GatewayConnectivityError("boom")

        result = cli_runner.invoke(app_with_mock_engine, ["pause", "abc"])

        assert result.exit_code == 1
        assert "Command failed" in result.stdout


class TestVersionCommand:
    def test_prints_daemon_version(self, cli_runner, app_with_mock_engine):
        result = cli_runner.invoke(app_with_mock_engine, ["version"])

        assert result.exit_code == 0
        assert "aria2 1.37.0" in result.stdout
        assert "http://localhost:6800/jsonrpc" in result.stdout

    def test_unreachable_daemon(self, cli_runner, app_with_mock_engine, mock_engine):
        mock_engine.verify.return_value = False
        mock_engine.connection_state = ConnectionState.failed("Connection refused")

        result = cli_runner.invoke(app_with_mock_engine, ["version"])

        assert result.exit_code == 1
        assert "Daemon unreachable" in result.stdout
        assert "Connection refused" in result.stdout


class TestWatchCommand:
    def test_watch_stops_after_count(
        self, cli_runner, app_with_mock_engine, mock_engine, with_jobs
    ):
        with_jobs(job("abcdef", name="ubuntu.iso"))

        result = cli_runner.invoke(
            app_with_mock_engine, ["watch", "--count", "3", "--interval", "0"]
        )

        assert result.exit_code == 0
        assert mock_engine.sync.await_count == 3
        assert result.stdout.count("ubuntu.iso") == 3
