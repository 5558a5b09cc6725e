"""Tests for job domain models and the phase mapping."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from ariasync.domain.jobs import (
    JobRecord,
    JobSnapshot,
    Phase,
    name_from_locator,
    new_job_id,
)


class TestPhaseFromDaemon:
    @pytest.mark.parametrize(
        "status,expected",
        [
            ("active", Phase.ACTIVE),
            ("waiting", Phase.PENDING),
            ("paused", Phase.PAUSED),
            ("complete", Phase.COMPLETED),
            ("removed", Phase.COMPLETED),
            ("error", Phase.FAILED),
        ],
    )
    def test_known_statuses(self, status, expected):
        assert Phase.from_daemon(status) == expected

    @pytest.mark.parametrize("status", ["", None, "seeding", "ACTIVE"])
    def test_unknown_status_falls_back_to_pending(self, status):
        assert Phase.from_daemon(status) == Phase.PENDING


class TestPhaseTransitions:
    def test_terminal_phases(self):
        assert Phase.COMPLETED.is_terminal
        assert Phase.FAILED.is_terminal
        assert not Phase.PAUSED.is_terminal

    def test_allowed_transitions(self):
        assert Phase.PENDING.can_transition_to(Phase.ACTIVE)
        assert Phase.PENDING.can_transition_to(Phase.PAUSED)
        assert Phase.ACTIVE.can_transition_to(Phase.PAUSED)
        assert Phase.PAUSED.can_transition_to(Phase.ACTIVE)

    def test_disallowed_transitions(self):
        assert not Phase.PAUSED.can_transition_to(Phase.PAUSED)
        assert not Phase.ACTIVE.can_transition_to(Phase.ACTIVE)
        assert not Phase.COMPLETED.can_transition_to(Phase.ACTIVE)
        assert not Phase.FAILED.can_transition_to(Phase.PAUSED)


class TestNameFromLocator:
    def test_last_path_segment(self):
        assert name_from_locator("https://example.com/pub/file.iso") == "file.iso"

    def test_percent_decoding(self):
        assert name_from_locator("https://example.com/my%20file.zip") == "my file.zip"

    def test_no_path(self):
        assert name_from_locator("https://example.com/") is None
        assert name_from_locator("") is None
        assert name_from_locator(None) is None


class TestJobRecord:
    def test_ids_are_unique(self):
        assert new_job_id() != new_job_id()

    def test_defaults(self):
        record = JobRecord()
        assert record.phase == Phase.PENDING
        assert record.display_name == "download"
        assert record.completed_at is None
        assert record.created_at.tzinfo is not None

    def test_is_immutable(self):
        record = JobRecord()
        with pytest.raises(ValidationError):
            record.phase = Phase.ACTIVE

    def test_progress(self):
        assert JobRecord(total_size=200, transferred_size=50).progress == 0.25
        assert JobRecord(total_size=None, transferred_size=50).progress == 0.0
        assert JobRecord(total_size=10, transferred_size=20).progress == 1.0

    def test_with_phase_stamps_completion_once(self):
        first = datetime(2024, 1, 1, tzinfo=timezone.utc)
        later = datetime(2024, 6, 1, tzinfo=timezone.utc)

        completed = JobRecord().with_phase(Phase.COMPLETED, at=first)
        again = completed.with_phase(Phase.COMPLETED, at=later)

        assert completed.completed_at == first
        assert again.completed_at == first

    def test_with_phase_leaves_original_untouched(self):
        record = JobRecord(phase=Phase.ACTIVE)
        paused = record.with_phase(Phase.PAUSED)
        assert record.phase == Phase.ACTIVE
        assert paused.phase == Phase.PAUSED
        assert paused.id == record.id

    def test_ignores_unknown_fields(self):
        record = JobRecord.model_validate({"id": "abc", "future_field": 1})
        assert record.id == "abc"


class TestRecordFromSnapshot:
    def test_builds_record_with_given_id(self):
        snapshot = JobSnapshot(
            handle="h1",
            locator="https://example.com/a.bin",
            total_size=1000,
            transferred_size=500,
            download_rate=100,
            status="active",
        )

        record = JobRecord.from_snapshot(snapshot, "local-1")

        assert record.id == "local-1"
        assert record.remote_handle == "h1"
        assert record.display_name == "a.bin"
        assert record.phase == Phase.ACTIVE
        assert record.transferred_size == 500
        assert record.download_rate == 100

    def test_display_name_falls_back_to_download(self):
        snapshot = JobSnapshot(handle="h1", locator="magnet:?xt=urn:btih:abc")
        assert JobRecord.from_snapshot(snapshot).display_name == "download"

    def test_apply_snapshot_without_phase(self):
        record = JobRecord(remote_handle="h1", phase=Phase.PAUSED)
        snapshot = JobSnapshot(handle="h1", transferred_size=10, status="active")

        updated = record.apply_snapshot(snapshot, include_phase=False)

        assert updated.phase == Phase.PAUSED
        assert updated.transferred_size == 10

    def test_apply_snapshot_keeps_existing_locator(self):
        record = JobRecord(remote_handle="h1", source_locator="https://a/x")
        snapshot = JobSnapshot(handle="h1", locator="https://b/y", status="active")
        assert record.apply_snapshot(snapshot).source_locator == "https://a/x"

    def test_snapshot_requires_handle(self):
        with pytest.raises(ValidationError):
            JobSnapshot(handle="")
