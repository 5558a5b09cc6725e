"""Tests for the JSON file record store."""

import pytest

from ariasync.domain.exceptions import PersistenceError
from ariasync.domain.jobs import JobRecord, Phase
from ariasync.storage import JsonRecordStore


@pytest.fixture
def store_dir(tmp_path):
    return tmp_path / "jobs"


@pytest.fixture
def store(store_dir, mock_logger):
    return JsonRecordStore(store_dir, logger=mock_logger)


@pytest.fixture
def record():
    return JobRecord(
        id="job1",
        remote_handle="gid1",
        source_locator="https://example.com/a.bin",
        display_name="a.bin",
        total_size=100,
        transferred_size=10,
        phase=Phase.ACTIVE,
    )


class TestPutAndList:
    @pytest.mark.asyncio
    async def test_put_creates_directory_and_document(self, store, store_dir, record):
        await store.put(record)

        assert (store_dir / "job1.json").exists()
        assert await store.list_all() == [record]

    @pytest.mark.asyncio
    async def test_put_replaces_existing_record(self, store, record):
        await store.put(record)
        paused = record.with_phase(Phase.PAUSED)
        await store.put(paused)

        records = await store.list_all()
        assert records == [paused]

    @pytest.mark.asyncio
    async def test_no_temporary_files_left_behind(self, store, store_dir, record):
        await store.put(record)
        assert sorted(p.name for p in store_dir.iterdir()) == ["job1.json"]

    @pytest.mark.asyncio
    async def test_list_all_on_empty_store(self, store):
        assert await store.list_all() == []

    @pytest.mark.asyncio
    async def test_round_trip_preserves_timestamps(self, store, record):
        completed = record.with_phase(Phase.COMPLETED)
        await store.put(completed)

        [loaded] = await store.list_all()

        assert loaded.completed_at == completed.completed_at
        assert loaded.created_at == completed.created_at


class TestInvalidDocuments:
    @pytest.mark.asyncio
    async def test_invalid_json_is_skipped_and_logged(
        self, store, store_dir, record, mock_logger
    ):
        await store.put(record)
        (store_dir / "broken.json").write_text("{not json")

        records = await store.list_all()

        assert records == [record]
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_undecodable_document_is_skipped_and_logged(
        self, store, store_dir, record, mock_logger
    ):
        await store.put(record)
        (store_dir / "bad.json").write_bytes(b'{"id": "\xff\xfe"}')

        records = await store.list_all()

        assert records == [record]
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_non_json_and_hidden_files_are_ignored(
        self, store, store_dir, record, mock_logger
    ):
        await store.put(record)
        (store_dir / "notes.txt").write_text("hello")
        (store_dir / ".job2.abc.tmp").write_text("{}")

        assert await store.list_all() == [record]
        mock_logger.warning.assert_not_called()


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_document(self, store, store_dir, record):
        await store.put(record)
        await store.delete("job1")

        assert not (store_dir / "job1.json").exists()
        assert await store.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, store):
        await store.delete("missing")


class TestFailures:
    @pytest.mark.asyncio
    async def test_unsafe_id_is_rejected(self, store):
        with pytest.raises(PersistenceError, match="Unsafe"):
            await store.put(JobRecord(id="../escape"))

    @pytest.mark.asyncio
    async def test_unwritable_directory_raises_persistence_error(self, tmp_path, record):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        store = JsonRecordStore(blocker / "jobs")

        with pytest.raises(PersistenceError):
            await store.put(record)
