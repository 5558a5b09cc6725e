"""Tests for engine lifecycle, restore and the published read model."""

import asyncio

import pytest

from ariasync.domain.exceptions import EngineNotStartedError, PersistenceError
from ariasync.domain.jobs import JobRecord, Phase
from ariasync.storage import InMemoryRecordStore
from tests.fixtures.daemon import make_snapshot


async def wait_for(predicate, timeout=2.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(poll(), timeout)


class TestStartStop:
    @pytest.mark.asyncio
    async def test_background_tasks_connect_and_reconcile(
        self, engine_factory, fake_gateway
    ):
        fake_gateway.active = [make_snapshot("h1")]
        engine = engine_factory()

        await engine.start()
        await wait_for(lambda: engine.reconciler.passes >= 1)

        assert engine.is_running
        assert engine.connection_state.is_connected
        assert len(engine.all_jobs) == 1

        await engine.stop()
        assert not engine.is_running
        assert not engine.supervisor.is_running
        assert not engine.reconciler.is_running

    @pytest.mark.asyncio
    async def test_recovers_after_daemon_comes_back(
        self, engine_factory, fake_gateway
    ):
        fake_gateway.version_failures = 2
        fake_gateway.active = [make_snapshot("h1")]
        engine = engine_factory()

        async with engine:
            await wait_for(lambda: engine.reconciler.passes >= 1)
            assert engine.last_error is None

        assert len(fake_gateway.called("version")) >= 3

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, engine_factory):
        engine = engine_factory()
        await engine.start()

        await engine.stop()
        await engine.stop()

        assert not engine.is_open

    @pytest.mark.asyncio
    async def test_operations_require_open(self, engine_factory):
        engine = engine_factory()

        with pytest.raises(EngineNotStartedError):
            await engine.add("https://example.com/a.iso")
        with pytest.raises(EngineNotStartedError):
            await engine.sync()

    @pytest.mark.asyncio
    async def test_borrowed_gateway_stays_open(self, engine_factory, fake_gateway):
        engine = engine_factory()
        await engine.open()
        await engine.stop()

        assert fake_gateway.opened
        assert not fake_gateway.closed

    @pytest.mark.asyncio
    async def test_owned_gateway_is_closed(self, engine_factory, fake_gateway):
        engine = engine_factory(owns_gateway=True)
        async with engine:
            pass

        assert fake_gateway.closed


class TestRestore:
    @pytest.mark.asyncio
    async def test_open_restores_stored_records(self, engine_factory):
        stored = JobRecord(id="saved", remote_handle="h1", phase=Phase.PAUSED)
        engine = engine_factory(store=InMemoryRecordStore([stored]))

        await engine.open()

        assert engine.get_job("saved") == stored
        assert engine.paused_jobs == (stored,)
        await engine.stop()

    @pytest.mark.asyncio
    async def test_restored_record_keeps_id_on_next_pass(
        self, engine_factory, fake_gateway
    ):
        stored = JobRecord(id="saved", remote_handle="h1", phase=Phase.PAUSED)
        engine = engine_factory(store=InMemoryRecordStore([stored]))
        await engine.open()
        fake_gateway.active = [make_snapshot("h1", "active", done=5)]

        await engine.sync()

        [record] = engine.all_jobs
        assert record.id == "saved"
        assert record.phase == Phase.ACTIVE
        await engine.stop()

    @pytest.mark.asyncio
    async def test_unreadable_store_starts_empty(
        self, engine_factory, memory_store, mock_logger, mocker
    ):
        mocker.patch.object(
            memory_store, "list_all", side_effect=PersistenceError("corrupt")
        )
        engine = engine_factory()

        await engine.open()

        assert engine.all_jobs == ()
        mock_logger.error.assert_called_once()
        await engine.stop()


class TestReadModel:
    @pytest.mark.asyncio
    async def test_snapshot_is_consistent(self, connected_engine, fake_gateway):
        fake_gateway.active = [make_snapshot("a", "active", down=10, up=2)]
        fake_gateway.waiting = [make_snapshot("p", "paused")]
        fake_gateway.stopped = [make_snapshot("c", "complete")]
        await connected_engine.sync()

        snapshot = connected_engine.snapshot()

        assert len(snapshot.all_jobs) == 3
        assert [r.remote_handle for r in snapshot.active_jobs] == ["a"]
        assert [r.remote_handle for r in snapshot.paused_jobs] == ["p"]
        assert [r.remote_handle for r in snapshot.completed_jobs] == ["c"]
        assert snapshot.total_download_rate == 10
        assert snapshot.total_upload_rate == 2
        assert snapshot.connection_state.is_connected
        assert snapshot.get(snapshot.active_jobs[0].id) == snapshot.active_jobs[0]

    @pytest.mark.asyncio
    async def test_failed_connection_sets_last_error(self, engine, fake_gateway):
        fake_gateway.version_failures = 1

        await engine.verify()

        assert engine.last_error == "Failed to connect to daemon: Connection refused"
        assert engine.snapshot().last_error == engine.last_error

        await engine.verify()
        assert engine.last_error is None

    @pytest.mark.asyncio
    async def test_subscription_can_detach(self, connected_engine, fake_gateway):
        seen = []
        subscription = connected_engine.on("model.updated", seen.append)

        await connected_engine.sync()
        subscription.unsubscribe()
        await connected_engine.sync()

        assert len(seen) == 1
        assert not subscription.is_active

    @pytest.mark.asyncio
    async def test_async_handlers_are_awaited(self, connected_engine, fake_gateway):
        seen = []

        async def handler(event):
            seen.append(event.job.remote_handle)

        connected_engine.on("job.discovered", handler)
        fake_gateway.active = [make_snapshot("h1")]

        await connected_engine.sync()

        assert seen == ["h1"]

    @pytest.mark.asyncio
    async def test_daemon_version_after_verify(self, connected_engine):
        assert connected_engine.daemon_version == "1.37.0"
