"""Download engine - the public façade over supervision, polling and the model."""

import asyncio
import typing as t
from collections import defaultdict

from ..config import Settings
from ..domain.connection import ConnectionState
from ..domain.exceptions import (
    EngineNotStartedError,
    GatewayError,
    InvalidTransitionError,
    PersistenceError,
    RemoteJobNotFoundError,
)
from ..domain.jobs import JobRecord, Phase, name_from_locator, new_job_id
from ..events import (
    EngineErrorEvent,
    ErrorInfo,
    EventEmitter,
    JobAddedEvent,
    JobCompletedEvent,
    JobPhaseChangedEvent,
    JobRemovedEvent,
    Subscription,
)
from ..events.models import ConnectionStateChangedEvent
from ..gateway.base import BaseGateway
from ..infrastructure.logging import get_logger
from ..storage.base import BaseRecordStore
from .model import JobModel, ModelSnapshot
from .reconciler import Reconciler
from .supervisor import ConnectionSupervisor

if t.TYPE_CHECKING:
    import loguru

GatewayCall = t.Callable[[str], t.Awaitable[bool]]


class DownloadEngine:
    """Keeps a local, persistent model of the daemon's jobs and mutates them.

    The engine composes a ConnectionSupervisor (health checks and reconnects),
    a Reconciler (periodic polling and merging) and a JobModel (the records and
    their published views). Model writes from user operations and from
    reconciliation passes are serialised by one owner lock; operations on the
    same job are additionally serialised by a per-job lock.

    Mutating operations always attempt the gateway call, whatever the
    connection state, and only touch local state once the daemon accepted the
    request. On failure they record last_error, emit engine.error and return
    False (or None for add).

    Usage:
        async with DownloadEngine(gateway, store, settings) as engine:
            record = await engine.add("https://example.com/file.iso")
            engine.on("job.completed", lambda e: print(e.job.display_name))

    Or without background tasks, for one-shot use:
        await engine.open()
        await engine.sync()
        print(engine.snapshot())
        await engine.close()
    """

    def __init__(
        self,
        gateway: BaseGateway,
        store: BaseRecordStore,
        settings: Settings | None = None,
        emitter: EventEmitter | None = None,
        owns_gateway: bool = False,
        logger: "loguru.Logger" = get_logger(__name__),
    ) -> None:
        """Initialise the engine.

        Args:
            gateway: Gateway to the daemon.
            store: Durable mirror of the job records.
            settings: Timing, paging and default download directory.
            emitter: Event emitter shared by every component. A new
                EventEmitter is created if None.
            owns_gateway: Close the gateway when the engine stops.
            logger: Logger instance shared by the components.
        """
        self._settings = settings or Settings()
        self._gateway = gateway
        self._store = store
        self._owns_gateway = owns_gateway
        self._logger = logger
        self._emitter = emitter if emitter is not None else EventEmitter(logger)
        self._model = JobModel()
        self._lock = asyncio.Lock()
        self._job_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._opened = False
        self._running = False

        self._supervisor = ConnectionSupervisor(
            gateway,
            backoff=self._settings.backoff(),
            verify_timeout=self._settings.verify_timeout,
            emitter=self._emitter,
            logger=logger,
        )
        self._reconciler = Reconciler(
            gateway,
            self._model,
            store,
            self._supervisor,
            emitter=self._emitter,
            lock=self._lock,
            poll_interval=self._settings.poll_interval,
            page_size=self._settings.page_size,
            max_items=self._settings.max_items,
            logger=logger,
        )
        self._emitter.on("connection.changed", self._on_connection_changed)

    # Lifecycle

    @property
    def supervisor(self) -> ConnectionSupervisor:
        return self._supervisor

    @property
    def reconciler(self) -> Reconciler:
        return self._reconciler

    @property
    def is_open(self) -> bool:
        return self._opened

    @property
    def is_running(self) -> bool:
        """True while the supervisor and reconciler tasks are running."""
        return self._running

    async def open(self) -> None:
        """Open the gateway and restore records from the store.

        Idempotent. A store that cannot be read is logged and the engine
        starts with an empty model.
        """
        if self._opened:
            return
        await self._gateway.open()
        try:
            records = await self._store.list_all()
        except PersistenceError as exc:
            self._logger.error(f"Failed to restore job records: {exc}")
            records = []
        async with self._lock:
            restored = self._model.load(records)
        self._opened = True
        self._logger.debug(f"Restored {restored} job records")

    async def start(self) -> None:
        """Open the engine and start the supervisor and reconciler tasks."""
        await self.open()
        if self._running:
            return
        await self._supervisor.start()
        await self._reconciler.start()
        self._running = True

    async def stop(self) -> None:
        """Cancel background tasks and release owned resources. Idempotent."""
        await self._reconciler.stop()
        await self._supervisor.stop()
        self._running = False
        if self._opened and self._owns_gateway:
            await self._gateway.close()
        self._opened = False

    async def close(self) -> None:
        await self.stop()

    async def __aenter__(self) -> "DownloadEngine":
        await self.start()
        return self

    async def __aexit__(self, *args: t.Any) -> None:
        await self.stop()

    async def verify(self) -> bool:
        """Run one health check now, whatever the connection state."""
        self._require_open()
        return await self._supervisor.verify()

    @property
    def daemon_version(self) -> str | None:
        return self._supervisor.daemon_version

    async def sync(self) -> bool:
        """Run one health check if needed, then one reconciliation pass.

        Returns:
            True if the pass ran and committed.
        """
        self._require_open()
        if not self._supervisor.state.is_connected:
            if not await self._supervisor.verify():
                return False
        return await self._reconciler.reconcile_once() is not None

    # Published read model

    @property
    def all_jobs(self) -> tuple[JobRecord, ...]:
        return self._model.views.all_jobs

    @property
    def active_jobs(self) -> tuple[JobRecord, ...]:
        return self._model.views.active_jobs

    @property
    def paused_jobs(self) -> tuple[JobRecord, ...]:
        return self._model.views.paused_jobs

    @property
    def completed_jobs(self) -> tuple[JobRecord, ...]:
        return self._model.views.completed_jobs

    @property
    def total_download_rate(self) -> int:
        return self._model.views.total_download_rate

    @property
    def total_upload_rate(self) -> int:
        return self._model.views.total_upload_rate

    @property
    def connection_state(self) -> ConnectionState:
        return self._supervisor.state

    @property
    def last_error(self) -> str | None:
        return self._model.last_error

    def snapshot(self) -> ModelSnapshot:
        """Consistent view of every published field at this instant."""
        return self._model.snapshot(self._supervisor.state)

    def get_job(self, job_id: str) -> JobRecord | None:
        return self._model.get(job_id)

    def on(self, event_type: str, handler: t.Callable[[t.Any], t.Any]) -> Subscription:
        """Subscribe to an engine event and return a handle to detach later."""
        self._emitter.on(event_type, handler)
        return Subscription(self._emitter, event_type, handler)

    # Mutating operations

    async def add(
        self, locator: str, options: t.Mapping[str, str] | None = None
    ) -> JobRecord | None:
        """Submit a new job to the daemon and track it.

        Args:
            locator: URI or magnet link.
            options: Daemon options; override the download dir defaults.

        Returns:
            The tracked record, or None if the daemon rejected the job.
        """
        self._require_open()
        merged = {**self._default_options(locator), **dict(options or {})}
        job_id = new_job_id()

        try:
            handle = await self._gateway.add_job(locator, merged)
        except GatewayError as exc:
            await self._report_error("add", exc, None, f"Failed to add download: {exc}")
            return None

        # Registered before the commit so a concurrent pass reuses job_id
        self._model.correlator.register_pending(handle, job_id)

        async with self._lock:
            # A pass may have bound the handle already, under job_id or,
            # if it ran before register_pending, under an id it minted.
            existing = self._model.get(job_id) or self._model.find_by_handle(handle)
            if existing is not None:
                record = existing
                if not record.source_locator:
                    record = record.model_copy(update={"source_locator": locator})
            else:
                record = JobRecord(
                    id=job_id,
                    remote_handle=handle,
                    source_locator=locator,
                    display_name=(
                        merged.get("out") or name_from_locator(locator) or "download"
                    ),
                    phase=Phase.PENDING,
                )
            self._model.write_local(record)
            await self._persist(record)

        self._logger.info(f"Added job {record.display_name} ({record.id})")
        await self._emitter.emit("job.added", JobAddedEvent(job=record))
        await self._emit_model_updated()
        return record

    async def pause(self, job_id: str) -> bool:
        """Pause a job. Raises InvalidTransitionError unless it can pause."""
        return await self._change_phase(job_id, Phase.PAUSED, self._gateway.pause)

    async def resume(self, job_id: str) -> bool:
        """Resume a paused job. Raises InvalidTransitionError otherwise."""
        return await self._change_phase(job_id, Phase.ACTIVE, self._gateway.resume)

    async def cancel(self, job_id: str) -> bool:
        """Remove a job from the daemon, the model and the store.

        A daemon that no longer knows the job counts as success.
        """
        self._require_open()
        async with self._job_locks[job_id]:
            record = self._model.require(job_id)

            if record.remote_handle:
                try:
                    accepted = await self._gateway.remove(record.remote_handle)
                except RemoteJobNotFoundError:
                    self._logger.debug(
                        f"Job {job_id} already gone from daemon, removing locally"
                    )
                    accepted = True
                except GatewayError as exc:
                    await self._report_error(
                        "cancel", exc, job_id, f"Failed to cancel download: {exc}"
                    )
                    return False
                if not accepted:
                    await self._report_refusal("cancel", job_id)
                    return False

            async with self._lock:
                removed = self._model.remove(job_id) or record
                try:
                    await self._store.delete(job_id)
                except PersistenceError as exc:
                    self._logger.error(f"Failed to delete stored job {job_id}: {exc}")

        self._job_locks.pop(job_id, None)
        self._logger.info(f"Cancelled job {removed.display_name} ({job_id})")
        await self._emitter.emit("job.removed", JobRemovedEvent(job=removed))
        await self._emit_model_updated()
        return True

    async def refresh(self, job_id: str) -> Phase | None:
        """Query one job's status and apply the observed phase.

        Returns:
            The observed phase, or None if the query failed.
        """
        self._require_open()
        async with self._job_locks[job_id]:
            record = self._model.require(job_id)
            if not record.remote_handle:
                return record.phase
            try:
                status = await self._gateway.query_status(record.remote_handle)
            except GatewayError as exc:
                await self._report_error(
                    "refresh", exc, job_id, f"Failed to refresh download: {exc}"
                )
                return None

            phase = Phase.from_daemon(status)
            async with self._lock:
                current = self._model.get(job_id)
                if current is None:
                    return phase
                updated = current.with_phase(phase)
                if updated == current:
                    return phase
                self._model.observe(updated)
                await self._persist(updated)

        await self._emitter.emit(
            "job.phase_changed",
            JobPhaseChangedEvent(
                job=updated, previous_phase=current.phase, source="daemon"
            ),
        )
        if current.completed_at is None and updated.completed_at is not None:
            await self._emitter.emit("job.completed", JobCompletedEvent(job=updated))
        await self._emit_model_updated()
        return phase

    # Internals

    def _require_open(self) -> None:
        if not self._opened:
            raise EngineNotStartedError(
                "DownloadEngine must be opened or started before use"
            )

    def _default_options(self, locator: str) -> dict[str, str]:
        download_dir = self._settings.download_dir
        name = name_from_locator(locator)
        if download_dir is None or not name:
            return {}
        return {"dir": str(download_dir), "out": name}

    async def _change_phase(
        self, job_id: str, target: Phase, call: GatewayCall
    ) -> bool:
        self._require_open()
        operation = "pause" if target == Phase.PAUSED else "resume"
        async with self._job_locks[job_id]:
            record = self._model.require(job_id)
            if not record.phase.can_transition_to(target):
                raise InvalidTransitionError(job_id, record.phase, target)
            if not record.remote_handle:
                raise InvalidTransitionError(job_id, record.phase, target)

            try:
                accepted = await call(record.remote_handle)
            except GatewayError as exc:
                await self._report_error(
                    operation, exc, job_id, f"Failed to {operation} download: {exc}"
                )
                return False
            if not accepted:
                await self._report_refusal(operation, job_id)
                return False

            async with self._lock:
                current = self._model.get(job_id)
                # A pass may have moved or dropped the job while the call ran.
                if current is None or not current.phase.can_transition_to(target):
                    self._logger.debug(
                        f"Job {job_id} changed during {operation}, "
                        "keeping the observed state"
                    )
                    return True
                updated = current.with_phase(target)
                self._model.write_local(updated)
                await self._persist(updated)

        self._logger.info(
            f"Job {updated.display_name} ({job_id}): {current.phase} -> {target}"
        )
        await self._emitter.emit(
            "job.phase_changed",
            JobPhaseChangedEvent(
                job=updated, previous_phase=current.phase, source="local"
            ),
        )
        await self._emit_model_updated()
        return True

    async def _persist(self, record: JobRecord) -> None:
        try:
            await self._store.put(record)
        except PersistenceError as exc:
            self._logger.error(f"Failed to persist job {record.id}: {exc}")

    async def _report_refusal(self, operation: str, job_id: str) -> None:
        error = GatewayError(f"Daemon refused to {operation} job {job_id}")
        await self._report_error(operation, error, job_id, str(error))

    async def _report_error(
        self,
        operation: str,
        exc: Exception,
        job_id: str | None,
        message: str,
    ) -> None:
        self._logger.error(message)
        self._model.last_error = message
        await self._emitter.emit(
            "engine.error",
            EngineErrorEvent(
                operation=operation,
                job_id=job_id,
                error=ErrorInfo.from_exception(exc),
            ),
        )
        await self._emit_model_updated()

    async def _emit_model_updated(self) -> None:
        await self._emitter.emit("model.updated", self._model.updated_event())

    def _on_connection_changed(self, event: ConnectionStateChangedEvent) -> None:
        if event.current.is_failed:
            self._model.last_error = f"Failed to connect to daemon: {event.current.reason}"
        elif event.current.is_connected:
            self._model.last_error = None
