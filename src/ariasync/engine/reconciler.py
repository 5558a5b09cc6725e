"""Periodic reconciliation of the job model against the daemon."""

import asyncio
import typing as t

from ..domain.exceptions import (
    GatewayConnectivityError,
    GatewayError,
    PersistenceError,
)
from ..domain.jobs import JobRecord, JobSnapshot
from ..events import (
    BaseEmitter,
    ErrorInfo,
    JobCompletedEvent,
    JobDiscoveredEvent,
    JobPhaseChangedEvent,
    NullEmitter,
    ReconcileFailedEvent,
)
from ..gateway.base import BaseGateway
from ..infrastructure.logging import get_logger
from ..storage.base import BaseRecordStore
from .model import JobModel, MergeResult
from .supervisor import ConnectionSupervisor

if t.TYPE_CHECKING:
    import loguru

PageQuery = t.Callable[[int, int], t.Awaitable[list[JobSnapshot]]]


class Reconciler:
    """Polls the daemon and folds what it reports into the JobModel.

    One pass queries active, waiting and stopped jobs, then merges all of them
    under the owner lock. If any query fails the pass is abandoned and the
    model is left exactly as it was. Connectivity failures are reported to the
    supervisor; protocol failures are recorded as the model's last error and
    leave the connection state alone.

    While the link is FAILED and no retry driver is running, each tick runs a
    health check instead of a pass. When the driver is running it owns the
    reconnect schedule and ticks are skipped until the link is back.
    """

    def __init__(
        self,
        gateway: BaseGateway,
        model: JobModel,
        store: BaseRecordStore,
        supervisor: ConnectionSupervisor,
        emitter: BaseEmitter | None = None,
        lock: asyncio.Lock | None = None,
        poll_interval: float = 1.0,
        page_size: int = 100,
        max_items: int = 1000,
        logger: "loguru.Logger" = get_logger(__name__),
    ) -> None:
        """Initialise the reconciler.

        Args:
            gateway: Source of daemon snapshots.
            model: Model to merge into.
            store: Store mirroring new and phase-changed records.
            supervisor: Connection supervisor consulted before each pass.
            emitter: Receives job and reconcile events.
            lock: Owner lock shared with the engine's mutating operations.
            poll_interval: Seconds between ticks.
            page_size: Items requested per waiting/stopped page.
            max_items: Upper bound on waiting/stopped items per pass.
            logger: Logger instance.
        """
        self._gateway = gateway
        self._model = model
        self._store = store
        self._supervisor = supervisor
        self._emitter = emitter or NullEmitter()
        self._lock = lock or asyncio.Lock()
        self._poll_interval = poll_interval
        self._page_size = page_size
        self._max_items = max_items
        self._logger = logger
        self._task: asyncio.Task[None] | None = None
        self._last_failure: str | None = None
        self._passes = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def passes(self) -> int:
        """Number of successfully committed passes."""
        return self._passes

    async def start(self) -> None:
        if self.is_running:
            self._logger.debug("Reconciler already running")
            return
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def run(self) -> None:
        """Tick forever at poll_interval. Runs until cancelled."""
        self._logger.debug(f"Reconciler started (interval {self._poll_interval}s)")
        while True:
            try:
                await self.tick()
            except Exception:
                self._logger.exception("Reconciliation tick failed")
            await asyncio.sleep(self._poll_interval)

    async def tick(self) -> MergeResult | None:
        """Run whatever this tick calls for given the connection state."""
        state = self._supervisor.state
        if state.is_connected:
            return await self.reconcile_once()
        if not self._supervisor.is_running:
            await self._supervisor.verify()
        return None

    async def reconcile_once(self) -> MergeResult | None:
        """Run one full pass.

        Returns:
            The merge result, or None if the pass was abandoned.
        """
        since = self._model.write_sequence
        try:
            snapshots, complete = await self._fetch_all()
        except GatewayConnectivityError as exc:
            self._logger.warning(f"Reconciliation abandoned, daemon unreachable: {exc}")
            await self._supervisor.mark_failed(str(exc))
            await self._report_failure(exc)
            return None
        except GatewayError as exc:
            self._logger.error(f"Reconciliation abandoned: {exc}")
            message = f"Failed to update downloads: {exc}"
            self._model.last_error = message
            self._last_failure = message
            await self._report_failure(exc)
            return None

        async with self._lock:
            result = self._model.merge(
                snapshots, since_sequence=since, complete=complete
            )
            if self._last_failure and self._model.last_error == self._last_failure:
                self._model.last_error = None
            self._last_failure = None
            await self._persist(result.changed)

        self._passes += 1
        self._logger.debug(
            f"Reconciled {len(snapshots)} snapshots: "
            f"{len(result.discovered)} discovered, "
            f"{len(result.phase_changes)} phase changes"
        )
        await self._emit_result(result)
        return result

    async def _fetch_all(self) -> tuple[list[JobSnapshot], bool]:
        """Gather every queue. The flag is False if max_items cut a queue short."""
        active = await self._gateway.query_active()
        waiting, waiting_done = await self._fetch_paged(self._gateway.query_waiting)
        stopped, stopped_done = await self._fetch_paged(self._gateway.query_stopped)
        return [*active, *waiting, *stopped], waiting_done and stopped_done

    async def _fetch_paged(self, query: PageQuery) -> tuple[list[JobSnapshot], bool]:
        items: list[JobSnapshot] = []
        offset = 0
        while offset < self._max_items:
            count = min(self._page_size, self._max_items - offset)
            page = await query(offset, count)
            items.extend(page)
            if len(page) < count:
                return items, True
            offset += count
        return items, False

    async def _persist(self, records: list[JobRecord]) -> None:
        for record in records:
            try:
                await self._store.put(record)
            except PersistenceError as exc:
                self._logger.error(f"Failed to persist job {record.id}: {exc}")

    async def _report_failure(self, exc: Exception) -> None:
        await self._emitter.emit(
            "reconcile.failed",
            ReconcileFailedEvent(error=ErrorInfo.from_exception(exc)),
        )
        await self._emitter.emit("model.updated", self._model.updated_event())

    async def _emit_result(self, result: MergeResult) -> None:
        for record in result.discovered:
            self._logger.info(f"Discovered job {record.display_name} ({record.id})")
            await self._emitter.emit("job.discovered", JobDiscoveredEvent(job=record))
        for record, previous in result.phase_changes:
            self._logger.info(
                f"Job {record.display_name} ({record.id}): {previous} -> {record.phase}"
            )
            await self._emitter.emit(
                "job.phase_changed",
                JobPhaseChangedEvent(
                    job=record, previous_phase=previous, source="daemon"
                ),
            )
        for record in result.completed:
            await self._emitter.emit("job.completed", JobCompletedEvent(job=record))
        await self._emitter.emit("model.updated", self._model.updated_event())
