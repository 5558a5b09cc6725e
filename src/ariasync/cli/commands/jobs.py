"""Job commands: inspect the daemon and add, pause, resume or cancel jobs."""

import asyncio
import typing as t
from typing import Optional

import typer

from ...domain.exceptions import JobNotFoundError
from ...engine import DownloadEngine
from ..output.display import (
    display_error,
    display_job_added,
    display_snapshot,
    display_success,
)
from ..state import CLIState

EngineAction = t.Callable[[DownloadEngine], t.Awaitable[None]]


def run_with_engine(state: CLIState, action: EngineAction) -> None:
    """Open an engine, run action against it and always close it.

    Raises:
        typer.Exit: With code 1 on any failure
    """

    async def run() -> None:
        engine = state.create_engine()
        await engine.open()
        try:
            await action(engine)
        finally:
            await engine.close()

    try:
        asyncio.run(run())
    except typer.Exit:
        # Re-raise typer.Exit to preserve exit codes
        raise
    except Exception as e:
        display_error("Command failed", str(e))
        raise typer.Exit(code=1)


def resolve_job_id(engine: DownloadEngine, job_ref: str) -> str:
    """Resolve a full id or a unique id prefix to a job id.

    Raises:
        JobNotFoundError: If nothing matches
        typer.Exit: If the prefix is ambiguous
    """
    matches = [r.id for r in engine.snapshot().all_jobs if r.id.startswith(job_ref)]
    if job_ref in matches:
        return job_ref
    if not matches:
        raise JobNotFoundError(job_ref)
    if len(matches) > 1:
        display_error(f"Ambiguous job id: {job_ref}", ", ".join(matches))
        raise typer.Exit(code=1)
    return matches[0]


async def _sync_or_warn(engine: DownloadEngine) -> bool:
    synced = await engine.sync()
    if not synced:
        typer.secho(
            f"Warning: could not refresh from daemon: {engine.last_error}",
            fg=typer.colors.YELLOW,
        )
    return synced


def version(ctx: typer.Context) -> None:
    """Check the daemon is reachable and print its version."""
    state: CLIState = ctx.obj

    async def action(engine: DownloadEngine) -> None:
        if not await engine.verify():
            display_error("Daemon unreachable", engine.connection_state.reason)
            raise typer.Exit(code=1)
        display_success(f"aria2 {engine.daemon_version} at {state.settings.rpc_url}")

    run_with_engine(state, action)


def list_jobs(ctx: typer.Context) -> None:
    """Run one reconciliation pass and list jobs grouped by phase."""
    state: CLIState = ctx.obj

    async def action(engine: DownloadEngine) -> None:
        synced = await _sync_or_warn(engine)
        display_snapshot(engine.snapshot())
        if not synced:
            raise typer.Exit(code=1)

    run_with_engine(state, action)


def add(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URI or magnet link to download"),
    directory: Optional[str] = typer.Option(
        None, "--dir", "-d", help="Download directory on the daemon host"
    ),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Output file name"),
) -> None:
    """Submit a new download to the daemon.

    Examples:
        ariasync add https://example.com/file.iso
        ariasync add https://example.com/file.iso --dir /data --out image.iso
    """
    state: CLIState = ctx.obj
    options = {
        key: value
        for key, value in (("dir", directory), ("out", out))
        if value is not None
    }

    async def action(engine: DownloadEngine) -> None:
        record = await engine.add(url, options or None)
        if record is None:
            display_error(f"Failed to add: {url}", engine.last_error)
            raise typer.Exit(code=1)
        display_job_added(record)

    run_with_engine(state, action)


def _change(ctx: typer.Context, job_ref: str, operation: str) -> None:
    state: CLIState = ctx.obj

    async def action(engine: DownloadEngine) -> None:
        await _sync_or_warn(engine)
        job_id = resolve_job_id(engine, job_ref)
        ok = await getattr(engine, operation)(job_id)
        if not ok:
            display_error(f"Failed to {operation} {job_id}", engine.last_error)
            raise typer.Exit(code=1)
        display_success(f"{operation.capitalize()}: {job_id}")

    run_with_engine(state, action)


def pause(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id or unique id prefix"),
) -> None:
    """Pause a job."""
    _change(ctx, job_id, "pause")


def resume(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id or unique id prefix"),
) -> None:
    """Resume a paused job."""
    _change(ctx, job_id, "resume")


def cancel(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id or unique id prefix"),
) -> None:
    """Remove a job from the daemon and forget it locally."""
    _change(ctx, job_id, "cancel")


def watch(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(
        None, "--interval", "-i", help="Seconds between passes", min=0.0
    ),
    count: Optional[int] = typer.Option(
        None, "--count", "-n", help="Stop after this many passes", min=1
    ),
) -> None:
    """Reconcile repeatedly and print the read model after each pass."""
    state: CLIState = ctx.obj
    delay = interval if interval is not None else state.settings.poll_interval

    async def action(engine: DownloadEngine) -> None:
        passes = 0
        while count is None or passes < count:
            if passes:
                await asyncio.sleep(delay)
                typer.echo("")
            await _sync_or_warn(engine)
            display_snapshot(engine.snapshot())
            passes += 1

    try:
        run_with_engine(state, action)
    except KeyboardInterrupt:
        typer.echo("Stopped")
