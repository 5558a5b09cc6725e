"""Display functions for CLI output."""

import typer

from ...domain.connection import ConnectionState
from ...domain.jobs import JobRecord, Phase
from ...engine import ModelSnapshot

_PHASE_COLOURS = {
    Phase.PENDING: typer.colors.CYAN,
    Phase.ACTIVE: typer.colors.BLUE,
    Phase.PAUSED: typer.colors.YELLOW,
    Phase.COMPLETED: typer.colors.GREEN,
    Phase.FAILED: typer.colors.RED,
}

SHORT_ID_LENGTH = 8


def format_bytes(value: int | None) -> str:
    """Human readable byte count, '?' when unknown."""
    if value is None:
        return "?"
    size = float(value)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TiB"


def format_rate(value: int | None) -> str:
    return f"{format_bytes(value or 0)}/s"


def display_connection(state: ConnectionState) -> None:
    if state.is_connected:
        typer.secho("● connected", fg=typer.colors.GREEN)
    elif state.is_failed:
        typer.secho(f"● disconnected: {state.reason}", fg=typer.colors.RED)
    else:
        typer.secho(f"● {state.status.value}", fg=typer.colors.YELLOW)


def display_job(record: JobRecord) -> None:
    progress = f"{record.progress * 100:5.1f}%"
    size = f"{format_bytes(record.transferred_size)}/{format_bytes(record.total_size)}"
    line = (
        f"{record.id[:SHORT_ID_LENGTH]}  {record.phase.value:<9} {progress}  "
        f"{size:<22} {format_rate(record.download_rate):>12}  {record.display_name}"
    )
    typer.secho(line, fg=_PHASE_COLOURS.get(record.phase))


def display_snapshot(snapshot: ModelSnapshot) -> None:
    """Render the read model grouped by phase with rate totals."""
    display_connection(snapshot.connection_state)

    failed = tuple(r for r in snapshot.all_jobs if r.phase == Phase.FAILED)
    sections = (
        ("Active", snapshot.active_jobs),
        ("Paused", snapshot.paused_jobs),
        ("Completed", snapshot.completed_jobs),
        ("Failed", failed),
    )
    if not snapshot.all_jobs:
        typer.echo("No downloads")

    for title, records in sections:
        if not records:
            continue
        typer.secho(f"\n{title} ({len(records)})", bold=True)
        for record in records:
            display_job(record)

    typer.echo(
        f"\nTotal: {len(snapshot.all_jobs)} jobs  "
        f"down {format_rate(snapshot.total_download_rate)}  "
        f"up {format_rate(snapshot.total_upload_rate)}"
    )
    if snapshot.last_error:
        typer.secho(f"Last error: {snapshot.last_error}", fg=typer.colors.YELLOW)


def display_job_added(record: JobRecord) -> None:
    typer.secho(f"✓ Added: {record.display_name}", fg=typer.colors.GREEN)
    typer.echo(f"  id: {record.id}")


def display_success(message: str) -> None:
    typer.secho(f"✓ {message}", fg=typer.colors.GREEN)


def display_error(message: str, detail: str | None = None) -> None:
    typer.secho(f"✗ {message}", fg=typer.colors.RED)
    if detail:
        typer.secho(f"  Error: {detail}", fg=typer.colors.RED)
