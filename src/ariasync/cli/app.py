"""CLI application factory."""

from pathlib import Path
from typing import Optional

import typer

from ..app import create_app
from ..config.settings import LogLevel, Settings, settings_from_env
from ..domain.exceptions import ConfigurationError
from .commands import add, cancel, list_jobs, pause, resume, version, watch
from .state import CLIState


def create_cli_app(
    settings: Settings | None = None, state: CLIState | None = None
) -> typer.Typer:
    """Create CLI application with optional settings or state override.

    Args:
        settings: Optional Settings override for testing
        state: Optional pre-built CLIState (e.g. with a mocked engine factory)

    Returns:
        Configured Typer application with commands registered
    """
    app = typer.Typer(
        name="ariasync",
        help="ariasync - Keep a local, persistent view of an aria2 daemon's downloads",
        no_args_is_help=True,
    )

    @app.callback()
    def setup(
        ctx: typer.Context,
        host: Optional[str] = typer.Option(
            None,
            "--host",
            help="Daemon RPC host",
        ),
        port: Optional[int] = typer.Option(
            None,
            "--port",
            "-p",
            help="Daemon RPC port",
            min=1,
            max=65535,
        ),
        secret: Optional[str] = typer.Option(
            None,
            "--secret",
            help="Daemon RPC secret token",
        ),
        state_dir: Optional[Path] = typer.Option(
            None,
            "--state-dir",
            help="Directory holding persisted job records",
        ),
        verbose: bool = typer.Option(
            False,
            "--verbose",
            "-v",
            help="Enable verbose output (DEBUG logging)",
        ),
    ) -> None:
        """Global options available to all commands."""
        if state is not None:
            ctx.obj = state
            return

        if settings is not None:
            resolved_settings = settings
        else:
            try:
                resolved_settings = settings_from_env(
                    rpc_host=host,
                    rpc_port=port,
                    rpc_secret=secret,
                    state_dir=state_dir,
                    log_level=LogLevel.DEBUG if verbose else None,
                )
            except ConfigurationError as exc:
                raise typer.BadParameter(str(exc)) from exc

        create_app(resolved_settings)
        ctx.obj = CLIState(resolved_settings)

    app.command()(version)
    app.command(name="list")(list_jobs)
    app.command()(add)
    app.command()(pause)
    app.command()(resume)
    app.command()(cancel)
    app.command()(watch)
    return app
