#!/usr/bin/env python3
"""
01_watch_daemon.py - Follow an aria2 daemon's downloads

Demonstrates:
- Starting the engine with background supervision and polling
- Subscribing to job and connection events
- Reading the published model

Note: Requires aria2c running with --enable-rpc on localhost:6800.
Stopping and restarting the daemon while this runs shows reconnection.
"""

import asyncio

from ariasync import create_app
from ariasync.events import (
    ConnectionStateChangedEvent,
    JobCompletedEvent,
    JobDiscoveredEvent,
    JobPhaseChangedEvent,
)


def on_connection(event: ConnectionStateChangedEvent) -> None:
    print(f"[connection] {event.previous} -> {event.current}")


def on_discovered(event: JobDiscoveredEvent) -> None:
    print(f"[discovered] {event.job.display_name} ({event.job.id[:8]})")


def on_phase(event: JobPhaseChangedEvent) -> None:
    print(
        f"[{event.source}] {event.job.display_name}: "
        f"{event.previous_phase} -> {event.job.phase}"
    )


def on_completed(event: JobCompletedEvent) -> None:
    print(f"[completed] {event.job.display_name}")


async def main() -> None:
    app = create_app()
    engine = app.create_engine()

    engine.on("connection.changed", on_connection)
    engine.on("job.discovered", on_discovered)
    engine.on("job.phase_changed", on_phase)
    engine.on("job.completed", on_completed)

    async with engine:
        for _ in range(30):
            await asyncio.sleep(1)
            snapshot = engine.snapshot()
            print(
                f"{len(snapshot.active_jobs)} active, "
                f"{len(snapshot.paused_jobs)} paused, "
                f"{len(snapshot.completed_jobs)} completed | "
                f"down {snapshot.total_download_rate} B/s"
            )


if __name__ == "__main__":
    asyncio.run(main())
