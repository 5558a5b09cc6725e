#!/usr/bin/env python3
"""
02_add_pause_resume.py - Submit a download and control it

Demonstrates: add, pause, resume and cancel through DownloadEngine
Note: Requires aria2c running with --enable-rpc on localhost:6800
"""

import asyncio
from pathlib import Path

from ariasync import DownloadEngine, create_app
from ariasync.config import build_settings


async def show(engine: DownloadEngine, job_id: str) -> None:
    await engine.sync()
    record = engine.get_job(job_id)
    if record is None:
        print("  (gone)")
        return
    print(f"  {record.phase:<9} {record.progress * 100:5.1f}%  {record.display_name}")


async def main() -> None:
    settings = build_settings(download_dir=Path("./downloads").resolve())
    engine = create_app(settings).create_engine()

    await engine.open()
    try:
        record = await engine.add("https://proof.ovh.net/files/10Mb.dat")
        if record is None:
            print(f"Add failed: {engine.last_error}")
            return
        print(f"Added {record.display_name} as {record.id}")
        await show(engine, record.id)

        await asyncio.sleep(1)
        await engine.pause(record.id)
        print("Paused")
        await show(engine, record.id)

        await engine.resume(record.id)
        print("Resumed")
        await asyncio.sleep(2)
        await show(engine, record.id)

        await engine.cancel(record.id)
        print("Cancelled")
        await show(engine, record.id)
    finally:
        await engine.close()


if __name__ == "__main__":
    asyncio.run(main())
