"""Record store keeping one JSON document per job in a directory."""

import re
import typing as t
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os
from pydantic import ValidationError

from ..domain.exceptions import PersistenceError
from ..domain.jobs import JobRecord
from ..infrastructure.logging import get_logger
from .base import BaseRecordStore

if t.TYPE_CHECKING:
    import loguru

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")
_SUFFIX = ".json"


class JsonRecordStore(BaseRecordStore):
    """Stores each JobRecord as <directory>/<id>.json.

    Writes go to a temporary file first and are moved into place, so a crash
    mid-write never leaves a truncated record behind. All file access goes
    through aiofiles to keep the event loop free.

    Documents that cannot be read or validated are logged and skipped by
    list_all(); they are left on disk for inspection.
    """

    def __init__(
        self,
        directory: Path,
        logger: "loguru.Logger" = get_logger(__name__),
    ) -> None:
        self._directory = directory
        self._logger = logger
        self._ready = False

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, job_id: str) -> Path:
        if not _SAFE_ID.match(job_id):
            raise PersistenceError(f"Unsafe job id for file storage: {job_id!r}")
        return self._directory / f"{job_id}{_SUFFIX}"

    async def _ensure_directory(self) -> None:
        if self._ready:
            return
        try:
            await aiofiles.os.makedirs(self._directory, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(
                f"Cannot create store directory {self._directory}: {exc}"
            ) from exc
        self._ready = True

    async def put(self, record: JobRecord) -> None:
        path = self._path_for(record.id)
        await self._ensure_directory()
        temp_path = self._directory / f".{record.id}.{uuid.uuid4().hex}.tmp"
        try:
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(record.model_dump_json(indent=2))
            await aiofiles.os.replace(temp_path, path)
        except OSError as exc:
            await self._discard(temp_path)
            raise PersistenceError(f"Cannot write record {record.id}: {exc}") from exc

    async def delete(self, job_id: str) -> None:
        path = self._path_for(job_id)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(f"Cannot delete record {job_id}: {exc}") from exc

    async def list_all(self) -> list[JobRecord]:
        await self._ensure_directory()
        try:
            names = await aiofiles.os.listdir(self._directory)
        except OSError as exc:
            raise PersistenceError(
                f"Cannot list store directory {self._directory}: {exc}"
            ) from exc

        records = []
        for name in sorted(names):
            if not name.endswith(_SUFFIX) or name.startswith("."):
                continue
            record = await self._read(self._directory / name)
            if record is not None:
                records.append(record)
        return records

    async def _read(self, path: Path) -> JobRecord | None:
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
            return JobRecord.model_validate_json(content)
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            self._logger.warning(f"Skipping unreadable record {path.name}: {exc}")
            return None

    async def _discard(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            self._logger.warning(f"Failed to clean up temporary file {path}: {exc}")
