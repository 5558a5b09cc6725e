"""Translate daemon status entries into JobSnapshot values."""

import posixpath
import typing as t

from ..domain.jobs import JobSnapshot, name_from_locator


def _to_int(value: t.Any) -> int | None:
    """Parse the daemon's decimal strings; anything unparsable is None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed >= 0 else None


def _first_file(entry: t.Mapping[str, t.Any]) -> t.Mapping[str, t.Any]:
    files = entry.get("files")
    if isinstance(files, list) and files and isinstance(files[0], t.Mapping):
        return files[0]
    return {}


def _locator(entry: t.Mapping[str, t.Any], first_file: t.Mapping[str, t.Any]) -> str | None:
    uris = first_file.get("uris")
    if isinstance(uris, list):
        for uri in uris:
            if isinstance(uri, t.Mapping) and uri.get("uri"):
                return str(uri["uri"])

    info_hash = entry.get("infoHash")
    if info_hash:
        return f"magnet:?xt=urn:btih:{info_hash}"
    return None


def _display_name(first_file: t.Mapping[str, t.Any], locator: str | None) -> str | None:
    path = first_file.get("path")
    if isinstance(path, str) and path:
        name = posixpath.basename(path.rstrip("/"))
        if name:
            return name
    if locator and not locator.startswith("magnet:"):
        return name_from_locator(locator)
    return None


def parse_snapshot(entry: t.Mapping[str, t.Any]) -> JobSnapshot | None:
    """Build a snapshot from one tellActive/tellWaiting/tellStopped entry.

    Entries without a handle are unusable and yield None.
    """
    handle = entry.get("gid")
    if not isinstance(handle, str) or not handle:
        return None

    first_file = _first_file(entry)
    locator = _locator(entry, first_file)
    total_size = _to_int(entry.get("totalLength"))

    return JobSnapshot(
        handle=handle,
        locator=locator,
        display_name=_display_name(first_file, locator),
        total_size=total_size or None,  # 0 means unknown
        transferred_size=_to_int(entry.get("completedLength")) or 0,
        download_rate=_to_int(entry.get("downloadSpeed")),
        upload_rate=_to_int(entry.get("uploadSpeed")),
        status=str(entry.get("status") or ""),
    )


def parse_snapshots(entries: t.Any) -> list[JobSnapshot]:
    """Parse a list of status entries, skipping unusable ones.

    Raises:
        TypeError: If entries is not a list of mappings.
    """
    if not isinstance(entries, list):
        raise TypeError(f"Expected a list of status entries, got {type(entries).__name__}")

    snapshots = []
    for entry in entries:
        if not isinstance(entry, t.Mapping):
            raise TypeError(f"Expected a status entry, got {type(entry).__name__}")
        snapshot = parse_snapshot(entry)
        if snapshot is not None:
            snapshots.append(snapshot)
    return snapshots
