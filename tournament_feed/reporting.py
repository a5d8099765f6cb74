"""Snapshot and JSON output helpers."""
from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO

from .models import TournamentRecord


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _fsync_dir(path: str) -> None:
    try:
        dir_fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


@contextmanager
def atomic_writer(
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
    newline: Optional[str] = None,
) -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding, newline=newline) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        _fsync_dir(dir_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_json_object(path: str, payload: Dict[str, Any]) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def build_snapshot(records: Iterable[TournamentRecord], last_update: Optional[str] = None) -> Dict[str, Any]:
    return {
        "lastUpdate": last_update or utc_now_iso(),
        "tournaments": [r.to_dict() for r in records],
    }


def write_snapshot(
    path: str,
    records: Iterable[TournamentRecord],
    last_update: Optional[str] = None,
) -> Dict[str, Any]:
    """Replace the snapshot file in one atomic step and return what was written."""
    payload = build_snapshot(records, last_update)
    dir_path = os.path.dirname(path)
    if dir_path:
        ensure_dir(dir_path)
    write_json_object(path, payload)
    return payload


def read_snapshot(path: str) -> Optional[Dict[str, Any]]:
    """Return the parsed snapshot, or None when no file exists."""
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Snapshot {path} is not a JSON object")
    return data


def snapshot_records(payload: Dict[str, Any]) -> List[TournamentRecord]:
    rows = payload.get("tournaments") or []
    return [TournamentRecord.from_dict(row) for row in rows if isinstance(row, dict)]
