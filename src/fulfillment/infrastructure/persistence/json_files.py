"""Helpers shared by the JSON-file repositories.

Each repository keeps one JSON array per aggregate.  Writes go through a
temporary file and ``os.replace`` so a crash never leaves half a file, and
every read-modify-write of one file holds a lock for that path.  The lock is
process-local: the JSON store is meant for a single process.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path

_locks: dict[Path, threading.RLock] = {}
_locks_guard = threading.Lock()


def lock_for(file_path: Path) -> threading.RLock:
    key = file_path.resolve()
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.RLock()
        return lock


def ensure_file(file_path: Path) -> None:
    if not file_path.exists():
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text("[]", encoding="utf-8")


def load_raw(file_path: Path) -> list[dict]:
    return json.loads(file_path.read_text(encoding="utf-8"))


def persist_raw(file_path: Path, records: list[dict]) -> None:
    tmp_path = file_path.with_name(file_path.name + ".tmp")
    tmp_path.write_text(json.dumps(records, indent=2) + "\n", encoding="utf-8")
    os.replace(tmp_path, file_path)
