"""AuditLog adapter that appends entries to a JSON file.

Every entry is also written to the ``fulfillment.audit`` logger so the
trail shows up next to the application log.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fulfillment.domain.ports.audit_log import AuditEntry, AuditLog
from fulfillment.infrastructure.persistence.json_files import (
    ensure_file,
    load_raw,
    lock_for,
    persist_raw,
)

audit_logger = logging.getLogger("fulfillment.audit")


class JsonAuditLog(AuditLog):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = lock_for(file_path)
        ensure_file(file_path)

    def record(
        self,
        entity_type: str,
        entity_id: str | int,
        action: str,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        actor_id: str | None = None,
    ) -> None:
        audit_logger.info(
            "%s %s#%s by %s: %s -> %s",
            action,
            entity_type,
            entity_id,
            actor_id or "system",
            json.dumps(old_values, default=str),
            json.dumps(new_values, default=str),
        )
        raw = {
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "action": action,
            # round-trip through json so Decimals and enums are stored as text
            "old_values": json.loads(json.dumps(old_values, default=str)),
            "new_values": json.loads(json.dumps(new_values, default=str)),
            "actor_id": actor_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        with self._lock:
            entries = load_raw(self._file_path)
            entries.append(raw)
            persist_raw(self._file_path, entries)

    def history(
        self,
        entity_type: str,
        entity_id: str | int | None = None,
        limit: int = 100,
    ) -> list[AuditEntry]:
        matching = [
            raw
            for raw in load_raw(self._file_path)
            if raw["entity_type"] == entity_type
            and (entity_id is None or raw["entity_id"] == str(entity_id))
        ]
        return [self._to_entry(raw) for raw in reversed(matching)][:limit]

    @staticmethod
    def _to_entry(raw: dict) -> AuditEntry:
        return AuditEntry(
            entity_type=raw["entity_type"],
            entity_id=raw["entity_id"],
            action=raw["action"],
            old_values=raw.get("old_values"),
            new_values=raw.get("new_values"),
            actor_id=raw.get("actor_id"),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
