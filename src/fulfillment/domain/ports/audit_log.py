"""Port: audit trail of state changes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class AuditEntry:
    entity_type: str
    entity_id: str
    action: str
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    actor_id: str | None
    created_at: datetime


class AuditLog(ABC):

    @abstractmethod
    def record(
        self,
        entity_type: str,
        entity_id: str | int,
        action: str,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        actor_id: str | None = None,
    ) -> None:
        """Append one audit entry.

        Callers invoke this after their own write has committed; a failure
        here is logged by the caller and never undoes the change.
        """

    @abstractmethod
    def history(
        self,
        entity_type: str,
        entity_id: str | int | None = None,
        limit: int = 100,
    ) -> list[AuditEntry]:
        """Return up to ``limit`` entries for ``entity_type``, newest first.

        ``entity_id`` narrows the result to one entity.
        """
