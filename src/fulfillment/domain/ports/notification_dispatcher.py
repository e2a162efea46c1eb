"""Port: customer and operator notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class NotificationKind(Enum):
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    RESTOCKED = "restocked"
    ORDER_CREATED = "order_created"
    ORDER_STATUS_CHANGED = "order_status_changed"
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_REFUNDED = "payment_refunded"


class NotificationDispatcher(ABC):

    @abstractmethod
    def notify(
        self,
        target_user_id: str | None,
        kind: NotificationKind,
        title: str,
        body: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Send a notification.  ``None`` as target means the operators."""
