"""NotificationDispatcher adapter that logs notifications instead of
delivering them."""

from __future__ import annotations

import logging
from typing import Any

from fulfillment.domain.ports.notification_dispatcher import (
    NotificationDispatcher,
    NotificationKind,
)

notification_logger = logging.getLogger("fulfillment.notifications")


class LoggingNotificationDispatcher(NotificationDispatcher):

    def notify(
        self,
        target_user_id: str | None,
        kind: NotificationKind,
        title: str,
        body: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        target = f"user {target_user_id}" if target_user_id is not None else "operators"
        notification_logger.info("[%s] to %s: %s - %s", kind.value, target, title, body)
