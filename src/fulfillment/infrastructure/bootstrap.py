"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from fulfillment.domain.service.availability_checker import AvailabilityChecker
from fulfillment.domain.service.inventory_ledger import InventoryLedger
from fulfillment.domain.service.inventory_reports import InventoryReports
from fulfillment.domain.service.order_lifecycle import OrderLifecycle
from fulfillment.infrastructure.audit.json_audit_log import JsonAuditLog
from fulfillment.infrastructure.config import get_settings
from fulfillment.infrastructure.gateway.simulated_gateway import SimulatedPaymentGateway
from fulfillment.infrastructure.notifications.logging_notification_dispatcher import (
    LoggingNotificationDispatcher,
)
from fulfillment.infrastructure.persistence.json_inventory_repository import (
    JsonInventoryRepository,
)
from fulfillment.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from fulfillment.infrastructure.persistence.json_payment_repository import (
    JsonPaymentRepository,
)
from fulfillment.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)


# --- Repositories -------------------------------------------------------------

def product_repository() -> JsonProductRepository:
    return JsonProductRepository(get_settings().data_dir / "products.json")


def inventory_repository() -> JsonInventoryRepository:
    return JsonInventoryRepository(get_settings().data_dir / "inventory.json")


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(get_settings().data_dir / "orders.json")


def payment_repository() -> JsonPaymentRepository:
    return JsonPaymentRepository(get_settings().data_dir / "payments.json")


# --- Adapters -----------------------------------------------------------------

def audit_log() -> JsonAuditLog:
    return JsonAuditLog(get_settings().data_dir / "audit.json")


def notifier() -> LoggingNotificationDispatcher:
    return LoggingNotificationDispatcher()


def payment_gateway() -> SimulatedPaymentGateway:
    return SimulatedPaymentGateway()


# --- Domain services ----------------------------------------------------------

def inventory_ledger() -> InventoryLedger:
    return InventoryLedger(
        inventory_repo=inventory_repository(),
        audit_log=audit_log(),
        notifier=notifier(),
        max_attempts=get_settings().ledger_max_attempts,
    )


def order_lifecycle() -> OrderLifecycle:
    return OrderLifecycle(
        order_repo=order_repository(),
        ledger=inventory_ledger(),
        audit_log=audit_log(),
        notifier=notifier(),
        max_attempts=get_settings().ledger_max_attempts,
    )


def availability_checker() -> AvailabilityChecker:
    return AvailabilityChecker(
        inventory_repo=inventory_repository(),
        product_repo=product_repository(),
    )


def inventory_reports() -> InventoryReports:
    return InventoryReports(
        inventory_repo=inventory_repository(),
        product_repo=product_repository(),
        currency=get_settings().currency,
    )
