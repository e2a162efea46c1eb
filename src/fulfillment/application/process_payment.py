"""Application service: Process Payment use case.

Charges a pending order through the payment gateway and feeds the verdict
into the order lifecycle:

- success: the order is confirmed and its reservations become sales;
- decline: the order stays pending with payment status ``failed``.  The
  reservation is kept so the customer can retry with another card.

A decline is returned as a ChargeResult, never raised.

Before the gateway is called the order is claimed by writing payment
status ``processing`` with a compare-and-set, so concurrent requests for
the same order cannot both charge it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fulfillment.application.dto import ChargeResult
from fulfillment.domain.exceptions import DomainException, EntityNotFoundError, ValidationError
from fulfillment.domain.model.order import Order, OrderStatus, PaymentStatus
from fulfillment.domain.model.payment import (
    Payment,
    PaymentMethod,
    PaymentRecordStatus,
    method_info,
)
from fulfillment.domain.ports.audit_log import AuditLog
from fulfillment.domain.ports.notification_dispatcher import (
    NotificationDispatcher,
    NotificationKind,
)
from fulfillment.domain.ports.payment_gateway import GatewayError, GatewayOutcome, PaymentGateway
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.domain.repository.payment_repository import PaymentRepository
from fulfillment.domain.service.order_lifecycle import OrderLifecycle
from fulfillment.domain.service.post_commit import PostCommitHooks

logger = logging.getLogger(__name__)

PAYABLE_STATUSES = (PaymentStatus.PENDING, PaymentStatus.FAILED)
UNCONFIRMED_PAYMENT_ACTION = "payment_succeeded_unconfirmed"


class ProcessPaymentHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        payment_repo: PaymentRepository,
        gateway: PaymentGateway,
        lifecycle: OrderLifecycle,
        audit_log: AuditLog,
        notifier: NotificationDispatcher,
    ) -> None:
        self._order_repo = order_repo
        self._payment_repo = payment_repo
        self._gateway = gateway
        self._lifecycle = lifecycle
        self._audit_log = audit_log
        self._notifier = notifier

    def handle(
        self,
        order_id: int,
        method: PaymentMethod | str,
        details: dict[str, Any],
        user_id: str | None = None,
    ) -> ChargeResult:
        method = coerce_payment_method(method)
        if not method_info(method).enabled:
            raise ValidationError(f"Payment method {method.value} is currently disabled")

        order = self._order_repo.get_by_id(order_id)
        if order is None or (user_id is not None and order.user_id != str(user_id)):
            raise EntityNotFoundError(f"Order #{order_id} not found")
        if order.status != OrderStatus.PENDING or order.payment_status not in PAYABLE_STATUSES:
            raise ValidationError(
                f"Order {order.order_number} cannot be paid "
                f"(status {order.status.value}, payment {order.payment_status.value})"
            )

        amount = order.total_amount
        previous_payment = self._lifecycle.claim_payment(order)
        try:
            outcome = self._gateway.charge(amount.amount, amount.currency, method, details)
        except GatewayError as exc:
            logger.warning("Gateway error charging order %s: %s", order.order_number, exc)
            outcome = GatewayOutcome(
                success=False,
                transaction_id=None,
                reason_code="PROCESSING_ERROR",
                message=str(exc) or "Payment processing failed",
                response={"error": str(exc)},
            )
        except Exception:
            self._lifecycle.set_payment_status(order.id, previous_payment)  # type: ignore[arg-type]
            raise

        payment = Payment(
            id=None,
            order_id=order.id,  # type: ignore[arg-type]
            method=method,
            amount=amount.amount,
            status=PaymentRecordStatus.SUCCESS if outcome.success else PaymentRecordStatus.FAILED,
            transaction_id=outcome.transaction_id,
            gateway_response=dict(outcome.response),
            currency=amount.currency,
            processed_at=datetime.now(timezone.utc),
        )
        self._payment_repo.save(payment)

        hooks = PostCommitHooks()
        hooks.add(
            self._audit_log.record,
            "payments",
            payment.id,
            "INSERT",
            None,
            {
                "order_id": order.id,
                "amount": str(amount.amount),
                "status": payment.status.value,
            },
            user_id,
        )

        if outcome.success:
            logger.info("Payment %s succeeded for order %s", payment.id, order.order_number)
            try:
                self._lifecycle.transition(
                    order.id,  # type: ignore[arg-type]
                    OrderStatus.CONFIRMED,
                    user_id,
                    payment_status=PaymentStatus.PAID,
                )
            except DomainException as exc:
                self._record_unconfirmed(order, payment, exc, user_id, hooks)
                raise
            hooks.add(
                self._notifier.notify,
                order.user_id,
                NotificationKind.PAYMENT_SUCCEEDED,
                "Payment Successful",
                f"Payment for order {order.order_number} has been processed successfully.",
                {"order_id": order.id, "payment_id": payment.id},
            )
        else:
            logger.info(
                "Payment %s failed for order %s: %s",
                payment.id,
                order.order_number,
                outcome.reason_code,
            )
            self._lifecycle.set_payment_status(order.id, PaymentStatus.FAILED)  # type: ignore[arg-type]
            hooks.add(
                self._notifier.notify,
                order.user_id,
                NotificationKind.PAYMENT_FAILED,
                "Payment Failed",
                f"Payment for order {order.order_number} failed. Please try again.",
                {"order_id": order.id, "payment_id": payment.id, "reason_code": outcome.reason_code},
            )

        hooks.run()

        return ChargeResult(
            status="success" if outcome.success else "failed",
            payment_id=payment.id,  # type: ignore[arg-type]
            transaction_id=outcome.transaction_id,
            reason_code=outcome.reason_code,
            message=outcome.message,
            gateway_response=dict(outcome.response),
        )

    def _record_unconfirmed(
        self,
        order: Order,
        payment: Payment,
        error: DomainException,
        user_id: str | None,
        hooks: PostCommitHooks,
    ) -> None:
        """Leave a charged but unconfirmed order marked for an operator.

        The order stays pending with payment status ``paid``, which blocks
        another charge; its reservation is still held.
        """
        logger.error(
            "Order %s was charged (payment %s) but could not be confirmed: %s",
            order.order_number,
            payment.id,
            error,
        )
        self._lifecycle.set_payment_status(order.id, PaymentStatus.PAID)  # type: ignore[arg-type]
        hooks.add(
            self._audit_log.record,
            "orders",
            order.id,
            UNCONFIRMED_PAYMENT_ACTION,
            None,
            {
                "payment_id": payment.id,
                "transaction_id": payment.transaction_id,
                "error_code": error.code,
                "error": str(error),
            },
            user_id,
        )
        hooks.run()


def coerce_payment_method(method: PaymentMethod | str) -> PaymentMethod:
    if isinstance(method, PaymentMethod):
        return method
    try:
        return PaymentMethod(method)
    except ValueError as exc:
        raise ValidationError(f"Unsupported payment method: {method!r}") from exc
