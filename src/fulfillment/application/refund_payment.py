"""Application service: Refund Payment use case (administrators).

Refunds all or part of a successful charge.  Every attempt is recorded as
a payment row with a negative amount.  Once the refunds of a charge add up
to the charged amount, the charge is marked refunded and the order is
cancelled with payment status ``refunded``.

Stock that was already sold when the order was confirmed is NOT restocked
by a refund; the lifecycle leaves an audit note instead.

Like a charge, a refund claims the order (payment status ``processing``)
before the gateway is called, so two refunds of the same charge never
run at the same time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from fulfillment.application.dto import RefundResult
from fulfillment.domain.exceptions import EntityNotFoundError, ValidationError
from fulfillment.domain.model.order import Order, OrderStatus, PaymentStatus
from fulfillment.domain.model.payment import Payment, PaymentRecordStatus
from fulfillment.domain.model.value_objects import Money
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

DEFAULT_REFUND_REASON = "Admin refund"


class RefundPaymentHandler:

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
        payment_id: int,
        amount: str | Decimal | None = None,
        reason: str | None = None,
        actor_id: str | None = None,
    ) -> RefundResult:
        charge = self._payment_repo.get_by_id(payment_id)
        if charge is None or not charge.is_refundable_charge:
            raise EntityNotFoundError(f"Payment #{payment_id} not found or cannot be refunded")

        order = self._order_repo.get_by_id(charge.order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{charge.order_id} not found")

        requested = None if amount is None else Money.of(amount).amount
        if requested is not None and requested <= 0:
            raise ValidationError("Refund amount must be greater than zero")
        reason = reason or DEFAULT_REFUND_REASON

        previous_payment = self._lifecycle.claim_payment(order)
        try:
            # The balance is read only after the claim, so it already
            # includes any refund that finished before this one.
            remaining = charge.amount - self._refunded_so_far(charge)
            if remaining <= 0:
                raise ValidationError(f"Payment #{payment_id} has already been fully refunded")
            refund_amount = remaining if requested is None else requested
            if refund_amount > remaining:
                raise ValidationError(
                    f"Refund amount {refund_amount:.2f} cannot exceed the refundable "
                    f"balance {remaining:.2f} of payment #{payment_id}"
                )
            outcome = self._call_gateway(charge, refund_amount, reason)
            refund = self._record_refund(charge, refund_amount, outcome)
        except Exception:
            self._lifecycle.set_payment_status(order.id, previous_payment)  # type: ignore[arg-type]
            raise

        hooks = PostCommitHooks()
        hooks.add(
            self._audit_log.record,
            "payments",
            refund.id,
            "INSERT",
            None,
            {
                "original_payment_id": charge.id,
                "refund_amount": str(refund_amount),
                "status": refund.status.value,
                "reason": reason,
            },
            actor_id,
        )

        if not outcome.success:
            logger.info("Refund of payment %s failed: %s", payment_id, outcome.reason_code)
            self._lifecycle.set_payment_status(order.id, previous_payment)  # type: ignore[arg-type]
            hooks.run()
            return RefundResult(
                status="failed",
                refund_payment_id=refund.id,  # type: ignore[arg-type]
                refund_transaction_id=outcome.transaction_id,
                amount=f"{refund_amount:.2f}",
                reason_code=outcome.reason_code,
                message=outcome.message,
            )

        full_refund = refund_amount == remaining
        if full_refund:
            charge.mark_fully_refunded()
            self._payment_repo.save(charge)
            self._close_order(order, reason, actor_id)
        else:
            self._lifecycle.set_payment_status(order.id, previous_payment)  # type: ignore[arg-type]

        logger.info(
            "Refunded %.2f of payment %s for order %s%s",
            refund_amount,
            payment_id,
            order.order_number,
            " (full)" if full_refund else "",
        )
        hooks.add(
            self._notifier.notify,
            order.user_id,
            NotificationKind.PAYMENT_REFUNDED,
            "Payment Refunded",
            f"A refund of ${refund_amount:.2f} has been processed for order {order.order_number}.",
            {"order_id": order.id, "payment_id": charge.id, "refund_id": refund.id},
        )
        hooks.run()

        return RefundResult(
            status="success",
            refund_payment_id=refund.id,  # type: ignore[arg-type]
            refund_transaction_id=outcome.transaction_id,
            amount=f"{refund_amount:.2f}",
            full_refund=full_refund,
            message=outcome.message,
        )

    # --- Internal helpers -----------------------------------------------------

    def _call_gateway(self, charge: Payment, refund_amount: Decimal, reason: str) -> GatewayOutcome:
        try:
            return self._gateway.refund(charge.transaction_id or "", refund_amount, reason)
        except GatewayError as exc:
            logger.warning("Gateway error refunding payment %s: %s", charge.id, exc)
            return GatewayOutcome(
                success=False,
                transaction_id=None,
                reason_code="PROCESSING_ERROR",
                message=str(exc) or "Refund processing failed",
                response={"error": str(exc)},
            )

    def _record_refund(
        self,
        charge: Payment,
        refund_amount: Decimal,
        outcome: GatewayOutcome,
    ) -> Payment:
        refund = Payment(
            id=None,
            order_id=charge.order_id,
            method=charge.method,
            amount=-refund_amount,
            status=PaymentRecordStatus.REFUNDED if outcome.success else PaymentRecordStatus.FAILED,
            transaction_id=outcome.transaction_id,
            gateway_response=dict(outcome.response),
            currency=charge.currency,
            refunded_payment_id=charge.id,
            processed_at=datetime.now(timezone.utc),
        )
        self._payment_repo.save(refund)
        return refund

    def _refunded_so_far(self, charge: Payment) -> Decimal:
        return sum(
            (
                -p.amount
                for p in self._payment_repo.list_for_order(charge.order_id)
                if p.refunded_payment_id == charge.id
                and p.status == PaymentRecordStatus.REFUNDED
            ),
            Decimal("0"),
        )

    def _close_order(self, order: Order, reason: str, actor_id: str | None) -> None:
        if order.is_terminal:
            # Delivered orders keep their status; cancelled ones already are.
            self._lifecycle.set_payment_status(order.id, PaymentStatus.REFUNDED)  # type: ignore[arg-type]
            return
        self._lifecycle.transition(
            order.id,  # type: ignore[arg-type]
            OrderStatus.CANCELLED,
            actor_id,
            admin=True,
            notes=f"Refunded: {reason}",
            payment_status=PaymentStatus.REFUNDED,
        )
