"""Application service: Payment Statistics use case (administrators).

Revenue counts successful charges only.  A charge that was later refunded
in full is marked ``refunded`` and drops out of revenue; the refund rows
themselves add up to ``total_refunds``.
"""

from __future__ import annotations

from fulfillment.application.dto import PaymentStatsDTO
from fulfillment.domain.model.payment import PaymentRecordStatus
from fulfillment.domain.model.value_objects import Money
from fulfillment.domain.repository.payment_repository import PaymentRepository


class PaymentStatsHandler:

    def __init__(self, payment_repo: PaymentRepository, currency: str = "USD") -> None:
        self._payment_repo = payment_repo
        self._currency = currency

    def handle(self) -> PaymentStatsDTO:
        payments = self._payment_repo.list_all()

        charges = [
            Money(p.amount, p.currency)
            for p in payments
            if p.status == PaymentRecordStatus.SUCCESS and not p.is_refund
        ]
        refunds = [
            Money(-p.amount, p.currency)
            for p in payments
            if p.status == PaymentRecordStatus.REFUNDED and p.is_refund
        ]
        failed = sum(1 for p in payments if p.status == PaymentRecordStatus.FAILED)

        revenue = Money.total(charges, self._currency)
        average = revenue.divided_by(len(charges)) if charges else Money.zero(self._currency)

        return PaymentStatsDTO(
            successful_payments=len(charges),
            failed_payments=failed,
            total_revenue=str(revenue),
            total_refunds=str(Money.total(refunds, self._currency)),
            average_payment=str(average),
        )
