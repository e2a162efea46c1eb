"""Payment records.

A payment row is written once per gateway attempt.  Charges carry a
positive amount, refunds a negative one.  Rows are never edited afterwards,
except that a fully refunded charge has its status corrected to REFUNDED.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.value_objects import Money


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"


class PaymentRecordStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass
class Payment:
    id: int | None
    order_id: int
    method: PaymentMethod
    amount: Decimal  # signed: negative for refunds
    status: PaymentRecordStatus
    transaction_id: str | None = None
    gateway_response: dict[str, Any] = field(default_factory=dict)
    currency: str = "USD"
    refunded_payment_id: int | None = None  # set on refund rows
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    processed_at: datetime | None = None

    @property
    def is_refund(self) -> bool:
        return self.amount < 0

    @property
    def is_refundable_charge(self) -> bool:
        return not self.is_refund and self.status == PaymentRecordStatus.SUCCESS

    def mark_fully_refunded(self) -> None:
        self.status = PaymentRecordStatus.REFUNDED


@dataclass(frozen=True)
class PaymentMethodInfo:
    method: PaymentMethod
    name: str
    description: str
    enabled: bool
    percentage_fee: Decimal
    fixed_fee: Decimal


SUPPORTED_PAYMENT_METHODS = (
    PaymentMethodInfo(
        PaymentMethod.CREDIT_CARD, "Credit Card", "Visa, MasterCard, American Express",
        True, Decimal("0.029"), Decimal("0.30"),
    ),
    PaymentMethodInfo(
        PaymentMethod.DEBIT_CARD, "Debit Card", "Bank debit card",
        True, Decimal("0.025"), Decimal("0.25"),
    ),
    PaymentMethodInfo(
        PaymentMethod.PAYPAL, "PayPal", "Pay with your PayPal account",
        True, Decimal("0.034"), Decimal("0.30"),
    ),
    PaymentMethodInfo(
        PaymentMethod.BANK_TRANSFER, "Bank Transfer", "Direct bank transfer (ACH)",
        False, Decimal("0.008"), Decimal("0.25"),
    ),
)


def method_info(method: PaymentMethod) -> PaymentMethodInfo:
    for info in SUPPORTED_PAYMENT_METHODS:
        if info.method == method:
            return info
    raise ValidationError(f"Unsupported payment method: {method.value}")


@dataclass(frozen=True)
class ProcessingFees:
    gross_amount: Money
    percentage_fee: Money
    fixed_fee: Money

    @property
    def total_fee(self) -> Money:
        return self.percentage_fee + self.fixed_fee

    @property
    def net_amount(self) -> Decimal:
        return self.gross_amount.amount - self.total_fee.amount


def processing_fees(amount: Money, method: PaymentMethod) -> ProcessingFees:
    """Fees the gateway keeps for a charge of ``amount`` paid with ``method``."""
    info = method_info(method)
    return ProcessingFees(
        gross_amount=amount,
        percentage_fee=amount.percentage(info.percentage_fee),
        fixed_fee=Money(info.fixed_fee, amount.currency),
    )
