"""Simulated payment gateway for local use and demos.

Outcomes are driven by the test data in the payment details:

=====================  ======================
card number ends with  outcome
=====================  ======================
``0000``               declined
``0001``               insufficient funds
``0002``               expired card
``0003``               invalid card
``0004``               gateway error (raised)
=====================  ======================

A PayPal email containing ``fail`` is declined.  Everything else succeeds.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from fulfillment.domain.model.payment import PaymentMethod
from fulfillment.domain.ports.payment_gateway import GatewayError, GatewayOutcome, PaymentGateway

logger = logging.getLogger(__name__)

GATEWAY_NAME = "simulated_gateway"

# last four digits -> (reason code, customer message, gateway message)
_CARD_DECLINES = {
    "0000": ("DECLINED", "Payment was declined by the bank", "Transaction declined by issuing bank"),
    "0001": ("INSUFFICIENT_FUNDS", "Insufficient funds", "Insufficient funds in account"),
    "0002": ("EXPIRED_CARD", "Card has expired", "Card has expired"),
    "0003": ("INVALID_CARD", "Invalid card details", "Invalid card number or details"),
}
_CARD_PROCESSING_ERROR = "0004"


def generate_transaction_id() -> str:
    return "txn_" + secrets.token_hex(16)


def validate_payment_details(method: PaymentMethod, details: dict[str, Any]) -> list[str]:
    """Return the list of problems with ``details`` for ``method`` (empty if valid)."""
    errors: list[str] = []
    if method in (PaymentMethod.CREDIT_CARD, PaymentMethod.DEBIT_CARD):
        card_number = str(details.get("card_number") or "")
        if len(card_number) < 13:
            errors.append("Invalid card number")
        if not details.get("expiry_month") or not details.get("expiry_year"):
            errors.append("Invalid expiry date")
        if len(str(details.get("cvv") or "")) < 3:
            errors.append("Invalid CVV")
        if not details.get("cardholder_name"):
            errors.append("Cardholder name is required")
    elif method == PaymentMethod.PAYPAL:
        if not details.get("email"):
            errors.append("PayPal email is required")
    elif method == PaymentMethod.BANK_TRANSFER:
        if not details.get("account_number") or not details.get("routing_number"):
            errors.append("Bank account details are required")
    else:
        errors.append("Unsupported payment method")
    return errors


class SimulatedPaymentGateway(PaymentGateway):

    def charge(
        self,
        amount: Decimal,
        currency: str,
        method: PaymentMethod,
        details: dict[str, Any],
    ) -> GatewayOutcome:
        timestamp = datetime.now(timezone.utc).isoformat()
        errors = validate_payment_details(method, details)
        if errors:
            message = "Payment validation failed: " + ", ".join(errors)
            return GatewayOutcome(
                success=False,
                transaction_id=None,
                reason_code="INVALID_DETAILS",
                message=message,
                response={
                    "gateway": GATEWAY_NAME,
                    "timestamp": timestamp,
                    "error_code": "INVALID_DETAILS",
                    "error_message": message,
                },
            )

        card_number = str(details.get("card_number") or "")
        last_four = card_number[-4:] if card_number else None

        if last_four == _CARD_PROCESSING_ERROR:
            raise GatewayError("Payment processing error")

        transaction_id = generate_transaction_id()
        decline = _CARD_DECLINES.get(last_four) if last_four else None
        if decline is None and "fail" in str(details.get("email") or ""):
            decline = _CARD_DECLINES["0000"]

        if decline is not None:
            reason_code, message, gateway_message = decline
            logger.debug("Simulated decline %s for %s %s", reason_code, amount, currency)
            return GatewayOutcome(
                success=False,
                transaction_id=transaction_id,
                reason_code=reason_code,
                message=message,
                response={
                    "gateway": GATEWAY_NAME,
                    "timestamp": timestamp,
                    "error_code": reason_code,
                    "error_message": gateway_message,
                },
            )

        return GatewayOutcome(
            success=True,
            transaction_id=transaction_id,
            message="Payment processed successfully",
            response={
                "gateway": GATEWAY_NAME,
                "timestamp": timestamp,
                "amount": str(amount),
                "currency": currency,
                "payment_method": method.value,
                "auth_code": secrets.token_hex(8).upper(),
                "last4": last_four,
            },
        )

    def refund(
        self,
        original_transaction_id: str,
        amount: Decimal,
        reason: str,
    ) -> GatewayOutcome:
        return GatewayOutcome(
            success=True,
            transaction_id=generate_transaction_id(),
            message="Refund processed successfully",
            response={
                "gateway": GATEWAY_NAME,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "original_transaction_id": original_transaction_id,
                "refund_amount": str(amount),
                "reason": reason,
                "refund_id": secrets.token_hex(8).upper(),
            },
        )
