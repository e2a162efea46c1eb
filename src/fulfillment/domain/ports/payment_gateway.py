"""Port: external payment gateway.

The core only looks at the verdict of a gateway call: whether it
succeeded, the transaction id, and a machine-readable reason code.
The ``response`` payload is stored verbatim and never interpreted.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from fulfillment.domain.model.payment import PaymentMethod


class GatewayError(Exception):
    """The gateway could not be reached or failed to produce a verdict."""


@dataclass(frozen=True)
class GatewayOutcome:
    success: bool
    transaction_id: str | None
    reason_code: str | None = None
    message: str = ""
    response: dict[str, Any] = field(default_factory=dict)


class PaymentGateway(ABC):

    @abstractmethod
    def charge(
        self,
        amount: Decimal,
        currency: str,
        method: PaymentMethod,
        details: dict[str, Any],
    ) -> GatewayOutcome:
        """Attempt a charge.  Declines are outcomes; GatewayError is raised
        only when no verdict could be obtained."""

    @abstractmethod
    def refund(
        self,
        original_transaction_id: str,
        amount: Decimal,
        reason: str,
    ) -> GatewayOutcome:
        """Attempt a (partial) refund of an earlier charge."""
