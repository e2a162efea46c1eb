"""Abstract repository for Payment records."""

from __future__ import annotations

from abc import ABC, abstractmethod

from fulfillment.domain.model.payment import Payment


class PaymentRepository(ABC):

    @abstractmethod
    def get_by_id(self, payment_id: int) -> Payment | None:
        """Return a payment by its ID, or None if not found."""

    @abstractmethod
    def list_for_order(self, order_id: int) -> list[Payment]:
        """Return every payment row attached to an order, oldest first."""

    @abstractmethod
    def list_all(self) -> list[Payment]:
        """Return every payment row, oldest first."""

    @abstractmethod
    def save(self, payment: Payment) -> None:
        """Persist a new payment (assigning its ID) or an updated one."""
