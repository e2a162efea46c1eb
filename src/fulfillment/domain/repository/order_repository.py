"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from fulfillment.domain.model.order import Order, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Order | None:
        """Return an order by its public order number, or None."""

    @abstractmethod
    def list_by_status(self, status: OrderStatus) -> list[Order]:
        """Return every order currently in ``status``."""

    @abstractmethod
    def list_all(self) -> list[Order]:
        """Return every order, oldest first."""

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a new order, assigning ``order.id`` and version 1.

        Raises ValidationError if another order already uses the same
        order number.
        """

    @abstractmethod
    def save(self, order: Order, expected_version: int) -> None:
        """Compare-and-set write of an existing order.

        Writes only if the stored version still equals ``expected_version``,
        then bumps ``order.version``.  Raises ConcurrencyConflictError when
        another writer got there first, and EntityNotFoundError when the
        order does not exist.
        """
