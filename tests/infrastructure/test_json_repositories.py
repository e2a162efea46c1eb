"""Tests for the JSON-file repositories, against a temporary directory."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from fulfillment.domain.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    ValidationError,
)
from fulfillment.domain.model.inventory import InventoryRecord
from fulfillment.domain.model.order import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    generate_order_number,
)
from fulfillment.domain.model.payment import Payment, PaymentMethod, PaymentRecordStatus
from fulfillment.domain.model.product import Product
from fulfillment.domain.model.value_objects import Money, Quantity
from fulfillment.infrastructure.persistence.json_inventory_repository import (
    JsonInventoryRepository,
)
from fulfillment.infrastructure.persistence.json_order_repository import JsonOrderRepository
from fulfillment.infrastructure.persistence.json_payment_repository import (
    JsonPaymentRepository,
)
from fulfillment.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)

ADDRESS = {"street": "1 Main St", "city": "Springfield"}


class TestJsonProductRepository:

    def test_round_trip(self, tmp_path):
        repo = JsonProductRepository(tmp_path / "products.json")
        repo.save(Product(
            id="1",
            name="Widget",
            price=Money.of("15.00"),
            cost_price=Money.of("9.50"),
            sku="W-1",
            is_active=False,
        ))

        loaded = JsonProductRepository(tmp_path / "products.json").get_by_id("1")
        assert loaded.price == Money.of("15.00")
        assert loaded.cost_price == Money.of("9.50")
        assert loaded.sku == "W-1"
        assert not loaded.is_active

    def test_lookups(self, tmp_path):
        repo = JsonProductRepository(tmp_path / "products.json")
        repo.save(Product(id="1", name="Widget", price=Money.of("1.00"), sku="W-1"))
        assert repo.get_by_name("widget").id == "1"
        assert repo.get_by_sku("W-1").id == "1"
        assert repo.get_by_sku("nope") is None
        assert len(repo.list_all()) == 1

    def test_creates_missing_file(self, tmp_path):
        path = tmp_path / "nested" / "products.json"
        JsonProductRepository(path)
        assert path.read_text(encoding="utf-8") == "[]"


class TestJsonInventoryRepository:

    def _repo(self, tmp_path) -> JsonInventoryRepository:
        repo = JsonInventoryRepository(tmp_path / "inventory.json")
        repo.add(InventoryRecord(product_id="1", product_name="Widget", quantity=10, reorder_level=2))
        return repo

    def test_add_and_read_back(self, tmp_path):
        record = self._repo(tmp_path).get_by_product_id("1")
        assert record.quantity == 10
        assert record.reorder_level == 2
        assert record.version == 1

    def test_add_twice_rejected(self, tmp_path):
        repo = self._repo(tmp_path)
        with pytest.raises(ValidationError):
            repo.add(InventoryRecord(product_id="1", product_name="Widget", quantity=1))

    def test_compare_and_set(self, tmp_path):
        repo = self._repo(tmp_path)
        first = repo.get_by_product_id("1")
        second = repo.get_by_product_id("1")

        first.reserved_quantity = 3
        repo.save(first, expected_version=first.version)
        assert first.version == 2

        second.reserved_quantity = 4
        with pytest.raises(ConcurrencyConflictError):
            repo.save(second, expected_version=second.version)
        assert repo.get_by_product_id("1").reserved_quantity == 3

    def test_save_of_unknown_record(self, tmp_path):
        repo = self._repo(tmp_path)
        ghost = InventoryRecord(product_id="9", product_name="Ghost", quantity=1)
        with pytest.raises(EntityNotFoundError):
            repo.save(ghost, expected_version=0)

    def test_returned_records_are_detached(self, tmp_path):
        repo = self._repo(tmp_path)
        repo.get_by_product_id("1").quantity = 0
        assert repo.get_by_product_id("1").quantity == 10


class TestJsonOrderRepository:

    def _order(self, number: str | None = None) -> Order:
        return Order.create(
            user_id="u1",
            order_number=number or generate_order_number(),
            items=[OrderItem("1", "Widget", Quantity(2), Money.of("15.00"))],
            shipping_address=ADDRESS,
            billing_address=ADDRESS,
            payment_method="credit_card",
            notes="ring twice",
        )

    def test_round_trip(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        order = self._order()
        order.created_at = datetime.now(timezone.utc) - timedelta(hours=3)
        repo.add(order)
        assert order.id == 1
        assert order.version == 1

        loaded = repo.get_by_id(1)
        assert loaded.order_number == order.order_number
        assert loaded.total_amount == Money.of("30.00")
        assert loaded.shipping_address == ADDRESS
        assert loaded.notes == "ring twice"
        assert loaded.created_at == order.created_at
        assert loaded.payment_status == PaymentStatus.PENDING
        assert loaded.version == 1

    def test_update_in_place(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        order = self._order()
        repo.add(order)
        order.transition_to(OrderStatus.CONFIRMED)
        order.mark_payment(PaymentStatus.PAID)
        repo.save(order, expected_version=1)

        assert order.version == 2
        loaded = repo.get_by_order_number(order.order_number)
        assert loaded.status == OrderStatus.CONFIRMED
        assert loaded.payment_status == PaymentStatus.PAID
        assert [o.id for o in repo.list_by_status(OrderStatus.CONFIRMED)] == [1]
        assert repo.list_by_status(OrderStatus.PENDING) == []

    def test_stale_save_is_rejected(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        repo.add(self._order())
        first = repo.get_by_id(1)
        second = repo.get_by_id(1)

        first.transition_to(OrderStatus.CANCELLED)
        repo.save(first, expected_version=first.version)
        second.transition_to(OrderStatus.CONFIRMED)
        with pytest.raises(ConcurrencyConflictError):
            repo.save(second, expected_version=second.version)

        assert repo.get_by_id(1).status == OrderStatus.CANCELLED
        assert second.version == 1

    def test_save_of_unknown_order(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        order = self._order()
        order.id = 7
        with pytest.raises(EntityNotFoundError):
            repo.save(order, expected_version=0)

    def test_list_all_keeps_insertion_order(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        repo.add(self._order("ORD-1"))
        repo.add(self._order("ORD-2"))
        assert [o.order_number for o in repo.list_all()] == ["ORD-1", "ORD-2"]

    def test_duplicate_order_number_rejected(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        repo.add(self._order("ORD-1"))
        with pytest.raises(ValidationError, match="already in use"):
            repo.add(self._order("ORD-1"))


class TestJsonPaymentRepository:

    def test_round_trip(self, tmp_path):
        repo = JsonPaymentRepository(tmp_path / "payments.json")
        charge = Payment(
            id=None,
            order_id=1,
            method=PaymentMethod.PAYPAL,
            amount=Decimal("30.00"),
            status=PaymentRecordStatus.SUCCESS,
            transaction_id="txn_1",
            gateway_response={"auth_code": "X"},
            processed_at=datetime.now(timezone.utc),
        )
        repo.save(charge)
        refund = Payment(
            id=None,
            order_id=1,
            method=PaymentMethod.PAYPAL,
            amount=Decimal("-10.00"),
            status=PaymentRecordStatus.REFUNDED,
            refunded_payment_id=charge.id,
        )
        repo.save(refund)

        assert (charge.id, refund.id) == (1, 2)
        loaded = repo.get_by_id(1)
        assert loaded.amount == Decimal("30.00")
        assert loaded.gateway_response == {"auth_code": "X"}
        assert repo.get_by_id(2).refunded_payment_id == 1
        assert repo.get_by_id(2).processed_at is None
        assert [p.id for p in repo.list_for_order(1)] == [1, 2]

    def test_update_status(self, tmp_path):
        repo = JsonPaymentRepository(tmp_path / "payments.json")
        charge = Payment(None, 1, PaymentMethod.CREDIT_CARD, Decimal("5.00"), PaymentRecordStatus.SUCCESS)
        repo.save(charge)
        charge.mark_fully_refunded()
        repo.save(charge)
        assert repo.get_by_id(charge.id).status == PaymentRecordStatus.REFUNDED
        assert len(repo.list_for_order(1)) == 1
