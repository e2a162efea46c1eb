"""Integration tests for the read-side use cases: order listing, payment
history, statistics and inventory movements."""

import pytest

from fulfillment.application.create_order import CreateOrderHandler
from fulfillment.application.dto import OrderItemSpec
from fulfillment.application.inventory_movements import InventoryMovementsHandler
from fulfillment.application.list_orders import ListOrdersHandler
from fulfillment.application.order_stats import OrderStatsHandler
from fulfillment.application.payment_history import PaymentHistoryHandler
from fulfillment.application.payment_stats import PaymentStatsHandler
from fulfillment.application.process_payment import ProcessPaymentHandler
from fulfillment.application.refund_payment import RefundPaymentHandler
from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.inventory import InventoryRecord
from fulfillment.domain.model.order import OrderStatus
from fulfillment.domain.model.product import Product
from fulfillment.domain.model.value_objects import Money
from fulfillment.domain.service.inventory_ledger import InventoryLedger
from fulfillment.domain.service.order_lifecycle import OrderLifecycle
from tests.fakes import (
    FakeGateway,
    FakeInventoryRepository,
    FakeOrderRepository,
    FakePaymentRepository,
    FakeProductRepository,
    RecordingAuditLog,
    RecordingNotifier,
)

ADDRESS = {"street": "1 Main St"}
PAYPAL = {"email": "a@b.c"}


class _Env:
    def __init__(self) -> None:
        self.products = FakeProductRepository([
            Product(id="A", name="Widget", price=Money.of("10.00")),
        ])
        self.inventory = FakeInventoryRepository([
            InventoryRecord(product_id="A", product_name="Widget", quantity=50),
        ])
        self.orders = FakeOrderRepository()
        self.payments = FakePaymentRepository()
        self.gateway = FakeGateway()
        self.audit = RecordingAuditLog()
        self.notifier = RecordingNotifier()
        ledger = InventoryLedger(self.inventory, self.audit, self.notifier)
        self.lifecycle = OrderLifecycle(self.orders, ledger, self.audit, self.notifier)
        deps = (self.orders, self.payments, self.gateway, self.lifecycle, self.audit, self.notifier)
        self.charger = ProcessPaymentHandler(*deps)
        self.refunder = RefundPaymentHandler(*deps)
        self.creator = CreateOrderHandler(
            self.orders, self.products, self.inventory, ledger, self.audit, self.notifier
        )

    def order(self, user_id: str = "u1", qty: int = 1) -> int:
        return self.creator.handle(user_id, [OrderItemSpec("A", qty)], ADDRESS, ADDRESS).order_id

    def pay(self, order_id: int) -> int:
        return self.charger.handle(order_id, "paypal", PAYPAL).payment_id


class TestListOrders:

    def _three_orders(self, env: _Env) -> tuple[int, int, int]:
        return env.order("u1", 1), env.order("u2", 2), env.order("u1", 3)

    def test_lists_newest_first(self):
        env = _Env()
        first, second, third = self._three_orders(env)

        page = ListOrdersHandler(env.orders).handle()

        assert [row.id for row in page.items] == [third, second, first]
        assert page.total == 3
        assert page.pages == 1

    def test_summary_row(self):
        env = _Env()
        order_id = env.order("u1", 2)

        row = ListOrdersHandler(env.orders).handle().items[0]

        assert row.id == order_id
        assert row.user_id == "u1"
        assert row.status == "pending"
        assert row.payment_status == "pending"
        assert row.item_count == 1
        assert row.total == "$20.00"
        assert row.created_at.endswith("UTC")

    def test_filters_by_customer(self):
        env = _Env()
        first, _, third = self._three_orders(env)

        page = ListOrdersHandler(env.orders).handle(user_id="u1")

        assert [row.id for row in page.items] == [third, first]
        assert page.total == 2

    def test_filters_by_status(self):
        env = _Env()
        first, second, third = self._three_orders(env)
        env.pay(first)

        confirmed = ListOrdersHandler(env.orders).handle(status=OrderStatus.CONFIRMED)
        pending = ListOrdersHandler(env.orders).handle(status="pending")

        assert [row.id for row in confirmed.items] == [first]
        assert [row.id for row in pending.items] == [third, second]

    def test_customer_and_status_filters_combine(self):
        env = _Env()
        first, _, _ = self._three_orders(env)
        env.pay(first)

        page = ListOrdersHandler(env.orders).handle(user_id="u2", status="confirmed")

        assert page.items == []
        assert page.total == 0
        assert page.pages == 0

    def test_pages_through_results(self):
        env = _Env()
        first, _, _ = self._three_orders(env)

        page = ListOrdersHandler(env.orders).handle(page=2, limit=2)

        assert [row.id for row in page.items] == [first]
        assert page.page == 2
        assert page.pages == 2
        assert page.total == 3

    def test_page_past_the_end_is_empty(self):
        env = _Env()
        env.order()

        assert ListOrdersHandler(env.orders).handle(page=5).items == []

    @pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (1, 101)])
    def test_rejects_bad_paging(self, page, limit):
        with pytest.raises(ValidationError):
            ListOrdersHandler(FakeOrderRepository()).handle(page=page, limit=limit)

    def test_rejects_unknown_status(self):
        with pytest.raises(ValidationError, match="Invalid order status"):
            ListOrdersHandler(FakeOrderRepository()).handle(status="lost")


class TestOrderStats:

    def test_counts_and_revenue(self):
        env = _Env()
        paid = env.order("u1", 1)
        env.order("u2", 2)
        cancelled = env.order("u1", 3)
        env.pay(paid)
        env.lifecycle.transition(cancelled, OrderStatus.CANCELLED, "u1")

        stats = OrderStatsHandler(env.orders).handle()

        assert stats.total_orders == 3
        assert stats.status_counts["confirmed"] == 1
        assert stats.status_counts["pending"] == 1
        assert stats.status_counts["cancelled"] == 1
        assert stats.status_counts["delivered"] == 0
        assert stats.total_revenue == "$30.00"
        assert stats.average_order_value == "$15.00"

    def test_average_rounds_to_cents(self):
        env = _Env()
        env.order("u1", 1)
        env.order("u1", 1)
        env.order("u1", 2)

        stats = OrderStatsHandler(env.orders).handle()

        assert stats.total_revenue == "$40.00"
        assert stats.average_order_value == "$13.33"

    def test_no_orders_reports_zero_in_store_currency(self):
        stats = OrderStatsHandler(FakeOrderRepository(), currency="EUR").handle()

        assert stats.total_orders == 0
        assert set(stats.status_counts.values()) == {0}
        assert stats.total_revenue == "€0.00"
        assert stats.average_order_value == "€0.00"


class TestPaymentHistory:

    def _history(self, env: _Env) -> tuple[int, int, int]:
        """A paid order for u1, a declined charge for u2, a partial refund."""
        paid = env.order("u1", 2)
        charge_id = env.pay(paid)
        declined = env.order("u2", 1)
        env.gateway.decline_with = "DECLINED"
        failed_id = env.charger.handle(declined, "paypal", PAYPAL).payment_id
        env.gateway.decline_with = None
        refund_id = env.refunder.handle(charge_id, amount="5.00", reason="scratched").refund_payment_id
        return charge_id, failed_id, refund_id

    def test_lists_charges_and_refunds_newest_first(self):
        env = _Env()
        charge_id, failed_id, refund_id = self._history(env)

        page = PaymentHistoryHandler(env.payments, env.orders).handle()

        assert [row.id for row in page.items] == [refund_id, failed_id, charge_id]
        refund, failed, charge = page.items
        assert refund.amount == "-5.00"
        assert refund.status == "refunded"
        assert failed.status == "failed"
        assert charge.amount == "20.00"
        assert charge.method == "paypal"
        assert charge.transaction_id is not None
        assert charge.order_number == env.orders.get_by_id(charge.order_id).order_number

    def test_customer_sees_only_own_orders(self):
        env = _Env()
        charge_id, failed_id, refund_id = self._history(env)

        mine = PaymentHistoryHandler(env.payments, env.orders).handle(user_id="u1")
        theirs = PaymentHistoryHandler(env.payments, env.orders).handle(user_id="u2")

        assert [row.id for row in mine.items] == [refund_id, charge_id]
        assert [row.id for row in theirs.items] == [failed_id]

    def test_pages(self):
        env = _Env()
        charge_id, _, _ = self._history(env)

        page = PaymentHistoryHandler(env.payments, env.orders).handle(page=2, limit=2)

        assert [row.id for row in page.items] == [charge_id]
        assert page.pages == 2

    def test_rejects_bad_page(self):
        env = _Env()
        with pytest.raises(ValidationError):
            PaymentHistoryHandler(env.payments, env.orders).handle(page=0)


class TestPaymentStats:

    def test_partial_refund_keeps_charge_in_revenue(self):
        env = _Env()
        first = env.pay(env.order("u1", 2))
        env.pay(env.order("u1", 1))
        env.gateway.decline_with = "DECLINED"
        env.charger.handle(env.order("u2", 1), "paypal", PAYPAL)
        env.gateway.decline_with = None
        env.refunder.handle(first, amount="5.00")

        stats = PaymentStatsHandler(env.payments).handle()

        assert stats.successful_payments == 2
        assert stats.failed_payments == 1
        assert stats.total_revenue == "$30.00"
        assert stats.total_refunds == "$5.00"
        assert stats.average_payment == "$15.00"

    def test_full_refund_drops_charge_from_revenue(self):
        env = _Env()
        charge_id = env.pay(env.order("u1", 1))
        env.refunder.handle(charge_id)

        stats = PaymentStatsHandler(env.payments).handle()

        assert stats.successful_payments == 0
        assert stats.total_revenue == "$0.00"
        assert stats.total_refunds == "$10.00"
        assert stats.average_payment == "$0.00"

    def test_no_payments_in_store_currency(self):
        stats = PaymentStatsHandler(FakePaymentRepository(), currency="GBP").handle()

        assert stats.successful_payments == 0
        assert stats.failed_payments == 0
        assert stats.total_revenue == "£0.00"
        assert stats.total_refunds == "£0.00"


class TestInventoryMovements:

    def test_reserve_then_sell_newest_first(self):
        env = _Env()
        env.pay(env.order("u1", 2))

        moves = InventoryMovementsHandler(env.audit).handle("A")

        assert [m.operation for m in moves] == ["sell", "reserve"]
        sell, reserve = moves
        assert (reserve.old_quantity, reserve.new_quantity) == (50, 50)
        assert (reserve.old_reserved, reserve.new_reserved) == (0, 2)
        assert (sell.old_quantity, sell.new_quantity) == (48 + 2, 48)
        assert (sell.old_reserved, sell.new_reserved) == (2, 0)
        assert all(m.product_id == "A" for m in moves)

    def test_cancel_shows_release(self):
        env = _Env()
        order_id = env.order("u1", 4)
        env.lifecycle.transition(order_id, OrderStatus.CANCELLED, "u1")

        latest = InventoryMovementsHandler(env.audit).handle("A", limit=1)

        assert len(latest) == 1
        assert latest[0].operation == "release"
        assert latest[0].new_reserved == 0
        assert latest[0].actor_id == "u1"

    def test_unknown_product_has_no_movements(self):
        env = _Env()
        env.order()

        assert InventoryMovementsHandler(env.audit).handle("Z") == []

    def test_rejects_zero_limit(self):
        with pytest.raises(ValidationError):
            InventoryMovementsHandler(RecordingAuditLog()).handle(limit=0)
