"""Tests for the InventoryLedger domain service.

Uses the versioned in-memory inventory repository from tests.fakes, so the
compare-and-set path is exercised for real.
"""

import threading

import pytest

from fulfillment.domain.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    InsufficientAvailableError,
    NegativeResultError,
    ValidationError,
)
from fulfillment.domain.model.inventory import InventoryOperation, InventoryRecord
from fulfillment.domain.model.product import Product
from fulfillment.domain.model.value_objects import Money
from fulfillment.domain.ports.notification_dispatcher import NotificationKind
from fulfillment.domain.service.inventory_ledger import BulkAdjustment, InventoryLedger
from tests.fakes import FakeInventoryRepository, RecordingAuditLog, RecordingNotifier


def _setup(
    *records: InventoryRecord,
    max_attempts: int = 10,
) -> tuple[InventoryLedger, FakeInventoryRepository, RecordingAuditLog, RecordingNotifier]:
    if not records:
        records = (InventoryRecord(product_id="P", product_name="Widget", quantity=10, reorder_level=5),)
    repo = FakeInventoryRepository(list(records))
    audit = RecordingAuditLog()
    notifier = RecordingNotifier()
    ledger = InventoryLedger(repo, audit, notifier, max_attempts=max_attempts)
    return ledger, repo, audit, notifier


class TestLedgerAdjust:

    def test_reserve_returns_counters(self):
        ledger, repo, _, _ = _setup()
        result = ledger.adjust("P", 4, InventoryOperation.RESERVE)
        assert result.previous_quantity == 10
        assert result.new_quantity == 10
        assert result.previous_reserved == 0
        assert result.new_reserved == 4
        assert result.available_quantity == 6
        assert repo.get_by_product_id("P").reserved_quantity == 4

    def test_accepts_operation_name(self):
        ledger, repo, _, _ = _setup()
        ledger.adjust("P", 2, "restock")
        assert repo.get_by_product_id("P").quantity == 12

    def test_unknown_operation_rejected(self):
        ledger, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="Invalid inventory operation"):
            ledger.adjust("P", 2, "steal")

    def test_missing_record(self):
        ledger, _, _, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            ledger.adjust("nope", 1, InventoryOperation.RESERVE)

    def test_failed_adjust_leaves_record_untouched(self):
        ledger, repo, audit, notifier = _setup()
        with pytest.raises(NegativeResultError):
            ledger.adjust("P", -11, InventoryOperation.ADJUST)
        record = repo.get_by_product_id("P")
        assert record.quantity == 10
        assert record.version == 0
        assert audit.entries == []
        assert notifier.sent == []

    def test_every_adjustment_is_audited(self):
        ledger, _, audit, _ = _setup()
        ledger.adjust("P", 2, InventoryOperation.RESERVE, actor_id="u1")
        entry = audit.entries[-1]
        assert entry["entity_type"] == "inventory"
        assert entry["action"] == "UPDATE"
        assert entry["new_values"]["reserved_quantity"] == 2
        assert entry["actor_id"] == "u1"

    def test_reserve_release_round_trip(self):
        ledger, repo, _, _ = _setup()
        ledger.adjust("P", 3, InventoryOperation.RESERVE)
        ledger.adjust("P", 3, InventoryOperation.RELEASE)
        record = repo.get_by_product_id("P")
        assert record.quantity == 10
        assert record.reserved_quantity == 0

    def test_release_clamps_at_zero(self):
        ledger, repo, _, _ = _setup()
        ledger.adjust("P", 2, InventoryOperation.RESERVE)
        result = ledger.adjust("P", 5, InventoryOperation.RELEASE)
        assert result.new_reserved == 0
        assert repo.get_by_product_id("P").reserved_quantity == 0


class TestLedgerConcurrency:

    def test_retries_after_version_conflict(self):
        ledger, repo, _, _ = _setup()
        repo.inject_conflicts(3)
        ledger.adjust("P", 1, InventoryOperation.RESERVE)
        assert repo.get_by_product_id("P").reserved_quantity == 1

    def test_gives_up_after_max_attempts(self):
        ledger, repo, _, _ = _setup(max_attempts=2)
        repo.inject_conflicts(2)
        with pytest.raises(ConcurrencyConflictError):
            ledger.adjust("P", 1, InventoryOperation.RESERVE)
        assert repo.get_by_product_id("P").reserved_quantity == 0

    def test_business_errors_are_not_retried(self):
        ledger, repo, _, _ = _setup()
        with pytest.raises(InsufficientAvailableError):
            ledger.adjust("P", 11, InventoryOperation.RESERVE)
        assert repo.save_count == 0

    def test_concurrent_reserves_never_oversell(self):
        record = InventoryRecord(product_id="P", product_name="Widget", quantity=5)
        ledger, repo, _, _ = _setup(record, max_attempts=1000)
        successes: list[int] = []
        failures: list[Exception] = []
        lock = threading.Lock()
        start = threading.Barrier(20)

        def worker() -> None:
            start.wait()
            try:
                ledger.adjust("P", 1, InventoryOperation.RESERVE)
            except InsufficientAvailableError as exc:
                with lock:
                    failures.append(exc)
            else:
                with lock:
                    successes.append(1)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(successes) == 5
        assert len(failures) == 15
        final = repo.get_by_product_id("P")
        assert final.reserved_quantity == 5
        assert final.available_quantity == 0


class TestLedgerAlerts:

    def test_low_stock_fires_once_when_crossing_threshold(self):
        ledger, _, _, notifier = _setup()

        ledger.adjust("P", 4, InventoryOperation.RESERVE)
        assert NotificationKind.LOW_STOCK not in notifier.kinds()

        ledger.adjust("P", 3, InventoryOperation.RESERVE)
        assert notifier.kinds().count(NotificationKind.LOW_STOCK) == 1
        alert = notifier.sent[-1]
        assert alert["target"] is None
        assert alert["metadata"]["available_quantity"] == 3

        ledger.adjust("P", 1, InventoryOperation.RESERVE)
        assert notifier.kinds().count(NotificationKind.LOW_STOCK) == 1

    def test_out_of_stock_when_quantity_hits_zero(self):
        ledger, _, _, notifier = _setup()
        ledger.adjust("P", -10, InventoryOperation.ADJUST)
        assert NotificationKind.OUT_OF_STOCK in notifier.kinds()

    def test_restocked_when_previously_at_or_below_reorder_level(self):
        record = InventoryRecord(product_id="P", product_name="Widget", quantity=5, reorder_level=5)
        ledger, _, _, notifier = _setup(record)
        ledger.adjust("P", 20, InventoryOperation.RESTOCK)
        assert notifier.kinds() == [NotificationKind.RESTOCKED]

    def test_restock_above_reorder_level_is_silent(self):
        ledger, _, _, notifier = _setup()
        ledger.adjust("P", 20, InventoryOperation.RESTOCK)
        assert notifier.sent == []

    def test_failing_notifier_does_not_undo_the_write(self):
        ledger, repo, _, notifier = _setup()

        def boom(*args, **kwargs):
            raise RuntimeError("smtp down")

        notifier.notify = boom
        result = ledger.adjust("P", 7, InventoryOperation.RESERVE)
        assert result.new_reserved == 7
        assert repo.get_by_product_id("P").reserved_quantity == 7


class TestLedgerBulkAndCompensation:

    def _two_products(self):
        return _setup(
            InventoryRecord(product_id="A", product_name="Alpha", quantity=10),
            InventoryRecord(product_id="B", product_name="Beta", quantity=2),
        )

    def test_bulk_adjust_applies_all(self):
        ledger, repo, _, _ = self._two_products()
        results = ledger.bulk_adjust(
            [BulkAdjustment("A", 5), BulkAdjustment("B", 3)], InventoryOperation.RESTOCK
        )
        assert len(results) == 2
        assert repo.get_by_product_id("A").quantity == 15
        assert repo.get_by_product_id("B").quantity == 5

    def test_bulk_adjust_is_all_or_nothing(self):
        ledger, repo, _, _ = self._two_products()
        with pytest.raises(NegativeResultError):
            ledger.bulk_adjust(
                [BulkAdjustment("A", -4), BulkAdjustment("B", -3)], InventoryOperation.ADJUST
            )
        assert repo.get_by_product_id("A").quantity == 10
        assert repo.get_by_product_id("B").quantity == 2

    def test_bulk_sell_rejected(self):
        ledger, _, _, _ = self._two_products()
        with pytest.raises(ValidationError):
            ledger.bulk_adjust([BulkAdjustment("A", 1)], InventoryOperation.SELL)

    def test_empty_bulk_rejected(self):
        ledger, _, _, _ = self._two_products()
        with pytest.raises(ValidationError):
            ledger.bulk_adjust([], InventoryOperation.RESTOCK)

    def test_compensate_sell_restores_stock_and_reservation(self):
        ledger, repo, _, _ = self._two_products()
        ledger.adjust("A", 3, InventoryOperation.RESERVE)
        sold = ledger.adjust("A", 3, InventoryOperation.SELL)
        ledger.compensate([sold])
        record = repo.get_by_product_id("A")
        assert record.quantity == 10
        assert record.reserved_quantity == 3

    def test_compensate_clamped_release_only_restores_what_was_freed(self):
        ledger, repo, _, _ = self._two_products()
        ledger.adjust("A", 2, InventoryOperation.RESERVE)
        released = ledger.adjust("A", 5, InventoryOperation.RELEASE)
        ledger.compensate([released])
        assert repo.get_by_product_id("A").reserved_quantity == 2


class TestLedgerAdministration:

    def test_stock_product_creates_record(self):
        ledger, repo, audit, _ = _setup()
        product = Product(id="N", name="New", price=Money.of("3.00"))
        record = ledger.stock_product(product, 12, reorder_level=4)
        stored = repo.get_by_product_id("N")
        assert stored.quantity == 12
        assert stored.reorder_level == 4
        assert record.version == 1
        assert audit.actions("inventory") == ["INSERT"]

    def test_stock_product_twice_rejected(self):
        ledger, _, _, _ = _setup()
        product = Product(id="P", name="Widget", price=Money.of("3.00"))
        with pytest.raises(ValidationError, match="already exists"):
            ledger.stock_product(product, 1)

    def test_set_reorder_level(self):
        ledger, repo, _, _ = _setup()
        ledger.set_reorder_level("P", 8)
        assert repo.get_by_product_id("P").reorder_level == 8
