"""JSON-file-backed implementation of PaymentRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from fulfillment.domain.model.payment import Payment, PaymentMethod, PaymentRecordStatus
from fulfillment.domain.repository.payment_repository import PaymentRepository
from fulfillment.infrastructure.persistence.json_files import (
    ensure_file,
    load_raw,
    lock_for,
    persist_raw,
)


class JsonPaymentRepository(PaymentRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = lock_for(file_path)
        ensure_file(file_path)

    # --- PaymentRepository interface ------------------------------------------

    def get_by_id(self, payment_id: int) -> Payment | None:
        for raw in load_raw(self._file_path):
            if raw["id"] == payment_id:
                return self._to_domain(raw)
        return None

    def list_for_order(self, order_id: int) -> list[Payment]:
        return [
            self._to_domain(raw)
            for raw in load_raw(self._file_path)
            if raw["order_id"] == order_id
        ]

    def list_all(self) -> list[Payment]:
        return [self._to_domain(raw) for raw in load_raw(self._file_path)]

    def save(self, payment: Payment) -> None:
        with self._lock:
            payments = load_raw(self._file_path)
            if payment.id is None:
                payment.id = max((p["id"] for p in payments), default=0) + 1

            for i, raw in enumerate(payments):
                if raw["id"] == payment.id:
                    payments[i] = self._to_raw(payment)
                    break
            else:
                payments.append(self._to_raw(payment))

            persist_raw(self._file_path, payments)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(payment: Payment) -> dict:
        return {
            "id": payment.id,
            "order_id": payment.order_id,
            "method": payment.method.value,
            "amount": str(payment.amount),
            "currency": payment.currency,
            "status": payment.status.value,
            "transaction_id": payment.transaction_id,
            "gateway_response": payment.gateway_response,
            "refunded_payment_id": payment.refunded_payment_id,
            "created_at": payment.created_at.isoformat(),
            "processed_at": payment.processed_at.isoformat() if payment.processed_at else None,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Payment:
        processed_at = raw.get("processed_at")
        return Payment(
            id=raw["id"],
            order_id=raw["order_id"],
            method=PaymentMethod(raw["method"]),
            amount=Decimal(raw["amount"]),
            status=PaymentRecordStatus(raw["status"]),
            transaction_id=raw.get("transaction_id"),
            gateway_response=raw.get("gateway_response") or {},
            currency=raw.get("currency", "USD"),
            refunded_payment_id=raw.get("refunded_payment_id"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            processed_at=datetime.fromisoformat(processed_at) if processed_at else None,
        )
