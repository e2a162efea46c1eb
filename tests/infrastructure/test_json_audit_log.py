"""Tests for the JSON-file audit trail, against a temporary directory."""

import json
import logging
from decimal import Decimal

from fulfillment.infrastructure.audit.json_audit_log import JsonAuditLog


class TestJsonAuditLog:

    def test_history_is_newest_first(self, tmp_path):
        log = JsonAuditLog(tmp_path / "audit.json")
        log.record("inventory", "A", "INSERT", None, {"quantity": 5}, "admin")
        log.record("inventory", "A", "UPDATE", {"quantity": 5}, {"quantity": 3}, "u1")

        entries = log.history("inventory", "A")

        assert [e.action for e in entries] == ["UPDATE", "INSERT"]
        assert entries[0].old_values == {"quantity": 5}
        assert entries[0].new_values == {"quantity": 3}
        assert entries[0].actor_id == "u1"
        assert entries[0].created_at >= entries[1].created_at

    def test_filters_by_entity(self, tmp_path):
        log = JsonAuditLog(tmp_path / "audit.json")
        log.record("inventory", "A", "UPDATE")
        log.record("inventory", "B", "UPDATE")
        log.record("orders", 7, "UPDATE")

        assert [e.entity_id for e in log.history("inventory")] == ["B", "A"]
        assert [e.entity_id for e in log.history("orders", 7)] == ["7"]
        assert log.history("payments") == []

    def test_limit(self, tmp_path):
        log = JsonAuditLog(tmp_path / "audit.json")
        for change in range(5):
            log.record("inventory", "A", "UPDATE", None, {"quantity_change": change})

        latest = log.history("inventory", "A", limit=2)

        assert [e.new_values["quantity_change"] for e in latest] == [4, 3]

    def test_decimals_are_stored_as_text(self, tmp_path):
        path = tmp_path / "audit.json"
        log = JsonAuditLog(path)
        log.record("payments", 1, "INSERT", None, {"amount": Decimal("19.99")})

        raw = json.loads(path.read_text(encoding="utf-8"))

        assert raw[0]["new_values"] == {"amount": "19.99"}
        assert raw[0]["entity_id"] == "1"

    def test_entries_survive_a_new_instance(self, tmp_path):
        JsonAuditLog(tmp_path / "audit.json").record("orders", 1, "INSERT")

        assert len(JsonAuditLog(tmp_path / "audit.json").history("orders")) == 1

    def test_entries_are_logged(self, tmp_path, caplog):
        log = JsonAuditLog(tmp_path / "audit.json")
        with caplog.at_level(logging.INFO, logger="fulfillment.audit"):
            log.record("orders", 3, "stock_not_restocked", None, {"items": []})

        assert "stock_not_restocked orders#3 by system" in caplog.text
