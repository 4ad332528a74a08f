# Overview: Pytest coverage for stock adjustments, status derivation and the adjustment log.

"""
Inventory Store Tests

Stock rules:
- status is 'low-stock' iff current_stock <= min_stock_level (default 10 when unset)
- subtract floors at zero instead of failing
- every adjust() writes exactly one adjustment entry, after the stock commit
"""

from decimal import Decimal

import pytest

from brewpos.models import InventoryAdjustment, InventoryItem, StockStatus, derive_stock_status
from brewpos.services.inventory_service import (
    AdjustmentLog,
    InventoryItemNotFound,
    InventoryStore,
    apply_operation,
)
from brewpos.validation import ConflictError, ValidationError


def _add_milk(inventory, stock="40", minimum="10"):
    return inventory.add({
        "sku": "MILK001",
        "name": "Fresh Milk",
        "current_stock": Decimal(stock),
        "unit": "liters",
        "cost_per_unit_cents": 4500,
        "min_stock_level": Decimal(minimum) if minimum is not None else None,
    })


class TestApplyOperation:
    def test_add(self):
        assert apply_operation(Decimal("1.5"), Decimal("2.25"), "add") == Decimal("3.75")

    def test_subtract_floors_at_zero(self):
        assert apply_operation(Decimal("25"), Decimal("999999"), "subtract") == Decimal("0")

    def test_set_replaces(self):
        assert apply_operation(Decimal("25"), Decimal("7"), "set") == Decimal("7")

    def test_unknown_operation_rejected(self):
        with pytest.raises(ValueError):
            apply_operation(1, 1, "multiply")


class TestDeriveStockStatus:
    def test_at_minimum_is_low(self):
        assert derive_stock_status(Decimal("5"), Decimal("5")) is StockStatus.LOW_STOCK

    def test_above_minimum_is_active(self):
        assert derive_stock_status(Decimal("5.01"), Decimal("5")) is StockStatus.ACTIVE

    def test_missing_minimum_uses_default(self):
        assert derive_stock_status(Decimal("10"), None) is StockStatus.LOW_STOCK
        assert derive_stock_status(Decimal("10.5"), None) is StockStatus.ACTIVE


class TestInventoryStore:
    def test_add_applies_defaults_and_derives_status(self, inventory):
        item = inventory.add({"sku": "SUGAR001", "name": "Sugar", "unit": "kg", "current_stock": 3})

        assert item.category == "Raw Material"
        assert item.location == "Warehouse"
        assert item.min_stock_level == Decimal("10")
        assert item.max_stock_level == Decimal("100")
        assert item.status == StockStatus.LOW_STOCK.value

    def test_add_duplicate_sku_conflicts(self, inventory):
        _add_milk(inventory)
        with pytest.raises(ConflictError):
            _add_milk(inventory)

    def test_require_unknown_sku(self, inventory):
        with pytest.raises(InventoryItemNotFound, match="Inventory item with SKU NOPE not found"):
            inventory.require("NOPE")

    def test_status_follows_every_adjustment(self, inventory):
        """Status is recomputed on add, subtract and set."""
        _add_milk(inventory, stock="12", minimum="10")
        assert inventory.get("MILK001").status == "active"

        inventory.adjust("MILK001", Decimal("2"), operation="subtract")
        assert inventory.get("MILK001").status == "low-stock"

        inventory.adjust("MILK001", Decimal("0.5"), operation="add")
        assert inventory.get("MILK001").status == "active"

        inventory.adjust("MILK001", Decimal("10"), operation="set")
        assert inventory.get("MILK001").status == "low-stock"

    def test_subtract_past_zero_clamps(self, inventory, db_session):
        inventory.add({"sku": "TEA001", "name": "Ceylon Black Tea Leaves", "unit": "kg", "current_stock": 25})

        new_stock = inventory.adjust("TEA001", Decimal("999999"), operation="subtract", reason="spillage")

        assert new_stock == Decimal("0")
        item = db_session.get(InventoryItem, "TEA001")
        assert item.current_stock == Decimal("0")
        assert item.status == "low-stock"

        entry = db_session.query(InventoryAdjustment).one()
        assert entry.previous_stock == Decimal("25")
        assert entry.new_stock == Decimal("0")
        assert entry.quantity == Decimal("999999")
        assert entry.operation == "subtract"
        assert entry.reason == "spillage"

    def test_adjust_logs_exactly_one_entry(self, inventory, db_session):
        _add_milk(inventory)
        inventory.adjust("MILK001", Decimal("5"), operation="add", reason="delivery", adjusted_by="tester")

        entries = db_session.query(InventoryAdjustment).all()
        assert len(entries) == 1
        assert entries[0].adjusted_by == "tester"
        assert entries[0].sale_id is None

    def test_adjust_unknown_sku(self, inventory, db_session):
        with pytest.raises(InventoryItemNotFound):
            inventory.adjust("GHOST", Decimal("1"))
        assert db_session.query(InventoryAdjustment).count() == 0

    def test_update_recomputes_status(self, inventory):
        _add_milk(inventory, stock="40", minimum="10")

        item = inventory.update("MILK001", {"min_stock_level": Decimal("50")})

        assert item.status == "low-stock"

    def test_update_bumps_version(self, inventory):
        item = _add_milk(inventory)
        before = item.version_id

        inventory.update("MILK001", {"notes": "whole milk"})

        assert inventory.get("MILK001").version_id == before + 1

    def test_add_minimum_above_default_maximum(self, inventory):
        with pytest.raises(ValidationError, match="min_stock_level cannot exceed max_stock_level"):
            _add_milk(inventory, minimum="500")

        assert inventory.get("MILK001") is None

    def test_update_minimum_checked_against_stored_maximum(self, inventory, db_session):
        _add_milk(inventory)

        with pytest.raises(ValidationError):
            inventory.update("MILK001", {"min_stock_level": Decimal("150")})

        db_session.expire_all()
        assert inventory.get("MILK001").min_stock_level == Decimal("10")

        item = inventory.update("MILK001", {"min_stock_level": Decimal("150"), "max_stock_level": Decimal("200")})
        assert item.status == "low-stock"

    def test_list_low_stock_orders_by_stock(self, inventory):
        inventory.add({"sku": "A", "name": "Alpha", "unit": "kg", "current_stock": 4})
        inventory.add({"sku": "B", "name": "Beta", "unit": "kg", "current_stock": 1})
        inventory.add({"sku": "C", "name": "Gamma", "unit": "kg", "current_stock": 80})

        assert [item.sku for item in inventory.list_low_stock()] == ["B", "A"]

    def test_history_newest_first(self, inventory):
        _add_milk(inventory)
        inventory.adjust("MILK001", 1, operation="add", reason="first")
        inventory.adjust("MILK001", 1, operation="add", reason="second")

        history = inventory.list_adjustments(sku="MILK001")

        assert [entry.reason for entry in history] == ["second", "first"]


class TestBestEffortLogging:
    def test_log_failure_keeps_stock_change(self, db_session, broken_log_session):
        broken = broken_log_session
        store = InventoryStore(db_session, adjustments=AdjustmentLog(broken))
        _add_milk(store)

        new_stock = store.adjust("MILK001", Decimal("5"), operation="subtract")

        assert new_stock == Decimal("35")
        assert broken.rolled_back
        db_session.expire_all()
        assert db_session.get(InventoryItem, "MILK001").current_stock == Decimal("35")
        assert db_session.query(InventoryAdjustment).count() == 0

    def test_empty_append_is_noop(self, db_session):
        assert AdjustmentLog(db_session).append([]) == []
