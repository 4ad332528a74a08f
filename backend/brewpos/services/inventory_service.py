# Overview: Inventory store for raw materials; stock adjustments, status derivation and the adjustment log.

# backend/brewpos/services/inventory_service.py
"""
BrewPOS Inventory Invariants (authoritative)

Stock model:
- InventoryItem.current_stock is a mutable quantity (fractional units such as kg or liters).
- Stock is never negative: 'subtract' floors at zero, excess demand is clamped, not rejected.
- status is derived: 'low-stock' iff current_stock <= min_stock_level
  (DEFAULT_MIN_STOCK_LEVEL when the item has no minimum). Recomputed on every mutation.

Adjustment log:
- Append-only; exactly one InventoryAdjustment per adjust() call and one per
  ingredient consumed by a sale.
- Logging is best-effort and runs in its own transaction after the stock
  change is committed. A logging failure is reported and swallowed; it never
  rolls back the stock mutation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app, has_app_context
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import InventoryItem, InventoryAdjustment, AdjustmentOperation, StockStatus
from ..models.inventory import DEFAULT_MIN_STOCK_LEVEL
from ..quantities import ZERO, to_quantity
from ..validation import ConflictError, check_stock_levels
from .concurrency import lock_for_update, run_with_retry


INVENTORY_MUTABLE_FIELDS = {
    "name", "current_stock", "unit", "cost_per_unit_cents", "min_stock_level",
    "max_stock_level", "category", "supplier", "location", "notes",
}


class InventoryError(Exception):
    """Raised for inventory operation errors."""


class InventoryItemNotFound(InventoryError, LookupError):
    def __init__(self, sku: str):
        super().__init__(f"Inventory item with SKU {sku} not found")
        self.sku = sku


def default_min_stock_level() -> int:
    if has_app_context():
        return current_app.config.get("DEFAULT_MIN_STOCK_LEVEL", DEFAULT_MIN_STOCK_LEVEL)
    return DEFAULT_MIN_STOCK_LEVEL


def apply_operation(current_stock, quantity, operation) -> Decimal:
    """New stock level for an add/subtract/set of quantity against current_stock."""
    current = to_quantity(current_stock)
    quantity = to_quantity(quantity)
    operation = AdjustmentOperation(operation)

    if operation is AdjustmentOperation.ADD:
        return current + quantity
    if operation is AdjustmentOperation.SUBTRACT:
        return max(ZERO, current - quantity)
    if quantity < 0:
        raise ValueError("cannot set stock below zero")
    return quantity


@dataclass(frozen=True)
class StockChange:
    """Before/after snapshot of one stock mutation, used to write the adjustment log."""
    sku: str
    item_name: str
    previous_stock: Decimal
    new_stock: Decimal
    quantity: Decimal
    operation: AdjustmentOperation

    def log_entry(self, *, reason: str, adjusted_by: str = "system",
                  recipe_id: str | None = None, sale_id: str | None = None) -> dict:
        return {
            "sku": self.sku,
            "item_name": self.item_name,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "quantity": self.quantity,
            "operation": self.operation.value,
            "reason": reason,
            "recipe_id": recipe_id,
            "sale_id": sale_id,
            "adjusted_by": adjusted_by,
        }


class AdjustmentLog:
    """Append-only InventoryAdjustment writer and reader."""

    def __init__(self, session=None):
        self.session = session or db.session

    def append(self, entries: list[dict]) -> list[InventoryAdjustment]:
        """
        Best-effort write of adjustment entries in one transaction.

        Returns the written rows, or [] if the write failed (the failure is
        logged, never raised).
        """
        if not entries:
            return []
        rows = [InventoryAdjustment(**entry) for entry in entries]
        try:
            self.session.add_all(rows)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception(
                "Failed to log %d inventory adjustment(s) for %s",
                len(entries), ", ".join(sorted({e["sku"] for e in entries})),
            )
            return []
        return rows

    def history(self, sku: str | None = None, limit: int | None = None) -> list[InventoryAdjustment]:
        if limit is None:
            limit = current_app.config.get("ADJUSTMENT_HISTORY_LIMIT", 50)
        query = self.session.query(InventoryAdjustment)
        if sku:
            query = query.filter(InventoryAdjustment.sku == sku)
        return (
            query.order_by(InventoryAdjustment.created_at.desc(), InventoryAdjustment.id.desc())
            .limit(limit)
            .all()
        )


class InventoryStore:
    """
    Keyed access to InventoryItem rows plus the stock mutation rules.

    The store works against the session it is given; callers that batch
    several mutations (the sale processor) share one session and commit once.
    """

    def __init__(self, session=None, *, adjustments: AdjustmentLog | None = None):
        self.session = session or db.session
        self.adjustments = adjustments or AdjustmentLog(self.session)

    # -- reads -------------------------------------------------------------

    def get(self, sku: str) -> InventoryItem | None:
        return self.session.get(InventoryItem, sku)

    def require(self, sku: str) -> InventoryItem:
        item = self.get(sku)
        if item is None:
            raise InventoryItemNotFound(sku)
        return item

    def list(self, category: str | None = None) -> list[InventoryItem]:
        query = self.session.query(InventoryItem)
        if category:
            query = query.filter(InventoryItem.category == category)
        return query.order_by(InventoryItem.name.asc(), InventoryItem.sku.asc()).all()

    def list_low_stock(self) -> list[InventoryItem]:
        return (
            self.session.query(InventoryItem)
            .filter(InventoryItem.status == StockStatus.LOW_STOCK.value)
            .order_by(InventoryItem.current_stock.asc(), InventoryItem.sku.asc())
            .all()
        )

    # -- administrative writes ---------------------------------------------

    def add(self, fields: dict) -> InventoryItem:
        """Create an item keyed by its SKU; status is derived from the opening stock."""
        sku = fields["sku"]
        if self.get(sku) is not None:
            raise ConflictError(f"Inventory item with SKU {sku} already exists")

        item = InventoryItem(
            sku=sku,
            name=fields["name"],
            unit=fields["unit"],
            current_stock=to_quantity(fields.get("current_stock") or 0),
            cost_per_unit_cents=fields.get("cost_per_unit_cents") or 0,
            min_stock_level=fields.get("min_stock_level", default_min_stock_level()),
            max_stock_level=fields.get(
                "max_stock_level",
                current_app.config.get("DEFAULT_MAX_STOCK_LEVEL", 100),
            ),
            category=fields.get("category") or "Raw Material",
            supplier=fields.get("supplier"),
            location=fields.get("location") or "Warehouse",
            notes=fields.get("notes"),
        )
        check_stock_levels(item.min_stock_level, item.max_stock_level)
        item.refresh_status(default_min_stock_level())

        self.session.add(item)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError(f"Inventory item with SKU {sku} already exists")
        return item

    def update(self, sku: str, patch: dict) -> InventoryItem:
        """
        Apply a field patch. Does not write an adjustment entry; use adjust()
        for stock movements that need an audit trail.
        """
        def _op():
            item = self.require(sku)
            check_stock_levels(
                patch.get("min_stock_level", item.min_stock_level),
                patch.get("max_stock_level", item.max_stock_level),
            )
            for key, value in patch.items():
                if key in INVENTORY_MUTABLE_FIELDS:
                    setattr(item, key, value)
            item.refresh_status(default_min_stock_level())
            self.session.commit()
            return item

        return run_with_retry(self.session, _op)

    def delete(self, sku: str) -> None:
        item = self.require(sku)
        self.session.delete(item)
        self.session.commit()

    # -- stock mutations ---------------------------------------------------

    def stage_stock(self, item: InventoryItem, new_stock) -> Decimal:
        """
        Set current_stock and recompute status without committing.

        The caller owns the transaction; the write is an overwrite of a value
        computed from the caller's read, guarded only by version_id.
        """
        item.current_stock = max(ZERO, to_quantity(new_stock))
        item.refresh_status(default_min_stock_level())
        return item.current_stock

    def adjust(
        self,
        sku: str,
        quantity,
        operation: str = "add",
        reason: str = "manual",
        adjusted_by: str = "system",
    ) -> Decimal:
        """
        Adjust stock and log exactly one InventoryAdjustment.

        - add: current + quantity
        - subtract: max(0, current - quantity)
        - set: quantity

        Returns the new stock level. Raises InventoryItemNotFound for an
        unknown SKU. The adjustment entry is written after the stock commit and
        a failure there is logged, not raised.
        """
        quantity = to_quantity(quantity)
        operation = AdjustmentOperation(operation)

        def _op() -> StockChange:
            query = self.session.query(InventoryItem).filter_by(sku=sku)
            item = lock_for_update(query).first()
            if item is None:
                raise InventoryItemNotFound(sku)

            previous = to_quantity(item.current_stock)
            new_stock = self.stage_stock(item, apply_operation(previous, quantity, operation))
            change = StockChange(
                sku=sku,
                item_name=item.name,
                previous_stock=previous,
                new_stock=new_stock,
                quantity=quantity,
                operation=operation,
            )
            self.session.commit()
            return change

        change = run_with_retry(self.session, _op)
        self.adjustments.append([change.log_entry(reason=reason, adjusted_by=adjusted_by)])
        return change.new_stock

    def list_adjustments(self, sku: str | None = None, limit: int | None = None) -> list[InventoryAdjustment]:
        return self.adjustments.history(sku=sku, limit=limit)
