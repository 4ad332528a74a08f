from __future__ import annotations

from decimal import Decimal
from enum import Enum

from ..extensions import db
from ..quantities import quantity_to_json, to_quantity
from ..time_utils import to_utc_z


DEFAULT_MIN_STOCK_LEVEL = 10


class StockStatus(str, Enum):
    ACTIVE = "active"
    LOW_STOCK = "low-stock"


class AdjustmentOperation(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"


def derive_stock_status(current_stock, min_stock_level=None, default_min=DEFAULT_MIN_STOCK_LEVEL) -> StockStatus:
    """low-stock iff current_stock <= minimum (item minimum, else the default threshold)."""
    threshold = default_min if min_stock_level is None else min_stock_level
    if to_quantity(current_stock) <= to_quantity(threshold):
        return StockStatus.LOW_STOCK
    return StockStatus.ACTIVE


class InventoryItem(db.Model):
    """
    Raw material or stocked unit, keyed by SKU.

    STATUS INVARIANT:
    status is derived from current_stock vs min_stock_level and must be
    recomputed on every mutation (see refresh_status). Nothing outside this
    model should write status directly.

    version_id is the optimistic-lock column: an UPDATE computed from a stale
    read fails with StaleDataError instead of silently overwriting.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.Index("ix_inventory_items_status_stock", "status", "current_stock"),
        db.Index("ix_inventory_items_category", "category"),
    )

    sku = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    current_stock = db.Column(db.Numeric(14, 4), nullable=False, default=Decimal("0"))
    unit = db.Column(db.String(32), nullable=False)

    # Money in cents per unit of measure
    cost_per_unit_cents = db.Column(db.Integer, nullable=False, default=0)

    min_stock_level = db.Column(db.Numeric(14, 4), nullable=True)
    max_stock_level = db.Column(db.Numeric(14, 4), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=StockStatus.ACTIVE.value, index=True)

    category = db.Column(db.String(64), nullable=False, default="Raw Material")
    supplier = db.Column(db.String(255), nullable=True)
    location = db.Column(db.String(120), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def refresh_status(self, default_min=DEFAULT_MIN_STOCK_LEVEL) -> StockStatus:
        status = derive_stock_status(self.current_stock, self.min_stock_level, default_min)
        self.status = status.value
        return status

    @property
    def is_low_stock(self) -> bool:
        return self.status == StockStatus.LOW_STOCK.value

    def __repr__(self) -> str:
        return f"<InventoryItem sku={self.sku!r} stock={self.current_stock} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "sku": self.sku,
            "name": self.name,
            "current_stock": quantity_to_json(self.current_stock),
            "unit": self.unit,
            "cost_per_unit_cents": self.cost_per_unit_cents,
            "min_stock_level": quantity_to_json(self.min_stock_level),
            "max_stock_level": quantity_to_json(self.max_stock_level),
            "status": self.status,
            "category": self.category,
            "supplier": self.supplier,
            "location": self.location,
            "notes": self.notes,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryAdjustment(db.Model):
    """
    Append-only stock adjustment log.

    One row per manual adjustment and one per ingredient consumed by a sale.
    Rows are never updated or deleted; sku is not a foreign key so history
    survives deletion of the item.
    """
    __tablename__ = "inventory_adjustments"
    __table_args__ = (
        db.Index("ix_inventory_adjustments_sku_created", "sku", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False)
    item_name = db.Column(db.String(255), nullable=False)

    previous_stock = db.Column(db.Numeric(14, 4), nullable=False)
    new_stock = db.Column(db.Numeric(14, 4), nullable=False)
    quantity = db.Column(db.Numeric(14, 4), nullable=False)
    operation = db.Column(db.String(16), nullable=False)

    reason = db.Column(db.String(255), nullable=False, default="manual")
    recipe_id = db.Column(db.String(64), nullable=True)
    sale_id = db.Column(db.String(40), nullable=True, index=True)
    adjusted_by = db.Column(db.String(64), nullable=False, default="system")

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "item_name": self.item_name,
            "previous_stock": quantity_to_json(self.previous_stock),
            "new_stock": quantity_to_json(self.new_stock),
            "quantity": quantity_to_json(self.quantity),
            "operation": self.operation,
            "reason": self.reason,
            "recipe_id": self.recipe_id,
            "sale_id": self.sale_id,
            "adjusted_by": self.adjusted_by,
            "created_at": to_utc_z(self.created_at),
        }
