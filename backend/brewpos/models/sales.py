from __future__ import annotations

from enum import Enum

from ..extensions import db
from ..time_utils import to_utc_z


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    GCASH = "GCash"


class Sale(db.Model):
    """
    Completed checkout (immutable after creation).

    sale_id is SALE-<YYYYMMDD>-<HHMMSS>-<millis>. total_cents is the plain sum
    of price * quantity over the lines; checkout tax is quoted to the customer
    but not stored here.

    inventory_consumed is written together with the sale in the same batch.
    A sale recorded through the fallback path carries an empty list, which is
    the only trace that its recipe ingredients were not deducted.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_at", "created_at"),
    )

    sale_id = db.Column(db.String(40), primary_key=True)

    total_cents = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=False, default=PaymentMethod.CASH.value)
    amount_received_cents = db.Column(db.Integer, nullable=False, default=0)
    reference_number = db.Column(db.String(64), nullable=False, default="")

    inventory_consumed = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship(
        "SaleLine",
        order_by="SaleLine.position",
        cascade="all, delete-orphan",
        lazy="selectin",
        back_populates="sale",
    )

    def __repr__(self) -> str:
        return f"<Sale sale_id={self.sale_id!r} total_cents={self.total_cents}>"

    def to_dict(self) -> dict:
        return {
            "sale_id": self.sale_id,
            "items": [line.to_dict() for line in self.lines],
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "amount_received_cents": self.amount_received_cents,
            "reference_number": self.reference_number,
            "inventory_consumed": list(self.inventory_consumed or []),
            "created_at": to_utc_z(self.created_at),
        }


class SaleLine(db.Model):
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "position", name="uq_sale_lines_position"),
        db.Index("ix_sale_lines_sku", "sku"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.String(40), db.ForeignKey("sales.sale_id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.String(64), nullable=True)
    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    # Price snapshot at time of sale
    price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    has_recipe = db.Column(db.Boolean, nullable=False, default=False)
    recipe_id = db.Column(db.String(64), nullable=True)

    sale = db.relationship("Sale", back_populates="lines")

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "sku": self.sku,
            "name": self.name,
            "price_cents": self.price_cents,
            "quantity": self.quantity,
            "has_recipe": self.has_recipe,
            "recipe_id": self.recipe_id,
        }
