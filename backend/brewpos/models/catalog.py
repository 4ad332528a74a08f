from __future__ import annotations

from decimal import Decimal
from enum import Enum

from ..extensions import db
from ..quantities import quantity_to_json
from ..time_utils import to_utc_z


class CatalogStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Product(db.Model):
    """
    Sellable catalog entry, keyed by SKU.

    RECIPE LINK:
    has_recipe=True means every sale of this product consumes raw materials
    through the recipe referenced by recipe_id. Recipe ids share the product
    SKU identifier space, so recipe_id is normally equal to sku.
    The link is checked by the products service on create/update rather than
    by a foreign key, so products and recipes can be loaded in either order.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_status_name", "category", "status", "name"),
        db.Index("ix_products_has_recipe", "has_recipe", "status"),
    )

    sku = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=False, default=0)

    category = db.Column(db.String(64), nullable=False, default="Beverage")
    subcategory = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(16), nullable=False, default=CatalogStatus.ACTIVE.value)

    has_recipe = db.Column(db.Boolean, nullable=False, default=False)
    recipe_id = db.Column(db.String(64), nullable=True)

    preparation_time = db.Column(db.Integer, nullable=False, default=0)  # minutes
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product sku={self.sku!r} name={self.name!r} has_recipe={self.has_recipe}>"

    def to_dict(self) -> dict:
        return {
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "price_cents": self.price_cents,
            "cost_cents": self.cost_cents,
            "category": self.category,
            "subcategory": self.subcategory,
            "status": self.status,
            "has_recipe": self.has_recipe,
            "recipe_id": self.recipe_id,
            "preparation_time": self.preparation_time,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Recipe(db.Model):
    """
    Bill of materials for one product.

    Keyed by the product SKU (one recipe per product). Ingredient quantities
    are the amount of inventory consumed per single unit of product sold;
    yield_quantity is informational and does not scale consumption.
    """
    __tablename__ = "recipes"
    __table_args__ = (
        db.Index("ix_recipes_category_name", "category", "name"),
    )

    id = db.Column(db.String(64), primary_key=True)
    product_sku = db.Column(db.String(64), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    yield_quantity = db.Column(db.Numeric(14, 4), nullable=False, default=Decimal("1"))
    preparation_time = db.Column(db.Integer, nullable=False, default=0)  # minutes
    instructions = db.Column(db.Text, nullable=True)
    cost_per_unit_cents = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=CatalogStatus.ACTIVE.value)
    category = db.Column(db.String(64), nullable=False, default="Beverage")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    ingredients = db.relationship(
        "RecipeIngredient",
        order_by="RecipeIngredient.position",
        cascade="all, delete-orphan",
        lazy="selectin",
        back_populates="recipe",
    )

    def __repr__(self) -> str:
        return f"<Recipe id={self.id!r} name={self.name!r} ingredients={len(self.ingredients)}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_sku": self.product_sku,
            "product_name": self.product_name,
            "name": self.name,
            "description": self.description,
            "ingredients": [i.to_dict() for i in self.ingredients],
            "yield": quantity_to_json(self.yield_quantity),
            "preparation_time": self.preparation_time,
            "instructions": self.instructions,
            "cost_per_unit_cents": self.cost_per_unit_cents,
            "status": self.status,
            "category": self.category,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class RecipeIngredient(db.Model):
    __tablename__ = "recipe_ingredients"
    __table_args__ = (
        db.UniqueConstraint("recipe_id", "position", name="uq_recipe_ingredients_position"),
        db.Index("ix_recipe_ingredients_sku", "sku"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.String(64), db.ForeignKey("recipes.id"), nullable=False, index=True)

    # Cart-style ordering: consumption walks ingredients in this order
    position = db.Column(db.Integer, nullable=False)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Numeric(14, 4), nullable=False)
    unit = db.Column(db.String(32), nullable=False)

    recipe = db.relationship("Recipe", back_populates="ingredients")

    def to_dict(self) -> dict:
        return {
            "sku": self.sku,
            "name": self.name,
            "quantity": quantity_to_json(self.quantity),
            "unit": self.unit,
        }
