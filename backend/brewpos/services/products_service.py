# backend/brewpos/services/products_service.py
"""
Products Service

Catalog entries for sellable products. A product either stands alone
(bottled water, canned soda) or links to the recipe that is consumed from
inventory every time it is sold.

RECIPE LINK INVARIANT:
- has_recipe=True requires recipe_id, and recipe_id must resolve to a recipe
  whose product_sku is this product's SKU.
- has_recipe=False forces recipe_id to None.
Checked on create and on every update that touches either field.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, ValidationError
from .recipe_service import AvailabilityChecker, IngredientShortage, RecipeStore

PRODUCT_MUTABLE_FIELDS = {
    "name", "description", "price_cents", "cost_cents", "category", "subcategory",
    "status", "has_recipe", "recipe_id", "preparation_time", "notes",
}


class ProductError(Exception):
    """Raised for product operation errors."""


class ProductNotFound(ProductError, LookupError):
    def __init__(self, sku: str):
        super().__init__(f"Product {sku} not found")
        self.sku = sku


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


class ProductStore:
    def __init__(self, session=None, *, recipes: RecipeStore | None = None):
        self.session = session or db.session
        self.recipes = recipes or RecipeStore(self.session)

    def get(self, sku: str) -> Product | None:
        return self.session.get(Product, sku)

    def require(self, sku: str) -> Product:
        product = self.get(sku)
        if product is None:
            raise ProductNotFound(sku)
        return product

    def list(
        self,
        *,
        category: str | None = None,
        has_recipe: bool | None = None,
        status: str | None = None,
    ) -> list[Product]:
        query = self.session.query(Product)
        if category:
            query = query.filter(Product.category == category)
        if has_recipe is not None:
            query = query.filter(Product.has_recipe == has_recipe)
        if status:
            query = query.filter(Product.status == status)
        return query.order_by(Product.name.asc(), Product.sku.asc()).all()

    def search(self, term: str) -> list[Product]:
        """Case-insensitive substring match on name, SKU, description and category."""
        term = (term or "").strip()
        if not term:
            return []
        pattern = f"%{term}%"
        return (
            self.session.query(Product)
            .filter(or_(
                Product.name.ilike(pattern),
                Product.sku.ilike(pattern),
                Product.description.ilike(pattern),
                Product.category.ilike(pattern),
            ))
            .order_by(Product.name.asc())
            .all()
        )

    def _check_recipe_link(self, sku: str, has_recipe: bool, recipe_id: str | None) -> str | None:
        if not has_recipe:
            return None
        if not recipe_id:
            raise ValidationError("recipe_id is required when has_recipe is true")
        recipe = self.recipes.get_by_id(recipe_id)
        if recipe is None:
            raise ValidationError(f"Recipe {recipe_id} not found")
        if recipe.product_sku != sku:
            raise ValidationError(
                f"Recipe {recipe_id} belongs to product {recipe.product_sku}, not {sku}"
            )
        return recipe_id

    def add(self, fields: dict) -> Product:
        sku = fields["sku"]
        if self.get(sku) is not None:
            raise ConflictError(f"Product with SKU {sku} already exists")

        has_recipe = bool(fields.get("has_recipe"))
        product = Product(
            sku=sku,
            has_recipe=has_recipe,
            recipe_id=self._check_recipe_link(sku, has_recipe, fields.get("recipe_id")),
        )
        apply_product_patch(product, {
            k: v for k, v in fields.items()
            if k not in ("has_recipe", "recipe_id") and v is not None
        })

        self.session.add(product)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError(f"Product with SKU {sku} already exists")
        return product

    def update(self, sku: str, patch: dict) -> Product:
        product = self.require(sku)
        if "has_recipe" in patch or "recipe_id" in patch:
            has_recipe = patch.get("has_recipe", product.has_recipe)
            recipe_id = patch.get("recipe_id", product.recipe_id)
            patch = {**patch, "recipe_id": self._check_recipe_link(sku, has_recipe, recipe_id)}

        apply_product_patch(product, patch)
        self.session.commit()
        return product

    def delete(self, sku: str) -> None:
        product = self.require(sku)
        self.session.delete(product)
        self.session.commit()

    def get_with_recipe(self, sku: str) -> dict | None:
        product = self.get(sku)
        if product is None:
            return None
        data = product.to_dict()
        if product.has_recipe and product.recipe_id:
            recipe = self.recipes.get_by_id(product.recipe_id)
            data["recipe"] = recipe.to_dict() if recipe else None
        return data


@dataclass(frozen=True)
class ProductAvailability:
    available: bool
    can_make: int
    reason: str
    missing_ingredients: list[IngredientShortage] = field(default_factory=list)
    insufficient_ingredients: list[IngredientShortage] = field(default_factory=list)
    total_cost_cents: int | None = None

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "can_make": self.can_make,
            "reason": self.reason,
            "missing_ingredients": [m.to_dict() for m in self.missing_ingredients],
            "insufficient_ingredients": [i.to_dict() for i in self.insufficient_ingredients],
            "total_cost_cents": self.total_cost_cents,
        }


def check_product_availability(
    product_sku: str,
    quantity: int = 1,
    *,
    products: ProductStore | None = None,
    checker: AvailabilityChecker | None = None,
) -> ProductAvailability:
    """
    Whether `quantity` units of a product can be made from current stock.

    Products without a recipe are always available.
    """
    products = products or ProductStore()
    checker = checker or AvailabilityChecker(products.recipes)

    product = products.require(product_sku)
    if not product.has_recipe:
        return ProductAvailability(
            available=True,
            can_make=quantity,
            reason="Simple product - no recipe required",
        )

    if checker.recipes.get_by_id(product.recipe_id) is None:
        return ProductAvailability(available=False, can_make=0, reason="Recipe not found")

    result = checker.check_availability(product.recipe_id, quantity)
    return ProductAvailability(
        available=result.can_make,
        can_make=quantity if result.can_make else 0,
        reason="All ingredients available" if result.can_make else "Insufficient ingredients",
        missing_ingredients=result.missing_ingredients,
        insufficient_ingredients=result.insufficient_ingredients,
        total_cost_cents=result.total_cost_cents,
    )
