# Overview: Recipe (bill of materials) store and the ingredient availability checker.

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Recipe, RecipeIngredient
from ..quantities import ZERO, quantity_to_json, round_cents, to_quantity
from ..validation import ConflictError, ValidationError
from .inventory_service import InventoryStore


RECIPE_MUTABLE_FIELDS = {
    "name", "product_name", "description", "yield_quantity", "preparation_time",
    "instructions", "cost_per_unit_cents", "status", "category", "notes",
}


class RecipeError(Exception):
    """Raised for recipe operation errors."""


class RecipeNotFound(RecipeError, LookupError):
    def __init__(self, recipe_id: str):
        super().__init__(f"Recipe {recipe_id} not found")
        self.recipe_id = recipe_id


def _ingredient_rows(ingredients: list[dict]) -> list[RecipeIngredient]:
    rows = []
    for position, ingredient in enumerate(ingredients):
        quantity = to_quantity(ingredient["quantity"])
        if quantity <= 0:
            raise ValidationError(f"ingredient {ingredient['sku']} quantity must be > 0")
        rows.append(RecipeIngredient(
            position=position,
            sku=ingredient["sku"],
            name=ingredient.get("name") or ingredient["sku"],
            quantity=quantity,
            unit=ingredient["unit"],
        ))
    return rows


class RecipeStore:
    """Recipes keyed by product SKU; the recipe id and the product SKU are the same value."""

    def __init__(self, session=None):
        self.session = session or db.session

    def get_by_id(self, recipe_id: str) -> Recipe | None:
        if not recipe_id:
            return None
        return self.session.get(Recipe, recipe_id)

    def get_by_product_sku(self, product_sku: str) -> Recipe | None:
        return self.get_by_id(product_sku)

    def require(self, recipe_id: str) -> Recipe:
        recipe = self.get_by_id(recipe_id)
        if recipe is None:
            raise RecipeNotFound(recipe_id)
        return recipe

    def list(self) -> list[Recipe]:
        return self.session.query(Recipe).order_by(Recipe.name.asc()).all()

    def list_by_category(self, category: str) -> list[Recipe]:
        return (
            self.session.query(Recipe)
            .filter(Recipe.category == category)
            .order_by(Recipe.name.asc())
            .all()
        )

    def list_by_ingredient(self, ingredient_sku: str) -> list[Recipe]:
        return (
            self.session.query(Recipe)
            .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
            .filter(RecipeIngredient.sku == ingredient_sku)
            .distinct()
            .order_by(Recipe.name.asc())
            .all()
        )

    def add(self, fields: dict, ingredients: list[dict]) -> Recipe:
        """
        Create the recipe for fields["product_sku"]; the SKU becomes the recipe id.

        Ingredient order is stored as given and is the order consumption runs in.
        """
        product_sku = fields["product_sku"]
        if self.get_by_id(product_sku) is not None:
            raise ConflictError(f"Recipe for product {product_sku} already exists")

        recipe = Recipe(
            id=product_sku,
            product_sku=product_sku,
            product_name=fields.get("product_name") or fields["name"],
            name=fields["name"],
            description=fields.get("description"),
            yield_quantity=fields.get("yield_quantity") or Decimal("1"),
            preparation_time=fields.get("preparation_time") or 0,
            instructions=fields.get("instructions"),
            cost_per_unit_cents=fields.get("cost_per_unit_cents") or 0,
            status=fields.get("status") or "active",
            category=fields.get("category") or "Beverage",
            notes=fields.get("notes"),
        )
        recipe.ingredients = _ingredient_rows(ingredients)

        self.session.add(recipe)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError(f"Recipe for product {product_sku} already exists")
        return recipe

    def update(self, recipe_id: str, patch: dict, ingredients: list[dict] | None = None) -> Recipe:
        """Partial update; a given ingredient list replaces the old one wholesale."""
        recipe = self.require(recipe_id)
        for key, value in patch.items():
            if key in RECIPE_MUTABLE_FIELDS:
                setattr(recipe, key, value)

        if ingredients is not None:
            # Flush the removals first so positions can be reused
            recipe.ingredients.clear()
            self.session.flush()
            recipe.ingredients.extend(_ingredient_rows(ingredients))

        self.session.commit()
        return recipe

    def delete(self, recipe_id: str) -> None:
        """Refuses while a recipe product still points at this recipe."""
        recipe = self.require(recipe_id)
        linked = [
            sku for (sku,) in self.session.query(Product.sku)
            .filter(Product.has_recipe.is_(True), Product.recipe_id == recipe_id)
            .order_by(Product.sku)
        ]
        if linked:
            raise ConflictError(
                f"Recipe {recipe_id} is used by products: {', '.join(linked)}"
            )
        self.session.delete(recipe)
        self.session.commit()

    def calculate_cost(self, recipe_id: str, inventory: InventoryStore | None = None) -> int:
        """
        Ingredient cost of one unit in cents.

        Ingredients whose inventory record is missing contribute nothing.
        """
        recipe = self.require(recipe_id)
        inventory = inventory or InventoryStore(self.session)

        total = ZERO
        for ingredient in recipe.ingredients:
            item = inventory.get(ingredient.sku)
            if item is not None:
                total += item.cost_per_unit_cents * to_quantity(ingredient.quantity)
        return round_cents(total)


@dataclass(frozen=True)
class IngredientShortage:
    sku: str
    name: str
    required: Decimal
    available: Decimal
    shortfall: Decimal | None = None

    def to_dict(self) -> dict:
        data = {
            "sku": self.sku,
            "name": self.name,
            "required": quantity_to_json(self.required),
            "available": quantity_to_json(self.available),
        }
        if self.shortfall is not None:
            data["shortfall"] = quantity_to_json(self.shortfall)
        return data


@dataclass(frozen=True)
class AvailabilityResult:
    can_make: bool
    missing_ingredients: list[IngredientShortage] = field(default_factory=list)
    insufficient_ingredients: list[IngredientShortage] = field(default_factory=list)
    total_cost_cents: int = 0

    def to_dict(self) -> dict:
        return {
            "can_make": self.can_make,
            "missing_ingredients": [m.to_dict() for m in self.missing_ingredients],
            "insufficient_ingredients": [i.to_dict() for i in self.insufficient_ingredients],
            "total_cost_cents": self.total_cost_cents,
        }


class AvailabilityChecker:
    """
    Advisory stock check for making `quantity` units of a recipe.

    Consumption does not call this; a caller that wants to block sales on
    insufficient stock must check first.
    """

    def __init__(self, recipes: RecipeStore | None = None, inventory: InventoryStore | None = None):
        self.recipes = recipes or RecipeStore()
        self.inventory = inventory or InventoryStore(self.recipes.session)

    def check_availability(self, recipe_id: str, quantity=1) -> AvailabilityResult:
        recipe = self.recipes.require(recipe_id)
        quantity = to_quantity(quantity)

        missing, insufficient = [], []
        total_cost = ZERO

        for ingredient in recipe.ingredients:
            required = to_quantity(ingredient.quantity) * quantity
            item = self.inventory.get(ingredient.sku)
            if item is None:
                missing.append(IngredientShortage(
                    sku=ingredient.sku,
                    name=ingredient.name,
                    required=required,
                    available=ZERO,
                ))
                continue

            available = to_quantity(item.current_stock)
            if available < required:
                insufficient.append(IngredientShortage(
                    sku=ingredient.sku,
                    name=ingredient.name,
                    required=required,
                    available=available,
                    shortfall=required - available,
                ))

            # Cost reflects full theoretical consumption, sufficient or not
            total_cost += item.cost_per_unit_cents * required

        return AvailabilityResult(
            can_make=not missing and not insufficient,
            missing_ingredients=missing,
            insufficient_ingredients=insufficient,
            total_cost_cents=round_cents(total_cost),
        )
