# backend/brewpos/routes/recipes.py
"""
Recipe (bill of materials) routes.

Recipes are keyed by the product SKU they belong to. Ingredient lists are
ordered; the order given on create/update is the order consumption runs in.
The JSON field "yield" maps to the yield_quantity column.
"""
from flask import Blueprint, current_app, request

from ..models import Recipe
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_recipe,
    parse_ingredients,
    ValidationError,
    ConflictError,
)
from ..services.recipe_service import AvailabilityChecker, RecipeNotFound, RecipeStore


recipes_bp = Blueprint("recipes", __name__, url_prefix="/api/recipes")

RECIPE_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_sku",
        "product_name",
        "name",
        "description",
        "yield_quantity",
        "preparation_time",
        "instructions",
        "cost_per_unit_cents",
        "status",
        "category",
        "notes",
    },
    required_on_create={"product_sku", "name"},
)


def _split_payload(payload: dict) -> tuple[dict, list[dict] | None]:
    """Separate the ingredient list and rename "yield" before column validation."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    fields = dict(payload)
    raw_ingredients = fields.pop("ingredients", None)
    if "yield" in fields:
        fields["yield_quantity"] = fields.pop("yield")
    ingredients = parse_ingredients(raw_ingredients) if raw_ingredients is not None else None
    return fields, ingredients


@recipes_bp.get("")
def list_recipes_route():
    """
    Query params:
    - category: str (optional)
    - ingredient: inventory SKU (optional) - recipes that use it
    """
    store = RecipeStore()
    category = request.args.get("category")
    ingredient = request.args.get("ingredient")

    if ingredient:
        recipes = store.list_by_ingredient(ingredient)
        if category:
            recipes = [r for r in recipes if r.category == category]
    elif category:
        recipes = store.list_by_category(category)
    else:
        recipes = store.list()

    return {"items": [r.to_dict() for r in recipes]}


@recipes_bp.post("")
def create_recipe_route():
    payload = request.get_json(silent=True) or {}

    try:
        fields, ingredients = _split_payload(payload)
        if ingredients is None:
            raise ValidationError("Missing required fields: ingredients")
        patch = validate_payload(model=Recipe, payload=fields, policy=RECIPE_POLICY, partial=False)
        enforce_rules_recipe(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        recipe = RecipeStore().add(patch, ingredients)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValidationError as e:
        return {"error": str(e)}, 400

    return recipe.to_dict(), 201


@recipes_bp.get("/<recipe_id>")
def get_recipe_route(recipe_id: str):
    recipe = RecipeStore().get_by_id(recipe_id)
    if recipe is None:
        return {"error": f"Recipe {recipe_id} not found"}, 404
    return recipe.to_dict()


@recipes_bp.patch("/<recipe_id>")
def update_recipe_route(recipe_id: str):
    """Partial update; an "ingredients" list replaces the existing list in full."""
    payload = request.get_json(silent=True) or {}
    if "product_sku" in payload or "id" in payload:
        return {"error": "product_sku cannot be changed"}, 400

    try:
        fields, ingredients = _split_payload(payload)
        patch = validate_payload(model=Recipe, payload=fields, policy=RECIPE_POLICY, partial=True)
        enforce_rules_recipe(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        recipe = RecipeStore().update(recipe_id, patch, ingredients=ingredients)
    except RecipeNotFound as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400

    return recipe.to_dict(), 200


@recipes_bp.delete("/<recipe_id>")
def delete_recipe_route(recipe_id: str):
    try:
        RecipeStore().delete(recipe_id)
    except RecipeNotFound as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"ok": True}, 200


@recipes_bp.get("/<recipe_id>/availability")
def recipe_availability_route(recipe_id: str):
    """
    Advisory check; nothing is reserved or deducted.

    Query params:
    - quantity: int (optional, default 1)
    """
    quantity = request.args.get("quantity", 1, type=int)
    if quantity is None or quantity <= 0:
        return {"error": "quantity must be a positive integer"}, 400

    try:
        result = AvailabilityChecker().check_availability(recipe_id, quantity)
    except RecipeNotFound as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Availability check failed for recipe %s", recipe_id)
        return {"error": "Availability check failed"}, 500

    return {"recipe_id": recipe_id, "quantity": quantity, **result.to_dict()}, 200


@recipes_bp.get("/<recipe_id>/cost")
def recipe_cost_route(recipe_id: str):
    """Ingredient cost of one unit at current inventory prices."""
    try:
        cost = RecipeStore().calculate_cost(recipe_id)
    except RecipeNotFound as e:
        return {"error": str(e)}, 404

    return {"recipe_id": recipe_id, "cost_cents": cost}, 200
