# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/brewpos/routes/products.py
"""
Product catalog routes.

A product either sells as-is or links to its recipe (has_recipe + recipe_id).
The link is validated by the products service; a product cannot point at a
recipe that does not exist or that belongs to another SKU.
"""
from flask import Blueprint, current_app, request
from ..services.products_service import (
    ProductStore,
    ProductNotFound,
    check_product_availability,
)
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku",
        "name",
        "description",
        "price_cents",
        "cost_cents",
        "category",
        "subcategory",
        "status",
        "has_recipe",
        "recipe_id",
        "preparation_time",
        "notes",
    },
    required_on_create={"sku", "name", "price_cents"},
)

# NOTE: MAX_PRICE_CENTS is defined in validation.py and enforced by enforce_rules_product()

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None:
        return None
    return raw.strip().lower() in ("1", "true", "yes")


@products_bp.get("")
def list_products():
    """
    List products ordered by name.

    Query params:
    - category: str (optional)
    - has_recipe: bool (optional)
    - status: active | inactive (optional)
    """
    products = ProductStore().list(
        category=request.args.get("category"),
        has_recipe=_bool_arg("has_recipe"),
        status=request.args.get("status"),
    )
    return {"items": [p.to_dict() for p in products]}


@products_bp.get("/search")
def search_products():
    """Case-insensitive search over name, SKU, description and category (?q=)."""
    term = request.args.get("q", "")
    products = ProductStore().search(term)
    return {"items": [p.to_dict() for p in products], "query": term}


@products_bp.post("")
def create_product_route():
    """Create a product; recipe_id must reference this SKU's recipe when has_recipe is true."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)  # Handles price validation including max check
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = ProductStore().add(patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created.to_dict(), 201


@products_bp.get("/<sku>")
def get_product_route(sku: str):
    """Product with its recipe embedded (recipe is null when the link is broken)."""
    product = ProductStore().get_with_recipe(sku)
    if product is None:
        return {"error": f"Product {sku} not found"}, 404
    return product


@products_bp.delete("/<sku>")
def delete_product_route(sku: str):
    try:
        ProductStore().delete(sku)
    except ProductNotFound as e:
        return {"error": str(e)}, 404

    return {"ok": True}, 200


@products_bp.patch("/<sku>")
def update_product_route(sku: str):
    payload = request.get_json(silent=True) or {}
    if "sku" in payload:
        return {"error": "sku cannot be changed"}, 400

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)  # Handles price validation including max check
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = ProductStore().update(sku, patch)
    except ProductNotFound as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400

    return updated.to_dict(), 200


@products_bp.get("/<sku>/availability")
def product_availability_route(sku: str):
    """
    Whether `quantity` units can be made from current stock.

    Query params:
    - quantity: int (optional, default 1)
    """
    quantity = request.args.get("quantity", 1, type=int)
    if quantity is None or quantity <= 0:
        return {"error": "quantity must be a positive integer"}, 400

    try:
        result = check_product_availability(sku, quantity)
    except ProductNotFound as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Availability check failed for product %s", sku)
        return {"error": "Availability check failed"}, 500

    return {"sku": sku, "quantity": quantity, **result.to_dict()}, 200
