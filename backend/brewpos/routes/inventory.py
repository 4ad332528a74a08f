# backend/brewpos/routes/inventory.py
"""
Inventory (raw material) routes.

Stock movements go through POST /<sku>/adjust so every change leaves an
adjustment log entry. PATCH edits item metadata (and may correct stock) but
writes no log entry. status is derived and never accepted from clients.
"""
from flask import Blueprint, current_app, request

from ..models import InventoryItem
from ..quantities import quantity_to_json
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
    enforce_rules_inventory_item,
    parse_adjustment,
)
from ..services.inventory_service import InventoryStore, InventoryItemNotFound


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

INVENTORY_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku",
        "name",
        "current_stock",
        "unit",
        "cost_per_unit_cents",
        "min_stock_level",
        "max_stock_level",
        "category",
        "supplier",
        "location",
        "notes",
    },
    required_on_create={"sku", "name", "unit"},
)


@inventory_bp.get("")
def list_inventory_route():
    """
    List inventory items ordered by name.

    Query params:
    - category: str (optional)
    """
    category = request.args.get("category")
    items = InventoryStore().list(category=category)
    return {"items": [item.to_dict() for item in items]}


@inventory_bp.get("/low-stock")
def low_stock_route():
    """Items at or below their minimum, lowest stock first."""
    items = InventoryStore().list_low_stock()
    return {"items": [item.to_dict() for item in items], "count": len(items)}


@inventory_bp.get("/adjustments")
def list_adjustments_route():
    """
    Adjustment history, newest first.

    Query params:
    - sku: str (optional)
    - limit: int (optional, default ADJUSTMENT_HISTORY_LIMIT)
    """
    sku = request.args.get("sku")
    limit = request.args.get("limit", type=int)
    if limit is not None and limit <= 0:
        return {"error": "limit must be > 0"}, 400

    rows = InventoryStore().list_adjustments(sku=sku, limit=limit)
    return {"adjustments": [row.to_dict() for row in rows]}


@inventory_bp.post("")
def create_inventory_item_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=InventoryItem,
            payload=payload,
            policy=INVENTORY_ITEM_POLICY,
            partial=False,
        )
        enforce_rules_inventory_item(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        item = InventoryStore().add(patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValidationError as e:
        return {"error": str(e)}, 400

    return item.to_dict(), 201


@inventory_bp.get("/<sku>")
def get_inventory_item_route(sku: str):
    item = InventoryStore().get(sku)
    if item is None:
        return {"error": f"Inventory item with SKU {sku} not found"}, 404
    return item.to_dict()


@inventory_bp.patch("/<sku>")
def update_inventory_item_route(sku: str):
    payload = request.get_json(silent=True) or {}
    if "sku" in payload:
        return {"error": "sku cannot be changed"}, 400

    try:
        patch = validate_payload(
            model=InventoryItem,
            payload=payload,
            policy=INVENTORY_ITEM_POLICY,
            partial=True,
        )
        enforce_rules_inventory_item(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    store = InventoryStore()
    try:
        item = store.update(sku, patch)
    except InventoryItemNotFound as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to update inventory item %s", sku)
        return {"error": "Failed to update inventory item"}, 500

    return item.to_dict()


@inventory_bp.delete("/<sku>")
def delete_inventory_item_route(sku: str):
    try:
        InventoryStore().delete(sku)
    except InventoryItemNotFound as e:
        return {"error": str(e)}, 404
    return {"ok": True}, 200


@inventory_bp.post("/<sku>/adjust")
def adjust_inventory_route(sku: str):
    """
    Adjust stock for one item.

    Body: {"quantity": number >= 0, "operation": "add"|"subtract"|"set", "reason": str}
    subtract floors at zero rather than failing.
    """
    payload = request.get_json(silent=True) or {}

    try:
        quantity, operation, reason = parse_adjustment(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    store = InventoryStore()
    try:
        new_stock = store.adjust(sku, quantity, operation=operation, reason=reason, adjusted_by="api")
    except InventoryItemNotFound as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to adjust inventory for %s", sku)
        return {"error": "Failed to adjust inventory"}, 500

    item = store.require(sku)
    return {
        "sku": sku,
        "new_stock": quantity_to_json(new_stock),
        "status": item.status,
        "item": item.to_dict(),
    }, 200
