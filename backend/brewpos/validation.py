from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from brewpos.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .quantities import to_quantity


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

MAX_CART_QUANTITY = 10_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Stock levels and recipe quantities (fractional units like 0.01 kg)
    if isinstance(coltype, Numeric):
        try:
            return to_quantity(value)
        except ValueError:
            raise ValidationError(f"{col.key} must be a number")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable and col.default is None:
                raise ValidationError(f"{k} cannot be null")
            if not col.nullable:
                # Let the column default apply
                continue
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _require_non_negative(patch: dict, field: str) -> None:
    value = patch.get(field)
    if value is not None and value < 0:
        raise ValidationError(f"{field} must be >= 0")


def _require_choice(patch: dict, field: str, choices) -> None:
    value = patch.get(field)
    if value is not None and value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for field in ("price_cents", "cost_cents"):
        if field in patch and patch[field] is not None:
            value = patch[field]
            if value < 0:
                raise ValidationError(f"{field} must be >= 0")
            if value > MAX_PRICE_CENTS:
                raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS} ({MAX_PRICE_CENTS / 100:,.2f})")
    _require_non_negative(patch, "preparation_time")
    _require_choice(patch, "status", ("active", "inactive"))

    if patch.get("has_recipe") is False and patch.get("recipe_id"):
        raise ValidationError("recipe_id must be omitted when has_recipe is false")


def enforce_rules_inventory_item(patch: dict) -> None:
    for field in ("current_stock", "cost_per_unit_cents", "min_stock_level", "max_stock_level"):
        _require_non_negative(patch, field)
    if "cost_per_unit_cents" in patch and patch["cost_per_unit_cents"] is not None:
        if patch["cost_per_unit_cents"] > MAX_PRICE_CENTS:
            raise ValidationError(f"cost_per_unit_cents cannot exceed {MAX_PRICE_CENTS}")

    check_stock_levels(patch.get("min_stock_level"), patch.get("max_stock_level"))


def check_stock_levels(min_stock_level, max_stock_level) -> None:
    """Effective levels (payload, stored or default) must keep min <= max."""
    if min_stock_level is not None and max_stock_level is not None and min_stock_level > max_stock_level:
        raise ValidationError("min_stock_level cannot exceed max_stock_level")


def enforce_rules_recipe(patch: dict) -> None:
    _require_non_negative(patch, "cost_per_unit_cents")
    _require_non_negative(patch, "preparation_time")
    _require_choice(patch, "status", ("active", "inactive"))
    if "yield_quantity" in patch and patch["yield_quantity"] is not None:
        if patch["yield_quantity"] <= 0:
            raise ValidationError("yield must be > 0")


def parse_ingredients(raw) -> list[dict]:
    """
    Validate an ordered ingredient list: [{sku, name, quantity, unit}, ...].

    Order is preserved exactly as given; quantity must be a positive number.
    """
    if not isinstance(raw, list):
        raise ValidationError("ingredients must be a list")

    cleaned = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError(f"ingredients[{index}] must be an object")
        sku = str(entry.get("sku") or "").strip()
        if not sku:
            raise ValidationError(f"ingredients[{index}].sku is required")
        try:
            quantity = to_quantity(entry.get("quantity"))
        except ValueError:
            raise ValidationError(f"ingredients[{index}].quantity must be a number")
        if quantity <= 0:
            raise ValidationError(f"ingredients[{index}].quantity must be > 0")
        unit = str(entry.get("unit") or "").strip()
        if not unit:
            raise ValidationError(f"ingredients[{index}].unit is required")
        cleaned.append({
            "sku": sku,
            "name": str(entry.get("name") or sku).strip(),
            "quantity": quantity,
            "unit": unit,
        })
    return cleaned


def parse_adjustment(payload: dict) -> tuple[Decimal, str, str]:
    """Validate a manual stock adjustment request -> (quantity, operation, reason)."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    if "quantity" not in payload:
        raise ValidationError("quantity is required")
    try:
        quantity = to_quantity(payload["quantity"])
    except ValueError:
        raise ValidationError("quantity must be a number")
    if quantity < 0:
        raise ValidationError("quantity must be >= 0")

    operation = payload.get("operation", "add")
    if operation not in ("add", "subtract", "set"):
        raise ValidationError("operation must be add, subtract, or set")

    reason = str(payload.get("reason") or "manual").strip()[:255]
    return quantity, operation, reason


def parse_cart_lines(raw) -> list[tuple[str, int]]:
    """Validate checkout lines: [{sku, quantity}, ...] -> [(sku, quantity), ...]."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError("items must be a non-empty list")

    lines = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError(f"items[{index}] must be an object")
        sku = str(entry.get("sku") or "").strip()
        if not sku:
            raise ValidationError(f"items[{index}].sku is required")
        quantity = entry.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"items[{index}].quantity must be an integer")
        if quantity <= 0 or quantity > MAX_CART_QUANTITY:
            raise ValidationError(f"items[{index}].quantity must be between 1 and {MAX_CART_QUANTITY}")
        lines.append((sku, quantity))
    return lines


def parse_payment(payload: dict) -> dict:
    """Validate payment details -> {payment_method, amount_received_cents, reference_number}."""
    method = payload.get("payment_method")
    if method not in ("Cash", "Card", "GCash"):
        raise ValidationError("payment_method must be Cash, Card, or GCash")

    amount = payload.get("amount_received_cents", 0)
    if amount is None:
        amount = 0
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("amount_received_cents must be an integer")
    if amount < 0:
        raise ValidationError("amount_received_cents must be >= 0")

    reference = str(payload.get("reference_number") or "").strip()
    if len(reference) > 64:
        raise ValidationError("reference_number exceeds max length 64")

    return {
        "payment_method": method,
        "amount_received_cents": amount,
        "reference_number": reference,
    }
