# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/brewpos/routes/sales.py
"""
Checkout and sales history routes.

POST /checkout answers 201 whenever the sale was recorded, including the
degraded case where inventory could not be updated; clients read "degraded"
and "reason" from the body. Only a failure to record the sale at all is a 500.
"""

from flask import Blueprint, request, jsonify
from flask import current_app

from ..services import sales_service
from ..services.sales_service import PaymentDetails, SaleError, SaleProcessor
from ..time_utils import DATE_RANGES
from ..validation import ValidationError, parse_cart_lines, parse_payment


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _parse_checkout(data: dict):
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    lines = parse_cart_lines(data.get("items"))
    payment = PaymentDetails(**parse_payment(data))
    cart = sales_service.build_cart(lines)
    return cart, payment


@sales_bp.post("/quote")
def quote_route():
    """
    Price a cart with checkout tax and validate the payment, without recording anything.

    Body: {"items": [{"sku", "quantity"}], "payment_method", "amount_received_cents", "reference_number"}
    """
    try:
        cart, payment = _parse_checkout(request.get_json(silent=True) or {})
        quote = sales_service.quote_checkout(cart, payment)
        return jsonify({"quote": quote.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400


@sales_bp.post("/checkout")
def checkout_route():
    """
    Record a sale and consume recipe ingredients.

    Prices come from the catalog; the cash/GCash checks of /quote apply first.
    """
    try:
        cart, payment = _parse_checkout(request.get_json(silent=True) or {})
        quote = sales_service.quote_checkout(cart, payment)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400

    try:
        result = SaleProcessor().process_sale(cart, payment)
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500

    if result.degraded:
        current_app.logger.warning(
            "Sale %s recorded without inventory deduction: %s", result.sale_id, result.reason,
        )

    return jsonify({**result.to_dict(), "quote": quote.to_dict()}), 201


@sales_bp.get("")
def list_sales_route():
    """
    Query params:
    - range: today | week | month (optional, default all)
    - limit: int (optional)
    """
    date_range = request.args.get("range")
    if date_range and date_range not in DATE_RANGES:
        return jsonify({"error": "range must be today, week, or month"}), 400

    limit = request.args.get("limit", type=int)
    if limit is not None and limit <= 0:
        return jsonify({"error": "limit must be > 0"}), 400
    sales = sales_service.list_sales(date_range=date_range, limit=limit)
    return jsonify({"sales": [sale.to_dict() for sale in sales]}), 200


@sales_bp.get("/<sale_id>")
def get_sale_route(sale_id: str):
    sale = sales_service.get_sale(sale_id)
    if sale is None:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"sale": sale.to_dict()}), 200
