from flask import Blueprint, jsonify, request

from brewpos.services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
def dashboard_report():
    return jsonify(reporting_service.dashboard()), 200


@reports_bp.get("/recent-transactions")
def recent_transactions_report():
    limit = request.args.get("limit", 5, type=int)
    if limit <= 0:
        return jsonify({"error": "limit must be > 0"}), 400
    return jsonify({"transactions": reporting_service.recent_transactions(limit=limit)}), 200


@reports_bp.get("/top-products")
def top_products_report():
    limit = request.args.get("limit", 5, type=int)
    date_range = request.args.get("range", "month")

    try:
        rows = reporting_service.top_selling_products(limit=limit, date_range=date_range)
        return jsonify({"range": date_range, "products": rows}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/inventory-consumption")
def inventory_consumption_report():
    date_range = request.args.get("range", "month")

    try:
        rows = reporting_service.inventory_consumption_report(date_range=date_range)
        return jsonify({"range": date_range, "ingredients": rows}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/sales-trend")
def sales_trend_report():
    days = request.args.get("days", 7, type=int)

    try:
        return jsonify({"days": days, "trend": reporting_service.sales_trend(days=days)}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
