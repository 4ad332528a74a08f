# Overview: Read-side aggregations behind the dashboard and reports screens.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from brewpos.extensions import db
from brewpos.models import InventoryItem, Product, Sale, SaleLine, StockStatus
from brewpos.quantities import ZERO, quantity_to_json, round_cents, to_quantity
from brewpos.time_utils import DATE_RANGES, range_start, start_of_day, to_utc_z, utcnow


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _check_range(date_range: str) -> datetime | None:
    if date_range not in DATE_RANGES:
        raise ReportError("date_range must be today, week, or month")
    return range_start(date_range)


def today_summary(now: datetime | None = None) -> dict:
    start = start_of_day(now or utcnow())

    row = db.session.query(
        func.count(Sale.sale_id).label("transaction_count"),
        func.coalesce(func.sum(Sale.total_cents), 0).label("total_sales_cents"),
    ).filter(Sale.created_at >= start).one()

    count = int(row.transaction_count or 0)
    total = int(row.total_sales_cents or 0)
    return {
        "total_sales_cents": total,
        "transaction_count": count,
        "average_transaction_cents": round_cents(to_quantity(total) / count) if count else 0,
    }


def recent_transactions(limit: int = 5) -> list[dict]:
    sales = (
        db.session.query(Sale)
        .order_by(Sale.created_at.desc(), Sale.sale_id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "sale_id": sale.sale_id,
            "description": f"Sale #{sale.sale_id}",
            "total_cents": sale.total_cents,
            "payment_method": sale.payment_method,
            "item_count": sum(line.quantity for line in sale.lines),
            "created_at": to_utc_z(sale.created_at),
        }
        for sale in sales
    ]


def top_selling_products(*, limit: int = 5, date_range: str = "month") -> list[dict]:
    """Products ranked by revenue (price * quantity) over the window."""
    if limit <= 0:
        raise ReportError("limit must be > 0")
    start = _check_range(date_range)
    revenue = func.sum(SaleLine.price_cents * SaleLine.quantity)

    rows = db.session.query(
        SaleLine.sku.label("sku"),
        func.max(SaleLine.name).label("name"),
        func.coalesce(func.sum(SaleLine.quantity), 0).label("total_quantity"),
        func.coalesce(revenue, 0).label("total_revenue_cents"),
        func.count(func.distinct(SaleLine.sale_id)).label("total_sales"),
    ).join(Sale, SaleLine.sale_id == Sale.sale_id).filter(
        Sale.created_at >= start,
    ).group_by(SaleLine.sku).order_by(revenue.desc(), SaleLine.sku.asc()).limit(limit).all()

    return [
        {
            "sku": row.sku,
            "name": row.name,
            "total_quantity": int(row.total_quantity or 0),
            "total_revenue_cents": int(row.total_revenue_cents or 0),
            "total_sales": int(row.total_sales or 0),
        }
        for row in rows
    ]


def inventory_consumption_report(*, date_range: str = "month") -> list[dict]:
    """
    Raw material consumed by sales over the window, per ingredient SKU.

    Built from the inventory_consumed records on each sale, so sales recorded
    by the fallback path (empty list) contribute nothing. Cost uses today's
    cost_per_unit_cents; ingredients no longer in inventory report cost 0.
    """
    start = _check_range(date_range)
    sales = db.session.query(Sale).filter(Sale.created_at >= start).all()

    consumption: dict[str, dict] = {}
    for sale in sales:
        for record in sale.inventory_consumed or []:
            for ingredient in record.get("consumed_ingredients", []):
                entry = consumption.setdefault(ingredient["sku"], {
                    "sku": ingredient["sku"],
                    "name": ingredient["name"],
                    "unit": ingredient["unit"],
                    "total_quantity": ZERO,
                })
                entry["total_quantity"] += to_quantity(ingredient["quantity"])

    rows = []
    for sku in sorted(consumption):
        entry = consumption[sku]
        item = db.session.get(InventoryItem, sku)
        total_cost = item.cost_per_unit_cents * entry["total_quantity"] if item else ZERO
        rows.append({
            **entry,
            "total_quantity": quantity_to_json(entry["total_quantity"]),
            "total_cost_cents": round_cents(total_cost),
        })
    return rows


def sales_trend(*, days: int = 7, now: datetime | None = None) -> list[dict]:
    """Daily totals for the last `days` days including today; empty days report zero."""
    if days < 1 or days > 366:
        raise ReportError("days must be between 1 and 366")

    today = start_of_day(now or utcnow())
    first_day = today - timedelta(days=days - 1)

    period = func.strftime("%Y-%m-%d", Sale.created_at)
    rows = db.session.query(
        period.label("period"),
        func.count(Sale.sale_id).label("sales_count"),
        func.coalesce(func.sum(Sale.total_cents), 0).label("total_cents"),
    ).filter(Sale.created_at >= first_day).group_by("period").all()
    by_day = {row.period: row for row in rows}

    trend = []
    for offset in range(days):
        day = (first_day + timedelta(days=offset)).strftime("%Y-%m-%d")
        row = by_day.get(day)
        trend.append({
            "period": day,
            "sales_count": int(row.sales_count) if row else 0,
            "total_cents": int(row.total_cents) if row else 0,
        })
    return trend


def dashboard(now: datetime | None = None) -> dict:
    low_stock_count = db.session.query(func.count(InventoryItem.sku)).filter(
        InventoryItem.status == StockStatus.LOW_STOCK.value,
    ).scalar()

    return {
        "today": today_summary(now),
        "product_count": int(db.session.query(func.count(Product.sku)).scalar() or 0),
        "inventory_item_count": int(db.session.query(func.count(InventoryItem.sku)).scalar() or 0),
        "low_stock_count": int(low_stock_count or 0),
        "recent_transactions": recent_transactions(limit=5),
    }
