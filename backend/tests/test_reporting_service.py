# Overview: Pytest coverage for dashboard and report aggregations.

from datetime import timedelta

import pytest

from brewpos.services import reporting_service
from brewpos.services.reporting_service import ReportError
from brewpos.services.sales_service import CartItem, PaymentDetails, SaleProcessor
from brewpos.time_utils import utcnow


@pytest.fixture
def todays_sales(catalog, products, db_session):
    """Three sales today: 2 Milk Tea, 1 Vanilla Latte + 2 Bottled Water, 1 Milk Tea."""
    processor = SaleProcessor(db_session)
    milk_tea = products.require("PROD005")
    latte = products.require("PROD006")
    water = products.require("PROD009")

    now = utcnow()
    carts = [
        [CartItem.from_product(milk_tea, 2)],
        [CartItem.from_product(latte, 1), CartItem.from_product(water, 2)],
        [CartItem.from_product(milk_tea, 1)],
    ]
    results = []
    for offset, cart in enumerate(carts):
        processor.clock = lambda offset=offset: now + timedelta(milliseconds=offset)
        results.append(processor.process_sale(cart, PaymentDetails()))
    return results


class TestTodaySummary:
    def test_totals(self, todays_sales):
        summary = reporting_service.today_summary()

        assert summary["transaction_count"] == 3
        # 28000 + (18000 + 5000) + 14000
        assert summary["total_sales_cents"] == 65000
        assert summary["average_transaction_cents"] == 21667

    def test_empty_day(self, db_session):
        assert reporting_service.today_summary() == {
            "total_sales_cents": 0,
            "transaction_count": 0,
            "average_transaction_cents": 0,
        }


class TestReports:
    def test_recent_transactions_newest_first(self, todays_sales):
        recent = reporting_service.recent_transactions(limit=2)

        assert [r["sale_id"] for r in recent] == [todays_sales[2].sale_id, todays_sales[1].sale_id]
        assert recent[1]["item_count"] == 3

    def test_top_products_by_revenue(self, todays_sales):
        top = reporting_service.top_selling_products(limit=5, date_range="today")

        assert [row["sku"] for row in top] == ["PROD005", "PROD006", "PROD009"]
        assert top[0]["total_quantity"] == 3
        assert top[0]["total_revenue_cents"] == 42000
        assert top[0]["total_sales"] == 2

    def test_inventory_consumption(self, todays_sales):
        rows = {row["sku"]: row for row in reporting_service.inventory_consumption_report(date_range="today")}

        # Milk tea x3 (0.2 l) + latte x1 (0.25 l)
        assert rows["MILK001"]["total_quantity"] == 0.85
        assert rows["MILK001"]["total_cost_cents"] == 3825
        assert "COF002" not in rows

    def test_sales_trend_fills_empty_days(self, todays_sales):
        trend = reporting_service.sales_trend(days=3)

        assert len(trend) == 3
        assert [day["sales_count"] for day in trend] == [0, 0, 3]
        assert trend[-1]["total_cents"] == 65000

    def test_dashboard_counts(self, todays_sales):
        data = reporting_service.dashboard()

        assert data["product_count"] == 10
        assert data["inventory_item_count"] == 10
        assert data["low_stock_count"] == 0
        assert data["today"]["transaction_count"] == 3

    def test_bad_range(self, db_session):
        with pytest.raises(ReportError):
            reporting_service.top_selling_products(date_range="decade")
        with pytest.raises(ReportError):
            reporting_service.sales_trend(days=0)


class TestReportRoutes:
    def test_dashboard(self, client, todays_sales):
        response = client.get('/api/reports/dashboard')
        assert response.status_code == 200
        assert len(response.json['recent_transactions']) == 3

    def test_bad_range(self, client, db_session):
        assert client.get('/api/reports/top-products?range=decade').status_code == 400
        assert client.get('/api/reports/inventory-consumption?range=decade').status_code == 400

    def test_top_products_limit_validation(self, client, db_session):
        assert client.get('/api/reports/top-products?limit=0').status_code == 400
        assert client.get('/api/reports/top-products?limit=-2').status_code == 400
