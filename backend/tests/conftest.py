"""
Pytest fixtures for BrewPOS backend tests.

Provides test database setup, store fixtures, the sample catalog, and test client.
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from brewpos import create_app
from brewpos.extensions import db
from brewpos.services.inventory_service import InventoryStore
from brewpos.services.products_service import ProductStore
from brewpos.services.recipe_service import RecipeStore
from brewpos.seed_data import seed_sample_catalog


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def inventory(db_session):
    return InventoryStore(db_session)


@pytest.fixture(scope='function')
def recipes(db_session):
    return RecipeStore(db_session)


@pytest.fixture(scope='function')
def products(db_session, recipes):
    return ProductStore(db_session, recipes=recipes)


@pytest.fixture(scope='function')
def catalog(db_session):
    """Full sample tea/coffee catalog (10 raw materials, 8 recipes, 10 products)."""
    return seed_sample_catalog(db_session)


@pytest.fixture(scope='function')
def black_tea(inventory, recipes, products):
    """
    Minimal one-ingredient setup: TEA001 at 25 kg and PROD001 consuming 0.01 kg per cup.
    """
    inventory.add({
        "sku": "TEA001",
        "name": "Ceylon Black Tea Leaves",
        "current_stock": Decimal("25"),
        "unit": "kg",
        "cost_per_unit_cents": 12000,
        "min_stock_level": Decimal("5"),
        "max_stock_level": Decimal("50"),
    })
    recipes.add(
        {"product_sku": "PROD001", "product_name": "Ceylon Black Tea", "name": "Ceylon Black Tea Recipe"},
        [{"sku": "TEA001", "name": "Ceylon Black Tea Leaves", "quantity": Decimal("0.01"), "unit": "kg"}],
    )
    return products.add({
        "sku": "PROD001",
        "name": "Ceylon Black Tea",
        "price_cents": 12000,
        "has_recipe": True,
        "recipe_id": "PROD001",
    })


@pytest.fixture(scope='function')
def bottled_water(products):
    """Simple product with no recipe."""
    return products.add({
        "sku": "PROD009",
        "name": "Bottled Water",
        "price_cents": 2500,
        "cost_cents": 1500,
        "has_recipe": False,
    })


class BrokenLogSession:
    """Stands in for a database that rejects writes to the adjustment log."""

    def __init__(self):
        self.rolled_back = False

    def add_all(self, rows):
        self.rows = rows

    def commit(self):
        raise OperationalError("INSERT INTO inventory_adjustments", {}, Exception("disk I/O error"))

    def rollback(self):
        self.rolled_back = True


@pytest.fixture(scope='function')
def broken_log_session():
    return BrokenLogSession()
