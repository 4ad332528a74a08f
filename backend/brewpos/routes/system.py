# backend/brewpos/routes/system.py
"""
System health and version endpoints.

Health reports database reachability plus a count of the core tables, so a
freshly migrated but unseeded database shows up as "degraded".
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import InventoryItem, Product, Recipe
from brewpos.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        inventory_count = db.session.query(InventoryItem).count()
        product_count = db.session.query(Product).count()
        recipe_count = db.session.query(Recipe).count()

        elapsed_ms = (time.time() - start_time) * 1000

        details = {
            "inventory_items": inventory_count,
            "products": product_count,
            "recipes": recipe_count,
        }
        if product_count == 0:
            return {
                "status": "degraded",
                "latency_ms": round(elapsed_ms, 2),
                "warning": "No products configured (run `flask --app brewpos system seed`)",
                "details": details,
            }

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded (still operational)
    - 503: database unreachable
    """
    start_time = time.time()
    database_health = check_database_health()

    http_status = 503 if database_health["status"] == "unhealthy" else 200
    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": database_health["status"],
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
        }
    }

    return response, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info; never exposes keys or database URLs."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
