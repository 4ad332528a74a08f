# backend/brewpos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/brewpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///brewpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Stock at or below this level is flagged low-stock when an item has no minimum of its own
    DEFAULT_MIN_STOCK_LEVEL = int(os.environ.get("DEFAULT_MIN_STOCK_LEVEL", "10"))
    DEFAULT_MAX_STOCK_LEVEL = int(os.environ.get("DEFAULT_MAX_STOCK_LEVEL", "100"))

    # Fixed checkout tax in basis points (1200 = 12%); quoted only, never persisted on the sale
    CHECKOUT_TAX_RATE_BPS = int(os.environ.get("CHECKOUT_TAX_RATE_BPS", "1200"))

    ADJUSTMENT_HISTORY_LIMIT = int(os.environ.get("ADJUSTMENT_HISTORY_LIMIT", "50"))
