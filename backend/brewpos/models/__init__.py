from .inventory import (
    InventoryItem,
    InventoryAdjustment,
    StockStatus,
    AdjustmentOperation,
    derive_stock_status,
)
from .catalog import Product, Recipe, RecipeIngredient, CatalogStatus
from .sales import Sale, SaleLine, PaymentMethod

__all__ = [
    'InventoryItem', 'InventoryAdjustment', 'StockStatus', 'AdjustmentOperation', 'derive_stock_status',
    'Product', 'Recipe', 'RecipeIngredient', 'CatalogStatus',
    'Sale', 'SaleLine', 'PaymentMethod',
]
