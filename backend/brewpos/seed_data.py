# Overview: Sample tea/coffee shop catalog used by `flask system seed` and the test suite.

from __future__ import annotations

from decimal import Decimal

from .services.inventory_service import InventoryStore
from .services.products_service import ProductStore
from .services.recipe_service import RecipeStore


# sku, name, stock, unit, cost (cents/unit), supplier, category, min, max, location, notes
INVENTORY_ITEMS = [
    ("TEA001", "Ceylon Black Tea Leaves", "25", "kg", 12000, "Ceylon Tea Suppliers", "Tea", "5", "50", "Warehouse A", "Premium Ceylon black tea leaves"),
    ("COF001", "Arabica Coffee Beans", "30", "kg", 18000, "Coffee Bean Co.", "Coffee", "8", "60", "Warehouse A", "High-quality Arabica beans"),
    ("COF002", "Robusta Coffee Beans", "20", "kg", 14000, "Coffee Bean Co.", "Coffee", "5", "40", "Warehouse A", "Strong Robusta beans"),
    ("TEA002", "Green Tea Leaves", "15", "kg", 9500, "Ceylon Tea Suppliers", "Tea", "3", "30", "Warehouse A", "Organic green tea leaves"),
    ("MILK001", "Fresh Milk", "40", "liters", 4500, "Dairy Farm Co.", "Dairy", "10", "80", "Refrigerator", "Fresh whole milk"),
    ("MILK002", "Condensed Milk", "8", "cans", 3500, "Dairy Farm Co.", "Dairy", "5", "20", "Warehouse B", "Sweetened condensed milk"),
    ("SUGAR001", "Sugar", "50", "kg", 2500, "Sugar Suppliers", "Sweeteners", "10", "100", "Warehouse B", "White granulated sugar"),
    ("HONEY001", "Honey", "12", "liters", 12000, "Local Honey Farm", "Sweeteners", "3", "25", "Warehouse B", "Pure natural honey"),
    ("VANILLA001", "Vanilla Extract", "5", "liters", 20000, "Flavor Suppliers", "Flavors", "2", "10", "Warehouse B", "Pure vanilla extract"),
    ("SPICE001", "Cinnamon Powder", "8", "kg", 8000, "Spice Suppliers", "Spices", "2", "15", "Warehouse B", "Ground cinnamon powder"),
]

# sku, name, description, price (cents), cost (cents), category, subcategory, prep minutes, has_recipe
PRODUCTS = [
    ("PROD001", "Ceylon Black Tea", "Traditional Ceylon black tea served hot", 12000, 0, "Tea", "Hot Tea", 3, True),
    ("PROD002", "Green Tea", "Refreshing green tea with health benefits", 9500, 0, "Tea", "Hot Tea", 3, True),
    ("PROD003", "Arabica Coffee", "Smooth Arabica coffee with rich flavor", 15000, 0, "Coffee", "Hot Coffee", 5, True),
    ("PROD004", "Robusta Coffee", "Strong Robusta coffee with bold taste", 13000, 0, "Coffee", "Hot Coffee", 5, True),
    ("PROD005", "Milk Tea", "Ceylon tea with fresh milk", 14000, 0, "Tea", "Milk Tea", 4, True),
    ("PROD006", "Vanilla Latte", "Arabica coffee with milk and vanilla", 18000, 0, "Coffee", "Specialty Coffee", 6, True),
    ("PROD007", "Honey Tea", "Green tea sweetened with natural honey", 11000, 0, "Tea", "Hot Tea", 4, True),
    ("PROD008", "Cinnamon Coffee", "Robusta coffee with cinnamon spice", 16000, 0, "Coffee", "Specialty Coffee", 6, True),
    ("PROD009", "Bottled Water", "Pure bottled water", 2500, 1500, "Beverages", "Water", 0, False),
    ("PROD010", "Canned Soda", "Carbonated soft drink", 3500, 2000, "Beverages", "Soft Drinks", 0, False),
]

# product sku -> (recipe name, description, instructions, [(sku, name, quantity, unit), ...])
RECIPES = {
    "PROD001": (
        "Ceylon Black Tea Recipe", "Traditional Ceylon black tea preparation",
        "1. Boil water\n2. Add tea leaves\n3. Steep for 3 minutes\n4. Add sugar to taste",
        [("TEA001", "Ceylon Black Tea Leaves", "0.01", "kg"), ("SUGAR001", "Sugar", "0.01", "kg")],
    ),
    "PROD002": (
        "Green Tea Recipe", "Refreshing green tea preparation",
        "1. Heat water to 80C\n2. Add green tea leaves\n3. Steep for 2 minutes",
        [("TEA002", "Green Tea Leaves", "0.008", "kg")],
    ),
    "PROD003": (
        "Arabica Coffee Recipe", "Smooth Arabica coffee preparation",
        "1. Grind coffee beans\n2. Brew with hot water\n3. Add sugar to taste",
        [("COF001", "Arabica Coffee Beans", "0.02", "kg"), ("SUGAR001", "Sugar", "0.01", "kg")],
    ),
    "PROD004": (
        "Robusta Coffee Recipe", "Strong Robusta coffee preparation",
        "1. Grind coffee beans\n2. Brew with hot water\n3. Add sugar to taste",
        [("COF002", "Robusta Coffee Beans", "0.025", "kg"), ("SUGAR001", "Sugar", "0.01", "kg")],
    ),
    "PROD005": (
        "Milk Tea Recipe", "Ceylon tea with fresh milk",
        "1. Brew strong tea\n2. Add hot milk\n3. Add sugar to taste",
        [
            ("TEA001", "Ceylon Black Tea Leaves", "0.01", "kg"),
            ("MILK001", "Fresh Milk", "0.2", "liters"),
            ("SUGAR001", "Sugar", "0.015", "kg"),
        ],
    ),
    "PROD006": (
        "Vanilla Latte Recipe", "Arabica coffee with milk and vanilla",
        "1. Brew espresso\n2. Steam milk\n3. Add vanilla and sugar\n4. Combine",
        [
            ("COF001", "Arabica Coffee Beans", "0.02", "kg"),
            ("MILK001", "Fresh Milk", "0.25", "liters"),
            ("VANILLA001", "Vanilla Extract", "0.005", "liters"),
            ("SUGAR001", "Sugar", "0.015", "kg"),
        ],
    ),
    "PROD007": (
        "Honey Tea Recipe", "Green tea sweetened with natural honey",
        "1. Brew green tea\n2. Add honey while hot\n3. Stir well",
        [("TEA002", "Green Tea Leaves", "0.008", "kg"), ("HONEY001", "Honey", "0.02", "liters")],
    ),
    "PROD008": (
        "Cinnamon Coffee Recipe", "Robusta coffee with cinnamon spice",
        "1. Brew coffee\n2. Add cinnamon powder\n3. Add sugar to taste",
        [
            ("COF002", "Robusta Coffee Beans", "0.025", "kg"),
            ("SPICE001", "Cinnamon Powder", "0.002", "kg"),
            ("SUGAR001", "Sugar", "0.015", "kg"),
        ],
    ),
}


def seed_sample_catalog(session=None) -> dict:
    """
    Load the sample inventory, recipes and products. Idempotent: rows whose
    key already exists are left untouched.

    Recipes are written before products so every has_recipe link resolves.
    Returns {"inventory_items": n, "recipes": n, "products": n} counting rows created.
    """
    inventory = InventoryStore(session)
    recipes = RecipeStore(inventory.session)
    products = ProductStore(inventory.session, recipes=recipes)
    created = {"inventory_items": 0, "recipes": 0, "products": 0}

    for sku, name, stock, unit, cost, supplier, category, low, high, location, notes in INVENTORY_ITEMS:
        if inventory.get(sku) is not None:
            continue
        inventory.add({
            "sku": sku,
            "name": name,
            "current_stock": Decimal(stock),
            "unit": unit,
            "cost_per_unit_cents": cost,
            "supplier": supplier,
            "category": category,
            "min_stock_level": Decimal(low),
            "max_stock_level": Decimal(high),
            "location": location,
            "notes": notes,
        })
        created["inventory_items"] += 1

    product_rows = {row[0]: row for row in PRODUCTS}
    for product_sku, (name, description, instructions, ingredients) in RECIPES.items():
        if recipes.get_by_id(product_sku) is not None:
            continue
        product = product_rows[product_sku]
        recipes.add(
            {
                "product_sku": product_sku,
                "product_name": product[1],
                "name": name,
                "description": description,
                "instructions": instructions,
                "preparation_time": product[7],
                "category": product[5],
            },
            [
                {"sku": sku, "name": ingredient_name, "quantity": Decimal(quantity), "unit": unit}
                for sku, ingredient_name, quantity, unit in ingredients
            ],
        )
        created["recipes"] += 1

    for sku, name, description, price, cost, category, subcategory, prep, has_recipe in PRODUCTS:
        if products.get(sku) is not None:
            continue
        products.add({
            "sku": sku,
            "name": name,
            "description": description,
            "price_cents": price,
            "cost_cents": cost,
            "category": category,
            "subcategory": subcategory,
            "preparation_time": prep,
            "has_recipe": has_recipe,
            "recipe_id": sku if has_recipe else None,
        })
        created["products"] += 1

    return created
