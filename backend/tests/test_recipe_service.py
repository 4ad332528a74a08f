# Overview: Pytest coverage for recipe storage, cost calculation and availability checks.

from decimal import Decimal

import pytest

from brewpos.models import InventoryItem, Recipe
from brewpos.services.recipe_service import AvailabilityChecker, RecipeNotFound
from brewpos.validation import ConflictError


LATTE_INGREDIENTS = [
    {"sku": "COF001", "name": "Arabica Coffee Beans", "quantity": Decimal("0.02"), "unit": "kg"},
    {"sku": "MILK001", "name": "Fresh Milk", "quantity": Decimal("0.25"), "unit": "liters"},
    {"sku": "VANILLA001", "name": "Vanilla Extract", "quantity": Decimal("0.005"), "unit": "liters"},
    {"sku": "SUGAR001", "name": "Sugar", "quantity": Decimal("0.015"), "unit": "kg"},
]


class TestRecipeStore:
    def test_round_trip_preserves_ingredient_order(self, recipes, db_session):
        recipes.add({"product_sku": "PROD006", "name": "Vanilla Latte Recipe"}, LATTE_INGREDIENTS)
        db_session.expunge_all()

        recipe = recipes.get_by_id("PROD006")

        assert [i.sku for i in recipe.ingredients] == ["COF001", "MILK001", "VANILLA001", "SUGAR001"]
        assert [i.quantity for i in recipe.ingredients] == [Decimal("0.02"), Decimal("0.25"),
                                                            Decimal("0.005"), Decimal("0.015")]

    def test_recipe_id_is_product_sku(self, recipes):
        recipe = recipes.add({"product_sku": "PROD006", "name": "Vanilla Latte Recipe"}, LATTE_INGREDIENTS)

        assert recipe.id == "PROD006"
        assert recipes.get_by_product_sku("PROD006").id == "PROD006"
        assert recipe.to_dict()["yield"] == 1

    def test_duplicate_recipe_conflicts(self, recipes):
        recipes.add({"product_sku": "PROD006", "name": "Vanilla Latte Recipe"}, LATTE_INGREDIENTS)
        with pytest.raises(ConflictError):
            recipes.add({"product_sku": "PROD006", "name": "Again"}, LATTE_INGREDIENTS)

    def test_update_replaces_ingredients_in_new_order(self, recipes, db_session):
        recipes.add({"product_sku": "PROD006", "name": "Vanilla Latte Recipe"}, LATTE_INGREDIENTS)

        recipes.update("PROD006", {"name": "Less Sweet Latte"}, ingredients=list(reversed(LATTE_INGREDIENTS[:2])))
        db_session.expunge_all()

        recipe = recipes.require("PROD006")
        assert recipe.name == "Less Sweet Latte"
        assert [i.sku for i in recipe.ingredients] == ["MILK001", "COF001"]

    def test_delete_removes_ingredients(self, recipes, db_session):
        recipes.add({"product_sku": "PROD006", "name": "Vanilla Latte Recipe"}, LATTE_INGREDIENTS)

        recipes.delete("PROD006")

        assert db_session.query(Recipe).count() == 0
        with pytest.raises(RecipeNotFound, match="Recipe PROD006 not found"):
            recipes.require("PROD006")

    def test_delete_refuses_while_product_links(self, black_tea, recipes, db_session):
        with pytest.raises(ConflictError, match="PROD001"):
            recipes.delete("PROD001")

        db_session.expire_all()
        assert recipes.get_by_id("PROD001") is not None
        assert black_tea.has_recipe and black_tea.recipe_id == "PROD001"

    def test_delete_after_unlinking_product(self, black_tea, recipes, products):
        products.update("PROD001", {"has_recipe": False, "recipe_id": None})

        recipes.delete("PROD001")

        assert recipes.get_by_id("PROD001") is None

    def test_list_by_ingredient_and_category(self, catalog, recipes):
        uses_tea = [r.id for r in recipes.list_by_ingredient("TEA001")]
        coffee = {r.id for r in recipes.list_by_category("Coffee")}

        assert sorted(uses_tea) == ["PROD001", "PROD005"]
        assert coffee == {"PROD003", "PROD004", "PROD006", "PROD008"}

    def test_calculate_cost(self, catalog, recipes):
        # 0.01 kg tea at 120.00/kg + 0.01 kg sugar at 25.00/kg
        assert recipes.calculate_cost("PROD001") == 145

    def test_calculate_cost_skips_missing_inventory(self, recipes, inventory):
        inventory.add({"sku": "COF001", "name": "Arabica Coffee Beans", "unit": "kg",
                       "current_stock": 30, "cost_per_unit_cents": 18000})
        recipes.add({"product_sku": "PROD006", "name": "Vanilla Latte Recipe"}, LATTE_INGREDIENTS)

        assert recipes.calculate_cost("PROD006") == 360


class TestAvailabilityChecker:
    def test_all_ingredients_available(self, catalog, recipes):
        result = AvailabilityChecker(recipes).check_availability("PROD005", 2)

        assert result.can_make is True
        assert result.missing_ingredients == []
        assert result.insufficient_ingredients == []
        # 2 x (0.01 * 12000 + 0.2 * 4500 + 0.015 * 2500)
        assert result.total_cost_cents == 2115

    def test_insufficient_and_missing(self, recipes, inventory):
        inventory.add({"sku": "COF001", "name": "Arabica Coffee Beans", "unit": "kg",
                       "current_stock": Decimal("0.03"), "cost_per_unit_cents": 18000})
        recipes.add({"product_sku": "PROD006", "name": "Vanilla Latte Recipe"}, LATTE_INGREDIENTS)

        result = AvailabilityChecker(recipes).check_availability("PROD006", 2)

        assert result.can_make is False
        assert [m.sku for m in result.missing_ingredients] == ["MILK001", "VANILLA001", "SUGAR001"]
        shortage = result.insufficient_ingredients[0]
        assert shortage.sku == "COF001"
        assert shortage.required == Decimal("0.04")
        assert shortage.available == Decimal("0.03")
        assert shortage.shortfall == Decimal("0.01")
        # Cost still counts the full requirement of ingredients that exist
        assert result.total_cost_cents == 720

    def test_check_is_idempotent_and_read_only(self, catalog, recipes, db_session):
        checker = AvailabilityChecker(recipes)

        first = checker.check_availability("PROD006", 3).to_dict()
        second = checker.check_availability("PROD006", 3).to_dict()

        assert first == second
        assert db_session.get(InventoryItem, "MILK001").current_stock == Decimal("40")

    def test_unknown_recipe(self, recipes):
        with pytest.raises(RecipeNotFound):
            AvailabilityChecker(recipes).check_availability("NOPE")
