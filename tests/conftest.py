"""Pytest configuration and shared fixtures."""

import pytest

from nutriplan.config import get_settings
from nutriplan.logging_config import clear_context
from nutriplan.normalize.macros import IngredientMacroLine, MassMacros, PerUnitMacros
from nutriplan.recipe.models import Recipe, RecipeIngredient, RecipePart

# =============================================================================
# Pytest Configuration
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_and_context():
    """Drop cached settings and logging context between tests."""
    get_settings.cache_clear()
    clear_context()
    yield
    get_settings.cache_clear()
    clear_context()


# =============================================================================
# Builders
# =============================================================================


def mass_line(name, amount, kcal, protein, carbs, fat, unit="g"):
    return IngredientMacroLine(name, amount, unit, MassMacros(kcal, protein, carbs, fat))


def unit_line(name, amount, unit, kcal, protein, carbs, fat):
    return IngredientMacroLine(name, amount, unit, PerUnitMacros(kcal, protein, carbs, fat))


def ingredient(line, part_id=None, **link):
    return RecipeIngredient(line=line, part_id=part_id, **link)


def simple_recipe(recipe_id, kcal, protein, carbs, fat, servings=1, meal_tags=()):
    """A one-line recipe whose per-serving macros equal the given values."""
    line = unit_line(f"{recipe_id} portion", servings, "portion", kcal, protein, carbs, fat)
    return Recipe(
        id=recipe_id,
        name=recipe_id.replace("-", " ").title(),
        servings=servings,
        ingredients=(ingredient(line),),
        meal_tags=tuple(meal_tags),
    )


# =============================================================================
# Generated Ingredient Fixtures
# =============================================================================


@pytest.fixture
def pasta_payload():
    """Dried pasta with per-gram values reported as per-100 g."""
    return {
        "name": "dried fettuccine pasta",
        "amount": 56.5,
        "unit": "g",
        "kcalPer100": 3.64,
        "proteinPer100": 0.12,
        "carbsPer100": 0.75,
        "fatPer100": 0.01,
    }


@pytest.fixture
def garlic_clove_payload():
    """Garlic measured in cloves, with per-unit values."""
    return {
        "name": "garlic",
        "amount": 1,
        "unit": "clove",
        "kcalPerUnit": 4.5,
        "proteinPerUnit": 0.2,
        "carbsPerUnit": 1,
        "fatPerUnit": 0,
    }


# =============================================================================
# Recipe Fixtures
# =============================================================================


@pytest.fixture
def burger_recipe():
    """Burger drawing 15 g from a 200 g batch of sauce."""
    parts = (
        RecipePart(id="burger", scale=1),
        RecipePart(id="sauce", scale=1, yield_amount=200, yield_unit="g"),
    )
    ingredients = (
        ingredient(mass_line("beef", 100, 250, 20, 0, 20), part_id="burger"),
        ingredient(
            unit_line("burger sauce", 1, "tbsp", 0, 0, 0, 0),
            part_id="burger",
            source_part_id="sauce",
            used_amount=15,
            used_unit="g",
        ),
        ingredient(mass_line("mayonnaise", 200, 680, 1, 1, 75), part_id="sauce"),
    )
    return Recipe(
        id="burger",
        name="Smash Burger",
        servings=1,
        ingredients=ingredients,
        parts=parts,
        meal_tags=("Dinner",),
    )


@pytest.fixture
def catalog():
    """A small catalog with one recipe per meal type plus an untagged one."""
    return [
        simple_recipe("oat-porridge", 350, 15, 55, 8, meal_tags=("Breakfast",)),
        simple_recipe("chicken-salad", 450, 40, 30, 18, meal_tags=("Lunch",)),
        simple_recipe("beef-stew", 600, 45, 50, 22, servings=2, meal_tags=("Dinner",)),
        simple_recipe("protein-bar", 200, 20, 20, 6, meal_tags=("Snack",)),
        simple_recipe("rice-bowl", 500, 25, 80, 10),
    ]


@pytest.fixture
def daily_target():
    return {"kcal": 2200, "protein": 150, "carbs": 240, "fat": 70}
