"""Grocery list generation from meal plans."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from nutriplan.logging_config import get_logger
from nutriplan.normalize.macros import round_half_up
from nutriplan.normalize.units import normalize_unit_short_name
from nutriplan.plan.optimizer import DayPlan, MealSlot
from nutriplan.recipe.models import Recipe, RecipeIngredient

logger = get_logger(__name__)


def format_amount(value: float) -> str:
    """Format an amount without trailing zeros (2.0 -> "2", 1.5 -> "1.5")."""
    return f"{value:g}"


@dataclass(frozen=True)
class ScaledIngredient:
    """An ingredient line of a recipe scaled to a chosen serving count."""

    name: str
    amount: float
    unit: str


@dataclass
class ShoppingItem:
    """A single item in the grocery list."""

    ingredient_name: str
    normalized_name: str
    quantity: float
    unit: str
    recipe_sources: list[str] = field(default_factory=list)

    @property
    def rounded_quantity(self) -> float:
        return round_half_up(self.quantity, 1)

    @property
    def display_name(self) -> str:
        """Display string, e.g. ``"chicken breast (300 g)"``."""
        amount = " ".join(part for part in (format_amount(self.rounded_quantity), self.unit) if part)
        return f"{self.normalized_name} ({amount})"


@dataclass
class ShoppingList:
    """Aggregated grocery list for one or more planned days."""

    items: list[ShoppingItem] = field(default_factory=list)
    skipped_slots: int = 0

    def add_item(self, item: ShoppingItem) -> None:
        self.items.append(item)

    @property
    def display_names(self) -> list[str]:
        return [item.display_name for item in self.items]

    def find(self, name: str, unit: str = "") -> ShoppingItem | None:
        key = (name.lower(), normalize_unit_short_name(unit))
        for item in self.items:
            if (item.normalized_name, item.unit) == key:
                return item
        return None


def _part_scales(recipe: Recipe) -> dict[str, float]:
    return {part.id: part.scale for part in recipe.parts}


def _shopping_lines(recipe: Recipe) -> Iterable[tuple[RecipeIngredient, float]]:
    """Literal ingredient lines of a recipe with their owning part's scale."""
    scales = _part_scales(recipe)
    for ingredient in recipe.ingredients:
        if ingredient.is_usage_link:
            continue
        yield ingredient, scales.get(ingredient.owning_part_id, 1.0)


def scale_recipe_ingredients(recipe: Recipe, servings: float) -> list[ScaledIngredient]:
    """
    Scale a recipe's ingredient lines to ``servings``.

    Usage-link lines are left out; they refer to another part's output,
    whose own ingredients are listed instead.
    """
    if recipe.servings <= 0:
        return []
    ratio = servings / recipe.servings
    return [
        ScaledIngredient(
            name=ingredient.name,
            amount=ingredient.amount * part_scale * ratio,
            unit=normalize_unit_short_name(ingredient.unit),
        )
        for ingredient, part_scale in _shopping_lines(recipe)
    ]


class ShoppingListGenerator:
    """
    Generates grocery lists from planned meals with:
    - Quantity aggregation across recipes, keyed by name and unit
    - Scaling by planned servings and recipe part scale
    - Usage-link lines excluded
    """

    def __init__(self, recipes: Mapping[str, Recipe] | Iterable[Recipe]):
        if isinstance(recipes, Mapping):
            self.recipes = dict(recipes)
        else:
            self.recipes = {recipe.id: recipe for recipe in recipes}

    def generate(self, slots: "Iterable[MealSlot] | DayPlan | Iterable[DayPlan]") -> ShoppingList:
        """
        Generate a grocery list for planned slots.

        Args:
            slots: Meal slots, a day plan, or several day plans.

        Returns:
            ShoppingList with one item per (lower-cased name, unit), in
            first-seen order.
        """
        meal_slots = list(self._flatten(slots))
        logger.info(f"Generating grocery list for {len(meal_slots)} planned meals")

        aggregated: dict[tuple[str, str], ShoppingItem] = {}
        shopping_list = ShoppingList()

        for slot in meal_slots:
            recipe = self.recipes.get(slot.recipe_id)
            if recipe is None:
                logger.warning(f"Recipe {slot.recipe_id} not found, skipping {slot.meal_type.value}")
                shopping_list.skipped_slots += 1
                continue

            for scaled in scale_recipe_ingredients(recipe, slot.servings):
                key = (scaled.name.lower(), scaled.unit)
                item = aggregated.get(key)
                if item is None:
                    item = ShoppingItem(
                        ingredient_name=scaled.name,
                        normalized_name=key[0],
                        quantity=0.0,
                        unit=scaled.unit,
                    )
                    aggregated[key] = item
                    shopping_list.add_item(item)
                item.quantity += scaled.amount
                if recipe.id not in item.recipe_sources:
                    item.recipe_sources.append(recipe.id)

        logger.info(f"Generated grocery list: {len(shopping_list.items)} items")
        return shopping_list

    @staticmethod
    def _flatten(slots: "Iterable[MealSlot] | DayPlan | Iterable[DayPlan]") -> Iterable[MealSlot]:
        if isinstance(slots, DayPlan):
            yield from slots.slots
            return
        for entry in slots:
            if isinstance(entry, DayPlan):
                yield from entry.slots
            else:
                yield entry
