"""Meal types, per-slot target shares and meal-tag handling."""

import re
from collections.abc import Iterable
from enum import Enum


class MealType(str, Enum):
    """Daily meal slots, in planning order."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"


MEAL_TYPES: tuple[MealType, ...] = (
    MealType.BREAKFAST,
    MealType.LUNCH,
    MealType.DINNER,
    MealType.SNACK,
)

# Share of every daily macro target assigned to each slot
SLOT_SHARES: dict[MealType, float] = {
    MealType.BREAKFAST: 0.25,
    MealType.LUNCH: 0.30,
    MealType.DINNER: 0.35,
    MealType.SNACK: 0.10,
}

# Keywords that suggest a meal type when a recipe carries no usable tags
MEAL_TAG_KEYWORDS: dict[MealType, tuple[str, ...]] = {
    MealType.BREAKFAST: ("breakfast", "morning", "oat", "pancake", "omelet", "eggs"),
    MealType.LUNCH: ("lunch", "sandwich", "salad", "wrap", "bowl"),
    MealType.DINNER: ("dinner", "evening", "roast", "stew", "curry", "pasta"),
    MealType.SNACK: ("snack", "dessert", "smoothie", "bar"),
}


def parse_meal_type(value: "str | MealType") -> MealType | None:
    """Parse a meal type, case-insensitively. Returns None for unknown values."""
    if isinstance(value, MealType):
        return value
    normalized = str(value).strip().lower()
    for meal_type in MEAL_TYPES:
        if meal_type.value.lower() == normalized:
            return meal_type
    return None


def sanitize_meal_tags(tags: "Iterable[str | MealType] | None") -> tuple[MealType, ...]:
    """Keep valid meal tags, without duplicates, in first-seen order."""
    if not tags:
        return ()
    result: list[MealType] = []
    for tag in tags:
        meal_type = parse_meal_type(tag)
        if meal_type is not None and meal_type not in result:
            result.append(meal_type)
    return tuple(result)


def infer_meal_tags_from_text(text: str) -> tuple[MealType, ...]:
    """
    Guess meal tags from a recipe's name and description.

    Falls back to every meal type when nothing matches, so the recipe stays
    available to all slots.
    """
    source = text.lower()
    tags = tuple(
        meal_type
        for meal_type, keywords in MEAL_TAG_KEYWORDS.items()
        if any(re.search(rf"\b{re.escape(keyword)}", source) for keyword in keywords)
    )
    return tags or MEAL_TYPES


def eligible_meal_types(tags: "Iterable[str | MealType] | None") -> tuple[MealType, ...]:
    """Meal types a recipe can fill: its valid tags, or all of them when untagged."""
    return sanitize_meal_tags(tags) or MEAL_TYPES
