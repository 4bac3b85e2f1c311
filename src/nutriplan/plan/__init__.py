"""Meal planning, nutrition targets and grocery lists."""

from nutriplan.plan.goals import (
    ActivityLevel,
    GoalDirection,
    Profile,
    Sex,
    TargetSuggestion,
    day_meets_targets,
    is_within_tolerance,
    suggest_targets,
    targets_from_macros,
)
from nutriplan.plan.meal_types import (
    MEAL_TYPES,
    SLOT_SHARES,
    MealType,
    infer_meal_tags_from_text,
    sanitize_meal_tags,
)
from nutriplan.plan.optimizer import (
    CatalogRecipe,
    DayPlan,
    MealPlanOptimizer,
    MealSlot,
    generate_day_plan,
    score_delta,
)
from nutriplan.plan.shopping_list import (
    ShoppingItem,
    ShoppingList,
    ShoppingListGenerator,
    scale_recipe_ingredients,
)

__all__ = [
    "MEAL_TYPES",
    "SLOT_SHARES",
    "ActivityLevel",
    "CatalogRecipe",
    "DayPlan",
    "GoalDirection",
    "MealPlanOptimizer",
    "MealSlot",
    "MealType",
    "Profile",
    "Sex",
    "ShoppingItem",
    "ShoppingList",
    "ShoppingListGenerator",
    "TargetSuggestion",
    "day_meets_targets",
    "generate_day_plan",
    "infer_meal_tags_from_text",
    "is_within_tolerance",
    "sanitize_meal_tags",
    "scale_recipe_ingredients",
    "score_delta",
    "suggest_targets",
    "targets_from_macros",
]
