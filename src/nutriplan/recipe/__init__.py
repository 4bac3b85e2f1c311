"""Recipe models and part-aware macro aggregation."""

from nutriplan.recipe.models import IMPLICIT_PART_ID, Recipe, RecipeIngredient, RecipePart
from nutriplan.recipe.parts import (
    PartMacros,
    UsageResolution,
    compute_recipe_part_macros,
    resolve_usage_link,
)

__all__ = [
    "IMPLICIT_PART_ID",
    "PartMacros",
    "Recipe",
    "RecipeIngredient",
    "RecipePart",
    "UsageResolution",
    "compute_recipe_part_macros",
    "resolve_usage_link",
]
