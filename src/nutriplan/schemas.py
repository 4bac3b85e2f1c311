"""Schemas for generated recipe payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nutriplan.logging_config import LoggingContext, get_logger
from nutriplan.normalize.correction import NormalizedMacros, normalize_and_scale_ingredient_macros
from nutriplan.normalize.macros import IngredientMacroLine, validate_shape
from nutriplan.normalize.units import normalize_unit_short_name
from nutriplan.plan.meal_types import infer_meal_tags_from_text, sanitize_meal_tags
from nutriplan.recipe.models import Recipe, RecipeIngredient, RecipePart

logger = get_logger(__name__)


class GeneratedModel(BaseModel):
    """Base for payloads produced by a generative service (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeneratedRecipePart(GeneratedModel):
    """A sub-preparation of a generated recipe."""

    id: str
    name: str = ""
    scale: float = Field(default=1.0, gt=0)
    yield_amount: float | None = None
    yield_unit: str | None = None

    def to_part(self) -> RecipePart:
        return RecipePart(
            id=self.id,
            scale=self.scale,
            name=self.name,
            yield_amount=self.yield_amount,
            yield_unit=self.yield_unit,
        )


class GeneratedIngredient(GeneratedModel):
    """
    An ingredient line as generated.

    Exactly one macro set is expected: per-100 values for g/ml units,
    per-unit values otherwise. Shape checks happen in ``normalized()``.
    """

    name: str
    amount: float = 0
    unit: str = ""

    kcal_per_100: float | None = None
    protein_per_100: float | None = None
    carbs_per_100: float | None = None
    fat_per_100: float | None = None

    kcal_per_unit: float | None = None
    protein_per_unit: float | None = None
    carbs_per_unit: float | None = None
    fat_per_unit: float | None = None

    part_id: str | None = None
    source_part_id: str | None = None
    used_amount: float | None = None
    used_unit: str | None = None

    def macro_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_macro_line(self) -> IngredientMacroLine:
        """Validated line as generated, before any correction."""
        return validate_shape(self.macro_payload())

    def normalized(self) -> NormalizedMacros:
        """Validate, rescale and kcal-repair this line's macros."""
        return normalize_and_scale_ingredient_macros(self.macro_payload())

    def to_ingredient(self) -> RecipeIngredient:
        return RecipeIngredient(
            line=self.normalized().line,
            part_id=self.part_id,
            source_part_id=self.source_part_id,
            used_amount=self.used_amount,
            used_unit=normalize_unit_short_name(self.used_unit) if self.used_unit else None,
        )


class GeneratedRecipe(GeneratedModel):
    """A full generated recipe."""

    name: str
    description: str = ""
    servings: float = Field(default=1, gt=0)
    meal_tags: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    ingredients: list[GeneratedIngredient] = Field(default_factory=list)
    parts: list[GeneratedRecipePart] = Field(default_factory=list)

    def to_recipe(self, recipe_id: str) -> Recipe:
        """
        Build a normalized recipe.

        Every ingredient is validated and normalized. Invalid meal tags are
        dropped; with none left, tags are inferred from the name and
        description.

        Raises:
            ShapeError: An ingredient's macro set does not match its unit.
            ValidationError: An ingredient macro value is invalid.
        """
        meal_tags = sanitize_meal_tags(self.meal_tags) or infer_meal_tags_from_text(
            f"{self.name} {self.description}"
        )
        with LoggingContext(recipe_id=recipe_id):
            ingredients = tuple(ingredient.to_ingredient() for ingredient in self.ingredients)
            logger.debug(f"Normalized {len(ingredients)} ingredients for '{self.name}'")

        return Recipe(
            id=recipe_id,
            name=self.name,
            servings=self.servings,
            ingredients=ingredients,
            parts=tuple(part.to_part() for part in self.parts),
            meal_tags=tuple(tag.value for tag in meal_tags),
            instructions=tuple(self.instructions),
            description=self.description,
        )
