"""Recipe value objects: parts, ingredient lines and usage links."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from nutriplan.normalize.macros import IngredientMacroLine, MacroTotals

if TYPE_CHECKING:
    from nutriplan.recipe.parts import PartMacros

# Part id used for lines that do not belong to an explicit part
IMPLICIT_PART_ID = "__recipe__"


@dataclass(frozen=True)
class RecipePart:
    """A named sub-preparation with its own scale and optional total yield."""

    id: str
    scale: float = 1.0
    name: str = ""
    yield_amount: float | None = None
    yield_unit: str | None = None

    @property
    def has_yield(self) -> bool:
        """Check if the part declares a positive total yield with a unit."""
        return self.yield_amount is not None and self.yield_amount > 0 and bool(self.yield_unit)


@dataclass(frozen=True)
class RecipeIngredient:
    """
    An ingredient line owned by one recipe part.

    When ``source_part_id`` is set the line is a usage link: it stands for
    ``used_amount`` ``used_unit`` of another part's prepared output rather
    than for its own literal amount.
    """

    line: IngredientMacroLine
    part_id: str | None = None
    source_part_id: str | None = None
    used_amount: float | None = None
    used_unit: str | None = None

    @property
    def name(self) -> str:
        return self.line.name

    @property
    def amount(self) -> float:
        return self.line.amount

    @property
    def unit(self) -> str:
        return self.line.unit

    @property
    def owning_part_id(self) -> str:
        return self.part_id or IMPLICIT_PART_ID

    @property
    def is_usage_link(self) -> bool:
        return self.source_part_id is not None

    def contribution(self) -> MacroTotals:
        """Macros of the literal amount, before any part scale."""
        return self.line.contribution()


@dataclass(frozen=True)
class Recipe:
    """A recipe as supplied by the persistence layer."""

    id: str
    name: str
    servings: float
    ingredients: tuple[RecipeIngredient, ...] = ()
    parts: tuple[RecipePart, ...] = ()
    meal_tags: tuple[str, ...] = ()
    instructions: tuple[str, ...] = ()
    description: str = ""

    def macros(self) -> "PartMacros":
        """Part-aware macros for the whole recipe."""
        from nutriplan.recipe.parts import compute_recipe_part_macros

        return compute_recipe_part_macros(self.parts, self.ingredients)

    def per_serving(self) -> MacroTotals:
        """Recipe total divided by its serving count (zero for non-positive servings)."""
        if self.servings <= 0:
            return MacroTotals.zero()
        return self.macros().total.scaled(1 / self.servings)

    def part(self, part_id: str) -> RecipePart | None:
        for part in self.parts:
            if part.id == part_id:
                return part
        return None
