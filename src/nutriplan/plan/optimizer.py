"""Meal plan optimization: fit one day's meals to macro targets."""

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from nutriplan.config import get_settings
from nutriplan.errors import DomainError
from nutriplan.logging_config import LoggingContext, get_logger
from nutriplan.normalize.macros import MacroTotals
from nutriplan.plan.meal_types import MEAL_TYPES, SLOT_SHARES, MealType, eligible_meal_types
from nutriplan.recipe.models import Recipe

logger = get_logger(__name__)

# Weights of the per-macro relative errors in the fit score
KCAL_WEIGHT = 0.35
PROTEIN_WEIGHT = 0.25
CARBS_WEIGHT = 0.20
FAT_WEIGHT = 0.20


@dataclass(frozen=True)
class CatalogRecipe:
    """A recipe reduced to what the planner needs."""

    recipe_id: str
    recipe_name: str
    per_serving: MacroTotals
    meal_tags: tuple[MealType, ...] = MEAL_TYPES
    servings_base: float = 1.0
    ingredient_count: int = 1

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "CatalogRecipe":
        """Build a catalog entry using the recipe's part-aware macros."""
        return cls(
            recipe_id=recipe.id,
            recipe_name=recipe.name,
            per_serving=recipe.per_serving(),
            meal_tags=eligible_meal_types(recipe.meal_tags),
            servings_base=recipe.servings,
            ingredient_count=len(recipe.ingredients),
        )

    @property
    def is_plannable(self) -> bool:
        return self.servings_base > 0 and self.ingredient_count > 0

    def macros_for(self, servings: float) -> MacroTotals:
        return self.per_serving.scaled(servings)


@dataclass(frozen=True)
class MealSlot:
    """A recipe assigned to one meal of the day."""

    meal_type: MealType
    recipe_id: str
    recipe_name: str
    servings: float
    macros: MacroTotals


@dataclass(frozen=True)
class DayPlan:
    """A generated day: filled slots and how well they fit the target."""

    slots: tuple[MealSlot, ...]
    totals: MacroTotals
    score: float
    score_history: tuple[float, ...]
    passes: int
    mutations: int

    @property
    def generated_count(self) -> int:
        return len(self.slots)

    @property
    def display_totals(self) -> MacroTotals:
        """Totals as reported to users: whole kcal, macros to one decimal."""
        return self.totals.rounded()

    def slot(self, meal_type: MealType) -> MealSlot | None:
        for slot in self.slots:
            if slot.meal_type is meal_type:
                return slot
        return None

    def rows(self, plan_date: "date | str") -> list[dict[str, Any]]:
        """Rows to persist for ``plan_date``, replacing any existing plan for that date."""
        day = plan_date.isoformat() if isinstance(plan_date, date) else str(plan_date)
        return [
            {
                "date": day,
                "meal_type": slot.meal_type.value,
                "recipe_id": slot.recipe_id,
                "servings": slot.servings,
            }
            for slot in self.slots
        ]


# =============================================================================
# Scoring
# =============================================================================


def relative_error(actual: float, target: float) -> float:
    return abs(actual - target) / max(1.0, target)


def score_delta(actual: MacroTotals, target: MacroTotals) -> float:
    """Weighted relative distance from a target; 0 is a perfect fit."""
    return (
        relative_error(actual.kcal, target.kcal) * KCAL_WEIGHT
        + relative_error(actual.protein, target.protein) * PROTEIN_WEIGHT
        + relative_error(actual.carbs, target.carbs) * CARBS_WEIGHT
        + relative_error(actual.fat, target.fat) * FAT_WEIGHT
    )


def slot_target(target: MacroTotals, meal_type: MealType) -> MacroTotals:
    """The share of a daily target assigned to one meal slot."""
    return target.scaled(SLOT_SHARES[meal_type])


def quantize_servings(value: float, minimum: float, maximum: float) -> float:
    """Round to the nearest quarter serving (halves up), then clamp."""
    quarters = math.floor(value * 4 + 0.5) / 4
    return max(minimum, min(maximum, quarters))


def day_totals(slots: Iterable[MealSlot]) -> MacroTotals:
    return MacroTotals.total(slot.macros for slot in slots)


# =============================================================================
# Preconditions
# =============================================================================


def coerce_daily_target(target: "MacroTotals | Mapping[str, float | None] | None") -> MacroTotals:
    """
    Validate a daily target.

    Raises:
        DomainError: Any of kcal/protein/carbs/fat is missing, zero or negative.
    """
    if target is None:
        raise DomainError("Daily kcal and macro targets must be set before generating.")
    if isinstance(target, MacroTotals):
        values = target.as_dict()
    else:
        values = {name: target.get(name) for name in ("kcal", "protein", "carbs", "fat")}

    missing = [name for name, value in values.items() if not value or value <= 0]
    if missing:
        raise DomainError(
            f"Daily kcal and macro targets must be set before generating (missing: {', '.join(missing)})."
        )
    return MacroTotals(**{name: float(value) for name, value in values.items()})


def build_catalog(recipes: "Iterable[Recipe | CatalogRecipe]") -> list[CatalogRecipe]:
    """
    Turn recipes into planner entries, keeping only plannable ones.

    Raises:
        DomainError: No recipe has positive servings and at least one ingredient.
    """
    entries = [
        recipe if isinstance(recipe, CatalogRecipe) else CatalogRecipe.from_recipe(recipe)
        for recipe in recipes
    ]
    if not entries:
        raise DomainError("No recipes available for planning.")

    catalog = [entry for entry in entries if entry.is_plannable]
    if not catalog:
        raise DomainError("No recipes with ingredient macros are available.")
    return catalog


# =============================================================================
# Optimizer
# =============================================================================


class MealPlanOptimizer:
    """
    Assigns one recipe and a serving count to each meal slot of a day.

    Phase 1 greedily picks, per slot, the recipe whose quantized serving
    count best fits that slot's share of the target. Phase 2 nudges serving
    counts by quarter/half steps, accepting every change that beats the
    day-total fit measured at the start of the pass, until a pass changes
    nothing or the pass limit is hit.
    """

    GREEDY_MIN_SERVINGS = 0.5
    GREEDY_MAX_SERVINGS = 3.0
    SEARCH_MIN_SERVINGS = 0.5
    SEARCH_MAX_SERVINGS = 4.0
    SERVING_STEPS: tuple[float, ...] = (-0.25, 0.25, -0.5, 0.5)

    def __init__(self, max_passes: int | None = None, min_improvement: float | None = None):
        settings = get_settings()
        self.max_passes = settings.planner_max_passes if max_passes is None else max_passes
        self.min_improvement = (
            settings.planner_min_improvement if min_improvement is None else min_improvement
        )

    def optimize(self, target: MacroTotals, catalog: Sequence[CatalogRecipe]) -> DayPlan:
        """
        Generate a day plan for a validated target and plannable catalog.

        Args:
            target: Daily macro target.
            catalog: Plannable recipes (see ``build_catalog``).

        Returns:
            DayPlan with the filled slots; slots without candidates are omitted.
        """
        logger.info(f"Optimizing day plan over {len(catalog)} recipes")

        selected = self._greedy_select(target, catalog)
        slots, history, passes, mutations = self.local_search(target, catalog, selected)

        totals = day_totals(slots)
        plan = DayPlan(
            slots=tuple(slots),
            totals=totals,
            score=history[-1],
            score_history=tuple(history),
            passes=passes,
            mutations=mutations,
        )

        logger.info(
            f"Selected {plan.generated_count} slots totalling {plan.display_totals.kcal:g} kcal: "
            f"score {plan.score:.4f} after {passes} passes ({mutations} serving adjustments)"
        )
        return plan

    def pick_for_slot(
        self,
        meal_type: MealType,
        target: MacroTotals,
        catalog: Sequence[CatalogRecipe],
    ) -> MealSlot | None:
        """Best-fitting recipe and serving count for one slot, or None if the pool is empty."""
        tagged = [recipe for recipe in catalog if meal_type in recipe.meal_tags]
        pool = tagged or list(catalog)
        share = slot_target(target, meal_type)

        best: MealSlot | None = None
        best_score = math.inf
        for recipe in pool:
            estimated = share.kcal / max(1.0, recipe.per_serving.kcal)
            servings = quantize_servings(estimated, self.GREEDY_MIN_SERVINGS, self.GREEDY_MAX_SERVINGS)
            macros = recipe.macros_for(servings)
            score = score_delta(macros, share)
            if score < best_score:
                best_score = score
                best = MealSlot(
                    meal_type=meal_type,
                    recipe_id=recipe.recipe_id,
                    recipe_name=recipe.recipe_name,
                    servings=servings,
                    macros=macros,
                )
        return best

    def _greedy_select(self, target: MacroTotals, catalog: Sequence[CatalogRecipe]) -> list[MealSlot]:
        selected: list[MealSlot] = []
        for meal_type in MEAL_TYPES:
            slot = self.pick_for_slot(meal_type, target, catalog)
            if slot is None:
                logger.debug(f"No candidates for {meal_type.value}, leaving slot empty")
                continue
            logger.debug(f"{meal_type.value}: {slot.recipe_name} x{slot.servings}")
            selected.append(slot)
        return selected

    def serving_proposals(self, servings: float) -> list[float]:
        """Distinct serving counts reachable from ``servings`` in one step, in trial order."""
        proposals: list[float] = []
        for step in self.SERVING_STEPS:
            proposal = quantize_servings(
                servings + step, self.SEARCH_MIN_SERVINGS, self.SEARCH_MAX_SERVINGS
            )
            if proposal != servings:
                proposals.append(proposal)
        return proposals

    def local_search(
        self,
        target: MacroTotals,
        catalog: Sequence[CatalogRecipe],
        selected: Sequence[MealSlot],
    ) -> tuple[list[MealSlot], list[float], int, int]:
        """
        Adjust serving counts of already chosen slots toward the day target.

        Every proposal in a pass is compared with the day score from the start
        of that pass. An accepted proposal changes the slot at once, so later
        proposals build on it, but the reference score stays fixed until the
        next pass.

        Returns:
            Tuple of (slots, day score before the first pass and after each
            pass, passes run, accepted mutations).
        """
        recipes_by_id = {recipe.recipe_id: recipe for recipe in catalog}
        slots = list(selected)
        history = [score_delta(day_totals(slots), target)]
        passes = 0
        mutations = 0

        for _ in range(self.max_passes):
            passes += 1
            pass_score = score_delta(day_totals(slots), target)
            improved = False

            for index in range(len(slots)):
                recipe = recipes_by_id.get(slots[index].recipe_id)
                if recipe is None:
                    continue

                for step in self.SERVING_STEPS:
                    slot = slots[index]
                    next_servings = quantize_servings(
                        slot.servings + step, self.SEARCH_MIN_SERVINGS, self.SEARCH_MAX_SERVINGS
                    )
                    if next_servings == slot.servings:
                        continue

                    next_macros = recipe.macros_for(next_servings)
                    proposal_totals = day_totals(
                        replace(other, macros=next_macros) if position == index else other
                        for position, other in enumerate(slots)
                    )
                    proposal_score = score_delta(proposal_totals, target)
                    if proposal_score + self.min_improvement < pass_score:
                        slots[index] = replace(slot, servings=next_servings, macros=next_macros)
                        improved = True
                        mutations += 1

            history.append(score_delta(day_totals(slots), target))
            if not improved:
                break

        return slots, history, passes, mutations


def generate_day_plan(
    target: "MacroTotals | Mapping[str, float | None] | None",
    catalog: "Iterable[Recipe | CatalogRecipe]",
    max_passes: int | None = None,
    plan_date: "date | str | None" = None,
) -> DayPlan:
    """
    Generate one day's meal plan that best fits the daily macro target.

    Args:
        target: Daily kcal/protein/carbs/fat target.
        catalog: Candidate recipes; each recipe's macros come from the part
            aggregator and are divided by its serving count.
        max_passes: Local search pass limit (defaults to settings).
        plan_date: Date being planned, added to log context.

    Returns:
        DayPlan whose ``rows()`` are exactly what to persist for the date.

    Raises:
        DomainError: The target is incomplete or no recipe is plannable.
    """
    day = plan_date.isoformat() if isinstance(plan_date, date) else plan_date
    with LoggingContext(plan_date=day):
        daily_target = coerce_daily_target(target)
        plannable = build_catalog(catalog)
        return MealPlanOptimizer(max_passes=max_passes).optimize(daily_target, plannable)
