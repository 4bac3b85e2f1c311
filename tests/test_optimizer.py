"""Unit tests for the MealPlanOptimizer and generate_day_plan."""

from datetime import date

import pytest

from conftest import simple_recipe
from nutriplan.errors import DomainError
from nutriplan.normalize.macros import MacroTotals
from nutriplan.plan import (
    MEAL_TYPES,
    CatalogRecipe,
    MealPlanOptimizer,
    MealSlot,
    MealType,
    generate_day_plan,
    score_delta,
)
from nutriplan.plan.optimizer import DayPlan, build_catalog, coerce_daily_target, quantize_servings
from nutriplan.recipe.models import Recipe

TARGET = MacroTotals(kcal=2000, protein=100, carbs=200, fat=80)


@pytest.fixture
def perfect_fit_catalog():
    """One recipe per slot whose single serving matches that slot's share of 2000/150/200/60."""
    return [
        simple_recipe("eggs-on-toast", 500, 37.5, 50, 15, meal_tags=("Breakfast",)),
        simple_recipe("chicken-wrap", 600, 45, 60, 18, meal_tags=("Lunch",)),
        simple_recipe("salmon-rice", 700, 52.5, 70, 21, meal_tags=("Dinner",)),
        simple_recipe("yogurt", 200, 15, 20, 6, meal_tags=("Snack",)),
    ]


@pytest.fixture
def proportional_recipe():
    """An untagged recipe whose macros are exactly a quarter of TARGET per serving."""
    return simple_recipe("balanced-bowl", 500, 25, 50, 20)


# =============================================================================
# Scoring Tests
# =============================================================================


class TestScoreDelta:
    """Tests for score_delta and serving quantization."""

    def test_perfect_fit_scores_zero(self):
        assert score_delta(TARGET, TARGET) == 0

    def test_weights(self):
        """Test that kcal, protein, carbs and fat are weighted 0.35/0.25/0.20/0.20."""
        assert score_delta(MacroTotals(0, 100, 200, 80), TARGET) == pytest.approx(0.35)
        assert score_delta(MacroTotals(2000, 0, 200, 80), TARGET) == pytest.approx(0.25)
        assert score_delta(MacroTotals(2000, 100, 0, 80), TARGET) == pytest.approx(0.20)
        assert score_delta(MacroTotals(2000, 100, 200, 0), TARGET) == pytest.approx(0.20)

    def test_small_targets_use_unit_denominator(self):
        """Test that targets below 1 do not inflate the relative error."""
        assert score_delta(MacroTotals(1, 0, 0, 0), MacroTotals(0.5, 0, 0, 0)) == pytest.approx(0.5 * 0.35)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1.2, 1.25), (1.4, 1.5), (1.125, 1.25), (0.1, 0.5), (5.0, 3.0)],
    )
    def test_quantize_servings(self, value, expected):
        assert quantize_servings(value, 0.5, 3.0) == expected


# =============================================================================
# Precondition Tests
# =============================================================================


class TestPreconditions:
    """Tests for target and catalog validation."""

    @pytest.mark.parametrize(
        "target",
        [
            None,
            {"kcal": 2000, "protein": 150, "carbs": 200},
            {"kcal": 2000, "protein": 150, "carbs": 200, "fat": None},
            {"kcal": 0, "protein": 150, "carbs": 200, "fat": 60},
            MacroTotals(2000, -1, 200, 60),
        ],
    )
    def test_incomplete_target(self, target, catalog):
        with pytest.raises(DomainError, match="targets must be set"):
            generate_day_plan(target, catalog)

    def test_mapping_target_is_accepted(self, daily_target):
        assert coerce_daily_target(daily_target) == MacroTotals(2200, 150, 240, 70)

    def test_empty_catalog(self, daily_target):
        with pytest.raises(DomainError, match="No recipes available"):
            generate_day_plan(daily_target, [])

    def test_catalog_without_plannable_recipes(self, daily_target):
        """Test that recipes without servings or ingredients are not plannable."""
        recipes = [
            Recipe(id="empty", name="Empty", servings=2),
            simple_recipe("zero-servings", 300, 10, 10, 10, servings=0),
        ]

        with pytest.raises(DomainError, match="No recipes with ingredient macros"):
            generate_day_plan(daily_target, recipes)

    def test_build_catalog_filters_unplannable(self, catalog):
        recipes = [*catalog, Recipe(id="empty", name="Empty", servings=2)]

        entries = build_catalog(recipes)

        assert [entry.recipe_id for entry in entries] == [recipe.id for recipe in catalog]

    def test_catalog_entry_from_recipe(self, burger_recipe):
        """Test that catalog entries use part-aware per-serving macros."""
        entry = CatalogRecipe.from_recipe(burger_recipe)

        assert entry.per_serving.kcal == pytest.approx(352)
        assert entry.meal_tags == (MealType.DINNER,)
        assert entry.ingredient_count == 3


# =============================================================================
# Greedy Selection Tests
# =============================================================================


class TestGreedySelection:
    """Tests for per-slot recipe selection."""

    def test_serving_estimate_from_slot_kcal(self):
        optimizer = MealPlanOptimizer(max_passes=0)
        recipe = CatalogRecipe.from_recipe(simple_recipe("toast", 200, 8, 30, 4))

        slot = optimizer.pick_for_slot(MealType.BREAKFAST, TARGET, [recipe])

        # 25% of 2000 kcal / 200 kcal per serving
        assert slot.servings == 2.5
        assert slot.macros.kcal == pytest.approx(500)

    def test_serving_estimate_is_clamped(self):
        optimizer = MealPlanOptimizer(max_passes=0)
        light = CatalogRecipe.from_recipe(simple_recipe("broth", 50, 5, 2, 1))
        heavy = CatalogRecipe.from_recipe(simple_recipe("feast", 3000, 100, 300, 150))

        assert optimizer.pick_for_slot(MealType.DINNER, TARGET, [light]).servings == 3.0
        assert optimizer.pick_for_slot(MealType.SNACK, TARGET, [heavy]).servings == 0.5

    def test_tagged_recipes_preferred(self, catalog):
        optimizer = MealPlanOptimizer(max_passes=0)
        entries = build_catalog(catalog)

        slot = optimizer.pick_for_slot(MealType.SNACK, TARGET, entries)

        assert slot.recipe_id in {"protein-bar", "rice-bowl"}

    def test_falls_back_to_whole_catalog(self, daily_target):
        """Test that every slot is filled even when only dinner recipes exist."""
        recipes = [simple_recipe("curry", 650, 40, 70, 20, meal_tags=("Dinner",))]

        plan = generate_day_plan(daily_target, recipes, max_passes=0)

        assert plan.generated_count == 4
        assert {slot.recipe_id for slot in plan.slots} == {"curry"}

    def test_empty_pool_leaves_slot_unfilled(self):
        optimizer = MealPlanOptimizer(max_passes=0)

        assert optimizer.pick_for_slot(MealType.BREAKFAST, TARGET, []) is None
        assert optimizer.optimize(TARGET, []).generated_count == 0

    def test_ties_keep_catalog_order(self):
        optimizer = MealPlanOptimizer(max_passes=0)
        first = CatalogRecipe.from_recipe(simple_recipe("first", 400, 20, 40, 15))
        second = CatalogRecipe.from_recipe(simple_recipe("second", 400, 20, 40, 15))

        slot = optimizer.pick_for_slot(MealType.LUNCH, TARGET, [first, second])

        assert slot.recipe_id == "first"


# =============================================================================
# Local Search Tests
# =============================================================================


class TestLocalSearch:
    """Tests for serving adjustment after greedy selection."""

    def test_perfect_fit_needs_no_adjustment(self, perfect_fit_catalog):
        """Test that a plan already at the optimum is left alone."""
        target = {"kcal": 2000, "protein": 150, "carbs": 200, "fat": 60}

        plan = generate_day_plan(target, perfect_fit_catalog)

        assert [slot.recipe_id for slot in plan.slots] == [
            "eggs-on-toast",
            "chicken-wrap",
            "salmon-rice",
            "yogurt",
        ]
        assert all(slot.servings == 1 for slot in plan.slots)
        assert plan.mutations == 0
        assert plan.passes == 1
        assert plan.score == pytest.approx(0, abs=1e-9)

    def test_adjusts_servings_towards_target(self, proportional_recipe):
        """Test that one quarter-step fixes the greedy overshoot of 4.25 servings."""
        plan = generate_day_plan(TARGET, [proportional_recipe])

        assert [slot.servings for slot in plan.slots] == [0.75, 1.25, 1.5, 0.5]
        assert plan.mutations == 1
        assert plan.passes == 2
        assert plan.score_history[0] == pytest.approx(0.0625)
        assert plan.score == pytest.approx(0)
        assert plan.totals == MacroTotals(2000, 100, 200, 80)

    def test_score_history_is_non_increasing(self, catalog, daily_target):
        plan = generate_day_plan(daily_target, catalog)

        history = plan.score_history
        assert all(later <= earlier for earlier, later in zip(history, history[1:]))
        assert plan.score == history[-1]
        assert plan.passes <= 80
        assert len(history) == plan.passes + 1

    def test_zero_passes_keeps_greedy_servings(self, proportional_recipe):
        plan = generate_day_plan(TARGET, [proportional_recipe], max_passes=0)

        assert [slot.servings for slot in plan.slots] == [1.0, 1.25, 1.5, 0.5]
        assert plan.passes == 0
        assert plan.score_history == (pytest.approx(0.0625),)

    def test_pass_limit_from_settings(self, monkeypatch, proportional_recipe):
        monkeypatch.setenv("PLANNER_MAX_PASSES", "0")

        plan = generate_day_plan(TARGET, [proportional_recipe])

        assert plan.passes == 0
        assert plan.mutations == 0

    def test_pass_reference_score_is_fixed_within_a_pass(self):
        """Test that proposals are judged against the score from the start of the pass.

        The recipe fits best at 0.7 servings. From 1.0, the first pass takes
        0.75 and then also 0.5 (clamped from 0.25), since 0.5 still beats the
        score at 1.0. The second pass climbs back to 0.75.
        """
        recipe = CatalogRecipe(
            recipe_id="stew",
            recipe_name="Stew",
            per_serving=MacroTotals(kcal=1000, protein=50, carbs=100, fat=40),
        )
        target = MacroTotals(kcal=700, protein=35, carbs=70, fat=28)
        start = MealSlot(
            meal_type=MealType.BREAKFAST,
            recipe_id="stew",
            recipe_name="Stew",
            servings=1.0,
            macros=recipe.macros_for(1.0),
        )

        slots, history, passes, mutations = MealPlanOptimizer().local_search(target, [recipe], [start])

        assert slots[0].servings == 0.75
        assert slots[0].macros.kcal == pytest.approx(750)
        assert history == pytest.approx([0.3 / 0.7, 0.2 / 0.7, 0.05 / 0.7, 0.05 / 0.7])
        assert passes == 3
        assert mutations == 3

    def test_local_search_leaves_input_untouched(self):
        recipe = CatalogRecipe(recipe_id="stew", recipe_name="Stew", per_serving=MacroTotals(1000, 50, 100, 40))
        start = MealSlot(MealType.LUNCH, "stew", "Stew", 1.0, recipe.macros_for(1.0))
        selected = [start]

        MealPlanOptimizer().local_search(MacroTotals(700, 35, 70, 28), [recipe], selected)

        assert selected == [start]

    def test_serving_proposals_skip_no_ops(self):
        optimizer = MealPlanOptimizer()

        assert optimizer.serving_proposals(0.5) == [0.75, 1.0]
        assert optimizer.serving_proposals(4.0) == [3.75, 3.5]
        assert optimizer.serving_proposals(2.0) == [1.75, 2.25, 1.5, 2.5]

    def test_search_may_exceed_greedy_cap(self):
        """Test that local search can go past 3 servings, up to 4."""
        recipe = simple_recipe("broth", 50, 5, 5, 1)

        plan = generate_day_plan(TARGET, [recipe])

        assert max(slot.servings for slot in plan.slots) == 4.0


# =============================================================================
# Day Plan Tests
# =============================================================================


class TestDayPlan:
    """Tests for DayPlan output."""

    def test_slots_follow_meal_order(self, catalog, daily_target):
        plan = generate_day_plan(daily_target, catalog)

        assert [slot.meal_type for slot in plan.slots] == list(MEAL_TYPES)
        assert plan.slot(MealType.DINNER) is plan.slots[2]

    def test_rows_for_date(self, proportional_recipe):
        plan = generate_day_plan(TARGET, [proportional_recipe], plan_date=date(2026, 10, 19))

        rows = plan.rows(date(2026, 10, 19))

        assert rows[0] == {
            "date": "2026-10-19",
            "meal_type": "Breakfast",
            "recipe_id": "balanced-bowl",
            "servings": 0.75,
        }
        assert [row["meal_type"] for row in rows] == ["Breakfast", "Lunch", "Dinner", "Snack"]
        assert plan.rows("2026-10-19") == rows

    def test_display_totals_are_rounded(self):
        plan = DayPlan(
            slots=(),
            totals=MacroTotals(kcal=2012.6, protein=101.04, carbs=199.96, fat=80.26),
            score=0,
            score_history=(0,),
            passes=0,
            mutations=0,
        )

        assert plan.display_totals == MacroTotals(kcal=2013, protein=101.0, carbs=200.0, fat=80.3)
        assert plan.totals.kcal == 2012.6

    def test_totals_are_sum_of_slots(self, catalog, daily_target):
        plan = generate_day_plan(daily_target, catalog)

        assert plan.totals.kcal == pytest.approx(sum(slot.macros.kcal for slot in plan.slots))

    def test_plans_part_aware_recipes(self, burger_recipe, daily_target):
        plan = generate_day_plan(daily_target, [burger_recipe], max_passes=0)

        dinner = plan.slot(MealType.DINNER)
        assert dinner.macros.kcal == pytest.approx(352 * dinner.servings)
