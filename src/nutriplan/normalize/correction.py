"""Order-of-magnitude correction and kcal repair for generated ingredient macros.

Generated nutrition data routinely misplaces a decimal (per-gram values
reported as per-100 g) or states kcal that disagree with the macros. The
functions here pick the most plausible power-of-ten factor for mass-basis
values and replace implausibly low kcal with the value derived from macros.
These are plausibility heuristics, not a nutrition database lookup.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from nutriplan.logging_config import get_logger
from nutriplan.normalize.macros import (
    IngredientMacroLine,
    MacroSet,
    MassMacros,
    PerUnitMacros,
    validate_shape,
)

logger = get_logger(__name__)

CorrectionFactor = Literal[1, 10, 100]

CORRECTION_FACTORS: tuple[CorrectionFactor, ...] = (1, 10, 100)

# Plausibility bounds for scaled per-100 values
MAX_MACRO_MASS_PER_100 = 105.0
MAX_KCAL_PER_100 = 900.0
MAX_PRODUCE_PROTEIN_PER_100 = 6.0
MAX_PRODUCE_FAT_PER_100 = 4.0

# Score penalties; only their relative ordering matters
NON_IDENTITY_PENALTY = 0.02
SPARSE_DENSE_PENALTY = 2.0
DENSE_MIN_AMOUNT = 10.0
DENSE_MIN_MACRO_MASS = 8.0

# Kcal repair
KCAL_ERROR_FLOOR = 0.05
MIN_DERIVED_KCAL = 0.01
KCAL_REPAIR_TOLERANCE = 0.35

# Practically-zero exemption
NEAR_ZERO_KCAL = 0.1
NEAR_ZERO_MACRO_MASS = 0.1


# =============================================================================
# Keyword Tables
# =============================================================================

ZERO_CALORIE_KEYWORDS: tuple[str, ...] = (
    "water",
    "salt",
    "black coffee",
    "unsweetened tea",
    "vinegar",
)

CALORIE_DENSE_KEYWORDS: tuple[str, ...] = (
    "cheese",
    "parmesan",
    "pecorino",
    "mozzarella",
    "cheddar",
    "chicken",
    "beef",
    "pork",
    "turkey",
    "salmon",
    "tuna",
    "meat",
    "pasta",
    "rice",
    "flour",
    "bread",
    "oat",
    "nut",
    "seed",
    "oil",
    "butter",
    "cream",
    "chocolate",
    "avocado",
)

PRODUCE_KEYWORDS: tuple[str, ...] = (
    "cauliflower",
    "broccoli",
    "zucchini",
    "spinach",
    "lettuce",
    "cucumber",
    "tomato",
    "pepper",
    "onion",
    "garlic",
    "carrot",
    "celery",
    "cabbage",
    "kale",
    "eggplant",
    "mushroom",
)


def _mentions_any(name: str, keywords: tuple[str, ...]) -> bool:
    # Plain substring match: "salt" hits "unsalted", "nut" hits "coconut"
    normalized = name.strip().lower()
    return any(keyword in normalized for keyword in keywords)


def is_naturally_zero_calorie(name: str) -> bool:
    return _mentions_any(name, ZERO_CALORIE_KEYWORDS)


def is_calorie_dense(name: str) -> bool:
    return _mentions_any(name, CALORIE_DENSE_KEYWORDS)


def is_produce(name: str) -> bool:
    return _mentions_any(name, PRODUCE_KEYWORDS)


# =============================================================================
# Scoring
# =============================================================================


def relative_kcal_error(stated_kcal: float, derived_kcal: float) -> float:
    """Relative disagreement between stated kcal and kcal derived from macros."""
    return abs(stated_kcal - derived_kcal) / max(derived_kcal, KCAL_ERROR_FLOOR)


def score_correction_factor(
    name: str,
    amount: float,
    values: MassMacros,
    factor: CorrectionFactor,
) -> float | None:
    """
    Score one candidate factor for mass-basis values.

    Returns:
        The score (lower is better), or None if the scaled values are implausible.
    """
    scaled = values.scaled(factor)
    macro_mass = scaled.macro_mass

    if macro_mass <= 0 or macro_mass > MAX_MACRO_MASS_PER_100:
        return None
    if scaled.kcal_per_100 > MAX_KCAL_PER_100:
        return None
    if is_produce(name) and (
        scaled.protein_per_100 > MAX_PRODUCE_PROTEIN_PER_100
        or scaled.fat_per_100 > MAX_PRODUCE_FAT_PER_100
    ):
        return None

    score = relative_kcal_error(scaled.kcal_per_100, scaled.derived_kcal)
    if factor != 1:
        score += NON_IDENTITY_PENALTY
    if is_calorie_dense(name) and amount >= DENSE_MIN_AMOUNT and macro_mass < DENSE_MIN_MACRO_MASS:
        score += SPARSE_DENSE_PENALTY
    return score


def choose_correction_factor(name: str, amount: float, values: MassMacros) -> CorrectionFactor:
    """
    Pick the power-of-ten factor that makes mass-basis values most plausible.

    Every candidate in ``CORRECTION_FACTORS`` is scored independently; the
    lowest score wins, earlier (smaller) factors win ties, and 1 is returned
    when no candidate is plausible.
    """
    best_factor: CorrectionFactor = 1
    best_score = float("inf")

    for factor in CORRECTION_FACTORS:
        score = score_correction_factor(name, amount, values, factor)
        if score is None:
            continue
        if score < best_score:
            best_factor, best_score = factor, score

    return best_factor


def repair_kcal(values: MacroSet) -> tuple[MacroSet, bool]:
    """
    Replace an implausibly low stated kcal with the kcal derived from macros.

    Stated values are never lowered, and disagreements within
    ``KCAL_REPAIR_TOLERANCE`` are treated as rounding noise.

    Returns:
        Tuple of (possibly repaired values, whether kcal was repaired).
    """
    derived = values.derived_kcal
    stated = values.stated_kcal

    if derived <= MIN_DERIVED_KCAL or stated >= derived:
        return values, False
    if relative_kcal_error(stated, derived) <= KCAL_REPAIR_TOLERANCE:
        return values, False
    return values.with_kcal(derived), True


# =============================================================================
# Normalization Entry Point
# =============================================================================


@dataclass(frozen=True)
class NormalizedMacros:
    """Result of normalizing one ingredient's macros."""

    line: IngredientMacroLine
    correction_factor: CorrectionFactor = 1
    kcal_was_repaired: bool = False

    @property
    def name(self) -> str:
        return self.line.name

    @property
    def unit(self) -> str:
        return self.line.unit

    @property
    def macros(self) -> MacroSet:
        return self.line.macros


def _is_practically_zero(values: MassMacros) -> bool:
    return values.kcal_per_100 <= NEAR_ZERO_KCAL and values.macro_mass <= NEAR_ZERO_MACRO_MASS


def normalize_and_scale_ingredient_macros(
    ingredient: "IngredientMacroLine | Mapping[str, Any]",
) -> NormalizedMacros:
    """
    Validate, rescale and kcal-repair one generated ingredient.

    Args:
        ingredient: An ``IngredientMacroLine`` or a raw mapping as produced by
            a generative service (camelCase or snake_case macro keys).

    Returns:
        NormalizedMacros with the normalized line, the applied correction
        factor and whether kcal was repaired.

    Raises:
        ShapeError: The macro set does not match the unit class.
        ValidationError: A macro field is missing, non-finite or negative.
    """
    line = validate_shape(ingredient)
    values = line.macros

    if isinstance(values, PerUnitMacros):
        repaired, was_repaired = repair_kcal(values)
        if was_repaired:
            logger.debug(
                f"Repaired kcal for '{line.name}': {values.kcal_per_unit} -> {repaired.stated_kcal} per {line.unit}"
            )
        return NormalizedMacros(
            line=IngredientMacroLine(line.name, line.amount, line.unit, repaired),
            correction_factor=1,
            kcal_was_repaired=was_repaired,
        )

    if _is_practically_zero(values) or is_naturally_zero_calorie(line.name):
        return NormalizedMacros(line=line, correction_factor=1, kcal_was_repaired=False)

    factor = choose_correction_factor(line.name, line.amount, values)
    scaled = values.scaled(factor)
    repaired, was_repaired = repair_kcal(scaled)

    if factor != 1:
        logger.debug(f"Applied correction factor x{factor} to '{line.name}'")
    if was_repaired:
        logger.debug(
            f"Repaired kcal for '{line.name}': {scaled.kcal_per_100} -> {repaired.stated_kcal} per 100{line.unit}"
        )

    return NormalizedMacros(
        line=IngredientMacroLine(line.name, line.amount, line.unit, repaired),
        correction_factor=factor,
        kcal_was_repaired=was_repaired,
    )
