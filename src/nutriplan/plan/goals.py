"""Daily nutrition targets: suggestions from a body profile and tolerance checks."""

from dataclasses import dataclass
from enum import Enum

from nutriplan.config import get_settings
from nutriplan.logging_config import get_logger
from nutriplan.normalize.macros import MacroTotals, kcal_from_macros, round_half_up

logger = get_logger(__name__)


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class GoalDirection(str, Enum):
    LOSE = "lose"
    MAINTAIN = "maintain"
    GAIN = "gain"


ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

GOAL_KCAL_MULTIPLIERS: dict[GoalDirection, float] = {
    GoalDirection.LOSE: 0.85,
    GoalDirection.MAINTAIN: 1.0,
    GoalDirection.GAIN: 1.1,
}

# Grams per kg of body weight
PROTEIN_PER_KG: dict[GoalDirection, float] = {
    GoalDirection.LOSE: 2.0,
    GoalDirection.MAINTAIN: 1.6,
    GoalDirection.GAIN: 1.8,
}
FAT_PER_KG: dict[GoalDirection, float] = {
    GoalDirection.LOSE: 0.8,
    GoalDirection.MAINTAIN: 0.9,
    GoalDirection.GAIN: 1.0,
}

# Acceptable macronutrient distribution ranges, as shares of daily kcal
PROTEIN_KCAL_RANGE = (0.10, 0.35)
FAT_KCAL_RANGE = (0.20, 0.35)
CARBS_KCAL_RANGE = (0.45, 0.65)

INCOMPLETE_PROFILE_REASON = (
    "Profile is incomplete. Fill age, sex, height, weight, activity level, and goal direction."
)


@dataclass
class Profile:
    """Body profile used to suggest targets. Every field except body fat is required."""

    age: float | None = None
    sex: Sex | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    activity_level: ActivityLevel | None = None
    goal_direction: GoalDirection | None = None
    body_fat_pct: float | None = None

    @property
    def is_complete(self) -> bool:
        return bool(
            self.age
            and self.sex
            and self.height_cm
            and self.weight_kg
            and self.activity_level
            and self.goal_direction
        )


@dataclass(frozen=True)
class TargetSuggestion:
    """Result of a target suggestion; ``targets`` is None when no suggestion could be made."""

    can_suggest: bool
    reason: str | None = None
    bmr: float | None = None
    tdee: float | None = None
    targets: MacroTotals | None = None


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def basal_metabolic_rate(profile: Profile) -> float:
    """Mifflin-St Jeor BMR in kcal/day."""
    base = 10 * profile.weight_kg + 6.25 * profile.height_cm - 5 * profile.age
    return base + 5 if Sex(profile.sex) is Sex.MALE else base - 161


def suggest_targets(profile: Profile) -> TargetSuggestion:
    """
    Suggest daily kcal and macro targets for a profile.

    Protein and fat start from grams per kg of body weight and are clamped to
    their kcal-share ranges; carbs fill the remaining energy. Fat and then
    carbs are adjusted once each to absorb what the clamps left over.

    Returns:
        TargetSuggestion with whole-number targets, or ``can_suggest=False``
        and a reason when the profile is incomplete.
    """
    if not profile.is_complete:
        return TargetSuggestion(can_suggest=False, reason=INCOMPLETE_PROFILE_REASON)

    activity = ActivityLevel(profile.activity_level)
    goal = GoalDirection(profile.goal_direction)

    bmr = basal_metabolic_rate(profile)
    tdee = bmr * ACTIVITY_MULTIPLIERS[activity]
    kcal = round_half_up(tdee * GOAL_KCAL_MULTIPLIERS[goal])

    protein_range = (kcal * PROTEIN_KCAL_RANGE[0] / 4, kcal * PROTEIN_KCAL_RANGE[1] / 4)
    fat_range = (kcal * FAT_KCAL_RANGE[0] / 9, kcal * FAT_KCAL_RANGE[1] / 9)
    carbs_range = (kcal * CARBS_KCAL_RANGE[0] / 4, kcal * CARBS_KCAL_RANGE[1] / 4)

    protein = _clamp(profile.weight_kg * PROTEIN_PER_KG[goal], *protein_range)
    fat = _clamp(profile.weight_kg * FAT_PER_KG[goal], *fat_range)
    carbs = _clamp((kcal - protein * 4 - fat * 9) / 4, *carbs_range)

    remaining = kcal - kcal_from_macros(protein, carbs, fat)
    fat = _clamp(fat + remaining / 9, *fat_range)

    remaining = kcal - kcal_from_macros(protein, carbs, fat)
    carbs = _clamp(carbs + remaining / 4, *carbs_range)

    targets = MacroTotals(
        kcal=kcal,
        protein=round_half_up(protein),
        carbs=round_half_up(carbs),
        fat=round_half_up(fat),
    )
    logger.debug(f"Suggested targets {targets.as_dict()} from BMR {bmr:.0f}, TDEE {tdee:.0f}")
    return TargetSuggestion(
        can_suggest=True,
        bmr=round_half_up(bmr),
        tdee=round_half_up(tdee),
        targets=targets,
    )


def targets_from_macros(protein: float, carbs: float, fat: float) -> MacroTotals:
    """Targets from macro grams; kcal is derived with 4/4/9 kcal per gram."""
    return MacroTotals(
        kcal=round_half_up(kcal_from_macros(protein, carbs, fat)),
        protein=round_half_up(protein),
        carbs=round_half_up(carbs),
        fat=round_half_up(fat),
    )


def is_within_tolerance(actual: float, target: float, tolerance_pct: float) -> bool:
    return abs(actual - target) <= target * (tolerance_pct / 100)


def day_meets_targets(
    totals: MacroTotals,
    target: MacroTotals | None,
    tolerance_pct: float | None = None,
) -> bool:
    """Check if a day's totals are within tolerance on kcal and every macro."""
    if target is None:
        return False
    if tolerance_pct is None:
        tolerance_pct = get_settings().macro_tolerance_pct
    return all(
        is_within_tolerance(getattr(totals, name), getattr(target, name), tolerance_pct)
        for name in ("kcal", "protein", "carbs", "fat")
    )
