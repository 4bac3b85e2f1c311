"""Normalize generated ingredient units and macro values."""

from nutriplan.normalize.correction import (
    NormalizedMacros,
    choose_correction_factor,
    normalize_and_scale_ingredient_macros,
    repair_kcal,
)
from nutriplan.normalize.macros import (
    IngredientMacroLine,
    MacroTotals,
    MassMacros,
    PerUnitMacros,
    validate_shape,
)
from nutriplan.normalize.units import (
    MacroBasis,
    classify_unit,
    is_mass_basis_unit,
    normalize_unit_short_name,
)

__all__ = [
    "IngredientMacroLine",
    "MacroBasis",
    "MacroTotals",
    "MassMacros",
    "NormalizedMacros",
    "PerUnitMacros",
    "choose_correction_factor",
    "classify_unit",
    "is_mass_basis_unit",
    "normalize_and_scale_ingredient_macros",
    "normalize_unit_short_name",
    "repair_kcal",
    "validate_shape",
]
