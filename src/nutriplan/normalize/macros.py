"""Macro value types and ingredient shape validation."""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Union

from nutriplan.errors import ShapeError, ValidationError
from nutriplan.normalize.units import MacroBasis, classify_unit, normalize_unit_short_name

# =============================================================================
# Field Tables
# =============================================================================

# snake_case field -> camelCase key used by generated JSON payloads
MASS_FIELDS: dict[str, str] = {
    "kcal_per_100": "kcalPer100",
    "protein_per_100": "proteinPer100",
    "carbs_per_100": "carbsPer100",
    "fat_per_100": "fatPer100",
}

PER_UNIT_FIELDS: dict[str, str] = {
    "kcal_per_unit": "kcalPerUnit",
    "protein_per_unit": "proteinPerUnit",
    "carbs_per_unit": "carbsPerUnit",
    "fat_per_unit": "fatPerUnit",
}


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positive values (2.5 -> 3, 0.125 -> 0.13)."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def kcal_from_macros(protein: float, carbs: float, fat: float) -> float:
    """Energy implied by macros using 4/4/9 kcal per gram."""
    return protein * 4 + carbs * 4 + fat * 9


# =============================================================================
# Value Types
# =============================================================================


@dataclass(frozen=True)
class MacroTotals:
    """Additive, scale-linear macro totals."""

    kcal: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    @classmethod
    def zero(cls) -> "MacroTotals":
        return cls()

    def __add__(self, other: "MacroTotals") -> "MacroTotals":
        return MacroTotals(
            kcal=self.kcal + other.kcal,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
        )

    def scaled(self, factor: float) -> "MacroTotals":
        """Multiply every macro by ``factor``."""
        return MacroTotals(
            kcal=self.kcal * factor,
            protein=self.protein * factor,
            carbs=self.carbs * factor,
            fat=self.fat * factor,
        )

    def rounded(self) -> "MacroTotals":
        """Round for display: whole kcal, macros to one decimal."""
        return MacroTotals(
            kcal=round_half_up(self.kcal),
            protein=round_half_up(self.protein, 1),
            carbs=round_half_up(self.carbs, 1),
            fat=round_half_up(self.fat, 1),
        )

    def as_dict(self) -> dict[str, float]:
        return {"kcal": self.kcal, "protein": self.protein, "carbs": self.carbs, "fat": self.fat}

    @classmethod
    def total(cls, items: "Iterable[MacroTotals]") -> "MacroTotals":
        """Sum a sequence of totals."""
        result = cls.zero()
        for item in items:
            result = result + item
        return result


@dataclass(frozen=True)
class MassMacros:
    """Macro values per 100 g or 100 ml."""

    kcal_per_100: float
    protein_per_100: float
    carbs_per_100: float
    fat_per_100: float

    basis: ClassVar[MacroBasis] = MacroBasis.MASS

    @property
    def macro_mass(self) -> float:
        """Grams of protein + carbs + fat per 100 mass units."""
        return self.protein_per_100 + self.carbs_per_100 + self.fat_per_100

    @property
    def derived_kcal(self) -> float:
        return kcal_from_macros(self.protein_per_100, self.carbs_per_100, self.fat_per_100)

    @property
    def stated_kcal(self) -> float:
        return self.kcal_per_100

    def scaled(self, factor: float) -> "MassMacros":
        return MassMacros(
            kcal_per_100=self.kcal_per_100 * factor,
            protein_per_100=self.protein_per_100 * factor,
            carbs_per_100=self.carbs_per_100 * factor,
            fat_per_100=self.fat_per_100 * factor,
        )

    def with_kcal(self, kcal: float) -> "MassMacros":
        return MassMacros(kcal, self.protein_per_100, self.carbs_per_100, self.fat_per_100)

    def for_amount(self, amount: float) -> MacroTotals:
        return MacroTotals(
            kcal=self.kcal_per_100 * amount / 100,
            protein=self.protein_per_100 * amount / 100,
            carbs=self.carbs_per_100 * amount / 100,
            fat=self.fat_per_100 * amount / 100,
        )


@dataclass(frozen=True)
class PerUnitMacros:
    """Macro values per one discrete unit (clove, slice, tablespoon, ...)."""

    kcal_per_unit: float
    protein_per_unit: float
    carbs_per_unit: float
    fat_per_unit: float

    basis: ClassVar[MacroBasis] = MacroBasis.PER_UNIT

    @property
    def derived_kcal(self) -> float:
        return kcal_from_macros(self.protein_per_unit, self.carbs_per_unit, self.fat_per_unit)

    @property
    def stated_kcal(self) -> float:
        return self.kcal_per_unit

    def with_kcal(self, kcal: float) -> "PerUnitMacros":
        return PerUnitMacros(kcal, self.protein_per_unit, self.carbs_per_unit, self.fat_per_unit)

    def for_amount(self, amount: float) -> MacroTotals:
        return MacroTotals(
            kcal=self.kcal_per_unit * amount,
            protein=self.protein_per_unit * amount,
            carbs=self.carbs_per_unit * amount,
            fat=self.fat_per_unit * amount,
        )


MacroSet = Union[MassMacros, PerUnitMacros]


@dataclass(frozen=True)
class IngredientMacroLine:
    """An ingredient amount with exactly one macro representation."""

    name: str
    amount: float
    unit: str
    macros: MacroSet

    @property
    def basis(self) -> MacroBasis:
        return self.macros.basis

    def contribution(self) -> MacroTotals:
        """Macros contributed by the literal amount of this line."""
        return self.macros.for_amount(self.amount)


# =============================================================================
# Shape Validation
# =============================================================================


def _check_number(value: Any, field_name: str, ingredient: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            f"Invalid {field_name} for ingredient '{ingredient}': expected a number",
            field=field_name,
            ingredient=ingredient,
        )
    if not math.isfinite(value) or value < 0:
        raise ValidationError(
            f"Invalid {field_name} for ingredient '{ingredient}': {value!r}",
            field=field_name,
            ingredient=ingredient,
        )
    return float(value)


def _lookup(raw: Mapping[str, Any], snake: str, camel: str) -> Any:
    if camel in raw and raw[camel] is not None:
        return raw[camel]
    return raw.get(snake)


def _has_any(raw: Mapping[str, Any], fields: dict[str, str]) -> bool:
    return any(_lookup(raw, snake, camel) is not None for snake, camel in fields.items())


def _read_set(raw: Mapping[str, Any], fields: dict[str, str], ingredient: str) -> list[float]:
    return [_check_number(_lookup(raw, snake, camel), camel, ingredient) for snake, camel in fields.items()]


def _check_basis(unit: str, basis: MacroBasis, ingredient: str) -> None:
    expected = classify_unit(unit)
    if expected is basis:
        return
    if expected is MacroBasis.MASS:
        raise ShapeError(f'Unit "{unit}" requires per-100 macros', unit=unit, ingredient=ingredient)
    raise ShapeError(f'Unit "{unit}" requires per-unit macros', unit=unit, ingredient=ingredient)


def validate_shape(raw: "IngredientMacroLine | Mapping[str, Any]") -> IngredientMacroLine:
    """
    Validate an ingredient's macro shape and return a normalized line.

    Accepts either an ``IngredientMacroLine`` or a mapping using camelCase
    (``kcalPer100``, ``kcalPerUnit``, ...) or snake_case keys.

    Raises:
        ShapeError: Not exactly one macro set, or the set disagrees with the unit.
        ValidationError: A macro field is missing, non-numeric, non-finite or negative.
    """
    if isinstance(raw, IngredientMacroLine):
        unit = normalize_unit_short_name(raw.unit)
        _check_basis(unit, raw.basis, raw.name)
        _check_number(raw.amount, "amount", raw.name)
        values = [
            _check_number(getattr(raw.macros, snake), camel, raw.name)
            for snake, camel in (MASS_FIELDS if raw.basis is MacroBasis.MASS else PER_UNIT_FIELDS).items()
        ]
        macros: MacroSet = (
            MassMacros(*values) if raw.basis is MacroBasis.MASS else PerUnitMacros(*values)
        )
        return IngredientMacroLine(name=raw.name, amount=float(raw.amount), unit=unit, macros=macros)

    name = str(raw.get("name") or "")
    unit = normalize_unit_short_name(raw.get("unit"))
    has_mass = _has_any(raw, MASS_FIELDS)
    has_per_unit = _has_any(raw, PER_UNIT_FIELDS)

    if has_mass == has_per_unit:
        raise ShapeError("Ingredient must include exactly one macro set", unit=unit, ingredient=name)

    basis = MacroBasis.MASS if has_mass else MacroBasis.PER_UNIT
    _check_basis(unit, basis, name)
    amount = _check_number(raw.get("amount"), "amount", name)

    if basis is MacroBasis.MASS:
        macros = MassMacros(*_read_set(raw, MASS_FIELDS, name))
    else:
        macros = PerUnitMacros(*_read_set(raw, PER_UNIT_FIELDS, name))

    return IngredientMacroLine(name=name, amount=amount, unit=unit, macros=macros)
