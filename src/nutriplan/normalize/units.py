"""Unit normalization and macro-basis classification."""

from enum import Enum

# =============================================================================
# Unit Tables
# =============================================================================

# Spellings collapsed onto the two mass-basis short names
UNIT_SHORT_NAMES: dict[str, str] = {
    "g": "g",
    "gram": "g",
    "grams": "g",
    "gramme": "g",
    "grammes": "g",
    "ml": "ml",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
}

MASS_BASIS_UNITS: frozenset[str] = frozenset({"g", "ml"})


class MacroBasis(str, Enum):
    """How an ingredient's macro values are expressed."""

    MASS = "mass"  # per 100 g / 100 ml
    PER_UNIT = "per_unit"  # per one clove, slice, tbsp, ...


# =============================================================================
# Normalization
# =============================================================================


def normalize_unit_short_name(unit: str | None) -> str:
    """
    Normalize a unit to its short display name.

    Gram and milliliter spellings map to "g" / "ml"; any other unit is
    returned lower-cased and trimmed.

    Examples:
        "Grams" -> "g"
        " milliliters " -> "ml"
        "Clove" -> "clove"
    """
    normalized = (unit or "").strip().lower()
    return UNIT_SHORT_NAMES.get(normalized, normalized)


def classify_unit(unit: str | None) -> MacroBasis:
    """Classify a unit as mass-basis (g/ml) or per-unit."""
    if normalize_unit_short_name(unit) in MASS_BASIS_UNITS:
        return MacroBasis.MASS
    return MacroBasis.PER_UNIT


def is_mass_basis_unit(unit: str | None) -> bool:
    """Check if macros for this unit are given per 100 g/ml."""
    return classify_unit(unit) is MacroBasis.MASS


def units_match(first: str | None, second: str | None) -> bool:
    """Check if two units name the same thing after normalization."""
    if not first or not second:
        return False
    return normalize_unit_short_name(first) == normalize_unit_short_name(second)
