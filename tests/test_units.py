"""Unit tests for unit normalization and classification."""

import pytest

from nutriplan.normalize import MacroBasis, classify_unit, is_mass_basis_unit, normalize_unit_short_name
from nutriplan.normalize.units import units_match


class TestNormalizeUnitShortName:
    """Tests for normalize_unit_short_name."""

    @pytest.mark.parametrize(
        "unit",
        ["g", "G", "gram", "Grams", " grams ", "gramme", "grammes"],
    )
    def test_gram_spellings(self, unit):
        assert normalize_unit_short_name(unit) == "g"

    @pytest.mark.parametrize(
        "unit",
        ["ml", "ML", "milliliter", "milliliters", "millilitre", "Millilitres"],
    )
    def test_milliliter_spellings(self, unit):
        assert normalize_unit_short_name(unit) == "ml"

    def test_other_units_are_lowercased(self):
        """Test that non-mass units are only trimmed and lower-cased."""
        assert normalize_unit_short_name(" Clove ") == "clove"
        assert normalize_unit_short_name("Tbsp") == "tbsp"

    def test_missing_unit(self):
        assert normalize_unit_short_name(None) == ""
        assert normalize_unit_short_name("") == ""


class TestClassifyUnit:
    """Tests for classify_unit and is_mass_basis_unit."""

    def test_mass_basis(self):
        assert classify_unit("grams") is MacroBasis.MASS
        assert classify_unit("ml") is MacroBasis.MASS
        assert is_mass_basis_unit("Milliliters")

    def test_per_unit_basis(self):
        """Test that kilograms, liters and discrete units are per-unit."""
        assert classify_unit("kg") is MacroBasis.PER_UNIT
        assert classify_unit("l") is MacroBasis.PER_UNIT
        assert classify_unit("slice") is MacroBasis.PER_UNIT
        assert classify_unit("") is MacroBasis.PER_UNIT
        assert not is_mass_basis_unit("cup")


class TestUnitsMatch:
    """Tests for units_match."""

    def test_matches_after_normalization(self):
        assert units_match("grams", "g")
        assert units_match("Cup", "cup")

    def test_mismatch(self):
        assert not units_match("g", "ml")

    def test_missing_units_never_match(self):
        assert not units_match(None, "g")
        assert not units_match("", "")
