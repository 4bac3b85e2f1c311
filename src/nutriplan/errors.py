"""Exceptions raised by the nutriplan engine."""


class NutriplanError(Exception):
    """Base exception for engine errors."""


class ValidationError(NutriplanError):
    """Raised when a macro field is missing, non-numeric, non-finite or negative."""

    def __init__(self, message: str, field: str | None = None, ingredient: str | None = None):
        super().__init__(message)
        self.field = field
        self.ingredient = ingredient


class ShapeError(NutriplanError):
    """Raised when an ingredient's macro set does not match its unit class."""

    def __init__(self, message: str, unit: str | None = None, ingredient: str | None = None):
        super().__init__(message)
        self.unit = unit
        self.ingredient = ingredient


class DomainError(NutriplanError):
    """Raised when meal plan preconditions are not met."""
