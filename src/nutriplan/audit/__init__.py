"""Audit generated recipes against their source text."""

from nutriplan.audit.completeness import (
    CompletenessReport,
    detect_structured_recipe_input,
    evaluate_recipe_import_completeness,
    fuzzy_contains,
    split_recipe_sections,
)

__all__ = [
    "CompletenessReport",
    "detect_structured_recipe_input",
    "evaluate_recipe_import_completeness",
    "fuzzy_contains",
    "split_recipe_sections",
]
