"""Completeness audit of a generated recipe against its pasted source text.

When a user pastes a full recipe and a generative service turns it into
structured data, whole sub-recipes (a sauce, an assembly phase) are easily
dropped. This module extracts ingredient, instruction and section-header
candidates from the source with text heuristics and reports those that the
generated recipe does not mention.
"""

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from rapidfuzz.utils import default_process

from nutriplan.logging_config import get_logger

logger = get_logger(__name__)

# Word-match ratios per candidate kind
INGREDIENT_MATCH_RATIO = 0.6
INSTRUCTION_MATCH_RATIO = 0.25
SECTION_MATCH_RATIO = 0.5

MIN_STRUCTURED_LINES = 6
MIN_QUANTITY_LINES = 3
MIN_INSTRUCTION_LENGTH = 8
MIN_INGREDIENT_LENGTH = 2
MIN_WORD_LENGTH = 3

_FRACTION_GLYPHS = "¼-¾⅐-⅞"

DIRECTION_MARKER = re.compile(r"\b(?:directions?|instructions?|method|preparation)\b", re.IGNORECASE)
QUANTITY_MARKER = re.compile(rf"^[-*•]?\s*(?:\d+\s*/\s*\d+|\d+|[{_FRACTION_GLYPHS}])")
TO_TASTE = re.compile(r"\bto taste\b", re.IGNORECASE)
HEADER_LINE = re.compile(r"^[A-Za-z ]+:$")
SECTION_HEADER = re.compile(r"^[A-Za-z][A-Za-z ]+:$")

BULLET = re.compile(r"^[-*•]\s*")
PARENTHETICAL = re.compile(r"\([^)]*\)")
LEADING_AMOUNT = re.compile(
    rf"^\s*(?:\d+\s+\d+\s*/\s*\d+|\d+\s*/\s*\d+|\d+(?:[.,]\d+)?[{_FRACTION_GLYPHS}]?|[{_FRACTION_GLYPHS}])"
    r"(?:\s*-\s*\d+(?:[.,]\d+)?)?"
    r"[a-zA-Z]*\s*"
)
LEADING_UNIT = re.compile(
    r"^\s*(?:tablespoons?|teaspoons?|tbsps?|tsps?|cups?|ounces?|oz|kilograms?|kg|milligrams?|mg|"
    r"grams?|g|milliliters?|millilitres?|ml|liters?|litres?|l|slices?|pieces?|cloves?)\b\.?\s*",
    re.IGNORECASE,
)

GENERIC_HEADERS: frozenset[str] = frozenset(
    {
        "directions",
        "direction",
        "instructions",
        "instruction",
        "method",
        "preparation",
        "assembly",
    }
)

# Words too common in recipes to say anything about coverage
STOP_WORDS: frozenset[str] = frozenset(
    {
        # Articles and connectives
        "the",
        "and",
        "with",
        "for",
        "from",
        "into",
        "onto",
        "your",
        "this",
        "that",
        "each",
        "then",
        "until",
        "over",
        "all",
        "are",
        "was",
        "were",
        "have",
        "has",
        "had",
        # Cooking verbs
        "heat",
        "cook",
        "place",
        "add",
        "mix",
        "make",
        "use",
        "let",
        # Seasoning
        "salt",
        "pepper",
        "taste",
        # Units
        "cup",
        "cups",
        "tbsp",
        "tsp",
        "tablespoon",
        "teaspoon",
        "oz",
        "ounce",
        "ounces",
        "slice",
        "slices",
        "piece",
        "pieces",
        "gram",
        "grams",
        "ml",
        "liter",
        "liters",
    }
)


@dataclass(frozen=True)
class CompletenessReport:
    """What a generated recipe left out of its source text."""

    is_structured_recipe: bool
    missing_ingredients: tuple[str, ...] = ()
    missing_step_tokens: tuple[str, ...] = ()
    missing_section_tokens: tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not (self.missing_ingredients or self.missing_step_tokens or self.missing_section_tokens)

    @property
    def missing_count(self) -> int:
        return (
            len(self.missing_ingredients)
            + len(self.missing_step_tokens)
            + len(self.missing_section_tokens)
        )


# =============================================================================
# Text Helpers
# =============================================================================


def normalize_spaces(value: str) -> str:
    return " ".join(value.split())


def normalize_token(value: str) -> str:
    """Lowercase, replace punctuation with spaces and collapse whitespace."""
    return normalize_spaces(default_process(value))


def split_lines(text: str) -> list[str]:
    """Split text into whitespace-normalized, non-blank lines."""
    lines = (normalize_spaces(line) for line in text.splitlines())
    return [line for line in lines if line]


def is_quantity_line(line: str) -> bool:
    """Check if a line starts with an amount or says "to taste"."""
    return bool(QUANTITY_MARKER.match(line) or TO_TASTE.search(line))


def word_set(value: str) -> set[str]:
    """Distinct meaningful words: at least three characters and not a stop word."""
    return {
        word
        for word in normalize_token(value).split()
        if len(word) >= MIN_WORD_LENGTH and word not in STOP_WORDS
    }


def _contains_words(haystack_words: set[str], token: str, min_ratio: float) -> bool:
    token_words = word_set(token)
    if not token_words:
        return True
    matches = len(token_words & haystack_words)
    required = max(1, math.floor(len(token_words) * min_ratio))
    return matches >= required


def fuzzy_contains(haystack: str, token: str, min_ratio: float = INGREDIENT_MATCH_RATIO) -> bool:
    """
    Check if enough of a token's meaningful words appear in a haystack.

    The token is contained when at least ``max(1, floor(n * min_ratio))`` of
    its ``n`` distinct meaningful words occur in the haystack. A token made
    only of stop words is always contained.
    """
    return _contains_words(word_set(haystack), token, min_ratio)


def _unique(values: Iterable[str], key=lambda value: value) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        marker = key(value)
        if marker in seen:
            continue
        seen.add(marker)
        result.append(value)
    return result


# =============================================================================
# Source Parsing
# =============================================================================


def detect_structured_recipe_input(text: str) -> bool:
    """
    Check if text looks like a pasted recipe rather than a free-form request.

    Requires at least six non-blank lines, a directions-style marker line and
    at least three quantity-bearing lines.
    """
    lines = split_lines(text)
    if len(lines) < MIN_STRUCTURED_LINES:
        return False
    quantity_lines = sum(1 for line in lines if is_quantity_line(line))
    has_directions = any(DIRECTION_MARKER.search(line) for line in lines)
    return has_directions and quantity_lines >= MIN_QUANTITY_LINES


def split_recipe_sections(text: str) -> tuple[list[str], list[str]]:
    """
    Split source text into ingredient and instruction zones.

    Returns:
        Tuple of (ingredient lines, instruction lines). Without a directions
        marker the ingredient zone is every quantity-bearing line and there
        are no instruction lines.
    """
    lines = split_lines(text)
    for index, line in enumerate(lines):
        if DIRECTION_MARKER.search(line):
            return lines[:index], lines[index + 1 :]
    return [line for line in lines if is_quantity_line(line)], []


def clean_ingredient_line(line: str) -> str:
    """
    Reduce a source ingredient line to the ingredient itself.

    Examples:
        "- 1/2 cup (145g) ketchup" -> "ketchup"
        "5 oz (142g) 75/25 ground beef" -> "75/25 ground beef"
        "Kosher salt to taste" -> "Kosher salt"
    """
    cleaned = BULLET.sub("", line)
    cleaned = PARENTHETICAL.sub(" ", cleaned)
    cleaned = LEADING_AMOUNT.sub("", cleaned, count=1)
    cleaned = LEADING_UNIT.sub("", cleaned, count=1)
    cleaned = TO_TASTE.sub("", cleaned)
    return normalize_spaces(cleaned).strip(" ,;-")


def ingredient_candidates(lines: Iterable[str]) -> list[str]:
    cleaned = (
        clean_ingredient_line(line)
        for line in lines
        if not HEADER_LINE.match(line) and is_quantity_line(line)
    )
    return _unique(
        (candidate for candidate in cleaned if len(candidate) >= MIN_INGREDIENT_LENGTH),
        key=str.casefold,
    )


def instruction_candidates(lines: Iterable[str]) -> list[str]:
    normalized = (
        normalize_token(line)
        for line in lines
        if not HEADER_LINE.match(line) and len(line) >= MIN_INSTRUCTION_LENGTH
    )
    return _unique(token for token in normalized if token)


def section_header_candidates(lines: Iterable[str]) -> list[str]:
    tokens = (
        normalize_token(line[:-1])
        for line in lines
        if SECTION_HEADER.match(line)
    )
    return _unique(token for token in tokens if token and token not in GENERIC_HEADERS)


# =============================================================================
# Audit
# =============================================================================


def _generated_text(generated: Any) -> tuple[str, str]:
    if isinstance(generated, Mapping):
        ingredients = generated.get("ingredients") or []
        instructions = generated.get("instructions") or []
        names = [str(item.get("name", "")) if isinstance(item, Mapping) else str(item) for item in ingredients]
    else:
        ingredients = getattr(generated, "ingredients", None) or []
        instructions = getattr(generated, "instructions", None) or []
        names = [str(getattr(item, "name", item)) for item in ingredients]
    return " ".join(names), " ".join(str(step) for step in instructions)


def evaluate_recipe_import_completeness(source_text: str, generated: Any) -> CompletenessReport:
    """
    Report source content missing from a generated recipe.

    Args:
        source_text: The recipe text the user pasted.
        generated: The generated recipe; anything with ``ingredients`` (items
            with a ``name``) and ``instructions``, or an equivalent mapping.

    Returns:
        CompletenessReport. Unstructured source text yields an empty report
        with ``is_structured_recipe=False``.
    """
    if not detect_structured_recipe_input(source_text):
        return CompletenessReport(is_structured_recipe=False)

    ingredient_lines, instruction_lines = split_recipe_sections(source_text)
    candidate_ingredients = ingredient_candidates(ingredient_lines)
    candidate_steps = instruction_candidates(instruction_lines)
    candidate_sections = section_header_candidates(split_lines(source_text))

    ingredient_text, instruction_text = _generated_text(generated)
    ingredient_words = word_set(ingredient_text)
    instruction_words = word_set(instruction_text)
    all_words = ingredient_words | instruction_words

    report = CompletenessReport(
        is_structured_recipe=True,
        missing_ingredients=tuple(
            candidate
            for candidate in candidate_ingredients
            if not _contains_words(ingredient_words, candidate, INGREDIENT_MATCH_RATIO)
        ),
        missing_step_tokens=tuple(
            candidate
            for candidate in candidate_steps
            if not _contains_words(instruction_words, candidate, INSTRUCTION_MATCH_RATIO)
        ),
        missing_section_tokens=tuple(
            candidate
            for candidate in candidate_sections
            if not _contains_words(all_words, candidate, SECTION_MATCH_RATIO)
        ),
    )

    if not report.is_complete:
        logger.info(
            f"Import audit found {report.missing_count} missing items "
            f"({len(report.missing_ingredients)} ingredients, {len(report.missing_step_tokens)} steps, "
            f"{len(report.missing_section_tokens)} sections)"
        )
    return report
