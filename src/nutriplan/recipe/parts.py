"""Part-aware macro aggregation for recipes built from sub-preparations.

A recipe may prepare a batch in one part (a sauce, a dough) and draw only a
portion of it into another part through a usage link. Macros are computed in
two strictly ordered passes:

1. prepared: each part's own literal ingredients, scaled by the part.
2. consumed: what actually ends up in the recipe. Resolved usage links
   contribute a share of the source part's prepared macros, and the source
   part's own lines are then skipped so the batch is not counted twice.

Any link that fails to resolve falls back to literal counting, and the
source part it names is counted directly, so macros are never dropped.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from nutriplan.logging_config import get_logger
from nutriplan.normalize.macros import MacroTotals
from nutriplan.normalize.units import units_match
from nutriplan.recipe.models import IMPLICIT_PART_ID, RecipeIngredient, RecipePart

logger = get_logger(__name__)


@dataclass(frozen=True)
class UsageResolution:
    """A usage link that resolved against its source part."""

    source_part_id: str
    ratio: float


@dataclass(frozen=True)
class PartMacros:
    """Aggregated macros for a recipe's parts."""

    total: MacroTotals
    prepared_by_part: Mapping[str, MacroTotals]
    consumed_by_part: Mapping[str, MacroTotals]


def index_parts(
    parts: Iterable[RecipePart],
    ingredients: Sequence[RecipeIngredient],
) -> dict[str, RecipePart]:
    """Map part ids to parts, adding the implicit part when a line has no part."""
    parts_by_id = {part.id: part for part in parts}
    needs_implicit = any(ingredient.part_id is None for ingredient in ingredients)
    if needs_implicit and IMPLICIT_PART_ID not in parts_by_id:
        parts_by_id[IMPLICIT_PART_ID] = RecipePart(id=IMPLICIT_PART_ID, scale=1.0)
    return parts_by_id


def resolve_usage_link(
    ingredient: RecipeIngredient,
    parts_by_id: Mapping[str, RecipePart],
) -> UsageResolution | None:
    """
    Resolve a usage link to its source part and consumed fraction.

    The fraction is ``(used_amount * consumer.scale) / (source.yield_amount *
    source.scale)``. Returns None when the line is not a link or the link
    cannot be resolved (unknown part, missing yield, unit mismatch).
    """
    if ingredient.source_part_id is None:
        return None
    if ingredient.used_amount is None or ingredient.used_amount <= 0:
        return None

    consumer = parts_by_id.get(ingredient.owning_part_id)
    source = parts_by_id.get(ingredient.source_part_id)
    if consumer is None or source is None or not source.has_yield:
        return None
    if not units_match(ingredient.used_unit, source.yield_unit):
        return None

    source_yield = source.yield_amount * source.scale
    if source_yield <= 0:
        return None

    ratio = (ingredient.used_amount * consumer.scale) / source_yield
    return UsageResolution(source_part_id=source.id, ratio=ratio)


def resolve_usage_links(
    ingredients: Sequence[RecipeIngredient],
    parts_by_id: Mapping[str, RecipePart],
) -> Mapping[int, UsageResolution]:
    """Resolve every usage link up front, keyed by ingredient position."""
    resolved: dict[int, UsageResolution] = {}
    for index, ingredient in enumerate(ingredients):
        resolution = resolve_usage_link(ingredient, parts_by_id)
        if resolution is not None:
            resolved[index] = resolution
        elif ingredient.is_usage_link:
            logger.debug(
                f"Usage link '{ingredient.name}' -> part {ingredient.source_part_id} "
                f"did not resolve, counting literal amount"
            )
    return MappingProxyType(resolved)


def _prepared_pass(
    ingredients: Sequence[RecipeIngredient],
    parts_by_id: Mapping[str, RecipePart],
) -> dict[str, MacroTotals]:
    prepared = {part_id: MacroTotals.zero() for part_id in parts_by_id}
    for ingredient in ingredients:
        if ingredient.is_usage_link:
            continue
        part = parts_by_id.get(ingredient.owning_part_id)
        if part is None:
            continue
        prepared[part.id] = prepared[part.id] + ingredient.contribution().scaled(part.scale)
    return prepared


def _consumed_pass(
    ingredients: Sequence[RecipeIngredient],
    parts_by_id: Mapping[str, RecipePart],
    prepared: Mapping[str, MacroTotals],
    resolved: Mapping[int, UsageResolution],
) -> dict[str, MacroTotals]:
    consumed_sources = frozenset(resolution.source_part_id for resolution in resolved.values())
    consumed = {part_id: MacroTotals.zero() for part_id in parts_by_id}

    for index, ingredient in enumerate(ingredients):
        consumer = parts_by_id.get(ingredient.owning_part_id)
        if consumer is None:
            logger.debug(f"Dropping '{ingredient.name}': unknown part {ingredient.part_id}")
            continue

        resolution = resolved.get(index)
        if resolution is not None:
            contribution = prepared[resolution.source_part_id].scaled(resolution.ratio)
        elif not ingredient.is_usage_link and consumer.id in consumed_sources:
            # Already distributed through the lines that consume this part
            continue
        else:
            contribution = ingredient.contribution().scaled(consumer.scale)

        consumed[consumer.id] = consumed[consumer.id] + contribution

    return consumed


def compute_recipe_part_macros(
    parts: Iterable[RecipePart],
    ingredients: Iterable[RecipeIngredient],
) -> PartMacros:
    """
    Compute prepared and consumed macros per part and the recipe total.

    Never raises: lines that reference unknown parts are dropped and links
    that do not resolve are counted at their literal amount.

    Args:
        parts: Recipe parts. May be empty, in which case every line belongs
            to one implicit part of scale 1.
        ingredients: Ingredient lines, each owned by at most one part.

    Returns:
        PartMacros with read-only per-part mappings.
    """
    lines = tuple(ingredients)
    parts_by_id = index_parts(parts, lines)
    resolved = resolve_usage_links(lines, parts_by_id)

    prepared = MappingProxyType(_prepared_pass(lines, parts_by_id))
    consumed = MappingProxyType(_consumed_pass(lines, parts_by_id, prepared, resolved))
    total = MacroTotals.total(consumed.values())

    logger.debug(
        f"Aggregated {len(lines)} lines across {len(parts_by_id)} parts "
        f"({len(resolved)} usage links resolved): {total.kcal:.1f} kcal"
    )

    return PartMacros(total=total, prepared_by_part=prepared, consumed_by_part=consumed)
