"""
Aspect resolution for a single product.

For every aspect the category asks for, a value is taken from the first
source that has one:

    1. the aspect map built from the catalog record (final once present)
    2. a direct catalog field, looked up through a case-insensitive alias table
    3. learned keyword patterns, category-specific before universal

Required aspects that stay empty become AspectMissRecords; optional ones are
dropped silently. This module performs no I/O; persisting the misses is the
caller's job.
"""
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import structlog

from src.domain.entities.aspects import (
    AspectMissRecord,
    AspectRequirement,
    CategorySuggestion,
    LearnedPattern,
)
from src.domain.entities.product_draft import ProductDraft

logger = structlog.get_logger(__name__)

# Lower-cased marketplace aspect name -> ProductDraft attribute
DIRECT_FIELD_ALIASES: dict[str, str] = {
    "brand": "brand",
    "model": "model",
    "mpn": "part_number",
    "manufacturer part number": "part_number",
    "manufacturer": "manufacturer",
    "color": "color",
    "colour": "color",
    "upc": "upc",
    "ean": "ean",
    "size": "size",
    "item size": "size",
    "material": "material",
    "material type": "material",
}

SOURCE_CATALOG = "catalog"
SOURCE_FIELD_MAPPING = "field_mapping"
SOURCE_LEARNED_PATTERN = "learned_pattern"


@dataclass(frozen=True)
class AspectResolution:
    aspects: dict[str, tuple[str, ...]]
    misses: list[AspectMissRecord] = field(default_factory=list)
    sources: dict[str, str] = field(default_factory=dict)

    @property
    def missing_aspect_names(self) -> list[str]:
        return [miss.aspect_name for miss in self.misses]


def map_direct_field(aspect_name: str, draft: ProductDraft) -> str | None:
    """Return the catalog field value aliased to ``aspect_name``, if any."""
    attribute = DIRECT_FIELD_ALIASES.get(aspect_name.strip().lower())
    if attribute is None:
        return None
    return draft.field_value(attribute)


def warn_if_not_allowed(requirement: AspectRequirement, value: str) -> None:
    """SELECTION_ONLY aspects accept only listed values; the value is kept regardless."""
    if requirement.mode != "SELECTION_ONLY" or not requirement.allowed_values:
        return
    if value not in requirement.allowed_values:
        logger.warning(
            "aspect_value_not_allowed",
            aspect_name=requirement.name,
            aspect_value=value,
            allowed_count=len(requirement.allowed_values),
        )


def order_patterns(
    aspect_name: str, patterns: Iterable[LearnedPattern], category_id: str
) -> list[LearnedPattern]:
    """
    Patterns for ``aspect_name`` usable in ``category_id``.

    Category-specific patterns come first, then universal ones; source order
    is kept within each group. Patterns tied to another category are ignored.
    """
    relevant = [
        p
        for p in patterns
        if p.aspect_name == aspect_name and (p.is_universal or p.category_id == category_id)
    ]
    return sorted(relevant, key=lambda p: 0 if p.category_id == category_id else 1)


def match_learned_pattern(
    aspect_name: str,
    title: str,
    patterns: Iterable[LearnedPattern],
    category_id: str,
) -> LearnedPattern | None:
    for pattern in order_patterns(aspect_name, patterns, category_id):
        try:
            if pattern.rule.matches(title):
                return pattern
        except Exception:
            logger.warning(
                "learned_pattern_skipped",
                aspect_name=aspect_name,
                keyword_pattern=pattern.keyword_pattern,
                exc_info=True,
            )
    return None


def resolve_aspects(
    draft: ProductDraft,
    requirements: Sequence[AspectRequirement],
    patterns: Sequence[LearnedPattern],
    category: CategorySuggestion,
    external_product_id: str,
) -> AspectResolution:
    """Fill the category's aspects for ``draft`` and report unresolved required ones."""
    aspects: dict[str, tuple[str, ...]] = dict(draft.aspects)
    sources: dict[str, str] = {name: SOURCE_CATALOG for name in aspects}
    misses: list[AspectMissRecord] = []
    seen: set[str] = set()

    for requirement in requirements:
        name = requirement.name
        if not name or name in seen:
            continue
        seen.add(name)

        if aspects.get(name):
            continue

        mapped = map_direct_field(name, draft)
        if mapped:
            aspects[name] = (mapped,)
            sources[name] = SOURCE_FIELD_MAPPING
            warn_if_not_allowed(requirement, mapped)
            continue

        pattern = match_learned_pattern(name, draft.title, patterns, category.category_id)
        if pattern is not None:
            aspects[name] = (pattern.aspect_value,)
            sources[name] = SOURCE_LEARNED_PATTERN
            warn_if_not_allowed(requirement, pattern.aspect_value)
            logger.debug(
                "aspect_matched_learned_pattern",
                aspect_name=name,
                keyword_pattern=pattern.keyword_pattern,
                aspect_value=pattern.aspect_value,
            )
            continue

        if requirement.required:
            misses.append(
                AspectMissRecord(
                    external_product_id=external_product_id,
                    aspect_name=name,
                    product_title=draft.title,
                    category_id=category.category_id,
                    category_name=category.category_name,
                    source_brand=draft.brand,
                    source_model=draft.model,
                )
            )

    return AspectResolution(aspects=aspects, misses=misses, sources=sources)
