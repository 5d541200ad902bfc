"""
Catalog record → ProductDraft.

Normalizes a raw Keepa product record into the fields the rest of the
pipeline works with: marketplace-sized title, non-empty HTML description,
capped image list and the identifier aspects the catalog already knows.
"""
import html
import re
from collections.abc import Iterable
from typing import Any

import structlog

from src.config import settings
from src.domain.entities.product_draft import MAX_IMAGES, MAX_TITLE_LENGTH, ProductDraft

logger = structlog.get_logger(__name__)

MAX_DESCRIPTION_LENGTH = 4000
PLACEHOLDER_DESCRIPTION = "Product information available upon request."

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_SCRIPT_BLOCKS = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_BLOCKS = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_BARE_AMPERSAND = re.compile(r"&(?!(amp|lt|gt|quot|apos|#\d+|#x[0-9a-f]+);)", re.IGNORECASE)

# Catalog fields copied 1:1 into the aspect map: (draft attribute, aspect name)
IDENTIFIER_ASPECTS: tuple[tuple[str, str], ...] = (
    ("brand", "Brand"),
    ("model", "Model"),
    ("color", "Color"),
    ("manufacturer", "Manufacturer"),
    ("part_number", "MPN"),
    ("upc", "UPC"),
)


class CatalogRecordMissingError(Exception):
    """Raised when there is no catalog record to transform."""


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first(values: Any) -> str | None:
    if isinstance(values, (list, tuple)) and values:
        return _clean(values[0])
    return None


def sanitize_description(description: str | None) -> str | None:
    """Strip markup the marketplace rejects and cap the length."""
    if not description:
        return None
    text = _CONTROL_CHARS.sub("", str(description))
    text = _SCRIPT_BLOCKS.sub("", text)
    text = _STYLE_BLOCKS.sub("", text)
    text = _BARE_AMPERSAND.sub("&amp;", text)
    text = text[:MAX_DESCRIPTION_LENGTH].strip()
    return text or None


def build_feature_description(features: Iterable[str]) -> str | None:
    items = [f for f in (_clean(f) for f in features) if f]
    if not items:
        return None
    bullets = "".join(f"<li>{html.escape(item)}</li>" for item in items)
    return f"<h3>Product Features</h3><ul>{bullets}</ul>"


def extract_image_urls(record: dict[str, Any], media_base_url: str | None = None) -> tuple[str, ...]:
    """
    Collect image URLs in source order, capped at the marketplace maximum.

    The structured ``images`` array wins over ``imagesCSV``; each entry
    prefers the large variant and falls back to the medium one.
    """
    base = media_base_url or settings.media_base_url
    filenames: list[str] = []

    images = record.get("images")
    if isinstance(images, list) and images:
        for image in images:
            if not isinstance(image, dict):
                continue
            variant = _clean(image.get("l")) or _clean(image.get("m"))
            if variant:
                filenames.append(variant)
    elif record.get("imagesCSV"):
        filenames = [name for name in (_clean(n) for n in str(record["imagesCSV"]).split(",")) if name]

    return tuple(f"{base}{name}" for name in filenames[:MAX_IMAGES])


def transform_catalog_record(
    record: dict[str, Any] | None, media_base_url: str | None = None
) -> ProductDraft:
    """Build the immutable ProductDraft for a raw catalog record."""
    if not record:
        raise CatalogRecordMissingError("Catalog record is missing")

    title = (_clean(record.get("title")) or "")[:MAX_TITLE_LENGTH]
    features = tuple(f for f in (_clean(f) for f in record.get("features") or []) if f)

    description = (
        sanitize_description(record.get("description"))
        or build_feature_description(features)
        or PLACEHOLDER_DESCRIPTION
    )

    draft = ProductDraft(
        title=title,
        description=description,
        images=extract_image_urls(record, media_base_url),
        brand=_clean(record.get("brand")),
        model=_clean(record.get("model")),
        manufacturer=_clean(record.get("manufacturer")),
        color=_clean(record.get("color")),
        size=_clean(record.get("size")),
        material=_clean(record.get("material")),
        part_number=_clean(record.get("partNumber")),
        upc=_first(record.get("upcList")),
        ean=_first(record.get("eanList")),
        features=features,
    )

    aspects: dict[str, tuple[str, ...]] = {}
    for attribute, aspect_name in IDENTIFIER_ASPECTS:
        value = draft.field_value(attribute)
        if value:
            aspects[aspect_name] = (value,)

    logger.debug(
        "catalog_record_transformed",
        title=title,
        images=len(draft.images),
        aspects=sorted(aspects),
    )
    return draft.with_aspects(aspects)
