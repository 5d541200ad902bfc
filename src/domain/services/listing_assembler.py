from collections.abc import Mapping, Sequence

from src.domain.entities.listing_payload import ListingPayload
from src.domain.entities.product_draft import MAX_IMAGES, ProductDraft

DEFAULT_CONDITION = "NEW"

# Internal condition names -> eBay inventory condition enum
CONDITION_MAP: dict[str, str] = {
    "NEW": "NEW",
    "LIKE_NEW": "LIKE_NEW",
    "NEW_OTHER": "NEW_OTHER",
    "NEW_WITH_DEFECTS": "NEW_WITH_DEFECTS",
    "MANUFACTURER_REFURBISHED": "MANUFACTURER_REFURBISHED",
    "CERTIFIED_REFURBISHED": "CERTIFIED_REFURBISHED",
    "EXCELLENT_REFURBISHED": "EXCELLENT_REFURBISHED",
    "VERY_GOOD_REFURBISHED": "VERY_GOOD_REFURBISHED",
    "GOOD_REFURBISHED": "GOOD_REFURBISHED",
    "SELLER_REFURBISHED": "SELLER_REFURBISHED",
    "USED_EXCELLENT": "USED_EXCELLENT",
    "USED_VERY_GOOD": "USED_VERY_GOOD",
    "USED_GOOD": "USED_GOOD",
    "USED_ACCEPTABLE": "USED_ACCEPTABLE",
    "FOR_PARTS_OR_NOT_WORKING": "FOR_PARTS_OR_NOT_WORKING",
    # Short names used by the quick-list form
    "VERY_GOOD": "USED_VERY_GOOD",
    "GOOD": "USED_GOOD",
    "ACCEPTABLE": "USED_ACCEPTABLE",
    "USED": "USED_GOOD",
}


def map_condition(condition: str | None) -> str:
    """Map an internal condition to the marketplace vocabulary; unknown -> NEW."""
    if not condition:
        return DEFAULT_CONDITION
    key = condition.strip().upper().replace(" ", "_").replace("-", "_")
    return CONDITION_MAP.get(key, DEFAULT_CONDITION)


def build_sku(external_product_id: str, prefix: str) -> str:
    """Same identifier, same SKU: repeated runs upsert one inventory record."""
    return f"{prefix}{external_product_id}"


def _as_value_lists(aspects: Mapping[str, Sequence[str]]) -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    for name, values in aspects.items():
        if isinstance(values, str):
            values = [values]
        cleaned = [v for v in values if v]
        if cleaned:
            result[name] = cleaned
    return result


def assemble_listing(
    *,
    draft: ProductDraft,
    aspects: Mapping[str, Sequence[str]],
    external_product_id: str,
    sku_prefix: str,
    condition: str | None = None,
    quantity: int = 1,
) -> ListingPayload:
    """Compose the final marketplace payload for a resolved draft."""
    return ListingPayload(
        sku=build_sku(external_product_id, sku_prefix),
        condition=map_condition(condition),
        quantity=quantity,
        title=draft.title,
        description=draft.description,
        aspects=_as_value_lists(aspects),
        images=tuple(draft.images[:MAX_IMAGES]),
        brand=draft.field_value("brand"),
        mpn=draft.field_value("part_number"),
        upc=draft.field_value("upc"),
        ean=draft.field_value("ean"),
    )
