from collections.abc import Mapping
from dataclasses import dataclass, field, replace

MAX_TITLE_LENGTH = 80
MAX_IMAGES = 12


@dataclass(frozen=True)
class ProductDraft:
    """
    Normalized view of a catalog record, ready for aspect resolution.

    Built once by the catalog transformer. Later stages derive new drafts
    via ``with_aspects`` / ``with_content`` rather than mutating this one.
    """

    title: str
    description: str
    images: tuple[str, ...] = ()
    brand: str | None = None
    model: str | None = None
    manufacturer: str | None = None
    color: str | None = None
    size: str | None = None
    material: str | None = None
    part_number: str | None = None
    upc: str | None = None
    ean: str | None = None
    features: tuple[str, ...] = ()
    aspects: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def field_value(self, name: str) -> str | None:
        """Return a catalog field by attribute name, treating blanks as missing."""
        value = getattr(self, name, None)
        if isinstance(value, str) and value.strip():
            return value
        return None

    def with_aspects(self, aspects: Mapping[str, tuple[str, ...]]) -> "ProductDraft":
        return replace(self, aspects=dict(aspects))

    def with_content(self, *, title: str, description: str) -> "ProductDraft":
        return replace(self, title=title, description=description)
