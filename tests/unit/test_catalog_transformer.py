"""Unit tests for catalog record normalization."""
import pytest

from src.domain.services.catalog_transformer import (
    PLACEHOLDER_DESCRIPTION,
    CatalogRecordMissingError,
    extract_image_urls,
    sanitize_description,
    transform_catalog_record,
)

BASE = "https://img.example/"


class TestTransformCatalogRecord:
    def test_missing_record_raises(self) -> None:
        with pytest.raises(CatalogRecordMissingError):
            transform_catalog_record(None)

    def test_truncates_title_to_80(self) -> None:
        draft = transform_catalog_record({"title": "x" * 120})
        assert len(draft.title) == 80

    def test_identifier_aspects(self) -> None:
        draft = transform_catalog_record(
            {
                "title": "Wireless Headphones XL",
                "brand": "Acme",
                "color": "Black",
                "partNumber": "AC-100",
                "upcList": ["012345678905", "999"],
                "eanList": ["4006381333931"],
            }
        )
        assert draft.aspects == {
            "Brand": ("Acme",),
            "Color": ("Black",),
            "MPN": ("AC-100",),
            "UPC": ("012345678905",),
        }
        assert draft.upc == "012345678905"
        assert draft.ean == "4006381333931"

    def test_blank_fields_are_missing(self) -> None:
        draft = transform_catalog_record({"title": "Thing", "brand": "   "})
        assert draft.brand is None
        assert "Brand" not in draft.aspects

    def test_description_falls_back_to_features(self) -> None:
        draft = transform_catalog_record({"title": "Thing", "features": ["Loud & clear", ""]})
        assert draft.description == "<h3>Product Features</h3><ul><li>Loud &amp; clear</li></ul>"

    def test_description_placeholder_when_empty(self) -> None:
        draft = transform_catalog_record({"title": "Thing"})
        assert draft.description == PLACEHOLDER_DESCRIPTION


class TestSanitizeDescription:
    def test_strips_script_and_control_chars(self) -> None:
        cleaned = sanitize_description("<p>Hi\x07</p><script>alert(1)</script>")
        assert cleaned == "<p>Hi</p>"

    def test_escapes_bare_ampersand(self) -> None:
        assert sanitize_description("Tom & Jerry &amp; co") == "Tom &amp; Jerry &amp; co"

    def test_blank_is_none(self) -> None:
        assert sanitize_description("<style>p{}</style>") is None


class TestExtractImageUrls:
    def test_prefers_large_then_medium(self) -> None:
        record = {"images": [{"l": "a.jpg", "m": "a_m.jpg"}, {"m": "b_m.jpg"}, "junk"]}
        assert extract_image_urls(record, BASE) == (f"{BASE}a.jpg", f"{BASE}b_m.jpg")

    def test_falls_back_to_csv(self) -> None:
        assert extract_image_urls({"imagesCSV": "a.jpg, b.jpg,"}, BASE) == (
            f"{BASE}a.jpg",
            f"{BASE}b.jpg",
        )

    def test_caps_at_twelve_in_order(self) -> None:
        record = {"imagesCSV": ",".join(f"{i}.jpg" for i in range(20))}
        urls = extract_image_urls(record, BASE)
        assert urls == tuple(f"{BASE}{i}.jpg" for i in range(12))
