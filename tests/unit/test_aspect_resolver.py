"""Unit tests for aspect resolution."""
import dataclasses
from unittest.mock import MagicMock

import pytest

from src.domain.entities.aspects import AspectRequirement, CategorySuggestion, LearnedPattern
from src.domain.entities.product_draft import ProductDraft
from src.domain.enums.match_type import MatchType
from src.domain.services import aspect_resolver
from src.domain.services.aspect_resolver import (
    SOURCE_CATALOG,
    SOURCE_FIELD_MAPPING,
    SOURCE_LEARNED_PATTERN,
    order_patterns,
    resolve_aspects,
)
from src.domain.services.catalog_transformer import transform_catalog_record

CATEGORY = CategorySuggestion(category_id="112529", category_name="Headphones")
ASIN = "B0TESTASIN"


def _pattern(
    value: str, keyword: str, category_id: str | None = None, aspect: str = "Connectivity"
) -> LearnedPattern:
    return LearnedPattern.create(
        aspect_name=aspect,
        aspect_value=value,
        keyword_pattern=keyword,
        match_type=MatchType.SUBSTRING,
        category_id=category_id,
    )


def _headphones() -> ProductDraft:
    return transform_catalog_record(
        {"title": "Wireless Headphones XL", "brand": "Acme", "color": "Black"}
    )


class TestEndToEndExample:
    def test_unresolved_required_aspect_becomes_one_miss(self) -> None:
        requirements = [
            AspectRequirement(name="Brand", required=True),
            AspectRequirement(name="Connectivity", required=True),
        ]

        resolution = resolve_aspects(_headphones(), requirements, [], CATEGORY, ASIN)

        assert resolution.aspects["Brand"] == ("Acme",)
        assert "Connectivity" not in resolution.aspects
        assert len(resolution.misses) == 1
        miss = resolution.misses[0]
        assert miss.aspect_name == "Connectivity"
        assert miss.external_product_id == ASIN
        assert miss.category_id == "112529"
        assert miss.product_title == "Wireless Headphones XL"
        assert miss.source_brand == "Acme"
        assert miss.status == "pending"


class TestPrecedence:
    def test_existing_value_wins_over_pattern(self) -> None:
        draft = _headphones()
        pattern = _pattern("Other Brand", "Headphones", aspect="Brand")
        resolution = resolve_aspects(
            draft, [AspectRequirement(name="Brand", required=True)], [pattern], CATEGORY, ASIN
        )
        assert resolution.aspects["Brand"] == ("Acme",)
        assert resolution.sources["Brand"] == SOURCE_CATALOG

    def test_direct_field_alias_is_case_insensitive(self) -> None:
        draft = ProductDraft(title="Desk Lamp", description="d", material="Aluminium")
        resolution = resolve_aspects(
            draft, [AspectRequirement(name="MATERIAL TYPE")], [], CATEGORY, ASIN
        )
        assert resolution.aspects["MATERIAL TYPE"] == ("Aluminium",)
        assert resolution.sources["MATERIAL TYPE"] == SOURCE_FIELD_MAPPING

    def test_direct_field_wins_over_pattern(self) -> None:
        draft = ProductDraft(title="Acme Speaker", description="d", color="Red")
        pattern = _pattern("Blue", "Speaker", aspect="Colour")
        resolution = resolve_aspects(
            draft, [AspectRequirement(name="Colour", required=True)], [pattern], CATEGORY, ASIN
        )
        assert resolution.aspects["Colour"] == ("Red",)

    def test_learned_pattern_fills_gap(self) -> None:
        pattern = _pattern("Wireless", "wireless")
        resolution = resolve_aspects(
            _headphones(),
            [AspectRequirement(name="Connectivity", required=True)],
            [pattern],
            CATEGORY,
            ASIN,
        )
        assert resolution.aspects["Connectivity"] == ("Wireless",)
        assert resolution.sources["Connectivity"] == SOURCE_LEARNED_PATTERN
        assert resolution.misses == []


class TestPatternOrdering:
    def test_category_specific_before_universal(self) -> None:
        universal = _pattern("Bluetooth", "wireless")
        specific = _pattern("Wireless", "wireless", category_id="112529")
        resolution = resolve_aspects(
            _headphones(),
            [AspectRequirement(name="Connectivity", required=True)],
            [universal, specific],
            CATEGORY,
            ASIN,
        )
        assert resolution.aspects["Connectivity"] == ("Wireless",)

    def test_other_categories_are_ignored(self) -> None:
        foreign = _pattern("Wired", "headphones", category_id="999")
        assert order_patterns("Connectivity", [foreign], "112529") == []

    def test_source_order_kept_within_group(self) -> None:
        first = _pattern("A", "x")
        second = _pattern("B", "y")
        specific = _pattern("C", "z", category_id="112529")
        ordered = order_patterns("Connectivity", [first, second, specific], "112529")
        assert [p.aspect_value for p in ordered] == ["C", "A", "B"]


class TestMisses:
    def test_optional_aspects_are_silently_omitted(self) -> None:
        resolution = resolve_aspects(
            _headphones(), [AspectRequirement(name="Connectivity")], [], CATEGORY, ASIN
        )
        assert "Connectivity" not in resolution.aspects
        assert resolution.misses == []

    def test_duplicate_requirements_yield_one_miss(self) -> None:
        requirements = [
            AspectRequirement(name="Connectivity", required=True),
            AspectRequirement(name="Connectivity", required=True),
        ]
        resolution = resolve_aspects(_headphones(), requirements, [], CATEGORY, ASIN)
        assert resolution.missing_aspect_names == ["Connectivity"]

    def test_empty_requirements_keep_catalog_aspects(self) -> None:
        resolution = resolve_aspects(_headphones(), [], [], CATEGORY, ASIN)
        assert resolution.aspects == {"Brand": ("Acme",), "Color": ("Black",)}
        assert resolution.misses == []


class TestFaultyPatterns:
    def test_rule_that_raises_is_skipped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        logger = MagicMock()
        monkeypatch.setattr(aspect_resolver, "logger", logger)
        broken_rule = MagicMock()
        broken_rule.keyword = "Wireless"
        broken_rule.matches.side_effect = RuntimeError("catastrophic backtracking")
        broken = dataclasses.replace(_pattern("Bluetooth", "Wireless"), rule=broken_rule)
        working = _pattern("Wireless", "wireless")

        resolution = resolve_aspects(
            _headphones(),
            [AspectRequirement(name="Connectivity", required=True)],
            [broken, working],
            CATEGORY,
            ASIN,
        )

        assert resolution.aspects["Connectivity"] == ("Wireless",)
        assert resolution.sources["Connectivity"] == SOURCE_LEARNED_PATTERN
        assert resolution.misses == []
        assert logger.warning.call_args.args[0] == "learned_pattern_skipped"


class TestSelectionOnlyAspects:
    def test_value_outside_allowed_list_is_kept_with_warning(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        logger = MagicMock()
        monkeypatch.setattr(aspect_resolver, "logger", logger)
        requirement = AspectRequirement(
            name="Connectivity",
            required=True,
            mode="SELECTION_ONLY",
            allowed_values=("Wired", "Bluetooth"),
        )

        resolution = resolve_aspects(
            _headphones(), [requirement], [_pattern("Wireless", "wireless")], CATEGORY, ASIN
        )

        assert resolution.aspects["Connectivity"] == ("Wireless",)
        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "aspect_value_not_allowed"
        assert logger.warning.call_args.kwargs["aspect_value"] == "Wireless"

    def test_allowed_value_logs_nothing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        logger = MagicMock()
        monkeypatch.setattr(aspect_resolver, "logger", logger)
        requirement = AspectRequirement(
            name="Colour", mode="SELECTION_ONLY", allowed_values=("Black", "White")
        )
        draft = transform_catalog_record({"title": "Wireless Headphones XL", "color": "Black"})

        resolution = resolve_aspects(draft, [requirement], [], CATEGORY, ASIN)

        assert resolution.aspects["Colour"] == ("Black",)
        assert resolution.sources["Colour"] == SOURCE_FIELD_MAPPING
        logger.warning.assert_not_called()
