from dataclasses import dataclass, field

from src.domain.enums.match_type import MatchType
from src.domain.services.match_rules import MatchRule


@dataclass(frozen=True)
class CategorySuggestion:
    """Marketplace category chosen for a product title."""

    category_id: str
    category_name: str


@dataclass(frozen=True)
class AspectRequirement:
    """A descriptive attribute the marketplace category asks for."""

    name: str
    required: bool = False
    mode: str = "FREE_TEXT"
    allowed_values: tuple[str, ...] = ()


@dataclass(frozen=True)
class LearnedPattern:
    """
    Keyword-to-value inference rule learned from earlier aspect misses.

    ``category_id`` of None means the pattern applies to every category.
    """

    aspect_name: str
    aspect_value: str
    rule: MatchRule
    category_id: str | None = None

    @classmethod
    def create(
        cls,
        *,
        aspect_name: str,
        aspect_value: str,
        keyword_pattern: str,
        match_type: MatchType | str = MatchType.REGEX,
        category_id: str | None = None,
    ) -> "LearnedPattern":
        """Build a pattern, raising MalformedMatchRuleError for a bad rule."""
        return cls(
            aspect_name=aspect_name,
            aspect_value=aspect_value,
            rule=MatchRule.parse(keyword_pattern, match_type),
            category_id=category_id or None,
        )

    @property
    def keyword_pattern(self) -> str:
        return self.rule.keyword

    @property
    def is_universal(self) -> bool:
        return self.category_id is None


@dataclass(frozen=True)
class AspectMissRecord:
    """A required aspect that could not be resolved, queued for offline learning."""

    external_product_id: str
    aspect_name: str
    product_title: str
    category_id: str
    category_name: str
    source_brand: str | None = None
    source_model: str | None = None
    status: str = field(default="pending")
