from enum import Enum


class MatchType(str, Enum):
    """How a learned pattern's keyword rule is tested against a product title."""

    SUBSTRING = "substring"
    REGEX = "regex"
    EXACT = "exact"
