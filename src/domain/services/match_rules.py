"""
Keyword rules used by learned aspect patterns.

Rules are parsed and compiled once when patterns are loaded, so a malformed
rule is rejected up front instead of failing in the middle of a run.
"""
import re
from dataclasses import dataclass, field

from src.domain.enums.match_type import MatchType


class MalformedMatchRuleError(ValueError):
    """Raised when a stored keyword rule cannot be turned into a MatchRule."""

    def __init__(self, keyword: str, reason: str) -> None:
        self.keyword = keyword
        self.reason = reason
        super().__init__(f"Malformed match rule {keyword!r}: {reason}")


@dataclass(frozen=True)
class MatchRule:
    match_type: MatchType
    keyword: str
    _compiled: re.Pattern[str] | None = field(default=None, repr=False, compare=False)

    @classmethod
    def parse(cls, keyword: str | None, match_type: MatchType | str = MatchType.REGEX) -> "MatchRule":
        if keyword is None or not keyword.strip():
            raise MalformedMatchRuleError(keyword or "", "empty keyword")

        try:
            kind = MatchType(match_type)
        except ValueError as exc:
            raise MalformedMatchRuleError(keyword, f"unknown match type {match_type!r}") from exc

        compiled: re.Pattern[str] | None = None
        if kind is MatchType.REGEX:
            try:
                compiled = re.compile(keyword, re.IGNORECASE)
            except re.error as exc:
                raise MalformedMatchRuleError(keyword, str(exc)) from exc

        return cls(match_type=kind, keyword=keyword, _compiled=compiled)

    def matches(self, text: str) -> bool:
        """Case-insensitive test of this rule against ``text``."""
        if not text:
            return False
        if self.match_type is MatchType.REGEX and self._compiled is not None:
            return self._compiled.search(text) is not None
        if self.match_type is MatchType.EXACT:
            return text.strip().casefold() == self.keyword.strip().casefold()
        return self.keyword.casefold() in text.casefold()
