from abc import ABC, abstractmethod

from src.domain.entities.aspects import AspectMissRecord, LearnedPattern


class LearnedPatternRepository(ABC):
    """Port for reading learned aspect inference rules."""

    @abstractmethod
    async def get_patterns_for_category(self, category_id: str) -> list[LearnedPattern]:
        """Return patterns for ``category_id`` plus universal ones."""
        ...


class AspectMissRepository(ABC):
    """Port for recording unresolved required aspects."""

    @abstractmethod
    async def record_misses(self, misses: list[AspectMissRecord]) -> None:
        ...
