import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.aspect_repositories import LearnedPatternRepository
from src.domain.entities.aspects import LearnedPattern
from src.domain.services.match_rules import MalformedMatchRuleError
from src.infrastructure.database.models import AspectKeywordModel

logger = structlog.get_logger(__name__)


def _to_domain(model: AspectKeywordModel) -> LearnedPattern:
    return LearnedPattern.create(
        aspect_name=model.aspect_name,
        aspect_value=model.aspect_value,
        keyword_pattern=model.keyword_pattern,
        match_type=model.match_type,
        category_id=model.category_id,
    )


class SqlAlchemyLearnedPatternRepository(LearnedPatternRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_patterns_for_category(self, category_id: str) -> list[LearnedPattern]:
        """Category-specific and universal rules, oldest first; bad rows are skipped."""
        result = await self._session.execute(
            select(AspectKeywordModel)
            .where(
                or_(
                    AspectKeywordModel.category_id == category_id,
                    AspectKeywordModel.category_id.is_(None),
                )
            )
            .order_by(AspectKeywordModel.id)
        )

        patterns: list[LearnedPattern] = []
        for model in result.scalars().all():
            try:
                patterns.append(_to_domain(model))
            except MalformedMatchRuleError as exc:
                logger.warning(
                    "learned_pattern_malformed",
                    pattern_id=model.id,
                    aspect_name=model.aspect_name,
                    keyword_pattern=model.keyword_pattern,
                    reason=exc.reason,
                )
        return patterns
