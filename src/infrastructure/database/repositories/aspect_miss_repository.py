"""Repository for unresolved-aspect records in ebay_aspect_misses."""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.application.interfaces.aspect_repositories import AspectMissRepository
from src.domain.entities.aspects import AspectMissRecord
from src.infrastructure.database.connection import AsyncSessionLocal
from src.infrastructure.database.models import AspectMissModel


def _to_model(miss: AspectMissRecord) -> AspectMissModel:
    return AspectMissModel(
        asin=miss.external_product_id,
        category_id=miss.category_id,
        category_name=miss.category_name,
        aspect_name=miss.aspect_name,
        product_title=miss.product_title,
        keepa_brand=miss.source_brand,
        keepa_model=miss.source_model,
        status=miss.status,
    )


class SqlAlchemyAspectMissRepository(AspectMissRepository):
    """
    Writes misses in a session of its own.

    Misses are recorded in the background, after the request-scoped session
    has already been committed and closed.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession] = AsyncSessionLocal) -> None:
        self._session_maker = session_maker

    async def record_misses(self, misses: list[AspectMissRecord]) -> None:
        if not misses:
            return
        async with self._session_maker() as session:
            session.add_all([_to_model(miss) for miss in misses])
            await session.commit()
