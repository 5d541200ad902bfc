"""
FastAPI dependency injection wiring.

Each dependency function returns a fully-constructed object with its
collaborators injected, so route handlers stay thin.
"""
from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.aspect_repositories import (
    AspectMissRepository,
    LearnedPatternRepository,
)
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.external_services import (
    CatalogClient,
    CategoryService,
    ContentGenerator,
    MarketplacePublisher,
)
from src.application.use_cases.create_listing_from_catalog import CreateListingFromCatalog
from src.config import settings
from src.infrastructure.database.connection import get_db_session
from src.infrastructure.database.repositories.aspect_miss_repository import (
    SqlAlchemyAspectMissRepository,
)
from src.infrastructure.database.repositories.learned_pattern_repository import (
    SqlAlchemyLearnedPatternRepository,
)
from src.infrastructure.external_services.anthropic_content_generator import (
    AnthropicContentGenerator,
)
from src.infrastructure.external_services.ebay_inventory_client import EbayInventoryClient
from src.infrastructure.external_services.ebay_taxonomy_client import EbayTaxonomyClient
from src.infrastructure.external_services.keepa_client import KeepaClient
from src.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher


# ---- Low-level dependencies ------------------------------------------------

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


def get_pattern_repo(session: AsyncSession = Depends(get_session)) -> LearnedPatternRepository:
    return SqlAlchemyLearnedPatternRepository(session)


def get_miss_repo() -> AspectMissRepository:
    return SqlAlchemyAspectMissRepository()


def get_event_publisher() -> EventPublisher:
    return RabbitMQPublisher()


# ---- External services -----------------------------------------------------

def get_catalog_client() -> CatalogClient:
    return KeepaClient()


def get_category_service() -> CategoryService:
    return EbayTaxonomyClient()


def get_content_generator() -> ContentGenerator | None:
    if not settings.content_generation_enabled:
        return None
    return AnthropicContentGenerator()


def get_marketplace_publisher() -> MarketplacePublisher:
    return EbayInventoryClient()


# ---- Use-case dependencies -------------------------------------------------

def get_create_listing_use_case(
    catalog_client: CatalogClient = Depends(get_catalog_client),
    category_service: CategoryService = Depends(get_category_service),
    content_generator: ContentGenerator | None = Depends(get_content_generator),
    pattern_repo: LearnedPatternRepository = Depends(get_pattern_repo),
    miss_repo: AspectMissRepository = Depends(get_miss_repo),
    publisher: MarketplacePublisher = Depends(get_marketplace_publisher),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> CreateListingFromCatalog:
    return CreateListingFromCatalog(
        catalog_client=catalog_client,
        category_service=category_service,
        content_generator=content_generator,
        pattern_repo=pattern_repo,
        miss_repo=miss_repo,
        publisher=publisher,
        event_publisher=event_publisher,
    )
