from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from src.domain.entities.aspects import AspectRequirement, CategorySuggestion
from src.domain.entities.listing_payload import ListingPayload, OfferTerms


class ExternalServiceError(Exception):
    """Raised by collaborator implementations when a remote call fails."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class ContentRequest:
    title: str
    description: str
    features: tuple[str, ...] = ()
    brand: str | None = None
    model: str | None = None
    color: str | None = None
    size: str | None = None
    category_name: str | None = None


@dataclass(frozen=True)
class GeneratedContent:
    title: str
    description: str
    model: str


@dataclass
class PublishResult:
    sku: str
    offer_id: str | None = None
    listing_id: str | None = None
    listing_url: str | None = None


class CatalogClient(ABC):
    """Port for fetching canonical product records."""

    @abstractmethod
    async def fetch_product(self, external_product_id: str) -> dict[str, Any] | None:
        """Returns the raw record, or None when the catalog has no such product."""
        ...


class CategoryService(ABC):
    """Port for marketplace category metadata."""

    @abstractmethod
    async def suggest_category(self, title: str) -> CategorySuggestion | None:
        ...

    @abstractmethod
    async def get_aspect_requirements(self, category_id: str) -> list[AspectRequirement]:
        ...


class ContentGenerator(ABC):
    """Port for rewriting listing titles and descriptions."""

    @abstractmethod
    async def generate(self, request: ContentRequest) -> GeneratedContent:
        ...


class MarketplacePublisher(ABC):
    """Port for creating inventory items, offers and live listings."""

    @abstractmethod
    async def create_or_replace_inventory_item(self, payload: ListingPayload) -> None:
        ...

    @abstractmethod
    async def create_offer(self, payload: ListingPayload, terms: OfferTerms) -> str:
        """Returns the offer ID."""
        ...

    @abstractmethod
    async def publish_offer(self, offer_id: str) -> str:
        """Returns the marketplace listing ID."""
        ...

    @abstractmethod
    async def delete_offer(self, offer_id: str) -> None:
        ...

    @abstractmethod
    def listing_url(self, listing_id: str) -> str:
        ...
