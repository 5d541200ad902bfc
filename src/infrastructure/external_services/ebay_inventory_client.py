"""eBay Sell Inventory API: inventory items, offers and publishing."""
from urllib.parse import quote

import httpx
import structlog

from src.application.interfaces.external_services import MarketplacePublisher
from src.config import settings
from src.domain.entities.listing_payload import ListingPayload, OfferTerms
from src.infrastructure.external_services.ebay_api import EbayApiClient, EbayApiError

logger = structlog.get_logger(__name__)

INVENTORY_PATH = "/sell/inventory/v1"


class EbayInventoryClient(EbayApiClient, MarketplacePublisher):
    """Publishes listings with the seller's user access token."""

    def __init__(
        self,
        access_token: str = settings.ebay_user_access_token,
        listing_url_template: str = settings.ebay_listing_url_template,
        base_url: str = settings.ebay_api_url,
        marketplace_id: str = settings.ebay_marketplace_id,
        timeout: float = settings.http_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            access_token,
            base_url=base_url,
            marketplace_id=marketplace_id,
            timeout=timeout,
            transport=transport,
        )
        self._listing_url_template = listing_url_template

    async def create_or_replace_inventory_item(self, payload: ListingPayload) -> None:
        """PUT /inventory_item/{sku}; 200/204 both mean the item is stored."""
        await self._request(
            "PUT",
            f"{INVENTORY_PATH}/inventory_item/{quote(payload.sku, safe='')}",
            json=payload.to_inventory_item(),
        )

    async def create_offer(self, payload: ListingPayload, terms: OfferTerms) -> str:
        """POST /offer → {"offerId": "..."}"""
        response = await self._request(
            "POST",
            f"{INVENTORY_PATH}/offer",
            json=terms.to_offer(sku=payload.sku, quantity=payload.quantity),
        )
        offer_id = self._json(response).get("offerId")
        if not offer_id:
            raise EbayApiError(
                "eBay offer response is missing offerId",
                status_code=response.status_code,
                body=response.text,
            )
        return str(offer_id)

    async def publish_offer(self, offer_id: str) -> str:
        """POST /offer/{offerId}/publish → {"listingId": "..."}"""
        response = await self._request("POST", f"{INVENTORY_PATH}/offer/{offer_id}/publish")
        listing_id = self._json(response).get("listingId")
        if not listing_id:
            raise EbayApiError(
                "eBay publish response is missing listingId",
                status_code=response.status_code,
                body=response.text,
            )
        return str(listing_id)

    async def delete_offer(self, offer_id: str) -> None:
        await self._request("DELETE", f"{INVENTORY_PATH}/offer/{offer_id}")

    def listing_url(self, listing_id: str) -> str:
        return self._listing_url_template.format(listing_id=listing_id)
