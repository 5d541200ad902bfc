from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class ListingPayload:
    """
    Fully assembled marketplace item.

    Handed to the marketplace publisher once and never changed afterwards.
    """

    sku: str
    condition: str
    quantity: int
    title: str
    description: str
    aspects: dict[str, list[str]] = field(default_factory=dict)
    images: tuple[str, ...] = ()
    brand: str | None = None
    mpn: str | None = None
    upc: str | None = None
    ean: str | None = None

    def to_inventory_item(self) -> dict[str, Any]:
        """Render the body for the eBay createOrReplaceInventoryItem call."""
        product: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "aspects": {name: list(values) for name, values in self.aspects.items()},
            "imageUrls": list(self.images),
        }
        if self.brand:
            product["brand"] = self.brand
        if self.mpn:
            product["mpn"] = self.mpn
        if self.upc:
            product["upc"] = [self.upc]
        if self.ean:
            product["ean"] = [self.ean]

        return {
            "availability": {"shipToLocationAvailability": {"quantity": self.quantity}},
            "condition": self.condition,
            "product": product,
        }


@dataclass(frozen=True)
class OfferTerms:
    """Commercial terms used to turn an inventory item into a sellable offer."""

    price: Decimal
    category_id: str
    marketplace_id: str
    currency: str
    fulfillment_policy_id: str
    payment_policy_id: str
    return_policy_id: str
    merchant_location_key: str
    listing_format: str = "FIXED_PRICE"

    def to_offer(self, *, sku: str, quantity: int) -> dict[str, Any]:
        """Render the body for the eBay createOffer call."""
        return {
            "sku": sku,
            "marketplaceId": self.marketplace_id,
            "format": self.listing_format,
            "availableQuantity": quantity,
            "categoryId": self.category_id,
            "listingPolicies": {
                "fulfillmentPolicyId": self.fulfillment_policy_id,
                "paymentPolicyId": self.payment_policy_id,
                "returnPolicyId": self.return_policy_id,
            },
            "pricingSummary": {
                "price": {
                    "currency": self.currency,
                    "value": str(self.price.quantize(Decimal("0.01"))),
                }
            },
            "merchantLocationKey": self.merchant_location_key,
        }
