from typing import Any
from uuid import UUID

from pydantic import BaseModel

from src.application.use_cases.create_listing_from_catalog import CreateListingOutput


class ListingResponse(BaseModel):
    success: bool = True
    run_id: UUID
    sku: str
    title: str
    original_title: str
    title_optimized: bool
    content_source: str
    category_id: str
    category_name: str
    aspects_included: list[str]
    missing_required_aspects: list[str]
    offer_id: str | None = None
    listing_id: str | None = None
    listing_url: str | None = None
    published: bool
    degraded: list[str]

    @classmethod
    def from_output(cls, output: CreateListingOutput) -> "ListingResponse":
        return cls(
            success=output.success,
            run_id=output.run_id,
            sku=output.sku,
            title=output.title,
            original_title=output.original_title,
            title_optimized=output.title_optimized,
            content_source=output.content_source,
            category_id=output.category_id,
            category_name=output.category_name,
            aspects_included=output.aspects_included,
            missing_required_aspects=output.missing_required_aspects,
            offer_id=output.offer_id,
            listing_id=output.listing_id,
            listing_url=output.listing_url,
            published=output.published,
            degraded=output.degraded,
        )


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict[str, Any] = {}


class ErrorResponse(BaseModel):
    error: ErrorBody
