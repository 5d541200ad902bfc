"""
Fatal pipeline errors.

Each carries a stable ``code`` so callers can tell "not found" from
"category undetermined" from "marketplace rejected" and react differently.
"""
from typing import Any


class ListingPipelineError(Exception):
    """Base class for errors that abort a listing pipeline run."""

    code = "pipeline_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidProductIdError(ListingPipelineError):
    code = "invalid_identifier"

    def __init__(self, external_product_id: str) -> None:
        super().__init__(
            f"Invalid product identifier: {external_product_id!r}",
            details={"external_product_id": external_product_id},
        )


class CatalogNotFoundError(ListingPipelineError):
    code = "not_found"

    def __init__(self, external_product_id: str) -> None:
        super().__init__(
            f"Product not found in catalog: {external_product_id}",
            details={"external_product_id": external_product_id},
        )


class CatalogUnavailableError(ListingPipelineError):
    code = "catalog_unavailable"


class CategoryUndeterminedError(ListingPipelineError):
    code = "category_undetermined"

    def __init__(self, title: str, reason: str | None = None) -> None:
        super().__init__(
            "Failed to determine marketplace category",
            details={"title": title, "reason": reason or "No category suggestion returned"},
        )


class MarketplaceRejectedError(ListingPipelineError):
    code = "marketplace_rejected"
