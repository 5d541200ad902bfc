"""Mapping of pipeline error codes to HTTP responses."""
from fastapi import status

from src.application.errors import ListingPipelineError

STATUS_BY_CODE: dict[str, int] = {
    "invalid_identifier": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "catalog_unavailable": status.HTTP_502_BAD_GATEWAY,
    "category_undetermined": 422,
    "marketplace_rejected": status.HTTP_502_BAD_GATEWAY,
}


def status_for(exc: ListingPipelineError) -> int:
    return STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_payload(exc: ListingPipelineError) -> dict:  # type: ignore[type-arg]
    return {"error": {"code": exc.code, "message": exc.message, "details": exc.details}}
