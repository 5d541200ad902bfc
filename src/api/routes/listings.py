from fastapi import APIRouter, Depends

from src.api.dependencies import get_create_listing_use_case
from src.api.schemas.listing_requests import CreateListingRequest
from src.api.schemas.listing_responses import ErrorResponse, ListingResponse
from src.application.use_cases.create_listing_from_catalog import (
    CreateListingFromCatalog,
    CreateListingInput,
)

router = APIRouter(tags=["listings"])


@router.post(
    "/listings",
    response_model=ListingResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def create_listing(
    body: CreateListingRequest,
    use_case: CreateListingFromCatalog = Depends(get_create_listing_use_case),
) -> ListingResponse:
    """Run the catalog → marketplace pipeline for one product."""
    output = await use_case.execute(
        CreateListingInput(
            external_product_id=body.external_product_id,
            condition=body.condition,
            quantity=body.quantity,
            price=body.price,
            publish=body.publish,
        )
    )
    return ListingResponse.from_output(output)
