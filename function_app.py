"""Azure Functions entry point for the listing pipeline."""
import json
import logging

import azure.functions as func
from pydantic import ValidationError

from src.api.errors import error_payload, status_for
from src.api.schemas.listing_requests import CreateListingRequest
from src.api.schemas.listing_responses import ListingResponse
from src.application.errors import ListingPipelineError
from src.application.use_cases.create_listing_from_catalog import (
    CreateListingFromCatalog,
    CreateListingInput,
)
from src.config import settings
from src.infrastructure.database.connection import AsyncSessionLocal, check_database_connection
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
from src.infrastructure.messaging.rabbitmq_publisher import (
    RabbitMQPublisher,
    check_rabbitmq_connection,
)
from src.logging_config import configure_logging

configure_logging()

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)


def _json_response(body: dict, status_code: int = 200) -> func.HttpResponse:  # type: ignore[type-arg]
    return func.HttpResponse(
        json.dumps(body, default=str),
        mimetype="application/json",
        status_code=status_code,
    )


# ============================================================================
# Health Check
# ============================================================================

@app.route(route="health", methods=["GET"])
async def health(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint."""
    db_status = await check_database_connection()
    rabbitmq_status = await check_rabbitmq_connection()

    overall = "healthy" if db_status == "connected" and rabbitmq_status == "connected" else "degraded"

    return _json_response(
        {
            "status": overall,
            "database": db_status,
            "rabbitmq": rabbitmq_status,
        }
    )


# ============================================================================
# Listings - run the pipeline for one product
# ============================================================================

@app.route(route="listings", methods=["POST"])
async def create_listing(req: func.HttpRequest) -> func.HttpResponse:
    """
    Create (and by default publish) a listing for one catalog product.

    Request body:
    {
        "external_product_id": "B0EXAMPLE1",
        "condition": "NEW",
        "quantity": 1,
        "price": "49.99",
        "publish": true
    }
    """
    try:
        body = CreateListingRequest.model_validate(req.get_json())
    except ValueError as exc:
        details = {"errors": exc.errors(include_url=False)} if isinstance(exc, ValidationError) else {}
        return _json_response(
            {"error": {"code": "invalid_request", "message": str(exc), "details": details}},
            status_code=400,
        )

    async with AsyncSessionLocal() as session:
        use_case = CreateListingFromCatalog(
            catalog_client=KeepaClient(),
            category_service=EbayTaxonomyClient(),
            content_generator=(
                AnthropicContentGenerator() if settings.content_generation_enabled else None
            ),
            pattern_repo=SqlAlchemyLearnedPatternRepository(session),
            miss_repo=SqlAlchemyAspectMissRepository(),
            publisher=EbayInventoryClient(),
            event_publisher=RabbitMQPublisher(),
        )
        try:
            output = await use_case.execute(
                CreateListingInput(
                    external_product_id=body.external_product_id,
                    condition=body.condition,
                    quantity=body.quantity,
                    price=body.price,
                    publish=body.publish,
                )
            )
        except ListingPipelineError as exc:
            logging.warning(f"Listing pipeline failed ({exc.code}): {exc.message}")
            return _json_response(error_payload(exc), status_code=status_for(exc))
        finally:
            # The host may freeze the worker once the response is returned
            await use_case.wait_for_background_tasks()

    logging.info(f"Listing created for {output.sku} (published={output.published})")
    return _json_response(ListingResponse.from_output(output).model_dump(mode="json"))
