"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.errors import error_payload, status_for
from src.api.routes import health, listings
from src.application.errors import ListingPipelineError
from src.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("listing_pipeline_starting")
    yield
    logger.info("listing_pipeline_stopping")


async def pipeline_error_handler(request: Request, exc: ListingPipelineError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content=error_payload(exc))


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Listing Pipeline",
        description="Turns catalog products into eBay listings with resolved item aspects.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ListingPipelineError, pipeline_error_handler)

    app.include_router(health.router)
    app.include_router(listings.router)

    return app


app = create_app()
