import asyncio
import re
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

import structlog

from src.application.errors import (
    CatalogNotFoundError,
    CatalogUnavailableError,
    CategoryUndeterminedError,
    InvalidProductIdError,
    ListingPipelineError,
    MarketplaceRejectedError,
)
from src.application.interfaces.aspect_repositories import (
    AspectMissRepository,
    LearnedPatternRepository,
)
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.external_services import (
    CatalogClient,
    CategoryService,
    ContentGenerator,
    ContentRequest,
    ExternalServiceError,
    MarketplacePublisher,
    PublishResult,
)
from src.config import Settings, settings
from src.domain.entities.aspects import (
    AspectMissRecord,
    AspectRequirement,
    CategorySuggestion,
    LearnedPattern,
)
from src.domain.entities.listing_payload import ListingPayload, OfferTerms
from src.domain.entities.pipeline_run import PipelineRun
from src.domain.entities.product_draft import MAX_TITLE_LENGTH, ProductDraft
from src.domain.enums.pipeline_stage import PipelineStage
from src.domain.services.aspect_resolver import resolve_aspects
from src.domain.services.catalog_transformer import transform_catalog_record
from src.domain.services.listing_assembler import assemble_listing

logger = structlog.get_logger(__name__)

ASIN_PATTERN = re.compile(r"^B[0-9A-Z]{9}$")

CONTENT_SOURCE_AI = "ai"
CONTENT_SOURCE_CATALOG = "catalog"

# Degradation markers
ASPECTS_UNAVAILABLE = "aspects_unavailable"
PATTERNS_UNAVAILABLE = "patterns_unavailable"
CONTENT_FALLBACK = "content_fallback"


def normalize_product_id(external_product_id: str) -> str:
    """Trim and upper-case an ASIN, raising InvalidProductIdError if malformed."""
    candidate = (external_product_id or "").strip().upper()
    if not ASIN_PATTERN.match(candidate):
        raise InvalidProductIdError(external_product_id)
    return candidate


@dataclass
class CreateListingInput:
    external_product_id: str
    condition: str | None = None
    quantity: int = 1
    price: Decimal | None = None
    publish: bool = True


@dataclass
class CreateListingOutput:
    run_id: UUID
    sku: str
    title: str
    original_title: str
    content_source: str
    category_id: str
    category_name: str
    aspects_included: list[str]
    missing_required_aspects: list[str]
    offer_id: str | None = None
    listing_id: str | None = None
    listing_url: str | None = None
    degraded: list[str] = field(default_factory=list)
    success: bool = True

    @property
    def title_optimized(self) -> bool:
        return self.title != self.original_title

    @property
    def published(self) -> bool:
        return self.listing_id is not None


class CreateListingFromCatalog:
    """
    Use case: turn one catalog product into a marketplace listing.

    Drives a PipelineRun through its stages. Catalog, category and
    marketplace failures abort the run with a typed ListingPipelineError;
    aspect metadata, learned patterns, content generation and miss logging
    degrade in place and the run carries on with safe defaults.
    """

    def __init__(
        self,
        catalog_client: CatalogClient,
        category_service: CategoryService,
        content_generator: ContentGenerator | None,
        pattern_repo: LearnedPatternRepository,
        miss_repo: AspectMissRepository,
        publisher: MarketplacePublisher,
        event_publisher: EventPublisher,
        config: Settings = settings,
    ) -> None:
        self._catalog_client = catalog_client
        self._category_service = category_service
        self._content_generator = content_generator
        self._pattern_repo = pattern_repo
        self._miss_repo = miss_repo
        self._publisher = publisher
        self._event_publisher = event_publisher
        self._config = config
        self._background_tasks: set[asyncio.Task[None]] = set()

    async def execute(self, input_data: CreateListingInput) -> CreateListingOutput:
        run = PipelineRun.start(input_data.external_product_id)
        try:
            return await self._run(run, input_data)
        except ListingPipelineError as exc:
            run.fail(exc.code, exc.message)
            logger.warning(
                "listing_pipeline_failed",
                run_id=str(run.id),
                external_product_id=input_data.external_product_id,
                stage=run.history[-2].to_stage.value,
                error_code=exc.code,
                error=exc.message,
            )
            raise
        finally:
            await self._event_publisher.publish_many(run.collect_events())

    async def wait_for_background_tasks(self) -> None:
        """Wait for pending miss-logging writes; their errors are already handled."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    async def _run(self, run: PipelineRun, input_data: CreateListingInput) -> CreateListingOutput:
        external_product_id = normalize_product_id(input_data.external_product_id)
        run.external_product_id = external_product_id

        draft = await self._fetch_catalog(external_product_id)
        original_title = draft.title

        run.advance_to(PipelineStage.RESOLVING_CATEGORY)
        category = await self._resolve_category(draft.title)

        run.advance_to(PipelineStage.FETCHING_ASPECTS)
        requirements = await self._fetch_requirements(run, category)

        run.advance_to(PipelineStage.RESOLVING_ASPECTS)
        patterns = await self._load_patterns(run, category)
        resolution = resolve_aspects(
            draft, requirements, patterns, category, external_product_id
        )
        logger.info(
            "aspects_resolved",
            run_id=str(run.id),
            category_id=category.category_id,
            aspect_sources=resolution.sources,
            missing_required_aspects=resolution.missing_aspect_names,
        )
        draft = draft.with_aspects(resolution.aspects)
        self._schedule_miss_logging(resolution.misses)

        run.advance_to(PipelineStage.GENERATING_CONTENT)
        draft, content_source = await self._generate_content(run, draft, category)

        run.advance_to(PipelineStage.ASSEMBLING)
        payload = assemble_listing(
            draft=draft,
            aspects=draft.aspects,
            external_product_id=external_product_id,
            sku_prefix=self._config.sku_prefix,
            condition=input_data.condition,
            quantity=input_data.quantity,
        )

        run.advance_to(PipelineStage.PUBLISHING)
        result = await self._publish(payload, category, input_data)

        aspect_names = list(payload.aspects)
        run.complete(
            sku=payload.sku,
            category_id=category.category_id,
            offer_id=result.offer_id,
            listing_id=result.listing_id,
            content_source=content_source,
            aspect_names=aspect_names,
            missing_required_aspects=resolution.missing_aspect_names,
        )
        logger.info(
            "listing_pipeline_completed",
            run_id=str(run.id),
            external_product_id=external_product_id,
            sku=payload.sku,
            category_id=category.category_id,
            offer_id=result.offer_id,
            listing_id=result.listing_id,
            content_source=content_source,
            degraded=run.degraded,
        )

        return CreateListingOutput(
            run_id=run.id,
            sku=payload.sku,
            title=payload.title,
            original_title=original_title,
            content_source=content_source,
            category_id=category.category_id,
            category_name=category.category_name,
            aspects_included=aspect_names,
            missing_required_aspects=resolution.missing_aspect_names,
            offer_id=result.offer_id,
            listing_id=result.listing_id,
            listing_url=result.listing_url,
            degraded=list(run.degraded),
        )

    async def _fetch_catalog(self, external_product_id: str) -> ProductDraft:
        try:
            record = await self._catalog_client.fetch_product(external_product_id)
        except ExternalServiceError as exc:
            raise CatalogUnavailableError(
                f"Catalog lookup failed for {external_product_id}: {exc}",
                details={"external_product_id": external_product_id},
            ) from exc

        if not record:
            raise CatalogNotFoundError(external_product_id)

        draft = transform_catalog_record(record, self._config.media_base_url)
        logger.info(
            "catalog_product_fetched",
            external_product_id=external_product_id,
            title=draft.title,
            images=len(draft.images),
        )
        return draft

    async def _resolve_category(self, title: str) -> CategorySuggestion:
        if not title.strip():
            raise CategoryUndeterminedError(title, "Empty product title")
        try:
            category = await self._category_service.suggest_category(title)
        except ExternalServiceError as exc:
            raise CategoryUndeterminedError(title, str(exc)) from exc

        if category is None or not category.category_id:
            raise CategoryUndeterminedError(title)

        logger.info(
            "category_resolved",
            category_id=category.category_id,
            category_name=category.category_name,
        )
        return category

    async def _fetch_requirements(
        self, run: PipelineRun, category: CategorySuggestion
    ) -> list[AspectRequirement]:
        try:
            requirements = await self._category_service.get_aspect_requirements(
                category.category_id
            )
        except Exception as exc:
            logger.warning(
                "aspect_requirements_unavailable",
                category_id=category.category_id,
                error=str(exc),
            )
            run.record_degradation(ASPECTS_UNAVAILABLE, str(exc))
            return []

        logger.info(
            "aspect_requirements_fetched",
            category_id=category.category_id,
            total=len(requirements),
            required=sum(1 for r in requirements if r.required),
        )
        return requirements

    async def _load_patterns(
        self, run: PipelineRun, category: CategorySuggestion
    ) -> list[LearnedPattern]:
        try:
            return await self._pattern_repo.get_patterns_for_category(category.category_id)
        except Exception as exc:
            logger.warning(
                "learned_patterns_unavailable",
                category_id=category.category_id,
                error=str(exc),
            )
            run.record_degradation(PATTERNS_UNAVAILABLE, str(exc))
            return []

    async def _generate_content(
        self, run: PipelineRun, draft: ProductDraft, category: CategorySuggestion
    ) -> tuple[ProductDraft, str]:
        if self._content_generator is None:
            return draft, CONTENT_SOURCE_CATALOG

        request = ContentRequest(
            title=draft.title,
            description=draft.description,
            features=draft.features,
            brand=draft.brand,
            model=draft.model,
            color=draft.color,
            size=draft.size,
            category_name=category.category_name,
        )
        try:
            generated = await self._content_generator.generate(request)
            title = generated.title.strip()[:MAX_TITLE_LENGTH].strip()
            if not title:
                raise ValueError("Generated title is empty")
        except Exception as exc:
            logger.warning("content_generation_fallback", error=str(exc))
            run.record_degradation(CONTENT_FALLBACK, str(exc))
            return draft, CONTENT_SOURCE_CATALOG

        logger.info(
            "content_generated",
            model=generated.model,
            original_title=draft.title,
            title=title,
        )
        description = generated.description.strip() or draft.description
        return draft.with_content(title=title, description=description), CONTENT_SOURCE_AI

    async def _publish(
        self,
        payload: ListingPayload,
        category: CategorySuggestion,
        input_data: CreateListingInput,
    ) -> PublishResult:
        result = PublishResult(sku=payload.sku)
        try:
            await self._publisher.create_or_replace_inventory_item(payload)
            logger.info("inventory_item_created", sku=payload.sku)

            if input_data.price is None:
                return result

            result.offer_id = await self._publisher.create_offer(
                payload, self._offer_terms(category, input_data.price)
            )
            logger.info("offer_created", sku=payload.sku, offer_id=result.offer_id)

            if input_data.publish:
                result.listing_id = await self._publisher.publish_offer(result.offer_id)
                result.listing_url = self._publisher.listing_url(result.listing_id)
                logger.info(
                    "offer_published",
                    sku=payload.sku,
                    listing_id=result.listing_id,
                    listing_url=result.listing_url,
                )
        except ExternalServiceError as exc:
            if result.offer_id and not result.listing_id:
                await self._rollback_offer(result.offer_id)
            raise MarketplaceRejectedError(
                f"Marketplace rejected listing {payload.sku}: {exc}",
                details={"sku": payload.sku, "status_code": exc.status_code, "response": exc.body},
            ) from exc

        return result

    async def _rollback_offer(self, offer_id: str) -> None:
        try:
            await self._publisher.delete_offer(offer_id)
            logger.info("offer_rolled_back", offer_id=offer_id)
        except Exception:
            logger.exception("offer_rollback_failed", offer_id=offer_id)

    def _offer_terms(self, category: CategorySuggestion, price: Decimal) -> OfferTerms:
        return OfferTerms(
            price=price,
            category_id=category.category_id,
            marketplace_id=self._config.ebay_marketplace_id,
            currency=self._config.ebay_currency,
            fulfillment_policy_id=self._config.ebay_fulfillment_policy_id,
            payment_policy_id=self._config.ebay_payment_policy_id,
            return_policy_id=self._config.ebay_return_policy_id,
            merchant_location_key=self._config.ebay_merchant_location_key,
        )

    # -------------------------------------------------------------------------
    # Miss logging (fire-and-forget)
    # -------------------------------------------------------------------------

    def _schedule_miss_logging(self, misses: list[AspectMissRecord]) -> None:
        if not misses:
            return
        for miss in misses:
            logger.info(
                "required_aspect_unresolved",
                aspect_name=miss.aspect_name,
                category_id=miss.category_id,
            )
        task = asyncio.create_task(self._record_misses(misses))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _record_misses(self, misses: list[AspectMissRecord]) -> None:
        try:
            await self._miss_repo.record_misses(misses)
            logger.info(
                "aspect_misses_recorded",
                count=len(misses),
                aspects=[m.aspect_name for m in misses],
            )
        except Exception as exc:
            logger.warning("aspect_miss_logging_failed", count=len(misses), error=str(exc))
