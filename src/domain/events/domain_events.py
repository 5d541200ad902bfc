from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.domain.enums.pipeline_stage import PipelineStage


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class PipelineStageChangedEvent(DomainEvent):
    """Published whenever a pipeline run moves between stages."""

    run_id: UUID = field(default_factory=uuid4)
    external_product_id: str = ""
    from_stage: PipelineStage | None = None
    to_stage: PipelineStage = PipelineStage.FETCHING_CATALOG


@dataclass(frozen=True)
class PipelineDegradedEvent(DomainEvent):
    """Published when a non-fatal stage falls back to its default."""

    run_id: UUID = field(default_factory=uuid4)
    external_product_id: str = ""
    stage: PipelineStage = PipelineStage.FETCHING_ASPECTS
    marker: str = ""
    reason: str = ""


@dataclass(frozen=True)
class ListingPublishedEvent(DomainEvent):
    """Published when a run has submitted its listing to the marketplace."""

    run_id: UUID = field(default_factory=uuid4)
    external_product_id: str = ""
    sku: str = ""
    category_id: str = ""
    offer_id: str | None = None
    listing_id: str | None = None
    content_source: str = ""
    aspect_names: tuple[str, ...] = ()
    missing_required_aspects: tuple[str, ...] = ()


@dataclass(frozen=True)
class ListingPipelineFailedEvent(DomainEvent):
    """Published when a run aborts on a fatal error."""

    run_id: UUID = field(default_factory=uuid4)
    external_product_id: str = ""
    failed_stage: PipelineStage = PipelineStage.FETCHING_CATALOG
    error_code: str = ""
    error_message: str = ""
