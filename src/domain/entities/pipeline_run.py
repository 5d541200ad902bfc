from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.domain.enums.pipeline_stage import PipelineStage
from src.domain.events.domain_events import (
    DomainEvent,
    ListingPipelineFailedEvent,
    ListingPublishedEvent,
    PipelineDegradedEvent,
    PipelineStageChangedEvent,
)
from src.domain.state_machine.pipeline_state_machine import PipelineStateMachine

_state_machine = PipelineStateMachine()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StageTransition:
    from_stage: PipelineStage | None
    to_stage: PipelineStage
    transitioned_at: datetime


@dataclass
class PipelineRun:
    """
    One invocation of the listing pipeline for a single external product.

    Tracks the current stage, the stages visited and any degradations, and
    emits domain events. Callers are responsible for collecting and
    publishing them.
    """

    # Identity
    id: UUID = field(default_factory=uuid4)
    external_product_id: str = ""

    # Stage
    stage: PipelineStage = PipelineStage.FETCHING_CATALOG
    history: list[StageTransition] = field(default_factory=list)

    # Timestamps
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None

    # Non-fatal fallbacks taken during the run, in order
    degraded: list[str] = field(default_factory=list)

    # Error tracking
    error_code: str | None = None
    error_message: str | None = None

    # Pending domain events (collected and cleared by the application layer)
    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def start(cls, external_product_id: str) -> "PipelineRun":
        run = cls(external_product_id=external_product_id)
        run.history.append(
            StageTransition(
                from_stage=None,
                to_stage=PipelineStage.FETCHING_CATALOG,
                transitioned_at=run.started_at,
            )
        )
        run._events.append(
            PipelineStageChangedEvent(
                run_id=run.id,
                external_product_id=external_product_id,
                from_stage=None,
                to_stage=PipelineStage.FETCHING_CATALOG,
            )
        )
        return run

    # -------------------------------------------------------------------------
    # Stage transitions
    # -------------------------------------------------------------------------

    def advance_to(self, new_stage: PipelineStage) -> None:
        """Validate and apply a stage transition, recording the domain event."""
        _state_machine.validate_transition(self.stage, new_stage)

        old_stage = self.stage
        now = _utcnow()
        self.stage = new_stage
        self.history.append(
            StageTransition(from_stage=old_stage, to_stage=new_stage, transitioned_at=now)
        )
        if new_stage.is_terminal:
            self.finished_at = now

        self._events.append(
            PipelineStageChangedEvent(
                run_id=self.id,
                external_product_id=self.external_product_id,
                from_stage=old_stage,
                to_stage=new_stage,
            )
        )

    def record_degradation(self, marker: str, reason: str) -> None:
        """Note a non-fatal fallback taken at the current stage."""
        self.degraded.append(marker)
        self._events.append(
            PipelineDegradedEvent(
                run_id=self.id,
                external_product_id=self.external_product_id,
                stage=self.stage,
                marker=marker,
                reason=reason,
            )
        )

    def fail(self, error_code: str, error_message: str) -> None:
        """Move to FAILED from the current stage; raises if this stage cannot abort."""
        failed_stage = self.stage
        self.advance_to(PipelineStage.FAILED)
        self.error_code = error_code
        self.error_message = error_message
        self._events.append(
            ListingPipelineFailedEvent(
                run_id=self.id,
                external_product_id=self.external_product_id,
                failed_stage=failed_stage,
                error_code=error_code,
                error_message=error_message,
            )
        )

    def complete(
        self,
        *,
        sku: str,
        category_id: str,
        offer_id: str | None,
        listing_id: str | None,
        content_source: str,
        aspect_names: list[str],
        missing_required_aspects: list[str],
    ) -> None:
        self.advance_to(PipelineStage.DONE)
        self._events.append(
            ListingPublishedEvent(
                run_id=self.id,
                external_product_id=self.external_product_id,
                sku=sku,
                category_id=category_id,
                offer_id=offer_id,
                listing_id=listing_id,
                content_source=content_source,
                aspect_names=tuple(aspect_names),
                missing_required_aspects=tuple(missing_required_aspects),
            )
        )

    @property
    def visited_stages(self) -> list[PipelineStage]:
        return [t.to_stage for t in self.history]

    # -------------------------------------------------------------------------
    # Event collection
    # -------------------------------------------------------------------------

    def collect_events(self) -> list[DomainEvent]:
        """Return pending events and clear the internal buffer."""
        events = list(self._events)
        self._events.clear()
        return events
