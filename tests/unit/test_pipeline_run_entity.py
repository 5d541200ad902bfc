"""Unit tests for the PipelineRun entity."""
import pytest

from src.domain.entities.pipeline_run import PipelineRun
from src.domain.enums.pipeline_stage import PipelineStage
from src.domain.events.domain_events import (
    ListingPipelineFailedEvent,
    ListingPublishedEvent,
    PipelineDegradedEvent,
    PipelineStageChangedEvent,
)
from src.domain.state_machine.pipeline_state_machine import InvalidStageTransitionError


def _advance_to_publishing(run: PipelineRun) -> None:
    for stage in (
        PipelineStage.RESOLVING_CATEGORY,
        PipelineStage.FETCHING_ASPECTS,
        PipelineStage.RESOLVING_ASPECTS,
        PipelineStage.GENERATING_CONTENT,
        PipelineStage.ASSEMBLING,
        PipelineStage.PUBLISHING,
    ):
        run.advance_to(stage)


class TestStart:
    def test_starts_fetching_catalog(self) -> None:
        run = PipelineRun.start("B0TESTASIN")
        assert run.stage == PipelineStage.FETCHING_CATALOG
        assert run.visited_stages == [PipelineStage.FETCHING_CATALOG]
        assert run.finished_at is None

    def test_emits_initial_stage_event(self) -> None:
        run = PipelineRun.start("B0TESTASIN")
        events = run.collect_events()
        assert len(events) == 1
        assert isinstance(events[0], PipelineStageChangedEvent)
        assert events[0].from_stage is None
        assert events[0].to_stage == PipelineStage.FETCHING_CATALOG

    def test_collect_events_clears_buffer(self) -> None:
        run = PipelineRun.start("B0TESTASIN")
        run.collect_events()
        assert run.collect_events() == []


class TestAdvance:
    def test_records_history_and_events(self) -> None:
        run = PipelineRun.start("B0TESTASIN")
        run.collect_events()
        run.advance_to(PipelineStage.RESOLVING_CATEGORY)

        assert run.stage == PipelineStage.RESOLVING_CATEGORY
        assert run.history[-1].from_stage == PipelineStage.FETCHING_CATALOG
        (event,) = run.collect_events()
        assert isinstance(event, PipelineStageChangedEvent)
        assert event.external_product_id == "B0TESTASIN"

    def test_invalid_transition_raises(self) -> None:
        run = PipelineRun.start("B0TESTASIN")
        with pytest.raises(InvalidStageTransitionError):
            run.advance_to(PipelineStage.PUBLISHING)
        assert run.stage == PipelineStage.FETCHING_CATALOG


class TestDegradation:
    def test_records_marker_and_event(self) -> None:
        run = PipelineRun.start("B0TESTASIN")
        run.advance_to(PipelineStage.RESOLVING_CATEGORY)
        run.advance_to(PipelineStage.FETCHING_ASPECTS)
        run.collect_events()

        run.record_degradation("aspects_unavailable", "timeout")

        assert run.degraded == ["aspects_unavailable"]
        (event,) = run.collect_events()
        assert isinstance(event, PipelineDegradedEvent)
        assert event.stage == PipelineStage.FETCHING_ASPECTS
        assert event.reason == "timeout"


class TestTerminalStages:
    def test_fail_sets_error_and_finishes(self) -> None:
        run = PipelineRun.start("B0TESTASIN")
        run.collect_events()
        run.fail("not_found", "Product not found")

        assert run.stage == PipelineStage.FAILED
        assert run.error_code == "not_found"
        assert run.finished_at is not None
        failed = [e for e in run.collect_events() if isinstance(e, ListingPipelineFailedEvent)]
        assert len(failed) == 1
        assert failed[0].failed_stage == PipelineStage.FETCHING_CATALOG

    def test_cannot_fail_from_degrading_stage(self) -> None:
        run = PipelineRun.start("B0TESTASIN")
        run.advance_to(PipelineStage.RESOLVING_CATEGORY)
        run.advance_to(PipelineStage.FETCHING_ASPECTS)
        with pytest.raises(InvalidStageTransitionError):
            run.fail("x", "y")

    def test_complete_emits_published_event(self) -> None:
        run = PipelineRun.start("B0TESTASIN")
        _advance_to_publishing(run)
        run.collect_events()

        run.complete(
            sku="wi_B0TESTASIN",
            category_id="112529",
            offer_id="OFFER-1",
            listing_id="LISTING-1",
            content_source="ai",
            aspect_names=["Brand"],
            missing_required_aspects=["Connectivity"],
        )

        assert run.stage == PipelineStage.DONE
        events = run.collect_events()
        published = events[-1]
        assert isinstance(published, ListingPublishedEvent)
        assert published.aspect_names == ("Brand",)
        assert published.missing_required_aspects == ("Connectivity",)
