"""Unit tests for the pipeline stage state machine."""
import pytest

from src.domain.enums.pipeline_stage import PipelineStage
from src.domain.state_machine.pipeline_state_machine import (
    InvalidStageTransitionError,
    PipelineStateMachine,
)

HAPPY_PATH = [
    PipelineStage.FETCHING_CATALOG,
    PipelineStage.RESOLVING_CATEGORY,
    PipelineStage.FETCHING_ASPECTS,
    PipelineStage.RESOLVING_ASPECTS,
    PipelineStage.GENERATING_CONTENT,
    PipelineStage.ASSEMBLING,
    PipelineStage.PUBLISHING,
    PipelineStage.DONE,
]


@pytest.fixture()
def sm() -> PipelineStateMachine:
    return PipelineStateMachine()


class TestValidTransitions:
    def test_happy_path_is_a_chain(self, sm: PipelineStateMachine) -> None:
        for from_stage, to_stage in zip(HAPPY_PATH, HAPPY_PATH[1:]):
            assert sm.can_transition(from_stage, to_stage) is True

    def test_catalog_can_fail(self, sm: PipelineStateMachine) -> None:
        assert sm.can_transition(PipelineStage.FETCHING_CATALOG, PipelineStage.FAILED) is True

    def test_category_can_fail(self, sm: PipelineStateMachine) -> None:
        assert sm.can_transition(PipelineStage.RESOLVING_CATEGORY, PipelineStage.FAILED) is True

    def test_publishing_can_fail(self, sm: PipelineStateMachine) -> None:
        assert sm.can_transition(PipelineStage.PUBLISHING, PipelineStage.FAILED) is True


class TestInvalidTransitions:
    def test_cannot_skip_stages(self, sm: PipelineStateMachine) -> None:
        assert sm.can_transition(PipelineStage.FETCHING_CATALOG, PipelineStage.ASSEMBLING) is False

    def test_cannot_go_backwards(self, sm: PipelineStateMachine) -> None:
        assert sm.can_transition(PipelineStage.ASSEMBLING, PipelineStage.RESOLVING_ASPECTS) is False

    @pytest.mark.parametrize(
        "stage",
        [
            PipelineStage.FETCHING_ASPECTS,
            PipelineStage.RESOLVING_ASPECTS,
            PipelineStage.GENERATING_CONTENT,
            PipelineStage.ASSEMBLING,
        ],
    )
    def test_degrading_stages_cannot_fail(self, sm: PipelineStateMachine, stage: PipelineStage) -> None:
        assert sm.can_transition(stage, PipelineStage.FAILED) is False
        assert sm.can_fail_from(stage) is False

    def test_done_is_terminal(self, sm: PipelineStateMachine) -> None:
        for stage in PipelineStage:
            assert sm.can_transition(PipelineStage.DONE, stage) is False

    def test_failed_is_terminal(self, sm: PipelineStateMachine) -> None:
        for stage in PipelineStage:
            assert sm.can_transition(PipelineStage.FAILED, stage) is False


class TestValidateTransition:
    def test_raises_on_invalid(self, sm: PipelineStateMachine) -> None:
        with pytest.raises(InvalidStageTransitionError) as exc_info:
            sm.validate_transition(PipelineStage.DONE, PipelineStage.PUBLISHING)
        assert exc_info.value.from_stage == PipelineStage.DONE
        assert exc_info.value.to_stage == PipelineStage.PUBLISHING

    def test_does_not_raise_on_valid(self, sm: PipelineStateMachine) -> None:
        sm.validate_transition(PipelineStage.ASSEMBLING, PipelineStage.PUBLISHING)

    def test_get_allowed_transitions(self, sm: PipelineStateMachine) -> None:
        assert sm.get_allowed_transitions(PipelineStage.PUBLISHING) == frozenset(
            {PipelineStage.DONE, PipelineStage.FAILED}
        )
