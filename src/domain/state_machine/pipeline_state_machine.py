from src.domain.enums.pipeline_stage import PipelineStage


# Mapping of valid transitions: from_stage -> set of allowed to_stages.
# Only catalog, category and publishing failures abort a run; every other
# stage degrades in place and moves forward.
VALID_TRANSITIONS: dict[PipelineStage, frozenset[PipelineStage]] = {
    PipelineStage.FETCHING_CATALOG: frozenset(
        {PipelineStage.RESOLVING_CATEGORY, PipelineStage.FAILED}
    ),
    PipelineStage.RESOLVING_CATEGORY: frozenset(
        {PipelineStage.FETCHING_ASPECTS, PipelineStage.FAILED}
    ),
    PipelineStage.FETCHING_ASPECTS: frozenset({PipelineStage.RESOLVING_ASPECTS}),
    PipelineStage.RESOLVING_ASPECTS: frozenset({PipelineStage.GENERATING_CONTENT}),
    PipelineStage.GENERATING_CONTENT: frozenset({PipelineStage.ASSEMBLING}),
    PipelineStage.ASSEMBLING: frozenset({PipelineStage.PUBLISHING}),
    PipelineStage.PUBLISHING: frozenset({PipelineStage.DONE, PipelineStage.FAILED}),
    # Terminal stages have no outgoing transitions
    PipelineStage.DONE: frozenset(),
    PipelineStage.FAILED: frozenset(),
}


class InvalidStageTransitionError(Exception):
    """Raised when a pipeline run attempts an illegal stage transition."""

    def __init__(self, from_stage: PipelineStage, to_stage: PipelineStage) -> None:
        self.from_stage = from_stage
        self.to_stage = to_stage
        super().__init__(
            f"Invalid transition from {from_stage.value} to {to_stage.value}. "
            f"Allowed transitions: {sorted(s.value for s in VALID_TRANSITIONS.get(from_stage, frozenset()))}"
        )


class PipelineStateMachine:
    """
    Validates stage transitions for a listing pipeline run.

    Stateless; call with explicit stages.
    """

    def can_transition(self, from_stage: PipelineStage, to_stage: PipelineStage) -> bool:
        if from_stage.is_terminal:
            return False
        return to_stage in VALID_TRANSITIONS.get(from_stage, frozenset())

    def validate_transition(self, from_stage: PipelineStage, to_stage: PipelineStage) -> None:
        """Raise InvalidStageTransitionError if the transition is not permitted."""
        if not self.can_transition(from_stage, to_stage):
            raise InvalidStageTransitionError(from_stage, to_stage)

    def get_allowed_transitions(self, from_stage: PipelineStage) -> frozenset[PipelineStage]:
        return VALID_TRANSITIONS.get(from_stage, frozenset())

    def can_fail_from(self, stage: PipelineStage) -> bool:
        """Return True if a failure at this stage aborts the run."""
        return PipelineStage.FAILED in VALID_TRANSITIONS.get(stage, frozenset())
