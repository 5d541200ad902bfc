from enum import Enum


class PipelineStage(str, Enum):
    """Stages a single listing pipeline run moves through."""

    FETCHING_CATALOG = "FETCHING_CATALOG"
    RESOLVING_CATEGORY = "RESOLVING_CATEGORY"
    FETCHING_ASPECTS = "FETCHING_ASPECTS"
    RESOLVING_ASPECTS = "RESOLVING_ASPECTS"
    GENERATING_CONTENT = "GENERATING_CONTENT"
    ASSEMBLING = "ASSEMBLING"
    PUBLISHING = "PUBLISHING"
    DONE = "DONE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        """Terminal stages cannot be transitioned out of."""
        return self in (PipelineStage.DONE, PipelineStage.FAILED)
