"""Enumerations describing capture pipeline stages."""

from enum import Enum


class PipelineStage(str, Enum):
    """Finite states of a single capture-to-result cycle."""

    IDLE = "idle"
    CAPTURING = "capturing"
    UPLOADING = "uploading"
    DECODING = "decoding"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def in_flight(self) -> bool:
        return self in _IN_FLIGHT


_IN_FLIGHT = frozenset({PipelineStage.CAPTURING, PipelineStage.UPLOADING, PipelineStage.DECODING})

ALLOWED_TRANSITIONS: dict[PipelineStage, frozenset[PipelineStage]] = {
    PipelineStage.IDLE: frozenset({PipelineStage.CAPTURING}),
    PipelineStage.CAPTURING: frozenset({PipelineStage.UPLOADING, PipelineStage.FAILED}),
    PipelineStage.UPLOADING: frozenset({PipelineStage.DECODING, PipelineStage.FAILED}),
    PipelineStage.DECODING: frozenset({PipelineStage.SUCCEEDED, PipelineStage.FAILED}),
    PipelineStage.SUCCEEDED: frozenset({PipelineStage.CAPTURING, PipelineStage.IDLE}),
    PipelineStage.FAILED: frozenset({PipelineStage.CAPTURING, PipelineStage.IDLE}),
}
