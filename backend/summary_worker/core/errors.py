"""Error taxonomy for the processing pipeline."""

from __future__ import annotations

from summary_worker.core.constants import JobState


class WorkerError(RuntimeError):
    """Fatal pipeline error; aborts the job."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AcquisitionError(WorkerError):
    pass


class NormalizationError(WorkerError):
    pass


class SegmentationError(WorkerError):
    pass


class TranscriptionError(WorkerError):
    pass


class PipelineError(RuntimeError):
    """Envelope error surfaced by the coordinator to the HTTP layer.

    Attributes:
        stage: lifecycle state the job was in when it failed
        message: human readable reason
        elapsed_ms: wall-clock time spent on the job before failing
    """

    def __init__(self, stage: JobState, message: str, elapsed_ms: int):
        self.stage = stage
        self.message = message
        self.elapsed_ms = elapsed_ms
        super().__init__(f"[{stage.value}] {message}")
