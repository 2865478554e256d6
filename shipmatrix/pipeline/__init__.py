"""Job graph, scheduler and the release pipeline built on them."""

from shipmatrix.pipeline.graph import Job, JobGraph, JobOutcome, JobState, manual_only
from shipmatrix.pipeline.scheduler import Scheduler
from shipmatrix.pipeline.workflow import (
    ImagePublication,
    PipelineResult,
    ReleasePipeline,
    ReleaseRecord,
)

__all__ = [
    "ImagePublication",
    "Job",
    "JobGraph",
    "JobOutcome",
    "JobState",
    "PipelineResult",
    "ReleasePipeline",
    "ReleaseRecord",
    "Scheduler",
    "manual_only",
]
