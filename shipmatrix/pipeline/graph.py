"""Job graph: typed jobs, declared dependency edges and gating predicates.

The graph is validated once at construction. Unknown dependencies,
duplicate names and cycles are rejected before anything runs.
"""

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from graphlib import CycleError, TopologicalSorter
from typing import Any

from shipmatrix.exceptions import JobGraphError
from shipmatrix.trigger import TriggerEvent


class JobState(Enum):
    """Lifecycle of a job: Pending -> Running -> one terminal state."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def terminal(self) -> bool:
        return self in (JobState.SUCCEEDED, JobState.FAILED, JobState.SKIPPED)


# Receives the outputs of the job's dependencies, keyed by job name
JobFunc = Callable[[Mapping[str, Any]], Any]
Gate = Callable[[TriggerEvent], bool]

GATED = "gated"


def manual_only(trigger: TriggerEvent) -> bool:
    """Gate that opens only for manual releases."""
    return trigger.is_manual


@dataclass(frozen=True)
class Job:
    """A node of the pipeline.

    Attributes:
        name: Unique job name
        run: Callable invoked with the outputs of ``needs``
        needs: Names of jobs that must succeed first
        gate: Predicate on the trigger; a closed gate skips the job
        timeout: Time budget in seconds (None for unlimited)
    """

    name: str
    run: JobFunc
    needs: tuple[str, ...] = ()
    gate: Gate | None = None
    timeout: float | None = None

    def is_open(self, trigger: TriggerEvent) -> bool:
        return self.gate is None or self.gate(trigger)


@dataclass(frozen=True)
class JobOutcome:
    """Terminal result of one job.

    Attributes:
        state: SUCCEEDED, FAILED or SKIPPED
        output: Return value of a succeeded job
        error: Exception of a failed job
        skip_reason: Why a skipped job did not run
        duration: Wall-clock seconds spent running
    """

    state: JobState
    output: Any = None
    error: BaseException | None = None
    skip_reason: str | None = None
    duration: float = 0.0


class JobGraph:
    """Validated DAG of jobs."""

    def __init__(self, jobs: Iterable[Job]) -> None:
        self._jobs: dict[str, Job] = {}
        for job in jobs:
            if job.name in self._jobs:
                raise JobGraphError(f"Duplicate job '{job.name}'")
            self._jobs[job.name] = job

        for job in self._jobs.values():
            unknown = [dep for dep in job.needs if dep not in self._jobs]
            if unknown:
                raise JobGraphError(
                    f"Job '{job.name}' depends on unknown job(s): {', '.join(unknown)}"
                )

        sorter = TopologicalSorter({job.name: job.needs for job in self._jobs.values()})
        try:
            self._order = tuple(sorter.static_order())
        except CycleError as e:
            cycle = " -> ".join(e.args[1]) if len(e.args) > 1 else ""
            raise JobGraphError("Job graph contains a cycle", details=cycle) from e

    def __getitem__(self, name: str) -> Job:
        return self._jobs[name]

    def __iter__(self) -> Iterator[Job]:
        return (self._jobs[name] for name in self._order)

    def __len__(self) -> int:
        return len(self._jobs)

    @property
    def order(self) -> tuple[str, ...]:
        """Job names in a dependency-respecting order."""
        return self._order
