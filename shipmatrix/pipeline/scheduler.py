"""Concurrent job scheduler.

The scheduler is the only place job states change. Ready jobs run on a
thread pool; a job whose dependency did not succeed is skipped, never
failed; a job that overruns its budget is failed with ReleaseTimeoutError.
The budget starts when a worker picks the job up, not while it is queued.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any

from shipmatrix.exceptions import ReleaseTimeoutError
from shipmatrix.pipeline.graph import GATED, Job, JobGraph, JobOutcome, JobState
from shipmatrix.trigger import TriggerEvent
from shipmatrix.utils.logging import step_timer

logger = logging.getLogger(__name__)

Listener = Callable[[str, JobState], None]

# Wake-up interval while a job with a budget is still waiting for a worker
_QUEUED_POLL = 0.05


class _Run:
    """Mutable bookkeeping for a single Scheduler.run() call."""

    def __init__(
        self,
        graph: JobGraph,
        trigger: TriggerEvent,
        pool: ThreadPoolExecutor,
        listener: Listener | None,
    ) -> None:
        self.graph = graph
        self.trigger = trigger
        self.pool = pool
        self.listener = listener
        self.states = {job.name: JobState.PENDING for job in graph}
        self.outcomes: dict[str, JobOutcome] = {}
        self.running: dict[Future[Any], Job] = {}
        self.started: dict[str, float] = {}
        self.lock = threading.Lock()

    def execute(self, job: Job, inputs: dict[str, Any]) -> Any:
        with self.lock:
            self.started[job.name] = time.monotonic()
        with step_timer(f"Job {job.name}", logger):
            return job.run(inputs)

    def elapsed(self, job: Job, now: float) -> float:
        with self.lock:
            started = self.started.get(job.name)
        return 0.0 if started is None else now - started

    @property
    def done(self) -> bool:
        return len(self.outcomes) == len(self.graph)

    def transition(self, name: str, state: JobState) -> None:
        self.states[name] = state
        logger.debug("Job %s -> %s", name, state.value)
        if self.listener is not None:
            self.listener(name, state)

    def finish(self, name: str, outcome: JobOutcome) -> None:
        self.outcomes[name] = outcome
        self.transition(name, outcome.state)

    def skip(self, job: Job, reason: str) -> None:
        logger.info("Job %s skipped: %s", job.name, reason)
        self.finish(job.name, JobOutcome(JobState.SKIPPED, skip_reason=reason))

    def release_ready(self) -> None:
        """Start, gate or skip every pending job whose dependencies are terminal.

        Skips can unblock further jobs, so this repeats until nothing changes.
        """
        progressed = True
        while progressed:
            progressed = False
            for job in self.graph:
                if self.states[job.name] is not JobState.PENDING:
                    continue
                if not all(self.states[dep].terminal for dep in job.needs):
                    continue
                progressed = True

                if not job.is_open(self.trigger):
                    self.skip(job, GATED)
                    continue

                blocked = [dep for dep in job.needs if self.states[dep] is not JobState.SUCCEEDED]
                if blocked:
                    dep = blocked[0]
                    self.skip(job, f"dependency '{dep}' {self.states[dep].value}")
                    continue

                inputs = {dep: self.outcomes[dep].output for dep in job.needs}
                self.transition(job.name, JobState.RUNNING)
                future = self.pool.submit(self.execute, job, inputs)
                self.running[future] = job

    def collect(self) -> None:
        """Wait for the next completion or the nearest deadline."""
        now = time.monotonic()
        with self.lock:
            started = dict(self.started)
        remaining = []
        for job in self.running.values():
            if job.timeout is None:
                continue
            if job.name in started:
                remaining.append(started[job.name] + job.timeout - now)
            else:
                remaining.append(_QUEUED_POLL)
        timeout = max(min(remaining), 0.0) if remaining else None

        done, _ = wait(self.running, timeout=timeout, return_when=FIRST_COMPLETED)
        now = time.monotonic()

        for future in done:
            job = self.running.pop(future)
            duration = self.elapsed(job, now)
            error = future.exception()
            if error is None:
                outcome = JobOutcome(
                    JobState.SUCCEEDED, output=future.result(), duration=duration
                )
            else:
                logger.error("Job %s failed: %s", job.name, error)
                outcome = JobOutcome(JobState.FAILED, error=error, duration=duration)
            self.finish(job.name, outcome)

        for future, job in list(self.running.items()):
            duration = self.elapsed(job, now)
            if job.timeout is not None and duration >= job.timeout:
                del self.running[future]
                future.cancel()
                error = ReleaseTimeoutError(
                    f"Job '{job.name}' exceeded its {job.timeout:g}s budget",
                    fix_hint=f"Raise timeouts.{job.name}_job in shipmatrix.yml",
                )
                logger.error("%s", error.message)
                self.finish(
                    job.name, JobOutcome(JobState.FAILED, error=error, duration=duration)
                )


class Scheduler:
    """Runs a JobGraph for one trigger."""

    def __init__(self, max_workers: int | None = None, listener: Listener | None = None) -> None:
        self.max_workers = max_workers
        self.listener = listener

    def run(self, graph: JobGraph, trigger: TriggerEvent) -> dict[str, JobOutcome]:
        """Execute every job to a terminal state.

        Returns:
            Outcome per job name, in graph order
        """
        pool = ThreadPoolExecutor(
            max_workers=self.max_workers or max(len(graph), 1),
            thread_name_prefix="job",
        )
        state = _Run(graph, trigger, pool, self.listener)
        try:
            while not state.done:
                state.release_ready()
                if state.done:
                    break
                state.collect()
        finally:
            # A timed-out job's thread cannot be interrupted; do not block on it
            pool.shutdown(wait=False, cancel_futures=True)

        return {name: state.outcomes[name] for name in graph.order}
