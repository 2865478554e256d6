"""Release pipeline wiring.

Declares the five jobs and their edges:

    version ─┬─> build ───┐
    lint ────┤            ├─> release
             └─> publish ─┘

build and publish need version and lint; release needs version, build
and publish. publish and release only run for manual releases.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from shipmatrix.artifacts import NOTES_FILENAME, ArtifactCollector, Collection
from shipmatrix.build.matrix import BuildMatrixExpander
from shipmatrix.build.targets import Artifact
from shipmatrix.build.toolchain import GoToolchain, Toolchain
from shipmatrix.config.models import PipelineConfig
from shipmatrix.exceptions import IncompleteBuildError, PublishError, PublishFailure, ReleaseError
from shipmatrix.notes import render_notes
from shipmatrix.pipeline.graph import Job, JobGraph, JobOutcome, JobState, manual_only
from shipmatrix.pipeline.scheduler import Listener, Scheduler
from shipmatrix.publishers.base import (
    PublishContext,
    Publisher,
    PublishResult,
    PublishStatus,
    require_success,
)
from shipmatrix.publishers.docker import DockerPublisher, PublishPlan
from shipmatrix.publishers.github import GitHubPublisher
from shipmatrix.trigger import TriggerEvent
from shipmatrix.utils.version import Version
from shipmatrix.validators import LintContext, run_lint
from shipmatrix.versioning import GitTagHistory, TagHistory, VersionResolver

logger = logging.getLogger(__name__)

VERSION_JOB = "version"
LINT_JOB = "lint"
BUILD_JOB = "build"
PUBLISH_JOB = "publish"
RELEASE_JOB = "release"


@dataclass(frozen=True)
class ImagePublication:
    """Output of the publish job."""

    plan: PublishPlan | None
    result: PublishResult


@dataclass(frozen=True)
class ReleaseRecord:
    """The finalised release.

    Attributes:
        version: Released version
        artifacts: Archives attached to the release
        checksum_manifest: ``<sha256>  <archive>`` lines
        notes: Rendered markdown notes
        prerelease: True for every non-stable release
        url: Release page, when the host reported one
    """

    version: Version
    artifacts: tuple[Artifact, ...]
    checksum_manifest: tuple[str, ...]
    notes: str
    prerelease: bool
    url: str | None = None


@dataclass
class PipelineResult:
    """Aggregate outcome of one pipeline run."""

    trigger: TriggerEvent
    outcomes: dict[str, JobOutcome]

    @property
    def succeeded(self) -> bool:
        return all(o.state is not JobState.FAILED for o in self.outcomes.values())

    @property
    def status(self) -> str:
        return "succeeded" if self.succeeded else "failed"

    def output(self, job: str) -> Any:
        outcome = self.outcomes.get(job)
        return outcome.output if outcome is not None else None

    @property
    def version(self) -> Version | None:
        return self.output(VERSION_JOB)

    @property
    def collection(self) -> Collection | None:
        return self.output(BUILD_JOB)

    @property
    def record(self) -> ReleaseRecord | None:
        return self.output(RELEASE_JOB)

    @property
    def first_error(self) -> BaseException | None:
        """Error of the first failed job in dependency order."""
        for outcome in self.outcomes.values():
            if outcome.state is JobState.FAILED:
                return outcome.error
        return None

    @property
    def exit_code(self) -> int:
        if self.succeeded:
            return 0
        error = self.first_error
        if isinstance(error, ReleaseError):
            return error.exit_code
        return 1


@dataclass
class ReleasePipeline:
    """Builds the job graph for one trigger and runs it.

    Collaborators default to the real git, go, docker and gh adapters and
    can be replaced for testing.
    """

    project_root: Path
    config: PipelineConfig
    trigger: TriggerEvent
    dry_run: bool = False
    tag_history: TagHistory | None = None
    toolchain: Toolchain | None = None
    image_publisher: DockerPublisher | None = None
    release_publisher: Publisher | None = None
    environ: Mapping[str, str] | None = None
    listener: Listener | None = None
    collector: ArtifactCollector = field(default_factory=ArtifactCollector)

    def __post_init__(self) -> None:
        env = os.environ if self.environ is None else self.environ
        if self.tag_history is None:
            self.tag_history = GitTagHistory(self.project_root, self.config)
        if self.toolchain is None:
            self.toolchain = GoToolchain(self.project_root, self.config)
        if self.image_publisher is None:
            self.image_publisher = DockerPublisher(environ=env)
        if self.release_publisher is None:
            self.release_publisher = GitHubPublisher(environ=env)

    def graph(self) -> JobGraph:
        timeouts = self.config.timeouts
        return JobGraph(
            [
                Job(VERSION_JOB, self.version_job, timeout=timeouts.version_job),
                Job(LINT_JOB, self.lint_job, timeout=timeouts.lint_job),
                Job(
                    BUILD_JOB,
                    self.build_job,
                    needs=(VERSION_JOB, LINT_JOB),
                    timeout=timeouts.build_job,
                ),
                Job(
                    PUBLISH_JOB,
                    self.publish_job,
                    needs=(VERSION_JOB, LINT_JOB),
                    gate=manual_only,
                    timeout=timeouts.publish_job,
                ),
                Job(
                    RELEASE_JOB,
                    self.release_job,
                    needs=(VERSION_JOB, BUILD_JOB, PUBLISH_JOB),
                    gate=manual_only,
                    timeout=timeouts.release_job,
                ),
            ]
        )

    def run(self) -> PipelineResult:
        logger.info(
            "Pipeline started: %s%s",
            self.trigger.kind.value,
            f" ({self.trigger.release_kind.value})" if self.trigger.release_kind else "",
        )
        outcomes = Scheduler(listener=self.listener).run(self.graph(), self.trigger)
        result = PipelineResult(self.trigger, outcomes)
        logger.info("Pipeline %s", result.status)
        return result

    # Jobs

    def version_job(self, inputs: Mapping[str, Any]) -> Version:
        resolver = VersionResolver(self.config, self.tag_history, dry_run=self.dry_run)
        return resolver.resolve(self.trigger)

    def lint_job(self, inputs: Mapping[str, Any]) -> int:
        results = run_lint(LintContext(self.project_root, self.config))
        return len(results)

    def build_job(self, inputs: Mapping[str, Any]) -> Collection:
        """Succeeds whenever it runs; per-target failures live in the Collection."""
        expander = BuildMatrixExpander(self.project_root, self.config, self.toolchain)
        results = expander.expand(inputs[VERSION_JOB])
        return self.collector.collect(results)

    def _context(self, version: Version, **kwargs: Any) -> PublishContext:
        return PublishContext(
            project_root=self.project_root,
            config=self.config,
            version=version,
            release_kind=self.trigger.release_kind,
            dry_run=self.dry_run,
            **kwargs,
        )

    def publish_job(self, inputs: Mapping[str, Any]) -> ImagePublication:
        version: Version = inputs[VERSION_JOB]
        context = self._context(version)
        if not self.image_publisher.should_publish(context):
            return ImagePublication(None, PublishResult.skipped("Image publishing disabled"))

        plan = self.image_publisher.plan(context)
        result = require_success(self.image_publisher.publish(context), PublishFailure)
        logger.info("%s", result.message)
        return ImagePublication(plan, result)

    def release_job(self, inputs: Mapping[str, Any]) -> ReleaseRecord:
        """Render notes, assemble the release directory and create the release.

        Raises:
            IncompleteBuildError: Targets failed and partial releases are off,
                or no target produced an artifact
            PublishError: The release host rejected the release
        """
        version: Version = inputs[VERSION_JOB]
        collection: Collection = inputs[BUILD_JOB]
        publication: ImagePublication = inputs[PUBLISH_JOB]

        if not collection.artifacts:
            raise IncompleteBuildError(
                "No build target produced an artifact",
                details=self._failure_details(collection),
            )
        if not collection.complete and not self.config.release.allow_partial:
            raise IncompleteBuildError(
                f"{len(collection.failures)} build target(s) failed",
                details=self._failure_details(collection),
                fix_hint="Fix the failing targets, exclude them, or set release.allow_partial",
            )

        notes = render_notes(
            version,
            self.trigger.release_kind,
            collection.artifacts,
            collection.manifest,
            publication.plan,
        )
        dist_dir = self.project_root / self.config.release.dist_dir
        assets = self.collector.assemble(collection, notes, dist_dir, self.project_root)

        url = None
        context = self._context(version, notes_path=dist_dir / NOTES_FILENAME, assets=assets)
        if self.release_publisher.should_publish(context):
            result = require_success(self.release_publisher.publish(context), PublishError)
            logger.info("%s", result.message)
            if result.status is PublishStatus.SUCCESS:
                url = result.package_url

        return ReleaseRecord(
            version=version,
            artifacts=collection.artifacts,
            checksum_manifest=collection.manifest,
            notes=notes,
            prerelease=self.trigger.prerelease,
            url=url,
        )

    @staticmethod
    def _failure_details(collection: Collection) -> str:
        return "\n".join(f"{f.target}: {f.cause}" for f in collection.failures)
