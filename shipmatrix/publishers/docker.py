"""Container image publishing.

One multi-architecture image is built and pushed per manual release:
- Tag selection by release kind (PublishGate.plan)
- A single ``docker buildx build --push`` over every configured platform,
  so one failing architecture fails the whole publish and nothing is
  pushed partially
- Registry login with credentials read from the environment, passed on stdin
"""

import logging
import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Protocol

from shipmatrix.config.models import PipelineConfig
from shipmatrix.exceptions import PublishFailure, ReleaseTimeoutError
from shipmatrix.publishers.base import (
    PublishContext,
    Publisher,
    PublishResult,
)
from shipmatrix.trigger import ReleaseKind
from shipmatrix.utils.shell import ShellError, run
from shipmatrix.utils.version import Version

logger = logging.getLogger(__name__)

# Floating tag per release kind, pushed alongside the version tag
CHANNEL_TAGS = {
    ReleaseKind.BETA: "beta",
    ReleaseKind.STABLE: "latest",
}


@dataclass(frozen=True)
class PublishPlan:
    """Image reference and the tags it will be pushed under.

    Attributes:
        image: Repository reference without tag (e.g. 'octo/hubp')
        tags: Version tag first, then the channel tag
        platforms: Platforms built into the one manifest
    """

    image: str
    tags: tuple[str, ...]
    platforms: tuple[str, ...]

    @property
    def references(self) -> tuple[str, ...]:
        """Fully tagged references, e.g. 'octo/hubp:v1.2.4'."""
        return tuple(f"{self.image}:{tag}" for tag in self.tags)


def registry_credentials(
    registry: str, environ: Mapping[str, str]
) -> tuple[str, str] | None:
    """Read (username, secret) for a registry from the environment.

    ghcr.io uses GITHUB_ACTOR/GITHUB_TOKEN; every other registry uses
    DOCKER_USERNAME/DOCKER_PASSWORD.
    """
    if registry == "ghcr.io":
        user, secret = environ.get("GITHUB_ACTOR"), environ.get("GITHUB_TOKEN")
    else:
        user, secret = environ.get("DOCKER_USERNAME"), environ.get("DOCKER_PASSWORD")
    if user and secret:
        return user, secret
    return None


def image_reference(config: PipelineConfig, environ: Mapping[str, str]) -> str:
    """Build the repository reference from config.

    Docker Hub references omit the registry host. The namespace defaults to
    DOCKER_USERNAME (GITHUB_REPOSITORY_OWNER on ghcr.io).
    """
    image = config.image
    namespace = image.namespace
    if namespace is None:
        if image.registry == "ghcr.io":
            namespace = environ.get("GITHUB_REPOSITORY_OWNER")
        else:
            namespace = environ.get("DOCKER_USERNAME")

    parts = []
    if image.registry != "docker.io":
        parts.append(image.registry)
    if namespace:
        parts.append(namespace.lower())
    parts.append(image.repository)
    return "/".join(parts)


class ImageBuilder(Protocol):
    """Builds and pushes a multi-platform image."""

    def login(self, registry: str, username: str, password: str) -> None: ...

    def build_and_push(
        self, plan: PublishPlan, build_args: Mapping[str, str], context_dir: Path, dockerfile: Path
    ) -> None: ...


class DockerBuildx:
    """ImageBuilder driving ``docker buildx``."""

    def __init__(self, timeout: int = 3600) -> None:
        self.timeout = timeout

    def login(self, registry: str, username: str, password: str) -> None:
        """Log in to the registry; the password goes through stdin.

        Raises:
            PublishFailure: If login is rejected or docker is missing
        """
        cmd = ["docker", "login", "-u", username, "--password-stdin"]
        if registry != "docker.io":
            cmd.insert(2, registry)
        try:
            run(cmd, check=True, timeout=60, input_text=password)
        except ShellError as e:
            raise PublishFailure(
                f"Failed to login to {registry}",
                details=e.output,
                fix_hint="Check the registry credentials in the environment",
            ) from e
        except FileNotFoundError as e:
            raise PublishFailure(
                "docker is not installed",
                details=str(e),
                fix_hint="Install Docker with the buildx plugin",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ReleaseTimeoutError(f"docker login to {registry} timed out") from e

    def build_command(
        self, plan: PublishPlan, build_args: Mapping[str, str], context_dir: Path, dockerfile: Path
    ) -> list[str]:
        cmd = ["docker", "buildx", "build", "--platform", ",".join(plan.platforms)]
        for reference in plan.references:
            cmd.extend(["-t", reference])
        for key, value in build_args.items():
            cmd.extend(["--build-arg", f"{key}={value}"])
        cmd.extend(["-f", str(dockerfile), "--push", str(context_dir)])
        return cmd

    def build_and_push(
        self, plan: PublishPlan, build_args: Mapping[str, str], context_dir: Path, dockerfile: Path
    ) -> None:
        """Build every platform into one manifest and push all tags.

        Raises:
            PublishFailure: If any platform fails to build or the push fails
            ReleaseTimeoutError: If the build exceeds the publish budget
        """
        cmd = self.build_command(plan, build_args, context_dir, dockerfile)
        try:
            run(cmd, cwd=context_dir, check=True, timeout=self.timeout)
        except ShellError as e:
            raise PublishFailure(
                f"Multi-platform image build failed for {plan.image}",
                details=e.output,
            ) from e
        except FileNotFoundError as e:
            raise PublishFailure(
                "docker is not installed",
                details=str(e),
                fix_hint="Install Docker with the buildx plugin",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ReleaseTimeoutError(
                f"Image build exceeded {self.timeout}s",
                fix_hint="Raise timeouts.publish_job in shipmatrix.yml",
            ) from e


class PublishGate:
    """Chooses image tags for a release and publishes the image."""

    def __init__(
        self,
        project_root: Path,
        config: PipelineConfig,
        builder: ImageBuilder,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.project_root = project_root
        self.config = config
        self.builder = builder
        self.environ = os.environ if environ is None else environ

    def plan(self, release_kind: ReleaseKind, version: Version) -> PublishPlan:
        """Tags are {version, 'beta'} for Beta and {version, 'latest'} for Stable."""
        return PublishPlan(
            image=image_reference(self.config, self.environ),
            tags=(version.tag, CHANNEL_TAGS[release_kind]),
            platforms=self.config.image.platforms,
        )

    def build_args(self, version: Version) -> dict[str, str]:
        return {
            "VERSION": version.tag,
            "GO_VERSION": self.config.toolchain.version,
        }

    def publish(self, plan: PublishPlan, version: Version) -> PublishResult:
        """Log in (when credentials are present), then build and push.

        Raises:
            PublishFailure: If login, any platform build, or the push fails
        """
        registry = self.config.image.registry
        credentials = registry_credentials(registry, self.environ)
        if credentials is None:
            logger.warning("No credentials for %s; relying on an existing docker login", registry)
        else:
            self.builder.login(registry, *credentials)

        logger.info("Publishing %s for %s", ", ".join(plan.references), ", ".join(plan.platforms))
        self.builder.build_and_push(
            plan,
            self.build_args(version),
            context_dir=self.project_root / self.config.image.context,
            dockerfile=self.project_root / self.config.project.dockerfile,
        )
        return PublishResult.success(
            message=f"Published {plan.image} as {', '.join(plan.tags)}",
            registry_url=f"https://{registry}",
            package_url=plan.references[0],
            version=version.tag,
        )


class DockerPublisher(Publisher):
    """Publisher for the multi-architecture container image.

    Configuration:
        image:
            enabled: true
            registry: docker.io  # or ghcr.io, or custom registry
            repository: hubp
            platforms:
              - linux/amd64
              - linux/arm64
    """

    name: ClassVar[str] = "docker"

    def __init__(
        self,
        builder: ImageBuilder | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.builder = builder
        self.environ = environ

    def gate(self, context: PublishContext) -> PublishGate:
        builder = self.builder or DockerBuildx(timeout=context.config.timeouts.publish_job)
        return PublishGate(context.project_root, context.config, builder, self.environ)

    def should_publish(self, context: PublishContext) -> bool:
        return context.config.image.enabled

    def plan(self, context: PublishContext) -> PublishPlan:
        return self.gate(context).plan(context.release_kind, context.version)

    def publish(self, context: PublishContext) -> PublishResult:
        """Build and push the image; failures are returned, not raised."""
        gate = self.gate(context)
        plan = gate.plan(context.release_kind, context.version)
        if context.dry_run:
            return PublishResult.skipped(f"Would push {', '.join(plan.references)} (dry run)")
        try:
            return gate.publish(plan, context.version)
        except PublishFailure as e:
            return PublishResult.failed(e.message, details=e.details)
