"""Pytest fixtures for shipmatrix tests.

Provides common fixtures for:
- Temporary project directories
- Go project layouts
- Git repository setup with a bare remote
- Pipeline configurations
- Fakes for the toolchain, tag history, image builder and release host
"""

import logging
import os
import subprocess
import threading
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, ClassVar

import pytest
import yaml

from shipmatrix.build.targets import BuildTarget
from shipmatrix.config.models import PipelineConfig
from shipmatrix.exceptions import BuildError, PublishFailure, TagPushConflict
from shipmatrix.publishers.base import PublishContext, Publisher, PublishResult
from shipmatrix.publishers.docker import PublishPlan
from shipmatrix.utils.logging import LOGGER_NAME


def git(cwd: Path, *args: str) -> str:
    """Run a git command for test setup and return its stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove CI, credential and SHIPMATRIX_* variables for every test."""
    for key in list(os.environ):
        if key.startswith(("SHIPMATRIX_", "GITHUB_", "DOCKER_")):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_package_logger() -> Any:
    """Undo configure_logging() calls made by CLI runs."""
    log = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = list(log.handlers), log.level, log.propagate
    yield
    log.handlers[:] = handlers
    log.setLevel(level)
    log.propagate = propagate


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Temporary directory for tests (cleanup handled by pytest)."""
    return tmp_path


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a temporary project directory."""
    project = temp_dir / "test-project"
    project.mkdir()
    return project


@pytest.fixture
def go_project(project_dir: Path) -> Path:
    """Create a minimal Go project with go.mod, main.go and a Dockerfile."""
    (project_dir / "go.mod").write_text(
        "module github.com/octo/hubp\n\ngo 1.22\n", encoding="utf-8"
    )
    (project_dir / "main.go").write_text(
        'package main\n\nvar Version = "dev"\n\nfunc main() {}\n', encoding="utf-8"
    )
    (project_dir / "Dockerfile").write_text(
        "ARG GO_VERSION\nFROM golang:${GO_VERSION}\n", encoding="utf-8"
    )
    return project_dir


@pytest.fixture
def git_repo(project_dir: Path) -> Path:
    """Create a git repository with one commit in the project directory."""
    git(project_dir, "init")
    git(project_dir, "config", "user.email", "test@test.com")
    git(project_dir, "config", "user.name", "Test User")
    git(project_dir, "config", "tag.gpgSign", "false")
    git(project_dir, "commit", "--allow-empty", "-m", "Initial commit")
    return project_dir


@pytest.fixture
def git_remote(git_repo: Path, temp_dir: Path) -> Path:
    """Create a bare repository registered as 'origin' and push HEAD to it."""
    remote = temp_dir / "remote.git"
    subprocess.run(
        ["git", "init", "--bare", str(remote)],
        capture_output=True,
        check=True,
    )
    git(git_repo, "remote", "add", "origin", str(remote))
    git(git_repo, "push", "origin", "HEAD")
    return remote


@pytest.fixture
def config_data() -> dict[str, Any]:
    """Minimal configuration dictionary for a project called HubP."""
    return {
        "project": {"name": "hubp", "binary_name": "HubP"},
        "image": {"repository": "hubp", "namespace": "octo"},
        "release": {"repo": "octo/hubp"},
    }


@pytest.fixture
def pipeline_config(config_data: dict[str, Any]) -> PipelineConfig:
    """Validated configuration with the full default 4x2 matrix."""
    return PipelineConfig(**config_data)


@pytest.fixture
def config_file(project_dir: Path, config_data: dict[str, Any]) -> Path:
    """Write config_data to shipmatrix.yml in the project directory."""
    path = project_dir / "shipmatrix.yml"
    path.write_text(yaml.safe_dump(config_data), encoding="utf-8")
    return path


class FakeToolchain:
    """Toolchain that writes a small file instead of compiling."""

    def __init__(
        self,
        fail_targets: tuple[BuildTarget, ...] = (),
        prepare_error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.fail_targets = set(fail_targets)
        self.prepare_error = prepare_error
        self.delay = delay
        self.prepared = 0
        self.built: list[tuple[BuildTarget, str, Path]] = []
        self._lock = threading.Lock()

    def prepare(self) -> None:
        self.prepared += 1
        if self.prepare_error is not None:
            raise self.prepare_error

    def build(self, target: BuildTarget, version: str, output: Path) -> None:
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.built.append((target, version, output))
        if target in self.fail_targets:
            raise BuildError(f"Build for {target} failed", details="undefined: syscall.Foo")
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(f"{target.slug} {version}\n".encode())


class FakeTagHistory:
    """In-memory tag history; ``tags`` is newest first."""

    def __init__(
        self,
        tags: tuple[str, ...] = (),
        remote: tuple[str, ...] = (),
        reject_push: bool = False,
    ) -> None:
        self.tags = list(tags)
        self.remote = set(remote)
        self.reject_push = reject_push
        self.created: list[tuple[str, str]] = []
        self.pushed: list[str] = []
        self.discarded: list[str] = []

    def latest(self) -> str | None:
        return self.tags[0] if self.tags else None

    def exists_remotely(self, tag: str) -> bool:
        return tag in self.remote

    def create(self, tag: str, message: str) -> None:
        self.created.append((tag, message))
        self.tags.insert(0, tag)

    def push(self, tag: str) -> None:
        if self.reject_push:
            raise TagPushConflict(f"Tag '{tag}' already exists on remote 'origin'")
        self.pushed.append(tag)
        self.remote.add(tag)

    def discard(self, tag: str) -> None:
        self.discarded.append(tag)
        self.tags.remove(tag)


class FakeImageBuilder:
    """ImageBuilder that records calls and optionally fails the build."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.logins: list[tuple[str, str, str]] = []
        self.builds: list[tuple[PublishPlan, dict[str, str], Path, Path]] = []

    def login(self, registry: str, username: str, password: str) -> None:
        self.logins.append((registry, username, password))

    def build_and_push(
        self,
        plan: PublishPlan,
        build_args: Mapping[str, str],
        context_dir: Path,
        dockerfile: Path,
    ) -> None:
        self.builds.append((plan, dict(build_args), context_dir, dockerfile))
        if self.fail:
            raise PublishFailure(
                f"Multi-platform image build failed for {plan.image}",
                details="linux/arm64: exec format error",
            )


class FakeReleaseHost(Publisher):
    """Release publisher that records the contexts it was given."""

    name: ClassVar[str] = "fake-release"

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.contexts: list[PublishContext] = []

    def publish(self, context: PublishContext) -> PublishResult:
        self.contexts.append(context)
        if self.fail:
            return PublishResult.failed("Release creation rejected", details="HTTP 422")
        return PublishResult.success(
            f"Created release {context.tag_name}",
            package_url=f"https://example.test/releases/{context.tag_name}",
            version=context.tag_name,
        )


@pytest.fixture
def fake_toolchain() -> FakeToolchain:
    return FakeToolchain()


@pytest.fixture
def fake_tags() -> FakeTagHistory:
    return FakeTagHistory(tags=("v1.2.3",))


@pytest.fixture
def fake_builder() -> FakeImageBuilder:
    return FakeImageBuilder()


@pytest.fixture
def fake_host() -> FakeReleaseHost:
    return FakeReleaseHost()


@pytest.fixture
def fakes() -> Any:
    """The fake classes, for tests that need non-default behaviour."""

    class _Fakes:
        Toolchain = FakeToolchain
        TagHistory = FakeTagHistory
        ImageBuilder = FakeImageBuilder
        ReleaseHost = FakeReleaseHost

    return _Fakes
