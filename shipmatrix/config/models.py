"""Pydantic v2 configuration models for shipmatrix.yml.

These models provide:
- Type-safe configuration loading
- Automatic validation
- Default values matching the reference pipeline
- Environment variable override support

The whole tree is frozen: configuration is fixed at pipeline start and
shared by reference with every component.
"""

from pathlib import PurePosixPath, PureWindowsPath
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

SUPPORTED_OS = ("linux", "darwin", "windows", "freebsd")
SUPPORTED_ARCH = ("amd64", "arm64")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ProjectConfig(_Frozen):
    """Project identification and required layout."""

    name: str = Field(description="Project name")
    binary_name: str = Field(description="Base name of the compiled executable")
    dependency_manifest: str = Field(
        default="go.mod",
        description="Dependency manifest that must exist at the project root",
    )
    entrypoint: str = Field(
        default="main.go",
        description="Program entrypoint that must exist at the project root",
    )
    dockerfile: str = Field(
        default="Dockerfile",
        description="Dockerfile used for the container image",
    )

    @field_validator("binary_name")
    @classmethod
    def validate_binary_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v or v.strip() != v:
            raise ValueError("binary_name must be a plain file name")
        return v


class ToolchainConfig(_Frozen):
    """Compiler toolchain settings."""

    version: str = Field(default="1.22.0", description="Go toolchain version")
    version_variable: str = Field(
        default="main.Version",
        description="Linker symbol that receives the version string",
    )
    trimpath: bool = Field(default=True, description="Pass -trimpath to go build")
    strip: bool = Field(default=True, description="Strip symbols (-s -w)")
    cgo: bool = Field(default=False, description="Enable cgo for cross builds")


class VersionConfig(_Frozen):
    """Version tag configuration."""

    tag_prefix: str = Field(
        default="v",
        description="Prefix for git tags (e.g., 'v' for v1.0.0)",
    )
    snapshot_qualifier: str = Field(
        default="snapshot",
        description="Qualifier of the non-persisted version used by automatic checks",
    )

    @field_validator("tag_prefix")
    @classmethod
    def validate_tag_prefix(cls, v: str) -> str:
        if v and not v.isalnum():
            raise ValueError("tag_prefix must be alphanumeric or empty")
        return v


class GitConfig(_Frozen):
    """Git tagging configuration."""

    remote: str = Field(default="origin", description="Git remote name")
    sign_tags: bool = Field(default=False, description="GPG sign tags")
    user_name: str | None = Field(
        default=None,
        description="Tagger name (e.g. 'github-actions[bot]')",
    )
    user_email: str | None = Field(default=None, description="Tagger email")


class TargetConfig(_Frozen):
    """One (os, arch) pair."""

    os: str
    arch: str


class BuildConfig(_Frozen):
    """Build matrix configuration."""

    os: tuple[str, ...] = Field(default=SUPPORTED_OS, description="Target operating systems")
    arch: tuple[str, ...] = Field(default=SUPPORTED_ARCH, description="Target architectures")
    exclude: tuple[TargetConfig, ...] = Field(
        default=(),
        description="(os, arch) pairs removed from the cross product",
    )
    output_dir: str = Field(default="release", description="Per-target output directory")
    windows_suffix: str = Field(default=".exe", description="Executable suffix on windows")
    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Parallel target builds (default: one per target)",
    )

    @field_validator("os")
    @classmethod
    def validate_os(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [name for name in v if name not in SUPPORTED_OS]
        if unknown:
            raise ValueError(f"unsupported os: {', '.join(unknown)}")
        if len(set(v)) != len(v):
            raise ValueError("os entries must be unique")
        return v

    @field_validator("arch")
    @classmethod
    def validate_arch(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [name for name in v if name not in SUPPORTED_ARCH]
        if unknown:
            raise ValueError(f"unsupported arch: {', '.join(unknown)}")
        if len(set(v)) != len(v):
            raise ValueError("arch entries must be unique")
        return v


class ImageConfig(_Frozen):
    """Container image publishing configuration."""

    enabled: bool = Field(default=True, description="Publish a container image")
    registry: str = Field(default="docker.io", description="Registry host")
    namespace: str | None = Field(
        default=None,
        description="Registry namespace (defaults to DOCKER_USERNAME)",
    )
    repository: str = Field(description="Image repository name")
    platforms: tuple[str, ...] = Field(
        default=("linux/amd64", "linux/arm64"),
        description="Image platforms built into one manifest",
    )
    context: str = Field(default=".", description="Build context relative to project root")

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        if not v or v != v.lower():
            raise ValueError("repository must be a non-empty lowercase name")
        return v


class ReleaseHostConfig(_Frozen):
    """Release creation configuration."""

    enabled: bool = Field(default=True, description="Create a hosted release")
    repo: str | None = Field(
        default=None,
        description="owner/repo on GitHub (defaults to GITHUB_REPOSITORY or the remote)",
    )
    draft: bool = Field(default=False, description="Create release as draft")
    dist_dir: str = Field(default="final_release", description="Assembled release files")
    allow_partial: bool = Field(
        default=False,
        description="Release even when some build targets failed",
    )


class TimeoutsConfig(_Frozen):
    """Time budgets in seconds."""

    git_operations: int = Field(default=30, ge=5, description="Git command timeout")
    version_job: int = Field(default=120, ge=10, description="Version job budget")
    lint_job: int = Field(default=600, ge=10, description="Lint job budget")
    build_job: int = Field(default=3600, ge=60, description="Build job budget")
    build_target: int = Field(default=900, ge=30, description="Single target budget")
    publish_job: int = Field(default=3600, ge=60, description="Image publish budget")
    release_job: int = Field(default=600, ge=30, description="Release job budget")


class PipelineConfig(BaseSettings):
    """Root configuration model for shipmatrix.yml.

    SHIPMATRIX_ prefixed environment variables override file values.
    Example: SHIPMATRIX_GIT__REMOTE=upstream
    """

    project: ProjectConfig
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    image: ImageConfig
    release: ReleaseHostConfig = Field(default_factory=ReleaseHostConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    archive_format: Literal["zip"] = Field(default="zip", description="Archive format")

    model_config = SettingsConfigDict(
        env_prefix="SHIPMATRIX_",
        env_nested_delimiter="__",
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment first: it wins over file values
        return env_settings, init_settings

    @model_validator(mode="after")
    def validate_matrix(self) -> "PipelineConfig":
        remaining = [
            (os_name, arch)
            for os_name in self.build.os
            for arch in self.build.arch
            if TargetConfig(os=os_name, arch=arch) not in self.build.exclude
        ]
        if not remaining:
            raise ValueError("build matrix is empty after exclusions")
        return self

    @model_validator(mode="after")
    def validate_dist_dir(self) -> "PipelineConfig":
        # dist_dir is wiped on every release; it must be a fresh directory under the root
        raw = self.release.dist_dir.replace("\\", "/")
        dist = PurePosixPath(raw)
        if raw.startswith("/") or PureWindowsPath(self.release.dist_dir).is_absolute():
            raise ValueError(f"release.dist_dir must be relative, got {raw!r}")
        if not dist.parts or ".." in dist.parts:
            raise ValueError(
                f"release.dist_dir must name a subdirectory of the project, got {raw!r}"
            )
        output = PurePosixPath(self.build.output_dir.replace("\\", "/"))
        if dist == output or output in dist.parents or dist in output.parents:
            raise ValueError(
                f"release.dist_dir {raw!r} overlaps build.output_dir {str(output)!r}"
            )
        return self
