"""Configuration management for the release pipeline."""

from shipmatrix.config.models import (
    BuildConfig,
    GitConfig,
    ImageConfig,
    PipelineConfig,
    ProjectConfig,
    ReleaseHostConfig,
    TargetConfig,
    TimeoutsConfig,
    ToolchainConfig,
    VersionConfig,
)

__all__ = [
    "PipelineConfig",
    "ProjectConfig",
    "ToolchainConfig",
    "VersionConfig",
    "GitConfig",
    "BuildConfig",
    "TargetConfig",
    "ImageConfig",
    "ReleaseHostConfig",
    "TimeoutsConfig",
]
