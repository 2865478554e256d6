"""Release orchestration for compiled, multi-platform projects."""

__version__ = "0.1.0"

from shipmatrix.exceptions import (
    BuildError,
    ConfigurationError,
    GitError,
    IncompleteBuildError,
    JobGraphError,
    LintError,
    MissingDependencyManifest,
    MissingDockerfile,
    MissingEntrypoint,
    PreconditionError,
    PublishError,
    PublishFailure,
    ReleaseError,
    ReleaseTimeoutError,
    TagPushConflict,
    ValidationError,
    VersionParseError,
)

__all__ = [
    "__version__",
    "ReleaseError",
    "ConfigurationError",
    "ValidationError",
    "VersionParseError",
    "LintError",
    "PreconditionError",
    "MissingDependencyManifest",
    "MissingEntrypoint",
    "MissingDockerfile",
    "GitError",
    "TagPushConflict",
    "PublishError",
    "PublishFailure",
    "BuildError",
    "ReleaseTimeoutError",
    "IncompleteBuildError",
    "JobGraphError",
]
