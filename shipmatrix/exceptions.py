"""Custom exception hierarchy for the release pipeline.

Exit codes follow Unix conventions:
- 1: General error
- 2: Configuration error
- 3: Validation or project precondition error
- 4: Git error (including tag push conflicts)
- 5: Publish error
- 9: Build error
- 10: Timeout
- 11: Incomplete build matrix
"""


class ReleaseError(Exception):
    """Base exception for all pipeline errors.

    All pipeline exceptions inherit from this class.
    Each subclass defines an exit_code for CLI error reporting.
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Brief error message
            details: Detailed explanation of what went wrong
            fix_hint: Suggested command or action to fix the issue
        """
        super().__init__(message)
        self.message = message
        self.details = details
        self.fix_hint = fix_hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"\nDetails: {self.details}")
        if self.fix_hint:
            parts.append(f"\nFix: {self.fix_hint}")
        return "".join(parts)


class ConfigurationError(ReleaseError):
    """Configuration file errors.

    Raised when:
    - Config file not found
    - Config file has invalid syntax (YAML/TOML)
    - Config values fail validation
    """

    exit_code = 2


class ValidationError(ReleaseError):
    """Validation failures.

    Raised when:
    - A version string or tag is malformed
    - A trigger event is inconsistent
    - Lint checks fail
    """

    exit_code = 3


class VersionParseError(ValidationError):
    """An existing tag could not be parsed as MAJOR.MINOR.PATCH."""


class LintError(ValidationError):
    """Formatting or static analysis reported problems."""


class PreconditionError(ReleaseError):
    """The project layout does not meet the pipeline's requirements.

    Fatal: raised by the lint job before any build work starts.
    """

    exit_code = 3


class MissingDependencyManifest(PreconditionError):
    """The dependency manifest (go.mod) is missing."""


class MissingEntrypoint(PreconditionError):
    """The program entrypoint (main.go) is missing."""


class MissingDockerfile(PreconditionError):
    """Image publishing is enabled but no Dockerfile exists."""


class GitError(ReleaseError):
    """Git operation failures.

    Raised when:
    - Git commands fail
    - Tag creation fails
    - Push operations fail
    """

    exit_code = 4


class TagPushConflict(GitError):
    """The version tag already exists on the remote.

    The pipeline aborts; no retry or renegotiation is attempted.
    """


class PublishError(ReleaseError):
    """Publishing failures.

    Raised when:
    - Registry login fails
    - The multi-architecture image build or push fails
    - Release creation on the hosting service fails
    """

    exit_code = 5


class PublishFailure(PublishError):
    """The container image publish failed as a whole."""


class BuildError(ReleaseError):
    """A single target failed to compile or package.

    Raised inside a build worker and recorded as a BuildFailure result;
    it never aborts sibling targets.
    """

    exit_code = 9


class ReleaseTimeoutError(ReleaseError):
    """Operation timeout errors.

    Named ReleaseTimeoutError to avoid shadowing Python's built-in TimeoutError.

    Raised when:
    - A job exceeds its time budget
    - A toolchain or registry command exceeds its timeout
    """

    exit_code = 10


class IncompleteBuildError(ReleaseError):
    """Some build targets failed and partial releases are not allowed."""

    exit_code = 11


class JobGraphError(ReleaseError):
    """The job graph has an unknown dependency, a duplicate job or a cycle."""
