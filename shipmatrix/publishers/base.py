"""Publisher interface shared by the image and release publishers.

A publisher reports through PublishResult instead of raising, so the
pipeline decides which failures are fatal. require_success() is the
point where a failed result becomes an exception.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from shipmatrix.exceptions import PublishError
from shipmatrix.trigger import ReleaseKind

if TYPE_CHECKING:
    from shipmatrix.config.models import PipelineConfig
    from shipmatrix.utils.version import Version


class PublishStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PublishResult:
    """What a publisher did.

    Attributes:
        status: SUCCESS, FAILED or SKIPPED (dry run, disabled)
        message: One-line summary
        registry_url: Registry or host the result refers to
        package_url: Pushed image reference or release page
        version: Tag that was published
        details: Tool output for failures
    """

    status: PublishStatus
    message: str
    registry_url: str | None = None
    package_url: str | None = None
    version: str | None = None
    details: str | None = None

    @classmethod
    def success(
        cls,
        message: str,
        registry_url: str | None = None,
        package_url: str | None = None,
        version: str | None = None,
    ) -> "PublishResult":
        return cls(
            PublishStatus.SUCCESS,
            message,
            registry_url=registry_url,
            package_url=package_url,
            version=version,
        )

    @classmethod
    def failed(cls, message: str, details: str | None = None) -> "PublishResult":
        return cls(PublishStatus.FAILED, message, details=details)

    @classmethod
    def skipped(cls, message: str) -> "PublishResult":
        return cls(PublishStatus.SKIPPED, message)

    @property
    def ok(self) -> bool:
        """Anything but FAILED; a skipped publish is not an error."""
        return self.status is not PublishStatus.FAILED


@dataclass
class PublishContext:
    """Inputs for one publish: the version, the release kind and the files.

    ``assets`` and ``notes_path`` are only filled in for the release host.
    """

    project_root: Path
    config: "PipelineConfig"
    version: "Version"
    release_kind: ReleaseKind
    notes_path: Path | None = None
    assets: list[Path] = field(default_factory=list)
    dry_run: bool = False

    @property
    def tag_name(self) -> str:
        return self.version.tag

    @property
    def prerelease(self) -> bool:
        return self.release_kind is not ReleaseKind.STABLE


class Publisher(ABC):
    """Pushes something outward: an image to a registry or a release to a host."""

    name: ClassVar[str]

    @abstractmethod
    def publish(self, context: PublishContext) -> PublishResult:
        """Publish for ``context.version``; report failures in the result."""

    def should_publish(self, context: PublishContext) -> bool:
        """False when the configuration disables this publisher."""
        return True


def require_success(
    result: PublishResult, error: type[PublishError] = PublishError
) -> PublishResult:
    """Raise ``error`` for a failed result, otherwise return it."""
    if not result.ok:
        raise error(result.message, details=result.details)
    return result
