"""Publishers for the container image and the hosted release."""

from shipmatrix.publishers.base import (
    PublishContext,
    Publisher,
    PublishResult,
    PublishStatus,
    require_success,
)
from shipmatrix.publishers.docker import DockerBuildx, DockerPublisher, PublishGate, PublishPlan
from shipmatrix.publishers.github import GitHubPublisher

__all__ = [
    "DockerBuildx",
    "DockerPublisher",
    "GitHubPublisher",
    "PublishContext",
    "PublishGate",
    "PublishPlan",
    "Publisher",
    "PublishResult",
    "PublishStatus",
    "require_success",
]
