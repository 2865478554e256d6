"""Release version derivation.

The resolver is the only component that reads tag history and the only
writer of tags: one annotated tag per manual release, pushed once.
"""

import logging
from pathlib import Path
from typing import Protocol

from shipmatrix.config.models import PipelineConfig
from shipmatrix.exceptions import GitError, TagPushConflict
from shipmatrix.git import operations as git_ops
from shipmatrix.git import queries as git_queries
from shipmatrix.trigger import TriggerEvent
from shipmatrix.utils.version import Version, parse_tag

logger = logging.getLogger(__name__)


class TagHistory(Protocol):
    """Tags reachable from the current revision, plus the one write."""

    def latest(self) -> str | None:
        """Most recent tag on the current lineage, or None."""

    def exists_remotely(self, tag: str) -> bool:
        """Whether the remote already has this tag."""

    def create(self, tag: str, message: str) -> None:
        """Create an annotated tag at the current revision."""

    def push(self, tag: str) -> None:
        """Push the tag; raises TagPushConflict if the remote has it."""

    def discard(self, tag: str) -> None:
        """Remove a local tag whose push failed."""


class GitTagHistory:
    """TagHistory backed by the git CLI."""

    def __init__(self, project_root: Path, config: PipelineConfig) -> None:
        self.project_root = project_root
        self.config = config

    def latest(self) -> str | None:
        return git_queries.get_latest_tag(
            cwd=self.project_root, timeout=self.config.timeouts.git_operations
        )

    def exists_remotely(self, tag: str) -> bool:
        return git_queries.remote_tag_exists(
            tag,
            remote=self.config.git.remote,
            cwd=self.project_root,
            timeout=self.config.timeouts.git_operations,
        )

    def create(self, tag: str, message: str) -> None:
        git_ops.tag(
            tag,
            message=message,
            sign=self.config.git.sign_tags,
            cwd=self.project_root,
            user_name=self.config.git.user_name,
            user_email=self.config.git.user_email,
        )

    def push(self, tag: str) -> None:
        git_ops.push_tag(
            tag,
            remote=self.config.git.remote,
            cwd=self.project_root,
            timeout=self.config.timeouts.git_operations,
        )

    def discard(self, tag: str) -> None:
        git_ops.delete_tag(tag, cwd=self.project_root)


def next_version(latest_tag: str | None, prefix: str = "v") -> Version:
    """Patch-bump the latest tag; no tag at all counts as 0.0.0."""
    if latest_tag is None:
        return Version(0, 0, 0, prefix=prefix).bump_patch()
    return parse_tag(latest_tag, prefix).bump_patch()


class VersionResolver:
    """Derives the run's version from the trigger and tag history."""

    def __init__(self, config: PipelineConfig, history: TagHistory, dry_run: bool = False) -> None:
        self.config = config
        self.history = history
        self.dry_run = dry_run

    def snapshot(self) -> Version:
        return Version.snapshot(
            qualifier=self.config.version.snapshot_qualifier,
            prefix=self.config.version.tag_prefix,
        )

    def resolve(self, trigger: TriggerEvent) -> Version:
        """Return the version for this run.

        Automatic checks get the snapshot sentinel without touching tags.
        Manual releases patch-bump the latest reachable tag, then create
        and push the new tag (skipped in dry-run mode).

        Raises:
            VersionParseError: If the latest tag is malformed
            TagPushConflict: If the new tag already exists on the remote
            GitError: If tagging or pushing fails otherwise
        """
        if not trigger.is_manual:
            version = self.snapshot()
            logger.info("Automatic check: using snapshot version %s", version.tag)
            return version

        latest = self.history.latest()
        version = next_version(latest, self.config.version.tag_prefix)
        logger.info("Latest tag %s -> new version %s", latest or "<none>", version.tag)

        if self.dry_run:
            logger.info("Dry run: not creating tag %s", version.tag)
            return version

        self._claim(version)
        return version

    def _claim(self, version: Version) -> None:
        tag = version.tag
        if self.history.exists_remotely(tag):
            raise TagPushConflict(
                f"Tag '{tag}' already exists on remote '{self.config.git.remote}'",
                fix_hint="Another release claimed this version; start a new manual run",
            )

        self.history.create(tag, f"Release {tag}")
        try:
            self.history.push(tag)
        except GitError:
            try:
                self.history.discard(tag)
            except GitError as cleanup:
                logger.warning("Could not remove local tag %s: %s", tag, cleanup.message)
            raise
        logger.info("Created and pushed tag %s", tag)
