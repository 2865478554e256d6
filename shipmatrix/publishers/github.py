"""GitHub Releases publisher.

Creates the release for a pushed tag with the gh CLI: archives and
checksums.txt as assets, the rendered notes as the body, and the
prerelease flag set for every non-stable release.
"""

import logging
import os
import subprocess
from collections.abc import Mapping
from typing import ClassVar

from shipmatrix.config.defaults import parse_github_url
from shipmatrix.exceptions import ReleaseTimeoutError
from shipmatrix.git.queries import get_remote_url
from shipmatrix.publishers.base import (
    PublishContext,
    Publisher,
    PublishResult,
)
from shipmatrix.utils.shell import ShellError, is_command_available, run

logger = logging.getLogger(__name__)


def resolve_repo(
    context: PublishContext, environ: Mapping[str, str] | None = None
) -> str | None:
    """owner/repo from config, then GITHUB_REPOSITORY, then the git remote."""
    if context.config.release.repo:
        return context.config.release.repo
    env = os.environ if environ is None else environ
    if env.get("GITHUB_REPOSITORY"):
        return env["GITHUB_REPOSITORY"]
    url = get_remote_url(context.config.git.remote, cwd=context.project_root)
    parsed = parse_github_url(url) if url else None
    if parsed:
        owner, repo = parsed
        return f"{owner}/{repo}"
    return None


class GitHubPublisher(Publisher):
    """Publisher for GitHub Releases."""

    name: ClassVar[str] = "github"

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self.environ = environ

    def should_publish(self, context: PublishContext) -> bool:
        return context.config.release.enabled

    def build_command(self, context: PublishContext, repo: str | None) -> list[str]:
        cmd = ["gh", "release", "create", context.tag_name]
        cmd.extend(str(path) for path in context.assets)
        cmd.extend(["--title", context.tag_name, "--verify-tag"])
        if context.notes_path is not None:
            cmd.extend(["--notes-file", str(context.notes_path)])
        if context.prerelease:
            cmd.append("--prerelease")
        if context.config.release.draft:
            cmd.append("--draft")
        if repo:
            cmd.extend(["--repo", repo])
        return cmd

    def publish(self, context: PublishContext) -> PublishResult:
        """Create the GitHub release.

        Raises:
            ReleaseTimeoutError: If gh exceeds the release budget
        """
        repo = resolve_repo(context, self.environ)
        release_url = (
            f"https://github.com/{repo}/releases/tag/{context.tag_name}" if repo else None
        )

        if context.dry_run:
            return PublishResult.skipped(
                f"Would create release {context.tag_name} "
                f"with {len(context.assets)} assets (dry run)"
            )

        if not is_command_available("gh"):
            return PublishResult.failed(
                "gh CLI not installed",
                details="GitHub CLI (gh) is required for creating releases",
            )

        cmd = self.build_command(context, repo)
        timeout = context.config.timeouts.release_job
        try:
            result = run(cmd, cwd=context.project_root, check=True, timeout=timeout)
        except ShellError as e:
            return PublishResult.failed(
                f"Failed to create GitHub release {context.tag_name}",
                details=e.output,
            )
        except subprocess.TimeoutExpired as e:
            raise ReleaseTimeoutError(
                f"Release creation exceeded {timeout}s",
                fix_hint="Raise timeouts.release_job in shipmatrix.yml",
            ) from e

        # gh prints the release URL on success
        output = result.stdout.strip()
        if output.startswith("http"):
            release_url = output.splitlines()[-1]

        logger.info("Created GitHub release %s", context.tag_name)
        return PublishResult.success(
            f"Created GitHub release {context.tag_name}",
            registry_url=f"https://github.com/{repo}" if repo else None,
            package_url=release_url,
            version=context.tag_name,
        )

