"""Tests for the GitHub Releases publisher.

gh is never executed; availability and shell.run are patched.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from conftest import git
from shipmatrix.config.models import PipelineConfig
from shipmatrix.exceptions import ReleaseTimeoutError
from shipmatrix.publishers.base import PublishContext, PublishStatus
from shipmatrix.publishers.github import GitHubPublisher, resolve_repo
from shipmatrix.trigger import ReleaseKind
from shipmatrix.utils.shell import ShellError
from shipmatrix.utils.version import parse_tag


@pytest.fixture
def context(go_project: Path, pipeline_config: PipelineConfig) -> PublishContext:
    dist = go_project / "final_release"
    return PublishContext(
        project_root=go_project,
        config=pipeline_config,
        version=parse_tag("v1.2.4"),
        release_kind=ReleaseKind.BETA,
        notes_path=dist / "release_notes.md",
        assets=[dist / "HubP-v1.2.4-linux-amd64.zip", dist / "checksums.txt"],
    )


class TestResolveRepo:
    def test_config_wins(self, context: PublishContext) -> None:
        assert resolve_repo(context, {"GITHUB_REPOSITORY": "other/repo"}) == "octo/hubp"

    def test_environment(self, context: PublishContext, config_data: dict) -> None:
        del config_data["release"]
        context.config = PipelineConfig(**config_data)
        assert resolve_repo(context, {"GITHUB_REPOSITORY": "other/repo"}) == "other/repo"

    @pytest.mark.integration
    def test_git_remote(self, context: PublishContext, config_data: dict, git_repo: Path) -> None:
        git(git_repo, "remote", "add", "origin", "git@github.com:octo/from-remote.git")
        del config_data["release"]
        context.config = PipelineConfig(**config_data)
        assert resolve_repo(context, {}) == "octo/from-remote"


class TestBuildCommand:
    def test_beta_release(self, context: PublishContext) -> None:
        cmd = GitHubPublisher().build_command(context, "octo/hubp")
        dist = context.project_root / "final_release"
        assert cmd == [
            "gh",
            "release",
            "create",
            "v1.2.4",
            str(dist / "HubP-v1.2.4-linux-amd64.zip"),
            str(dist / "checksums.txt"),
            "--title",
            "v1.2.4",
            "--verify-tag",
            "--notes-file",
            str(dist / "release_notes.md"),
            "--prerelease",
            "--repo",
            "octo/hubp",
        ]

    def test_stable_release_not_prerelease(self, context: PublishContext) -> None:
        context.release_kind = ReleaseKind.STABLE
        assert "--prerelease" not in GitHubPublisher().build_command(context, None)

    def test_draft(self, context: PublishContext, config_data: dict) -> None:
        config_data["release"]["draft"] = True
        context.config = PipelineConfig(**config_data)
        assert "--draft" in GitHubPublisher().build_command(context, None)


class TestPublish:
    """Tests for GitHubPublisher.publish."""

    def test_success_uses_printed_url(self, context: PublishContext) -> None:
        completed = MagicMock(stdout="https://github.com/octo/hubp/releases/tag/v1.2.4\n")
        with (
            patch("shipmatrix.publishers.github.is_command_available", return_value=True),
            patch("shipmatrix.publishers.github.run", return_value=completed) as mock_run,
        ):
            result = GitHubPublisher(environ={}).publish(context)

        assert result.status is PublishStatus.SUCCESS
        assert result.package_url == "https://github.com/octo/hubp/releases/tag/v1.2.4"
        assert mock_run.call_args.kwargs["timeout"] == 600

    def test_gh_missing(self, context: PublishContext) -> None:
        with patch("shipmatrix.publishers.github.is_command_available", return_value=False):
            result = GitHubPublisher(environ={}).publish(context)
        assert result.status is PublishStatus.FAILED
        assert "gh" in result.message

    def test_gh_error(self, context: PublishContext) -> None:
        error = ShellError("gh release create", 1, stdout="", stderr="HTTP 422: tag not found")
        with (
            patch("shipmatrix.publishers.github.is_command_available", return_value=True),
            patch("shipmatrix.publishers.github.run", MagicMock(side_effect=error)),
        ):
            result = GitHubPublisher(environ={}).publish(context)
        assert result.status is PublishStatus.FAILED
        assert result.details == "HTTP 422: tag not found"

    def test_timeout(self, context: PublishContext) -> None:
        error = subprocess.TimeoutExpired("gh", 600)
        with (
            patch("shipmatrix.publishers.github.is_command_available", return_value=True),
            patch("shipmatrix.publishers.github.run", MagicMock(side_effect=error)),
        ):
            with pytest.raises(ReleaseTimeoutError):
                GitHubPublisher(environ={}).publish(context)

    def test_dry_run(self, context: PublishContext) -> None:
        context.dry_run = True
        with patch("shipmatrix.publishers.github.run") as mock_run:
            result = GitHubPublisher(environ={}).publish(context)
        assert result.status is PublishStatus.SKIPPED
        assert "2 assets" in result.message
        mock_run.assert_not_called()
