"""Tests for release version derivation.

Most tests use the in-memory tag history from conftest; the last class
exercises GitTagHistory against a real repository and bare remote.
"""

from pathlib import Path

import pytest

from conftest import git
from shipmatrix.config.models import PipelineConfig
from shipmatrix.exceptions import GitError, TagPushConflict, VersionParseError
from shipmatrix.git.queries import remote_tag_exists
from shipmatrix.trigger import ReleaseKind, TriggerEvent
from shipmatrix.versioning import GitTagHistory, VersionResolver, next_version

MANUAL_BETA = TriggerEvent.manual(ReleaseKind.BETA)


class TestNextVersion:
    def test_patch_bump(self) -> None:
        assert next_version("v1.2.3").tag == "v1.2.4"

    def test_no_tags_gives_first_patch(self) -> None:
        assert next_version(None).tag == "v0.0.1"

    def test_custom_prefix(self) -> None:
        assert next_version("rel2.0.0", prefix="rel").tag == "rel2.0.1"

    def test_malformed_tag(self) -> None:
        with pytest.raises(VersionParseError):
            next_version("v1.x.3")


class TestVersionResolver:
    """Tests for VersionResolver.resolve."""

    def test_automatic_check_uses_snapshot(
        self, pipeline_config: PipelineConfig, fake_tags
    ) -> None:
        """Automatic runs never read or write tags."""
        resolver = VersionResolver(pipeline_config, fake_tags)
        version = resolver.resolve(TriggerEvent.automatic())

        assert version.tag == "v0.0.0-snapshot"
        assert version.is_snapshot is True
        assert fake_tags.created == []
        assert fake_tags.pushed == []

    def test_manual_release_creates_and_pushes(
        self, pipeline_config: PipelineConfig, fake_tags
    ) -> None:
        version = VersionResolver(pipeline_config, fake_tags).resolve(MANUAL_BETA)

        assert version.tag == "v1.2.4"
        assert fake_tags.created == [("v1.2.4", "Release v1.2.4")]
        assert fake_tags.pushed == ["v1.2.4"]

    def test_first_release(self, pipeline_config: PipelineConfig, fakes) -> None:
        history = fakes.TagHistory()
        version = VersionResolver(pipeline_config, history).resolve(MANUAL_BETA)
        assert version.tag == "v0.0.1"
        assert history.pushed == ["v0.0.1"]

    def test_dry_run_does_not_tag(self, pipeline_config: PipelineConfig, fake_tags) -> None:
        version = VersionResolver(pipeline_config, fake_tags, dry_run=True).resolve(MANUAL_BETA)

        assert version.tag == "v1.2.4"
        assert fake_tags.created == []

    def test_remote_already_has_tag(self, pipeline_config: PipelineConfig, fakes) -> None:
        """A tag another run already pushed aborts before anything is created."""
        history = fakes.TagHistory(tags=("v1.2.3",), remote=("v1.2.4",))

        with pytest.raises(TagPushConflict):
            VersionResolver(pipeline_config, history).resolve(MANUAL_BETA)
        assert history.created == []

    def test_rejected_push_discards_local_tag(
        self, pipeline_config: PipelineConfig, fakes
    ) -> None:
        history = fakes.TagHistory(tags=("v1.2.3",), reject_push=True)

        with pytest.raises(TagPushConflict):
            VersionResolver(pipeline_config, history).resolve(MANUAL_BETA)
        assert history.discarded == ["v1.2.4"]
        assert history.latest() == "v1.2.3"

    def test_failed_cleanup_keeps_push_conflict(
        self, pipeline_config: PipelineConfig, fakes, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A tag that cannot be deleted is logged; the conflict is still raised."""

        class StuckTags(fakes.TagHistory):
            def discard(self, tag: str) -> None:
                raise GitError(f"Failed to delete tag '{tag}'")

        history = StuckTags(tags=("v1.2.3",), reject_push=True)

        with caplog.at_level("WARNING", logger="shipmatrix.versioning"):
            with pytest.raises(TagPushConflict):
                VersionResolver(pipeline_config, history).resolve(MANUAL_BETA)
        assert "Could not remove local tag v1.2.4" in caplog.text

    def test_malformed_latest_tag(self, pipeline_config: PipelineConfig, fakes) -> None:
        history = fakes.TagHistory(tags=("v1.x.3",))

        with pytest.raises(VersionParseError):
            VersionResolver(pipeline_config, history).resolve(MANUAL_BETA)
        assert history.created == []


@pytest.mark.integration
class TestGitTagHistory:
    def test_release_round_trip(
        self, git_repo: Path, git_remote: Path, pipeline_config: PipelineConfig
    ) -> None:
        git(git_repo, "tag", "-a", "v1.2.3", "-m", "Release v1.2.3")
        history = GitTagHistory(git_repo, pipeline_config)

        version = VersionResolver(pipeline_config, history).resolve(MANUAL_BETA)

        assert version.tag == "v1.2.4"
        assert git(git_repo, "tag", "--list", "v1.2.4") == "v1.2.4"
        assert remote_tag_exists("v1.2.4", cwd=git_repo)
        assert history.latest() == "v1.2.4"

    def test_conflicting_push_leaves_no_local_tag(
        self, git_repo: Path, git_remote: Path, pipeline_config: PipelineConfig, temp_dir: Path
    ) -> None:
        """A second clone that pushed v0.0.1 first wins the race."""
        other = temp_dir / "other"
        git(temp_dir, "clone", "-q", str(git_remote), str(other))
        git(other, "-c", "user.name=Other", "-c", "user.email=o@test", "tag", "v0.0.1")
        git(other, "push", "origin", "refs/tags/v0.0.1")

        history = GitTagHistory(git_repo, pipeline_config)
        with pytest.raises(TagPushConflict):
            VersionResolver(pipeline_config, history).resolve(MANUAL_BETA)
        assert git(git_repo, "tag", "--list", "v0.0.1") == ""
