"""Unit tests for shipmatrix.publishers.base module.

Tests for:
- Publisher - abstract interface and default should_publish()
- PublishResult - factory methods and the ok flag
- PublishContext - tag name and prerelease flag
- require_success() - turning failed results into exceptions
"""

from pathlib import Path
from typing import ClassVar

import pytest

from shipmatrix.config.models import PipelineConfig
from shipmatrix.exceptions import PublishError, PublishFailure
from shipmatrix.publishers.base import (
    PublishContext,
    Publisher,
    PublishResult,
    PublishStatus,
    require_success,
)
from shipmatrix.trigger import ReleaseKind
from shipmatrix.utils.version import parse_tag


class TestPublishResult:
    def test_factories(self) -> None:
        assert PublishResult.success("ok").status is PublishStatus.SUCCESS
        assert PublishResult.failed("no", details="x").details == "x"
        assert PublishResult.skipped("later").status is PublishStatus.SKIPPED

    def test_ok_flag(self) -> None:
        """Skipped counts as ok; only FAILED does not."""
        assert PublishResult.success("ok").ok is True
        assert PublishResult.skipped("dry run").ok is True
        assert PublishResult.failed("no").ok is False


class TestPublishContext:
    def test_tag_and_prerelease(self, project_dir: Path, pipeline_config: PipelineConfig) -> None:
        beta = PublishContext(project_dir, pipeline_config, parse_tag("v1.2.4"), ReleaseKind.BETA)
        stable = PublishContext(
            project_dir, pipeline_config, parse_tag("v1.2.4"), ReleaseKind.STABLE
        )

        assert beta.tag_name == "v1.2.4"
        assert beta.prerelease is True
        assert stable.prerelease is False
        assert beta.assets == []


class TestRequireSuccess:
    def test_passes_through_success(self) -> None:
        result = PublishResult.success("ok")
        assert require_success(result) is result

    def test_raises_given_error_type(self) -> None:
        with pytest.raises(PublishFailure) as exc_info:
            require_success(PublishResult.failed("push failed", details="denied"), PublishFailure)
        assert exc_info.value.details == "denied"
        assert exc_info.value.exit_code == 5

    def test_default_error_type(self) -> None:
        with pytest.raises(PublishError):
            require_success(PublishResult.failed("no"))


class TestPublisher:
    def test_publish_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            Publisher()  # type: ignore[abstract]

    def test_should_publish_defaults_to_true(
        self, project_dir: Path, pipeline_config: PipelineConfig
    ) -> None:
        class Noop(Publisher):
            name: ClassVar[str] = "noop"

            def publish(self, context: PublishContext) -> PublishResult:
                return PublishResult.skipped("noop")

        context = PublishContext(
            project_dir, pipeline_config, parse_tag("v1.2.4"), ReleaseKind.BETA
        )
        assert Noop().should_publish(context) is True
        assert Noop().publish(context).ok is True
