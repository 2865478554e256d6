"""Tests for release notes rendering."""

from pathlib import Path

import pytest

from shipmatrix.build.targets import Artifact, BuildTarget
from shipmatrix.notes import render_notes
from shipmatrix.publishers.docker import PublishPlan
from shipmatrix.trigger import ReleaseKind
from shipmatrix.utils.version import parse_tag

VERSION = parse_tag("v1.2.4")


@pytest.fixture
def artifacts() -> list[Artifact]:
    pairs = [("windows", "amd64"), ("linux", "arm64"), ("darwin", "arm64"), ("linux", "amd64")]
    return [
        Artifact(BuildTarget(os_name, arch), Path(f"HubP-v1.2.4-{os_name}-{arch}.zip"), "0" * 64)
        for os_name, arch in pairs
    ]


@pytest.fixture
def manifest(artifacts: list[Artifact]) -> list[str]:
    return sorted(a.checksum_line for a in artifacts)


class TestBanner:
    def test_beta(self, artifacts: list[Artifact], manifest: list[str]) -> None:
        notes = render_notes(VERSION, ReleaseKind.BETA, artifacts, manifest)
        assert notes.startswith("# 🚧 Pre-release v1.2.4\n")
        assert "beta release" in notes

    def test_stable(self, artifacts: list[Artifact], manifest: list[str]) -> None:
        notes = render_notes(VERSION, ReleaseKind.STABLE, artifacts, manifest)
        assert notes.startswith("# 🚀 Release v1.2.4\n")
        assert "stable release" in notes
        assert "Pre-release" not in notes


class TestSections:
    def test_platform_list(self, artifacts: list[Artifact], manifest: list[str]) -> None:
        notes = render_notes(VERSION, ReleaseKind.BETA, artifacts, manifest)

        assert "## Supported Platforms" in notes
        assert "- **Linux**: AMD64, ARM64\n- **macOS**: ARM64\n- **Windows**: AMD64" in notes
        assert "FreeBSD" not in notes

    def test_checksums_embedded_verbatim(
        self, artifacts: list[Artifact], manifest: list[str]
    ) -> None:
        notes = render_notes(VERSION, ReleaseKind.BETA, artifacts, manifest)
        block = "## SHA256 Checksums\n\n```\n" + "\n".join(manifest) + "\n```\n"
        assert notes.endswith(block)

    def test_docker_section_only_with_plan(
        self, artifacts: list[Artifact], manifest: list[str]
    ) -> None:
        assert "## Docker Image" not in render_notes(
            VERSION, ReleaseKind.STABLE, artifacts, manifest
        )

        plan = PublishPlan("octo/hubp", ("v1.2.4", "latest"), ("linux/amd64", "linux/arm64"))
        notes = render_notes(VERSION, ReleaseKind.STABLE, artifacts, manifest, plan)
        assert "docker pull octo/hubp:v1.2.4\ndocker pull octo/hubp:latest" in notes
        assert "(linux/amd64, linux/arm64)" in notes

    def test_deterministic(self, artifacts: list[Artifact], manifest: list[str]) -> None:
        first = render_notes(VERSION, ReleaseKind.BETA, artifacts, manifest)
        second = render_notes(VERSION, ReleaseKind.BETA, list(reversed(artifacts)), manifest)
        assert first == second
