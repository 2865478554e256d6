"""Release notes rendering.

render_notes() is a pure function of its arguments: same inputs, same
markdown, no I/O.
"""

from collections.abc import Sequence

from shipmatrix.build.targets import Artifact
from shipmatrix.publishers.docker import PublishPlan
from shipmatrix.trigger import ReleaseKind
from shipmatrix.utils.version import Version

OS_DISPLAY_NAMES = {
    "linux": "Linux",
    "darwin": "macOS",
    "windows": "Windows",
    "freebsd": "FreeBSD",
}

ARCH_DISPLAY_NAMES = {
    "amd64": "AMD64",
    "arm64": "ARM64",
}

# Display order for the platform list
_OS_ORDER = ("linux", "darwin", "windows", "freebsd")


def _banner(version: Version, release_kind: ReleaseKind) -> list[str]:
    if release_kind is ReleaseKind.STABLE:
        return [f"# 🚀 Release {version.tag}", "", "This is a stable release."]
    return [
        f"# 🚧 Pre-release {version.tag}",
        "",
        "This is a beta release and may contain bugs or incomplete features.",
    ]


def _platforms(artifacts: Sequence[Artifact]) -> list[str]:
    by_os: dict[str, list[str]] = {}
    for artifact in artifacts:
        by_os.setdefault(artifact.target.os, []).append(artifact.target.arch)

    ordered = [name for name in _OS_ORDER if name in by_os]
    ordered += sorted(name for name in by_os if name not in _OS_ORDER)

    lines = ["## Supported Platforms", ""]
    for os_name in ordered:
        arches = ", ".join(
            ARCH_DISPLAY_NAMES.get(arch, arch) for arch in sorted(by_os[os_name])
        )
        lines.append(f"- **{OS_DISPLAY_NAMES.get(os_name, os_name)}**: {arches}")
    return lines


def _container(plan: PublishPlan) -> list[str]:
    lines = [
        "## Docker Image",
        "",
        f"Multi-architecture image ({', '.join(plan.platforms)}):",
        "",
        "```bash",
    ]
    lines.extend(f"docker pull {ref}" for ref in plan.references)
    lines.append("```")
    return lines


def _checksums(manifest: Sequence[str]) -> list[str]:
    return ["## SHA256 Checksums", "", "```", *manifest, "```"]


def render_notes(
    version: Version,
    release_kind: ReleaseKind,
    artifacts: Sequence[Artifact],
    manifest: Sequence[str],
    plan: PublishPlan | None = None,
) -> str:
    """Render the markdown release description.

    Args:
        version: Released version
        release_kind: Beta renders the pre-release banner, Stable the release one
        artifacts: Built artifacts; their targets form the platform list
        manifest: Checksum lines embedded verbatim
        plan: Image publish plan; omitted when no image was published

    Returns:
        Markdown text ending in a newline
    """
    sections = [_banner(version, release_kind)]
    if artifacts:
        sections.append(_platforms(artifacts))
    if plan is not None:
        sections.append(_container(plan))
    sections.append(_checksums(manifest))
    return "\n\n".join("\n".join(section) for section in sections) + "\n"
