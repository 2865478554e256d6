"""Starter shipmatrix.yml for a Go project.

``init-config`` fills in what can be read from the checkout: the module
path and Go version from go.mod, whether a Dockerfile exists, and the
GitHub repository behind the remote.
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from shipmatrix.exceptions import ConfigurationError, GitError
from shipmatrix.git.queries import get_remote_url

logger = logging.getLogger(__name__)

DEFAULT_TOOLCHAIN_VERSION = "1.22.0"

# https://github.com/o/r(.git), git@github.com:o/r(.git), ssh://git@github.com/o/r(.git)
_GITHUB_REMOTE = re.compile(
    r"^(?:https?://(?:www\.)?github\.com/|git@github\.com:|ssh://git@github\.com/)"
    r"(?P<owner>[^/]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$"
)

# (key, banner title); None means no banner
_SECTIONS = (
    ("project", "Project Layout"),
    ("toolchain", "Compiler Toolchain"),
    ("version", "Version Tags"),
    ("git", None),
    ("build", "Build Matrix"),
    ("image", "Container Image"),
    ("release", "Hosted Release"),
    ("timeouts", "Time Budgets (seconds)"),
)


def parse_github_url(url: str) -> tuple[str, str] | None:
    """(owner, repo) for a GitHub remote URL, None for any other host."""
    match = _GITHUB_REMOTE.match(url.strip())
    if match is None:
        return None
    return match.group("owner"), match.group("repo")


def _read_go_mod(project_root: Path) -> str:
    try:
        return (project_root / "go.mod").read_text(encoding="utf-8")
    except OSError:
        return ""


def read_module_path(project_root: Path) -> str | None:
    """The ``module`` path declared in go.mod."""
    match = re.search(r"^module\s+(\S+)", _read_go_mod(project_root), re.MULTILINE)
    return match.group(1) if match else None


def detect_toolchain_version(project_root: Path) -> str:
    """Go release to build with.

    A ``toolchain go1.22.3`` line wins over the ``go 1.22`` directive, and a
    two-part directive is padded to ``1.22.0``.
    """
    content = _read_go_mod(project_root)
    toolchain = re.search(r"^toolchain\s+go(\d+\.\d+(?:\.\d+)?)", content, re.MULTILINE)
    if toolchain:
        return toolchain.group(1)
    directive = re.search(r"^go\s+(\d+\.\d+(?:\.\d+)?)", content, re.MULTILINE)
    if directive is None:
        return DEFAULT_TOOLCHAIN_VERSION
    version = directive.group(1)
    return version if version.count(".") == 2 else f"{version}.0"


def detect_binary_name(project_root: Path) -> str:
    """Last element of the module path, else the directory name."""
    module_path = read_module_path(project_root)
    if module_path:
        return module_path.rstrip("/").rsplit("/", 1)[-1]
    return project_root.name


def _detect_release_repo(project_root: Path) -> str | None:
    try:
        url = get_remote_url("origin", cwd=project_root)
    except GitError as e:
        logger.debug("Cannot read git remote: %s", e.message)
        return None
    parsed = parse_github_url(url) if url else None
    return "/".join(parsed) if parsed else None


def generate_default_config(
    project_root: Path,
    project_name: str | None = None,
) -> dict[str, Any]:
    """Configuration mapping with detected values filled in.

    Args:
        project_root: Go module root
        project_name: Display name; defaults to the binary name
    """
    binary_name = detect_binary_name(project_root)

    release: dict[str, Any] = {
        "enabled": True,
        "draft": False,
        "dist_dir": "final_release",
        "allow_partial": False,
    }
    repo = _detect_release_repo(project_root)
    if repo:
        release["repo"] = repo

    return {
        "project": {
            "name": project_name or binary_name,
            "binary_name": binary_name,
            "dependency_manifest": "go.mod",
            "entrypoint": "main.go",
            "dockerfile": "Dockerfile",
        },
        "toolchain": {
            "version": detect_toolchain_version(project_root),
            "version_variable": "main.Version",
        },
        "version": {"tag_prefix": "v", "snapshot_qualifier": "snapshot"},
        "git": {"remote": "origin", "sign_tags": False},
        "build": {
            "os": ["linux", "darwin", "windows", "freebsd"],
            "arch": ["amd64", "arm64"],
            "exclude": [],
            "output_dir": "release",
        },
        "image": {
            "enabled": (project_root / "Dockerfile").is_file(),
            "registry": "docker.io",
            "repository": binary_name.lower(),
            "platforms": ["linux/amd64", "linux/arm64"],
        },
        "release": release,
        "timeouts": {
            "git_operations": 30,
            "build_target": 900,
            "build_job": 3600,
            "publish_job": 3600,
        },
    }


def render_default_config(project_root: Path, project_name: str | None = None) -> str:
    """The generated configuration as commented YAML text."""
    config = generate_default_config(project_root, project_name)
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    rule = "# " + "-" * 76

    parts = [
        "# shipmatrix.yml",
        f"# Generated {generated} for {read_module_path(project_root) or '(no go.mod found)'}",
        "# Regenerate with: shipmatrix init-config --force",
        "",
    ]
    for key, title in _SECTIONS:
        if title:
            parts.extend([rule, f"# {title}", rule])
        parts.append(
            yaml.safe_dump({key: config[key]}, default_flow_style=False, sort_keys=False)
        )
    return "\n".join(parts)


def write_default_config(
    output_path: Path,
    project_root: Path | None = None,
    project_name: str | None = None,
) -> None:
    """Write render_default_config() output to ``output_path``.

    Raises:
        ConfigurationError: The file cannot be written
    """
    text = render_default_config(project_root or Path.cwd(), project_name)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Failed to write config to {output_path}",
            details=str(e),
            fix_hint="Check that the directory is writable",
        ) from e
