"""Git state query operations.

Read-only operations used by the version resolver: tag history reachable
from HEAD and the state of a tag on the remote. All functions use
shipmatrix.utils.shell.run() and raise GitError on failures.
"""

import subprocess
from pathlib import Path

from shipmatrix.exceptions import GitError
from shipmatrix.utils.shell import ShellError, run

_GIT_FAILURES = (ShellError, OSError, subprocess.TimeoutExpired)

# git describe stderr when HEAD has no reachable tag
_NO_TAGS_MARKERS = ("No names found", "No tags can describe", "cannot describe anything")


def get_latest_tag(cwd: Path | None = None, timeout: int = 30) -> str | None:
    """Get the most recent tag reachable from HEAD.

    Uses 'git describe --tags --abbrev=0', i.e. the nearest tag on the
    current lineage rather than the highest version number.

    Args:
        cwd: Working directory (defaults to current directory)
        timeout: Command timeout in seconds

    Returns:
        Most recent tag name (e.g., "v1.0.12"), or None if no tags exist

    Raises:
        GitError: If git cannot be run or cwd is not a repository
    """
    try:
        result = run(
            ["git", "describe", "--tags", "--abbrev=0"],
            cwd=cwd,
            check=False,
            timeout=timeout,
            env={"LC_ALL": "C"},
        )
    except _GIT_FAILURES as e:
        raise GitError(
            "Failed to get latest git tag",
            details=str(e),
            fix_hint="Ensure you are in a git repository",
        ) from e
    if result.returncode == 0:
        return result.stdout.strip() or None
    if any(marker in result.stderr for marker in _NO_TAGS_MARKERS):
        return None
    raise GitError(
        "Failed to get latest git tag",
        details=result.stderr.strip(),
        fix_hint="Ensure you are in a git repository",
    )


def remote_tag_exists(
    tag: str,
    remote: str = "origin",
    cwd: Path | None = None,
    timeout: int = 30,
) -> bool:
    """Check if a tag exists on the remote without fetching it.

    Args:
        tag: Tag name to check (e.g., "v1.0.12")
        remote: Name of remote to check (default: "origin")
        cwd: Working directory (defaults to current directory)
        timeout: Command timeout in seconds

    Returns:
        True if the remote advertises refs/tags/<tag>

    Raises:
        GitError: If the remote cannot be queried
    """
    try:
        result = run(
            ["git", "ls-remote", "--tags", remote, f"refs/tags/{tag}"],
            cwd=cwd,
            check=True,
            timeout=timeout,
        )
    except _GIT_FAILURES as e:
        raise GitError(
            f"Failed to query tags on remote '{remote}'",
            details=str(e),
            fix_hint="Check network connectivity and remote configuration",
        ) from e
    # Output format: <sha>\trefs/tags/<tag>
    return any(
        line.split("\t")[-1] == f"refs/tags/{tag}" for line in result.stdout.splitlines()
    )


def get_remote_url(remote: str = "origin", cwd: Path | None = None) -> str | None:
    """Get the URL of a git remote, or None if it is not configured."""
    try:
        result = run(["git", "remote", "get-url", remote], cwd=cwd, check=False)
    except _GIT_FAILURES as e:
        raise GitError(
            f"Failed to get URL for remote '{remote}'",
            details=str(e),
        ) from e
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None
