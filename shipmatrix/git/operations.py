"""Git state modification operations.

The only repository mutation the pipeline performs is creating and pushing
one annotated release tag. All functions use shipmatrix.utils.shell.run()
and raise GitError (or TagPushConflict) on failures.
"""

import subprocess
from pathlib import Path

from shipmatrix.exceptions import GitError, TagPushConflict
from shipmatrix.utils.shell import ShellError, run

# Fragments git prints when the remote refuses to overwrite an existing tag
_CONFLICT_MARKERS = (
    "already exists",
    "[rejected]",
    "would clobber existing tag",
)


def _identity_args(user_name: str | None, user_email: str | None) -> list[str]:
    args: list[str] = []
    if user_name:
        args.extend(["-c", f"user.name={user_name}"])
    if user_email:
        args.extend(["-c", f"user.email={user_email}"])
    return args


def tag(
    name: str,
    message: str | None = None,
    sign: bool = False,
    cwd: Path | None = None,
    user_name: str | None = None,
    user_email: str | None = None,
) -> None:
    """Create an annotated git tag at HEAD.

    Args:
        name: Tag name (e.g., "v1.0.12")
        message: Tag annotation message (defaults to tag name if None)
        sign: Whether to GPG sign the tag
        cwd: Working directory (defaults to current directory)
        user_name: Tagger name for this command only
        user_email: Tagger email for this command only

    Raises:
        GitError: If tag creation fails or tag already exists locally
    """
    tag_message = message if message is not None else name
    cmd = ["git", *_identity_args(user_name, user_email), "tag", "-a", name, "-m", tag_message]
    if sign:
        cmd.append("-s")

    try:
        run(cmd, cwd=cwd, check=True)
    except (ShellError, OSError, subprocess.TimeoutExpired) as e:
        raise GitError(
            f"Failed to create git tag '{name}'",
            details=str(e),
            fix_hint=f"Ensure tag '{name}' doesn't already exist locally (git tag -d {name}).",
        ) from e


def push_tag(
    tag: str,
    remote: str = "origin",
    cwd: Path | None = None,
    timeout: int = 30,
) -> None:
    """Push a specific tag to a remote.

    Never forces: an existing remote tag makes the push fail.

    Args:
        tag: Tag name to push (e.g., "v1.0.12")
        remote: Remote name (default: "origin")
        cwd: Working directory (defaults to current directory)
        timeout: Command timeout in seconds

    Raises:
        TagPushConflict: If the remote already has the tag
        GitError: If push fails for any other reason
    """
    try:
        run(["git", "push", remote, f"refs/tags/{tag}"], cwd=cwd, check=True, timeout=timeout)
    except ShellError as e:
        if any(marker in e.output for marker in _CONFLICT_MARKERS):
            raise TagPushConflict(
                f"Tag '{tag}' already exists on remote '{remote}'",
                details=e.output,
                fix_hint="Another release claimed this version; start a new manual run",
            ) from e
        raise GitError(
            f"Failed to push tag '{tag}' to remote '{remote}'",
            details=str(e),
            fix_hint="Ensure remote exists and you have push access. Check network connectivity.",
        ) from e
    except (OSError, subprocess.TimeoutExpired) as e:
        raise GitError(
            f"Failed to push tag '{tag}' to remote '{remote}'",
            details=str(e),
        ) from e


def delete_tag(name: str, cwd: Path | None = None) -> None:
    """Delete a local git tag.

    Raises:
        GitError: If tag deletion fails
    """
    try:
        run(["git", "tag", "-d", name], cwd=cwd, check=True)
    except (ShellError, OSError, subprocess.TimeoutExpired) as e:
        raise GitError(
            f"Failed to delete tag '{name}'",
            details=str(e),
            fix_hint=f"Ensure tag '{name}' exists. Run 'git tag' to list tags.",
        ) from e
