"""Subprocess wrapper used for git, go, gofmt, docker and gh.

Commands never go through a shell. Output is cleaned of terminal escape
sequences before anyone parses it, and secrets travel on stdin.
"""

import os
import re
import shlex
import shutil
import subprocess
from pathlib import Path


class ShellError(Exception):
    """A command exited non-zero.

    Attributes:
        cmd: The command line, joined for display
        returncode: Exit status
        stdout: Captured standard output, escape sequences removed
        stderr: Captured standard error, escape sequences removed
    """

    def __init__(self, cmd: str, returncode: int, stdout: str, stderr: str) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"{cmd} exited with {returncode}")

    def __str__(self) -> str:
        lines = [f"Command failed: {self.cmd}", f"Exit code: {self.returncode}"]
        if self.output:
            lines.append(self.output)
        return "\n".join(lines)

    @property
    def output(self) -> str:
        """Whichever stream carries the diagnostic, stderr first."""
        return (self.stderr or self.stdout).strip()


# CSI, OSC and DCS/PM/APC sequences
_ESCAPES = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]|\x1b\][^\x07]*\x07|\x1b[PX^_][^\x1b]*\x1b\\")
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def strip_ansi(text: str) -> str:
    """Drop escape sequences and stray control characters.

    Tag names, module paths and vet diagnostics are read from tool output,
    so colour codes must not end up inside them.
    """
    if not text:
        return ""
    return _CONTROL.sub("", _ESCAPES.sub("", text))


def run(
    cmd: str | list[str],
    cwd: Path | None = None,
    capture: bool = True,
    check: bool = True,
    timeout: int | float = 300,
    env: dict[str, str] | None = None,
    input_text: str | None = None,
    strip_output: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a command and return the completed process.

    Args:
        cmd: Argument list, or a string split with shlex
        cwd: Working directory
        capture: Capture stdout and stderr
        check: Raise ShellError on a non-zero exit
        timeout: Seconds before subprocess.TimeoutExpired is raised
        env: Variables layered over the current environment (GOOS, GOARCH, ...)
        input_text: Written to stdin; used for registry passwords
        strip_output: Clean captured output with strip_ansi()

    Raises:
        ShellError: Non-zero exit with check=True
        subprocess.TimeoutExpired: The command overran ``timeout``
        FileNotFoundError: The executable is not installed
    """
    argv = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
    environ = dict(os.environ, **env) if env else None

    completed = subprocess.run(
        argv,
        cwd=cwd,
        capture_output=capture,
        text=True,
        timeout=timeout,
        env=environ,
        input=input_text,
    )

    if capture:
        completed.stdout = completed.stdout or ""
        completed.stderr = completed.stderr or ""
        if strip_output:
            completed.stdout = strip_ansi(completed.stdout)
            completed.stderr = strip_ansi(completed.stderr)

    if check and completed.returncode != 0:
        raise ShellError(
            cmd=shlex.join(argv),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
    return completed


def is_command_available(cmd: str) -> bool:
    """True if ``cmd`` resolves on PATH."""
    return shutil.which(cmd) is not None
