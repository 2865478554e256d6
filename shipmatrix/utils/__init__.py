"""Utility modules for the release pipeline."""

from shipmatrix.utils.shell import ShellError, is_command_available, run, strip_ansi
from shipmatrix.utils.version import Version, VersionTuple, is_valid_tag, parse_tag

__all__ = [
    # Shell utilities
    "run",
    "strip_ansi",
    "is_command_available",
    "ShellError",
    # Version utilities
    "Version",
    "VersionTuple",
    "parse_tag",
    "is_valid_tag",
]
