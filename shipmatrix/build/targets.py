"""Build targets and per-target results."""

from dataclasses import dataclass
from pathlib import Path

from shipmatrix.config.models import PipelineConfig, TargetConfig


@dataclass(frozen=True, order=True)
class BuildTarget:
    """One (os, arch) pair of the build matrix."""

    os: str
    arch: str

    @property
    def slug(self) -> str:
        """``<os>-<arch>``, used in file and directory names."""
        return f"{self.os}-{self.arch}"

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


@dataclass(frozen=True)
class Artifact:
    """A successfully built and packaged target.

    Attributes:
        target: Target this archive was built for
        archive_path: Path to the zip archive
        sha256: Lowercase hex SHA-256 of the archive bytes
        checksum_path: Per-target checksum fragment, if written
    """

    target: BuildTarget
    archive_path: Path
    sha256: str
    checksum_path: Path | None = None

    @property
    def archive_name(self) -> str:
        return self.archive_path.name

    @property
    def checksum_line(self) -> str:
        """``<sha256>  <archive>`` in sha256sum format."""
        return f"{self.sha256}  {self.archive_name}"


@dataclass(frozen=True)
class BuildFailure:
    """A target that failed to compile or package."""

    target: BuildTarget
    cause: str


BuildResult = Artifact | BuildFailure


def targets_from_config(config: PipelineConfig) -> list[BuildTarget]:
    """Cross product of configured OS and arch, minus exclusions.

    Order follows the configuration: OS-major, arch-minor.
    """
    excluded = set(config.build.exclude)
    return [
        BuildTarget(os_name, arch)
        for os_name in config.build.os
        for arch in config.build.arch
        if TargetConfig(os=os_name, arch=arch) not in excluded
    ]


def executable_name(binary_name: str, target: BuildTarget, windows_suffix: str = ".exe") -> str:
    """Executable file name; only windows targets get a suffix."""
    if target.os == "windows":
        return f"{binary_name}{windows_suffix}"
    return binary_name


def archive_name(binary_name: str, version: str, target: BuildTarget) -> str:
    """``<binary>-<version>-<os>-<arch>.zip``"""
    return f"{binary_name}-{version}-{target.os}-{target.arch}.zip"


def checksum_fragment_name(target: BuildTarget) -> str:
    """``checksums-<os>-<arch>.txt``"""
    return f"checksums-{target.os}-{target.arch}.txt"
