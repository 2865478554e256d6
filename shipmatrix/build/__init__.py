"""Multi-target build: toolchain adapter, packaging and the build matrix."""

from shipmatrix.build.archive import package_executable, sha256_file, write_checksum_fragment
from shipmatrix.build.matrix import BuildMatrixExpander
from shipmatrix.build.targets import (
    Artifact,
    BuildFailure,
    BuildResult,
    BuildTarget,
    archive_name,
    checksum_fragment_name,
    executable_name,
    targets_from_config,
)
from shipmatrix.build.toolchain import GoToolchain, Toolchain

__all__ = [
    "Artifact",
    "BuildFailure",
    "BuildMatrixExpander",
    "BuildResult",
    "BuildTarget",
    "GoToolchain",
    "Toolchain",
    "archive_name",
    "checksum_fragment_name",
    "executable_name",
    "package_executable",
    "sha256_file",
    "targets_from_config",
    "write_checksum_fragment",
]
