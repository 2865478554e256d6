"""Fail-isolated build matrix.

One worker per target compiles, packages and checksums its own files, so a
failure in one target never touches another. The expander always returns
exactly one result per target.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from shipmatrix.build.archive import package_executable, write_checksum_fragment
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
from shipmatrix.build.toolchain import Toolchain
from shipmatrix.config.models import PipelineConfig
from shipmatrix.exceptions import ReleaseError
from shipmatrix.utils.version import Version

logger = logging.getLogger(__name__)


class BuildMatrixExpander:
    """Builds every configured target in parallel."""

    def __init__(
        self,
        project_root: Path,
        config: PipelineConfig,
        toolchain: Toolchain,
    ) -> None:
        self.project_root = project_root
        self.config = config
        self.toolchain = toolchain
        self.targets = targets_from_config(config)

    @property
    def output_dir(self) -> Path:
        return self.project_root / self.config.build.output_dir

    def expand(self, version: Version) -> list[BuildResult]:
        """Build, package and checksum every target.

        Dependencies are prepared once up front. If that fails, every
        target is reported as failed with the same cause.

        Returns:
            One Artifact or BuildFailure per target, in target order
        """
        try:
            self.toolchain.prepare()
        except (ReleaseError, OSError) as e:
            logger.error("Dependency preparation failed: %s", e)
            cause = f"dependency preparation failed: {e}"
            return [BuildFailure(target, cause) for target in self.targets]

        results: dict[BuildTarget, BuildResult] = {}
        workers = self.config.build.max_workers or len(self.targets)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="build") as pool:
            futures = {
                pool.submit(self.build_target, target, version): target
                for target in self.targets
            }
            for future in as_completed(futures):
                target = futures[future]
                try:
                    results[target] = future.result()
                except Exception as e:
                    # Unexpected worker errors still become a per-target failure
                    logger.exception("Build worker for %s crashed", target)
                    results[target] = BuildFailure(target, f"{type(e).__name__}: {e}")

        return [results[target] for target in self.targets]

    def build_target(self, target: BuildTarget, version: Version) -> BuildResult:
        """Compile, zip and checksum one target; failures become BuildFailure."""
        binary = self.config.project.binary_name
        work_dir = self.output_dir / target.slug
        executable = work_dir / executable_name(binary, target, self.config.build.windows_suffix)
        archive = self.output_dir / archive_name(binary, version.tag, target)

        try:
            self.toolchain.build(target, version.tag, executable)
            sha256 = package_executable(executable, archive)
            artifact = Artifact(target, archive, sha256)
            fragment = write_checksum_fragment(
                self.output_dir / checksum_fragment_name(target), [artifact.checksum_line]
            )
        except (ReleaseError, OSError) as e:
            logger.warning("Target %s failed: %s", target, e)
            return BuildFailure(target, str(e))

        logger.info("Built %s (%s)", artifact.archive_name, sha256[:12])
        return Artifact(target, archive, sha256, checksum_path=fragment)
