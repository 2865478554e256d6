"""Artifact collection and release directory assembly.

Build results arrive in completion order; the manifest is sorted by
archive file name so the same artifact set always yields the same bytes.
"""

import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from shipmatrix.build.targets import Artifact, BuildFailure, BuildResult
from shipmatrix.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CHECKSUMS_FILENAME = "checksums.txt"
NOTES_FILENAME = "release_notes.md"


@dataclass(frozen=True)
class Collection:
    """Joined output of the build matrix.

    Attributes:
        artifacts: Successful targets, sorted by archive name
        failures: Failed targets, in input order
        manifest: ``<sha256>  <archive>`` lines, one per artifact
    """

    artifacts: tuple[Artifact, ...] = ()
    failures: tuple[BuildFailure, ...] = ()
    manifest: tuple[str, ...] = field(default=())

    @property
    def complete(self) -> bool:
        return not self.failures

    @property
    def manifest_text(self) -> str:
        return "".join(f"{line}\n" for line in self.manifest)


def _check_dist_dir(
    dist_dir: Path, project_root: Path, artifacts: Iterable[Artifact]
) -> None:
    target = dist_dir.resolve()
    root = project_root.resolve()
    if target == root or root not in target.parents:
        raise ConfigurationError(
            f"Refusing to recreate {dist_dir}: it is not inside {project_root}",
            fix_hint="Set release.dist_dir to a subdirectory such as final_release",
        )
    for artifact in artifacts:
        if target in artifact.archive_path.resolve().parents:
            raise ConfigurationError(
                f"Refusing to recreate {dist_dir}: it contains {artifact.archive_name}",
                fix_hint="Use different directories for build.output_dir and release.dist_dir",
            )


class ArtifactCollector:
    """Separates artifacts from failures and builds the checksum manifest."""

    def collect(self, results: Iterable[BuildResult]) -> Collection:
        artifacts: list[Artifact] = []
        failures: list[BuildFailure] = []
        for result in results:
            if isinstance(result, Artifact):
                artifacts.append(result)
            else:
                failures.append(result)

        artifacts.sort(key=lambda a: a.archive_name)
        if failures:
            logger.warning(
                "%d of %d targets failed: %s",
                len(failures),
                len(artifacts) + len(failures),
                ", ".join(str(f.target) for f in failures),
            )
        return Collection(
            artifacts=tuple(artifacts),
            failures=tuple(failures),
            manifest=tuple(a.checksum_line for a in artifacts),
        )

    def assemble(
        self, collection: Collection, notes: str, dist_dir: Path, project_root: Path
    ) -> list[Path]:
        """Write the release directory: archives, checksums.txt, release_notes.md.

        The directory is recreated from scratch so stale archives from an
        earlier run never leak into the upload.

        Returns:
            Files to upload, archives first then checksums.txt

        Raises:
            ConfigurationError: dist_dir is not strictly inside project_root,
                or it holds the archives being released
        """
        _check_dist_dir(dist_dir, project_root, collection.artifacts)
        if dist_dir.exists():
            shutil.rmtree(dist_dir)
        dist_dir.mkdir(parents=True)

        files = []
        for artifact in collection.artifacts:
            dest = dist_dir / artifact.archive_name
            shutil.copy2(artifact.archive_path, dest)
            files.append(dest)

        checksums = dist_dir / CHECKSUMS_FILENAME
        checksums.write_text(collection.manifest_text, encoding="utf-8")
        files.append(checksums)

        (dist_dir / NOTES_FILENAME).write_text(notes, encoding="utf-8")
        logger.info("Assembled %d release files in %s", len(files), dist_dir)
        return files
