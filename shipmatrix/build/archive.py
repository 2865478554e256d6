"""Archive packaging and checksums."""

import hashlib
import zipfile
from pathlib import Path

_CHUNK_SIZE = 1024 * 1024


def sha256_file(path: Path) -> str:
    """Lowercase hex SHA-256 of a file, read in chunks."""
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def package_executable(executable: Path, archive_path: Path) -> str:
    """Zip a single executable at the archive root and return the archive's SHA-256.

    Directory components are dropped (like ``zip -j``) and the file mode is
    kept so the executable stays runnable after extraction.
    """
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(
        archive_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9
    ) as zf:
        zf.write(executable, arcname=executable.name)
    return sha256_file(archive_path)


def write_checksum_fragment(path: Path, lines: list[str]) -> Path:
    """Write sha256sum-format lines, newline terminated."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    return path
