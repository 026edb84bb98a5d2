"""
java_archive.py
===============
Turns a downloaded JDK package into an installation directory.

``ingest`` dispatches on the vendor file name's final extension:
  - ``zip`` → zip archive, extracted with byte progress over the compressed file
  - ``gz``  → gzip-compressed tar, decompressed and unpacked in one pass

``finalize_installation`` then checks that exactly one top-level directory
came out and renames it to ``installation``.

Nothing is rolled back on failure; a partial directory stays until the
version is removed.
"""

from __future__ import annotations

import logging
import os
import tarfile
import zipfile
import zlib
from pathlib import Path
from typing import Any, BinaryIO, Callable, Optional

from java_installations import INSTALLATION_SUBDIR
from jvc_errors import (
    ArchiveCorrupt,
    DirectoryContractViolation,
    StorageError,
    UnsupportedArchiveKind,
)

logger = logging.getLogger(__name__)

# (bytes_read, bytes_total) over the compressed file
ProgressCallback = Callable[[int, int], None]


class _ProgressReader:
    """File wrapper reporting the read position after every read."""

    def __init__(self, fh: BinaryIO, total: int, callback: Optional[ProgressCallback]) -> None:
        self._fh = fh
        self._total = total
        self._callback = callback

    def read(self, size: int = -1) -> bytes:
        data = self._fh.read(size)
        if self._callback:
            self._callback(self._fh.tell(), self._total)
        return data

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._fh.seek(offset, whence)

    def tell(self) -> int:
        return self._fh.tell()

    def seekable(self) -> bool:
        return True

    def __getattr__(self, name: str) -> Any:
        return getattr(self._fh, name)


def archive_kind(filename: str) -> str:
    """Return ``zip`` or ``gz`` for *filename*, or raise UnsupportedArchiveKind."""
    ext = Path(filename).suffix.lower().lstrip(".")
    if ext not in ("zip", "gz"):
        raise UnsupportedArchiveKind(filename)
    return ext


def ingest(
    artifact_path: Path,
    original_filename: str,
    destination_dir: Path,
    progress_callback: Optional[ProgressCallback] = None,
) -> None:
    """
    Unpack *artifact_path* into *destination_dir*.

    Args:
        artifact_path:     Downloaded file (its own name carries no extension)
        original_filename: Vendor package name, e.g. ``OpenJDK17U-jdk_x64_linux.tar.gz``
        destination_dir:   Created if missing
        progress_callback: Optional callable(bytes_read, bytes_total)

    Raises:
        UnsupportedArchiveKind, ArchiveCorrupt, StorageError
    """
    kind = archive_kind(original_filename)
    artifact_path = Path(artifact_path)
    destination_dir = Path(destination_dir)

    try:
        destination_dir.mkdir(parents=True, exist_ok=True)
        total = artifact_path.stat().st_size
    except OSError as exc:
        raise StorageError(f"Cannot prepare extraction of {artifact_path}: {exc}") from exc

    logger.info("Extracting %s → %s", original_filename, destination_dir)
    try:
        with open(artifact_path, "rb") as fh:
            reader = _ProgressReader(fh, total, progress_callback)
            if kind == "zip":
                _extract_zip(reader, destination_dir)
            else:
                _extract_tar_gz(reader, destination_dir)
    except (zipfile.BadZipFile, tarfile.TarError, zlib.error, EOFError) as exc:
        raise ArchiveCorrupt(f"Cannot unpack {original_filename}: {exc}") from exc
    except OSError as exc:
        raise StorageError(f"Cannot write into {destination_dir}: {exc}") from exc
    logger.debug("Finished extracting %s", original_filename)


def _extract_zip(reader: _ProgressReader, dest_dir: Path) -> None:
    with zipfile.ZipFile(reader) as zf:
        for info in zf.infolist():
            target = zf.extract(info, dest_dir)
            # zipfile drops permission bits; restore them from the entry
            mode = (info.external_attr >> 16) & 0o777
            if mode and not info.is_dir():
                os.chmod(target, mode)


def _extract_tar_gz(reader: _ProgressReader, dest_dir: Path) -> None:
    with tarfile.open(fileobj=reader, mode="r|gz") as tar:
        tar.extractall(dest_dir, filter="data")


def finalize_installation(destination_dir: Path) -> Path:
    """
    Rename the single unpacked root of *destination_dir* to ``installation``.

    Returns:
        Path to the canonical installation directory

    Raises:
        DirectoryContractViolation: zero entries, several entries, or a
            single entry that is not a directory
    """
    destination_dir = Path(destination_dir)
    try:
        entries = sorted(destination_dir.iterdir())
    except OSError as exc:
        raise StorageError(f"Cannot read {destination_dir}: {exc}") from exc

    if len(entries) != 1:
        names = ", ".join(e.name for e in entries) or "nothing"
        raise DirectoryContractViolation(
            f"Expected exactly one top-level directory in {destination_dir}, found: {names}"
        )
    package_root = entries[0]
    if not package_root.is_dir() or package_root.is_symlink():
        raise DirectoryContractViolation(
            f"Top-level entry {package_root.name} in {destination_dir} is not a directory"
        )

    canonical = destination_dir / INSTALLATION_SUBDIR
    if package_root == canonical:
        return canonical
    logger.debug("Rename from %s to %s", package_root, canonical)
    try:
        package_root.rename(canonical)
    except OSError as exc:
        raise StorageError(f"Cannot rename {package_root} to {canonical}: {exc}") from exc
    return canonical

