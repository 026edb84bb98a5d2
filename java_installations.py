"""
java_installations.py
=====================
Enumeration of the versions installed under the installation root.

Each installed version is a directory named by its disk encoding
(see ``java_versions``) holding the unpacked runtime under
``installation/``.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from java_versions import JavaVersion, numeric_key
from jvc_errors import StorageError, VersionDecodeError

logger = logging.getLogger(__name__)

# Housekeeping entry inside the installation root, never a version
DOWNLOADS_DIR_NAME = ".downloads"

# Canonical name of the unpacked runtime inside a version directory
INSTALLATION_SUBDIR = "installation"


@dataclass(frozen=True)
class InstalledVersion:
    """An installed version directory and the version it encodes."""

    path: Path
    version: JavaVersion

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def java_home(self) -> Path:
        return self.path / INSTALLATION_SUBDIR


def list_installed(root: Path) -> List[str]:
    """
    Return the entry names under *root*, sorted, minus the downloads dir.

    A missing root means nothing is installed.
    """
    root = Path(root)
    if not root.exists():
        return []
    try:
        names = [entry.name for entry in root.iterdir()]
    except OSError as exc:
        raise StorageError(f"Cannot read installation directory {root}: {exc}") from exc
    return sorted(n for n in names if n != DOWNLOADS_DIR_NAME)


def installed_versions(root: Path) -> List[InstalledVersion]:
    """Decode every installed entry, skipping names that are not versions."""
    root = Path(root)
    found: List[InstalledVersion] = []
    for name in list_installed(root):
        try:
            version = JavaVersion.decode(name)
        except VersionDecodeError as exc:
            logger.warning("Ignoring unexpected entry in %s: %s", root, exc)
            continue
        found.append(InstalledVersion(path=root / name, version=version))

    found.sort(key=lambda inst: numeric_key(inst.version))
    return found


def find_by_numeric_version(number: int, root: Path) -> Optional[InstalledVersion]:
    """
    Return the first installed entry whose numeric value is *number*.

    Absence is a normal outcome and yields None.
    """
    root = Path(root)
    for name in list_installed(root):
        try:
            version = JavaVersion.decode(name)
        except VersionDecodeError:
            logger.debug("Skipping undecodable entry %s", name)
            continue
        if version.number == number:
            return InstalledVersion(path=root / name, version=version)
    return None


def remove_installed(installed: InstalledVersion) -> None:
    """Delete an installed version directory, partial or complete."""
    logger.debug("Removing %s", installed.path)
    try:
        shutil.rmtree(installed.path)
    except OSError as exc:
        raise StorageError(f"Cannot remove {installed.path}: {exc}") from exc
