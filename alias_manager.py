"""
alias_manager.py
================
Symlink-based names for installed Java versions.

Every alias is a symbolic link in the aliases directory pointing at an
installed version directory. ``default`` is the reserved alias for the
active version.

An alias is in one of three states:
  - absent    – no link with that name
  - valid     – the link's target exists
  - dangling  – the link's target was removed
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from java_installations import find_by_numeric_version
from java_versions import JavaVersion, parse_version_number
from jvc_errors import (
    AliasNotFound,
    InvalidAliasName,
    StorageError,
    VersionDecodeError,
    VersionNotInstalled,
)

logger = logging.getLogger(__name__)

DEFAULT_ALIAS = "default"


class AliasState(str, Enum):
    ABSENT = "absent"
    VALID = "valid"
    DANGLING = "dangling"


@dataclass
class Alias:
    """One entry of the aliases directory."""

    name: str
    path: Path
    state: AliasState
    target: Optional[Path] = None
    version: Optional[JavaVersion] = None

    @property
    def is_valid(self) -> bool:
        return self.state is AliasState.VALID

    def points_to(self, version: JavaVersion) -> bool:
        return self.version is not None and self.version == version


def validate_alias_name(alias_name: str) -> None:
    """
    Reject names that would shadow a version selector.

    Raises:
        InvalidAliasName: the name parses as a version number, is empty,
            starts with a dot or contains a path separator
    """
    if parse_version_number(alias_name) is not None:
        raise InvalidAliasName("Alias name should not be a version number")
    if not alias_name or alias_name.startswith(".") or "/" in alias_name or os.sep in alias_name:
        raise InvalidAliasName(f"Invalid alias name: {alias_name!r}")


class AliasManager:
    """
    Create, update and inspect aliases.

    Args:
        aliases_dir:      Directory holding the alias links
        installation_dir: Root of the installed version directories
    """

    def __init__(self, aliases_dir: str | Path, installation_dir: str | Path) -> None:
        self.aliases_dir = Path(aliases_dir)
        self.installation_dir = Path(installation_dir)

    # ================================================================
    #  QUERIES
    # ================================================================

    def get(self, alias_name: str) -> Alias:
        """Return the alias called *alias_name*, ABSENT if there is none."""
        link = self.aliases_dir / alias_name
        if not link.is_symlink():
            return Alias(name=alias_name, path=link, state=AliasState.ABSENT)
        return self._read_alias(link)

    def list(self) -> List[Alias]:
        """
        Return every alias link, sorted by name.

        Broken links are reported as DANGLING instead of raising.
        """
        if not self.aliases_dir.exists():
            return []
        aliases: List[Alias] = []
        for entry in sorted(self.aliases_dir.iterdir()):
            # leftovers of an interrupted relink start with a dot
            if entry.is_symlink() and not entry.name.startswith("."):
                aliases.append(self._read_alias(entry))
        return aliases

    def aliases_for(self, version: JavaVersion) -> List[Alias]:
        return [a for a in self.list() if a.points_to(version)]

    def _read_alias(self, link: Path) -> Alias:
        try:
            target = Path(os.readlink(link))
        except OSError as exc:
            logger.debug("Cannot read alias %s: %s", link, exc)
            return Alias(name=link.name, path=link, state=AliasState.DANGLING)

        if not target.is_absolute():
            target = link.parent / target
        if not target.exists():
            return Alias(name=link.name, path=link, state=AliasState.DANGLING, target=target)

        version: Optional[JavaVersion] = None
        try:
            version = JavaVersion.decode(target.name)
        except VersionDecodeError as exc:
            logger.warning("Alias %s points outside the installed versions: %s", link.name, exc)
        return Alias(
            name=link.name, path=link, state=AliasState.VALID, target=target, version=version,
        )

    # ================================================================
    #  MUTATION
    # ================================================================

    def create_or_update(self, alias_name: str, selector: str) -> Alias:
        """
        Point *alias_name* at the version selected by *selector*.

        *selector* is either a version number, matched against the
        installed versions, or the name of an existing alias whose
        target is reused.  Both paths end in the same relink.

        Raises:
            InvalidAliasName, VersionNotInstalled, AliasNotFound
        """
        validate_alias_name(alias_name)

        number = parse_version_number(selector)
        if number is None:
            source = self.get(selector)
            if source.state is AliasState.ABSENT:
                raise AliasNotFound(f"Cannot find alias {selector!r}")
            if source.state is AliasState.DANGLING:
                raise VersionNotInstalled(
                    f"Alias {selector!r} points to a version that is no longer installed"
                )
            logger.warning("Overriding alias %s with the target of %s", alias_name, selector)
            target = source.target
        else:
            installed = find_by_numeric_version(number, self.installation_dir)
            if installed is None:
                raise VersionNotInstalled(f"Cannot find requested version {number}")
            target = installed.path

        self._relink(alias_name, target.resolve())
        return self.get(alias_name)

    def _relink(self, alias_name: str, target: Path) -> None:
        """Replace (or create) the link *alias_name* → *target* in one rename."""
        link = self.aliases_dir / alias_name
        if link.exists() and not link.is_symlink():
            raise InvalidAliasName(f"{link} exists and is not an alias link")

        tmp_link = self.aliases_dir / f".{alias_name}.{uuid.uuid4().hex}.tmp"
        try:
            self.aliases_dir.mkdir(parents=True, exist_ok=True)
            os.symlink(target, tmp_link, target_is_directory=True)
            os.replace(tmp_link, link)
        except OSError as exc:
            if tmp_link.is_symlink():
                tmp_link.unlink()
            raise StorageError(f"Cannot create alias {alias_name} → {target}: {exc}") from exc
        logger.info("Alias %s → %s", alias_name, target.name)
