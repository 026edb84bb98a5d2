"""
java_manager.py
===============
Java version management workflows.

Capabilities:
  - List installed versions, or the versions a provider offers
  - Download a provider build and install it under its disk-encoded name
  - Remove an installed version
  - Create / update aliases, including the reserved ``default`` alias

Workflows that change state return a ``Result``; listings return data and
raise ``JvcError`` subclasses. Nothing is rolled back: a failed install
leaves the partial version directory in place until it is removed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from alias_manager import DEFAULT_ALIAS, Alias, AliasManager, AliasState
from java_archive import finalize_installation, ingest
from java_installations import (
    InstalledVersion,
    find_by_numeric_version,
    installed_versions,
    remove_installed,
)
from java_providers import VersionRequirements
from java_versions import JavaVersion
from jvc_config import JvcConfig
from jvc_errors import (
    JvcError,
    VersionAlreadyInstalled,
    VersionNotAvailable,
    VersionNotInstalled,
)
from package_clients import get_client

logger = logging.getLogger(__name__)

# (stage, bytes_done, bytes_total) – stage is "download" or "extract"
StageProgressCallback = Callable[[str, int, int], None]


# ──────────────────────────────────────────────
#  Result Object
# ──────────────────────────────────────────────

@dataclass
class Result:
    """Unified result for JavaManager operations."""

    success: bool
    message: str
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **details: Any) -> "Result":
        return cls(success=True, message=message, details=details)

    @classmethod
    def fail(cls, message: str, error: Optional[str] = None, **details: Any) -> "Result":
        return cls(success=False, message=message, error=error, details=details)

    @classmethod
    def from_error(cls, message: str, exc: JvcError) -> "Result":
        return cls.fail(message, error=str(exc), kind=type(exc).__name__)


# ──────────────────────────────────────────────
#  JavaManager
# ──────────────────────────────────────────────

class JavaManager:
    """
    Java version manager bound to one configuration.

    Args:
        config: Resolved jvc configuration (state root, provider)
    """

    def __init__(self, config: JvcConfig) -> None:
        self.config = config
        self.provider = config.provider
        self.aliases = AliasManager(config.aliases_dir, config.installation_dir)

    # ================================================================
    #  LISTING
    # ================================================================

    def list_installed(self) -> List[InstalledVersion]:
        """Return installed versions in numeric order."""
        return installed_versions(self.config.installation_dir)

    def find_installed(self, number: int) -> Optional[InstalledVersion]:
        return find_by_numeric_version(number, self.config.installation_dir)

    async def list_remote(
        self,
        session: aiohttp.ClientSession,
        requirements: Optional[VersionRequirements] = None,
    ) -> List[JavaVersion]:
        """Return the versions offered by the configured provider."""
        logger.debug("Retrieving available versions from %s", self.provider.code)
        return await get_client(self.provider).list_versions(session, requirements)

    def get_remote_versions(
        self, requirements: Optional[VersionRequirements] = None,
    ) -> List[JavaVersion]:
        """Synchronous wrapper around list_remote for CLI usage."""

        async def _run() -> List[JavaVersion]:
            async with aiohttp.ClientSession() as session:
                return await self.list_remote(session, requirements)

        return asyncio.run(_run())

    def list_aliases(self) -> List[Alias]:
        return self.aliases.list()

    def get_default_java(self) -> Optional[InstalledVersion]:
        """Return the installation the ``default`` alias points at, if valid."""
        alias = self.aliases.get(DEFAULT_ALIAS)
        if not alias.is_valid or alias.version is None:
            return None
        return InstalledVersion(path=alias.target, version=alias.version)

    # ================================================================
    #  INSTALLATION
    # ================================================================

    async def download_java(
        self,
        number: int,
        session: aiohttp.ClientSession,
        requirements: Optional[VersionRequirements] = None,
        progress_callback: Optional[StageProgressCallback] = None,
    ) -> InstalledVersion:
        """
        Download and install a Java feature version from the configured provider.

        Args:
            number:            Major Java version (8, 11, 17, ...)
            session:           aiohttp session for HTTP requests
            requirements:      Optional filters (arch, os, image type, ...)
            progress_callback: Optional callable(stage, done, total)

        Raises:
            VersionAlreadyInstalled, VersionNotAvailable and any client,
            archive or storage error
        """
        existing = self.find_installed(number)
        if existing is not None:
            raise VersionAlreadyInstalled(
                f"Java {number} is already installed as {existing.name}"
            )

        client = get_client(self.provider)
        versions = await client.list_versions(session, requirements)
        version = next((v for v in versions if v.number == number), None)
        if version is None:
            raise VersionNotAvailable(
                f"Cannot find a version to match your selection {number} "
                f"from {self.provider.code}"
            )

        install_dir = self.config.installation_dir / version.encode()
        artifact = await client.download(
            session, version, requirements, self.config.download_dir,
            _stage(progress_callback, "download"),
        )
        logger.debug("Downloaded package %s", artifact.package_name)

        ingest(
            artifact.path, artifact.package_name, install_dir,
            _stage(progress_callback, "extract"),
        )
        finalize_installation(install_dir)

        installed = InstalledVersion(path=install_dir, version=version)
        logger.info("Java %s (%s) installed at %s", version, artifact.semver or "?", install_dir)
        return installed

    def install_java(
        self,
        number: int,
        requirements: Optional[VersionRequirements] = None,
        progress_callback: Optional[StageProgressCallback] = None,
    ) -> Result:
        """Synchronous wrapper around download_java for CLI usage."""

        async def _run() -> InstalledVersion:
            async with aiohttp.ClientSession() as session:
                return await self.download_java(number, session, requirements, progress_callback)

        try:
            installed = asyncio.run(_run())
        except JvcError as exc:
            logger.error("Install failed: %s", exc)
            return Result.from_error(f"Failed to install Java {number}", exc)

        return Result.ok(
            f"Java {number} installed successfully",
            version=installed.version,
            path=str(installed.java_home),
        )

    def uninstall_java(self, number: int) -> Result:
        """
        Remove an installed version directory.

        Aliases pointing at it are left in place and show up as dangling.
        """
        installed = self.find_installed(number)
        if installed is None:
            return Result.from_error(
                f"Java {number} not found",
                VersionNotInstalled(f"Cannot find requested version {number}"),
            )

        logger.info("Removing version: %s", number)
        try:
            remove_installed(installed)
        except JvcError as exc:
            return Result.from_error(f"Failed to remove Java {number}", exc)

        dangling = [a.name for a in self.aliases.list() if a.state is AliasState.DANGLING]
        if dangling:
            logger.warning("Aliases now dangling: %s", ", ".join(dangling))
        return Result.ok(
            f"Java {number} uninstalled",
            version=installed.version,
            path=str(installed.path),
            dangling_aliases=dangling,
        )

    # ================================================================
    #  ALIASES
    # ================================================================

    def set_alias(self, alias_name: str, selector: str) -> Result:
        """Point *alias_name* at a version number or another alias's target."""
        try:
            alias = self.aliases.create_or_update(alias_name, selector)
        except JvcError as exc:
            return Result.from_error(f"Cannot set alias {alias_name}", exc)
        return Result.ok(
            f"Alias {alias_name} now points to {alias.target.name if alias.target else selector}",
            alias=alias,
        )

    def set_default_java(self, selector: str) -> Result:
        """Make *selector* the default version (alias ``default``)."""
        logger.debug("Creating default version for: %s", selector)
        result = self.set_alias(DEFAULT_ALIAS, selector)
        alias: Optional[Alias] = result.details.get("alias")
        if result.success and alias is not None and alias.version is not None:
            result.message = (
                f"Selected version {alias.version} is now default "
                f"with provider {alias.version.provider.code}"
            )
        return result


def _stage(
    callback: Optional[StageProgressCallback], stage: str,
) -> Optional[Callable[[int, int], None]]:
    if callback is None:
        return None
    return lambda done, total: callback(stage, done, total)
