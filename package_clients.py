"""
package_clients.py
==================
API clients for the JDK provider REST APIs.

Supported providers:
  - **AdoptOpenJDK** – https://api.adoptopenjdk.net/v3
  - **Azul Zulu**    – https://api.azul.com/zulu/download/community/v1.0

Each client exposes:
  - list_versions(session, requirements) → feature versions, numerically sorted
  - download(session, version, requirements, download_dir) → DownloadArtifact

Clients never retry; every failure is raised as a ``JvcError`` subclass.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Tuple
from urllib.parse import urlparse

import aiohttp

from java_providers import Provider, VersionRequirements
from java_versions import JavaVersion, sort_versions
from jvc_errors import (
    NetworkError,
    ResolutionError,
    SchemaError,
    StorageError,
    UnknownProviderCode,
)

logger = logging.getLogger(__name__)

# (bytes_done, bytes_total) – total is 0 when unknown
ProgressCallback = Callable[[int, int], None]

API_TIMEOUT = aiohttp.ClientTimeout(total=30)
DOWNLOAD_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_connect=30, sock_read=60)
CHUNK_SIZE = 8192


# ──────────────────────────────────────────────
#  Common Data Structures
# ──────────────────────────────────────────────

@dataclass
class DownloadArtifact:
    """A downloaded package waiting to be unpacked."""

    path: Path                           # file in the downloads dir, named by version value
    package_name: str                    # vendor file name, drives archive dispatch
    total_size: int = 0
    semver: Optional[str] = None


# ──────────────────────────────────────────────
#  Base Client
# ──────────────────────────────────────────────

class PackageClient(ABC):
    """Shared HTTP plumbing for provider clients."""

    PROVIDER: Provider
    HEADERS = {"User-Agent": "jvc/0.1", "Accept": "application/json"}

    @property
    def base_url(self) -> str:
        return self.PROVIDER.base_url

    @abstractmethod
    async def list_versions(
        self,
        session: aiohttp.ClientSession,
        requirements: Optional[VersionRequirements] = None,
    ) -> List[JavaVersion]:
        """Return every feature version the provider offers."""

    @abstractmethod
    async def download(
        self,
        session: aiohttp.ClientSession,
        version: JavaVersion,
        requirements: Optional[VersionRequirements],
        download_dir: Path,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> DownloadArtifact:
        """Resolve one binary for *version* and stream it into *download_dir*."""

    # ── HTTP helpers ───────────────────────────

    async def _get_json(
        self,
        session: aiohttp.ClientSession,
        url: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        logger.debug("GET %s params=%s", url, params)
        try:
            async with session.get(
                url, params=params, headers=self.HEADERS, timeout=API_TIMEOUT,
            ) as resp:
                if resp.status != 200:
                    raise NetworkError(
                        f"{self.PROVIDER.code} API returned HTTP {resp.status} for {url}",
                        status=resp.status,
                    )
                return await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise NetworkError(f"{self.PROVIDER.code} request to {url} failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise NetworkError(f"{self.PROVIDER.code} request to {url} timed out") from exc
        except ValueError as exc:
            raise SchemaError(f"{self.PROVIDER.code} returned invalid JSON for {url}: {exc}") from exc

    async def _stream_to_file(
        self,
        session: aiohttp.ClientSession,
        url: str,
        dest_file: Path,
        total_size: int,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> int:
        """Stream *url* into *dest_file* chunk by chunk; returns bytes written."""
        logger.info("Downloading %s", url)
        downloaded = 0
        start_time = time.time()
        try:
            async with session.get(url, timeout=DOWNLOAD_TIMEOUT) as resp:
                if resp.status != 200:
                    raise NetworkError(f"Download failed: HTTP {resp.status}", status=resp.status)
                if not total_size:
                    total_size = resp.content_length or 0
                try:
                    with open(dest_file, "wb") as fh:
                        async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                            fh.write(chunk)
                            downloaded += len(chunk)
                            if progress_callback:
                                progress_callback(downloaded, total_size)
                except OSError as exc:
                    raise StorageError(f"Cannot write {dest_file}: {exc}") from exc
        except aiohttp.ClientError as exc:
            raise NetworkError(f"Download of {url} failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise NetworkError(f"Download of {url} timed out") from exc

        elapsed = time.time() - start_time
        speed = (downloaded / (1024 * 1024)) / max(elapsed, 0.1)
        logger.info(
            "Download complete: %s (%.1f MB, %.1f MB/s)",
            dest_file.name, downloaded / (1024 * 1024), speed,
        )
        return downloaded


# ──────────────────────────────────────────────
#  AdoptOpenJDK Client
# ──────────────────────────────────────────────

class AdoptOpenJDKClient(PackageClient):
    """Client for the AdoptOpenJDK API v3."""

    PROVIDER = Provider.ADOPTOPENJDK

    async def list_versions(
        self,
        session: aiohttp.ClientSession,
        requirements: Optional[VersionRequirements] = None,
    ) -> List[JavaVersion]:
        data = await self._get_json(session, f"{self.base_url}/info/available_releases")
        try:
            releases = [int(v) for v in data["available_releases"]]
            lts_releases = {int(v) for v in data["available_lts_releases"]}
        except (KeyError, TypeError, ValueError) as exc:
            raise SchemaError(f"Unexpected available_releases response: {exc!r}") from exc

        logger.debug("Available releases: %s (LTS %s)", releases, sorted(lts_releases))
        return sort_versions(
            JavaVersion.new(v, v in lts_releases, self.PROVIDER) for v in releases
        )

    def assets_query(
        self, version: JavaVersion, requirements: Optional[VersionRequirements],
    ) -> Tuple[str, Dict[str, Any]]:
        """Return the URL and query for the binaries of one feature version."""
        filters = (requirements or VersionRequirements()).resolve(self.PROVIDER)
        url = f"{self.base_url}/assets/feature_releases/{version.value}/{filters['release_type']}"
        params = {
            "architecture": filters["arch"],
            "heap_size": filters["heap_size"],
            "image_type": filters["image_type"],
            "jvm_impl": filters["jvm_impl"],
            "os": filters["os"],
            "page": 0,
            "page_size": 1,
            "project": filters["project"],
            "sort_method": "DEFAULT",
            "sort_order": "DESC",
            "vendor": filters["vendor"],
        }
        return url, params

    async def download(
        self,
        session: aiohttp.ClientSession,
        version: JavaVersion,
        requirements: Optional[VersionRequirements],
        download_dir: Path,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> DownloadArtifact:
        url, params = self.assets_query(version, requirements)
        releases = await self._get_json(session, url, params)

        # First candidate in response order; the query already sorts newest first.
        if not isinstance(releases, list):
            raise SchemaError("Expected a list of releases from feature_releases")
        if not releases:
            raise ResolutionError(f"No {self.PROVIDER.code} build found for Java {version}")
        try:
            release = releases[0]
            binaries = release["binaries"]
            if not binaries:
                raise ResolutionError(f"Release for Java {version} has no binaries")
            package = binaries[0]["package"]
            link = package["link"]
            name = package["name"]
            size = int(package.get("size") or 0)
            semver = (release.get("version_data") or {}).get("semver")
        except (KeyError, TypeError, IndexError, ValueError, AttributeError) as exc:
            raise SchemaError(f"Unexpected feature_releases response: {exc!r}") from exc

        package_url = await self.resolve_redirect(session, link)
        dest_file = Path(download_dir) / version.value
        await self._stream_to_file(session, package_url, dest_file, size, progress_callback)
        return DownloadArtifact(path=dest_file, package_name=name, total_size=size, semver=semver)

    async def resolve_redirect(self, session: aiohttp.ClientSession, link: str) -> str:
        """
        Follow exactly one HTTP 302 from the package link.

        Raises:
            ResolutionError: any other status, a missing Location header,
                or a Location that is not an absolute http(s) URL.
        """
        logger.debug("Resolving package link %s", link)
        try:
            async with session.get(
                link, allow_redirects=False, headers=self.HEADERS, timeout=API_TIMEOUT,
            ) as resp:
                status = resp.status
                location = resp.headers.get("Location")
        except aiohttp.ClientError as exc:
            raise NetworkError(f"Request to {link} failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise NetworkError(f"Request to {link} timed out") from exc

        if status != 302:
            raise ResolutionError(
                f"Cannot compose download url: expected redirect 302 from {link}, got {status}"
            )
        if not location:
            raise ResolutionError(f"Redirect from {link} carries no Location header")
        parsed = urlparse(location)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ResolutionError(f"Cannot parse download url from {location!r}")
        return location


# ──────────────────────────────────────────────
#  Azul Zulu Client
# ──────────────────────────────────────────────

class AzulClient(PackageClient):
    """Client for the Azul Zulu community API v1.0."""

    PROVIDER = Provider.AZUL

    def bundles_query(self, requirements: Optional[VersionRequirements]) -> Dict[str, Any]:
        filters = (requirements or VersionRequirements()).resolve(self.PROVIDER)
        return {
            "os": filters["os"],
            "arch": filters["arch"],
            "ext": "zip",
            "bundle_type": filters["image_type"],
            "release_status": filters["release_type"],
        }

    def details_query(
        self, version: JavaVersion, requirements: Optional[VersionRequirements],
    ) -> Dict[str, Any]:
        return {"jdk_version": version.value, **self.bundles_query(requirements)}

    async def _major_versions(
        self, session: aiohttp.ClientSession, params: Dict[str, Any],
    ) -> Set[int]:
        bundles = await self._get_json(session, f"{self.base_url}/bundles/", params)
        if not isinstance(bundles, list):
            raise SchemaError("Expected a list of bundles")
        try:
            return {int(b["jdk_version"][0]) for b in bundles}
        except (KeyError, TypeError, IndexError, ValueError) as exc:
            raise SchemaError(f"Unexpected bundle entry: {exc!r}") from exc

    async def list_versions(
        self,
        session: aiohttp.ClientSession,
        requirements: Optional[VersionRequirements] = None,
    ) -> List[JavaVersion]:
        params = self.bundles_query(requirements)
        majors = await self._major_versions(session, params)
        logger.debug("Received the following versions: %s", sorted(majors))

        # A failing LTS lookup only costs the LTS flags.
        try:
            lts_majors = await self._major_versions(session, {**params, "support_term": "lts"})
        except (NetworkError, SchemaError) as exc:
            logger.warning("Cannot retrieve support type information for Azul Zulu: %s", exc)
            lts_majors = set()
        logger.debug("Received the following LTS versions: %s", sorted(lts_majors))

        return sort_versions(
            JavaVersion.new(v, v in lts_majors, self.PROVIDER) for v in majors
        )

    async def download(
        self,
        session: aiohttp.ClientSession,
        version: JavaVersion,
        requirements: Optional[VersionRequirements],
        download_dir: Path,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> DownloadArtifact:
        details = await self._get_json(
            session, f"{self.base_url}/bundles/latest/", self.details_query(version, requirements),
        )
        if isinstance(details, list):
            if not details:
                raise ResolutionError(f"No {self.PROVIDER.code} bundle found for Java {version}")
            details = details[0]
        try:
            url = details["url"]
            name = details["name"]
            size = int(details.get("size") or 0)
            zulu_version = details.get("zulu_version") or []
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise SchemaError(f"Unexpected bundle details response: {exc!r}") from exc
        if not url:
            raise ResolutionError(f"Bundle for Java {version} has no download url")

        dest_file = Path(download_dir) / version.value
        await self._stream_to_file(session, url, dest_file, size, progress_callback)
        semver = ".".join(str(p) for p in zulu_version) or None
        return DownloadArtifact(path=dest_file, package_name=name, total_size=size, semver=semver)


# ──────────────────────────────────────────────
#  Dispatch
# ──────────────────────────────────────────────

_CLIENTS: Dict[Provider, type] = {
    Provider.ADOPTOPENJDK: AdoptOpenJDKClient,
    Provider.AZUL: AzulClient,
}


def get_client(provider: Provider) -> PackageClient:
    """Return the client implementation for *provider*."""
    try:
        return _CLIENTS[provider]()
    except KeyError:
        raise UnknownProviderCode(str(provider)) from None
