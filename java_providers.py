"""
java_providers.py
=================
Registry of the JDK vendor backends jvc can talk to.

Each provider owns:
  - a short code used on disk and on the command line
  - the base URL of its REST API
  - the default filter values applied when a requirement is left unset

Supported providers:
  - **AdoptOpenJDK** – https://api.adoptopenjdk.net/v3
  - **Azul Zulu**    – https://api.azul.com/zulu/download/community/v1.0
"""

from __future__ import annotations

import platform
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Optional

from jvc_errors import UnknownProviderCode


# ──────────────────────────────────────────────
#  Provider
# ──────────────────────────────────────────────

class Provider(str, Enum):
    """Enumeration of all supported JDK providers."""

    ADOPTOPENJDK = "adoptopenjdk"
    AZUL = "azul"

    @property
    def code(self) -> str:
        return self.value

    @property
    def base_url(self) -> str:
        return _BASE_URLS[self]

    @classmethod
    def from_code(cls, code: str) -> "Provider":
        """
        Return the provider for a code.

        Raises:
            UnknownProviderCode: when nothing matches; there is no fallback.
        """
        for provider in cls:
            if provider.value == code:
                return provider
        raise UnknownProviderCode(code)

    def __str__(self) -> str:
        return self.value


_BASE_URLS: Dict[Provider, str] = {
    Provider.ADOPTOPENJDK: "https://api.adoptopenjdk.net/v3",
    Provider.AZUL: "https://api.azul.com/zulu/download/community/v1.0",
}


def as_code(provider: Provider) -> str:
    return provider.code


def from_code(code: str) -> Provider:
    return Provider.from_code(code)


# ──────────────────────────────────────────────
#  Platform detection
# ──────────────────────────────────────────────

# platform.system() → provider OS identifier
_OS_MAP: Dict[Provider, Dict[str, str]] = {
    Provider.ADOPTOPENJDK: {"Linux": "linux", "Darwin": "mac", "Windows": "windows"},
    Provider.AZUL: {"Linux": "linux", "Darwin": "macos", "Windows": "windows"},
}

# platform.machine() → provider arch identifier
_ARCH_MAP: Dict[Provider, Dict[str, str]] = {
    Provider.ADOPTOPENJDK: {
        "x86_64": "x64",
        "AMD64": "x64",
        "x86": "x32",
        "i686": "x32",
        "i386": "x32",
        "aarch64": "aarch64",
        "arm64": "aarch64",
        "armv7l": "arm",
    },
    Provider.AZUL: {
        "x86_64": "x86",
        "AMD64": "x86",
        "x86": "x86",
        "i686": "x86",
        "i386": "x86",
        "aarch64": "arm",
        "arm64": "arm",
        "armv7l": "arm",
    },
}

_FALLBACK_OS = "linux"
_FALLBACK_ARCH: Dict[Provider, str] = {
    Provider.ADOPTOPENJDK: "x64",
    Provider.AZUL: "x86",
}


def detect_os(provider: Provider, system: Optional[str] = None) -> str:
    """Map the running OS (or *system*) to the provider's identifier."""
    system = system or platform.system()
    return _OS_MAP[provider].get(system, _FALLBACK_OS)


def detect_arch(provider: Provider, machine: Optional[str] = None) -> str:
    """Map the running CPU (or *machine*) to the provider's identifier."""
    machine = machine or platform.machine()
    return _ARCH_MAP[provider].get(machine, _FALLBACK_ARCH[provider])


def default_filters(provider: Provider) -> Dict[str, str]:
    """Return the provider's fallback value for every requirement it uses."""
    if provider is Provider.ADOPTOPENJDK:
        return {
            "arch": detect_arch(provider),
            "image_type": "jdk",
            "jvm_impl": "hotspot",
            "heap_size": "normal",
            "release_type": "ga",
            "vendor": "adoptopenjdk",
            "project": "jdk",
            "os": detect_os(provider),
        }
    if provider is Provider.AZUL:
        return {
            "arch": detect_arch(provider),
            "image_type": "jdk",
            "release_type": "ga",
            "os": detect_os(provider),
        }
    raise UnknownProviderCode(str(provider))


# ──────────────────────────────────────────────
#  Version requirements
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class VersionRequirements:
    """
    Filter bag narrowing which build a provider returns.

    Every field is optional; unset fields are filled from the provider's
    defaults by :meth:`resolve`, which never mutates the instance.
    """

    arch: Optional[str] = None
    image_type: Optional[str] = None
    jvm_impl: Optional[str] = None
    heap_size: Optional[str] = None
    release_type: Optional[str] = None
    vendor: Optional[str] = None
    project: Optional[str] = None
    os: Optional[str] = None

    def resolve(self, provider: Provider) -> Dict[str, str]:
        """Return provider defaults overlaid with the fields set here."""
        resolved = default_filters(provider)
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                resolved[f.name] = value
        return resolved
