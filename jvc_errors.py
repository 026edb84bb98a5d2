"""
jvc_errors.py
=============
Exception hierarchy shared by every jvc module.

All failures are terminal for the running command: nothing here is
retried internally, the command layer reports the message and exits
non-zero.
"""

from __future__ import annotations

from typing import Optional


class JvcError(Exception):
    """Base class for all jvc failures."""


# ──────────────────────────────────────────────
#  Identity / registry
# ──────────────────────────────────────────────

class UnknownProviderCode(JvcError, ValueError):
    """Raised when a provider code does not match any known backend."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Unknown provider code: {code!r}")
        self.code = code


class VersionDecodeError(JvcError, ValueError):
    """Raised when a directory name is not a valid disk-encoded version."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Cannot decode version from {name!r}: {reason}")
        self.name = name
        self.reason = reason


# ──────────────────────────────────────────────
#  Package clients
# ──────────────────────────────────────────────

class NetworkError(JvcError):
    """Transport failure or unexpected HTTP status from a provider API."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class SchemaError(JvcError):
    """Provider response did not have the expected shape."""


class ResolutionError(JvcError):
    """No downloadable candidate, or a required redirect hop is missing."""


class StorageError(JvcError):
    """Reading or writing a local file failed."""


# ──────────────────────────────────────────────
#  Archives
# ──────────────────────────────────────────────

class UnsupportedArchiveKind(JvcError):
    """Raised when the artifact's extension is neither zip nor gz."""

    def __init__(self, filename: str) -> None:
        super().__init__(f"Unsupported archive type: {filename!r}")
        self.filename = filename


class ArchiveCorrupt(JvcError):
    """The archive could not be decoded."""


class DirectoryContractViolation(JvcError):
    """The unpacked archive does not have exactly one top-level directory."""


# ──────────────────────────────────────────────
#  Installations / aliases
# ──────────────────────────────────────────────

class VersionNotInstalled(JvcError):
    """No installed version matches the requested number."""


class VersionNotAvailable(JvcError):
    """The provider does not list the requested version."""


class VersionAlreadyInstalled(JvcError):
    """An installation for the requested number already exists."""


class InvalidAliasName(JvcError):
    """Alias names must not look like a version number."""


class AliasNotFound(JvcError):
    """The alias used as a rebind source does not exist."""
