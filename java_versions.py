"""
java_versions.py
================
Identity of a Java feature version.

A version is written to disk as ``<value>-<provider>`` or
``<value>-lts-<provider>`` (e.g. ``17-lts-adoptopenjdk``); that directory
name is the only thing needed to rebuild it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from java_providers import Provider
from jvc_errors import UnknownProviderCode, VersionDecodeError

LTS_MARKER = "lts"

# Version numbers are small integers (0-255); anything else is a name.
MAX_VERSION_NUMBER = 255
_NUMBER_RE = re.compile(r"\d{1,3}")


def parse_version_number(text: str) -> Optional[int]:
    """Return *text* as a version number, or None if it is not one."""
    if not _NUMBER_RE.fullmatch(text):
        return None
    number = int(text)
    if number > MAX_VERSION_NUMBER:
        return None
    return number


@dataclass(frozen=True)
class JavaVersion:
    """A major Java version offered (or installed) from one provider."""

    value: str                                   # "8", "11", "17", ...
    lts: bool
    provider: Provider
    semver: Optional[str] = field(default=None, compare=False)

    @classmethod
    def new(cls, number: int, lts: bool, provider: Provider) -> "JavaVersion":
        return cls(value=str(number), lts=lts, provider=provider)

    @property
    def number(self) -> int:
        return int(self.value)

    def encode(self) -> str:
        """Return the directory name for this version."""
        if self.lts:
            return f"{self.value}-{LTS_MARKER}-{self.provider.code}"
        return f"{self.value}-{self.provider.code}"

    @classmethod
    def decode(cls, name: str) -> "JavaVersion":
        """
        Rebuild a version from its directory name.

        Raises:
            VersionDecodeError: wrong segment count, a non-numeric value,
                a misplaced LTS marker or an unknown provider code.
        """
        segments = name.split("-")
        if len(segments) == 2:
            value, code = segments
            lts = False
        elif len(segments) == 3 and segments[1] == LTS_MARKER:
            value, _, code = segments
            lts = True
        else:
            raise VersionDecodeError(name, f"unexpected segment layout ({len(segments)} segments)")

        if parse_version_number(value) is None:
            raise VersionDecodeError(name, f"{value!r} is not a version number")
        try:
            provider = Provider.from_code(code)
        except UnknownProviderCode as exc:
            raise VersionDecodeError(name, str(exc)) from exc
        return cls(value=value, lts=lts, provider=provider)

    def __str__(self) -> str:
        return self.value


def encode(version: JavaVersion) -> str:
    return version.encode()


def decode(name: str) -> JavaVersion:
    return JavaVersion.decode(name)


# ──────────────────────────────────────────────
#  Ordering
# ──────────────────────────────────────────────

def numeric_key(version: JavaVersion) -> int:
    """Sort key ordering versions by their numeric value."""
    return version.number


def compare_versions(a: JavaVersion, b: JavaVersion) -> int:
    """Three-way numeric comparison; -1, 0 or 1."""
    return (a.number > b.number) - (a.number < b.number)


def sort_versions(versions: Iterable[JavaVersion]) -> List[JavaVersion]:
    return sorted(versions, key=numeric_key)
