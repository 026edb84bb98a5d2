"""
jvc_config.py
=============
Runtime configuration and on-disk layout.

Values are resolved in order: command-line flag, environment variable
(``JVC_DIR``, ``JVC_PROVIDER``, ``JVC_LOGLEVEL``), ``config.json`` in the
state root, built-in default.

Layout under the state root (default ``~/.jvc``)::

    java-versions/<disk-encoded-version>/installation/...
    java-versions/.downloads/        purged on every run
    aliases/<alias-name>             symlink
    aliases/default                  reserved alias
    logs/jvc.log
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from java_installations import DOWNLOADS_DIR_NAME
from java_providers import Provider
from jvc_errors import StorageError

logger = logging.getLogger(__name__)

ENV_DIR = "JVC_DIR"
ENV_PROVIDER = "JVC_PROVIDER"
ENV_LOGLEVEL = "JVC_LOGLEVEL"

CONFIG_FILE_NAME = "config.json"
DEFAULT_DIR_NAME = ".jvc"


# ──────────────────────────────────────────────
#  Log level
# ──────────────────────────────────────────────

class LogLevel(str, Enum):
    """Log levels accepted on the command line."""

    DEBUG = "debug"
    INFO = "info"
    ERROR = "error"
    SILENT = "silent"

    @classmethod
    def parse(cls, text: str) -> "LogLevel":
        """Parse a level name; ``all`` and ``quiet`` are aliases."""
        name = text.strip().lower()
        name = {"all": "debug", "quiet": "silent"}.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"Cannot get log level for: {text!r}") from None

    @property
    def logging_level(self) -> int:
        return {
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.INFO: logging.INFO,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.SILENT: logging.CRITICAL + 1,
        }[self]


# ──────────────────────────────────────────────
#  Configuration
# ──────────────────────────────────────────────

@dataclass
class JvcConfig:
    """Resolved configuration for one jvc invocation."""

    base_dir: Path
    provider: Provider = Provider.ADOPTOPENJDK
    log_level: LogLevel = LogLevel.INFO

    @classmethod
    def resolve(
        cls,
        base_dir: Optional[str | Path] = None,
        provider: Optional[str] = None,
        log_level: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "JvcConfig":
        """
        Build the configuration from flags, environment and config.json.

        Raises:
            UnknownProviderCode: the selected provider code is not known
        """
        env = os.environ if env is None else env

        root = base_dir or env.get(ENV_DIR) or Path.home() / DEFAULT_DIR_NAME
        root = Path(root).expanduser()
        file_config = load_config_file(root / CONFIG_FILE_NAME)

        provider_code = provider or env.get(ENV_PROVIDER) or file_config.get("provider")
        level_text = log_level or env.get(ENV_LOGLEVEL) or file_config.get("log_level")

        level = LogLevel.INFO
        if level_text:
            try:
                level = LogLevel.parse(str(level_text))
            except ValueError as exc:
                logger.warning("%s. Using default log level.", exc)

        return cls(
            base_dir=root,
            provider=Provider.from_code(provider_code) if provider_code else Provider.ADOPTOPENJDK,
            log_level=level,
        )

    # ── Layout ─────────────────────────────────

    @property
    def installation_dir(self) -> Path:
        return self.base_dir / "java-versions"

    @property
    def download_dir(self) -> Path:
        return self.installation_dir / DOWNLOADS_DIR_NAME

    @property
    def aliases_dir(self) -> Path:
        return self.base_dir / "aliases"

    @property
    def default_alias_path(self) -> Path:
        return self.aliases_dir / "default"

    @property
    def log_file(self) -> Path:
        return self.base_dir / "logs" / "jvc.log"

    def ensure_directories(self) -> None:
        """Create every directory of the layout."""
        for d in (self.installation_dir, self.download_dir, self.aliases_dir, self.log_file.parent):
            try:
                d.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageError(f"Cannot create {d}: {exc}") from exc

    def clean_up_downloads_dir(self) -> None:
        """Remove everything under the downloads dir and recreate it empty."""
        download_dir = self.download_dir
        try:
            if download_dir.exists():
                shutil.rmtree(download_dir)
            download_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot clean up {download_dir}: {exc}") from exc
        logger.debug("Downloads dir %s purged", download_dir)


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load config.json; a missing or broken file yields an empty dict."""
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not load %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", path)
        return {}
    logger.debug("Config loaded from %s", path)
    return data
