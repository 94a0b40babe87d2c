"""
Configuration loader — reads wpstack.yml and answers files into models.

Two kinds of YAML are read here:

    - the host settings file (``wpstack.yml``), optional, non-secret;
    - an answers file, which replaces the interactive gathering phase
      with a pre-filled ``SiteConfig``.

Both are validated against their Pydantic schemas and surfaced as
``ConfigError`` when missing or invalid.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from wpstack.core.errors import ConfigError
from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings

logger = logging.getLogger(__name__)

# Default settings filename
SETTINGS_FILE = "wpstack.yml"
SYSTEM_SETTINGS_PATH = Path("/etc/wpstack") / SETTINGS_FILE


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Locate the settings file: working directory first, then /etc.

    Returns:
        Path to wpstack.yml, or None if not found.
    """
    candidate = (start_dir or Path.cwd()) / SETTINGS_FILE
    if candidate.is_file():
        return candidate
    if SYSTEM_SETTINGS_PATH.is_file():
        return SYSTEM_SETTINGS_PATH
    return None


def _read_mapping(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        where = ".".join(str(p) for p in item.get("loc", ())) or "record"
        parts.append(f"{where}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


def load_settings(path: Path | None = None) -> HostSettings:
    """Load host settings.

    Args:
        path: Explicit path to wpstack.yml. If None, searches the
            usual locations and falls back to defaults.

    Raises:
        ConfigError: If an explicit file is missing or any file is invalid.
    """
    if path is None:
        path = find_settings_file()
    if path is None:
        logger.debug("No %s found, using default host settings", SETTINGS_FILE)
        return HostSettings()

    data = _read_mapping(path)
    # The YAML may wrap everything under a "host" key or be flat
    if isinstance(data.get("host"), dict):
        data = data["host"]

    try:
        settings = HostSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid host settings in {path}: {_describe(e)}") from e

    logger.info("Loaded host settings from %s (root=%s)", path, settings.root)
    return settings


def load_answers(path: Path) -> SiteConfig:
    """Build the configuration model from an answers file.

    The answers file carries the same fields the interactive prompts
    ask for; it is validated by the same rules.

    Raises:
        ConfigError: If the file is missing or any answer is invalid.
    """
    data = _read_mapping(path)
    if isinstance(data.get("site"), dict):
        data = data["site"]

    try:
        config = SiteConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid answers in {path}: {_describe(e)}") from e

    logger.info("Loaded answers for %s from %s", config.domain, path)
    return config
