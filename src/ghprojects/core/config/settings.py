"""Application settings.

Settings are read from an optional YAML file (``--config`` or the
``GHPROJECTS_CONFIG`` environment variable) and validated with pydantic.
Every field has a default, so an absent file means default behaviour.

Example file::

    retry:
      max_attempts: 4
      base_delay: 0.5
      max_delay: 8
    page_size: 50
    log:
      level: DEBUG
      file: ~/.local/state/ghprojects/debug.log
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from ghprojects.core.config.retry import RetryPolicy
from ghprojects.core.constants import (
    CONFIG_DIR_NAME,
    CONFIG_ENV_VAR,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SEARCH_LIMIT,
    MIN_SEARCH_CHARS,
    PREFERENCES_FILE_NAME,
)
from ghprojects.core.logging import get_logger
from ghprojects.exceptions import SettingsError

_logger = get_logger("config.settings")


def default_config_dir() -> Path:
    """``~/.config/ghprojects``; not created until something is saved there."""
    return Path.home() / ".config" / CONFIG_DIR_NAME


class LogSettings(BaseModel):
    """Logging configuration for the interactive session."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["json", "console", "both"] = "console"
    file: Path | None = Field(
        default=None,
        description="Log file; required for format 'both'. The TUI owns stdout.",
    )


class AppSettings(BaseModel):
    """Top-level settings for ghprojects."""

    retry: RetryPolicy = Field(
        default_factory=RetryPolicy,
        description="Policy applied to every remote operation",
    )
    search_retry: RetryPolicy = Field(
        default_factory=RetryPolicy.single_attempt,
        description="Policy for assignee suggestions; must not stall typing",
    )
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=100)
    search_limit: int = Field(default=DEFAULT_SEARCH_LIMIT, ge=1, le=50)
    min_search_chars: int = Field(default=MIN_SEARCH_CHARS, ge=1)
    preferences_path: Path = Field(
        default_factory=lambda: default_config_dir() / PREFERENCES_FILE_NAME,
        description="JSON file holding per-project default repositories",
    )
    log: LogSettings = Field(default_factory=LogSettings)

    @classmethod
    def from_yaml(cls, path: Path) -> AppSettings:
        """Load settings from a YAML file.

        Raises:
            SettingsError: If the file cannot be read, is not a mapping, or
                fails validation.
        """
        try:
            raw = yaml.safe_load(path.expanduser().read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise SettingsError(f"cannot read settings file {path}: {e}") from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise SettingsError(f"settings file {path} must contain a mapping")

        try:
            settings = cls.model_validate(raw)
        except ValidationError as e:
            raise SettingsError(f"invalid settings in {path}: {e}") from e

        _logger.debug("settings_loaded", path=str(path))
        return settings

    @classmethod
    def load(cls, path: Path | None = None) -> AppSettings:
        """Load from ``path``, else from $GHPROJECTS_CONFIG, else defaults."""
        if path is None:
            env_path = os.environ.get(CONFIG_ENV_VAR)
            if env_path:
                path = Path(env_path)
        if path is None:
            return cls()
        return cls.from_yaml(path)
