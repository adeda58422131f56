"""Shared utilities for ghprojects CLI commands.

Holds the global CLI state set by the app callback (logging options and
the settings file path) and the helpers commands use to act on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import typer
from rich.console import Console

from ghprojects.core.config import AppSettings, PreferenceStore
from ghprojects.core.logging import configure_logging, get_logger
from ghprojects.exceptions import SettingsError

_logger = get_logger("cli")


class ErrorMessages:
    """Constants for CLI error messages."""

    SETTINGS_LOAD_ERROR = "Error loading settings"
    SESSION_ERROR = "Could not start session"
    NO_DEFAULT = "No default repository set for project"


# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """Logging options given on the command line.

    ``None`` means "not given": the value from the settings file applies.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None
    file: Path | None = None
    format: Literal["json", "console", "both"] | None = None
    configured: bool = False


_log_config = CliLoggingConfig()
_settings_path: Path | None = None


def set_log_level(level: str) -> None:
    _log_config.level = level.upper()  # type: ignore[assignment]


def set_log_file(path: Path | None) -> None:
    _log_config.file = path


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt.lower()  # type: ignore[assignment]


def set_settings_path(path: Path | None) -> None:
    global _settings_path
    _settings_path = path


def load_settings(console: Console) -> AppSettings:
    """Load settings from --config, $GHPROJECTS_CONFIG, or defaults.

    Raises:
        typer.Exit: If a settings file is given but invalid.
    """
    try:
        return AppSettings.load(_settings_path)
    except SettingsError as e:
        console.print(f"[red]{ErrorMessages.SETTINGS_LOAD_ERROR}:[/red] {e}")
        raise typer.Exit(2) from None


def open_preferences(path: Path | None, settings: AppSettings) -> PreferenceStore:
    """Open the preference store at ``path`` or the configured location."""
    return PreferenceStore.open(path or settings.preferences_path)


def configure_global_logging(console: Console, settings: AppSettings | None = None) -> None:
    """Configure logging from CLI options, falling back to settings.

    Only configures once per session.

    Raises:
        typer.Exit: If the logging options are inconsistent.
    """
    if _log_config.configured:
        return
    log = (settings or AppSettings()).log

    try:
        configure_logging(
            level=_log_config.level or log.level,
            format=_log_config.format or log.format,
            file_path=_log_config.file or log.file,
        )
        _log_config.configured = True
    except ValueError as e:
        # format="both" without a file
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(1) from None


def reset_cli_state() -> None:
    """Reset global CLI state (primarily for testing)."""
    global _log_config, _settings_path
    _log_config = CliLoggingConfig()
    _settings_path = None
