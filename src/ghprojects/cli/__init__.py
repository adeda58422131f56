"""ghprojects CLI.

Package structure:
    cli/
    ├── __init__.py           # This file - app assembly
    ├── helpers.py            # Global CLI state, settings and logging setup
    ├── output.py             # Rich formatting
    └── commands/
        ├── __init__.py       # Command exports
        ├── demo.py           # demo command (interactive view, in-memory backend)
        ├── classify.py       # classify command
        └── defaults.py       # defaults list / clear
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, get_args

import typer

from ghprojects import __version__
from ghprojects.core.logging import LogFormat, LogLevel

# Re-export helpers module for direct access to global CLI state
from . import helpers as helpers
from .commands import classify, defaults_app, demo
from .helpers import set_log_file, set_log_format, set_log_level, set_settings_path
from .output import console

# =============================================================================
# Typer app definition
# =============================================================================

app = typer.Typer(
    name="ghprojects",
    help="Terminal client for GitHub Projects",
    add_completion=False,
)


# =============================================================================
# Global option callbacks
# =============================================================================


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"ghprojects v{__version__}")
        raise typer.Exit()


def log_level_callback(value: str | None) -> str | None:
    if value:
        if value.upper() not in get_args(LogLevel):
            raise typer.BadParameter(
                f"must be one of {', '.join(get_args(LogLevel))}, got '{value}'"
            )
        set_log_level(value)
    return value


def log_file_callback(value: Path | None) -> Path | None:
    if value:
        set_log_file(value)
    return value


def log_format_callback(value: str | None) -> str | None:
    if value:
        if value.lower() not in get_args(LogFormat):
            raise typer.BadParameter(
                f"must be one of {', '.join(get_args(LogFormat))}, got '{value}'"
            )
        set_log_format(value)
    return value


def config_callback(value: Path | None) -> Path | None:
    if value:
        set_settings_path(value)
    return value


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            callback=log_level_callback,
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="GHPROJECTS_LOG_LEVEL",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            callback=log_file_callback,
            help="Path for log file output",
            envvar="GHPROJECTS_LOG_FILE",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            callback=log_format_callback,
            help="Log format: json, console, or both",
            envvar="GHPROJECTS_LOG_FORMAT",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            callback=config_callback,
            help="Settings file (YAML); defaults to $GHPROJECTS_CONFIG",
        ),
    ] = None,
) -> None:
    """ghprojects - browse and edit GitHub Projects from the terminal."""
    # Logging is configured by each command once settings are loaded


# =============================================================================
# Command registration
# =============================================================================

app.command()(demo)
app.command()(classify)
app.add_typer(defaults_app)


__all__ = [
    "app",
    "main",
    "console",
]
