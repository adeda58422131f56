"""Default repository commands for the ghprojects CLI.

Subcommands:
- `ghprojects defaults list`               - Show remembered repositories
- `ghprojects defaults clear PROJECT_ID`   - Forget one project's default
"""

from __future__ import annotations

from pathlib import Path

import typer

from ghprojects.exceptions import PreferencesError

from ..helpers import ErrorMessages, configure_global_logging, load_settings, open_preferences
from ..output import console, create_defaults_table, output_error

defaults_app = typer.Typer(
    name="defaults",
    help="Inspect and clear remembered default repositories.",
    no_args_is_help=True,
)

_PREFERENCES_OPTION = typer.Option(
    None,
    "--preferences",
    "-p",
    help="Preferences file (default: ~/.config/ghprojects/config.json)",
)


@defaults_app.command(name="list")
def list_defaults(preferences: Path | None = _PREFERENCES_OPTION) -> None:
    """List default repositories per project."""
    settings = load_settings(console)
    configure_global_logging(console, settings)
    store = open_preferences(preferences, settings)

    defaults = store.defaults
    if not defaults:
        console.print("[dim]No default repositories set.[/dim]")
        return
    console.print(create_defaults_table(defaults))


@defaults_app.command(name="clear")
def clear_default(
    project_id: str = typer.Argument(..., help="Project node id"),
    preferences: Path | None = _PREFERENCES_OPTION,
) -> None:
    """Forget the default repository of a project."""
    settings = load_settings(console)
    configure_global_logging(console, settings)
    store = open_preferences(preferences, settings)

    if not store.clear_default_repository(project_id):
        output_error(f"{ErrorMessages.NO_DEFAULT} {project_id}")
        raise typer.Exit(1)
    try:
        store.save()
    except PreferencesError as e:
        output_error(str(e))
        raise typer.Exit(1) from None
    console.print(f"[green]✓[/green] Cleared default repository for {project_id}")
