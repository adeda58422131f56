"""Rich output helpers for the ghprojects CLI."""

from __future__ import annotations

from collections.abc import Mapping

from rich.console import Console
from rich.table import Table

from ghprojects.core.errors import Outcome
from ghprojects.ui.render import KindStyles

# Commands should print through this console so tests can capture it
console = Console()


def create_outcome_table(outcome: Outcome) -> Table:
    """Two-column table describing a classified failure."""
    color = KindStyles.COLORS[outcome.kind]
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Kind", f"[{color}]{outcome.kind.value}[/{color}]")
    table.add_row("Retryable", "yes" if outcome.retryable else "no")
    if outcome.retry_after is not None:
        table.add_row("Retry after", f"{outcome.retry_after:g}s")
    if outcome.field_errors:
        for name, problem in sorted(outcome.field_errors.items()):
            table.add_row(f"Field '{name}'", problem)
    table.add_row("Message", outcome.user_message())
    return table


def create_defaults_table(defaults: Mapping[str, str]) -> Table:
    table = Table(title="Default repositories")
    table.add_column("Project", style="cyan")
    table.add_column("Repository")
    for project_id, repository_id in sorted(defaults.items()):
        table.add_row(project_id, repository_id)
    return table


def output_error(message: str, hints: list[str] | None = None) -> None:
    """Print an error line with optional hints."""
    console.print(f"[red]Error:[/red] {message}")
    for hint in hints or []:
        console.print(f"  [dim]Hint:[/dim] {hint}")
