"""Classify command for the ghprojects CLI.

Runs the ordered classification rules on a raw failure message, which is
handy when deciding why a remote error surfaced the way it did.
"""

from __future__ import annotations

import typer

from ghprojects.core.errors import ErrorClassifier

from ..helpers import configure_global_logging
from ..output import console, create_outcome_table


def classify(
    message: str = typer.Argument(..., help="Raw failure message"),
    status: int | None = typer.Option(
        None,
        "--status",
        "-s",
        help="HTTP status code of the failed call",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the outcome as JSON",
    ),
) -> None:
    """Show how a failure message (and optional HTTP status) is classified."""
    configure_global_logging(console)

    outcome = ErrorClassifier().classify(message, status)
    assert outcome is not None

    if json_output:
        console.print_json(data=outcome.to_dict())
        return
    console.print(create_outcome_table(outcome))
