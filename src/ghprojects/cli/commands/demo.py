"""Demo command for the ghprojects CLI.

Runs the interactive view against the in-memory backend. Input is line
oriented: each line holds space-separated key tokens (``down``, ``enter``,
``ctrl+s``, ``esc``, ...), a line starting with ``:`` types its remaining
characters literally, and an empty line is ``enter``. End of input stops
the session.
"""

from __future__ import annotations

import asyncio
import sys
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

import typer
from rich.rule import Rule

from ghprojects.api.memory import build_demo_api
from ghprojects.core.config import AppSettings, PreferenceStore
from ghprojects.exceptions import SessionError
from ghprojects.ui.controller import ViewStateMachine
from ghprojects.ui.events import KeyEvent
from ghprojects.ui.render import build_renderable
from ghprojects.ui.state import Snapshot

from ..helpers import ErrorMessages, configure_global_logging, load_settings, open_preferences
from ..output import console, output_error


def parse_input_line(line: str) -> list[KeyEvent]:
    """Translate one input line into key events."""
    line = line.rstrip("\n")
    if line.startswith(":"):
        return [KeyEvent("space" if ch == " " else ch) for ch in line[1:]]
    tokens = line.split()
    if not tokens:
        return [KeyEvent("enter")]
    return [KeyEvent(token) for token in tokens]


def _read_input(
    stream: TextIO,
    loop: asyncio.AbstractEventLoop,
    machine: ViewStateMachine,
) -> None:
    """Reader thread: post key events until end of input."""
    try:
        for line in stream:
            for event in parse_input_line(line):
                loop.call_soon_threadsafe(machine.post, event)
        loop.call_soon_threadsafe(machine.stop)
    except RuntimeError:
        # The loop closed after a quit; remaining input is ignored
        return


def _render(snapshot: Snapshot) -> None:
    console.print(Rule(snapshot.active_state.value.replace("_", " "), style="dim"))
    console.print(build_renderable(snapshot))


async def run_session(
    machine: ViewStateMachine,
    stream: TextIO,
    render: Callable[[Snapshot], None] = _render,
) -> None:
    """Bootstrap, start the input reader and run the loop until quit."""
    await machine.bootstrap()
    loop = asyncio.get_running_loop()
    reader = threading.Thread(
        target=_read_input,
        args=(stream, loop, machine),
        name="ghprojects-input",
        daemon=True,
    )
    reader.start()
    await machine.run(render=render)


def demo(
    latency: float = typer.Option(
        0.2,
        "--latency",
        min=0.0,
        help="Simulated seconds per remote call",
    ),
    preferences: Path | None = typer.Option(
        None,
        "--preferences",
        "-p",
        help="Preferences file for remembered repositories",
    ),
) -> None:
    """Browse a seeded in-memory GitHub account interactively."""
    settings: AppSettings = load_settings(console)
    configure_global_logging(console, settings)
    store: PreferenceStore = open_preferences(preferences, settings)

    api = build_demo_api(latency=latency)

    async def _main() -> None:
        machine = ViewStateMachine(
            lambda: api,
            settings=settings,
            preferences=store,
            open_url=lambda url: console.print(f"[dim]Would open {url}[/dim]"),
        )
        await run_session(machine, sys.stdin)

    try:
        asyncio.run(_main())
    except SessionError as e:
        output_error(f"{ErrorMessages.SESSION_ERROR}: {e}")
        raise typer.Exit(1) from None
