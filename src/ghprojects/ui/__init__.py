"""Interactive view: state, transition table, state machine and renderer."""

from ghprojects.ui.controller import ViewStateMachine
from ghprojects.ui.reducer import Transition, reduce
from ghprojects.ui.render import build_renderable, render_text
from ghprojects.ui.state import Screen, Snapshot, ViewState

__all__ = [
    "Screen",
    "Snapshot",
    "Transition",
    "ViewState",
    "ViewStateMachine",
    "build_renderable",
    "reduce",
    "render_text",
]
