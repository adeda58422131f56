"""Rich rendering of view snapshots.

``build_renderable(snapshot)`` turns a Snapshot into a rich renderable and
``render_text(snapshot)`` captures it as plain text. Both are pure: they
read only the snapshot.
"""

from __future__ import annotations

import io
from collections.abc import Callable
from typing import Any

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ghprojects.core.errors import ErrorKind, Outcome
from ghprojects.models import ItemType
from ghprojects.ui.state import CreatorState, EditorState, Screen, SelectorState, Snapshot

# =============================================================================
# Styles
# =============================================================================


class KindStyles:
    """Overlay icon and color per error kind."""

    ICONS: dict[ErrorKind, str] = {
        ErrorKind.RATE_LIMIT: "⏱",
        ErrorKind.PERMISSION: "🔒",
        ErrorKind.VALIDATION: "⚠",
        ErrorKind.CONFLICT: "⚠",
        ErrorKind.TRANSIENT: "🔄",
        ErrorKind.CANCELLED: "✋",
        ErrorKind.PARTIAL_SUCCESS: "⚠",
        ErrorKind.UNKNOWN: "❌",
    }

    COLORS: dict[ErrorKind, str] = {
        ErrorKind.RATE_LIMIT: "yellow",
        ErrorKind.PERMISSION: "red",
        ErrorKind.VALIDATION: "yellow",
        ErrorKind.CONFLICT: "magenta",
        ErrorKind.TRANSIENT: "cyan",
        ErrorKind.CANCELLED: "dim",
        ErrorKind.PARTIAL_SUCCESS: "yellow",
        ErrorKind.UNKNOWN: "red",
    }


ITEM_TYPE_LABELS: dict[ItemType, str] = {
    ItemType.ISSUE: "Issue",
    ItemType.PULL_REQUEST: "Pull request",
    ItemType.DRAFT_ISSUE: "Draft",
}

SCREEN_HINTS: dict[Screen, str] = {
    Screen.LOADING: "esc cancel",
    Screen.OWNER_SELECTION: "↑/↓ move • enter select • ? help • q quit",
    Screen.PROJECT_LIST: "↑/↓ move • enter open • n new project • esc owners • ? help • q quit",
    Screen.PROJECT_DETAIL: "enter open • n new • e edit • d delete • r refresh • esc back",
    Screen.ITEM_DETAIL: "e edit • d delete • c convert • o open in browser • esc back",
    Screen.ITEM_EDITOR: "tab next field • ctrl+s save • esc cancel",
    Screen.PROJECT_CREATOR: "tab next field • space toggle public • ctrl+s create • esc cancel",
    Screen.REPOSITORY_SELECTOR: "type to filter • ↑/↓ move • enter convert • ctrl+d save as default",
    Screen.HELP: "esc back",
}

HELP_TEXT = """\
Navigation
  ↑/↓ or k/j     Move selection
  enter          Open / select
  esc            Back (or dismiss an error)
  ?              Toggle this help
  q or ctrl+c    Quit (from owner and project lists)
  ctrl+d         Toggle debug mode

Project
  n              New draft issue
  e              Edit item
  d              Delete item
  r              Refresh items

Item
  c              Convert draft to issue
  o              Open in browser

Editor
  tab            Next field
  ctrl+s         Save
"""


# =============================================================================
# Screens
# =============================================================================


def _cursor_table(rows: list[tuple[str, ...]], cursor: int, headers: tuple[str, ...]) -> Table:
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("", width=1)
    for header in headers:
        table.add_column(header)
    for index, row in enumerate(rows):
        marker = "›" if index == cursor else " "
        table.add_row(marker, *row, style="reverse" if index == cursor else None)
    return table


def _owners(data: dict[str, Any]) -> RenderableType:
    owners = data["owners"]
    rows = [(owner, "user" if i == 0 else "organization") for i, owner in enumerate(owners)]
    return Panel(_cursor_table(rows, data["cursor"], ("Owner", "Type")), title="Select owner")


def _projects(data: dict[str, Any]) -> RenderableType:
    projects = data["projects"]
    if not projects:
        body: RenderableType = Text("No projects.", style="dim")
    else:
        rows = [
            (f"#{p.number}", p.title, str(p.item_count), "public" if p.public else "private")
            for p in projects
        ]
        body = _cursor_table(rows, data["cursor"], ("No.", "Title", "Items", "Visibility"))
    return Panel(body, title=f"Projects of {data['owner']}")


def _items(data: dict[str, Any]) -> RenderableType:
    project = data["project"]
    items = data["items"]
    if not items:
        body: RenderableType = Text("No items. Press n to add a draft.", style="dim")
    else:
        rows = [
            (
                ITEM_TYPE_LABELS[i.type],
                i.title,
                i.state or "-",
                ", ".join(f"@{a}" for a in i.assignees),
            )
            for i in items
        ]
        body = _cursor_table(rows, data["cursor"], ("Type", "Title", "State", "Assignees"))
    return Panel(body, title=project.title if project else "Project")


def _item(data: dict[str, Any]) -> RenderableType:
    item = data["item"]
    if item is None:
        return Text("No item selected.", style="dim")
    meta = [f"Type: {ITEM_TYPE_LABELS[item.type]}"]
    if item.state:
        meta.append(f"State: {item.state}")
    if item.number > 0:
        meta.append(f"#{item.number}")
    lines: list[RenderableType] = [Text(" • ".join(meta), style="dim")]
    if item.assignees:
        lines.append(Text("Assignees: " + ", ".join(f"@{a}" for a in item.assignees)))
    if item.body:
        lines.append(Text("Description:", style="bold"))
        lines.append(Text(item.body))
    if item.url:
        lines.append(Text(item.url, style="underline"))
    return Panel(Group(*lines), title=item.title)


def _field(label: str, value: str, focused: bool, error: str | None = None) -> Text:
    text = Text(f"{label}: ", style="bold" if focused else "")
    text.append(value + ("▏" if focused else ""))
    if error:
        text.append(f"  ({error})", style="red")
    return text


def _editor(data: dict[str, Any]) -> RenderableType:
    editor: EditorState | None = data["editor"]
    if editor is None:
        return Text("")
    lines: list[RenderableType] = [
        _field("Title", editor.title, editor.focus == "title", editor.field_errors.get("title")),
        _field("Body", editor.body, editor.focus == "body"),
        _field(
            "Assignee",
            editor.assignee,
            editor.focus == "assignee",
            editor.field_errors.get("assignee"),
        ),
    ]
    for index, login in enumerate(editor.suggestions):
        selected = index == editor.suggestion_index
        marker = "›" if selected else " "
        lines.append(Text(f"  {marker} @{login}", style="cyan" if selected else "dim"))
    return Panel(Group(*lines), title="New draft issue" if editor.is_new else "Edit item")


def _creator(data: dict[str, Any]) -> RenderableType:
    creator: CreatorState | None = data["creator"]
    if creator is None:
        return Text("")
    lines = [
        _field("Title", creator.title, creator.focus == "title"),
        _field("Description", creator.description, creator.focus == "description"),
        _field("Public", "[x]" if creator.public else "[ ]", creator.focus == "public"),
    ]
    return Panel(Group(*lines), title=f"New project for {data['owner']}")


def _selector(data: dict[str, Any]) -> RenderableType:
    selector: SelectorState | None = data["selector"]
    if selector is None:
        return Text("")
    visible = selector.filtered
    rows = [(r.full_name, r.description) for r in visible]
    parts: list[RenderableType] = [Text(f"Filter: {selector.filter}▏")]
    if rows:
        parts.append(_cursor_table(rows, selector.cursor, ("Repository", "Description")))
    else:
        parts.append(Text("No matching repositories.", style="dim"))
    parts.append(Text(f"[{'x' if selector.save_as_default else ' '}] save as default"))
    return Panel(Group(*parts), title="Convert to issue in...")


def _help(data: dict[str, Any]) -> RenderableType:
    return Panel(Text(HELP_TEXT), title="Help")


def _loading(data: dict[str, Any]) -> RenderableType:
    return Text("")


_SCREEN_RENDERERS: dict[Screen, Callable[[dict[str, Any]], RenderableType]] = {
    Screen.LOADING: _loading,
    Screen.OWNER_SELECTION: _owners,
    Screen.PROJECT_LIST: _projects,
    Screen.PROJECT_DETAIL: _items,
    Screen.ITEM_DETAIL: _item,
    Screen.ITEM_EDITOR: _editor,
    Screen.PROJECT_CREATOR: _creator,
    Screen.REPOSITORY_SELECTOR: _selector,
    Screen.HELP: _help,
}


# =============================================================================
# Public API
# =============================================================================


def format_overlay(outcome: Outcome) -> Text:
    """One-line overlay text: kind icon plus the user message."""
    color = KindStyles.COLORS[outcome.kind]
    return Text(f"{KindStyles.ICONS[outcome.kind]} {outcome.user_message()}", style=color)


def build_renderable(snapshot: Snapshot) -> RenderableType:
    """Compose the screen, loading line, overlay and debug panel."""
    screen = _SCREEN_RENDERERS[snapshot.active_state](dict(snapshot.visible_data))
    parts: list[RenderableType] = [screen]
    if snapshot.loading_message:
        parts.append(Text(f"⠋ {snapshot.loading_message}", style="blue"))
    if snapshot.error_overlay is not None:
        outcome = snapshot.error_overlay
        parts.append(
            Panel(
                format_overlay(outcome),
                title="Warning" if outcome.kind.is_warning else "Error",
                subtitle="esc to continue",
                border_style=KindStyles.COLORS[outcome.kind],
            )
        )
    if snapshot.debug:
        debug = Table(show_header=False, box=None)
        for key, value in snapshot.debug.items():
            debug.add_row(Text(key, style="dim"), Text(str(value)))
        parts.append(Panel(debug, title="debug", border_style="dim"))
    parts.append(Text(SCREEN_HINTS[snapshot.active_state], style="dim"))
    return Group(*parts)


def render_text(snapshot: Snapshot, width: int | None = None) -> str:
    """Render ``snapshot`` to plain text."""
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        width=width or int(snapshot.visible_data.get("width", 80)),
        color_system=None,
        force_terminal=False,
        legacy_windows=False,
    )
    console.print(build_renderable(snapshot))
    return buffer.getvalue()
