"""The view state aggregate and the read-only snapshot given to renderers.

ViewState is immutable. The reducer returns a new ViewState for every
transition; nothing else ever produces one.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ghprojects.core.constants import MIN_SEARCH_CHARS
from ghprojects.core.errors import Outcome
from ghprojects.models import Project, ProjectItem, Repository


class Screen(str, Enum):
    """The closed set of screens. Exactly one is active."""

    LOADING = "loading"
    OWNER_SELECTION = "owner_selection"
    PROJECT_LIST = "project_list"
    PROJECT_DETAIL = "project_detail"
    ITEM_DETAIL = "item_detail"
    ITEM_EDITOR = "item_editor"
    PROJECT_CREATOR = "project_creator"
    REPOSITORY_SELECTOR = "repository_selector"
    HELP = "help"


EDITOR_FIELDS: tuple[str, ...] = ("title", "body", "assignee")
CREATOR_FIELDS: tuple[str, ...] = ("title", "description", "public")


@dataclass(frozen=True)
class EditorState:
    """Item editor form. ``item`` is None when creating a new draft.

    ``origin`` is the screen the editor was opened from; leaving without
    saving returns there.
    """

    item: ProjectItem | None = None
    origin: Screen = Screen.PROJECT_DETAIL
    title: str = ""
    body: str = ""
    assignee: str = ""
    focus: str = "title"
    suggestions: tuple[str, ...] = ()
    suggestion_index: int = 0
    field_errors: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_new(self) -> bool:
        return self.item is None


@dataclass(frozen=True)
class CreatorState:
    """New-project form."""

    title: str = ""
    description: str = ""
    public: bool = False
    focus: str = "title"


@dataclass(frozen=True)
class SelectorState:
    """Repository selector with type-to-filter."""

    repositories: tuple[Repository, ...] = ()
    filter: str = ""
    cursor: int = 0
    save_as_default: bool = False

    @property
    def filtered(self) -> tuple[Repository, ...]:
        return tuple(r for r in self.repositories if r.matches(self.filter))

    @property
    def selected(self) -> Repository | None:
        visible = self.filtered
        if 0 <= self.cursor < len(visible):
            return visible[self.cursor]
        return None


@dataclass(frozen=True)
class ViewState:
    """Everything the view knows.

    Attributes:
        screen: The active screen.
        resume_screen: Screen a pending request returns to on failure.
        help_return: Screen the help page was opened from.
        overlay: Outcome shown in the error overlay; None when hidden.
        loading_message: Progress text while a request is pending.
        defaults: Project id -> preferred repository id.
        next_request_id: Next id to hand to a dispatch.
        inflight: Slot -> latest request id issued for it.
    """

    screen: Screen = Screen.LOADING
    resume_screen: Screen | None = None
    help_return: Screen | None = None
    overlay: Outcome | None = None
    loading_message: str = "Connecting to GitHub..."

    username: str = ""
    orgs: tuple[str, ...] = ()
    owner: str = ""
    owner_is_user: bool = True

    projects: tuple[Project, ...] = ()
    project: Project | None = None
    items: tuple[ProjectItem, ...] = ()
    item: ProjectItem | None = None
    cursor: int = 0

    editor: EditorState | None = None
    creator: CreatorState | None = None
    selector: SelectorState | None = None

    defaults: Mapping[str, str] = field(default_factory=dict)
    min_search_chars: int = MIN_SEARCH_CHARS

    next_request_id: int = 1
    inflight: Mapping[str, int] = field(default_factory=dict)

    width: int = 80
    height: int = 24
    debug: bool = False
    quitting: bool = False

    @property
    def owners(self) -> tuple[str, ...]:
        """Owner choices: the user first, then organizations."""
        return (self.username, *self.orgs)

    @property
    def is_loading(self) -> bool:
        return self.screen is Screen.LOADING or bool(self.loading_message)

    def selected_project(self) -> Project | None:
        if 0 <= self.cursor < len(self.projects):
            return self.projects[self.cursor]
        return None

    def selected_item(self) -> ProjectItem | None:
        if 0 <= self.cursor < len(self.items):
            return self.items[self.cursor]
        return None

    def latest_request(self, slot: str) -> int | None:
        return self.inflight.get(slot)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            active_state=self.screen,
            visible_data=_visible_data(self),
            error_overlay=self.overlay,
            loading_message=self.loading_message or None,
            debug=_debug_info(self) if self.debug else None,
        )


@dataclass(frozen=True)
class Snapshot:
    """Read-only view handed to the renderer once per render tick."""

    active_state: Screen
    visible_data: Mapping[str, Any]
    error_overlay: Outcome | None = None
    loading_message: str | None = None
    debug: Mapping[str, Any] | None = None


def _visible_data(state: ViewState) -> dict[str, Any]:
    screen = state.screen
    data: dict[str, Any] = {"width": state.width, "height": state.height}
    if screen is Screen.OWNER_SELECTION:
        data.update(owners=state.owners, cursor=state.cursor)
    elif screen is Screen.PROJECT_LIST:
        data.update(owner=state.owner, projects=state.projects, cursor=state.cursor)
    elif screen is Screen.PROJECT_DETAIL:
        data.update(project=state.project, items=state.items, cursor=state.cursor)
    elif screen is Screen.ITEM_DETAIL:
        data.update(project=state.project, item=state.item)
    elif screen is Screen.ITEM_EDITOR:
        data.update(project=state.project, editor=state.editor)
    elif screen is Screen.PROJECT_CREATOR:
        data.update(owner=state.owner, creator=state.creator)
    elif screen is Screen.REPOSITORY_SELECTOR:
        data.update(item=state.item, selector=state.selector)
    elif screen is Screen.HELP:
        data.update(return_to=state.help_return)
    return data


def _debug_info(state: ViewState) -> dict[str, Any]:
    return {
        "screen": state.screen.value,
        "resume_screen": state.resume_screen.value if state.resume_screen else None,
        "owner": state.owner,
        "project": state.project.id if state.project else None,
        "inflight": dict(state.inflight),
        "next_request_id": state.next_request_id,
    }
