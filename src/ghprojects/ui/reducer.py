"""The view transition table.

``reduce(state, event)`` is a pure function returning the next state and
the effects to perform. It never performs I/O and never reads anything but
its arguments.

Keys are first translated into intents according to the active screen
(``q`` means quit on the list screens and is an ordinary character in the
editor), then intents and dispatcher results are reduced. Every event,
screen and command variant has exactly one handler; a missing handler is
reported when this module is imported.

Request sequencing: every dispatch gets a fresh id from the state and is
recorded as the latest request of its slot. A result whose id is not the
latest of its slot is discarded unchanged, so a slow early search response
can never overwrite a newer one.
"""

from __future__ import annotations

import typing
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from ghprojects.core.constants import ASSIGNEE_MAX_CHARS, BODY_MAX_CHARS, TITLE_MAX_CHARS
from ghprojects.core.errors import Outcome
from ghprojects.execution.commands import (
    Command,
    ConvertDraft,
    CreateProject,
    DeleteItem,
    ListItems,
    ListProjects,
    ListRepositories,
    SaveItem,
    SearchUsers,
)
from ghprojects.execution.dispatcher import RetryProgress, TerminalMessage
from ghprojects.models import ProjectItem, Repository
from ghprojects.ui.events import (
    BackRequested,
    CancelDispatch,
    CancelRequested,
    ConvertDraftRequested,
    CreateItemRequested,
    DebugToggled,
    DeleteItemRequested,
    Dispatch,
    DismissOverlay,
    EditItemRequested,
    Effect,
    Event,
    HelpToggled,
    InitializedOk,
    ItemChosen,
    KeyEvent,
    NewProjectRequested,
    OpenInBrowserRequested,
    OpenURL,
    OwnerChosen,
    PersistDefault,
    ProjectChosen,
    Quit,
    QuitRequested,
    RefreshRequested,
    RepositoryChosen,
    ResizeEvent,
    SaveRequested,
)
from ghprojects.ui.state import (
    CREATOR_FIELDS,
    EDITOR_FIELDS,
    CreatorState,
    EditorState,
    Screen,
    SelectorState,
    ViewState,
)

QUIT_SCREENS = frozenset({Screen.OWNER_SELECTION, Screen.PROJECT_LIST})
"""Screens on which quit really quits; elsewhere it goes back."""

_QUIT_KEYS = frozenset({"q", "ctrl+c"})
_UP_KEYS = frozenset({"up", "k", "ctrl+p"})
_DOWN_KEYS = frozenset({"down", "j", "ctrl+n"})
# Text-entry screens cannot use letters for navigation
_FORM_UP_KEYS = frozenset({"up", "ctrl+p"})
_FORM_DOWN_KEYS = frozenset({"down", "ctrl+n"})

_EDITOR_LIMITS = {
    "title": TITLE_MAX_CHARS,
    "body": BODY_MAX_CHARS,
    "assignee": ASSIGNEE_MAX_CHARS,
}
_CREATOR_LIMITS = {"title": TITLE_MAX_CHARS, "description": BODY_MAX_CHARS}


@dataclass(frozen=True)
class Transition:
    """Next state plus effects. At most one effect is a Dispatch."""

    state: ViewState
    effects: tuple[Effect, ...] = ()


def reduce(state: ViewState, event: Event) -> Transition:
    """Compute the transition for ``event`` in ``state``."""
    return _EVENT_HANDLERS[type(event)](state, event)


def is_stale(state: ViewState, message: TerminalMessage | RetryProgress) -> bool:
    """True if ``message`` is not from the latest request of its slot."""
    return state.inflight.get(message.slot) != message.request_id


# =============================================================================
# Helpers
# =============================================================================


def _stay(state: ViewState) -> Transition:
    return Transition(state)


def _home(state: ViewState) -> Screen:
    return Screen.OWNER_SELECTION if state.orgs else Screen.PROJECT_LIST


def _issue(state: ViewState, command: Command, **changes: Any) -> Transition:
    """Allocate a request id for ``command`` and emit its Dispatch."""
    request_id = state.next_request_id
    inflight = {**state.inflight, command.slot: request_id}
    new_state = replace(state, next_request_id=request_id + 1, inflight=inflight, **changes)
    return Transition(new_state, (Dispatch(request_id=request_id, command=command),))


def _start_loading(
    state: ViewState,
    message: str,
    command: Command,
    resume: Screen | None = None,
    **changes: Any,
) -> Transition:
    """Enter Loading for ``command``.

    ``resume`` is where a failure lands; by default the screen that issued
    the request.
    """
    if resume is None:
        resume = state.resume_screen if state.screen is Screen.LOADING else state.screen
    return _issue(
        state,
        command,
        screen=Screen.LOADING,
        resume_screen=resume,
        loading_message=message,
        **changes,
    )


def _settled(state: ViewState, screen: Screen, **changes: Any) -> ViewState:
    """Leave any pending-request bookkeeping and show ``screen``."""
    return replace(state, screen=screen, resume_screen=None, loading_message="", **changes)


def _without_slot(state: ViewState, slot: str) -> ViewState:
    if slot not in state.inflight:
        return state
    return replace(state, inflight={k: v for k, v in state.inflight.items() if k != slot})


def _move(cursor: int, size: int, delta: int) -> int:
    if size <= 0:
        return 0
    return max(0, min(size - 1, cursor + delta))


def _wrap(index: int, size: int) -> int:
    return index % size if size > 0 else 0


def _typed(key: str) -> str | None:
    """The character a key types, if any."""
    if key == "space":
        return " "
    if len(key) == 1 and key.isprintable():
        return key
    return None


def _cycle(fields: tuple[str, ...], current: str, key: str) -> str:
    step = -1 if key == "shift+tab" else 1
    return fields[(fields.index(current) + step) % len(fields)]


def _title_required() -> Outcome:
    return Outcome.validation("Title is required", {"title": "Title is required"})


# =============================================================================
# Key translation, one handler per screen
# =============================================================================


def _on_key(state: ViewState, event: KeyEvent) -> Transition:
    key = event.key
    if state.overlay is not None:
        # The overlay is modal
        if key in ("esc", "enter"):
            return reduce(state, DismissOverlay())
        if key in _QUIT_KEYS and state.screen in QUIT_SCREENS:
            return reduce(state, QuitRequested())
        if key == "ctrl+d":
            return reduce(state, DebugToggled())
        return _stay(state)
    return _KEY_HANDLERS[state.screen](state, key)


def _browse_key(state: ViewState, key: str) -> Event | None:
    """Keys shared by the non-form screens."""
    if key == "?":
        return HelpToggled()
    if key == "ctrl+d":
        return DebugToggled()
    if key in _QUIT_KEYS:
        return QuitRequested()
    if key == "esc":
        return BackRequested()
    return None


def _keys_loading(state: ViewState, key: str) -> Transition:
    if key == "esc" or key in _QUIT_KEYS:
        return reduce(state, CancelRequested())
    if key == "ctrl+d":
        return reduce(state, DebugToggled())
    return _stay(state)


def _keys_owner_selection(state: ViewState, key: str) -> Transition:
    owners = state.owners
    if key in _UP_KEYS or key in _DOWN_KEYS:
        delta = -1 if key in _UP_KEYS else 1
        return _stay(replace(state, cursor=_move(state.cursor, len(owners), delta)))
    if key == "enter" and 0 <= state.cursor < len(owners):
        return reduce(state, OwnerChosen(owner=owners[state.cursor], is_user=state.cursor == 0))
    intent = _browse_key(state, key)
    return reduce(state, intent) if intent else _stay(state)


def _keys_project_list(state: ViewState, key: str) -> Transition:
    if key in _UP_KEYS or key in _DOWN_KEYS:
        delta = -1 if key in _UP_KEYS else 1
        return _stay(replace(state, cursor=_move(state.cursor, len(state.projects), delta)))
    if key == "enter":
        project = state.selected_project()
        return reduce(state, ProjectChosen(project)) if project else _stay(state)
    if key == "n":
        return reduce(state, NewProjectRequested())
    intent = _browse_key(state, key)
    return reduce(state, intent) if intent else _stay(state)


def _keys_project_detail(state: ViewState, key: str) -> Transition:
    if key in _UP_KEYS or key in _DOWN_KEYS:
        delta = -1 if key in _UP_KEYS else 1
        return _stay(replace(state, cursor=_move(state.cursor, len(state.items), delta)))
    if key == "enter":
        item = state.selected_item()
        return reduce(state, ItemChosen(item)) if item else _stay(state)
    intent: Event | None = {
        "n": CreateItemRequested(),
        "e": EditItemRequested(),
        "d": DeleteItemRequested(),
        "r": RefreshRequested(),
    }.get(key) or _browse_key(state, key)
    return reduce(state, intent) if intent else _stay(state)


def _keys_item_detail(state: ViewState, key: str) -> Transition:
    intent: Event | None = {
        "e": EditItemRequested(),
        "d": DeleteItemRequested(),
        "c": ConvertDraftRequested(),
        "o": OpenInBrowserRequested(),
    }.get(key) or _browse_key(state, key)
    return reduce(state, intent) if intent else _stay(state)


def _keys_item_editor(state: ViewState, key: str) -> Transition:
    editor = state.editor
    if editor is None:
        return reduce(state, BackRequested())

    if editor.focus == "assignee" and editor.suggestions:
        count = len(editor.suggestions)
        if key in _FORM_UP_KEYS or key in _FORM_DOWN_KEYS:
            delta = -1 if key in _FORM_UP_KEYS else 1
            index = _wrap(editor.suggestion_index + delta, count)
            return _stay(replace(state, editor=replace(editor, suggestion_index=index)))
        if key in ("enter", "esc"):
            assignee = editor.assignee
            if key == "enter":
                assignee = editor.suggestions[editor.suggestion_index]
            state = _without_slot(state, SearchUsers.slot)
            editor = replace(editor, assignee=assignee, suggestions=(), suggestion_index=0)
            return _stay(replace(state, editor=editor))

    if key in ("esc", "ctrl+c"):
        return reduce(state, BackRequested())
    if key == "ctrl+s":
        return reduce(state, SaveRequested())
    if key == "ctrl+d":
        return reduce(state, DebugToggled())
    if key in ("tab", "shift+tab"):
        focus = _cycle(EDITOR_FIELDS, editor.focus, key)
        editor = replace(editor, focus=focus, suggestions=(), suggestion_index=0)
        return _stay(replace(state, editor=editor))

    current = getattr(editor, editor.focus)
    if key == "backspace":
        value = current[:-1]
    elif key == "enter" and editor.focus == "body":
        value = current + "\n"
    else:
        char = _typed(key)
        if char is None:
            return _stay(state)
        value = current + char
    value = value[: _EDITOR_LIMITS[editor.focus]]
    if value == current:
        return _stay(state)

    field_errors = {k: v for k, v in editor.field_errors.items() if k != editor.focus}
    editor = replace(editor, field_errors=field_errors, **{editor.focus: value})
    if editor.focus != "assignee":
        return _stay(replace(state, editor=editor))
    return _assignee_changed(state, editor)


def _assignee_changed(state: ViewState, editor: EditorState) -> Transition:
    """Search for suggestions once enough characters are typed."""
    query = editor.assignee.strip()
    if len(query) < state.min_search_chars:
        state = _without_slot(state, SearchUsers.slot)
        return _stay(replace(state, editor=replace(editor, suggestions=(), suggestion_index=0)))
    org = None if state.owner_is_user else state.owner
    return _issue(state, SearchUsers(query=query, org=org), editor=editor)


def _keys_project_creator(state: ViewState, key: str) -> Transition:
    creator = state.creator
    if creator is None:
        return reduce(state, BackRequested())
    if key in ("esc", "ctrl+c"):
        return reduce(state, BackRequested())
    if key == "ctrl+s":
        return reduce(state, SaveRequested())
    if key == "ctrl+d":
        return reduce(state, DebugToggled())
    if key in ("tab", "shift+tab"):
        focus = _cycle(CREATOR_FIELDS, creator.focus, key)
        return _stay(replace(state, creator=replace(creator, focus=focus)))

    if creator.focus == "public":
        if key in ("space", "enter"):
            return _stay(replace(state, creator=replace(creator, public=not creator.public)))
        return _stay(state)

    current = getattr(creator, creator.focus)
    if key == "backspace":
        value = current[:-1]
    else:
        char = _typed(key)
        if char is None:
            return _stay(state)
        value = (current + char)[: _CREATOR_LIMITS[creator.focus]]
    return _stay(replace(state, creator=replace(creator, **{creator.focus: value})))


def _keys_repository_selector(state: ViewState, key: str) -> Transition:
    selector = state.selector
    if selector is None:
        return reduce(state, BackRequested())
    if key in ("esc", "ctrl+c"):
        return reduce(state, BackRequested())
    if key == "ctrl+d":
        selector = replace(selector, save_as_default=not selector.save_as_default)
        return _stay(replace(state, selector=selector))
    if key in _FORM_UP_KEYS or key in _FORM_DOWN_KEYS:
        delta = -1 if key in _FORM_UP_KEYS else 1
        cursor = _wrap(selector.cursor + delta, len(selector.filtered))
        return _stay(replace(state, selector=replace(selector, cursor=cursor)))
    if key == "enter":
        repository = selector.selected
        if repository is None:
            return _stay(state)
        return reduce(state, RepositoryChosen(repository, save_as_default=selector.save_as_default))
    if key == "backspace":
        text = selector.filter[:-1]
    else:
        char = _typed(key)
        if char is None:
            return _stay(state)
        text = selector.filter + char
    return _stay(replace(state, selector=replace(selector, filter=text, cursor=0)))


def _keys_help(state: ViewState, key: str) -> Transition:
    if key in ("?", "esc") or key in _QUIT_KEYS:
        return reduce(state, HelpToggled())
    if key == "ctrl+d":
        return reduce(state, DebugToggled())
    return _stay(state)


_KEY_HANDLERS: dict[Screen, Callable[[ViewState, str], Transition]] = {
    Screen.LOADING: _keys_loading,
    Screen.OWNER_SELECTION: _keys_owner_selection,
    Screen.PROJECT_LIST: _keys_project_list,
    Screen.PROJECT_DETAIL: _keys_project_detail,
    Screen.ITEM_DETAIL: _keys_item_detail,
    Screen.ITEM_EDITOR: _keys_item_editor,
    Screen.PROJECT_CREATOR: _keys_project_creator,
    Screen.REPOSITORY_SELECTOR: _keys_repository_selector,
    Screen.HELP: _keys_help,
}


# =============================================================================
# Intents
# =============================================================================


def _on_resize(state: ViewState, event: ResizeEvent) -> Transition:
    return _stay(replace(state, width=event.width, height=event.height))


def _on_initialized(state: ViewState, event: InitializedOk) -> Transition:
    state = replace(state, username=event.username, orgs=tuple(event.orgs), cursor=0)
    if state.orgs:
        return _stay(_settled(state, Screen.OWNER_SELECTION))
    # Without organizations the user is the only owner
    return _issue(
        state,
        ListProjects(owner=event.username, is_user=True),
        screen=Screen.PROJECT_LIST,
        resume_screen=None,
        owner=event.username,
        owner_is_user=True,
        loading_message="Loading projects...",
    )


def _on_owner_chosen(state: ViewState, event: OwnerChosen) -> Transition:
    return _start_loading(
        state,
        f"Loading projects for {event.owner}...",
        ListProjects(owner=event.owner, is_user=event.is_user),
        owner=event.owner,
        owner_is_user=event.is_user,
    )


def _on_project_chosen(state: ViewState, event: ProjectChosen) -> Transition:
    return _start_loading(
        state,
        f"Loading items for {event.project.title}...",
        ListItems(project_id=event.project.id),
        project=event.project,
        item=None,
    )


def _on_item_chosen(state: ViewState, event: ItemChosen) -> Transition:
    return _stay(replace(state, screen=Screen.ITEM_DETAIL, item=event.item))


def _target_item(state: ViewState) -> ProjectItem | None:
    if state.screen is Screen.ITEM_DETAIL:
        return state.item
    if state.screen is Screen.PROJECT_DETAIL:
        return state.selected_item()
    return None


def _on_create_item(state: ViewState, event: CreateItemRequested) -> Transition:
    if state.project is None:
        return _stay(state)
    return _stay(replace(state, screen=Screen.ITEM_EDITOR, editor=EditorState()))


def _on_edit_item(state: ViewState, event: EditItemRequested) -> Transition:
    item = _target_item(state)
    if item is None:
        return _stay(state)
    editor = EditorState(
        item=item,
        title=item.title,
        body=item.body,
        assignee=item.assignees[0] if item.assignees else "",
        origin=state.screen,
    )
    return _stay(replace(state, screen=Screen.ITEM_EDITOR, item=item, editor=editor))


def _on_delete_item(state: ViewState, event: DeleteItemRequested) -> Transition:
    item = _target_item(state)
    if item is None or state.project is None:
        return _stay(state)
    return _start_loading(
        state,
        f"Deleting {item.title}...",
        DeleteItem(project_id=state.project.id, item_id=item.id),
        item=item,
    )


def _on_convert_draft(state: ViewState, event: ConvertDraftRequested) -> Transition:
    item = state.item
    if state.screen is not Screen.ITEM_DETAIL or item is None or not item.is_draft:
        return _stay(state)
    return _start_loading(
        state,
        "Loading repositories...",
        ListRepositories(owner=state.owner, is_user=state.owner_is_user),
    )


def _on_open_in_browser(state: ViewState, event: OpenInBrowserRequested) -> Transition:
    if state.item is None or not state.item.url:
        return _stay(state)
    return Transition(state, (OpenURL(state.item.url),))


def _on_refresh(state: ViewState, event: RefreshRequested) -> Transition:
    if state.project is None:
        return _stay(state)
    return _start_loading(state, "Refreshing items...", ListItems(project_id=state.project.id))


def _on_save(state: ViewState, event: SaveRequested) -> Transition:
    if (
        state.screen is Screen.ITEM_EDITOR
        and state.editor is not None
        and state.project is not None
    ):
        editor = state.editor
        title = editor.title.strip()
        if not title:
            outcome = _title_required()
            editor = replace(editor, field_errors=dict(outcome.field_errors or {}))
            return _stay(replace(state, editor=editor, overlay=outcome))
        command = SaveItem(
            project_id=state.project.id,
            title=title,
            body=editor.body,
            assignee=editor.assignee.strip(),
            item=editor.item,
        )
        message = "Creating draft issue..." if editor.is_new else "Saving item..."
        state = _without_slot(state, SearchUsers.slot)
        return _start_loading(state, message, command, editor=replace(editor, suggestions=()))

    if state.screen is Screen.PROJECT_CREATOR and state.creator is not None:
        creator = state.creator
        title = creator.title.strip()
        if not title:
            return _stay(replace(state, overlay=_title_required()))
        command = CreateProject(
            owner=state.owner,
            title=title,
            description=creator.description.strip(),
            public=creator.public,
        )
        return _start_loading(state, f"Creating project {title}...", command)

    return _stay(state)


def _on_repository_chosen(state: ViewState, event: RepositoryChosen) -> Transition:
    if state.item is None or state.project is None:
        return _stay(state)
    effects: tuple[Effect, ...] = ()
    if event.save_as_default:
        defaults = {**state.defaults, state.project.id: event.repository.id}
        state = replace(state, defaults=defaults)
        effects = (PersistDefault(state.project.id, event.repository.id),)
    transition = _convert(state, event.repository, "Converting draft to issue...")
    return Transition(transition.state, effects + transition.effects)


def _convert(state: ViewState, repository: Repository, message: str) -> Transition:
    assert state.item is not None
    return _start_loading(
        state,
        message,
        ConvertDraft(item_id=state.item.id, repository_id=repository.id),
        resume=Screen.ITEM_DETAIL,
    )


def _on_new_project(state: ViewState, event: NewProjectRequested) -> Transition:
    return _stay(replace(state, screen=Screen.PROJECT_CREATOR, creator=CreatorState()))


def _on_dismiss(state: ViewState, event: DismissOverlay) -> Transition:
    return _stay(replace(state, overlay=None))


def _on_back(state: ViewState, event: BackRequested) -> Transition:
    screen = state.screen
    if screen is Screen.LOADING:
        return reduce(state, CancelRequested())
    if screen is Screen.HELP:
        return reduce(state, HelpToggled())
    if screen is Screen.PROJECT_LIST:
        if not state.orgs:
            return _stay(state)
        cursor = state.owners.index(state.owner) if state.owner in state.owners else 0
        return _stay(replace(state, screen=Screen.OWNER_SELECTION, cursor=cursor))
    if screen is Screen.PROJECT_DETAIL:
        cursor = 0
        if state.project is not None:
            ids = [p.id for p in state.projects]
            cursor = ids.index(state.project.id) if state.project.id in ids else 0
        return _stay(replace(state, screen=Screen.PROJECT_LIST, cursor=cursor))
    if screen is Screen.ITEM_DETAIL:
        return _stay(replace(state, screen=Screen.PROJECT_DETAIL))
    if screen is Screen.ITEM_EDITOR:
        back = state.editor.origin if state.editor is not None else Screen.PROJECT_DETAIL
        state = _without_slot(state, SearchUsers.slot)
        return _stay(replace(state, screen=back, editor=None))
    if screen is Screen.PROJECT_CREATOR:
        return _stay(replace(state, screen=Screen.PROJECT_LIST, creator=None))
    if screen is Screen.REPOSITORY_SELECTOR:
        return _stay(replace(state, screen=Screen.ITEM_DETAIL, selector=None))
    return _stay(state)


def _on_quit(state: ViewState, event: QuitRequested) -> Transition:
    if state.screen in QUIT_SCREENS:
        return Transition(replace(state, quitting=True), (Quit(),))
    return reduce(state, BackRequested())


def _on_cancel(state: ViewState, event: CancelRequested) -> Transition:
    if state.screen is not Screen.LOADING:
        return _stay(state)
    effects = tuple(
        CancelDispatch(request_id)
        for slot, request_id in sorted(state.inflight.items())
        if slot != SearchUsers.slot
    )
    if not effects:
        return _stay(_settled(state, state.resume_screen or _home(state)))
    return Transition(replace(state, loading_message="Cancelling..."), effects)


def _on_help(state: ViewState, event: HelpToggled) -> Transition:
    if state.screen is Screen.HELP:
        back = state.help_return or _home(state)
        return _stay(replace(state, screen=back, help_return=None))
    if state.screen is Screen.LOADING:
        return _stay(state)
    return _stay(replace(state, screen=Screen.HELP, help_return=state.screen))


def _on_debug(state: ViewState, event: DebugToggled) -> Transition:
    return _stay(replace(state, debug=not state.debug))


# =============================================================================
# Dispatcher results
# =============================================================================


def _on_terminal(state: ViewState, message: TerminalMessage) -> Transition:
    if is_stale(state, message):
        return _stay(state)
    state = _without_slot(state, message.slot)
    result = message.result

    if result.outcome is not None and not result.partial:
        return _on_failure(state, message.command, result.outcome)

    transition = _RESULT_HANDLERS[type(message.command)](state, message.command, result.value)
    if result.partial:
        # The committed step is reflected; the warning rides on top
        return Transition(replace(transition.state, overlay=result.outcome), transition.effects)
    return transition


def _on_failure(state: ViewState, command: Command, outcome: Outcome) -> Transition:
    if isinstance(command, SearchUsers):
        # Suggestions are best-effort
        if state.editor is None:
            return _stay(state)
        editor = replace(state.editor, suggestions=(), suggestion_index=0)
        return _stay(replace(state, editor=editor))

    screen = state.screen
    if screen is Screen.LOADING:
        screen = state.resume_screen or _home(state)
    editor = state.editor
    if editor is not None and screen is Screen.ITEM_EDITOR and outcome.field_errors:
        editor = replace(editor, field_errors=dict(outcome.field_errors))
    return _stay(_settled(state, screen, overlay=outcome, editor=editor))


def _on_progress(state: ViewState, message: RetryProgress) -> Transition:
    if is_stale(state, message) or message.slot == SearchUsers.slot or not state.is_loading:
        return _stay(state)
    return _stay(replace(state, loading_message=message.message()))


def _projects_loaded(state: ViewState, command: ListProjects, projects: Any) -> Transition:
    if state.screen not in (Screen.PROJECT_LIST, Screen.LOADING):
        # Loaded in the background while the user moved on (help, new project)
        return _stay(
            replace(
                state,
                projects=tuple(projects),
                cursor=0,
                resume_screen=None,
                loading_message="",
            )
        )
    return _stay(_settled(state, Screen.PROJECT_LIST, projects=tuple(projects), cursor=0))


def _items_loaded(state: ViewState, command: ListItems, items: Any) -> Transition:
    items = tuple(items)
    refreshing = state.resume_screen is Screen.PROJECT_DETAIL
    cursor = _move(state.cursor, len(items), 0) if refreshing else 0
    return _stay(
        _settled(state, Screen.PROJECT_DETAIL, items=items, cursor=cursor, item=None, editor=None)
    )


def _refresh_items(state: ViewState, message: str, **changes: Any) -> Transition:
    """Reload items after a committed write, landing on ProjectDetail."""
    assert state.project is not None
    return _start_loading(
        state,
        message,
        ListItems(project_id=state.project.id),
        resume=Screen.PROJECT_DETAIL,
        **changes,
    )


def _item_saved(state: ViewState, command: SaveItem, item: Any) -> Transition:
    return _refresh_items(state, "Refreshing items...", editor=None, item=None)


def _item_deleted(state: ViewState, command: DeleteItem, item_id: Any) -> Transition:
    return _refresh_items(state, "Refreshing items...", item=None)


def _repositories_loaded(state: ViewState, command: ListRepositories, repos: Any) -> Transition:
    repositories: tuple[Repository, ...] = tuple(repos)
    if state.item is None or state.project is None:
        return _stay(_settled(state, _home(state)))
    if not repositories:
        outcome = Outcome.validation("No repositories available to convert this draft into")
        return _stay(_settled(state, Screen.ITEM_DETAIL, overlay=outcome))

    project_id = state.project.id
    effects: tuple[Effect, ...] = ()
    default_id = state.defaults.get(project_id)
    if default_id is not None:
        default = next((r for r in repositories if r.id == default_id), None)
        if default is not None:
            return _convert(state, default, f"Converting to issue in {default.name} (default)...")
        # The remembered repository is gone
        defaults = {k: v for k, v in state.defaults.items() if k != project_id}
        state = replace(state, defaults=defaults)
        effects = (PersistDefault(project_id, None),)

    if len(repositories) == 1:
        only = repositories[0]
        transition = _convert(state, only, f"Converting to issue in {only.name}...")
        return Transition(transition.state, effects + transition.effects)

    selector = SelectorState(repositories=repositories)
    return Transition(_settled(state, Screen.REPOSITORY_SELECTOR, selector=selector), effects)


def _draft_converted(state: ViewState, command: ConvertDraft, item: Any) -> Transition:
    return _refresh_items(state, "Refreshing items...", item=None, selector=None)


def _suggestions_loaded(state: ViewState, command: SearchUsers, logins: Any) -> Transition:
    if state.editor is None or state.screen is not Screen.ITEM_EDITOR:
        return _stay(state)
    editor = replace(state.editor, suggestions=tuple(logins), suggestion_index=0)
    return _stay(replace(state, editor=editor))


def _project_created(state: ViewState, command: CreateProject, project: Any) -> Transition:
    return _start_loading(
        state,
        "Refreshing projects...",
        ListProjects(owner=state.owner, is_user=state.owner_is_user),
        resume=Screen.PROJECT_LIST,
        creator=None,
    )


_RESULT_HANDLERS: dict[type, Callable[[ViewState, Any, Any], Transition]] = {
    ListProjects: _projects_loaded,
    ListItems: _items_loaded,
    SaveItem: _item_saved,
    DeleteItem: _item_deleted,
    ListRepositories: _repositories_loaded,
    ConvertDraft: _draft_converted,
    SearchUsers: _suggestions_loaded,
    CreateProject: _project_created,
}

_EVENT_HANDLERS: dict[type, Callable[[ViewState, Any], Transition]] = {
    KeyEvent: _on_key,
    ResizeEvent: _on_resize,
    InitializedOk: _on_initialized,
    OwnerChosen: _on_owner_chosen,
    ProjectChosen: _on_project_chosen,
    ItemChosen: _on_item_chosen,
    CreateItemRequested: _on_create_item,
    EditItemRequested: _on_edit_item,
    DeleteItemRequested: _on_delete_item,
    ConvertDraftRequested: _on_convert_draft,
    OpenInBrowserRequested: _on_open_in_browser,
    RefreshRequested: _on_refresh,
    SaveRequested: _on_save,
    RepositoryChosen: _on_repository_chosen,
    NewProjectRequested: _on_new_project,
    DismissOverlay: _on_dismiss,
    BackRequested: _on_back,
    QuitRequested: _on_quit,
    CancelRequested: _on_cancel,
    HelpToggled: _on_help,
    DebugToggled: _on_debug,
    TerminalMessage: _on_terminal,
    RetryProgress: _on_progress,
}


def _check_exhaustive() -> None:
    missing = [t.__name__ for t in typing.get_args(Event) if t not in _EVENT_HANDLERS]
    missing += [t.__name__ for t in typing.get_args(Command) if t not in _RESULT_HANDLERS]
    missing += [s.name for s in Screen if s not in _KEY_HANDLERS]
    if missing:
        raise TypeError(f"unhandled variant(s) in view reducer: {', '.join(missing)}")


_check_exhaustive()
