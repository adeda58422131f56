"""Events consumed by the view reducer, and the effects it emits.

Three families of events reach the reducer:

- input from the terminal layer: ``KeyEvent`` and ``ResizeEvent``
- intents: what a key means on a given screen (also postable directly,
  for example by ``bootstrap``)
- results from the dispatcher: ``TerminalMessage`` and ``RetryProgress``

Effects are data. The controller performs them after the reducer returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ghprojects.execution.commands import Command
from ghprojects.execution.dispatcher import RetryProgress, TerminalMessage
from ghprojects.models import Project, ProjectItem, Repository

# =============================================================================
# Terminal input
# =============================================================================


@dataclass(frozen=True)
class KeyEvent:
    """A key press as a token: ``"a"``, ``"enter"``, ``"ctrl+s"``, ..."""

    key: str


@dataclass(frozen=True)
class ResizeEvent:
    width: int
    height: int


# =============================================================================
# Intents
# =============================================================================


@dataclass(frozen=True)
class InitializedOk:
    username: str
    orgs: tuple[str, ...] = ()


@dataclass(frozen=True)
class OwnerChosen:
    owner: str
    is_user: bool


@dataclass(frozen=True)
class ProjectChosen:
    project: Project


@dataclass(frozen=True)
class ItemChosen:
    item: ProjectItem


@dataclass(frozen=True)
class CreateItemRequested:
    pass


@dataclass(frozen=True)
class EditItemRequested:
    pass


@dataclass(frozen=True)
class DeleteItemRequested:
    pass


@dataclass(frozen=True)
class ConvertDraftRequested:
    pass


@dataclass(frozen=True)
class OpenInBrowserRequested:
    pass


@dataclass(frozen=True)
class RefreshRequested:
    pass


@dataclass(frozen=True)
class SaveRequested:
    pass


@dataclass(frozen=True)
class RepositoryChosen:
    repository: Repository
    save_as_default: bool = False


@dataclass(frozen=True)
class NewProjectRequested:
    pass


@dataclass(frozen=True)
class DismissOverlay:
    pass


@dataclass(frozen=True)
class BackRequested:
    pass


@dataclass(frozen=True)
class QuitRequested:
    pass


@dataclass(frozen=True)
class CancelRequested:
    pass


@dataclass(frozen=True)
class HelpToggled:
    pass


@dataclass(frozen=True)
class DebugToggled:
    pass


Event = Union[
    KeyEvent,
    ResizeEvent,
    InitializedOk,
    OwnerChosen,
    ProjectChosen,
    ItemChosen,
    CreateItemRequested,
    EditItemRequested,
    DeleteItemRequested,
    ConvertDraftRequested,
    OpenInBrowserRequested,
    RefreshRequested,
    SaveRequested,
    RepositoryChosen,
    NewProjectRequested,
    DismissOverlay,
    BackRequested,
    QuitRequested,
    CancelRequested,
    HelpToggled,
    DebugToggled,
    TerminalMessage,
    RetryProgress,
]


# =============================================================================
# Effects
# =============================================================================


@dataclass(frozen=True)
class Dispatch:
    """Run ``command`` on a worker under ``request_id``."""

    request_id: int
    command: Command


@dataclass(frozen=True)
class CancelDispatch:
    request_id: int


@dataclass(frozen=True)
class PersistDefault:
    """Store (or, with ``repository_id=None``, clear) a project's default."""

    project_id: str
    repository_id: str | None


@dataclass(frozen=True)
class OpenURL:
    url: str


@dataclass(frozen=True)
class Quit:
    pass


Effect = Union[Dispatch, CancelDispatch, PersistDefault, OpenURL, Quit]
