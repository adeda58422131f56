"""Commands: the remote work the view asks the dispatcher to perform.

Each command is an immutable value naming one logical remote action and
its arguments. Every command belongs to a *slot*, the logical target it
updates; only the most recent request in a slot may change the view.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from ghprojects.models import ProjectItem


@dataclass(frozen=True)
class ListProjects:
    slot: ClassVar[str] = "projects"

    owner: str
    is_user: bool


@dataclass(frozen=True)
class ListItems:
    slot: ClassVar[str] = "items"

    project_id: str


@dataclass(frozen=True)
class SaveItem:
    """Create a draft (``item`` is None) or update an existing item.

    A non-empty ``assignee`` login is resolved to a node id first.
    """

    slot: ClassVar[str] = "save"

    project_id: str
    title: str
    body: str = ""
    assignee: str = ""
    item: ProjectItem | None = None

    @property
    def is_new(self) -> bool:
        return self.item is None


@dataclass(frozen=True)
class DeleteItem:
    slot: ClassVar[str] = "delete"

    project_id: str
    item_id: str


@dataclass(frozen=True)
class ListRepositories:
    slot: ClassVar[str] = "repositories"

    owner: str
    is_user: bool


@dataclass(frozen=True)
class ConvertDraft:
    slot: ClassVar[str] = "convert"

    item_id: str
    repository_id: str


@dataclass(frozen=True)
class SearchUsers:
    """Assignee suggestions; ``org`` restricts the search to its members."""

    slot: ClassVar[str] = "user_search"

    query: str
    org: str | None = None


@dataclass(frozen=True)
class CreateProject:
    slot: ClassVar[str] = "create_project"

    owner: str
    title: str
    description: str = ""
    public: bool = False


Command = Union[
    ListProjects,
    ListItems,
    SaveItem,
    DeleteItem,
    ListRepositories,
    ConvertDraft,
    SearchUsers,
    CreateProject,
]

__all__ = [
    "Command",
    "ConvertDraft",
    "CreateProject",
    "DeleteItem",
    "ListItems",
    "ListProjects",
    "ListRepositories",
    "SaveItem",
    "SearchUsers",
]
