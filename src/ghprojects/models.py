"""Domain objects exchanged with the RemoteAPI.

These are immutable values; the view state holds tuples of them and is
replaced wholesale on each transition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ItemType(str, Enum):
    """Content type of a project item."""

    ISSUE = "ISSUE"
    PULL_REQUEST = "PULL_REQUEST"
    DRAFT_ISSUE = "DRAFT_ISSUE"


@dataclass(frozen=True)
class Project:
    """A GitHub Project (v2)."""

    id: str
    number: int
    title: str
    owner_login: str
    owner_is_user: bool = True
    short_description: str = ""
    public: bool = False
    closed: bool = False
    url: str = ""
    item_count: int = 0


@dataclass(frozen=True)
class ProjectItem:
    """An item in a project: a draft issue, an issue or a pull request.

    ``content_id`` is the id of the underlying draft issue/issue, which is
    what update calls need; ``id`` is the project item id.
    """

    id: str
    title: str
    type: ItemType = ItemType.DRAFT_ISSUE
    content_id: str = ""
    body: str = ""
    number: int = 0
    state: str = ""
    url: str = ""
    assignees: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_draft(self) -> bool:
        return self.type is ItemType.DRAFT_ISSUE

    @property
    def update_id(self) -> str:
        """Id to pass to update calls: the content id, else the item id."""
        return self.content_id or self.id


@dataclass(frozen=True)
class Repository:
    """A repository that draft issues can be converted into."""

    id: str
    name: str
    owner: str
    description: str = ""
    private: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def matches(self, text: str) -> bool:
        """Case-insensitive filter over name, owner, description and full name."""
        needle = text.lower()
        if not needle:
            return True
        return any(
            needle in value.lower()
            for value in (self.name, self.owner, self.description, self.full_name)
        )
