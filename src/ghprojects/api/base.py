"""Abstract RemoteAPI capability.

The orchestration core consumes remote project-tracking operations only
through this interface. Implementations raise ``RemoteError`` (or any
other exception) on failure; the retry executor classifies whatever is
raised. Construction of request payloads and mapping of response fields
into domain objects belong to the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ghprojects.models import Project, ProjectItem, Repository


class RemoteAPI(ABC):
    """Named remote operations, each returning success data or raising."""

    @abstractmethod
    async def get_viewer(self) -> str:
        """Login of the authenticated user. Failure here is fatal at startup."""
        ...

    @abstractmethod
    async def list_organizations(self, login: str) -> list[str]:
        """Organizations the user belongs to."""
        ...

    @abstractmethod
    async def list_projects(self, owner: str, is_user: bool, first: int = 100) -> list[Project]:
        ...

    @abstractmethod
    async def list_items(self, project_id: str, first: int = 100) -> list[ProjectItem]:
        ...

    @abstractmethod
    async def create_draft_item(self, project_id: str, title: str, body: str) -> ProjectItem:
        ...

    @abstractmethod
    async def update_draft_item(
        self,
        item_id: str,
        title: str | None = None,
        body: str | None = None,
        assignee_ids: Sequence[str] | None = None,
    ) -> ProjectItem:
        """Update a draft issue by its content id. None leaves a field unchanged."""
        ...

    @abstractmethod
    async def delete_item(self, project_id: str, item_id: str) -> None:
        ...

    @abstractmethod
    async def convert_draft_to_issue(self, item_id: str, repository_id: str) -> ProjectItem:
        ...

    @abstractmethod
    async def list_repositories(self, owner: str, is_user: bool) -> list[Repository]:
        ...

    @abstractmethod
    async def search_users(self, query: str, limit: int = 5) -> list[str]:
        ...

    @abstractmethod
    async def search_org_members(self, org: str, query: str, limit: int = 5) -> list[str]:
        ...

    @abstractmethod
    async def get_node_id(self, owner: str) -> str:
        """Node id of a user or organization login."""
        ...

    @abstractmethod
    async def create_project(
        self, owner_id: str, title: str, description: str = "", public: bool = False
    ) -> Project:
        ...
