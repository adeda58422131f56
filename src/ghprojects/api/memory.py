"""In-memory RemoteAPI.

Provides a RemoteAPI that keeps projects, items and repositories in
dicts. Used by the ``demo`` command and by tests that need a real
RemoteAPI implementation. Failures can be scripted per operation with
``fail_next`` to exercise retry and partial-success paths.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import Counter, deque
from collections.abc import Sequence
from dataclasses import replace

from ghprojects.api.base import RemoteAPI
from ghprojects.exceptions import RemoteError
from ghprojects.models import ItemType, Project, ProjectItem, Repository


class InMemoryRemoteAPI(RemoteAPI):
    """Dict-backed RemoteAPI with scripted failures and call counting."""

    def __init__(self, viewer: str = "octocat", *, latency: float = 0.0) -> None:
        self.viewer = viewer
        self.latency = latency
        self.node_ids: dict[str, str] = {viewer: f"U_{viewer}"}
        self.organizations: dict[str, list[str]] = {viewer: []}
        self.org_members: dict[str, list[str]] = {}
        self.known_users: list[str] = [viewer]
        self.projects: dict[str, Project] = {}
        self.items: dict[str, list[ProjectItem]] = {}
        self.repositories: dict[str, list[Repository]] = {}
        self.calls: Counter[str] = Counter()
        self._failures: dict[str, deque[BaseException]] = {}
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Seeding and failure scripting
    # ------------------------------------------------------------------

    def add_user(self, login: str) -> None:
        self.node_ids.setdefault(login, f"U_{login}")
        if login not in self.known_users:
            self.known_users.append(login)

    def add_organization(self, org: str, members: Sequence[str] = ()) -> None:
        self.node_ids.setdefault(org, f"O_{org}")
        self.organizations.setdefault(self.viewer, []).append(org)
        self.org_members[org] = list(members)
        for member in members:
            self.add_user(member)

    def add_project(self, owner: str, title: str, *, is_user: bool = True) -> Project:
        number = sum(1 for p in self.projects.values() if p.owner_login == owner) + 1
        project = Project(
            id=f"PVT_{next(self._ids)}",
            number=number,
            title=title,
            owner_login=owner,
            owner_is_user=is_user,
            url=f"https://github.com/{'users' if is_user else 'orgs'}/{owner}/projects/{number}",
        )
        self.projects[project.id] = project
        self.items[project.id] = []
        return project

    def add_item(
        self,
        project_id: str,
        title: str,
        body: str = "",
        *,
        item_type: ItemType = ItemType.DRAFT_ISSUE,
        assignees: Sequence[str] = (),
    ) -> ProjectItem:
        seq = next(self._ids)
        item = ProjectItem(
            id=f"PVTI_{seq}",
            content_id=f"DI_{seq}",
            title=title,
            body=body,
            type=item_type,
            assignees=tuple(assignees),
        )
        self.items.setdefault(project_id, []).append(item)
        return item

    def add_repository(self, owner: str, name: str, description: str = "") -> Repository:
        repo = Repository(
            id=f"R_{next(self._ids)}", name=name, owner=owner, description=description
        )
        self.repositories.setdefault(owner, []).append(repo)
        return repo

    def fail_next(self, operation: str, *errors: BaseException) -> None:
        """Make the next ``len(errors)`` calls of ``operation`` raise, in order."""
        self._failures.setdefault(operation, deque()).extend(errors)

    async def _call(self, operation: str) -> None:
        self.calls[operation] += 1
        if self.latency:
            await asyncio.sleep(self.latency)
        queue = self._failures.get(operation)
        if queue:
            raise queue.popleft()

    def _find_item(self, item_id: str) -> tuple[str, int, ProjectItem]:
        for project_id, items in self.items.items():
            for index, item in enumerate(items):
                if item_id in (item.id, item.content_id):
                    return project_id, index, item
        raise RemoteError(f"Could not resolve to a node with the global id of '{item_id}'")

    def _owner_projects(self, owner: str) -> list[Project]:
        return [p for p in self.projects.values() if p.owner_login == owner]

    # ------------------------------------------------------------------
    # RemoteAPI
    # ------------------------------------------------------------------

    async def get_viewer(self) -> str:
        await self._call("get_viewer")
        return self.viewer

    async def list_organizations(self, login: str) -> list[str]:
        await self._call("list_organizations")
        return list(self.organizations.get(login, []))

    async def list_projects(self, owner: str, is_user: bool, first: int = 100) -> list[Project]:
        await self._call("list_projects")
        if owner not in self.node_ids:
            raise RemoteError(f"Could not resolve to an owner with the login of '{owner}'")
        projects = [
            replace(p, item_count=len(self.items.get(p.id, [])))
            for p in self._owner_projects(owner)
        ]
        return projects[:first]

    async def list_items(self, project_id: str, first: int = 100) -> list[ProjectItem]:
        await self._call("list_items")
        if project_id not in self.projects:
            raise RemoteError(f"Could not resolve to a ProjectV2 with the id '{project_id}'")
        return list(self.items.get(project_id, []))[:first]

    async def create_draft_item(self, project_id: str, title: str, body: str) -> ProjectItem:
        await self._call("create_draft_item")
        if project_id not in self.projects:
            raise RemoteError(f"Could not resolve to a ProjectV2 with the id '{project_id}'")
        if not title.strip():
            raise RemoteError("invalid input: title can't be blank", status_code=400)
        return self.add_item(project_id, title, body)

    async def update_draft_item(
        self,
        item_id: str,
        title: str | None = None,
        body: str | None = None,
        assignee_ids: Sequence[str] | None = None,
    ) -> ProjectItem:
        await self._call("update_draft_item")
        project_id, index, item = self._find_item(item_id)
        changes: dict[str, object] = {}
        if title is not None:
            changes["title"] = title
        if body is not None:
            changes["body"] = body
        if assignee_ids is not None:
            by_id = {node_id: login for login, node_id in self.node_ids.items()}
            missing = [a for a in assignee_ids if a not in by_id]
            if missing:
                raise RemoteError(f"user with id {missing[0]} not found", status_code=400)
            changes["assignees"] = tuple(by_id[a] for a in assignee_ids)
        updated = replace(item, **changes)  # type: ignore[arg-type]
        self.items[project_id][index] = updated
        return updated

    async def delete_item(self, project_id: str, item_id: str) -> None:
        await self._call("delete_item")
        items = self.items.get(project_id, [])
        remaining = [i for i in items if i.id != item_id]
        if len(remaining) == len(items):
            raise RemoteError(f"Could not resolve to a node with the global id of '{item_id}'")
        self.items[project_id] = remaining

    async def convert_draft_to_issue(self, item_id: str, repository_id: str) -> ProjectItem:
        await self._call("convert_draft_to_issue")
        project_id, index, item = self._find_item(item_id)
        repo = next(
            (r for repos in self.repositories.values() for r in repos if r.id == repository_id),
            None,
        )
        if repo is None:
            raise RemoteError(
                f"Could not resolve to a Repository with the global id of '{repository_id}'"
            )
        if not item.is_draft:
            raise RemoteError("invalid: item is not a draft issue", status_code=400)
        number = next(self._ids)
        converted = replace(
            item,
            type=ItemType.ISSUE,
            number=number,
            state="OPEN",
            url=f"https://github.com/{repo.full_name}/issues/{number}",
        )
        self.items[project_id][index] = converted
        return converted

    async def list_repositories(self, owner: str, is_user: bool) -> list[Repository]:
        await self._call("list_repositories")
        return list(self.repositories.get(owner, []))

    async def search_users(self, query: str, limit: int = 5) -> list[str]:
        await self._call("search_users")
        needle = query.lower()
        return [u for u in self.known_users if needle in u.lower()][:limit]

    async def search_org_members(self, org: str, query: str, limit: int = 5) -> list[str]:
        await self._call("search_org_members")
        needle = query.lower()
        return [u for u in self.org_members.get(org, []) if needle in u.lower()][:limit]

    async def get_node_id(self, owner: str) -> str:
        await self._call("get_node_id")
        try:
            return self.node_ids[owner]
        except KeyError:
            raise RemoteError(
                f"Could not resolve to a user with the login of '{owner}': user not found"
            ) from None

    async def create_project(
        self, owner_id: str, title: str, description: str = "", public: bool = False
    ) -> Project:
        await self._call("create_project")
        owner = next((login for login, nid in self.node_ids.items() if nid == owner_id), None)
        if owner is None:
            raise RemoteError(f"Could not resolve to an owner with the id '{owner_id}'")
        project = self.add_project(owner, title, is_user=owner_id.startswith("U_"))
        project = replace(project, short_description=description, public=public)
        self.projects[project.id] = project
        return project


def build_demo_api(latency: float = 0.2) -> InMemoryRemoteAPI:
    """An in-memory backend seeded with a small, realistic data set."""
    api = InMemoryRemoteAPI("octocat", latency=latency)
    api.add_organization("octo-org", members=["hubot", "monalisa", "octocat"])

    roadmap = api.add_project("octocat", "Personal roadmap")
    api.add_item(roadmap.id, "Write release notes", "Summarize the 0.3 changes.")
    api.add_item(roadmap.id, "Fix flaky retry test", item_type=ItemType.ISSUE)

    platform = api.add_project("octo-org", "Platform", is_user=False)
    api.add_item(platform.id, "Migrate CI runners", "Move to the new runner pool.")
    api.add_item(platform.id, "Rotate deploy keys", assignees=["hubot"])

    api.add_repository("octocat", "dotfiles", "Personal configuration")
    api.add_repository("octo-org", "platform", "Platform services")
    api.add_repository("octo-org", "infra", "Infrastructure as code")
    return api
