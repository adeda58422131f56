"""Tests for the in-memory RemoteAPI used by the demo and the test suite."""

import pytest

from ghprojects.api.memory import InMemoryRemoteAPI, build_demo_api
from ghprojects.exceptions import RemoteError
from ghprojects.models import ItemType


class TestSeeding:
    def test_projects_are_numbered_per_owner(self) -> None:
        api = InMemoryRemoteAPI("octocat")
        first = api.add_project("octocat", "One")
        second = api.add_project("octocat", "Two")
        assert (first.number, second.number) == (1, 2)
        assert second.url == "https://github.com/users/octocat/projects/2"

    def test_organization_members_become_known_users(self) -> None:
        api = InMemoryRemoteAPI("octocat")
        api.add_organization("octo-org", members=["hubot"])
        assert api.organizations["octocat"] == ["octo-org"]
        assert "hubot" in api.known_users
        assert api.node_ids["octo-org"] == "O_octo-org"

    def test_demo_api(self) -> None:
        api = build_demo_api(latency=0)
        assert api.latency == 0
        assert len(api.projects) == 2
        assert {r.full_name for repos in api.repositories.values() for r in repos} == {
            "octocat/dotfiles",
            "octo-org/platform",
            "octo-org/infra",
        }


class TestScriptedFailures:
    @pytest.mark.asyncio
    async def test_failures_are_raised_in_order(self, api: InMemoryRemoteAPI) -> None:
        first = RemoteError("boom", status_code=502)
        second = TimeoutError()
        api.fail_next("get_viewer", first, second)

        with pytest.raises(RemoteError):
            await api.get_viewer()
        with pytest.raises(TimeoutError):
            await api.get_viewer()
        assert await api.get_viewer() == "octocat"
        assert api.calls["get_viewer"] == 3

    @pytest.mark.asyncio
    async def test_unknown_owner(self, api: InMemoryRemoteAPI) -> None:
        with pytest.raises(RemoteError, match="Could not resolve"):
            await api.list_projects("nobody", is_user=True)


class TestOperations:
    @pytest.mark.asyncio
    async def test_list_projects_counts_items(self, api: InMemoryRemoteAPI) -> None:
        [project] = await api.list_projects("octocat", is_user=True)
        assert project.item_count == 1

    @pytest.mark.asyncio
    async def test_update_with_unknown_assignee(self, api: InMemoryRemoteAPI) -> None:
        item = next(iter(api.items.values()))[0]
        with pytest.raises(RemoteError) as excinfo:
            await api.update_draft_item(item.update_id, assignee_ids=["U_ghost"])
        assert excinfo.value.status_code == 400

    @pytest.mark.asyncio
    async def test_update_resolves_content_id(self, api: InMemoryRemoteAPI) -> None:
        item = next(iter(api.items.values()))[0]
        updated = await api.update_draft_item(
            item.content_id, body="new body", assignee_ids=["U_hubot"]
        )
        assert updated.id == item.id
        assert updated.body == "new body"
        assert updated.assignees == ("hubot",)

    @pytest.mark.asyncio
    async def test_delete_unknown_item(self, api: InMemoryRemoteAPI) -> None:
        project_id = next(iter(api.projects))
        with pytest.raises(RemoteError):
            await api.delete_item(project_id, "PVTI_missing")

    @pytest.mark.asyncio
    async def test_convert_requires_draft(self, api: InMemoryRemoteAPI) -> None:
        project_id = next(iter(api.projects))
        issue = api.add_item(project_id, "Already an issue", item_type=ItemType.ISSUE)
        repo = api.repositories["octocat"][0]
        with pytest.raises(RemoteError, match="not a draft"):
            await api.convert_draft_to_issue(issue.id, repo.id)

    @pytest.mark.asyncio
    async def test_search_limit(self, api: InMemoryRemoteAPI) -> None:
        for login in ("hu1", "hu2", "hu3"):
            api.add_user(login)
        assert await api.search_users("hu", limit=2) == ["hubot", "hu1"]

    @pytest.mark.asyncio
    async def test_get_node_id_unknown(self, api: InMemoryRemoteAPI) -> None:
        with pytest.raises(RemoteError, match="user not found"):
            await api.get_node_id("ghost")

    @pytest.mark.asyncio
    async def test_create_project_for_organization(self) -> None:
        api = InMemoryRemoteAPI("octocat")
        api.add_organization("octo-org")
        project = await api.create_project("O_octo-org", "Board", public=True)
        assert project.owner_login == "octo-org"
        assert project.owner_is_user is False
        assert api.projects[project.id].public is True
