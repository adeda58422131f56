"""Turns commands into retryable remote operations.

The builder maps each Command variant to a coroutine over the RemoteAPI
and picks the RetryPolicy it runs under. There is exactly one builder per
variant; a variant without one is rejected when this module is imported.
"""

from __future__ import annotations

import typing
from collections.abc import Awaitable, Callable
from typing import Any

from ghprojects.api.base import RemoteAPI
from ghprojects.core.config.retry import RetryPolicy
from ghprojects.core.config.settings import AppSettings
from ghprojects.core.errors import Outcome
from ghprojects.core.logging import get_logger
from ghprojects.exceptions import PartialSuccessError
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
from ghprojects.execution.dispatcher import OperationFactory
from ghprojects.execution.retry import Operation, RetryExecutor, current_retry_scope
from ghprojects.models import ProjectItem

_logger = get_logger("operations")

ApiProvider = Callable[[], RemoteAPI]


class OperationBuilder:
    """Builds operations for commands against a lazily obtained RemoteAPI.

    The API is obtained inside the worker, when the operation is built, so
    a provider that cannot produce a client (no credentials, no endpoint)
    surfaces as an ordinary failed dispatch instead of an exception in the
    view loop.
    """

    def __init__(
        self,
        api_provider: ApiProvider,
        settings: AppSettings | None = None,
        executor: RetryExecutor | None = None,
    ) -> None:
        self._api_provider = api_provider
        self.settings = settings or AppSettings()
        # Runs follow-up steps of multi-step operations
        self.executor = executor or RetryExecutor()

    def policy_for(self, command: Command) -> RetryPolicy:
        if isinstance(command, SearchUsers):
            return self.settings.search_retry
        return self.settings.retry

    def factory_for(self, command: Command) -> OperationFactory:
        """Zero-argument factory building the operation for ``command``."""
        build = _BUILDERS[type(command)]

        def factory() -> Operation:
            api = self._api_provider()
            return lambda: build(self, api, command)

        return factory


# =============================================================================
# Builders, one per command variant
# =============================================================================


async def _list_projects(b: OperationBuilder, api: RemoteAPI, cmd: ListProjects) -> Any:
    return await api.list_projects(cmd.owner, cmd.is_user, first=b.settings.page_size)


async def _list_items(b: OperationBuilder, api: RemoteAPI, cmd: ListItems) -> Any:
    return await api.list_items(cmd.project_id, first=b.settings.page_size)


async def _save_item(b: OperationBuilder, api: RemoteAPI, cmd: SaveItem) -> ProjectItem:
    assignee_ids: list[str] | None = None
    if cmd.assignee:
        assignee_ids = [await api.get_node_id(cmd.assignee)]

    if cmd.item is not None:
        return await api.update_draft_item(
            cmd.item.update_id, title=cmd.title, body=cmd.body, assignee_ids=assignee_ids
        )

    item = await api.create_draft_item(cmd.project_id, cmd.title, cmd.body)
    if assignee_ids is None:
        return item

    # The draft now exists; a failed assignment must not re-create it.
    # The follow-up shares the dispatch's cancel signal and progress reporting.
    scope = current_retry_scope()
    result = await b.executor.execute(
        lambda: api.update_draft_item(
            item.update_id, title=cmd.title, body=cmd.body, assignee_ids=assignee_ids
        ),
        b.settings.retry,
        on_retry=scope.on_retry,
        cancel=scope.cancel,
    )
    if result.outcome is not None:
        _logger.warning(
            "operations.assignee_failed",
            item_id=item.id,
            assignee=cmd.assignee,
            kind=result.outcome.kind.value,
        )
        raise PartialSuccessError(
            item,
            Outcome.partial_success(
                f"Draft issue created, but failed to assign user: {result.outcome.user_message()}"
            ),
        )
    return typing.cast(ProjectItem, result.value)


async def _delete_item(b: OperationBuilder, api: RemoteAPI, cmd: DeleteItem) -> str:
    await api.delete_item(cmd.project_id, cmd.item_id)
    return cmd.item_id


async def _list_repositories(b: OperationBuilder, api: RemoteAPI, cmd: ListRepositories) -> Any:
    return await api.list_repositories(cmd.owner, cmd.is_user)


async def _convert_draft(b: OperationBuilder, api: RemoteAPI, cmd: ConvertDraft) -> Any:
    return await api.convert_draft_to_issue(cmd.item_id, cmd.repository_id)


async def _search_users(b: OperationBuilder, api: RemoteAPI, cmd: SearchUsers) -> Any:
    if cmd.org:
        return await api.search_org_members(cmd.org, cmd.query, limit=b.settings.search_limit)
    return await api.search_users(cmd.query, limit=b.settings.search_limit)


async def _create_project(b: OperationBuilder, api: RemoteAPI, cmd: CreateProject) -> Any:
    owner_id = await api.get_node_id(cmd.owner)
    return await api.create_project(
        owner_id, cmd.title, description=cmd.description, public=cmd.public
    )


_BUILDERS: dict[type, Callable[[OperationBuilder, RemoteAPI, Any], Awaitable[Any]]] = {
    ListProjects: _list_projects,
    ListItems: _list_items,
    SaveItem: _save_item,
    DeleteItem: _delete_item,
    ListRepositories: _list_repositories,
    ConvertDraft: _convert_draft,
    SearchUsers: _search_users,
    CreateProject: _create_project,
}


def _check_builders() -> None:
    missing = [t.__name__ for t in typing.get_args(Command) if t not in _BUILDERS]
    if missing:
        raise TypeError(f"no operation builder for command(s): {', '.join(missing)}")


_check_builders()
