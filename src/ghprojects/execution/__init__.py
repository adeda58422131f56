"""Execution layer: retrying remote operations off the view loop."""

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
from ghprojects.execution.dispatcher import CommandDispatcher, RetryProgress, TerminalMessage
from ghprojects.execution.operations import OperationBuilder
from ghprojects.execution.retry import (
    ExecutionResult,
    RetryExecutor,
    compute_delay,
    retry_status_message,
)

__all__ = [
    "Command",
    "CommandDispatcher",
    "ConvertDraft",
    "CreateProject",
    "DeleteItem",
    "ExecutionResult",
    "ListItems",
    "ListProjects",
    "ListRepositories",
    "OperationBuilder",
    "RetryExecutor",
    "RetryProgress",
    "SaveItem",
    "SearchUsers",
    "TerminalMessage",
    "compute_delay",
    "retry_status_message",
]
