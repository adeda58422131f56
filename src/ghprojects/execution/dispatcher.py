"""CommandDispatcher: runs remote operations off the interactive loop.

Every dispatch becomes an independent asyncio task (a *worker*) that runs
the operation through the RetryExecutor and then puts exactly one
immutable TerminalMessage on the loop's inbox. Workers never touch the
view state; the loop that owns the inbox is the single writer.

While an operation waits between attempts, the worker also posts
non-terminal RetryProgress messages so the view can show what is going on.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ghprojects.core.config.retry import RetryPolicy
from ghprojects.core.errors import Outcome
from ghprojects.core.logging import get_logger
from ghprojects.execution.commands import Command
from ghprojects.execution.retry import (
    ExecutionResult,
    Operation,
    RetryExecutor,
    retry_status_message,
)

_logger = get_logger("dispatcher")

OperationFactory = Callable[[], Operation]
"""Builds the operation inside the worker. Raising here means the call
could not even be started."""


@dataclass(frozen=True)
class TerminalMessage:
    """The one result a dispatch delivers, tagged with its request id."""

    request_id: int
    command: Command
    result: ExecutionResult

    @property
    def slot(self) -> str:
        return self.command.slot


@dataclass(frozen=True)
class RetryProgress:
    """A dispatch is waiting before its next attempt."""

    request_id: int
    command: Command
    attempt: int
    max_attempts: int
    outcome: Outcome
    delay: float

    @property
    def slot(self) -> str:
        return self.command.slot

    def message(self) -> str:
        return retry_status_message(self.attempt, self.max_attempts, self.outcome)


@dataclass
class _Worker:
    task: asyncio.Task[None]
    cancel: asyncio.Event
    command: Command


class CommandDispatcher:
    """Concurrency boundary between the view loop and remote operations.

    ``dispatch`` returns as soon as the worker task is created. The worker
    delivers its TerminalMessage with ``put_nowait`` on an unbounded queue,
    so delivery never blocks and never fails.
    """

    def __init__(
        self,
        inbox: asyncio.Queue[Any],
        executor: RetryExecutor | None = None,
    ) -> None:
        self._inbox = inbox
        self._executor = executor or RetryExecutor()
        self._workers: dict[int, _Worker] = {}

    @property
    def in_flight(self) -> int:
        """Number of workers that have not finished yet."""
        return len(self._workers)

    def is_running(self, request_id: int) -> bool:
        return request_id in self._workers

    def dispatch(
        self,
        op_factory: OperationFactory,
        policy: RetryPolicy,
        *,
        request_id: int,
        command: Command,
    ) -> asyncio.Task[None]:
        """Start a worker for ``command`` and return its task immediately.

        Must be called from within the running event loop.
        """
        cancel = asyncio.Event()
        task = asyncio.create_task(
            self._run(op_factory, policy, request_id, command, cancel),
            name=f"dispatch-{command.slot}-{request_id}",
        )
        self._workers[request_id] = _Worker(task=task, cancel=cancel, command=command)
        task.add_done_callback(lambda t: self._on_worker_done(request_id, t))
        _logger.debug(
            "dispatcher.dispatched",
            request_id=request_id,
            slot=command.slot,
            command=type(command).__name__,
        )
        return task

    def cancel(self, request_id: int) -> bool:
        """Set the cancel signal of a running dispatch.

        The worker still delivers its terminal message (a Cancelled outcome,
        or the result of an attempt that was already in progress).

        Returns:
            True if the dispatch was running.
        """
        worker = self._workers.get(request_id)
        if worker is None:
            return False
        worker.cancel.set()
        _logger.info("dispatcher.cancel_requested", request_id=request_id, slot=worker.command.slot)
        return True

    def abandon(self) -> int:
        """Cancel every worker task without waiting. Nothing more is delivered.

        Returns:
            Number of workers abandoned.
        """
        abandoned = 0
        for worker in list(self._workers.values()):
            if not worker.task.done():
                worker.task.cancel()
                abandoned += 1
        self._workers.clear()
        if abandoned:
            _logger.info("dispatcher.abandoned", count=abandoned)
        return abandoned

    async def _run(
        self,
        op_factory: OperationFactory,
        policy: RetryPolicy,
        request_id: int,
        command: Command,
        cancel: asyncio.Event,
    ) -> None:
        def on_retry(attempt: int, outcome: Outcome, delay: float) -> None:
            self._inbox.put_nowait(
                RetryProgress(
                    request_id=request_id,
                    command=command,
                    attempt=attempt + 1,
                    max_attempts=policy.max_attempts,
                    outcome=outcome,
                    delay=delay,
                )
            )

        try:
            op = op_factory()
        except Exception as e:
            # The call never started: report it once, with zero attempts
            _logger.warning(
                "dispatcher.operation_unavailable",
                request_id=request_id,
                slot=command.slot,
                error=str(e),
            )
            result = ExecutionResult(outcome=Outcome.unknown(str(e) or type(e).__name__))
        else:
            result = await self._executor.execute(op, policy, on_retry=on_retry, cancel=cancel)

        message = TerminalMessage(request_id=request_id, command=command, result=result)
        self._inbox.put_nowait(message)
        _logger.debug(
            "dispatcher.delivered",
            request_id=request_id,
            slot=command.slot,
            ok=result.ok,
            attempts=result.attempts,
        )

    def _on_worker_done(self, request_id: int, task: asyncio.Task[None]) -> None:
        worker = self._workers.get(request_id)
        if worker is not None and worker.task is task:
            del self._workers[request_id]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error(
                "dispatcher.worker_died",
                request_id=request_id,
                error=str(exc),
                task_name=task.get_name(),
            )
