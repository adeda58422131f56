"""Retry executor with exponential backoff, jitter and cancellation.

The executor repeatedly invokes an operation under a RetryPolicy, using
the ErrorClassifier to decide whether a failure is worth another attempt:

- Non-retryable failures return on the first occurrence (zero wasted
  attempts).
- Retryable failures (rate limit, transient) consume the whole attempt
  budget before surfacing.
- A server-directed ``retry_after`` replaces the exponential delay.
- Cancellation wins over continuing: the cancel signal is checked before
  each attempt, before each wait, and for the whole wait.

Example usage:
    executor = RetryExecutor()
    result = await executor.execute(
        lambda: api.list_items(project_id),
        RetryPolicy(max_attempts=3),
        on_retry=lambda attempt, outcome, delay: print(attempt, delay),
        cancel=cancel_event,
    )
    if result.ok:
        items = result.value
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from ghprojects.core.config.retry import RetryPolicy
from ghprojects.core.constants import JITTER_FRACTION, TRUNCATE_ERROR_MESSAGE_CHARS
from ghprojects.core.errors import ErrorClassifier, ErrorKind, Outcome
from ghprojects.core.logging import get_logger
from ghprojects.exceptions import PartialSuccessError

_logger = get_logger("retry")

Operation = Callable[[], Awaitable[Any]]
"""A zero-argument coroutine factory; each call is one attempt."""

RetryCallback = Callable[[int, Outcome, float], None]
"""Called as ``on_retry(attempt, outcome, delay)`` before each backoff wait."""


@dataclass(frozen=True)
class RetryScope:
    """Cancel signal and retry observer of the execution currently running.

    Multi-step operations read it to run their follow-up steps under the
    same cancel signal and to report those steps' retries.
    """

    cancel: asyncio.Event | None = None
    on_retry: RetryCallback | None = None


_current_scope: ContextVar[RetryScope | None] = ContextVar(
    "ghprojects_retry_scope", default=None
)


def current_retry_scope() -> RetryScope:
    """Scope of the innermost running ``execute``; empty outside one."""
    return _current_scope.get() or RetryScope()


@dataclass(frozen=True)
class ExecutionResult:
    """What an execution ended with.

    Exactly one of these holds:
        - success: ``outcome`` is None and ``value`` is the operation's result
        - failure: ``outcome`` is set and ``value`` is None
        - partial success: ``outcome.kind`` is PARTIAL_SUCCESS and ``value``
          carries the payload of the committed step
    """

    value: Any = None
    outcome: Outcome | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome is None

    @property
    def partial(self) -> bool:
        return self.outcome is not None and self.outcome.kind is ErrorKind.PARTIAL_SUCCESS


def compute_delay(
    attempt: int,
    policy: RetryPolicy,
    outcome: Outcome,
    rng: random.Random | None = None,
) -> float:
    """Delay before the attempt following ``attempt``.

    A positive ``outcome.retry_after`` is used as-is. Otherwise the delay is
    ``min(max_delay, base_delay * 2**(attempt-1))`` plus, when the policy
    enables jitter, up to 10% extra.
    """
    if outcome.retry_after is not None and outcome.retry_after > 0:
        return outcome.retry_after

    delay = policy.backoff_delay(attempt)
    if policy.jitter and delay > 0:
        draw = (rng or random).random()
        delay += delay * JITTER_FRACTION * draw
    return delay


class RetryExecutor:
    """Runs operations under a retry policy.

    The executor holds no per-call state, so one instance is shared by all
    dispatches.
    """

    def __init__(
        self,
        classifier: ErrorClassifier | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            classifier: Classifier for failures. Defaults to the standard rules.
            sleep: Replacement for ``asyncio.sleep`` used when no cancel
                signal is supplied. Tests use it to observe delays without
                waiting.
            rng: Random source for jitter.
        """
        self.classifier = classifier or ErrorClassifier()
        self._sleep = sleep or asyncio.sleep
        self._rng = rng

    async def execute(
        self,
        op: Operation,
        policy: RetryPolicy,
        on_retry: RetryCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ExecutionResult:
        """Invoke ``op`` until it succeeds, fails permanently, or is cancelled.

        Args:
            op: Zero-argument coroutine factory, called once per attempt.
            policy: Attempt budget and backoff shape.
            on_retry: Observer notified before each wait. It must not block.
            cancel: Signal that aborts the execution.

        Returns:
            ExecutionResult with the value, or with the Outcome of the last
            failure, or with a Cancelled Outcome.
        """
        token = _current_scope.set(RetryScope(cancel=cancel, on_retry=on_retry))
        try:
            return await self._execute(op, policy, on_retry, cancel)
        finally:
            _current_scope.reset(token)

    async def _execute(
        self,
        op: Operation,
        policy: RetryPolicy,
        on_retry: RetryCallback | None,
        cancel: asyncio.Event | None,
    ) -> ExecutionResult:
        for attempt in range(1, policy.max_attempts + 1):
            if cancel is not None and cancel.is_set():
                return self._cancelled(attempt - 1)

            try:
                value = await op()
            except PartialSuccessError as e:
                _logger.warning(
                    "retry.partial_success",
                    attempt=attempt,
                    message=e.outcome.message[:TRUNCATE_ERROR_MESSAGE_CHARS],
                )
                return ExecutionResult(value=e.payload, outcome=e.outcome, attempts=attempt)
            except Exception as e:
                outcome = self.classifier.classify_error(e)
            else:
                if attempt > 1:
                    _logger.info("retry.recovered", attempt=attempt)
                return ExecutionResult(value=value, attempts=attempt)

            if not outcome.retryable or attempt >= policy.max_attempts:
                _logger.info(
                    "retry.gave_up",
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    kind=outcome.kind.value,
                    retryable=outcome.retryable,
                )
                return ExecutionResult(outcome=outcome, attempts=attempt)

            delay = compute_delay(attempt, policy, outcome, self._rng)
            _logger.debug(
                "retry.attempt_failed",
                attempt=attempt,
                max_attempts=policy.max_attempts,
                kind=outcome.kind.value,
                delay_seconds=round(delay, 3),
            )
            if on_retry is not None:
                on_retry(attempt, outcome, delay)

            if await self._wait(delay, cancel):
                return self._cancelled(attempt)

        # range() is non-empty because max_attempts >= 1
        raise AssertionError("unreachable")

    async def _wait(self, delay: float, cancel: asyncio.Event | None) -> bool:
        """Wait ``delay`` seconds. Returns True if cancelled before or during."""
        if cancel is None:
            await self._sleep(delay)
            return False
        if cancel.is_set():
            return True
        try:
            await asyncio.wait_for(cancel.wait(), timeout=delay)
        except TimeoutError:
            return False
        return True

    @staticmethod
    def _cancelled(attempts: int) -> ExecutionResult:
        _logger.info("retry.cancelled", attempts=attempts)
        return ExecutionResult(outcome=Outcome.cancelled(), attempts=attempts)


def retry_status_message(attempt: int, max_attempts: int, outcome: Outcome | None = None) -> str:
    """Loading text shown while an operation is between attempts."""
    if outcome is None:
        return f"Retrying... (attempt {attempt}/{max_attempts})"
    return f"Retrying... (attempt {attempt}/{max_attempts}) - {outcome.user_message()}"
