"""Tests for RetryExecutor, compute_delay and RetryPolicy."""

import asyncio
import random

import pytest
from pydantic import ValidationError

from ghprojects.core.config import RetryPolicy
from ghprojects.core.errors import ErrorClassifier, ErrorKind, Outcome
from ghprojects.exceptions import PartialSuccessError, RemoteError
from ghprojects.execution.retry import (
    ExecutionResult,
    RetryExecutor,
    RetryScope,
    compute_delay,
    current_retry_scope,
    retry_status_message,
)


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedOperation:
    """Raises the scripted errors in order, then returns ``value``."""

    def __init__(self, *errors: BaseException, value: object = "ok", forever: bool = False):
        self.errors = list(errors)
        self.value = value
        self.forever = forever
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.forever:
            raise self.errors[0]
        if self.errors:
            raise self.errors.pop(0)
        return self.value


def no_jitter(**kwargs: object) -> RetryPolicy:
    return RetryPolicy(jitter=False, **kwargs)  # type: ignore[arg-type]


@pytest.fixture
def sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def executor(sleep: FakeSleep) -> RetryExecutor:
    return RetryExecutor(sleep=sleep)


class TestExecute:
    @pytest.mark.asyncio
    async def test_success_first_attempt(self, executor: RetryExecutor, sleep: FakeSleep) -> None:
        op = ScriptedOperation(value=[1, 2])
        result = await executor.execute(op, no_jitter())
        assert result.ok
        assert result.value == [1, 2]
        assert result.attempts == 1
        assert op.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_retryable_failure_exhausts_budget(
        self, executor: RetryExecutor, sleep: FakeSleep
    ) -> None:
        op = ScriptedOperation(RemoteError("connection reset"), forever=True)
        result = await executor.execute(op, no_jitter(max_attempts=4))

        assert op.calls == 4
        assert result.attempts == 4
        assert result.outcome == ErrorClassifier().classify_error(RemoteError("connection reset"))
        assert len(sleep.delays) == 3

    @pytest.mark.asyncio
    async def test_non_retryable_short_circuits(
        self, executor: RetryExecutor, sleep: FakeSleep
    ) -> None:
        op = ScriptedOperation(RemoteError("Forbidden", status_code=403), forever=True)
        result = await executor.execute(op, no_jitter(max_attempts=5))

        assert op.calls == 1
        assert result.outcome is not None
        assert result.outcome.kind is ErrorKind.PERMISSION
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(
        self, executor: RetryExecutor, sleep: FakeSleep
    ) -> None:
        op = ScriptedOperation(TimeoutError(), RemoteError("Bad Gateway", status_code=502))
        result = await executor.execute(op, no_jitter(max_attempts=3))

        assert result.ok
        assert result.value == "ok"
        assert result.attempts == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_backoff_is_capped(self, executor: RetryExecutor, sleep: FakeSleep) -> None:
        op = ScriptedOperation(RemoteError("network down"), forever=True)
        await executor.execute(op, no_jitter(max_attempts=7, base_delay=1.0, max_delay=16.0))
        assert sleep.delays == [1.0, 2.0, 4.0, 8.0, 16.0, 16.0]

    @pytest.mark.asyncio
    async def test_retry_after_takes_precedence(
        self, executor: RetryExecutor, sleep: FakeSleep
    ) -> None:
        op = ScriptedOperation(RemoteError("rate limit exceeded, retry after 7 seconds"))
        result = await executor.execute(op, RetryPolicy(max_attempts=2, jitter=True))
        assert result.ok
        assert sleep.delays == [7.0]

    @pytest.mark.asyncio
    async def test_on_retry_observes_each_wait(self, executor: RetryExecutor) -> None:
        seen: list[tuple[int, ErrorKind, float]] = []
        op = ScriptedOperation(RemoteError("timeout"), forever=True)

        await executor.execute(
            op,
            no_jitter(max_attempts=3),
            on_retry=lambda attempt, outcome, delay: seen.append((attempt, outcome.kind, delay)),
        )

        assert seen == [(1, ErrorKind.TRANSIENT, 1.0), (2, ErrorKind.TRANSIENT, 2.0)]

    @pytest.mark.asyncio
    async def test_partial_success_returns_payload(self, executor: RetryExecutor) -> None:
        outcome = Outcome.partial_success("created, but assignment failed")
        op = ScriptedOperation(PartialSuccessError("item", outcome), forever=True)

        result = await executor.execute(op, no_jitter(max_attempts=3))

        assert op.calls == 1
        assert result.partial
        assert not result.ok
        assert result.value == "item"
        assert result.outcome is outcome


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_before_first_attempt(self, executor: RetryExecutor) -> None:
        cancel = asyncio.Event()
        cancel.set()
        op = ScriptedOperation()

        result = await executor.execute(op, no_jitter(), cancel=cancel)

        assert op.calls == 0
        assert result.attempts == 0
        assert result.outcome is not None
        assert result.outcome.kind is ErrorKind.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_set_by_observer_skips_wait(self, executor: RetryExecutor) -> None:
        cancel = asyncio.Event()
        op = ScriptedOperation(RemoteError("timeout"), forever=True)

        result = await executor.execute(
            op,
            no_jitter(max_attempts=5, base_delay=30.0, max_delay=30.0),
            on_retry=lambda *_: cancel.set(),
            cancel=cancel,
        )

        assert op.calls == 1
        assert result.attempts == 1
        assert result.outcome is not None
        assert result.outcome.kind is ErrorKind.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_during_wait_returns_promptly(self) -> None:
        executor = RetryExecutor()
        cancel = asyncio.Event()
        waiting = asyncio.Event()
        op = ScriptedOperation(RemoteError("connection refused"), forever=True)

        task = asyncio.create_task(
            executor.execute(
                op,
                no_jitter(max_attempts=5, base_delay=30.0, max_delay=30.0),
                on_retry=lambda *_: waiting.set(),
                cancel=cancel,
            )
        )
        await asyncio.wait_for(waiting.wait(), timeout=1.0)
        cancel.set()
        result = await asyncio.wait_for(task, timeout=1.0)

        assert op.calls == 1
        assert result.outcome is not None
        assert result.outcome.kind is ErrorKind.CANCELLED

    @pytest.mark.asyncio
    async def test_wait_elapses_without_cancel(self) -> None:
        executor = RetryExecutor()
        op = ScriptedOperation(RemoteError("timeout"))

        result = await executor.execute(
            op,
            no_jitter(max_attempts=2, base_delay=0.001, max_delay=0.001),
            cancel=asyncio.Event(),
        )

        assert result.ok
        assert op.calls == 2


class TestRetryScope:
    @pytest.mark.asyncio
    async def test_operation_sees_running_scope(self, executor: RetryExecutor) -> None:
        cancel = asyncio.Event()
        seen: list[RetryScope] = []

        async def op() -> str:
            seen.append(current_retry_scope())
            return "ok"

        def observer(attempt: int, outcome: Outcome, delay: float) -> None:
            pass

        await executor.execute(op, no_jitter(), on_retry=observer, cancel=cancel)

        assert seen == [RetryScope(cancel=cancel, on_retry=observer)]
        assert current_retry_scope() == RetryScope()

    @pytest.mark.asyncio
    async def test_nested_execution_inherits_cancel(self, executor: RetryExecutor) -> None:
        cancel = asyncio.Event()
        inner = ScriptedOperation(RemoteError("timeout"), forever=True)

        async def outer() -> ExecutionResult:
            scope = current_retry_scope()
            return await executor.execute(
                inner,
                no_jitter(max_attempts=5),
                on_retry=lambda *_: cancel.set(),
                cancel=scope.cancel,
            )

        result = await executor.execute(outer, no_jitter(), cancel=cancel)

        assert inner.calls == 1
        assert result.value.outcome.kind is ErrorKind.CANCELLED


class TestComputeDelay:
    def test_jitter_within_ten_percent(self) -> None:
        policy = RetryPolicy(base_delay=1.0, max_delay=16.0, jitter=True)
        outcome = Outcome(kind=ErrorKind.TRANSIENT, message="timeout", retryable=True)
        rng = random.Random(1234)

        for attempt in range(1, 8):
            base = policy.backoff_delay(attempt)
            delay = compute_delay(attempt, policy, outcome, rng)
            assert base <= delay <= base * 1.1

    def test_retry_after_is_not_jittered(self) -> None:
        policy = RetryPolicy(jitter=True)
        outcome = Outcome(kind=ErrorKind.RATE_LIMIT, message="x", retryable=True, retry_after=5)
        assert compute_delay(3, policy, outcome, random.Random(0)) == 5

    def test_non_positive_retry_after_falls_back_to_backoff(self) -> None:
        policy = no_jitter(base_delay=2.0, max_delay=16.0)
        outcome = Outcome(kind=ErrorKind.RATE_LIMIT, message="x", retryable=True, retry_after=0)
        assert compute_delay(2, policy, outcome) == 4.0


class TestRetryPolicy:
    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_attempts == 5
        assert policy.base_delay == 1.0
        assert policy.max_delay == 16.0
        assert policy.jitter is True

    def test_base_delay_above_max_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy(base_delay=10.0, max_delay=5.0)

    def test_zero_attempts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy(max_attempts=0)

    def test_backoff_delay_requires_positive_attempt(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy().backoff_delay(0)

    def test_huge_attempt_stays_capped(self) -> None:
        assert RetryPolicy(max_delay=16.0).backoff_delay(10_000) == 16.0

    def test_single_attempt(self) -> None:
        policy = RetryPolicy.single_attempt()
        assert policy.max_attempts == 1
        assert policy.jitter is False

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy().max_attempts = 3  # type: ignore[misc]


class TestExecutionResult:
    def test_ok_and_partial(self) -> None:
        assert ExecutionResult(value=1).ok
        failed = ExecutionResult(outcome=Outcome.unknown("x"))
        assert not failed.ok
        assert not failed.partial


class TestRetryStatusMessage:
    def test_with_outcome(self) -> None:
        outcome = Outcome(kind=ErrorKind.TRANSIENT, message="timeout", retryable=True)
        assert retry_status_message(2, 5, outcome) == (
            "Retrying... (attempt 2/5) - Network error: timeout. "
            "This will be retried automatically."
        )

    def test_without_outcome(self) -> None:
        assert retry_status_message(3, 3) == "Retrying... (attempt 3/3)"
