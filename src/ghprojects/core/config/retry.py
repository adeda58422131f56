"""Retry policy model.

A RetryPolicy bounds the attempt count and the backoff shape of a retried
operation. It is an immutable configuration value shared by every dispatch.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ghprojects.core.constants import (
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY_SECONDS,
)


class RetryPolicy(BaseModel):
    """Attempt budget and exponential backoff shape.

    The delay after attempt ``n`` is ``min(max_delay, base_delay * 2**(n-1))``.
    With ``base_delay=1`` and ``max_delay=16`` the delays are
    1, 2, 4, 8, 16, 16, ... seconds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS, ge=1, description="Total attempts, including the first"
    )
    base_delay: float = Field(
        default=DEFAULT_BASE_DELAY_SECONDS, ge=0, description="Delay after the first failure"
    )
    max_delay: float = Field(
        default=DEFAULT_MAX_DELAY_SECONDS, gt=0, description="Cap on the exponential delay"
    )
    jitter: bool = Field(default=True, description="Add up to 10% random extra delay")

    @model_validator(mode="after")
    def _validate_delay_range(self) -> RetryPolicy:
        if self.base_delay > self.max_delay:
            raise ValueError(
                f"base_delay ({self.base_delay}) must not exceed max_delay ({self.max_delay})"
            )
        return self

    def backoff_delay(self, attempt: int) -> float:
        """Exponential delay after ``attempt`` (1-indexed), capped, without jitter."""
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        # Cap the exponent first so huge attempt numbers cannot overflow
        exponent = min(attempt - 1, 64)
        return min(self.max_delay, self.base_delay * (2 ** exponent))

    @classmethod
    def single_attempt(cls) -> RetryPolicy:
        """Policy for calls that must fail fast, such as search-as-you-type."""
        return cls(max_attempts=1, base_delay=0.0, max_delay=1.0, jitter=False)
