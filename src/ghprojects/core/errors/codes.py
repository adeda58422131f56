"""Error kinds and retry timing constants.

Error Kind Taxonomy
===================

Every failure of a remote operation is classified into exactly one kind.
The kind decides whether the retry executor absorbs the failure or
surfaces it to the view on first occurrence.

    | Kind            | Retryable | Typical trigger                        |
    |-----------------|-----------|----------------------------------------|
    | rate_limit      | Yes       | HTTP 429, "rate limit" in message      |
    | permission      | No        | HTTP 401/403, "forbidden"              |
    | validation      | No        | HTTP 400, "invalid", unknown user      |
    | conflict        | No        | HTTP 409, "concurrent" modification    |
    | transient       | Yes       | timeouts, connection drops, HTTP 5xx   |
    | cancelled       | No        | user cancelled during a retry wait     |
    | partial_success | No        | first step committed, follow-up failed |
    | unknown         | No        | anything else                          |
"""

from __future__ import annotations

from enum import Enum

from ghprojects.core.constants import DEFAULT_RATE_LIMIT_WAIT_SECONDS


class RetryDelays:
    """Constants for retry delay durations (seconds)."""

    RATE_LIMIT_DEFAULT: float = DEFAULT_RATE_LIMIT_WAIT_SECONDS
    NONE: float = 0.0


class ErrorKind(str, Enum):
    """Closed set of failure kinds produced by the classifier."""

    RATE_LIMIT = "rate_limit"
    PERMISSION = "permission"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    TRANSIENT = "transient"
    CANCELLED = "cancelled"
    PARTIAL_SUCCESS = "partial_success"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        """Whether failures of this kind are retried by the executor."""
        return self in (ErrorKind.RATE_LIMIT, ErrorKind.TRANSIENT)

    @property
    def is_warning(self) -> bool:
        """Partial successes are shown as warnings, not errors."""
        return self is ErrorKind.PARTIAL_SUCCESS
