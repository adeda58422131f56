"""The Outcome model: a classified failure.

An Outcome is produced once per failure and never mutated. The view keeps
the Outcome that set its error overlay so the overlay can render the
kind-specific message.
"""

from __future__ import annotations

from dataclasses import dataclass

from .codes import ErrorKind


@dataclass(frozen=True)
class Outcome:
    """Structured classification of a failure.

    Attributes:
        kind: Error kind from the closed taxonomy.
        message: The raw (or composed) failure message.
        retryable: Whether the retry executor may try the operation again.
        retry_after: Server-directed delay in seconds, if any.
        field_errors: Field name -> problem, for validation failures.
    """

    kind: ErrorKind
    message: str
    retryable: bool = False
    retry_after: float | None = None
    field_errors: dict[str, str] | None = None

    @classmethod
    def cancelled(cls, message: str = "operation cancelled") -> Outcome:
        return cls(kind=ErrorKind.CANCELLED, message=message)

    @classmethod
    def partial_success(cls, message: str) -> Outcome:
        return cls(kind=ErrorKind.PARTIAL_SUCCESS, message=message)

    @classmethod
    def unknown(cls, message: str) -> Outcome:
        return cls(kind=ErrorKind.UNKNOWN, message=message)

    @classmethod
    def validation(cls, message: str, field_errors: dict[str, str] | None = None) -> Outcome:
        return cls(kind=ErrorKind.VALIDATION, message=message, field_errors=field_errors)

    def user_message(self) -> str:
        """Kind-specific human-readable text for the error overlay."""
        if self.kind is ErrorKind.RATE_LIMIT:
            if self.retry_after and self.retry_after > 0:
                return (
                    f"GitHub rate limit reached, retry in {round(self.retry_after)}s."
                )
            return "GitHub rate limit reached. Please wait a moment before trying again."

        if self.kind is ErrorKind.PERMISSION:
            if "token" in self.message.lower():
                return (
                    "Permission denied. Your GitHub token may not have the required "
                    "scopes. Check your access/token scopes."
                )
            return "Permission denied. Check your access/token scopes for this resource."

        if self.kind is ErrorKind.VALIDATION:
            if self.field_errors:
                pairs = "; ".join(
                    f"{name}: {problem}" for name, problem in sorted(self.field_errors.items())
                )
                return f"Validation failed: {pairs}"
            return self.message

        if self.kind is ErrorKind.CONFLICT:
            return (
                f"Conflict: {self.message}. "
                "The item may have been modified by someone else."
            )

        if self.kind is ErrorKind.TRANSIENT:
            return f"Network error: {self.message}. This will be retried automatically."

        if self.kind is ErrorKind.CANCELLED:
            return "Operation cancelled."

        return self.message

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for logging."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            "retry_after": self.retry_after,
            "field_errors": dict(self.field_errors) if self.field_errors else None,
        }
