"""Exception hierarchy for ghprojects.

All package exceptions inherit from GhProjectsError, enabling callers to
catch broad (GhProjectsError) or narrow (e.g., RemoteError).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ghprojects.core.errors import Outcome


class GhProjectsError(Exception):
    """Base exception for all ghprojects errors."""


class RemoteError(GhProjectsError):
    """Raised by RemoteAPI implementations when a call fails.

    Attributes:
        status_code: HTTP status of the failed call, if known.
        graphql_errors: Structured GraphQL errors from the response body.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        graphql_errors: Sequence[Mapping[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.graphql_errors = list(graphql_errors) if graphql_errors else []


class SessionError(GhProjectsError):
    """Raised when the remote session cannot be established at startup.

    This is the only failure that terminates the process; it happens before
    the interactive loop starts.
    """


class PartialSuccessError(GhProjectsError):
    """Raised by a multi-step operation whose first step already committed.

    Carries the success payload of the committed step so the view can still
    apply the transition a full success would have triggered.
    """

    def __init__(self, payload: Any, outcome: Outcome) -> None:
        super().__init__(outcome.message)
        self.payload = payload
        self.outcome = outcome


class PreferencesError(GhProjectsError):
    """Raised when persisted preferences cannot be written."""


class SettingsError(GhProjectsError):
    """Raised when a settings file cannot be read or fails validation."""
