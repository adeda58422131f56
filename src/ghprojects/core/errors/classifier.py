"""ErrorClassifier: ordered, rule-based classification of remote failures.

The classifier maps a raw failure (exception or message) plus an optional
HTTP status to an Outcome. Rules are evaluated in a fixed order and the
first match wins; the order is part of the contract because inputs can
match several rules (a 403 whose message says "invalid" is a permission
error, not a validation error).

Substring matching couples classification to the exact wording of
upstream messages. Structured GraphQL error types are preferred when the
remote side supplies them (see ``classify_graphql_error``); the message
rules remain the fallback and their ordering is preserved.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from ghprojects.core.constants import TRUNCATE_ERROR_MESSAGE_CHARS
from ghprojects.core.logging import get_logger

from .codes import ErrorKind, RetryDelays
from .models import Outcome

_logger = get_logger("errors")


# =============================================================================
# Default substring rules. Kept at module scope so the ordered rule list is
# reviewable as data.
# =============================================================================

_DEFAULT_RATE_LIMIT_PATTERNS: tuple[str, ...] = (
    "rate limit",
    "rate_limited",
)

_DEFAULT_PERMISSION_PATTERNS: tuple[str, ...] = (
    "not authorized",
    "permission denied",
    "forbidden",
    "does not have access",
)

_DEFAULT_VALIDATION_PATTERNS: tuple[str, ...] = (
    "invalid",
    "validation",
)

_DEFAULT_CONFLICT_PATTERNS: tuple[str, ...] = (
    "conflict",
    "concurrent",
)

_DEFAULT_TRANSIENT_PATTERNS: tuple[str, ...] = (
    "timeout",
    "connection",
    "network",
    "temporary",
)

_UNIT = r"(seconds?|secs?|s|minutes?|mins?|m|hours?|hrs?|h)"
_NUMBER = r"(\d+(?:\.\d+)?)"

_RETRY_AFTER_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        rf"retry[-_ ]after[:=\s]+{_NUMBER}\s*{_UNIT}?\b",
        rf"(?:retry|try again|wait)\s+in\s+{_NUMBER}\s*{_UNIT}\b",
        rf"resets?\s+in\s+{_NUMBER}\s*{_UNIT}\b",
    )
)

_UNIT_SECONDS: dict[str, float] = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
}

_HTTP_BAD_REQUEST = 400
_HTTP_UNAUTHORIZED = 401
_HTTP_FORBIDDEN = 403
_HTTP_CONFLICT = 409
_HTTP_TOO_MANY_REQUESTS = 429
_HTTP_SERVER_ERROR = 500


def _contains_any(text: str, patterns: Sequence[str]) -> bool:
    return any(p in text for p in patterns)


def _unit_multiplier(unit: str | None) -> float:
    if not unit:
        return 1.0
    return _UNIT_SECONDS.get(unit[0].lower(), 1.0)


def parse_retry_after(text: str) -> float | None:
    """Parse a server-directed retry delay from a failure message.

    Recognizes "retry after 30 seconds", "retry-after: 120", "try again in
    2 minutes", "resets in 1 hour" and similar tokens.

    Returns:
        Delay in seconds, or None when no positive duration token is present.
    """
    for pattern in _RETRY_AFTER_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        seconds = float(match.group(1)) * _unit_multiplier(match.group(2))
        if seconds > 0:
            return seconds
    return None


def extract_field_errors(message: str) -> dict[str, str] | None:
    """Heuristically map a validation message onto editor fields.

    An unknown user ("user ... not found") implies the assignee field; any
    mention of "title" implies the title field.
    """
    lowered = message.lower()
    field_errors: dict[str, str] = {}
    if "user" in lowered and "not found" in lowered:
        field_errors["assignee"] = "User not found"
    if "title" in lowered:
        field_errors["title"] = "Invalid title"
    return field_errors or None


class ErrorClassifier:
    """Classifies failures through an ordered rule list.

    Rule order (first match wins):
        1. rate limit   - 429, "rate limit", "rate_limited"
        2. permission   - 401/403, "not authorized", "forbidden", ...
        3. validation   - 400, "invalid", "validation", "user"+"not found"
        4. conflict     - 409, "conflict", "concurrent"
        5. transient    - "timeout", "connection", "network", "temporary", >=500
        6. unknown      - everything else

    Classification is a pure function of (message, status): identical
    inputs always yield equal Outcomes.
    """

    def __init__(
        self,
        rate_limit_patterns: Sequence[str] | None = None,
        permission_patterns: Sequence[str] | None = None,
        validation_patterns: Sequence[str] | None = None,
        conflict_patterns: Sequence[str] | None = None,
        transient_patterns: Sequence[str] | None = None,
        default_rate_limit_wait: float = RetryDelays.RATE_LIMIT_DEFAULT,
    ) -> None:
        self.rate_limit_patterns = tuple(rate_limit_patterns or _DEFAULT_RATE_LIMIT_PATTERNS)
        self.permission_patterns = tuple(permission_patterns or _DEFAULT_PERMISSION_PATTERNS)
        self.validation_patterns = tuple(validation_patterns or _DEFAULT_VALIDATION_PATTERNS)
        self.conflict_patterns = tuple(conflict_patterns or _DEFAULT_CONFLICT_PATTERNS)
        self.transient_patterns = tuple(transient_patterns or _DEFAULT_TRANSIENT_PATTERNS)
        self.default_rate_limit_wait = default_rate_limit_wait

        self._rules: tuple[Callable[[str, str, int | None], Outcome | None], ...] = (
            self._classify_rate_limit,
            self._classify_permission,
            self._classify_validation,
            self._classify_conflict,
            self._classify_transient,
        )

    # ------------------------------------------------------------------
    # Ordered message/status rules
    # ------------------------------------------------------------------

    def classify(self, error: object, http_status: int | None = None) -> Outcome | None:
        """Classify a raw failure.

        Args:
            error: An exception or message. None means "no failure".
            http_status: Optional HTTP status code of the failed call.

        Returns:
            The Outcome, or None when there is no error to classify.
        """
        if error is None:
            return None
        message = str(error)
        lowered = message.lower()

        for rule in self._rules:
            outcome = rule(message, lowered, http_status)
            if outcome is not None:
                break
        else:
            outcome = Outcome(kind=ErrorKind.UNKNOWN, message=message, retryable=False)

        _logger.debug(
            "error_classified",
            kind=outcome.kind.value,
            retryable=outcome.retryable,
            retry_after=outcome.retry_after,
            http_status=http_status,
            message=message[:TRUNCATE_ERROR_MESSAGE_CHARS],
        )
        return outcome

    def _classify_rate_limit(
        self, message: str, lowered: str, status: int | None
    ) -> Outcome | None:
        if status != _HTTP_TOO_MANY_REQUESTS and not _contains_any(
            lowered, self.rate_limit_patterns
        ):
            return None
        retry_after = parse_retry_after(message)
        return Outcome(
            kind=ErrorKind.RATE_LIMIT,
            message=message,
            retryable=True,
            retry_after=retry_after if retry_after is not None else self.default_rate_limit_wait,
        )

    def _classify_permission(
        self, message: str, lowered: str, status: int | None
    ) -> Outcome | None:
        if status not in (_HTTP_UNAUTHORIZED, _HTTP_FORBIDDEN) and not _contains_any(
            lowered, self.permission_patterns
        ):
            return None
        return Outcome(kind=ErrorKind.PERMISSION, message=message, retryable=False)

    def _classify_validation(
        self, message: str, lowered: str, status: int | None
    ) -> Outcome | None:
        unknown_user = "not found" in lowered and "user" in lowered
        if (
            status != _HTTP_BAD_REQUEST
            and not _contains_any(lowered, self.validation_patterns)
            and not unknown_user
        ):
            return None
        return Outcome(
            kind=ErrorKind.VALIDATION,
            message=message,
            retryable=False,
            field_errors=extract_field_errors(message),
        )

    def _classify_conflict(
        self, message: str, lowered: str, status: int | None
    ) -> Outcome | None:
        if status != _HTTP_CONFLICT and not _contains_any(lowered, self.conflict_patterns):
            return None
        return Outcome(kind=ErrorKind.CONFLICT, message=message, retryable=False)

    def _classify_transient(
        self, message: str, lowered: str, status: int | None
    ) -> Outcome | None:
        server_error = status is not None and status >= _HTTP_SERVER_ERROR
        if not server_error and not _contains_any(lowered, self.transient_patterns):
            return None
        return Outcome(kind=ErrorKind.TRANSIENT, message=message, retryable=True)

    # ------------------------------------------------------------------
    # Structured GraphQL errors
    # ------------------------------------------------------------------

    def classify_graphql_error(self, error: Mapping[str, Any]) -> Outcome:
        """Classify one structured GraphQL error.

        The GraphQL ``type`` code is consulted first; message keywords are
        the fallback. ``extensions.retryAfter`` and ``extensions.fields``
        supply the retry delay and field errors.
        """
        error_type = str(error.get("type") or "").upper()
        message = str(error.get("message") or "")
        lowered = message.lower()
        extensions = error.get("extensions")
        if not isinstance(extensions, Mapping):
            extensions = None

        if error_type == "RATE_LIMITED" or (not error_type and "rate limit" in lowered):
            return self._graphql_rate_limit(message, extensions)
        if error_type in ("FORBIDDEN", "UNAUTHORIZED"):
            return Outcome(kind=ErrorKind.PERMISSION, message=message)
        if error_type in ("NOT_FOUND", "INVALID"):
            return Outcome(
                kind=ErrorKind.VALIDATION,
                message=message,
                field_errors=_extension_field_errors(extensions),
            )

        if "rate limit" in lowered:
            return self._graphql_rate_limit(message, extensions)
        if _contains_any(lowered, ("permission", "authorized", "access")):
            return Outcome(kind=ErrorKind.PERMISSION, message=message)
        if _contains_any(lowered, ("invalid", "not found")):
            return Outcome(kind=ErrorKind.VALIDATION, message=message)
        return Outcome(kind=ErrorKind.UNKNOWN, message=message)

    def _graphql_rate_limit(
        self, message: str, extensions: Mapping[str, Any] | None
    ) -> Outcome:
        retry_after = self.default_rate_limit_wait
        if extensions is not None:
            value = extensions.get("retryAfter")
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
                retry_after = float(value)
        return Outcome(
            kind=ErrorKind.RATE_LIMIT,
            message=message,
            retryable=True,
            retry_after=retry_after,
        )

    def parse_graphql_errors(self, body: str | bytes) -> Outcome | None:
        """Classify the first error of a GraphQL JSON error body.

        Returns None when the body is not JSON or carries no errors.
        """
        try:
            payload = json.loads(body)
        except (ValueError, TypeError):
            return None
        if not isinstance(payload, Mapping):
            return None
        errors = payload.get("errors")
        if not isinstance(errors, list) or not errors or not isinstance(errors[0], Mapping):
            return None
        return self.classify_graphql_error(errors[0])

    def classify_error(self, exc: BaseException) -> Outcome:
        """Classify an exception raised by a remote operation.

        Structured GraphQL errors attached to the exception win; otherwise
        the ordered message/status rules apply to the exception message and
        its ``status_code`` attribute, if it has one. Exceptions without a
        message are classified by type name, so a bare ``TimeoutError`` or
        ``ConnectionResetError`` still reads as transient.
        """
        graphql_errors = getattr(exc, "graphql_errors", None)
        if graphql_errors:
            first = graphql_errors[0]
            if isinstance(first, Mapping):
                return self.classify_graphql_error(first)

        status = getattr(exc, "status_code", None)
        message = str(exc) or type(exc).__name__
        outcome = self.classify(message, status if isinstance(status, int) else None)
        assert outcome is not None  # a non-None message always classifies
        return outcome


def _extension_field_errors(extensions: Mapping[str, Any] | None) -> dict[str, str] | None:
    if extensions is None:
        return None
    fields = extensions.get("fields")
    if not isinstance(fields, Mapping):
        return None
    field_errors = {str(k): v for k, v in fields.items() if isinstance(v, str)}
    return field_errors or None


_default_classifier = ErrorClassifier()


def classify(error: object, http_status: int | None = None) -> Outcome | None:
    """Classify with the default rule set. See ``ErrorClassifier.classify``."""
    return _default_classifier.classify(error, http_status)
