"""Tests for ErrorClassifier.

Tests cover:
- classify(): ordered rules (rate limit, permission, validation, conflict,
  transient, unknown) and their precedence
- parse_retry_after(): duration tokens
- extract_field_errors(): editor field heuristics
- classify_error(): exceptions, status codes and attached GraphQL errors
- classify_graphql_error() / parse_graphql_errors(): structured errors
- Outcome.user_message(): kind-specific texts
"""

import pytest

from ghprojects.core.errors import (
    ErrorClassifier,
    ErrorKind,
    Outcome,
    classify,
    extract_field_errors,
    parse_retry_after,
)
from ghprojects.exceptions import RemoteError


@pytest.fixture
def classifier() -> ErrorClassifier:
    """Create a default ErrorClassifier instance."""
    return ErrorClassifier()


# =============================================================================
# classify()
# =============================================================================


class TestClassifyRules:
    """One test per rule of the ordered rule list."""

    def test_none_is_not_a_failure(self, classifier: ErrorClassifier) -> None:
        assert classifier.classify(None) is None
        assert classifier.classify(None, 500) is None

    def test_forbidden_with_status(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("403 Forbidden: does not have access", 403)
        assert outcome is not None
        assert outcome.kind is ErrorKind.PERMISSION
        assert outcome.retryable is False

    def test_rate_limited_uses_default_wait(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("rate_limited", 429)
        assert outcome is not None
        assert outcome.kind is ErrorKind.RATE_LIMIT
        assert outcome.retryable is True
        assert outcome.retry_after == 60.0

    def test_rate_limit_parses_retry_after(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("API rate limit exceeded, retry after 30 seconds")
        assert outcome is not None
        assert outcome.kind is ErrorKind.RATE_LIMIT
        assert outcome.retry_after == 30.0

    def test_status_429_without_keyword(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("Too Many Requests", 429)
        assert outcome is not None
        assert outcome.kind is ErrorKind.RATE_LIMIT

    @pytest.mark.parametrize(
        "message, status",
        [
            ("Bad credentials", 401),
            ("You are not authorized to perform this action", None),
            ("permission denied for project", None),
            ("Forbidden", None),
        ],
        ids=["401", "not-authorized", "permission-denied", "forbidden"],
    )
    def test_permission(
        self, classifier: ErrorClassifier, message: str, status: int | None
    ) -> None:
        outcome = classifier.classify(message, status)
        assert outcome is not None
        assert outcome.kind is ErrorKind.PERMISSION
        assert outcome.retryable is False

    def test_unknown_user_is_assignee_validation(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("user with id U_ghost not found")
        assert outcome is not None
        assert outcome.kind is ErrorKind.VALIDATION
        assert outcome.retryable is False
        assert outcome.field_errors == {"assignee": "User not found"}

    def test_invalid_title(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("invalid input: title can't be blank")
        assert outcome is not None
        assert outcome.kind is ErrorKind.VALIDATION
        assert outcome.field_errors == {"title": "Invalid title"}

    def test_status_400(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("Bad Request", 400)
        assert outcome is not None
        assert outcome.kind is ErrorKind.VALIDATION
        assert outcome.field_errors is None

    @pytest.mark.parametrize(
        "message, status",
        [("Conflict", 409), ("concurrent modification of item", None)],
        ids=["409", "concurrent"],
    )
    def test_conflict(self, classifier: ErrorClassifier, message: str, status: int | None) -> None:
        outcome = classifier.classify(message, status)
        assert outcome is not None
        assert outcome.kind is ErrorKind.CONFLICT
        assert outcome.retryable is False

    @pytest.mark.parametrize(
        "message, status",
        [
            ("request timeout", None),
            ("connection reset by peer", None),
            ("network unreachable", None),
            ("temporary failure in name resolution", None),
            ("Bad Gateway", 502),
            ("Internal Server Error", 500),
        ],
        ids=["timeout", "connection", "network", "temporary", "502", "500"],
    )
    def test_transient(
        self, classifier: ErrorClassifier, message: str, status: int | None
    ) -> None:
        outcome = classifier.classify(message, status)
        assert outcome is not None
        assert outcome.kind is ErrorKind.TRANSIENT
        assert outcome.retryable is True
        assert outcome.retry_after is None

    def test_unknown_fallback(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("something odd happened", 418)
        assert outcome is not None
        assert outcome.kind is ErrorKind.UNKNOWN
        assert outcome.retryable is False
        assert outcome.message == "something odd happened"

    def test_exception_input_uses_its_message(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify(ValueError("connection refused"))
        assert outcome is not None
        assert outcome.kind is ErrorKind.TRANSIENT


class TestRuleOrdering:
    """Inputs matching several rules take the first rule in order."""

    def test_403_with_invalid_is_permission(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("invalid token", 403)
        assert outcome is not None
        assert outcome.kind is ErrorKind.PERMISSION

    def test_rate_limit_beats_forbidden(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("forbidden: secondary rate limit", 403)
        assert outcome is not None
        assert outcome.kind is ErrorKind.RATE_LIMIT

    def test_validation_beats_conflict(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("invalid: conflict with existing field")
        assert outcome is not None
        assert outcome.kind is ErrorKind.VALIDATION

    def test_conflict_beats_transient(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("concurrent update timeout", 503)
        assert outcome is not None
        assert outcome.kind is ErrorKind.CONFLICT

    def test_status_decides_over_later_keywords(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify("connection closed", 401)
        assert outcome is not None
        assert outcome.kind is ErrorKind.PERMISSION


class TestDeterminism:
    @pytest.mark.parametrize(
        "message, status",
        [
            ("rate_limited", 429),
            ("user not found", None),
            ("timeout", 504),
            ("", None),
            ("whatever", None),
        ],
    )
    def test_identical_inputs_identical_outcomes(
        self, classifier: ErrorClassifier, message: str, status: int | None
    ) -> None:
        assert classifier.classify(message, status) == classifier.classify(message, status)
        assert classify(message, status) == ErrorClassifier().classify(message, status)


# =============================================================================
# Helpers
# =============================================================================


class TestParseRetryAfter:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("retry after 30 seconds", 30.0),
            ("Retry-After: 120", 120.0),
            ("please try again in 2 minutes", 120.0),
            ("limit resets in 1 hour", 3600.0),
            ("wait in 1.5s", 1.5),
        ],
    )
    def test_recognized_tokens(self, text: str, expected: float) -> None:
        assert parse_retry_after(text) == expected

    @pytest.mark.parametrize("text", ["rate limit exceeded", "retry after 0 seconds", ""])
    def test_no_positive_duration(self, text: str) -> None:
        assert parse_retry_after(text) is None


class TestExtractFieldErrors:
    def test_user_and_title(self) -> None:
        assert extract_field_errors("title invalid and user not found") == {
            "assignee": "User not found",
            "title": "Invalid title",
        }

    def test_nothing_recognized(self) -> None:
        assert extract_field_errors("invalid body") is None


# =============================================================================
# Exceptions and structured GraphQL errors
# =============================================================================


class TestClassifyError:
    def test_status_code_attribute(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify_error(RemoteError("nope", status_code=403))
        assert outcome.kind is ErrorKind.PERMISSION

    @pytest.mark.parametrize("exc", [TimeoutError(), ConnectionResetError()])
    def test_bare_exceptions_classified_by_type_name(
        self, classifier: ErrorClassifier, exc: Exception
    ) -> None:
        outcome = classifier.classify_error(exc)
        assert outcome.kind is ErrorKind.TRANSIENT
        assert outcome.message == type(exc).__name__

    def test_graphql_errors_take_precedence(self, classifier: ErrorClassifier) -> None:
        exc = RemoteError(
            "request failed",
            status_code=200,
            graphql_errors=[
                {
                    "type": "RATE_LIMITED",
                    "message": "API rate limit exceeded",
                    "extensions": {"retryAfter": 42},
                }
            ],
        )
        outcome = classifier.classify_error(exc)
        assert outcome.kind is ErrorKind.RATE_LIMIT
        assert outcome.retry_after == 42.0


class TestGraphQLErrors:
    def test_not_found_with_fields(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify_graphql_error(
            {
                "type": "NOT_FOUND",
                "message": "Could not resolve to a User",
                "extensions": {"fields": {"assignee": "User not found"}},
            }
        )
        assert outcome.kind is ErrorKind.VALIDATION
        assert outcome.field_errors == {"assignee": "User not found"}

    def test_forbidden_type(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify_graphql_error({"type": "FORBIDDEN", "message": "no"})
        assert outcome.kind is ErrorKind.PERMISSION

    def test_rate_limit_without_extensions(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify_graphql_error({"type": "RATE_LIMITED", "message": "slow"})
        assert outcome.retry_after == 60.0

    def test_message_fallback(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify_graphql_error(
            {"message": "Resource not accessible by integration"}
        )
        assert outcome.kind is ErrorKind.PERMISSION

    def test_unrecognized(self, classifier: ErrorClassifier) -> None:
        outcome = classifier.classify_graphql_error({"type": "SOMETHING", "message": "hm"})
        assert outcome.kind is ErrorKind.UNKNOWN

    def test_parse_body(self, classifier: ErrorClassifier) -> None:
        body = '{"errors": [{"type": "INVALID", "message": "bad title"}]}'
        outcome = classifier.parse_graphql_errors(body)
        assert outcome is not None
        assert outcome.kind is ErrorKind.VALIDATION

    @pytest.mark.parametrize("body", ["not json", '{"data": {}}', '{"errors": []}', "[]"])
    def test_parse_body_without_errors(self, classifier: ErrorClassifier, body: str) -> None:
        assert classifier.parse_graphql_errors(body) is None


# =============================================================================
# Outcome
# =============================================================================


class TestUserMessage:
    def test_rate_limit_with_delay(self) -> None:
        outcome = Outcome(kind=ErrorKind.RATE_LIMIT, message="x", retryable=True, retry_after=60)
        assert outcome.user_message() == "GitHub rate limit reached, retry in 60s."

    def test_permission_mentions_scopes(self) -> None:
        outcome = Outcome(kind=ErrorKind.PERMISSION, message="Forbidden")
        assert "token scopes" in outcome.user_message()

    def test_validation_lists_fields(self) -> None:
        outcome = Outcome.validation("bad", {"assignee": "User not found"})
        assert outcome.user_message() == "Validation failed: assignee: User not found"

    def test_validation_without_fields_uses_message(self) -> None:
        assert Outcome.validation("Title is required").user_message() == "Title is required"

    def test_cancelled(self) -> None:
        assert Outcome.cancelled().user_message() == "Operation cancelled."

    def test_partial_success_is_warning(self) -> None:
        outcome = Outcome.partial_success("Draft issue created, but failed to assign user")
        assert outcome.kind.is_warning
        assert not outcome.retryable
        assert outcome.user_message() == outcome.message

    def test_to_dict(self) -> None:
        outcome = Outcome.validation("bad", {"title": "Invalid title"})
        assert outcome.to_dict() == {
            "kind": "validation",
            "message": "bad",
            "retryable": False,
            "retry_after": None,
            "field_errors": {"title": "Invalid title"},
        }
