"""Error classification.

Re-exports the public symbols of the error taxonomy and classifier.
"""

from ghprojects.core.errors.codes import ErrorKind, RetryDelays
from ghprojects.core.errors.models import Outcome
from ghprojects.core.errors.classifier import (
    ErrorClassifier,
    classify,
    extract_field_errors,
    parse_retry_after,
)

__all__ = [
    "ErrorKind",
    "RetryDelays",
    "Outcome",
    "ErrorClassifier",
    "classify",
    "extract_field_errors",
    "parse_retry_after",
]
