"""Error handling suite module."""

from pos_checks.suites.errors.conflicts import resolve_conflict
from pos_checks.suites.errors.manifest import errors_manifest
from pos_checks.suites.errors.messages import user_friendly_message
from pos_checks.suites.errors.suite import ErrorHandlingSuite
from pos_checks.suites.errors.validation import validate_input

__all__ = [
    "ErrorHandlingSuite",
    "errors_manifest",
    "resolve_conflict",
    "user_friendly_message",
    "validate_input",
]
