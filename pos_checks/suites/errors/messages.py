"""Translation of technical error strings into user-facing messages."""

from collections.abc import Mapping

ERROR_MESSAGES: Mapping[str, str] = {
    "ERR_NETWORK_TIMEOUT": (
        "The request took too long. Please check your connection and try again."
    ),
    "ERR_NETWORK": (
        "Unable to connect to the server. Please check your internet connection."
    ),
    "PERMISSION_DENIED": "You don't have permission to perform this action.",
    "UNKNOWN_ERROR": "Something went wrong. Please try again later.",
}

VALIDATION_FAILED = "VALIDATION_FAILED"
FALLBACK_MESSAGE = "An error occurred. Please try again."
VALIDATION_FALLBACK_MESSAGE = "Please check your input and try again."


def user_friendly_message(technical_error: str) -> str:
    """Map ``CODE: detail`` errors to a message fit for the user.

    Known codes get a fixed message, validation failures keep their detail,
    and any other error falls back to its detail or a generic message.
    """
    code, _, detail = technical_error.partition(":")
    detail = detail.strip()

    if code == VALIDATION_FAILED:
        return detail or VALIDATION_FALLBACK_MESSAGE

    if code in ERROR_MESSAGES:
        return ERROR_MESSAGES[code]

    return detail or FALLBACK_MESSAGE
