"""JSON error bodies for the API.

Error responses always look like::

    {"error": "Human-readable message", "code": "ERROR_CODE", "details": {...}}

``details`` is only present for validation failures.
"""

from __future__ import annotations

from typing import Any

from flask import Response, jsonify

from brewdeck.core.errors import ErrorKind, ValidationError, classify_error, http_status
from brewdeck.core.logging import get_logger

log = get_logger(__name__)

ERR_VALIDATION = "VALIDATION_ERROR"
ERR_TIMEOUT = "TIMEOUT"
ERR_INTERNAL = "INTERNAL_ERROR"

_CODES = {
    ErrorKind.VALIDATION: ERR_VALIDATION,
    ErrorKind.TIMEOUT: ERR_TIMEOUT,
    ErrorKind.COMMAND: ERR_INTERNAL,
    ErrorKind.UNEXPECTED: ERR_INTERNAL,
}

TIMEOUT_MESSAGE = "Operation timed out. The Homebrew command took too long to complete."
COMMAND_MESSAGE = "Homebrew command failed. Check server logs for details."
UNEXPECTED_MESSAGE = "An unexpected error occurred."


def error_body(error: BaseException) -> tuple[dict[str, Any], int]:
    """Status code and sanitised body for any exception.

    Only validation failures echo their message back; everything else gets
    a fixed message and is logged in full here.
    """
    kind = classify_error(error)
    body: dict[str, Any] = {"code": _CODES[kind]}

    if isinstance(error, ValidationError):
        body["error"] = error.message
        body["details"] = {"field": error.field}
    elif kind is ErrorKind.TIMEOUT:
        log.warning("brew_timeout", error=str(error))
        body["error"] = TIMEOUT_MESSAGE
    elif kind is ErrorKind.COMMAND:
        log.error("brew_command_error", error=str(error))
        body["error"] = COMMAND_MESSAGE
    else:
        log.error("unexpected_error", error=str(error), error_type=type(error).__name__)
        body["error"] = UNEXPECTED_MESSAGE

    return body, http_status(kind)


def error_response(error: BaseException) -> tuple[Response, int]:
    body, status = error_body(error)
    return jsonify(body), status


def missing_parameter(name: str) -> tuple[Response, int]:
    """400 for a required query parameter that was not supplied."""
    return jsonify({
        "error": f"Query parameter '{name}' is required",
        "code": ERR_VALIDATION,
        "details": {"field": name},
    }), 400
