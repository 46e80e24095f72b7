"""Syntactic checks applied to request input before brew is invoked."""

from __future__ import annotations

import re

from brewdeck.core.errors import ValidationError

# Names start with an alphanumeric and may contain letters, digits, @ . _ + -
# e.g. "go", "node@18", "llvm@15", "python-setuptools", "c++utilities".
PACKAGE_NAME_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9@._+-]*$")
MAX_NAME_LENGTH = 128
ECHO_LIMIT = 20

SERVICE_ACTIONS = ("start", "stop", "restart")
PIN_ACTIONS = ("pin", "unpin")


def _truncated(value: str) -> str:
    return value[:ECHO_LIMIT] + "..."


def validate_name(name: str) -> None:
    """Check that a package or service name is a safe literal argument.

    This is an allow-list, not a registry lookup: a name that passes may
    still be rejected by brew itself at execution time.

    Raises:
        ValidationError: If the name is empty, too long or malformed.
    """
    if not name:
        raise ValidationError("name", "", "package name is required")

    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            "name",
            _truncated(name),
            f"package name exceeds maximum length of {MAX_NAME_LENGTH}",
        )

    # fullmatch so a trailing newline cannot slip past "$"
    if not PACKAGE_NAME_RE.fullmatch(name):
        raise ValidationError(
            "name",
            name,
            "package name contains invalid characters; must match pattern: "
            + PACKAGE_NAME_RE.pattern,
        )


def validate_action(action: str) -> None:
    """Check a service action against start/stop/restart.

    Raises:
        ValidationError: If the action is not one of the allowed values.
    """
    if action not in SERVICE_ACTIONS:
        raise ValidationError(
            "action", action, "action must be one of: " + ", ".join(SERVICE_ACTIONS)
        )


def validate_pin_action(action: str | None) -> str:
    """Normalise a pin action, defaulting to "pin" when absent.

    Returns:
        Either "pin" or "unpin".

    Raises:
        ValidationError: If the action is set to anything else.
    """
    if not action:
        return "pin"
    if action not in PIN_ACTIONS:
        raise ValidationError(
            "action", action, "action must be one of: " + ", ".join(PIN_ACTIONS)
        )
    return action


def validate_query(query: str) -> None:
    """Check a search query. An empty query is allowed and means "no results".

    Raises:
        ValidationError: If the query exceeds the name length limit or
            would be read by brew as an option.
    """
    if len(query) > MAX_NAME_LENGTH:
        raise ValidationError("query", _truncated(query), "search query too long")
    if query.startswith("-"):
        raise ValidationError("query", query, "search query must not start with '-'")
