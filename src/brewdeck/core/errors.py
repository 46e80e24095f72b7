"""Error taxonomy shared by the brew runner, the facade and the outer layers."""

from __future__ import annotations

from enum import Enum
from typing import Any, Self, Sequence

# Exit Codes
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2
EXIT_TRANSIENT_ERROR = 3

STDERR_LIMIT = 1024
TRUNCATION_MARKER = "... (truncated)"


class BrewError(Exception):
    """Base exception class with context propagation.

    Context is a dictionary that accumulates relevant information
    as the exception propagates up the call stack.

    Example:
        raise BrewError("An error occurred", context={"package": "foo"})

        # Or with context propagation
        try:
            ...
        except BrewError as e:
            raise e.with_context(operation="upgrade")
    """
    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def with_context(self, **new_context: Any) -> Self:
        """Merge additional context into this exception and return it.

        Args:
            **new_context: Additional context to add to the exception.

        Returns:
            The same exception instance with merged context.
        """
        self.context.update(new_context)
        return self

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{context_str}]"
        return self.message


class TransientError(BrewError):
    """Errors caused by slow or temporarily unavailable resources.

    Safe to retry, typically with a longer deadline.
    """
    pass


class UserError(BrewError):
    """Errors caused by user input.

    Never retried; the caller has to correct the request first.
    """
    pass


class SystemError(BrewError):
    """Errors raised by the host environment or the brew installation.

    Details are logged; users get a sanitised message.
    """
    pass


## Specific Exceptions ##

class ValidationError(UserError):
    """Input failed validation before anything touched a process boundary."""

    def __init__(
        self,
        field: str,
        value: str,
        message: str,
        context: dict[str, Any] | None = None
    ) -> None:
        """Initialise ValidationError.

        Args:
            field: The request field that failed validation.
            value: The offending value, possibly truncated.
            message: Human readable description of the failure.
            context: Additional context information.
        """
        self.field = field
        self.value = value
        ctx = context or {}
        ctx["field"] = field
        super().__init__(message, context=ctx)


class BrewTimeoutError(TransientError):
    """The governing deadline expired before brew finished.

    Typically indicates:
        - Slow network conditions during update/upgrade
        - Very large package downloads or source builds
        - A deadline handed down by the caller that was too short
    """
    def __init__(
        self,
        message: str | None = None,
        command: str | None = None,
        timeout: float | None = None,
        context: dict[str, Any] | None = None
    ) -> None:
        """Initialise BrewTimeoutError with detailed context.

        Args:
            message: Optional custom error message.
            command: The brew command that was executed.
            timeout: The timeout that was exceeded, in seconds.
            context: Additional context information.
        """
        self.command = command or ""
        self.timeout = timeout
        ctx = context or {}
        if command:
            ctx["command"] = command
        if timeout is not None:
            ctx["timeout"] = timeout

        if message is None:
            target = f"brew {command}" if command else "brew command"
            message = f"{target} timed out after {timeout or 'unknown'}s"

        super().__init__(message, context=ctx)


class BrewCommandError(SystemError):
    """brew ran and reported failure, or could not be started at all.

    The captured stderr is bounded to STDERR_LIMIT bytes so that
    pathological output cannot bloat logs or error payloads.
    """
    def __init__(
        self,
        command: str,
        args: Sequence[str] = (),
        stderr: str = "",
        returncode: int | None = None,
        cause: BaseException | None = None,
        message: str | None = None,
        context: dict[str, Any] | None = None
    ) -> None:
        """Initialise BrewCommandError with detailed context.

        Args:
            command: The brew subcommand that was executed (e.g. "upgrade").
            args: The remaining arguments passed to the subcommand.
            stderr: Captured standard error, already truncated.
            returncode: The exit code, or None if the process never ran.
            cause: The underlying exception, if any.
            message: Optional custom error message.
            context: Additional context information.
        """
        self.command = command
        self.args_tail = list(args)
        self.stderr = stderr
        self.returncode = returncode
        self.cause = cause
        ctx = context or {}
        ctx["command"] = " ".join([command, *self.args_tail])
        if returncode is not None:
            ctx["returncode"] = returncode
        if stderr:
            ctx["error"] = stderr

        if message is None:
            if returncode is None:
                message = f"brew {command} failed: {cause}"
            else:
                message = f"brew {command} failed with exit code {returncode}"

        super().__init__(message, context=ctx)


class BrewInternalError(SystemError):
    """Something that should never happen, such as malformed JSON from brew."""
    pass


def truncate_stderr(stderr: str, limit: int = STDERR_LIMIT) -> str:
    """Bound captured stderr to ``limit`` bytes, appending a marker if cut."""
    raw = stderr.encode("utf-8", errors="replace")
    if len(raw) <= limit:
        return stderr
    return raw[:limit].decode("utf-8", errors="ignore") + TRUNCATION_MARKER


## Classification ##

class ErrorKind(Enum):
    """Closed set of failure kinds the outer layers distinguish."""

    VALIDATION = "validation"
    TIMEOUT = "timeout"
    COMMAND = "command"
    UNEXPECTED = "unexpected"


_HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.COMMAND: 500,
    ErrorKind.UNEXPECTED: 500,
}


def classify_error(error: BaseException) -> ErrorKind:
    """Map any exception onto the ErrorKind variant."""
    if isinstance(error, ValidationError):
        return ErrorKind.VALIDATION
    if isinstance(error, BrewTimeoutError):
        return ErrorKind.TIMEOUT
    if isinstance(error, BrewCommandError):
        return ErrorKind.COMMAND
    return ErrorKind.UNEXPECTED


def http_status(kind: ErrorKind) -> int:
    """HTTP status code for an error kind."""
    return _HTTP_STATUS[kind]


# CLI Error Message Templates

ERROR_TEMPLATES = {
    ValidationError: (
        "❌ Invalid {field}: {message}"
    ),
    BrewTimeoutError: (
        "⚠️ Command timed out after {timeout}s: brew {command}\n"
        "   The operation took too long - this may be due to network issues"
    ),
    BrewCommandError: (
        "⚠️ Brew command failed: brew {command}\n"
        "   Exit Code: {returncode}\n"
        "   Error: {error}"
    ),
    BrewInternalError: (
        "⚠️ Internal error: {message}\n"
        "   Please check the log file for details"
    ),
    BrewError: (
        "❌ {message}"
    ),
}


def format_error_message(error: BrewError) -> str:
    """Formats an error message for CLI display based on the error type.

    Args:
        error: The BrewError instance to format.

    Returns:
        A formatted string message for CLI display.
    """
    template = ERROR_TEMPLATES.get(type(error), ERROR_TEMPLATES[BrewError])
    try:
        return template.format(message=error.message, **error.context)
    except KeyError:
        return f"❌ {error.message}"


def exit_code_for(error: BaseException) -> int:
    """Process exit code for an error raised out of a CLI command."""
    if isinstance(error, TransientError):
        return EXIT_TRANSIENT_ERROR
    if isinstance(error, UserError):
        return EXIT_USER_ERROR
    return EXIT_SYSTEM_ERROR
