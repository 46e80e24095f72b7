"""Structured logging for brewdeck.

Events are snake_case names with keyword context, rendered as JSON lines to
a rotating file, or to stderr with colours when serving interactively.
"""

from __future__ import annotations

import logging
import sys
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.types import FilteringBoundLogger, Processor

LOG_DIR = Path.home() / ".brewdeck" / "logs"
LOG_FILE_NAME = "backend.log"
MAX_LOG_BYTES = 2_000_000
LOG_BACKUPS = 2

_CONFIGURED = False


def sanitise_context(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Drop None values so renderers never see them."""
    return {k: v for k, v in event_dict.items() if v is not None}


def _processors(console: bool) -> list[Processor]:
    chain: list[Processor] = [
        sanitise_context,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if console:
        chain += [structlog.processors.ExceptionRenderer(), structlog.dev.ConsoleRenderer(colors=True)]
    else:
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return chain


def configure_logging(
    level: str = "INFO", log_file: Path | None = None, enable_console: bool = False
) -> None:
    """Route structlog through the stdlib root logger.

    Only the first call has an effect, so the CLI and the server can both
    call it without stacking handlers.

    Args:
        level: Level name such as "DEBUG" or "INFO"; unknown names mean INFO.
        log_file: Destination file. Defaults to ~/.brewdeck/logs/backend.log.
        enable_console: Also render events to stderr for humans.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if log_file is None:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        log_file = LOG_DIR / LOG_FILE_NAME

    handlers: list[logging.Handler] = [
        RotatingFileHandler(log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
    ]
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logging.root.addHandler(handler)
    logging.root.setLevel(numeric_level)

    structlog.configure(
        processors=_processors(enable_console),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True


def bind_request(method: str, path: str) -> str:
    """Attach request fields to every event logged while handling it.

    Returns:
        The generated request id.
    """
    request_id = uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)
    return request_id


def clear_request() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "brewdeck") -> FilteringBoundLogger:
    """Get a structlog logger instance.

    Usage:
        log = get_logger(__name__)
        log.info("upgrade_complete", package="wget", duration_ms=1234)

    Standard context keys:
        - command (str): brew argument vector joined with spaces
        - package (str): package or service name
        - duration_ms (int): operation duration in milliseconds
        - error (str): error message if applicable
        - request_id (str): set by the HTTP layer for the current request
    """
    return structlog.get_logger(name)
