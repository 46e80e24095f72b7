"""Runtime settings for brewdeck, read from the environment."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from brewdeck.core.logging import get_logger

log = get_logger(__name__)

DEFAULT_COMMAND_TIMEOUT = 300.0
DEFAULT_LOOKUP_TIMEOUT = 30.0
DEFAULT_HTTP_TIMEOUT = 30.0

_BREW_CANDIDATES = (
    Path("/opt/homebrew/bin/brew"),
    Path("/usr/local/bin/brew"),
    Path("/home/linuxbrew/.linuxbrew/bin/brew"),
)


@dataclass(frozen=True)
class Settings:
    """Immutable settings shared by every request path."""

    brew_binary: str = "brew"
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    request_timeout: float = DEFAULT_COMMAND_TIMEOUT
    host: str = "127.0.0.1"
    port: int = 8080
    cors_origins: tuple[str, ...] = field(default=("*",))
    log_level: str = "INFO"


def discover_brew() -> str:
    """Locate the brew executable, falling back to the bare name."""
    found = shutil.which("brew")
    if found:
        return found
    for candidate in _BREW_CANDIDATES:
        if candidate.exists():
            return str(candidate)
    return "brew"


def parse_origins(raw: str) -> tuple[str, ...]:
    """Split a comma-separated origin list, dropping blanks."""
    return tuple(p.strip() for p in raw.split(",") if p.strip())


def _number(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        log.warning("config_invalid_number", key=key, value=raw, default=default)
        return default
    if value <= 0:
        log.warning("config_invalid_number", key=key, value=raw, default=default)
        return default
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables.

    Recognised variables: BREWDECK_BREW, BREWDECK_COMMAND_TIMEOUT,
    BREWDECK_LOOKUP_TIMEOUT, BREWDECK_HTTP_TIMEOUT, BREWDECK_REQUEST_TIMEOUT,
    HOST, PORT, CORS_ORIGINS and BREWDECK_LOG_LEVEL.
    """
    env = os.environ if environ is None else environ

    return Settings(
        brew_binary=env.get("BREWDECK_BREW") or discover_brew(),
        command_timeout=_number(env, "BREWDECK_COMMAND_TIMEOUT", DEFAULT_COMMAND_TIMEOUT),
        lookup_timeout=_number(env, "BREWDECK_LOOKUP_TIMEOUT", DEFAULT_LOOKUP_TIMEOUT),
        http_timeout=_number(env, "BREWDECK_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        request_timeout=_number(env, "BREWDECK_REQUEST_TIMEOUT", DEFAULT_COMMAND_TIMEOUT),
        host=env.get("HOST") or "127.0.0.1",
        port=int(_number(env, "PORT", 8080)),
        cors_origins=parse_origins(env.get("CORS_ORIGINS", "*")),
        log_level=(env.get("BREWDECK_LOG_LEVEL") or "INFO").upper(),
    )
