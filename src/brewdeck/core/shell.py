"""Asynchronous brew execution with deadlines and error classification."""

from __future__ import annotations

import asyncio
import os
import signal
import subprocess
import time
from typing import Optional

from brewdeck.core.errors import BrewCommandError, BrewTimeoutError, truncate_stderr
from brewdeck.core.logging import get_logger

log = get_logger(__name__)

ENV_OVERRIDES = {
    "HOMEBREW_NO_COLOR": "1",
    "HOMEBREW_NO_EMOJI": "1",
    "HOMEBREW_NO_AUTO_UPDATE": "1",
}


def brew_env() -> dict[str, str]:
    """Environment for brew child processes."""
    env = os.environ.copy()
    env.update(ENV_OVERRIDES)
    return env


def effective_timeout(default: float, budget: Optional[float] = None) -> float:
    """Intersect an operation's default timeout with the caller's budget."""
    if budget is None or budget <= 0:
        return default
    return min(default, budget)


def deadline_after(seconds: float) -> float:
    """Absolute ``time.perf_counter()`` value ``seconds`` from now."""
    return time.perf_counter() + seconds


def time_left(deadline: float) -> float:
    """Seconds remaining until ``deadline``; zero or negative once it passed."""
    return deadline - time.perf_counter()


async def _terminate(process: asyncio.subprocess.Process) -> None:
    # brew runs in its own session; kill the group so helpers like curl or
    # git cannot hold the pipes open after brew itself is gone.
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        pass
    await process.wait()


async def run_capture(
    *cmd: str, timeout: Optional[float] = 30
) -> tuple[bytes, bytes, int]:
    """Run a command from an argument vector with an optional timeout.

    The command is never passed through a shell. On timeout or caller
    cancellation the child is killed and reaped before the error surfaces.

    Args:
        *cmd: Executable and its arguments.
        timeout: Timeout in seconds, or None for no limit.

    Returns:
        A tuple of (stdout, stderr, returncode).

    Raises:
        BrewTimeoutError: If the timeout expires.
        BrewCommandError: If the executable cannot be started.
        asyncio.CancelledError: If the caller cancels the wait.
    """
    command = " ".join(cmd[1:])
    start = time.perf_counter()
    log.debug("command_start", command=command, timeout=timeout)

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=brew_env(),
            start_new_session=True,
        )
    except OSError as e:
        log.error("command_spawn_failed", command=command, error=str(e))
        raise BrewCommandError(
            cmd[1] if len(cmd) > 1 else cmd[0], cmd[2:], cause=e
        ) from e

    try:
        out, err = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        log.error(
            "command_timeout",
            command=command,
            timeout=timeout,
            duration_ms=duration_ms
        )
        await _terminate(process)
        raise BrewTimeoutError(command=command, timeout=timeout) from e
    except asyncio.CancelledError:
        log.warning("command_cancelled", command=command)
        await asyncio.shield(_terminate(process))
        raise

    duration_ms = int((time.perf_counter() - start) * 1000)
    log.info(
        "command_complete",
        command=command,
        returncode=process.returncode,
        duration_ms=duration_ms
    )

    return out, err, process.returncode


async def run_brew(
    *args: str, timeout: Optional[float] = 300, binary: str = "brew"
) -> str:
    """Run ``brew <args>`` and return its standard output.

    Args:
        *args: brew subcommand and arguments, e.g. ("upgrade", "wget").
        timeout: Deadline in seconds for this invocation.
        binary: The brew executable to run.

    Returns:
        Decoded standard output.

    Raises:
        BrewTimeoutError: If the deadline expired.
        BrewCommandError: If brew exited nonzero or could not be started.
    """
    out, err, code = await run_capture(binary, *args, timeout=timeout)

    if code != 0:
        stderr = truncate_stderr(err.decode("utf-8", errors="replace"))
        log.error(
            "command_failed",
            command=" ".join(args),
            returncode=code,
            error=stderr
        )
        raise BrewCommandError(
            args[0] if args else "",
            args[1:],
            stderr=stderr,
            returncode=code,
            cause=subprocess.CalledProcessError(code, [binary, *args]),
        )

    return out.decode("utf-8", errors="replace")
