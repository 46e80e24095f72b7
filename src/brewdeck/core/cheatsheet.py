"""Best-effort client for community cheat sheets served by cheat.sh."""

from __future__ import annotations

import asyncio
import time

import requests
import urllib3

from brewdeck.core.logging import get_logger

log = get_logger(__name__)

CHEAT_SH_URL = "https://cheat.sh/{name}?T"
# cheat.sh picks plain-text output based on the User-Agent
USER_AGENT = "curl/7.64.1"
MAX_BODY_BYTES = 64 * 1024
CHUNK_BYTES = 8192
UNKNOWN_TOPIC_MARKER = "Unknown topic"


class CheatSheetError(Exception):
    """Lookup failed. Callers are expected to fall back, not surface this."""


def get_session() -> requests.Session:
    """Create the shared session used for documentation lookups."""
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    return session


class CheatSheetClient:
    """Fetches cheat sheets with a short timeout and a bounded body.

    The session is configured once and only read afterwards, so a single
    client can serve concurrent requests.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        url_template: str = CHEAT_SH_URL,
        max_bytes: int = MAX_BODY_BYTES,
    ) -> None:
        self.session = session or get_session()
        self.url_template = url_template
        self.max_bytes = max_bytes

    def fetch_sync(self, name: str, timeout: float) -> str:
        """Blocking fetch; see fetch()."""
        url = self.url_template.format(name=name)
        start = time.perf_counter()
        deadline = start + timeout

        try:
            with self.session.get(url, timeout=timeout, stream=True) as resp:
                if resp.status_code != 200:
                    raise CheatSheetError(f"cheat.sh returned status {resp.status_code}")

                body = bytearray()
                while len(body) < self.max_bytes:
                    if time.perf_counter() >= deadline:
                        raise CheatSheetError(f"cheat.sh lookup exceeded {timeout}s")
                    # read1 returns after one socket read, so a slow sender
                    # cannot hold a single call open past the read timeout.
                    chunk = resp.raw.read1(CHUNK_BYTES, decode_content=True)
                    if not chunk:
                        break
                    body.extend(chunk)
        except (requests.RequestException, urllib3.exceptions.HTTPError) as e:
            raise CheatSheetError(f"cheat.sh request failed: {e}") from e

        log.debug(
            "cheatsheet_fetched",
            package=name,
            size=min(len(body), self.max_bytes),
            duration_ms=int((time.perf_counter() - start) * 1000)
        )
        return bytes(body[: self.max_bytes]).decode("utf-8", errors="replace")

    async def fetch(self, name: str, timeout: float) -> str:
        """Fetch the cheat sheet for ``name``.

        Args:
            name: Validated package name.
            timeout: Deadline in seconds for the whole lookup.

        Returns:
            At most max_bytes of response text.

        Raises:
            CheatSheetError: On a non-200 response, a transport failure or
                an expired deadline.
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.fetch_sync, name, timeout), timeout
            )
        except asyncio.TimeoutError as e:
            # the worker thread stops on its own deadline check
            raise CheatSheetError(f"cheat.sh lookup exceeded {timeout}s") from e
