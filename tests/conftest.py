from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

import brewdeck.core.manager as manager_module
from brewdeck.core.cheatsheet import CheatSheetError
from brewdeck.core.config import Settings
from brewdeck.core.errors import BrewTimeoutError
from brewdeck.core.manager import BrewManager

INFO_INSTALLED = {
    "formulae": [
        {
            "name": "wget",
            "full_name": "wget",
            "desc": "Internet file retriever",
            "homepage": "https://www.gnu.org/software/wget/",
            "versions": {"stable": "1.24.5", "head": "HEAD"},
            "installed": [
                {
                    "version": "1.24.5",
                    "installed_on_request": True,
                    "installed_as_dependency": False,
                    "time": 1700000000,
                }
            ],
            "outdated": False,
            "pinned": True,
            "dependencies": ["libidn2", "openssl@3"],
            "build_dependencies": ["pkgconf"],
            "caveats": None,
            "conflicts_with": [],
            "installed_size": 4200000,
            "keg_only": False,
        },
        {
            "name": "postgresql@16",
            "full_name": "postgresql@16",
            "desc": "Object-relational database system",
            "homepage": "https://www.postgresql.org/",
            "versions": {"stable": "16.1"},
            "installed": [{"version": "16.1", "installed_on_request": True}],
            "outdated": True,
            "pinned": False,
            "dependencies": [],
            "build_dependencies": [],
            "caveats": "To start postgresql@16 now: brew services start postgresql@16",
            "conflicts_with": [],
        },
    ],
    "casks": [
        {
            "token": "firefox",
            "full_token": "firefox",
            "name": ["Firefox"],
            "desc": "Web browser",
            "homepage": "https://www.mozilla.org/firefox/",
            "version": "120.0",
            "installed": "119.0",
            "installed_time": 1690000000,
            "outdated": True,
        }
    ],
}

SERVICES_LIST = [
    {
        "name": "postgresql@16",
        "status": "started",
        "user": "alice",
        "file": "/Users/alice/Library/LaunchAgents/homebrew.mxcl.postgresql@16.plist",
    },
    {
        "name": "redis",
        "status": "none",
        "user": None,
        "file": "/opt/homebrew/opt/redis/homebrew.mxcl.redis.plist",
    },
]


class FakeBrew:
    """Stand-in for ``run_brew`` keyed by the exact argument vector."""

    def __init__(self) -> None:
        self.calls: list[tuple[tuple[str, ...], float | None]] = []
        self._responses: dict[tuple[str, ...], Any] = {}
        self._delays: dict[tuple[str, ...], float] = {}

    def on(
        self, *args: str, output: str = "", error: BaseException | None = None, delay: float = 0
    ) -> None:
        self._responses[args] = error if error is not None else output
        self._delays[args] = delay

    async def __call__(self, *args: str, timeout: float | None = None, binary: str = "brew") -> str:
        self.calls.append((args, timeout))
        if args not in self._responses:
            raise AssertionError(f"unexpected brew call: {args}")
        delay = self._delays.get(args, 0)
        if delay:
            # behave like the real runner: the deadline cuts the call short
            try:
                await asyncio.wait_for(asyncio.sleep(delay), timeout)
            except asyncio.TimeoutError:
                raise BrewTimeoutError(command=" ".join(args), timeout=timeout) from None
        response = self._responses[args]
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        return [args for args, _ in self.calls]


class FakeCheatSheets:
    def __init__(self, text: str = "", error: Exception | None = None, delay: float = 0) -> None:
        self.text = text
        self.error = error
        self.delay = delay
        self.requested: list[tuple[str, float]] = []

    async def fetch(self, name: str, timeout: float) -> str:
        self.requested.append((name, timeout))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def fake_brew(monkeypatch: pytest.MonkeyPatch) -> FakeBrew:
    fake = FakeBrew()
    monkeypatch.setattr(manager_module, "run_brew", fake)
    return fake


@pytest.fixture
def cheatsheets() -> FakeCheatSheets:
    return FakeCheatSheets(error=CheatSheetError("offline"))


@pytest.fixture
def settings() -> Settings:
    return Settings(brew_binary="brew", command_timeout=300, lookup_timeout=30)


@pytest.fixture
def manager(settings: Settings, cheatsheets: FakeCheatSheets) -> BrewManager:
    return BrewManager(settings, cheatsheets=cheatsheets)  # type: ignore[arg-type]


@pytest.fixture
def info_json() -> str:
    return json.dumps(INFO_INSTALLED)


@pytest.fixture
def services_json() -> str:
    return json.dumps(SERVICES_LIST)
