"""High-level Homebrew operations used by the HTTP and CLI layers."""

from __future__ import annotations

import time
from typing import List, Optional

from brewdeck.core.cheatsheet import UNKNOWN_TOPIC_MARKER, CheatSheetClient, CheatSheetError
from brewdeck.core.config import Settings
from brewdeck.core.errors import BrewCommandError, BrewError
from brewdeck.core.logging import get_logger
from brewdeck.core.models import DoctorReport, Package, Service
from brewdeck.core.shell import deadline_after, effective_timeout, run_brew, time_left
from brewdeck.core.validation import (
    validate_action,
    validate_name,
    validate_pin_action,
    validate_query,
)
from brewdeck.parsers.doctor import parse_doctor_output
from brewdeck.parsers.packages import decode_installed, decode_installed_size
from brewdeck.parsers.search import parse_search_output
from brewdeck.parsers.services import decode_services

log = get_logger(__name__)

USAGE_PREAMBLE = "No community cheat sheet found. Showing 'brew info' output:\n\n"
USAGE_UNAVAILABLE = "No usage examples found. 'brew info' also failed."


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class BrewManager:
    """Stateless facade over the brew CLI.

    Holds only immutable settings and the shared cheat sheet client, so one
    instance is built at startup and shared by every request. Each method
    validates its input, runs brew with its own deadline and parses the
    output. Every method accepts an optional ``timeout`` budget from the
    caller; the smaller of that and the operation default applies.

    Raises (from any method):
        ValidationError: Input rejected before brew was invoked.
        BrewTimeoutError: The deadline expired.
        BrewCommandError: brew exited nonzero.
        BrewInternalError: brew output could not be decoded.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cheatsheets: CheatSheetClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.cheatsheets = cheatsheets or CheatSheetClient()

    async def _brew(
        self, *args: str, default: Optional[float] = None, timeout: Optional[float] = None
    ) -> str:
        limit = effective_timeout(default or self.settings.command_timeout, timeout)
        return await run_brew(*args, timeout=limit, binary=self.settings.brew_binary)

    async def _package_action(self, action: str, name: str, timeout: Optional[float]) -> None:
        validate_name(name)

        start = time.perf_counter()
        log.info(f"{action}_start", package=name)
        try:
            await self._brew(action, name, timeout=timeout)
        except BrewError as e:
            raise e.with_context(operation=action, package=name)
        log.info(f"{action}_complete", package=name, duration_ms=_elapsed_ms(start))

    ## Packages ##

    async def list_installed(self, timeout: Optional[float] = None) -> List[Package]:
        """All installed packages, formulae first, then casks."""
        start = time.perf_counter()
        log.info("list_installed_start")

        output = await self._brew("info", "--installed", "--json=v2", timeout=timeout)
        pkgs = decode_installed(output)

        log.info(
            "list_installed_complete",
            count=len(pkgs),
            casks=sum(1 for p in pkgs if p.is_cask),
            duration_ms=_elapsed_ms(start)
        )
        return pkgs

    async def install(self, name: str, timeout: Optional[float] = None) -> None:
        await self._package_action("install", name, timeout)

    async def upgrade(self, name: str, timeout: Optional[float] = None) -> None:
        """Upgrade one package. Pinned packages are left alone by brew."""
        await self._package_action("upgrade", name, timeout)

    async def uninstall(self, name: str, timeout: Optional[float] = None) -> None:
        await self._package_action("uninstall", name, timeout)

    async def reinstall(self, name: str, timeout: Optional[float] = None) -> None:
        await self._package_action("reinstall", name, timeout)

    async def pin(
        self, name: str, action: Optional[str] = "pin", timeout: Optional[float] = None
    ) -> str:
        """Pin or unpin a package.

        Args:
            name: Package name.
            action: "pin" or "unpin"; empty or None means "pin".

        Returns:
            The action that was performed.
        """
        action = validate_pin_action(action)
        await self._package_action(action, name, timeout)
        return action

    async def unpin(self, name: str, timeout: Optional[float] = None) -> str:
        return await self.pin(name, "unpin", timeout=timeout)

    async def package_size(self, name: str, timeout: Optional[float] = None) -> int:
        """Installed size in bytes, or 0 if brew does not report the package."""
        validate_name(name)

        output = await self._brew(
            "info", "--json=v2", name, default=self.settings.lookup_timeout, timeout=timeout
        )
        return decode_installed_size(output)

    ## Services ##

    async def list_services(self, timeout: Optional[float] = None) -> List[Service]:
        """All brew services, with homepages joined from the package listing.

        The package listing is optional: if it fails, or the deadline is
        spent by the time it would start, the services are returned without
        homepages. Both calls share one deadline.
        """
        start = time.perf_counter()
        deadline = deadline_after(effective_timeout(self.settings.command_timeout, timeout))
        log.info("list_services_start")

        output = await self._brew("services", "list", "--json", timeout=timeout)

        homepages: dict[str, str] = {}
        left = time_left(deadline)
        if left <= 0:
            log.warning("service_enrichment_skipped", reason="deadline")
        else:
            try:
                for pkg in await self.list_installed(timeout=left):
                    homepages[pkg.name] = pkg.homepage
            except Exception as e:
                log.warning(
                    "service_enrichment_failed",
                    error=str(e),
                    error_type=type(e).__name__
                )

        services = decode_services(output, homepages)
        log.info(
            "list_services_complete",
            count=len(services),
            running=sum(1 for s in services if s.running),
            duration_ms=_elapsed_ms(start)
        )
        return services

    async def control_service(
        self, name: str, action: str, timeout: Optional[float] = None
    ) -> None:
        """Run ``brew services <action> <name>`` for start, stop or restart."""
        validate_action(action)
        validate_name(name)

        start = time.perf_counter()
        log.info("service_action_start", package=name, action=action)
        await self._brew("services", action, name, timeout=timeout)
        log.info(
            "service_action_complete",
            package=name,
            action=action,
            duration_ms=_elapsed_ms(start)
        )

    async def start_service(self, name: str, timeout: Optional[float] = None) -> None:
        await self.control_service(name, "start", timeout=timeout)

    async def stop_service(self, name: str, timeout: Optional[float] = None) -> None:
        await self.control_service(name, "stop", timeout=timeout)

    async def restart_service(self, name: str, timeout: Optional[float] = None) -> None:
        await self.control_service(name, "restart", timeout=timeout)

    ## System ##

    async def update(self, timeout: Optional[float] = None) -> str:
        """Fetch the newest brew and formula definitions."""
        start = time.perf_counter()
        log.info("update_start")
        output = await self._brew("update", timeout=timeout)
        log.info("update_complete", duration_ms=_elapsed_ms(start))
        return output

    async def cleanup(self, timeout: Optional[float] = None) -> str:
        """Remove old versions and clear the download cache."""
        start = time.perf_counter()
        log.info("cleanup_start")
        output = await self._brew("cleanup", "--prune=all", timeout=timeout)
        log.info("cleanup_complete", duration_ms=_elapsed_ms(start))
        return output

    async def doctor(self, timeout: Optional[float] = None) -> DoctorReport:
        """Run brew doctor and parse its findings.

        brew doctor exits nonzero when it finds issues, so a BrewCommandError
        is read as a report (its stderr holds the findings). Timeouts and a
        brew that could not be started at all still propagate.
        """
        start = time.perf_counter()
        log.info("doctor_start")

        try:
            output = await self._brew("doctor", timeout=timeout)
        except BrewCommandError as e:
            if e.returncode is None:
                raise
            log.info("doctor_reported_issues", returncode=e.returncode)
            output = e.stderr

        report = DoctorReport(output=output, issues=parse_doctor_output(output))
        log.info(
            "doctor_complete",
            issues=len(report.issues),
            healthy=report.is_healthy,
            duration_ms=_elapsed_ms(start)
        )
        return report

    ## Discovery ##

    async def search(self, query: str, timeout: Optional[float] = None) -> List[str]:
        """Names of formulae and casks matching ``query``.

        An empty query returns [] without running brew. Some brew versions
        exit nonzero when nothing matches, so a nonzero exit also yields
        []. A brew that could not be started still raises.
        """
        if not query:
            return []
        validate_query(query)

        try:
            output = await self._brew(
                "search", query, default=self.settings.lookup_timeout, timeout=timeout
            )
        except BrewCommandError as e:
            if e.returncode is None:
                raise
            log.info("search_no_results", query=query, returncode=e.returncode)
            return []

        return parse_search_output(output)

    async def usage(self, name: str, timeout: Optional[float] = None) -> str:
        """Usage examples for a package.

        Tries cheat.sh first and falls back to ``brew info``; both share one
        deadline. Only ValidationError escapes; every other failure degrades
        to text.
        """
        validate_name(name)
        deadline = deadline_after(effective_timeout(self.settings.lookup_timeout, timeout))

        try:
            sheet = await self.cheatsheets.fetch(
                name, min(self.settings.http_timeout, time_left(deadline))
            )
        except CheatSheetError as e:
            log.info("cheatsheet_unavailable", package=name, error=str(e))
            sheet = ""

        if sheet and UNKNOWN_TOPIC_MARKER not in sheet:
            return sheet

        left = time_left(deadline)
        if left <= 0:
            log.warning("usage_fallback_skipped", package=name, reason="deadline")
            return USAGE_UNAVAILABLE

        try:
            output = await self._brew("info", name, default=left)
        except Exception as e:
            log.warning("usage_fallback_failed", package=name, error=str(e))
            return USAGE_UNAVAILABLE

        return USAGE_PREAMBLE + output
