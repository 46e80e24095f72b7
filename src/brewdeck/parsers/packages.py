"""Decoders for ``brew info --json=v2`` documents."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, List

from brewdeck.core.errors import BrewInternalError
from brewdeck.core.logging import get_logger
from brewdeck.core.models import InstalledVersion, Package

log = get_logger(__name__)


def load_document(text: str, command: str) -> Any:
    """Parse JSON emitted by brew, wrapping failures as internal errors."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        log.error(
            "json_parse_failed",
            command=command,
            error=str(e),
            exc_info=True
        )
        raise BrewInternalError(
            f"Failed to parse brew {command} output",
            context={
                "command": command,
                "error": str(e),
                "output_preview": text[:200] if text else ""
            }
        ) from e


def _info_document(text: str, command: str) -> dict[str, Any]:
    data = load_document(text, command)
    if not isinstance(data, dict):
        raise BrewInternalError(
            f"Unexpected brew {command} output",
            context={"command": command, "error": f"expected object, got {type(data).__name__}"}
        )
    return data


def install_date(installed: List[InstalledVersion]) -> str | None:
    """RFC 3339 timestamp of the first installed version, if known."""
    if installed and installed[0].time and installed[0].time > 0:
        return datetime.fromtimestamp(installed[0].time, tz=timezone.utc).isoformat()
    return None


def _strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(v) for v in value if isinstance(v, str))


def _installed_versions(items: Any) -> List[InstalledVersion]:
    versions: List[InstalledVersion] = []
    if not isinstance(items, list):
        return versions

    for v in items:
        if not isinstance(v, dict):
            continue
        t = v.get("time")
        versions.append(
            InstalledVersion(
                version=str(v.get("version") or ""),
                installed_on_request=bool(v.get("installed_on_request")),
                installed_as_dependency=bool(v.get("installed_as_dependency")),
                time=int(t) if isinstance(t, (int, float)) else None,
            )
        )
    return versions


def _cask_installed(c: dict[str, Any]) -> List[InstalledVersion]:
    # Casks report a single installed version string plus installed_time.
    installed = c.get("installed")
    if isinstance(installed, list):
        return _installed_versions(installed)
    if not installed:
        return []
    t = c.get("installed_time")
    return [
        InstalledVersion(
            version=str(installed),
            installed_on_request=True,
            time=int(t) if isinstance(t, (int, float)) else None,
        )
    ]


def package_from_item(f: dict[str, Any], is_cask: bool = False) -> Package:
    """Build a Package from one formula or cask object."""
    if is_cask:
        display = f.get("name")
        display_name = display[0] if isinstance(display, list) and display else ""
        name = f.get("token") or display_name
        full_name = f.get("full_token") or f.get("full_name") or display_name or name
        installed = _cask_installed(f)
        stable = f.get("version") or ""
    else:
        name = f.get("name") or ""
        full_name = f.get("full_name") or name
        installed = _installed_versions(f.get("installed"))
        stable = (f.get("versions") or {}).get("stable") or ""

    size = f.get("installed_size")

    return Package(
        name=str(name),
        full_name=str(full_name),
        desc=f.get("desc") or "",
        homepage=f.get("homepage") or "",
        stable_version=str(stable),
        installed=tuple(installed),
        outdated=bool(f.get("outdated")),
        pinned=bool(f.get("pinned")),
        dependencies=_strings(f.get("dependencies")),
        build_dependencies=_strings(f.get("build_dependencies")),
        caveats=f.get("caveats") or "",
        conflicts_with=_strings(f.get("conflicts_with")),
        installed_size=int(size) if isinstance(size, (int, float)) and size > 0 else None,
        install_date=install_date(installed),
        is_cask=is_cask,
    )


def decode_installed(text: str) -> List[Package]:
    """Decode ``brew info --installed --json=v2`` into formulae followed by casks.

    Entries without a usable name are skipped. No deduplication happens
    between the two sublists.

    Raises:
        BrewInternalError: If the document is not valid JSON.
    """
    data = _info_document(text, "info")
    pkgs: List[Package] = []

    for is_cask, key in ((False, "formulae"), (True, "casks")):
        for item in data.get(key) or []:
            if not isinstance(item, dict):
                continue
            pkg = package_from_item(item, is_cask=is_cask)
            if not pkg.name:
                log.warning("package_without_name", kind=key)
                continue
            pkgs.append(pkg)

    return pkgs


def decode_installed_size(text: str) -> int:
    """Installed size in bytes from a single-package info document.

    Returns 0 when neither a formula nor a cask entry is present.
    """
    data = _info_document(text, "info")

    for key in ("formulae", "casks"):
        items = data.get(key) or []
        if items and isinstance(items[0], dict):
            size = items[0].get("installed_size")
            return int(size) if isinstance(size, (int, float)) else 0

    return 0
