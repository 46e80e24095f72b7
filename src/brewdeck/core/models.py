"""Data models for packages, services and doctor diagnostics."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

STARTED = "started"


class PackageKind(Enum):
    """Enumeration of package kinds."""

    FORMULA = "formula"
    CASK = "cask"


@dataclass(frozen=True)
class InstalledVersion:
    """One entry of a package's ``installed`` array."""

    version: str
    installed_on_request: bool = False
    installed_as_dependency: bool = False
    time: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "installed_on_request": self.installed_on_request,
            "installed_as_dependency": self.installed_as_dependency,
        }
        if self.time:
            data["time"] = self.time
        return data


@dataclass(frozen=True)
class Package:
    """An installed formula or cask, as reported by ``brew info --json=v2``."""

    name: str
    full_name: str = ""
    desc: str = ""
    homepage: str = ""
    stable_version: str = ""
    installed: tuple[InstalledVersion, ...] = ()
    outdated: bool = False
    pinned: bool = False
    dependencies: tuple[str, ...] = ()
    build_dependencies: tuple[str, ...] = ()
    caveats: str = ""
    conflicts_with: tuple[str, ...] = ()
    installed_size: int | None = None
    install_date: str | None = None
    is_cask: bool = False

    @property
    def kind(self) -> PackageKind:
        return PackageKind.CASK if self.is_cask else PackageKind.FORMULA

    def to_dict(self) -> dict[str, Any]:
        """Wire representation consumed by the browser UI."""
        data: dict[str, Any] = {
            "name": self.name,
            "full_name": self.full_name,
            "desc": self.desc,
            "homepage": self.homepage,
            "versions": {"stable": self.stable_version},
            "installed": [v.to_dict() for v in self.installed],
            "outdated": self.outdated,
            "pinned": self.pinned,
            "dependencies": list(self.dependencies),
            "build_dependencies": list(self.build_dependencies),
            "caveats": self.caveats,
            "conflicts_with": list(self.conflicts_with),
            "is_cask": self.is_cask,
        }
        if self.installed_size:
            data["installed_size"] = self.installed_size
        if self.install_date:
            data["install_date"] = self.install_date
        return data


@dataclass(frozen=True)
class Service:
    """A brew-managed background service.

    ``status`` is whatever brew reports (started, stopped, none, error, ...).
    """

    name: str
    status: str = ""
    user: str = ""
    plist: str = ""
    homepage: str = ""

    @property
    def running(self) -> bool:
        return self.status == STARTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "user": self.user,
            "plist": self.plist,
            "running": self.running,
            "homepage": self.homepage,
        }


@dataclass(frozen=True)
class DiagnosticIssue:
    """One issue reported by ``brew doctor``."""

    type: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "message": self.message}


@dataclass(frozen=True)
class DoctorReport:
    """Raw doctor output plus the issues parsed from it."""

    output: str
    issues: list[DiagnosticIssue] = field(default_factory=list)

    @property
    def is_healthy(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict[str, Any]:
        return {
            "output": self.output,
            "issues": [i.to_dict() for i in self.issues],
            "isHealthy": self.is_healthy,
        }
