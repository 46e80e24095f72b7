"""Renderers for displaying brew data in the terminal using Rich."""

from __future__ import annotations

from typing import Iterable

from rich import box
from rich.console import Console
from rich.table import Table

from brewdeck.core.models import DoctorReport, Package, Service

console = Console()

SERVICE_STYLES = {
    "started": "green",
    "stopped": "dim",
    "error": "red",
}


def human_size(maybe_bytes: int | None) -> str:
    """Convert a size in bytes to a human-readable string.

    Args:
        maybe_bytes: The size in bytes.

    Returns:
        The human-readable size string, or "-" when unknown.
    """
    if not maybe_bytes:
        return "-"

    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(maybe_bytes)
    i = 0
    while size >= 1024 and i < len(units) - 1:
        size /= 1024
        i += 1

    return f"{size:.2f} {units[i]}"


def status_to_str(pkg: Package) -> str:
    """Colour-coded flags for a package."""
    bits = []
    if pkg.outdated:
        bits.append("[red]Outdated[/red]")
    if pkg.pinned:
        bits.append("[yellow]Pinned[/yellow]")
    return ", ".join(bits) or "[green]Up-to-date[/green]"


def package_table(pkgs: Iterable[Package]) -> Table:
    """Create a Rich Table listing packages.

    Args:
        pkgs: Packages to display.

    Returns:
        A Rich Table with one row per package.
    """
    table = Table(box=box.MINIMAL_HEAVY_HEAD)
    table.add_column("Kind", style="bold")
    table.add_column("Name", style="bold")
    table.add_column("Installed")
    table.add_column("Latest")
    table.add_column("Status")
    table.add_column("Installed On", style="dim")

    for p in pkgs:
        installed = p.installed[0].version if p.installed else ""
        table.add_row(
            p.kind.value,
            p.name,
            installed,
            p.stable_version,
            status_to_str(p),
            p.install_date or "",
        )

    return table


def service_table(services: Iterable[Service]) -> Table:
    """Create a Rich Table listing brew services."""
    table = Table(box=box.MINIMAL_HEAVY_HEAD)
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("User")
    table.add_column("Homepage", style="dim")

    for s in services:
        style = SERVICE_STYLES.get(s.status, "yellow")
        table.add_row(s.name, f"[{style}]{s.status or 'unknown'}[/{style}]", s.user, s.homepage)

    return table


def doctor_table(report: DoctorReport) -> Table:
    """Create a Rich Table of doctor findings."""
    table = Table(box=box.MINIMAL_HEAVY_HEAD)
    table.add_column("Type", style="bold")
    table.add_column("Message")

    for issue in report.issues:
        style = "red" if issue.type == "error" else "yellow"
        table.add_row(f"[{style}]{issue.type}[/{style}]", issue.message)

    return table
