"""CLI entry point for brewdeck."""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import typer

from brewdeck.cli.renderers import (
    console,
    doctor_table,
    human_size,
    package_table,
    service_table,
)
from brewdeck.core.config import load_settings
from brewdeck.core.errors import (
    BrewError,
    exit_code_for,
    format_error_message,
)
from brewdeck.core.logging import configure_logging, get_logger
from brewdeck.core.manager import BrewManager

log = get_logger(__name__)

app = typer.Typer(help="brewdeck: a local web dashboard and CLI for Homebrew.")


def _manager() -> BrewManager:
    settings = load_settings()
    configure_logging(level=settings.log_level)
    return BrewManager(settings)


def handle_error(error: Exception) -> int:
    """Report an error on the console and return the exit code.

    Args:
        error: The exception to handle.

    Returns:
        An integer exit code.
    """
    if isinstance(error, BrewError):
        log.error(
            "cli_error",
            error_type=type(error).__name__,
            message=error.message,
            context=error.context,
        )
        console.print(f"\n{format_error_message(error)}\n", style="bold red")
    else:
        log.error("unexpected_error", error=str(error), exc_info=True)
        console.print(f"\n⚠️ Unexpected error occurred: {error}\n", style="bold red")

    return exit_code_for(error)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind (default from HOST)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on (default from PORT)"),
) -> None:
    """Start the HTTP API server."""
    from brewdeck.web.server import create_app, run_server

    settings = load_settings()
    configure_logging(level=settings.log_level, enable_console=True)
    app_ = create_app(settings)
    run_server(app_, host=host or settings.host, port=port or settings.port)


@app.command("list")
def list_packages(
    casks: bool = typer.Option(False, "--casks", help="Only casks"),
    formulae: bool = typer.Option(False, "--formulae", help="Only formulae"),
    outdated: bool = typer.Option(False, help="Only outdated"),
) -> None:
    """List installed packages."""
    try:
        pkgs = asyncio.run(_manager().list_installed())
        if casks:
            pkgs = [p for p in pkgs if p.is_cask]
        if formulae:
            pkgs = [p for p in pkgs if not p.is_cask]
        if outdated:
            pkgs = [p for p in pkgs if p.outdated]

        console.print(package_table(pkgs))
    except Exception as e:
        sys.exit(handle_error(e))


@app.command()
def services() -> None:
    """List brew services and their status."""
    try:
        console.print(service_table(asyncio.run(_manager().list_services())))
    except Exception as e:
        sys.exit(handle_error(e))


@app.command()
def doctor() -> None:
    """Run brew doctor and summarise the findings."""
    try:
        report = asyncio.run(_manager().doctor())
    except Exception as e:
        sys.exit(handle_error(e))

    if report.is_healthy:
        console.print("✅ Your system is ready to brew.", style="bold green")
        return
    console.print(doctor_table(report))
    sys.exit(1)


@app.command()
def search(query: str) -> None:
    """Search formulae and casks by name."""
    try:
        results = asyncio.run(_manager().search(query))
    except Exception as e:
        sys.exit(handle_error(e))

    if not results:
        console.print(f"No packages match '{query}'.", style="dim")
        return
    for name in results:
        console.print(name)


@app.command()
def usage(name: str) -> None:
    """Show usage examples for a package."""
    try:
        text = asyncio.run(_manager().usage(name))
    except Exception as e:
        sys.exit(handle_error(e))

    console.print(text, markup=False, highlight=False)


@app.command()
def size(name: str) -> None:
    """Show the installed size of a package."""
    try:
        nbytes = asyncio.run(_manager().package_size(name))
    except Exception as e:
        sys.exit(handle_error(e))

    console.print(f"{name}: {human_size(nbytes)}")


if __name__ == "__main__":
    app()
