"""Decoder for ``brew services list --json``."""

from __future__ import annotations

from typing import List, Mapping

from brewdeck.core.errors import BrewInternalError
from brewdeck.core.models import Service
from brewdeck.parsers.packages import load_document


def decode_services(text: str, homepages: Mapping[str, str] | None = None) -> List[Service]:
    """Decode the services list, joining homepages by package name.

    Args:
        text: Raw JSON array emitted by brew.
        homepages: Optional package name to homepage table.

    Returns:
        Services in the order brew listed them.

    Raises:
        BrewInternalError: If the document is not a JSON array.
    """
    data = load_document(text, "services list")
    if not isinstance(data, list):
        raise BrewInternalError(
            "Unexpected brew services list output",
            context={"command": "services list", "error": f"expected array, got {type(data).__name__}"}
        )

    homepages = homepages or {}
    services: List[Service] = []

    for entry in data:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name") or ""
        services.append(
            Service(
                name=name,
                status=entry.get("status") or "",
                user=entry.get("user") or "",
                # brew calls the definition file "file", not "plist"
                plist=entry.get("file") or "",
                homepage=homepages.get(name, ""),
            )
        )

    return services
