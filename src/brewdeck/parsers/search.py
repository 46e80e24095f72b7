"""Parser for the text output of ``brew search``."""

from __future__ import annotations

from typing import List

# ==> Formulae
# wget wgetpaste
# ==> Casks
# wget-gui
SECTION_TOKENS = frozenset({"==>", "Formulae", "Casks"})


def parse_search_output(output: str) -> List[str]:
    """Package names in first-seen order, without headers or duplicates."""
    seen: set[str] = set()
    results: List[str] = []

    for token in output.split():
        if token in SECTION_TOKENS or token in seen:
            continue
        seen.add(token)
        results.append(token)

    return results
