"""Parser for the free-text output of ``brew doctor``."""

from __future__ import annotations

from typing import List

from brewdeck.core.models import DiagnosticIssue

ISSUE_HEADERS = ("Warning:", "Error:")


def _issue(text: str) -> DiagnosticIssue:
    kind = "error" if "error" in text.lower() else "warning"
    return DiagnosticIssue(type=kind, message=text)


def parse_doctor_output(output: str) -> List[DiagnosticIssue]:
    """Split doctor output into issues.

    A blank line or a new ``Warning:``/``Error:`` header closes the current
    issue; other lines are joined onto it with a single space. Text before
    the first header is ignored.
    """
    issues: List[DiagnosticIssue] = []
    current = ""

    for raw in output.split("\n"):
        line = raw.strip()
        if not line:
            if current:
                issues.append(_issue(current))
                current = ""
            continue

        if line.startswith(ISSUE_HEADERS):
            if current:
                issues.append(_issue(current))
            current = line
        elif current:
            current += " " + line

    if current:
        issues.append(_issue(current))

    return issues
