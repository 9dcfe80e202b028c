"""
``{{placeholder}}`` substitution for printable documents.

Template bodies (COE certificates, PAN notices) are HTML authored by HR.
Interpolated values are HTML-escaped; the template markup itself is trusted.
Unknown tokens are left in place so a missing value is visible on the print
preview rather than silently blanked.
"""

import html
import re
from typing import Any, Mapping

PLACEHOLDER_RE = re.compile(r"\{\{\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*\}\}")


def find_placeholders(body: str) -> list[str]:
    """Placeholder names in order of first appearance."""
    seen: list[str] = []
    for match in PLACEHOLDER_RE.finditer(body):
        if match.group(1) not in seen:
            seen.append(match.group(1))
    return seen


def render_placeholders(
    body: str,
    values: Mapping[str, Any],
    *,
    escape: bool = True,
) -> str:
    """Replace every ``{{name}}`` present in ``values``."""

    def _sub(match: re.Match) -> str:
        name = match.group(1)
        if name not in values:
            return match.group(0)
        value = values[name]
        text = "" if value is None else str(value)
        return html.escape(text) if escape else text

    return PLACEHOLDER_RE.sub(_sub, body)
