"""
Markdown report primitives shared by every tool handler.

Handlers decode their endpoint's JSON into records and build the report
themselves with a ``Report``: headings, paragraphs, ``- **Label**: value``
field lists (lists and mappings become nested bullets), tables and code
blocks.  Nothing here knows about any particular API.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

# RFC3339: date, "T", time, optional fraction of any precision, zone.
_RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)

DISPLAY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value: str | None) -> str | None:
    """Render an RFC3339 timestamp as ``YYYY-MM-DD HH:MM:SS``.

    The wall-clock fields are kept as written (no zone conversion).  Values
    that do not parse are returned unchanged, never dropped.
    """
    if not value:
        return value
    match = _RFC3339_RE.match(value.strip())
    if not match:
        return value
    try:
        parsed = datetime.strptime(f"{match.group(1)} {match.group(2)}", DISPLAY_TIME_FORMAT)
    except ValueError:
        return value
    return parsed.strftime(DISPLAY_TIME_FORMAT)


def enabled_label(flag: bool) -> str:
    return "Enabled" if flag else "Disabled"


def yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return yes_no(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)) and len(value) == 0:
        return True
    return False


class Report:
    """Accumulates Markdown blocks; ``render()`` joins them with blank lines."""

    def __init__(self) -> None:
        self._blocks: list[str] = []

    def __bool__(self) -> bool:
        return bool(self._blocks)

    def heading(self, text: str, level: int = 1) -> "Report":
        self._blocks.append(f"{'#' * level} {text}")
        return self

    def paragraph(self, text: str) -> "Report":
        if text:
            self._blocks.append(text)
        return self

    def fields(self, items: Iterable[tuple[str, Any]]) -> "Report":
        """Add a bullet list of ``**Label**: value`` lines.

        Empty values (None, "", [], {}) are skipped.  A list value becomes
        nested bullets under its label, a mapping nested ``key: value``
        bullets.  Nothing is added when every value is empty.
        """
        lines: list[str] = []
        for label, value in items:
            if _is_empty(value):
                continue
            if isinstance(value, Mapping):
                lines.append(f"- **{label}**:")
                lines.extend(f"  - {k}: {format_value(v)}" for k, v in value.items())
            elif isinstance(value, (list, tuple)):
                lines.append(f"- **{label}**:")
                lines.extend(f"  - {format_value(v)}" for v in value)
            else:
                lines.append(f"- **{label}**: {format_value(value)}")
        if lines:
            self._blocks.append("\n".join(lines))
        return self

    def bullets(self, items: Iterable[Any]) -> "Report":
        lines = [f"- {format_value(item)}" for item in items if not _is_empty(item)]
        if lines:
            self._blocks.append("\n".join(lines))
        return self

    def numbered(self, items: Iterable[Any]) -> "Report":
        lines = [f"{i}. {format_value(item)}" for i, item in enumerate(items, start=1)]
        if lines:
            self._blocks.append("\n".join(lines))
        return self

    def table(self, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> "Report":
        lines = [
            "| " + " | ".join(headers) + " |",
            "| " + " | ".join("-" * len(h) for h in headers) + " |",
        ]
        for row in rows:
            cells = [format_value(cell).replace("|", "\\|") for cell in row]
            lines.append("| " + " | ".join(cells) + " |")
        self._blocks.append("\n".join(lines))
        return self

    def code_block(self, text: str, language: str = "") -> "Report":
        self._blocks.append(f"```{language}\n{text}\n```")
        return self

    def render(self) -> str:
        if not self._blocks:
            return ""
        return "\n\n".join(self._blocks) + "\n"
