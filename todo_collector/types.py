"""
Data types for todo collection.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


# Time-based groups, in rendering order
TODAY = "today"
TOMORROW = "tomorrow"
WEEK = "week"
BACKLOG = "backlog"

TIME_GROUPS = (TODAY, TOMORROW, WEEK, BACKLOG)

# Items with no recorded group land here
DEFAULT_GROUP = BACKLOG

TIME_GROUP_HEADERS = {
    TODAY: "Today",
    TOMORROW: "Tomorrow",
    WEEK: "Next 7 days",
    BACKLOG: "Backlog",
}

HEADER_TO_GROUP = {label.lower(): group for group, label in TIME_GROUP_HEADERS.items()}

# Trailing wiki-style backlink on an aggregate line: "Task text [[Source]]"
_BACKLINK_RE = re.compile(r'^(.+)\s+\[\[([^\]]+)\]\]$')


@dataclass(frozen=True)
class ChecklistItem:
    """An unchecked task found in a source document.

    Rebuilt on every collection pass; never persisted.
    """
    text: str
    source_name: str

    @property
    def key(self) -> str:
        return item_key(self.text, self.source_name)

    @property
    def line(self) -> str:
        """The aggregate line for this item (without trailing newline)."""
        return f"- [ ] {self.text} [[{self.source_name}]]"


def validate_group(group: str) -> str:
    """Normalize a group name, raising ValueError for unknown groups."""
    normalized = group.strip().lower()
    if normalized not in TIME_GROUPS:
        raise ValueError(
            f"Unknown group {group!r} (expected one of: {', '.join(TIME_GROUPS)})"
        )
    return normalized


def item_key(text: str, source_name: str) -> str:
    """Canonical identity of a checklist item.

    Case- and whitespace-insensitive. The source name is lowercased along
    with the text so a key derived from an aggregate line
    ("Task [[Source]]".lower()) matches the key of the collected item.
    """
    return f"{text.strip()} [[{source_name}]]".lower().strip()


def normalize_key(line_text: str) -> str:
    """Key for an aggregate item text that already carries its backlink."""
    return line_text.strip().lower()


def split_backlink(item: str) -> Optional[tuple[str, str]]:
    """Split "Task [[Source]]" into (task, source). None if no backlink."""
    match = _BACKLINK_RE.match(item.strip())
    if not match:
        return None
    return match.group(1).strip(), match.group(2)


def completion_key(item: str) -> str:
    """Key for the completion timestamp map: task text only, no source."""
    parts = split_backlink(item)
    text = parts[0] if parts else item
    return text.strip().lower()


def format_utc_timestamp(dt: datetime) -> str:
    """Format a datetime as a canonical UTC timestamp string."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S")


def parse_utc_timestamp(ts: str) -> datetime:
    """Parse a stored timestamp string to a timezone-aware UTC datetime.

    Handles the canonical format (no suffix) as well as values that carry
    microseconds, 'Z', or '+00:00' suffixes.
    """
    ts = ts.replace("Z", "+00:00")
    dt = datetime.fromisoformat(ts)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
