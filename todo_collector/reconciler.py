"""
Reconcile hand edits of the aggregate document.

Parsing walks the aggregate line by line:
- a leading frontmatter block is skipped
- ``## `` headers (grouped mode) set the current section
- any later ``---`` rule clears the section (the completed section follows)
- checked lines are collected for the check-state diff
- unchecked lines inside a known section record that section as the
  item's group (this is how moving a line between sections sticks)

Source sync is a best-effort literal substring replacement of the first
``- [ ] task`` (or ``- [x] task``) occurrence in the source document.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .matcher import (
    is_delimiter,
    match_checked,
    match_unchecked_line,
    parse_header,
    split_frontmatter,
)
from .protocol import DocumentStoreProtocol
from .state import CollectorState
from .types import HEADER_TO_GROUP, normalize_key, split_backlink

logger = logging.getLogger(__name__)


@dataclass
class AggregateParse:
    """Result of parsing the aggregate document."""
    checked_items: list[str] = field(default_factory=list)
    groups_changed: bool = False


def parse_aggregate(
    content: str,
    enable_time_groups: bool,
    state: Optional[CollectorState] = None,
) -> AggregateParse:
    """
    Parse aggregate content.

    Args:
        content: Current aggregate text
        enable_time_groups: Whether section headers carry group meaning
        state: If given, group assignments are updated from section placement

    Returns:
        AggregateParse with checked item texts in document order
    """
    result = AggregateParse()
    _, body = split_frontmatter(content)
    current_group: Optional[str] = None

    for line in body.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            continue

        if is_delimiter(trimmed):
            current_group = None
            continue

        if enable_time_groups:
            header = parse_header(trimmed)
            if header is not None:
                current_group = HEADER_TO_GROUP.get(header)
                continue

        checked = match_checked(trimmed)
        if checked is not None:
            result.checked_items.append(checked)
            continue

        if enable_time_groups and current_group and state is not None:
            unchecked = match_unchecked_line(trimmed)
            if unchecked is not None:
                if state.assign_group(normalize_key(unchecked), current_group):
                    result.groups_changed = True

    return result


def diff_checked(
    previous: Sequence[str],
    current: Sequence[str],
) -> tuple[list[str], list[str]]:
    """
    Compare checked item lists.

    Returns:
        (newly_checked, newly_unchecked), each in the order of its source list
    """
    previous_set = set(previous)
    current_set = set(current)
    newly_checked = [item for item in current if item not in previous_set]
    newly_unchecked = [item for item in previous if item not in current_set]
    return newly_checked, newly_unchecked


def set_task_state(
    store: DocumentStoreProtocol, item: str, checked: bool
) -> Optional[str]:
    """
    Push a check-state change back to the item's source document.

    The item must end in a ``[[Source]]`` backlink. Only the first literal
    occurrence of the task line is rewritten; if it isn't found the call is
    a no-op.

    Returns:
        Path of the source document if it was modified, else None
    """
    parts = split_backlink(item)
    if parts is None:
        logger.debug("No backlink in checked item, skipping sync: %s", item)
        return None
    task_text, source_name = parts

    source_path = store.resolve_link(source_name)
    if source_path is None:
        logger.debug("Source document not found for [[%s]]", source_name)
        return None

    try:
        content = store.read(source_path)
        if checked:
            new_content = content.replace(f"- [ ] {task_text}", f"- [x] {task_text}", 1)
        else:
            new_content = content.replace(f"- [x] {task_text}", f"- [ ] {task_text}", 1)

        if new_content == content:
            return None

        store.write(source_path, new_content)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error updating source %s: %s", source_name, e)
        return None

    logger.info(
        "Marked %s in %s: %s", "done" if checked else "open", source_path, task_text
    )
    return source_path
