"""
Render the aggregate document.

Two layouts:
- flat: one ``- [ ] task [[Source]]`` line per item, in collection order
- grouped: four ``## Header (n)`` sections (today, tomorrow, next 7 days,
  backlog), each sorted by the manual order recorded for that group

Both end with an optional completed section below a ``---`` rule. In grouped
mode completed items decay after ``decay_days``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Sequence

from .config import CollectorSettings
from .state import CollectorState
from .types import TIME_GROUP_HEADERS, TIME_GROUPS, ChecklistItem, completion_key, normalize_key

logger = logging.getLogger(__name__)

# Blank lines pushing the flat-mode completed section below the fold
FLAT_COMPLETED_GAP = "\n" * 8

_DAY = timedelta(days=1)


@dataclass
class RenderedOutput:
    """Aggregate text plus the checked items written into it."""
    text: str
    checked: list[str] = field(default_factory=list)


def _countdown(days_left: int) -> str:
    return "1 day left" if days_left == 1 else f"{days_left} days left"


def active_items(items: Sequence[ChecklistItem], checked_items: Sequence[str]) -> list[ChecklistItem]:
    """Drop items that already appear checked in the aggregate."""
    checked_keys = {normalize_key(item) for item in checked_items}
    return [item for item in items if item.key not in checked_keys]


def group_items(items: Sequence[ChecklistItem], state: CollectorState) -> dict[str, list[ChecklistItem]]:
    """Bucket items by group, each bucket sorted by manual order.

    The sort is stable, so items without a recorded position keep
    collection order after the ordered ones.
    """
    groups: dict[str, list[ChecklistItem]] = {g: [] for g in TIME_GROUPS}
    for item in items:
        groups[state.group_of(item.key)].append(item)

    for group in TIME_GROUPS:
        if state.order[group]:
            groups[group].sort(key=lambda item, g=group: state.rank(g, item.key))
    return groups


def retain_checked(
    checked_items: Sequence[str],
    settings: CollectorSettings,
    state: CollectorState,
    now: datetime,
) -> list[tuple[str, Optional[int]]]:
    """
    Apply decay to checked items.

    Returns (item, days_left) pairs for items still shown; days_left is None
    when decay is off. Expired items have their timestamp purged; items
    without a timestamp are stamped now.
    """
    decay_days = settings.decay_days
    if decay_days <= 0:
        return [(item, None) for item in checked_items]

    retained: list[tuple[str, Optional[int]]] = []
    for item in checked_items:
        key = completion_key(item)
        completed_at = state.completed_at(key)

        if completed_at is None:
            # Completed before tracking started (or unreadable stamp)
            state.clear_completed(key)
            state.stamp_completed(key, now)
            retained.append((item, decay_days))
            continue

        elapsed_days = (now - completed_at) // _DAY
        days_left = decay_days - elapsed_days
        if days_left > 0:
            retained.append((item, days_left))
        else:
            logger.info("Completed item expired after %d days: %s", elapsed_days, item)
            state.clear_completed(key)
    return retained


def _render_flat(
    todos: Sequence[ChecklistItem],
    checked_items: Sequence[str],
    settings: CollectorSettings,
) -> RenderedOutput:
    output = "".join(f"{item.line}\n" for item in todos)
    shown: list[str] = []

    if settings.show_checked_section and checked_items:
        output += FLAT_COMPLETED_GAP + "---\n"
        output += f"{settings.checked_section_header}\n\n"
        for item in checked_items:
            output += f"- [x] {item}\n"
        shown = list(checked_items)

    return RenderedOutput(output, shown)


def _render_grouped(
    todos: Sequence[ChecklistItem],
    checked_items: Sequence[str],
    settings: CollectorSettings,
    state: CollectorState,
    now: datetime,
) -> RenderedOutput:
    groups = group_items(todos, state)

    output = ""
    for group in TIME_GROUPS:
        bucket = groups[group]
        count = f" ({len(bucket)})" if bucket else ""
        output += f"## {TIME_GROUP_HEADERS[group]}{count}\n"
        if bucket:
            output += "\n".join(item.line for item in bucket) + "\n"
        output += "\n"

    shown: list[str] = []
    if settings.show_checked_section and checked_items:
        retained = retain_checked(checked_items, settings, state, now)
        if retained:
            output += "\n\n---\n"
            output += f"{settings.checked_section_header}\n\n"
            for item, days_left in retained:
                if settings.show_decay_countdown and days_left:
                    output += f"- [x] {item} ({_countdown(days_left)})\n"
                else:
                    output += f"- [x] {item}\n"
            shown = [item for item, _ in retained]

    return RenderedOutput(output, shown)


def render(
    items: Sequence[ChecklistItem],
    checked_items: Sequence[str],
    settings: CollectorSettings,
    state: CollectorState,
    now: datetime,
) -> RenderedOutput:
    """
    Render the aggregate document.

    Args:
        items: Freshly collected unchecked items
        checked_items: Checked item texts ("Task [[Source]]") to keep
        settings: Layout options
        state: Groups, order and completion timestamps (decay mutates it)
        now: Current time, timezone-aware

    Returns:
        RenderedOutput with the text and the checked items actually shown
    """
    todos = active_items(items, checked_items)
    if not settings.enable_time_groups:
        return _render_flat(todos, checked_items, settings)
    return _render_grouped(todos, checked_items, settings, state, now)


def format_output(
    items: Sequence[ChecklistItem],
    checked_items: Sequence[str],
    settings: CollectorSettings,
    state: CollectorState,
    now: datetime,
) -> str:
    """Render the aggregate document text."""
    return render(items, checked_items, settings, state, now).text
