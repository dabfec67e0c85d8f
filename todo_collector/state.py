"""State for grouping, ordering and completion tracking."""

import logging
from datetime import datetime
from typing import Any, Optional

from .types import DEFAULT_GROUP, TIME_GROUPS, format_utc_timestamp, parse_utc_timestamp

logger = logging.getLogger(__name__)


class CollectorState:
    """
    Long-lived item state, persisted alongside the settings.

    - groups: item key -> time group (no automatic cleanup)
    - order: time group -> item keys in manual order
    - completed: completion key -> UTC timestamp string
    - checked_snapshot: checked items visible in the last aggregate written,
      the "previous" side of the next check-state diff (None = never recorded)

    Mutators set ``dirty`` so the owner knows to flush.
    """

    def __init__(self) -> None:
        self.groups: dict[str, str] = {}
        self.order: dict[str, list[str]] = {g: [] for g in TIME_GROUPS}
        self.completed: dict[str, str] = {}
        self.checked_snapshot: Optional[list[str]] = None
        self.dirty = False

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "CollectorState":
        state = cls()
        for key, group in record.get("item_groups", {}).items():
            if group in TIME_GROUPS:
                state.groups[key] = group
            else:
                logger.warning("Dropping unknown group %r for %s", group, key)
        stored_order = record.get("item_order", {})
        for group in TIME_GROUPS:
            state.order[group] = list(stored_order.get(group, []))
        state.completed = dict(record.get("completed_timestamps", {}))
        snapshot = record.get("snapshot", {})
        if "checked" in snapshot:
            state.checked_snapshot = list(snapshot["checked"])
        return state

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "item_groups": dict(self.groups),
            "item_order": {g: list(self.order[g]) for g in TIME_GROUPS},
            "completed_timestamps": dict(self.completed),
        }
        if self.checked_snapshot is not None:
            record["snapshot"] = {"checked": list(self.checked_snapshot)}
        return record

    # -------------------------------------------------------------------------
    # Groups and order
    # -------------------------------------------------------------------------

    def group_of(self, key: str) -> str:
        return self.groups.get(key, DEFAULT_GROUP)

    def assign_group(self, key: str, group: str) -> bool:
        """Record a group for a key. Returns True if the assignment changed."""
        if self.groups.get(key) == group:
            return False
        self.groups[key] = group
        self.dirty = True
        return True

    def move_to_group(self, key: str, group: str) -> None:
        """Move an item to a group, appending it to that group's order."""
        old_group = self.group_of(key)
        self.order[old_group] = [k for k in self.order[old_group] if k != key]
        self.groups[key] = group
        if key not in self.order[group]:
            self.order[group].append(key)
        self.dirty = True

    def reorder(self, dragged_key: str, target_key: str, insert_before: bool) -> None:
        """Place dragged_key next to target_key, adopting the target's group."""
        target_group = self.group_of(target_key)
        dragged_group = self.group_of(dragged_key)

        self.order[dragged_group] = [
            k for k in self.order[dragged_group] if k != dragged_key
        ]
        self.groups[dragged_key] = target_group

        order = self.order[target_group]
        try:
            index = order.index(target_key)
        except ValueError:
            order.append(dragged_key)
        else:
            if not insert_before:
                index += 1
            order.insert(index, dragged_key)
        self.dirty = True

    def rank(self, group: str, key: str) -> float:
        """Position of key in the group's order; unordered keys sort last."""
        try:
            return self.order[group].index(key)
        except ValueError:
            return float("inf")

    # -------------------------------------------------------------------------
    # Completion timestamps
    # -------------------------------------------------------------------------

    def completed_at(self, key: str) -> Optional[datetime]:
        ts = self.completed.get(key)
        if not ts:
            return None
        try:
            return parse_utc_timestamp(ts)
        except ValueError:
            logger.warning("Ignoring invalid completion timestamp %r for %s", ts, key)
            return None

    def stamp_completed(self, key: str, when: datetime) -> None:
        """Record a completion time unless one is already recorded."""
        if key in self.completed:
            return
        self.completed[key] = format_utc_timestamp(when)
        self.dirty = True

    def clear_completed(self, key: str) -> None:
        if self.completed.pop(key, None) is not None:
            self.dirty = True

    def set_snapshot(self, checked: list[str]) -> None:
        if self.checked_snapshot != checked:
            self.checked_snapshot = list(checked)
            self.dirty = True
