"""
Core API for todo collection.

TodoCollector owns the settings and item state for one vault and runs the
two passes that keep the aggregate document current:
- collect_and_write(): scan sources → render → write aggregate
- process_checked_items(): parse aggregate edits → sync sources → rewrite
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, Optional

from .collector import collect
from .config import REFRESH_SETTINGS, SettingsStore, get_state_dir, load_settings
from .document_store import FileDocumentStore
from .editing import drop_line, is_draggable
from .errors import log_exception
from .formatter import RenderedOutput, render
from .matcher import match_task_line, split_frontmatter
from .protocol import DocumentStoreProtocol, SettingsStoreProtocol
from .reconciler import diff_checked, parse_aggregate, set_task_state
from .state import CollectorState
from .types import ChecklistItem, completion_key, normalize_key, validate_group

logger = logging.getLogger(__name__)

# How long our own writes keep suppressing change notifications
GUARD_GRACE_SECONDS = 0.5


class WriteGuard:
    """
    Reentrancy flag for programmatic writes.

    Held for the whole write sequence; released after a trailing grace
    period so late change notifications for our own writes are ignored.
    Only the paths touched by the guarded writes are covered; edits to
    other documents during the same window still count.
    """

    def __init__(
        self,
        grace: float = GUARD_GRACE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._grace = grace
        self._clock = clock
        self._held = False
        self._release_at = 0.0
        self._touched: set[str] = set()

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self.active:
            self._touched.clear()
        self._held = True
        try:
            yield
        finally:
            self._held = False
            self._release_at = self._clock() + self._grace

    def touch(self, path: str) -> None:
        """Record a path written under the guard."""
        self._touched.add(path)

    @property
    def active(self) -> bool:
        return self._held or self._clock() < self._release_at

    def covers(self, path: str) -> bool:
        """True if a change to ``path`` is one of our own recent writes."""
        return self.active and path in self._touched


@dataclass
class SyncResult:
    """What a reconciliation pass changed."""
    checked: list[str] = field(default_factory=list)
    unchecked: list[str] = field(default_factory=list)
    groups_changed: bool = False
    written: bool = False


class TodoCollector:
    """
    Aggregates unchecked tasks of a vault into one document.

    Example:
        tc = TodoCollector("~/notes")
        tc.collect_and_write()          # regenerate TODO.md
        tc.process_checked_items()      # after the user edited TODO.md
    """

    def __init__(
        self,
        vault: str | Path,
        *,
        doc_store: Optional[DocumentStoreProtocol] = None,
        settings_store: Optional[SettingsStoreProtocol] = None,
        clock: Optional[Callable[[], datetime]] = None,
        ops_log: bool = True,
    ) -> None:
        """
        Open a vault.

        Args:
            vault: Vault root directory
            doc_store: Injected document store (default: the vault's files)
            settings_store: Injected settings store (default: TOML file in
                the vault's state directory)
            clock: Returns the current timezone-aware time (tests pin it)
            ops_log: Attach the rotating operations log
        """
        self._vault = Path(vault).expanduser().resolve()
        self._state_dir = get_state_dir(self._vault)
        self._store = doc_store if doc_store is not None else FileDocumentStore(self._vault)
        self._settings_store = (
            settings_store if settings_store is not None else SettingsStore(self._state_dir)
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.guard = WriteGuard()

        record = self._settings_store.load()
        self.settings = load_settings(self._settings_store, record)
        self.state = CollectorState.from_record(record)

        self._ops_log_handler = None
        if ops_log:
            from .logging_config import configure_ops_log
            self._ops_log_handler = configure_ops_log(self._state_dir)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def vault(self) -> Path:
        return self._vault

    @property
    def state_dir(self) -> Path:
        return self._state_dir

    @property
    def store(self) -> DocumentStoreProtocol:
        return self._store

    @property
    def output_path(self) -> str:
        return self.settings.output_file_path

    def aggregate_file(self) -> Path:
        """Filesystem location of the aggregate document."""
        return self._vault / self.output_path

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save_settings(self) -> None:
        """Flush settings and item state to the settings store."""
        record = {"settings": self.settings.to_record()}
        record.update(self.state.to_record())
        self._settings_store.save(record)
        self.state.dirty = False

    def _flush(self) -> None:
        if self.state.dirty:
            self.save_settings()

    # -------------------------------------------------------------------------
    # Collection
    # -------------------------------------------------------------------------

    def collect_todos(self) -> list[ChecklistItem]:
        return collect(self._store, self.settings.exclude_folders, self.output_path)

    def render(self, items: list[ChecklistItem], checked_items: list[str]) -> RenderedOutput:
        return render(items, checked_items, self.settings, self.state, self._clock())

    def _ensure_snapshot(self) -> list[str]:
        """Checked items from the last pass, seeded from the aggregate on first use."""
        if self.state.checked_snapshot is None:
            seeded: list[str] = []
            if self._store.exists(self.output_path):
                content = self._store.read(self.output_path)
                seeded = parse_aggregate(content, self.settings.enable_time_groups).checked_items
            self.state.set_snapshot(seeded)
        return list(self.state.checked_snapshot or [])

    def _write_output(self, text: str) -> bool:
        """Write the aggregate, keeping any leading frontmatter.

        Returns False when the document already holds exactly this text.
        """
        if self._store.exists(self.output_path):
            current = self._store.read(self.output_path)
            frontmatter, _ = split_frontmatter(current)
            new_content = frontmatter + text
            if new_content == current:
                logger.debug("Aggregate unchanged, skipping write")
                return False
            self.guard.touch(self.output_path)
            self._store.write(self.output_path, new_content)
        else:
            self.guard.touch(self.output_path)
            self._store.create(self.output_path, text)
        return True

    def _has_pending_edits(self) -> bool:
        """True if the aggregate holds check or section edits not yet synced."""
        snapshot = self.state.checked_snapshot
        if snapshot is None or not self._store.exists(self.output_path):
            return False
        scratch = CollectorState.from_record(self.state.to_record())
        parsed = parse_aggregate(
            self._store.read(self.output_path), self.settings.enable_time_groups, scratch
        )
        newly_checked, newly_unchecked = diff_checked(snapshot, parsed.checked_items)
        if newly_checked or newly_unchecked:
            return True
        return any(self.state.group_of(key) != group for key, group in scratch.groups.items())

    def collect_and_write(self) -> bool:
        """
        Regenerate the aggregate document from the sources.

        Checked items shown by the previous pass are kept in the completed
        section. If the aggregate holds edits that were never synced, they
        are reconciled instead, so regeneration can't overwrite them.
        Errors are logged, never raised.

        Returns:
            True if the pass completed
        """
        with self.guard.hold():
            try:
                if self._has_pending_edits():
                    logger.info("Aggregate has unsynced edits, reconciling first")
                    self._reconcile()
                    return True
                checked = self._ensure_snapshot()
                items = self.collect_todos()
                rendered = self.render(items, checked)
                written = self._write_output(rendered.text)
                self.state.set_snapshot(rendered.checked)
                self._flush()
                if written:
                    logger.info(
                        "Wrote %s: %d open, %d completed",
                        self.output_path, len(items), len(rendered.checked),
                    )
                return True
            except Exception as e:
                logger.error("Error updating output file: %s", e)
                log_exception(e, context="collect", state_dir=self._state_dir)
                return False

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def process_checked_items(self) -> Optional[SyncResult]:
        """
        Reconcile the user's edits to the aggregate document.

        Newly checked items are checked in their source documents (and get a
        completion timestamp); items no longer checked are unchecked there.
        Section placement of unchecked lines updates their group. The
        aggregate is then regenerated from a fresh collection.

        Returns:
            SyncResult, or None if there is no aggregate or the pass failed
        """
        if not self._store.exists(self.output_path):
            return None

        with self.guard.hold():
            try:
                return self._reconcile()
            except Exception as e:
                logger.error("Error processing checked items: %s", e)
                log_exception(e, context="reconcile", state_dir=self._state_dir)
                return None

    def _reconcile(self) -> SyncResult:
        content = self._store.read(self.output_path)
        parsed = parse_aggregate(content, self.settings.enable_time_groups, self.state)
        previous = self.state.checked_snapshot or []
        newly_checked, newly_unchecked = diff_checked(previous, parsed.checked_items)

        now = self._clock()
        for item in newly_checked:
            self._sync_source(item, True)
            self.state.stamp_completed(completion_key(item), now)
        for item in newly_unchecked:
            self._sync_source(item, False)
            self.state.clear_completed(completion_key(item))

        items = self.collect_todos()
        rendered = self.render(items, parsed.checked_items)
        written = self._write_output(rendered.text)
        self.state.set_snapshot(rendered.checked)
        self._flush()

        if newly_checked or newly_unchecked:
            logger.info(
                "Synced %d checked, %d unchecked", len(newly_checked), len(newly_unchecked)
            )
        return SyncResult(
            checked=newly_checked,
            unchecked=newly_unchecked,
            groups_changed=parsed.groups_changed,
            written=written,
        )

    def _sync_source(self, item: str, checked: bool) -> None:
        source_path = set_task_state(self._store, item, checked)
        if source_path is not None:
            self.guard.touch(source_path)

    def _sync_pending_edits(self) -> None:
        """Reconcile aggregate edits before a command changes groups or order."""
        if self._has_pending_edits():
            self.process_checked_items()

    # -------------------------------------------------------------------------
    # Grouping commands
    # -------------------------------------------------------------------------

    def move_item_to_group(self, item_key: str, group: str) -> None:
        """Assign an item (by key) to a time group and regenerate."""
        group = validate_group(group)
        self._sync_pending_edits()
        self.state.move_to_group(normalize_key(item_key), group)
        self.save_settings()
        self.collect_and_write()

    def reorder_item(self, dragged_key: str, target_key: str, insert_before: bool = True) -> None:
        """Drop one item next to another; the dragged item joins the target's group."""
        dragged = normalize_key(dragged_key)
        target = normalize_key(target_key)
        if not dragged or not target or dragged == target:
            return
        self._sync_pending_edits()
        self.state.reorder(dragged, target, insert_before)
        self.save_settings()
        self.collect_and_write()

    def move_task_line(self, line: str, group: str) -> bool:
        """
        Move the task on an aggregate line to a group.

        Only meaningful with time groups enabled.

        Returns:
            True if the line was a task and was moved
        """
        group = validate_group(group)
        if not self.settings.enable_time_groups:
            logger.debug("Time groups disabled, ignoring move to %s", group)
            return False
        content = match_task_line(line)
        if content is None:
            return False
        self.move_item_to_group(content, group)
        return True

    def move_task_at(self, line_number: int, group: str) -> bool:
        """Move the task on a 1-based line of the aggregate document."""
        if not self._store.exists(self.output_path):
            return False
        lines = self._store.read(self.output_path).split("\n")
        if not 1 <= line_number <= len(lines):
            return False
        return self.move_task_line(lines[line_number - 1], group)

    def apply_drop(self, from_line: int, to_line: int) -> Optional[SyncResult]:
        """
        Drag a task line of the aggregate onto another line, then reconcile.

        The edit is written as a user edit (not guarded) and reconciled
        immediately, so section moves take effect at once.
        """
        if not self.settings.enable_time_groups:
            return None
        if not self._store.exists(self.output_path):
            return None
        content = self._store.read(self.output_path)
        lines = content.split("\n")
        if not 1 <= from_line <= len(lines) or not is_draggable(lines[from_line - 1]):
            return None
        new_content = drop_line(content, from_line, to_line)
        if new_content == content:
            return None
        self._store.write(self.output_path, new_content)
        return self.process_checked_items()

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def update_setting(self, name: str, value: str) -> bool:
        """
        Change one setting from its string form and persist it.

        Returns:
            True if the change triggered a regeneration of the aggregate
        """
        self.settings.set_value(name, value)
        self.save_settings()
        if name in REFRESH_SETTINGS:
            self.collect_and_write()
            return True
        return False

    def close(self) -> None:
        """Detach the operations log."""
        if self._ops_log_handler is not None:
            logging.getLogger("todo_collector").removeHandler(self._ops_log_handler)
            self._ops_log_handler.close()
            self._ops_log_handler = None
