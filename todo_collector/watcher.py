"""
Watch a vault and keep the aggregate document current.

Runs on a single asyncio event loop. Document I/O happens synchronously on
the loop thread, so passes never overlap. Two debouncers route changes:
- edits to the aggregate document → reconciliation (short delay)
- edits to any other document → re-collection (longer delay)

Change detection polls modification stamps; a rename is seen as a delete
followed by a create.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .api import TodoCollector
from .document_store import MARKDOWN_SUFFIX
from .protocol import DocumentStoreProtocol

logger = logging.getLogger(__name__)

RECONCILE_DELAY = 0.5
COLLECT_DELAY = 1.0
POLL_INTERVAL = 0.2

CREATED = "created"
MODIFIED = "modified"
DELETED = "deleted"


@dataclass(frozen=True)
class DocumentEvent:
    kind: str
    path: str


class Debouncer:
    """
    Run a callback once after a quiet period.

    Each trigger() restarts the timer; a pass that is already running is
    not interrupted.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], object],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._delay = delay
        self._callback = callback
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()


def diff_snapshots(before: dict[str, int], after: dict[str, int]) -> list[DocumentEvent]:
    """Events that turn snapshot ``before`` into ``after``, sorted by path."""
    events: list[DocumentEvent] = []
    for path in sorted(set(before) | set(after)):
        if path not in before:
            events.append(DocumentEvent(CREATED, path))
        elif path not in after:
            events.append(DocumentEvent(DELETED, path))
        elif before[path] != after[path]:
            events.append(DocumentEvent(MODIFIED, path))
    return events


class VaultWatcher:
    """Poll a document store and report changes to a handler."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        handler: Callable[[DocumentEvent], None],
        interval: float = POLL_INTERVAL,
    ) -> None:
        self._store = store
        self._handler = handler
        self._interval = interval
        self._snapshot: dict[str, int] = {}

    def prime(self) -> None:
        """Record the current state without emitting events."""
        self._snapshot = self._store.snapshot()

    def poll(self) -> list[DocumentEvent]:
        """Detect changes since the last poll and dispatch them."""
        current = self._store.snapshot()
        events = diff_snapshots(self._snapshot, current)
        self._snapshot = current
        for event in events:
            self._handler(event)
        return events

    async def run(self, stop: asyncio.Event) -> None:
        self.prime()
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
            if stop.is_set():
                break
            try:
                self.poll()
            except OSError as e:
                logger.warning("Polling vault failed: %s", e)


class WatchSession:
    """
    Routes document events to debounced passes of a TodoCollector.

    Events for documents the collector's write guard covers are ignored, so
    the aggregate rewrites and source syncs done by a pass don't re-trigger
    it.
    """

    def __init__(
        self,
        collector: TodoCollector,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        reconcile_delay: float = RECONCILE_DELAY,
        collect_delay: float = COLLECT_DELAY,
    ) -> None:
        self._collector = collector
        self.reconcile = Debouncer(reconcile_delay, collector.process_checked_items, loop)
        self.collect = Debouncer(collect_delay, collector.collect_and_write, loop)

    def handle_event(self, event: DocumentEvent) -> None:
        if not event.path.lower().endswith(MARKDOWN_SUFFIX):
            return

        if event.kind == DELETED:
            # Deletions and renames always re-collect
            self.collect.trigger()
            return

        if self._collector.guard.covers(event.path):
            logger.debug("Ignoring %s of %s during write", event.kind, event.path)
            return

        if event.path == self._collector.output_path:
            # Reconciliation re-collects; a pending collect would overwrite the edit
            self.collect.cancel()
            self.reconcile.trigger()
        else:
            self.collect.trigger()

    def cancel(self) -> None:
        self.reconcile.cancel()
        self.collect.cancel()


async def watch(
    collector: TodoCollector,
    stop: Optional[asyncio.Event] = None,
    interval: float = POLL_INTERVAL,
) -> None:
    """
    Regenerate the aggregate, then follow vault changes until stopped.

    Args:
        collector: Vault to watch
        stop: Set to end the loop (default: run until cancelled)
        interval: Seconds between polls
    """
    stop = stop or asyncio.Event()
    session = WatchSession(collector, asyncio.get_running_loop())
    watcher = VaultWatcher(collector.store, session.handle_event, interval)

    collector.collect_and_write()
    logger.info("Watching %s", collector.vault)
    try:
        await watcher.run(stop)
    finally:
        session.cancel()
        logger.info("Stopped watching %s", collector.vault)
