"""
Todo Collector

Gathers unchecked markdown tasks (``- [ ] task``) from every document in a
vault into one todo document, and syncs check-state back to the sources.

Quick Start:
    from todo_collector import TodoCollector

    tc = TodoCollector("~/notes")
    tc.collect_and_write()        # writes ~/notes/TODO.md
    # ...user checks a task in TODO.md...
    tc.process_checked_items()    # checks it in its source document

CLI Usage:
    todo-collector refresh
    todo-collector sync
    todo-collector watch
    todo-collector config enable_time_groups true

Environment Variables:
    TODO_COLLECTOR_VAULT       - Vault directory (default: current directory)
    TODO_COLLECTOR_STATE_PATH  - Override the state directory (.todo-collector/)
    TODO_COLLECTOR_VERBOSE     - Set to 1 for debug logging

Settings and item state are persisted in a TOML file within the state
directory.
"""

from .api import SyncResult, TodoCollector, WriteGuard
from .collector import collect, is_excluded
from .config import CollectorSettings, SettingsStore
from .document_store import FileDocumentStore
from .formatter import format_output, render
from .state import CollectorState
from .types import TIME_GROUPS, ChecklistItem, completion_key, item_key

__version__ = "0.1.0"

__all__ = [
    "TodoCollector",
    "SyncResult",
    "WriteGuard",
    "ChecklistItem",
    "CollectorSettings",
    "CollectorState",
    "SettingsStore",
    "FileDocumentStore",
    "TIME_GROUPS",
    "collect",
    "is_excluded",
    "format_output",
    "render",
    "item_key",
    "completion_key",
]
