"""
Shared pytest fixtures for todo-collector tests.

Provides a temporary vault, a controllable clock, and an in-memory document
store for failure-mode tests.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

from todo_collector.api import TodoCollector
from todo_collector.config import CollectorSettings
from todo_collector.document_store import base_name
from todo_collector.state import CollectorState

FIXED_NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


class Clock:
    """Mutable clock for pinning and advancing 'now'."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: float = 0, hours: float = 0) -> None:
        self.now = self.now + timedelta(days=days, hours=hours)


class MemoryDocumentStore:
    """
    Dict-backed document store.

    Paths listed in ``fail_reads`` / ``fail_writes`` raise OSError, to
    simulate I/O failures.
    """

    def __init__(self, docs: Optional[dict[str, str]] = None):
        self.docs: dict[str, str] = dict(docs or {})
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()
        self.writes: list[str] = []
        self._stamp = 0

    def list_documents(self) -> list[str]:
        return sorted(p for p in self.docs if p.endswith(".md"))

    def read(self, path: str) -> str:
        if path in self.fail_reads:
            raise OSError(f"simulated read failure: {path}")
        return self.docs[path]

    def write(self, path: str, content: str) -> None:
        if path in self.fail_writes:
            raise OSError(f"simulated write failure: {path}")
        self.docs[path] = content
        self.writes.append(path)

    def create(self, path: str, content: str) -> None:
        self.write(path, content)

    def exists(self, path: str) -> bool:
        return path in self.docs

    def resolve_link(self, name: str) -> Optional[str]:
        for path in self.list_documents():
            if base_name(path).lower() == name.lower():
                return path
        return None

    def snapshot(self) -> dict[str, int]:
        self._stamp += 1
        return {p: hash(c) for p, c in self.docs.items()}


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep the developer's environment out of the tests."""
    for var in ("TODO_COLLECTOR_VAULT", "TODO_COLLECTOR_STATE_PATH", "TODO_COLLECTOR_VERBOSE"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """An empty vault directory."""
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def write_doc(vault: Path):
    """Write a document into the vault: write_doc("notes/A.md", "- [ ] x\\n")."""
    def _write(rel_path: str, content: str) -> Path:
        path = vault / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def read_doc(vault: Path):
    def _read(rel_path: str) -> str:
        return (vault / rel_path).read_text(encoding="utf-8")
    return _read


@pytest.fixture
def clock() -> Clock:
    return Clock(FIXED_NOW)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def settings() -> CollectorSettings:
    return CollectorSettings()


@pytest.fixture
def grouped_settings() -> CollectorSettings:
    return CollectorSettings(enable_time_groups=True)


@pytest.fixture
def state() -> CollectorState:
    return CollectorState()


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def make_collector(vault: Path, clock: Clock):
    """Factory for TodoCollector instances on the test vault.

    Keyword arguments override settings (not persisted until a command
    saves them).
    """
    created: list[TodoCollector] = []

    def _make(doc_store=None, **settings) -> TodoCollector:
        tc = TodoCollector(vault, doc_store=doc_store, clock=clock, ops_log=False)
        for name, value in settings.items():
            setattr(tc.settings, name, value)
        created.append(tc)
        return tc

    yield _make
    for tc in created:
        tc.close()
