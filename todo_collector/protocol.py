"""
Protocol definitions for the collaborators of the collector.

Defines interface contracts for:
- DocumentStoreProtocol: the markdown corpus (a vault directory by default)
- SettingsStoreProtocol: persistence for settings and item state
"""

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class DocumentStoreProtocol(Protocol):
    """
    Hierarchical document corpus.

    Paths are POSIX-style and relative to the corpus root.

    Implemented by:
    - FileDocumentStore (markdown files under a directory)
    """

    def list_documents(self) -> list[str]:
        """All markdown document paths, in a stable enumeration order."""
        ...

    def read(self, path: str) -> str: ...

    def write(self, path: str, content: str) -> None:
        """Overwrite an existing document."""
        ...

    def create(self, path: str, content: str) -> None:
        """Create a new document (and any missing parent folders)."""
        ...

    def exists(self, path: str) -> bool: ...

    def resolve_link(self, name: str) -> Optional[str]:
        """Resolve a wiki-link target (base name or path) to a document path."""
        ...

    def snapshot(self) -> dict[str, int]:
        """Modification stamps per document path, for change detection."""
        ...


@runtime_checkable
class SettingsStoreProtocol(Protocol):
    """Load/save an opaque structured record."""

    def load(self) -> dict[str, Any]: ...

    def save(self, record: dict[str, Any]) -> None: ...
