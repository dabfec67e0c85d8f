"""
Document store over a directory of markdown files.

The vault root is the source of truth for:
- Document identity (vault-relative POSIX path)
- Document content (UTF-8 text)
- Modification stamps used by the watcher

Hidden files and directories (names starting with '.') are never listed,
which keeps the collector's own state directory out of the corpus.
"""

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Optional

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"


def base_name(path: str) -> str:
    """File name without folders or extension: "notes/Work.md" -> "Work"."""
    return PurePosixPath(path).stem


class FileDocumentStore:
    """
    Filesystem-backed document store.

    Example:
        store = FileDocumentStore(Path("~/vault").expanduser())
        for path in store.list_documents():
            text = store.read(path)
    """

    def __init__(self, root: Path):
        """
        Args:
            root: Vault directory
        """
        self._root = Path(root).resolve()

    def absolute_path(self, path: str) -> Path:
        """Filesystem path for a vault-relative document path."""
        return self._root / PurePosixPath(path)

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def _iter_markdown_files(self):
        for dirpath, dirnames, filenames in os.walk(self._root):
            # Prune hidden folders in place so os.walk skips them
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for filename in sorted(filenames):
                if filename.startswith("."):
                    continue
                if not filename.lower().endswith(MARKDOWN_SUFFIX):
                    continue
                yield Path(dirpath) / filename

    def list_documents(self) -> list[str]:
        """All markdown documents, sorted by vault-relative path."""
        paths = [
            p.relative_to(self._root).as_posix()
            for p in self._iter_markdown_files()
        ]
        return sorted(paths)

    def read(self, path: str) -> str:
        return self.absolute_path(path).read_text(encoding="utf-8")

    def exists(self, path: str) -> bool:
        return self.absolute_path(path).is_file()

    def resolve_link(self, name: str) -> Optional[str]:
        """
        Resolve a wiki-link target to a document path.

        Accepts a base name ("Notes"), a name with extension ("Notes.md"),
        or a vault-relative path ("projects/Notes"). When several documents
        share a base name, the shallowest path wins, then alphabetical order.

        Returns:
            Document path, or None if nothing matches
        """
        target = name.strip()
        if not target:
            return None
        if not target.lower().endswith(MARKDOWN_SUFFIX):
            target_file = target + MARKDOWN_SUFFIX
        else:
            target_file = target

        if "/" in target:
            return target_file if self.exists(target_file) else None

        wanted = PurePosixPath(target_file).name.lower()
        candidates = [
            p for p in self.list_documents()
            if PurePosixPath(p).name.lower() == wanted
        ]
        if not candidates:
            return None
        candidates.sort(key=lambda p: (p.count("/"), p))
        return candidates[0]

    def snapshot(self) -> dict[str, int]:
        """Map of document path -> mtime in nanoseconds."""
        stamps: dict[str, int] = {}
        for p in self._iter_markdown_files():
            try:
                stamps[p.relative_to(self._root).as_posix()] = p.stat().st_mtime_ns
            except OSError:
                # Deleted between listing and stat
                continue
        return stamps

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def write(self, path: str, content: str) -> None:
        target = self.absolute_path(path)
        target.write_text(content, encoding="utf-8")
        logger.debug("Wrote %s (%d chars)", path, len(content))

    def create(self, path: str, content: str) -> None:
        target = self.absolute_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        logger.info("Created %s", path)
