"""Collect unchecked tasks from every document in the corpus."""

import logging
from typing import Iterable

from .document_store import base_name
from .matcher import iter_unchecked
from .protocol import DocumentStoreProtocol
from .types import ChecklistItem

logger = logging.getLogger(__name__)


def is_excluded(path: str, exclude_folders: Iterable[str]) -> bool:
    """True if path is an excluded folder or lies beneath one."""
    for folder in exclude_folders:
        if folder and (path.startswith(folder + "/") or path == folder):
            return True
    return False


def collect(
    store: DocumentStoreProtocol,
    exclude_folders: Iterable[str],
    output_path: str,
) -> list[ChecklistItem]:
    """
    Gather unchecked tasks from the corpus.

    Skips the aggregate document itself and excluded folders. Items keep
    document enumeration order, then line order; duplicates are kept.

    Raises:
        OSError, UnicodeDecodeError: a document could not be read

    Args:
        store: Document store to scan
        exclude_folders: Folder prefixes to skip
        output_path: Path of the aggregate document

    Returns:
        One ChecklistItem per unchecked line
    """
    exclude_folders = list(exclude_folders)
    items: list[ChecklistItem] = []
    scanned = 0

    for path in store.list_documents():
        if path == output_path:
            continue
        if is_excluded(path, exclude_folders):
            continue

        # Read errors propagate and abort the whole pass
        content = store.read(path)
        scanned += 1
        source = base_name(path)
        for match in iter_unchecked(content):
            items.append(ChecklistItem(text=match.text, source_name=source))

    logger.debug("Collected %d tasks from %d documents", len(items), scanned)
    return items
