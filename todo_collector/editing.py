"""
Editor-side drag and drop of aggregate lines.

Each editor integration owns its own DragState; nothing about an in-flight
drag is shared between editors.
"""

import re
from dataclasses import dataclass
from typing import Optional

_HEADER_RE = re.compile(r'^##\s')

# Lines that get a drag handle
_TASK_RE = re.compile(r'^\s*-\s*\[[ x]\]', re.IGNORECASE)


def is_draggable(line: str) -> bool:
    return bool(_TASK_RE.match(line))


def drop_line(text: str, from_line: int, to_line: int) -> str:
    """
    Move one line of text onto another (1-based line numbers).

    Dropping onto a ``## `` header places the line directly under the
    header. Dropping onto any other line inserts before it when moving up
    and after it when moving down. Invalid or identical positions return the
    text unchanged.
    """
    lines = text.split("\n")
    if from_line < 1 or to_line < 1:
        return text
    if from_line > len(lines) or to_line > len(lines):
        return text
    if from_line == to_line:
        return text

    moved = lines[from_line - 1]
    target = lines[to_line - 1]
    onto_header = bool(_HEADER_RE.match(target))

    result: list[str] = []
    for number, line in enumerate(lines, start=1):
        if number == from_line:
            continue
        if number != to_line:
            result.append(line)
        elif onto_header:
            result.append(line)
            result.append(moved)
        elif from_line > to_line:
            result.append(moved)
            result.append(line)
        else:
            result.append(line)
            result.append(moved)
    return "\n".join(result)


@dataclass
class DragState:
    """The line currently being dragged in one editor, if any."""
    dragged_line: Optional[int] = None

    def start(self, line: int) -> None:
        self.dragged_line = line

    def end(self) -> None:
        self.dragged_line = None

    def drop(self, text: str, to_line: int) -> str:
        """Apply the pending drag to text and clear the drag."""
        from_line = self.dragged_line
        self.end()
        if from_line is None:
            return text
        return drop_line(text, from_line, to_line)
