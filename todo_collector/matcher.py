"""
Line-oriented checklist matching.

Source documents are scanned with a strict pattern (only ``- [ ] task`` lines
count). The aggregate document is parsed with more lenient patterns, since
users edit it by hand.
"""

import re
from typing import Iterator, NamedTuple, Optional

# Unchecked task in a source document: optional indent, literal "- [ ] "
UNCHECKED_PATTERN = re.compile(r'^([ \t]*)- \[ \] (.+)$', re.MULTILINE)

# Checked task in the aggregate; tolerates "- - [x]" and "[X]"
_CHECKED_LINE_RE = re.compile(r'^-?\s*-?\s*\[x\]\s*(.+)$', re.IGNORECASE)

# Unchecked task in the aggregate
_UNCHECKED_LINE_RE = re.compile(r'^-?\s*\[ \]\s*(.+)$')

# Any task line, checked or not (move-current-task command)
_TASK_LINE_RE = re.compile(r'^-\s*\[[ x]\]\s*(.+)$', re.IGNORECASE)

# Decay countdown appended by the formatter: "(1 day left)", "(3 days left)"
_COUNTDOWN_RE = re.compile(r'\s*\(\d+ days? left\)$')

# Count annotation on a section header: "Today (3)"
_HEADER_COUNT_RE = re.compile(r'\s*\(\d+\)$')

FRONTMATTER_DELIMITER = "---"


class UncheckedMatch(NamedTuple):
    indent: str
    text: str


def iter_unchecked(text: str) -> Iterator[UncheckedMatch]:
    """Yield unchecked task matches in line order.

    Each call scans independently; there is no shared cursor between
    documents.
    """
    for match in UNCHECKED_PATTERN.finditer(text):
        yield UncheckedMatch(match.group(1), match.group(2).strip())


def strip_countdown(text: str) -> str:
    """Remove a trailing "(N days left)" annotation."""
    return _COUNTDOWN_RE.sub("", text).strip()


def match_checked(line: str) -> Optional[str]:
    """Return the item text of a checked aggregate line, or None."""
    match = _CHECKED_LINE_RE.match(line.strip())
    if not match:
        return None
    return strip_countdown(match.group(1).strip())


def match_unchecked_line(line: str) -> Optional[str]:
    """Return the item text of an unchecked aggregate line, or None."""
    match = _UNCHECKED_LINE_RE.match(line.strip())
    if not match:
        return None
    return match.group(1).strip()


def match_task_line(line: str) -> Optional[str]:
    """Return the content of any task line (checked or unchecked), or None."""
    match = _TASK_LINE_RE.match(line.strip())
    if not match:
        return None
    return match.group(1).strip()


def parse_header(line: str) -> Optional[str]:
    """Return the lowercased label of a ``## `` header, count stripped."""
    stripped = line.strip()
    if not stripped.startswith("## "):
        return None
    return _HEADER_COUNT_RE.sub("", stripped[3:].lower()).strip()


def is_delimiter(line: str) -> bool:
    return line.strip() == FRONTMATTER_DELIMITER


def split_frontmatter(content: str) -> tuple[str, str]:
    """Split a leading frontmatter block from the body.

    The block is recognised only when the first non-blank line is ``---``
    and a closing ``---`` follows. Returns ("", content) otherwise.
    The returned frontmatter includes both delimiters and a trailing newline.
    """
    lines = content.split("\n")
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start >= len(lines) or not is_delimiter(lines[start]):
        return "", content
    for end in range(start + 1, len(lines)):
        if is_delimiter(lines[end]):
            frontmatter = "\n".join(lines[start:end + 1]) + "\n"
            body = "\n".join(lines[end + 1:])
            return frontmatter, body
    return "", content
