"""
Parser for indented mkvinfo-style reports.

A report is a sequence of lines such as::

    + Segment: size 1234
    |+ Segment tracks
    | + A track
    |  + Track type: video

The prefix before ``+ `` grows by one character per nesting level. Each line
becomes a ReportNode, stored under its normalized key ("Segment tracks" ->
"segment_tracks") in its parent's child list.
"""

import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# --- Constants ---
# "Key: value", or "Key:" with an empty value; a colon without a following
# space belongs to the key
LINE_PATTERN = re.compile(
    r"^(?P<prefix>[| ]*\+ )(?P<key>.+?)(?::(?: (?P<value>.*)|(?P<empty>)))?$"
)
MARKER = "+ "


class ReportError(Exception):
    """Base class for report parsing errors."""


class MalformedLineError(ReportError):
    """Raised when a report line doesn't have the indented key[: value] shape."""

    def __init__(self, line_number: int, line: str, reason: str = "unexpected format"):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"Line {line_number}: {reason}: {line!r}")


class ReportNode:
    """One entry of a parsed report: an optional value plus keyed child lists."""

    def __init__(self, value: Optional[str] = None):
        self.value = value
        self.children: Dict[str, List["ReportNode"]] = {}

    def add(self, key: str) -> "ReportNode":
        """Creates a child under ``key`` and returns it."""
        node = ReportNode()
        self.children.setdefault(key, []).append(node)
        return node

    def get(self, key: str) -> List["ReportNode"]:
        return self.children.get(key, [])

    def first(self, key: str) -> Optional["ReportNode"]:
        entries = self.children.get(key)
        return entries[0] if entries else None

    def value_of(self, key: str) -> Optional[str]:
        """Value of the first ``key`` child, None if the child or its value is missing."""
        node = self.first(key)
        return node.value if node is not None else None

    def find(self, *path: str) -> List["ReportNode"]:
        """
        Follows ``path`` through first entries and returns the full child list
        of the last key. Returns an empty list if any step is missing.
        """
        if not path:
            return []
        node: Optional[ReportNode] = self
        for key in path[:-1]:
            node = node.first(key)
            if node is None:
                return []
        return node.get(path[-1])

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.value is not None:
            data["value"] = self.value
        if self.children:
            data["children"] = {
                key: [child.to_dict() for child in entries]
                for key, entries in self.children.items()
            }
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReportNode):
            return NotImplemented
        return self.value == other.value and self.children == other.children

    def __repr__(self) -> str:
        return f"ReportNode(value={self.value!r}, keys={list(self.children)})"


def normalize_key(phrase: str) -> str:
    """'Segment tracks' -> 'segment_tracks'."""
    return re.sub(r" +", "_", phrase.strip().lower())


def parse(text: str) -> ReportNode:
    """Parses report text into a tree rooted at a value-less ReportNode."""
    root = ReportNode()
    stack: List[ReportNode] = [root]

    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue

        match = LINE_PATTERN.match(line)
        if not match:
            raise MalformedLineError(line_number, line)

        level = len(match.group("prefix")) - len(MARKER)
        if level > len(stack) - 1:
            raise MalformedLineError(
                line_number, line, f"level {level} skips a level (max allowed {len(stack) - 1})"
            )

        # Close everything at or below this level; stack[level] becomes the parent
        del stack[level + 1:]

        key = normalize_key(match.group("key"))
        if not key:
            raise MalformedLineError(line_number, line, "empty key")
        node = stack[-1].add(key)
        stack.append(node)

        value = match.group("value")
        if value is None:
            value = match.group("empty")
        if value is not None:
            node.value = value.strip()

    logger.debug(f"Parsed report: top-level keys {list(root.children)}")
    return root


def render(root: ReportNode) -> str:
    """Serializes a tree back into report text that ``parse`` accepts."""
    lines: List[str] = []

    def walk(node: ReportNode, level: int) -> None:
        prefix = ("|" + " " * (level - 1) if level else "") + MARKER
        for key, entries in node.children.items():
            label = key.replace("_", " ")
            for child in entries:
                if child.value is not None:
                    lines.append(f"{prefix}{label}: {child.value}")
                else:
                    lines.append(f"{prefix}{label}")
                walk(child, level + 1)

    walk(root, 0)
    return "\n".join(lines) + ("\n" if lines else "")
