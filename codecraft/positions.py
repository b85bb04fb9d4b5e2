"""
Insertion positions.

A position is one of four explicit variants. ``parse_position`` builds the
variant from the wire dict used by ``insert_lines``::

    {"line_number": 10, "insert_mode": "after"}
    {"after_pattern": "def setup("}
    {"before_pattern": "return"}
    {"relative_to": {"pattern": "class Foo", "offset": 2}}

and rejects dicts that name zero or several strategies.

``RelativeTo`` always anchors on the first line containing its pattern; the
``occurrence`` argument only applies to ``AfterPattern``/``BeforePattern``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Union

from .errors import InvalidArgument, OutOfRange, PatternNotFound

INSERT_MODES = ("after", "before")


@dataclass(frozen=True)
class LineNumberPosition:
    line_number: int
    mode: str = "after"


@dataclass(frozen=True)
class AfterPattern:
    pattern: str


@dataclass(frozen=True)
class BeforePattern:
    pattern: str


@dataclass(frozen=True)
class RelativeTo:
    pattern: str
    offset: int = 0


Position = Union[LineNumberPosition, AfterPattern, BeforePattern, RelativeTo]


@dataclass(frozen=True)
class Resolution:
    index: int
    anchor_line: Optional[str] = None


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer")
    return value


def _as_pattern(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidArgument(f"{name} must be a non-empty string")
    return value


def parse_position(raw: Dict[str, Any]) -> Position:
    if not isinstance(raw, dict):
        raise InvalidArgument("position must be an object")
    present = [k for k in ("line_number", "after_pattern", "before_pattern", "relative_to")
               if raw.get(k) is not None]
    if len(present) != 1:
        raise InvalidArgument(
            "position needs exactly one of line_number, after_pattern, before_pattern, relative_to"
            f" (got {present or 'none'})"
        )
    key = present[0]
    if key == "line_number":
        mode = raw.get("insert_mode") or "after"
        if mode not in INSERT_MODES:
            raise InvalidArgument(f"Invalid insert_mode: {mode}")
        return LineNumberPosition(_as_int(raw["line_number"], "line_number"), mode)
    if key == "after_pattern":
        return AfterPattern(_as_pattern(raw["after_pattern"], "after_pattern"))
    if key == "before_pattern":
        return BeforePattern(_as_pattern(raw["before_pattern"], "before_pattern"))

    rel = raw["relative_to"]
    if not isinstance(rel, dict):
        raise InvalidArgument("relative_to must be an object with pattern and offset")
    return RelativeTo(
        _as_pattern(rel.get("pattern"), "relative_to.pattern"),
        _as_int(rel.get("offset", 0), "relative_to.offset"),
    )


def _find(lines: Sequence[str], pattern: str, occurrence: int = 1) -> Optional[int]:
    seen = 0
    for i, line in enumerate(lines):
        if pattern in line:
            seen += 1
            if seen == occurrence:
                return i
    return None


def _bounded(index: int, lines: Sequence[str]) -> int:
    if index < 0 or index > len(lines):
        raise OutOfRange(f"Insert position {index + 1} out of range (file has {len(lines)} lines)")
    return index


def resolve_position(lines: Sequence[str], position: Position, occurrence: int = 1) -> Resolution:
    """Map ``position`` to the index at which new lines are spliced in."""
    occurrence = _as_int(occurrence, "match_occurrence")
    if occurrence < 1:
        raise InvalidArgument("match_occurrence must be >= 1")

    if isinstance(position, LineNumberPosition):
        n = position.line_number
        if n < 0 or n > len(lines) + 1:
            raise OutOfRange(f"Line {n} out of range (file has {len(lines)} lines)")
        # past-the-end appends, "before line 0" inserts at the top
        index = n if position.mode == "after" else n - 1
        return Resolution(min(max(index, 0), len(lines)))

    if isinstance(position, (AfterPattern, BeforePattern)):
        i = _find(lines, position.pattern, occurrence)
        if i is None:
            raise PatternNotFound(
                f'Pattern "{position.pattern}" not found'
                + (f" (occurrence {occurrence})" if occurrence > 1 else "")
            )
        index = i + 1 if isinstance(position, AfterPattern) else i
        return Resolution(index, lines[i])

    if isinstance(position, RelativeTo):
        i = _find(lines, position.pattern)
        if i is None:
            raise PatternNotFound(f'Pattern "{position.pattern}" not found')
        index = i + position.offset + (1 if position.offset >= 0 else 0)
        return Resolution(_bounded(index, lines), lines[i])

    raise InvalidArgument(f"Unsupported position type: {type(position).__name__}")
