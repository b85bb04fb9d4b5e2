"""
Locate and replace an "old text" block inside file content.

Two strategies, tried in order for ``smart``/``fuzzy`` mode:

1. exact: ``old_text`` is a literal substring. The substring is replaced
   in place, so formatting outside it is untouched.
2. fuzzy: both texts are split into lines and every line is stripped; a
   window of ``len(old_lines)`` slides over the content and the first window
   whose stripped lines all equal the stripped old lines wins. No scoring:
   duplicates always resolve to the earliest block.

``exact`` mode only tries strategy 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import ExactMatchNotFound, FuzzyMatchNotFound, InvalidArgument
from .indentation import reindent
from .textlines import LineSequence, split_payload, to_newline

logger = logging.getLogger("codecraft.matching")

MATCH_MODES = ("exact", "smart", "fuzzy")


@dataclass(frozen=True)
class MatchSpan:
    """Half-open line range ``[start, end)``."""

    start: int
    end: int


@dataclass(frozen=True)
class Match:
    span: MatchSpan
    strategy: str
    start_pos: Optional[int] = None
    end_pos: Optional[int] = None


def _check_mode(mode: str) -> None:
    if mode not in MATCH_MODES:
        raise InvalidArgument(f"Invalid match_mode: {mode}")


def _exact(content: str, old_text: str) -> Optional[Match]:
    pos = content.find(old_text)
    if pos < 0:
        return None
    end = pos + len(old_text)
    first = content.count("\n", 0, pos)
    last = first + old_text.count("\n")
    return Match(MatchSpan(first, last + 1), "exact", pos, end)


def _fuzzy(lines: List[str], old_text: str) -> Optional[Match]:
    old_lines = [ln.strip() for ln in split_payload(old_text.strip("\r\n"))]
    width = len(old_lines)
    for i in range(0, len(lines) - width + 1):
        if all(lines[i + j].strip() == old_lines[j] for j in range(width)):
            return Match(MatchSpan(i, i + width), "fuzzy")
    return None


def find_match(content: str, old_text: str, mode: str = "smart") -> Match:
    _check_mode(mode)
    if not old_text:
        raise InvalidArgument("old_code must not be empty")

    found = _exact(content, old_text)
    if found:
        return found
    if mode == "exact":
        raise ExactMatchNotFound("Exact match not found")

    found = _fuzzy(LineSequence.from_text(content).lines, old_text)
    if found:
        return found
    raise FuzzyMatchNotFound("No match found with smart matching")


def replace(content: str, old_text: str, new_text: str, mode: str = "smart") -> Tuple[str, Match]:
    """Replace the first block matching ``old_text``; returns ``(new_content, match)``."""
    _check_mode(mode)
    seq = LineSequence.from_text(content)
    old_text = to_newline(old_text, seq.newline)
    new_text = to_newline(new_text, seq.newline)

    match = find_match(content, old_text, mode)
    if match.strategy == "exact":
        updated = content[:match.start_pos] + new_text + content[match.end_pos:]
        return updated, match

    anchor = seq[match.span.start]
    seq.splice(match.span.start, match.span.end, split_payload(reindent(new_text, anchor)))
    logger.debug("fuzzy match at lines %d-%d", match.span.start + 1, match.span.end)
    return seq.to_text(), match
