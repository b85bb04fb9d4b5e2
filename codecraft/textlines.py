"""
Line sequences with newline-style preservation.

A file is split once into lines and re-joined with the same newline it was
read with, so ``LineSequence.from_text(s).to_text() == s`` for every ``s``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

LF = "\n"
CRLF = "\r\n"


def detect_newline(text: str) -> str:
    """CRLF only when every ``\\n`` in ``text`` is preceded by ``\\r``."""
    crlf = text.count(CRLF)
    if crlf and crlf == text.count(LF):
        return CRLF
    return LF


def to_newline(text: str, newline: str) -> str:
    """Rewrite any LF/CRLF endings in ``text`` to ``newline``."""
    normalized = text.replace(CRLF, LF)
    return normalized if newline == LF else normalized.replace(LF, newline)


def split_payload(text: str) -> List[str]:
    return text.replace(CRLF, LF).split(LF)


@dataclass
class LineSequence:
    lines: List[str] = field(default_factory=list)
    newline: str = LF

    @classmethod
    def from_text(cls, text: str) -> "LineSequence":
        newline = detect_newline(text)
        return cls(text.split(newline), newline)

    def to_text(self) -> str:
        return self.newline.join(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index):
        return self.lines[index]

    def __iter__(self):
        return iter(self.lines)

    def splice(self, start: int, end: int, replacement: List[str]) -> None:
        self.lines[start:end] = replacement
