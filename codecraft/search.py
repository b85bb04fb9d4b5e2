"""
Line-oriented text search, in one file or across the sandbox.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .errors import InvalidArgument, IOFailure
from .fileio import read_file_content
from .paths import PathResolver
from .textlines import LineSequence

logger = logging.getLogger("codecraft.search")

DEFAULT_IGNORE_DIRS = (".git", ".hg", ".svn", "node_modules", "__pycache__", ".venv")
DEFAULT_IGNORE_FILES = ("*.min.js", "*.min.css")


@dataclass
class ContextLine:
    line_number: int
    content: str
    is_match: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"line_number": self.line_number, "content": self.content, "is_match": self.is_match}


@dataclass
class SearchMatch:
    line_number: int
    content: str
    context: Optional[List[ContextLine]] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"line_number": self.line_number, "content": self.content}
        if self.context is not None:
            out["context"] = [c.to_dict() for c in self.context]
        return out


def compile_pattern(pattern: str, case_sensitive: bool = True, use_regex: bool = False) -> "re.Pattern[str]":
    if not pattern:
        raise InvalidArgument("search_text must not be empty")
    source = pattern if use_regex else re.escape(pattern)
    try:
        return re.compile(source, 0 if case_sensitive else re.IGNORECASE)
    except re.error as e:
        raise InvalidArgument(f"Regex error: {e}")


def _context(lines: Sequence[str], index: int, n: int) -> List[ContextLine]:
    start = max(0, index - n)
    end = min(len(lines) - 1, index + n)
    return [ContextLine(i + 1, lines[i], i == index) for i in range(start, end + 1)]


def search(content: Union[str, Sequence[str]],
           pattern: str,
           case_sensitive: bool = True,
           use_regex: bool = False,
           context_lines: int = 0,
           max_matches: Optional[int] = None) -> List[SearchMatch]:
    """Return one ``SearchMatch`` per line containing ``pattern``."""
    if context_lines < 0:
        raise InvalidArgument("context_lines must be >= 0")
    rx = compile_pattern(pattern, case_sensitive, use_regex)
    lines = LineSequence.from_text(content).lines if isinstance(content, str) else list(content)

    matches: List[SearchMatch] = []
    for i, line in enumerate(lines):
        if max_matches is not None and len(matches) >= max_matches:
            break
        if rx.search(line) is None:
            continue
        m = SearchMatch(i + 1, line)
        if context_lines > 0:
            m.context = _context(lines, i, context_lines)
        matches.append(m)
    return matches


def _segment_matches(name: str, pattern: str) -> bool:
    # glob semantics: wildcards never match a leading dot
    if name.startswith(".") and not pattern.startswith("."):
        return False
    return fnmatch.fnmatchcase(name, pattern)


def _path_matches(parts: Sequence[str], pats: Sequence[str]) -> bool:
    if not pats:
        return not parts
    if pats[0] == "**":
        if _path_matches(parts, pats[1:]):
            return True
        return bool(parts) and not parts[0].startswith(".") and _path_matches(parts[1:], pats)
    if not parts:
        return False
    return _segment_matches(parts[0], pats[0]) and _path_matches(parts[1:], pats[1:])


def _may_contain(parts: Sequence[str], pats: Sequence[str]) -> bool:
    """Whether a file below directory ``parts`` could still match ``pats``."""
    if not parts:
        return bool(pats)
    if not pats:
        return False
    if pats[0] == "**":
        return _may_contain(parts, pats[1:]) or (
            not parts[0].startswith(".") and _may_contain(parts[1:], pats))
    return _segment_matches(parts[0], pats[0]) and _may_contain(parts[1:], pats[1:])


def _pattern_parts(resolver: PathResolver, file_pattern: str) -> Optional[List[str]]:
    pattern = os.path.normpath(file_pattern.replace("/", os.sep))
    if os.path.isabs(pattern):
        if not resolver.contains(pattern):
            return None
        pattern = resolver.relative(pattern)
    parts = [p for p in pattern.split(os.sep) if p not in ("", os.curdir)]
    if not parts or parts[0] == os.pardir:
        return None
    return parts


def expand_glob(resolver: PathResolver,
                file_pattern: str = "*",
                ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
                ignore_files: Iterable[str] = DEFAULT_IGNORE_FILES,
                max_files: Optional[int] = None) -> List[str]:
    """Sandbox-relative files matching ``file_pattern``.

    The walk is top-down with names sorted, so a directory's files come
    before its subdirectories. Ignored directories and directories the
    pattern cannot reach are pruned before they are listed, and the walk
    stops as soon as ``max_files`` paths are collected. Patterns that leave
    the sandbox match nothing.
    """
    pats = _pattern_parts(resolver, file_pattern)
    if pats is None:
        return []
    ignore_dirs = set(ignore_dirs)
    ignore_files = tuple(ignore_files)
    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(resolver.root):
        rel_dir = resolver.relative(dirpath)
        base = [] if rel_dir == os.curdir else rel_dir.split(os.sep)
        dirnames[:] = sorted(d for d in dirnames
                             if d not in ignore_dirs and _may_contain(base + [d], pats))
        for name in sorted(filenames):
            if any(fnmatch.fnmatch(name, pat) for pat in ignore_files):
                continue
            if not _path_matches(base + [name], pats):
                continue
            if not os.path.isfile(os.path.join(dirpath, name)):
                continue
            found.append(os.path.join(*base, name))
            if max_files is not None and len(found) >= max_files:
                return found
    return found


def search_across_files(resolver: PathResolver,
                        search_text: str,
                        file_pattern: str = "*",
                        case_sensitive: bool = True,
                        use_regex: bool = False,
                        max_files: int = 100,
                        max_matches_per_file: int = 10,
                        context_lines: int = 0,
                        ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
                        ignore_files: Iterable[str] = DEFAULT_IGNORE_FILES) -> Dict[str, Any]:
    if max_files < 1 or max_matches_per_file < 1:
        raise InvalidArgument("max_files and max_matches_per_file must be >= 1")
    # Fail on a bad pattern before touching the tree.
    compile_pattern(search_text, case_sensitive, use_regex)

    files = expand_glob(resolver, file_pattern, ignore_dirs, ignore_files, max_files)
    results: List[Dict[str, Any]] = []
    for rel in files:
        try:
            content = read_file_content(os.path.join(resolver.root, rel))
        except IOFailure as e:
            logger.debug("skipping unreadable file %s: %s", rel, e)
            continue
        if "\x00" in content:
            logger.debug("skipping binary file %s", rel)
            continue
        matches = search(content, search_text, case_sensitive, use_regex,
                         context_lines, max_matches_per_file)
        if matches:
            results.append({
                "file_path": rel,
                "matches": [m.to_dict() for m in matches],
                "match_count": len(matches),
            })

    return {
        "success": True,
        "search_text": search_text,
        "files_searched": len(files),
        "files_with_matches": len(results),
        "results": results,
    }
