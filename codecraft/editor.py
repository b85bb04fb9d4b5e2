"""
File operations confined to one sandbox root.

Each mutation reads the whole file, computes the complete new content and
only then writes it; any failure before the write leaves the file untouched.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import shutil
from datetime import datetime
from typing import Any, Dict, List, Optional

from . import matching
from .errors import InvalidArgument, IOFailure, OutOfRange, SecurityViolation
from .fileio import read_file_content, write_file_content
from .indentation import reindent
from .paths import PathResolver
from .positions import parse_position, resolve_position
from .search import search, search_across_files
from .textlines import LineSequence, split_payload, to_newline

logger = logging.getLogger("codecraft.editor")

MAX_LIST_DEPTH = 5


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts).isoformat()


class FileEditor:
    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    @property
    def root(self) -> str:
        return self.resolver.root

    def _read_or_empty(self, path: str, create_if_missing: bool) -> str:
        try:
            return read_file_content(path)
        except IOFailure:
            if create_if_missing and not os.path.exists(path):
                return ""
            raise

    # ----------------------------------
    # Whole-file operations
    # ----------------------------------
    def create_or_overwrite_file(self, file_path: str, content: str) -> Dict[str, Any]:
        path = self.resolver.resolve(file_path)
        written = write_file_content(path, content, make_parents=True)
        logger.info("wrote %s (%d bytes)", path, written)
        return {"success": True, "file_path": file_path, "bytes_written": written}

    def read_file_content(self, file_path: str) -> Dict[str, Any]:
        path = self.resolver.resolve(file_path)
        content = read_file_content(path)
        return {
            "success": True,
            "file_path": file_path,
            "content": content,
            "size_bytes": os.path.getsize(path),
            "lines": len(LineSequence.from_text(content)),
        }

    def append_prepend_content(self, file_path: str, content: str, position: str,
                               create_if_missing: bool = False) -> Dict[str, Any]:
        if position not in ("append", "prepend"):
            raise InvalidArgument(f"Invalid position: {position} (expected 'append' or 'prepend')")
        path = self.resolver.resolve(file_path)
        existing = self._read_or_empty(path, create_if_missing)
        if existing:
            content = to_newline(content, LineSequence.from_text(existing).newline)
        updated = content + existing if position == "prepend" else existing + content
        write_file_content(path, updated, make_parents=create_if_missing)
        logger.info("%s %d chars to %s", position, len(content), path)
        return {
            "success": True,
            "file_path": file_path,
            "position": position,
            "bytes_added": len(content.encode("utf-8")),
        }

    # ----------------------------------
    # Line-level edits
    # ----------------------------------
    def smart_replace(self, file_path: str, old_code: str, new_code: str,
                      match_mode: str = "smart") -> Dict[str, Any]:
        path = self.resolver.resolve(file_path)
        content = read_file_content(path)
        updated, match = matching.replace(content, old_code, new_code, match_mode)
        write_file_content(path, updated)
        logger.info("smart_replace %s: %s match at lines %d-%d",
                    path, match.strategy, match.span.start + 1, match.span.end)
        return {
            "success": True,
            "file_path": file_path,
            "match_mode": match_mode,
            "strategy": match.strategy,
            "start_line": match.span.start + 1,
            "end_line": match.span.end,
        }

    def insert_lines(self, file_path: str, content: str, position: Dict[str, Any],
                     match_occurrence: int = 1, create_if_missing: bool = False,
                     preserve_indentation: bool = True) -> Dict[str, Any]:
        descriptor = parse_position(position)
        path = self.resolver.resolve(file_path)
        seq = LineSequence.from_text(self._read_or_empty(path, create_if_missing))

        where = resolve_position(seq.lines, descriptor, match_occurrence)
        payload = content
        if preserve_indentation and where.anchor_line:
            payload = reindent(content, where.anchor_line)
        new_lines = split_payload(payload)

        seq.splice(where.index, where.index, new_lines)
        write_file_content(path, seq.to_text(), make_parents=create_if_missing)
        logger.info("inserted %d line(s) into %s at line %d", len(new_lines), path, where.index + 1)
        return {
            "success": True,
            "file_path": file_path,
            "inserted_at_line": where.index + 1,
            "lines_inserted": len(new_lines),
        }

    def delete_lines(self, file_path: str, start_line: int, end_line: int) -> Dict[str, Any]:
        path = self.resolver.resolve(file_path)
        seq = LineSequence.from_text(read_file_content(path))
        if start_line < 1 or end_line > len(seq) or start_line > end_line:
            raise OutOfRange(f"Invalid range {start_line}-{end_line} (file has {len(seq)} lines)")
        seq.splice(start_line - 1, end_line, [])
        write_file_content(path, seq.to_text())
        deleted = end_line - start_line + 1
        logger.info("deleted lines %d-%d of %s", start_line, end_line, path)
        return {
            "success": True,
            "file_path": file_path,
            "lines_deleted": deleted,
            "new_total_lines": len(seq),
        }

    # ----------------------------------
    # Reading / search
    # ----------------------------------
    def get_code_context(self, file_path: str, line_number: int, context_lines: int = 5) -> Dict[str, Any]:
        path = self.resolver.resolve(file_path)
        lines = LineSequence.from_text(read_file_content(path)).lines
        if line_number < 1 or line_number > len(lines):
            raise OutOfRange(f"Line {line_number} out of range (file has {len(lines)} lines)")
        context_lines = max(0, context_lines)
        start = max(1, line_number - context_lines)
        end = min(len(lines), line_number + context_lines)
        snippet = [f"{i}: {lines[i - 1]}" for i in range(start, end + 1)]
        return {
            "success": True,
            "file_path": file_path,
            "center_line": line_number,
            "start_line": start,
            "end_line": end,
            "context": "\n".join(snippet),
        }

    def search_in_file(self, file_path: str, search_text: str, case_sensitive: bool = True,
                       use_regex: bool = False, context_lines: int = 0) -> Dict[str, Any]:
        path = self.resolver.resolve(file_path)
        matches = search(read_file_content(path), search_text, case_sensitive, use_regex, context_lines)
        return {
            "success": True,
            "file_path": file_path,
            "search_text": search_text,
            "matches": [m.to_dict() for m in matches],
            "total_matches": len(matches),
        }

    def search_across_files(self, search_text: str, file_pattern: str = "*", case_sensitive: bool = True,
                            use_regex: bool = False, max_files: int = 100, max_matches_per_file: int = 10,
                            context_lines: int = 0) -> Dict[str, Any]:
        return search_across_files(
            self.resolver, search_text, file_pattern, case_sensitive, use_regex,
            max_files, max_matches_per_file, context_lines,
        )

    # ----------------------------------
    # Filesystem entries
    # ----------------------------------
    def delete_file(self, file_path: str) -> Dict[str, Any]:
        path = self.resolver.resolve(file_path)
        if path == self.root:
            raise InvalidArgument("Refusing to delete the project root")
        try:
            os.unlink(path)
        except FileNotFoundError as e:
            raise IOFailure(f"File not found: {file_path}") from e
        except OSError as e:
            raise IOFailure(f"Cannot delete {file_path}: {e.strerror or e}") from e
        logger.info("deleted %s", path)
        return {"success": True, "file_path": file_path}

    def move_or_rename_file(self, source_path: str, destination_path: str) -> Dict[str, Any]:
        src = self.resolver.resolve(source_path)
        dst = self.resolver.resolve(destination_path)
        if not os.path.exists(src):
            raise IOFailure(f"File not found: {source_path}")
        if src == self.root:
            raise InvalidArgument("Refusing to move the project root")
        try:
            os.makedirs(os.path.dirname(dst), exist_ok=True)
            shutil.move(src, dst)
        except OSError as e:
            raise IOFailure(f"Cannot move {source_path} to {destination_path}: {e.strerror or e}") from e
        logger.info("moved %s -> %s", src, dst)
        return {"success": True, "from": source_path, "to": destination_path}

    def list_directory(self, dir_path: str = ".", filter: Optional[str] = None,
                       include_hidden: bool = False, max_depth: int = 1,
                       max_files: int = 100) -> Dict[str, Any]:
        base = self.resolver.resolve(dir_path)
        if not os.path.isdir(base):
            raise IOFailure(f"Not a directory: {dir_path}")
        max_depth = min(max(1, max_depth), MAX_LIST_DEPTH)
        entries: List[Dict[str, Any]] = []

        def scan(current: str, depth: int) -> None:
            if depth > max_depth or len(entries) >= max_files:
                return
            with os.scandir(current) as it:
                children = sorted(it, key=lambda e: e.name)
            for entry in children:
                if len(entries) >= max_files:
                    return
                if not include_hidden and entry.name.startswith("."):
                    continue
                is_dir = entry.is_dir(follow_symlinks=False)
                if not filter or fnmatch.fnmatch(entry.name, filter):
                    st = entry.stat(follow_symlinks=False)
                    entries.append({
                        "name": entry.name,
                        "path": os.path.relpath(entry.path, base),
                        "type": "directory" if is_dir else "file",
                        "size": st.st_size,
                        "modified": _iso(st.st_mtime),
                    })
                if is_dir and depth < max_depth:
                    scan(entry.path, depth + 1)

        try:
            scan(base, 1)
        except OSError as e:
            raise IOFailure(f"Cannot list {dir_path}: {e.strerror or e}") from e
        return {"success": True, "path": dir_path, "entries": entries, "total": len(entries)}

    def get_file_info(self, file_path: Optional[str] = None, file_paths: Optional[List[str]] = None,
                      include_line_count: bool = False) -> Dict[str, Any]:
        if file_paths is None and file_path is None:
            raise InvalidArgument("Provide file_path or file_paths")
        results = [self._info(p, include_line_count) for p in (file_paths or [file_path])]
        return {"success": True, "results": results if file_paths is not None else results[0]}

    def _info(self, file_path: str, include_line_count: bool) -> Dict[str, Any]:
        # Per-path failures are reported inline so one bad path doesn't hide the rest.
        try:
            path = self.resolver.resolve(file_path)
            st = os.stat(path)
        except OSError as e:
            return {"file_path": file_path, "exists": False, "error": e.strerror or str(e)}
        except (InvalidArgument, SecurityViolation) as e:
            return {"file_path": file_path, "exists": False, "error": e.message}
        info: Dict[str, Any] = {
            "file_path": file_path,
            "exists": True,
            "type": "directory" if os.path.isdir(path) else "file",
            "size_bytes": st.st_size,
            "modified": _iso(st.st_mtime),
            "created": _iso(getattr(st, "st_birthtime", st.st_ctime)),
        }
        if include_line_count and os.path.isfile(path):
            try:
                info["line_count"] = len(LineSequence.from_text(read_file_content(path)))
            except IOFailure:
                info["line_count"] = None
        return info
