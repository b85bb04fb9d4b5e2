"""
Sandbox path confinement.

``PathResolver`` joins untrusted, agent-supplied paths onto a fixed root and
refuses anything that lands outside it. Resolution is purely lexical and
never touches the filesystem, so symlinks are not followed.
"""

from __future__ import annotations

import os

from .errors import InvalidArgument, SecurityViolation


class PathResolver:
    def __init__(self, root: str):
        self.root = os.path.normpath(os.path.abspath(root))
        # "/" already ends with the separator
        self._prefix = self.root if self.root.endswith(os.sep) else self.root + os.sep

    def contains(self, path: str) -> bool:
        return path == self.root or path.startswith(self._prefix)

    def resolve(self, user_path: str) -> str:
        if not isinstance(user_path, str):
            raise InvalidArgument(f"Path must be a string, got {type(user_path).__name__}")
        if "\x00" in user_path:
            raise InvalidArgument("Path contains a NUL byte")
        # An absolute user_path replaces the root here; the prefix check below catches it.
        candidate = os.path.normpath(os.path.join(self.root, user_path))
        if not self.contains(candidate):
            raise SecurityViolation(f"Security: Path traversal blocked - {user_path}")
        return candidate

    def relative(self, abs_path: str) -> str:
        rel = os.path.relpath(abs_path, self.root)
        return "." if rel == os.curdir else rel

    def __repr__(self) -> str:
        return f"PathResolver(root={self.root!r})"
