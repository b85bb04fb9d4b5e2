"""
UTF-8 text read/write keyed by absolute path.

Reads and writes use ``newline=""`` so line endings reach the engine exactly
as they are on disk. Writes go to a sibling temp file that is then
``os.replace``d over the target: readers see the old content or the new
content, never a half-written file.
"""

from __future__ import annotations

import logging
import os
import tempfile

from .errors import IOFailure

logger = logging.getLogger("codecraft.fileio")


def read_file_content(file_path: str, encoding: str = "utf-8") -> str:
    try:
        with open(file_path, "r", encoding=encoding, newline="") as f:
            return f.read()
    except FileNotFoundError as e:
        raise IOFailure(f"File not found: {file_path}") from e
    except IsADirectoryError as e:
        raise IOFailure(f"Is a directory: {file_path}") from e
    except UnicodeDecodeError as e:
        raise IOFailure(f"Not a {encoding} text file: {file_path}") from e
    except OSError as e:
        raise IOFailure(f"Error reading {file_path}: {e.strerror or e}") from e


def write_file_content(file_path: str, content: str, encoding: str = "utf-8",
                       make_parents: bool = False) -> int:
    """Atomically replace ``file_path`` with ``content``; returns bytes written."""
    directory = os.path.dirname(file_path) or "."
    tmp_path = None
    try:
        if make_parents:
            os.makedirs(directory, exist_ok=True)
        data = content.encode(encoding)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{os.path.basename(file_path)}.", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        # mkstemp creates 0600; keep the target's mode, or a plain 0644 for new files
        mode = os.stat(file_path).st_mode & 0o7777 if os.path.exists(file_path) else 0o644
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, file_path)
        tmp_path = None
        return len(data)
    except OSError as e:
        logger.error("Error writing %s: %s", file_path, e)
        raise IOFailure(f"Error writing {file_path}: {e.strerror or e}") from e
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
