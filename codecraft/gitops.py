"""
Version-control forwarding.

Each method shells out to ``git`` in the sandbox root through an injectable
runner (``shell.run_command`` by default) and returns a plain dict. A
non-zero exit becomes ``CommandFailed``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

from .errors import CommandFailed, InvalidArgument
from .paths import PathResolver
from .shell import CommandResult, run_command

logger = logging.getLogger("codecraft.git")

Runner = Callable[..., CommandResult]

GIT_TIMEOUT = 120
_COMMIT_HEADER = re.compile(r"^\[(?P<branch>[^\s\]]+)(?: \(root-commit\))? (?P<hash>[0-9a-f]+)\]")
_FIELD_SEP = "\x1f"


def _ref(value: Optional[str], name: str) -> str:
    if not value or not value.strip():
        raise InvalidArgument(f"{name} must not be empty")
    if value.startswith("-"):
        raise InvalidArgument(f"{name} must not start with '-'")
    return value


def _parse_branch_header(header: str, status: Dict[str, Any]) -> None:
    # e.g. "main...origin/main [ahead 1, behind 2]" or "No commits yet on main"
    for prefix in ("No commits yet on ", "Initial commit on "):
        if header.startswith(prefix):
            header = header[len(prefix):]
    if " [" in header:
        header, counts = header.split(" [", 1)
        for part in counts.rstrip("]").split(","):
            part = part.strip()
            if part.startswith("ahead "):
                status["ahead"] = int(part[len("ahead "):])
            elif part.startswith("behind "):
                status["behind"] = int(part[len("behind "):])
    if "..." in header:
        header, status["tracking"] = header.split("...", 1)
    status["current"] = header


def parse_status(porcelain: str) -> Dict[str, Any]:
    status: Dict[str, Any] = {
        "current": None,
        "tracking": None,
        "ahead": 0,
        "behind": 0,
        "staged": [],
        "modified": [],
        "created": [],
        "deleted": [],
        "renamed": [],
        "conflicted": [],
        "not_added": [],
        "files": [],
    }
    for line in porcelain.splitlines():
        if line.startswith("## "):
            _parse_branch_header(line[3:], status)
            continue
        if len(line) < 4:
            continue
        index, work, path = line[0], line[1], line[3:]
        status["files"].append({"path": path, "index": index, "working_dir": work})
        if index == "?" and work == "?":
            status["not_added"].append(path)
            continue
        if "U" in (index, work) or (index == work and index in "AD"):
            status["conflicted"].append(path)
            continue
        if index == "R":
            status["renamed"].append(path)
        if index == "A":
            status["created"].append(path)
        if "D" in (index, work):
            status["deleted"].append(path)
        if work == "M":
            status["modified"].append(path)
        if index not in (" ", "?"):
            status["staged"].append(path)
    status["is_clean"] = not status["files"]
    return status


class GitClient:
    def __init__(self, resolver: PathResolver, runner: Runner = run_command):
        self.resolver = resolver
        self.runner = runner

    def _git(self, *args: str) -> str:
        argv = ["git", *args]
        result = self.runner(argv, cwd=self.resolver.root, timeout=GIT_TIMEOUT)
        if not result.ok:
            detail = (result.stderr or result.stdout).strip()
            logger.warning("git %s failed (%s): %s", args[0], result.exit_code, detail)
            if result.timed_out:
                raise CommandFailed(f"git {args[0]} timed out", result.exit_code, result.stderr)
            raise CommandFailed(f"git {args[0]} failed: {detail}", result.exit_code, result.stderr)
        return result.stdout

    def _paths(self, files: Sequence[str]) -> List[str]:
        return [self.resolver.relative(self.resolver.resolve(f)) for f in files]

    def status(self) -> Dict[str, Any]:
        out = self._git("status", "--porcelain=v1", "--branch")
        return {"success": True, **parse_status(out)}

    def diff(self, staged: bool = False) -> Dict[str, Any]:
        out = self._git("diff", "--cached") if staged else self._git("diff")
        return {"success": True, "diff": out}

    def add(self, files: Optional[List[str]] = None) -> Dict[str, Any]:
        files = files or ["."]
        self._git("add", "--", *self._paths(files))
        return {"success": True, "staged": files}

    def commit(self, message: str, all: bool = False) -> Dict[str, Any]:
        if not message or not message.strip():
            raise InvalidArgument("commit message must not be empty")
        args = ["commit", "-m", message]
        if all:
            args.insert(1, "-a")
        out = self._git(*args)
        m = _COMMIT_HEADER.search(out)
        return {
            "success": True,
            "branch": m.group("branch") if m else None,
            "commit": m.group("hash") if m else None,
            "summary": out.strip().splitlines()[-1] if out.strip() else "",
        }

    def branch(self, create: Optional[str] = None, delete: Optional[str] = None,
               list: bool = True) -> Dict[str, Any]:
        if create:
            self._git("checkout", "-b", _ref(create, "create"))
            return {"success": True, "created": create}
        if delete:
            self._git("branch", "-d", _ref(delete, "delete"))
            return {"success": True, "deleted": delete}
        out = self._git("branch", "--list", "--no-color")
        current = None
        branches = []
        for line in out.splitlines():
            name = line[2:].strip()
            if not name:
                continue
            if line.startswith("* "):
                current = name
            branches.append(name)
        return {"success": True, "current": current, "all": branches}

    def checkout(self, branch: Optional[str] = None, create: bool = False,
                 file: Optional[str] = None) -> Dict[str, Any]:
        if file:
            self._git("checkout", "--", *self._paths([file]))
            return {"success": True, "restored": file}
        branch = _ref(branch, "branch")
        if create:
            self._git("checkout", "-b", branch)
        else:
            self._git("checkout", branch)
        return {"success": True, "branch": branch}

    def pull(self, remote: str = "origin", branch: Optional[str] = None) -> Dict[str, Any]:
        args = ["pull", _ref(remote, "remote")]
        if branch:
            args.append(_ref(branch, "branch"))
        out = self._git(*args)
        return {"success": True, "remote": remote, "branch": branch, "summary": out.strip()}

    def push(self, remote: str = "origin", branch: Optional[str] = None,
             set_upstream: bool = False) -> Dict[str, Any]:
        args = ["push"]
        if set_upstream:
            args.append("-u")
        args.append(_ref(remote, "remote"))
        if branch:
            args.append(_ref(branch, "branch"))
        self._git(*args)
        return {"success": True, "pushed": True, "remote": remote, "branch": branch}

    def merge(self, branch: str, no_ff: bool = False) -> Dict[str, Any]:
        args = ["merge"]
        if no_ff:
            args.append("--no-ff")
        args.append(_ref(branch, "branch"))
        out = self._git(*args)
        return {"success": True, "branch": branch, "summary": out.strip()}

    def stash(self, action: str = "push", message: Optional[str] = None) -> Dict[str, Any]:
        if action == "push":
            self._git(*(["stash", "push", "-m", message] if message else ["stash", "push"]))
            return {"success": True, "action": "pushed"}
        if action == "pop":
            self._git("stash", "pop")
            return {"success": True, "action": "popped"}
        if action == "list":
            out = self._git("stash", "list")
            return {"success": True, "stashes": [ln for ln in out.splitlines() if ln.strip()]}
        raise InvalidArgument(f"Unknown stash action: {action}")

    def log(self, max_count: int = 10, oneline: bool = False) -> Dict[str, Any]:
        if max_count < 1:
            raise InvalidArgument("max_count must be >= 1")
        fields = ["%h", "%s"] if oneline else ["%H", "%an", "%ae", "%ad", "%s"]
        out = self._git("log", f"--max-count={max_count}", "--date=iso-strict",
                        "--pretty=format:" + _FIELD_SEP.join(fields))
        commits = []
        for line in out.splitlines():
            parts = line.split(_FIELD_SEP)
            if oneline and len(parts) == 2:
                commits.append({"hash": parts[0], "message": parts[1]})
            elif len(parts) == 5:
                commits.append({
                    "hash": parts[0],
                    "author_name": parts[1],
                    "author_email": parts[2],
                    "date": parts[3],
                    "message": parts[4],
                })
        return {"success": True, "commits": commits}
