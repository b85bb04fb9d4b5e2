"""
Shell command execution inside the sandbox.

In ``restricted`` mode only commands whose program name is on
``ALLOWED_COMMANDS`` run. ``SHELL_MODE=unsafe`` lifts the restriction.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from .errors import InvalidArgument, IOFailure, SecurityViolation

logger = logging.getLogger("codecraft.shell")

ALLOWED_COMMANDS = (
    "npm", "yarn", "pnpm", "node", "python", "python3", "pip", "java", "javac", "mvn", "gradle",
    "go", "cargo", "rustc", "gcc", "g++", "make", "cmake", "git", "docker",
    "ls", "dir", "pwd", "cat", "type", "echo", "test", "jest", "mocha", "pytest",
    "eslint", "prettier", "tsc", "webpack", "vite", "rollup", "parcel",
)

MAX_OUTPUT_BYTES = 10 * 1024 * 1024


@dataclass
class CommandResult:
    exit_code: Optional[int]
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


def _clip(text: str) -> str:
    return text if len(text) <= MAX_OUTPUT_BYTES else text[:MAX_OUTPUT_BYTES] + "\n... [truncated]"


def run_command(args: Union[str, Sequence[str]], cwd: str, timeout: float = 120,
                shell: bool = False) -> CommandResult:
    """Run a process to completion; on timeout it is killed and ``timed_out`` set."""
    try:
        proc = subprocess.run(
            args,
            cwd=cwd,
            shell=shell,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        out = e.stdout.decode("utf-8", "replace") if isinstance(e.stdout, bytes) else (e.stdout or "")
        err = e.stderr.decode("utf-8", "replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
        logger.warning("command timed out after %ss: %s", timeout, args)
        return CommandResult(None, _clip(out), _clip(err), timed_out=True)
    except FileNotFoundError as e:
        return CommandResult(127, "", str(e))
    return CommandResult(proc.returncode, _clip(proc.stdout), _clip(proc.stderr))


def validate_command(command: str, unsafe: bool = False) -> str:
    """Return the program name of ``command`` or raise if it may not run."""
    if not command or not command.strip():
        raise InvalidArgument("command must not be empty")
    try:
        words: List[str] = shlex.split(command)
    except ValueError as e:
        raise InvalidArgument(f"Cannot parse command: {e}")
    name = os.path.basename(words[0]) if words else ""
    if unsafe:
        return name
    if name not in ALLOWED_COMMANDS:
        raise SecurityViolation(f"Command '{name}' not allowed. Set SHELL_MODE=unsafe to enable.")
    return name


def execute_shell_command(command: str, cwd: str, timeout_seconds: int = 120,
                          unsafe: bool = False) -> Dict[str, Any]:
    validate_command(command, unsafe)
    if timeout_seconds <= 0:
        raise InvalidArgument("timeout_seconds must be > 0")
    if not os.path.isdir(cwd):
        raise IOFailure(f"Not a directory: {cwd}")
    logger.info("exec (%s): %s", "unsafe" if unsafe else "restricted", command)
    if unsafe:
        result = run_command(command, cwd, timeout_seconds, shell=True)
    else:
        # no shell: metacharacters reach the program as plain arguments
        result = run_command(shlex.split(command), cwd, timeout_seconds)
    return {
        "success": result.ok,
        "exit_code": result.exit_code,
        "stdout": result.stdout,
        "stderr": result.stderr,
        "command": command,
        "timed_out": result.timed_out,
    }
