"""
Typed failures raised by the editing engine.

Every error carries a stable ``kind`` and converts itself into the uniform
envelope returned by the MCP tools.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CodeCraftError(Exception):
    kind = "CodeCraftError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_envelope(self, operation: str) -> Dict[str, Any]:
        return {
            "error": True,
            "kind": self.kind,
            "message": self.message,
            "operation": operation,
        }


class SecurityViolation(CodeCraftError):
    kind = "SecurityViolation"


class MatchNotFound(CodeCraftError):
    kind = "MatchNotFound"


class ExactMatchNotFound(MatchNotFound):
    kind = "ExactMatchNotFound"


class FuzzyMatchNotFound(MatchNotFound):
    kind = "FuzzyMatchNotFound"


class PatternNotFound(CodeCraftError):
    kind = "PatternNotFound"


class OutOfRange(CodeCraftError):
    kind = "OutOfRange"


class InvalidArgument(CodeCraftError):
    kind = "InvalidArgument"


class IOFailure(CodeCraftError):
    kind = "IOFailure"


class CommandFailed(CodeCraftError):
    """An external command or remote API reported failure."""

    kind = "CommandFailed"

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr

    def to_envelope(self, operation: str) -> Dict[str, Any]:
        env = super().to_envelope(operation)
        if self.exit_code is not None:
            env["exit_code"] = self.exit_code
        if self.stderr:
            env["stderr"] = self.stderr
        return env


class NotConfigured(CodeCraftError):
    kind = "NotConfigured"
