"""Re-indent multi-line payloads against an anchor line."""

from __future__ import annotations

import re

from .textlines import LF, split_payload

_LEADING_WS = re.compile(r"^(\s*)")


def leading_whitespace(line: str) -> str:
    return _LEADING_WS.match(line).group(1)


def reindent(payload: str, reference_line: str) -> str:
    """Indent every line after the first to ``reference_line``'s indentation.

    The first line is left as given; it starts wherever the caller's cursor
    already is. Later non-blank lines are stripped and re-prefixed, blank
    lines pass through unchanged.
    """
    indent = leading_whitespace(reference_line)
    out = []
    for idx, line in enumerate(split_payload(payload)):
        if idx == 0 or not line.strip():
            out.append(line)
        else:
            out.append(indent + line.strip())
    return LF.join(out)
