from __future__ import annotations

import re
from typing import List


# CSI (colors, cursor moves), OSC (titles, hyperlinks), charset selection,
# keypad modes and other two-byte escapes.
_ESCAPE_RE = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b[()][A-Za-z0-9]"
    r"|\x1b[@-Z\\-_=>]"
)
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def strip_control_sequences(text: str) -> str:
    """Remove terminal escape sequences and stray control characters, keep newlines and tabs."""
    s = _ESCAPE_RE.sub("", text or "")
    s = s.replace("\r\n", "\n").replace("\r", "\n")
    return _CONTROL_RE.sub("", s)


def plain_lines(text: str) -> List[str]:
    return [line.rstrip() for line in strip_control_sequences(text).split("\n")]
