"""Detect numbered-option interactive prompts in captured pane text.

Accepted shape (bottom-most match wins):

     Do you want to proceed?
     ❯ 1. Yes
       2. Yes, and don't ask again
       3. No

     Esc to cancel

Option markers may be `N.`, `N)` or `[N]`; indices must run 1..n. A single
line `Proceed? 1) Yes 2) No` is accepted as well. Anything that does not fit
is reported as "no prompt"; detection never raises.
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..contracts.v1 import PromptInfo, PromptOption
from ..util.terminal_render import plain_lines

FOOTER_MARK = "Esc to cancel"
SELECTION_MARKERS = "❯>›"
# Hint/status lines allowed below the options when no footer is shown.
MAX_TRAILING_LINES = 2

_BORDER_CHARS = "│┃║"
_OPTION_RE = re.compile(
    r"^(?P<marker>[" + SELECTION_MARKERS + r"])?\s*"
    r"(?:(?P<num>\d{1,2})[.)]|\[(?P<bnum>\d{1,2})\])"
    r"\s+(?P<label>\S.*?)\s*$"
)
_INLINE_RE = re.compile(r"(?:^|\s)(?:(\d{1,2})\)|\[(\d{1,2})\])\s+")


def _clean(line: str) -> str:
    return line.strip().strip(_BORDER_CHARS).strip()


def parse_option_line(line: str) -> Optional[Tuple[PromptOption, bool]]:
    """Parse `❯ 2. label` -> (option, is_selected); None when the line is not an option."""
    m = _OPTION_RE.match(_clean(line))
    if m is None:
        return None
    index = int(m.group("num") or m.group("bnum"))
    return PromptOption(index=index, label=m.group("label")), bool(m.group("marker"))


def _sequential(options: List[PromptOption]) -> bool:
    return len(options) >= 2 and [o.index for o in options] == list(range(1, len(options) + 1))


def _parse_inline(line: str) -> Optional[PromptInfo]:
    text = _clean(line)
    matches = list(_INLINE_RE.finditer(text))
    if len(matches) < 2:
        return None
    question = text[: matches[0].start()].strip()
    if not question:
        return None
    options: List[PromptOption] = []
    for k, m in enumerate(matches):
        stop = matches[k + 1].start() if k + 1 < len(matches) else len(text)
        label = text[m.end() : stop].strip()
        if not label:
            return None
        options.append(PromptOption(index=int(m.group(1) or m.group(2)), label=label))
    if not _sequential(options):
        return None
    return PromptInfo(active=True, question=question, options=options)


def _block_ending_at(lines: List[str], last: int) -> PromptInfo:
    parsed: List[Tuple[PromptOption, bool]] = []
    i = last
    while i >= 0:
        if not _clean(lines[i]):
            i -= 1
            continue
        item = parse_option_line(lines[i])
        if item is None:
            break
        parsed.append(item)
        i -= 1
    parsed.reverse()

    options = [opt for opt, _ in parsed]
    if not _sequential(options) or i < 0:
        return PromptInfo()
    question = _clean(lines[i])
    selected = next((opt.index for opt, marked in parsed if marked), None)
    return PromptInfo(active=True, question=question, options=options, selected=selected)


def parse_prompt(raw: str) -> PromptInfo:
    lines = plain_lines(raw)
    end = len(lines)
    for i in range(len(lines) - 1, -1, -1):
        if FOOTER_MARK in lines[i]:
            end = i
            break

    footer = end < len(lines)
    trailing = 0
    for i in range(end - 1, -1, -1):
        if not _clean(lines[i]):
            continue
        if parse_option_line(lines[i]) is not None:
            return _block_ending_at(lines, i)
        inline = _parse_inline(lines[i])
        if inline is not None:
            return inline
        trailing += 1
        if not footer and trailing > MAX_TRAILING_LINES:
            break
    return PromptInfo()
