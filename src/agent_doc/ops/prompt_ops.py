"""Prompt watcher: detect numbered-option prompts in agent panes and answer them."""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..contracts.v1 import PromptAllEntry, PromptInfo
from ..kernel.errors import AgentDocError, UsageError
from ..kernel.prompt_detect import parse_prompt
from ..kernel.registry import SessionRegistry
from ..runners.tmux import Tmux
from .common import live_entry, read_document

logger = logging.getLogger("agent_doc.prompt")

KEY_DELAY_S = 0.03
CONFIRM_DELAY_S = 0.05


def detect_pane(tmux: Tmux, pane: str) -> PromptInfo:
    return parse_prompt(tmux.capture(pane))


def prompt(
    path: Path,
    *,
    registry: SessionRegistry,
    tmux: Tmux,
    root: Optional[Path] = None,
) -> PromptInfo:
    """Prompt state of one document's pane; no binding or a dead pane reads as inactive."""
    doc = read_document(path, root, require_session=False)
    if not doc.session_id:
        return PromptInfo()
    entry = registry.lookup(doc.session_id)
    if entry is None or not tmux.is_alive(entry.pane):
        return PromptInfo()
    return detect_pane(tmux, entry.pane)


def answer_keys(info: PromptInfo, option: int) -> List[str]:
    """Keystrokes that move the highlight from the current option to `option` and confirm it."""
    if not info.active:
        return []
    n = len(info.options)
    if option < 1 or option > n:
        raise UsageError(f"option {option} out of range (1-{n})")
    current = info.selected or 1
    step = "Down" if option > current else "Up"
    return [step] * abs(option - current) + ["Enter"]


def answer(
    path: Path,
    option: int,
    *,
    registry: SessionRegistry,
    tmux: Tmux,
    root: Optional[Path] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    doc = read_document(path, root)
    entry = live_entry(registry, tmux, doc)
    info = detect_pane(tmux, entry.pane)
    if not info.active:
        # Most likely answered already and cleared by the time we looked.
        logger.info("no active prompt; nothing to answer", extra={"pane": entry.pane, "file": doc.rel})
        return {"answered": False, "file": doc.rel, "pane": entry.pane}

    keys = answer_keys(info, option)
    for key in keys:
        sleep(CONFIRM_DELAY_S if key == "Enter" else KEY_DELAY_S)
        tmux.send_key(entry.pane, key)
    logger.info("answered prompt option %s", option, extra={"pane": entry.pane, "file": doc.rel})
    return {"answered": True, "file": doc.rel, "pane": entry.pane, "option": option, "question": info.question}


def poll_all(*, registry: SessionRegistry, tmux: Tmux) -> List[PromptAllEntry]:
    """Prompt state for every registered pane, once per pane, in registry order."""
    live = tmux.live_panes()
    out: List[PromptAllEntry] = []
    seen = set()
    for sid, entry in registry.items():
        if not entry.pane or entry.pane in seen:
            continue
        seen.add(entry.pane)
        info = PromptInfo()
        if entry.pane in live:
            try:
                info = detect_pane(tmux, entry.pane)
            except AgentDocError as e:
                logger.warning("capture failed: %s", e, extra={"pane": entry.pane, "session_id": sid})
        out.append(PromptAllEntry(session_id=sid, file=entry.file, pane=entry.pane, info=info))
    return out
