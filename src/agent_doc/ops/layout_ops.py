"""Rearrange agent panes so the tmux topology mirrors the editor's visible splits.

Partial completion is the contract: files without a live pane are skipped and
per-pane tmux failures are collected, the rest of the arrangement proceeds.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from ..kernel.errors import AgentDocError, SubprocessError, UsageError
from ..kernel.registry import SessionRegistry
from ..kernel.settings import Settings
from ..runners.tmux import Tmux
from .common import live_entry, read_document

logger = logging.getLogger("agent_doc.layout")

_SPLIT_ALIASES = {
    "h": "h",
    "horizontal": "h",
    "v": "v",
    "vertical": "v",
}


def normalize_split(value: Optional[str]) -> str:
    s = (value or "h").strip().lower()
    split = _SPLIT_ALIASES.get(s)
    if split is None:
        raise UsageError(f"invalid split: {value!r} (expected h or v)")
    return split


@dataclass
class LayoutResult:
    split: str = "h"
    target_window: str = ""
    arranged: List[Dict[str, str]] = field(default_factory=list)
    joined: List[str] = field(default_factory=list)
    broken: List[str] = field(default_factory=list)
    skipped: List[Dict[str, str]] = field(default_factory=list)
    focused: str = ""
    problems: List[Dict[str, str]] = field(default_factory=list)

    def skip(self, file: str, reason: str) -> None:
        self.skipped.append({"file": file, "reason": reason})
        logger.warning("layout skip: %s", reason, extra={"file": file})

    def problem(self, pane: str, message: str) -> None:
        self.problems.append({"pane": pane, "message": message})
        logger.warning("layout problem: %s", message, extra={"pane": pane})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "split": self.split,
            "target_window": self.target_window,
            "arranged": list(self.arranged),
            "joined": list(self.joined),
            "broken": list(self.broken),
            "skipped": list(self.skipped),
            "focused": self.focused,
            "problems": list(self.problems),
        }


def _resolve_panes(
    paths: List[Path], *, registry: SessionRegistry, tmux: Tmux, root: Optional[Path], result: LayoutResult
) -> List[Tuple[str, str]]:
    """(pane, file) for every input file with a live pane, in input order."""
    out: List[Tuple[str, str]] = []
    for path in paths:
        try:
            doc = read_document(path, root)
            entry = live_entry(registry, tmux, doc)
        except AgentDocError as e:
            result.skip(str(path), str(e))
            continue
        out.append((entry.pane, doc.rel))
    return out


def _locate_panes(
    tmux: Tmux, pane_files: List[Tuple[str, str]], result: LayoutResult
) -> Tuple[List[Tuple[str, str]], Dict[str, str], Dict[str, List[str]]]:
    """Window of every pane and the panes in each of those windows.

    A pane tmux can no longer find (it died after resolution) becomes a problem
    and is left out.
    """
    located: List[Tuple[str, str]] = []
    where: Dict[str, str] = {}
    windows: Dict[str, List[str]] = {}
    for pane, rel in pane_files:
        try:
            window = tmux.pane_window(pane)
            if window not in windows:
                windows[window] = tmux.list_window_panes(window)
        except SubprocessError as e:
            result.problem(pane, f"cannot locate pane: {e}")
            continue
        where[pane] = window
        located.append((pane, rel))
    return located, where, windows


def _pick_target_window(
    located: List[Tuple[str, str]], where: Dict[str, str], windows: Dict[str, List[str]], wanted: Set[str]
) -> Tuple[str, str]:
    """Window holding the most wanted panes; ties go to the window with more panes overall.

    Returns (window, anchor_pane) where the anchor is a wanted pane already in it.
    """
    best_window, anchor = "", located[0][0]
    best_wanted, best_total = 0, 0
    seen: Set[str] = set()
    for pane, _ in located:
        window = where[pane]
        if window in seen:
            continue
        seen.add(window)
        panes = windows[window]
        wanted_count = sum(1 for p in panes if p in wanted)
        if wanted_count > best_wanted or (wanted_count == best_wanted and len(panes) > best_total):
            best_window, anchor = window, pane
            best_wanted, best_total = wanted_count, len(panes)
    return best_window, anchor


def _focus(tmux: Tmux, pane: str, result: LayoutResult) -> None:
    try:
        tmux.focus(pane)
    except SubprocessError as e:
        result.problem(pane, f"focus failed: {e}")
        return
    result.focused = pane


def layout(
    paths: List[Path],
    *,
    registry: SessionRegistry,
    tmux: Tmux,
    settings: Settings,
    split: str = "h",
    window: Optional[str] = None,
    root: Optional[Path] = None,
) -> LayoutResult:
    if not paths:
        raise UsageError("at least one file is required")
    result = LayoutResult(split=normalize_split(split))
    pane_files = _resolve_panes(paths, registry=registry, tmux=tmux, root=root, result=result)

    if window:
        try:
            in_window = set(tmux.list_window_panes(window))
        except SubprocessError as e:
            result.problem("", f"cannot list window {window}: {e}")
            in_window = set()
        kept: List[Tuple[str, str]] = []
        for pane, rel in pane_files:
            if pane in in_window:
                kept.append((pane, rel))
            else:
                result.skip(rel, f"pane {pane} is outside window {window}")
        pane_files = kept

    # Several documents may share one agent pane.
    distinct: List[Tuple[str, str]] = []
    seen: Set[str] = set()
    for pane, rel in pane_files:
        if pane not in seen:
            seen.add(pane)
            distinct.append((pane, rel))

    located, where, windows = _locate_panes(tmux, distinct, result)

    if len(located) < 2:
        # Focus the first requested file only; never jump to an unrelated pane.
        first = _first_requested(paths[0], located, root)
        if first is not None:
            result.target_window = where[first[0]]
            _focus(tmux, first[0], result)
            result.arranged.append({"pane": first[0], "file": first[1]})
        return result

    wanted = {pane for pane, _ in located}
    target, anchor = _pick_target_window(located, where, windows, wanted)
    result.target_window = target

    registered = set(registry.panes())
    for pane in windows[target]:
        if pane in wanted:
            continue
        if settings.layout_keep_foreign_panes and pane not in registered:
            continue
        try:
            tmux.break_pane(pane)
        except SubprocessError as e:
            result.problem(pane, f"break failed: {e}")
            continue
        result.broken.append(pane)

    for pane, rel in located:
        try:
            if tmux.pane_window(pane) != target:
                tmux.join_pane(pane, anchor, result.split)
                result.joined.append(pane)
        except SubprocessError as e:
            result.problem(pane, f"join failed: {e}")
            continue
        result.arranged.append({"pane": pane, "file": rel})

    _focus(tmux, located[0][0], result)
    logger.info("layout arranged", extra={"window": target})
    return result


def _first_requested(
    first: Path, resolved: List[Tuple[str, str]], root: Optional[Path]
) -> Optional[Tuple[str, str]]:
    if not resolved:
        return None
    try:
        rel = read_document(first, root).rel
    except AgentDocError:
        return None
    for pane, file in resolved:
        if file == rel:
            return pane, file
    return None
