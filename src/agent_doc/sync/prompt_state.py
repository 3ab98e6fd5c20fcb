"""Which prompt the editor shows, given successive `prompt --all` results.

Three phases:
- idle: nothing shown
- displaying: one prompt key is shown and stays shown while it remains active
- suppressed_answered: the shown prompt was answered and is hidden until a
  poll no longer reports it

Other active prompts wait in a FIFO; a key keeps its place for as long as it
stays active. Polls and answers arrive on different threads, so every
transition runs under one lock.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..contracts.v1 import PromptAllEntry

IDLE = "idle"
DISPLAYING = "displaying"
SUPPRESSED_ANSWERED = "suppressed_answered"


@dataclass
class DisplayUpdate:
    show: Optional[PromptAllEntry] = None
    dismiss: bool = False
    # active prompts after answered-key suppression
    total: int = 0


class PromptDisplayState:
    def __init__(self) -> None:
        self.current_key: Optional[str] = None
        self.answered_key: Optional[str] = None
        self.queue: List[str] = []
        self._entries: Dict[str, PromptAllEntry] = {}
        self._lock = threading.Lock()

    @property
    def phase(self) -> str:
        if self.current_key is not None:
            return DISPLAYING
        if self.answered_key is not None:
            return SUPPRESSED_ANSWERED
        return IDLE

    @property
    def current_entry(self) -> Optional[PromptAllEntry]:
        with self._lock:
            if self.current_key is None:
                return None
            return self._entries.get(self.current_key)

    def reset(self) -> None:
        with self._lock:
            self.current_key = None
            self.answered_key = None
            self.queue = []
            self._entries = {}

    def update(self, entries: List[PromptAllEntry]) -> DisplayUpdate:
        with self._lock:
            return self._update(entries)

    def _update(self, entries: List[PromptAllEntry]) -> DisplayUpdate:
        active: Dict[str, PromptAllEntry] = {}
        for e in entries:
            if e.info.active and e.info.options and e.key not in active:
                active[e.key] = e

        # The answer has taken effect once its prompt drops out of a poll.
        if self.answered_key is not None and self.answered_key not in active:
            self.answered_key = None
        if self.answered_key is not None:
            active.pop(self.answered_key, None)

        self._entries = active
        self.queue = [k for k in self.queue if k in active] + [k for k in active if k not in self.queue]

        if not active:
            if self.current_key is not None:
                self.current_key = None
                return DisplayUpdate(dismiss=True)
            return DisplayUpdate()

        if self.current_key in active:
            # No flicker: the shown prompt stays until resolved.
            return DisplayUpdate(total=len(active))

        self.current_key = self.queue[0]
        return DisplayUpdate(show=active[self.current_key], total=len(active))

    def mark_answered(self) -> Optional[str]:
        """Hide the shown prompt until a poll confirms it is gone; returns its key."""
        entry = self.take_current()
        return entry.key if entry is not None else None

    def withdraw(self) -> None:
        """Forget that the current prompt is shown; it keeps its queue position."""
        with self._lock:
            self.current_key = None

    def take_current(self) -> Optional[PromptAllEntry]:
        """Atomically mark the shown prompt answered and return its entry."""
        with self._lock:
            key = self.current_key
            if key is None:
                return None
            entry = self._entries.get(key)
            self.answered_key = key
            self.current_key = None
            self.queue = [k for k in self.queue if k != key]
            return entry
