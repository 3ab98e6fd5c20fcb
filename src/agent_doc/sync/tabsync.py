"""Editor tab/split changes -> `focus` or `layout`, debounced and never overlapping."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional, Tuple

from .loop import AgentDocClient

logger = logging.getLogger("agent_doc.tabsync")


class SyncCoalescer:
    """Run `action` with the last value submitted after a quiet window.

    At most one action runs at a time. An attempt superseded by a newer submit
    is dropped. The latest attempt firing while another runs is held and runs
    once the running one finishes, so the final state is always applied.
    """

    def __init__(
        self,
        action: Callable[[Any], None],
        *,
        debounce_s: float = 0.3,
        timer_factory: Callable[..., Any] = threading.Timer,
    ) -> None:
        self._action = action
        self.debounce_s = float(debounce_s)
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._running = False
        self._held: Optional[Tuple[int, Any]] = None
        self._generation = 0
        self._timer: Any = None
        self.dropped = 0

    def submit(self, value: Any) -> None:
        with self._lock:
            self._generation += 1
            gen = self._generation
            if self._timer is not None:
                self._timer.cancel()
            t = self._timer_factory(self.debounce_s, self._fire, args=(gen, value))
            t.daemon = True
            self._timer = t
        t.start()

    def _fire(self, gen: int, value: Any) -> None:
        with self._lock:
            if gen != self._generation:
                self.dropped += 1
                return
            if self._running:
                if self._held is not None:
                    self.dropped += 1
                self._held = (gen, value)
                logger.info("sync held: previous sync still running")
                return
            self._running = True
        while True:
            try:
                self._action(value)
            except Exception as e:
                logger.warning("sync failed: %s", e)
            with self._lock:
                held, self._held = self._held, None
                if held is not None and held[0] == self._generation:
                    value = held[1]
                    continue
                if held is not None:
                    self.dropped += 1
                self._running = False
                return


class TabSync:
    def __init__(
        self,
        client: AgentDocClient,
        *,
        debounce_s: float = 0.3,
        timer_factory: Callable[..., Any] = threading.Timer,
    ) -> None:
        self.client = client
        self.last: Optional[Tuple[Tuple[str, ...], str]] = None
        self.coalescer = SyncCoalescer(self._sync, debounce_s=debounce_s, timer_factory=timer_factory)

    def visible_changed(self, files: List[str], split: str = "h") -> None:
        """Report the documents currently visible in editor splits, most recent first."""
        ordered: List[str] = []
        for f in files:
            if f and f not in ordered:
                ordered.append(f)
        if not ordered:
            return
        self.coalescer.submit((tuple(ordered), "v" if split == "v" else "h"))

    def _sync(self, state: Tuple[Tuple[str, ...], str]) -> None:
        if state == self.last:
            return
        files, split = state
        if len(files) == 1:
            ok = self.client.focus(files[0])
        else:
            ok = self.client.layout(list(files), split)
        if ok:
            self.last = state
        else:
            logger.warning("tab sync command failed", extra={"file": files[0]})
