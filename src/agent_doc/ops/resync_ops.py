from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..kernel.registry import SessionRegistry
from ..runners.tmux import Tmux

logger = logging.getLogger("agent_doc.resync")


@dataclass
class ResyncResult:
    removed: List[Dict[str, Any]] = field(default_factory=list)
    malformed: List[str] = field(default_factory=list)
    remaining: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"removed": list(self.removed), "malformed": list(self.malformed), "remaining": self.remaining}


def resync(*, registry: SessionRegistry, tmux: Tmux) -> ResyncResult:
    """Drop registry entries whose pane no longer exists; live entries are never touched.

    Entries that do not parse can never resolve to a pane, so they go too.
    """
    live = tmux.live_panes()
    result = ResyncResult()
    for sid in registry.malformed():
        registry.remove(sid, save=False)
        result.malformed.append(sid)
        logger.warning("removed malformed registry entry", extra={"session_id": sid})
    for sid, entry in registry.items():
        if entry.pane in live:
            continue
        registry.remove(sid, save=False)
        result.removed.append({"session_id": sid, "pane": entry.pane, "file": entry.file})
        logger.info("removed dead session", extra={"session_id": sid, "pane": entry.pane})
    if result.removed or result.malformed:
        registry.save()
    result.remaining = len(registry.items())
    return result
