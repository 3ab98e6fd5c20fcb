from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..kernel.registry import SessionRegistry
from ..runners.tmux import Tmux
from .common import live_entry, read_document

logger = logging.getLogger("agent_doc.focus")


def focus(
    path: Path,
    *,
    registry: SessionRegistry,
    tmux: Tmux,
    root: Optional[Path] = None,
) -> Dict[str, Any]:
    """Select the window and pane bound to a document."""
    doc = read_document(path, root)
    entry = live_entry(registry, tmux, doc)
    tmux.focus(entry.pane)
    logger.info("focused", extra={"pane": entry.pane, "file": doc.rel})
    return {"file": doc.rel, "session_id": doc.session_id, "pane": entry.pane}
