"""Bind the current pane to a document and replace this process with the agent."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional

from ..kernel.errors import SubprocessError
from ..kernel.registry import SessionRegistry, new_entry
from ..kernel.settings import Settings
from ..runners.tmux import Tmux
from .common import DocumentRef, open_document

logger = logging.getLogger("agent_doc.start")


def start(
    path: Path,
    *,
    registry: SessionRegistry,
    settings: Settings,
    root: Optional[Path] = None,
    execvp: Callable[[str, List[str]], None] = os.execvp,
) -> DocumentRef:
    doc = open_document(path, root)
    pane = Tmux.current_pane()
    registry.claim(doc.session_id, new_entry(pane, doc.rel))
    logger.info("registered current pane", extra={"pane": pane, "session_id": doc.session_id})

    argv = list(settings.agent_command)
    try:
        # Only returns when exec is stubbed out.
        execvp(argv[0], argv)
    except OSError as e:
        raise SubprocessError(f"failed to exec {argv[0]}: {e}", argv=argv) from e
    return doc
