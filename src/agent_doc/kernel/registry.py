"""Session registry: session id -> pane binding, persisted at .agent-doc/sessions.json.

The file is read fully, mutated in memory and written fully back. There is no
cross-process lock; concurrent writers race and the last write wins.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..contracts.v1 import SessionEntry
from ..paths import sessions_path
from ..util.fs import atomic_write_json, read_json
from ..util.time import utc_now_iso

logger = logging.getLogger("agent_doc.registry")


@dataclass
class SessionRegistry:
    path: Path
    doc: Dict[str, Any]

    def claim(self, session_id: str, entry: SessionEntry) -> SessionEntry:
        """Insert or overwrite; no field merge with a previous binding."""
        sid = session_id.strip()
        if not sid:
            raise ValueError("missing session id")
        self.doc[sid] = entry.model_dump()
        self.save()
        return entry

    def lookup(self, session_id: str) -> Optional[SessionEntry]:
        raw = self.doc.get(session_id.strip())
        if not isinstance(raw, dict):
            return None
        try:
            return SessionEntry.model_validate(raw)
        except ValidationError:
            logger.warning("ignoring malformed registry entry", extra={"session_id": session_id})
            return None

    def items(self) -> List[Tuple[str, SessionEntry]]:
        out: List[Tuple[str, SessionEntry]] = []
        for sid in list(self.doc.keys()):
            entry = self.lookup(sid)
            if entry is not None:
                out.append((sid, entry))
        return out

    def malformed(self) -> List[str]:
        """Session ids whose stored value is not a valid entry; `items()` skips these."""
        out: List[str] = []
        for sid, raw in self.doc.items():
            if not isinstance(raw, dict):
                out.append(sid)
                continue
            try:
                SessionEntry.model_validate(raw)
            except ValidationError:
                out.append(sid)
        return out

    def all(self) -> List[SessionEntry]:
        return [entry for _, entry in self.items()]

    def remove(self, session_id: str, *, save: bool = True) -> bool:
        existed = self.doc.pop(session_id.strip(), None) is not None
        if existed and save:
            self.save()
        return existed

    def panes(self) -> List[str]:
        """Distinct panes in registry order."""
        seen: List[str] = []
        for entry in self.all():
            if entry.pane and entry.pane not in seen:
                seen.append(entry.pane)
        return seen

    def save(self) -> None:
        atomic_write_json(self.path, self.doc)


def load_registry(path: Optional[Path] = None) -> SessionRegistry:
    p = path or sessions_path()
    return SessionRegistry(path=p, doc=read_json(p))


def new_entry(pane: str, file: str) -> SessionEntry:
    """Build a fresh binding owned by this process."""
    return SessionEntry(
        pane=pane,
        pid=os.getpid(),
        cwd=str(Path.cwd()),
        started=utc_now_iso(),
        file=file,
    )
