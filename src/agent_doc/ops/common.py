from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..contracts.v1 import SessionEntry
from ..kernel.errors import DeadResourceError, NotFoundError
from ..kernel.frontmatter import ensure_document_session, read_document_session
from ..kernel.registry import SessionRegistry
from ..paths import project_root, relative_to_root
from ..runners.tmux import Tmux


@dataclass(frozen=True)
class DocumentRef:
    path: Path
    rel: str
    session_id: str
    generated: bool = False

    @property
    def short_id(self) -> str:
        return self.session_id[:8]


def _absolute(path: Path, base: Path) -> Path:
    return path if path.is_absolute() else base / path


def open_document(path: Path, root: Optional[Path] = None) -> DocumentRef:
    """Resolve a document, generating and persisting its session id if absent."""
    base = root or project_root()
    p = _absolute(path, base)
    sid, generated = ensure_document_session(p)
    return DocumentRef(path=p, rel=relative_to_root(p, base), session_id=sid, generated=generated)


def read_document(path: Path, root: Optional[Path] = None, *, require_session: bool = True) -> DocumentRef:
    """Resolve a document without writing to it; a missing session id is NotFound when required."""
    base = root or project_root()
    p = _absolute(path, base)
    sid = read_document_session(p)
    rel = relative_to_root(p, base)
    if not sid and require_session:
        raise NotFoundError(f"no session id in {rel}")
    return DocumentRef(path=p, rel=rel, session_id=sid)


def live_entry(registry: SessionRegistry, tmux: Tmux, doc: DocumentRef) -> SessionEntry:
    entry = registry.lookup(doc.session_id)
    if entry is None:
        raise NotFoundError(f"no pane registered for {doc.rel} (session {doc.short_id})")
    if not tmux.is_alive(entry.pane):
        raise DeadResourceError(f"pane {entry.pane} is dead for {doc.rel}", pane=entry.pane)
    return entry
