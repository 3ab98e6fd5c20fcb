"""Explicitly bind a document to a pane (manual override of route discovery)."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..kernel.errors import ConfigurationError, SubprocessError, UsageError
from ..kernel.registry import SessionRegistry, new_entry
from ..kernel.settings import Settings
from ..paths import claims_log_path, project_root
from ..runners.tmux import Tmux
from ..util.fs import append_line
from .common import open_document

logger = logging.getLogger("agent_doc.claim")

# Position hints are computed by the editor; they map onto tmux's own
# relative pane tokens and are resolved by tmux, never by us.
POSITIONS = ("left", "right", "top", "bottom")


@dataclass
class ClaimResult:
    file: str
    session_id: str
    pane: str
    previous_pane: str = ""
    generated_session: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def resolve_claim_target(
    tmux: Tmux,
    *,
    pane: Optional[str] = None,
    window: Optional[str] = None,
    position: Optional[str] = None,
) -> str:
    """Pick the pane to claim: explicit pane > position (in window) > window > current pane."""
    if pane:
        return tmux.resolve_pane(pane.strip())
    if position:
        pos = position.strip().lower()
        if pos not in POSITIONS:
            raise UsageError(f"invalid position: {position!r} (expected one of {', '.join(POSITIONS)})")
        token = "{" + pos + "}"
        return tmux.resolve_pane(f"{window.strip()}.{token}" if window else token)
    if window:
        return tmux.resolve_pane(window.strip())
    return Tmux.current_pane()


def claim(
    path: Path,
    *,
    registry: SessionRegistry,
    tmux: Tmux,
    settings: Settings,
    root: Optional[Path] = None,
    pane: Optional[str] = None,
    window: Optional[str] = None,
    position: Optional[str] = None,
) -> ClaimResult:
    base = root or project_root()
    doc = open_document(path, base)
    target = resolve_claim_target(tmux, pane=pane, window=window, position=position)

    previous = registry.lookup(doc.session_id)
    previous_pane = previous.pane if previous is not None else ""
    if previous is not None and previous.pane == target and previous.file == doc.rel:
        # Same binding: leave the stored entry untouched.
        logger.info("claim unchanged", extra={"session_id": doc.session_id, "pane": target})
    else:
        registry.claim(doc.session_id, new_entry(target, doc.rel))

    try:
        tmux.display_message(target, f"Claimed {doc.rel} (pane {target})", duration_ms=settings.claim_notify_ms)
    except (SubprocessError, ConfigurationError) as e:
        logger.warning("claim notification failed: %s", e, extra={"pane": target})

    try:
        append_line(claims_log_path(base), f"Claimed {doc.rel} for pane {target}")
    except OSError as e:
        logger.warning("cannot append claims log: %s", e, extra={"file": doc.rel})

    logger.info("claimed", extra={"session_id": doc.session_id, "pane": target, "file": doc.rel})
    return ClaimResult(
        file=doc.rel,
        session_id=doc.session_id,
        pane=target,
        previous_pane=previous_pane,
        generated_session=doc.generated,
    )
