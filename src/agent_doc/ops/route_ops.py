"""Route a document's command to its live pane, auto-starting one when needed."""
from __future__ import annotations

import logging
import shlex
import sys
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..kernel.errors import ConfigurationError, DeadResourceError, NotFoundError
from ..kernel.registry import SessionRegistry, new_entry
from ..kernel.settings import Settings
from ..paths import project_root
from ..runners.tmux import Tmux
from .common import open_document

logger = logging.getLogger("agent_doc.route")


@dataclass
class RouteResult:
    file: str
    session_id: str
    pane: str
    # "sent" to a live pane, or "started" a new one
    action: str
    # "session" | "window" when a pane was created
    created: str = ""
    generated_session: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def start_command(rel_file: str, settings: Settings) -> str:
    """Shell line that runs `agent-doc start <file>` in a fresh pane."""
    env: List[str] = []
    if settings.tmux_socket:
        env.append(f"AGENT_DOC_TMUX_SOCKET={shlex.quote(settings.tmux_socket)}")
    argv = [sys.executable, "-m", "agent_doc", "start", rel_file]
    prefix = ("env " + " ".join(env) + " ") if env else ""
    return prefix + " ".join(shlex.quote(x) for x in argv)


def route(
    path: Path,
    *,
    registry: SessionRegistry,
    tmux: Tmux,
    settings: Settings,
    root: Optional[Path] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RouteResult:
    if not tmux.available():
        raise ConfigurationError("tmux is not available; cannot route")

    base = root or project_root()
    doc = open_document(path, base)
    if doc.generated:
        logger.info("generated session id", extra={"session_id": doc.session_id, "file": doc.rel})
    routed = f"{settings.route_command_prefix} {doc.rel}"

    entry = registry.lookup(doc.session_id)
    if entry is not None and tmux.is_alive(entry.pane):
        tmux.send_keys(entry.pane, routed)
        logger.info("routed", extra={"pane": entry.pane, "file": doc.rel})
        return RouteResult(
            file=doc.rel,
            session_id=doc.session_id,
            pane=entry.pane,
            action="sent",
            generated_session=doc.generated,
        )

    if not settings.autostart_enabled:
        if entry is not None:
            raise DeadResourceError(f"pane {entry.pane} is dead for {doc.rel} (auto-start disabled)", pane=entry.pane)
        raise NotFoundError(f"no pane registered for {doc.rel} (auto-start disabled)")

    if entry is not None:
        logger.info("registered pane is dead, auto-starting", extra={"pane": entry.pane, "file": doc.rel})
    pane, created = tmux.auto_start(settings.tmux_session, base)
    # Register before anything else so a concurrent route finds the new pane.
    registry.claim(doc.session_id, new_entry(pane, doc.rel))
    tmux.send_keys(pane, start_command(doc.rel, settings))
    if settings.autostart_delay_s > 0:
        sleep(settings.autostart_delay_s)
    tmux.send_keys(pane, routed)
    logger.info("started agent", extra={"pane": pane, "file": doc.rel, "session_id": doc.session_id})
    return RouteResult(
        file=doc.rel,
        session_id=doc.session_id,
        pane=pane,
        action="started",
        created=created,
        generated_session=doc.generated,
    )
