"""Settings management for agent-doc.

Settings are stored in ~/.config/agent-doc/config.yaml (or $AGENT_DOC_CONFIG)
and cover:
- tmux: well-known session name, isolated socket, per-call timeout
- agent: the command `start` replaces itself with
- route/claim/layout: routing text, auto-start settle time, overlay lifetime
- sync: reconciliation loop schedule and debounce window
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml  # type: ignore

from ..paths import config_path
from ..util.conv import coerce_argv, coerce_bool, coerce_float, coerce_int

logger = logging.getLogger("agent_doc.settings")


@dataclass(frozen=True)
class Settings:
    tmux_session: str = "claude"
    tmux_socket: str = ""
    tmux_timeout_s: float = 5.0
    agent_command: List[str] = field(default_factory=lambda: ["claude"])
    route_command_prefix: str = "/agent-doc"
    autostart_delay_s: float = 3.0
    autostart_enabled: bool = True
    claim_notify_ms: int = 3000
    layout_keep_foreign_panes: bool = False
    sync_initial_delay_s: float = 0.5
    sync_interval_s: float = 1.5
    sync_debounce_s: float = 0.3
    log_level: str = "WARNING"


def load_settings_doc(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the raw settings mapping; a missing or malformed file yields {}."""
    p = path or config_path()
    if not p.exists():
        return {}
    try:
        doc = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("ignoring unreadable settings at %s: %s", p, e)
        return {}
    return doc if isinstance(doc, dict) else {}


def _section(doc: Dict[str, Any], name: str) -> Dict[str, Any]:
    d = doc.get(name)
    return d if isinstance(d, dict) else {}


def _str(value: Any, default: str) -> str:
    s = str(value).strip() if value is not None else ""
    return s or default


def load_settings(path: Optional[Path] = None) -> Settings:
    doc = load_settings_doc(path)
    tmux = _section(doc, "tmux")
    agent = _section(doc, "agent")
    route = _section(doc, "route")
    claim = _section(doc, "claim")
    layout = _section(doc, "layout")
    sync = _section(doc, "sync")
    d = Settings()

    socket = os.environ.get("AGENT_DOC_TMUX_SOCKET", "").strip() or str(tmux.get("socket") or "").strip()
    log_level = os.environ.get("AGENT_DOC_LOG_LEVEL", "").strip() or _str(doc.get("log_level"), d.log_level)

    return Settings(
        tmux_session=_str(tmux.get("session"), d.tmux_session),
        tmux_socket=socket,
        tmux_timeout_s=coerce_float(tmux.get("timeout_s"), default=d.tmux_timeout_s, min_value=0.5, max_value=120.0),
        agent_command=coerce_argv(agent.get("command"), default=d.agent_command),
        route_command_prefix=_str(route.get("command_prefix"), d.route_command_prefix),
        autostart_delay_s=coerce_float(
            route.get("autostart_delay_s"), default=d.autostart_delay_s, min_value=0.0, max_value=60.0
        ),
        autostart_enabled="AGENT_DOC_NO_AUTOSTART" not in os.environ,
        claim_notify_ms=coerce_int(claim.get("notify_ms"), default=d.claim_notify_ms, min_value=0, max_value=60000),
        layout_keep_foreign_panes=coerce_bool(layout.get("keep_foreign_panes"), default=d.layout_keep_foreign_panes),
        sync_initial_delay_s=coerce_float(
            sync.get("initial_delay_s"), default=d.sync_initial_delay_s, min_value=0.0, max_value=60.0
        ),
        sync_interval_s=coerce_float(sync.get("interval_s"), default=d.sync_interval_s, min_value=0.1, max_value=600.0),
        sync_debounce_s=coerce_float(sync.get("debounce_s"), default=d.sync_debounce_s, min_value=0.0, max_value=10.0),
        log_level=log_level.upper(),
    )
