from __future__ import annotations

import os
from pathlib import Path


STATE_DIRNAME = ".agent-doc"


def project_root() -> Path:
    env = os.environ.get("AGENT_DOC_ROOT", "").strip()
    if env:
        return Path(env).expanduser().resolve()
    return Path.cwd().resolve()


def state_dir(root: Path | None = None) -> Path:
    return (root or project_root()) / STATE_DIRNAME


def sessions_path(root: Path | None = None) -> Path:
    return state_dir(root) / "sessions.json"


def claims_log_path(root: Path | None = None) -> Path:
    return state_dir(root) / "claims.log"


def config_path() -> Path:
    env = os.environ.get("AGENT_DOC_CONFIG", "").strip()
    if env:
        return Path(env).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "agent-doc" / "config.yaml"


def relative_to_root(path: Path, root: Path | None = None) -> str:
    """Document path as stored in the registry: relative to the project root when possible."""
    base = (root or project_root()).resolve()
    try:
        return path.resolve().relative_to(base).as_posix()
    except ValueError:
        return str(path)
