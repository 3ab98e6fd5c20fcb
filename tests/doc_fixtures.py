from __future__ import annotations

from pathlib import Path


def write_doc(root: Path, name: str, session: str = "", body: str = "# Notes\n") -> Path:
    p = root / name
    p.parent.mkdir(parents=True, exist_ok=True)
    if session:
        p.write_text(f"---\nsession: {session}\n---\n{body}", encoding="utf-8")
    else:
        p.write_text(body, encoding="utf-8")
    return p
