"""Session identifier persisted in a document's YAML frontmatter."""
from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml  # type: ignore

from .errors import DocumentError, NotFoundError

_FENCE = "---"


def split_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """Return (frontmatter mapping, body). No fenced block -> ({}, content)."""
    if not content.startswith(_FENCE + "\n"):
        return {}, content
    rest = content[len(_FENCE) + 1 :]
    if rest.startswith(_FENCE + "\n") or rest == _FENCE:
        return {}, rest[len(_FENCE) + 1 :]
    end = rest.find("\n" + _FENCE + "\n")
    if end >= 0:
        body = rest[end + len(_FENCE) + 2 :]
    elif rest.endswith("\n" + _FENCE):
        end = len(rest) - len(_FENCE) - 1
        body = ""
    else:
        raise ValueError("unterminated frontmatter block")
    doc = yaml.safe_load(rest[:end]) or {}
    if not isinstance(doc, dict):
        raise ValueError("frontmatter is not a mapping")
    return doc, body


def join_frontmatter(doc: Dict[str, Any], body: str) -> str:
    text = yaml.safe_dump(doc, allow_unicode=True, sort_keys=False)
    return f"{_FENCE}\n{text}{_FENCE}\n{body}"


def ensure_session(content: str) -> Tuple[str, str]:
    """Return (content, session_id), generating and embedding a UUID when absent."""
    doc, body = split_frontmatter(content)
    sid = str(doc.get("session") or "").strip()
    if sid:
        return content, sid
    sid = str(uuid.uuid4())
    doc["session"] = sid
    return join_frontmatter(doc, body), sid


def ensure_document_session(path: Path) -> Tuple[str, bool]:
    """File-level ensure_session: returns (session_id, generated)."""
    if not path.is_file():
        raise NotFoundError(f"file not found: {path}")
    content = path.read_text(encoding="utf-8")
    try:
        updated, sid = ensure_session(content)
    except (ValueError, yaml.YAMLError) as e:
        raise DocumentError(f"{path}: {e}") from e
    if updated != content:
        path.write_text(updated, encoding="utf-8")
        return sid, True
    return sid, False


def read_document_session(path: Path) -> str:
    """Session id stored in the document, or "" when it has none. Never writes."""
    if not path.is_file():
        raise NotFoundError(f"file not found: {path}")
    try:
        doc, _ = split_frontmatter(path.read_text(encoding="utf-8"))
    except (ValueError, yaml.YAMLError) as e:
        raise DocumentError(f"{path}: {e}") from e
    return str(doc.get("session") or "").strip()
