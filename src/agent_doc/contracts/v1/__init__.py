from __future__ import annotations

from .prompt import PromptAllEntry, PromptInfo, PromptOption
from .session import SessionEntry

__all__ = [
    "PromptAllEntry",
    "PromptInfo",
    "PromptOption",
    "SessionEntry",
]
