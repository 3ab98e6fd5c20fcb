from __future__ import annotations

from typing import Any, Dict, List, Optional


class AgentDocError(RuntimeError):
    """Base error; `code` is the stable identifier surfaced in CLI error envelopes."""

    code = "error"

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self)}


class ConfigurationError(AgentDocError):
    """No usable multiplexer or no addressable current pane."""

    code = "configuration"


class NotFoundError(AgentDocError):
    code = "not_found"


class DeadResourceError(AgentDocError):
    code = "dead_pane"

    def __init__(self, message: str, *, pane: str = "") -> None:
        super().__init__(message)
        self.pane = pane

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["details"] = {"pane": self.pane}
        return d


class SubprocessError(AgentDocError):
    code = "subprocess"

    def __init__(
        self,
        message: str,
        *,
        argv: Optional[List[str]] = None,
        returncode: int = 1,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.argv = list(argv or [])
        self.returncode = int(returncode)
        self.stderr = stderr

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["details"] = {"argv": self.argv, "returncode": self.returncode, "stderr": self.stderr.strip()}
        return d


class DocumentError(AgentDocError):
    """The session document exists but its frontmatter cannot be read."""

    code = "invalid_document"


class UsageError(AgentDocError):
    """A request the current state cannot satisfy (e.g. an option the prompt does not offer)."""

    code = "invalid_argument"
