from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ...util.time import utc_now_iso


class SessionEntry(BaseModel):
    """One registry value: the pane a document's session is bound to."""

    pane: str
    pid: int = 0
    cwd: str = ""
    started: str = Field(default_factory=utc_now_iso)
    # Relative path of the session document (empty for legacy entries).
    file: str = ""

    model_config = ConfigDict(extra="ignore")
