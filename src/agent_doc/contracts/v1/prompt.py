from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PromptOption(BaseModel):
    # 1-based, as shown in the agent's TUI
    index: int
    label: str

    model_config = ConfigDict(extra="forbid")


class PromptInfo(BaseModel):
    active: bool = False
    question: Optional[str] = None
    options: List[PromptOption] = Field(default_factory=list)
    # 1-based index of the highlighted option, when the TUI marks one
    selected: Optional[int] = None

    model_config = ConfigDict(extra="forbid")

    def to_json_dict(self) -> dict:
        if not self.active:
            return {"active": False}
        return self.model_dump(exclude_none=True)


class PromptAllEntry(BaseModel):
    session_id: str
    file: str = ""
    pane: str = ""
    info: PromptInfo = Field(default_factory=PromptInfo)

    model_config = ConfigDict(extra="forbid")

    @property
    def key(self) -> str:
        return f"{self.file}:{self.info.question}"

    def to_json_dict(self) -> dict:
        out = {"session_id": self.session_id, "file": self.file}
        out.update(self.info.to_json_dict())
        return out
