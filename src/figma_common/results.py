from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TextBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """
    Uniform envelope for every tool invocation, success or failure.

    Failures are plain text blocks; is_error is kept for telemetry only
    and is not part of the serialized result.
    """

    model_config = ConfigDict(frozen=True)

    content: list[TextBlock]
    is_error: bool = Field(default=False, exclude=True)

    @classmethod
    def from_text(cls, text: str) -> "ToolResult":
        return cls(content=[TextBlock(text=text)])

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        return cls(content=[TextBlock(text=text)], is_error=True)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)
