"""Schema for the JSON decision a model returns for a user request."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ModelToolCall(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tool_name: str = Field(..., alias="toolName", min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)
    reasoning: str | None = None


class ModelDecision(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tool_calls: list[ModelToolCall] = Field(default_factory=list, alias="toolCalls")
    needs_more_info: bool = Field(False, alias="needsMoreInfo")
    missing_info: str | None = Field(None, alias="missingInfo")
