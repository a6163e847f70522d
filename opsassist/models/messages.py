"""Message and tool-call data models."""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ConversationMessage(BaseModel):
    """A prior turn in a conversation, read-only once created."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ToolCallRequest(BaseModel):
    """A tool call parsed out of model output."""

    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolExecutionResult(BaseModel):
    """Outcome of one tool call, fed back to the model on the next iteration."""

    id: str
    name: str
    result: str
    is_error: bool = False


class ToolCallLog(BaseModel):
    """Audit entry for a tool call made while answering a question."""

    name: str
    input: dict[str, Any]
    output_preview: str
