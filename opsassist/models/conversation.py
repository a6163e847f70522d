"""API request and response models."""

from datetime import datetime

from pydantic import BaseModel, Field

from opsassist.models.messages import ToolCallLog


class AskRequest(BaseModel):
    """Request model for the ask endpoint."""

    message: str
    user_id: str = "anonymous"
    session_id: str | None = None
    images: list[str] = Field(default_factory=list)


class UsageResponse(BaseModel):
    """Token counters reported back to the caller."""

    input_tokens: int = 0
    output_tokens: int = 0


class AskResponse(BaseModel):
    """Response model for the ask endpoint."""

    response: str
    session_id: str
    tool_calls: list[ToolCallLog] = Field(default_factory=list)
    usage: UsageResponse = Field(default_factory=UsageResponse)


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str


class SessionSummary(BaseModel):
    """One row of the session listing."""

    session_id: str
    user_id: str | None = None
    messages: int
    created_at: datetime
    last_activity: datetime
