"""LLM-related data models and types."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from opsassist.models.messages import ToolCallLog


class ToolSpec(BaseModel):
    """Tool description shown to the model."""

    name: str
    description: str
    input_schema: dict[str, Any]


class ToolConfig(BaseModel):
    """Per-user limits applied when executing tools."""

    allowed_dirs: list[str] = Field(default_factory=list)
    max_file_size_kb: int = 100
    max_log_lines: int = 50


class UserConfig(BaseModel):
    """Per-user configuration passed to the agent loop."""

    system_prompt_addition: str | None = None
    context_dir_content: str | None = None
    disabled_tools: list[str] = Field(default_factory=list)
    tool_config: ToolConfig = Field(default_factory=ToolConfig)


class AskOptions(BaseModel):
    """Backend-specific extras for a single ask.

    The CLI backend is text only, so attached images are ignored.
    """

    images: list[str] = Field(default_factory=list)


@dataclass
class ToolResult:
    """Result returned by the tool executor."""

    content: str
    is_error: bool = False


@dataclass
class LLMUsage:
    """Token usage information. The CLI backend cannot observe it, so it stays zero."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class AskResult:
    """Result from one pass through the agent loop."""

    response: str
    tool_calls: list[ToolCallLog] = field(default_factory=list)
    usage: LLMUsage = field(default_factory=LLMUsage)
