"""Base types and definitions for tools."""

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict

from opsassist.models.llm import ToolConfig, ToolSpec

ToolHandler = Callable[[Any, ToolConfig], Awaitable[str]]

TOOL_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]{2,49}$")


class EmptyInput(BaseModel):
    """Input schema for tools that take no parameters."""

    model_config = ConfigDict(extra="ignore")


@dataclass
class ToolDefinition:
    """Definition of a tool available to the assistant."""

    name: str
    description: str
    input_schema_class: type[BaseModel]
    handler: ToolHandler

    def __post_init__(self) -> None:
        if not TOOL_NAME_PATTERN.match(self.name):
            raise ValueError(
                f"Invalid tool name {self.name!r}: must be lowercase, start with a letter, "
                "and contain only letters, numbers, and underscores (3-50 chars)"
            )

    def get_json_schema(self) -> dict[str, Any]:
        """Get JSON schema for this tool's input."""
        schema = self.input_schema_class.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("properties", {})
        return schema

    def parse_input(self, raw_input: dict[str, Any]) -> BaseModel:
        """Parse and validate tool input."""
        return self.input_schema_class.model_validate(raw_input)

    def spec(self) -> ToolSpec:
        """Specification shown to the model."""
        return ToolSpec(name=self.name, description=self.description, input_schema=self.get_json_schema())
