"""Text protocol for tool calls over a plain text model interface.

The model asks for a tool by emitting a fenced block tagged ``tool_call``::

    ```tool_call
    {"tool": "get_disk_usage", "input": {"mount": "/"}}
    ```

Any number of blocks may appear in one response. A response with none is the
final answer. Model output is untrusted: every block is decoded and validated
on its own and a bad block never takes the rest of the response down with it.
"""

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator

from opsassist.models.llm import ToolSpec
from opsassist.models.messages import ToolCallRequest
from opsassist.utils.logging import get_logger

logger = get_logger(__name__)

TOOL_CALL_PATTERN = re.compile(r"```tool_call\s*([\s\S]*?)```")

TOOL_USAGE_TEMPLATE = """
## Tool Usage

You have access to the following tools. When you need to use a tool, output a JSON block like this:

```tool_call
{{
  "tool": "tool_name",
  "input": {{ "param1": "value1" }}
}}
```

You can make multiple tool calls in a single response. After tool results are provided, continue your analysis.

When you have enough information to answer, provide your final response WITHOUT any tool_call blocks.

### Available Tools

{tools}

---

"""


class ToolCallBlock(BaseModel):
    """Decoded body of one tool_call block."""

    tool: str
    input: dict[str, Any] | None = None

    @field_validator("tool")
    @classmethod
    def validate_tool(cls, v: str) -> str:
        """Tool name must be a non-empty string."""
        if not v or v.isspace():
            raise ValueError("Tool name cannot be empty")
        return v.strip()


@dataclass
class ParsedResponse:
    """Model output split into visible text and tool call requests."""

    text: str
    tool_calls: list[ToolCallRequest] = field(default_factory=list)


def build_tool_system_prompt(base_prompt: str, tools: list[ToolSpec]) -> str:
    """Prepend the tool protocol and the tool catalog to the base prompt."""
    catalog = json.dumps([tool.model_dump() for tool in tools], indent=2, ensure_ascii=False)
    return TOOL_USAGE_TEMPLATE.format(tools=catalog) + base_prompt


def parse_response(response: str, now_ms: int | None = None) -> ParsedResponse:
    """Extract tool call requests and the remaining visible text.

    Args:
        response: Raw model output
        now_ms: Timestamp used in synthesized ids, defaults to the current time

    Returns:
        Visible text with all tool_call blocks removed, plus the requests in source order
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    tool_calls: list[ToolCallRequest] = []
    for match in TOOL_CALL_PATTERN.finditer(response):
        body = match.group(1).strip()
        if not body:
            logger.warning("Skipping empty tool_call block")
            continue

        try:
            block = ToolCallBlock.model_validate(json.loads(body))
        except (json.JSONDecodeError, ValidationError, RecursionError) as e:
            logger.warning(f"Failed to parse tool call block: {str(e)[:200]}")
            continue

        tool_calls.append(
            ToolCallRequest(
                id=f"cli-{now_ms}-{len(tool_calls)}",
                name=block.tool,
                input=block.input or {},
            )
        )

    text = TOOL_CALL_PATTERN.sub("", response).strip()
    return ParsedResponse(text=text, tool_calls=tool_calls)
