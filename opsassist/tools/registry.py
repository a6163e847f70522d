"""Tools registry: the catalog and executor for diagnostic tools."""

from typing import Any

from pydantic import ValidationError

from opsassist.models.llm import ToolConfig, ToolResult, ToolSpec
from opsassist.tools.base import ToolDefinition
from opsassist.tools.commands import create_run_command_tool
from opsassist.tools.docker import create_container_logs_tool, create_container_status_tool, create_network_info_tool
from opsassist.tools.files import create_read_file_tool
from opsassist.tools.system import create_disk_usage_tool, create_system_resources_tool
from opsassist.utils.logging import get_logger
from opsassist.utils.scrub import scrub_sensitive_data

logger = get_logger(__name__)


class ToolsRegistry:
    """Registry for read-only diagnostic tools.

    The registry is not modified after startup, so concurrent asks can share it.
    """

    def __init__(self, register_defaults: bool = True):
        """Initialize tools registry."""
        self._tools: dict[str, ToolDefinition] = {}
        if register_defaults:
            self._register_default_tools()

    def _register_default_tools(self) -> None:
        """Register the built-in server inspection tools."""
        tools = [
            create_container_status_tool(),
            create_container_logs_tool(),
            create_system_resources_tool(),
            create_disk_usage_tool(),
            create_network_info_tool(),
            create_read_file_tool(),
            create_run_command_tool(),
        ]

        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a new tool in the registry."""
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name!r} is already registered")
        self._tools[tool.name] = tool

    def list_specs(self, disabled: list[str] | None = None) -> list[ToolSpec]:
        """Specs for all enabled tools, in registration order."""
        disabled_names = set(disabled or [])
        return [tool.spec() for name, tool in self._tools.items() if name not in disabled_names]

    async def execute(
        self,
        name: str,
        tool_input: dict[str, Any],
        config: ToolConfig,
        disabled: list[str] | None = None,
    ) -> ToolResult:
        """Run a tool. Failures come back as error results, never as exceptions.

        A disabled tool is reported exactly like an unknown one, so a model that
        names it anyway learns nothing about what is installed.
        """
        tool = None if name in (disabled or []) else self._tools.get(name)
        if tool is None:
            logger.warning(f"Unknown or disabled tool requested: {name}")
            return ToolResult(content=f'Error: Unknown tool "{name}"', is_error=True)

        try:
            parsed_input = tool.parse_input(tool_input)
        except ValidationError as e:
            logger.warning(f"Invalid input for tool {name}: {e.error_count()} error(s)")
            details = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or 'input'}: {err['msg']}" for err in e.errors()
            )
            return ToolResult(content=f"Error: Invalid input for {name}: {details}", is_error=True)

        try:
            logger.debug(f"Executing tool: {name} with input: {tool_input}")
            output = await tool.handler(parsed_input, config)
        except Exception as e:
            message = scrub_sensitive_data(str(e))
            logger.error(f"Tool {name} failed: {message}")
            return ToolResult(content=f"Error executing {name}: {message}", is_error=True)

        scrubbed = scrub_sensitive_data(output)
        logger.debug(f"Tool {name} succeeded: {scrubbed[:100]}...")
        return ToolResult(content=scrubbed)

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools


_tools_registry: ToolsRegistry | None = None


def get_tools_registry() -> ToolsRegistry:
    """Get or create tools registry instance."""
    global _tools_registry
    if _tools_registry is None:
        _tools_registry = ToolsRegistry()
    return _tools_registry
