"""Read-only diagnostic tools for the operations assistant."""

from opsassist.tools.registry import ToolsRegistry, get_tools_registry

__all__ = ["ToolsRegistry", "get_tools_registry"]
