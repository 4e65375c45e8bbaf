"""Tool registry, built-in tools and MCP integration."""

from .builtin import LIST_AVAILABLE_TOOLS, builtin_tools
from .registry import ToolMeta, ToolRegistry


def create_tool_registry() -> ToolRegistry:
    """Registry pre-populated with the built-in tools."""
    registry = ToolRegistry()
    for tool in builtin_tools():
        registry.register_tool(tool, source="builtin")
    return registry


__all__ = ["ToolMeta", "ToolRegistry", "create_tool_registry", "builtin_tools", "LIST_AVAILABLE_TOOLS"]
