"""MCP (Model Context Protocol) tool integration."""

from .connection import StdioMCPConnection
from .gateway import MCPToolGateway
from .loader import load_mcp_config, load_mcp_tools, resolve_tool_name
from .manager import MCPServerManager
from .wrapper import MCPToolWrapper

__all__ = [
    "StdioMCPConnection",
    "MCPServerManager",
    "MCPToolWrapper",
    "MCPToolGateway",
    "load_mcp_config",
    "load_mcp_tools",
    "resolve_tool_name",
]
