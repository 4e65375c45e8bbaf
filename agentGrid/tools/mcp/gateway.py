"""Name-addressed access to the configured MCP tools."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from langchain_core.tools import BaseTool

from .loader import load_mcp_config, load_mcp_tools
from .manager import MCPServerManager
from agentGrid.utils.errors import ToolExecutionError

LOGGER = logging.getLogger(__name__)


class MCPToolGateway:
    """Looks up MCP tools by their exposed name and calls them."""

    def __init__(self, tools: Iterable[BaseTool] = (), manager: Optional[MCPServerManager] = None):
        self._tools: Dict[str, BaseTool] = {tool.name: tool for tool in tools}
        self.manager = manager

    @classmethod
    def from_config_file(cls, config_path: Union[str, Path]) -> "MCPToolGateway":
        config = load_mcp_config(config_path)
        manager = MCPServerManager(config)
        tools = load_mcp_tools(config, manager)
        LOGGER.info(f"MCP gateway ready with {len(tools)} tool(s) from {len(manager.list_configured_servers())} server(s)")
        return cls(tools, manager)

    def is_tool(self, name: str) -> bool:
        return name in self._tools

    def get_tool(self, name: str) -> BaseTool:
        if name not in self._tools:
            raise KeyError(f"Unknown MCP tool: {name}")
        return self._tools[name]

    def list_tools(self) -> List[BaseTool]:
        return list(self._tools.values())

    async def call_tool(self, name: str, args: Dict[str, Any]) -> Any:
        if name not in self._tools:
            raise ToolExecutionError(f"Unknown MCP tool: {name}")
        return await self._tools[name].ainvoke(args or {})

    async def shutdown(self) -> None:
        if self.manager is not None:
            await self.manager.shutdown()
