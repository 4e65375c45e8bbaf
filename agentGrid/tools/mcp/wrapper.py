"""LangChain BaseTool wrapper around a single MCP server tool."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from langchain_core.tools import BaseTool
from pydantic import ConfigDict, Field

if TYPE_CHECKING:
    from .manager import MCPServerManager

LOGGER = logging.getLogger(__name__)


class MCPToolWrapper(BaseTool):
    """Exposes an MCP tool to agents; the owning server is started on first call."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    server_id: str = Field(description="MCP server identifier")
    original_tool_name: str = Field(description="Tool name on the MCP server")
    manager: Any = Field(description="MCPServerManager instance", exclude=True)

    def __init__(
        self,
        server_id: str,
        tool_name: str,
        original_tool_name: str,
        description: str,
        manager: "MCPServerManager",
        input_schema: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            server_id: MCP server identifier
            tool_name: Name exposed to agents (alias or namespaced)
            original_tool_name: Name on the MCP server
            description: Tool description shown to the model
            manager: Server manager used to reach the server
            input_schema: JSON schema of the tool arguments
        """
        super().__init__(
            name=tool_name,
            description=description,
            server_id=server_id,
            original_tool_name=original_tool_name,
            manager=manager,
        )
        if input_schema:
            self.args_schema = input_schema

    async def _arun(self, **kwargs) -> str:
        try:
            connection = await self.manager.get_server(self.server_id)
            LOGGER.debug(f"MCP call {self.server_id}.{self.original_tool_name} args={kwargs}")
            result = await connection.call_tool(self.original_tool_name, kwargs)
            LOGGER.debug(f"MCP call {self.name} returned {len(result)} chars")
            return result
        except Exception as e:
            LOGGER.error(f"MCP tool {self.name} failed: {e}")
            return f"Error calling MCP tool '{self.name}': {e}"

    def _run(self, **kwargs) -> str:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self._arun(**kwargs))
        raise RuntimeError(f"MCP tool '{self.name}' must be awaited inside a running event loop; use ainvoke()")
