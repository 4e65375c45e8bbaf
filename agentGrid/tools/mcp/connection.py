"""MCP server connection over stdio."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

LOGGER = logging.getLogger(__name__)


def resolve_env(env: Dict[str, str]) -> Dict[str, str]:
    """Merge ``env`` over the process environment, expanding ``${VAR}`` references."""
    merged = os.environ.copy()
    for key, value in env.items():
        value = str(value)
        if value.startswith("${") and value.endswith("}"):
            merged[key] = os.environ.get(value[2:-1], "")
        else:
            merged[key] = value
    return merged


class StdioMCPConnection:
    """Client session with one MCP server spawned as a subprocess."""

    def __init__(self, server_id: str, command: str, args: List[str], env: Dict[str, str]):
        self.server_id = server_id
        self.command = command
        self.args = list(args)
        self.env = dict(env)
        self._initialized = False
        self._session: Optional[ClientSession] = None
        self._stdio_context = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def start(self) -> None:
        """Spawn the server and initialize the MCP session."""
        LOGGER.debug(f"  Starting stdio server: {self.command} {' '.join(self.args)}")

        params = StdioServerParameters(command=self.command, args=self.args, env=resolve_env(self.env))

        self._stdio_context = stdio_client(params)
        read_stream, write_stream = await self._stdio_context.__aenter__()

        self._session = ClientSession(read_stream, write_stream)
        await self._session.__aenter__()
        await self._session.initialize()
        self._initialized = True

        LOGGER.debug(f"  Stdio connection established for server: {self.server_id}")

    async def call_tool(self, tool_name: str, arguments: Dict[str, Any]) -> str:
        """Call a tool and join its text content parts."""
        if not self._initialized:
            raise RuntimeError(f"Server not initialized: {self.server_id}")

        LOGGER.debug(f"  Calling tool: {tool_name} on server {self.server_id}")
        result = await self._session.call_tool(tool_name, arguments)

        parts = [item.text for item in (result.content or []) if hasattr(item, "text")]
        text = "\n".join(parts)
        if getattr(result, "isError", False):
            raise RuntimeError(text or f"MCP tool '{tool_name}' reported an error")
        return text

    async def list_tools(self) -> List[Any]:
        if not self._initialized:
            raise RuntimeError(f"Server not initialized: {self.server_id}")
        result = await self._session.list_tools()
        return result.tools

    async def close(self) -> None:
        if self._session is not None:
            try:
                await self._session.__aexit__(None, None, None)
            except Exception as e:
                LOGGER.warning(f"  Error closing client session for {self.server_id}: {e}")
            self._session = None

        if self._stdio_context is not None:
            try:
                await self._stdio_context.__aexit__(None, None, None)
            except Exception as e:
                LOGGER.warning(f"  Error closing stdio context for {self.server_id}: {e}")
            self._stdio_context = None

        self._initialized = False
        LOGGER.debug(f"  Closed stdio connection for server: {self.server_id}")
