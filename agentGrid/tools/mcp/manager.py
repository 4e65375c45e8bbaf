"""MCP server lifecycle manager with lazy startup."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List

from .connection import StdioMCPConnection

LOGGER = logging.getLogger(__name__)

DEFAULT_STARTUP_TIMEOUT = 30


class MCPServerManager:
    """Starts configured MCP servers on first use and closes them on shutdown."""

    def __init__(self, config: dict):
        """
        Args:
            config: MCP configuration dict loaded from mcp_servers.yaml
        """
        self.config = config
        self._servers: Dict[str, StdioMCPConnection] = {}
        self._server_configs: Dict[str, dict] = {}
        self._lock = asyncio.Lock()

        for server_id, server_cfg in (config.get("servers") or {}).items():
            if server_cfg.get("enabled", True):
                self._server_configs[server_id] = server_cfg
                LOGGER.debug(f"  Registered MCP server config: {server_id}")

    async def get_server(self, server_id: str) -> StdioMCPConnection:
        """Return the connection for ``server_id``, starting the server if needed.

        Raises:
            ValueError: Server not configured (or disabled)
            RuntimeError: Server failed to start
        """
        if server_id in self._servers:
            return self._servers[server_id]

        if server_id not in self._server_configs:
            raise ValueError(f"MCP server not configured: {server_id}")

        async with self._lock:
            if server_id not in self._servers:
                LOGGER.info(f"Starting MCP server: {server_id}")
                self._servers[server_id] = await self._start_server(server_id)
        return self._servers[server_id]

    async def _start_server(self, server_id: str) -> StdioMCPConnection:
        cfg = self._server_configs[server_id]
        mode = cfg.get("connection_mode", self.config.get("settings", {}).get("default_connection_mode", "stdio"))
        if mode != "stdio":
            raise RuntimeError(f"Unsupported MCP connection mode for '{server_id}': {mode}")

        connection = StdioMCPConnection(
            server_id=server_id,
            command=cfg["command"],
            args=cfg.get("args", []),
            env=cfg.get("env", {}),
        )

        timeout = self.config.get("settings", {}).get("startup_timeout", DEFAULT_STARTUP_TIMEOUT)
        try:
            async with asyncio.timeout(timeout):
                await connection.start()
        except asyncio.TimeoutError:
            await connection.close()
            raise RuntimeError(f"MCP server startup timeout: {server_id}")
        except Exception as e:
            await connection.close()
            raise RuntimeError(f"Failed to start MCP server '{server_id}': {e}") from e

        LOGGER.info(f"  MCP server started: {server_id}")
        return connection

    async def shutdown(self) -> None:
        """Close every started server."""
        if not self._servers:
            return

        LOGGER.info(f"Shutting down {len(self._servers)} MCP server(s)...")
        for server_id, connection in list(self._servers.items()):
            try:
                await connection.close()
                LOGGER.info(f"  Closed: {server_id}")
            except Exception as e:
                LOGGER.error(f"  Failed to close {server_id}: {e}")
        self._servers.clear()

    def is_server_started(self, server_id: str) -> bool:
        return server_id in self._servers

    def list_configured_servers(self) -> List[str]:
        return list(self._server_configs.keys())

    def list_started_servers(self) -> List[str]:
        return list(self._servers.keys())
