"""MCP configuration loading and tool wrapper creation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

import yaml

from .manager import MCPServerManager
from .wrapper import MCPToolWrapper

LOGGER = logging.getLogger(__name__)


def load_mcp_config(config_path: Union[str, Path]) -> dict:
    """Load mcp_servers.yaml.

    Raises:
        FileNotFoundError: Config file does not exist
        yaml.YAMLError: Config file is not valid YAML
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"MCP config not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f)

    if not config:
        return {"servers": {}, "settings": {}}

    config.setdefault("servers", {})
    config.setdefault("settings", {})
    return config


def load_mcp_tools(config: dict, manager: MCPServerManager) -> List[MCPToolWrapper]:
    """Create wrappers for every enabled tool of every enabled server.

    Servers are not started here.
    """
    tools: List[MCPToolWrapper] = []
    namespace_strategy = config.get("settings", {}).get("namespace_strategy", "alias")

    for server_id, server_cfg in (config.get("servers") or {}).items():
        if not server_cfg.get("enabled", True):
            LOGGER.debug(f"  Skipping disabled MCP server: {server_id}")
            continue

        tools_config = server_cfg.get("tools") or {}
        if not tools_config:
            LOGGER.warning(f"  No tools configured for MCP server: {server_id}")
            continue

        for tool_name, tool_cfg in tools_config.items():
            tool_cfg = tool_cfg or {}
            if not tool_cfg.get("enabled", True):
                LOGGER.debug(f"    Skipping disabled tool: {server_id}.{tool_name}")
                continue

            final_name = resolve_tool_name(server_id, tool_name, tool_cfg, namespace_strategy)
            tools.append(
                MCPToolWrapper(
                    server_id=server_id,
                    tool_name=final_name,
                    original_tool_name=tool_name,
                    description=tool_cfg.get("description", f"MCP tool '{tool_name}' from server '{server_id}'"),
                    manager=manager,
                    input_schema=tool_cfg.get("input_schema"),
                )
            )
            LOGGER.info(f"    Loaded MCP tool: {final_name} (server: {server_id})")

    return tools


def resolve_tool_name(server_id: str, tool_name: str, tool_cfg: dict, namespace_strategy: str) -> str:
    """Alias wins, then ``mcp__{server}__{tool}`` under the prefix strategy, else the raw name."""
    if "alias" in tool_cfg:
        return tool_cfg["alias"]
    if namespace_strategy == "prefix":
        return f"mcp__{server_id}__{tool_name}"
    return tool_name
