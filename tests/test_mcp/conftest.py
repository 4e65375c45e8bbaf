"""Pytest fixtures for MCP tests.

Server processes are never spawned: StdioMCPConnection is replaced by a
fake that records calls.
"""

import pytest


class FakeConnection:
    """Stand-in for StdioMCPConnection."""

    instances = []

    def __init__(self, server_id, command, args, env):
        self.server_id = server_id
        self.command = command
        self.args = args
        self.env = env
        self.initialized = False
        self.closed = False
        self.calls = []
        FakeConnection.instances.append(self)

    async def start(self):
        self.initialized = True

    async def call_tool(self, tool_name, arguments):
        self.calls.append((tool_name, arguments))
        if tool_name == "explode":
            raise RuntimeError("server crashed")
        return f"{tool_name}: {arguments}"

    async def close(self):
        self.closed = True
        self.initialized = False


@pytest.fixture
def test_mcp_config():
    """Two servers, one disabled, with alias, prefixed and disabled tools."""
    return {
        "servers": {
            "design": {
                "command": "npx",
                "args": ["-y", "design-mcp", "--stdio"],
                "enabled": True,
                "env": {"DESIGN_TOKEN": "${DESIGN_TOKEN}"},
                "tools": {
                    "get_file": {
                        "enabled": True,
                        "alias": "design_get_file",
                        "description": "Fetch a design file",
                        "input_schema": {
                            "type": "object",
                            "properties": {"file_key": {"type": "string"}},
                            "required": ["file_key"],
                        },
                    },
                    "explode": {"enabled": True, "description": "Always fails"},
                    "hidden": {"enabled": False},
                },
            },
            "legacy": {
                "command": "legacy-mcp",
                "enabled": False,
                "tools": {"ping": {"enabled": True}},
            },
        },
        "settings": {
            "namespace_strategy": "prefix",
            "startup_timeout": 5,
            "default_connection_mode": "stdio",
        },
    }


@pytest.fixture
def fake_connection_cls():
    return FakeConnection


@pytest.fixture
def fake_connections(mocker):
    """Patch the manager's connection class; returns the list of created fakes."""
    FakeConnection.instances = []
    mocker.patch("agentGrid.tools.mcp.manager.StdioMCPConnection", FakeConnection)
    return FakeConnection.instances


@pytest.fixture
def mcp_manager(test_mcp_config, fake_connections):
    from agentGrid.tools.mcp import MCPServerManager

    return MCPServerManager(test_mcp_config)


@pytest.fixture
def mcp_tools(test_mcp_config, mcp_manager):
    from agentGrid.tools.mcp import load_mcp_tools

    return load_mcp_tools(test_mcp_config, mcp_manager)
