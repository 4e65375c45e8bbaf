"""Test the name-addressed MCP tool gateway."""

import pytest
import yaml

from agentGrid.tools.mcp import MCPToolGateway
from agentGrid.utils.errors import ToolExecutionError


@pytest.fixture
def gateway(mcp_tools, mcp_manager):
    return MCPToolGateway(mcp_tools, mcp_manager)


def test_lookup(gateway):
    assert gateway.is_tool("design_get_file")
    assert not gateway.is_tool("get_file")
    assert gateway.get_tool("design_get_file").original_tool_name == "get_file"
    assert [t.name for t in gateway.list_tools()] == ["design_get_file", "mcp__design__explode"]
    with pytest.raises(KeyError):
        gateway.get_tool("nope")


@pytest.mark.asyncio
async def test_call_tool(gateway, fake_connections):
    result = await gateway.call_tool("design_get_file", {"file_key": "k1"})

    assert result == "get_file: {'file_key': 'k1'}"


@pytest.mark.asyncio
async def test_call_unknown_tool(gateway):
    with pytest.raises(ToolExecutionError, match="Unknown MCP tool"):
        await gateway.call_tool("nope", {})


@pytest.mark.asyncio
async def test_shutdown_closes_servers(gateway, mcp_manager, fake_connections):
    await gateway.call_tool("design_get_file", {"file_key": "k1"})

    await gateway.shutdown()

    assert mcp_manager.list_started_servers() == []
    assert fake_connections[0].closed is True


def test_from_config_file(tmp_path, test_mcp_config, fake_connections):
    config_path = tmp_path / "mcp_servers.yaml"
    config_path.write_text(yaml.safe_dump(test_mcp_config), encoding="utf-8")

    gateway = MCPToolGateway.from_config_file(config_path)

    assert gateway.is_tool("mcp__design__explode")
    assert gateway.manager.list_configured_servers() == ["design"]
