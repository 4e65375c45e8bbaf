"""Test MCP server manager."""

import asyncio

import pytest

from agentGrid.tools.mcp import MCPServerManager


def test_manager_initialization(mcp_manager):
    """Only enabled servers are registered; nothing starts eagerly."""
    assert mcp_manager.list_configured_servers() == ["design"]
    assert mcp_manager.list_started_servers() == []


@pytest.mark.asyncio
async def test_lazy_server_startup(mcp_manager, fake_connections):
    assert not mcp_manager.is_server_started("design")

    connection = await mcp_manager.get_server("design")

    assert connection.initialized is True
    assert connection.command == "npx"
    assert connection.args == ["-y", "design-mcp", "--stdio"]
    assert mcp_manager.is_server_started("design")

    again = await mcp_manager.get_server("design")
    assert again is connection
    assert len(fake_connections) == 1


@pytest.mark.asyncio
async def test_concurrent_startup_creates_one_connection(mcp_manager, fake_connections):
    first, second = await asyncio.gather(mcp_manager.get_server("design"), mcp_manager.get_server("design"))

    assert first is second
    assert len(fake_connections) == 1


@pytest.mark.asyncio
async def test_unknown_and_disabled_servers(mcp_manager):
    with pytest.raises(ValueError, match="not configured"):
        await mcp_manager.get_server("nonexistent_server")
    with pytest.raises(ValueError, match="not configured"):
        await mcp_manager.get_server("legacy")


@pytest.mark.asyncio
async def test_unsupported_connection_mode(test_mcp_config, fake_connections):
    test_mcp_config["servers"]["design"]["connection_mode"] = "sse"
    manager = MCPServerManager(test_mcp_config)

    with pytest.raises(RuntimeError, match="Unsupported MCP connection mode"):
        await manager.get_server("design")


@pytest.mark.asyncio
async def test_startup_failure_closes_connection(mcp_manager, fake_connections, fake_connection_cls, mocker):
    mocker.patch.object(fake_connection_cls, "start", side_effect=OSError("npx not found"))

    with pytest.raises(RuntimeError, match="Failed to start MCP server 'design'"):
        await mcp_manager.get_server("design")

    assert fake_connections[0].closed is True
    assert not mcp_manager.is_server_started("design")


@pytest.mark.asyncio
async def test_startup_timeout(test_mcp_config, fake_connections, fake_connection_cls, mocker):
    async def hang(self):
        await asyncio.sleep(10)

    test_mcp_config["settings"]["startup_timeout"] = 0.01
    mocker.patch.object(fake_connection_cls, "start", hang)
    manager = MCPServerManager(test_mcp_config)

    with pytest.raises(RuntimeError, match="startup timeout"):
        await manager.get_server("design")
    assert fake_connections[0].closed is True


@pytest.mark.asyncio
async def test_manager_shutdown(mcp_manager, fake_connections):
    await mcp_manager.get_server("design")

    await mcp_manager.shutdown()

    assert mcp_manager.list_started_servers() == []
    assert fake_connections[0].closed is True
