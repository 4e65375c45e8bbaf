"""Test MCP configuration loader."""

import pytest
import yaml

from agentGrid.config.project_root import resolve_project_path
from agentGrid.tools.mcp import MCPToolWrapper, load_mcp_config, load_mcp_tools, resolve_tool_name


def test_load_mcp_config(tmp_path, test_mcp_config):
    """Test loading MCP configuration from YAML."""
    config_path = tmp_path / "mcp_servers.yaml"
    config_path.write_text(yaml.safe_dump(test_mcp_config), encoding="utf-8")

    config = load_mcp_config(config_path)

    assert set(config["servers"]) == {"design", "legacy"}
    assert config["settings"]["namespace_strategy"] == "prefix"


def test_load_empty_config(tmp_path):
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("", encoding="utf-8")

    assert load_mcp_config(config_path) == {"servers": {}, "settings": {}}


def test_load_partial_config(tmp_path):
    config_path = tmp_path / "partial.yaml"
    config_path.write_text("settings:\n  startup_timeout: 10\n", encoding="utf-8")

    config = load_mcp_config(config_path)

    assert config["servers"] == {}
    assert config["settings"]["startup_timeout"] == 10


def test_load_nonexistent_config(tmp_path):
    with pytest.raises(FileNotFoundError, match="MCP config not found"):
        load_mcp_config(tmp_path / "nope.yaml")


def test_bundled_config_loads():
    config = load_mcp_config(resolve_project_path("agentGrid/config/mcp_servers.yaml"))

    assert "figma" in config["servers"]
    assert config["settings"]["namespace_strategy"] == "alias"


def test_load_mcp_tools(mcp_tools):
    """Disabled servers and tools are skipped; names follow alias then prefix."""
    assert [tool.name for tool in mcp_tools] == ["design_get_file", "mcp__design__explode"]
    assert all(isinstance(tool, MCPToolWrapper) for tool in mcp_tools)

    get_file = mcp_tools[0]
    assert get_file.original_tool_name == "get_file"
    assert get_file.server_id == "design"
    assert get_file.description == "Fetch a design file"


def test_loading_does_not_start_servers(mcp_tools, mcp_manager, fake_connections):
    assert fake_connections == []
    assert mcp_manager.list_started_servers() == []


@pytest.mark.parametrize("tool_cfg,strategy,expected", [
    ({"alias": "short"}, "prefix", "short"),
    ({}, "prefix", "mcp__srv__tool"),
    ({}, "alias", "tool"),
])
def test_resolve_tool_name(tool_cfg, strategy, expected):
    assert resolve_tool_name("srv", "tool", tool_cfg, strategy) == expected
