"""Tests for ToolDispatcher resolution order, MCP gating and tool listing."""

from types import SimpleNamespace

import pytest
from langchain_core.tools import StructuredTool, tool

from agentGrid.agents.registry import AgentRegistry
from agentGrid.agents.schema import ToolCall
from agentGrid.flow.dispatch import ToolDispatcher, categorize_tool
from agentGrid.flow.progress import ProgressReporter
from agentGrid.tools import create_tool_registry
from agentGrid.tools.builtin import http_fetch, list_available_tools, now
from agentGrid.utils.errors import DelegationPermissionError


@tool
def echo(text: str) -> str:
    """Echo the given text."""
    return f"echo: {text}"


async def _figma_get_file(file_key: str) -> dict:
    return {"file_key": file_key}


figma_get_file = StructuredTool.from_function(
    coroutine=_figma_get_file, name="figma_get_file", description="Fetch a Figma file"
)


class FakeMcpSource:
    def __init__(self, tools):
        self.tools = {t.name: t for t in tools}
        self.calls = []

    def is_tool(self, name):
        return name in self.tools

    def get_tool(self, name):
        return self.tools[name]

    def list_tools(self):
        return list(self.tools.values())

    async def call_tool(self, name, args):
        self.calls.append((name, args))
        return {"name": name, "args": args}


@pytest.fixture
def tool_registry():
    registry = create_tool_registry()
    registry.register_tool(echo, source="local")
    return registry


@pytest.fixture
def mcp_source():
    return FakeMcpSource([figma_get_file])


@pytest.fixture
def dispatcher(tool_registry, mcp_source):
    return ToolDispatcher(tool_registry, mcp_source=mcp_source, mcp_allowed_agent_types=["general"])


AGENT = SimpleNamespace(available_tools=[])


class TestResolution:

    @pytest.mark.asyncio
    async def test_unknown_tool_returns_message(self, dispatcher, sink):
        result = await dispatcher.execute_tool_for_agent(
            ToolCall(id="1", name="teleport"), "scribe", AGENT, ProgressReporter(sink)
        )

        assert result == "Tool 'teleport' not found or not available to scribe agent."
        assert sink.events[0].metadata["phase"] == "tool_not_found"

    @pytest.mark.asyncio
    async def test_mcp_tool_denied_for_other_agent_types(self, dispatcher, mcp_source, sink):
        result = await dispatcher.execute_tool_for_agent(
            ToolCall(id="1", name="figma_get_file", args={"file_key": "abc"}), "scribe", AGENT, ProgressReporter(sink)
        )

        assert result == "Tool 'figma_get_file' not available to scribe agent."
        assert mcp_source.calls == []
        assert sink.events[0].metadata["phase"] == "tool_denied"

    @pytest.mark.asyncio
    async def test_mcp_tool_runs_for_allowed_agent(self, dispatcher, mcp_source):
        result = await dispatcher.execute_tool_for_agent(
            ToolCall(id="1", name="figma_get_file", args={"file_key": "abc"}), "general", AGENT
        )

        assert result == '{"name": "figma_get_file", "args": {"file_key": "abc"}}'
        assert mcp_source.calls == [("figma_get_file", {"file_key": "abc"})]

    @pytest.mark.asyncio
    async def test_registry_tool_runs_for_any_agent(self, dispatcher, sink):
        result = await dispatcher.execute_tool_for_agent(
            ToolCall(id="1", name="echo", args={"text": "hi"}), "scribe", AGENT, ProgressReporter(sink)
        )

        assert result == "echo: hi"
        completed = sink.events[-1].metadata
        assert completed["phase"] == "tool_completed"
        assert completed["tool_source"] == "local"

    @pytest.mark.asyncio
    async def test_rejected_delegation_becomes_message(self, tool_registry):
        async def _reject(task: str, reasoning: str) -> str:
            raise DelegationPermissionError("scribe", "general")

        tool_registry.register_tool(
            StructuredTool.from_function(coroutine=_reject, name="delegate_to_general", description="Delegate"),
            source="agent",
        )
        dispatcher = ToolDispatcher(tool_registry, mcp_allowed_agent_types=[])

        result = await dispatcher.execute_tool_for_agent(
            ToolCall(id="1", name="delegate_to_general", args={"task": "t", "reasoning": "r"}), "scribe", AGENT
        )

        assert result.startswith("Delegation rejected: ")
        assert "not allowed to delegate to 'general'" in result

    @pytest.mark.asyncio
    async def test_tool_failures_propagate(self, tool_registry):
        @tool
        def broken() -> str:
            """Always fails."""
            raise ValueError("disk on fire")

        tool_registry.register_tool(broken)
        dispatcher = ToolDispatcher(tool_registry, mcp_allowed_agent_types=[])

        with pytest.raises(ValueError, match="disk on fire"):
            await dispatcher.execute_tool_for_agent(ToolCall(id="1", name="broken"), "general", AGENT)

    def test_allow_list_defaults_to_settings(self, tool_registry, monkeypatch):
        monkeypatch.setenv("ORCHESTRATION_MCP_ALLOWED_AGENT_TYPES", '["designer"]')

        dispatcher = ToolDispatcher(tool_registry)

        assert dispatcher.mcp_allowed_agent_types == frozenset({"designer"})


class TestToolListing:

    @pytest.mark.asyncio
    async def test_grouped_listing(self, dispatcher, tool_registry, make_config):
        async def _delegate(task: str, reasoning: str) -> str:
            return task

        delegate = StructuredTool.from_function(
            coroutine=_delegate, name="delegate_to_scribe", description="Delegate task to Scribe"
        )
        tool_registry.register_tool(delegate, source="agent")
        registry = AgentRegistry()
        config = make_config("general", metadata={"name": "General Assistant", "description": "Does it all", "icon": "🤖"})
        registry.register(SimpleNamespace(type="general", id="general", config=config))
        dispatcher.registry = registry
        agent = SimpleNamespace(available_tools=[now, http_fetch, list_available_tools, delegate, figma_get_file])

        listing = await dispatcher.execute_tool_for_agent(
            ToolCall(id="1", name="list_available_tools"), "general", agent
        )

        assert listing.startswith("# My Capabilities\n\n🤖 General Assistant - Does it all\n")
        assert "## Available Tools (4)" in listing
        assert "### Design & Layout\n- **figma_get_file** [mcp]: Fetch a Figma file" in listing
        assert "### External Services\n- **http_fetch** [builtin]" in listing
        assert "### Agent Tools\n- **delegate_to_scribe** [agent]: Delegate task to Scribe" in listing
        assert "### Other\n- **now** [builtin]" in listing
        assert listing.index("### Design & Layout") < listing.index("### External Services") < listing.index("### Agent Tools")
        assert listing.rstrip().endswith("**Tool System**: 4 tools available for general agent.")

    def test_empty_listing(self, dispatcher):
        listing = dispatcher.generate_dynamic_tool_list("scribe", SimpleNamespace(available_tools=[list_available_tools]))

        assert "scribe Agent" in listing
        assert "## Available Tools (0)" in listing
        assert "I currently don't have any specialized tools available" in listing


@pytest.mark.parametrize("name,source,expected", [
    ("create_plan", "local", "Planning & Memory"),
    ("compose_layout", "local", "Content Creation"),
    ("figma_export", "mcp", "Design & Layout"),
    ("fetch_url", "local", "External Services"),
    ("delegate_to_scribe", "local", "Agent Tools"),
    ("summarize", "agent", "Agent Tools"),
    ("now", "builtin", "Other"),
])
def test_categorize_tool(name, source, expected):
    assert categorize_tool(name, source) == expected
