"""Unit tests for delegation tools: construction, execution and chain enforcement."""

import json
from types import SimpleNamespace

import pytest
from langchain_core.messages import HumanMessage, SystemMessage

from agentGrid.agents.delegation import (
    DelegationContext,
    create_delegation_tool,
    current_delegation,
    delegation_scope,
    delegation_tool_name,
    is_delegation_tool,
    normalize_delegation_result,
)
from agentGrid.agents.factory import AgentDefinition, AgentFactory
from agentGrid.agents.lifecycle import AgentLifecycle
from agentGrid.agents.registry import AgentRegistry
from agentGrid.agents.schema import AgentResponse, ToolCall
from agentGrid.utils.errors import (
    AgentInitializationError,
    DelegationCycleError,
    DelegationDepthError,
    DelegationError,
    DelegationPermissionError,
    DelegationRejectedError,
)

SEEN = []


class CapturingLifecycle(AgentLifecycle):
    async def before_act(self, agent_input, ctx):
        SEEN.append((agent_input, current_delegation()))
        return agent_input


@pytest.fixture
def definitions(make_config):
    SEEN.clear()
    return [
        AgentDefinition(make_config(
            "rephraser",
            metadata={"name": "Rephraser", "description": "Makes text readable"},
            orchestration={"can_delegate": False},
            hooks={"before_act": True},
        ), CapturingLifecycle),
        AgentDefinition(make_config(
            "scribe",
            orchestration={"can_delegate": True, "allowed_delegates": ["rephraser"]},
            tools={"agents": ["rephraser"]},
        )),
        AgentDefinition(make_config(
            "general",
            orchestration={"can_delegate": True},
            tools={"agents": ["scribe", "rephraser"]},
        )),
    ]


@pytest.fixture
def registry(definitions):
    registry = AgentRegistry()
    for definition in definitions:
        config = definition.config
        registry.register(SimpleNamespace(type=config.metadata.type, id=config.metadata.id, config=config))
    return registry


@pytest.fixture
def factory(definitions, model_invoker, registry):
    return AgentFactory(definitions, model_invoker, registry=registry)


def _args(task="Make this clearer", **extra):
    return {"task": task, "reasoning": "specialist", **extra}


class TestToolConstruction:

    def test_unknown_target_names_the_type(self, factory):
        with pytest.raises(AgentInitializationError, match="ghost") as exc_info:
            create_delegation_tool("ghost", factory)
        assert exc_info.value.agent_type == "ghost"

    def test_name_and_description(self, factory):
        tool = create_delegation_tool("rephraser", factory)

        assert tool.name == "delegate_to_rephraser"
        assert tool.description == "Delegate task to Rephraser: Makes text readable"
        assert set(tool.args_schema.model_json_schema()["required"]) == {"task", "reasoning"}

    def test_name_helpers(self):
        assert delegation_tool_name("scribe") == "delegate_to_scribe"
        assert is_delegation_tool("delegate_to_scribe")
        assert not is_delegation_tool("http_fetch")


class TestExecution:

    @pytest.mark.asyncio
    async def test_target_sees_only_the_task(self, factory, model_invoker):
        tool = create_delegation_tool("rephraser", factory)

        result = await tool.ainvoke(_args(context={"tone": "formal"}))

        assert result == "ok"
        messages = model_invoker.calls[0]["messages"]
        assert len(messages) == 2
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert messages[1].content == "Make this clearer"

        agent_input, active = SEEN[0]
        assert agent_input.shared_context == {"tone": "formal"}
        assert agent_input.delegation.depth == 1
        assert active.path == ("rephraser",)
        assert active.from_agent == "external"

    @pytest.mark.asyncio
    async def test_child_context_extends_parent_path(self, factory, registry):
        tool = create_delegation_tool("rephraser", factory, registry)

        with delegation_scope(DelegationContext.root("scribe", execution_id=7)):
            await tool.ainvoke(_args())

        _, active = SEEN[0]
        assert active.path == ("scribe", "rephraser")
        assert active.from_agent == "scribe"
        assert active.depth == 1
        assert active.root_execution_id == 7
        assert current_delegation() is None

    @pytest.mark.asyncio
    async def test_target_failure_is_wrapped(self, definitions, make_invoker, registry):
        factory = AgentFactory(definitions, make_invoker(default=RuntimeError("model exploded")), registry=registry)
        tool = create_delegation_tool("rephraser", factory, registry)

        with pytest.raises(DelegationError, match="model exploded") as exc_info:
            await tool.ainvoke(_args())
        assert not isinstance(exc_info.value, DelegationRejectedError)
        assert exc_info.value.agent_type == "rephraser"


class TestEnforcement:

    @pytest.mark.asyncio
    async def test_permission_rejected(self, factory, registry, model_invoker):
        tool = create_delegation_tool("general", factory, registry)

        with delegation_scope(DelegationContext.root("scribe")):
            with pytest.raises(DelegationPermissionError, match="scribe"):
                await tool.ainvoke(_args())
        assert model_invoker.call_count == 0

    @pytest.mark.asyncio
    async def test_cycle_rejected(self, factory, registry, model_invoker):
        tool = create_delegation_tool("general", factory, registry)

        with delegation_scope(DelegationContext.root("general")):
            with pytest.raises(DelegationCycleError, match="general -> general"):
                await tool.ainvoke(_args())
        assert model_invoker.call_count == 0

    @pytest.mark.asyncio
    async def test_depth_rejected(self, factory, registry, model_invoker):
        tool = create_delegation_tool("rephraser", factory, registry, max_depth=1)
        parent = DelegationContext.root("general").descend("scribe", max_depth=3)

        with delegation_scope(parent):
            with pytest.raises(DelegationDepthError) as exc_info:
                await tool.ainvoke(_args())
        assert exc_info.value.depth == 2
        assert exc_info.value.max_depth == 1
        assert model_invoker.call_count == 0

    @pytest.mark.asyncio
    async def test_zero_depth_disables_delegation(self, factory, registry, model_invoker, monkeypatch):
        monkeypatch.setenv("ORCHESTRATION_MAX_DELEGATION_DEPTH", "5")
        tool = create_delegation_tool("rephraser", factory, registry, max_depth=0)

        with delegation_scope(DelegationContext.root("general")):
            with pytest.raises(DelegationDepthError) as exc_info:
                await tool.ainvoke(_args())
        assert exc_info.value.max_depth == 0
        assert model_invoker.call_count == 0

    def test_descend_rejects_revisit(self):
        context = DelegationContext.root("general").descend("scribe", max_depth=3)

        with pytest.raises(DelegationCycleError):
            context.descend("general", max_depth=3)


class TestNormalizeResult:

    def test_response_with_content(self):
        assert normalize_delegation_result(AgentResponse(content="done")) == "done"

    def test_response_without_content_is_serialized(self):
        response = AgentResponse(tool_calls=[ToolCall(id="c1", name="now")])

        data = json.loads(normalize_delegation_result(response))

        assert data["tool_calls"] == [{"id": "c1", "name": "now", "args": {}}]

    def test_plain_values(self):
        assert normalize_delegation_result("text") == "text"
        assert normalize_delegation_result({"content": "hi"}) == "hi"
        assert normalize_delegation_result({"a": 1}) == '{"a": 1}'
