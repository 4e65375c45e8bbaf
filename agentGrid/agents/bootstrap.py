"""Agent system bootstrap.

Wires the declared agents into a ready-to-use system:
scan definitions -> build factory -> register delegation tools -> validate
-> instantiate and register one agent per type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from .factory import AgentDefinition, AgentFactory
from .registry import AgentRegistry
from .scanner import scan_agent_definitions
from agentGrid.events.bus import EventBus
from agentGrid.tools import create_tool_registry
from agentGrid.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from agentGrid.interfaces import McpToolSource, ModelInvoker

LOGGER = logging.getLogger(__name__)


@dataclass
class AgentSystem:
    """Everything a flow controller needs to run the declared agents."""

    registry: AgentRegistry
    factory: AgentFactory
    tool_registry: ToolRegistry
    event_bus: EventBus
    mcp_source: Optional["McpToolSource"] = None


async def initialize_agents(
    model_invoker: "ModelInvoker",
    *,
    config_path: Optional[Path | str] = None,
    definitions: Optional[Iterable[AgentDefinition]] = None,
    registry: Optional[AgentRegistry] = None,
    tool_registry: Optional[ToolRegistry] = None,
    mcp_source: Optional["McpToolSource"] = None,
    event_bus: Optional[EventBus] = None,
) -> AgentSystem:
    """Build, validate and register every declared agent.

    Args:
        model_invoker: Invoker shared by all agents
        config_path: agents.yaml to scan when ``definitions`` is not given
        definitions: Explicit agent definitions (skips scanning)
        registry: Registry to fill (default: new one)
        tool_registry: Tool registry (default: built-in tools only)
        mcp_source: MCP tools available to agent configs
        event_bus: Bus receiving the agents' configured events

    Returns:
        The wired AgentSystem

    Raises:
        AgentConfigurationError: Definitions reference unknown agents or
            enable hooks their lifecycle does not implement
        AgentInitializationError: An agent failed to instantiate
    """
    if definitions is None:
        definitions = scan_agent_definitions(config_path)

    registry = registry if registry is not None else AgentRegistry()
    tool_registry = tool_registry if tool_registry is not None else create_tool_registry()
    event_bus = event_bus if event_bus is not None else EventBus()

    factory = AgentFactory(
        definitions,
        model_invoker,
        tool_registry=tool_registry,
        mcp_source=mcp_source,
        event_bus=event_bus,
        registry=registry,
    )
    factory.validate()

    delegation_tools = factory.register_delegation_tools()
    LOGGER.info(f"Registered {len(delegation_tools)} delegation tools")

    for agent_type in factory.get_supported_types():
        agent = await factory.create_agent(agent_type)
        registry.register(agent)
        LOGGER.info(f"Registered agent: {agent_type}")

    LOGGER.info(f"Agent system ready: {len(registry.get_all_types())} agents")
    return AgentSystem(
        registry=registry,
        factory=factory,
        tool_registry=tool_registry,
        event_bus=event_bus,
        mcp_source=mcp_source,
    )


def get_agent_system_status(registry: AgentRegistry) -> Dict[str, Any]:
    """Totals, capability list and delegation graph of the registered agents."""
    graph = registry.get_agent_graph()
    return {
        "total_agents": len(registry.get_all_types()),
        "agent_types": registry.get_all_types(),
        "capabilities": registry.get_all_capabilities(),
        "stats": registry.get_stats(),
        "graph": {
            agent_type: {"can_call": node.can_call, "can_be_called_by": node.can_be_called_by}
            for agent_type, node in graph.items()
        },
    }
