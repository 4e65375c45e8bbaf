"""Agent runtime, registry, delegation and bootstrap."""

from .bootstrap import AgentSystem, get_agent_system_status, initialize_agents
from .delegation import (
    DelegationContext,
    create_delegation_tool,
    create_delegation_tools,
    current_delegation,
    delegation_scope,
    delegation_tool_name,
)
from .factory import AgentDefinition, AgentFactory
from .lifecycle import AgentLifecycle, HookContext
from .registry import AgentGraphNode, AgentRegistry, RegistryEntry
from .runtime import ConfigurableAgent
from .scanner import load_agents_config, parse_agent_definition, scan_agent_definitions
from .schema import (
    AgentConfig,
    AgentInput,
    AgentMetadata,
    AgentOrchestration,
    AgentResponse,
    ResponseFormat,
    ToolCall,
    ValidationResult,
)

__all__ = [
    "AgentSystem",
    "initialize_agents",
    "get_agent_system_status",
    "DelegationContext",
    "create_delegation_tool",
    "create_delegation_tools",
    "current_delegation",
    "delegation_scope",
    "delegation_tool_name",
    "AgentDefinition",
    "AgentFactory",
    "AgentLifecycle",
    "HookContext",
    "AgentGraphNode",
    "AgentRegistry",
    "RegistryEntry",
    "ConfigurableAgent",
    "load_agents_config",
    "parse_agent_definition",
    "scan_agent_definitions",
    "AgentConfig",
    "AgentInput",
    "AgentMetadata",
    "AgentOrchestration",
    "AgentResponse",
    "ResponseFormat",
    "ToolCall",
    "ValidationResult",
]
