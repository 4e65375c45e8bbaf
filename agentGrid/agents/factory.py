"""Agent factory - static dispatch table from agent type to definition.

The table is built once from the declared agent definitions and never
mutated afterwards. ``validate()`` cross-checks every reference between
definitions (delegation targets, allow-lists, lifecycle hooks) so that an
unknown agent type fails at startup instead of at call time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Iterable, List, Mapping, Optional

from langchain_core.tools import BaseTool

from .delegation import create_delegation_tool, delegation_tool_name
from .lifecycle import AgentLifecycle, missing_stages
from .runtime import ConfigurableAgent
from .schema import AgentConfig, AgentMetadata
from agentGrid.utils.errors import AgentConfigurationError, AgentInitializationError

if TYPE_CHECKING:
    from agentGrid.events.bus import EventBus
    from agentGrid.interfaces import McpToolSource, ModelInvoker
    from agentGrid.tools.registry import ToolRegistry
    from .registry import AgentRegistry

LOGGER = logging.getLogger(__name__)

LifecycleFactory = Callable[[], AgentLifecycle]


@dataclass(frozen=True)
class AgentDefinition:
    """Declared agent: its config plus the lifecycle it is built with."""

    config: AgentConfig
    lifecycle_factory: LifecycleFactory = AgentLifecycle

    @property
    def agent_type(self) -> str:
        return self.config.metadata.type


class AgentFactory:
    """Builds ConfigurableAgent instances for the declared agent types."""

    def __init__(
        self,
        definitions: Iterable[AgentDefinition],
        model_invoker: "ModelInvoker",
        *,
        tool_registry: Optional["ToolRegistry"] = None,
        mcp_source: Optional["McpToolSource"] = None,
        event_bus: Optional["EventBus"] = None,
        registry: Optional["AgentRegistry"] = None,
    ):
        table = {}
        for definition in definitions:
            if definition.agent_type in table:
                LOGGER.warning(f"Duplicate agent definition, keeping the last one: {definition.agent_type}")
            table[definition.agent_type] = definition

        self._definitions: Mapping[str, AgentDefinition] = MappingProxyType(table)
        self._model_invoker = model_invoker
        self._tool_registry = tool_registry
        self._mcp_source = mcp_source
        self._event_bus = event_bus
        self._registry = registry

    # ========== Query Methods ==========

    def supports(self, agent_type: str) -> bool:
        return agent_type in self._definitions

    def get_supported_types(self) -> List[str]:
        return list(self._definitions.keys())

    def get_definition(self, agent_type: str) -> Optional[AgentDefinition]:
        return self._definitions.get(agent_type)

    def get_agent_metadata(self, agent_type: str) -> Optional[AgentMetadata]:
        definition = self._definitions.get(agent_type)
        if definition is None:
            return None
        config = definition.config
        return config.metadata.model_copy(update={"orchestration": config.orchestration})

    def get_all_agent_metadata(self) -> List[AgentMetadata]:
        return [self.get_agent_metadata(agent_type) for agent_type in self._definitions]

    # ========== Validation ==========

    def validate(self) -> None:
        """Check every cross-definition reference.

        Raises:
            AgentConfigurationError: Unknown delegation targets, or hook
                flags without a matching lifecycle implementation
        """
        problems = []
        first_offender = None

        for agent_type, definition in self._definitions.items():
            config = definition.config
            issues = []

            for target in config.tools.agents:
                if target not in self._definitions:
                    issues.append(f"tools.agents references unknown agent type '{target}'")

            orchestration = config.orchestration
            if orchestration is not None and orchestration.allowed_delegates:
                for target in orchestration.allowed_delegates:
                    if target not in self._definitions:
                        issues.append(f"allowed_delegates references unknown agent type '{target}'")

            if config.tools.agents and (orchestration is None or not orchestration.can_delegate):
                LOGGER.warning(
                    f"Agent '{agent_type}' has delegation tools but its orchestration policy "
                    f"does not allow delegating; calls will be rejected"
                )

            missing = missing_stages(config, definition.lifecycle_factory())
            if missing:
                issues.append(f"hooks {missing} enabled without lifecycle implementation")

            if issues:
                first_offender = first_offender or agent_type
                problems.extend(f"{agent_type}: {issue}" for issue in issues)

        if problems:
            for problem in problems:
                LOGGER.error(f"Invalid agent definition - {problem}")
            raise AgentConfigurationError(
                "Invalid agent definitions:\n  " + "\n  ".join(problems),
                agent_type=first_offender,
            )

        LOGGER.info(f"Validated {len(self._definitions)} agent definitions")

    # ========== Construction ==========

    async def create_agent(self, agent_type: str, agent_id: Optional[str] = None) -> ConfigurableAgent:
        """Instantiate an agent of ``agent_type``.

        Raises:
            AgentInitializationError: Unknown type or any failure while building
        """
        definition = self._definitions.get(agent_type)
        if definition is None:
            raise AgentInitializationError(
                agent_type,
                agent_id,
                ValueError(f"Unknown agent type: {agent_type}"),
            )

        try:
            config = definition.config
            return ConfigurableAgent(
                config,
                self._model_invoker,
                agent_id=agent_id or config.metadata.id,
                lifecycle=definition.lifecycle_factory(),
                tools=self.build_tools(config),
                event_bus=self._event_bus,
            )
        except Exception as e:
            LOGGER.error(f"Failed to initialize agent {agent_type}: {e}")
            raise AgentInitializationError(agent_type, agent_id, e) from e

    def build_tools(self, config: AgentConfig) -> List[BaseTool]:
        """Resolve the tool names of ``config`` into tool instances."""
        agent_type = config.metadata.type
        tools: List[BaseTool] = []

        for name in list(config.tools.builtin) + list(config.tools.custom):
            tool = self._tool_registry.get_tool_optional(name) if self._tool_registry else None
            if tool is None:
                LOGGER.warning(f"Tool '{name}' requested by {agent_type} is not registered")
                continue
            tools.append(tool)

        for name in config.tools.mcp:
            if self._mcp_source is None or not self._mcp_source.is_tool(name):
                LOGGER.warning(f"MCP tool '{name}' requested by {agent_type} is not configured")
                continue
            tools.append(self._mcp_source.get_tool(name))

        for target in config.tools.agents:
            tools.append(self.get_delegation_tool(target))

        return tools

    def get_delegation_tool(self, target: str) -> BaseTool:
        """Delegation tool for ``target``, registered in the tool registry on first use."""
        name = delegation_tool_name(target)
        if self._tool_registry is not None:
            existing = self._tool_registry.get_tool_optional(name)
            if existing is not None:
                return existing

        tool = create_delegation_tool(target, self, self._registry)
        if self._tool_registry is not None:
            self._tool_registry.register_tool(tool, source="agent")
        return tool

    def register_delegation_tools(self) -> List[BaseTool]:
        """Create and register delegation tools for every referenced target."""
        targets = []
        for definition in self._definitions.values():
            for target in definition.config.tools.agents:
                if target not in targets:
                    targets.append(target)
        return [self.get_delegation_tool(target) for target in targets]
