"""Agent Registry - capability index and delegation permission graph.

Supports lookups by type, capability queries, policy-aware discovery and the
agent-to-agent delegation graph. All queries are total: a miss returns None
or an empty collection, never an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from .schema import AgentConfig, AgentMetadata

LOGGER = logging.getLogger(__name__)


@dataclass
class RegistryEntry:
    """Live agent instance paired with its config and derived metadata."""

    agent: Any
    metadata: AgentMetadata
    config: Optional[AgentConfig] = None


@dataclass
class AgentGraphNode:
    can_call: List[str] = field(default_factory=list)
    can_be_called_by: List[str] = field(default_factory=list)


class AgentRegistry:
    """Agent registry keyed by agent type.

    The capability index is derived state: it is rebuilt from the entry
    snapshot on every registration so a re-registered agent never keeps
    capabilities it no longer declares.
    """

    def __init__(self):
        self._entries: Dict[str, RegistryEntry] = {}
        self._capability_index: Dict[str, Set[str]] = {}

    # ========== Registration Methods ==========

    def register(self, agent: Any, config: Optional[AgentConfig] = None) -> None:
        """Register (or replace) an agent under ``agent.type``.

        Args:
            agent: Agent instance exposing ``type`` (and optionally
                ``get_metadata()`` / ``config``)
            config: Agent config; defaults to ``agent.config`` when present
        """
        agent_type = agent.type
        if config is None:
            config = getattr(agent, "config", None)

        metadata = self._derive_metadata(agent, config)
        if agent_type in self._entries:
            LOGGER.info(f"Re-registering agent type: {agent_type}")

        self._entries[agent_type] = RegistryEntry(agent=agent, metadata=metadata, config=config)
        self._rebuild_capability_index()

        LOGGER.info(
            f"Registered agent: {agent_type} "
            f"(capabilities: {', '.join(metadata.capabilities) or 'none'})"
        )

    def clear(self) -> None:
        self._entries.clear()
        self._capability_index.clear()
        LOGGER.debug("Agent registry cleared")

    # ========== Query Methods (by type) ==========

    def get(self, agent_type: str) -> Optional[Any]:
        entry = self._entries.get(agent_type)
        return entry.agent if entry else None

    def get_config(self, agent_type: str) -> Optional[AgentConfig]:
        entry = self._entries.get(agent_type)
        return entry.config if entry else None

    def get_metadata(self, agent_type: str) -> Optional[AgentMetadata]:
        entry = self._entries.get(agent_type)
        return entry.metadata if entry else None

    def has(self, agent_type: str) -> bool:
        return agent_type in self._entries

    def get_all_types(self) -> List[str]:
        return list(self._entries.keys())

    def get_all(self) -> Dict[str, Any]:
        return {agent_type: entry.agent for agent_type, entry in self._entries.items()}

    def get_all_metadata(self) -> List[AgentMetadata]:
        return [entry.metadata for entry in self._entries.values()]

    # ========== Query Methods (by capability) ==========

    def find_by_capability(self, capability: str) -> Set[str]:
        """Types declaring ``capability`` (empty set for unknown tags)."""
        return set(self._capability_index.get(capability, set()))

    def find_by_capabilities(self, capabilities: Iterable[str]) -> Set[str]:
        """Types declaring every capability in ``capabilities``.

        With no capabilities requested every registered type matches.
        """
        capabilities = list(capabilities)
        if not capabilities:
            return set(self._entries.keys())

        result = self.find_by_capability(capabilities[0])
        for capability in capabilities[1:]:
            result &= self.find_by_capability(capability)
        return result

    def get_all_capabilities(self) -> List[str]:
        return sorted(self._capability_index.keys())

    def discover(
        self,
        capabilities: Optional[Iterable[str]] = None,
        exclude_types: Optional[Iterable[str]] = None,
        include_callable: Optional[bool] = None,
        include_orchestrators: Optional[bool] = None,
    ) -> List[str]:
        """Filter registered types; all given filters are ANDed.

        Args:
            capabilities: Required capability tags (intersection)
            exclude_types: Types to leave out
            include_callable: When set, keep agents whose ``callable`` equals it
            include_orchestrators: When set, keep agents whose ``can_delegate`` equals it

        Returns:
            Matching agent types in registration order
        """
        candidates = self.find_by_capabilities(capabilities or [])
        excluded = set(exclude_types or [])

        result = []
        for agent_type in self._entries:
            if agent_type not in candidates or agent_type in excluded:
                continue

            if include_callable is not None or include_orchestrators is not None:
                config = self.get_config(agent_type)
                orchestration = config.orchestration if config else None
                if orchestration is None:
                    continue
                if include_callable is not None and orchestration.callable != include_callable:
                    continue
                if include_orchestrators is not None and orchestration.can_delegate != include_orchestrators:
                    continue

            result.append(agent_type)
        return result

    def get_best_agent(
        self,
        capabilities: Iterable[str],
        preferred_types: Optional[Iterable[str]] = None,
        exclude_types: Optional[Iterable[str]] = None,
    ) -> Optional[str]:
        """Pick one agent declaring every capability in ``capabilities``.

        The first candidate that is also preferred wins, otherwise the first
        candidate. No orchestration policy is applied.
        """
        candidates = self.discover(capabilities=capabilities, exclude_types=exclude_types)
        if not candidates:
            return None

        preferred = set(preferred_types or [])
        for agent_type in candidates:
            if agent_type in preferred:
                return agent_type
        return candidates[0]

    # ========== Delegation Graph ==========

    def can_call(self, caller_type: str, callee_type: str) -> bool:
        config = self.get_config(caller_type)
        orchestration = config.orchestration if config else None
        if orchestration is None or not orchestration.can_delegate:
            return False
        if orchestration.allowed_delegates is None:
            return True
        return callee_type in orchestration.allowed_delegates

    def get_agent_graph(self) -> Dict[str, AgentGraphNode]:
        """Delegation edges computed from the current registry state."""
        graph = {agent_type: AgentGraphNode() for agent_type in self._entries}

        for agent_type in self._entries:
            config = self.get_config(agent_type)
            orchestration = config.orchestration if config else None
            if orchestration is None or not orchestration.can_delegate:
                continue

            if orchestration.allowed_delegates is not None:
                delegates = list(orchestration.allowed_delegates)
            else:
                delegates = [other for other in self._entries if other != agent_type]

            graph[agent_type].can_call = delegates
            for delegate in delegates:
                if delegate in graph:
                    graph[delegate].can_be_called_by.append(agent_type)

        return graph

    # ========== Catalog / Stats ==========

    def get_catalog_text(self) -> str:
        """Markdown list of registered agents (for system prompts)."""
        if not self._entries:
            return ""

        lines = ["# Available Agents\n"]
        for entry in self._entries.values():
            meta = entry.metadata
            caps = f" ({', '.join(meta.capabilities)})" if meta.capabilities else ""
            lines.append(f"- **{meta.type}**: {meta.description}{caps}")
        return "\n".join(lines)

    def get_stats(self) -> Dict[str, int]:
        orchestrators = self.discover(include_orchestrators=True)
        return {
            "total_agents": len(self._entries),
            "capabilities": len(self._capability_index),
            "callable": len(self.discover(include_callable=True)),
            "orchestrators": len(orchestrators),
        }

    # ========== Internals ==========

    @staticmethod
    def _derive_metadata(agent: Any, config: Optional[AgentConfig]) -> AgentMetadata:
        get_metadata = getattr(agent, "get_metadata", None)
        if callable(get_metadata):
            return get_metadata()
        if config is not None:
            return config.metadata.model_copy(update={"orchestration": config.orchestration})
        return AgentMetadata(
            id=getattr(agent, "id", agent.type),
            type=agent.type,
            name=agent.type,
        )

    def _rebuild_capability_index(self) -> None:
        index: Dict[str, Set[str]] = {}
        for agent_type, entry in self._entries.items():
            for capability in entry.metadata.capabilities:
                index.setdefault(capability, set()).add(agent_type)
        self._capability_index = index
