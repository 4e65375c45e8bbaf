"""Delegation tools - expose registered agents as callable tools.

Each target agent type gets a ``delegate_to_{type}`` tool. Calling it builds
the target through the agent factory and runs it on a fresh conversation
containing only the delegated task.

The active delegation chain travels in a ContextVar, so every nested call
sees its parent's depth and path:
- a target already in the path is rejected (cycle)
- a chain longer than the configured maximum is rejected (depth)
- a caller whose orchestration policy forbids the target is rejected
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple

from langchain_core.messages import HumanMessage
from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from .schema import AgentInput, AgentResponse
from agentGrid.config.settings import get_settings
from agentGrid.utils.errors import (
    AgentInitializationError,
    DelegationCycleError,
    DelegationDepthError,
    DelegationError,
    DelegationPermissionError,
)

if TYPE_CHECKING:
    from .factory import AgentFactory
    from .registry import AgentRegistry

LOGGER = logging.getLogger(__name__)

DELEGATION_TOOL_PREFIX = "delegate_to_"


@dataclass(frozen=True)
class DelegationContext:
    """One link of a delegation chain.

    Attributes:
        from_agent: Agent type that issued the current call
        depth: Number of delegation hops from the root (root = 0)
        root_execution_id: Execution record of the top-level flow, if any
        path: Agent types visited so far, root first
        shared_context: Context dict handed to the current agent
    """

    from_agent: str
    depth: int = 0
    root_execution_id: Optional[int] = None
    path: Tuple[str, ...] = ()
    shared_context: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def root(cls, agent_type: str, execution_id: Optional[int] = None) -> "DelegationContext":
        return cls(from_agent=agent_type, depth=0, root_execution_id=execution_id, path=(agent_type,))

    @property
    def current_agent(self) -> Optional[str]:
        return self.path[-1] if self.path else None

    def descend(self, target: str, max_depth: int, shared_context: Optional[Dict[str, Any]] = None) -> "DelegationContext":
        """Return the context for a call into ``target``.

        Raises:
            DelegationCycleError: ``target`` is already in the path
            DelegationDepthError: the new depth would exceed ``max_depth``
        """
        if target in self.path:
            raise DelegationCycleError(target, self.path)
        depth = self.depth + 1
        if depth > max_depth:
            raise DelegationDepthError(target, depth, max_depth)
        return replace(
            self,
            from_agent=self.current_agent or self.from_agent,
            depth=depth,
            path=self.path + (target,),
            shared_context=dict(shared_context or {}),
        )


_current_delegation: ContextVar[Optional[DelegationContext]] = ContextVar("current_delegation", default=None)


def current_delegation() -> Optional[DelegationContext]:
    return _current_delegation.get()


@contextmanager
def delegation_scope(context: DelegationContext) -> Iterator[DelegationContext]:
    """Make ``context`` the active delegation context for the enclosed block."""
    token = _current_delegation.set(context)
    try:
        yield context
    finally:
        _current_delegation.reset(token)


class DelegationArgs(BaseModel):
    task: str = Field(description="The specific task to delegate")
    context: Optional[Dict[str, Any]] = Field(
        default=None, description="Additional context for the delegated agent"
    )
    reasoning: str = Field(description="Why this agent is best suited for the task")


def delegation_tool_name(agent_type: str) -> str:
    return f"{DELEGATION_TOOL_PREFIX}{agent_type}"


def is_delegation_tool(tool_name: str) -> bool:
    return tool_name.startswith(DELEGATION_TOOL_PREFIX)


def normalize_delegation_result(result: Any) -> str:
    """Plain-string view of a delegated agent's result."""
    if isinstance(result, AgentResponse):
        if result.content:
            return result.content
        return result.to_json()
    if isinstance(result, str):
        return result
    if isinstance(result, dict) and isinstance(result.get("content"), str):
        return result["content"]
    return json.dumps(result, ensure_ascii=False, default=str)


def create_delegation_tool(
    agent_type: str,
    factory: "AgentFactory",
    registry: Optional["AgentRegistry"] = None,
    max_depth: Optional[int] = None,
) -> BaseTool:
    """Build the ``delegate_to_{agent_type}`` tool.

    Args:
        agent_type: Target agent type
        factory: Factory used to instantiate the target on every call
        registry: Registry consulted for the caller's delegation policy
        max_depth: Hard cap on chain length (default: settings value)

    Returns:
        StructuredTool whose coroutine returns the target's response text

    Raises:
        AgentInitializationError: ``agent_type`` is unknown to the factory
    """
    if not factory.supports(agent_type):
        raise AgentInitializationError(
            agent_type,
            original_error=ValueError(f"Unknown agent type: {agent_type}"),
        )

    metadata = factory.get_agent_metadata(agent_type)
    if max_depth is None:
        max_depth = get_settings().orchestration.max_delegation_depth

    async def _delegate(task: str, reasoning: str, context: Optional[Dict[str, Any]] = None) -> str:
        parent = current_delegation()
        caller = parent.current_agent if parent else None

        if registry is not None and caller is not None and registry.has(caller):
            if not registry.can_call(caller, agent_type):
                raise DelegationPermissionError(caller, agent_type)

        limit = _resolve_max_depth(caller, registry, max_depth)
        base = parent or DelegationContext(from_agent=caller or "external")
        child = base.descend(agent_type, limit, shared_context=context)

        LOGGER.info(f"Delegating to {agent_type} (depth {child.depth}/{limit}, path: {' -> '.join(child.path)})")
        LOGGER.debug(f"  Task: {task}")
        LOGGER.debug(f"  Reasoning: {reasoning}")

        try:
            agent = await factory.create_agent(agent_type)
            agent_input = AgentInput(
                messages=[HumanMessage(content=task)],
                delegation=child,
                shared_context=dict(context or {}),
            )
            with delegation_scope(child):
                result = await agent.act(agent_input)
        except DelegationError:
            raise
        except Exception as e:
            LOGGER.error(f"Delegation to {agent_type} failed: {e}")
            raise DelegationError(agent_type, e) from e

        return normalize_delegation_result(result)

    return StructuredTool.from_function(
        coroutine=_delegate,
        name=delegation_tool_name(agent_type),
        description=f"Delegate task to {metadata.name}: {metadata.description}",
        args_schema=DelegationArgs,
    )


def create_delegation_tools(
    agent_types: List[str],
    factory: "AgentFactory",
    registry: Optional["AgentRegistry"] = None,
) -> List[BaseTool]:
    """Delegation tools for several targets; unknown types raise."""
    tools = [create_delegation_tool(agent_type, factory, registry) for agent_type in agent_types]
    LOGGER.info(f"Created {len(tools)} delegation tools: {[t.name for t in tools]}")
    return tools


def _resolve_max_depth(caller: Optional[str], registry: Optional["AgentRegistry"], default: int) -> int:
    if caller is None or registry is None:
        return default
    config = registry.get_config(caller)
    if config is None or config.orchestration is None:
        return default
    return min(default, config.orchestration.max_delegation_depth)
