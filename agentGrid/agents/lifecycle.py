"""Agent lifecycle observer.

Every stage of ``ConfigurableAgent.act()`` is routed through one
``AgentLifecycle`` instance. The base class implements each stage as a no-op,
so an agent only overrides the stages it cares about. The ``hooks`` section
of an AgentConfig switches each stage on; a stage whose flag is off is never
called, overridden or not. Flags are cross-checked against the overridden
stages when the agent is built.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional

from .schema import AgentConfig, AgentInput, AgentResponse, ValidationResult

if TYPE_CHECKING:
    from agentGrid.interfaces import ProgressSink

LOGGER = logging.getLogger(__name__)

STAGES = (
    "transform_input",
    "before_act",
    "after_response",
    "validate_response",
    "on_error",
    "transform_output",
)


@dataclass
class HookContext:
    """Read-only view of the running agent handed to every stage."""

    agent_id: str
    agent_type: str
    config: AgentConfig
    attempt: int = 0
    progress: Optional["ProgressSink"] = None


class AgentLifecycle:
    """Default lifecycle: every stage passes its input through unchanged."""

    async def transform_input(self, agent_input: AgentInput, ctx: HookContext) -> AgentInput:
        return agent_input

    async def before_act(self, agent_input: AgentInput, ctx: HookContext) -> AgentInput:
        return agent_input

    async def after_response(
        self, response: AgentResponse, agent_input: AgentInput, ctx: HookContext
    ) -> AgentResponse:
        return response

    async def validate_response(self, response: AgentResponse, ctx: HookContext) -> ValidationResult:
        return ValidationResult(is_valid=True)

    async def on_error(self, error: Exception, attempt: int, ctx: HookContext) -> Optional[Any]:
        """Return a truthy result to absorb the error; None lets the retry loop continue."""
        return None

    async def transform_output(self, response: AgentResponse, ctx: HookContext) -> AgentResponse:
        return response


def overridden_stages(lifecycle: AgentLifecycle) -> List[str]:
    """List the stages a lifecycle implements beyond the no-op defaults."""
    cls = type(lifecycle)
    return [
        stage for stage in STAGES
        if getattr(cls, stage) is not getattr(AgentLifecycle, stage)
    ]


def missing_stages(config: AgentConfig, lifecycle: AgentLifecycle) -> List[str]:
    """Stages enabled in ``config.hooks`` that ``lifecycle`` does not implement."""
    implemented = set(overridden_stages(lifecycle))
    return [stage for stage in config.hooks.enabled_stages() if stage not in implemented]
