"""Configurable agent runtime.

``ConfigurableAgent`` turns a static AgentConfig plus a lifecycle observer into
a callable unit: lifecycle-governed, retry-bounded model invocation.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Iterable, List, Optional

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_core.tools import BaseTool

from .lifecycle import AgentLifecycle, HookContext, missing_stages
from .schema import AgentConfig, AgentInput, AgentMetadata, AgentResponse, ValidationResult, coerce_response
from agentGrid.utils.errors import AgentConfigurationError, AgentExecutionError
from agentGrid.utils.logging_utils import log_agent_response, log_error

if TYPE_CHECKING:
    from agentGrid.events.bus import EventBus
    from agentGrid.flow.schema import TraceContext
    from agentGrid.interfaces import ModelInvoker

LOGGER = logging.getLogger(__name__)


class ConfigurableAgent:
    """Agent driven entirely by its AgentConfig.

    Attributes:
        id: Instance identifier
        type: Agent type (registry key)
        config: Declarative configuration, read-only at runtime
        lifecycle: Lifecycle observer receiving every stage of act()
    """

    def __init__(
        self,
        config: AgentConfig,
        model_invoker: "ModelInvoker",
        *,
        agent_id: Optional[str] = None,
        lifecycle: Optional[AgentLifecycle] = None,
        tools: Optional[Iterable[BaseTool]] = None,
        event_bus: Optional["EventBus"] = None,
    ):
        self.config = config
        self.type = config.metadata.type
        self.id = agent_id or config.metadata.id
        self.lifecycle = lifecycle or AgentLifecycle()
        self._model_invoker = model_invoker
        self._tools: tuple[BaseTool, ...] = tuple(tools or ())
        self._event_bus = event_bus

        missing = missing_stages(config, self.lifecycle)
        if missing:
            raise AgentConfigurationError(
                f"Agent '{self.type}' enables hooks {missing} but "
                f"{type(self.lifecycle).__name__} does not implement them",
                agent_type=self.type,
                agent_id=self.id,
            )

        LOGGER.debug(
            f"Built agent {self.type}:{self.id} with {len(self._tools)} tools "
            f"(max_retries={config.behavior.max_retries})"
        )

    # ========== Introspection ==========

    @property
    def available_tools(self) -> List[BaseTool]:
        return list(self._tools)

    def get_tool_names(self) -> List[str]:
        return [tool.name for tool in self._tools]

    def get_metadata(self) -> AgentMetadata:
        """Metadata enriched with the orchestration policy and config version."""
        return self.config.metadata.model_copy(update={
            "config_version": self.config.metadata.version,
            "orchestration": self.config.orchestration,
        })

    # ========== Execution ==========

    async def act(self, agent_input: AgentInput) -> AgentResponse:
        """Run one lifecycle-governed model call with bounded retries.

        Args:
            agent_input: Conversation, optional override tools and context

        Returns:
            The (possibly transformed) response. When validation still fails on
            the last attempt the response is returned with ``validated=False``.

        Raises:
            Exception: The last model/stage error once retries are exhausted
                and the on_error stage did not absorb it.
        """
        ctx = HookContext(
            agent_id=self.id,
            agent_type=self.type,
            config=self.config,
            progress=agent_input.progress,
        )

        hooks = self.config.hooks
        if hooks.transform_input:
            agent_input = await self.lifecycle.transform_input(agent_input, ctx)
        if hooks.before_act:
            agent_input = await self.lifecycle.before_act(agent_input, ctx)

        behavior = self.config.behavior
        max_retries = behavior.max_retries
        last_validation: Optional[ValidationResult] = None

        for attempt in range(1, max_retries + 1):
            ctx.attempt = attempt
            try:
                messages = self._compose_messages(agent_input, last_validation)
                tools = agent_input.tools or list(self._tools)

                LOGGER.debug(
                    f"{self.type} attempt {attempt}/{max_retries}: "
                    f"{len(messages)} messages, {len(tools)} tools"
                )
                response = await self._model_invoker.invoke(
                    messages,
                    tools,
                    trace_context=self._trace_context(agent_input),
                    response_format=behavior.response_format,
                )
                if hooks.after_response:
                    response = await self.lifecycle.after_response(response, agent_input, ctx)

                if behavior.validate_response and hooks.validate_response:
                    validation = await self.lifecycle.validate_response(response, ctx)
                    if not validation.is_valid:
                        last_validation = validation
                        if attempt < max_retries:
                            LOGGER.warning(
                                f"{self.type} response failed validation (attempt {attempt}/{max_retries}): "
                                f"{validation.errors}"
                            )
                            continue

                        LOGGER.warning(
                            f"{self.type} response still invalid after {max_retries} attempts, "
                            f"returning it unvalidated: {validation.errors}"
                        )
                        response.validated = False
                        response.validation_errors = list(validation.errors)

                self._emit_events(response, agent_input, attempt, max_retries)

                if hooks.transform_output:
                    response = await self.lifecycle.transform_output(response, ctx)
                if response.content:
                    log_agent_response(LOGGER, self.type, response.content)
                return response

            except Exception as e:
                log_error(LOGGER, e, context=f"{self.type} attempt {attempt}/{max_retries}")

                handled = await self.lifecycle.on_error(e, attempt, ctx) if hooks.on_error else None
                if handled:
                    LOGGER.info(f"{self.type} on_error stage handled: {type(e).__name__}")
                    result, _ = coerce_response(handled)
                    return result

                if attempt >= max_retries:
                    raise

                LOGGER.warning(f"{self.type} retrying after error ({attempt}/{max_retries})")

        raise AgentExecutionError(
            f"Failed to get response from {self.type} after {max_retries} attempts",
            agent_type=self.type,
            agent_id=self.id,
        )

    # ========== Helpers ==========

    def _compose_messages(
        self,
        agent_input: AgentInput,
        last_validation: Optional[ValidationResult],
    ) -> List[BaseMessage]:
        messages: List[BaseMessage] = [SystemMessage(content=self.config.prompts.system)]
        messages.extend(agent_input.messages)

        template = self.config.prompts.error_correction
        if last_validation is not None and not last_validation.is_valid and template:
            errors = json.dumps(last_validation.errors, ensure_ascii=False)
            messages.append(HumanMessage(content=template.replace("{errors}", errors)))

        return messages

    def _trace_context(self, agent_input: AgentInput) -> Optional["TraceContext"]:
        if agent_input.context is None:
            return None
        return agent_input.context.trace_context()

    def _emit_events(self, response: AgentResponse, agent_input: AgentInput, attempt: int, total: int) -> None:
        if self._event_bus is None or not self.config.behavior.emit_events:
            return

        payload = {
            "agent_id": self.id,
            "agent_type": self.type,
            "response": response.to_dict(),
            "input": agent_input.describe(),
            "attempt": attempt,
            "total_attempts": total,
        }
        for event_name in self.config.behavior.emit_events:
            self._event_bus.emit(event_name, payload)

    def __repr__(self) -> str:
        return f"ConfigurableAgent(type={self.type!r}, id={self.id!r})"
