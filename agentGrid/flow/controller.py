"""Autonomous flow controller.

Drives a ConfigurableAgent through think -> act -> evaluate iterations:

- every iteration re-reads the conversation history from the store
- free-text replies are persisted, evaluated and streamed
- the first tool call of a reply is persisted, dispatched, rephrased by the
  rephraser agent and evaluated
- the evaluator decides whether the flow stops early

The iterations themselves run as the LangGraph state machine built in
``graph.py``; this class owns the per-iteration work the graph nodes call.
Progress goes to the sink carried on the FlowContext through a per-flow
ProgressReporter, which also records execution steps.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from .graph import FlowState, build_flow_graph
from .progress import ProgressReporter
from .schema import FlowContext, FlowOptions, FlowStepResult, ProgressType, ToolExecutionResult
from agentGrid.agents.delegation import DelegationContext, delegation_scope
from agentGrid.agents.schema import AgentInput, AgentResponse, coerce_response
from agentGrid.config.settings import Settings, get_settings
from agentGrid.evaluation.evaluator import EvaluationRequest
from agentGrid.utils.errors import handle_model_error
from agentGrid.utils.logging_utils import log_error
from agentGrid.utils.message_utils import build_attachment_message

if TYPE_CHECKING:
    from agentGrid.agents.factory import AgentFactory
    from agentGrid.agents.registry import AgentRegistry
    from agentGrid.interfaces import ConversationStore, Evaluator, ExecutionStore
    from .dispatch import ToolDispatcher

LOGGER = logging.getLogger(__name__)


class AgentFlowController:
    """Runs autonomous multi-iteration flows for one agent at a time."""

    def __init__(
        self,
        conversation_store: "ConversationStore",
        evaluator: "Evaluator",
        dispatcher: "ToolDispatcher",
        registry: "AgentRegistry",
        factory: Optional["AgentFactory"] = None,
        execution_store: Optional["ExecutionStore"] = None,
        settings: Optional[Settings] = None,
    ):
        self.conversation_store = conversation_store
        self.evaluator = evaluator
        self.dispatcher = dispatcher
        self.registry = registry
        self.factory = factory
        self.execution_store = execution_store
        self.settings = settings or get_settings()
        self._graph = build_flow_graph(self)

    # ========== Flow ==========

    async def execute_autonomous_flow(
        self,
        context: FlowContext,
        options: Optional[FlowOptions] = None,
    ) -> Optional[str]:
        """Run the agent until the evaluator stops it or the request budget is spent.

        Args:
            context: Flow context; ``execution_id`` is filled in here
            options: Per-call overrides of autonomous mode, budget and cancellation

        Returns:
            The final conclusion, or None if no iteration produced one

        Raises:
            Exception: Any agent, tool or evaluator failure, after the
                execution record is marked failed and an error event is sent
        """
        options = options or FlowOptions()
        defaults = self.settings.orchestration
        autonomous = defaults.autonomous_mode if options.autonomous_mode is None else options.autonomous_mode
        max_requests = options.max_requests or defaults.max_requests

        reporter = ProgressReporter(context.send, self.execution_store)
        await self._create_execution(context, autonomous)
        reporter.execution_id = context.execution_id

        state: FlowState = {
            "context": context,
            "reporter": reporter,
            "stream_state": options.stream_state,
            "autonomous": autonomous,
            "requests_count": 0,
            "max_requests": max_requests,
            "should_break": False,
            "conclusion": None,
        }
        # One superstep per iteration plus max_requests and finish
        config = {"recursion_limit": max_requests + 5}

        final_state = state
        try:
            async for state_snapshot in self._graph.astream(state, config=config, stream_mode="values"):
                final_state = state_snapshot

        except Exception as e:
            requests_count = final_state.get("requests_count", 0)
            log_error(LOGGER, e, context=f"{context.agent_type} flow")
            await self.update_execution(context, status="failed", total_steps=requests_count, error_message=str(e))
            await reporter.send(ProgressType.ERROR, handle_model_error(e), {
                "agent_type": context.agent_type,
                "error_type": type(e).__name__,
            })
            raise

        return final_state.get("conclusion")

    async def execute_agent_iteration(self, context: FlowContext, reporter: ProgressReporter) -> FlowStepResult:
        """One act() call on fresh history, followed by response and tool handling."""
        history = await self.conversation_store.get_history(context.conversation_id)
        if context.attachments:
            history.append(build_attachment_message(context.attachments))
        context.conversation_history = history

        raw = await context.agent.act(AgentInput(messages=list(history), context=context, progress=reporter))

        response, issues = coerce_response(raw)
        if issues:
            LOGGER.warning(f"{context.agent_type} returned an invalid response shape: {issues}")
            await reporter.send(
                ProgressType.TOOL_RESPONSE,
                f'Agent "{context.agent_type}" returned invalid response format. Attempting graceful recovery...',
                {"source": "validation_system", "agent_type": context.agent_type, "validation_errors": issues, "is_raw": True},
            )

        result = FlowStepResult()

        if response.has_content:
            result = await self.handle_llm_response(response, context, reporter)

        if response.tool_calls:
            tool_result = await self.handle_tool_calls(response, context, reporter)
            result.should_break = tool_result.should_break
            if tool_result.conclusion:
                result.conclusion = tool_result.conclusion

        return result

    # ========== Response handling ==========

    async def handle_llm_response(
        self,
        response: AgentResponse,
        context: FlowContext,
        reporter: ProgressReporter,
    ) -> FlowStepResult:
        """Persist, evaluate and stream a free-text reply."""
        message_id = await self.conversation_store.add_message(
            context.conversation_id, AIMessage(content=response.content)
        )

        evaluation = await self.evaluator.evaluate(EvaluationRequest(
            user_message=context.user_message,
            response=response.content,
            conversation_history=context.conversation_history,
            trace_context=context.trace_context(),
        ))

        if message_id is not None:
            await self.update_execution(context, message_id=message_id)

        await reporter.send(ProgressType.LLM_RESPONSE, response.content, {
            "agent_type": context.agent_type,
            "agent_status": evaluation.agent_status,
            "validated": response.validated,
        })

        return FlowStepResult(should_break=evaluation.should_break, conclusion=evaluation.conclusion)

    async def handle_tool_calls(
        self,
        response: AgentResponse,
        context: FlowContext,
        reporter: ProgressReporter,
    ) -> Optional[ToolExecutionResult]:
        """Execute the first tool call of ``response``; later calls are ignored."""
        if not response.tool_calls:
            return None

        tool_call = response.tool_calls[0]
        if len(response.tool_calls) > 1:
            LOGGER.debug(f"Ignoring {len(response.tool_calls) - 1} additional tool calls from {context.agent_type}")

        await self.conversation_store.add_message(
            context.conversation_id,
            AIMessage(content="", tool_calls=[{**tool_call.to_dict(), "type": "tool_call"}]),
        )
        await reporter.send(ProgressType.TOOL_EXECUTION, f"{context.agent_type} executing: {tool_call.name}", {
            "source": "llm",
            "function_name": tool_call.name,
            "tool_call_id": tool_call.id,
            "arguments": tool_call.args,
            "agent_type": context.agent_type,
        })

        root = DelegationContext.root(context.agent_type, context.execution_id)
        with delegation_scope(root):
            tool_response = await self.dispatcher.execute_tool_for_agent(
                tool_call, context.agent_type, context.agent, reporter
            )

        await self.conversation_store.add_message(
            context.conversation_id,
            ToolMessage(content=tool_response, tool_call_id=tool_call.id, name=tool_call.name),
        )
        await reporter.send(ProgressType.TOOL_RESPONSE, tool_response, {
            "original_tool_response": tool_response,
            "agent_type": context.agent_type,
            "is_raw": True,
        })

        rephrased = await self._rephrase(tool_response)

        evaluation = await self.evaluator.evaluate(EvaluationRequest(
            user_message=context.user_message,
            response=rephrased,
            conversation_history=context.conversation_history,
            original_tool_response=tool_response,
            trace_context=context.trace_context(),
        ))

        if evaluation.conclusion:
            await self.conversation_store.add_message(context.conversation_id, AIMessage(content=evaluation.conclusion))

        if not evaluation.should_break:
            await reporter.send(ProgressType.TOOL_RESPONSE, rephrased, {
                "original_tool_response": tool_response,
                "agent_type": context.agent_type,
                "is_rephrased": True,
            })

        return ToolExecutionResult(
            tool_name=tool_call.name,
            tool_response=tool_response,
            rephrased_response=rephrased,
            should_break=evaluation.should_break,
            conclusion=evaluation.conclusion,
        )

    # ========== Helpers ==========

    async def _rephrase(self, tool_response: str) -> str:
        rephraser_type = self.settings.orchestration.rephraser_agent_type
        rephraser = self.registry.get(rephraser_type)
        if rephraser is None and self.factory is not None and self.factory.supports(rephraser_type):
            rephraser = await self.factory.create_agent(rephraser_type)
        if rephraser is None:
            LOGGER.warning(f"Rephraser agent '{rephraser_type}' not available, using raw tool output")
            return tool_response

        raw = await rephraser.act(AgentInput(messages=[HumanMessage(content=tool_response)]))
        rephrased, issues = coerce_response(raw)
        if issues:
            LOGGER.warning(f"Rephraser returned an invalid response shape: {issues}")
        return rephrased.content or tool_response

    async def report_max_requests(self, context: FlowContext, reporter: ProgressReporter) -> str:
        content = f"{context.agent_type} reached maximum requests. Task may be too complex."
        LOGGER.warning(content)
        await self.conversation_store.add_message(context.conversation_id, AIMessage(content=content))
        await reporter.send(ProgressType.LLM_RESPONSE, content, {"agent_type": context.agent_type})
        return content

    async def _create_execution(self, context: FlowContext, autonomous: bool) -> None:
        if self.execution_store is None:
            return
        try:
            record = await self.execution_store.create_execution(
                context.conversation_id,
                context.agent_type,
                triggering_message_id=context.user_message_id,
                autonomous_mode=autonomous,
            )
            context.execution_id = record.id
            LOGGER.info(
                f"Created execution record {record.id} for {context.agent_type}, "
                f"triggered by message {context.user_message_id}"
            )
        except Exception as e:
            LOGGER.error(f"Failed to create execution record: {e}")

    async def update_execution(self, context: FlowContext, **updates) -> None:
        if self.execution_store is None or context.execution_id is None:
            return
        try:
            await self.execution_store.update_execution(context.execution_id, **updates)
        except Exception as e:
            LOGGER.error(f"Failed to update execution {context.execution_id}: {e}")
