"""LangGraph state machine for one autonomous flow.

    START ─→ iterate ⇄ iterate ─→ finish → END
      │         │                    ↑
      │         └─→ max_requests ────┤
      └──────────────────────────────┘  (stream closed before the first call)

The iterate node runs one think -> act -> evaluate cycle. Routing after it
reads the request budget, the evaluator's stop signal and the caller's
stream state, all of which live in FlowState.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal, Optional, TypedDict

from langgraph.graph import END, START, StateGraph

from .progress import ProgressReporter
from .schema import FlowContext, ProgressType, StreamState
from agentGrid.utils.logging_utils import log_iteration, log_routing_decision

if TYPE_CHECKING:
    from .controller import AgentFlowController

LOGGER = logging.getLogger(__name__)


class FlowState(TypedDict, total=False):
    """State carried across the iterations of one flow."""

    # ========== Invocation ==========
    context: FlowContext
    reporter: ProgressReporter
    stream_state: Optional[StreamState]

    # ========== Execution control ==========
    autonomous: bool
    requests_count: int  # Iterations that ran to completion
    max_requests: int

    # ========== Outcome ==========
    should_break: bool
    conclusion: Optional[str]


# ========== Routing ==========

def _stream_closed(state: FlowState) -> bool:
    stream_state = state.get("stream_state")
    return stream_state is not None and not stream_state.is_active


def entry_route(state: FlowState) -> Literal["iterate", "finish"]:
    """Skip the flow entirely when the caller closed the stream up front."""
    if _stream_closed(state):
        decision, reason = "finish", "Stream closed before the first iteration"
    else:
        decision, reason = "iterate", "Starting flow"
    log_routing_decision(LOGGER, "start", decision, reason)
    return decision


def iteration_route(state: FlowState) -> Literal["iterate", "max_requests", "finish"]:
    """Decide what follows an iteration.

    Returns:
        "finish": the evaluator stopped the flow, autonomous mode is off,
            or the stream was closed
        "max_requests": the request budget is spent without a stop signal
        "iterate": run another iteration
    """
    count = state.get("requests_count", 0)
    max_requests = state["max_requests"]

    if state.get("should_break"):
        decision, reason = "finish", "Evaluator ended the flow"
    elif not state.get("autonomous"):
        decision, reason = "finish", "Autonomous mode off, single iteration"
    elif count >= max_requests:
        decision, reason = "max_requests", f"Request budget spent ({count}/{max_requests})"
    elif _stream_closed(state):
        decision, reason = "finish", "Stream closed"
    else:
        decision, reason = "iterate", f"Continuing ({count}/{max_requests})"

    log_routing_decision(LOGGER, "iterate", decision, reason)
    return decision


# ========== Nodes ==========

def build_iterate_node(controller: "AgentFlowController"):
    async def iterate_node(state: FlowState) -> FlowState:
        context = state["context"]
        reporter = state["reporter"]
        iteration = state.get("requests_count", 0) + 1

        log_iteration(LOGGER, context.agent_type, iteration, state["max_requests"], state.get("autonomous", False))
        await reporter.send(ProgressType.THINKING, f"{context.agent_type} is thinking...")

        result = await controller.execute_agent_iteration(context, reporter)

        update: FlowState = {"requests_count": iteration, "should_break": result.should_break}
        if result.conclusion:
            update["conclusion"] = result.conclusion
        return update

    return iterate_node


def build_max_requests_node(controller: "AgentFlowController"):
    async def max_requests_node(state: FlowState) -> FlowState:
        conclusion = await controller.report_max_requests(state["context"], state["reporter"])
        return {"conclusion": conclusion}

    return max_requests_node


def build_finish_node(controller: "AgentFlowController"):
    async def finish_node(state: FlowState) -> FlowState:
        context = state["context"]
        conclusion = state.get("conclusion")

        await state["reporter"].send(ProgressType.FINISHED, "Conversation ended", {
            "conclusion": conclusion,
            "agent_type": context.agent_type,
        })
        await controller.update_execution(context, status="completed", total_steps=state.get("requests_count", 0))
        return {"conclusion": conclusion}

    return finish_node


# ========== Graph ==========

def build_flow_graph(controller: "AgentFlowController"):
    """Compile the flow graph whose nodes call back into ``controller``."""
    graph = StateGraph(FlowState)

    graph.add_node("iterate", build_iterate_node(controller))
    graph.add_node("max_requests", build_max_requests_node(controller))
    graph.add_node("finish", build_finish_node(controller))

    graph.add_conditional_edges(
        START,
        entry_route,
        {
            "iterate": "iterate",
            "finish": "finish",
        }
    )
    graph.add_conditional_edges(
        "iterate",
        iteration_route,
        {
            "iterate": "iterate",
            "max_requests": "max_requests",
            "finish": "finish",
        }
    )
    graph.add_edge("max_requests", "finish")
    graph.add_edge("finish", END)

    return graph.compile()
