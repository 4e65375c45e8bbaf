"""Task-completion evaluation of agent responses.

The evaluator asks the model to classify a response through the
``evaluate_response`` tool, then asks it a second time to turn the
classification's reasoning into a short conclusion for the user.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, SystemMessage
from langchain_core.tools import tool
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from agentGrid.flow.schema import TraceContext
    from agentGrid.interfaces import ModelInvoker

LOGGER = logging.getLogger(__name__)

EVALUATE_RESPONSE_TOOL = "evaluate_response"
FALLBACK_PREVIEW_LENGTH = 100


class EvaluationState(str, Enum):
    WAITING_FOR_PROMPT = "waiting-for-prompt"
    TASK_COMPLETED = "task-completed"
    NEXT_ACTION = "next-action"


class Evaluation(BaseModel):
    state: EvaluationState = Field(
        description=(
            "REQUIRED: Determine the current state - waiting-for-prompt (has question), "
            "task-completed (task is done), or next-action (continue working)"
        )
    )
    has_question: bool = Field(
        description="REQUIRED: True if the response contains any question or request for user input"
    )
    question_text: Optional[str] = Field(default=None, description="The exact question text if has_question is true")
    completion_indicators: List[str] = Field(
        default_factory=list,
        description="Specific phrases that indicate task completion (e.g. 'done', 'completed', 'finished')",
    )
    next_steps: Optional[str] = Field(default=None, description="What should happen next based on this evaluation")


class EvaluateResponseArgs(BaseModel):
    reasoning: str = Field(description="Detailed reasoning for why you're evaluating this response and what you found")
    response_content: str = Field(description="The exact response content being evaluated")
    evaluation: Evaluation = Field(description="REQUIRED: Complete structured evaluation of the response")


@tool(EVALUATE_RESPONSE_TOOL, args_schema=EvaluateResponseArgs)
def evaluate_response(reasoning: str, response_content: str, evaluation: Any) -> str:
    """REQUIRED: Use this tool to evaluate every response. Analyze if the response contains a question,
    indicates task completion, or describes next steps. Always use this tool - never skip evaluation."""
    if isinstance(evaluation, BaseModel):
        evaluation = evaluation.model_dump(mode="json")
    return json.dumps(evaluation, indent=2)


@dataclass
class EvaluationRequest:
    user_message: str
    response: str
    conversation_history: List[BaseMessage] = field(default_factory=list)
    original_tool_response: Optional[str] = None
    trace_context: Optional["TraceContext"] = None


@dataclass
class EvaluationResult:
    should_break: bool
    conclusion: Optional[str] = None
    state: Optional[EvaluationState] = None
    agent_status: Optional[str] = None


def fallback_conclusion(response: str) -> str:
    preview = response[:FALLBACK_PREVIEW_LENGTH]
    suffix = "..." if len(response) > FALLBACK_PREVIEW_LENGTH else ""
    return (
        "Task evaluation: The agent provided a response but did not use the evaluation tool. "
        f'Response content: "{preview}{suffix}"'
    )


COMPLETION_CHECK_PROMPT = """You are a task completion checker. Your job is to determine if the current task is complete.

IMPORTANT: You MUST use the evaluate_response tool to analyze the response. Do not provide a direct answer without using the tool.

User's original request:
<user_request>
{user_message}
</user_request>

Response to evaluate:
<response_to_evaluate>
{response}
</response_to_evaluate>

Analyze this response and determine:
1. Does it contain a question that requires user input?
2. Does it indicate the task is completed?
3. Or does it suggest continuing with next actions?

Use the evaluate_response tool to provide your analysis."""

CONCLUSION_PROMPT = """You are a rephrase and conclusion creator. You are given a task completion evaluation and you need to rephrase the conclusions from the evaluation.
You also have to state, based on the evaluation, what the next step in the task is.
If all the tasks are completed, return the final conclusion."""


class LLMResponseEvaluator:
    """Evaluator backed by two model calls (classification, then conclusion)."""

    def __init__(self, model_invoker: "ModelInvoker"):
        self.model_invoker = model_invoker

    async def evaluate(self, request: EvaluationRequest) -> EvaluationResult:
        messages: List[BaseMessage] = list(request.conversation_history)
        messages.append(
            SystemMessage(content=COMPLETION_CHECK_PROMPT.format(user_message=request.user_message, response=request.response))
        )

        classification = await self.model_invoker.invoke(
            messages, [evaluate_response], trace_context=self._trace(request, "completion-evaluation")
        )

        call = next((c for c in classification.tool_calls if c.name == EVALUATE_RESPONSE_TOOL), None)
        if call is None:
            LOGGER.info("Evaluator model did not use evaluate_response, continuing by default")
            return EvaluationResult(should_break=False, conclusion=fallback_conclusion(request.response))

        try:
            args = EvaluateResponseArgs.model_validate(call.args)
        except ValueError as e:
            LOGGER.warning(f"Malformed evaluate_response arguments: {e}")
            return EvaluationResult(should_break=False, conclusion=fallback_conclusion(request.response))

        conclusion_reply = await self.model_invoker.invoke(
            [SystemMessage(content=CONCLUSION_PROMPT), AIMessage(content=args.reasoning)],
            [],
            trace_context=self._trace(request, "rephrase-conclusions"),
        )
        conclusion = conclusion_reply.content or args.reasoning

        evaluation = args.evaluation
        if evaluation.state == EvaluationState.WAITING_FOR_PROMPT and evaluation.has_question:
            LOGGER.info("Evaluation: waiting for prompt")
            return EvaluationResult(True, conclusion, evaluation.state, agent_status="waiting-for-prompt")
        if evaluation.state == EvaluationState.TASK_COMPLETED:
            LOGGER.info("Evaluation: task completed")
            return EvaluationResult(True, conclusion, evaluation.state, agent_status="task-complete")
        return EvaluationResult(False, conclusion, evaluation.state)

    @staticmethod
    def _trace(request: EvaluationRequest, step: str) -> Optional["TraceContext"]:
        if request.trace_context is None:
            return None
        metadata: Dict[str, Any] = {
            "evaluation_step": step,
            "user_message": request.user_message[:FALLBACK_PREVIEW_LENGTH],
            **request.trace_context.metadata,
        }
        return replace(request.trace_context, metadata=metadata)
