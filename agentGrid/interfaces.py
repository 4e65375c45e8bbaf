"""Collaborator interfaces consumed by the orchestration engine.

The engine never talks to a model provider, a database or a transport
directly; it is handed objects implementing these protocols.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence, Union

from langchain_core.messages import BaseMessage
from langchain_core.tools import BaseTool

if TYPE_CHECKING:
    from agentGrid.agents.schema import AgentResponse, ResponseFormat
    from agentGrid.evaluation.evaluator import EvaluationRequest, EvaluationResult
    from agentGrid.flow.schema import ProgressEvent, TraceContext
    from agentGrid.persistence.memory import ExecutionRecord, ExecutionStep

MessageId = Union[int, str]


class ModelInvoker(Protocol):
    """Resolves a model call for a composed message list."""

    async def invoke(
        self,
        messages: List[BaseMessage],
        tools: Sequence[BaseTool],
        trace_context: Optional["TraceContext"] = None,
        response_format: Optional["ResponseFormat"] = None,
    ) -> "AgentResponse":
        ...


class Evaluator(Protocol):
    """Decides whether a flow should stop after a response."""

    async def evaluate(self, request: "EvaluationRequest") -> "EvaluationResult":
        ...


class ProgressSink(Protocol):
    """Single-argument async callback receiving progress events."""

    async def __call__(self, event: "ProgressEvent") -> None:
        ...


class ConversationStore(Protocol):
    async def get_history(self, conversation_id: MessageId) -> List[BaseMessage]:
        ...

    async def add_message(self, conversation_id: MessageId, message: BaseMessage) -> Optional[MessageId]:
        ...


class ExecutionStore(Protocol):
    async def create_execution(
        self,
        conversation_id: MessageId,
        agent_type: str,
        triggering_message_id: Optional[MessageId] = None,
        autonomous_mode: bool = False,
    ) -> "ExecutionRecord":
        ...

    async def update_execution(self, execution_id: int, **updates: Any) -> Optional["ExecutionRecord"]:
        ...

    async def add_step(
        self,
        execution_id: int,
        step_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        step_order: Optional[int] = None,
    ) -> "ExecutionStep":
        ...

    async def get_execution_with_steps(self, execution_id: int) -> Optional["ExecutionRecord"]:
        ...

    async def get_executions_for_conversation(self, conversation_id: MessageId) -> List["ExecutionRecord"]:
        ...

    async def delete_execution(self, execution_id: int) -> bool:
        ...


class McpToolSource(Protocol):
    """Externally hosted tools addressed by name."""

    def is_tool(self, name: str) -> bool:
        ...

    def get_tool(self, name: str) -> BaseTool:
        ...

    def list_tools(self) -> List[BaseTool]:
        ...

    async def call_tool(self, name: str, args: Dict[str, Any]) -> Any:
        ...


__all__ = [
    "MessageId",
    "ModelInvoker",
    "Evaluator",
    "ProgressSink",
    "ConversationStore",
    "ExecutionStore",
    "McpToolSource",
]
