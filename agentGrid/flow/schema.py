"""Flow controller data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from langchain_core.messages import BaseMessage

if TYPE_CHECKING:
    from agentGrid.agents.runtime import ConfigurableAgent
    from agentGrid.interfaces import ProgressSink


class ProgressType(str, Enum):
    """Fixed vocabulary of progress event types."""
    THINKING = "thinking"
    TOOL_EXECUTION = "tool_execution"
    TOOL_RESPONSE = "tool_response"
    LLM_RESPONSE = "llm_response"
    FINISHED = "finished"
    ERROR = "error"
    USER_MESSAGE = "user_message"


@dataclass(frozen=True)
class ProgressEvent:
    type: ProgressType
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "content": self.content, "metadata": self.metadata}


@dataclass
class StreamState:
    """Caller-owned cancellation flag, checked once per outer iteration."""
    is_active: bool = True

    def cancel(self) -> None:
        self.is_active = False


@dataclass
class FlowOptions:
    """Per-call overrides for one autonomous flow.

    ``None`` values fall back to OrchestrationSettings.
    """

    autonomous_mode: Optional[bool] = None
    max_requests: Optional[int] = None
    stream_state: Optional[StreamState] = None


@dataclass
class TraceContext:
    """Correlation data handed to the model invoker."""

    session_id: Optional[str] = None
    conversation_id: Optional[Union[int, str]] = None
    agent_type: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FlowContext:
    """Everything one flow invocation needs; owned by the caller.

    Attributes:
        agent_type: Type of the agent driving the flow
        agent: The configurable agent instance
        user_message: The message that triggered the flow
        conversation_id: Conversation whose history is re-fetched per iteration
        send: Per-invocation progress sink (None discards events)
        user_message_id: Persisted id of the triggering message
        execution_id: Set by the controller once the execution record exists
        session_token: Opaque session identifier forwarded as trace context
        attachments: Image URLs appended to the history as image_url parts
        conversation_history: Latest history snapshot, refreshed every iteration
    """

    agent_type: str
    agent: "ConfigurableAgent"
    user_message: str
    conversation_id: Union[int, str]
    send: Optional["ProgressSink"] = None
    user_message_id: Optional[Union[int, str]] = None
    execution_id: Optional[int] = None
    session_token: Optional[str] = None
    attachments: List[str] = field(default_factory=list)
    conversation_history: List[BaseMessage] = field(default_factory=list)

    def trace_context(self) -> Optional[TraceContext]:
        if not self.session_token:
            return None
        return TraceContext(
            session_id=self.session_token,
            conversation_id=self.conversation_id,
            agent_type=self.agent_type,
        )


@dataclass
class FlowStepResult:
    should_break: bool = False
    conclusion: Optional[str] = None


@dataclass
class ToolExecutionResult:
    tool_name: str
    tool_response: str
    rephrased_response: str
    should_break: bool = False
    conclusion: Optional[str] = None
