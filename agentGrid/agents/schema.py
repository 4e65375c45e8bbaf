"""Agent configuration and runtime I/O schema.

Configuration types (AgentConfig and its sections) are pydantic models so that
agents.yaml entries are validated on load. Runtime I/O types (AgentInput,
AgentResponse, ValidationResult) are plain dataclasses passed between the
runtime, the lifecycle observer and the flow controller.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.tools import BaseTool
from pydantic import BaseModel, ConfigDict, Field

from agentGrid.utils.message_utils import stringify_content

if TYPE_CHECKING:
    from agentGrid.agents.delegation import DelegationContext
    from agentGrid.flow.schema import FlowContext
    from agentGrid.interfaces import ProgressSink


class ResponseFormat(str, Enum):
    """Expected shape of the model's reply."""
    JSON = "json"
    TEXT = "text"
    STRUCTURED = "structured"


class DelegationStrategy(str, Enum):
    BEST_MATCH = "best-match"
    LOAD_BALANCE = "load-balance"
    SPECIALIST = "specialist"
    FALLBACK = "fallback"


class CostTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ========== Configuration ==========

class AgentBehavior(BaseModel):
    """Retry and response policy."""

    max_retries: int = Field(default=3, ge=1)
    response_format: ResponseFormat = ResponseFormat.TEXT
    validate_response: bool = False
    emit_events: List[str] = Field(default_factory=list)
    timeout: Optional[int] = None  # ms, informational


class AgentPrompts(BaseModel):
    """Prompt templates. ``error_correction`` may contain an ``{errors}`` placeholder."""

    system: str
    error_correction: Optional[str] = None
    fallback: Optional[str] = None


class AgentTools(BaseModel):
    """Tool sources, each a list of tool (or agent type) names."""

    builtin: List[str] = Field(default_factory=list)
    custom: List[str] = Field(default_factory=list)
    mcp: List[str] = Field(default_factory=list)
    agents: List[str] = Field(default_factory=list)


class AgentHooks(BaseModel):
    """Declared lifecycle stages.

    A stage flagged here must be implemented by the agent's lifecycle
    observer; ConfigurableAgent refuses to construct otherwise.
    """

    before_act: bool = False
    after_response: bool = False
    on_error: bool = False
    validate_response: bool = False
    transform_input: bool = False
    transform_output: bool = False

    def enabled_stages(self) -> List[str]:
        return [name for name, enabled in self.model_dump().items() if enabled]


class AgentOrchestration(BaseModel):
    """Delegation policy of an agent."""

    callable: bool = True
    can_delegate: bool = False
    allowed_delegates: Optional[List[str]] = None
    max_parallel_delegations: int = Field(default=3, ge=1)
    max_delegation_depth: int = Field(default=3, ge=1)
    delegation_strategy: DelegationStrategy = DelegationStrategy.BEST_MATCH
    cost_tier: CostTier = CostTier.MEDIUM
    estimated_duration: Optional[int] = None  # ms


class AgentMetadata(BaseModel):
    """Identity and discovery metadata. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    name: str
    description: str = ""
    capabilities: List[str] = Field(default_factory=list)
    icon: Optional[str] = None
    version: Optional[str] = None
    author: Optional[str] = None
    config_version: Optional[str] = None
    orchestration: Optional[AgentOrchestration] = None


class AgentConfig(BaseModel):
    """Full declarative configuration of a configurable agent."""

    metadata: AgentMetadata
    behavior: AgentBehavior = Field(default_factory=AgentBehavior)
    prompts: AgentPrompts
    tools: AgentTools = Field(default_factory=AgentTools)
    hooks: AgentHooks = Field(default_factory=AgentHooks)
    orchestration: Optional[AgentOrchestration] = None
    features: Dict[str, Any] = Field(default_factory=dict)
    custom_config: Dict[str, Any] = Field(default_factory=dict)

    @property
    def agent_type(self) -> str:
        return self.metadata.type


# ========== Runtime I/O ==========

@dataclass
class ToolCall:
    id: str
    name: str
    args: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "args": self.args}


@dataclass
class AgentInput:
    """Input of one ``act()`` call.

    Attributes:
        messages: Conversation history (system prompt is added by the agent)
        tools: Override tool set; when non-empty it wins over the agent's own tools
        context: Flow context of the calling flow, if any
        delegation: Delegation context when invoked through a delegation tool
        shared_context: Extra context handed over by a delegating agent
        progress: Per-invocation progress sink
    """

    messages: List[BaseMessage] = field(default_factory=list)
    tools: List[BaseTool] = field(default_factory=list)
    context: Optional["FlowContext"] = None
    delegation: Optional["DelegationContext"] = None
    shared_context: Dict[str, Any] = field(default_factory=dict)
    progress: Optional["ProgressSink"] = None

    def describe(self) -> Dict[str, Any]:
        """Lightweight serializable view used in event payloads."""
        return {
            "message_count": len(self.messages),
            "tool_names": [tool.name for tool in self.tools],
            "shared_context": self.shared_context,
        }


@dataclass
class AgentResponse:
    """Normalized model response.

    ``validated`` is False when the response failed validation on the last
    allowed attempt; ``validation_errors`` then holds the validator's errors.
    """

    content: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    validated: bool = True
    validation_errors: List[Any] = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return bool(self.content and self.content.strip())

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def to_message(self) -> AIMessage:
        return AIMessage(
            content=self.content or "",
            tool_calls=[
                {"id": call.id, "name": call.name, "args": call.args, "type": "tool_call"}
                for call in self.tool_calls
            ],
        )

    @classmethod
    def from_message(cls, message: BaseMessage) -> "AgentResponse":
        calls = [
            ToolCall(id=call.get("id") or f"call_{index}", name=call["name"], args=dict(call.get("args") or {}))
            for index, call in enumerate(getattr(message, "tool_calls", None) or [])
        ]
        content = stringify_content(message.content)
        return cls(
            content=content or None,
            tool_calls=calls,
            metadata=dict(getattr(message, "response_metadata", None) or {}),
        )


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def tool_names(tools: Sequence[BaseTool]) -> List[str]:
    return [tool.name for tool in tools]


def _coerce_tool_calls(raw_calls: Any, issues: List[str]) -> List[ToolCall]:
    if raw_calls is None:
        return []
    if not isinstance(raw_calls, (list, tuple)):
        issues.append(f"tool_calls should be a list, got {type(raw_calls).__name__}")
        return []

    calls: List[ToolCall] = []
    for index, call in enumerate(raw_calls):
        if isinstance(call, ToolCall):
            calls.append(call)
        elif isinstance(call, dict) and call.get("name"):
            args = call.get("args", call.get("arguments")) or {}
            if isinstance(args, str):
                try:
                    args = json.loads(args)
                except ValueError:
                    issues.append(f"tool_calls[{index}] arguments are not valid JSON")
                    args = {}
            calls.append(ToolCall(id=call.get("id") or f"call_{index}", name=call["name"], args=dict(args)))
        else:
            issues.append(f"tool_calls[{index}] has no tool name")
    return calls


def coerce_response(raw: Any) -> Tuple[AgentResponse, List[str]]:
    """Normalize whatever an agent (or an on_error stage) returned.

    Returns:
        The best-effort AgentResponse and a list of shape issues found
        (empty when ``raw`` was already well formed).
    """
    issues: List[str] = []

    if isinstance(raw, AgentResponse):
        if raw.content is not None and not isinstance(raw.content, str):
            issues.append(f"content should be a string, got {type(raw.content).__name__}")
            raw.content = stringify_content(raw.content)
        raw.tool_calls = _coerce_tool_calls(raw.tool_calls, issues)
        return raw, issues

    if isinstance(raw, BaseMessage):
        return AgentResponse.from_message(raw), issues

    if isinstance(raw, dict):
        content = raw.get("content")
        if content is not None and not isinstance(content, str):
            issues.append(f"content should be a string, got {type(content).__name__}")
            content = stringify_content(content)
        response = AgentResponse(
            content=content,
            tool_calls=_coerce_tool_calls(raw.get("tool_calls"), issues),
            metadata=dict(raw.get("metadata") or {}),
        )
        return response, issues

    if isinstance(raw, str):
        return AgentResponse(content=raw), issues

    if raw is None:
        issues.append("agent returned no response")
        return AgentResponse(), issues

    issues.append(f"unexpected response type {type(raw).__name__}")
    return AgentResponse(content=str(raw)), issues
