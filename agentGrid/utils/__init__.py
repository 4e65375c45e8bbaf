"""Utilities for agentGrid."""

from .logging_utils import (
    get_logger,
    log_agent_response,
    log_error,
    log_iteration,
    log_tool_call,
    log_tool_result,
    log_user_message,
    setup_logging,
)
from .message_utils import build_attachment_message, last_user_text, stringify_content
from .errors import (
    AgentGridError,
    AgentError,
    AgentInitializationError,
    AgentExecutionError,
    AgentConfigurationError,
    DelegationError,
    DelegationRejectedError,
    DelegationDepthError,
    DelegationCycleError,
    DelegationPermissionError,
    ToolExecutionError,
    ModelInvocationError,
    handle_model_error,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_tool_call",
    "log_tool_result",
    "log_error",
    "log_user_message",
    "log_agent_response",
    "log_iteration",
    "stringify_content",
    "build_attachment_message",
    "last_user_text",
    "AgentGridError",
    "AgentError",
    "AgentInitializationError",
    "AgentExecutionError",
    "AgentConfigurationError",
    "DelegationError",
    "DelegationRejectedError",
    "DelegationDepthError",
    "DelegationCycleError",
    "DelegationPermissionError",
    "ToolExecutionError",
    "ModelInvocationError",
    "handle_model_error",
]
