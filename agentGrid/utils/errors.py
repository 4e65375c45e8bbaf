"""Error hierarchy for the orchestration engine."""

from __future__ import annotations

import logging
from typing import Optional

LOGGER = logging.getLogger(__name__)


class AgentGridError(Exception):
    """Base exception for agentGrid errors."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


# ========== Agent Errors ==========

class AgentError(AgentGridError):
    """Error scoped to a single agent type/instance."""

    def __init__(
        self,
        message: str,
        agent_type: str,
        agent_id: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.agent_type = agent_type
        self.agent_id = agent_id
        self.original_error = original_error


class AgentInitializationError(AgentError):
    """Agent could not be constructed (unknown type, bad config, builder failure)."""

    def __init__(
        self,
        agent_type: str,
        agent_id: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        message = f"Failed to initialize agent {agent_type}:{agent_id or 'unknown'}"
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message, agent_type, agent_id, original_error)


class AgentExecutionError(AgentError):
    """Agent ran out of attempts or failed during act()."""
    pass


class AgentConfigurationError(AgentError):
    """Agent configuration is inconsistent (e.g. hook flag without an implementation)."""
    pass


# ========== Delegation Errors ==========

class DelegationError(AgentGridError):
    """Delegated agent failed to instantiate or run."""

    def __init__(self, agent_type: str, cause: BaseException | str):
        reason = cause if isinstance(cause, str) else f"{cause}"
        super().__init__(f"Failed to delegate to {agent_type}: {reason}")
        self.agent_type = agent_type
        self.cause = cause if isinstance(cause, BaseException) else None


class DelegationRejectedError(DelegationError):
    """Delegation refused before the target agent was invoked."""
    pass


class DelegationDepthError(DelegationRejectedError):
    """Delegation chain would exceed the configured maximum depth."""

    def __init__(self, agent_type: str, depth: int, max_depth: int):
        super().__init__(agent_type, f"delegation depth {depth} exceeds maximum of {max_depth}")
        self.depth = depth
        self.max_depth = max_depth


class DelegationCycleError(DelegationRejectedError):
    """Target agent already appears in the current delegation path."""

    def __init__(self, agent_type: str, path):
        chain = " -> ".join(list(path) + [agent_type])
        super().__init__(agent_type, f"delegation cycle detected ({chain})")
        self.path = tuple(path)


class DelegationPermissionError(DelegationRejectedError):
    """Calling agent is not allowed to delegate to the target."""

    def __init__(self, caller: str, agent_type: str):
        super().__init__(agent_type, f"agent '{caller}' is not allowed to delegate to '{agent_type}'")
        self.caller = caller


# ========== Tool / Model Errors ==========

class ToolExecutionError(AgentGridError):
    """Error during tool execution."""
    pass


class ModelInvocationError(AgentGridError):
    """Error during model invocation."""
    pass


def handle_model_error(error: Exception) -> str:
    """Convert model invocation errors to user-friendly messages.

    Args:
        error: Exception raised during model invocation or flow execution

    Returns:
        User-friendly error message
    """
    if isinstance(error, AgentGridError) and error.user_message != str(error):
        return error.user_message

    error_str = str(error).lower()

    if "rate_limit" in error_str or "429" in error_str:
        return "Too many requests, please try again later"

    if "timeout" in error_str:
        return "The model took too long to respond, please retry"

    if "context_length" in error_str or "maximum context" in error_str:
        return "Conversation is too long, please start a new one"

    if "invalid_api_key" in error_str or "authentication" in error_str:
        return "Model API key is invalid, please contact an administrator"

    if "quota" in error_str or "insufficient" in error_str:
        return "Model quota exhausted, please contact an administrator"

    return f"Agent execution failed: {error}"
