"""Autonomous flow controller, tool dispatch and progress reporting."""

from .controller import AgentFlowController
from .dispatch import ToolDispatcher, categorize_tool
from .progress import ProgressReporter
from .schema import (
    FlowContext,
    FlowOptions,
    FlowStepResult,
    ProgressEvent,
    ProgressType,
    StreamState,
    ToolExecutionResult,
    TraceContext,
)

__all__ = [
    "AgentFlowController",
    "ToolDispatcher",
    "categorize_tool",
    "ProgressReporter",
    "FlowContext",
    "FlowOptions",
    "FlowStepResult",
    "ProgressEvent",
    "ProgressType",
    "StreamState",
    "ToolExecutionResult",
    "TraceContext",
]
