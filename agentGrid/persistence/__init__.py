"""Reference stores for conversations and execution records."""

from .memory import (
    ExecutionRecord,
    ExecutionStep,
    InMemoryConversationStore,
    InMemoryExecutionStore,
)

__all__ = ["ExecutionRecord", "ExecutionStep", "InMemoryConversationStore", "InMemoryExecutionStore"]
