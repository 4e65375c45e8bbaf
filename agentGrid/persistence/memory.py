"""In-memory conversation and execution stores.

Reference implementations of the ConversationStore and ExecutionStore
protocols, used by tests and by single-process runs without a database.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from langchain_core.messages import BaseMessage

LOGGER = logging.getLogger(__name__)

ConversationId = Union[int, str]

EXECUTION_STATUSES = ("running", "completed", "failed")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ExecutionStep:
    execution_id: int
    step_type: str
    content: str
    step_order: int
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None
    created_at: datetime = field(default_factory=_now)


@dataclass
class ExecutionRecord:
    """One top-level autonomous flow run and its ordered steps."""

    id: int
    conversation_id: ConversationId
    agent_type: str
    triggering_message_id: Optional[Union[int, str]] = None
    status: str = "running"
    autonomous_mode: bool = False
    total_steps: int = 0
    message_id: Optional[Union[int, str]] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=_now)
    completed_at: Optional[datetime] = None
    steps: List[ExecutionStep] = field(default_factory=list)


class InMemoryConversationStore:
    """Conversation histories keyed by conversation id."""

    def __init__(self) -> None:
        self._messages: Dict[ConversationId, List[BaseMessage]] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def get_history(self, conversation_id: ConversationId) -> List[BaseMessage]:
        return list(self._messages.get(conversation_id, []))

    async def add_message(self, conversation_id: ConversationId, message: BaseMessage) -> int:
        async with self._lock:
            message_id = next(self._ids)
            if message.id is None:
                message.id = str(message_id)
            self._messages.setdefault(conversation_id, []).append(message)
        LOGGER.debug(f"Stored {message.type} message {message_id} in conversation {conversation_id}")
        return message_id

    def seed(self, conversation_id: ConversationId, messages: List[BaseMessage]) -> None:
        """Pre-populate a conversation (no ids are consumed)."""
        self._messages.setdefault(conversation_id, []).extend(messages)

    def clear(self) -> None:
        self._messages.clear()


class InMemoryExecutionStore:
    """Execution records with their steps."""

    def __init__(self) -> None:
        self._executions: Dict[int, ExecutionRecord] = {}
        self._execution_ids = itertools.count(1)
        self._step_ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def create_execution(
        self,
        conversation_id: ConversationId,
        agent_type: str,
        triggering_message_id: Optional[Union[int, str]] = None,
        autonomous_mode: bool = False,
    ) -> ExecutionRecord:
        async with self._lock:
            record = ExecutionRecord(
                id=next(self._execution_ids),
                conversation_id=conversation_id,
                agent_type=agent_type,
                triggering_message_id=triggering_message_id,
                autonomous_mode=autonomous_mode,
            )
            self._executions[record.id] = record
        LOGGER.debug(f"Created execution {record.id} for {agent_type} in conversation {conversation_id}")
        return record

    async def update_execution(self, execution_id: int, **updates: Any) -> Optional[ExecutionRecord]:
        """Apply field updates; unknown field names raise ValueError.

        Moving to a terminal status stamps ``completed_at``.
        """
        record = self._executions.get(execution_id)
        if record is None:
            LOGGER.warning(f"Execution {execution_id} not found for update")
            return None

        known = {f.name for f in fields(ExecutionRecord)} - {"id", "steps"}
        unknown = set(updates) - known
        if unknown:
            raise ValueError(f"Unknown execution fields: {sorted(unknown)}")
        if "status" in updates and updates["status"] not in EXECUTION_STATUSES:
            raise ValueError(f"Invalid execution status: {updates['status']}")

        for name, value in updates.items():
            setattr(record, name, value)
        if updates.get("status") in ("completed", "failed") and record.completed_at is None:
            record.completed_at = _now()
        return record

    async def add_step(
        self,
        execution_id: int,
        step_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        step_order: Optional[int] = None,
    ) -> ExecutionStep:
        async with self._lock:
            record = self._executions.get(execution_id)
            if record is None:
                raise KeyError(f"Execution not found: {execution_id}")
            step = ExecutionStep(
                execution_id=execution_id,
                step_type=step_type,
                content=content,
                step_order=step_order if step_order is not None else len(record.steps) + 1,
                metadata=dict(metadata or {}),
                id=next(self._step_ids),
            )
            record.steps.append(step)
            record.steps.sort(key=lambda s: s.step_order)
        return step

    async def get_execution_with_steps(self, execution_id: int) -> Optional[ExecutionRecord]:
        return self._executions.get(execution_id)

    async def get_executions_for_conversation(self, conversation_id: ConversationId) -> List[ExecutionRecord]:
        return sorted(
            (r for r in self._executions.values() if r.conversation_id == conversation_id),
            key=lambda r: r.created_at,
        )

    async def delete_execution(self, execution_id: int) -> bool:
        return self._executions.pop(execution_id, None) is not None
