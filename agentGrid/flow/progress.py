"""Per-flow progress reporting.

A ProgressReporter is created for every flow invocation. It forwards events
to the caller's sink and, once an execution record exists, records each
event as an execution step.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from .schema import ProgressEvent, ProgressType

if TYPE_CHECKING:
    from agentGrid.interfaces import ExecutionStore, ProgressSink

LOGGER = logging.getLogger(__name__)


class ProgressReporter:
    """Progress sink bound to one flow invocation.

    Instances are themselves valid ProgressSinks, so they can be handed to
    ``AgentInput.progress``.
    """

    def __init__(
        self,
        sink: Optional["ProgressSink"] = None,
        execution_store: Optional["ExecutionStore"] = None,
        execution_id: Optional[int] = None,
    ):
        self.sink = sink
        self.execution_store = execution_store
        self.execution_id = execution_id

    async def send(
        self,
        type: ProgressType,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ProgressEvent:
        event = ProgressEvent(type=type, content=content, metadata=dict(metadata or {}))
        await self(event)
        return event

    async def __call__(self, event: ProgressEvent) -> None:
        if self.sink is not None:
            await self.sink(event)
        else:
            LOGGER.debug(f"Progress [{event.type.value}]: {event.content[:200]}")

        await self._record(event)

    async def _record(self, event: ProgressEvent) -> None:
        if self.execution_store is None or self.execution_id is None:
            return
        try:
            execution = await self.execution_store.get_execution_with_steps(self.execution_id)
            step_order = len(execution.steps) + 1 if execution else 1
            await self.execution_store.add_step(
                self.execution_id,
                event.type.value,
                event.content,
                metadata=event.metadata,
                step_order=step_order,
            )
        except Exception as e:
            LOGGER.error(f"Failed to save execution step for execution {self.execution_id}: {e}")
