"""Tests for the in-memory conversation and execution stores."""

import pytest
from langchain_core.messages import AIMessage, HumanMessage

from agentGrid.persistence import InMemoryConversationStore, InMemoryExecutionStore


class TestConversationStore:

    @pytest.mark.asyncio
    async def test_add_and_read_history(self):
        store = InMemoryConversationStore()

        first = await store.add_message("c1", HumanMessage(content="hi"))
        second = await store.add_message("c1", AIMessage(content="hello"))
        await store.add_message("c2", HumanMessage(content="other"))

        history = await store.get_history("c1")
        assert (first, second) == (1, 2)
        assert [m.content for m in history] == ["hi", "hello"]
        assert history[0].id == "1"

    @pytest.mark.asyncio
    async def test_history_is_a_copy(self):
        store = InMemoryConversationStore()
        store.seed("c1", [HumanMessage(content="hi")])

        history = await store.get_history("c1")
        history.append(AIMessage(content="local only"))

        assert len(await store.get_history("c1")) == 1
        assert await store.get_history("unknown") == []


class TestExecutionStore:

    @pytest.mark.asyncio
    async def test_create_update_complete(self):
        store = InMemoryExecutionStore()
        record = await store.create_execution("c1", "general", triggering_message_id=4, autonomous_mode=True)

        assert record.status == "running"
        assert record.completed_at is None

        updated = await store.update_execution(record.id, status="completed", total_steps=2)

        assert updated.status == "completed"
        assert updated.total_steps == 2
        assert updated.completed_at is not None

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_fields_and_statuses(self):
        store = InMemoryExecutionStore()
        record = await store.create_execution("c1", "general")

        with pytest.raises(ValueError, match="Unknown execution fields"):
            await store.update_execution(record.id, colour="blue")
        with pytest.raises(ValueError, match="Invalid execution status"):
            await store.update_execution(record.id, status="paused")
        assert await store.update_execution(999, status="completed") is None

    @pytest.mark.asyncio
    async def test_steps_are_ordered(self):
        store = InMemoryExecutionStore()
        record = await store.create_execution("c1", "general")

        await store.add_step(record.id, "thinking", "general is thinking...")
        await store.add_step(record.id, "finished", "Conversation ended", step_order=5)
        await store.add_step(record.id, "llm_response", "answer", metadata={"validated": True}, step_order=3)

        steps = (await store.get_execution_with_steps(record.id)).steps
        assert [s.step_order for s in steps] == [1, 3, 5]
        assert steps[1].metadata == {"validated": True}

    @pytest.mark.asyncio
    async def test_step_for_missing_execution(self):
        with pytest.raises(KeyError):
            await InMemoryExecutionStore().add_step(42, "thinking", "x")

    @pytest.mark.asyncio
    async def test_list_and_delete(self):
        store = InMemoryExecutionStore()
        first = await store.create_execution("c1", "general")
        await store.create_execution("c2", "scribe")
        second = await store.create_execution("c1", "scribe")

        records = await store.get_executions_for_conversation("c1")

        assert [r.id for r in records] == [first.id, second.id]
        assert await store.delete_execution(first.id) is True
        assert await store.delete_execution(first.id) is False
