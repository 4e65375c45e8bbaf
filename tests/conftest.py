"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
Shared fakes stand in for the model provider, the evaluator and the progress sink.
"""

import copy
import sys
from pathlib import Path

import pytest

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from agentGrid.agents.schema import AgentConfig, AgentResponse  # noqa: E402
from agentGrid.evaluation.evaluator import EvaluationResult  # noqa: E402


class ScriptedModelInvoker:
    """Model invoker that replays queued responses.

    Queue items may be AgentResponse objects, strings (used as content) or
    exceptions (raised). Once the queue is empty ``default`` is used.
    """

    def __init__(self, responses=None, default=None):
        self.responses = list(responses or [])
        self.default = default if default is not None else AgentResponse(content="ok")
        self.calls = []

    @property
    def call_count(self):
        return len(self.calls)

    async def invoke(self, messages, tools, trace_context=None, response_format=None):
        self.calls.append({
            "messages": list(messages),
            "tools": list(tools),
            "trace_context": trace_context,
            "response_format": response_format,
        })
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str):
            return AgentResponse(content=item)
        return copy.deepcopy(item)


class ScriptedEvaluator:
    """Evaluator returning queued results, then ``default``."""

    def __init__(self, results=None, default=None):
        self.results = list(results or [])
        self.default = default or EvaluationResult(should_break=False, conclusion=None)
        self.requests = []

    async def evaluate(self, request):
        self.requests.append(request)
        return self.results.pop(0) if self.results else self.default


class RecordingSink:
    """Progress sink that keeps every event."""

    def __init__(self):
        self.events = []

    async def __call__(self, event):
        self.events.append(event)

    def of_type(self, progress_type):
        return [event for event in self.events if event.type == progress_type]


def build_config(agent_type, **sections):
    """AgentConfig with sensible defaults; ``sections`` override top-level keys."""
    metadata = {"id": agent_type, "type": agent_type, "name": agent_type.title(), "description": f"{agent_type} agent"}
    metadata.update(sections.pop("metadata", {}))
    raw = {
        "metadata": metadata,
        "prompts": {"system": f"You are the {agent_type} agent."},
        "behavior": {"max_retries": 1},
    }
    raw.update(sections)
    return AgentConfig.model_validate(raw)


@pytest.fixture
def model_invoker():
    return ScriptedModelInvoker()


@pytest.fixture
def evaluator():
    return ScriptedEvaluator()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_config():
    return build_config


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; make every test read the environment afresh."""
    from agentGrid.config.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_invoker():
    return ScriptedModelInvoker


@pytest.fixture
def make_evaluator():
    return ScriptedEvaluator
