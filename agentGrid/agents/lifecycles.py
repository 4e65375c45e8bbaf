"""Lifecycles of the bundled agents (referenced from agents.yaml)."""

from __future__ import annotations

import logging
import math
import re

from langchain_core.messages import BaseMessage, convert_to_messages

from .lifecycle import AgentLifecycle, HookContext
from .schema import AgentInput, AgentResponse, ValidationResult

LOGGER = logging.getLogger(__name__)

PLACEHOLDERS = ("[INSERT", "[TODO", "[PLACEHOLDER", "Lorem ipsum")
MIN_CONTENT_LENGTH = 50
UNSTRUCTURED_LENGTH = 500
WORDS_PER_MINUTE = 200


class ScribeLifecycle(AgentLifecycle):
    """Quality gate and content statistics for the writing assistant."""

    async def validate_response(self, response: AgentResponse, ctx: HookContext) -> ValidationResult:
        content = response.content or ""
        errors = []

        if len(content) < MIN_CONTENT_LENGTH:
            errors.append("Response is too short. Please provide more detail.")

        if any(marker in content for marker in PLACEHOLDERS):
            errors.append("Response contains placeholder text. Please complete all sections.")

        if len(content) > UNSTRUCTURED_LENGTH and "\n" not in content:
            errors.append("Long response lacks structure. Please add paragraphs or sections.")

        return ValidationResult(is_valid=not errors, errors=errors)

    async def transform_output(self, response: AgentResponse, ctx: HookContext) -> AgentResponse:
        content = response.content or ""
        words = content.split()
        paragraphs = [p for p in re.split(r"\n\s*\n+", content) if p.strip()]

        stats = {
            "word_count": len(words),
            "character_count": len(content),
            "paragraph_count": len(paragraphs),
            "estimated_reading_time": math.ceil(len(words) / WORDS_PER_MINUTE),
        }
        LOGGER.debug(f"Scribe output metadata: {stats}")

        response.metadata = {**response.metadata, **stats}
        return response


class GeneralLifecycle(AgentLifecycle):
    """Accepts loosely shaped conversations and rejects empty replies."""

    async def transform_input(self, agent_input: AgentInput, ctx: HookContext) -> AgentInput:
        if all(isinstance(message, BaseMessage) for message in agent_input.messages):
            return agent_input
        # dicts ({"role", "content"}), (role, content) tuples and bare strings
        agent_input.messages = convert_to_messages(agent_input.messages)
        return agent_input

    async def validate_response(self, response: AgentResponse, ctx: HookContext) -> ValidationResult:
        if not response.has_content and not response.tool_calls:
            return ValidationResult(is_valid=False, errors=["Response has neither content nor tool calls"])
        return ValidationResult(is_valid=True)
