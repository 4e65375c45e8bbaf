"""Model invoker backed by a LangChain chat model."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_core.tools import BaseTool
from langchain_core.utils.json import parse_json_markdown
from langchain_openai import ChatOpenAI

from agentGrid.agents.schema import AgentResponse, ResponseFormat
from agentGrid.config.settings import ModelSettings, get_settings
from agentGrid.utils.errors import ModelInvocationError

if TYPE_CHECKING:
    from agentGrid.flow.schema import TraceContext

LOGGER = logging.getLogger(__name__)


def build_chat_model(settings: Optional[ModelSettings] = None) -> ChatOpenAI:
    """Create the OpenAI-compatible chat model described by ``settings``.

    Raises:
        RuntimeError: No API key configured
    """
    settings = settings or get_settings().models
    if not settings.api_key:
        raise RuntimeError(f"Missing API key for model {settings.chat}; set MODEL_CHAT_API_KEY in .env")

    kwargs: Dict[str, Any] = {
        "model": settings.chat,
        "api_key": settings.api_key,
        "temperature": settings.temperature,
    }
    if settings.base_url:
        kwargs["base_url"] = settings.base_url
    return ChatOpenAI(**kwargs)


class LangChainModelInvoker:
    """Invokes a chat model with an optional tool set bound per call."""

    def __init__(self, model: BaseChatModel):
        self.model = model

    async def invoke(
        self,
        messages: List[BaseMessage],
        tools: Sequence[BaseTool],
        trace_context: Optional["TraceContext"] = None,
        response_format: Optional[ResponseFormat] = None,
    ) -> AgentResponse:
        """Call the model and normalize its reply.

        Args:
            messages: Fully composed message list (system prompt included)
            tools: Tools bound for this call; empty means none
            trace_context: Correlation data forwarded as run metadata
            response_format: JSON replies are additionally parsed into ``metadata["parsed"]``

        Raises:
            ModelInvocationError: Provider call failed
        """
        runnable = self.model.bind_tools(list(tools)) if tools else self.model
        config = self._run_config(trace_context)

        try:
            message = await runnable.ainvoke(messages, config=config)
        except Exception as e:
            LOGGER.error(f"Model invocation failed: {e}")
            raise ModelInvocationError(f"Model invocation failed: {e}") from e

        response = AgentResponse.from_message(message)

        if response_format == ResponseFormat.JSON and response.content:
            try:
                response.metadata["parsed"] = parse_json_markdown(response.content)
            except ValueError as e:
                LOGGER.warning(f"Model reply is not valid JSON: {e}")

        return response

    @staticmethod
    def _run_config(trace_context: Optional["TraceContext"]) -> Optional[Dict[str, Any]]:
        if trace_context is None:
            return None
        metadata = {
            "session_id": trace_context.session_id,
            "conversation_id": trace_context.conversation_id,
            "agent_type": trace_context.agent_type,
            **trace_context.metadata,
        }
        return {"metadata": metadata, "tags": [f"agent:{trace_context.agent_type}"]}
