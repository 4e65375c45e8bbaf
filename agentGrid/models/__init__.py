"""Model invocation."""

from .invoker import LangChainModelInvoker, build_chat_model

__all__ = ["LangChainModelInvoker", "build_chat_model"]
