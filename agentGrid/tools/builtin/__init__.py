"""Built-in tools available to every agent config by name."""

from typing import List

from langchain_core.tools import BaseTool

from .http_fetch import http_fetch
from .list_available_tools import LIST_AVAILABLE_TOOLS, list_available_tools
from .now import now


def builtin_tools() -> List[BaseTool]:
    return [now, http_fetch, list_available_tools]


__all__ = ["builtin_tools", "now", "http_fetch", "list_available_tools", "LIST_AVAILABLE_TOOLS"]
