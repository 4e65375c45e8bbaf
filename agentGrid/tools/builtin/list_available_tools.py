"""Tool introspection entry point.

The flow's tool dispatcher answers this tool itself (it needs the calling
agent's tool set), so the body only runs when invoked outside a flow.
"""

from langchain_core.tools import tool

LIST_AVAILABLE_TOOLS = "list_available_tools"


@tool
def list_available_tools() -> str:
    """List every tool currently available to you, grouped by category.

    Use this when you are unsure which tools you can call.
    """
    return "Tool listing is only available inside an agent flow."


__all__ = ["LIST_AVAILABLE_TOOLS", "list_available_tools"]
