"""Local tool registry: built-in, custom and delegation tools by name."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from langchain_core.tools import BaseTool

from agentGrid.utils.errors import ToolExecutionError
from agentGrid.utils.logging_utils import log_tool_call, log_tool_result

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolMeta:
    """Describes where a tool comes from and how it is grouped."""

    name: str
    source: str = "local"  # "local" | "builtin" | "custom" | "agent" | "mcp"
    tags: List[str] = field(default_factory=list)


class ToolRegistry:
    """Tracks tool instances and their metadata."""

    def __init__(self, tools: Optional[Iterable[BaseTool]] = None, meta: Optional[Iterable[ToolMeta]] = None) -> None:
        self._tools: Dict[str, BaseTool] = {}
        self._meta: Dict[str, ToolMeta] = {}
        if tools:
            for tool in tools:
                self.register_tool(tool)
        if meta:
            for item in meta:
                self.register_meta(item)

    def register_tool(self, tool: BaseTool, source: Optional[str] = None) -> None:
        if tool.name in self._tools:
            LOGGER.debug(f"Replacing registered tool: {tool.name}")
        self._tools[tool.name] = tool
        if source is not None:
            self.register_meta(ToolMeta(name=tool.name, source=source))

    def register_meta(self, metadata: ToolMeta) -> None:
        self._meta[metadata.name] = metadata

    def has(self, name: str) -> bool:
        return name in self._tools

    def get_tool(self, name: str) -> BaseTool:
        if name not in self._tools:
            raise KeyError(f"Unknown tool: {name}")
        return self._tools[name]

    def get_tool_optional(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def get_meta_optional(self, name: str) -> ToolMeta | None:
        return self._meta.get(name)

    def get_source(self, name: str) -> str:
        meta = self._meta.get(name)
        return meta.source if meta else "local"

    def list_tools(self) -> List[BaseTool]:
        return list(self._tools.values())

    def get_tool_names(self) -> List[str]:
        return list(self._tools.keys())

    def get_definitions(self) -> List[Dict[str, Any]]:
        """Name/description/JSON-schema triples for every registered tool."""
        definitions = []
        for tool in self._tools.values():
            schema = tool.get_input_schema().model_json_schema() if tool.args_schema else {}
            definitions.append({
                "name": tool.name,
                "description": tool.description,
                "parameters": schema,
                "source": self.get_source(tool.name),
            })
        return definitions

    def allowed_tools(self, allowlist: Optional[Iterable[str]]) -> List[BaseTool]:
        if not allowlist:
            return []
        return [self._tools[name] for name in allowlist if name in self._tools]

    async def execute(self, name: str, args: Dict[str, Any]) -> Any:
        """Run a registered tool asynchronously.

        Raises:
            ToolExecutionError: Unknown tool name
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolExecutionError(f"Unknown tool: {name}")

        log_tool_call(LOGGER, name, args)
        try:
            result = await tool.ainvoke(args)
        except Exception as e:
            log_tool_result(LOGGER, name, e, success=False)
            raise
        log_tool_result(LOGGER, name, result)
        return result

    def clear(self) -> None:
        self._tools.clear()
        self._meta.clear()
