"""Tool dispatch for agents running inside a flow.

Resolution order, first match wins:
1. ``list_available_tools`` - answered here from the agent's own tool set
2. MCP tools - only for agent types on the MCP allow-list
3. Local and delegation tools from the ToolRegistry

Nothing raises for an unknown or disallowed tool; the caller gets a
message it can show the model instead.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from .schema import ProgressType
from agentGrid.agents.delegation import is_delegation_tool
from agentGrid.agents.schema import ToolCall
from agentGrid.config.settings import get_settings
from agentGrid.tools.builtin import LIST_AVAILABLE_TOOLS
from agentGrid.utils.errors import DelegationRejectedError

if TYPE_CHECKING:
    from agentGrid.agents.registry import AgentRegistry
    from agentGrid.agents.runtime import ConfigurableAgent
    from agentGrid.interfaces import McpToolSource
    from agentGrid.tools.registry import ToolRegistry
    from .progress import ProgressReporter

LOGGER = logging.getLogger(__name__)

# Checked in order; a tool lands in the first category whose keywords match its name.
TOOL_CATEGORIES = (
    ("Planning & Memory", ("plan", "memory")),
    ("Content Creation", ("create", "compose", "layout")),
    ("Design & Layout", ("figma", "design")),
    ("External Services", ("url", "api", "external", "http", "fetch")),
)
AGENT_CATEGORY = "Agent Tools"
OTHER_CATEGORY = "Other"


def stringify_tool_result(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, default=str)


def categorize_tool(name: str, source: str) -> str:
    if source == "agent" or is_delegation_tool(name):
        return AGENT_CATEGORY
    for category, keywords in TOOL_CATEGORIES:
        if any(keyword in name for keyword in keywords):
            return category
    return OTHER_CATEGORY


class ToolDispatcher:
    """Resolves and runs the tool an agent asked for."""

    def __init__(
        self,
        tool_registry: "ToolRegistry",
        mcp_source: Optional["McpToolSource"] = None,
        registry: Optional["AgentRegistry"] = None,
        mcp_allowed_agent_types: Optional[Iterable[str]] = None,
    ):
        self.tool_registry = tool_registry
        self.mcp_source = mcp_source
        self.registry = registry
        if mcp_allowed_agent_types is None:
            mcp_allowed_agent_types = get_settings().orchestration.mcp_allowed_agent_types
        self.mcp_allowed_agent_types = frozenset(mcp_allowed_agent_types)

    async def execute_tool_for_agent(
        self,
        tool_call: ToolCall,
        agent_type: str,
        agent: "ConfigurableAgent",
        reporter: Optional["ProgressReporter"] = None,
    ) -> str:
        """Run ``tool_call`` on behalf of ``agent_type``.

        Returns:
            The tool output as a string, or a descriptive message when the tool
            is unknown, not allowed for this agent, or a delegation was rejected.

        Raises:
            Exception: Errors raised by the tool itself (other than delegation
                rejections) propagate to the flow.
        """
        name = tool_call.name
        started = time.monotonic()

        if name == LIST_AVAILABLE_TOOLS:
            return self.generate_dynamic_tool_list(agent_type, agent)

        if self.mcp_source is not None and self.mcp_source.is_tool(name):
            if agent_type not in self.mcp_allowed_agent_types:
                LOGGER.warning(f"MCP tool '{name}' denied for agent type {agent_type}")
                await self._report(reporter, ProgressType.TOOL_RESPONSE, f"Tool '{name}' not available to {agent_type} agent", {
                    "phase": "tool_denied", "tool_name": name, "agent_type": agent_type, "reason": "permission",
                })
                return f"Tool '{name}' not available to {agent_type} agent."

            result = await self.mcp_source.call_tool(name, tool_call.args)
            await self._report_completed(reporter, name, "mcp", started)
            return stringify_tool_result(result)

        if self.tool_registry.has(name):
            try:
                result = await self.tool_registry.execute(name, tool_call.args)
            except DelegationRejectedError as e:
                LOGGER.warning(f"{agent_type}: {e}")
                await self._report(reporter, ProgressType.TOOL_RESPONSE, str(e), {
                    "phase": "delegation_rejected", "tool_name": name, "agent_type": agent_type,
                })
                return f"Delegation rejected: {e}"

            await self._report_completed(reporter, name, self.tool_registry.get_source(name), started)
            return stringify_tool_result(result)

        LOGGER.warning(f"Tool '{name}' not found for agent type {agent_type}")
        await self._report(reporter, ProgressType.TOOL_RESPONSE, f"Tool '{name}' not found", {
            "phase": "tool_not_found", "tool_name": name, "agent_type": agent_type,
        })
        return f"Tool '{name}' not found or not available to {agent_type} agent."

    # ========== Tool listing ==========

    def generate_dynamic_tool_list(self, agent_type: str, agent: "ConfigurableAgent") -> str:
        """Markdown overview of the tools ``agent`` can call, grouped by category."""
        tools = [tool for tool in agent.available_tools if tool.name != LIST_AVAILABLE_TOOLS]

        lines: List[str] = ["# My Capabilities", "", self._describe_agent(agent_type), ""]
        lines.append(f"## Available Tools ({len(tools)})")
        lines.append("")

        if not tools:
            lines.append(
                "I currently don't have any specialized tools available, "
                "but I can still help with general conversation and analysis."
            )
            return "\n".join(lines) + "\n"

        groups: Dict[str, List[str]] = {category: [] for category, _ in TOOL_CATEGORIES}
        groups[AGENT_CATEGORY] = []
        groups[OTHER_CATEGORY] = []
        for tool in tools:
            source = self.tool_registry.get_source(tool.name)
            if self.mcp_source is not None and self.mcp_source.is_tool(tool.name):
                source = "mcp"
            groups[categorize_tool(tool.name, source)].append(f"- **{tool.name}** [{source}]: {tool.description}")

        for category, entries in groups.items():
            if entries:
                lines.append(f"### {category}")
                lines.extend(entries)
                lines.append("")

        lines.append(f"**Tool System**: {len(tools)} tools available for {agent_type} agent.")
        return "\n".join(lines) + "\n"

    def _describe_agent(self, agent_type: str) -> str:
        metadata = self.registry.get_metadata(agent_type) if self.registry else None
        if metadata is None:
            return f"{agent_type} Agent"
        prefix = f"{metadata.icon} " if metadata.icon else ""
        return f"{prefix}{metadata.name} - {metadata.description}"

    # ========== Progress ==========

    async def _report(self, reporter, type: ProgressType, content: str, metadata: Dict[str, Any]) -> None:
        if reporter is not None:
            await reporter.send(type, content, metadata)

    async def _report_completed(self, reporter, name: str, source: str, started: float) -> None:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        LOGGER.debug(f"Tool {name} ({source}) finished in {elapsed_ms}ms")
        await self._report(reporter, ProgressType.TOOL_RESPONSE, f"Tool {name} executed in {elapsed_ms}ms", {
            "phase": "tool_completed", "tool_name": name, "tool_source": source, "execution_time_ms": elapsed_ms,
        })
