"""Runtime assembly: agents, tools, MCP, stores and the flow controller."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from langchain_core.messages import HumanMessage

from agentGrid.agents.bootstrap import AgentSystem, initialize_agents
from agentGrid.config import get_settings
from agentGrid.config.project_root import resolve_project_path
from agentGrid.evaluation import LLMResponseEvaluator
from agentGrid.flow import AgentFlowController, FlowContext, FlowOptions, ToolDispatcher
from agentGrid.models import LangChainModelInvoker, build_chat_model
from agentGrid.persistence import InMemoryConversationStore, InMemoryExecutionStore
from agentGrid.tools.mcp import MCPToolGateway

if TYPE_CHECKING:
    from agentGrid.interfaces import ConversationStore, ExecutionStore, ModelInvoker, ProgressSink

LOGGER = logging.getLogger(__name__)


@dataclass
class Application:
    system: AgentSystem
    controller: AgentFlowController
    conversation_store: "ConversationStore"
    execution_store: "ExecutionStore"
    mcp_gateway: Optional[MCPToolGateway] = None

    async def handle_user_message(
        self,
        agent_type: str,
        conversation_id: Union[int, str],
        text: str,
        send: Optional["ProgressSink"] = None,
        options: Optional[FlowOptions] = None,
        session_token: Optional[str] = None,
    ) -> Optional[str]:
        """Persist ``text`` as a user turn and run ``agent_type`` on the conversation.

        Raises:
            KeyError: ``agent_type`` is not registered
        """
        agent = self.system.registry.get(agent_type)
        if agent is None:
            raise KeyError(f"Unknown agent type: {agent_type}")

        message_id = await self.conversation_store.add_message(conversation_id, HumanMessage(content=text))
        context = FlowContext(
            agent_type=agent_type,
            agent=agent,
            user_message=text,
            conversation_id=conversation_id,
            send=send,
            user_message_id=message_id,
            session_token=session_token,
        )
        return await self.controller.execute_autonomous_flow(context, options)

    async def shutdown(self) -> None:
        await self.system.event_bus.drain()
        if self.mcp_gateway is not None:
            await self.mcp_gateway.shutdown()


def _load_mcp_gateway() -> Optional[MCPToolGateway]:
    config_path = resolve_project_path(get_settings().orchestration.mcp_config_path)
    if not config_path.exists():
        LOGGER.info("No MCP configuration found, skipping MCP integration")
        return None
    LOGGER.info("Loading MCP configuration...")
    return MCPToolGateway.from_config_file(config_path)


async def build_application(
    model_invoker: Optional["ModelInvoker"] = None,
    *,
    mcp_gateway: Optional[MCPToolGateway] = None,
    load_mcp: bool = True,
    conversation_store: Optional["ConversationStore"] = None,
    execution_store: Optional["ExecutionStore"] = None,
) -> Application:
    """Wire the whole runtime.

    Args:
        model_invoker: Invoker for agents and evaluator (default: ChatOpenAI from settings)
        mcp_gateway: Pre-built MCP gateway; loaded from mcp_servers.yaml when omitted
        load_mcp: Set False to skip MCP entirely
        conversation_store: Conversation store (default: in-memory)
        execution_store: Execution store (default: in-memory)
    """
    settings = get_settings()
    model_invoker = model_invoker or LangChainModelInvoker(build_chat_model(settings.models))

    if mcp_gateway is None and load_mcp:
        mcp_gateway = _load_mcp_gateway()

    system = await initialize_agents(model_invoker, mcp_source=mcp_gateway)

    conversation_store = conversation_store or InMemoryConversationStore()
    execution_store = execution_store or InMemoryExecutionStore()

    dispatcher = ToolDispatcher(
        system.tool_registry,
        mcp_source=mcp_gateway,
        registry=system.registry,
        mcp_allowed_agent_types=settings.orchestration.mcp_allowed_agent_types,
    )
    controller = AgentFlowController(
        conversation_store,
        LLMResponseEvaluator(model_invoker),
        dispatcher,
        system.registry,
        factory=system.factory,
        execution_store=execution_store,
        settings=settings,
    )

    LOGGER.info(f"Application built: {system.registry.get_stats()}")
    return Application(
        system=system,
        controller=controller,
        conversation_store=conversation_store,
        execution_store=execution_store,
        mcp_gateway=mcp_gateway,
    )
