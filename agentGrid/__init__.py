"""agentGrid - configurable agent orchestration engine."""

from .agents import AgentRegistry, ConfigurableAgent, initialize_agents
from .flow import AgentFlowController
from .runtime import Application, build_application

__all__ = [
    "AgentRegistry",
    "ConfigurableAgent",
    "initialize_agents",
    "AgentFlowController",
    "Application",
    "build_application",
]
