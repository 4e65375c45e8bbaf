"""Configuration for agentGrid."""

from .project_root import get_project_root, resolve_project_path
from .settings import ModelSettings, ObservabilitySettings, OrchestrationSettings, Settings, get_settings

__all__ = [
    "get_project_root",
    "resolve_project_path",
    "Settings",
    "OrchestrationSettings",
    "ModelSettings",
    "ObservabilitySettings",
    "get_settings",
]
