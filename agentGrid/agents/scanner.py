"""Agent scanner - reads agent definitions from agents.yaml.

1. Loads the YAML file
2. Fills identity fields (``id``/``type``) from each entry's key
3. Imports the lifecycle class named by ``lifecycle: "module:Class"``
4. Validates the entry into an AgentConfig
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from .factory import AgentDefinition
from .lifecycle import AgentLifecycle
from .schema import AgentConfig
from agentGrid.config.project_root import resolve_project_path
from agentGrid.config.settings import get_settings

LOGGER = logging.getLogger(__name__)


def import_factory(factory_path: str) -> Callable:
    """Import ``"module.path:Attribute"``.

    Raises:
        ValueError: Path is not in ``module:attr`` form
        ImportError: Module cannot be imported
        AttributeError: Module has no such attribute

    Examples:
        >>> import_factory("agentGrid.agents.lifecycles:ScribeLifecycle")
    """
    try:
        module_path, attr_name = factory_path.split(":")
        module = importlib.import_module(module_path)
        return getattr(module, attr_name)
    except (ValueError, ImportError, AttributeError) as e:
        LOGGER.error(f"Failed to import '{factory_path}': {e}")
        raise


def parse_agent_definition(agent_type: str, raw: Dict[str, Any]) -> AgentDefinition:
    """Build an AgentDefinition from one agents.yaml entry.

    Args:
        agent_type: The entry's key
        raw: The entry's mapping

    Raises:
        pydantic.ValidationError: Entry does not match AgentConfig
        ImportError: Lifecycle class cannot be imported
        TypeError: Lifecycle is not an AgentLifecycle subclass
    """
    raw = dict(raw)
    lifecycle_path = raw.pop("lifecycle", None)

    metadata = dict(raw.get("metadata") or {})
    metadata.setdefault("id", agent_type)
    metadata.setdefault("type", agent_type)
    metadata.setdefault("name", agent_type)
    raw["metadata"] = metadata

    behavior = dict(raw.get("behavior") or {})
    behavior.setdefault("max_retries", get_settings().orchestration.default_max_retries)
    raw["behavior"] = behavior

    config = AgentConfig.model_validate(raw)

    lifecycle_factory = AgentLifecycle
    if lifecycle_path:
        lifecycle_factory = import_factory(lifecycle_path)
        if not (isinstance(lifecycle_factory, type) and issubclass(lifecycle_factory, AgentLifecycle)):
            raise TypeError(f"{lifecycle_path} is not an AgentLifecycle subclass")

    return AgentDefinition(config=config, lifecycle_factory=lifecycle_factory)


def load_agents_config(config_path: Path | str) -> Dict[str, Any]:
    """Load agents.yaml.

    Raises:
        FileNotFoundError: Config file does not exist
        yaml.YAMLError: Invalid YAML
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Agent config not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    LOGGER.debug(f"Loaded agent config from {config_path}")
    return config


def scan_agent_definitions(config_path: Optional[Path | str] = None) -> List[AgentDefinition]:
    """Parse every agent declared in agents.yaml.

    Entries that fail to parse are logged and skipped; references to them
    are then reported by ``AgentFactory.validate()``.
    """
    if config_path is None:
        config_path = resolve_project_path(get_settings().orchestration.agents_config_path)

    config = load_agents_config(config_path)

    if not config.get("global", {}).get("enabled", True):
        LOGGER.info("Agents system is disabled in config")
        return []

    definitions: List[AgentDefinition] = []
    for agent_type, raw in (config.get("agents") or {}).items():
        try:
            definition = parse_agent_definition(agent_type, raw or {})
        except Exception as e:
            LOGGER.error(f"Failed to parse agent '{agent_type}': {e}")
            continue
        definitions.append(definition)
        LOGGER.info(f"Discovered agent: {agent_type} ({definition.config.metadata.name})")

    LOGGER.info(f"Agent scan complete: {len(definitions)} definitions")
    return definitions
