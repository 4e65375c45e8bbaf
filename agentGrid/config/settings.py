"""Environment-bound configuration objects.

This module provides Pydantic BaseSettings-based configuration loading from .env files.
Orchestration limits are read from ORCHESTRATION_* variables; logging options
accept a couple of alias names (e.g., LOG_LEVEL and AGENTGRID_LOG_LEVEL both work).

Example:
    from agentGrid.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    max_requests = settings.orchestration.max_requests
    rephraser = settings.orchestration.rephraser_agent_type
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()


class OrchestrationSettings(BaseSettings):
    """Autonomous flow and delegation limits.

    - max_requests: Iteration budget of one autonomous flow (default: 10)
    - autonomous_mode: Continue across iterations by default (default: False)
    - max_delegation_depth: Longest allowed delegation chain (default: 3)
    - rephraser_agent_type: Agent used to humanize raw tool output
    - mcp_allowed_agent_types: Agent types allowed to call MCP-hosted tools
    """

    max_requests: int = Field(default=10, ge=1, le=100)
    autonomous_mode: bool = False
    max_delegation_depth: int = Field(default=3, ge=1, le=10)
    default_max_retries: int = Field(default=3, ge=1, le=10)
    rephraser_agent_type: str = "rephraser"
    mcp_allowed_agent_types: List[str] = Field(
        default_factory=lambda: ["general", "figma-analyzer", "IRFLayoutArchitecture", "figma-to-storyblok"]
    )
    agents_config_path: str = "agentGrid/config/agents.yaml"
    mcp_config_path: str = "agentGrid/config/mcp_servers.yaml"

    model_config = SettingsConfigDict(
        env_prefix="ORCHESTRATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class ModelSettings(BaseSettings):
    """Chat model used by the default model invoker.

    - chat: Model id (MODEL_CHAT_ID)
    - api_key: Provider API key (MODEL_CHAT_API_KEY or OPENAI_API_KEY)
    - base_url: OpenAI-compatible endpoint override
    - temperature: Sampling temperature
    """

    chat: str = Field(default="gpt-4o-mini", validation_alias=AliasChoices("MODEL_CHAT_ID", "MODEL_CHAT"))
    api_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("MODEL_CHAT_API_KEY", "OPENAI_API_KEY"))
    base_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("MODEL_CHAT_URL", "OPENAI_BASE_URL"))
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, validation_alias=AliasChoices("MODEL_TEMPERATURE"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class ObservabilitySettings(BaseSettings):
    """Logging configuration.

    - log_level: Package logger level name (default: INFO)
    - log_dir: Directory for timestamped log files (default: logs)
    - log_prompt_max_length: Preview length for prompts/responses in logs
    """

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "AGENTGRID_LOG_LEVEL"),
    )
    log_dir: str = Field(
        default="logs",
        validation_alias=AliasChoices("LOG_DIR", "AGENTGRID_LOG_DIR"),
    )
    log_prompt_max_length: int = Field(default=500, ge=100, le=5000, alias="LOG_PROMPT_MAX_LENGTH")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class Settings(BaseSettings):
    """Root application settings loaded from .env file.

    - orchestration: Flow and delegation limits (OrchestrationSettings)
    - models: Chat model credentials (ModelSettings)
    - observability: Logging (ObservabilitySettings)

    Use get_settings() to obtain a cached singleton instance.
    """

    environment: str = Field(default="dev", alias="APP_ENV")
    orchestration: OrchestrationSettings = Field(default_factory=OrchestrationSettings)
    models: ModelSettings = Field(default_factory=ModelSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        case_sensitive=False,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Returns:
        Settings: Cached application settings instance
    """
    return Settings()

