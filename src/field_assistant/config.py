"""Application configuration settings.

Provides settings for the HTTP layer, logging, tracing and the
Azure AI Foundry provider.
"""

import math
import re
from enum import StrEnum
from functools import lru_cache
from typing import Any

import structlog
from pydantic import AliasChoices, Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()

DEFAULT_API_VERSION = "2024-12-01-preview"


class ProviderMode(StrEnum):
    """Which upstream operation a request is routed to."""

    DIRECT = "direct"
    AGENT = "agent"


class APISettings(BaseSettings):
    """General API settings."""

    title: str = Field(
        default="Field Assistant API",
        description="API title",
    )
    description: str = Field(
        default="Chat broker for Azure AI Foundry deployments and agents",
        description="API description",
    )
    version: str = Field(
        default="0.1.0",
        description="API version",
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    api_prefix: str = Field(default="/api", description="API route prefix")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )

    # Request limits
    max_request_body_size: int = Field(
        default=1024 * 1024,  # 1MB
        description="Maximum chat request body size in bytes",
    )

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Structured logging settings."""

    verbose: bool = Field(
        default=False,
        description="Log request previews, latency and upstream tracebacks",
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON instead of console output",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )


class LangfuseSettings(BaseSettings):
    """Langfuse tracing settings."""

    enabled: bool = Field(default=True, description="Enable Langfuse tracing")
    host: str = Field(
        default="https://cloud.langfuse.com",
        description="Langfuse server URL",
    )
    public_key: str = Field(default="", description="Langfuse public key")
    secret_key: str = Field(default="", description="Langfuse secret key")
    debug: bool = Field(default=False, description="Enable Langfuse SDK debug logs")
    flush_at: int = Field(default=15, description="Batch size before flushing")
    flush_interval: float = Field(default=1.0, description="Flush interval in seconds")
    sample_rate: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Fraction of requests to trace",
    )

    model_config = SettingsConfigDict(
        env_prefix="LANGFUSE_",
        env_file=".env",
        extra="ignore",
    )


class ProviderSettings(BaseSettings):
    """Azure AI Foundry connection settings.

    Not cached: a fresh instance is built for every chat request so that
    configuration changes are observed on the next request.
    """

    endpoint: str | None = Field(default=None, description="Azure AI Foundry endpoint")
    api_key: str | None = Field(default=None, description="Azure AI Foundry API key")
    chat_deployment: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AI_FOUNDRY_CHAT_DEPLOYMENT", "AI_FOUNDRY_DEPLOYMENT"),
        description="Model deployment name used in direct mode",
    )
    agent_id: str | None = Field(
        default=None,
        description="Agent identifier; selects agent mode when set",
    )
    api_version: str = Field(
        default=DEFAULT_API_VERSION,
        description="Versioned API contract sent as api-version",
    )
    agent_api_version: str | None = Field(
        default=None,
        description="api-version override for agent mode",
    )
    system_prompt: str | None = Field(
        default=None,
        description="Default system instruction injected when none is present",
    )
    temperature: float | None = Field(default=None, description="Sampling temperature")
    top_p: float | None = Field(default=None, description="Nucleus sampling parameter")
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Upstream request timeout",
    )
    max_retries: int = Field(
        default=0,
        ge=0,
        le=5,
        description="Retries on transient transport errors (0 disables)",
    )

    model_config = SettingsConfigDict(
        env_prefix="AI_FOUNDRY_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator(
        "api_key",
        "chat_deployment",
        "agent_id",
        "agent_api_version",
        "system_prompt",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("endpoint", mode="before")
    @classmethod
    def _normalize_endpoint(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        value = value.strip()
        if not value:
            return None
        if not re.match(r"^https?://", value, re.IGNORECASE):
            value = f"https://{value}"
        return value.rstrip("/")

    @field_validator("temperature", "top_p", mode="before")
    @classmethod
    def _lenient_number(cls, value: Any) -> Any:
        """Treat unparseable numeric settings as unset instead of failing."""
        if value is None or (isinstance(value, (int, float)) and not isinstance(value, bool)):
            return value
        raw = str(value).strip()
        if not raw:
            return None
        try:
            parsed = float(raw)
        except ValueError:
            logger.warning("provider_setting_ignored", reason="invalid_number", value=raw)
            return None
        if math.isnan(parsed):
            logger.warning("provider_setting_ignored", reason="invalid_number", value=raw)
            return None
        return parsed

    @field_validator("timeout_seconds", "max_retries", mode="wrap")
    @classmethod
    def _default_on_invalid(cls, value: Any, handler: Any, info: ValidationInfo) -> Any:
        """Fall back to the field default when the value is out of range or unparseable."""
        try:
            return handler(value)
        except ValidationError:
            logger.warning(
                "provider_setting_ignored",
                reason="invalid_value",
                setting=info.field_name,
                value=str(value),
            )
            return cls.model_fields[info.field_name].default

    @property
    def mode(self) -> ProviderMode:
        """Agent mode whenever an agent id is configured."""
        return ProviderMode.AGENT if self.agent_id else ProviderMode.DIRECT

    @property
    def effective_api_version(self) -> str:
        if self.mode is ProviderMode.AGENT and self.agent_api_version:
            return self.agent_api_version
        return self.api_version

    def required_variables(self) -> list[str]:
        """Environment variable names required by the current mode."""
        target = (
            "AI_FOUNDRY_AGENT_ID" if self.mode is ProviderMode.AGENT else "AI_FOUNDRY_CHAT_DEPLOYMENT"
        )
        return ["AI_FOUNDRY_ENDPOINT", "AI_FOUNDRY_API_KEY", target]

    def missing_variables(self) -> list[str]:
        values = {
            "AI_FOUNDRY_ENDPOINT": self.endpoint,
            "AI_FOUNDRY_API_KEY": self.api_key,
            "AI_FOUNDRY_CHAT_DEPLOYMENT": self.chat_deployment,
            "AI_FOUNDRY_AGENT_ID": self.agent_id,
        }
        return [name for name in self.required_variables() if not values[name]]

    @property
    def is_complete(self) -> bool:
        return not self.missing_variables()


@lru_cache
def get_api_settings() -> APISettings:
    """Get cached API settings."""
    return APISettings()


@lru_cache
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings."""
    return LoggingSettings()


@lru_cache
def get_langfuse_settings() -> LangfuseSettings:
    """Get cached Langfuse settings."""
    return LangfuseSettings()


def get_provider_settings() -> ProviderSettings:
    """Read provider settings from the environment.

    Intentionally uncached; injected per request via FastAPI dependencies.
    """
    return ProviderSettings()
