"""
Library configuration using Pydantic settings.

Configuration is loaded from environment variables (AOX_ prefix for library
settings, the vendors' conventional names for API keys) and can be
overridden via a YAML config file.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoreSettings(BaseSettings):
    """General library settings."""

    model_config = SettingsConfigDict(
        env_prefix="AOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Log level used by the CLI")

    # Config file path
    config_path: Path | None = Field(default=None, description="Path to YAML config file")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v


class HttpSettings(BaseSettings):
    """HTTP transport settings shared by every provider."""

    model_config = SettingsConfigDict(
        env_prefix="AOX_HTTP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    timeout: float = Field(default=120.0, description="Request timeout in seconds")
    connect_timeout: float = Field(default=10.0, description="Connect timeout in seconds")

    # Retry settings
    max_retries: int = Field(default=2, description="Retries for retryable failures")
    retry_delay_ms: int = Field(default=200, description="Base retry delay in milliseconds")
    max_retry_delay_ms: int = Field(default=5000, description="Maximum retry delay")

    debug: bool = Field(default=False, description="Log outgoing request payloads")
    user_agent: str = Field(default="ai-ox/0.1.0", description="User-Agent header")


class ProviderSettings(BaseSettings):
    """Provider credential settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Anthropic
    anthropic_api_key: str | None = Field(
        default=None, alias="ANTHROPIC_API_KEY", description="Anthropic API key"
    )
    anthropic_oauth_token: str | None = Field(
        default=None, alias="ANTHROPIC_OAUTH_TOKEN", description="Anthropic OAuth token"
    )
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com",
        description="Anthropic API base URL",
    )

    # Google Gemini
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
        description="Gemini API key",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Gemini API base URL",
    )

    # OpenAI
    openai_api_key: str | None = Field(
        default=None, alias="OPENAI_API_KEY", description="OpenAI API key"
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API base URL",
    )

    # Mistral
    mistral_api_key: str | None = Field(
        default=None, alias="MISTRAL_API_KEY", description="Mistral API key"
    )
    mistral_base_url: str = Field(
        default="https://api.mistral.ai/v1",
        description="Mistral API base URL",
    )

    # Groq
    groq_api_key: str | None = Field(
        default=None, alias="GROQ_API_KEY", description="Groq API key"
    )
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Groq API base URL",
    )

    # OpenRouter
    openrouter_api_key: str | None = Field(
        default=None, alias="OPENROUTER_API_KEY", description="OpenRouter API key"
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter API base URL",
    )


class AgentSettings(BaseSettings):
    """Agent loop configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AOX_AGENT_",
        extra="ignore",
    )

    max_iterations: int = Field(default=12, description="Maximum model calls per agent run")


class Settings(BaseSettings):
    """Combined library settings."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)

    def load_from_yaml(self, path: Path) -> None:
        """Load additional settings from YAML file."""
        if not path.exists():
            return

        with open(path) as f:
            config = yaml.safe_load(f)

        if not config:
            return

        for section in ("core", "http", "agent"):
            if section not in config:
                continue
            target = getattr(self, section)
            for key, value in config[section].items():
                if hasattr(target, key):
                    setattr(target, key, value)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()

    # Load from config file if specified
    if settings.core.config_path:
        settings.load_from_yaml(settings.core.config_path)

    return settings


def get_settings_dict() -> dict[str, Any]:
    """Get settings as dictionary, reporting credentials only as configured flags."""
    settings = get_settings()
    providers = settings.providers
    return {
        "core": {
            "log_level": settings.core.log_level,
            "config_path": str(settings.core.config_path) if settings.core.config_path else None,
        },
        "http": {
            "timeout": settings.http.timeout,
            "connect_timeout": settings.http.connect_timeout,
            "max_retries": settings.http.max_retries,
            "retry_delay_ms": settings.http.retry_delay_ms,
            "max_retry_delay_ms": settings.http.max_retry_delay_ms,
            "debug": settings.http.debug,
            "user_agent": settings.http.user_agent,
        },
        "agent": {
            "max_iterations": settings.agent.max_iterations,
        },
        "providers": {
            "anthropic": {
                "configured": bool(providers.anthropic_api_key or providers.anthropic_oauth_token),
                "base_url": providers.anthropic_base_url,
            },
            "gemini": {
                "configured": bool(providers.gemini_api_key),
                "base_url": providers.gemini_base_url,
            },
            "openai": {
                "configured": bool(providers.openai_api_key),
                "base_url": providers.openai_base_url,
            },
            "mistral": {
                "configured": bool(providers.mistral_api_key),
                "base_url": providers.mistral_base_url,
            },
            "groq": {
                "configured": bool(providers.groq_api_key),
                "base_url": providers.groq_base_url,
            },
            "openrouter": {
                "configured": bool(providers.openrouter_api_key),
                "base_url": providers.openrouter_base_url,
            },
        },
    }
