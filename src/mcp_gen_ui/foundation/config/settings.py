"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from mcp_gen_ui.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.cache.directory
    '.mcp-gen-ui-cache'
    >>> settings.standard
    <StandardName.MCP_APPS: 'mcp-apps'>

    # Or with environment variables:
    # MCP_GEN_UI_STANDARD=openai
    # MCP_GEN_UI_LLM_PROVIDER=openai
    # MCP_GEN_UI_UPSTREAM_URL=http://localhost:9000/mcp
"""

from __future__ import annotations

import shlex
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import (
    AliasChoices,
    Field,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    ValidationError,
    computed_field,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from mcp_gen_ui.foundation.errors import ConfigurationError, ErrorCode
from mcp_gen_ui.standards import StandardName

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o",
}

_KEY_ENV_VARS: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


class LLMSettings(BaseSettings):
    """Generation provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MCP_GEN_UI_LLM_",
        extra="ignore",
        populate_by_name=True,
    )

    provider: Literal["anthropic", "openai"] = "anthropic"
    model: str | None = Field(default=None, description="Model id; provider default when unset")
    api_key: SecretStr | None = Field(default=None, description="Explicit key, wins over provider env vars")
    anthropic_api_key: SecretStr | None = Field(default=None, validation_alias="ANTHROPIC_API_KEY")
    openai_api_key: SecretStr | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    timeout: PositiveFloat = Field(default=30.0, description="Generation deadline in seconds")
    max_tokens: PositiveInt = 8000
    temperature: Annotated[float, Field(ge=0.0, le=2.0)] = 0.2

    @field_validator("provider", mode="before")
    @classmethod
    def _normalize_provider(cls, v: str) -> str:
        return v.lower() if isinstance(v, str) else v

    @computed_field
    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS[self.provider]

    def resolve_api_key(self) -> str:
        """Return the key for the configured provider or raise ConfigurationError."""
        provider_key = self.anthropic_api_key if self.provider == "anthropic" else self.openai_api_key
        secret = self.api_key or provider_key
        if secret is None or not secret.get_secret_value():
            raise ConfigurationError(
                f"No API key provided. Set {_KEY_ENV_VARS[self.provider]} or MCP_GEN_UI_LLM_API_KEY",
                code=ErrorCode.API_KEY_MISSING,
            )
        return secret.get_secret_value()


class CacheSettings(BaseSettings):
    """Artifact store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MCP_GEN_UI_CACHE_",
        extra="ignore",
        populate_by_name=True,
    )

    directory: str = Field(
        default=".mcp-gen-ui-cache",
        validation_alias=AliasChoices("MCP_GEN_UI_CACHE_DIR", "MCP_GEN_UI_CACHE_DIRECTORY"),
        description="Directory holding cache.json",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MCP_GEN_UI_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "text"

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class ServerSettings(BaseSettings):
    """Downstream HTTP server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MCP_GEN_UI_SERVER_",
        extra="ignore",
    )

    host: str = "localhost"
    port: Annotated[int, Field(ge=0, le=65535)] = 8000


class UpstreamSettings(BaseSettings):
    """Upstream MCP server location.

    Exactly one of ``url`` (remote server) or ``command`` (local stdio server)
    is expected; the MCP client library picks the transport from it.
    """

    model_config = SettingsConfigDict(
        env_prefix="MCP_GEN_UI_UPSTREAM_",
        extra="ignore",
        populate_by_name=True,
    )

    url: str | None = None
    command: str | None = None
    bearer_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("MCP_GEN_UI_UPSTREAM_BEARER_TOKEN", "MCP_UPSTREAM_BEARER_TOKEN"),
    )

    @computed_field
    @property
    def configured(self) -> bool:
        return bool(self.url or self.command)

    def command_argv(self) -> list[str]:
        return shlex.split(self.command) if self.command else []

    def describe(self) -> str:
        return self.url or self.command or "<unset>"

    def require(self) -> UpstreamSettings:
        if not self.configured:
            raise ConfigurationError("Must set MCP_GEN_UI_UPSTREAM_URL or MCP_GEN_UI_UPSTREAM_COMMAND")
        return self


class GenUISettings(BaseSettings):
    """Root settings for the gen-UI wrapper.

    Loads configuration from environment variables with MCP_GEN_UI_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        MCP_GEN_UI_STANDARD=openai
        MCP_GEN_UI_PROMPT="Use a dark theme"
        MCP_GEN_UI_LLM_TIMEOUT=60
        MCP_GEN_UI_CACHE_DIR=/var/cache/gen-ui
        MCP_GEN_UI_SERVER_PORT=0
    """

    model_config = SettingsConfigDict(
        env_prefix="MCP_GEN_UI_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    standard: StandardName = StandardName.MCP_APPS
    prompt: str | None = Field(default=None, description="Standing instruction added to every generation")

    llm: LLMSettings = Field(default_factory=LLMSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)

    @field_validator("standard", mode="before")
    @classmethod
    def _check_standard(cls, v: object) -> object:
        if isinstance(v, str) and v not in StandardName._value2member_map_:
            choices = " or ".join(f'"{s.value}"' for s in StandardName)
            raise ValueError(f"Invalid standard: {v}. Must be {choices}.")
        return v

    @field_validator("prompt", mode="before")
    @classmethod
    def _blank_prompt(cls, v: object) -> object:
        return None if isinstance(v, str) and not v.strip() else v

    def require_api_key(self) -> str:
        """API key for the configured provider; raises ConfigurationError when missing."""
        return self.llm.resolve_api_key()


def load_settings(**overrides: object) -> GenUISettings:
    """Build settings, turning validation failures into ConfigurationError."""
    try:
        return GenUISettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        first = e.errors()[0]
        message = str(first.get("msg", e)).removeprefix("Value error, ")
        raise ConfigurationError(message) from e


@lru_cache(maxsize=1)
def get_settings() -> GenUISettings:
    """Get the process settings instance (cached)."""
    return load_settings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
