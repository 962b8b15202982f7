"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    DEFAULT_MODELS,
    CacheSettings,
    GenUISettings,
    LLMSettings,
    LoggingSettings,
    ServerSettings,
    UpstreamSettings,
    clear_settings_cache,
    get_settings,
    load_settings,
)

__all__ = [
    "DEFAULT_MODELS",
    "CacheSettings",
    "GenUISettings",
    "LLMSettings",
    "LoggingSettings",
    "ServerSettings",
    "UpstreamSettings",
    "clear_settings_cache",
    "get_settings",
    "load_settings",
]
