"""Foundation - configuration, error handling and test doubles."""

from __future__ import annotations

__all__ = [
    # Errors
    "ErrorCode", "ToolError", "classify_exception", "describe_exception",
    "GenUIError", "ConfigurationError", "GenerationError", "ResourceNotFound",
    # Config
    "GenUISettings", "LLMSettings", "CacheSettings", "LoggingSettings", "ServerSettings",
    "UpstreamSettings", "get_settings", "load_settings", "clear_settings_cache",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("ErrorCode", "ToolError", "classify_exception", "describe_exception",
                "GenUIError", "ConfigurationError", "GenerationError", "ResourceNotFound"):
        from . import errors
        return getattr(errors, name)

    if name in ("GenUISettings", "LLMSettings", "CacheSettings", "LoggingSettings", "ServerSettings",
                "UpstreamSettings", "get_settings", "load_settings", "clear_settings_cache"):
        from . import config
        return getattr(config, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
