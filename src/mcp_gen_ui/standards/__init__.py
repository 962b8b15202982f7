"""UI host standards: profiles, prompts and minimal fallback renderers."""

from .minimal import render_mcp_apps_minimal, render_openai_minimal, script_json
from .profiles import (
    MCP_APPS_PROFILE,
    OPENAI_PROFILE,
    StandardName,
    StandardProfile,
    get_standard_profile,
)

__all__ = [
    "MCP_APPS_PROFILE",
    "OPENAI_PROFILE",
    "StandardName",
    "StandardProfile",
    "get_standard_profile",
    "render_mcp_apps_minimal",
    "render_openai_minimal",
    "script_json",
]
