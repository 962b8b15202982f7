"""Output-standard profiles.

A profile is a plain data record: everything that differs between the
OpenAI Apps SDK and MCP Apps hosts (resource addressing, MIME type, tool
metadata, prompt text, acceptance marker, fallback renderer) lives here and
is selected by ``StandardName``. Nothing subclasses a profile.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from mcp_gen_ui.core.models import ToolDefinition
from mcp_gen_ui.foundation.errors import ConfigurationError

from .minimal import render_mcp_apps_minimal, render_openai_minimal
from .prompts import (
    MCP_APPS_OUTPUT_GUIDANCE,
    MCP_APPS_SYSTEM_PROMPT,
    OPENAI_OUTPUT_GUIDANCE,
    OPENAI_SYSTEM_PROMPT,
)


class StandardName(StrEnum):
    """Supported UI host standards."""
    OPENAI = "openai"
    MCP_APPS = "mcp-apps"


def _openai_meta(uri: str) -> dict[str, Any]:
    return {"openai/outputTemplate": uri, "openai/widgetAccessible": True}


def _mcp_apps_meta(uri: str) -> dict[str, Any]:
    return {"ui": {"resourceUri": uri}}


@dataclass(frozen=True, slots=True)
class StandardProfile:
    """Everything standard-specific about serving a generated UI.

    Attributes:
        name: Standard this profile implements
        uri_prefix: Prefix of every UI resource URI
        uri_suffix: Suffix of every UI resource URI (may be empty)
        mime_type: MIME type advertised for UI resources
        meta_builder: Builds a tool's ``_meta`` from its resource URI
        validation_marker: String a generated UI must contain to be accepted
        use_structured_content: Whether proxied results gain ``structuredContent``
        system_prompt: Fixed system prompt for generation
        output_guidance: Host-integration notes added to every user prompt
        minimal_renderer: Fallback renderer using this host's integration
        exposes_wrapper_tools: Whether ``_ui_refine``/``_ui_regenerate`` are listed
    """

    name: StandardName
    uri_prefix: str
    uri_suffix: str
    mime_type: str
    meta_builder: Callable[[str], dict[str, Any]]
    validation_marker: str
    use_structured_content: bool
    system_prompt: str
    output_guidance: str
    minimal_renderer: Callable[[ToolDefinition], str]
    exposes_wrapper_tools: bool

    def build_tool_meta(self, resource_uri: str) -> dict[str, Any]:
        return self.meta_builder(resource_uri)

    def render_minimal(self, tool: ToolDefinition) -> str:
        return self.minimal_renderer(tool)

    def resource_uri(self, tool_name: str) -> str:
        return f"{self.uri_prefix}{tool_name}{self.uri_suffix}"

    def tool_from_uri(self, uri: str) -> str | None:
        """Extract the tool name from a resource URI, or None if it isn't one of ours."""
        if not uri.startswith(self.uri_prefix):
            return None
        name = uri[len(self.uri_prefix):]
        if self.uri_suffix and name.endswith(self.uri_suffix):
            name = name[: -len(self.uri_suffix)]
        return name or None

    def accepts(self, html: str) -> bool:
        """Acceptance gate for generated output."""
        return "<html" in html.lower() and self.validation_marker in html


OPENAI_PROFILE = StandardProfile(
    name=StandardName.OPENAI,
    uri_prefix="ui://",
    uri_suffix="",
    mime_type="text/html",
    meta_builder=_openai_meta,
    validation_marker="window.openai",
    use_structured_content=True,
    system_prompt=OPENAI_SYSTEM_PROMPT,
    output_guidance=OPENAI_OUTPUT_GUIDANCE,
    minimal_renderer=render_openai_minimal,
    exposes_wrapper_tools=False,
)

MCP_APPS_PROFILE = StandardProfile(
    name=StandardName.MCP_APPS,
    uri_prefix="ui://",
    uri_suffix="",
    mime_type="text/html;profile=mcp-app",
    meta_builder=_mcp_apps_meta,
    validation_marker="@modelcontextprotocol/ext-apps",
    use_structured_content=False,
    system_prompt=MCP_APPS_SYSTEM_PROMPT,
    output_guidance=MCP_APPS_OUTPUT_GUIDANCE,
    minimal_renderer=render_mcp_apps_minimal,
    exposes_wrapper_tools=True,
)

_PROFILES: dict[StandardName, StandardProfile] = {
    StandardName.OPENAI: OPENAI_PROFILE,
    StandardName.MCP_APPS: MCP_APPS_PROFILE,
}


def get_standard_profile(name: StandardName | str) -> StandardProfile:
    """Look up a profile by name. Unknown names are a configuration error."""
    try:
        return _PROFILES[StandardName(name)]
    except ValueError:
        choices = " or ".join(f'"{s.value}"' for s in StandardName)
        raise ConfigurationError(f"Unknown standard: {name}. Must be {choices}.") from None
