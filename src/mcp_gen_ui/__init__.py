"""mcp-gen-ui - generated interactive UIs for any MCP server.

Sits between an MCP client and an upstream MCP server. Tool discovery and
invocation pass through untouched; every tool additionally gets an HTML UI
resource, generated by a language model on first use and cached by the
fingerprint of its input schema and refinement history.

Quick Start:
    $ export ANTHROPIC_API_KEY=...
    $ MCP_GEN_UI_UPSTREAM_URL=http://localhost:9000/mcp mcp-gen-ui

Programmatic:
    >>> from mcp_gen_ui import GenUIWrapper, UISynthesizer, ArtifactStore, get_standard_profile
    >>> synth = UISynthesizer(llm, get_standard_profile("mcp-apps"))
    >>> wrapper = GenUIWrapper(upstream, synth, ArtifactStore(".mcp-gen-ui-cache"))
    >>> await wrapper.start()
    >>> html = await wrapper.read_resource("ui://get_weather")

Configuration (environment, prefix MCP_GEN_UI_):
    STANDARD      openai | mcp-apps (default)
    PROMPT        standing instruction for every generated UI
    LLM_PROVIDER  anthropic (default) | openai
    CACHE_DIR     cache directory (default .mcp-gen-ui-cache)
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Core
    "ToolDefinition", "SynthesisResult", "schema_fingerprint", "refinement_fingerprint",
    # Components
    "ArtifactStore", "UISynthesizer", "StandardName", "StandardProfile", "get_standard_profile",
    "GenUIWrapper", "UpstreamClient",
    # Settings & errors
    "GenUISettings", "get_settings", "ConfigurationError",
]

_LAZY: dict[str, str] = {
    "ToolDefinition": "mcp_gen_ui.core",
    "SynthesisResult": "mcp_gen_ui.core",
    "schema_fingerprint": "mcp_gen_ui.core",
    "refinement_fingerprint": "mcp_gen_ui.core",
    "ArtifactStore": "mcp_gen_ui.io.cache",
    "UISynthesizer": "mcp_gen_ui.synth",
    "StandardName": "mcp_gen_ui.standards",
    "StandardProfile": "mcp_gen_ui.standards",
    "get_standard_profile": "mcp_gen_ui.standards",
    "GenUIWrapper": "mcp_gen_ui.ext.mcp.wrapper",
    "UpstreamClient": "mcp_gen_ui.ext.mcp.upstream",
    "GenUISettings": "mcp_gen_ui.foundation.config",
    "get_settings": "mcp_gen_ui.foundation.config",
    "ConfigurationError": "mcp_gen_ui.foundation.errors",
}


def __getattr__(name: str) -> object:
    """Lazy imports keep ``import mcp_gen_ui`` free of SDK imports."""
    if name in _LAZY:
        import importlib
        return getattr(importlib.import_module(_LAZY[name]), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
