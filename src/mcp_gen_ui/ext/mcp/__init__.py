"""MCP integration: upstream client, orchestrator and downstream server.

Provides:
    - UpstreamClient: persistent fastmcp client to the wrapped server
    - MetaToolDiscovery: inner tools behind TOOL_LIST / TOOL_GET / TOOL_CALL
    - GenUIWrapper: tool table, refinements, UI resolution
    - create_mcp_server / create_app: low-level MCP server and Starlette app
"""

from __future__ import annotations

__all__ = [
    # Upstream
    "ToolInvoker", "InnerToolDiscovery", "UpstreamClient", "MetaToolDiscovery", "META_TOOLS",
    # Orchestrator
    "GenUIWrapper", "add_structured_content", "build_sample_arguments",
    # Server
    "create_mcp_server", "create_app",
]


def __getattr__(name: str) -> object:
    """Lazy imports keep the package import cheap."""
    if name in ("ToolInvoker", "InnerToolDiscovery", "UpstreamClient", "MetaToolDiscovery", "META_TOOLS"):
        from . import upstream
        return getattr(upstream, name)
    if name in ("GenUIWrapper", "add_structured_content", "build_sample_arguments"):
        from . import wrapper
        return getattr(wrapper, name)
    if name in ("create_mcp_server", "create_app"):
        from . import server
        return getattr(server, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
