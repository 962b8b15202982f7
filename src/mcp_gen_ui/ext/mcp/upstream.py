"""Upstream MCP server access.

``ToolInvoker`` and ``InnerToolDiscovery`` are the only views of the upstream
the orchestrator depends on. ``UpstreamClient`` implements the first over a
persistent fastmcp ``Client``; ``MetaToolDiscovery`` implements the second for
gateways that hide their real tools behind TOOL_LIST / TOOL_GET / TOOL_CALL.

Example:
    >>> async with UpstreamClient.from_settings(settings.upstream) as upstream:
    ...     tools = await upstream.list_tools()
    ...     result = await upstream.call_tool("get_weather", {"city": "Oslo"})
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

import orjson
from fastmcp import Client
from fastmcp.client.transports import StdioTransport, StreamableHttpTransport
from pydantic import ValidationError

from mcp_gen_ui.core.models import JsonDict, ToolDefinition
from mcp_gen_ui.foundation.errors import ConfigurationError, describe_exception

if TYPE_CHECKING:
    from types import TracebackType

    from mcp_gen_ui.foundation.config import UpstreamSettings

logger = logging.getLogger("mcp_gen_ui.upstream")

TOOL_LIST = "TOOL_LIST"
TOOL_GET = "TOOL_GET"
TOOL_CALL = "TOOL_CALL"
META_TOOLS = frozenset({TOOL_LIST, TOOL_GET, TOOL_CALL})
MAX_INNER_TOOLS = 20


# ═══════════════════════════════════════════════════════════════════════════════
# Protocols
# ═══════════════════════════════════════════════════════════════════════════════


@runtime_checkable
class ToolInvoker(Protocol):
    """Tool discovery and invocation against the upstream server.

    ``call_tool`` returns the JSON form of an MCP CallToolResult: a mapping
    with ``content`` and optionally ``isError`` and ``structuredContent``.
    """

    async def list_tools(self) -> list[ToolDefinition]: ...

    async def call_tool(self, name: str, arguments: JsonDict) -> JsonDict: ...


@runtime_checkable
class InnerToolDiscovery(Protocol):
    """Finds tools reachable only through a meta-tool gateway.

    May return a partial or empty list. Implementations should not raise, but
    callers still guard against it.
    """

    async def discover_inner_tools(self) -> list[ToolDefinition]: ...


def first_text(result: JsonDict) -> str | None:
    """Text of the first text content item of a CallToolResult mapping."""
    content = result.get("content")
    if not isinstance(content, list):
        return None
    for item in content:
        if isinstance(item, dict) and item.get("type") == "text" and isinstance(item.get("text"), str):
            return item["text"]
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# fastmcp-backed Client
# ═══════════════════════════════════════════════════════════════════════════════


class UpstreamClient:
    """Persistent connection to the upstream MCP server.

    Enter it (``connect`` or ``async with``) once at startup; every list/call
    reuses the same session, so a stdio upstream stays a single subprocess.
    """

    __slots__ = ("_client", "_stack", "_description")

    def __init__(self, client: Client, *, description: str = "upstream") -> None:
        self._client = client
        self._stack: AsyncExitStack | None = None
        self._description = description

    @classmethod
    def from_settings(cls, settings: UpstreamSettings) -> Self:
        """Build a client for a remote URL or a local stdio command.

        Raises:
            ConfigurationError: Neither url nor command is configured
        """
        settings.require()
        if settings.url:
            headers = {}
            if settings.bearer_token is not None:
                headers["Authorization"] = f"Bearer {settings.bearer_token.get_secret_value()}"
            transport: StreamableHttpTransport | StdioTransport = StreamableHttpTransport(url=settings.url, headers=headers)
        else:
            argv = settings.command_argv()
            if not argv:
                raise ConfigurationError("Upstream command is empty")
            transport = StdioTransport(command=argv[0], args=argv[1:])
        return cls(Client(transport=transport), description=settings.describe())

    @property
    def connected(self) -> bool:
        return self._stack is not None

    async def connect(self) -> None:
        if self._stack is not None:
            return
        stack = AsyncExitStack()
        await stack.enter_async_context(self._client)
        self._stack = stack
        logger.info("Connected to upstream server %s", self._description)

    async def close(self) -> None:
        if self._stack is None:
            return
        stack, self._stack = self._stack, None
        await stack.aclose()

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def list_tools(self) -> list[ToolDefinition]:
        tools = await self._client.list_tools()
        return [
            ToolDefinition(name=t.name, description=t.description, input_schema=dict(t.inputSchema or {}))
            for t in tools
        ]

    async def call_tool(self, name: str, arguments: JsonDict) -> JsonDict:
        # Raw MCP result; tool-level errors come back as isError instead of raising.
        result = await self._client.call_tool_mcp(name, arguments)
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Meta-tool Discovery
# ═══════════════════════════════════════════════════════════════════════════════


def _parse_json(text: str | None) -> object:
    if not text:
        return None
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError:
        return None


class MetaToolDiscovery:
    """Discovers inner tools through TOOL_LIST and TOOL_GET.

    Accepts JSON payloads only: TOOL_LIST must return a list of
    ``{"name", "description"}`` objects (bare or under ``"tools"``), TOOL_GET an
    object carrying ``parameters`` or ``inputSchema``. Anything unparseable is
    skipped, so the result may be partial.
    """

    __slots__ = ("_invoker", "_limit")

    def __init__(self, invoker: ToolInvoker, *, limit: int = MAX_INNER_TOOLS) -> None:
        self._invoker = invoker
        self._limit = limit

    async def discover_inner_tools(self) -> list[ToolDefinition]:
        try:
            listing = await self._invoker.call_tool(TOOL_LIST, {})
        except Exception as e:
            logger.warning("TOOL_LIST failed: %s", describe_exception(e))
            return []

        entries = _parse_json(first_text(listing))
        if isinstance(entries, dict):
            entries = entries.get("tools")
        if not isinstance(entries, list):
            logger.warning("TOOL_LIST returned no parseable tool list")
            return []

        found: list[ToolDefinition] = []
        for entry in entries[: self._limit]:
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                continue
            tool = await self._describe(entry["name"], entry.get("description"))
            if tool is not None:
                found.append(tool)
        logger.info("Discovered %d inner tool(s)", len(found))
        return found

    async def _describe(self, name: str, description: object) -> ToolDefinition | None:
        try:
            detail = await self._invoker.call_tool(TOOL_GET, {"tool_name": name})
        except Exception as e:
            logger.warning("TOOL_GET %s failed: %s", name, describe_exception(e))
            return None

        payload = _parse_json(first_text(detail))
        schema: JsonDict = {"type": "object", "properties": {}}
        if isinstance(payload, dict):
            candidate = payload.get("parameters", payload.get("inputSchema"))
            if isinstance(candidate, dict):
                schema = candidate
            if not isinstance(description, str):
                description = payload.get("description")

        try:
            return ToolDefinition(
                name=name,
                description=" ".join(description.split()) if isinstance(description, str) else None,
                input_schema=schema,
            )
        except ValidationError:
            return None
