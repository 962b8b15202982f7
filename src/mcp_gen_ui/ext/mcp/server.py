"""Downstream MCP surface for the gen-UI wrapper.

The tool and resource tables change at runtime (inner-tool discovery,
refinements), so the protocol handlers sit on the low-level ``mcp`` Server and
delegate every request to a ``GenUIWrapper``.

Endpoints:
    - ``/mcp``: Streamable HTTP MCP endpoint (stateless)
    - ``/health``: liveness probe returning ``{"status": "ok"}``

Example:
    >>> app = create_app(wrapper)
    >>> uvicorn.run(app, host="localhost", port=8000)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from pydantic import AnyUrl
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from mcp_gen_ui.foundation.errors import ResourceNotFound

if TYPE_CHECKING:
    from starlette.types import Receive, Scope, Send

    from .wrapper import GenUIWrapper

logger = logging.getLogger("mcp_gen_ui.server")

SERVER_NAME = "mcp-gen-ui"


# ═══════════════════════════════════════════════════════════════════════════════
# MCP Protocol Handlers
# ═══════════════════════════════════════════════════════════════════════════════


def create_mcp_server(wrapper: GenUIWrapper, name: str = SERVER_NAME) -> Server:
    """Build a low-level MCP server whose handlers delegate to ``wrapper``.

    Also installs the wrapper's notifier so refine/regenerate push
    resource-updated and list-changed notifications on the calling session.
    """
    from mcp_gen_ui import __version__

    server = Server(name, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        logger.debug("<-- tools/list")
        return [types.Tool.model_validate(tool) for tool in wrapper.build_tool_list()]

    # Registered directly so isError, structuredContent and _meta pass through untouched.
    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        name = request.params.name
        logger.debug("<-- tools/call %s", name)
        result = await wrapper.handle_tool_call(name, request.params.arguments)
        return types.ServerResult(types.CallToolResult.model_validate(result))

    server.request_handlers[types.CallToolRequest] = call_tool

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        logger.debug("<-- resources/list")
        return [types.Resource.model_validate(resource) for resource in wrapper.list_resources()]

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
        logger.debug("<-- resources/read %s", uri)
        try:
            html = await wrapper.read_resource(str(uri))
        except ResourceNotFound as e:
            logger.warning("%s", e)
            raise
        return [ReadResourceContents(content=html, mime_type=wrapper.profile.mime_type)]

    @server.subscribe_resource()
    async def subscribe_resource(uri: AnyUrl) -> None:
        logger.debug("<-- resources/subscribe %s", uri)

    @server.unsubscribe_resource()
    async def unsubscribe_resource(uri: AnyUrl) -> None:
        logger.debug("<-- resources/unsubscribe %s", uri)

    async def notify(uri: str) -> None:
        session = server.request_context.session
        await session.send_resource_updated(AnyUrl(uri))
        await session.send_resource_list_changed()

    wrapper.notifier = notify
    return server


# ═══════════════════════════════════════════════════════════════════════════════
# HTTP Application
# ═══════════════════════════════════════════════════════════════════════════════


class StreamableHTTPEndpoint:
    """ASGI endpoint handing requests to the session manager.

    A class instance (not a function) so Starlette routes it as a raw ASGI app.
    """

    __slots__ = ("_manager",)

    def __init__(self, manager: StreamableHTTPSessionManager) -> None:
        self._manager = manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._manager.handle_request(scope, receive, send)


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def create_app(wrapper: GenUIWrapper, *, name: str = SERVER_NAME) -> Starlette:
    """Starlette app serving the wrapper over Streamable HTTP.

    The lifespan runs the session manager and flushes the artifact store on
    shutdown. CORS is open to any origin.
    """
    server = create_mcp_server(wrapper, name)
    manager = StreamableHTTPSessionManager(app=server, event_store=None, json_response=False, stateless=True)

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with manager.run():
            logger.info("StreamableHTTP session manager ready")
            try:
                yield
            finally:
                await wrapper.close()

    app = Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/mcp", StreamableHTTPEndpoint(manager), methods=["GET", "POST", "DELETE"]),
        ],
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization", "mcp-session-id", "mcp-protocol-version"],
        expose_headers=["Mcp-Session-Id"],
    )
    return app
