"""Tests for the MCP protocol handlers and the HTTP app."""

from pathlib import Path

import pytest
from mcp import types
from starlette.testclient import TestClient

from mcp_gen_ui.ext.mcp.server import create_app, create_mcp_server
from mcp_gen_ui.ext.mcp.wrapper import GenUIWrapper
from mcp_gen_ui.foundation.testing import FakeLLM, FakeUpstream, text_result
from mcp_gen_ui.io.cache import ArtifactStore
from mcp_gen_ui.standards import MCP_APPS_PROFILE, OPENAI_PROFILE, StandardProfile
from mcp_gen_ui.synth import UISynthesizer


def make_wrapper(tmp_path: Path, upstream: FakeUpstream, llm: FakeLLM, profile: StandardProfile) -> GenUIWrapper:
    return GenUIWrapper(upstream, UISynthesizer(llm, profile), ArtifactStore(tmp_path))


def test_health(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """The liveness probe answers without touching the upstream."""
    client = TestClient(create_app(make_wrapper(tmp_path, upstream, mcp_apps_llm, MCP_APPS_PROFILE)))
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    upstream.assert_not_called()


def test_server_installs_notifier(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Building the server wires resource notifications into the wrapper."""
    wrapper = make_wrapper(tmp_path, upstream, mcp_apps_llm, MCP_APPS_PROFILE)
    assert wrapper.notifier is None
    create_mcp_server(wrapper)
    assert wrapper.notifier is not None


@pytest.mark.asyncio
async def test_list_tools_handler(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """tools/list carries each tool's UI metadata."""
    wrapper = make_wrapper(tmp_path, upstream, mcp_apps_llm, MCP_APPS_PROFILE)
    await wrapper.start()
    server = create_mcp_server(wrapper)

    result = await server.request_handlers[types.ListToolsRequest](types.ListToolsRequest(method="tools/list"))
    tools = {t.name: t for t in result.root.tools}
    assert set(tools) == {"get_weather", "_ui_refine", "_ui_regenerate"}
    assert tools["get_weather"].meta == {"ui": {"resourceUri": "ui://get_weather"}}


@pytest.mark.asyncio
async def test_call_tool_handler(tmp_path: Path, upstream: FakeUpstream, openai_llm: FakeLLM) -> None:
    """tools/call relays the wrapper's result, structuredContent included."""
    upstream.responses["get_weather"] = text_result('{"temperature": 4}')
    wrapper = make_wrapper(tmp_path, upstream, openai_llm, OPENAI_PROFILE)
    await wrapper.start()
    server = create_mcp_server(wrapper)

    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name="get_weather", arguments={"city": "Oslo"}),
    )
    result = (await server.request_handlers[types.CallToolRequest](request)).root
    assert result.isError is False
    assert result.structuredContent == {"temperature": 4}
    assert result.content[0].text == '{"temperature": 4}'


@pytest.mark.asyncio
async def test_call_tool_handler_error(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Unknown wrapper targets come back flagged as errors."""
    wrapper = make_wrapper(tmp_path, upstream, mcp_apps_llm, MCP_APPS_PROFILE)
    await wrapper.start()
    server = create_mcp_server(wrapper)

    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name="_ui_refine", arguments={"toolName": "nope", "feedback": "x"}),
    )
    result = (await server.request_handlers[types.CallToolRequest](request)).root
    assert result.isError is True
    assert result.content[0].text == "Tool not found: nope"
