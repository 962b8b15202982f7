"""Tests for the gen-UI wrapper: tool table, UI resolution, refinement and proxying."""

from pathlib import Path

import orjson
import pytest

from mcp_gen_ui.core.models import ToolDefinition
from mcp_gen_ui.ext.mcp.upstream import TOOL_CALL, TOOL_GET, TOOL_LIST
from mcp_gen_ui.ext.mcp.wrapper import GenUIWrapper, add_structured_content, build_sample_arguments
from mcp_gen_ui.foundation.errors import ResourceNotFound
from mcp_gen_ui.foundation.testing import (
    MCP_APPS_SAMPLE_HTML,
    OPENAI_SAMPLE_HTML,
    FakeDiscovery,
    FakeLLM,
    FakeUpstream,
    text_result,
)
from mcp_gen_ui.io.cache import ArtifactStore
from mcp_gen_ui.standards import MCP_APPS_PROFILE, OPENAI_PROFILE, StandardProfile
from mcp_gen_ui.synth import UISynthesizer


def make_wrapper(
    store: ArtifactStore | Path,
    upstream: FakeUpstream,
    llm: FakeLLM,
    profile: StandardProfile = MCP_APPS_PROFILE,
    **kwargs: object,
) -> GenUIWrapper:
    if not isinstance(store, ArtifactStore):
        store = ArtifactStore(store)
    synth = UISynthesizer(llm, profile, timeout=1.0)
    return GenUIWrapper(upstream, synth, store, upstream_url="http://localhost:9000/mcp", **kwargs)


def _text(result: dict) -> str:
    return result["content"][0]["text"]


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


def test_sample_arguments(form_tool: ToolDefinition, weather_tool: ToolDefinition) -> None:
    """Only required fields are filled, with name-aware string guesses."""
    assert build_sample_arguments(weather_tool) == {"city": "New York"}
    assert build_sample_arguments(form_tool) == {"name": "sample"}

    tool = ToolDefinition(name="t", input_schema={
        "properties": {
            "ticker": {"type": "string"},
            "n": {"type": "integer"},
            "flag": {"type": "boolean"},
            "size": {"type": "string", "enum": ["s", "m"]},
            "limit": {"type": "integer", "default": 10},
            "blob": "bad",
        },
        "required": ["ticker", "n", "flag", "size", "limit", "blob"],
    })
    assert build_sample_arguments(tool) == {"ticker": "AAPL", "n": 1, "flag": True, "size": "s", "limit": 10}


def test_structured_content_from_json() -> None:
    """JSON object text becomes structuredContent; arrays are wrapped."""
    assert add_structured_content(text_result('{"a": 1}'))["structuredContent"] == {"a": 1}
    assert add_structured_content(text_result("[1, 2]"))["structuredContent"] == {"result": [1, 2]}


def test_structured_content_from_text() -> None:
    """Plain text is wrapped under result."""
    assert add_structured_content(text_result("sunny"))["structuredContent"] == {"result": "sunny"}
    two = {"content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]}
    assert add_structured_content(two)["structuredContent"] == {"result": ["a", "b"]}
    assert add_structured_content({"isError": True}) == {"isError": True}


# ─────────────────────────────────────────────────────────────────────────────
# Tool Table
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_tool_list_mcp_apps(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """MCP Apps hosts see UI metadata and the refine/regenerate tools."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    listed = w.build_tool_list()
    names = [t["name"] for t in listed]
    assert names == ["get_weather", "_ui_refine", "_ui_regenerate"]
    assert listed[0]["_meta"] == {"ui": {"resourceUri": "ui://get_weather"}}
    assert listed[0]["inputSchema"]["required"] == ["city"]
    assert "_mcp_metadata" not in names
    await w.close()


@pytest.mark.asyncio
async def test_tool_list_openai(tmp_path: Path, upstream: FakeUpstream, openai_llm: FakeLLM) -> None:
    """OpenAI hosts see only upstream tools with outputTemplate metadata."""
    w = make_wrapper(tmp_path, upstream, openai_llm, OPENAI_PROFILE)
    await w.start()

    listed = w.build_tool_list()
    assert [t["name"] for t in listed] == ["get_weather"]
    assert listed[0]["_meta"]["openai/outputTemplate"] == "ui://get_weather"
    await w.close()


@pytest.mark.asyncio
async def test_list_resources(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """One UI resource per tool."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()
    assert w.list_resources() == [{
        "uri": "ui://get_weather",
        "name": "get_weather UI",
        "description": "Generated interactive UI for get_weather",
        "mimeType": "text/html;profile=mcp-app",
    }]
    await w.close()


# ─────────────────────────────────────────────────────────────────────────────
# UI Resolution
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_first_read_generates_with_sample(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """A miss samples the tool, generates once, then serves from cache."""
    upstream.responses["get_weather"] = text_result('{"city": "New York", "temperature": 53}')
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    assert await w.read_resource("ui://get_weather") == MCP_APPS_SAMPLE_HTML
    assert upstream.calls_to("get_weather")[0].arguments == {"city": "New York"}
    assert "temperature" in mcp_apps_llm.last_user

    assert await w.read_resource("ui://get_weather") == MCP_APPS_SAMPLE_HTML
    assert mcp_apps_llm.call_count == 1
    assert len(upstream.calls_to("get_weather")) == 1
    await w.close()


@pytest.mark.asyncio
async def test_sample_failure_still_generates(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """A failing sample call only means the output structure is unknown."""
    upstream.raises["get_weather"] = RuntimeError("upstream down")
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    assert await w.read_resource("ui://get_weather") == MCP_APPS_SAMPLE_HTML
    assert "UNKNOWN" in mcp_apps_llm.last_user
    await w.close()


@pytest.mark.asyncio
async def test_sample_error_result_ignored(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """An isError sample is not shown to the model."""
    upstream.responses["get_weather"] = text_result("city not found", is_error=True)
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    await w.read_resource("ui://get_weather")
    assert "SAMPLE OUTPUT" not in mcp_apps_llm.last_user
    assert "city not found" not in mcp_apps_llm.last_user
    await w.close()


@pytest.mark.asyncio
async def test_generation_failure_serves_minimal(tmp_path: Path, upstream: FakeUpstream) -> None:
    """A broken backend still yields a working UI, which is cached."""
    llm = FakeLLM(raises=RuntimeError("rate limited"))
    w = make_wrapper(tmp_path, upstream, llm)
    await w.start()

    html = await w.read_resource("ui://get_weather")
    assert 'id="city"' in html
    assert "@modelcontextprotocol/ext-apps" in html
    assert await w.read_resource("ui://get_weather") == html
    assert llm.call_count == 1
    await w.close()


@pytest.mark.asyncio
async def test_big_integers_serve_minimal(tmp_path: Path) -> None:
    """Integers beyond 64 bits in schema and sample never break resolution."""
    tool = ToolDefinition(name="lookup", input_schema={
        "properties": {"id": {"type": "integer", "maximum": 10**20, "default": 10**20}},
        "required": ["id"],
    })
    upstream = FakeUpstream(tools=[tool], responses={
        "lookup": {"content": [{"type": "text", "text": "ok"}], "structuredContent": {"id": 10**20}},
    })
    w = make_wrapper(tmp_path, upstream, FakeLLM(raises=RuntimeError("rate limited")))
    await w.start()

    html = await w.read_resource("ui://lookup")
    assert 'id="id"' in html
    assert html.rstrip().endswith("</html>")
    await w.close()


@pytest.mark.asyncio
async def test_cache_survives_restart(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """A new process with the same schema serves the stored UI."""
    first = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await first.start()
    await first.read_resource("ui://get_weather")
    await first.close()

    llm = FakeLLM(response="<html>never used</html>")
    second = make_wrapper(tmp_path, upstream, llm)
    await second.start()
    assert await second.read_resource("ui://get_weather") == MCP_APPS_SAMPLE_HTML
    llm.assert_not_called()
    await second.close()


@pytest.mark.asyncio
async def test_schema_change_regenerates(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """A changed input schema misses the cache."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()
    await w.read_resource("ui://get_weather")

    w.register_tools([ToolDefinition(name="get_weather", input_schema={
        "type": "object",
        "properties": {"city": {"type": "string"}, "units": {"type": "string"}},
        "required": ["city"],
    })])
    await w.read_resource("ui://get_weather")
    assert mcp_apps_llm.call_count == 2
    await w.close()


@pytest.mark.asyncio
async def test_standards_do_not_share_entries(tmp_path: Path, upstream: FakeUpstream) -> None:
    """The same tool gets one entry per standard."""
    store = ArtifactStore(tmp_path)
    openai_llm = FakeLLM(response=OPENAI_SAMPLE_HTML)
    apps_llm = FakeLLM(response=MCP_APPS_SAMPLE_HTML)
    openai = make_wrapper(store, upstream, openai_llm, OPENAI_PROFILE)
    apps = make_wrapper(store, upstream, apps_llm, MCP_APPS_PROFILE)
    await openai.start()
    await apps.start()

    assert await openai.read_resource("ui://get_weather") == OPENAI_SAMPLE_HTML
    assert await apps.read_resource("ui://get_weather") == MCP_APPS_SAMPLE_HTML
    assert len(store) == 2
    assert store.stats()["namespaces"] == 2
    await store.flush()


@pytest.mark.asyncio
async def test_read_resource_rejects_unknown(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Foreign URIs and unknown tools are not found."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    with pytest.raises(ResourceNotFound, match="Invalid resource URI"):
        await w.read_resource("file:///etc/passwd")
    with pytest.raises(ResourceNotFound, match="Tool not found: missing"):
        await w.read_resource("ui://missing")
    mcp_apps_llm.assert_not_called()
    await w.close()


# ─────────────────────────────────────────────────────────────────────────────
# Refine / Regenerate
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_refine(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Refining records feedback, replaces the cached UI and notifies."""
    notified: list[str] = []

    async def notifier(uri: str) -> None:
        notified.append(uri)

    w = make_wrapper(tmp_path, upstream, mcp_apps_llm, notifier=notifier)
    await w.start()
    await w.read_resource("ui://get_weather")

    result = await w.handle_tool_call("_ui_refine", {"toolName": "get_weather", "feedback": "Use a dark theme"})

    assert "isError" not in result
    assert _text(result).startswith("UI refined for tool 'get_weather'. Regeneration took ")
    assert _text(result).endswith("ms.")
    assert w.refinements("get_weather") == ["Use a dark theme"]
    assert mcp_apps_llm.call_count == 2
    assert "- Use a dark theme" in mcp_apps_llm.last_user
    assert notified == ["ui://get_weather"]

    schema_fp, refinement_fp = w.current_fingerprints(w.tools["get_weather"])
    assert refinement_fp != "none"
    assert len(w.store) == 1
    assert w.store.get("mcp-apps:get_weather", schema_fp, refinement_fp) is not None
    await w.close()


@pytest.mark.asyncio
async def test_refinements_accumulate(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Every refinement so far is sent, oldest first."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    await w.handle_tool_call("_ui_refine", {"toolName": "get_weather", "feedback": "Use a dark theme"})
    await w.handle_tool_call("_ui_refine", {"toolName": "get_weather", "feedback": "Show a chart"})

    prompt = mcp_apps_llm.last_user
    assert prompt.index("- Use a dark theme") < prompt.index("- Show a chart")
    await w.close()


@pytest.mark.asyncio
async def test_refine_unknown_tool(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Refining a tool that does not exist is an error result."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    result = await w.handle_tool_call("_ui_refine", {"toolName": "nope", "feedback": "x"})
    assert result["isError"] is True
    assert _text(result) == "Tool not found: nope"
    mcp_apps_llm.assert_not_called()
    await w.close()


@pytest.mark.asyncio
async def test_refine_requires_feedback(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Blank feedback is rejected without touching history."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    result = await w.handle_tool_call("_ui_refine", {"toolName": "get_weather", "feedback": "  "})
    assert result["isError"] is True
    assert w.refinements("get_weather") == []
    await w.close()


@pytest.mark.asyncio
async def test_regenerate(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Regenerating bypasses the cache and skips the sample call."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()
    await w.read_resource("ui://get_weather")

    result = await w.handle_tool_call("_ui_regenerate", {"toolName": "get_weather"})
    assert _text(result).startswith("UI regenerated for tool 'get_weather'. Generation took ")
    assert mcp_apps_llm.call_count == 2
    assert len(upstream.calls_to("get_weather")) == 1

    await w.read_resource("ui://get_weather")
    assert mcp_apps_llm.call_count == 2
    await w.close()


@pytest.mark.asyncio
async def test_regenerate_clear_refinements(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """clearRefinements drops history and stores under the empty fingerprint."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()
    await w.handle_tool_call("_ui_refine", {"toolName": "get_weather", "feedback": "Use a dark theme"})

    await w.handle_tool_call("_ui_regenerate", {"toolName": "get_weather", "clearRefinements": True})

    assert w.refinements("get_weather") == []
    assert "USER REFINEMENT REQUESTS" not in mcp_apps_llm.last_user
    schema_fp, refinement_fp = w.current_fingerprints(w.tools["get_weather"])
    assert refinement_fp == "none"
    assert w.store.get("mcp-apps:get_weather", schema_fp, "none") is not None
    await w.close()


@pytest.mark.asyncio
async def test_regenerate_keeps_refinements(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Without clearRefinements the history is reapplied."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()
    await w.handle_tool_call("_ui_refine", {"toolName": "get_weather", "feedback": "Use a dark theme"})

    await w.handle_tool_call("_ui_regenerate", {"toolName": "get_weather"})
    assert w.refinements("get_weather") == ["Use a dark theme"]
    assert "- Use a dark theme" in mcp_apps_llm.last_user
    await w.close()


@pytest.mark.asyncio
async def test_regenerate_unknown_tool(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Regenerating an unknown tool is an error result."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()
    result = await w.handle_tool_call("_ui_regenerate", {"toolName": "nope"})
    assert result["isError"] is True
    assert _text(result) == "Tool not found: nope"
    await w.close()


@pytest.mark.asyncio
async def test_notifier_failure_is_ignored(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """A failing notification does not fail the refinement."""
    async def notifier(uri: str) -> None:
        raise ConnectionError("session closed")

    w = make_wrapper(tmp_path, upstream, mcp_apps_llm, notifier=notifier)
    await w.start()
    result = await w.handle_tool_call("_ui_regenerate", {"toolName": "get_weather"})
    assert "isError" not in result
    await w.close()


# ─────────────────────────────────────────────────────────────────────────────
# Proxying
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_proxy_openai_adds_structured_content(tmp_path: Path, upstream: FakeUpstream, openai_llm: FakeLLM) -> None:
    """OpenAI hosts get parsed structuredContent alongside the content."""
    upstream.responses["get_weather"] = text_result('{"city": "Oslo", "temperature": 4}')
    w = make_wrapper(tmp_path, upstream, openai_llm, OPENAI_PROFILE)
    await w.start()

    result = await w.handle_tool_call("get_weather", {"city": "Oslo"})
    assert result["structuredContent"] == {"city": "Oslo", "temperature": 4}
    assert result["content"][0]["text"] == '{"city": "Oslo", "temperature": 4}'
    assert upstream.last_call.arguments == {"city": "Oslo"}
    openai_llm.assert_not_called()
    await w.close()


@pytest.mark.asyncio
async def test_proxy_mcp_apps_passthrough(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """MCP Apps hosts get the upstream result unchanged."""
    upstream.responses["get_weather"] = text_result('{"temperature": 4}')
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    assert await w.handle_tool_call("get_weather", {"city": "Oslo"}) == text_result('{"temperature": 4}')
    await w.close()


@pytest.mark.asyncio
async def test_proxy_error_result_passthrough(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Upstream error results are relayed as-is."""
    upstream.responses["get_weather"] = text_result("city not found", is_error=True)
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    result = await w.handle_tool_call("get_weather", {"city": "Atlantis"})
    assert result == text_result("city not found", is_error=True)
    await w.close()


@pytest.mark.asyncio
async def test_proxy_failure(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Transport failures become error results."""
    upstream.raises["get_weather"] = ConnectionError("upstream closed")
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    result = await w.handle_tool_call("get_weather", {"city": "Oslo"})
    assert result["isError"] is True
    assert _text(result) == "Tool call failed: upstream closed"
    await w.close()


@pytest.mark.asyncio
async def test_metadata(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """_mcp_metadata reports every tool's UI resource, generating as needed."""
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm)
    await w.start()

    payload = orjson.loads(_text(await w.handle_tool_call("_mcp_metadata", {})))
    assert payload["stage"] == "ui"
    assert payload["standard"] == "mcp-apps"
    assert payload["upstream_url"] == "http://localhost:9000/mcp"
    assert payload["ui_resources"] == [{
        "tool_name": "get_weather",
        "uri": "ui://get_weather",
        "mime_type": "text/html;profile=mcp-app",
        "html": MCP_APPS_SAMPLE_HTML,
    }]
    await w.close()


# ─────────────────────────────────────────────────────────────────────────────
# Inner Tools
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def gateway() -> FakeUpstream:
    return FakeUpstream.with_tools(
        {"name": TOOL_LIST, "inputSchema": {"type": "object"}},
        {"name": TOOL_GET, "inputSchema": {"type": "object"}},
        {"name": TOOL_CALL, "inputSchema": {"type": "object"}},
    )


@pytest.fixture
def search_tool() -> ToolDefinition:
    return ToolDefinition(
        name="search",
        description="Search the web",
        input_schema={"type": "object", "properties": {"query": {"type": "string"}}, "required": ["query"]},
    )


@pytest.mark.asyncio
async def test_inner_tools_replace_meta_tools(
    tmp_path: Path, gateway: FakeUpstream, search_tool: ToolDefinition, mcp_apps_llm: FakeLLM,
) -> None:
    """Discovered inner tools are exposed and the gateway's meta tools hidden."""
    discovery = FakeDiscovery(tools=[search_tool])
    w = make_wrapper(tmp_path, gateway, mcp_apps_llm, discovery=discovery)
    await w.start()

    assert set(w.tools) == {"search"}
    assert w.inner_tools == {"search"}
    assert discovery.calls == 1
    await w.close()


@pytest.mark.asyncio
async def test_inner_tool_calls_route_through_gateway(
    tmp_path: Path, gateway: FakeUpstream, search_tool: ToolDefinition, mcp_apps_llm: FakeLLM,
) -> None:
    """Calls and samples for inner tools go through TOOL_CALL with JSON arguments."""
    w = make_wrapper(tmp_path, gateway, mcp_apps_llm, discovery=FakeDiscovery(tools=[search_tool]))
    await w.start()

    await w.handle_tool_call("search", {"query": "mcp"})
    assert gateway.last_call.name == TOOL_CALL
    assert gateway.last_call.arguments == {"tool_name": "search", "arguments": '{"query":"mcp"}'}

    await w.read_resource("ui://search")
    assert gateway.last_call.arguments == {"tool_name": "search", "arguments": '{"query":"sample"}'}
    assert gateway.calls_to("search") == []
    await w.close()


@pytest.mark.asyncio
async def test_discovery_failure_keeps_meta_tools(tmp_path: Path, gateway: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """A failing or empty discovery leaves the gateway's own tools in place."""
    for discovery in (FakeDiscovery(raises=RuntimeError("gateway down")), FakeDiscovery()):
        w = make_wrapper(tmp_path, gateway, mcp_apps_llm, discovery=discovery)
        await w.start()
        assert set(w.tools) == {TOOL_LIST, TOOL_GET, TOOL_CALL}
        assert w.inner_tools == frozenset()
        await w.close()


@pytest.mark.asyncio
async def test_discovery_skipped_without_gateway(tmp_path: Path, upstream: FakeUpstream, mcp_apps_llm: FakeLLM) -> None:
    """Plain upstreams never trigger discovery."""
    discovery = FakeDiscovery()
    w = make_wrapper(tmp_path, upstream, mcp_apps_llm, discovery=discovery)
    await w.start()
    assert discovery.calls == 0
    await w.close()
