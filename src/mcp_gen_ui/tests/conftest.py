"""Shared fixtures."""

import logging
import os
from collections.abc import Iterator

import pytest

from mcp_gen_ui.core.models import ToolDefinition
from mcp_gen_ui.foundation.config import clear_settings_cache
from mcp_gen_ui.foundation.testing import MCP_APPS_SAMPLE_HTML, OPENAI_SAMPLE_HTML, FakeLLM, FakeUpstream
from mcp_gen_ui.runtime.observability.logging import ROOT_LOGGER

_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "MCP_UPSTREAM_BEARER_TOKEN",
    "MCP_GEN_UI_CACHE_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from the developer's environment."""
    for name in list(os.environ):
        if name.startswith("MCP_GEN_UI_") or name in _ENV_VARS:
            monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def restore_logger() -> Iterator[None]:
    """Undo configure_logging so caplog keeps seeing package records."""
    root = logging.getLogger(ROOT_LOGGER)
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate


@pytest.fixture
def weather_tool() -> ToolDefinition:
    return ToolDefinition(
        name="get_weather",
        description="Get current weather for a city",
        input_schema={
            "type": "object",
            "properties": {"city": {"type": "string", "description": "City name"}},
            "required": ["city"],
        },
    )


@pytest.fixture
def form_tool() -> ToolDefinition:
    return ToolDefinition(
        name="test_tool",
        description="A test tool",
        input_schema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Your name"},
                "count": {"type": "integer", "description": "Count", "default": 5},
                "ratio": {"type": "number"},
                "enabled": {"type": "boolean", "description": "Enable feature", "default": True},
                "mode": {"type": "string", "enum": ["fast", "slow"]},
            },
            "required": ["name"],
        },
    )


@pytest.fixture
def upstream(weather_tool: ToolDefinition) -> FakeUpstream:
    return FakeUpstream(tools=[weather_tool])


@pytest.fixture
def openai_llm() -> FakeLLM:
    return FakeLLM(response=OPENAI_SAMPLE_HTML)


@pytest.fixture
def mcp_apps_llm() -> FakeLLM:
    return FakeLLM(response=MCP_APPS_SAMPLE_HTML)
