"""Testing utilities: scripted fakes for the LLM, upstream and discovery."""

from .fakes import (
    MCP_APPS_SAMPLE_HTML,
    OPENAI_SAMPLE_HTML,
    FakeDiscovery,
    FakeLLM,
    FakeUpstream,
    Invocation,
    text_result,
)

__all__ = [
    "FakeDiscovery", "FakeLLM", "FakeUpstream", "Invocation", "text_result",
    "MCP_APPS_SAMPLE_HTML", "OPENAI_SAMPLE_HTML",
]
