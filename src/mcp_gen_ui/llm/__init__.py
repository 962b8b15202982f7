"""Language-model clients for UI generation."""

from .clients import AnthropicClient, LLMClient, OpenAIClient, create_llm_client

__all__ = [
    "LLMClient",
    "AnthropicClient",
    "OpenAIClient",
    "create_llm_client",
]
