"""Language-model clients used for UI generation.

Both clients expose the single coroutine the synthesizer needs:
``generate(system_prompt, user_prompt) -> str``. Deadlines are enforced by the
caller, so the SDK clients are built without retries that would outlast it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from mcp_gen_ui.foundation.errors import ConfigurationError

if TYPE_CHECKING:
    from mcp_gen_ui.foundation.config import LLMSettings

logger = logging.getLogger("mcp_gen_ui.llm")


@runtime_checkable
class LLMClient(Protocol):
    """Anything that turns a system + user prompt into text."""

    async def generate(self, system_prompt: str, user_prompt: str) -> str: ...


class AnthropicClient:
    """Generation through the Anthropic Messages API."""

    __slots__ = ("_client", "model", "max_tokens", "temperature")

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        max_tokens: int = 8000,
        temperature: float = 0.2,
        client: AsyncAnthropic | None = None,
    ) -> None:
        self._client = client or AsyncAnthropic(api_key=api_key, max_retries=0)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return "".join(block.text for block in response.content if block.type == "text")


class OpenAIClient:
    """Generation through the OpenAI Chat Completions API."""

    __slots__ = ("_client", "model", "max_tokens", "temperature")

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        max_tokens: int = 8000,
        temperature: float = 0.2,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key, max_retries=0)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


def create_llm_client(settings: LLMSettings) -> LLMClient:
    """Build the client for the configured provider.

    Raises:
        ConfigurationError: Unsupported provider or no API key available
    """
    api_key = settings.resolve_api_key()
    kwargs = {"max_tokens": settings.max_tokens, "temperature": settings.temperature}
    match settings.provider:
        case "anthropic":
            client: LLMClient = AnthropicClient(api_key, settings.resolved_model, **kwargs)
        case "openai":
            client = OpenAIClient(api_key, settings.resolved_model, **kwargs)
        case other:
            raise ConfigurationError(f"Unsupported provider: {other}")
    logger.info("Using %s model %s", settings.provider, settings.resolved_model)
    return client
