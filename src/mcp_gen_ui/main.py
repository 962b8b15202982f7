"""Process entry point: settings, logging, upstream, LLM, HTTP server."""

from __future__ import annotations

import asyncio
import logging

import uvicorn

from mcp_gen_ui.ext.mcp.server import create_app
from mcp_gen_ui.ext.mcp.upstream import MetaToolDiscovery, UpstreamClient
from mcp_gen_ui.ext.mcp.wrapper import GenUIWrapper
from mcp_gen_ui.foundation.config import GenUISettings, load_settings
from mcp_gen_ui.foundation.errors import ConfigurationError
from mcp_gen_ui.llm import LLMClient, create_llm_client
from mcp_gen_ui.runtime.observability import configure_logging
from mcp_gen_ui.standards import get_standard_profile

logger = logging.getLogger("mcp_gen_ui.main")


async def serve(settings: GenUISettings, upstream: UpstreamClient, llm: LLMClient) -> None:
    """Connect upstream, build the tool table and serve until shutdown."""
    async with upstream:
        wrapper = GenUIWrapper.from_settings(settings, upstream, llm, discovery=MetaToolDiscovery(upstream))
        await wrapper.start()

        config = uvicorn.Config(
            create_app(wrapper),
            host=settings.server.host,
            port=settings.server.port,
            log_level=settings.logging.level.lower(),
            log_config=None,
        )
        logger.info("MCP endpoint: http://%s:%d/mcp", settings.server.host, settings.server.port)
        await uvicorn.Server(config).serve()


def main() -> int:
    """Run the wrapper. Returns the process exit status."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.error("Configuration error: %s", e)
        return 1

    configure_logging(settings.logging.level, settings.logging.format)
    logger.info("Starting MCP Gen-UI wrapper...")

    try:
        get_standard_profile(settings.standard)
        upstream = UpstreamClient.from_settings(settings.upstream)
        llm = create_llm_client(settings.llm)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1

    logger.info("  Upstream: %s", settings.upstream.describe())
    logger.info("  LLM: %s (%s)", settings.llm.provider, settings.llm.resolved_model)
    logger.info("  Cache: %s", settings.cache.directory)
    logger.info("  Standard: %s", settings.standard)

    try:
        asyncio.run(serve(settings, upstream, llm))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception:
        logger.exception("Fatal error")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
