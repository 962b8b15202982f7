"""Orchestrator between the MCP surface, the upstream server and UI synthesis.

``GenUIWrapper`` owns all per-process state: the tool table, refinement
histories, the set of inner tools reached through a meta-tool gateway, and
the artifact store. Nothing here is module-global, so several wrappers can
coexist (one per test, for instance).

Per UI request: compute fingerprints, query the store, on a miss gather a
live sample of the tool's output, synthesize, store.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

import orjson

from mcp_gen_ui.core.fingerprint import refinement_fingerprint, schema_fingerprint
from mcp_gen_ui.core.models import JsonDict, ToolDefinition
from mcp_gen_ui.core.serialization import to_json
from mcp_gen_ui.foundation.errors import ErrorCode, ResourceNotFound, ToolError, describe_exception

from .upstream import META_TOOLS, TOOL_CALL

if TYPE_CHECKING:
    from mcp_gen_ui.foundation.config import GenUISettings
    from mcp_gen_ui.io.cache import ArtifactStore
    from mcp_gen_ui.llm import LLMClient
    from mcp_gen_ui.standards import StandardProfile
    from mcp_gen_ui.synth import UISynthesizer

    from .upstream import InnerToolDiscovery, ToolInvoker

logger = logging.getLogger("mcp_gen_ui.wrapper")

Notifier = Callable[[str], Awaitable[None]]

REFINE_TOOL = "_ui_refine"
REGENERATE_TOOL = "_ui_regenerate"
METADATA_TOOL = "_mcp_metadata"

WRAPPER_TOOLS: tuple[JsonDict, ...] = (
    {
        "name": REFINE_TOOL,
        "description": "Refine the generated UI for a tool based on natural language feedback",
        "inputSchema": {
            "type": "object",
            "properties": {
                "toolName": {"type": "string", "description": "Name of the tool whose UI to refine"},
                "feedback": {"type": "string", "description": "Natural language description of desired changes"},
            },
            "required": ["toolName", "feedback"],
        },
    },
    {
        "name": REGENERATE_TOOL,
        "description": "Force regeneration of the UI for a tool, ignoring the cache",
        "inputSchema": {
            "type": "object",
            "properties": {
                "toolName": {"type": "string", "description": "Name of the tool to regenerate UI for"},
                "clearRefinements": {
                    "type": "boolean",
                    "description": "If true, also clear refinement history",
                    "default": False,
                },
            },
            "required": ["toolName"],
        },
    },
)


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _sample_string(name: str) -> str:
    lowered = name.lower()
    if "city" in lowered:
        return "New York"
    if "symbol" in lowered or "ticker" in lowered:
        return "AAPL"
    return "sample"


def build_sample_arguments(tool: ToolDefinition) -> JsonDict:
    """Plausible arguments for a sample call, filling required fields only.

    Example:
        >>> build_sample_arguments(ToolDefinition(name="w", input_schema={
        ...     "properties": {"city": {"type": "string"}}, "required": ["city"]}))
        {'city': 'New York'}
    """
    args: JsonDict = {}
    required = set(tool.required)
    for name, prop in tool.properties.items():
        if name not in required or not isinstance(prop, Mapping):
            continue
        enum = prop.get("enum")
        kind = prop.get("type")
        if "default" in prop:
            args[name] = prop["default"]
        elif isinstance(enum, list) and enum:
            args[name] = enum[0]
        elif kind == "string":
            args[name] = _sample_string(name)
        elif kind in ("number", "integer"):
            args[name] = 1
        elif kind == "boolean":
            args[name] = True
    return args


def add_structured_content(result: JsonDict) -> JsonDict:
    """Attach ``structuredContent`` derived from a result's text items.

    The first text item that parses as a JSON object or array wins (arrays are
    wrapped as ``{"result": [...]}``). Otherwise the texts themselves become
    ``{"result": text}`` or ``{"result": [texts]}``.
    """
    content = result.get("content")
    if not isinstance(content, list):
        return result

    texts = [
        item["text"] for item in content
        if isinstance(item, dict) and item.get("type") == "text" and isinstance(item.get("text"), str) and item["text"]
    ]
    for text in texts:
        try:
            parsed = orjson.loads(text)
        except orjson.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return {**result, "structuredContent": parsed}
        if isinstance(parsed, list):
            return {**result, "structuredContent": {"result": parsed}}

    return {**result, "structuredContent": {"result": texts[0] if len(texts) == 1 else texts}}


def _text_result(text: str) -> JsonDict:
    return {"content": [{"type": "text", "text": text}]}


def _not_found(tool_name: object) -> JsonDict:
    return ToolError.create(str(tool_name) or "unknown", f"Tool not found: {tool_name}", ErrorCode.NOT_FOUND).to_result()


# ═══════════════════════════════════════════════════════════════════════════════
# Wrapper
# ═══════════════════════════════════════════════════════════════════════════════


class GenUIWrapper:
    """Proxies an upstream MCP server and serves a generated UI per tool.

    Args:
        upstream: Tool discovery and invocation on the upstream server
        synthesizer: Produces UIs; its profile decides the output standard
        store: Artifact store for generated UIs
        discovery: Optional inner-tool discovery for meta-tool gateways
        upstream_url: Reported by ``_mcp_metadata``
        notifier: Async callback fired with a resource URI after it changes

    Example:
        >>> wrapper = GenUIWrapper(upstream, synthesizer, store)
        >>> await wrapper.start()
        >>> html = await wrapper.read_resource("ui://get_weather")
    """

    def __init__(
        self,
        upstream: ToolInvoker,
        synthesizer: UISynthesizer,
        store: ArtifactStore,
        *,
        discovery: InnerToolDiscovery | None = None,
        upstream_url: str = "",
        notifier: Notifier | None = None,
    ) -> None:
        self._upstream = upstream
        self._synthesizer = synthesizer
        self._store = store
        self._discovery = discovery
        self._upstream_url = upstream_url
        self.notifier = notifier
        self._tools: dict[str, ToolDefinition] = {}
        self._refinements: dict[str, list[str]] = {}
        self._inner_tools: set[str] = set()

    @classmethod
    def from_settings(
        cls,
        settings: GenUISettings,
        upstream: ToolInvoker,
        llm: LLMClient,
        *,
        discovery: InnerToolDiscovery | None = None,
    ) -> GenUIWrapper:
        """Wire profile, synthesizer and store from settings."""
        from mcp_gen_ui.io.cache import ArtifactStore
        from mcp_gen_ui.standards import get_standard_profile
        from mcp_gen_ui.synth import UISynthesizer

        synthesizer = UISynthesizer(
            llm,
            get_standard_profile(settings.standard),
            timeout=settings.llm.timeout,
            standing_instruction=settings.prompt,
        )
        return cls(
            upstream,
            synthesizer,
            ArtifactStore(settings.cache.directory),
            discovery=discovery,
            upstream_url=settings.upstream.describe(),
        )

    # ─────────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def profile(self) -> StandardProfile:
        return self._synthesizer.profile

    @property
    def store(self) -> ArtifactStore:
        return self._store

    @property
    def tools(self) -> dict[str, ToolDefinition]:
        return dict(self._tools)

    @property
    def inner_tools(self) -> frozenset[str]:
        return frozenset(self._inner_tools)

    def refinements(self, tool_name: str) -> list[str]:
        return list(self._refinements.get(tool_name, ()))

    def register_tools(self, tools: Iterable[ToolDefinition], *, inner: bool = False) -> int:
        count = 0
        for tool in tools:
            self._tools[tool.name] = tool
            if inner:
                self._inner_tools.add(tool.name)
            count += 1
        return count

    async def start(self) -> None:
        """Load the store and build the tool table from the upstream."""
        self._store.load()
        stats = self._store.stats()
        logger.info("Artifact store %s holds %d UI(s)", stats["path"], stats["total_entries"])
        count = self.register_tools(await self._upstream.list_tools())
        logger.info("Discovered %d tool(s) from upstream", count)

        if self._discovery is not None and META_TOOLS <= self._tools.keys():
            await self._discover_inner_tools(self._discovery)

    async def _discover_inner_tools(self, discovery: InnerToolDiscovery) -> None:
        logger.info("Detected meta-tool pattern, discovering inner tools...")
        try:
            inner = await discovery.discover_inner_tools()
        except Exception as e:
            logger.warning("Inner tool discovery failed: %s", describe_exception(e))
            return
        if not self.register_tools(inner, inner=True):
            return
        for name in META_TOOLS:
            self._tools.pop(name, None)
        logger.info("Exposed %d inner tool(s)", len(self._inner_tools))

    async def close(self) -> None:
        await self._store.flush()

    # ─────────────────────────────────────────────────────────────────────────
    # UI Resolution
    # ─────────────────────────────────────────────────────────────────────────

    def cache_namespace(self, tool_name: str) -> str:
        """Standard-prefixed tool identity, so standards never share cache entries."""
        return f"{self.profile.name}:{tool_name}"

    def current_fingerprints(self, tool: ToolDefinition) -> tuple[str, str]:
        return (
            schema_fingerprint(tool.input_schema),
            refinement_fingerprint(self._refinements.get(tool.name, ()), self._synthesizer.standing_instruction),
        )

    def _require_tool(self, tool_name: str) -> ToolDefinition:
        tool = self._tools.get(tool_name)
        if tool is None:
            raise ResourceNotFound(f"Tool not found: {tool_name}")
        return tool

    async def get_or_generate_ui(self, tool_name: str) -> str:
        """Serve the cached UI for a tool or synthesize and store a new one.

        Raises:
            ResourceNotFound: Unknown tool
        """
        tool = self._require_tool(tool_name)
        namespace = self.cache_namespace(tool_name)
        schema_fp, refinement_fp = self.current_fingerprints(tool)

        cached = self._store.get(namespace, schema_fp, refinement_fp)
        if cached is not None:
            logger.debug("Cache hit for %s", tool_name)
            return cached.html

        logger.info("Cache miss for %s, getting sample output...", tool_name)
        sample = await self.gather_sample_output(tool)
        result = await self._synthesizer.generate(tool.with_sample(sample), self.refinements(tool_name))
        self._store.set(namespace, schema_fp, refinement_fp, result.html)
        return result.html

    async def gather_sample_output(self, tool: ToolDefinition) -> JsonDict | None:
        """Call the tool with sample arguments. Any failure means no sample."""
        args = build_sample_arguments(tool)
        logger.debug("Getting sample output for %s with args: %s", tool.name, args)
        try:
            result = await self._invoke(tool.name, args)
        except Exception as e:
            logger.info("Failed to get sample output for %s: %s", tool.name, describe_exception(e))
            return None
        if result.get("isError"):
            logger.info("Sample call for %s returned an error result, generating without sample", tool.name)
            return None
        return result

    async def _invoke(self, name: str, arguments: JsonDict) -> JsonDict:
        if name in self._inner_tools:
            return await self._upstream.call_tool(
                TOOL_CALL, {"tool_name": name, "arguments": to_json(arguments).decode()}
            )
        return await self._upstream.call_tool(name, arguments)

    # ─────────────────────────────────────────────────────────────────────────
    # Tools
    # ─────────────────────────────────────────────────────────────────────────

    def build_tool_list(self) -> list[JsonDict]:
        """Upstream tools annotated with UI metadata, plus wrapper tools when exposed."""
        listed: list[JsonDict] = [
            {
                "name": tool.name,
                "description": tool.description,
                "inputSchema": tool.input_schema,
                "_meta": self.profile.build_tool_meta(self.profile.resource_uri(tool.name)),
            }
            for tool in self._tools.values()
        ]
        if self.profile.exposes_wrapper_tools:
            listed.extend(dict(t) for t in WRAPPER_TOOLS)
        return listed

    async def handle_tool_call(self, name: str, arguments: Mapping[str, Any] | None) -> JsonDict:
        """Dispatch a tools/call. Always returns a CallToolResult mapping."""
        args = dict(arguments or {})
        match name:
            case "_ui_refine":
                return await self._refine(args)
            case "_ui_regenerate":
                return await self._regenerate(args)
            case "_mcp_metadata":
                return await self._metadata()

        try:
            result = await self._invoke(name, args)
        except Exception as e:
            logger.warning("Tool call %s failed: %s", name, describe_exception(e))
            return ToolError.from_exception(name or "unknown", e, "Tool call failed").to_result()
        return add_structured_content(result) if self.profile.use_structured_content else result

    async def _refine(self, args: JsonDict) -> JsonDict:
        tool_name = args.get("toolName")
        feedback = args.get("feedback")
        if not isinstance(tool_name, str) or tool_name not in self._tools:
            return _not_found(tool_name)
        if not isinstance(feedback, str) or not feedback.strip():
            return ToolError.create(REFINE_TOOL, "feedback must be a non-empty string", ErrorCode.INVALID_PARAMS).to_result()

        self._refinements.setdefault(tool_name, []).append(feedback)
        self._store.invalidate(self.cache_namespace(tool_name))

        logger.info("Regenerating UI for %s after refinement...", tool_name)
        start = time.perf_counter()
        await self.get_or_generate_ui(tool_name)
        elapsed = round((time.perf_counter() - start) * 1000)

        await self._notify(tool_name)
        return _text_result(f"UI refined for tool '{tool_name}'. Regeneration took {elapsed}ms.")

    async def _regenerate(self, args: JsonDict) -> JsonDict:
        tool_name = args.get("toolName")
        if not isinstance(tool_name, str) or tool_name not in self._tools:
            return _not_found(tool_name)

        if args.get("clearRefinements") is True:
            self._refinements.pop(tool_name, None)
        namespace = self.cache_namespace(tool_name)
        self._store.invalidate(namespace)

        logger.info("Regenerating UI for %s...", tool_name)
        tool = self._tools[tool_name]
        start = time.perf_counter()
        result = await self._synthesizer.generate(tool, self.refinements(tool_name))
        elapsed = round((time.perf_counter() - start) * 1000)

        self._store.set(namespace, *self.current_fingerprints(tool), result.html)
        await self._notify(tool_name)
        return _text_result(f"UI regenerated for tool '{tool_name}'. Generation took {elapsed}ms.")

    async def _metadata(self) -> JsonDict:
        from mcp_gen_ui import __version__

        resources = []
        for name in list(self._tools):
            resources.append({
                "tool_name": name,
                "uri": self.profile.resource_uri(name),
                "mime_type": self.profile.mime_type,
                "html": await self.get_or_generate_ui(name),
            })
        payload = {
            "stage": "ui",
            "version": __version__,
            "upstream_url": self._upstream_url,
            "standard": str(self.profile.name),
            "ui_resources": resources,
        }
        return _text_result(orjson.dumps(payload).decode())

    async def _notify(self, tool_name: str) -> None:
        if self.notifier is None:
            return
        uri = self.profile.resource_uri(tool_name)
        try:
            await self.notifier(uri)
        except Exception as e:
            logger.warning("Failed to send resource update for %s: %s", uri, describe_exception(e))
        else:
            logger.debug("Sent resource update notification for %s", tool_name)

    # ─────────────────────────────────────────────────────────────────────────
    # Resources
    # ─────────────────────────────────────────────────────────────────────────

    def list_resources(self) -> list[JsonDict]:
        return [
            {
                "uri": self.profile.resource_uri(name),
                "name": f"{name} UI",
                "description": f"Generated interactive UI for {name}",
                "mimeType": self.profile.mime_type,
            }
            for name in self._tools
        ]

    async def read_resource(self, uri: str) -> str:
        """HTML for a UI resource URI.

        Raises:
            ResourceNotFound: URI outside the profile's scheme or unknown tool
        """
        tool_name = self.profile.tool_from_uri(uri)
        if tool_name is None:
            raise ResourceNotFound(f"Invalid resource URI: {uri}")
        return await self.get_or_generate_ui(tool_name)
