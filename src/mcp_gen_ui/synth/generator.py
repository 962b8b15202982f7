"""UI synthesis: prompt assembly, bounded generation, validation, fallback.

Every call to ``UISynthesizer.generate`` produces usable HTML. Timeouts,
provider errors and output that fails the profile's acceptance gate all end
in the profile's deterministic minimal UI, flagged ``is_minimal=True``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import orjson

from mcp_gen_ui.core.models import SynthesisResult, ToolDefinition
from mcp_gen_ui.core.serialization import to_json
from mcp_gen_ui.foundation.errors import GenerationError, describe_exception

if TYPE_CHECKING:
    from mcp_gen_ui.llm import LLMClient
    from mcp_gen_ui.standards import StandardProfile

logger = logging.getLogger("mcp_gen_ui.synth")

DEFAULT_TIMEOUT = 30.0
SAMPLE_OUTPUT_LIMIT = 10_000

_FENCE_LANG = "```html"
_FENCE = "```"
_HTML_CLOSE = "</html>"


# ─────────────────────────────────────────────────────────────────────────────
# Prompt Assembly
# ─────────────────────────────────────────────────────────────────────────────

_REQUIREMENTS = """REQUIREMENTS:
- Theme: light
- Create appropriate form controls for each input property
- Handle required vs optional fields appropriately
- Pre-fill default values from schema
- Add loading state while tool is executing
- Show errors clearly with option to retry"""

_UNKNOWN_OUTPUT = """OUTPUT HANDLING (CRITICAL):
- You do NOT have an output schema - the tool result structure is UNKNOWN
- Based on the tool name and description, make a reasonable guess at visualization
- ALWAYS include a "Show Raw JSON" toggle as fallback
- Wrap all rendering code in try/catch
- If rendering fails, fall back to JSON.stringify(result, null, 2)
- Handle ALL content items in the result, not just the first"""

_KNOWN_OUTPUT = """OUTPUT HANDLING (CRITICAL):
- The sample above shows the real structure of this tool's output
- Design the display around EVERY field in the sample; none may be left unrendered
- Field values will differ between calls, the structure will not
- ALWAYS include a "Show Raw JSON" toggle as fallback
- Wrap all rendering code in try/catch
- If rendering fails, fall back to JSON.stringify(result, null, 2)"""

_VISUALIZATION_HINTS = """VISUALIZATION HINTS:
- Prices/trends → line chart
- Lists of items → table or cards
- Single values → large display with label
- Time series → chart with x-axis as time
- Comparisons → bar chart or table"""

_CLOSING = "Remember: Output ONLY the complete HTML file, no markdown code fences or explanations."


def _pretty(value: object) -> str:
    return to_json(value, option=orjson.OPT_INDENT_2).decode()


def _sample_block(sample: object) -> str:
    text = _pretty(sample)
    if len(text) > SAMPLE_OUTPUT_LIMIT:
        text = f"{text[:SAMPLE_OUTPUT_LIMIT]}\n... (truncated)"
    return f"SAMPLE OUTPUT (a real response from this tool):\n{text}"


def render_refinements(refinements: Sequence[str]) -> str:
    """Render the cumulative refinement block; empty history renders nothing."""
    if not refinements:
        return ""
    bullets = "\n".join(f"- {r}" for r in refinements)
    return f"USER REFINEMENT REQUESTS (apply ALL of these to the UI):\n{bullets}"


def build_user_prompt(
    tool: ToolDefinition,
    refinements: Sequence[str] = (),
    *,
    output_guidance: str = "",
    standing_instruction: str | None = None,
) -> str:
    """Assemble the user prompt for one tool.

    Sections appear in a fixed order: tool definition, sample output (when
    present), refinements, standing instruction, requirements, output
    handling, host integration notes, visualization hints.
    """
    definition = (
        "Generate a UI for this MCP tool:\n\n"
        "===TOOL_DEFINITION_START===\n"
        f"TOOL NAME: {tool.name}\n"
        f"DESCRIPTION: {tool.description or 'No description provided'}\n\n"
        f"INPUT SCHEMA:\n{_pretty(tool.input_schema)}\n"
        "===TOOL_DEFINITION_END==="
    )
    has_sample = tool.sample_output is not None
    sections = [
        definition,
        _sample_block(tool.sample_output) if has_sample else "",
        render_refinements(refinements),
        f"ADDITIONAL INSTRUCTIONS (apply to this UI):\n{standing_instruction}" if standing_instruction else "",
        _REQUIREMENTS,
        _KNOWN_OUTPUT if has_sample else _UNKNOWN_OUTPUT,
        output_guidance,
        _VISUALIZATION_HINTS,
        _CLOSING,
    ]
    return "\n\n".join(s for s in sections if s)


# ─────────────────────────────────────────────────────────────────────────────
# Post-processing
# ─────────────────────────────────────────────────────────────────────────────


def clean_output(raw: str) -> str:
    """Strip code fences, preamble and trailing chatter from model output.

    Example:
        >>> clean_output("Here is the UI:\\n<!DOCTYPE html><html></html>\\nDone.")
        '<!DOCTYPE html><html></html>'
    """
    text = raw.strip()
    if text.startswith(_FENCE_LANG):
        text = text[len(_FENCE_LANG):]
    elif text.startswith(_FENCE):
        text = text[len(_FENCE):]
    if text.endswith(_FENCE):
        text = text[: -len(_FENCE)]
    text = text.strip()

    lowered = text.lower()
    starts = [i for i in (lowered.find("<!doctype"), lowered.find("<html")) if i >= 0]
    if starts:
        text = text[min(starts):]
        lowered = text.lower()

    end = lowered.rfind(_HTML_CLOSE)
    if end >= 0:
        text = text[: end + len(_HTML_CLOSE)]
    return text.strip()


# ─────────────────────────────────────────────────────────────────────────────
# Synthesizer
# ─────────────────────────────────────────────────────────────────────────────


class UISynthesizer:
    """Turns a tool definition plus refinements into a vetted HTML artifact.

    Args:
        llm: Generation backend
        profile: Standard profile supplying prompts, marker and fallback
        timeout: Deadline in seconds for one generation call
        standing_instruction: Extra instruction added to every prompt

    Example:
        >>> synth = UISynthesizer(llm, get_standard_profile("mcp-apps"), timeout=30)
        >>> result = await synth.generate(tool, ["Use a dark theme"])
        >>> result.is_minimal
        False
    """

    __slots__ = ("_llm", "_profile", "_timeout", "_standing_instruction")

    def __init__(
        self,
        llm: LLMClient,
        profile: StandardProfile,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        standing_instruction: str | None = None,
    ) -> None:
        self._llm = llm
        self._profile = profile
        self._timeout = timeout
        self._standing_instruction = standing_instruction

    @property
    def profile(self) -> StandardProfile:
        return self._profile

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def standing_instruction(self) -> str | None:
        return self._standing_instruction

    def build_prompts(self, tool: ToolDefinition, refinements: Sequence[str] = ()) -> tuple[str, str]:
        user = build_user_prompt(
            tool,
            refinements,
            output_guidance=self._profile.output_guidance,
            standing_instruction=self._standing_instruction,
        )
        return self._profile.system_prompt, user

    def minimal(self, tool: ToolDefinition) -> SynthesisResult:
        return SynthesisResult(html=self._profile.render_minimal(tool), is_minimal=True)

    async def generate(self, tool: ToolDefinition, refinements: Sequence[str] = ()) -> SynthesisResult:
        """Generate a UI, falling back to the minimal one on any failure."""
        logger.info("Generating UI for tool: %s", tool.name)
        start = time.perf_counter()

        try:
            system, user = self.build_prompts(tool, refinements)
            html = await self._attempt(system, user)
        except TimeoutError:
            logger.warning("Generation for %s timed out after %.1fs, using minimal UI", tool.name, self._timeout)
            return self.minimal(tool)
        except GenerationError as e:
            logger.warning("Rejected generated UI for %s: %s, using minimal UI", tool.name, e)
            return self.minimal(tool)
        except Exception as e:
            logger.warning("Failed to generate UI for %s: %s, using minimal UI", tool.name, describe_exception(e))
            return self.minimal(tool)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("Generated UI for %s (%d bytes, %.0fms)", tool.name, len(html), elapsed_ms)
        return SynthesisResult(html=html, is_minimal=False)

    async def _attempt(self, system: str, user: str) -> str:
        raw = await asyncio.wait_for(self._llm.generate(system, user), timeout=self._timeout)
        html = clean_output(raw or "")
        if not self._profile.accepts(html):
            raise GenerationError(f"output lacks <html or {self._profile.validation_marker!r}")
        return html
