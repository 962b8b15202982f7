"""Shared domain models: tool definitions and synthesis results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

JsonDict = dict[str, Any]


class ToolDefinition(BaseModel):
    """A tool as advertised by the upstream server.

    ``sample_output`` is captured from a live invocation just before
    generation and never participates in fingerprinting.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    description: str | None = None
    input_schema: JsonDict = Field(default_factory=dict, alias="inputSchema")
    sample_output: Any | None = Field(default=None, repr=False)

    def with_sample(self, sample_output: Any | None) -> ToolDefinition:
        return self.model_copy(update={"sample_output": sample_output})

    @property
    def properties(self) -> JsonDict:
        props = self.input_schema.get("properties")
        return props if isinstance(props, dict) else {}

    @property
    def required(self) -> list[str]:
        req = self.input_schema.get("required")
        return [r for r in req if isinstance(r, str)] if isinstance(req, list) else []


@dataclass(frozen=True, slots=True)
class SynthesisResult:
    """Generated UI plus whether it came from the deterministic fallback."""

    html: str
    is_minimal: bool
