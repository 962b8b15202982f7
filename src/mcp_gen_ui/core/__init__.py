"""Core domain types and fingerprinting."""

from .fingerprint import (
    FINGERPRINT_LENGTH,
    NO_REFINEMENTS,
    refinement_fingerprint,
    schema_fingerprint,
)
from .models import JsonDict, SynthesisResult, ToolDefinition
from .serialization import to_json

__all__ = [
    "FINGERPRINT_LENGTH",
    "NO_REFINEMENTS",
    "JsonDict",
    "SynthesisResult",
    "ToolDefinition",
    "refinement_fingerprint",
    "schema_fingerprint",
    "to_json",
]
