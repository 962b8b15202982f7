"""Stable fingerprints deciding when a cached UI is still valid.

Digests are SHA-256 truncated to 16 hex characters. The schema fingerprint
serializes with sorted keys at every depth, so key order never matters.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence

import orjson

from .serialization import to_json

FINGERPRINT_LENGTH = 16
NO_REFINEMENTS = "none"
HISTORY_DELIMITER = "|"
INSTRUCTION_SEPARATOR = "||"


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:FINGERPRINT_LENGTH]


def schema_fingerprint(schema: Mapping[str, object]) -> str:
    """Fingerprint an input schema independent of key order."""
    payload = to_json(dict(schema), option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS)
    return _digest(payload)


def refinement_fingerprint(history: Sequence[str], standing_instruction: str | None = None) -> str:
    """Fingerprint an ordered refinement history plus optional standing instruction.

    Returns the ``"none"`` sentinel when there is nothing to fingerprint.
    """
    if not history and standing_instruction is None:
        return NO_REFINEMENTS
    joined = HISTORY_DELIMITER.join(history)
    if standing_instruction is not None:
        joined = f"{joined}{INSTRUCTION_SEPARATOR}{standing_instruction}"
    return _digest(joined.encode())
