"""Standardized error handling for the gen-UI wrapper.

Provides error codes, structured tool-error responses for protocol callers,
and the exception taxonomy raised at startup or while serving resources.
Uses Pydantic for validation and serialization.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ErrorCode(StrEnum):
    """Standard error codes for wrapper failures.

    Used for log classification and tool-error results.
    """
    API_KEY_MISSING = "API_KEY_MISSING"
    INVALID_CONFIG = "INVALID_CONFIG"
    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    INVALID_PARAMS = "INVALID_PARAMS"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_OUTPUT = "INVALID_OUTPUT"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN = "UNKNOWN"


# Pattern -> code mapping, checked in insertion order
_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "connection": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "rate": ErrorCode.RATE_LIMITED,
    "auth": ErrorCode.API_KEY_MISSING,
    "permission": ErrorCode.PERMISSION_DENIED,
    "forbidden": ErrorCode.PERMISSION_DENIED,
    "json": ErrorCode.PARSE_ERROR,
    "decode": ErrorCode.PARSE_ERROR,
    "validation": ErrorCode.INVALID_PARAMS,
    "notfound": ErrorCode.NOT_FOUND,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES)


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.EXTERNAL_SERVICE_ERROR


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code via pattern matching on name/message."""
    if isinstance(exc, GenUIError):
        return exc.code
    return _classify_cached(f"{type(exc).__name__} {exc}")


def describe_exception(exc: BaseException) -> str:
    """Human-readable message for an exception, falling back to its type name."""
    return str(exc) or type(exc).__name__


class ToolError(BaseModel):
    """Structured error returned to the protocol caller as a tool result.

    Attributes:
        tool_name: Name of the tool that failed
        message: Human-readable error message
        code: Machine-readable error code
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, validate_default=True)

    tool_name: Annotated[str, Field(min_length=1)]
    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode = ErrorCode.UNKNOWN

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | Exception) -> str:
        """Accept Exception objects and extract message."""
        return describe_exception(v) if isinstance(v, BaseException) else v

    @classmethod
    def create(cls, tool_name: str, message: str, code: ErrorCode = ErrorCode.UNKNOWN) -> Self:
        return cls(tool_name=tool_name, message=message, code=code)

    @classmethod
    def from_exception(
        cls,
        tool_name: str,
        exc: BaseException,
        context: str = "",
    ) -> Self:
        """Create from exception with auto-classification."""
        text = describe_exception(exc)
        return cls(
            tool_name=tool_name,
            message=f"{context}: {text}" if context else text,
            code=classify_exception(exc),
        )

    def render(self) -> str:
        """Plain text for the content block of an error result."""
        return self.message

    def to_result(self) -> dict[str, object]:
        """MCP CallToolResult payload flagged as an error."""
        return {"content": [{"type": "text", "text": self.render()}], "isError": True}

    __str__ = render


# ═══════════════════════════════════════════════════════════════════════════════
# Exception Taxonomy
# ═══════════════════════════════════════════════════════════════════════════════


class GenUIError(Exception):
    """Base exception carrying an ErrorCode."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str, *, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ConfigurationError(GenUIError):
    """Structurally invalid configuration; fatal before serving starts."""

    code = ErrorCode.INVALID_CONFIG


class GenerationError(GenUIError):
    """LLM produced nothing usable. Always recovered by the minimal UI."""

    code = ErrorCode.INVALID_OUTPUT


class ResourceNotFound(GenUIError):
    """Requested UI resource does not map to a known tool."""

    code = ErrorCode.NOT_FOUND
