"""Unified error handling for mcp-gen-ui.

- ErrorCode: Standard error codes
- ToolError: Structured tool-error results for protocol callers
- GenUIError and subclasses: configuration, generation and resource failures
"""

from .errors import (
    ConfigurationError,
    ErrorCode,
    GenerationError,
    GenUIError,
    ResourceNotFound,
    ToolError,
    classify_exception,
    describe_exception,
)

__all__ = [
    "ErrorCode", "ToolError", "classify_exception", "describe_exception",
    "GenUIError", "ConfigurationError", "GenerationError", "ResourceNotFound",
]
