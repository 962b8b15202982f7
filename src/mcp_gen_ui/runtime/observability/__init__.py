"""Observability - logging setup for the wrapper process."""

from .logging import ConsoleFormatter, JsonFormatter, configure_logging

__all__ = ["configure_logging", "ConsoleFormatter", "JsonFormatter"]
