"""Process logging configuration.

All output goes to stderr so stdout stays free for whatever the process is
piped into. Two formats:

- ``text``: human-readable, colored on a TTY
- ``json``: one JSON object per line for log aggregation

Quick Start:
    >>> from mcp_gen_ui.runtime.observability import configure_logging
    >>> configure_logging(level="DEBUG", format="json")
    >>> logging.getLogger("mcp_gen_ui.cache").info("loaded", extra={"entries": 3})
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

import orjson

ROOT_LOGGER = "mcp_gen_ui"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}

_COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
}

_LEVEL_COLORS = {
    "DEBUG": "\033[2m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[31m",
}


def _extras(record: logging.LogRecord) -> dict[str, object]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED and not k.startswith("_")}


class ConsoleFormatter(logging.Formatter):
    """Format: HH:MM:SS.mmm [level] logger: message key=value"""

    def __init__(self, *, colors: bool = False) -> None:
        super().__init__()
        self.colors = colors

    def format(self, record: logging.LogRecord) -> str:
        c = _COLORS if self.colors else dict.fromkeys(_COLORS, "")
        level = _LEVEL_COLORS.get(record.levelname, "") if self.colors else ""
        ts = datetime.fromtimestamp(record.created, tz=UTC).strftime("%H:%M:%S.%f")[:-3]

        parts = [
            f"{c['dim']}{ts}{c['reset']}",
            f"{level}[{record.levelname.lower()}]{c['reset']}",
            f"{c['dim']}{record.name}:{c['reset']}",
            f"{c['bold']}{record.getMessage()}{c['reset']}",
        ]
        parts.extend(f"{c['cyan']}{k}{c['reset']}={v!r}" for k, v in sorted(_extras(record).items()))
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(logging.Formatter):
    """JSON Lines output, one object per record."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(data, default=str).decode()


def configure_logging(
    level: str = "INFO",
    format: str = "text",  # noqa: A002 - matches the settings field
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> logging.Handler:
    """Install a single handler on the package logger.

    Calling again replaces the previous handler rather than stacking another.

    Args:
        level: Minimum level name
        format: "text" or "json"
        output: Stream to write to (default stderr)
        colors: Force colors on/off for text output (None = auto-detect)

    Returns:
        The installed handler
    """
    stream = output or sys.stderr
    formatter: logging.Formatter
    match format:
        case "text":
            use_colors = colors if colors is not None else (hasattr(stream, "isatty") and stream.isatty())
            formatter = ConsoleFormatter(colors=use_colors)
        case "json":
            formatter = JsonFormatter()
        case _:
            raise ValueError(f"Unknown format: {format}. Use 'text' or 'json'")

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root = logging.getLogger(ROOT_LOGGER)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.propagate = False
    return handler
