"""Content-addressed artifact store for generated UIs.

Entries are keyed by (namespace, schema fingerprint, refinement fingerprint)
and persisted as one JSON document. Persistence is best-effort: the in-memory
map stays authoritative and keeps working when the disk does not.
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import UTC, datetime
from pathlib import Path

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger("mcp_gen_ui.cache")

CACHE_FILENAME = "cache.json"


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CacheEntry(BaseModel):
    """A stored UI artifact. Never mutated; a new ``set`` replaces it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    html: str
    generated_at: str = Field(alias="generatedAt")
    tool_name: str = Field(alias="toolName")
    schema_hash: str = Field(alias="schemaHash")
    refinement_hash: str = Field(alias="refinementHash")

    @property
    def key(self) -> str:
        return ArtifactStore.make_key(self.tool_name, self.schema_hash, self.refinement_hash)


class ArtifactStore:
    """In-memory UI cache with JSON file persistence.

    The dict is the single source of truth: at most one entry per key triple.
    ``set`` and ``invalidate`` schedule a flush. Inside a running event loop
    the snapshot is taken immediately and written from a worker thread by one
    coalescing writer task; outside a loop the write happens inline.

    Args:
        directory: Directory holding the backing file (created on first save)
        filename: Backing file name

    Example:
        >>> store = ArtifactStore("/tmp/ui-cache")
        >>> store.set("mcp-apps:weather", "ab12", "none", "<html></html>")
        >>> store.get("mcp-apps:weather", "ab12", "none").html
        '<html></html>'
    """

    __slots__ = ("_entries", "_path", "_dirty", "_writer")

    def __init__(self, directory: str | os.PathLike[str], *, filename: str = CACHE_FILENAME) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._path = Path(directory) / filename
        self._dirty = False
        self._writer: asyncio.Task[None] | None = None

    @staticmethod
    def make_key(namespace: str, schema_fp: str, refinement_fp: str) -> str:
        return f"{namespace}:{schema_fp}:{refinement_fp}"

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, namespace: str, schema_fp: str, refinement_fp: str) -> CacheEntry | None:
        return self._entries.get(self.make_key(namespace, schema_fp, refinement_fp))

    def set(self, namespace: str, schema_fp: str, refinement_fp: str, html: str) -> None:
        """Insert or replace the entry for this exact key, then flush."""
        entry = CacheEntry(
            html=html,
            generated_at=_utc_timestamp(),
            tool_name=namespace,
            schema_hash=schema_fp,
            refinement_hash=refinement_fp,
        )
        self._entries[entry.key] = entry
        self._schedule_save()

    def invalidate(self, namespace: str) -> int:
        """Remove every entry for a namespace regardless of fingerprints. Returns count removed."""
        keys = [k for k, v in self._entries.items() if v.tool_name == namespace]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug("Invalidated %d cached UI(s) for %s", len(keys), namespace)
        self._schedule_save()
        return len(keys)

    # ─────────────────────────────────────────────────────────────────────────
    # Persistence
    # ─────────────────────────────────────────────────────────────────────────

    def save(self) -> None:
        """Write the full map to the backing file. Failures are logged, never raised."""
        self._write(self._serialize())

    def load(self) -> None:
        """Rehydrate from the backing file. Missing or malformed data means empty."""
        try:
            raw = orjson.loads(self._path.read_bytes())
        except FileNotFoundError:
            return
        except (OSError, orjson.JSONDecodeError) as e:
            logger.warning("Failed to load cache from %s: %s", self._path, e)
            return

        if not isinstance(raw, dict):
            logger.warning("Ignoring cache file %s: expected a JSON object", self._path)
            return

        loaded: dict[str, CacheEntry] = {}
        for key, value in raw.items():
            try:
                entry = CacheEntry.model_validate(value)
            except ValidationError:
                logger.warning("Skipping malformed cache entry %r", key)
                continue
            loaded[entry.key] = entry

        self._entries = loaded
        logger.info("Loaded %d cached UI(s) from disk", len(loaded))

    async def flush(self) -> None:
        """Wait until every scheduled write has reached the disk."""
        while self._writer is not None and not self._writer.done():
            await asyncio.shield(self._writer)

    def _serialize(self) -> bytes:
        data = {key: entry.model_dump(by_alias=True) for key, entry in self._entries.items()}
        return orjson.dumps(data, option=orjson.OPT_INDENT_2)

    def _write(self, payload: bytes) -> bool:
        tmp = self._path.with_name(f"{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(payload)
            os.replace(tmp, self._path)
        except OSError as e:
            logger.warning("Failed to save cache to %s: %s", self._path, e)
            return False
        return True

    def _schedule_save(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.save()
            return
        self._dirty = True
        if self._writer is None or self._writer.done():
            self._writer = loop.create_task(self._drain(), name="artifact-store-save")

    async def _drain(self) -> None:
        while self._dirty:
            self._dirty = False
            payload = self._serialize()
            try:
                await asyncio.to_thread(self._write, payload)
            except Exception:
                logger.exception("Cache writer failed")

    def stats(self) -> dict[str, object]:
        """Store statistics for monitoring."""
        namespaces = {entry.tool_name for entry in self._entries.values()}
        return {
            "total_entries": len(self._entries),
            "namespaces": len(namespaces),
            "path": str(self._path),
            "pending_write": self._dirty or (self._writer is not None and not self._writer.done()),
        }
