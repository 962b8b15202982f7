"""Generated-UI artifact caching.

Artifacts are keyed by tool namespace plus schema and refinement
fingerprints, held in memory and mirrored to a single JSON file.

Backends:
    - ArtifactStore: in-memory map with best-effort file persistence
"""

from .store import CACHE_FILENAME, ArtifactStore, CacheEntry

__all__ = [
    "ArtifactStore",
    "CacheEntry",
    "CACHE_FILENAME",
]
