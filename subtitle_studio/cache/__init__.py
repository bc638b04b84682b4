"""Content-addressed result cache for subtitle transcription and translation.

Components:
    Hashing:
        - digest_file / digest_bytes: SHA-256 of media content, read in chunks
        - digest_request: order-stable digest of a translation request

    Tiers:
        - MemoryIndex: lock-guarded in-memory transcription results
        - DurableStore: one JSON file per entry with age-based expiry

    Facade:
        - SubtitleCache: memory -> disk -> miss lookup, write-through on store
        - AsyncSubtitleCache: the same operations as coroutines
        - ExpiryPolicy / CacheStats: expiry windows and counters

Usage::

    from subtitle_studio.cache import DurableStore, MemoryIndex, SubtitleCache, digest_file

    cache = SubtitleCache(DurableStore("./cache"), MemoryIndex())
    digest = digest_file("episode.mp4")
    segments = cache.get_transcription(digest)
    if segments is None:
        segments = transcribe(...)
        cache.set_transcription(digest, segments)
"""

from .async_cache import AsyncSubtitleCache
from .durable import DurableStore, Namespace, StoredEntry
from .errors import CacheError, CacheIOError, CacheLockError, CacheSerializationError
from .hashing import digest_bytes, digest_file, digest_request
from .memory import MemoryIndex
from .subtitle_cache import CacheStats, ExpiryPolicy, SubtitleCache

__all__ = [
    "AsyncSubtitleCache",
    "CacheError",
    "CacheIOError",
    "CacheLockError",
    "CacheSerializationError",
    "CacheStats",
    "DurableStore",
    "ExpiryPolicy",
    "MemoryIndex",
    "Namespace",
    "StoredEntry",
    "SubtitleCache",
    "digest_bytes",
    "digest_file",
    "digest_request",
]
