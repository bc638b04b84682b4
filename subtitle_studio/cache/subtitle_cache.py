"""Two-tier cache for transcription, translation and project snapshots.

Architecture:
    SubtitleCache (facade)
    ├── MemoryIndex   (L1, transcription results only, no expiry)
    ├── DurableStore  (L2, one JSON file per entry, age-based expiry)
    └── CacheStats    (hit/miss/expiry counters)

Lookup flow for transcriptions:
    1. Memory index hit -> return immediately
    2. Durable hit within the transcription max age -> promote to memory, return
    3. Miss, expired or corrupt -> None; the caller computes and calls
       ``set_transcription``

Translations and project snapshots only use the durable tier, so their expiry
is checked on every lookup.

Example:
    ```python
    cache = SubtitleCache(DurableStore(cache_dir), MemoryIndex())

    digest = digest_file(video_path)
    segments = cache.get_transcription(digest)
    if segments is None:
        segments = upstream.transcribe(video_path, "en")
        cache.set_transcription(digest, segments)
    ```
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from threading import Lock
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..models.project import Project
from ..models.subtitles import Segment, TranslationResult
from .durable import DurableStore, Namespace, StoredEntry, parse_timestamp
from .errors import CacheSerializationError
from .memory import MemoryIndex

if TYPE_CHECKING:
    from ..config.settings import CacheSettings

logger = logging.getLogger(__name__)


@dataclass
class ExpiryPolicy:
    """Maximum age per entry kind."""

    transcription: timedelta = field(default_factory=lambda: timedelta(days=30))
    translation: timedelta = field(default_factory=lambda: timedelta(days=30))
    project_snapshot: timedelta = field(default_factory=lambda: timedelta(minutes=60))


@dataclass
class CacheStats:
    """Cache statistics."""

    memory_hits: int = 0
    disk_hits: int = 0
    misses: int = 0
    expired: int = 0
    corrupt: int = 0
    writes: int = 0

    @property
    def hits(self) -> int:
        return self.memory_hits + self.disk_hits

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate.

        Returns:
            Hit rate percentage
        """
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Stats dictionary
        """
        return {
            "memory_hits": self.memory_hits,
            "disk_hits": self.disk_hits,
            "misses": self.misses,
            "hit_rate": f"{self.hit_rate:.2f}%",
            "expired": self.expired,
            "corrupt": self.corrupt,
            "writes": self.writes,
        }


def _snapshot_updated_at(entry: StoredEntry):
    return parse_timestamp(entry.payload["updated_at"])


class SubtitleCache:
    """Cache facade composing the memory and durable tiers.

    Both tiers are injected so one memory index can be owned by the
    application session and shared by every request handler.

    Thread Safety:
        Safe for concurrent calls on the same or different keys. The memory
        index serializes its own access; the durable tier relies on atomic
        file replacement. Two callers racing on the same uncached digest both
        compute, and the later write wins.
    """

    def __init__(
        self,
        store: DurableStore,
        memory: Optional[MemoryIndex] = None,
        policy: Optional[ExpiryPolicy] = None,
    ):
        """Initialize the cache facade.

        Args:
            store: Durable tier
            memory: Memory tier for transcriptions (a fresh one if omitted)
            policy: Expiry windows per entry kind
        """
        self.store = store
        self.memory = memory if memory is not None else MemoryIndex()
        self.policy = policy or ExpiryPolicy()
        self._stats = CacheStats()
        self._stats_lock = Lock()

    @classmethod
    def from_settings(cls, settings: "CacheSettings") -> "SubtitleCache":
        """Build both tiers from configuration."""
        return cls(
            store=DurableStore(settings.cache_dir),
            memory=MemoryIndex(lock_timeout=settings.lock_timeout_seconds),
            policy=settings.expiry_policy(),
        )

    def _count(self, status: str) -> None:
        with self._stats_lock:
            if status == "hit":
                self._stats.disk_hits += 1
            elif status == "memory":
                self._stats.memory_hits += 1
            elif status == "miss":
                self._stats.misses += 1
            elif status == "expired":
                self._stats.misses += 1
                self._stats.expired += 1
            elif status == "corrupt":
                self._stats.misses += 1
                self._stats.corrupt += 1
            elif status == "write":
                self._stats.writes += 1

    @property
    def stats(self) -> CacheStats:
        """Copy of the current counters."""
        with self._stats_lock:
            return CacheStats(**vars(self._stats))

    # Transcriptions

    def get_transcription(self, digest: str) -> Optional[List[Segment]]:
        """Look up segments for a media digest.

        Returns:
            Cached segments, or None if the caller must transcribe

        Raises:
            CacheIOError: If an existing entry cannot be read
            CacheLockError: If the memory index lock cannot be acquired
        """
        segments = self.memory.get(digest)
        if segments is not None:
            self._count("memory")
            logger.debug(f"Transcription memory hit for {digest[:12]}")
            return segments

        entry, status = self.store.read_fresh(
            Namespace.TRANSCRIPTION, digest, self.policy.transcription
        )
        if entry is not None:
            try:
                segments = [Segment.from_dict(item) for item in entry.payload]
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Ignoring malformed transcription payload {digest[:12]}: {e}")
                entry, status = None, "corrupt"

        self._count(status)
        if entry is None:
            logger.debug(f"Transcription {status} for {digest[:12]}")
            return None

        self.memory.put(digest, segments)
        logger.debug(f"Transcription disk hit for {digest[:12]}")
        return segments

    def set_transcription(self, digest: str, segments: List[Segment]) -> None:
        """Store segments in the durable tier, then in the memory tier.

        The memory entry is only published after the file is in place, so a
        reader that sees it in memory can rely on the durable copy existing.

        Raises:
            CacheIOError: If the durable write fails (memory is left untouched)
            CacheSerializationError: If the segments cannot be encoded
            CacheLockError: If the memory index lock cannot be acquired
        """
        payload = _encode_list(segments)
        self.store.write(Namespace.TRANSCRIPTION, digest, payload)
        self.memory.put(digest, segments)
        self._count("write")
        logger.info(f"Cached transcription {digest[:12]} ({len(segments)} segments)")

    # Translations

    def get_translation(self, digest: str) -> Optional[List[TranslationResult]]:
        """Look up translation results for a request digest.

        Raises:
            CacheIOError: If an existing entry cannot be read
        """
        entry, status = self.store.read_fresh(
            Namespace.TRANSLATION, digest, self.policy.translation
        )
        results = None
        if entry is not None:
            try:
                results = [TranslationResult.from_dict(item) for item in entry.payload]
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Ignoring malformed translation payload {digest[:12]}: {e}")
                status = "corrupt"

        self._count(status)
        logger.debug(f"Translation {status} for {digest[:12]}")
        return results

    def set_translation(self, digest: str, results: List[TranslationResult]) -> None:
        """Store translation results in the durable tier.

        Raises:
            CacheIOError: If the write fails
            CacheSerializationError: If the results cannot be encoded
        """
        self.store.write(Namespace.TRANSLATION, digest, _encode_list(results))
        self._count("write")
        logger.info(f"Cached translation {digest[:12]} ({len(results)} results)")

    # Project snapshots

    def get_project_snapshot(self, project_id: str) -> Optional[Project]:
        """Return the cached project snapshot if it is recent enough.

        Freshness is measured from the snapshot's own ``updated_at``, not from
        when it was written to the cache.

        Raises:
            CacheIOError: If an existing entry cannot be read
        """
        entry, status = self.store.read_fresh(
            Namespace.PROJECT,
            project_id,
            self.policy.project_snapshot,
            timestamp_of=_snapshot_updated_at,
        )
        project = None
        if entry is not None:
            try:
                project = Project.from_dict(entry.payload)
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Ignoring malformed project snapshot {project_id}: {e}")
                status = "corrupt"

        self._count(status)
        logger.debug(f"Project snapshot {status} for {project_id}")
        return project

    def set_project_snapshot(self, project: Project) -> None:
        """Store a denormalized copy of ``project`` keyed by its id.

        Raises:
            CacheIOError: If the write fails
            CacheSerializationError: If the project cannot be encoded
        """
        self.store.write(Namespace.PROJECT, project.id, project.to_dict())
        self._count("write")
        logger.debug(f"Cached project snapshot {project.id}")

    # Maintenance

    def purge_expired(self) -> Dict[str, int]:
        """Delete expired entries of every kind.

        The memory index is not touched; it is trusted for the session.

        Returns:
            Number of removed files per namespace
        """
        return {
            Namespace.TRANSCRIPTION.value: self.store.purge_expired(
                Namespace.TRANSCRIPTION, self.policy.transcription
            ),
            Namespace.TRANSLATION.value: self.store.purge_expired(
                Namespace.TRANSLATION, self.policy.translation
            ),
            Namespace.PROJECT.value: self.store.purge_expired(
                Namespace.PROJECT, self.policy.project_snapshot, timestamp_of=_snapshot_updated_at
            ),
        }


def _encode_list(items: List[Any]) -> List[Dict[str, Any]]:
    try:
        return [item.to_dict() for item in items]
    except AttributeError as e:
        raise CacheSerializationError(f"Cannot encode cache payload item: {e}") from e
