"""Process-lifetime memory tier for transcription results."""
from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator, List, Optional

from ..models.subtitles import Segment
from .errors import CacheLockError

logger = logging.getLogger(__name__)


class MemoryIndex:
    """Thread-safe digest -> segments mapping.

    Every get/put runs inside one short critical section on a single lock;
    the lock is never held while the durable tier or upstream is being
    called. Stored and returned lists are deep copies, so callers editing
    their segments cannot change what later readers see.

    Entries never expire and the mapping is unbounded. It lives for one
    application session, created at startup and handed to the cache facade.
    """

    def __init__(self, lock_timeout: float = 5.0):
        """Initialize an empty index.

        Args:
            lock_timeout: Seconds to wait for the lock before failing
        """
        self._entries: Dict[str, List[Segment]] = {}
        self._lock = Lock()
        self._lock_timeout = lock_timeout

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise CacheLockError(f"Timed out after {self._lock_timeout}s waiting for memory index lock")
        try:
            yield
        finally:
            self._lock.release()

    def get(self, digest: str) -> Optional[List[Segment]]:
        """Return a copy of the segments cached for ``digest``, if any."""
        with self._locked():
            segments = self._entries.get(digest)
            if segments is None:
                return None
            return copy.deepcopy(segments)

    def put(self, digest: str, segments: List[Segment]) -> None:
        """Cache a copy of ``segments`` under ``digest``, replacing any previous value."""
        snapshot = copy.deepcopy(list(segments))
        with self._locked():
            self._entries[digest] = snapshot

    def __contains__(self, digest: object) -> bool:
        with self._locked():
            return digest in self._entries

    def __len__(self) -> int:
        with self._locked():
            return len(self._entries)

    def clear(self) -> int:
        """Drop all entries.

        Returns:
            Number of entries removed
        """
        with self._locked():
            count = len(self._entries)
            self._entries.clear()
        logger.debug(f"Cleared {count} memory index entries")
        return count
