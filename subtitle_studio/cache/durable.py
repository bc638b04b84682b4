"""File-per-entry durable cache tier.

Each entry lives in its own JSON file under the cache root::

    <cache_dir>/transcribe_<digest>.json
    <cache_dir>/translate_<digest>.json
    <cache_dir>/project_<project id>.json

and holds the envelope ``{"key": ..., "payload": ..., "created_at": ...}``
with ``created_at`` as an ISO-8601 UTC timestamp.

Writes are atomic (temp file + rename), so a reader never decodes a half
written entry. Reads treat anything undecodable as a miss; the next write for
that key replaces the broken file. Expiry is decided by the caller-supplied
maximum age rather than per namespace.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Tuple, Union

from ..utils.paths import atomic_write_json, ensure_subpath
from .errors import CacheIOError, CacheSerializationError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
_FRACTION_PATTERN = re.compile(r"\.(\d+)")


class Namespace(Enum):
    """Entry kinds, used as the file name prefix."""

    TRANSCRIPTION = "transcribe"
    TRANSLATION = "translate"
    PROJECT = "project"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z`` and any number of fractional-second digits
    (truncated to microseconds); naive values are taken to be UTC.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    value = _FRACTION_PATTERN.sub(lambda m: "." + (m.group(1) + "000000")[:6], value, count=1)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class StoredEntry:
    """One decoded cache file."""

    key: str
    payload: Any
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk envelope."""
        return {
            "key": self.key,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredEntry":
        """Create from the on-disk envelope.

        Raises:
            KeyError, ValueError, TypeError: If the envelope is malformed
        """
        if not isinstance(data, dict):
            raise TypeError("Cache envelope must be a JSON object")
        key = data["key"]
        if not isinstance(key, str):
            raise TypeError("Cache envelope key must be a string")
        return cls(key=key, payload=data["payload"], created_at=parse_timestamp(data["created_at"]))


TimestampOf = Callable[[StoredEntry], datetime]


class DurableStore:
    """Directory of independent JSON cache files.

    There is no lock here: each key is written by at most one computation at
    a time in practice, and a racing second write simply replaces the first
    (last writer wins). Atomic replacement keeps every file whole either way.

    Attributes:
        cache_dir: Root directory holding all entry files
    """

    def __init__(
        self,
        cache_dir: Union[str, Path],
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the store, creating the cache directory if needed.

        Args:
            cache_dir: Cache root directory
            clock: Source of the current UTC time

        Raises:
            CacheIOError: If the directory cannot be created
        """
        self.cache_dir = Path(cache_dir)
        self._clock = clock
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIOError(f"Failed to create cache directory {self.cache_dir}: {e}") from e

        logger.info(f"Initialized DurableStore at {self.cache_dir}")

    def path_for(self, namespace: Namespace, key: str) -> Path:
        """Return the file backing ``namespace``/``key``.

        Raises:
            ValueError: If the key is not a safe file name component
        """
        if not isinstance(key, str) or not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid cache key: {key!r}")
        return ensure_subpath(self.cache_dir, f"{namespace.value}_{key}.json")

    def write(self, namespace: Namespace, key: str, payload: Any) -> StoredEntry:
        """Persist ``payload`` under ``key``, replacing any previous entry.

        Returns:
            The entry as written, stamped with the current time

        Raises:
            CacheSerializationError: If the payload is not JSON-serializable
            CacheIOError: If the file cannot be written
        """
        path = self.path_for(namespace, key)
        entry = StoredEntry(key=key, payload=payload, created_at=self._clock())

        try:
            atomic_write_json(path, entry.to_dict())
        except (TypeError, ValueError) as e:
            raise CacheSerializationError(f"Failed to serialize cache entry {path.name}: {e}") from e
        except OSError as e:
            raise CacheIOError(f"Failed to write cache entry {path.name}: {e}") from e

        logger.debug(f"Wrote {path.name}")
        return entry

    def read(self, namespace: Namespace, key: str) -> Optional[StoredEntry]:
        """Load the entry for ``key``.

        Returns:
            The entry, or None if the file is missing or corrupt

        Raises:
            CacheIOError: If an existing file cannot be read
        """
        entry, _ = self._load(self.path_for(namespace, key))
        return entry

    def _load(self, path: Path) -> Tuple[Optional[StoredEntry], str]:
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None, "miss"
        except OSError as e:
            raise CacheIOError(f"Failed to read cache entry {path.name}: {e}") from e

        try:
            return StoredEntry.from_dict(json.loads(raw.decode("utf-8"))), "hit"
        except (json.JSONDecodeError, UnicodeDecodeError, KeyError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring corrupt cache entry {path.name}: {e}")
            return None, "corrupt"

    def is_expired(
        self,
        entry: StoredEntry,
        max_age: timedelta,
        now: Optional[datetime] = None,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """Check whether an entry is older than ``max_age``.

        Args:
            entry: Entry to check
            max_age: Maximum allowed age
            now: Reference time (defaults to the store clock)
            timestamp: Time to measure age from (defaults to ``entry.created_at``)

        Returns:
            True if the age is strictly greater than ``max_age``
        """
        reference = now or self._clock()
        return (reference - (timestamp or entry.created_at)) > max_age

    def read_fresh(
        self,
        namespace: Namespace,
        key: str,
        max_age: timedelta,
        timestamp_of: Optional[TimestampOf] = None,
    ) -> Tuple[Optional[StoredEntry], str]:
        """Read an entry and enforce the expiry policy.

        Expired entries are deleted on the way out. When ``timestamp_of`` is
        given, age is measured from the time it returns instead of the write
        time; if it cannot produce a time the entry counts as corrupt.

        Returns:
            ``(entry, status)`` where status is one of ``"hit"``, ``"miss"``,
            ``"expired"`` or ``"corrupt"``; entry is None unless status is hit

        Raises:
            CacheIOError: If an existing file cannot be read
        """
        path = self.path_for(namespace, key)
        entry, status = self._load(path)
        if entry is None:
            return None, status

        try:
            timestamp = timestamp_of(entry) if timestamp_of else entry.created_at
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Cannot determine age of {path.name}: {e}")
            return None, "corrupt"

        if self.is_expired(entry, max_age, timestamp=timestamp):
            logger.debug(f"Expired {path.name}")
            self._discard(path)
            return None, "expired"

        return entry, "hit"

    def delete(self, namespace: Namespace, key: str) -> bool:
        """Remove an entry file, best-effort.

        Returns:
            True if a file was removed
        """
        return self._discard(self.path_for(namespace, key))

    def _discard(self, path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete cache entry {path.name}: {e}")
            return False

    def _paths(self, namespace: Optional[Namespace] = None) -> Iterator[Tuple[Namespace, Path]]:
        namespaces = [namespace] if namespace else list(Namespace)
        for ns in namespaces:
            for path in sorted(self.cache_dir.glob(f"{ns.value}_*.json")):
                yield ns, path

    def entries(self, namespace: Optional[Namespace] = None) -> Iterator[Tuple[Namespace, StoredEntry]]:
        """Iterate decodable entries, optionally limited to one namespace."""
        for ns, path in self._paths(namespace):
            try:
                entry, _ = self._load(path)
            except CacheIOError as e:
                logger.warning(str(e))
                continue
            if entry is not None:
                yield ns, entry

    def purge_expired(
        self,
        namespace: Namespace,
        max_age: timedelta,
        timestamp_of: Optional[TimestampOf] = None,
    ) -> int:
        """Delete every expired entry of one namespace.

        Corrupt files are left alone; they are replaced on the next write.

        Returns:
            Number of files removed
        """
        now = self._clock()
        removed = 0
        for _, path in self._paths(namespace):
            try:
                entry, _ = self._load(path)
            except CacheIOError as e:
                logger.warning(str(e))
                continue
            if entry is None:
                continue
            try:
                timestamp = timestamp_of(entry) if timestamp_of else entry.created_at
            except (KeyError, ValueError, TypeError):
                continue
            if self.is_expired(entry, max_age, now=now, timestamp=timestamp) and self._discard(path):
                removed += 1

        if removed:
            logger.info(f"Purged {removed} expired {namespace.value} entries")
        return removed

    def usage(self) -> Dict[str, Dict[str, int]]:
        """Count files and bytes per namespace."""
        report = {ns.value: {"entries": 0, "bytes": 0} for ns in Namespace}
        for ns, path in self._paths():
            try:
                size = path.stat().st_size
            except FileNotFoundError:
                continue
            report[ns.value]["entries"] += 1
            report[ns.value]["bytes"] += size
        return report
