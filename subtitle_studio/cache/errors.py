"""Exception hierarchy for the result cache.

A cache miss is never an exception: lookups return ``None`` for absent,
expired and corrupt entries. The classes below cover the failures that must
reach the caller.
"""
from __future__ import annotations


class CacheError(Exception):
    """Base class for all cache failures."""


class CacheIOError(CacheError, OSError):
    """Reading or writing the durable tier failed (disk full, permissions, ...)."""


class CacheSerializationError(CacheError, ValueError):
    """A value could not be encoded for storage or hashing."""


class CacheLockError(CacheError, RuntimeError):
    """The memory index lock could not be acquired in time."""
