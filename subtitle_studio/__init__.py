"""Subtitle studio result cache.

Caches expensive remote speech-to-text and translation results on disk, keyed
by content digests, with an in-memory fast path for transcriptions and
short-lived project snapshots.
"""

__version__ = "1.0.0"
