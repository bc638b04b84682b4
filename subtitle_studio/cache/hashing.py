"""Content digests used as cache keys.

Two kinds of input are hashed with SHA-256:

- media file content, read incrementally so large videos are never loaded
  into memory at once
- translation requests (segments + glossary + target language + style prompt)

Request hashing does not rely on ``json.dumps`` key ordering. Each model is
encoded as a JSON array whose element order is fixed by the ``*_FIELDS``
tuples below. Reordering those tuples invalidates every existing translation
cache key, so treat them as a storage format.
"""
from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, BinaryIO, Iterable, Mapping, Sequence, Union

from ..models.subtitles import GlossaryEntry, Segment
from .errors import CacheIOError, CacheSerializationError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 8192

FLAG_FIELDS = ("overlap", "too_fast", "spelling_error")
SEGMENT_FIELDS = ("id", "start", "end", "duration", "text", "translation", "flags")
GLOSSARY_FIELDS = ("id", "source", "target", "description", "context")

SegmentLike = Union[Segment, Mapping[str, Any]]
GlossaryLike = Union[GlossaryEntry, Mapping[str, Any]]


def digest_bytes(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Hash a binary stream without materializing it.

    Args:
        stream: Readable binary stream, consumed to EOF
        chunk_size: Read buffer size in bytes

    Returns:
        64-char lowercase hex SHA-256 digest

    Raises:
        CacheIOError: If the stream cannot be read to completion
    """
    sha256 = hashlib.sha256()
    try:
        while chunk := stream.read(chunk_size):
            sha256.update(chunk)
    except OSError as e:
        raise CacheIOError(f"Failed to read stream for hashing: {e}") from e
    return sha256.hexdigest()


def digest_file(file_path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Hash the content of a file on disk.

    Raises:
        CacheIOError: If the file is missing or unreadable
    """
    path = Path(file_path)
    try:
        with open(path, "rb") as f:
            digest = digest_bytes(f, chunk_size)
    except CacheIOError:
        raise
    except OSError as e:
        raise CacheIOError(f"Failed to open {path} for hashing: {e}") from e

    logger.debug(f"Hashed {path} -> {digest[:12]}")
    return digest


def _field_values(item: Any, fields: Sequence[str]) -> list:
    return [getattr(item, name) for name in fields]


def _encode_segment(segment: SegmentLike) -> list:
    # Models and mappings both pass through from_dict, so ``0`` and ``0.0``
    # encode alike and duration is always derived from the bounds.
    if not isinstance(segment, Mapping):
        segment = segment.to_dict()
    segment = Segment.from_dict(segment)
    values = _field_values(segment, SEGMENT_FIELDS)
    values[SEGMENT_FIELDS.index("flags")] = (
        _field_values(segment.flags, FLAG_FIELDS) if segment.flags is not None else None
    )
    return values


def _encode_glossary_entry(entry: GlossaryLike) -> list:
    if isinstance(entry, Mapping):
        entry = GlossaryEntry.from_dict(entry)
    return _field_values(entry, GLOSSARY_FIELDS)


def _canonical_json(value: Any) -> bytes:
    # Only lists and scalars reach this point, so no key ordering is involved.
    return json.dumps(
        value, ensure_ascii=False, separators=(",", ":"), allow_nan=False
    ).encode("utf-8")


def _length_prefixed(parts: Iterable[bytes]) -> Iterable[bytes]:
    for part in parts:
        yield len(part).to_bytes(8, "big")
        yield part


def digest_request(
    segments: Sequence[SegmentLike],
    glossary_entries: Sequence[GlossaryLike],
    target_language: str,
    style_prompt: str,
) -> str:
    """Derive the translation cache key for a request.

    Changing any segment field, any glossary field, the target language or
    the style prompt yields a different digest.

    Raises:
        CacheSerializationError: If an argument cannot be encoded
    """
    try:
        parts = [
            _canonical_json([_encode_segment(segment) for segment in segments]),
            _canonical_json([_encode_glossary_entry(entry) for entry in glossary_entries]),
            _canonical_json(str(target_language)),
            _canonical_json(str(style_prompt)),
        ]
    except (TypeError, ValueError, AttributeError, KeyError) as e:
        raise CacheSerializationError(f"Failed to encode translation request: {e}") from e

    sha256 = hashlib.sha256()
    for chunk in _length_prefixed(parts):
        sha256.update(chunk)
    return sha256.hexdigest()
