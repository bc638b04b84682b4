"""Tests for media and translation request digests."""
import hashlib
import io
from dataclasses import replace

import pytest

from subtitle_studio.cache.errors import CacheIOError, CacheSerializationError
from subtitle_studio.cache.hashing import (
    GLOSSARY_FIELDS,
    SEGMENT_FIELDS,
    digest_bytes,
    digest_file,
    digest_request,
)
from subtitle_studio.models import GlossaryEntry, Segment, SegmentFlags


class FailingStream:
    """Binary stream that breaks after the first chunk."""

    def __init__(self):
        self.calls = 0

    def read(self, size):
        self.calls += 1
        if self.calls == 1:
            return b"x" * size
        raise OSError("device unplugged")


class TestDigestFile:
    """Test content hashing of media files."""

    def test_matches_sha256_of_content(self, tmp_path):
        """Test that the digest is the plain SHA-256 of the file bytes."""
        media = tmp_path / "clip.mp4"
        content = b"\x00\x01fake video payload" * 1000
        media.write_bytes(content)

        digest = digest_file(media)

        assert digest == hashlib.sha256(content).hexdigest()
        assert len(digest) == 64
        assert digest == digest.lower()

    def test_independent_of_chunk_size(self, tmp_path):
        """Test that the read buffer size does not affect the digest."""
        media = tmp_path / "clip.mp4"
        media.write_bytes(bytes(range(256)) * 97)

        assert digest_file(media, chunk_size=1) == digest_file(media, chunk_size=8192)
        assert digest_file(media, chunk_size=7) == digest_file(media, chunk_size=1 << 20)

    def test_same_content_different_names(self, tmp_path):
        """Test that identical content hashes the same regardless of path."""
        first = tmp_path / "a.wav"
        second = tmp_path / "nested" / "b.wav"
        second.parent.mkdir()
        first.write_bytes(b"same bytes")
        second.write_bytes(b"same bytes")

        assert digest_file(first) == digest_file(second)

    def test_empty_file(self, tmp_path):
        """Test hashing an empty file."""
        empty = tmp_path / "empty.mp3"
        empty.write_bytes(b"")

        assert digest_file(empty) == hashlib.sha256(b"").hexdigest()

    def test_missing_file_raises_io_error(self, tmp_path):
        """Test that a missing file surfaces as CacheIOError."""
        with pytest.raises(CacheIOError):
            digest_file(tmp_path / "missing.mp4")

    def test_io_error_is_also_os_error(self, tmp_path):
        """Test that callers catching OSError still see hashing failures."""
        with pytest.raises(OSError):
            digest_file(tmp_path / "missing.mp4")


class TestDigestBytes:
    """Test stream hashing."""

    def test_stream_is_consumed(self):
        """Test hashing an in-memory stream."""
        stream = io.BytesIO(b"hello world")

        assert digest_bytes(stream, chunk_size=3) == hashlib.sha256(b"hello world").hexdigest()
        assert stream.read() == b""

    def test_read_failure_raises_io_error(self):
        """Test that a failing read is wrapped, not swallowed."""
        with pytest.raises(CacheIOError, match="device unplugged"):
            digest_bytes(FailingStream(), chunk_size=4)


class TestDigestRequest:
    """Test translation request digests."""

    def test_deterministic(self, segments, glossary):
        """Test that the same request always produces the same digest."""
        first = digest_request(segments, glossary, "French", "formal")
        second = digest_request(segments, glossary, "French", "formal")

        assert first == second
        assert len(first) == 64

    def test_style_prompt_changes_digest(self, segments):
        """Test that only the style prompt differing yields different digests."""
        formal = digest_request(segments, [], "French", "formal")
        casual = digest_request(segments, [], "French", "casual")

        assert formal != casual

    def test_target_language_changes_digest(self, segments, glossary):
        """Test that the target language is part of the key."""
        assert digest_request(segments, glossary, "French", "") != digest_request(
            segments, glossary, "German", ""
        )

    @pytest.mark.parametrize(
        "changes",
        [
            {"id": 99},
            {"start": 0.01},
            {"end": 1.51},
            {"text": "Hello there"},
            {"translation": "Salut."},
            {"flags": SegmentFlags(overlap=True)},
        ],
    )
    def test_every_segment_field_changes_digest(self, segments, changes):
        """Test that a change in any single segment field changes the digest."""
        baseline = digest_request(segments, [], "French", "")
        modified = [replace(segments[0], **changes)] + segments[1:]

        assert digest_request(modified, [], "French", "") != baseline

    @pytest.mark.parametrize("field_name", ["overlap", "too_fast", "spelling_error"])
    def test_every_flag_changes_digest(self, segments, field_name):
        """Test that each quality flag participates in the key."""
        flipped = not getattr(segments[2].flags, field_name)
        flagged = replace(segments[2], flags=replace(segments[2].flags, **{field_name: flipped}))

        assert digest_request(segments[:2] + [flagged], [], "French", "") != digest_request(
            segments, [], "French", ""
        )

    @pytest.mark.parametrize(
        "changes",
        [
            {"id": "g9"},
            {"source": "kenobi"},
            {"target": "Kenobi"},
            {"description": "jedi"},
            {"context": "star wars"},
        ],
    )
    def test_every_glossary_field_changes_digest(self, segments, glossary, changes):
        """Test that a change in any single glossary field changes the digest."""
        baseline = digest_request(segments, glossary, "French", "")
        modified = [replace(glossary[0], **changes)] + glossary[1:]

        assert digest_request(segments, modified, "French", "") != baseline

    def test_segment_order_matters(self, segments):
        """Test that reordering segments yields a different request."""
        assert digest_request(list(reversed(segments)), [], "French", "") != digest_request(
            segments, [], "French", ""
        )

    def test_parts_cannot_bleed_into_each_other(self, segments):
        """Test that moving text between language and prompt changes the digest."""
        assert digest_request(segments, [], "French", "formal") != digest_request(
            segments, [], "Frenchformal", ""
        )
        assert digest_request(segments, [], "Fr", "ench") != digest_request(
            segments, [], "Fren", "ch"
        )

    def test_mappings_hash_like_models(self, segments, glossary):
        """Test that dict input is keyed the same as model input."""
        as_dicts = [segment.to_dict() for segment in segments]
        glossary_dicts = [entry.to_dict() for entry in glossary]

        assert digest_request(as_dicts, glossary_dicts, "French", "x") == digest_request(
            segments, glossary, "French", "x"
        )

    def test_mapping_key_order_is_irrelevant(self, segments):
        """Test that dict key insertion order does not affect the digest."""
        forward = [segment.to_dict() for segment in segments]
        backward = [dict(reversed(list(item.items()))) for item in forward]

        assert digest_request(forward, [], "French", "") == digest_request(backward, [], "French", "")

    def test_int_and_float_bounds_hash_alike(self):
        """Test that integral timings do not change the key."""
        as_int = Segment(id=1, start=0, end=2, text="hi")
        as_float = Segment(id=1, start=0.0, end=2.0, text="hi")

        assert digest_request([as_int], [], "French", "formal") == digest_request(
            [as_float], [], "French", "formal"
        )

    def test_int_model_matches_float_mapping(self):
        """Test that a model and a mapping with differently typed numbers agree."""
        model = Segment(id=1, start=0, end=2, text="hi")
        mapping = {"id": 1.0, "start": 0.0, "end": 2.0, "text": "hi"}

        assert digest_request([model], [], "French", "") == digest_request([mapping], [], "French", "")

    def test_cached_copy_hashes_like_original(self, cache):
        """Test that segments read back from the cache keep their translation key."""
        original = [Segment(id=1, start=0, end=2, text="hi"), Segment(id=2, start=2, end=5, text="there")]
        cache.set_transcription("media", original)
        cache.memory.clear()

        reloaded = cache.get_transcription("media")

        assert digest_request(reloaded, [], "French", "") == digest_request(original, [], "French", "")

    def test_stored_duration_is_ignored_for_mappings(self, segments):
        """Test that a stale duration in a dict does not change the key."""
        stale = [segment.to_dict() for segment in segments]
        stale[0]["duration"] = 123.0

        assert digest_request(stale, [], "French", "") == digest_request(segments, [], "French", "")

    def test_retimed_segment_changes_digest(self, segments):
        """Test that moving a bound changes the key through start and duration."""
        baseline = digest_request(segments, [], "French", "")
        segments[0].retime(end=2.0)

        assert digest_request(segments, [], "French", "") != baseline

    def test_unicode_text(self):
        """Test that non-ASCII text is hashed without error."""
        segment = Segment(id=1, start=0.0, end=1.0, text="Привет, 世界 ✓")

        assert len(digest_request([segment], [], "日本語", "丁寧に")) == 64

    def test_empty_request(self):
        """Test that an empty request still has a stable key."""
        assert digest_request([], [], "", "") == digest_request([], [], "", "")

    def test_nan_timing_raises_serialization_error(self):
        """Test that non-finite numbers cannot produce a key."""
        segment = Segment(id=1, start=float("nan"), end=1.0, text="bad")

        with pytest.raises(CacheSerializationError):
            digest_request([segment], [], "French", "")

    def test_missing_mapping_field_raises_serialization_error(self):
        """Test that incomplete dict input is rejected."""
        with pytest.raises(CacheSerializationError):
            digest_request([{"id": 1, "start": 0.0}], [], "French", "")

    def test_unsupported_object_raises_serialization_error(self):
        """Test that arbitrary objects are rejected."""
        with pytest.raises(CacheSerializationError):
            digest_request([object()], [], "French", "")

    def test_bad_flags_raise_serialization_error(self):
        """Test that flags of the wrong type are rejected."""
        segment = Segment(id=1, start=0.0, end=1.0, text="x", flags={"overlap": True})

        with pytest.raises(CacheSerializationError):
            digest_request([segment], [], "French", "")

    def test_serialization_error_is_value_error(self):
        """Test that CacheSerializationError can be caught as ValueError."""
        with pytest.raises(ValueError):
            digest_request([object()], [], "French", "")

    def test_field_order_is_fixed(self):
        """Test that the encoded field order stays stable."""
        assert SEGMENT_FIELDS == ("id", "start", "end", "duration", "text", "translation", "flags")
        assert GLOSSARY_FIELDS == ("id", "source", "target", "description", "context")


class TestGlossaryEntryDefaults:
    """Test optional glossary fields in request keys."""

    def test_none_and_empty_description_differ(self, segments):
        """Test that a missing description is not the same as an empty one."""
        without = [GlossaryEntry(id="g1", source="a", target="b")]
        empty = [GlossaryEntry(id="g1", source="a", target="b", description="")]

        assert digest_request(segments, without, "French", "") != digest_request(
            segments, empty, "French", ""
        )
