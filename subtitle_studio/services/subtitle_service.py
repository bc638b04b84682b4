"""Cache-through orchestration for transcription and translation requests.

The service owns no transport code: the remote speech-to-text and translation
clients are injected as upstream objects. Its job is the request flow:

    digest input -> cache lookup -> (miss) upstream call -> cache store

The upstream call always happens outside any cache lock. If persisting a
fresh result fails, the failure is logged and the result is still returned,
since the computation itself succeeded.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Union, runtime_checkable

from ..cache.errors import CacheError
from ..cache.hashing import DEFAULT_CHUNK_SIZE, digest_file, digest_request
from ..cache.subtitle_cache import SubtitleCache
from ..models.subtitles import GlossaryEntry, Segment, TranslationResult
from .glossary import apply_glossary

logger = logging.getLogger(__name__)


@runtime_checkable
class TranscriptionUpstream(Protocol):
    """Remote speech-to-text provider."""

    def transcribe(self, file_path: Path, language: str) -> List[Segment]:
        """Return segments with 1-based ids in temporal order."""
        ...


@runtime_checkable
class TranslationUpstream(Protocol):
    """Remote translation provider.

    May return results for only some of the requested segment ids.
    """

    def translate(
        self,
        segments: Sequence[Segment],
        target_language: str,
        glossary: Sequence[GlossaryEntry],
        style_prompt: str,
    ) -> List[TranslationResult]:
        ...


class SubtitleService:
    """Transcribe and translate through the result cache."""

    def __init__(
        self,
        cache: SubtitleCache,
        transcriber: Optional[TranscriptionUpstream] = None,
        translator: Optional[TranslationUpstream] = None,
        hash_chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """Initialize the service.

        Args:
            cache: Shared cache facade
            transcriber: Speech-to-text upstream
            translator: Translation upstream
            hash_chunk_size: Read buffer size used when hashing media files
        """
        self.cache = cache
        self.transcriber = transcriber
        self.translator = translator
        self.hash_chunk_size = hash_chunk_size

    def transcribe(self, file_path: Union[str, Path], language: str = "en") -> List[Segment]:
        """Return segments for a media file, calling upstream only on a cache miss.

        Raises:
            CacheIOError: If the media file cannot be hashed or a cache entry
                cannot be read
            RuntimeError: If a miss occurs and no transcriber is configured
        """
        path = Path(file_path)
        digest = digest_file(path, self.hash_chunk_size)

        cached = self.cache.get_transcription(digest)
        if cached is not None:
            logger.info(f"Found {path.name} in cache ({len(cached)} segments)")
            return cached

        if self.transcriber is None:
            raise RuntimeError("No transcription upstream configured")

        logger.info(f"Transcribing {path.name} ({language})")
        segments = self.transcriber.transcribe(path, language)

        try:
            self.cache.set_transcription(digest, segments)
        except CacheError as e:
            logger.error(f"Failed to cache transcription for {path.name}: {e}")

        logger.info(f"Transcription completed: {len(segments)} segments")
        return segments

    def translate(
        self,
        segments: Sequence[Segment],
        target_language: str,
        glossary: Sequence[GlossaryEntry] = (),
        style_prompt: str = "",
    ) -> List[TranslationResult]:
        """Translate segments, calling upstream only on a cache miss.

        Glossary targets are enforced on upstream output before it is cached,
        for results whose id matches a requested segment.

        Raises:
            CacheSerializationError: If the request cannot be digested
            CacheIOError: If a cache entry cannot be read
            RuntimeError: If a miss occurs and no translator is configured
        """
        digest = digest_request(segments, glossary, target_language, style_prompt)

        cached = self.cache.get_translation(digest)
        if cached is not None:
            logger.info(f"Found translation in cache ({len(cached)} results)")
            return cached

        if self.translator is None:
            raise RuntimeError("No translation upstream configured")

        logger.info(f"Translating {len(segments)} segments to {target_language}")
        results = self.translator.translate(segments, target_language, glossary, style_prompt)

        if glossary:
            requested_ids = {segment.id for segment in segments}
            for result in results:
                if result.id in requested_ids:
                    result.translated_text = apply_glossary(result.translated_text, glossary)

        missing = len(segments) - len(results)
        if missing > 0:
            logger.warning(f"Upstream returned {len(results)} of {len(segments)} translations")

        try:
            self.cache.set_translation(digest, results)
        except CacheError as e:
            logger.error(f"Failed to cache translation {digest[:12]}: {e}")

        logger.info(f"Translation completed: {len(results)} results")
        return results
