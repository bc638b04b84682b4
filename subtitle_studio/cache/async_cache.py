"""Asyncio front-end for the subtitle cache.

Cache calls block on file I/O, so each one is dispatched to a worker thread
with ``asyncio.to_thread``. A slow disk then delays only the awaiting task,
never the event loop or unrelated lookups.
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

from ..models.project import Project
from ..models.subtitles import Segment, TranslationResult
from .subtitle_cache import SubtitleCache


class AsyncSubtitleCache:
    """Coroutine wrappers around a shared :class:`SubtitleCache`."""

    def __init__(self, cache: SubtitleCache):
        self.cache = cache

    async def get_transcription(self, digest: str) -> Optional[List[Segment]]:
        return await asyncio.to_thread(self.cache.get_transcription, digest)

    async def set_transcription(self, digest: str, segments: List[Segment]) -> None:
        await asyncio.to_thread(self.cache.set_transcription, digest, segments)

    async def get_translation(self, digest: str) -> Optional[List[TranslationResult]]:
        return await asyncio.to_thread(self.cache.get_translation, digest)

    async def set_translation(self, digest: str, results: List[TranslationResult]) -> None:
        await asyncio.to_thread(self.cache.set_translation, digest, results)

    async def get_project_snapshot(self, project_id: str) -> Optional[Project]:
        return await asyncio.to_thread(self.cache.get_project_snapshot, project_id)

    async def set_project_snapshot(self, project: Project) -> None:
        await asyncio.to_thread(self.cache.set_project_snapshot, project)

    async def purge_expired(self) -> Dict[str, int]:
        return await asyncio.to_thread(self.cache.purge_expired)
