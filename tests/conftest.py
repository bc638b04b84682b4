"""Global pytest fixtures and configuration.

This module provides shared fixtures for all tests including:
- A controllable UTC clock for expiry tests
- Durable store, memory index and cache facade wired to a temp directory
- Sample segments, translations, glossary entries and projects
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List

import pytest

from subtitle_studio.cache import DurableStore, MemoryIndex, SubtitleCache
from subtitle_studio.models import (
    GlossaryEntry,
    Project,
    Segment,
    SegmentFlags,
    TranslationResult,
)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at a fixed UTC instant."""
    return FrozenClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Empty cache root directory."""
    return tmp_path / "cache"


@pytest.fixture
def store(cache_dir: Path, clock: FrozenClock) -> DurableStore:
    """Durable store driven by the frozen clock."""
    return DurableStore(cache_dir, clock=clock)


@pytest.fixture
def memory() -> MemoryIndex:
    """Fresh memory index."""
    return MemoryIndex(lock_timeout=1.0)


@pytest.fixture
def cache(store: DurableStore, memory: MemoryIndex) -> SubtitleCache:
    """Cache facade over the temp store with default expiry windows."""
    return SubtitleCache(store, memory)


@pytest.fixture
def segments() -> List[Segment]:
    """Three consecutive subtitle segments."""
    return [
        Segment(id=1, start=0.0, end=1.5, text="Hello there."),
        Segment(id=2, start=1.5, end=3.25, text="General Kenobi!", translation="Генерал Кеноби!"),
        Segment(
            id=3,
            start=3.25,
            end=4.0,
            text="You are a bold one.",
            flags=SegmentFlags(overlap=False, too_fast=True, spelling_error=False),
        ),
    ]


@pytest.fixture
def translations() -> List[TranslationResult]:
    """Translations for the first two sample segments only."""
    return [
        TranslationResult(id=1, translated_text="Bonjour."),
        TranslationResult(id=2, translated_text="Général Kenobi !"),
    ]


@pytest.fixture
def glossary() -> List[GlossaryEntry]:
    """Two glossary entries, one containing the other."""
    return [
        GlossaryEntry(id="g1", source="Kenobi", target="Kénobi"),
        GlossaryEntry(id="g2", source="General Kenobi", target="Maître Kénobi", description="title"),
    ]


@pytest.fixture
def project(segments: List[Segment], glossary: List[GlossaryEntry]) -> Project:
    """Project with no files, updated at the frozen clock instant."""
    return Project(
        id="3f2c7d1e-9a4b-4c1d-8e2f-0a1b2c3d4e5f",
        name="Episode 1",
        path="/projects/episode-1",
        target_language="French",
        glossary=glossary,
        created_at="2024-05-01T11:00:00+00:00",
        updated_at="2024-05-01T12:00:00+00:00",
    )
