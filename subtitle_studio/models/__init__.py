"""Data models for subtitle projects and cached results."""
from .project import Project, ProjectFile, ProjectType
from .subtitles import (
    GlossaryEntry,
    Segment,
    SegmentFlags,
    TranslationResult,
    segments_from_response,
    translations_from_response,
)

__all__ = [
    "GlossaryEntry",
    "Project",
    "ProjectFile",
    "ProjectType",
    "Segment",
    "SegmentFlags",
    "TranslationResult",
    "segments_from_response",
    "translations_from_response",
]
