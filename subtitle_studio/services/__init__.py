"""Services that route upstream transcription and translation through the cache."""
from .glossary import apply_glossary, build_index, contains_glossary_terms, find_translation
from .subtitle_service import SubtitleService, TranscriptionUpstream, TranslationUpstream

__all__ = [
    "SubtitleService",
    "TranscriptionUpstream",
    "TranslationUpstream",
    "apply_glossary",
    "build_index",
    "contains_glossary_terms",
    "find_translation",
]
