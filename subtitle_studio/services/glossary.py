"""Glossary lookups and substitution for translated subtitle text."""
from __future__ import annotations

from typing import Dict, Optional, Sequence

from ..models.subtitles import GlossaryEntry


def find_translation(glossary: Sequence[GlossaryEntry], term: str) -> Optional[GlossaryEntry]:
    """Find the glossary entry for ``term``, ignoring case."""
    needle = term.casefold()
    for entry in glossary:
        if entry.source.casefold() == needle:
            return entry
    return None


def apply_glossary(text: str, glossary: Sequence[GlossaryEntry]) -> str:
    """Replace every glossary source term in ``text`` with its target.

    Longer terms are replaced first so a short term never splits a longer
    one that contains it. Matching is case-sensitive.
    """
    if not glossary:
        return text

    result = text
    for entry in sorted(glossary, key=lambda e: len(e.source), reverse=True):
        if entry.source:
            result = result.replace(entry.source, entry.target)
    return result


def build_index(glossary: Sequence[GlossaryEntry]) -> Dict[str, GlossaryEntry]:
    """Map lowercased source terms to their entries."""
    return {entry.source.lower(): entry for entry in glossary}


def contains_glossary_terms(text: str, glossary: Sequence[GlossaryEntry]) -> bool:
    """Check whether any source term occurs in ``text``."""
    return any(entry.source and entry.source in text for entry in glossary)

