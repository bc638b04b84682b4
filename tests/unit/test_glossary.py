"""Tests for glossary lookup and substitution."""
from subtitle_studio.models import GlossaryEntry
from subtitle_studio.services.glossary import (
    apply_glossary,
    build_index,
    contains_glossary_terms,
    find_translation,
)


class TestApplyGlossary:
    """Test term substitution in translated text."""

    def test_longest_term_first(self, glossary):
        """Test that a contained short term does not split a longer one."""
        assert apply_glossary("General Kenobi, hello.", glossary) == "Maître Kénobi, hello."

    def test_short_term_alone(self, glossary):
        assert apply_glossary("Kenobi waits.", glossary) == "Kénobi waits."

    def test_case_sensitive(self, glossary):
        """Test that only exact-case occurrences are replaced."""
        assert apply_glossary("kenobi", glossary) == "kenobi"

    def test_every_occurrence(self):
        entry = GlossaryEntry(id="g", source="cat", target="chat")

        assert apply_glossary("cat and cat", [entry]) == "chat and chat"

    def test_empty_glossary(self):
        assert apply_glossary("unchanged", []) == "unchanged"

    def test_empty_source_ignored(self):
        """Test that an entry without a source term is skipped."""
        entry = GlossaryEntry(id="g", source="", target="X")

        assert apply_glossary("text", [entry]) == "text"


class TestLookup:
    """Test glossary lookups."""

    def test_find_translation_ignores_case(self, glossary):
        assert find_translation(glossary, "kenobi").target == "Kénobi"

    def test_find_translation_missing(self, glossary):
        assert find_translation(glossary, "Skywalker") is None

    def test_build_index(self, glossary):
        index = build_index(glossary)

        assert set(index) == {"kenobi", "general kenobi"}
        assert index["general kenobi"].id == "g2"

    def test_contains_terms(self, glossary):
        assert contains_glossary_terms("Hello General Kenobi", glossary)
        assert not contains_glossary_terms("Hello there", glossary)
        assert not contains_glossary_terms("anything", [GlossaryEntry(id="g", source="", target="x")])
