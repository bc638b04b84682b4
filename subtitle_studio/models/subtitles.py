"""Data models for subtitle segments, translations and glossary terms."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class SegmentFlags:
    """Quality flags raised by subtitle checks."""

    overlap: bool = False
    too_fast: bool = False
    spelling_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "overlap": self.overlap,
            "too_fast": self.too_fast,
            "spelling_error": self.spelling_error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SegmentFlags":
        """Create from dictionary."""
        return cls(
            overlap=bool(data.get("overlap", False)),
            too_fast=bool(data.get("too_fast", False)),
            spelling_error=bool(data.get("spelling_error", False)),
        )


@dataclass
class Segment:
    """A timed subtitle line.

    ``id`` is 1-based and unique within one transcription; id order is
    temporal order. ``duration`` is derived from the bounds on every access,
    so retiming a segment can never leave a stale duration behind.
    """

    id: int
    start: float
    end: float
    text: str
    translation: Optional[str] = None
    flags: Optional[SegmentFlags] = None

    @property
    def duration(self) -> float:
        return self.end - self.start

    def retime(self, start: Optional[float] = None, end: Optional[float] = None) -> None:
        """Move either bound of the segment."""
        if start is not None:
            self.start = start
        if end is not None:
            self.end = end

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "start": self.start,
            "end": self.end,
            "duration": self.duration,
            "text": self.text,
            "translation": self.translation,
            "flags": self.flags.to_dict() if self.flags else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Segment":
        """Create from dictionary.

        A stored ``duration`` is ignored; it is recomputed from the bounds.
        """
        flags = data.get("flags")
        return cls(
            id=int(data["id"]),
            start=float(data["start"]),
            end=float(data["end"]),
            text=data["text"],
            translation=data.get("translation"),
            flags=SegmentFlags.from_dict(flags) if flags else None,
        )


@dataclass
class TranslationResult:
    """Translated text for one segment id.

    Upstream may return fewer results than segments requested, so consumers
    must not assume every segment id is covered.
    """

    id: int
    translated_text: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"id": self.id, "translated_text": self.translated_text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranslationResult":
        """Create from dictionary."""
        return cls(id=int(data["id"]), translated_text=data["translated_text"])


@dataclass
class GlossaryEntry:
    """A source term and the translation it must always receive."""

    id: str
    source: str
    target: str
    description: Optional[str] = None
    context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "description": self.description,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GlossaryEntry":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            description=data.get("description"),
            context=data.get("context"),
        )


def segments_from_response(payload: Dict[str, Any]) -> List[Segment]:
    """Build segments from an upstream verbose-JSON transcription payload.

    Ids are assigned 1-based in payload order. Missing timings default to 0.0
    and text is stripped.

    Raises:
        ValueError: If the payload carries no ``segments`` list or a segment
            is not an object
    """
    raw_segments = payload.get("segments") if isinstance(payload, dict) else None
    if not isinstance(raw_segments, list):
        raise ValueError("Transcription response contains no segments")

    segments = []
    for index, raw in enumerate(raw_segments, start=1):
        if not isinstance(raw, dict):
            raise ValueError(f"Transcription segment {index} is not an object")
        segments.append(
            Segment(
                id=index,
                start=float(raw.get("start") or 0.0),
                end=float(raw.get("end") or 0.0),
                text=str(raw.get("text") or "").strip(),
            )
        )
    return segments


def translations_from_response(payload: Dict[str, Any]) -> List[TranslationResult]:
    """Build translation results from an upstream chat-completion payload.

    The first choice's message content must be a JSON array of
    ``{"id": ..., "translated_text": ...}`` objects. A missing or
    non-integer id becomes 0 and text is stripped.

    Raises:
        ValueError: If the content is missing, not JSON, or not an array of objects
    """
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ValueError("Translation response contains no message content") from e
    if not isinstance(content, str):
        raise ValueError("Translation response contains no message content")

    try:
        items = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Translation content is not valid JSON: {e}") from e
    if not isinstance(items, list):
        raise ValueError("Translation content must be a JSON array")

    results = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"Translation item {index} is not an object")
        raw_id = item.get("id")
        text = item.get("translated_text")
        results.append(
            TranslationResult(
                id=raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) and raw_id >= 0 else 0,
                translated_text=text.strip() if isinstance(text, str) else "",
            )
        )
    return results
