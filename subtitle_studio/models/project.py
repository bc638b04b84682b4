"""Project document models.

The cache only keeps a denormalized snapshot of these documents; the project
file on disk stays the source of truth.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .subtitles import GlossaryEntry, Segment


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class ProjectType(Enum):
    """Kind of file attached to a project."""

    VIDEO = "Video"
    SUBTITLE = "Subtitle"
    CONFIG = "Config"


@dataclass
class ProjectFile:
    """A media, subtitle or config file that belongs to a project."""

    id: str
    name: str
    file_type: ProjectType
    path: str
    duration: Optional[float] = None
    subtitle_segments: Optional[List[Segment]] = None
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "file_type": self.file_type.value,
            "path": self.path,
            "duration": self.duration,
            "subtitle_segments": (
                [segment.to_dict() for segment in self.subtitle_segments]
                if self.subtitle_segments is not None
                else None
            ),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectFile":
        """Create from dictionary."""
        segments = data.get("subtitle_segments")
        return cls(
            id=data["id"],
            name=data["name"],
            file_type=ProjectType(data["file_type"]),
            path=data["path"],
            duration=data.get("duration"),
            subtitle_segments=(
                [Segment.from_dict(item) for item in segments] if segments is not None else None
            ),
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )


@dataclass
class Project:
    """A subtitle project: its files, glossary and target language."""

    id: str
    name: str
    path: str
    target_language: str
    files: List[ProjectFile] = field(default_factory=list)
    glossary: List[GlossaryEntry] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def touch(self) -> None:
        """Mark the project as modified now."""
        self.updated_at = utc_now_iso()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "target_language": self.target_language,
            "files": [project_file.to_dict() for project_file in self.files],
            "glossary": [entry.to_dict() for entry in self.glossary],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            path=data["path"],
            target_language=data["target_language"],
            files=[ProjectFile.from_dict(item) for item in data.get("files", [])],
            glossary=[GlossaryEntry.from_dict(item) for item in data.get("glossary", [])],
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )
