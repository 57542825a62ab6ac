"""Data models for the WebForge editor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_STATUS = "draft"

_LANGUAGES = {
    ".html": "html",
    ".css": "css",
    ".js": "javascript",
    ".json": "json",
}


def language_for_path(path: str) -> str:
    """Return the editor language tag inferred from a file path."""

    lowered = path.lower()
    for suffix, language in _LANGUAGES.items():
        if lowered.endswith(suffix):
            return language
    return "plaintext"


@dataclass
class VirtualFile:
    id: str
    project_id: str
    path: str
    content: str = ""

    @property
    def language(self) -> str:
        return language_for_path(self.path)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "path": self.path,
            "content": self.content,
            "language": self.language,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VirtualFile":
        # The stored language column is ignored; it is always derived from the path.
        return cls(
            id=str(data.get("id", "")),
            project_id=str(data.get("project_id", "")),
            path=data.get("path", ""),
            content=data.get("content") or "",
        )


@dataclass
class Project:
    id: str
    name: str
    status: str = DEFAULT_STATUS
    description: str = ""
    settings: Dict[str, Any] = field(default_factory=dict)
    user_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "status": self.status,
            "description": self.description,
            "settings": dict(self.settings),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        settings = data.get("settings")
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "Untitled",
            status=data.get("status") or DEFAULT_STATUS,
            description=data.get("description") or "",
            settings=settings if isinstance(settings, dict) else {},
            user_id=data.get("user_id"),
        )
