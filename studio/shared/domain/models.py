"""Pydantic models shared by the navigation, gallery and reaction layers."""

from __future__ import annotations

import time
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class GalleryView(str, Enum):
    """Views of the Home gallery."""

    ALL = "all"
    RECENT = "recent"
    FILES = "files"
    SHARED = "shared"
    TEMPLATES = "templates"

    @classmethod
    def parse(cls, value: Optional[str], default: Optional["GalleryView"] = None) -> "GalleryView":
        """Return the view named ``value``, or ``default`` (ALL) when unknown."""
        try:
            return cls(value)
        except ValueError:
            return default or cls.ALL


class DocumentRecord(BaseModel):
    """A document or folder as returned by the document lookup."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    parent_id: Optional[str] = None
    is_folder: bool = False
    is_template: bool = False
    is_shared: bool = False
    html: str = ""
    last_modified: Optional[datetime] = None
    created: Optional[datetime] = None


class FolderChainEntry(BaseModel):
    """One breadcrumb of the folder trail."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = "Folder"
    parent_id: Optional[str] = None

    @classmethod
    def from_record(cls, record: DocumentRecord) -> "FolderChainEntry":
        return cls(id=record.id, name=record.name or "Folder", parent_id=record.parent_id)


class Rect(BaseModel):
    """Bounding rectangle in viewport coordinates."""

    model_config = ConfigDict(frozen=True)

    left: float
    top: float
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def is_outside(self, viewport: "Rect") -> bool:
        """True when this rect does not overlap ``viewport`` at all."""
        return (
            self.right < viewport.left
            or self.left > viewport.right
            or self.bottom < viewport.top
            or self.top > viewport.bottom
        )

    def summary(self) -> Dict[str, int]:
        return {
            "x": round(self.left),
            "y": round(self.top),
            "w": round(self.width),
            "h": round(self.height),
        }


class ActionEntry(BaseModel):
    """A recorded editor action (user-originated or programmatic)."""

    model_config = ConfigDict(frozen=True)

    type: str
    at: float = Field(default_factory=lambda: time.time() * 1000)
    meta: Dict[str, Any] = Field(default_factory=dict)
    user: bool = False

    @property
    def prefix(self) -> str:
        return self.type.split(":", 1)[0] if ":" in self.type else "editor"
