"""Note-related Pydantic models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LinkKind(str, Enum):
    """Kinds of vault links carried on a note."""

    INTERNAL = "internal"
    EMBED = "embed"


class BlockKind(str, Enum):
    """Structural fragments lifted out of a note body."""

    CODE = "code"
    CALLOUT = "callout"
    TABLE = "table"


class Location(BaseModel):
    """A single point inside a note (zero-based line and column)."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    offset: int = Field(..., ge=0)


class Span(BaseModel):
    """Start/end locations of a link inside the raw note text."""

    model_config = ConfigDict(frozen=True)

    start: Location
    end: Location


class Heading(BaseModel):
    """Heading with its Markdown level."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(..., ge=1, le=6)
    text: str


class Link(BaseModel):
    """Wiki-link or wiki-embed found in a note."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "target": "Other Note",
                "display_text": "other",
                "kind": "internal",
                "position": {
                    "start": {"line": 3, "col": 0, "offset": 41},
                    "end": {"line": 3, "col": 23, "offset": 64},
                },
            }
        },
    )

    target: str
    display_text: str
    kind: LinkKind = LinkKind.INTERNAL
    position: Optional[Span] = Field(None, description="Copied from host metadata")


class Block(BaseModel):
    """Code, callout or table fragment."""

    model_config = ConfigDict(frozen=True)

    kind: BlockKind
    content: str


class LinkReference(BaseModel):
    """Link entry as reported by the host metadata parser."""

    model_config = ConfigDict(frozen=True)

    link: str
    display_text: Optional[str] = None
    position: Optional[Span] = None


class StructuralMetadata(BaseModel):
    """Host-provided parse of a note's frontmatter, tags, links and headings."""

    model_config = ConfigDict(frozen=True)

    frontmatter: Optional[Dict[str, Any]] = None
    tags: List[str] = Field(default_factory=list)
    links: List[LinkReference] = Field(default_factory=list)
    embeds: List[LinkReference] = Field(default_factory=list)
    headings: List[Heading] = Field(default_factory=list)


class NoteStat(BaseModel):
    """Filesystem timestamps for a note."""

    model_config = ConfigDict(frozen=True)

    created_at: datetime
    modified_at: datetime


class Note(BaseModel):
    """Canonical extracted note consumed by the tag index and graph compiler."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "title": "Demo",
                "content": "Demo\nSome bold text. \nOther",
                "path": "notes/demo.md",
                "created_date": "2025-01-10T09:00:00Z",
                "modified_date": "2025-01-15T14:30:00Z",
                "tags": ["x", "y"],
                "links": [{"target": "Other", "display_text": "Other", "kind": "internal"}],
                "frontmatter": {"title": "Demo", "tags": ["x"]},
                "headings": [{"level": 1, "text": "Demo"}],
                "blocks": [],
            }
        },
    )

    title: str
    content: str
    path: str = Field(..., min_length=1, description="Vault-relative path, unique per note")
    created_date: datetime
    modified_date: datetime
    tags: List[str] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)
    frontmatter: Dict[str, Any] = Field(default_factory=dict)
    headings: List[Heading] = Field(default_factory=list)
    blocks: List[Block] = Field(default_factory=list)


__all__ = [
    "Block",
    "BlockKind",
    "Heading",
    "Link",
    "LinkKind",
    "LinkReference",
    "Location",
    "Note",
    "NoteStat",
    "Span",
    "StructuralMetadata",
]
