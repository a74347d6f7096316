"""Relationship edge models (analytics only, never published)."""

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class RelationshipKind(str, Enum):
    DIRECT_LINK = "direct-link"
    SHARED_TAGS = "shared-tags"
    CONTENT_SIMILARITY = "content-similarity"


class RelationshipEdge(BaseModel):
    """Undirected edge between two notes, reported source-first in input order."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(..., description="Path of the earlier note in the input")
    target: str = Field(..., description="Path of the later note in the input")
    kind: RelationshipKind
    strength: float = Field(..., ge=0.0, le=1.0)


class NoteFailure(BaseModel):
    path: str
    error: str


class RelationshipReport(BaseModel):
    """Edges inferred from the notes that extracted, plus the notes that did not."""

    relationships: List[RelationshipEdge] = Field(default_factory=list)
    errors: List[NoteFailure] = Field(default_factory=list)
