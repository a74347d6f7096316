"""Tag index models."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field


class TagMetadata(BaseModel):
    """Vault-wide usage record for one tag."""

    name: str
    count: int = Field(0, ge=0, description="One increment per note carrying the tag")
    notes: List[str] = Field(default_factory=list, description="Note path per increment")
    color: str = ""
    description: str = ""


class RelatedTag(BaseModel):
    tag: str
    strength: float = Field(..., ge=0.0, le=1.0)


class TagPair(BaseModel):
    tag1: str
    tag2: str
    count: int = Field(..., ge=1)


class TagStatistics(BaseModel):
    """Aggregate usage figures over the whole vault."""

    total_tags: int = 0
    total_usage: int = 0
    average_tags_per_note: float = 0.0
    most_used_tag: str = ""
    least_used_tag: str = ""
    hierarchical_tags: int = 0


class TagUsagePoint(BaseModel):
    date: str = Field(..., description="ISO calendar date (YYYY-MM-DD)")
    count: int = Field(..., ge=0)


class TagMutationResult(BaseModel):
    """Outcome of a vault-wide rename or delete."""

    success: bool = True
    updated_files: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class TagExport(BaseModel):
    tags: List[TagMetadata]
    hierarchy: Dict[str, List[str]]
    exported_at: datetime
    total_tags: int
    total_usage: int


class TagRenameRequest(BaseModel):
    old_name: str = Field(..., min_length=1)
    new_name: str = Field(..., min_length=1)


__all__ = [
    "RelatedTag",
    "TagExport",
    "TagRenameRequest",
    "TagMetadata",
    "TagMutationResult",
    "TagPair",
    "TagStatistics",
    "TagUsagePoint",
]
