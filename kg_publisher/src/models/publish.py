"""Publication request/response models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnchorPayload(BaseModel):
    """Transaction calldata returned for anchoring a content id in a space."""

    model_config = ConfigDict(frozen=True)

    to: str
    data: str


class PublishResult(BaseModel):
    """Outcome of one atomic publish."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "content_id": "ipfs://bafkreigd3...",
                "transaction_result": "0xabcdef",
                "entities_created": 4,
                "relations_created": 3,
                "timestamp": "2025-01-15T14:30:00Z",
            }
        }
    )

    content_id: str
    transaction_result: Any = None
    entities_created: int = Field(0, ge=0)
    relations_created: int = Field(0, ge=0)
    timestamp: datetime


class PublishFailure(BaseModel):
    path: str
    error: str


class BatchPublishResult(BaseModel):
    """Partial results of a sequential multi-note publish."""

    published: List[PublishResult] = Field(default_factory=list)
    published_paths: List[str] = Field(default_factory=list)
    errors: List[PublishFailure] = Field(default_factory=list)


class SyncStatus(BaseModel):
    last_sync_timestamp: Optional[datetime] = None
    total_notes: int = Field(0, ge=0)
    published_notes: int = Field(0, ge=0)
    pending_notes: int = Field(0, ge=0)
    errors: List[str] = Field(default_factory=list)


class PublishNoteRequest(BaseModel):
    """Body of a single-note publish or schedule request."""

    path: str = Field(..., min_length=1, description="Vault-relative note path")
    include_tags: Optional[bool] = None
    include_links: Optional[bool] = None


__all__ = [
    "AnchorPayload",
    "BatchPublishResult",
    "PublishFailure",
    "PublishNoteRequest",
    "PublishResult",
    "SyncStatus",
]
