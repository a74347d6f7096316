"""Knowledge graph space models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Governance(str, Enum):
    PERSONAL = "PERSONAL"
    PUBLIC = "PUBLIC"


class KnowledgeGraphSpace(BaseModel):
    """Space record, either fetched remotely or kept in the local registry."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "SgjATMbm41LX6naizMqBVd",
                "name": "research-notes",
                "description": "Personal research vault",
                "is_public": False,
                "created_at": "2025-01-10T09:00:00Z",
                "updated_at": "2025-01-15T14:30:00Z",
                "member_count": 1,
                "governance": "PERSONAL",
            }
        }
    )

    id: str
    name: str
    description: str = ""
    is_public: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    member_count: int = Field(1, ge=0)
    governance: Governance = Governance.PERSONAL


class SpaceStats(BaseModel):
    entity_count: int = Field(0, ge=0)
    relation_count: int = Field(0, ge=0)
    last_update: Optional[datetime] = None


__all__ = ["Governance", "KnowledgeGraphSpace", "SpaceStats"]
