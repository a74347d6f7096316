"""Graph compilation models."""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

Op = Dict[str, Any]


class EntityKind(str, Enum):
    NOTE = "note"
    TAG = "tag"
    LINK = "link"


class RelationKind(str, Enum):
    HAS_TAG = "has-tag"
    LINKS_TO = "links-to"


class DataType(str, Enum):
    TEXT = "TEXT"
    TIME = "TIME"


class GraphEntity(BaseModel):
    """Entity plus the ops needed to materialize it remotely."""
    id: str = Field(..., description="Entity identifier")
    kind: EntityKind
    name: str
    ops: List[Op] = Field(default_factory=list)


class GraphRelation(BaseModel):
    """Relation instance connecting two compiled entities."""
    id: str
    kind: RelationKind
    from_entity: str
    to_entity: str
    ops: List[Op] = Field(default_factory=list)


class CompileOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    include_tags: bool = True
    include_links: bool = True
    stable_ids: bool = Field(
        default=False,
        description="Derive entity ids from note path / tag / link target instead of fresh ids",
    )


class CompiledGraph(BaseModel):
    """Entities and relations produced for one note."""
    entities: List[GraphEntity] = Field(default_factory=list)
    relations: List[GraphRelation] = Field(default_factory=list)

    @property
    def ops(self) -> List[Op]:
        flattened: List[Op] = []
        for entity in self.entities:
            flattened.extend(entity.ops)
        for relation in self.relations:
            flattened.extend(relation.ops)
        return flattened
