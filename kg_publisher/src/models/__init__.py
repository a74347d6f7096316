"""Pydantic models for data validation and serialization."""

from .graph import CompiledGraph, CompileOptions, EntityKind, GraphEntity, GraphRelation, RelationKind
from .note import Block, BlockKind, Heading, Link, LinkKind, LinkReference, Note, NoteStat, StructuralMetadata
from .publish import AnchorPayload, BatchPublishResult, PublishResult, SyncStatus
from .relationship import NoteFailure, RelationshipEdge, RelationshipKind, RelationshipReport
from .settings import Network, NetworkConfig
from .space import KnowledgeGraphSpace, SpaceStats
from .tag import RelatedTag, TagMetadata, TagMutationResult, TagPair, TagStatistics

__all__ = [
    "Note",
    "NoteStat",
    "Link",
    "LinkKind",
    "LinkReference",
    "Block",
    "BlockKind",
    "Heading",
    "StructuralMetadata",
    "TagMetadata",
    "TagMutationResult",
    "TagPair",
    "TagStatistics",
    "RelatedTag",
    "RelationshipEdge",
    "RelationshipKind",
    "RelationshipReport",
    "NoteFailure",
    "GraphEntity",
    "GraphRelation",
    "EntityKind",
    "RelationKind",
    "CompileOptions",
    "CompiledGraph",
    "PublishResult",
    "BatchPublishResult",
    "AnchorPayload",
    "SyncStatus",
    "Network",
    "NetworkConfig",
    "KnowledgeGraphSpace",
    "SpaceStats",
]
