"""Service layer for extraction, tag analytics and knowledge graph publishing."""

from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database
from .errors import (
    ExtractionFailure,
    NetworkFailure,
    PublisherError,
    StorageUnavailable,
    TransactionFailure,
    ValidationFailure,
)
from .graph_compiler import GraphCompiler
from .graph_ops import GraphOpsBuilder
from .hypergraph_client import HypergraphClient
from .note_processor import NoteProcessor, clean_content, extract_tags_from_metadata
from .publication import PublicationCoordinator
from .publish_service import PublishDebouncer, PublishService
from .relationships import infer_relationships
from .space_manager import SpaceManager, sanitize_space_name
from .tag_manager import TagManager, extract_tags_from_content, generate_tag_color
from .vault import FileSystemVault, parse_structural_metadata, sanitize_path, validate_note_path

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "PublisherError",
    "ExtractionFailure",
    "ValidationFailure",
    "NetworkFailure",
    "TransactionFailure",
    "StorageUnavailable",
    "FileSystemVault",
    "parse_structural_metadata",
    "sanitize_path",
    "validate_note_path",
    "NoteProcessor",
    "clean_content",
    "extract_tags_from_metadata",
    "infer_relationships",
    "TagManager",
    "extract_tags_from_content",
    "generate_tag_color",
    "GraphOpsBuilder",
    "GraphCompiler",
    "HypergraphClient",
    "PublicationCoordinator",
    "PublishService",
    "PublishDebouncer",
    "SpaceManager",
    "sanitize_space_name",
]
