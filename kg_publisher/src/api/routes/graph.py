"""HTTP API routes for note extraction, graph compilation and relationships."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...models.graph import CompiledGraph
from ...models.note import Note
from ...models.relationship import NoteFailure, RelationshipReport
from ...services.graph_compiler import GraphCompiler
from ...services.note_processor import NoteProcessor
from ...services.publish_service import PublishService
from ...services.relationships import infer_relationships
from ...services.vault import validate_note_path
from ..dependencies import get_graph_compiler, get_note_processor, get_publish_service

router = APIRouter()


def _checked_path(path: str) -> str:
    is_valid, message = validate_note_path(path)
    if not is_valid:
        raise HTTPException(status_code=400, detail=message)
    return path


@router.get("/api/notes/extract", response_model=Note)
async def extract_note(
    path: str = Query(..., description="Vault-relative note path"),
    processor: NoteProcessor = Depends(get_note_processor),
):
    """Return the canonical extracted record for one note."""
    return await processor.process_note(_checked_path(path))


@router.get("/api/graph/compile", response_model=CompiledGraph)
async def compile_note(
    path: str = Query(..., description="Vault-relative note path"),
    include_tags: Optional[bool] = Query(None),
    include_links: Optional[bool] = Query(None),
    processor: NoteProcessor = Depends(get_note_processor),
    compiler: GraphCompiler = Depends(get_graph_compiler),
    publisher: PublishService = Depends(get_publish_service),
):
    """Preview the entities and relations a publish would create."""
    note = await processor.process_note(_checked_path(path))
    options = publisher.compile_options()
    overrides = {}
    if include_tags is not None:
        overrides["include_tags"] = include_tags
    if include_links is not None:
        overrides["include_links"] = include_links
    if overrides:
        options = options.model_copy(update=overrides)
    return compiler.compile(note, options)


@router.get("/api/graph/relationships", response_model=RelationshipReport)
async def note_relationships(
    folder: Optional[str] = Query(None, description="Only notes under this folder prefix"),
    processor: NoteProcessor = Depends(get_note_processor),
    publisher: PublishService = Depends(get_publish_service),
):
    """Infer pairwise relationships across the eligible notes; unreadable notes are reported, not fatal."""
    identifiers = await publisher.eligible_notes()
    if folder:
        identifiers = [path for path in identifiers if path.startswith(folder)]
    batch = await processor.process_many(identifiers)
    return RelationshipReport(
        relationships=infer_relationships(batch.notes),
        errors=[
            NoteFailure(path=failure.details.get("path", ""), error=failure.message)
            for failure in batch.errors
        ],
    )
