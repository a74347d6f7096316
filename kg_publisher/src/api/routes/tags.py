"""HTTP API routes for vault tag analytics and tag mutations."""

from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from ...models.tag import (
    RelatedTag,
    TagExport,
    TagMetadata,
    TagMutationResult,
    TagPair,
    TagRenameRequest,
    TagStatistics,
    TagUsagePoint,
)
from ...services.tag_manager import TagManager
from ...services.vault import validate_note_path
from ..dependencies import get_tag_manager

router = APIRouter()


@router.get("/api/tags", response_model=List[TagMetadata])
async def list_tags(
    min_count: int = Query(1, ge=0, description="Only tags used at least this often"),
    tags: TagManager = Depends(get_tag_manager),
):
    """List tags, most used first."""
    return await tags.tags_by_frequency(min_count)


@router.get("/api/tags/top", response_model=List[TagMetadata])
async def most_used_tags(
    limit: int = Query(10, ge=1, le=500),
    tags: TagManager = Depends(get_tag_manager),
):
    return await tags.most_used_tags(limit)


@router.get("/api/tags/detail", response_model=TagMetadata)
async def get_tag(tag: str = Query(..., min_length=1), tags: TagManager = Depends(get_tag_manager)):
    metadata = await tags.get_tag(tag)
    if metadata is None:
        raise HTTPException(status_code=404, detail=f"Tag not found: {tag}")
    return metadata


@router.get("/api/tags/related", response_model=List[RelatedTag])
async def related_tags(tag: str = Query(..., min_length=1), tags: TagManager = Depends(get_tag_manager)):
    return await tags.related_tags(tag)


@router.get("/api/tags/suggest", response_model=List[str])
async def suggest_tags(path: str = Query(..., description="Vault-relative note path"), tags: TagManager = Depends(get_tag_manager)):
    """Suggest known tags a note does not carry yet."""
    is_valid, message = validate_note_path(path)
    if not is_valid:
        raise HTTPException(status_code=400, detail=message)
    return await tags.suggest_tags(path)


@router.get("/api/tags/hierarchy", response_model=Dict[str, List[str]])
async def tag_hierarchy(tags: TagManager = Depends(get_tag_manager)):
    return await tags.hierarchy()


@router.get("/api/tags/statistics", response_model=TagStatistics)
async def tag_statistics(tags: TagManager = Depends(get_tag_manager)):
    return await tags.statistics()


@router.get("/api/tags/pairs", response_model=List[TagPair])
async def top_tag_pairs(
    limit: int = Query(10, ge=1, le=500),
    tags: TagManager = Depends(get_tag_manager),
):
    return await tags.top_tag_pairs(limit)


@router.get("/api/tags/recent", response_model=List[TagMetadata])
async def recently_used_tags(
    days: int = Query(7, ge=1, le=3650),
    tags: TagManager = Depends(get_tag_manager),
):
    return await tags.recently_used_tags(days)


@router.get("/api/tags/usage", response_model=List[TagUsagePoint])
async def tag_usage(
    tag: str = Query(..., min_length=1),
    days: int = Query(30, ge=1, le=3650),
    tags: TagManager = Depends(get_tag_manager),
):
    return await tags.tag_usage_over_time(tag, days)


@router.get("/api/tags/export", response_model=TagExport)
async def export_tags(tags: TagManager = Depends(get_tag_manager)):
    return await tags.export_tag_data()


@router.post("/api/tags/rename", response_model=TagMutationResult)
async def rename_tag(request: TagRenameRequest, tags: TagManager = Depends(get_tag_manager)):
    """Rename a tag in every note that carries it."""
    return await tags.rename(request.old_name, request.new_name)


@router.delete("/api/tags", response_model=TagMutationResult)
async def delete_tag(tag: str = Query(..., min_length=1), tags: TagManager = Depends(get_tag_manager)):
    """Remove a tag from every note that carries it."""
    return await tags.delete(tag)
