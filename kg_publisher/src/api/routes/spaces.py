"""HTTP API routes for knowledge graph spaces."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ...models.space import KnowledgeGraphSpace, SpaceStats
from ...services.space_manager import SpaceManager
from ..dependencies import get_space_manager

router = APIRouter()


@router.get("/api/spaces", response_model=List[KnowledgeGraphSpace])
async def list_spaces(spaces: SpaceManager = Depends(get_space_manager)):
    """Spaces remembered locally, most recently updated first."""
    return spaces.list_spaces()


@router.get("/api/spaces/{space_id}", response_model=KnowledgeGraphSpace)
async def get_space(space_id: str, spaces: SpaceManager = Depends(get_space_manager)):
    details = await spaces.get_space_details(space_id)
    if details is None:
        raise HTTPException(status_code=404, detail=f"Space not found: {space_id}")
    return details


@router.get("/api/spaces/{space_id}/stats", response_model=SpaceStats)
async def get_space_stats(space_id: str, spaces: SpaceManager = Depends(get_space_manager)):
    return await spaces.get_space_stats(space_id)


@router.post("/api/spaces/{space_id}/join")
async def join_space(space_id: str, spaces: SpaceManager = Depends(get_space_manager)):
    joined = await spaces.join_space(space_id)
    if not joined:
        raise HTTPException(status_code=404, detail=f"Space not found: {space_id}")
    return {"joined": space_id}


@router.delete("/api/spaces/{space_id}")
async def forget_space(space_id: str, spaces: SpaceManager = Depends(get_space_manager)):
    return {"removed": spaces.forget_space(space_id)}
