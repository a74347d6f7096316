"""HTTP API routes for publishing notes to the knowledge graph."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ...models.publish import BatchPublishResult, PublishNoteRequest, PublishResult, SyncStatus
from ...models.settings import PublishToggles
from ...services.publish_service import PublishService
from ...services.vault import validate_note_path
from ..dependencies import get_publish_service

router = APIRouter()


def _toggles(request: PublishNoteRequest) -> PublishToggles:
    return PublishToggles(include_tags=request.include_tags, include_links=request.include_links)


def _check_path(path: str) -> None:
    is_valid, message = validate_note_path(path)
    if not is_valid:
        raise HTTPException(status_code=400, detail=message)


@router.post("/api/publish/note", response_model=PublishResult)
async def publish_note(request: PublishNoteRequest, publisher: PublishService = Depends(get_publish_service)):
    """Publish one note immediately."""
    _check_path(request.path)
    return await publisher.publish_note(request.path, _toggles(request))


@router.post("/api/publish/all", response_model=BatchPublishResult)
async def publish_all(
    toggles: Optional[PublishToggles] = None,
    publisher: PublishService = Depends(get_publish_service),
):
    """Publish every note outside the excluded folders, one at a time."""
    return await publisher.publish_all_notes(toggles)


@router.post("/api/publish/schedule", status_code=202)
async def schedule_publish(request: PublishNoteRequest, publisher: PublishService = Depends(get_publish_service)):
    """Queue a debounced publish, typically on note modification."""
    _check_path(request.path)
    publisher.validate_settings()
    if not publisher.config.auto_publish:
        raise HTTPException(
            status_code=409,
            detail={
                "error": "auto_publish_disabled",
                "message": "Auto-publish is turned off",
                "detail": {"setting": "KG_AUTO_PUBLISH"},
            },
        )
    publisher.schedule_publish(request.path)
    return {"scheduled": request.path, "pending": publisher.debouncer.pending()}


@router.get("/api/publish/status", response_model=SyncStatus)
async def sync_status(publisher: PublishService = Depends(get_publish_service)):
    return await publisher.sync_status()
