"""Vault-level publishing: single notes, batches, debounced auto-publish, sync status."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set

from ..models.graph import CompileOptions
from ..models.publish import BatchPublishResult, PublishFailure, PublishResult, SyncStatus
from ..models.settings import PublishToggles
from .config import AppConfig
from .errors import ValidationFailure
from .graph_compiler import GraphCompiler
from .interfaces import INoteStore
from .note_processor import NoteProcessor
from .publication import PublicationCoordinator

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_excluded(path: str, excluded_folders: Sequence[str]) -> bool:
    """Plain string-prefix match against each excluded folder."""
    return any(path.startswith(folder) for folder in excluded_folders)


class PublishDebouncer:
    """
    Per-key trailing debounce on the running event loop.

    Each ``schedule`` call cancels the pending timer for the same key, so only
    the last trigger inside the window fires. Keys are independent.
    """

    def __init__(self, delay: float, callback: Callable[[str], Awaitable[Any]]) -> None:
        self.delay = delay
        self.callback = callback
        self._handles: Dict[str, asyncio.TimerHandle] = {}
        self._tasks: Set[asyncio.Task] = set()

    def schedule(self, key: str) -> None:
        loop = asyncio.get_running_loop()
        previous = self._handles.pop(key, None)
        if previous is not None:
            previous.cancel()
        self._handles[key] = loop.call_later(self.delay, self._fire, key)

    def _fire(self, key: str) -> None:
        self._handles.pop(key, None)
        task = asyncio.ensure_future(self._run(key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, key: str) -> None:
        try:
            await self.callback(key)
        except Exception:
            logger.exception("Debounced publish failed", extra={"path": key})

    def pending(self) -> List[str]:
        return sorted(self._handles)

    def cancel_all(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    async def drain(self) -> None:
        """Wait for callbacks that have already fired."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class PublishService:
    """Ties extraction, compilation and publication together for a vault."""

    def __init__(
        self,
        store: INoteStore,
        coordinator: PublicationCoordinator,
        config: AppConfig,
        processor: NoteProcessor | None = None,
        compiler: GraphCompiler | None = None,
    ) -> None:
        self.store = store
        self.coordinator = coordinator
        self.config = config
        self.processor = processor or NoteProcessor(store)
        self.compiler = compiler or GraphCompiler(space_id=config.space_id)
        self.debouncer = PublishDebouncer(config.publish_debounce_seconds, self._publish_quietly)
        self.last_sync_timestamp: Optional[datetime] = None
        self._published: Dict[str, datetime] = {}
        self._last_errors: Dict[str, str] = {}

    def validate_settings(self) -> None:
        """
        Raises:
            ValidationFailure: If the private key or space id is not configured
        """
        if not self.config.private_key:
            raise ValidationFailure("Please configure your private key", {"setting": "KG_PRIVATE_KEY"})
        if not self.config.space_id:
            raise ValidationFailure("Please configure your space ID", {"setting": "KG_SPACE_ID"})

    def compile_options(self, toggles: PublishToggles | None = None) -> CompileOptions:
        include_tags = self.config.include_tags
        include_links = self.config.include_links
        if toggles is not None:
            if toggles.include_tags is not None:
                include_tags = toggles.include_tags
            if toggles.include_links is not None:
                include_links = toggles.include_links
        return CompileOptions(
            include_tags=include_tags,
            include_links=include_links,
            stable_ids=self.config.stable_ids,
        )

    async def publish_note(self, identifier: str, toggles: PublishToggles | None = None) -> PublishResult:
        """Extract, compile and publish one note. Failures propagate."""
        self.validate_settings()
        note = await self.processor.process_note(identifier)
        graph = self.compiler.compile(note, self.compile_options(toggles))
        result = await self.coordinator.publish(graph.entities, graph.relations)

        self.last_sync_timestamp = result.timestamp
        self._published[identifier] = result.timestamp
        self._last_errors.pop(identifier, None)
        logger.info(
            "Published note",
            extra={"path": identifier, "content_id": result.content_id},
        )
        return result

    async def eligible_notes(self, excluded_folders: Sequence[str] | None = None) -> List[str]:
        excluded = list(self.config.excluded_folders)
        if excluded_folders:
            excluded.extend(excluded_folders)
        identifiers = await self.store.list_all_note_identifiers()
        return [path for path in identifiers if not is_excluded(path, excluded)]

    async def publish_all_notes(self, toggles: PublishToggles | None = None) -> BatchPublishResult:
        """Publish every eligible note in turn; one failure does not stop the batch."""
        self.validate_settings()
        batch = BatchPublishResult()
        targets = await self.eligible_notes(toggles.excluded_folders if toggles else None)

        for identifier in targets:
            try:
                result = await self.publish_note(identifier, toggles)
            except Exception as exc:
                logger.exception("Error publishing %s", identifier)
                batch.errors.append(PublishFailure(path=identifier, error=str(exc)))
                continue
            batch.published.append(result)
            batch.published_paths.append(identifier)

        self._last_errors = {failure.path: failure.error for failure in batch.errors}
        logger.info(
            "Batch publish finished",
            extra={"published": len(batch.published), "errors": len(batch.errors), "total": len(targets)},
        )
        return batch

    def schedule_publish(self, identifier: str) -> bool:
        """Queue a debounced publish of ``identifier``. Returns whether it was queued."""
        if not self.config.auto_publish:
            logger.debug("Auto-publish disabled; ignoring change", extra={"path": identifier})
            return False
        if is_excluded(identifier, self.config.excluded_folders):
            return False
        self.debouncer.schedule(identifier)
        return True

    async def _publish_quietly(self, identifier: str) -> None:
        try:
            await self.publish_note(identifier)
        except Exception as exc:
            self._last_errors[identifier] = str(exc)
            raise

    async def sync_status(self) -> SyncStatus:
        """Counts of eligible notes and which of them changed since their last publish."""
        targets = await self.eligible_notes()
        pending = 0
        for identifier in targets:
            published_at = self._published.get(identifier)
            if published_at is None:
                pending += 1
                continue
            try:
                stat = await self.store.stat(identifier)
            except (OSError, ValueError):
                continue
            if stat.modified_at > published_at:
                pending += 1

        return SyncStatus(
            last_sync_timestamp=self.last_sync_timestamp,
            total_notes=len(targets),
            published_notes=sum(1 for identifier in targets if identifier in self._published),
            pending_notes=pending,
            errors=[f"{path}: {error}" for path, error in self._last_errors.items()],
        )


__all__ = ["PublishDebouncer", "PublishService", "is_excluded"]
