"""Knowledge graph spaces: remote lookups plus a local SQLite registry."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import re
import sqlite3
from typing import List, Optional

from ..models.space import Governance, KnowledgeGraphSpace, SpaceStats
from .database import DatabaseService
from .errors import PublisherError, StorageUnavailable
from .hypergraph_client import HypergraphClient

logger = logging.getLogger(__name__)

MAX_SPACE_NAME_LENGTH = 50
INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9\s-]")
NAME_WHITESPACE = re.compile(r"\s+")


def sanitize_space_name(name: str) -> str:
    """Keep letters, digits, whitespace and hyphens; hyphenate, lower-case, cap at 50."""
    cleaned = INVALID_NAME_CHARS.sub("", name)
    cleaned = NAME_WHITESPACE.sub("-", cleaned)
    return cleaned.lower()[:MAX_SPACE_NAME_LENGTH]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SpaceManager:
    """
    Space lookups against the Hypergraph API and a local list of known spaces.

    Remote reads never raise: failures are logged and degrade to ``None``,
    empty stats or ``False``. Registry calls degrade the same way when the
    SQLite store is unavailable.
    """

    def __init__(self, client: HypergraphClient, db: DatabaseService | None = None) -> None:
        self.client = client
        self.db = db or DatabaseService()

    async def get_space_details(self, space_id: str) -> Optional[KnowledgeGraphSpace]:
        try:
            return await self.client.get_space_details(space_id)
        except (PublisherError, ValueError) as exc:
            logger.warning("Error fetching space details", extra={"space_id": space_id, "error": str(exc)})
            return None

    async def get_space_stats(self, space_id: str) -> SpaceStats:
        try:
            return await self.client.get_space_stats(space_id)
        except (PublisherError, ValueError) as exc:
            logger.warning("Error fetching space stats", extra={"space_id": space_id, "error": str(exc)})
            return SpaceStats()

    async def validate_space(self, space_id: str) -> bool:
        return await self.get_space_details(space_id) is not None

    async def join_space(self, space_id: str) -> bool:
        """Remember a space locally once it is confirmed to exist remotely."""
        if not await self.validate_space(space_id):
            return False
        now = _utcnow()
        self.remember_space(
            KnowledgeGraphSpace(
                id=space_id,
                name="Joined Space",
                description="Space joined via invite",
                created_at=now,
                updated_at=now,
                governance=Governance.PUBLIC,
            )
        )
        return True

    def _connect(self) -> sqlite3.Connection:
        self.db.initialize()
        return self.db.connect()

    def remember_space(self, space: KnowledgeGraphSpace) -> None:
        """Insert or replace a registry entry, stamping ``updated_at``."""
        updated_at = _utcnow()
        try:
            conn = self._connect()
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT OR REPLACE INTO spaces
                            (space_id, name, description, is_public, governance,
                             member_count, created_at, updated_at)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            space.id,
                            sanitize_space_name(space.name) or space.id,
                            space.description,
                            int(space.is_public),
                            space.governance.value,
                            space.member_count,
                            space.created_at.isoformat() if space.created_at else None,
                            updated_at.isoformat(),
                        ),
                    )
            finally:
                conn.close()
        except (StorageUnavailable, sqlite3.Error) as exc:
            logger.warning("Space registry unavailable; not storing space", extra={"space_id": space.id, "error": str(exc)})

    def list_spaces(self) -> List[KnowledgeGraphSpace]:
        """Known spaces, most recently updated first."""
        try:
            conn = self._connect()
            try:
                rows = conn.execute("SELECT * FROM spaces ORDER BY updated_at DESC, rowid DESC").fetchall()
            finally:
                conn.close()
        except (StorageUnavailable, sqlite3.Error) as exc:
            logger.warning("Space registry unavailable; listing no spaces", extra={"error": str(exc)})
            return []

        return [
            KnowledgeGraphSpace(
                id=row["space_id"],
                name=row["name"],
                description=row["description"],
                is_public=bool(row["is_public"]),
                governance=row["governance"],
                member_count=row["member_count"],
                created_at=_parse_ts(row["created_at"]),
                updated_at=_parse_ts(row["updated_at"]),
            )
            for row in rows
        ]

    def forget_space(self, space_id: str) -> bool:
        """Drop a registry entry. Returns whether a row was removed."""
        try:
            conn = self._connect()
            try:
                with conn:
                    cursor = conn.execute("DELETE FROM spaces WHERE space_id = ?", (space_id,))
            finally:
                conn.close()
        except (StorageUnavailable, sqlite3.Error) as exc:
            logger.warning("Space registry unavailable; nothing removed", extra={"space_id": space_id, "error": str(exc)})
            return False
        return cursor.rowcount > 0


__all__ = ["SpaceManager", "sanitize_space_name"]
