from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from kg_publisher.src.models.note import NoteStat, StructuralMetadata
from kg_publisher.src.services.interfaces import INoteStore
from kg_publisher.src.services.vault import parse_structural_metadata

EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


class InMemoryNoteStore(INoteStore):
    """Dict-backed note store that counts calls."""

    def __init__(self, notes: Optional[Dict[str, str]] = None) -> None:
        self.notes: Dict[str, str] = dict(notes or {})
        self.modified: Dict[str, datetime] = {path: EPOCH for path in self.notes}
        self.list_calls = 0
        self.read_calls = 0
        self.writes: List[str] = []

    async def read_note_text(self, identifier: str) -> str:
        self.read_calls += 1
        if identifier not in self.notes:
            raise FileNotFoundError(f"Note not found: {identifier}")
        return self.notes[identifier]

    async def get_structural_metadata(self, identifier: str) -> Optional[StructuralMetadata]:
        if identifier not in self.notes:
            return None
        return parse_structural_metadata(self.notes[identifier])

    async def list_all_note_identifiers(self) -> List[str]:
        self.list_calls += 1
        return sorted(self.notes)

    async def write_note_text(self, identifier: str, new_text: str) -> None:
        self.notes[identifier] = new_text
        self.writes.append(identifier)

    async def stat(self, identifier: str) -> NoteStat:
        if identifier not in self.notes:
            raise FileNotFoundError(identifier)
        return NoteStat(created_at=EPOCH, modified_at=self.modified.get(identifier, EPOCH))


DEMO_NOTE = '---\ntitle: "Demo"\ntags: [x]\n---\n# Demo\nSome **bold** text. #y\n[[Other]]\n'


@pytest.fixture
def make_store():
    return InMemoryNoteStore


@pytest.fixture
def note_store() -> InMemoryNoteStore:
    return InMemoryNoteStore()


@pytest.fixture
def demo_store() -> InMemoryNoteStore:
    return InMemoryNoteStore({"demo.md": DEMO_NOTE})
