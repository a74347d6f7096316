"""Note content extraction: raw Markdown plus host metadata into a canonical Note."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from pathlib import PurePosixPath
import re
from typing import Any, Dict, Iterable, List, Optional

from ..models.note import Block, BlockKind, Heading, Link, LinkKind, LinkReference, Note, StructuralMetadata
from .errors import ExtractionFailure
from .interfaces import INoteStore

logger = logging.getLogger(__name__)

H1_PATTERN = re.compile(r"^# (.+)$", re.MULTILINE)

# Content cleaning passes, applied in this order.
LEADING_FRONTMATTER = re.compile(r"^---\n[\s\S]*?\n---\n")
WIKILINK_BRACKETS = re.compile(r"\[\[([^\]]+)\]\]")
MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
HEADING_MARKER = re.compile(r"^#{1,6}\s+", re.MULTILINE)
BOLD = re.compile(r"\*\*([^*]+)\*\*")
ITALIC = re.compile(r"\*([^*]+)\*")
HIGHLIGHT = re.compile(r"==([^=]+)==")
STRIKETHROUGH = re.compile(r"~~([^~]+)~~")
HASHTAG = re.compile(r"#[\w-]+")
EXCESS_NEWLINES = re.compile(r"\n{3,}")

CODE_BLOCK = re.compile(r"```(\w+)?\n([\s\S]*?)```")
CALLOUT = re.compile(r"^> \[!(\w+)\].*(?:\n|\Z)((?:^>.*(?:\n|\Z))*)", re.MULTILINE)
CALLOUT_PREFIX = re.compile(r"^> ?", re.MULTILINE)
TABLE = re.compile(r"(?:^\|[^\n]*\|[ \t\r]*(?:\n|\Z)){2,}", re.MULTILINE)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clean_content(content: str) -> str:
    """
    Strip structural markup from a note body.

    Each pass runs on the output of the previous one. Emphasis passes are
    single and non-recursive, so nested markers may survive, and wiki-link
    display text is dropped in favour of the target.
    """
    text = LEADING_FRONTMATTER.sub("", content or "", count=1)
    text = WIKILINK_BRACKETS.sub(r"\1", text)
    text = MARKDOWN_LINK.sub(r"\1", text)
    text = HEADING_MARKER.sub("", text)
    text = BOLD.sub(r"\1", text)
    text = ITALIC.sub(r"\1", text)
    text = HIGHLIGHT.sub(r"\1", text)
    text = STRIKETHROUGH.sub(r"\1", text)
    text = HASHTAG.sub("", text)
    text = EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def extract_title(raw_text: str, frontmatter: Optional[Dict[str, Any]], fallback_name: str) -> str:
    """Frontmatter title, then the first level-1 heading, then the fallback name."""
    title = (frontmatter or {}).get("title")
    if title is not None and str(title).strip():
        return str(title).strip()
    match = H1_PATTERN.search(raw_text or "")
    if match and match.group(1).strip():
        return match.group(1).strip()
    return fallback_name


def _strip_hash(tag: str) -> str:
    return tag.replace("#", "", 1).strip()


def extract_tags_from_metadata(metadata: Optional[StructuralMetadata]) -> List[str]:
    """
    Union of host-reported inline tags and frontmatter ``tags``.

    Frontmatter tags may be a list of strings or a single string; anything
    else is ignored. The result keeps first-seen order without duplicates.
    """
    if metadata is None:
        return []

    candidates: List[str] = list(metadata.tags)
    frontmatter_tags = (metadata.frontmatter or {}).get("tags")
    if isinstance(frontmatter_tags, (list, tuple)):
        candidates.extend(tag for tag in frontmatter_tags if isinstance(tag, str))
    elif isinstance(frontmatter_tags, str):
        candidates.append(frontmatter_tags)

    seen: Dict[str, None] = {}
    for candidate in candidates:
        tag = _strip_hash(candidate)
        if tag and tag not in seen:
            seen[tag] = None
    return list(seen.keys())


def _to_link(reference: LinkReference, kind: LinkKind) -> Link:
    return Link(
        target=reference.link,
        display_text=reference.display_text or reference.link,
        kind=kind,
        position=reference.position,
    )


def extract_links(metadata: Optional[StructuralMetadata]) -> List[Link]:
    """Links first, then embeds, each in host order."""
    if metadata is None:
        return []
    links = [_to_link(reference, LinkKind.INTERNAL) for reference in metadata.links]
    links.extend(_to_link(reference, LinkKind.EMBED) for reference in metadata.embeds)
    return links


def extract_headings(metadata: Optional[StructuralMetadata]) -> List[Heading]:
    if metadata is None:
        return []
    return list(metadata.headings)


def extract_blocks(raw_text: str) -> List[Block]:
    """
    Lift code, callout and table fragments out of the raw text.

    The three scans are independent: all code blocks come first, then all
    callouts, then all tables, regardless of where they sit in the note.
    """
    text = raw_text or ""
    blocks: List[Block] = []

    for match in CODE_BLOCK.finditer(text):
        blocks.append(Block(kind=BlockKind.CODE, content=match.group(2).strip()))

    for match in CALLOUT.finditer(text):
        body = CALLOUT_PREFIX.sub("", match.group(2))
        blocks.append(Block(kind=BlockKind.CALLOUT, content=body.strip()))

    for match in TABLE.finditer(text):
        blocks.append(Block(kind=BlockKind.TABLE, content=match.group(0).strip()))

    return blocks


@dataclass
class ExtractionBatch:
    """Notes extracted by a batch run plus the failures that were skipped."""

    notes: List[Note] = field(default_factory=list)
    errors: List[ExtractionFailure] = field(default_factory=list)


class NoteProcessor:
    """Build Note records from host note text and metadata."""

    def __init__(self, store: INoteStore | None = None) -> None:
        self.store = store

    def extract(
        self,
        raw_text: str,
        metadata: Optional[StructuralMetadata],
        *,
        path: str,
        fallback_name: str | None = None,
        created_at: datetime | None = None,
        modified_at: datetime | None = None,
    ) -> Note:
        """Extract a Note. Missing metadata degrades to empty values."""
        raw_text = raw_text or ""
        frontmatter = dict(metadata.frontmatter or {}) if metadata else {}
        name = fallback_name or PurePosixPath(path).stem or path
        now = _utcnow()

        return Note(
            title=extract_title(raw_text, frontmatter, name),
            content=clean_content(raw_text),
            path=path,
            created_date=created_at or now,
            modified_date=modified_at or created_at or now,
            tags=extract_tags_from_metadata(metadata),
            links=extract_links(metadata),
            frontmatter=frontmatter,
            headings=extract_headings(metadata),
            blocks=extract_blocks(raw_text),
        )

    def _require_store(self) -> INoteStore:
        if self.store is None:
            raise RuntimeError("NoteProcessor has no note store configured")
        return self.store

    async def process_note(self, identifier: str) -> Note:
        """Read one note through the host store and extract it."""
        store = self._require_store()
        raw_text = await store.read_note_text(identifier)
        metadata = await store.get_structural_metadata(identifier)
        stat = await store.stat(identifier)
        return self.extract(
            raw_text,
            metadata,
            path=identifier,
            created_at=stat.created_at,
            modified_at=stat.modified_at,
        )

    async def process_many(self, identifiers: Iterable[str]) -> ExtractionBatch:
        """Extract notes one at a time; a failing note is logged and skipped."""
        batch = ExtractionBatch()
        for identifier in identifiers:
            try:
                batch.notes.append(await self.process_note(identifier))
            except Exception as exc:
                logger.exception("Error processing note %s", identifier)
                batch.errors.append(
                    ExtractionFailure(
                        f"Failed to extract {identifier}: {exc}",
                        {"path": identifier},
                    )
                )
        return batch


__all__ = [
    "ExtractionBatch",
    "NoteProcessor",
    "clean_content",
    "extract_blocks",
    "extract_headings",
    "extract_links",
    "extract_tags_from_metadata",
    "extract_title",
]
