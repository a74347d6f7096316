"""Filesystem vault: the host note store plus its structural metadata parser."""

from __future__ import annotations

import asyncio
from bisect import bisect_right
from datetime import datetime, timezone
import logging
from pathlib import Path
import re
from typing import Any, Dict, List, Optional, Tuple

from frontmatter.default_handlers import YAMLHandler
import yaml

from ..models.note import Heading, LinkReference, Location, NoteStat, Span, StructuralMetadata
from .config import AppConfig, get_config
from .interfaces import INoteStore

logger = logging.getLogger(__name__)

INVALID_PATH_CHARS = {'<', '>', ':', '"', '|', '?', '*'}
HIDDEN_PREFIX = "."

FRONTMATTER_BLOCK = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
CODE_FENCE_PATTERN = re.compile(r"```.*?```", re.DOTALL)
INLINE_TAG_PATTERN = re.compile(r"(?:^|(?<=\s))#([\w/-]+)", re.MULTILINE)
WIKILINK_PATTERN = re.compile(r"(!?)\[\[([^\[\]|#]*)(#[^\[\]|]*)?(?:\|([^\[\]]*))?\]\]")
HEADING_PATTERN = re.compile(r"^(#{1,6})[ \t]+(.+?)[ \t]*$", re.MULTILINE)

YAML_HANDLER = YAMLHandler()


def validate_note_path(note_path: str) -> Tuple[bool, str]:
    """
    Validate a relative Markdown path.

    Returns (is_valid, message). Message is empty when valid.
    """
    if not note_path or len(note_path) > 256:
        return False, "Path must be 1-256 characters"
    if not note_path.endswith(".md"):
        return False, "Path must end with .md"
    if ".." in note_path:
        return False, "Path must not contain '..'"
    if "\\" in note_path:
        return False, "Path must use Unix separators (/)"
    if note_path.startswith("/"):
        return False, "Path must be relative (no leading /)"
    if any(char in INVALID_PATH_CHARS for char in note_path):
        return False, "Path contains invalid characters"
    return True, ""


def sanitize_path(vault_root: Path, note_path: str) -> Path:
    """
    Resolve a note path within the vault.

    Raises ValueError if the resolved path escapes the vault root.
    """
    vault = vault_root.resolve()
    full_path = (vault / note_path).resolve()
    if not full_path.is_relative_to(vault):
        raise ValueError(f"Path escapes vault root: {note_path}")
    return full_path


class _LineIndex:
    """Map character offsets to zero-based line/column pairs."""

    def __init__(self, text: str) -> None:
        self._starts = [0]
        for match in re.finditer(r"\n", text):
            self._starts.append(match.end())

    def locate(self, offset: int) -> Location:
        line = bisect_right(self._starts, offset) - 1
        return Location(line=line, col=offset - self._starts[line], offset=offset)

    def span(self, start: int, end: int) -> Span:
        return Span(start=self.locate(start), end=self.locate(end))


def _split_frontmatter(text: str) -> Tuple[Optional[Dict[str, Any]], int]:
    """Return (frontmatter mapping or None, offset where the body starts)."""
    block = FRONTMATTER_BLOCK.match(text)
    if not block:
        return None, 0
    try:
        loaded = YAML_HANDLER.load(block.group(1))
    except yaml.YAMLError as exc:
        logger.warning("Unparseable frontmatter ignored: %s", exc)
        return None, block.end()
    if loaded is None:
        return {}, block.end()
    if not isinstance(loaded, dict):
        logger.warning("Frontmatter is not a mapping; ignored")
        return None, block.end()
    # YAML allows non-string keys (2024:, dates); keep them under their string form.
    return {str(key): value for key, value in loaded.items()}, block.end()


def _code_spans(text: str) -> List[Tuple[int, int]]:
    return [match.span() for match in CODE_FENCE_PATTERN.finditer(text)]


def _inside(spans: List[Tuple[int, int]], offset: int) -> bool:
    return any(start <= offset < end for start, end in spans)


def parse_structural_metadata(text: str) -> StructuralMetadata:
    """
    Parse frontmatter, inline tags, wiki-links, embeds and headings.

    Tags, links and headings inside fenced code blocks are ignored. Link
    positions are zero-based and measured against the full raw text.
    """
    text = text or ""
    fm, body_start = _split_frontmatter(text)
    fences = _code_spans(text)
    lines = _LineIndex(text)

    tags: List[str] = []
    for match in INLINE_TAG_PATTERN.finditer(text, body_start):
        tag = match.group(1)
        if _inside(fences, match.start()) or tag.isdigit():
            continue
        tags.append(tag)

    links: List[LinkReference] = []
    embeds: List[LinkReference] = []
    for match in WIKILINK_PATTERN.finditer(text, body_start):
        if _inside(fences, match.start()):
            continue
        bang, target, section, alias = match.groups()
        link = (target.strip() + (section or "")).strip()
        if not link:
            continue
        reference = LinkReference(
            link=link,
            display_text=alias.strip() if alias and alias.strip() else None,
            position=lines.span(match.start(), match.end()),
        )
        (embeds if bang else links).append(reference)

    headings: List[Heading] = []
    for match in HEADING_PATTERN.finditer(text, body_start):
        if _inside(fences, match.start()):
            continue
        headings.append(Heading(level=len(match.group(1)), text=match.group(2).rstrip("#").strip()))

    return StructuralMetadata(
        frontmatter=fm,
        tags=tags,
        links=links,
        embeds=embeds,
        headings=headings,
    )


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class FileSystemVault(INoteStore):
    """Markdown vault rooted at a directory on disk."""

    def __init__(self, root: Path | None = None, config: AppConfig | None = None) -> None:
        if root is None:
            root = (config or get_config()).vault_path
        self.root = Path(root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def resolve_note_path(self, note_path: str) -> Path:
        """
        Validate and resolve a note path inside the vault.

        Raises ValueError for invalid paths.
        """
        is_valid, message = validate_note_path(note_path)
        if not is_valid:
            raise ValueError(message)
        return sanitize_path(self.root, note_path)

    async def read_note_text(self, identifier: str) -> str:
        absolute_path = self.resolve_note_path(identifier)
        if not absolute_path.exists():
            raise FileNotFoundError(f"Note not found: {identifier}")
        return await asyncio.to_thread(absolute_path.read_text, encoding="utf-8")

    async def get_structural_metadata(self, identifier: str) -> Optional[StructuralMetadata]:
        absolute_path = self.resolve_note_path(identifier)
        if not absolute_path.exists():
            return None
        text = await asyncio.to_thread(absolute_path.read_text, encoding="utf-8")
        return parse_structural_metadata(text)

    async def list_all_note_identifiers(self) -> List[str]:
        identifiers: List[str] = []
        for file_path in self.root.rglob("*.md"):
            if not file_path.is_file():
                continue
            relative = file_path.relative_to(self.root)
            if any(part.startswith(HIDDEN_PREFIX) for part in relative.parts):
                continue
            identifiers.append(relative.as_posix())
        return sorted(identifiers, key=str.lower)

    async def write_note_text(self, identifier: str, new_text: str) -> None:
        absolute_path = self.resolve_note_path(identifier)
        absolute_path.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(absolute_path.write_text, new_text, encoding="utf-8")

    async def stat(self, identifier: str) -> NoteStat:
        absolute_path = self.resolve_note_path(identifier)
        stat = absolute_path.stat()
        created = getattr(stat, "st_birthtime", None) or stat.st_ctime
        return NoteStat(created_at=_timestamp(created), modified_at=_timestamp(stat.st_mtime))


__all__ = [
    "FileSystemVault",
    "parse_structural_metadata",
    "sanitize_path",
    "validate_note_path",
]
