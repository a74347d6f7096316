"""Vault-wide tag index with a time-boxed cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import logging
import re
import time
from typing import Callable, Dict, List, Optional

from ..models.tag import (
    RelatedTag,
    TagExport,
    TagMetadata,
    TagMutationResult,
    TagPair,
    TagStatistics,
    TagUsagePoint,
)
from .interfaces import INoteStore

logger = logging.getLogger(__name__)

CACHE_DURATION_SECONDS = 5 * 60
RELATED_TAG_LIMIT = 10
SUGGESTION_LIMIT = 5
SUGGESTION_THRESHOLD = 0.3

TAG_COLORS = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7",
    "#DDA0DD", "#98D8C8", "#FFB6C1", "#F0E68C", "#FFA07A",
    "#20B2AA", "#87CEEB", "#DDA0DD", "#F0E68C", "#FFB6C1",
)

CONTENT_HASHTAG = re.compile(r"#([^\s#]+)")
CONTENT_FRONTMATTER = re.compile(r"^---\n([\s\S]*?)\n---")
FRONTMATTER_TAG_LIST = re.compile(r"tags:\s*\[(.*?)\]", re.DOTALL)
QUOTES = re.compile(r"['\"]")
WHITESPACE = re.compile(r"\s+")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_tags_from_content(content: str) -> List[str]:
    """
    Scan raw note text for tags.

    Picks up every ``#tag`` token plus an inline ``tags: [a, b]`` list in the
    leading frontmatter. This is independent of the host metadata used by
    the note processor and may report tags that one does not.
    """
    content = content or ""
    tags: List[str] = [match.group(1) for match in CONTENT_HASHTAG.finditer(content)]

    frontmatter = CONTENT_FRONTMATTER.match(content)
    if frontmatter:
        tag_list = FRONTMATTER_TAG_LIST.search(frontmatter.group(1))
        if tag_list:
            for raw in tag_list.group(1).split(","):
                tag = QUOTES.sub("", raw.strip())
                if tag:
                    tags.append(tag)

    return list(dict.fromkeys(tags))


def generate_tag_color(tag: str) -> str:
    """Pick a palette colour from a 32-bit rolling hash over UTF-16 code units."""
    value = 0
    encoded = tag.encode("utf-16-le")
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return TAG_COLORS[abs(value) % len(TAG_COLORS)]


def calculate_tag_relevance(content: str, tag_name: str) -> float:
    """Score how strongly a note's text suggests a tag, capped at 1.0."""
    content_lower = content.lower()
    tag_lower = re.escape(tag_name.lower())

    direct_matches = len(re.findall(tag_lower, content_lower))
    word_count = len(WHITESPACE.split(content))

    presence_boost = 0.3 if re.search(tag_lower, content_lower) else 0.0
    heading_lines = re.findall(rf"^#+.*{tag_lower}.*$", content_lower, re.MULTILINE)
    heading_boost = len(heading_lines) * 0.2

    return min(1.0, (direct_matches / word_count) * 100 + presence_boost + heading_boost)


@dataclass
class TagCache:
    """Tag entries plus the monotonic time of the last full scan."""

    entries: Dict[str, TagMetadata] = field(default_factory=dict)
    last_refresh: Optional[float] = None

    def is_fresh(self, now: float, ttl: float) -> bool:
        return self.last_refresh is not None and now - self.last_refresh < ttl

    def invalidate(self) -> None:
        self.entries.clear()
        self.last_refresh = None


class TagManager:
    """Tag analytics and vault-wide tag mutations for one vault session."""

    def __init__(
        self,
        store: INoteStore,
        *,
        cache: TagCache | None = None,
        ttl: float = CACHE_DURATION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.cache = cache or TagCache()
        self.ttl = ttl
        self._clock = clock

    async def refresh(self, force: bool = False) -> None:
        """Rebuild the tag map unless the cache is still fresh."""
        now = self._clock()
        if not force and self.cache.is_fresh(now, self.ttl):
            return

        entries: Dict[str, TagMetadata] = {}
        identifiers = await self.store.list_all_note_identifiers()
        for identifier in identifiers:
            try:
                content = await self.store.read_note_text(identifier)
            except Exception:
                logger.exception("Error processing tags in %s", identifier)
                continue
            for tag in extract_tags_from_content(content):
                metadata = entries.get(tag)
                if metadata is None:
                    metadata = TagMetadata(name=tag, color=generate_tag_color(tag))
                    entries[tag] = metadata
                metadata.count += 1
                metadata.notes.append(identifier)

        self.cache.entries = entries
        self.cache.last_refresh = now
        logger.debug(
            "Tag cache refreshed",
            extra={"notes_scanned": len(identifiers), "tags": len(entries)},
        )

    async def all_tags(self) -> List[TagMetadata]:
        """All tags, most used first. Entries are copies; the cache is never handed out."""
        await self.refresh()
        tags = sorted(self.cache.entries.values(), key=lambda tag: tag.count, reverse=True)
        return [tag.model_copy(deep=True) for tag in tags]

    async def get_tag(self, tag_name: str) -> Optional[TagMetadata]:
        await self.refresh()
        tag = self.cache.entries.get(tag_name)
        return tag.model_copy(deep=True) if tag is not None else None

    async def tags_by_frequency(self, min_count: int = 1) -> List[TagMetadata]:
        return [tag for tag in await self.all_tags() if tag.count >= min_count]

    async def most_used_tags(self, limit: int = 10) -> List[TagMetadata]:
        return (await self.all_tags())[:limit]

    async def unused_tags(self) -> List[str]:
        await self.refresh()
        return [name for name, tag in self.cache.entries.items() if tag.count == 0]

    async def related_tags(self, tag_name: str) -> List[RelatedTag]:
        """Top tags sharing notes with ``tag_name``, by overlap over the larger count."""
        await self.refresh()
        target = self.cache.entries.get(tag_name)
        if target is None:
            return []

        target_notes = set(target.notes)
        related: List[RelatedTag] = []
        for other_name, other in self.cache.entries.items():
            if other_name == tag_name:
                continue
            overlap = sum(1 for note in other.notes if note in target_notes)
            if overlap > 0:
                strength = overlap / max(target.count, other.count)
                related.append(RelatedTag(tag=other_name, strength=min(1.0, strength)))

        related.sort(key=lambda item: item.strength, reverse=True)
        return related[:RELATED_TAG_LIMIT]

    async def suggest_tags(self, identifier: str) -> List[str]:
        content = await self.store.read_note_text(identifier)
        return await self.suggest_tags_for_content(content)

    async def suggest_tags_for_content(self, content: str) -> List[str]:
        """Known tags the text does not carry yet, best five above the threshold."""
        existing = set(extract_tags_from_content(content))
        scored = []
        for tag in await self.all_tags():
            if tag.name in existing:
                continue
            score = calculate_tag_relevance(content, tag.name)
            if score > SUGGESTION_THRESHOLD:
                scored.append((tag.name, score))

        scored.sort(key=lambda item: item[1], reverse=True)
        return [name for name, _ in scored[:SUGGESTION_LIMIT]]

    async def hierarchy(self) -> Dict[str, List[str]]:
        """Map each parent prefix to its nested tags; flat tags are left out."""
        tree: Dict[str, List[str]] = {}
        for tag in await self.all_tags():
            parts = tag.name.split("/")
            if len(parts) > 1:
                tree.setdefault("/".join(parts[:-1]), []).append(tag.name)
        return tree

    async def rename(self, old_name: str, new_name: str) -> TagMutationResult:
        """Rewrite ``#old_name`` to ``#new_name`` in every note carrying it."""
        pattern = re.compile(rf"#{re.escape(old_name)}\b")
        replacement = f"#{new_name}"
        return await self._rewrite(old_name, lambda text: pattern.sub(lambda _: replacement, text))

    async def delete(self, tag_name: str) -> TagMutationResult:
        """Remove ``#tag_name`` everywhere, collapsing whitespace in touched notes."""
        pattern = re.compile(rf"#{re.escape(tag_name)}\b")

        def strip_tag(text: str) -> str:
            return WHITESPACE.sub(" ", pattern.sub("", text)).strip()

        return await self._rewrite(tag_name, strip_tag)

    async def _rewrite(self, tag_name: str, transform: Callable[[str], str]) -> TagMutationResult:
        result = TagMutationResult()
        try:
            for identifier in await self.store.list_all_note_identifiers():
                try:
                    content = await self.store.read_note_text(identifier)
                    if tag_name not in extract_tags_from_content(content):
                        continue
                    await self.store.write_note_text(identifier, transform(content))
                    result.updated_files.append(identifier)
                except Exception as exc:
                    logger.exception("Error updating tags in %s", identifier)
                    result.errors.append(f"{identifier}: {exc}")
        finally:
            self.cache.invalidate()

        logger.info(
            "Tag mutation applied",
            extra={"tag": tag_name, "updated": len(result.updated_files), "errors": len(result.errors)},
        )
        return result

    async def statistics(self) -> TagStatistics:
        tags = await self.all_tags()
        if not tags:
            return TagStatistics()

        file_count = len(await self.store.list_all_note_identifiers())
        total_usage = sum(tag.count for tag in tags)
        return TagStatistics(
            total_tags=len(tags),
            total_usage=total_usage,
            average_tags_per_note=total_usage / file_count if file_count else 0.0,
            most_used_tag=tags[0].name,
            least_used_tag=tags[-1].name,
            hierarchical_tags=sum(1 for tag in tags if "/" in tag.name),
        )

    async def top_tag_pairs(self, limit: int = 10) -> List[TagPair]:
        """Most frequently co-occurring tag pairs, each pair counted once."""
        tags = await self.all_tags()
        pairs: List[TagPair] = []
        for tag1 in tags:
            for tag2 in tags:
                if tag1.name >= tag2.name:
                    continue
                shared = sum(1 for note in tag1.notes if note in tag2.notes)
                if shared > 0:
                    pairs.append(TagPair(tag1=tag1.name, tag2=tag2.name, count=shared))

        pairs.sort(key=lambda pair: pair.count, reverse=True)
        return pairs[:limit]

    async def _modified_times(self, paths: List[str]) -> Dict[str, datetime]:
        times: Dict[str, datetime] = {}
        for path in dict.fromkeys(paths):
            try:
                times[path] = (await self.store.stat(path)).modified_at
            except (OSError, ValueError):
                logger.warning("Cannot stat %s; skipping", path)
        return times

    async def recently_used_tags(self, days: int = 7) -> List[TagMetadata]:
        """Tags restricted to notes modified within the last ``days`` days."""
        cutoff = _utcnow() - timedelta(days=days)
        recent: List[TagMetadata] = []
        for tag in await self.all_tags():
            modified = await self._modified_times(tag.notes)
            notes = [path for path in tag.notes if path in modified and modified[path] > cutoff]
            if notes:
                recent.append(tag.model_copy(update={"count": len(notes), "notes": notes}))
        recent.sort(key=lambda tag: tag.count, reverse=True)
        return recent

    async def tag_usage_over_time(self, tag_name: str, days: int = 30) -> List[TagUsagePoint]:
        """Per-day counts of tagged notes by modification time, oldest day first."""
        tag = await self.get_tag(tag_name)
        if tag is None:
            return []

        modified = await self._modified_times(tag.notes)
        now = _utcnow()
        usage: List[TagUsagePoint] = []
        for offset in range(days - 1, -1, -1):
            day_start = now - timedelta(days=offset)
            day_end = day_start + timedelta(days=1)
            count = sum(
                1 for path in tag.notes if path in modified and day_start <= modified[path] < day_end
            )
            usage.append(TagUsagePoint(date=day_start.date().isoformat(), count=count))
        return usage

    async def export_tag_data(self) -> TagExport:
        tags = await self.all_tags()
        return TagExport(
            tags=tags,
            hierarchy=await self.hierarchy(),
            exported_at=_utcnow(),
            total_tags=len(tags),
            total_usage=sum(tag.count for tag in tags),
        )


__all__ = [
    "CACHE_DURATION_SECONDS",
    "TAG_COLORS",
    "TagCache",
    "TagManager",
    "calculate_tag_relevance",
    "extract_tags_from_content",
    "generate_tag_color",
]
