"""Pairwise relationship inference across extracted notes."""

from __future__ import annotations

import logging
import re
from typing import List, Sequence, Set

from ..models.note import Note
from ..models.relationship import RelationshipEdge, RelationshipKind

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.3
MIN_WORD_LENGTH = 4
WHITESPACE = re.compile(r"\s+")


def _significant_words(content: str) -> Set[str]:
    return {word for word in WHITESPACE.split(content.lower()) if len(word) >= MIN_WORD_LENGTH}


def content_similarity(content1: str, content2: str) -> float:
    """Jaccard similarity of the sets of lower-cased words longer than 3 characters."""
    words1 = _significant_words(content1 or "")
    words2 = _significant_words(content2 or "")
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


def links_to(source: Note, target: Note) -> bool:
    """True when any link in ``source`` names ``target`` by title."""
    return any(link.target == target.title for link in source.links)


def shared_tag_strength(note1: Note, note2: Note) -> float:
    shared = set(note1.tags) & set(note2.tags)
    if not shared:
        return 0.0
    return len(shared) / max(len(set(note1.tags)), len(set(note2.tags)))


def infer_relationships(notes: Sequence[Note]) -> List[RelationshipEdge]:
    """
    Compare every unordered pair of notes once (i < j).

    A pair can yield up to three edges: a direct link (strength 1.0) when
    either note links to the other's title, shared tags (overlap over the
    larger tag set) and content similarity above the threshold.
    """
    edges: List[RelationshipEdge] = []

    for i, note1 in enumerate(notes):
        for note2 in notes[i + 1:]:
            if links_to(note1, note2) or links_to(note2, note1):
                edges.append(
                    RelationshipEdge(
                        source=note1.path,
                        target=note2.path,
                        kind=RelationshipKind.DIRECT_LINK,
                        strength=1.0,
                    )
                )

            tag_strength = shared_tag_strength(note1, note2)
            if tag_strength > 0:
                edges.append(
                    RelationshipEdge(
                        source=note1.path,
                        target=note2.path,
                        kind=RelationshipKind.SHARED_TAGS,
                        strength=tag_strength,
                    )
                )

            similarity = content_similarity(note1.content, note2.content)
            if similarity > SIMILARITY_THRESHOLD:
                edges.append(
                    RelationshipEdge(
                        source=note1.path,
                        target=note2.path,
                        kind=RelationshipKind.CONTENT_SIMILARITY,
                        strength=similarity,
                    )
                )

    logger.debug("Inferred %d relationships across %d notes", len(edges), len(notes))
    return edges


__all__ = ["content_similarity", "infer_relationships", "links_to", "shared_tag_strength"]
