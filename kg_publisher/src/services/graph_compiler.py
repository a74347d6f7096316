"""Compile a Note into knowledge graph entities and relations."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..models.graph import (
    CompiledGraph,
    CompileOptions,
    DataType,
    EntityKind,
    GraphEntity,
    GraphRelation,
    Op,
    RelationKind,
)
from ..models.note import Note
from .graph_ops import GraphOpsBuilder

logger = logging.getLogger(__name__)

DESCRIPTION_LENGTH = 200


class GraphCompiler:
    """
    Turns one note into a note entity plus per-tag and per-link entities.

    Types and properties are created afresh for every tag and link; nothing
    is interned across a compile, so the op count grows linearly with the
    number of tags and links.
    """

    def __init__(self, ops_builder: GraphOpsBuilder | None = None, space_id: Optional[str] = None) -> None:
        self.ops = ops_builder or GraphOpsBuilder()
        self.space_id = space_id

    def compile(self, note: Note, options: CompileOptions | None = None) -> CompiledGraph:
        options = options or CompileOptions()
        graph = CompiledGraph()

        note_entity = self._note_entity(note, options)
        graph.entities.append(note_entity)

        if options.include_tags:
            for tag in note.tags:
                tag_entity = self._tag_entity(tag, options)
                graph.entities.append(tag_entity)
                graph.relations.append(
                    self._relation(
                        note_entity.id,
                        tag_entity.id,
                        kind=RelationKind.HAS_TAG,
                        type_name="Has Tag Relation",
                        position="tag-relation",
                    )
                )

        if options.include_links:
            for link in note.links:
                link_entity = self._link_entity(link.target, options)
                graph.entities.append(link_entity)
                graph.relations.append(
                    self._relation(
                        note_entity.id,
                        link_entity.id,
                        kind=RelationKind.LINKS_TO,
                        type_name="Links To Relation",
                        position="link-relation",
                    )
                )

        logger.debug(
            "Compiled note",
            extra={
                "path": note.path,
                "entities": len(graph.entities),
                "relations": len(graph.relations),
            },
        )
        return graph

    def _entity_id(self, options: CompileOptions, *parts: str) -> Optional[str]:
        if not options.stable_ids:
            return None
        return self.ops.derive_id(*parts)

    def _note_entity(self, note: Note, options: CompileOptions) -> GraphEntity:
        ops: List[Op] = []

        title_id, title_ops = self.ops.create_property(name="Title", data_type=DataType.TEXT)
        content_id, content_ops = self.ops.create_property(name="Content", data_type=DataType.TEXT)
        created_id, created_ops = self.ops.create_property(name="Created Date", data_type=DataType.TIME)
        modified_id, modified_ops = self.ops.create_property(name="Modified Date", data_type=DataType.TIME)
        path_id, path_ops = self.ops.create_property(name="File Path", data_type=DataType.TEXT)
        for property_ops in (title_ops, content_ops, created_ops, modified_ops, path_ops):
            ops.extend(property_ops)

        type_id, type_ops = self.ops.create_type(
            name="Obsidian Note",
            properties=[title_id, content_id, created_id, modified_id, path_id],
        )
        ops.extend(type_ops)

        note_id, note_ops = self.ops.create_entity(
            name=note.title,
            description=note.content[:DESCRIPTION_LENGTH] + "...",
            types=[type_id],
            values=[
                (title_id, note.title),
                (content_id, note.content),
                (created_id, self.ops.serialize_date(note.created_date)),
                (modified_id, self.ops.serialize_date(note.modified_date)),
                (path_id, note.path),
            ],
            id=self._entity_id(options, "note", note.path),
        )
        ops.extend(note_ops)

        return GraphEntity(id=note_id, kind=EntityKind.NOTE, name=note.title, ops=ops)

    def _tag_entity(self, tag: str, options: CompileOptions) -> GraphEntity:
        name_id, name_ops = self.ops.create_property(name="Tag Name", data_type=DataType.TEXT)
        type_id, type_ops = self.ops.create_type(name="Obsidian Tag", properties=[name_id])
        tag_id, tag_ops = self.ops.create_entity(
            name=tag,
            description=f"Tag: {tag}",
            types=[type_id],
            values=[(name_id, tag)],
            id=self._entity_id(options, "tag", tag),
        )
        return GraphEntity(id=tag_id, kind=EntityKind.TAG, name=tag, ops=name_ops + type_ops + tag_ops)

    def _link_entity(self, target: str, options: CompileOptions) -> GraphEntity:
        target_id, target_ops = self.ops.create_property(name="Link Target", data_type=DataType.TEXT)
        type_id, type_ops = self.ops.create_type(name="Obsidian Link", properties=[target_id])
        link_id, link_ops = self.ops.create_entity(
            name=target,
            description=f"Link to: {target}",
            types=[type_id],
            values=[(target_id, target)],
            id=self._entity_id(options, "link", target),
        )
        return GraphEntity(id=link_id, kind=EntityKind.LINK, name=target, ops=target_ops + type_ops + link_ops)

    def _relation(
        self,
        from_entity: str,
        to_entity: str,
        *,
        kind: RelationKind,
        type_name: str,
        position: str,
    ) -> GraphRelation:
        type_id, type_ops = self.ops.create_type(name=type_name, properties=[])
        relation_id, relation_ops = self.ops.create_relation(
            from_entity=from_entity,
            to_entity=to_entity,
            relation_type=type_id,
            to_space=self.space_id,
            position=position,
        )
        return GraphRelation(
            id=relation_id,
            kind=kind,
            from_entity=from_entity,
            to_entity=to_entity,
            ops=type_ops + relation_ops,
        )


__all__ = ["GraphCompiler"]
