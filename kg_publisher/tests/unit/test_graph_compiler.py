from datetime import datetime, timezone

from kg_publisher.src.models.graph import CompileOptions, EntityKind, RelationKind
from kg_publisher.src.models.note import Link, Note
from kg_publisher.src.services.graph_compiler import GraphCompiler
from kg_publisher.src.services.graph_ops import (
    GraphOpsBuilder,
    derive_id,
    encode_base58,
    generate_id,
    serialize_date,
)

CREATED = datetime(2025, 1, 10, 9, 0, 0, 123456, tzinfo=timezone.utc)


def make_note(tags=("x", "y"), links=("A", "B", "C")) -> Note:
    return Note(
        title="Demo",
        content="word " * 60,
        path="notes/demo.md",
        created_date=CREATED,
        modified_date=CREATED,
        tags=list(tags),
        links=[Link(target=target, display_text=target) for target in links],
    )


def names_of(ops):
    names = []
    for op in ops:
        if op["type"] == "UPDATE_ENTITY":
            names.append(op["entity"]["values"][0]["value"])
    return names


def test_serialize_date_uses_millisecond_utc() -> None:
    assert serialize_date(CREATED) == "2025-01-10T09:00:00.123Z"
    assert serialize_date(datetime(2025, 1, 10)) == "2025-01-10T00:00:00.000Z"


def test_ids_are_base58() -> None:
    assert encode_base58(b"\x00\x01") == "12"
    assert generate_id() != generate_id()
    assert derive_id("tag", "x") == derive_id("tag", "x")
    assert derive_id("tag", "x") != derive_id("tag", "y")


def test_counts_follow_tags_and_links() -> None:
    graph = GraphCompiler(space_id="space-1").compile(make_note())

    assert len(graph.entities) == 6
    assert len(graph.relations) == 5
    assert [entity.kind for entity in graph.entities] == [
        EntityKind.NOTE,
        EntityKind.TAG,
        EntityKind.TAG,
        EntityKind.LINK,
        EntityKind.LINK,
        EntityKind.LINK,
    ]
    assert [relation.kind for relation in graph.relations][:2] == [RelationKind.HAS_TAG] * 2


def test_include_tags_false_drops_tag_entities() -> None:
    graph = GraphCompiler().compile(make_note(), CompileOptions(include_tags=False))

    assert len(graph.entities) == 4
    assert all(entity.kind != EntityKind.TAG for entity in graph.entities)
    assert all(relation.kind == RelationKind.LINKS_TO for relation in graph.relations)


def test_note_entity_op_sequence() -> None:
    note_entity = GraphCompiler().compile(make_note(tags=(), links=())).entities[0]

    assert names_of(note_entity.ops) == [
        "Title",
        "Content",
        "Created Date",
        "Modified Date",
        "File Path",
        "Obsidian Note",
        "Demo",
    ]
    entity_op = [op for op in note_entity.ops if op["type"] == "UPDATE_ENTITY"][-1]
    values = [value["value"] for value in entity_op["entity"]["values"]]
    assert values[1] == ("word " * 60)[:200] + "..."
    assert "2025-01-10T09:00:00.123Z" in values
    assert "notes/demo.md" in values


def test_relations_carry_position_and_space() -> None:
    graph = GraphCompiler(space_id="space-1").compile(make_note(tags=("x",), links=("Other",)))

    relation_ops = [
        op["relation"]
        for relation in graph.relations
        for op in relation.ops
        if op["type"] == "CREATE_RELATION" and "position" in op["relation"]
    ]
    assert [(rel["position"], rel["toSpace"]) for rel in relation_ops] == [
        ("tag-relation", "space-1"),
        ("link-relation", "space-1"),
    ]
    assert names_of(graph.relations[0].ops) == ["Has Tag Relation"]
    assert names_of(graph.relations[1].ops) == ["Links To Relation"]
    assert graph.relations[0].from_entity == graph.entities[0].id
    assert graph.relations[0].to_entity == graph.entities[1].id


def test_tag_and_link_entities_are_not_interned() -> None:
    graph = GraphCompiler().compile(make_note(tags=("x", "x"), links=()))

    tag_entities = graph.entities[1:]
    assert tag_entities[0].id != tag_entities[1].id
    assert names_of(tag_entities[0].ops) == ["Tag Name", "Obsidian Tag", "x"]


def test_stable_ids_repeat_across_compiles() -> None:
    options = CompileOptions(stable_ids=True)
    compiler = GraphCompiler(GraphOpsBuilder())

    first = compiler.compile(make_note(), options)
    second = compiler.compile(make_note(), options)

    assert [entity.id for entity in first.entities] == [entity.id for entity in second.entities]


def test_fresh_ids_by_default() -> None:
    compiler = GraphCompiler()

    first = compiler.compile(make_note())
    second = compiler.compile(make_note())

    assert first.entities[0].id != second.entities[0].id


def test_flattened_ops_list_entities_before_relations() -> None:
    graph = GraphCompiler().compile(make_note(tags=("x",), links=()))

    entity_ops = sum((entity.ops for entity in graph.entities), [])
    relation_ops = sum((relation.ops for relation in graph.relations), [])
    assert graph.ops == entity_ops + relation_ops
