from datetime import datetime, timedelta, timezone

import pytest

from kg_publisher.src.models.tag import TagStatistics
from kg_publisher.src.services import tag_manager as tag_manager_module
from kg_publisher.src.services.tag_manager import (
    TAG_COLORS,
    TagManager,
    calculate_tag_relevance,
    extract_tags_from_content,
    generate_tag_color,
)

EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_extract_tags_from_content_reads_hashtags_and_frontmatter_list() -> None:
    content = "---\ntags: [a, 'b']\n---\n#c text #c"

    assert extract_tags_from_content(content) == ["c", "a", "b"]


def test_tag_color_is_deterministic() -> None:
    assert generate_tag_color("a") == "#FFB6C1"
    assert generate_tag_color("ab") == "#FF6B6B"
    assert generate_tag_color("project/alpha") == generate_tag_color("project/alpha")
    assert generate_tag_color("anything") in TAG_COLORS


def test_relevance_is_capped_at_one() -> None:
    assert calculate_tag_relevance("python is great python", "python") == 1.0
    assert calculate_tag_relevance("nothing relevant here", "python") == 0.0


@pytest.mark.asyncio
async def test_cache_serves_repeat_reads_within_ttl(make_store, clock) -> None:
    store = make_store({"one.md": "#a", "two.md": "#a #b"})
    manager = TagManager(store, clock=clock)

    first = await manager.all_tags()
    second = await manager.all_tags()

    assert store.list_calls == 1
    assert [tag.name for tag in first] == ["a", "b"]
    assert first[0].count == 2
    assert first[0].notes == ["one.md", "two.md"]
    assert second == first

    clock.now += 301
    await manager.all_tags()
    assert store.list_calls == 2


@pytest.mark.asyncio
async def test_returned_tags_do_not_alias_the_cache(make_store, clock) -> None:
    manager = TagManager(make_store({"a.md": "#alpha", "b.md": "#alpha #beta"}), clock=clock)

    listed = await manager.all_tags()
    listed[0].count = 99
    listed[0].notes.append("ghost.md")
    single = await manager.get_tag("beta")
    single.notes.clear()

    alpha = await manager.get_tag("alpha")
    assert (alpha.count, alpha.notes) == (2, ["a.md", "b.md"])
    assert (await manager.get_tag("beta")).notes == ["b.md"]


@pytest.mark.asyncio
async def test_rename_rewrites_whole_word_and_invalidates_cache(make_store, clock) -> None:
    store = make_store({"note.md": "text #old and #older", "other.md": "untouched"})
    manager = TagManager(store, clock=clock)
    await manager.all_tags()

    result = await manager.rename("old", "new")

    assert result.success is True
    assert result.updated_files == ["note.md"]
    assert store.notes["note.md"] == "text #new and #older"
    assert manager.cache.last_refresh is None

    names = {tag.name for tag in await manager.all_tags()}
    assert store.list_calls == 3
    assert "new" in names and "old" not in names


@pytest.mark.asyncio
async def test_delete_removes_tag_and_collapses_whitespace(make_store, clock) -> None:
    store = make_store({"note.md": "a  #gone\n\nb"})
    manager = TagManager(store, clock=clock)

    result = await manager.delete("gone")

    assert result.updated_files == ["note.md"]
    assert store.notes["note.md"] == "a b"


@pytest.mark.asyncio
async def test_related_tags_ranked_by_overlap(make_store, clock) -> None:
    store = make_store({"n1.md": "#a #b", "n2.md": "#a #c", "n3.md": "#a #b"})
    manager = TagManager(store, clock=clock)

    related = await manager.related_tags("a")

    assert [item.tag for item in related] == ["b", "c"]
    assert related[0].strength == pytest.approx(2 / 3)
    assert related[1].strength == pytest.approx(1 / 3)
    assert await manager.related_tags("unknown") == []


@pytest.mark.asyncio
async def test_suggest_tags_skips_existing_and_weak_matches(make_store, clock) -> None:
    store = make_store({"lib.md": "#python #zzz"})
    manager = TagManager(store, clock=clock)

    assert await manager.suggest_tags_for_content("python is great python") == ["python"]
    assert await manager.suggest_tags_for_content("#python is great") == []


@pytest.mark.asyncio
async def test_hierarchy_groups_children_by_parent(make_store, clock) -> None:
    store = make_store({"n.md": "#proj/alpha #proj/beta #solo"})
    manager = TagManager(store, clock=clock)

    hierarchy = await manager.hierarchy()

    assert set(hierarchy) == {"proj"}
    assert sorted(hierarchy["proj"]) == ["proj/alpha", "proj/beta"]


@pytest.mark.asyncio
async def test_statistics_for_empty_and_populated_vaults(make_store, clock) -> None:
    assert await TagManager(make_store(), clock=clock).statistics() == TagStatistics()

    stats = await TagManager(make_store({"1.md": "#a #b", "2.md": "#a"}), clock=clock).statistics()

    assert stats.total_tags == 2
    assert stats.total_usage == 3
    assert stats.average_tags_per_note == 1.5
    assert stats.most_used_tag == "a"
    assert stats.least_used_tag == "b"
    assert stats.hierarchical_tags == 0


@pytest.mark.asyncio
async def test_top_tag_pairs_counts_shared_notes(make_store, clock) -> None:
    store = make_store({"1.md": "#a #b", "2.md": "#a #b", "3.md": "#a #c"})
    manager = TagManager(store, clock=clock)

    pairs = await manager.top_tag_pairs()

    assert [(pair.tag1, pair.tag2, pair.count) for pair in pairs] == [("a", "b", 2), ("a", "c", 1)]


@pytest.mark.asyncio
async def test_usage_over_time_and_recent_tags(make_store, clock, monkeypatch) -> None:
    monkeypatch.setattr(tag_manager_module, "_utcnow", lambda: EPOCH + timedelta(hours=12))
    store = make_store({"new.md": "#fresh #shared", "old.md": "#stale #shared"})
    store.modified["old.md"] = EPOCH - timedelta(days=30)
    manager = TagManager(store, clock=clock)

    usage = await manager.tag_usage_over_time("fresh", days=3)
    recent = await manager.recently_used_tags(days=7)

    assert [(point.date, point.count) for point in usage] == [
        ("2024-12-30", 0),
        ("2024-12-31", 1),
        ("2025-01-01", 0),
    ]
    recent_by_name = {tag.name: tag for tag in recent}
    assert set(recent_by_name) == {"fresh", "shared"}
    assert recent_by_name["shared"].notes == ["new.md"]
    assert await manager.tag_usage_over_time("missing") == []


@pytest.mark.asyncio
async def test_export_includes_totals(make_store, clock) -> None:
    manager = TagManager(make_store({"1.md": "#a #p/q"}), clock=clock)

    export = await manager.export_tag_data()

    assert export.total_tags == 2
    assert export.total_usage == 2
    assert export.hierarchy == {"p": ["p/q"]}
