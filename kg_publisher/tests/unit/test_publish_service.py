import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from kg_publisher.src.models.publish import PublishResult
from kg_publisher.src.models.settings import PublishToggles
from kg_publisher.src.services.config import AppConfig
from kg_publisher.src.services.errors import NetworkFailure, ValidationFailure
from kg_publisher.src.services.publish_service import PublishDebouncer, PublishService, is_excluded

PUBLISHED_AT = datetime(2025, 2, 1, tzinfo=timezone.utc)


def make_config(tmp_path: Path, **overrides) -> AppConfig:
    values = {
        "vault_path": tmp_path,
        "private_key": "0xkey",
        "space_id": "space-1",
        "excluded_folders": "templates/, archive/",
        "publish_debounce_seconds": 0.05,
    }
    values.update(overrides)
    return AppConfig(**values)


@pytest.fixture
def coordinator() -> MagicMock:
    coordinator = MagicMock()

    async def publish(entities, relations):
        return PublishResult(
            content_id="bafy",
            entities_created=len(entities),
            relations_created=len(relations),
            timestamp=PUBLISHED_AT,
        )

    coordinator.publish = AsyncMock(side_effect=publish)
    return coordinator


@pytest.fixture
def store(make_store):
    return make_store(
        {
            "demo.md": "---\ntags: [x]\n---\n# Demo\nbody #y [[Other]]",
            "templates/daily.md": "# Template",
            "notes/second.md": "# Second",
        }
    )


def test_is_excluded_uses_plain_prefix() -> None:
    assert is_excluded("templates/daily.md", ["templates/"])
    assert is_excluded("templates-old/a.md", ["templates"])
    assert not is_excluded("notes/a.md", ["templates/"])


def test_validate_settings_names_missing_setting(tmp_path: Path, store, coordinator) -> None:
    service = PublishService(store, coordinator, make_config(tmp_path, private_key=None))

    with pytest.raises(ValidationFailure) as excinfo:
        service.validate_settings()

    assert excinfo.value.details == {"setting": "KG_PRIVATE_KEY"}

    service = PublishService(store, coordinator, make_config(tmp_path, space_id=""))
    with pytest.raises(ValidationFailure):
        service.validate_settings()


@pytest.mark.asyncio
async def test_publish_note_compiles_with_config_toggles(tmp_path: Path, store, coordinator) -> None:
    service = PublishService(store, coordinator, make_config(tmp_path))

    result = await service.publish_note("demo.md")

    entities, relations = coordinator.publish.await_args.args
    assert len(entities) == 4
    assert len(relations) == 3
    assert result.entities_created == 4
    assert service.last_sync_timestamp == PUBLISHED_AT


@pytest.mark.asyncio
async def test_publish_note_honours_request_toggles(tmp_path: Path, store, coordinator) -> None:
    service = PublishService(store, coordinator, make_config(tmp_path))

    await service.publish_note("demo.md", PublishToggles(include_tags=False))

    entities, relations = coordinator.publish.await_args.args
    assert len(entities) == 2
    assert len(relations) == 1


@pytest.mark.asyncio
async def test_publish_note_without_settings_does_no_io(tmp_path: Path, store, coordinator) -> None:
    service = PublishService(store, coordinator, make_config(tmp_path, space_id=None))

    with pytest.raises(ValidationFailure):
        await service.publish_note("demo.md")

    assert store.read_calls == 0
    coordinator.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_publish_all_skips_excluded_and_collects_errors(tmp_path: Path, store, coordinator) -> None:
    original = coordinator.publish.side_effect

    async def flaky(entities, relations):
        if entities[0].name == "Second":
            raise NetworkFailure("upload failed")
        return await original(entities, relations)

    coordinator.publish.side_effect = flaky
    service = PublishService(store, coordinator, make_config(tmp_path))

    batch = await service.publish_all_notes()

    assert batch.published_paths == ["demo.md"]
    assert [failure.path for failure in batch.errors] == ["notes/second.md"]
    assert "upload failed" in batch.errors[0].error
    assert coordinator.publish.await_count == 2


@pytest.mark.asyncio
async def test_sync_status_tracks_pending_notes(tmp_path: Path, store, coordinator) -> None:
    service = PublishService(store, coordinator, make_config(tmp_path))
    await service.publish_note("demo.md")

    status = await service.sync_status()
    assert (status.total_notes, status.published_notes, status.pending_notes) == (2, 1, 1)
    assert status.last_sync_timestamp == PUBLISHED_AT

    store.modified["demo.md"] = PUBLISHED_AT + timedelta(minutes=1)
    status = await service.sync_status()
    assert status.pending_notes == 2


@pytest.mark.asyncio
async def test_debouncer_fires_only_last_trigger_per_key() -> None:
    calls = []

    async def callback(key: str) -> None:
        calls.append(key)

    debouncer = PublishDebouncer(0.1, callback)
    debouncer.schedule("a.md")
    debouncer.schedule("a.md")
    debouncer.schedule("b.md")
    assert debouncer.pending() == ["a.md", "b.md"]

    await asyncio.sleep(0.06)
    debouncer.schedule("a.md")
    await asyncio.sleep(0.07)
    assert calls == ["b.md"]

    await asyncio.sleep(0.1)
    await debouncer.drain()
    assert sorted(calls) == ["a.md", "b.md"]
    assert debouncer.pending() == []


@pytest.mark.asyncio
async def test_debouncer_cancel_all_drops_pending() -> None:
    callback = AsyncMock()
    debouncer = PublishDebouncer(0.01, callback)
    debouncer.schedule("a.md")

    debouncer.cancel_all()
    await asyncio.sleep(0.03)

    callback.assert_not_awaited()


@pytest.mark.asyncio
async def test_schedule_publish_runs_after_quiet_period(tmp_path: Path, store, coordinator) -> None:
    service = PublishService(store, coordinator, make_config(tmp_path, auto_publish=True))

    service.schedule_publish("demo.md")
    service.schedule_publish("demo.md")
    service.schedule_publish("templates/daily.md")
    assert service.debouncer.pending() == ["demo.md"]

    await asyncio.sleep(0.1)
    await service.debouncer.drain()

    assert coordinator.publish.await_count == 1


def test_schedule_publish_ignored_when_auto_publish_off(tmp_path: Path, store, coordinator) -> None:
    service = PublishService(store, coordinator, make_config(tmp_path, auto_publish=False))

    assert service.schedule_publish("demo.md") is False
    assert service.debouncer.pending() == []


@pytest.mark.asyncio
async def test_failed_auto_publishes_keep_one_error_per_note(tmp_path: Path, store, coordinator) -> None:
    coordinator.publish.side_effect = NetworkFailure("upload failed")
    service = PublishService(store, coordinator, make_config(tmp_path))

    for _ in range(3):
        with pytest.raises(NetworkFailure):
            await service._publish_quietly("demo.md")

    status = await service.sync_status()
    assert status.errors == ["demo.md: upload failed"]

    coordinator.publish.side_effect = None
    coordinator.publish.return_value = PublishResult(content_id="bafy", timestamp=PUBLISHED_AT)
    await service._publish_quietly("demo.md")

    assert (await service.sync_status()).errors == []
