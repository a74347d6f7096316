from unittest.mock import AsyncMock, MagicMock

import pytest

from kg_publisher.src.models.graph import EntityKind, GraphEntity, GraphRelation, RelationKind
from kg_publisher.src.models.publish import AnchorPayload
from kg_publisher.src.models.settings import Network
from kg_publisher.src.services.errors import NetworkFailure, TransactionFailure, ValidationFailure
from kg_publisher.src.services.publication import PublicationCoordinator, flatten_ops


def make_graph():
    entities = [
        GraphEntity(id="note", kind=EntityKind.NOTE, name="Demo", ops=[{"n": 1}, {"n": 2}]),
        GraphEntity(id="tag", kind=EntityKind.TAG, name="x", ops=[{"n": 3}]),
    ]
    relations = [
        GraphRelation(
            id="rel",
            kind=RelationKind.HAS_TAG,
            from_entity="note",
            to_entity="tag",
            ops=[{"n": 4}],
        )
    ]
    return entities, relations


@pytest.fixture
def collaborators():
    content_store = MagicMock()
    content_store.publish_operation_log = AsyncMock(return_value="bafy-cid")
    anchor = MagicMock()
    anchor.get_anchor_transaction_payload = AsyncMock(
        return_value=AnchorPayload(to="0xspace", data="0xcalldata")
    )
    wallet = MagicMock()
    wallet.address = "0xauthor"
    wallet.sign_and_send_transaction = AsyncMock(return_value="0xtxhash")
    return content_store, anchor, wallet


def test_flatten_ops_orders_entities_then_relations() -> None:
    entities, relations = make_graph()

    assert flatten_ops(entities, relations) == [{"n": 1}, {"n": 2}, {"n": 3}, {"n": 4}]


@pytest.mark.asyncio
async def test_publish_runs_three_stages_in_order(collaborators) -> None:
    content_store, anchor, wallet = collaborators
    coordinator = PublicationCoordinator(content_store, anchor, wallet, "space-1", Network.TESTNET)
    entities, relations = make_graph()

    result = await coordinator.publish(entities, relations)

    kwargs = content_store.publish_operation_log.await_args.kwargs
    assert kwargs["name"].startswith("Obsidian Knowledge Update - ")
    assert kwargs["name"].endswith("Z")
    assert kwargs["ops"] == [{"n": 1}, {"n": 2}, {"n": 3}, {"n": 4}]
    assert kwargs["author_address"] == "0xauthor"
    assert kwargs["network"] == Network.TESTNET
    anchor.get_anchor_transaction_payload.assert_awaited_once_with("space-1", "bafy-cid")
    wallet.sign_and_send_transaction.assert_awaited_once_with(to="0xspace", value=0, data="0xcalldata")

    assert result.content_id == "bafy-cid"
    assert result.transaction_result == "0xtxhash"
    assert result.entities_created == 2
    assert result.relations_created == 1


@pytest.mark.asyncio
async def test_missing_space_fails_before_any_io(collaborators) -> None:
    content_store, anchor, wallet = collaborators
    coordinator = PublicationCoordinator(content_store, anchor, wallet, None)

    with pytest.raises(ValidationFailure):
        await coordinator.publish(*make_graph())

    content_store.publish_operation_log.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_wallet_fails_validation(collaborators) -> None:
    content_store, anchor, _ = collaborators
    coordinator = PublicationCoordinator(content_store, anchor, None, "space-1")

    with pytest.raises(ValidationFailure) as excinfo:
        await coordinator.publish(*make_graph())

    assert excinfo.value.message == "No signing wallet configured"
    assert excinfo.value.details == {"setting": "wallet"}


@pytest.mark.asyncio
async def test_upload_failure_aborts_publish(collaborators) -> None:
    content_store, anchor, wallet = collaborators
    content_store.publish_operation_log.side_effect = NetworkFailure("upload failed")
    coordinator = PublicationCoordinator(content_store, anchor, wallet, "space-1")

    with pytest.raises(NetworkFailure):
        await coordinator.publish(*make_graph())

    anchor.get_anchor_transaction_payload.assert_not_awaited()
    wallet.sign_and_send_transaction.assert_not_awaited()


@pytest.mark.asyncio
async def test_unexpected_upload_error_is_wrapped(collaborators) -> None:
    content_store, anchor, wallet = collaborators
    content_store.publish_operation_log.side_effect = RuntimeError("boom")
    coordinator = PublicationCoordinator(content_store, anchor, wallet, "space-1")

    with pytest.raises(NetworkFailure) as excinfo:
        await coordinator.publish(*make_graph())

    assert "boom" in excinfo.value.message


@pytest.mark.asyncio
async def test_signing_failure_becomes_transaction_failure(collaborators) -> None:
    content_store, anchor, wallet = collaborators
    wallet.sign_and_send_transaction.side_effect = RuntimeError("insufficient funds")
    coordinator = PublicationCoordinator(content_store, anchor, wallet, "space-1")

    with pytest.raises(TransactionFailure) as excinfo:
        await coordinator.publish(*make_graph())

    assert excinfo.value.details["content_id"] == "bafy-cid"
