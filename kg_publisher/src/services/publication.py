"""Publication coordinator: op log upload, anchor calldata, transaction."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import List, Optional, Sequence

from ..models.graph import GraphEntity, GraphRelation, Op
from ..models.publish import PublishResult
from ..models.settings import Network
from .errors import NetworkFailure, PublisherError, TransactionFailure, ValidationFailure
from .interfaces import IAnchorClient, IContentStore, IWalletClient

logger = logging.getLogger(__name__)

EDIT_NAME_PREFIX = "Obsidian Knowledge Update"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def flatten_ops(entities: Sequence[GraphEntity], relations: Sequence[GraphRelation]) -> List[Op]:
    """All entity ops, then all relation ops, in compile order."""
    ops: List[Op] = []
    for entity in entities:
        ops.extend(entity.ops)
    for relation in relations:
        ops.extend(relation.ops)
    return ops


def edit_name(timestamp: datetime) -> str:
    iso = timestamp.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"{EDIT_NAME_PREFIX} - {iso}"


class PublicationCoordinator:
    """
    Publishes one compiled edit atomically.

    The three remote stages run strictly in order and any failure aborts the
    whole publish. Nothing is retried and nothing is persisted locally.
    """

    def __init__(
        self,
        content_store: IContentStore,
        anchor_client: IAnchorClient,
        wallet: Optional[IWalletClient],
        space_id: Optional[str],
        network: Network = Network.TESTNET,
    ) -> None:
        self.content_store = content_store
        self.anchor_client = anchor_client
        self.wallet = wallet
        self.space_id = space_id
        self.network = network

    def validate(self) -> None:
        """
        Check required configuration before any I/O.

        Raises:
            ValidationFailure: If no signing wallet or space id is configured
        """
        if self.wallet is None:
            raise ValidationFailure("No signing wallet configured", {"setting": "wallet"})
        if not self.space_id:
            raise ValidationFailure("Space ID is required", {"setting": "space_id"})

    async def publish(
        self, entities: Sequence[GraphEntity], relations: Sequence[GraphRelation]
    ) -> PublishResult:
        self.validate()
        ops = flatten_ops(entities, relations)
        timestamp = _utcnow()

        try:
            content_id = await self.content_store.publish_operation_log(
                name=edit_name(timestamp),
                ops=ops,
                author_address=self.wallet.address,
                network=self.network,
            )
            payload = await self.anchor_client.get_anchor_transaction_payload(self.space_id, content_id)
        except PublisherError:
            logger.exception("Error publishing to knowledge graph", extra={"space_id": self.space_id})
            raise
        except Exception as exc:
            logger.exception("Error publishing to knowledge graph", extra={"space_id": self.space_id})
            raise NetworkFailure(f"Publish failed: {exc}", {"space_id": self.space_id}) from exc

        try:
            transaction_result = await self.wallet.sign_and_send_transaction(
                to=payload.to, value=0, data=payload.data
            )
        except PublisherError:
            logger.exception("Anchor transaction failed", extra={"space_id": self.space_id})
            raise
        except Exception as exc:
            logger.exception("Anchor transaction failed", extra={"space_id": self.space_id})
            raise TransactionFailure(
                f"Transaction failed: {exc}",
                {"space_id": self.space_id, "content_id": content_id, "to": payload.to},
            ) from exc

        logger.info(
            "Published edit",
            extra={
                "content_id": content_id,
                "space_id": self.space_id,
                "ops": len(ops),
                "entities": len(entities),
                "relations": len(relations),
            },
        )
        return PublishResult(
            content_id=content_id,
            transaction_result=transaction_result,
            entities_created=len(entities),
            relations_created=len(relations),
            timestamp=timestamp,
        )


__all__ = ["PublicationCoordinator", "edit_name", "flatten_ops"]
