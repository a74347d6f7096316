"""HTTP client for the Hypergraph API: op log upload, anchor calldata and space reads."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..models.graph import Op
from ..models.publish import AnchorPayload
from ..models.settings import Network
from ..models.space import Governance, KnowledgeGraphSpace, SpaceStats
from .errors import NetworkFailure
from .interfaces import IAnchorClient, IContentStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _from_epoch_millis(value: Any) -> Optional[datetime]:
    """API timestamps are epoch milliseconds; 0 or missing means unknown."""
    if isinstance(value, (int, float)) and value > 0:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return None


class HypergraphClient(IContentStore, IAnchorClient):
    """
    Thin async wrapper over the Hypergraph REST endpoints.

    A fresh ``httpx.AsyncClient`` is opened per call. Transport errors and
    non-2xx responses surface as ``NetworkFailure``.
    """

    def __init__(
        self,
        api_origin: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_origin = api_origin.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.api_origin}{path}"
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Hypergraph request rejected",
                extra={"url": url, "status_code": exc.response.status_code},
            )
            raise NetworkFailure(
                f"Request to {path} failed: {exc.response.status_code} {exc.response.reason_phrase}",
                {"url": url, "status_code": exc.response.status_code},
            ) from exc
        except httpx.TimeoutException as exc:
            logger.error("Hypergraph request timed out", extra={"url": url})
            raise NetworkFailure(f"Request to {path} timed out", {"url": url}) from exc
        except httpx.HTTPError as exc:
            logger.error("Hypergraph request failed", extra={"url": url, "error": str(exc)})
            raise NetworkFailure(f"Request to {path} failed: {exc}", {"url": url}) from exc
        except ValueError as exc:
            raise NetworkFailure(f"Invalid JSON from {path}", {"url": url}) from exc
        if not isinstance(body, dict):
            raise NetworkFailure(f"Expected a JSON object from {path}", {"url": url})
        return body

    async def publish_operation_log(
        self, *, name: str, ops: List[Op], author_address: str, network: Network
    ) -> str:
        payload = {
            "name": name,
            "ops": ops,
            "author": author_address,
            "network": network.value,
        }
        body = await self._request("POST", "/ipfs/upload-edit", json=payload)
        content_id = body.get("cid")
        if not content_id:
            raise NetworkFailure("Upload response is missing a content id", {"response": body})
        logger.info("Uploaded op log", extra={"cid": content_id, "ops": len(ops)})
        return content_id

    async def get_anchor_transaction_payload(self, space_id: str, content_id: str) -> AnchorPayload:
        body = await self._request("POST", f"/space/{space_id}/edit/calldata", json={"cid": content_id})
        try:
            return AnchorPayload(to=body["to"], data=body["data"])
        except (KeyError, TypeError) as exc:
            raise NetworkFailure(
                "Calldata response is missing 'to' or 'data'",
                {"space_id": space_id, "response": body},
            ) from exc

    async def get_space_details(self, space_id: str) -> KnowledgeGraphSpace:
        body = await self._request("GET", f"/space/{space_id}")
        return KnowledgeGraphSpace(
            id=space_id,
            name=body.get("name") or "Unknown Space",
            description=body.get("description") or "",
            is_public=bool(body.get("isPublic", False)),
            created_at=_from_epoch_millis(body.get("createdAt")),
            updated_at=_from_epoch_millis(body.get("updatedAt")),
            member_count=body.get("memberCount") or 1,
            governance=body.get("governance") or Governance.PERSONAL,
        )

    async def get_space_stats(self, space_id: str) -> SpaceStats:
        body = await self._request("GET", f"/space/{space_id}/stats")
        return SpaceStats(
            entity_count=body.get("entityCount") or 0,
            relation_count=body.get("relationCount") or 0,
            last_update=_from_epoch_millis(body.get("lastUpdate")),
        )


__all__ = ["HypergraphClient"]
