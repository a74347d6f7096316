"""Service singletons shared by the HTTP routes."""

from __future__ import annotations

from importlib import metadata
import logging
from typing import Iterable, Optional

from ..services.config import AppConfig, get_config
from ..services.database import DatabaseService
from ..services.graph_compiler import GraphCompiler
from ..services.hypergraph_client import HypergraphClient
from ..services.interfaces import IWalletClient
from ..services.note_processor import NoteProcessor
from ..services.publication import PublicationCoordinator
from ..services.publish_service import PublishService
from ..services.space_manager import SpaceManager
from ..services.tag_manager import TagManager
from ..services.vault import FileSystemVault

_vault: FileSystemVault | None = None
_tag_manager: TagManager | None = None
_client: HypergraphClient | None = None
_space_manager: SpaceManager | None = None
_publish_service: PublishService | None = None
_wallet: Optional[IWalletClient] = None

logger = logging.getLogger(__name__)

WALLET_ENTRY_POINT_GROUP = "kg_publisher.wallets"


def configure_wallet(wallet: Optional[IWalletClient]) -> None:
    """Install the signing wallet used for publishes and rebuild the publish service."""
    global _wallet, _publish_service
    _wallet = wallet
    if _publish_service is not None:
        _publish_service.debouncer.cancel_all()
    _publish_service = None


def _iter_wallet_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=WALLET_ENTRY_POINT_GROUP)


def load_wallet(reference: str, config: AppConfig) -> IWalletClient:
    """
    Build the signing wallet named by ``KG_WALLET``.

    ``reference`` is either the name of an entry point in the
    ``kg_publisher.wallets`` group or an explicit ``module:factory``. The
    factory is called with the application config and must return an
    ``IWalletClient``.
    """
    entry = next((ep for ep in _iter_wallet_entry_points() if ep.name == reference), None)
    if entry is None:
        if ":" not in reference:
            raise ValueError(f"Unknown wallet '{reference}'; expected an entry point name or module:factory")
        entry = metadata.EntryPoint(name="wallet", value=reference, group=WALLET_ENTRY_POINT_GROUP)

    factory = entry.load()
    wallet = factory(config)
    if not isinstance(wallet, IWalletClient):
        raise TypeError(f"Wallet factory '{reference}' did not return an IWalletClient")
    return wallet


def install_configured_wallet(config: AppConfig) -> Optional[IWalletClient]:
    """Install the wallet named in config, if any. Called from the app lifespan."""
    if not config.wallet:
        if config.private_key:
            logger.warning("KG_PRIVATE_KEY is set but KG_WALLET is not; publishing is disabled")
        return None
    wallet = load_wallet(config.wallet, config)
    configure_wallet(wallet)
    logger.info("Signing wallet installed", extra={"wallet": config.wallet, "address": wallet.address})
    return wallet


def get_vault() -> FileSystemVault:
    global _vault
    if _vault is None:
        _vault = FileSystemVault(config=get_config())
    return _vault


def get_tag_manager() -> TagManager:
    """One tag manager (and tag cache) per vault session."""
    global _tag_manager
    if _tag_manager is None:
        _tag_manager = TagManager(get_vault())
    return _tag_manager


def get_note_processor() -> NoteProcessor:
    return NoteProcessor(get_vault())


def get_graph_compiler() -> GraphCompiler:
    return GraphCompiler(space_id=get_config().space_id)


def get_hypergraph_client() -> HypergraphClient:
    global _client
    if _client is None:
        config = get_config()
        _client = HypergraphClient(config.api_origin, timeout=config.request_timeout)
    return _client


def get_space_manager() -> SpaceManager:
    global _space_manager
    if _space_manager is None:
        _space_manager = SpaceManager(get_hypergraph_client(), DatabaseService(get_config().db_path))
    return _space_manager


def get_publish_service() -> PublishService:
    global _publish_service
    if _publish_service is None:
        config = get_config()
        client = get_hypergraph_client()
        coordinator = PublicationCoordinator(
            content_store=client,
            anchor_client=client,
            wallet=_wallet,
            space_id=config.space_id,
            network=config.network,
        )
        _publish_service = PublishService(get_vault(), coordinator, config)
    return _publish_service


def reset_dependencies() -> None:
    """Drop all cached singletons (used after config reloads and in tests)."""
    global _vault, _tag_manager, _client, _space_manager, _publish_service, _wallet
    if _publish_service is not None:
        _publish_service.debouncer.cancel_all()
    _vault = _tag_manager = _client = _space_manager = _publish_service = None
    _wallet = None


__all__ = [
    "configure_wallet",
    "get_graph_compiler",
    "get_hypergraph_client",
    "get_note_processor",
    "get_publish_service",
    "get_space_manager",
    "get_tag_manager",
    "get_vault",
    "install_configured_wallet",
    "load_wallet",
    "reset_dependencies",
]
