"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ..models.settings import Network, NetworkConfig

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_VAULT_PATH = PROJECT_ROOT / "data" / "vault"
DEFAULT_DB_PATH = PROJECT_ROOT / "data" / "kg_publisher.db"

NETWORKS = {
    Network.TESTNET: NetworkConfig(
        name=Network.TESTNET,
        api_origin="https://hypergraph-v2-testnet.up.railway.app",
        chain_id=421614,
        block_explorer="https://sepolia.arbiscan.io",
    ),
    Network.MAINNET: NetworkConfig(
        name=Network.MAINNET,
        api_origin="https://hypergraph-v2.up.railway.app",
        chain_id=42161,
        block_explorer="https://arbiscan.io",
    ),
}

_FALSEY = {"0", "false", "no", "off"}


def network_config(network: Network) -> NetworkConfig:
    """Return endpoints and chain parameters for a network."""
    return NETWORKS[network]


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    vault_path: Path = Field(..., description="Root directory of the Markdown vault")
    network: Network = Field(default=Network.TESTNET, description="Target network")
    api_origin: Optional[str] = Field(
        default=None,
        validate_default=True,
        description="Hypergraph API base URL; defaults to the network's origin",
    )
    private_key: Optional[str] = Field(
        default=None,
        description="Wallet private key used by the signing service",
    )
    space_id: Optional[str] = Field(default=None, description="Target knowledge graph space")
    wallet: Optional[str] = Field(
        default=None,
        description="Signing wallet: a kg_publisher.wallets entry point name or a module:factory reference",
    )
    include_tags: bool = Field(default=True, description="Publish tags as entities")
    include_links: bool = Field(default=True, description="Publish links as entities")
    stable_ids: bool = Field(
        default=False,
        description="Derive entity ids from note path/tag/link target",
    )
    auto_publish: bool = Field(default=False, description="Publish on note modification")
    excluded_folders: List[str] = Field(default_factory=list)
    db_path: Path = Field(default=DEFAULT_DB_PATH, description="Local SQLite registry")
    publish_debounce_seconds: float = Field(default=5.0, ge=0.0)
    request_timeout: float = Field(default=30.0, gt=0.0)

    @field_validator("vault_path", mode="before")
    @classmethod
    def _normalize_vault_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("VAULT_PATH is required")
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("db_path", mode="before")
    @classmethod
    def _normalize_db_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            return DEFAULT_DB_PATH
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser()

    @field_validator("network", mode="before")
    @classmethod
    def _normalize_network(cls, value: str | Network | None) -> Network:
        if value is None or value == "":
            return Network.TESTNET
        if isinstance(value, Network):
            return value
        try:
            return Network(str(value).strip().upper())
        except ValueError as exc:
            raise ValueError("KG_NETWORK must be TESTNET or MAINNET") from exc

    @field_validator("private_key", "space_id", "wallet", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("excluded_folders", mode="before")
    @classmethod
    def _split_folders(cls, value: str | List[str] | None) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [folder.strip() for folder in value if folder and folder.strip()]

    @field_validator("api_origin")
    @classmethod
    def _default_api_origin(cls, value: Optional[str], info: ValidationInfo) -> str:
        if value and value.strip():
            return value.strip().rstrip("/")
        network = info.data.get("network", Network.TESTNET)
        return NETWORKS[network].api_origin

    @property
    def network_config(self) -> NetworkConfig:
        return NETWORKS[self.network]


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _read_flag(key: str, default: bool) -> bool:
    raw = _read_env(key)
    if raw is None:
        return default
    return raw.strip().lower() not in _FALSEY


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    return AppConfig(
        vault_path=_read_env("VAULT_PATH", str(DEFAULT_VAULT_PATH)),
        network=_read_env("KG_NETWORK", Network.TESTNET.value),
        api_origin=_read_env("KG_API_ORIGIN"),
        private_key=_read_env("KG_PRIVATE_KEY"),
        space_id=_read_env("KG_SPACE_ID"),
        wallet=_read_env("KG_WALLET"),
        include_tags=_read_flag("KG_INCLUDE_TAGS", True),
        include_links=_read_flag("KG_INCLUDE_LINKS", True),
        stable_ids=_read_flag("KG_STABLE_IDS", False),
        auto_publish=_read_flag("KG_AUTO_PUBLISH", False),
        excluded_folders=_read_env("KG_EXCLUDED_FOLDERS", ""),
        db_path=_read_env("KG_DB_PATH", str(DEFAULT_DB_PATH)),
        publish_debounce_seconds=float(_read_env("KG_PUBLISH_DEBOUNCE_SECONDS", "5.0")),
    )


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "network_config",
    "NETWORKS",
    "PROJECT_ROOT",
    "DEFAULT_DB_PATH",
    "DEFAULT_VAULT_PATH",
]
