"""Pydantic models for network selection and publisher toggles."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Network(str, Enum):
    """The two fixed deployment environments."""
    MAINNET = "MAINNET"
    TESTNET = "TESTNET"


class NetworkConfig(BaseModel):
    """Endpoints and chain parameters for one network."""
    model_config = ConfigDict(frozen=True)

    name: Network
    api_origin: str = Field(..., description="Base URL of the hypergraph API")
    chain_id: int
    block_explorer: str
    gas_limit: int = 500_000
    gas_price: str = "0.1"


class PublishToggles(BaseModel):
    """Compilation switches exposed to callers of the publish API."""
    include_tags: Optional[bool] = None
    include_links: Optional[bool] = None
    excluded_folders: List[str] = Field(default_factory=list)
