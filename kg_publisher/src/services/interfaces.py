"""Abstract collaborator interfaces consumed by the pipeline."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from ..models.graph import Op
from ..models.note import NoteStat, StructuralMetadata
from ..models.publish import AnchorPayload
from ..models.settings import Network


class INoteStore(ABC):
    """Host note storage. Identifiers are vault-relative paths."""

    @abstractmethod
    async def read_note_text(self, identifier: str) -> str: ...

    @abstractmethod
    async def get_structural_metadata(self, identifier: str) -> Optional[StructuralMetadata]: ...

    @abstractmethod
    async def list_all_note_identifiers(self) -> List[str]: ...

    @abstractmethod
    async def write_note_text(self, identifier: str, new_text: str) -> None: ...

    @abstractmethod
    async def stat(self, identifier: str) -> NoteStat: ...


class IContentStore(ABC):
    @abstractmethod
    async def publish_operation_log(
        self, *, name: str, ops: List[Op], author_address: str, network: Network
    ) -> str:
        """Upload an op log and return its content identifier."""
        ...


class IAnchorClient(ABC):
    @abstractmethod
    async def get_anchor_transaction_payload(self, space_id: str, content_id: str) -> AnchorPayload:
        """Return the calldata anchoring content_id in space_id."""
        ...


class IWalletClient(ABC):
    """Signing service. Concrete wallets are supplied by the caller."""

    @property
    @abstractmethod
    def address(self) -> str: ...

    @abstractmethod
    async def sign_and_send_transaction(self, *, to: str, value: int, data: str) -> Any: ...
