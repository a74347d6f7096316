"""Error types raised by the extraction and publication pipeline."""

from __future__ import annotations

from typing import Any, Dict, Optional


class PublisherError(Exception):
    """Base class for pipeline failures."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ExtractionFailure(PublisherError):
    """A single note could not be read or extracted."""


class ValidationFailure(PublisherError):
    """Required configuration is missing; raised before any I/O."""


class NetworkFailure(PublisherError):
    """The content store or calldata endpoint could not be reached."""


class TransactionFailure(PublisherError):
    """Signing or sending the anchor transaction failed."""


class StorageUnavailable(PublisherError):
    """The local metadata backing store is missing or unreadable."""


__all__ = [
    "PublisherError",
    "ExtractionFailure",
    "ValidationFailure",
    "NetworkFailure",
    "TransactionFailure",
    "StorageUnavailable",
]
