# azure_blob_adapter/domain/models.py
# Domain models must be pure (no I/O, no external libs)
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class BlobEntry:
    """
    Immutable record produced by blob listings.

    - name:          blob name inside its container (may contain "/")
    - created_on:    creation timestamp reported by the service, if any
    - last_modified: last modification timestamp, if any
    - metadata:      user metadata; None when the listing did not ask for it
    """

    name: str
    created_on: datetime | None = None
    last_modified: datetime | None = None
    metadata: Mapping[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "createdOn": self.created_on.isoformat() if self.created_on else None,
            "lastModified": self.last_modified.isoformat() if self.last_modified else None,
        }
        if self.metadata is not None:
            out["metadata"] = dict(self.metadata)
        return out


@dataclass(frozen=True)
class BlobPage:
    """One page of a flat listing plus the marker for the next one."""

    entries: tuple[BlobEntry, ...]
    continuation_token: str | None = None


@dataclass(frozen=True)
class BlobProperties:
    """Subset of blob properties the adapter cares about."""

    name: str
    created_on: datetime | None = None
    last_modified: datetime | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)
    size: int | None = None
    etag: str | None = None


@dataclass(frozen=True)
class MoveRequest:
    """Copy-then-delete request between two (possibly remote) locations.

    Connections are optional; ``None`` means the configured default account.
    """

    source_container: str
    source_blob: str
    destination_container: str
    destination_blob: str
    metadata: Mapping[str, str] | None = None
    source_connection: str | None = None
    destination_connection: str | None = None

    def is_same_object(self) -> bool:
        return (
            self.source_container == self.destination_container
            and self.source_blob == self.destination_blob
            and self.source_connection == self.destination_connection
        )


@dataclass(frozen=True)
class UploadReceipt:
    """Outcome of a single-shot upload."""

    url: str
    request_id: str | None = None
    etag: str | None = None
    last_modified: datetime | None = None


@dataclass(frozen=True)
class StorageAccountConfig:
    """Parsed storage account connection string."""

    connection_string: str
    account_name: str
    account_key: str = ""
    endpoint_suffix: str = ""
    default_endpoints_protocol: str = ""
    blob_endpoint: str = ""
