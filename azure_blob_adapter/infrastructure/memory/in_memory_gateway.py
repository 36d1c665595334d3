"""In-memory blob gateway (local dev, tests).

Accounts live in a shared ``InMemoryBlobStore`` so copies between two
"connections" behave like cross-account copies. Listings are lexicographic
and paged with a name marker, like the real service.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import BinaryIO

from azure_blob_adapter.application.ports.blob_gateway_port import BlobGatewayPort
from azure_blob_adapter.domain.errors import TransportError
from azure_blob_adapter.domain.models import BlobEntry, BlobPage, BlobProperties, UploadReceipt
from azure_blob_adapter.domain.services.connection_string import parse_connection_string

URL_SCHEME = "memory://"
CHUNK_SIZE = 4 * 1024 * 1024


@dataclass
class StoredBlob:
    data: bytes
    metadata: dict[str, str] = field(default_factory=dict)
    created_on: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_modified: datetime = field(default_factory=lambda: datetime.now(UTC))


class InMemoryBlobStore:
    """account -> container -> blob name -> StoredBlob"""

    def __init__(self) -> None:
        self.accounts: dict[str, dict[str, dict[str, StoredBlob]]] = {}

    def account(self, name: str) -> dict[str, dict[str, StoredBlob]]:
        return self.accounts.setdefault(name, {})

    def create_container(self, account: str, container: str) -> None:
        self.account(account).setdefault(container, {})

    def put(
        self,
        account: str,
        container: str,
        blob: str,
        data: bytes = b"",
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        """Seed a blob, creating the container if needed."""
        self.create_container(account, container)
        self.account(account)[container][blob] = StoredBlob(data=data, metadata=dict(metadata or {}))

    def gateway_factory(self):
        """Connection string -> gateway; pluggable into ``ConnectionRegistry``."""

        def factory(connection_string: str) -> InMemoryBlobGateway:
            account = parse_connection_string(connection_string)
            return InMemoryBlobGateway(self, account.account_name)

        return factory


class InMemoryBlobGateway(BlobGatewayPort):
    """BlobGatewayPort over an ``InMemoryBlobStore`` account."""

    def __init__(self, store: InMemoryBlobStore, account_name: str) -> None:
        self._store = store
        self.account_name = account_name
        self.closed = False

    async def list_containers(self) -> list[str]:
        return sorted(self._store.account(self.account_name))

    async def list_blob_page(
        self,
        container: str,
        page_size: int,
        continuation_token: str | None = None,
        include_metadata: bool = False,
    ) -> BlobPage:
        blobs = self._container(container)
        names = sorted(blobs)
        if continuation_token:
            names = [n for n in names if n > continuation_token]
        chunk = names[:page_size]
        entries = tuple(
            BlobEntry(
                name=name,
                created_on=blobs[name].created_on,
                last_modified=blobs[name].last_modified,
                metadata=dict(blobs[name].metadata) if include_metadata else None,
            )
            for name in chunk
        )
        token = chunk[-1] if len(names) > len(chunk) else None
        return BlobPage(entries=entries, continuation_token=token)

    async def get_properties(self, container: str, blob: str) -> BlobProperties:
        stored = self._blob(container, blob)
        return BlobProperties(
            name=blob,
            created_on=stored.created_on,
            last_modified=stored.last_modified,
            metadata=dict(stored.metadata),
            size=len(stored.data),
        )

    async def set_metadata(self, container: str, blob: str, metadata: Mapping[str, str]) -> None:
        stored = self._blob(container, blob)
        stored.metadata = dict(metadata)
        stored.last_modified = datetime.now(UTC)

    async def exists(self, container: str, blob: str) -> bool:
        return blob in self._store.account(self.account_name).get(container, {})

    def blob_url(self, container: str, blob: str) -> str:
        return f"{URL_SCHEME}{self.account_name}/{container}/{blob}"

    async def upload(self, container: str, blob: str, data: bytes) -> UploadReceipt:
        stored = self._write(container, blob, bytes(data))
        return UploadReceipt(url=self.blob_url(container, blob), last_modified=stored.last_modified)

    async def upload_stream(
        self, container: str, blob: str, stream: AsyncIterable[bytes] | BinaryIO
    ) -> None:
        if isinstance(stream, AsyncIterable):
            data = b"".join([chunk async for chunk in stream])
        else:
            data = stream.read()
        self._write(container, blob, data)

    async def download(self, container: str, blob: str) -> bytes:
        return self._blob(container, blob).data

    async def download_chunks(self, container: str, blob: str) -> AsyncIterator[bytes]:
        data = self._blob(container, blob).data
        for offset in range(0, len(data), CHUNK_SIZE):
            yield data[offset : offset + CHUNK_SIZE]

    async def copy_from_url(
        self,
        source_url: str,
        container: str,
        blob: str,
        metadata: Mapping[str, str],
    ) -> None:
        if not source_url.startswith(URL_SCHEME):
            raise TransportError(f"Unsupported copy source: {source_url}", status_code=400)
        account, src_container, src_blob = source_url[len(URL_SCHEME) :].split("/", 2)
        source = InMemoryBlobGateway(self._store, account)._blob(src_container, src_blob)
        self._container(container)[blob] = StoredBlob(data=source.data, metadata=dict(metadata))

    async def delete_if_exists(self, container: str, blob: str) -> bool:
        blobs = self._store.account(self.account_name).get(container, {})
        return blobs.pop(blob, None) is not None

    async def close(self) -> None:
        self.closed = True

    def _container(self, container: str) -> dict[str, StoredBlob]:
        containers = self._store.account(self.account_name)
        if container not in containers:
            raise TransportError(
                "The specified container does not exist.",
                status_code=404,
                error_code="ContainerNotFound",
            )
        return containers[container]

    def _blob(self, container: str, blob: str) -> StoredBlob:
        blobs = self._container(container)
        if blob not in blobs:
            raise TransportError(
                "The specified blob does not exist.",
                status_code=404,
                error_code="BlobNotFound",
            )
        return blobs[blob]

    def _write(self, container: str, blob: str, data: bytes) -> StoredBlob:
        blobs = self._container(container)
        previous = blobs.get(blob)
        stored = StoredBlob(data=data)
        if previous is not None:
            stored.created_on = previous.created_on
        blobs[blob] = stored
        return stored
