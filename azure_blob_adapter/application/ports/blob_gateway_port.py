"""Blob gateway port: one storage account, async, exception-based.

Gateways raise ``TransportError`` for failed requests (``RequestFailedError``
for a copy the service reports as failed); use cases classify those into
``Result`` failures.
"""

from collections.abc import AsyncIterable, AsyncIterator, Mapping
from typing import BinaryIO, Protocol, runtime_checkable

from azure_blob_adapter.domain.models import BlobPage, BlobProperties, UploadReceipt


@runtime_checkable
class BlobGatewayPort(Protocol):
    """Connection handle bound to a single connection string."""

    account_name: str

    async def list_containers(self) -> list[str]:
        """Names of all containers in the account."""
        ...

    async def list_blob_page(
        self,
        container: str,
        page_size: int,
        continuation_token: str | None = None,
        include_metadata: bool = False,
    ) -> BlobPage:
        """Fetch one page of a flat listing."""
        ...

    async def get_properties(self, container: str, blob: str) -> BlobProperties:
        """Fetch properties (incl. metadata) of a single blob."""
        ...

    async def set_metadata(self, container: str, blob: str, metadata: Mapping[str, str]) -> None:
        """Replace the metadata of a blob."""
        ...

    async def exists(self, container: str, blob: str) -> bool:
        """Whether the blob exists."""
        ...

    def blob_url(self, container: str, blob: str) -> str:
        """Absolute URL of a blob (no network access)."""
        ...

    async def upload(self, container: str, blob: str, data: bytes) -> UploadReceipt:
        """Upload bytes, overwriting any existing blob."""
        ...

    async def upload_stream(
        self, container: str, blob: str, stream: AsyncIterable[bytes] | BinaryIO
    ) -> None:
        """Upload from a stream, overwriting any existing blob."""
        ...

    async def download(self, container: str, blob: str) -> bytes:
        """Download the full blob content."""
        ...

    def download_chunks(self, container: str, blob: str) -> AsyncIterator[bytes]:
        """Stream the blob content chunk by chunk."""
        ...

    async def copy_from_url(
        self,
        source_url: str,
        container: str,
        blob: str,
        metadata: Mapping[str, str],
    ) -> None:
        """Server-side copy from ``source_url`` into container/blob.

        Returns once the copy left the pending state; a failed or aborted
        copy raises ``RequestFailedError``.
        """
        ...

    async def delete_if_exists(self, container: str, blob: str) -> bool:
        """Delete a blob; returns False if it was already absent."""
        ...

    async def close(self) -> None:
        """Release the underlying client."""
        ...
