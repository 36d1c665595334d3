"""Azure Blob Storage gateway (async SDK).

One instance wraps one ``azure.storage.blob.aio.BlobServiceClient`` bound to
one connection string. SDK errors are translated into ``TransportError`` so
nothing Azure-specific leaks into the application layer.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, BinaryIO

from azure.core.exceptions import AzureError, HttpResponseError, ResourceNotFoundError
from azure.storage.blob.aio import BlobServiceClient

from azure_blob_adapter.application.ports.blob_gateway_port import BlobGatewayPort
from azure_blob_adapter.config.logging import get_logger
from azure_blob_adapter.domain.errors import ConfigurationError, RequestFailedError, TransportError
from azure_blob_adapter.domain.models import BlobEntry, BlobPage, BlobProperties, UploadReceipt
from azure_blob_adapter.domain.services.connection_string import parse_connection_string

logger = get_logger(__name__, component="azure_blob_gateway")


@dataclass
class AzureGatewayConfig:
    """Tuning knobs for the Azure gateway."""

    copy_poll_interval_s: float = 1.0
    copy_timeout_s: float = 300.0
    max_concurrency: int = 4  # parallel connections for large uploads/downloads


@contextmanager
def _azure_errors() -> Iterator[None]:
    try:
        yield
    except HttpResponseError as ex:
        raise TransportError(
            ex.message or str(ex),
            status_code=ex.status_code,
            error_code=str(getattr(ex, "error_code", None) or ""),
        ) from ex
    except AzureError as ex:
        # No response at all (DNS, connection reset, ...)
        raise TransportError(ex.message or str(ex)) from ex


class AzureBlobGateway(BlobGatewayPort):
    """BlobGatewayPort backed by the Azure Storage Blob SDK.

    Features:
    - Page-at-a-time flat listings with continuation tokens
    - Server-side copies that wait for pending cross-account copies
    - Idempotent deletes
    """

    def __init__(self, client: Any, account_name: str, cfg: AzureGatewayConfig | None = None) -> None:
        self._client = client
        self._cfg = cfg or AzureGatewayConfig()
        self.account_name = account_name

    @classmethod
    def from_connection_string(
        cls, connection_string: str, cfg: AzureGatewayConfig | None = None
    ) -> AzureBlobGateway:
        """Build a gateway from a connection string.

        Raises:
            ConfigurationError: if the string is malformed or the SDK rejects it
        """
        account = parse_connection_string(connection_string)
        try:
            client = BlobServiceClient.from_connection_string(connection_string)
        except (ValueError, AzureError) as ex:
            raise ConfigurationError(f"Failed to get Blob Service instance: {ex}") from ex
        return cls(client, account.account_name, cfg)

    # ===== Listings =====

    async def list_containers(self) -> list[str]:
        with _azure_errors():
            return [c.name async for c in self._client.list_containers()]

    async def list_blob_page(
        self,
        container: str,
        page_size: int,
        continuation_token: str | None = None,
        include_metadata: bool = False,
    ) -> BlobPage:
        container_client = self._client.get_container_client(container)
        with _azure_errors():
            pages = container_client.list_blobs(
                include=["metadata"] if include_metadata else None,
                results_per_page=page_size,
            ).by_page(continuation_token=continuation_token)
            try:
                page = await pages.__anext__()
            except StopAsyncIteration:
                return BlobPage(entries=())
            entries = tuple([_entry_from_item(item, include_metadata) async for item in page])
        return BlobPage(entries=entries, continuation_token=pages.continuation_token or None)

    # ===== Properties & metadata =====

    async def get_properties(self, container: str, blob: str) -> BlobProperties:
        blob_client = self._blob(container, blob)
        with _azure_errors():
            props = await blob_client.get_blob_properties()
        return BlobProperties(
            name=blob,
            created_on=props.creation_time,
            last_modified=props.last_modified,
            metadata=dict(props.metadata or {}),
            size=props.size,
            etag=props.etag,
        )

    async def set_metadata(self, container: str, blob: str, metadata: Mapping[str, str]) -> None:
        with _azure_errors():
            await self._blob(container, blob).set_blob_metadata(dict(metadata))

    async def exists(self, container: str, blob: str) -> bool:
        with _azure_errors():
            return bool(await self._blob(container, blob).exists())

    def blob_url(self, container: str, blob: str) -> str:
        return self._blob(container, blob).url

    # ===== Uploads & downloads =====

    async def upload(self, container: str, blob: str, data: bytes) -> UploadReceipt:
        blob_client = self._blob(container, blob)
        with _azure_errors():
            resp = await blob_client.upload_blob(
                data, overwrite=True, max_concurrency=self._cfg.max_concurrency
            )
        return UploadReceipt(
            url=blob_client.url,
            request_id=resp.get("request_id"),
            etag=resp.get("etag"),
            last_modified=resp.get("last_modified"),
        )

    async def upload_stream(
        self, container: str, blob: str, stream: AsyncIterable[bytes] | BinaryIO
    ) -> None:
        with _azure_errors():
            await self._blob(container, blob).upload_blob(
                stream, overwrite=True, max_concurrency=self._cfg.max_concurrency
            )

    async def download(self, container: str, blob: str) -> bytes:
        with _azure_errors():
            downloader = await self._blob(container, blob).download_blob(
                max_concurrency=self._cfg.max_concurrency
            )
            return await downloader.readall()

    async def download_chunks(self, container: str, blob: str) -> AsyncIterator[bytes]:
        with _azure_errors():
            downloader = await self._blob(container, blob).download_blob()
            async for chunk in downloader.chunks():
                yield chunk

    # ===== Copy & delete =====

    async def copy_from_url(
        self,
        source_url: str,
        container: str,
        blob: str,
        metadata: Mapping[str, str],
    ) -> None:
        blob_client = self._blob(container, blob)
        with _azure_errors():
            copy = await blob_client.start_copy_from_url(source_url, metadata=dict(metadata))
            status = copy.get("copy_status")
            description = None
            waited = 0.0
            while status == "pending":
                if waited >= self._cfg.copy_timeout_s:
                    await blob_client.abort_copy(copy.get("copy_id"))
                    raise RequestFailedError(
                        f"Copy to {container}/{blob} still pending after {waited:.0f}s; aborted"
                    )
                await asyncio.sleep(self._cfg.copy_poll_interval_s)
                waited += self._cfg.copy_poll_interval_s
                props = await blob_client.get_blob_properties()
                status = props.copy.status
                description = props.copy.status_description
                logger.debug("blob_copy_pending", container=container, blob=blob, status=status)
            if status not in ("success", None):
                raise RequestFailedError(
                    f"Copy to {container}/{blob} ended with status {status}: {description}"
                )

    async def delete_if_exists(self, container: str, blob: str) -> bool:
        blob_client = self._blob(container, blob)
        with _azure_errors():
            try:
                await blob_client.delete_blob()
            except ResourceNotFoundError:
                return False
        return True

    async def close(self) -> None:
        await self._client.close()

    def _blob(self, container: str, blob: str) -> Any:
        return self._client.get_blob_client(container=container, blob=blob)


def _entry_from_item(item: Any, include_metadata: bool) -> BlobEntry:
    return BlobEntry(
        name=item.name,
        created_on=item.creation_time,
        last_modified=item.last_modified,
        metadata=dict(item.metadata or {}) if include_metadata else None,
    )
