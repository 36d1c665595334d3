"""Flat blob listing with pagination and optional metadata enrichment.

Pages are requested one at a time with the previous page's continuation
token. With ``include_metadata`` every entry of a page gets its properties
fetched concurrently; the page is emitted only once all fetches finished,
in the page's original order.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from azure_blob_adapter.application.connection_registry import HandleProvider
from azure_blob_adapter.application.dtos import DEFAULT_PAGE_SIZE, ListBlobsRequest
from azure_blob_adapter.application.ports.blob_gateway_port import BlobGatewayPort
from azure_blob_adapter.application.ports.telemetry_port import TelemetryPort
from azure_blob_adapter.config.logging import get_logger
from azure_blob_adapter.domain.errors import DomainError, InternalError, ValidationError
from azure_blob_adapter.domain.models import BlobEntry
from azure_blob_adapter.domain.services.error_classifier import classify_error
from azure_blob_adapter.domain.types import Result

logger = get_logger(__name__, component="list_blobs")


class ListBlobs:
    """Pagination engine over a container's flat listing."""

    def __init__(
        self,
        handles: HandleProvider,
        telemetry: TelemetryPort | None = None,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.handles = handles
        self.telemetry = telemetry
        self.default_page_size = default_page_size

    async def iter_entries(
        self,
        handle: BlobGatewayPort,
        container: str,
        page_size: int | None = None,
        include_metadata: bool = False,
    ) -> AsyncIterator[BlobEntry]:
        """Yield every blob of ``container`` in listing order.

        Raises:
            ValidationError: on an empty container name or non-positive page size
            DomainError: classified transport error of the failing page
        """
        size = page_size if page_size is not None else self.default_page_size
        if not container:
            raise ValidationError("Container name is required for listing.")
        if size <= 0:
            raise ValidationError(f"Page size must be positive, got {size}.")

        token: str | None = None
        position = 1
        while True:
            try:
                page = await handle.list_blob_page(
                    container,
                    page_size=size,
                    continuation_token=token,
                    include_metadata=include_metadata,
                )
                entries = list(page.entries)
                if include_metadata and entries:
                    entries = await self._with_properties(handle, container, entries)
            except Exception as ex:
                err = classify_error(ex, "list blobs", container=container)
                self._log_failure(err, container)
                if err is ex:
                    raise
                raise err from ex

            self._metric("blob.list.pages", {"container": container})
            if entries:
                logger.info(
                    "blob_page_listed",
                    container=container,
                    first=position,
                    last=position + len(entries) - 1,
                )
                position += len(entries)

            for entry in entries:
                yield entry

            token = page.continuation_token
            if not token:
                break

    async def execute(self, req: ListBlobsRequest) -> Result[list[BlobEntry], DomainError]:
        """Collect the whole listing; partial results are discarded on failure."""
        try:
            handle = self.handles.handle(req.connection)
            entries = [
                entry
                async for entry in self.iter_entries(
                    handle,
                    req.container,
                    page_size=req.page_size,
                    include_metadata=req.include_metadata,
                )
            ]
        except DomainError as err:
            return Result.failure(err)

        self._metric("blob.list.entries", {"container": req.container}, value=len(entries))
        return Result.success(entries)

    async def list_names(
        self, container: str, connection: str | None = None
    ) -> Result[list[str], DomainError]:
        r = await self.execute(
            ListBlobsRequest(
                container=container, page_size=self.default_page_size, connection=connection
            )
        )
        if not r.ok:
            assert r.error is not None
            return Result.failure(r.error)
        assert r.value is not None
        return Result.success([entry.name for entry in r.value])

    async def _with_properties(
        self, handle: BlobGatewayPort, container: str, entries: list[BlobEntry]
    ) -> list[BlobEntry]:
        # gather() preserves argument order, so results line up with the page
        props = await asyncio.gather(
            *(handle.get_properties(container, entry.name) for entry in entries)
        )
        return [
            BlobEntry(
                name=entry.name,
                created_on=p.created_on,
                last_modified=p.last_modified,
                metadata=dict(p.metadata),
            )
            for entry, p in zip(entries, props)
        ]

    def _log_failure(self, err: DomainError, container: str) -> None:
        if isinstance(err, InternalError):
            logger.exception("blob_list_unexpected_error", container=container, error=str(err))
        else:
            logger.error("blob_list_failed", container=container, error=str(err))

    def _metric(self, name: str, tags: dict[str, str], value: float | None = None) -> None:
        if self.telemetry is None:
            return
        if value is None:
            self.telemetry.incr(name, tags)
        else:
            self.telemetry.observe(name, value, tags)
