"""Blob storage facade handed out by the DI container.

Listing and moving are delegated to their use cases; the remaining
operations are thin pass-throughs to the resolved gateway handle. Every
method returns a ``Result``; not-found is a value (``None``/``False``) where
the operation defines one, otherwise a ``BlobNotFoundError`` failure.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator, Mapping
from pathlib import Path
from typing import BinaryIO

from azure_blob_adapter.application.connection_registry import HandleProvider
from azure_blob_adapter.application.dtos import DEFAULT_PAGE_SIZE, ListBlobsRequest
from azure_blob_adapter.application.use_cases.list_blobs import ListBlobs
from azure_blob_adapter.application.use_cases.move_blob import MoveBlob
from azure_blob_adapter.config.logging import get_logger
from azure_blob_adapter.domain.errors import (
    BlobNotFoundError,
    DomainError,
    InternalError,
    ValidationError,
)
from azure_blob_adapter.domain.models import BlobEntry, MoveRequest, UploadReceipt
from azure_blob_adapter.domain.services.error_classifier import classify_error
from azure_blob_adapter.domain.types import Result

logger = get_logger(__name__, component="blob_storage_service")


class BlobStorageService:
    """List, upload, download, move and tag blobs across storage accounts."""

    def __init__(self, handles: HandleProvider, lister: ListBlobs, mover: MoveBlob) -> None:
        self.handles = handles
        self.lister = lister
        self.mover = mover

    # ===== Containers & listings =====

    async def list_containers(self, connection: str | None = None) -> Result[list[str], DomainError]:
        try:
            names = await self.handles.handle(connection).list_containers()
        except Exception as ex:
            return self._fail(ex, "list containers")
        return Result.success(names)

    async def list_blobs(
        self,
        container: str,
        include_metadata: bool = False,
        connection: str | None = None,
    ) -> Result[list[BlobEntry], DomainError]:
        return await self.lister.execute(
            ListBlobsRequest(
                container=container,
                include_metadata=include_metadata,
                page_size=self.lister.default_page_size,
                connection=connection,
            )
        )

    async def list_blob_names(
        self, container: str, connection: str | None = None
    ) -> Result[list[str], DomainError]:
        return await self.lister.list_names(container, connection)

    async def list_blobs_paginated(
        self,
        container: str,
        include_metadata: bool = False,
        page_size: int = DEFAULT_PAGE_SIZE,
        connection: str | None = None,
    ) -> Result[list[BlobEntry], DomainError]:
        return await self.lister.execute(
            ListBlobsRequest(
                container=container,
                include_metadata=include_metadata,
                page_size=page_size,
                connection=connection,
            )
        )

    def iter_blobs(
        self,
        container: str,
        include_metadata: bool = False,
        page_size: int | None = None,
        connection: str | None = None,
    ) -> AsyncIterator[BlobEntry]:
        """Lazy listing; raises ``DomainError`` on the first failing page."""
        return self.lister.iter_entries(
            self.handles.handle(connection),
            container,
            page_size=page_size,
            include_metadata=include_metadata,
        )

    # ===== Uploads =====

    async def upload_blob(
        self,
        data: str | bytes,
        container: str,
        blob: str,
        connection: str | None = None,
    ) -> Result[UploadReceipt, DomainError]:
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        try:
            receipt = await self.handles.handle(connection).upload(container, blob, payload)
        except Exception as ex:
            return self._fail(ex, "upload blob", container, blob)
        logger.info(
            "blob_uploaded",
            container=container,
            blob=blob,
            size_bytes=len(payload),
            request_id=receipt.request_id,
        )
        return Result.success(receipt)

    async def upload_blob_stream(
        self,
        stream: AsyncIterable[bytes] | BinaryIO,
        container: str,
        blob: str,
        connection: str | None = None,
    ) -> Result[None, DomainError]:
        try:
            await self.handles.handle(connection).upload_stream(container, blob, stream)
        except Exception as ex:
            return self._fail(ex, "upload stream to blob", container, blob)
        logger.info("blob_stream_uploaded", container=container, blob=blob)
        return Result.success(None)

    # ===== Metadata =====

    async def add_metadata(
        self,
        container: str,
        blob: str,
        metadata: Mapping[str, str],
        connection: str | None = None,
    ) -> Result[dict[str, str], DomainError]:
        """Merge ``metadata`` over the blob's current metadata and store it."""
        try:
            handle = self.handles.handle(connection)
            current = await handle.get_properties(container, blob)
            merged = {**current.metadata, **metadata}
            await handle.set_metadata(container, blob, merged)
        except Exception as ex:
            return self._fail(ex, "add metadata to blob", container, blob)
        logger.info("blob_metadata_updated", container=container, blob=blob, keys=sorted(metadata))
        return Result.success(merged)

    # ===== Downloads =====

    async def download_to_file(
        self,
        container: str,
        blob: str,
        local_dir: str | Path,
        connection: str | None = None,
    ) -> Result[Path | None, DomainError]:
        """Download into ``local_dir/blob``; success(None) if the blob is missing."""
        try:
            target = _target_path(local_dir, blob)
            data = await self.handles.handle(connection).download(container, blob)
            await asyncio.to_thread(_write_bytes, target, data)
        except Exception as ex:
            return self._missing_as(ex, None, "download blob", container, blob)
        logger.info("blob_downloaded", container=container, blob=blob, path=str(target))
        return Result.success(target)

    async def download_stream_to_file(
        self,
        container: str,
        blob: str,
        local_dir: str | Path,
        connection: str | None = None,
    ) -> Result[bool, DomainError]:
        """Stream chunks into ``local_dir/blob``; success(False) if missing."""
        try:
            target = _target_path(local_dir, blob)
            chunks = self.handles.handle(connection).download_chunks(container, blob)
            size = await _stream_to_file(chunks, target)
        except Exception as ex:
            return self._missing_as(ex, False, "download blob stream", container, blob)
        logger.info(
            "blob_stream_downloaded", container=container, blob=blob, size_bytes=size
        )
        return Result.success(True)

    async def download_text(
        self,
        container: str,
        blob: str,
        connection: str | None = None,
        encoding: str = "utf-8",
    ) -> Result[str | None, DomainError]:
        try:
            data = await self.handles.handle(connection).download(container, blob)
            text = data.decode(encoding)
        except Exception as ex:
            return self._missing_as(ex, None, "download blob", container, blob)
        logger.info("blob_text_downloaded", container=container, blob=blob, size_bytes=len(data))
        return Result.success(text)

    async def get_blob_url(
        self, container: str, blob: str, connection: str | None = None
    ) -> Result[str | None, DomainError]:
        try:
            handle = self.handles.handle(connection)
            exists = await handle.exists(container, blob)
        except Exception as ex:
            return self._missing_as(ex, None, "get blob url", container, blob)
        if not exists:
            logger.warning("blob_not_found", container=container, blob=blob)
            return Result.success(None)
        return Result.success(handle.blob_url(container, blob))

    # ===== Move =====

    async def move_blob(self, req: MoveRequest) -> Result[None, DomainError]:
        return await self.mover.execute(req)

    # ===== Error mapping =====

    def _fail(
        self, ex: Exception, action: str, container: str = "", blob: str = ""
    ) -> Result:
        err = classify_error(ex, action, container=container, blob=blob)
        if isinstance(err, InternalError):
            logger.exception("blob_unexpected_error", action=action, error=str(err))
        else:
            logger.error("blob_request_failed", action=action, error=str(err))
        return Result.failure(err)

    def _missing_as(
        self, ex: Exception, missing, action: str, container: str, blob: str
    ) -> Result:
        err = classify_error(ex, action, container=container, blob=blob)
        if isinstance(err, BlobNotFoundError):
            logger.warning("blob_not_found", container=container, blob=blob)
            return Result.success(missing)
        return self._fail(ex, action, container, blob)


def _target_path(local_dir: str | Path, blob: str) -> Path:
    root = Path(local_dir).resolve()
    target = (root / blob).resolve()
    if root != target and root not in target.parents:
        raise ValidationError(f'Blob name "{blob}" escapes the download directory.')
    return target


def _write_bytes(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)


async def _stream_to_file(chunks: AsyncIterator[bytes], target: Path) -> int:
    # file and parent dirs are created on the first chunk
    fh: BinaryIO | None = None
    size = 0
    try:
        async for chunk in chunks:
            if fh is None:
                fh = await asyncio.to_thread(_open_target, target)
            await asyncio.to_thread(fh.write, chunk)
            size += len(chunk)
        if fh is None:
            fh = await asyncio.to_thread(_open_target, target)
    except BaseException:
        if fh is not None:
            fh.close()
            target.unlink(missing_ok=True)
        raise
    fh.close()
    return size


def _open_target(target: Path) -> BinaryIO:
    target.parent.mkdir(parents=True, exist_ok=True)
    return open(target, "wb")
