"""Move a blob: server-side copy, then delete the source.

Not atomic: if the delete fails after a successful copy both objects exist
and the caller has to reconcile. Nothing is rolled back.
"""

from __future__ import annotations

from dataclasses import replace

from azure_blob_adapter.application.connection_registry import HandleProvider
from azure_blob_adapter.application.ports.telemetry_port import TelemetryPort
from azure_blob_adapter.config.logging import get_logger
from azure_blob_adapter.domain.errors import (
    BlobNotFoundError,
    DomainError,
    InternalError,
    ValidationError,
)
from azure_blob_adapter.domain.models import MoveRequest
from azure_blob_adapter.domain.services.error_classifier import classify_error
from azure_blob_adapter.domain.services.metadata_limits import MAX_METADATA_BYTES, merge_metadata
from azure_blob_adapter.domain.types import Result

logger = get_logger(__name__, component="move_blob")


class MoveBlob:
    """Copy-then-delete orchestration with metadata size guarding.

    Pipeline:
    1. Validate the four location names
    2. Short-circuit when source and destination are the same object
    3. Resolve source/destination handles
    4. Read source metadata and merge the requested metadata over it
    5. Copy server-side and wait until the copy settles
    6. Delete the source if it still exists
    """

    def __init__(
        self,
        handles: HandleProvider,
        telemetry: TelemetryPort | None = None,
        max_metadata_bytes: int = MAX_METADATA_BYTES,
    ) -> None:
        self.handles = handles
        self.telemetry = telemetry
        self.max_metadata_bytes = max_metadata_bytes

    async def execute(self, req: MoveRequest) -> Result[None, DomainError]:
        if not (
            req.source_container
            and req.source_blob
            and req.destination_container
            and req.destination_blob
        ):
            logger.error("blob_move_invalid_request", request=repr(req))
            return self._fail(ValidationError("Invalid input parameters for moving blob."))

        # Compare resolved connections: None, an alias and its literal string
        # all name the same account
        req = replace(
            req,
            source_connection=self.handles.resolver.resolve(req.source_connection),
            destination_connection=self.handles.resolver.resolve(req.destination_connection),
        )
        if req.is_same_object():
            logger.info(
                "blob_move_skipped",
                reason="source and destination are the same",
                container=req.source_container,
                blob=req.source_blob,
            )
            self._metric("skipped")
            return Result.success(None)

        try:
            await self._move(req)
        except Exception as ex:
            err = classify_error(
                ex, "move blob", container=req.source_container, blob=req.source_blob
            )
            if isinstance(err, InternalError):
                logger.exception("blob_move_unexpected_error", error=str(err))
            elif isinstance(err, BlobNotFoundError):
                logger.warning(
                    "blob_not_found", container=req.source_container, blob=req.source_blob
                )
            else:
                logger.error("blob_move_failed", error=str(err))
            return self._fail(err)

        self._metric("success")
        return Result.success(None)

    async def _move(self, req: MoveRequest) -> None:
        source = self.handles.handle(req.source_connection)
        destination = self.handles.handle(req.destination_connection)

        source_url = source.blob_url(req.source_container, req.source_blob)
        logger.info(
            "blob_move_started",
            source=source_url,
            destination=destination.blob_url(req.destination_container, req.destination_blob),
        )

        props = await source.get_properties(req.source_container, req.source_blob)
        merged = merge_metadata(props.metadata, req.metadata, self.max_metadata_bytes)
        if merged.dropped_requested:
            logger.error(
                "blob_move_metadata_too_large",
                side="requested",
                max_bytes=self.max_metadata_bytes,
            )
        if merged.dropped_source:
            logger.error(
                "blob_move_metadata_too_large",
                side="source",
                max_bytes=self.max_metadata_bytes,
            )
        if merged.dropped_union:
            logger.warning(
                "blob_move_metadata_too_large",
                side="merged",
                max_bytes=self.max_metadata_bytes,
            )
        if self.telemetry is not None:
            self.telemetry.observe("blob.move.metadata_bytes", merged.size, {})

        await destination.copy_from_url(
            source_url,
            req.destination_container,
            req.destination_blob,
            merged.metadata,
        )
        await source.delete_if_exists(req.source_container, req.source_blob)

        logger.info(
            "blob_moved",
            source_blob=req.source_blob,
            destination_blob=req.destination_blob,
            source_container=req.source_container,
            destination_container=req.destination_container,
        )

    def _fail(self, err: DomainError) -> Result[None, DomainError]:
        self._metric(type(err).__name__)
        return Result.failure(err)

    def _metric(self, status: str) -> None:
        if self.telemetry is not None:
            self.telemetry.incr("blob.move.total", {"status": status})
