"""Application DTOs for listing and transfer use cases."""

from dataclasses import dataclass

from azure_blob_adapter.domain.models import MoveRequest

DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True)
class ListBlobsRequest:
    """Request for a flat listing of one container."""

    container: str
    include_metadata: bool = False
    page_size: int = DEFAULT_PAGE_SIZE
    connection: str | None = None


@dataclass(frozen=True)
class DownloadRequest:
    """Request for downloading a blob to a local directory."""

    container: str
    blob: str
    local_dir: str
    connection: str | None = None


__all__ = ["DEFAULT_PAGE_SIZE", "DownloadRequest", "ListBlobsRequest", "MoveRequest"]
