"""Metadata size guarding for copy operations.

The service caps the metadata sent in request headers at 8 KiB. Size is
measured on the compact JSON rendering encoded as UTF-8.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass

MAX_METADATA_BYTES = 8 * 1024


def metadata_size(metadata: Mapping[str, str] | None) -> int:
    """Serialized size of ``metadata`` in bytes (0 for None/empty)."""
    if not metadata:
        return 0
    return len(json.dumps(dict(metadata), separators=(",", ":"), ensure_ascii=False).encode("utf-8"))


@dataclass(frozen=True)
class MetadataMerge:
    """Merged metadata plus what had to be dropped to get there."""

    metadata: dict[str, str]
    dropped_requested: bool = False
    dropped_source: bool = False
    dropped_union: bool = False

    @property
    def size(self) -> int:
        return metadata_size(self.metadata)


def merge_metadata(
    source: Mapping[str, str] | None,
    requested: Mapping[str, str] | None,
    max_bytes: int = MAX_METADATA_BYTES,
) -> MetadataMerge:
    """Merge ``requested`` over ``source`` (requested wins on collisions).

    Each side is capped on its own: an oversized side is dropped entirely.
    If both sides fit but their union does not, the requested additions are
    dropped and the source metadata is kept as-is.
    """
    src = dict(source or {})
    req = dict(requested or {})
    dropped_requested = dropped_source = dropped_union = False

    if req and metadata_size(req) > max_bytes:
        req = {}
        dropped_requested = True
    if src and metadata_size(src) > max_bytes:
        src = {}
        dropped_source = True

    merged = {**src, **req}
    if req and metadata_size(merged) > max_bytes:
        merged = src
        dropped_union = True

    return MetadataMerge(
        metadata=merged,
        dropped_requested=dropped_requested,
        dropped_source=dropped_source,
        dropped_union=dropped_union,
    )
