"""Map transport failures to domain outcomes.

404 is a signal (not found). Every other transport failure, with or without
a status, is a failed request carrying the upstream message. Anything that is
not a transport error is unexpected.
"""

from __future__ import annotations

from ..errors import (
    BlobNotFoundError,
    DomainError,
    InternalError,
    RequestFailedError,
    TransportError,
)


def classify_error(
    exc: BaseException,
    action: str,
    container: str = "",
    blob: str = "",
) -> DomainError:
    """Translate ``exc`` raised while performing ``action``.

    Args:
        exc: Exception raised by a gateway or use case
        action: Human readable verb phrase ("move blob", "list blobs")
        container: Container involved, used in not-found messages
        blob: Blob involved, used in not-found messages

    Returns:
        DomainError subclass; domain errors other than TransportError are
        returned unchanged
    """
    if isinstance(exc, TransportError):
        if exc.is_not_found:
            return BlobNotFoundError(
                message=not_found_message(container, blob) if container else exc.message,
                container=container,
                blob=blob,
            )
        return RequestFailedError(f"Failed to {action}: {exc.message}")

    if isinstance(exc, DomainError):
        return exc

    return InternalError(f"Failed to {action}: unexpected {type(exc).__name__}: {exc}")


def not_found_message(container: str, blob: str = "") -> str:
    if blob:
        return f'Blob "{blob}" not found in container "{container}"'
    return f'Container "{container}" not found'
