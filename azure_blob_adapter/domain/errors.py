"""Domain errors (typed) for blob storage operations.

Use cases return these inside ``Result.failure``; adapters never leak SDK
exception types past the application layer.
"""

from dataclasses import dataclass


class DomainError(Exception):
    """Base class for domain-specific errors."""


class ConfigurationError(DomainError):
    """Connection string or settings are malformed/missing."""


class ValidationError(DomainError):
    """Invalid input/domain state."""


class RequestFailedError(ValidationError):
    """Storage service rejected a request (non-404 status)."""


class InternalError(DomainError):
    """Unexpected failure without a recognisable transport status."""


@dataclass(frozen=True)
class BlobNotFoundError(DomainError):
    """Blob (or its container) does not exist."""

    message: str
    container: str = ""
    blob: str = ""

    def __str__(self) -> str:
        return self.message


class TransportError(DomainError):
    """Infrastructure-neutral wrapper of a failed storage request.

    Raised by gateways; the error classifier maps it to one of the
    errors above based on ``status_code``.
    """

    def __init__(self, message: str, status_code: int | None = None, error_code: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404
