"""Connection registry and resolver.

The registry is the only shared mutable state in the adapter. It is
append-only: handles are created on first use and never replaced.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from azure_blob_adapter.application.ports.blob_gateway_port import BlobGatewayPort
from azure_blob_adapter.config.logging import get_logger
from azure_blob_adapter.domain.errors import ConfigurationError
from azure_blob_adapter.domain.services.connection_string import redact

logger = get_logger(__name__, component="connection_registry")

GatewayFactory = Callable[[str], BlobGatewayPort]


class ConnectionRegistry:
    """Maps a connection string to a lazily created gateway handle."""

    def __init__(self, factory: GatewayFactory) -> None:
        self._factory = factory
        self._handles: dict[str, BlobGatewayPort] = {}

    def get_handle(self, connection_string: str) -> BlobGatewayPort:
        """Return the cached handle for ``connection_string``, creating it once.

        Raises:
            ConfigurationError: if the connection string is malformed
        """
        handle = self._handles.get(connection_string)
        if handle is not None:
            return handle

        try:
            created = self._factory(connection_string)
        except ConfigurationError as ex:
            logger.error("blob_client_init_failed", connection=redact(connection_string), error=str(ex))
            raise
        except Exception as ex:
            logger.error("blob_client_init_failed", connection=redact(connection_string), error=str(ex))
            raise ConfigurationError(f"Failed to get Blob Service instance: {ex}") from ex

        # First writer wins; a concurrent duplicate is discarded
        handle = self._handles.setdefault(connection_string, created)
        if handle is created:
            logger.info("blob_client_created", connection=redact(connection_string))
        return handle

    def __contains__(self, connection_string: object) -> bool:
        return connection_string in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    async def aclose(self) -> None:
        """Close every cached handle (process shutdown only)."""
        for connection_string, handle in list(self._handles.items()):
            try:
                await handle.close()
            except Exception as ex:
                logger.warning(
                    "blob_client_close_failed", connection=redact(connection_string), error=str(ex)
                )


class ConnectionResolver:
    """Turns an optional per-call connection into a concrete connection string.

    ``None``/empty -> default connection string; a configured account alias
    (e.g. ``"xmlService"``) -> that account's connection string; anything
    else is taken literally.
    """

    def __init__(self, default_connection: str, aliases: Mapping[str, str] | None = None) -> None:
        if not default_connection:
            raise ConfigurationError("Invalid Azure Blob Storage configuration.")
        self.default_connection = default_connection
        self._aliases = {k: v for k, v in (aliases or {}).items() if v}

    def resolve(self, connection: str | None = None) -> str:
        if not connection:
            return self.default_connection
        return self._aliases.get(connection, connection)


class HandleProvider:
    """Resolver + registry in one call: ``provider.handle(connection)``."""

    def __init__(self, registry: ConnectionRegistry, resolver: ConnectionResolver) -> None:
        self.registry = registry
        self.resolver = resolver

    def handle(self, connection: str | None = None) -> BlobGatewayPort:
        return self.registry.get_handle(self.resolver.resolve(connection))
