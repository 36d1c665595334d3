"""Dependency injection container with environment-driven wiring.

The container owns the connection registry; use cases and the storage
service receive it (through a ``HandleProvider``) instead of reaching for a
process-wide singleton.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable

from azure_blob_adapter.application.blob_storage_service import BlobStorageService
from azure_blob_adapter.application.connection_registry import (
    ConnectionRegistry,
    ConnectionResolver,
    GatewayFactory,
    HandleProvider,
)
from azure_blob_adapter.application.ports import TelemetryPort
from azure_blob_adapter.application.use_cases.list_blobs import ListBlobs
from azure_blob_adapter.application.use_cases.move_blob import MoveBlob
from azure_blob_adapter.config.blob_config import AzureBlobConfig, build_blob_config
from azure_blob_adapter.config.logging import get_logger
from azure_blob_adapter.config.settings import AppSettings
from azure_blob_adapter.infrastructure.memory.in_memory_gateway import InMemoryBlobStore

logger = get_logger(__name__, component="container")


class Container:
    """Dependency injection container for the blob adapter.

    Responsibilities:
    1. Read settings (via AppSettings) and parse the storage accounts
    2. Choose the gateway backend (azure | memory)
    3. Own the connection registry and inject it into use cases

    The default connection is validated on construction, so a misconfigured
    process fails at startup rather than on first use.
    """

    def __init__(self, settings: AppSettings | None = None) -> None:
        self.settings = settings or AppSettings()
        self.blob_config: AzureBlobConfig = build_blob_config(self.settings)
        self.memory_store: InMemoryBlobStore | None = None
        self._registry: ConnectionRegistry | None = None
        self._handles: HandleProvider | None = None
        self._telemetry: TelemetryPort | None = None
        self._list_blobs: ListBlobs | None = None
        self._move_blob: MoveBlob | None = None
        self._service: BlobStorageService | None = None

        self.get_handle_provider().handle()

    # ===== Adapters =====

    def get_registry(self) -> ConnectionRegistry:
        """Get or create the connection registry for the configured backend."""
        if self._registry is None:
            self._registry = ConnectionRegistry(self._build_gateway_factory())
        return self._registry

    def get_handle_provider(self) -> HandleProvider:
        if self._handles is None:
            resolver = ConnectionResolver(
                self.blob_config.default_connection_string,
                self.blob_config.storage_accounts,
            )
            self._handles = HandleProvider(self.get_registry(), resolver)
        return self._handles

    def get_telemetry(self) -> TelemetryPort:
        """Get or create telemetry adapter based on settings."""
        if self._telemetry is None:
            self._telemetry = self._build_telemetry()
        return self._telemetry

    # ===== Use Cases =====

    def get_list_blobs_use_case(self) -> ListBlobs:
        if self._list_blobs is None:
            self._list_blobs = ListBlobs(
                handles=self.get_handle_provider(),
                telemetry=self.get_telemetry(),
                default_page_size=self.settings.list_page_size,
            )
        return self._list_blobs

    def get_move_blob_use_case(self) -> MoveBlob:
        if self._move_blob is None:
            self._move_blob = MoveBlob(
                handles=self.get_handle_provider(),
                telemetry=self.get_telemetry(),
                max_metadata_bytes=self.settings.metadata_max_bytes,
            )
        return self._move_blob

    def get_blob_storage_service(self) -> BlobStorageService:
        if self._service is None:
            self._service = BlobStorageService(
                handles=self.get_handle_provider(),
                lister=self.get_list_blobs_use_case(),
                mover=self.get_move_blob_use_case(),
            )
        return self._service

    async def aclose(self) -> None:
        """Close all cached storage clients."""
        if self._registry is not None:
            await self._registry.aclose()

    # ===== Private Builder Methods =====

    def _build_gateway_factory(self) -> GatewayFactory:
        """Build the connection-string -> gateway factory.

        Supports: azure | memory
        """
        backend = self.settings.blobstore_backend

        if backend == "memory":
            self.memory_store = InMemoryBlobStore()
            return self.memory_store.gateway_factory()

        if backend != "azure":
            logger.warning("unknown_blobstore_backend", backend=backend, fallback="azure")

        from azure_blob_adapter.infrastructure.azure.azure_blob_gateway import (
            AzureBlobGateway,
            AzureGatewayConfig,
        )

        cfg = AzureGatewayConfig(
            copy_poll_interval_s=self.settings.copy_poll_interval_s,
            copy_timeout_s=self.settings.copy_timeout_s,
        )
        return lambda connection_string: AzureBlobGateway.from_connection_string(
            connection_string, cfg
        )

    def _build_telemetry(self) -> TelemetryPort:
        from azure_blob_adapter.infrastructure.telemetry.otel_adapter import (
            NoopTelemetry,
            OpenTelemetryAdapter,
            OtelConfig,
        )

        if not self.settings.telemetry_enabled:
            return NoopTelemetry()

        cfg = OtelConfig(
            service_name="azure-blob-adapter",
            otlp_endpoint=self.settings.otlp_endpoint or None,
            environment=self.settings.telemetry_environment,
            enable_console=False,
        )
        return OpenTelemetryAdapter(cfg)


# ===== Convenience Functions =====


def build_container(settings: AppSettings | None = None) -> Container:
    """Build dependency injection container with settings.

    Example:
        container = build_container()
        service = container.get_blob_storage_service()
        result = await service.list_blobs("docs")
    """
    return Container(settings)


async def build_container_from_factory(
    factory: Callable[[], AppSettings | Awaitable[AppSettings]],
) -> Container:
    """Build a container from a (possibly async) settings factory.

    Lets callers load settings from a secret store or remote config first.
    """
    settings = factory()
    if inspect.isawaitable(settings):
        settings = await settings
    return Container(settings)


def get_blob_storage_service(settings: AppSettings | None = None) -> BlobStorageService:
    """Quick access to the storage service."""
    return build_container(settings).get_blob_storage_service()
