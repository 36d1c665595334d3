"""Application settings with environment-driven configuration.

This is the ONLY module that reads environment variables. Everything else
receives settings through the DI container.
"""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class AppSettings:
    """Application settings loaded from environment variables.

    Connection strings:
    - default_connection_string: account used when a call names no connection
    - xml_connection_string / images_connection_string: optional named
      accounts, addressable by the aliases "xmlService" / "imageService"
    """

    # ===== Storage Accounts =====
    default_connection_string: str = field(
        default_factory=lambda: os.getenv("AZURE_BLOB_STORAGE_CONNECTION_STRING", "")
    )
    xml_connection_string: str = field(
        default_factory=lambda: os.getenv("AZURE_BLOB_XML_CONNECTION_STRING", "")
    )
    images_connection_string: str = field(
        default_factory=lambda: os.getenv("AZURE_BLOB_IMAGES_CONNECTION_STRING", "")
    )

    # ===== Backend =====
    blobstore_backend: str = field(
        default_factory=lambda: os.getenv("BLOBSTORE_BACKEND", "azure").lower()
    )
    # Supported: "azure" | "memory" (local dev, tests)

    # ===== Listing / Move Tuning =====
    list_page_size: int = field(default_factory=lambda: int(os.getenv("BLOB_LIST_PAGE_SIZE", "100")))
    metadata_max_bytes: int = field(
        default_factory=lambda: int(os.getenv("BLOB_METADATA_MAX_BYTES", "8192"))
    )
    copy_poll_interval_s: float = field(
        default_factory=lambda: float(os.getenv("BLOB_COPY_POLL_INTERVAL_S", "1.0"))
    )
    copy_timeout_s: float = field(
        default_factory=lambda: float(os.getenv("BLOB_COPY_TIMEOUT_S", "300"))
    )

    # ===== Logging =====
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json: bool = field(
        default_factory=lambda: os.getenv("LOG_JSON", "false").lower() == "true"
    )

    # ===== Telemetry Configuration =====
    telemetry_enabled: bool = field(
        default_factory=lambda: os.getenv("TELEMETRY_ENABLED", "false").lower() == "true"
    )
    otlp_endpoint: str = field(default_factory=lambda: os.getenv("OTLP_ENDPOINT", ""))
    # Empty string = no OTLP export

    telemetry_environment: str = field(
        default_factory=lambda: os.getenv("TELEMETRY_ENVIRONMENT", "production")
    )
