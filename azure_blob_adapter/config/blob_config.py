"""Storage account configuration built from ``AppSettings``."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from azure_blob_adapter.config.logging import get_logger
from azure_blob_adapter.config.settings import AppSettings
from azure_blob_adapter.domain.errors import ConfigurationError
from azure_blob_adapter.domain.models import StorageAccountConfig
from azure_blob_adapter.domain.services.connection_string import parse_connection_string

logger = get_logger(__name__, component="blob_config")


class AzureBlobConnectionType(str, Enum):
    """Aliases callers may pass instead of a literal connection string."""

    XML_SERVICE = "xmlService"
    IMAGE_SERVICE = "imageService"


@dataclass(frozen=True)
class AzureBlobConfig:
    """Parsed accounts: the mandatory default plus optional named ones."""

    default: StorageAccountConfig
    xml_service: StorageAccountConfig | None = None
    image_service: StorageAccountConfig | None = None
    storage_accounts: dict[str, str] = field(default_factory=dict)

    @property
    def default_connection_string(self) -> str:
        return self.default.connection_string


def _optional_account(name: str, connection_string: str) -> StorageAccountConfig | None:
    if not connection_string:
        logger.warning("storage_account_not_configured", account=name)
        return None
    try:
        return parse_connection_string(connection_string)
    except ConfigurationError as ex:
        logger.warning("storage_account_invalid", account=name, error=str(ex))
        return None


def build_blob_config(settings: AppSettings) -> AzureBlobConfig:
    """Parse every configured connection string.

    Raises:
        ConfigurationError: if the default connection string is missing/invalid
    """
    try:
        default = parse_connection_string(settings.default_connection_string)
    except ConfigurationError as ex:
        logger.error("storage_default_account_invalid", error=str(ex))
        raise ConfigurationError("Invalid Azure Blob Storage configuration.") from ex

    xml_service = _optional_account(
        AzureBlobConnectionType.XML_SERVICE.value, settings.xml_connection_string
    )
    image_service = _optional_account(
        AzureBlobConnectionType.IMAGE_SERVICE.value, settings.images_connection_string
    )

    accounts: dict[str, str] = {}
    if xml_service is not None:
        accounts[AzureBlobConnectionType.XML_SERVICE.value] = xml_service.connection_string
    if image_service is not None:
        accounts[AzureBlobConnectionType.IMAGE_SERVICE.value] = image_service.connection_string

    return AzureBlobConfig(
        default=default,
        xml_service=xml_service,
        image_service=image_service,
        storage_accounts=accounts,
    )
