"""Connection string parsing.

Azure connection strings are ``Key=Value;Key=Value;...``. Only a handful of
keys matter here; everything else is passed through untouched to the SDK.
"""

from __future__ import annotations

import re

from ..errors import ConfigurationError
from ..models import StorageAccountConfig


def extract_value(connection_string: str, key: str) -> str:
    """Return the value of ``key`` (case-insensitive) or an empty string.

    Values may contain "=" (base64 account keys end with "=="), so only the
    first "=" after the key is treated as the separator.
    """
    match = re.search(rf"(?:^|;)\s*{re.escape(key)}=([^;]+)(?:;|$)", connection_string, re.I)
    return match.group(1).strip() if match else ""


def parse_connection_string(connection_string: str) -> StorageAccountConfig:
    """Parse a connection string into a ``StorageAccountConfig``.

    Raises:
        ConfigurationError: if the string is empty or lacks ``AccountName``
    """
    if not connection_string or not connection_string.strip():
        raise ConfigurationError("Connection string is undefined or empty.")

    account_name = extract_value(connection_string, "AccountName")
    if not account_name:
        raise ConfigurationError("Account name is missing in the connection string.")

    return StorageAccountConfig(
        connection_string=connection_string,
        account_name=account_name,
        account_key=extract_value(connection_string, "AccountKey"),
        endpoint_suffix=extract_value(connection_string, "EndpointSuffix"),
        default_endpoints_protocol=extract_value(connection_string, "DefaultEndpointsProtocol"),
        blob_endpoint=extract_value(connection_string, "BlobEndpoint"),
    )


def is_valid_connection_string(connection_string: str) -> bool:
    try:
        parse_connection_string(connection_string)
    except ConfigurationError:
        return False
    return True


def redact(connection_string: str) -> str:
    """Render a connection string safe for logs (account name only)."""
    name = extract_value(connection_string, "AccountName")
    return f"AccountName={name}" if name else "<invalid>"
