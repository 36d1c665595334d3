"""Application ports package."""

from azure_blob_adapter.application.ports.blob_gateway_port import BlobGatewayPort
from azure_blob_adapter.application.ports.telemetry_port import TelemetryPort

__all__ = [
    "BlobGatewayPort",
    "TelemetryPort",
]
