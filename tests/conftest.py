"""Shared fixtures: in-memory accounts with call recording (no network)."""

import pytest
import structlog

from azure_blob_adapter.application.connection_registry import (
    ConnectionRegistry,
    ConnectionResolver,
    HandleProvider,
)
from azure_blob_adapter.domain.services.connection_string import parse_connection_string
from azure_blob_adapter.infrastructure.memory.in_memory_gateway import (
    InMemoryBlobGateway,
    InMemoryBlobStore,
)

CONN_A = (
    "DefaultEndpointsProtocol=https;AccountName=accounta;"
    "AccountKey=a2V5LWE=;EndpointSuffix=core.windows.net"
)
CONN_B = (
    "DefaultEndpointsProtocol=https;AccountName=accountb;"
    "AccountKey=a2V5LWI=;EndpointSuffix=core.windows.net"
)


class RecordingGateway(InMemoryBlobGateway):
    """In-memory gateway that records every network-shaped call."""

    def __init__(self, store, account_name):
        super().__init__(store, account_name)
        self.calls = []

    def count(self, op):
        return sum(1 for call in self.calls if call[0] == op)

    async def list_blob_page(self, container, page_size, continuation_token=None, include_metadata=False):
        self.calls.append(("list_blob_page", container, continuation_token))
        return await super().list_blob_page(container, page_size, continuation_token, include_metadata)

    async def get_properties(self, container, blob):
        self.calls.append(("get_properties", container, blob))
        return await super().get_properties(container, blob)

    async def copy_from_url(self, source_url, container, blob, metadata):
        self.calls.append(("copy_from_url", source_url, container, blob, dict(metadata)))
        return await super().copy_from_url(source_url, container, blob, metadata)

    async def delete_if_exists(self, container, blob):
        self.calls.append(("delete_if_exists", container, blob))
        return await super().delete_if_exists(container, blob)


class RecordingFactory:
    def __init__(self, store):
        self.store = store
        self.created = []

    def __call__(self, connection_string):
        gw = RecordingGateway(self.store, parse_connection_string(connection_string).account_name)
        self.created.append(gw)
        return gw


@pytest.fixture
def store():
    return InMemoryBlobStore()


@pytest.fixture
def factory(store):
    return RecordingFactory(store)


@pytest.fixture
def registry(factory):
    return ConnectionRegistry(factory)


@pytest.fixture
def handles(registry):
    resolver = ConnectionResolver(CONN_A, {"xmlService": CONN_B})
    return HandleProvider(registry, resolver)


@pytest.fixture
def conn_a():
    return CONN_A


@pytest.fixture
def conn_b():
    return CONN_B


@pytest.fixture(autouse=True)
def _silent_structlog():
    # keep event output off stdout so CLI assertions only see command output
    structlog.configure(logger_factory=structlog.ReturnLoggerFactory())
    yield
    structlog.reset_defaults()
