"""Tests for the BlobStorageService facade."""

import io

import pytest

from azure_blob_adapter.application.blob_storage_service import BlobStorageService
from azure_blob_adapter.application.use_cases.list_blobs import ListBlobs
from azure_blob_adapter.application.use_cases.move_blob import MoveBlob
from azure_blob_adapter.domain.errors import (
    BlobNotFoundError,
    RequestFailedError,
    TransportError,
    ValidationError,
)
from azure_blob_adapter.domain.models import MoveRequest


@pytest.fixture
def service(handles):
    return BlobStorageService(handles, ListBlobs(handles, default_page_size=2), MoveBlob(handles))


@pytest.mark.asyncio
async def test_list_containers(store, service):
    store.create_container("accounta", "b")
    store.create_container("accounta", "a")

    result = await service.list_containers()

    assert result.value == ["a", "b"]


@pytest.mark.asyncio
async def test_list_blobs_and_names(store, service):
    for name in ("x", "y", "z"):
        store.put("accounta", "docs", name, metadata={"n": name})

    entries = await service.list_blobs("docs", include_metadata=True)
    names = await service.list_blob_names("docs")
    paged = await service.list_blobs_paginated("docs", page_size=1)

    assert [e.metadata for e in entries.value] == [{"n": "x"}, {"n": "y"}, {"n": "z"}]
    assert names.value == ["x", "y", "z"]
    assert [e.name for e in paged.value] == ["x", "y", "z"]


@pytest.mark.asyncio
async def test_iter_blobs_streams_entries(store, service):
    for name in ("a", "b", "c"):
        store.put("accounta", "docs", name)

    names = [e.name async for e in service.iter_blobs("docs")]

    assert names == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_upload_text_and_download_text(store, service):
    store.create_container("accounta", "docs")

    up = await service.upload_blob("héllo", "docs", "greeting.txt")
    text = await service.download_text("docs", "greeting.txt")

    assert up.ok
    assert up.value.url == "memory://accounta/docs/greeting.txt"
    assert store.account("accounta")["docs"]["greeting.txt"].data == "héllo".encode()
    assert text.value == "héllo"


@pytest.mark.asyncio
async def test_upload_to_missing_container_fails(service):
    result = await service.upload_blob(b"x", "nope", "a.bin")

    assert not result.ok
    assert isinstance(result.error, BlobNotFoundError)


@pytest.mark.asyncio
async def test_upload_stream_from_file_object_and_async_iterable(store, service):
    store.create_container("accounta", "docs")

    async def chunks():
        yield b"ab"
        yield b"cd"

    r1 = await service.upload_blob_stream(io.BytesIO(b"file-body"), "docs", "f.bin")
    r2 = await service.upload_blob_stream(chunks(), "docs", "g.bin")

    assert r1.ok and r2.ok
    blobs = store.account("accounta")["docs"]
    assert blobs["f.bin"].data == b"file-body"
    assert blobs["g.bin"].data == b"abcd"


@pytest.mark.asyncio
async def test_add_metadata_merges(store, service):
    store.put("accounta", "docs", "a.txt", metadata={"owner": "x", "state": "new"})

    result = await service.add_metadata("docs", "a.txt", {"state": "done"})

    assert result.value == {"owner": "x", "state": "done"}
    assert store.account("accounta")["docs"]["a.txt"].metadata == {"owner": "x", "state": "done"}


@pytest.mark.asyncio
async def test_add_metadata_on_missing_blob_fails(store, service):
    store.create_container("accounta", "docs")

    result = await service.add_metadata("docs", "ghost", {"k": "v"})

    assert isinstance(result.error, BlobNotFoundError)
    assert result.error.blob == "ghost"


@pytest.mark.asyncio
async def test_download_to_file(store, service, tmp_path):
    store.put("accounta", "docs", "sub/a.txt", b"content")

    result = await service.download_to_file("docs", "sub/a.txt", tmp_path)

    assert result.value == (tmp_path / "sub" / "a.txt").resolve()
    assert result.value.read_bytes() == b"content"


@pytest.mark.asyncio
async def test_download_missing_blob_is_none_not_error(store, service, tmp_path):
    store.create_container("accounta", "docs")

    result = await service.download_to_file("docs", "ghost", tmp_path)
    text = await service.download_text("docs", "ghost")

    assert result.ok and result.value is None
    assert text.ok and text.value is None


@pytest.mark.asyncio
async def test_download_rejects_path_escape(store, service, tmp_path):
    store.put("accounta", "docs", "../evil", b"x")

    result = await service.download_to_file("docs", "../evil", tmp_path / "out")

    assert isinstance(result.error, ValidationError)
    assert not (tmp_path / "evil").exists()


@pytest.mark.asyncio
async def test_download_stream_to_file(store, service, tmp_path):
    store.put("accounta", "docs", "big.bin", b"0123456789")

    ok = await service.download_stream_to_file("docs", "big.bin", tmp_path)
    missing = await service.download_stream_to_file("docs", "ghost.bin", tmp_path)

    assert ok.value is True
    assert (tmp_path / "big.bin").read_bytes() == b"0123456789"
    assert missing.ok and missing.value is False
    assert not (tmp_path / "ghost.bin").exists()


@pytest.mark.asyncio
async def test_get_blob_url(store, service):
    store.put("accounta", "docs", "a.txt")

    found = await service.get_blob_url("docs", "a.txt")
    missing = await service.get_blob_url("docs", "b.txt")

    assert found.value == "memory://accounta/docs/a.txt"
    assert missing.ok and missing.value is None


@pytest.mark.asyncio
async def test_non_404_errors_are_failures(store, service, handles):
    store.put("accounta", "docs", "a.txt")
    gw = handles.handle()

    async def throttled(*args, **kwargs):
        raise TransportError("Server busy", status_code=503)

    gw.download = throttled

    result = await service.download_text("docs", "a.txt")

    assert not result.ok
    assert isinstance(result.error, RequestFailedError)


@pytest.mark.asyncio
async def test_move_blob_delegates(store, service):
    store.put("accounta", "inbox", "a", b"1")
    store.create_container("accounta", "done")

    result = await service.move_blob(MoveRequest("inbox", "a", "done", "a"))

    assert result.ok
    assert "a" in store.account("accounta")["done"]


@pytest.mark.asyncio
async def test_download_stream_of_missing_nested_blob_creates_no_dirs(store, service, tmp_path):
    store.create_container("accounta", "docs")

    result = await service.download_stream_to_file("docs", "sub/dir/ghost.bin", tmp_path)

    assert result.ok and result.value is False
    assert not (tmp_path / "sub").exists()


@pytest.mark.asyncio
async def test_download_stream_of_empty_blob_writes_empty_file(store, service, tmp_path):
    store.put("accounta", "docs", "sub/empty.bin", b"")

    result = await service.download_stream_to_file("docs", "sub/empty.bin", tmp_path)

    assert result.value is True
    assert (tmp_path / "sub" / "empty.bin").read_bytes() == b""
