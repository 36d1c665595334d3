"""Tests for the azure-blob CLI on the memory backend."""

import json

import pytest

from azure_blob_adapter.config.compose import Container
from azure_blob_adapter.config.settings import AppSettings
from azure_blob_adapter.interface.cli import main as cli


@pytest.fixture
def container(conn_a, conn_b):
    c = Container(
        AppSettings(
            default_connection_string=conn_a,
            xml_connection_string=conn_b,
            images_connection_string="",
            blobstore_backend="memory",
            telemetry_enabled=False,
        )
    )
    c.memory_store.put("accounta", "inbox", "a.xml", b"<a/>", {"owner": "ingest"})
    c.memory_store.put("accounta", "inbox", "b.xml", b"<b/>")
    c.memory_store.create_container("accounta", "archive")
    return c


@pytest.fixture
def run_cli(monkeypatch, container):
    monkeypatch.setattr(cli, "setup_logging", lambda settings=None: None)
    monkeypatch.setattr(cli, "build_container", lambda settings=None: container)
    return cli.main


def test_containers(run_cli, capsys):
    assert run_cli(["containers"]) == 0
    assert capsys.readouterr().out.split() == ["archive", "inbox"]


def test_list_prints_json_entries(run_cli, capsys):
    assert run_cli(["list", "inbox", "--metadata", "--page-size", "1"]) == 0

    entries = json.loads(capsys.readouterr().out)
    assert [e["name"] for e in entries] == ["a.xml", "b.xml"]
    assert entries[0]["metadata"] == {"owner": "ingest"}


def test_list_names_only(run_cli, capsys):
    assert run_cli(["list", "inbox", "--names-only"]) == 0
    assert capsys.readouterr().out.split() == ["a.xml", "b.xml"]


def test_move_with_metadata(run_cli, container, capsys):
    code = run_cli(["move", "inbox", "a.xml", "archive", "a.xml", "--meta", "processed=true"])

    assert code == 0
    assert "inbox/a.xml" in capsys.readouterr().out
    moved = container.memory_store.account("accounta")["archive"]["a.xml"]
    assert moved.metadata == {"owner": "ingest", "processed": "true"}


def test_move_missing_blob_reports_error(run_cli, capsys):
    code = run_cli(["move", "inbox", "ghost.xml", "archive", "ghost.xml"])

    assert code == 1
    out = capsys.readouterr().out
    assert out.startswith("[ERROR] BlobNotFoundError:")
    assert '"ghost.xml"' in out and '"inbox"' in out


def test_move_to_alias_account(run_cli, container):
    container.memory_store.create_container("accountb", "xml")

    code = run_cli(
        ["move", "inbox", "b.xml", "xml", "b.xml", "--destination-connection", "xmlService"]
    )

    assert code == 0
    assert "b.xml" in container.memory_store.account("accountb")["xml"]


def test_bad_metadata_pair_exits_2(run_cli, capsys):
    assert run_cli(["move", "inbox", "a.xml", "archive", "a.xml", "--meta", "novalue"]) == 2
    assert "key=value" in capsys.readouterr().out


def test_upload_and_download(run_cli, container, tmp_path, capsys):
    src = tmp_path / "report.txt"
    src.write_text("hello")

    assert run_cli(["upload", str(src), "archive"]) == 0
    assert capsys.readouterr().out.strip() == "memory://accounta/archive/report.txt"

    dest = tmp_path / "out"
    assert run_cli(["download", "archive", "report.txt", "--dest", str(dest)]) == 0
    assert (dest / "report.txt").read_text() == "hello"

    assert run_cli(["download", "archive", "report.txt", "--dest", str(dest / "s"), "--stream"]) == 0
    assert (dest / "s" / "report.txt").read_text() == "hello"


def test_download_missing_blob_exits_1(run_cli, tmp_path, capsys):
    assert run_cli(["download", "inbox", "ghost", "--dest", str(tmp_path)]) == 1
    assert "not found" in capsys.readouterr().out


def test_set_metadata(run_cli, container, capsys):
    assert run_cli(["set-metadata", "inbox", "b.xml", "--meta", "k=v"]) == 0

    assert json.loads(capsys.readouterr().out) == {"k": "v"}
    assert container.memory_store.account("accounta")["inbox"]["b.xml"].metadata == {"k": "v"}


def test_invalid_configuration_exits_1(monkeypatch, capsys):
    monkeypatch.setattr(cli, "setup_logging", lambda settings=None: None)
    monkeypatch.setenv("AZURE_BLOB_STORAGE_CONNECTION_STRING", "")
    monkeypatch.setenv("BLOBSTORE_BACKEND", "memory")

    assert cli.main(["containers"]) == 1
    assert "ConfigurationError" in capsys.readouterr().out


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])
