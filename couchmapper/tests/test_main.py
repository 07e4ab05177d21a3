"""Tests for the composition root: store selection and command dispatch."""

import json

import pytest

from couchmapper.adapters.cli.commands import CLICommandHandler
from couchmapper.adapters.store.couchdb import CouchDBDocumentStore
from couchmapper.adapters.store.memory import InMemoryDocumentStore
from couchmapper.config import Settings
from couchmapper.core.document_service import DocumentService
from couchmapper.main import bootstrap, build_store, execute_command, main


@pytest.mark.asyncio
async def test_build_store_selects_backend() -> None:
    memory = build_store(Settings(store_backend="memory"))
    couch = build_store(Settings(store_backend="couchdb", find_page_size=10))

    assert isinstance(memory, InMemoryDocumentStore)
    assert isinstance(couch, CouchDBDocumentStore)
    assert couch.page_size == 10
    await couch.close()


@pytest.mark.asyncio
async def test_execute_command_round_trip() -> None:
    handler = CLICommandHandler(DocumentService(InMemoryDocumentStore()))

    created = await execute_command(handler, "create-db", {"database": "users"})
    found = await execute_command(handler, "find", {"database": "users", "where": {"age": 1}})

    assert created["status"] == "success"
    assert found == {
        "status": "success",
        "operation": "find",
        "database": "users",
        "count": 0,
        "documents": [],
    }


@pytest.mark.asyncio
async def test_execute_unknown_command() -> None:
    handler = CLICommandHandler(DocumentService(InMemoryDocumentStore()))
    with pytest.raises(ValueError, match="Unknown command 'compact'"):
        await execute_command(handler, "compact", {})


@pytest.mark.asyncio
async def test_execute_command_missing_argument() -> None:
    handler = CLICommandHandler(DocumentService(InMemoryDocumentStore()))
    with pytest.raises(ValueError, match="Missing argument 'doc_id'"):
        await execute_command(handler, "get", {"database": "users"})


@pytest.mark.asyncio
async def test_bootstrap_runs_command_on_configured_store() -> None:
    result = await bootstrap("create-db", {"database": "users"}, Settings(store_backend="memory"))
    assert result["created"] is True


def test_main_prints_result_and_exits_zero(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("STORE_BACKEND", "memory")

    with pytest.raises(SystemExit) as exc_info:
        main(["create-db", '{"database": "users"}'])

    assert exc_info.value.code == 0
    assert json.loads(capsys.readouterr().out)["status"] == "success"


def test_main_exits_one_on_error_result(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("STORE_BACKEND", "memory")

    with pytest.raises(SystemExit) as exc_info:
        main(["get", '{"database": "users", "doc_id": "u1"}'])

    assert exc_info.value.code == 1
    assert json.loads(capsys.readouterr().out)["message"] == "Document u1 not found"


def test_main_rejects_invalid_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORE_BACKEND", "memory")
    with pytest.raises(SystemExit) as exc_info:
        main(["find", "{not json"])
    assert exc_info.value.code == 1
