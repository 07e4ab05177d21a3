"""Tests for the DocumentService (raw document operations)."""

import pytest

from couchmapper.core.document_service import DocumentService
from couchmapper.core.errors import UnsupportedOperatorError
from couchmapper.tests.fakes import FakeDocumentStorePort


@pytest.fixture
async def service() -> DocumentService:
    store = FakeDocumentStorePort()
    service = DocumentService(store)
    await service.create_database("users")
    for name, age in (("Jamie", 67), ("John", 50), ("Aaron", 30)):
        await store.create("users", {"name": name, "age": age})
    return service


@pytest.mark.asyncio
async def test_create_database_twice(service: DocumentService) -> None:
    assert await service.create_database("orders") is True
    assert await service.create_database("orders") is False


@pytest.mark.asyncio
async def test_delete_database(service: DocumentService) -> None:
    assert await service.delete_database("users") is True
    assert await service.delete_database("users") is False


@pytest.mark.asyncio
async def test_find_documents_by_field(service: DocumentService) -> None:
    documents = await service.find_documents("users", {"age": {"lt": 60}}, order=["age"])
    assert [doc["name"] for doc in documents] == ["Aaron", "John"]


@pytest.mark.asyncio
async def test_find_documents_with_limit(service: DocumentService) -> None:
    documents = await service.find_documents("users", order=["name"], limit=1)
    assert [doc["name"] for doc in documents] == ["Aaron"]


@pytest.mark.asyncio
async def test_get_document(service: DocumentService) -> None:
    (john,) = await service.find_documents("users", {"name": "John"})
    document = await service.get_document("users", john["_id"])
    assert document["age"] == 50
    assert document["_rev"].startswith("1-")


@pytest.mark.asyncio
async def test_find_documents_unknown_operator(service: DocumentService) -> None:
    with pytest.raises(UnsupportedOperatorError):
        await service.find_documents("users", {"age": {"near": 50}})
