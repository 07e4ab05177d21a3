"""In-memory document store adapter.

Implements DocumentStorePort with plain dictionaries, mimicking CouchDB's
revision scheme ("<generation>-<hex>") and conflict rules. Queries are
evaluated entirely client-side by the core condition translator.
"""

import copy
import logging
import uuid
from typing import Any

from couchmapper.core.conditions import Query
from couchmapper.core.errors import RevisionConflictError, StoreError
from couchmapper.core.ports import DocumentStorePort

logger = logging.getLogger(__name__)


def _next_rev(rev: str | None = None) -> str:
    generation = int(rev.split("-", 1)[0]) if rev else 0
    return f"{generation + 1}-{uuid.uuid4().hex}"


class InMemoryDocumentStore(DocumentStorePort):
    """Dictionary-backed document store for local runs and tests."""

    def __init__(self) -> None:
        self._databases: dict[str, dict[str, dict[str, Any]]] = {}

    def _database(self, name: str) -> dict[str, dict[str, Any]]:
        try:
            return self._databases[name]
        except KeyError:
            raise StoreError(
                f"Database {name} does not exist", status_code=404, database=name
            ) from None

    def _conflict(self, database: str, doc_id: str) -> RevisionConflictError:
        return RevisionConflictError(
            f"Document update conflict on {doc_id}",
            status_code=409,
            database=database,
            doc_id=doc_id,
        )

    async def create_database(self, name: str) -> bool:
        if name in self._databases:
            return False
        self._databases[name] = {}
        logger.info(f"Created in-memory database {name}")
        return True

    async def delete_database(self, name: str) -> bool:
        if self._databases.pop(name, None) is None:
            return False
        logger.info(f"Deleted in-memory database {name}")
        return True

    async def create(self, database: str, document: dict[str, Any]) -> tuple[str, str]:
        documents = self._database(database)
        stored = copy.deepcopy(document)
        stored.pop("_rev", None)
        doc_id = stored.get("_id") or uuid.uuid4().hex
        if doc_id in documents:
            raise self._conflict(database, doc_id)
        rev = _next_rev()
        stored["_id"] = doc_id
        stored["_rev"] = rev
        documents[doc_id] = stored
        return doc_id, rev

    async def read(self, database: str, doc_id: str) -> dict[str, Any] | None:
        document = self._databases.get(database, {}).get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def update(
        self, database: str, doc_id: str, rev: str, document: dict[str, Any]
    ) -> str:
        documents = self._database(database)
        current = documents.get(doc_id)
        if current is None or current["_rev"] != rev:
            raise self._conflict(database, doc_id)
        new_rev = _next_rev(rev)
        stored = copy.deepcopy(document)
        stored["_id"] = doc_id
        stored["_rev"] = new_rev
        documents[doc_id] = stored
        return new_rev

    async def delete(self, database: str, doc_id: str, rev: str) -> bool:
        documents = self._database(database)
        current = documents.get(doc_id)
        if current is None:
            return False
        if current["_rev"] != rev:
            raise self._conflict(database, doc_id)
        del documents[doc_id]
        return True

    async def find(self, database: str, query: Query) -> list[dict[str, Any]]:
        documents = self._database(database)
        candidates = (
            copy.deepcopy(doc) for doc_id, doc in documents.items() if not doc_id.startswith("_")
        )
        return query.apply(candidates)

    async def close(self) -> None:
        """Nothing to release."""


__all__ = ["InMemoryDocumentStore"]
