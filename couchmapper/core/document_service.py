"""Document service: implements DocumentCommandPort for operator actions.

Exposes raw database and document operations to driving adapters (the
CLI) without requiring a resource class. Conditions here refer directly
to storage field names.
"""

import logging
from typing import Any

from .conditions import build_query
from .ports import DocumentCommandPort, DocumentStorePort

logger = logging.getLogger(__name__)


class DocumentService(DocumentCommandPort):
    """Core implementation of DocumentCommandPort backed by a document store."""

    def __init__(self, store: DocumentStorePort):
        self.store = store

    async def create_database(self, name: str) -> bool:
        created = await self.store.create_database(name)
        logger.info(
            f"Database {name} {'created' if created else 'already exists'}",
            extra={"database": name},
        )
        return created

    async def delete_database(self, name: str) -> bool:
        deleted = await self.store.delete_database(name)
        logger.info(
            f"Database {name} {'deleted' if deleted else 'did not exist'}",
            extra={"database": name},
        )
        return deleted

    async def get_document(self, database: str, doc_id: str) -> dict[str, Any] | None:
        return await self.store.read(database, doc_id)

    async def find_documents(
        self,
        database: str,
        where: dict[str, Any] | None = None,
        order: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        query = build_query(where, order, limit)
        documents = await self.store.find(database, query)
        logger.debug(
            f"Found {len(documents)} documents in {database}",
            extra={"conditions": len(query.conditions)},
        )
        return documents


__all__ = ["DocumentService"]
