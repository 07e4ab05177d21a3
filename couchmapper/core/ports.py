"""Port interfaces for couchmapper.

These abstract base classes define the boundary between the mapping core
and the document stores it talks to. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - DocumentStorePort: Database lifecycle and per-document CRUD/queries

2. **Driving Ports** (adapters/external systems call into core)
   - DocumentCommandPort: Raw document operations exposed to the CLI
"""

from abc import ABC, abstractmethod
from typing import Any

from .conditions import Query


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class DocumentStorePort(ABC):
    """Port for a document database addressed by database name and document id.

    Every successful write returns the document's new revision token.
    Writes based on a stale revision must raise RevisionConflictError;
    the store, not this layer, arbitrates concurrent writers.

    Implementations must handle:
    - Mapping backend errors onto StoreError / RevisionConflictError
    - Excluding internal (underscore-prefixed) documents from queries
    - Ordering and limiting query results as the Query describes
    """

    @abstractmethod
    async def create_database(self, name: str) -> bool:
        """Create a database.

        Returns:
            True if created, False if it already existed.

        Raises:
            StoreError: If the store rejects the request.
        """

    @abstractmethod
    async def delete_database(self, name: str) -> bool:
        """Delete a database and every document in it.

        Returns:
            True if deleted, False if it did not exist.

        Raises:
            StoreError: If the store rejects the request.
        """

    @abstractmethod
    async def create(self, database: str, document: dict[str, Any]) -> tuple[str, str]:
        """Store a new document.

        Args:
            database: Target database name.
            document: Flat document; an ``_id`` is generated when absent.

        Returns:
            (id, rev) of the stored document.

        Raises:
            RevisionConflictError: If a document with the same id exists.
            StoreError: If the store is unreachable or rejects the request.
        """

    @abstractmethod
    async def read(self, database: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch a document by id.

        Returns:
            The document including ``_id`` and ``_rev``, or None if not found.

        Raises:
            StoreError: If the store is unreachable.
        """

    @abstractmethod
    async def update(
        self, database: str, doc_id: str, rev: str, document: dict[str, Any]
    ) -> str:
        """Replace a document, based on the given revision.

        Returns:
            The new revision token.

        Raises:
            RevisionConflictError: If rev is not the latest revision.
            StoreError: If the store is unreachable or rejects the request.
        """

    @abstractmethod
    async def delete(self, database: str, doc_id: str, rev: str) -> bool:
        """Delete a document at the given revision.

        Returns:
            True if deleted, False if the document did not exist.

        Raises:
            RevisionConflictError: If rev is not the latest revision.
            StoreError: If the store is unreachable.
        """

    @abstractmethod
    async def find(self, database: str, query: Query) -> list[dict[str, Any]]:
        """Return the documents matching a query, ordered and limited.

        Raises:
            UnsupportedOperatorError: If a condition cannot be translated.
            StoreError: If the store is unreachable or rejects the query.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release any connections held by the store."""


# ============================================================================
# DRIVING PORTS (External systems call into core)
# ============================================================================


class DocumentCommandPort(ABC):
    """Port for raw document operations initiated by an operator.

    Unlike the Repository, these operations work on untyped documents and
    storage field names, with no resource class involved.
    """

    @abstractmethod
    async def create_database(self, name: str) -> bool:
        """Create a database; False if it already existed."""

    @abstractmethod
    async def delete_database(self, name: str) -> bool:
        """Delete a database; False if it did not exist."""

    @abstractmethod
    async def get_document(self, database: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch one document, or None if it does not exist."""

    @abstractmethod
    async def find_documents(
        self,
        database: str,
        where: dict[str, Any] | None = None,
        order: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Query documents with a condition mapping.

        Raises:
            UnsupportedOperatorError: If the mapping names an unknown operator.
        """
