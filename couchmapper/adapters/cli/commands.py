"""CLI command implementations for couchmapper.

Provides operator actions through the command-line interface.

This adapter maps CLI commands (create-db, drop-db, get, find) to
DocumentCommandPort operations. It handles CLI-specific formatting and
error reporting: every command returns a result dictionary with a
"status" of "success" or "error".
"""

import logging
from typing import Any

from couchmapper.core.errors import CouchMapperError
from couchmapper.core.ports import DocumentCommandPort

logger = logging.getLogger(__name__)


class CLICommandHandler:
    """Handles CLI commands by delegating to DocumentCommandPort."""

    def __init__(self, commands: DocumentCommandPort):
        """Initialize the CLI command handler.

        Args:
            commands: DocumentCommandPort implementation to execute commands.
        """
        self.commands = commands

    def _error(self, operation: str, error: Exception, **context: Any) -> dict[str, Any]:
        logger.error(f"{operation} failed: {error}")
        return {"status": "error", "operation": operation, **context, "message": str(error)}

    async def create_database(self, database: str) -> dict[str, Any]:
        """Create a database via CLI.

        Args:
            database: Name of the database to create.

        Returns:
            Dictionary with status and message.
        """
        try:
            created = await self.commands.create_database(database)
        except CouchMapperError as e:
            return self._error("create-db", e, database=database)
        return {
            "status": "success",
            "operation": "create-db",
            "database": database,
            "created": created,
            "message": f"Database {database} {'created' if created else 'already exists'}",
        }

    async def delete_database(self, database: str) -> dict[str, Any]:
        """Delete a database via CLI.

        Args:
            database: Name of the database to delete.

        Returns:
            Dictionary with status and message.
        """
        try:
            deleted = await self.commands.delete_database(database)
        except CouchMapperError as e:
            return self._error("drop-db", e, database=database)
        return {
            "status": "success",
            "operation": "drop-db",
            "database": database,
            "deleted": deleted,
            "message": f"Database {database} {'deleted' if deleted else 'did not exist'}",
        }

    async def get_document(self, database: str, doc_id: str) -> dict[str, Any]:
        """Fetch a single document via CLI.

        Returns:
            Dictionary with status and the document; an error if it is missing.
        """
        try:
            document = await self.commands.get_document(database, doc_id)
        except CouchMapperError as e:
            return self._error("get", e, database=database, doc_id=doc_id)
        if document is None:
            return {
                "status": "error",
                "operation": "get",
                "database": database,
                "doc_id": doc_id,
                "message": f"Document {doc_id} not found",
            }
        return {
            "status": "success",
            "operation": "get",
            "database": database,
            "document": document,
        }

    async def find_documents(
        self,
        database: str,
        where: dict[str, Any] | None = None,
        order: list[str] | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Query documents via CLI.

        Args:
            database: Database to query.
            where: Condition mapping on storage field names.
            order: Fields to sort by, ascending.
            limit: Maximum number of documents.

        Returns:
            Dictionary with status, count and documents.
        """
        try:
            documents = await self.commands.find_documents(database, where, order, limit)
        except (CouchMapperError, ValueError, TypeError) as e:
            return self._error("find", e, database=database)
        return {
            "status": "success",
            "operation": "find",
            "database": database,
            "count": len(documents),
            "documents": documents,
        }


__all__ = ["CLICommandHandler"]
