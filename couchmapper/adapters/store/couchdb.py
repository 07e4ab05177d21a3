"""CouchDB document store adapter.

Implements DocumentStorePort against the CouchDB HTTP API. Queries are
translated to Mango selectors and paged through _find with bookmarks;
ordering and limits are applied client-side because Mango sorting needs a
matching index.
"""

import logging
import urllib.parse
from typing import Any

import httpx

from couchmapper.core.conditions import Query, sort_documents, to_mango
from couchmapper.core.errors import RevisionConflictError, StoreError
from couchmapper.core.ports import DocumentStorePort

logger = logging.getLogger(__name__)


def _quote(segment: str) -> str:
    """Escape a database name or document id for use as one path segment."""
    return urllib.parse.quote(segment, safe="")


def _is_internal(document: dict[str, Any]) -> bool:
    """Design and local documents have underscore-prefixed ids."""
    return str(document.get("_id", "")).startswith("_")


class CouchDBDocumentStore(DocumentStorePort):
    """CouchDB-backed document store via the HTTP API."""

    def __init__(
        self,
        api_url: str,
        username: str = "",
        password: str = "",
        timeout: float = 30.0,
        page_size: int = 200,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the CouchDB adapter.

        Args:
            api_url: Base URL of the CouchDB server (e.g., http://localhost:5984).
            username: Optional user for basic authentication.
            password: Password for basic authentication.
            timeout: Request timeout in seconds.
            page_size: Documents requested per _find page.
            transport: Optional httpx transport (used to stub the server in tests).
        """
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.api_url = api_url.rstrip("/")
        self.page_size = page_size
        auth = httpx.BasicAuth(username, password) if username else None
        self.client = httpx.AsyncClient(
            base_url=self.api_url,
            timeout=timeout,
            auth=auth,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "CouchDBDocumentStore":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the httpx client and clean up resources."""
        await self.client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        database: str | None = None,
        doc_id: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            return await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"CouchDB {method} {path} failed: {e}", exc_info=True)
            raise StoreError(
                f"CouchDB request failed: {e}", database=database, doc_id=doc_id
            ) from e

    def _raise_for_status(
        self,
        response: httpx.Response,
        database: str | None = None,
        doc_id: str | None = None,
    ) -> None:
        """Map an unsuccessful CouchDB response onto StoreError."""
        if response.is_success:
            return
        try:
            body = response.json()
            reason = f"{body.get('error', 'error')}: {body.get('reason', '')}".rstrip(": ")
        except ValueError:
            reason = response.text or response.reason_phrase

        error_class = RevisionConflictError if response.status_code == 409 else StoreError
        logger.error(
            f"CouchDB {response.request.method} {response.request.url.path} "
            f"returned {response.status_code}: {reason}"
        )
        raise error_class(
            f"CouchDB returned {response.status_code}: {reason}",
            status_code=response.status_code,
            database=database,
            doc_id=doc_id,
        )

    async def create_database(self, name: str) -> bool:
        response = await self._request("PUT", f"/{_quote(name)}", database=name)
        if response.status_code == 412:
            return False
        self._raise_for_status(response, database=name)
        logger.info(f"Created CouchDB database {name}")
        return True

    async def delete_database(self, name: str) -> bool:
        response = await self._request("DELETE", f"/{_quote(name)}", database=name)
        if response.status_code == 404:
            return False
        self._raise_for_status(response, database=name)
        logger.info(f"Deleted CouchDB database {name}")
        return True

    async def create(self, database: str, document: dict[str, Any]) -> tuple[str, str]:
        body = {k: v for k, v in document.items() if k != "_rev"}
        doc_id = body.get("_id")
        if doc_id:
            response = await self._request(
                "PUT",
                f"/{_quote(database)}/{_quote(doc_id)}",
                database=database,
                doc_id=doc_id,
                json=body,
            )
        else:
            body.pop("_id", None)
            response = await self._request(
                "POST", f"/{_quote(database)}", database=database, json=body
            )
        self._raise_for_status(response, database=database, doc_id=doc_id)
        data = response.json()
        return data["id"], data["rev"]

    async def read(self, database: str, doc_id: str) -> dict[str, Any] | None:
        response = await self._request(
            "GET", f"/{_quote(database)}/{_quote(doc_id)}", database=database, doc_id=doc_id
        )
        if response.status_code == 404:
            return None
        self._raise_for_status(response, database=database, doc_id=doc_id)
        return response.json()

    async def update(
        self, database: str, doc_id: str, rev: str, document: dict[str, Any]
    ) -> str:
        body = {**document, "_id": doc_id, "_rev": rev}
        response = await self._request(
            "PUT",
            f"/{_quote(database)}/{_quote(doc_id)}",
            database=database,
            doc_id=doc_id,
            json=body,
        )
        self._raise_for_status(response, database=database, doc_id=doc_id)
        return response.json()["rev"]

    async def delete(self, database: str, doc_id: str, rev: str) -> bool:
        response = await self._request(
            "DELETE",
            f"/{_quote(database)}/{_quote(doc_id)}",
            database=database,
            doc_id=doc_id,
            params={"rev": rev},
        )
        if response.status_code == 404:
            return False
        self._raise_for_status(response, database=database, doc_id=doc_id)
        return True

    async def find(self, database: str, query: Query) -> list[dict[str, Any]]:
        """Run a Mango query, following bookmarks until the result is exhausted."""
        request = to_mango(query)
        request["limit"] = self.page_size
        early_limit = query.limit if not query.order else None

        documents: list[dict[str, Any]] = []
        while True:
            response = await self._request(
                "POST", f"/{_quote(database)}/_find", database=database, json=request
            )
            self._raise_for_status(response, database=database)
            data = response.json()
            if data.get("warning"):
                logger.debug(f"CouchDB _find on {database}: {data['warning']}")

            page = data.get("docs", [])
            # Mango collates across types and skips missing fields on $ne.
            documents.extend(
                doc for doc in page if not _is_internal(doc) and query.matches(doc)
            )

            if len(page) < self.page_size or not data.get("bookmark"):
                break
            if early_limit is not None and len(documents) >= early_limit:
                break
            request["bookmark"] = data["bookmark"]

        documents = sort_documents(documents, query.order)
        if query.limit is not None:
            documents = documents[: query.limit]
        return documents


__all__ = ["CouchDBDocumentStore"]
