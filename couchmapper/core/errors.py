"""Exception hierarchy for couchmapper.

All library exceptions inherit from CouchMapperError so callers can catch
broadly or narrowly. Validation failures are deliberately absent: they are
accumulated on the record's error collection, never raised.
"""


class CouchMapperError(Exception):
    """Base exception for all couchmapper errors."""


class StoreError(CouchMapperError):
    """The backing document store failed or rejected a request."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        database: str | None = None,
        doc_id: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.database = database
        self.doc_id = doc_id
        super().__init__(message)


class RevisionConflictError(StoreError):
    """A write was based on a revision that is no longer the latest."""


class UnsupportedOperatorError(CouchMapperError):
    """A query condition named an operator the translator does not know."""

    def __init__(self, operator: object, field: str | None = None) -> None:
        self.operator = operator
        self.field = field
        target = f" on field '{field}'" if field else ""
        super().__init__(f"Unsupported condition operator {operator!r}{target}")


class UnknownPropertyError(CouchMapperError):
    """A query or assignment referenced a property the resource does not declare."""

    def __init__(self, resource: str, name: str) -> None:
        self.resource = resource
        self.name = name
        super().__init__(f"{resource} has no property named '{name}'")


__all__ = [
    "CouchMapperError",
    "RevisionConflictError",
    "StoreError",
    "UnknownPropertyError",
    "UnsupportedOperatorError",
]
