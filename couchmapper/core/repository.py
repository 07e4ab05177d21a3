"""Repository: persists Resource subclasses through a DocumentStorePort.

The repository is the seam between typed resources and untyped documents.
It validates before writing, keeps the record's id and revision in step
with the store, and translates property-level conditions into
field-level queries.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

from .conditions import Condition, Operator, Query, parse_conditions
from .errors import StoreError
from .models import Property, PropertyType, Resource
from .ports import DocumentStorePort
from .validation import validate_record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Resource)


class Repository(Generic[R]):
    """Persistence operations for one resource class.

    Validation failures make save() return False and leave the store
    untouched. Store failures always propagate to the caller.
    """

    def __init__(self, store: DocumentStorePort, resource_class: type[R]):
        """Initialize the repository.

        Args:
            store: DocumentStorePort implementation for persistence.
            resource_class: Resource subclass this repository manages.

        Raises:
            ValueError: If the resource class names no database.
        """
        if not resource_class.database:
            raise ValueError(f"{resource_class.__name__} must declare a database name")
        self.store = store
        self.resource_class = resource_class

    @property
    def database(self) -> str:
        return self.resource_class.database

    async def save(self, record: R) -> bool:
        """Validate and persist a record, creating or updating it.

        On success the record's id and new revision are written back and its
        dirty state is cleared.

        Returns:
            True if persisted (or nothing needed persisting), False if invalid.

        Raises:
            RevisionConflictError: If the record is based on a stale revision.
            StoreError: If the store fails.
        """
        if not validate_record(record):
            logger.info(
                f"Not saving invalid {self.resource_class.__name__}: "
                f"{record.errors.full_messages()}"
            )
            return False

        try:
            if record.new_record:
                doc_id, rev = await self.store.create(self.database, record.to_document())
                record.mark_persisted(doc_id, rev)
                logger.debug(f"Created {self.resource_class.__name__} {doc_id} at {rev}")
                return True

            if not record.dirty:
                return True

            changed = sorted(record.to_document(dirty=True))
            rev = await self.store.update(
                self.database, record.id, record.rev, record.to_document()
            )
            record.mark_persisted(record.id, rev)
            logger.debug(
                f"Updated {self.resource_class.__name__} {record.id} to {rev}",
                extra={"changed_fields": changed},
            )
            return True
        except StoreError as e:
            logger.error(f"Failed to save {self.resource_class.__name__} {record.id}: {e}")
            raise

    async def get(self, doc_id: str) -> R | None:
        """Look up a record by id. Returns None if it does not exist."""
        document = await self.store.read(self.database, doc_id)
        if document is None:
            return None
        return self.resource_class.from_document(document)

    async def destroy(self, record: R) -> bool:
        """Delete a persisted record.

        Returns:
            True if deleted, False if the record was never saved or is gone.

        Raises:
            RevisionConflictError: If the record is based on a stale revision.
            StoreError: If the store fails.
        """
        if record.new_record or record.id is None:
            return False
        try:
            deleted = await self.store.delete(self.database, record.id, record.rev)
        except StoreError as e:
            logger.error(f"Failed to destroy {self.resource_class.__name__} {record.id}: {e}")
            raise
        if deleted:
            logger.debug(f"Destroyed {self.resource_class.__name__} {record.id}")
        return deleted

    async def all(
        self,
        where: Mapping[str, Any] | None = None,
        order: Sequence[str] | None = None,
        limit: int | None = None,
    ) -> list[R]:
        """Return records matching a condition mapping.

        Args:
            where: Property name to value, or to {operator: value}.
            order: Property names to sort by, ascending, in priority order.
            limit: Maximum number of records.

        Raises:
            UnknownPropertyError: If a condition or order names no property.
            UnsupportedOperatorError: If a condition names an unknown operator.
        """
        query = self.compile_query(where, order, limit)
        documents = await self.store.find(self.database, query)
        return [self.resource_class.from_document(document) for document in documents]

    async def first(
        self,
        where: Mapping[str, Any] | None = None,
        order: Sequence[str] | None = None,
    ) -> R | None:
        records = await self.all(where, order, limit=1)
        return records[0] if records else None

    async def count(self, where: Mapping[str, Any] | None = None) -> int:
        return len(await self.store.find(self.database, self.compile_query(where)))

    def compile_query(
        self,
        where: Mapping[str, Any] | None = None,
        order: Sequence[str] | None = None,
        limit: int | None = None,
    ) -> Query:
        """Translate property-level conditions into a field-level Query.

        Condition values are typecast through the property and converted to
        their wire form, so dates compare as stored ISO strings. Numbers on
        numeric properties are kept as given.
        """
        conditions = tuple(
            self._to_field_condition(condition) for condition in parse_conditions(where)
        )
        if isinstance(order, str):
            order = (order,)
        fields = tuple(
            self.resource_class.property_named(name).field_name for name in (order or ())
        )
        return Query(conditions=conditions, order=fields, limit=limit)

    def _to_field_condition(self, condition: Condition) -> Condition:
        prop = self.resource_class.property_named(condition.field)
        if condition.operator is Operator.LIKE:
            return Condition(
                prop.field_name, condition.operator, condition.value, condition.pattern_kind
            )
        return Condition(prop.field_name, condition.operator, _operand(prop, condition.value))


def _operand(prop: Property, value: Any) -> Any:
    """Wire value to compare a property against.

    Numbers are compared as given on numeric properties, so 49.5 stays 49.5
    against an integer field. Anything else is typecast and dumped.
    """
    if (
        prop.type in (PropertyType.INTEGER, PropertyType.FLOAT)
        and isinstance(value, (int, float))
        and not isinstance(value, bool)
    ):
        return value
    return prop.dump(prop.typecast(value))


__all__ = ["Repository"]
