"""Domain models for couchmapper.

Resources are plain Python objects whose persisted attributes are declared
as an explicit tuple of Property objects. All models in this module use only
the standard library.
"""

import copy
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, ClassVar

from .errors import UnknownPropertyError


class PropertyType(Enum):
    """Semantic type of a resource property."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DATE = "date"
    DATETIME = "datetime"


def _to_int(value: Any) -> int:
    # bool is an int subclass but never a valid integer value.
    if isinstance(value, bool):
        raise TypeError("booleans are not integers")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value!r} is not a whole number")
        return int(value)
    return int(value)


@dataclass(frozen=True)
class Property:
    """A persisted attribute of a resource.

    Attributes:
        name: Attribute name on the Python object.
        type: Semantic type used for casting and comparison.
        key: True for the identity property.
        field: Storage field name in the document (defaults to name).
    """

    name: str
    type: PropertyType
    key: bool = False
    field: str | None = None

    def __post_init__(self) -> None:
        """Validate property invariants on creation."""
        if not self.name or not self.name.strip():
            raise ValueError("property name must be a non-empty string")
        if self.field is not None and not self.field.strip():
            raise ValueError(f"field for property '{self.name}' must be non-empty")

    @property
    def field_name(self) -> str:
        """Name of the document field this property is stored under."""
        return self.field or self.name

    def typecast(self, value: Any) -> Any:
        """Coerce user input to the property's Python type.

        Raises:
            ValueError: If the value cannot be represented in this type.
        """
        if value is None:
            return None
        try:
            return self._cast(value)
        except (TypeError, ValueError) as e:
            raise ValueError(
                f"Cannot cast {value!r} to {self.type.value} for property '{self.name}'"
            ) from e

    def _cast(self, value: Any) -> Any:
        if self.type is PropertyType.STRING:
            return value if isinstance(value, str) else str(value)
        if self.type is PropertyType.INTEGER:
            return _to_int(value)
        if self.type is PropertyType.FLOAT:
            if isinstance(value, bool):
                raise TypeError("booleans are not numbers")
            return value if isinstance(value, float) else float(value)
        if self.type is PropertyType.DATE:
            if isinstance(value, datetime):
                return value.date()
            if isinstance(value, date):
                return value
            return date.fromisoformat(value)
        # DATETIME
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time())
        return datetime.fromisoformat(value)

    def dump(self, value: Any) -> Any:
        """Convert a Python value to its wire representation."""
        if value is None:
            return None
        if self.type in (PropertyType.DATE, PropertyType.DATETIME):
            return value.isoformat()
        return value

    def load(self, value: Any) -> Any:
        """Convert a wire value back to the property's Python type."""
        return self.typecast(value)


ID_PROPERTY = Property("id", PropertyType.STRING, key=True, field="_id")
REV_PROPERTY = Property("rev", PropertyType.STRING, field="_rev")

GENERAL = "general"


@dataclass(frozen=True)
class ValidationError:
    """A single validation failure recorded against a field."""

    field_name: str
    message: str


class ValidationErrors:
    """Ordered collection of validation failures, grouped by field."""

    def __init__(self) -> None:
        self._errors: dict[str, list[str]] = {}

    def add(self, field_name: str, message: str) -> None:
        """Append a failure message to a field."""
        self._errors.setdefault(field_name, []).append(message)

    def on(self, field_name: str) -> list[str]:
        """Messages recorded for one field (empty list if none)."""
        return list(self._errors.get(field_name, ()))

    def full_messages(self) -> list[str]:
        return [message for messages in self._errors.values() for message in messages]

    def clear(self) -> None:
        self._errors.clear()

    def __iter__(self) -> Iterator[ValidationError]:
        for field_name, messages in self._errors.items():
            for message in messages:
                yield ValidationError(field_name, message)

    def __len__(self) -> int:
        return sum(len(messages) for messages in self._errors.values())

    def __bool__(self) -> bool:
        return len(self) > 0

    def __repr__(self) -> str:
        return f"ValidationErrors({dict(self._errors)!r})"


class Resource:
    """Base class for records persisted as documents.

    Subclasses declare:
        database: Name of the document database holding the records.
        properties: Persisted properties (id and rev are implicit).
        validators: Validation rules run before every save.

    Assigning a declared property typecasts the value and marks it dirty.
    The id and rev are owned by the store and are written back after each
    successful write.
    """

    database: ClassVar[str] = ""
    properties: ClassVar[tuple[Property, ...]] = ()
    validators: ClassVar[tuple[Any, ...]] = ()

    def __init__(self, **attributes: Any) -> None:
        object.__setattr__(self, "_values", {})
        object.__setattr__(self, "_dirty", set())
        object.__setattr__(self, "_extra", {})
        object.__setattr__(self, "errors", ValidationErrors())
        object.__setattr__(self, "new_record", True)
        for name, value in attributes.items():
            if name not in self.property_map():
                raise UnknownPropertyError(type(self).__name__, name)
            setattr(self, name, value)

    @classmethod
    def all_properties(cls) -> tuple[Property, ...]:
        """Implicit id and rev followed by the declared properties."""
        return (ID_PROPERTY, REV_PROPERTY, *cls.properties)

    @classmethod
    def property_map(cls) -> dict[str, Property]:
        return {prop.name: prop for prop in cls.all_properties()}

    @classmethod
    def property_named(cls, name: str) -> Property:
        """Look up a property by attribute name.

        Raises:
            UnknownPropertyError: If the resource does not declare it.
        """
        try:
            return cls.property_map()[name]
        except KeyError:
            raise UnknownPropertyError(cls.__name__, name) from None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Resource":
        """Build a clean, persisted record from a stored document.

        Fields the resource does not declare are kept aside and written back
        unchanged by to_document().
        """
        record = cls()
        values = record._values
        known = set()
        for prop in cls.all_properties():
            known.add(prop.field_name)
            if prop.field_name in document:
                values[prop.name] = prop.load(document[prop.field_name])
        record._extra.update(
            (name, copy.deepcopy(value)) for name, value in document.items() if name not in known
        )
        record._dirty.clear()
        object.__setattr__(record, "new_record", False)
        return record

    def __getattr__(self, name: str) -> Any:
        # Only reached when regular attribute lookup fails.
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self.property_map():
            return self._values.get(name)
        raise AttributeError(
            f"'{type(self).__name__}' object has no attribute '{name}'"
        )

    def __setattr__(self, name: str, value: Any) -> None:
        prop = self.property_map().get(name)
        if prop is None:
            object.__setattr__(self, name, value)
            return
        value = prop.typecast(value)
        if name not in self._values or self._values[name] != value:
            self._values[name] = value
            self._dirty.add(name)

    @property
    def dirty_attributes(self) -> tuple[Property, ...]:
        """Properties changed since the record was loaded or last saved."""
        return tuple(prop for prop in self.all_properties() if prop.name in self._dirty)

    @property
    def dirty(self) -> bool:
        return bool(self._dirty)

    def attributes(self) -> dict[str, Any]:
        """Current values of all declared properties, keyed by attribute name."""
        return {prop.name: self._values.get(prop.name) for prop in self.properties}

    def to_document(self, dirty: bool = False) -> dict[str, Any]:
        """Serialize to a flat document keyed by storage field name.

        Args:
            dirty: If True, include only properties changed since the last save.

        Returns:
            Mapping of field name to wire value. Unset id and rev are omitted.
            Undeclared fields loaded from the store are included unless dirty.
        """
        props = self.dirty_attributes if dirty else self.all_properties()
        document: dict[str, Any] = {} if dirty else copy.deepcopy(self._extra)
        for prop in props:
            value = self._values.get(prop.name)
            if prop in (ID_PROPERTY, REV_PROPERTY) and value is None:
                continue
            document[prop.field_name] = prop.dump(value)
        return document

    def mark_persisted(self, doc_id: str, rev: str) -> None:
        """Record a successful write: store the identity and new revision."""
        self._values["id"] = doc_id
        self._values["rev"] = rev
        self._dirty.clear()
        object.__setattr__(self, "new_record", False)

    def __repr__(self) -> str:
        values = ", ".join(f"{k}={v!r}" for k, v in self.attributes().items())
        return f"<{type(self).__name__} id={self.id!r} rev={self.rev!r} {values}>"
