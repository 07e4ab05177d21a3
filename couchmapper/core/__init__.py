"""Core mapping logic for couchmapper.

This package has no third-party dependencies: it holds the resource model,
the query condition translator, the validation dispatcher and the
repository service. Store implementations live in the adapters package.
"""

from .conditions import Condition, Operator, PatternKind, Query, build_query
from .errors import (
    CouchMapperError,
    RevisionConflictError,
    StoreError,
    UnknownPropertyError,
    UnsupportedOperatorError,
)
from .models import Property, PropertyType, Resource, ValidationError, ValidationErrors
from .repository import Repository
from .validation import GenericValidator, NamedCheck, Predicate

__all__ = [
    "Condition",
    "CouchMapperError",
    "GenericValidator",
    "NamedCheck",
    "Operator",
    "PatternKind",
    "Predicate",
    "Property",
    "PropertyType",
    "Query",
    "Repository",
    "Resource",
    "RevisionConflictError",
    "StoreError",
    "UnknownPropertyError",
    "UnsupportedOperatorError",
    "ValidationError",
    "ValidationErrors",
    "build_query",
]
