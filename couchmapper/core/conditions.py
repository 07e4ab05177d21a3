"""Query conditions: parsing, client-side evaluation and Mango translation.

A query is a conjunction of (field, operator, value) conditions plus an
ordering. Conditions operate on stored documents, i.e. on storage field
names and wire values; mapping resource property names and Python values
onto them is the repository's job.

Ordering and comparisons follow CouchDB view collation:
null < false < true < numbers < strings < arrays < objects.
"""

import json
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import UnsupportedOperatorError


class Operator(Enum):
    """Comparison operators supported in query conditions."""

    EQ = "eq"
    NOT = "not"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"


class PatternKind(Enum):
    """How a LIKE condition interprets its pattern.

    LITERAL patterns use SQL wildcards (% for any run, _ for one character)
    and must match the whole value. REGEX patterns are searched anywhere.
    """

    LITERAL = "literal"
    REGEX = "regex"


_OPERATOR_NAMES: dict[str, Operator] = {
    "eq": Operator.EQ,
    "eql": Operator.EQ,
    "not": Operator.NOT,
    "ne": Operator.NOT,
    "gt": Operator.GT,
    "gte": Operator.GTE,
    "lt": Operator.LT,
    "lte": Operator.LTE,
    "like": Operator.LIKE,
}

_MANGO_OPERATORS: dict[Operator, str] = {
    Operator.EQ: "$eq",
    Operator.GT: "$gt",
    Operator.GTE: "$gte",
    Operator.LT: "$lt",
    Operator.LTE: "$lte",
}

# Selector matching every document; Mango requires at least one clause.
MATCH_ALL_SELECTOR: dict[str, Any] = {"_id": {"$gt": None}}


def resolve_operator(name: Any, field: str | None = None) -> Operator:
    """Map an operator name (or Operator) to an Operator.

    Raises:
        UnsupportedOperatorError: If the name is not a known operator.
    """
    if isinstance(name, Operator):
        return name
    if isinstance(name, str) and name.lower() in _OPERATOR_NAMES:
        return _OPERATOR_NAMES[name.lower()]
    raise UnsupportedOperatorError(name, field)


@dataclass(frozen=True)
class Condition:
    """A single field/operator/value constraint."""

    field: str
    operator: Operator
    value: Any
    pattern_kind: PatternKind | None = None

    def __post_init__(self) -> None:
        """Validate the operator and settle the pattern kind for LIKE."""
        if not isinstance(self.operator, Operator):
            raise UnsupportedOperatorError(self.operator, self.field)
        if self.operator is not Operator.LIKE:
            if self.pattern_kind is not None:
                raise ValueError("pattern_kind only applies to LIKE conditions")
            return

        kind = self.pattern_kind
        if kind is None:
            kind = PatternKind.REGEX if isinstance(self.value, re.Pattern) else PatternKind.LITERAL
            object.__setattr__(self, "pattern_kind", kind)

        if kind is PatternKind.REGEX and isinstance(self.value, str):
            object.__setattr__(self, "value", re.compile(self.value))
        elif kind is PatternKind.REGEX and not isinstance(self.value, re.Pattern):
            raise TypeError(f"regex pattern for '{self.field}' must be a str or re.Pattern")
        elif kind is PatternKind.LITERAL and not isinstance(self.value, str):
            raise TypeError(f"like pattern for '{self.field}' must be a string")

    def matches(self, document: Mapping[str, Any]) -> bool:
        return matches(self, document)


@dataclass(frozen=True)
class Query:
    """Conjunctive conditions plus an ascending multi-field ordering."""

    conditions: tuple[Condition, ...] = ()
    order: tuple[str, ...] = ()
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be non-negative, got {self.limit}")

    def matches(self, document: Mapping[str, Any]) -> bool:
        """True if the document satisfies every condition."""
        return all(matches(condition, document) for condition in self.conditions)

    def apply(self, documents: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
        """Filter, order and limit documents client-side."""
        selected = sort_documents([doc for doc in documents if self.matches(doc)], self.order)
        if self.limit is not None:
            selected = selected[: self.limit]
        return selected


def parse_conditions(where: Mapping[str, Any] | None) -> tuple[Condition, ...]:
    """Turn a condition mapping into structured conditions.

    A plain value means equality; a nested mapping holds one entry per
    operator, e.g. {"age": {"gte": 18, "lt": 65}, "name": "John"}.

    Raises:
        UnsupportedOperatorError: For an unknown operator name.
        ValueError: For an empty operator mapping.
    """
    if not where:
        return ()

    conditions: list[Condition] = []
    for field_name, constraint in where.items():
        if isinstance(constraint, Mapping):
            if not constraint:
                raise ValueError(f"empty operator mapping for field '{field_name}'")
            for op_name, value in constraint.items():
                operator = resolve_operator(op_name, field_name)
                conditions.append(Condition(field_name, operator, value))
        else:
            conditions.append(Condition(field_name, Operator.EQ, constraint))
    return tuple(conditions)


def build_query(
    where: Mapping[str, Any] | None = None,
    order: Sequence[str] | None = None,
    limit: int | None = None,
) -> Query:
    """Build a Query from a condition mapping and an optional ordering."""
    if isinstance(order, str):
        order = (order,)
    return Query(conditions=parse_conditions(where), order=tuple(order or ()), limit=limit)


def like_to_regex(pattern: str) -> str:
    """Convert a SQL LIKE pattern to an unanchored regular expression body."""
    parts = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


def _kind(value: Any) -> int:
    """Collation rank of a value."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 2
    if isinstance(value, str):
        return 3
    if isinstance(value, (list, tuple)):
        return 4
    return 5


def _values_equal(left: Any, right: Any) -> bool:
    return _kind(left) == _kind(right) and left == right


def _compare(operator: Operator, left: Any, right: Any) -> bool:
    kind = _kind(left)
    if kind not in (2, 3) or kind != _kind(right):
        return False
    if operator is Operator.GT:
        return left > right
    if operator is Operator.GTE:
        return left >= right
    if operator is Operator.LT:
        return left < right
    return left <= right


def _like(condition: Condition, value: Any) -> bool:
    if not isinstance(value, str):
        return False
    if condition.pattern_kind is PatternKind.REGEX:
        return condition.value.search(value) is not None
    return re.fullmatch(like_to_regex(condition.value), value, re.DOTALL) is not None


def matches(condition: Condition, document: Mapping[str, Any]) -> bool:
    """Evaluate one condition against a document.

    Missing fields behave as null.

    Raises:
        UnsupportedOperatorError: If the condition's operator is unknown.
    """
    value = document.get(condition.field)
    operator = condition.operator

    if operator is Operator.EQ:
        return _values_equal(value, condition.value)
    if operator is Operator.NOT:
        return not _values_equal(value, condition.value)
    if operator in (Operator.GT, Operator.GTE, Operator.LT, Operator.LTE):
        return _compare(operator, value, condition.value)
    if operator is Operator.LIKE:
        return _like(condition, value)
    raise UnsupportedOperatorError(operator, condition.field)


def collation_key(value: Any) -> tuple[int, Any]:
    """Sort key placing values of different kinds in CouchDB collation order."""
    kind = _kind(value)
    if kind == 0:
        return (0, 0)
    if kind in (1, 2, 3):
        return (kind, value)
    return (kind, json.dumps(value, sort_keys=True, default=str))


def sort_documents(
    documents: Iterable[Mapping[str, Any]], order: Sequence[str]
) -> list[Mapping[str, Any]]:
    """Stable ascending sort on the listed fields, left to right."""
    documents = list(documents)
    if not order:
        return documents
    return sorted(
        documents,
        key=lambda doc: tuple(collation_key(doc.get(name)) for name in order),
    )


_INLINE_FLAGS = ((re.IGNORECASE, "i"), (re.MULTILINE, "m"), (re.DOTALL, "s"))


def _regex_source(pattern: re.Pattern) -> str:
    letters = "".join(letter for flag, letter in _INLINE_FLAGS if pattern.flags & flag)
    prefix = f"(?{letters})" if letters else ""
    return prefix + pattern.pattern


def condition_to_selector(condition: Condition) -> dict[str, Any]:
    """Translate one condition into a Mango selector clause.

    Mango's $ne skips documents lacking the field, while a missing field
    counts as null here, so NOT also admits documents without it.
    """
    if condition.operator is Operator.LIKE:
        if condition.pattern_kind is PatternKind.REGEX:
            source = _regex_source(condition.value)
        else:
            source = f"(?s)^{like_to_regex(condition.value)}$"
        return {condition.field: {"$regex": source}}

    if condition.operator is Operator.NOT:
        return {
            "$or": [
                {condition.field: {"$ne": condition.value}},
                {condition.field: {"$exists": False}},
            ]
        }

    try:
        mango_operator = _MANGO_OPERATORS[condition.operator]
    except KeyError:
        raise UnsupportedOperatorError(condition.operator, condition.field) from None
    return {condition.field: {mango_operator: condition.value}}


def to_mango(query: Query) -> dict[str, Any]:
    """Translate a query into a CouchDB Mango _find selector.

    Ordering and limit are applied client-side by the store adapter, since
    Mango sorting requires a matching index to exist. The adapter also
    re-checks every returned document with Query.matches, because Mango
    range operators collate across value types.
    """
    clauses = [condition_to_selector(condition) for condition in query.conditions]
    if not clauses:
        selector: dict[str, Any] = dict(MATCH_ALL_SELECTOR)
    elif len(clauses) == 1:
        selector = clauses[0]
    else:
        selector = {"$and": clauses}
    return {"selector": selector}


__all__ = [
    "Condition",
    "MATCH_ALL_SELECTOR",
    "Operator",
    "PatternKind",
    "Query",
    "build_query",
    "collation_key",
    "condition_to_selector",
    "like_to_regex",
    "matches",
    "parse_conditions",
    "resolve_operator",
    "sort_documents",
    "to_mango",
]
