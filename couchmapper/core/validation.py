"""Validation rules with conditional execution.

Every validator derives from GenericValidator. Concrete validators capture
their parameters in __init__ (calling super so the if/unless guards are
captured) and implement call(), returning True when the record is valid.

Guard clauses are either a NamedCheck, resolved by attribute lookup on the
record, or a Predicate called with the record. Failures are recorded on
the record's error collection and are never raised.
"""

import logging
import re
from collections.abc import Callable, Collection, Iterable
from dataclasses import dataclass
from typing import Any, TypeAlias

from .models import GENERAL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamedCheck:
    """Guard resolved by name on the record (method or attribute)."""

    name: str

    def evaluate(self, record: Any) -> bool:
        # A missing attribute is a programming error and propagates.
        target = getattr(record, self.name)
        return bool(target() if callable(target) else target)


@dataclass(frozen=True)
class Predicate:
    """Guard evaluated by calling a function with the record."""

    fn: Callable[[Any], Any]

    def evaluate(self, record: Any) -> bool:
        return bool(self.fn(record))


GuardClause: TypeAlias = NamedCheck | Predicate


def as_guard(clause: Any) -> GuardClause | None:
    """Normalize an if/unless option into a guard clause.

    Args:
        clause: None, a guard clause, a method name, or a callable.

    Raises:
        TypeError: If the clause is none of those.
    """
    if clause is None or isinstance(clause, (NamedCheck, Predicate)):
        return clause
    if isinstance(clause, str):
        return NamedCheck(clause)
    if callable(clause):
        return Predicate(clause)
    raise TypeError(f"guard clause must be a method name or a callable, got {clause!r}")


class GenericValidator:
    """Base class for all validators.

    Args:
        field_name: The property validated; errors are recorded against it.
        if_: Method name or callable; the rule runs only when it is true.
        unless: Method name or callable; the rule is skipped when it is true.
        message: Overrides the validator's default error message.
    """

    def __init__(
        self,
        field_name: str,
        *,
        if_: Any = None,
        unless: Any = None,
        message: str | None = None,
    ) -> None:
        self.field_name = field_name
        self.if_clause = as_guard(if_)
        self.unless_clause = as_guard(unless)
        self.message = message

    def should_execute(self, record: Any) -> bool:
        """Decide whether this validator runs against the record.

        A true unless-clause always skips. Otherwise the if-clause decides,
        and with no if-clause the rule runs.
        """
        if self.unless_clause is not None and self.unless_clause.evaluate(record):
            return False
        if self.if_clause is not None:
            return self.if_clause.evaluate(record)
        return True

    def add_error(self, record: Any, message: str, field_name: str = GENERAL) -> None:
        """Record a failure on the record's error collection."""
        record.errors.add(field_name, message)

    def call(self, record: Any) -> bool:
        """Validate the record. Concrete validators must override this.

        Returns:
            True if valid, otherwise False (after recording an error).
        """
        raise NotImplementedError(
            f"GenericValidator.call must be overridden in {type(self).__name__}"
        )

    def __call__(self, record: Any) -> bool:
        return self.call(record)

    def run(self, record: Any) -> bool:
        """Run the validator if its guards allow it. Skipped rules pass."""
        if not self.should_execute(record):
            logger.debug(
                f"Skipping {type(self).__name__} on '{self.field_name}' (guard clause)"
            )
            return True
        return self.call(record)

    def _fail(self, record: Any, default_message: str) -> bool:
        self.add_error(record, self.message or default_message, self.field_name)
        return False

    def _value(self, record: Any) -> Any:
        return getattr(record, self.field_name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(field_name={self.field_name!r})"


def _humanize(field_name: str) -> str:
    return field_name.replace("_", " ").capitalize()


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, Collection):
        return len(value) == 0
    return False


class PresenceValidator(GenericValidator):
    """Requires a non-blank value."""

    def call(self, record: Any) -> bool:
        if _blank(self._value(record)):
            return self._fail(record, f"{_humanize(self.field_name)} must not be blank")
        return True


class LengthValidator(GenericValidator):
    """Bounds the length of a value. None is treated as length zero."""

    def __init__(
        self,
        field_name: str,
        *,
        minimum: int | None = None,
        maximum: int | None = None,
        equals: int | None = None,
        **options: Any,
    ) -> None:
        super().__init__(field_name, **options)
        if minimum is None and maximum is None and equals is None:
            raise ValueError("LengthValidator needs minimum, maximum or equals")
        self.minimum = minimum
        self.maximum = maximum
        self.equals = equals

    def call(self, record: Any) -> bool:
        value = self._value(record)
        length = 0 if value is None else len(value)
        name = _humanize(self.field_name)
        if self.equals is not None and length != self.equals:
            return self._fail(record, f"{name} must be {self.equals} characters long")
        if self.minimum is not None and length < self.minimum:
            return self._fail(record, f"{name} must be at least {self.minimum} characters long")
        if self.maximum is not None and length > self.maximum:
            return self._fail(record, f"{name} must be at most {self.maximum} characters long")
        return True


class FormatValidator(GenericValidator):
    """Requires a string value matching a regular expression."""

    def __init__(
        self, field_name: str, *, pattern: str | re.Pattern, allow_none: bool = False, **options: Any
    ) -> None:
        super().__init__(field_name, **options)
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.allow_none = allow_none

    def call(self, record: Any) -> bool:
        value = self._value(record)
        if value is None and self.allow_none:
            return True
        if not isinstance(value, str) or self.pattern.search(value) is None:
            return self._fail(record, f"{_humanize(self.field_name)} has an invalid format")
        return True


class NumericalityValidator(GenericValidator):
    """Requires a number, optionally an integer within bounds."""

    def __init__(
        self,
        field_name: str,
        *,
        integer_only: bool = False,
        gt: float | None = None,
        gte: float | None = None,
        lt: float | None = None,
        lte: float | None = None,
        allow_none: bool = False,
        **options: Any,
    ) -> None:
        super().__init__(field_name, **options)
        self.integer_only = integer_only
        self.bounds = [
            (gt, lambda v, b: v > b, "greater than"),
            (gte, lambda v, b: v >= b, "greater than or equal to"),
            (lt, lambda v, b: v < b, "less than"),
            (lte, lambda v, b: v <= b, "less than or equal to"),
        ]
        self.allow_none = allow_none

    def call(self, record: Any) -> bool:
        value = self._value(record)
        name = _humanize(self.field_name)
        if value is None and self.allow_none:
            return True
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return self._fail(record, f"{name} must be a number")
        if self.integer_only and not (isinstance(value, int) or value.is_integer()):
            return self._fail(record, f"{name} must be an integer")
        for bound, check, description in self.bounds:
            if bound is not None and not check(value, bound):
                return self._fail(record, f"{name} must be {description} {bound}")
        return True


class WithinValidator(GenericValidator):
    """Requires the value to be one of a fixed set of choices."""

    def __init__(self, field_name: str, *, choices: Iterable[Any], **options: Any) -> None:
        super().__init__(field_name, **options)
        self.choices = tuple(choices)
        if not self.choices:
            raise ValueError("WithinValidator needs at least one choice")

    def call(self, record: Any) -> bool:
        if self._value(record) not in self.choices:
            listed = ", ".join(str(choice) for choice in self.choices)
            return self._fail(record, f"{_humanize(self.field_name)} must be one of {listed}")
        return True


def validate_record(record: Any, validators: Iterable[GenericValidator] | None = None) -> bool:
    """Run validators against a record, replacing its previous errors.

    Args:
        record: Object with an ``errors`` collection.
        validators: Rules to run; defaults to the record's class validators.

    Returns:
        True if every executed rule passed.
    """
    if validators is None:
        validators = getattr(type(record), "validators", ())
    record.errors.clear()
    valid = True
    for validator in validators:
        if not validator.run(record):
            valid = False
    return valid


__all__ = [
    "FormatValidator",
    "GenericValidator",
    "GuardClause",
    "LengthValidator",
    "NamedCheck",
    "NumericalityValidator",
    "Predicate",
    "PresenceValidator",
    "WithinValidator",
    "as_guard",
    "validate_record",
]
