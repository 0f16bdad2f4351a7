"""Cross-field invariants checked after every field validated on its own.

Each invariant is a small named object exposing ``fields`` (the field names
it reads, used for definition-time checking) and ``check(record)``, which
returns normally when the rule holds and raises ``InvariantViolationError``
when it does not. A schema runs its invariants in declaration order and the
first failure aborts validation.

Values that are reference tokens are unknown until the external tool runs:
they count as *present* for presence rules and are skipped by comparisons.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from ..exceptions import InvariantViolationError
from ..references import ReferenceToken

_UNSET: Any = object()


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (tuple, list, Mapping)):
        return len(value) > 0
    return True


def _condition_holds(value: Any, equals: Any, contains: Any) -> bool:
    if isinstance(value, ReferenceToken) or value is None:
        return False
    if equals is not _UNSET and value != equals:
        return False
    if contains is not _UNSET:
        if isinstance(value, str):
            return isinstance(contains, str) and contains in value
        if not isinstance(value, (tuple, list, Mapping)):
            return False
        if contains not in value:
            return False
    return True


def _describe_condition(when: str, equals: Any, contains: Any) -> str:
    if contains is not _UNSET:
        return f"{when} contains {contains!r}"
    if equals is not _UNSET:
        return f"{when} == {equals!r}"
    return f"{when} is set"


class Invariant(ABC):
    """A named predicate over a validated record."""

    name: str

    @property
    @abstractmethod
    def fields(self) -> Tuple[str, ...]:
        """Names of the fields this invariant reads."""

    @abstractmethod
    def check(self, record: Mapping[str, Any]) -> None:
        """Raise InvariantViolationError if the rule does not hold."""


@dataclass(frozen=True)
class MutuallyExclusive(Invariant):
    """At most one of the given fields may be set."""

    exclusive: Tuple[str, ...]
    name: str = "mutually_exclusive"

    def __post_init__(self) -> None:
        object.__setattr__(self, "exclusive", tuple(self.exclusive))

    @property
    def fields(self) -> Tuple[str, ...]:
        return self.exclusive

    def check(self, record: Mapping[str, Any]) -> None:
        present = [f for f in self.exclusive if _present(record.get(f))]
        if len(present) > 1:
            raise InvariantViolationError(
                self.name, present, "fields are mutually exclusive"
            )


@dataclass(frozen=True)
class AtLeastOneOf(Invariant):
    """At least one of the given fields must be set."""

    candidates: Tuple[str, ...]
    name: str = "at_least_one_of"

    def __post_init__(self) -> None:
        object.__setattr__(self, "candidates", tuple(self.candidates))

    @property
    def fields(self) -> Tuple[str, ...]:
        return self.candidates

    def check(self, record: Mapping[str, Any]) -> None:
        if not any(_present(record.get(f)) for f in self.candidates):
            raise InvariantViolationError(
                self.name, self.candidates, "at least one must be set"
            )


@dataclass(frozen=True)
class RequiredWhen(Invariant):
    """Fields that become required when a condition on another field holds.

    ``equals`` compares the condition field's value; ``contains`` tests
    membership for list, map and string values. With neither, the
    condition is simply that ``when`` is set.
    """

    required: Tuple[str, ...]
    when: str
    equals: Any = _UNSET
    contains: Any = _UNSET
    name: str = "required_when"

    def __post_init__(self) -> None:
        if isinstance(self.required, str):
            object.__setattr__(self, "required", (self.required,))
        else:
            object.__setattr__(self, "required", tuple(self.required))

    @property
    def fields(self) -> Tuple[str, ...]:
        return self.required + (self.when,)

    def _triggered(self, record: Mapping[str, Any]) -> bool:
        if self.equals is _UNSET and self.contains is _UNSET:
            return _present(record.get(self.when))
        return _condition_holds(record.get(self.when), self.equals, self.contains)

    def check(self, record: Mapping[str, Any]) -> None:
        if not self._triggered(record):
            return
        missing = [f for f in self.required if not _present(record.get(f))]
        if missing:
            raise InvariantViolationError(
                self.name,
                missing,
                f"required when {_describe_condition(self.when, self.equals, self.contains)}",
            )


@dataclass(frozen=True)
class ForbiddenWhen(Invariant):
    """Fields that must be absent when a condition on another field holds."""

    forbidden: Tuple[str, ...]
    when: str
    equals: Any = _UNSET
    contains: Any = _UNSET
    name: str = "forbidden_when"

    def __post_init__(self) -> None:
        if isinstance(self.forbidden, str):
            object.__setattr__(self, "forbidden", (self.forbidden,))
        else:
            object.__setattr__(self, "forbidden", tuple(self.forbidden))

    @property
    def fields(self) -> Tuple[str, ...]:
        return self.forbidden + (self.when,)

    def check(self, record: Mapping[str, Any]) -> None:
        if self.equals is _UNSET and self.contains is _UNSET:
            triggered = _present(record.get(self.when))
        else:
            triggered = _condition_holds(record.get(self.when), self.equals, self.contains)
        if not triggered:
            return
        present = [f for f in self.forbidden if _present(record.get(f))]
        if present:
            raise InvariantViolationError(
                self.name,
                present,
                f"not allowed when {_describe_condition(self.when, self.equals, self.contains)}",
            )


@dataclass(frozen=True)
class CompatibilityTable(Invariant):
    """Table-driven compatibility between two fields.

    ``table`` maps each value of ``key`` to the values of ``dependent``
    allowed alongside it. Keys missing from the table are unrestricted.
    """

    key: str
    dependent: str
    table: Mapping[Any, Tuple[Any, ...]] = field(default_factory=dict, hash=False)
    name: str = "compatibility"

    @property
    def fields(self) -> Tuple[str, ...]:
        return (self.key, self.dependent)

    def check(self, record: Mapping[str, Any]) -> None:
        key_value = record.get(self.key)
        dependent_value = record.get(self.dependent)
        if key_value is None or dependent_value is None:
            return
        if isinstance(key_value, ReferenceToken) or isinstance(dependent_value, ReferenceToken):
            return
        if key_value not in self.table:
            return
        allowed = self.table[key_value]
        if dependent_value not in allowed:
            raise InvariantViolationError(
                self.name,
                (self.dependent, self.key),
                f"{self.dependent}={dependent_value!r} is not compatible with "
                f"{self.key}={key_value!r}; allowed: {', '.join(map(str, allowed))}",
            )


@dataclass(frozen=True)
class FieldOrdering(Invariant):
    """``lower`` must not exceed ``upper`` (strictly less with ``strict``)."""

    lower: str
    upper: str
    strict: bool = False
    name: str = "field_ordering"

    @property
    def fields(self) -> Tuple[str, ...]:
        return (self.lower, self.upper)

    def check(self, record: Mapping[str, Any]) -> None:
        low = record.get(self.lower)
        high = record.get(self.upper)
        if low is None or high is None:
            return
        if isinstance(low, ReferenceToken) or isinstance(high, ReferenceToken):
            return
        if low > high or (self.strict and low == high):
            relation = "<" if self.strict else "<="
            raise InvariantViolationError(
                self.name,
                (self.lower, self.upper),
                f"expected {self.lower} ({low}) {relation} {self.upper} ({high})",
            )


@dataclass(frozen=True)
class Predicate(Invariant):
    """Escape hatch: an arbitrary callable over the record.

    The callable returns True (or None) when the rule holds, False or a
    string describing the problem when it does not.
    """

    name: str
    reads: Tuple[str, ...]
    test: Callable[[Mapping[str, Any]], Union[bool, str, None]]
    message: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "reads", tuple(self.reads))

    @property
    def fields(self) -> Tuple[str, ...]:
        return self.reads

    def check(self, record: Mapping[str, Any]) -> None:
        outcome = self.test(record)
        if outcome is True or outcome is None:
            return
        detail = outcome if isinstance(outcome, str) else self.message
        raise InvariantViolationError(self.name, self.reads, detail)


def referenced_fields(invariants: Sequence[Invariant]) -> Tuple[str, ...]:
    names = []
    for invariant in invariants:
        for name in invariant.fields:
            if name not in names:
                names.append(name)
    return tuple(names)
