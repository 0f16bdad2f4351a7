"""Immutable validated attribute records."""

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterator, Mapping

from ..references import ReferenceToken

if TYPE_CHECKING:
    from ..schema.schema import AttributeSchema


def thaw(value: Any) -> Any:
    """Convert frozen containers back to plain dicts and lists."""
    if isinstance(value, ReferenceToken):
        return value
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (tuple, list)):
        return [thaw(item) for item in value]
    return value


class ValidatedAttributes(Mapping):
    """Read-only mapping of field name to validated value.

    Every declared field has an entry (``None`` for absent optional fields
    without a default). Lists are tuples and maps are read-only mappings,
    so the record cannot be changed after validation. Use ``evolve`` to get
    an updated, re-validated copy.
    """

    __slots__ = ("_schema", "_values")

    def __init__(self, schema: "AttributeSchema", values: Dict[str, Any]) -> None:
        object.__setattr__(self, "_schema", schema)
        object.__setattr__(self, "_values", MappingProxyType(dict(values)))

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(
                f"'{self._schema.name or 'record'}' has no attribute '{name}'"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("ValidatedAttributes is immutable; use evolve()")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("ValidatedAttributes is immutable")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ValidatedAttributes):
            return self._schema == other._schema and dict(self._values) == dict(other._values)
        if isinstance(other, Mapping):
            return dict(self._values) == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    @property
    def schema(self) -> "AttributeSchema":
        return self._schema

    def present(self) -> Dict[str, Any]:
        """Entries whose value is not None."""
        return {key: value for key, value in self._values.items() if value is not None}

    def evolve(self, **changes: Any) -> "ValidatedAttributes":
        """Return a new record with ``changes`` applied, re-validated from scratch."""
        from .engine import validate

        raw = dict(self._values)
        raw.update(changes)
        return validate(self._schema, raw)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-container copy of the record (tokens are kept as tokens)."""
        return thaw(self._values)

    def __repr__(self) -> str:
        fields = ", ".join(f"{key}={value!r}" for key, value in self.present().items())
        return f"ValidatedAttributes({self._schema.name or 'anonymous'}: {fields})"
