"""Field type variants for attribute schemas.

Each field of an ``AttributeSchema`` carries exactly one of these frozen
type nodes. Primitive variants hold their constraints; the container
variants (``NestedType``, ``ListType``, ``MapType``) hold the element type,
so a schema is an explicit tagged tree that can nest arbitrarily.

Coercion of raw values against these nodes lives in
``terrasynth.validation.engine``; this module only describes shapes and
checks that a definition is internally consistent.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, ClassVar, Optional, Tuple, Union

from ..exceptions import SchemaDefinitionError

if TYPE_CHECKING:
    from .schema import AttributeSchema

Number = Union[int, float]

# A semantic check returns None when the value is fine, otherwise a short
# description of what is wrong with it.
ValueCheck = Callable[[str], Optional[str]]


@dataclass(frozen=True)
class FieldType:
    """Base class for all field type variants."""

    type_name: ClassVar[str] = "any"

    def check_definition(self, path: str) -> None:
        """Raise SchemaDefinitionError if the type's own constraints are inconsistent."""

    def describe(self) -> str:
        return self.type_name


def _check_bounds(
    path: str,
    lower: Optional[Number],
    upper: Optional[Number],
    lower_label: str,
    upper_label: str,
) -> None:
    if lower is not None and upper is not None and lower > upper:
        raise SchemaDefinitionError(
            f"{lower_label} ({lower}) exceeds {upper_label} ({upper})", path=path
        )


def _check_size(path: str, min_items: Optional[int], max_items: Optional[int]) -> None:
    for label, bound in (("min_items", min_items), ("max_items", max_items)):
        if bound is not None and (isinstance(bound, bool) or not isinstance(bound, int) or bound < 0):
            raise SchemaDefinitionError(f"{label} must be a non-negative integer", path=path)
    _check_bounds(path, min_items, max_items, "min_items", "max_items")


@dataclass(frozen=True)
class StringType(FieldType):
    """String with optional regex pattern, length bounds and semantic check."""

    pattern: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    check: Optional[ValueCheck] = None
    check_name: str = "format"

    type_name: ClassVar[str] = "string"

    def check_definition(self, path: str) -> None:
        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as e:
                raise SchemaDefinitionError(
                    f"Invalid pattern {self.pattern!r}: {e}", path=path
                ) from e
        _check_size(path, self.min_length, self.max_length)


@dataclass(frozen=True)
class IntegerType(FieldType):
    """Integer with optional inclusive bounds."""

    minimum: Optional[int] = None
    maximum: Optional[int] = None

    type_name: ClassVar[str] = "integer"

    def check_definition(self, path: str) -> None:
        _check_bounds(path, self.minimum, self.maximum, "minimum", "maximum")


@dataclass(frozen=True)
class FloatType(FieldType):
    """Floating point number with optional inclusive bounds."""

    minimum: Optional[float] = None
    maximum: Optional[float] = None

    type_name: ClassVar[str] = "float"

    def check_definition(self, path: str) -> None:
        _check_bounds(path, self.minimum, self.maximum, "minimum", "maximum")


@dataclass(frozen=True)
class BooleanType(FieldType):
    type_name: ClassVar[str] = "boolean"


@dataclass(frozen=True)
class EnumType(FieldType):
    """Closed set of allowed string values."""

    values: Tuple[str, ...] = ()

    type_name: ClassVar[str] = "enum"

    def __post_init__(self) -> None:
        # Accept any iterable of strings; store as a tuple so the type stays hashable
        object.__setattr__(self, "values", tuple(self.values))

    def check_definition(self, path: str) -> None:
        if not self.values:
            raise SchemaDefinitionError("Enum must declare at least one value", path=path)
        if not all(isinstance(v, str) for v in self.values):
            raise SchemaDefinitionError("Enum values must be strings", path=path)
        if len(set(self.values)) != len(self.values):
            raise SchemaDefinitionError("Enum values must be unique", path=path)

    def describe(self) -> str:
        return f"enum({', '.join(self.values)})"


@dataclass(frozen=True)
class NestedType(FieldType):
    """A field whose value is itself a record of another schema."""

    schema: "AttributeSchema" = None  # type: ignore[assignment]

    type_name: ClassVar[str] = "object"

    def check_definition(self, path: str) -> None:
        from .schema import AttributeSchema

        if not isinstance(self.schema, AttributeSchema):
            raise SchemaDefinitionError("Nested type requires an AttributeSchema", path=path)

    def describe(self) -> str:
        return f"object({self.schema.name or 'anonymous'})"


@dataclass(frozen=True)
class ListType(FieldType):
    """Homogeneous list of ``item`` values."""

    item: FieldType = None  # type: ignore[assignment]
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique: bool = False

    type_name: ClassVar[str] = "list"

    def check_definition(self, path: str) -> None:
        if not isinstance(self.item, FieldType):
            raise SchemaDefinitionError("List type requires an item type", path=path)
        _check_size(path, self.min_items, self.max_items)
        self.item.check_definition(f"{path}[]")

    def describe(self) -> str:
        return f"list({self.item.describe()})"


@dataclass(frozen=True)
class MapType(FieldType):
    """String-keyed map of ``value`` values."""

    value: FieldType = None  # type: ignore[assignment]
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    key_pattern: Optional[str] = None

    type_name: ClassVar[str] = "map"

    def check_definition(self, path: str) -> None:
        if not isinstance(self.value, FieldType):
            raise SchemaDefinitionError("Map type requires a value type", path=path)
        _check_size(path, self.min_items, self.max_items)
        if self.key_pattern is not None:
            try:
                re.compile(self.key_pattern)
            except re.error as e:
                raise SchemaDefinitionError(
                    f"Invalid key pattern {self.key_pattern!r}: {e}", path=path
                ) from e
        self.value.check_definition(f"{path}{{}}")

    def describe(self) -> str:
        return f"map({self.value.describe()})"


TYPE_NAMES = {
    "string": StringType,
    "str": StringType,
    "integer": IntegerType,
    "int": IntegerType,
    "float": FloatType,
    "number": FloatType,
    "boolean": BooleanType,
    "bool": BooleanType,
    "enum": EnumType,
    "object": NestedType,
    "nested": NestedType,
    "list": ListType,
    "map": MapType,
}
