"""Attribute schemas: immutable trees of field specifications.

Schemas are built either from a spec tree with ``define`` or through the
explicit ``SchemaBuilder`` API. A schema is never mutated after
construction; ``extend``, ``merge``, ``with_invariants`` and
``with_outputs`` all return a new schema.

Usage:
    queue = define(
        {
            "name": {"type": "string", "required": True},
            "delay_seconds": {"type": "integer", "min": 0, "max": 900, "default": 0},
            "fifo_queue": {"type": "boolean", "default": False, "omit_if_default": True},
        },
        name="queue",
        outputs=("id", "arn", "url"),
    )
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple, Union

from ..exceptions import SchemaDefinitionError, ValidationError
from .invariants import Invariant
from .types import (
    TYPE_NAMES,
    BooleanType,
    EnumType,
    FieldType,
    FloatType,
    IntegerType,
    ListType,
    MapType,
    NestedType,
    StringType,
)

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Attribute names of the reference handle; outputs may not shadow them.
RESERVED_OUTPUT_NAMES = frozenset(
    ("address", "attributes", "computed", "identity", "kind", "name", "node", "output", "outputs", "ref")
)


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()


@dataclass(frozen=True)
class FieldSpec:
    """Specification of one attribute.

    Attributes:
        name: Attribute name as written by authors
        type: Field type variant with its constraints
        required: Absence is a MissingFieldError when True
        default: Value substituted when the optional field is absent
        omit_if_default: Emitter drops the field when it holds its default
        alias: Key used in the emitted document (defaults to ``name``)
        description: Free-form documentation
        json_encode: Emitter writes the value as a JSON-encoded string
    """

    name: str
    type: FieldType
    required: bool = False
    default: Any = NO_DEFAULT
    omit_if_default: bool = False
    alias: Optional[str] = None
    description: str = ""
    json_encode: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def emitted_key(self) -> str:
        return self.alias or self.name


@dataclass(frozen=True)
class AttributeSchema:
    """Immutable description of a resource's valid attribute shape."""

    fields: Tuple[FieldSpec, ...] = ()
    name: str = ""
    outputs: Tuple[str, ...] = ("id",)
    invariants: Tuple[Invariant, ...] = ()
    description: str = ""
    _index: Dict[str, FieldSpec] = field(
        default=None, init=False, repr=False, compare=False, hash=False  # type: ignore[assignment]
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "invariants", tuple(self.invariants))
        outputs = tuple(self.outputs)
        # id is always exposed
        if "id" not in outputs:
            outputs = ("id",) + outputs
        object.__setattr__(self, "outputs", outputs)

        index: Dict[str, FieldSpec] = {}
        emitted: Dict[str, str] = {}
        for spec in self.fields:
            if not isinstance(spec, FieldSpec):
                raise SchemaDefinitionError(
                    f"Schema fields must be FieldSpec instances, got {type(spec).__name__}",
                    path=self.name or None,
                )
            path = self._path(spec.name)
            if not IDENTIFIER_PATTERN.match(spec.name):
                raise SchemaDefinitionError(f"Invalid field name {spec.name!r}", path=path)
            if spec.name in index:
                raise SchemaDefinitionError(f"Field {spec.name!r} is declared twice", path=path)
            key = spec.emitted_key
            if key in emitted:
                raise SchemaDefinitionError(
                    f"Fields {emitted[key]!r} and {spec.name!r} both emit under key {key!r}", path=path
                )
            index[spec.name] = spec
            emitted[key] = spec.name
        object.__setattr__(self, "_index", index)

        for output in self.outputs:
            if not isinstance(output, str) or not IDENTIFIER_PATTERN.match(output):
                raise SchemaDefinitionError(f"Invalid output name {output!r}", path=self._path("outputs"))
            if output in RESERVED_OUTPUT_NAMES:
                raise SchemaDefinitionError(
                    f"Output name {output!r} is reserved by resource references; use ref({output!r})",
                    path=self._path("outputs"),
                )

        for invariant in self.invariants:
            if not isinstance(invariant, Invariant):
                raise SchemaDefinitionError(
                    f"Invariant {invariant!r} does not implement Invariant",
                    path=self._path("invariants"),
                )
            unknown = [f for f in invariant.fields if f not in index]
            if unknown:
                raise SchemaDefinitionError(
                    f"Invariant '{invariant.name}' references undeclared fields: {', '.join(unknown)}",
                    path=self._path("invariants"),
                )

    def _path(self, name: str) -> str:
        return f"{self.name}.{name}" if self.name else name

    # Lookup

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)

    def field(self, name: str) -> FieldSpec:
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"Schema '{self.name or 'anonymous'}' has no field '{name}'") from None

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    @property
    def required_fields(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields if spec.required)

    # Composition (always returns a new schema)

    def extend(self, spec: Union[Mapping[str, Any], Sequence[FieldSpec]], name: Optional[str] = None) -> "AttributeSchema":
        """Return a new schema with additional fields appended.

        Args:
            spec: Spec-tree mapping (as accepted by ``define``) or FieldSpecs
            name: Optional name for the new schema

        Raises:
            SchemaDefinitionError: If a field is already declared
        """
        schema_name = name if name is not None else self.name
        if isinstance(spec, Mapping):
            additions = tuple(_parse_field(key, value, _join(schema_name, key)) for key, value in spec.items())
        else:
            additions = tuple(spec)
        for addition in additions:
            if addition.name in self._index:
                raise SchemaDefinitionError(
                    f"Field {addition.name!r} already exists in schema",
                    path=_join(schema_name, addition.name),
                )
        return AttributeSchema(
            fields=self.fields + additions,
            name=schema_name,
            outputs=self.outputs,
            invariants=self.invariants,
            description=self.description,
        )

    def merge(self, other: "AttributeSchema", name: Optional[str] = None) -> "AttributeSchema":
        """Union of two schemas; overlapping field names are an error."""
        merged = self.extend(other.fields, name=name)
        outputs = merged.outputs + tuple(o for o in other.outputs if o not in merged.outputs)
        return AttributeSchema(
            fields=merged.fields,
            name=merged.name,
            outputs=outputs,
            invariants=self.invariants + other.invariants,
            description=self.description or other.description,
        )

    def with_invariants(self, *invariants: Invariant) -> "AttributeSchema":
        return AttributeSchema(
            fields=self.fields,
            name=self.name,
            outputs=self.outputs,
            invariants=self.invariants + tuple(invariants),
            description=self.description,
        )

    def with_outputs(self, *outputs: str) -> "AttributeSchema":
        return AttributeSchema(
            fields=self.fields,
            name=self.name,
            outputs=self.outputs + tuple(o for o in outputs if o not in self.outputs),
            invariants=self.invariants,
            description=self.description,
        )

    def renamed(self, name: str) -> "AttributeSchema":
        return AttributeSchema(
            fields=self.fields,
            name=name,
            outputs=self.outputs,
            invariants=self.invariants,
            description=self.description,
        )

    # Validation entry point

    def validate(self, raw: Optional[Mapping[str, Any]]) -> Any:
        """Validate raw input against this schema.

        Returns:
            ValidatedAttributes record
        """
        from ..validation.engine import validate

        return validate(self, raw)


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


_FIELD_KEYS = {"required", "default", "omit_if_default", "alias", "description", "json_encode"}
_TYPE_KEYS = {
    "type",
    "min",
    "max",
    "pattern",
    "min_length",
    "max_length",
    "values",
    "schema",
    "items",
    "value",
    "min_items",
    "max_items",
    "unique",
    "key_pattern",
}


def _parse_type(spec: Any, path: str) -> FieldType:
    """Turn a type spec (variant, schema, type name, or shorthand mapping) into a FieldType."""
    if isinstance(spec, FieldType):
        spec.check_definition(path)
        return spec
    if isinstance(spec, AttributeSchema):
        return NestedType(spec)
    if isinstance(spec, str):
        type_class = TYPE_NAMES.get(spec)
        if type_class is None:
            raise SchemaDefinitionError(f"Unknown type name {spec!r}", path=path)
        if type_class in (EnumType, NestedType, ListType, MapType):
            raise SchemaDefinitionError(
                f"Type {spec!r} needs parameters; use a mapping spec", path=path
            )
        return type_class()
    if not isinstance(spec, Mapping):
        raise SchemaDefinitionError(
            f"Cannot interpret type spec of type {type(spec).__name__}", path=path
        )

    unknown = set(spec) - _TYPE_KEYS
    if unknown:
        raise SchemaDefinitionError(
            f"Unknown spec keys: {', '.join(sorted(map(str, unknown)))}", path=path
        )

    type_name = spec.get("type")
    if isinstance(type_name, (FieldType, AttributeSchema)):
        extra = set(spec) - {"type"}
        if extra:
            raise SchemaDefinitionError(
                f"Keys not valid alongside a type object: {', '.join(sorted(extra))}", path=path
            )
        return _parse_type(type_name, path)
    if type_name is None:
        # Infer the obvious container types from their parameter keys
        if "schema" in spec:
            type_name = "object"
        elif "items" in spec:
            type_name = "list"
        elif "value" in spec:
            type_name = "map"
        elif "values" in spec:
            type_name = "enum"
        else:
            raise SchemaDefinitionError("Type spec has no 'type'", path=path)

    type_class = TYPE_NAMES.get(type_name)
    if type_class is None:
        raise SchemaDefinitionError(f"Unknown type name {type_name!r}", path=path)

    allowed_params = {
        StringType: {"pattern", "min_length", "max_length"},
        IntegerType: {"min", "max"},
        FloatType: {"min", "max"},
        BooleanType: set(),
        EnumType: {"values"},
        NestedType: {"schema"},
        ListType: {"items", "min_items", "max_items", "unique"},
        MapType: {"value", "min_items", "max_items", "key_pattern"},
    }[type_class]
    extra = set(spec) - allowed_params - {"type"}
    if extra:
        raise SchemaDefinitionError(
            f"Keys not valid for type {type_name!r}: {', '.join(sorted(extra))}", path=path
        )

    if type_class is StringType:
        result: FieldType = StringType(
            pattern=spec.get("pattern"),
            min_length=spec.get("min_length"),
            max_length=spec.get("max_length"),
        )
    elif type_class is IntegerType:
        result = IntegerType(minimum=spec.get("min"), maximum=spec.get("max"))
    elif type_class is FloatType:
        result = FloatType(minimum=spec.get("min"), maximum=spec.get("max"))
    elif type_class is BooleanType:
        result = BooleanType()
    elif type_class is EnumType:
        values = spec.get("values")
        if values is None or isinstance(values, str):
            raise SchemaDefinitionError("Enum spec needs a sequence of 'values'", path=path)
        result = EnumType(tuple(values))
    elif type_class is NestedType:
        nested = spec.get("schema")
        if isinstance(nested, Mapping):
            nested = define(nested, name=path)
        elif not isinstance(nested, AttributeSchema):
            raise SchemaDefinitionError("Object spec needs a 'schema'", path=path)
        result = NestedType(nested)
    elif type_class is ListType:
        if "items" not in spec:
            raise SchemaDefinitionError("List spec needs 'items'", path=path)
        result = ListType(
            item=_parse_type(spec["items"], f"{path}[]"),
            min_items=spec.get("min_items"),
            max_items=spec.get("max_items"),
            unique=bool(spec.get("unique", False)),
        )
    else:
        if "value" not in spec:
            raise SchemaDefinitionError("Map spec needs 'value'", path=path)
        result = MapType(
            value=_parse_type(spec["value"], f"{path}{{}}"),
            min_items=spec.get("min_items"),
            max_items=spec.get("max_items"),
            key_pattern=spec.get("key_pattern"),
        )

    result.check_definition(path)
    return result


def _coerce_default(field_type: FieldType, default: Any, path: str) -> Any:
    """Validate a default against its own field type at definition time."""
    from ..validation.engine import coerce_value

    try:
        return coerce_value(field_type, default, path)
    except ValidationError as e:
        raise SchemaDefinitionError(
            f"Default {default!r} does not satisfy the field's constraints: {e.message}",
            path=path,
            cause=e,
        ) from e


def make_field(
    name: str,
    field_type: FieldType,
    required: bool = False,
    default: Any = NO_DEFAULT,
    omit_if_default: bool = False,
    alias: Optional[str] = None,
    description: str = "",
    json_encode: bool = False,
    path: Optional[str] = None,
) -> FieldSpec:
    """Build a FieldSpec after checking it is internally consistent."""
    path = path or name
    field_type.check_definition(path)
    if required and default is not NO_DEFAULT:
        raise SchemaDefinitionError("A required field cannot declare a default", path=path)
    if omit_if_default and default is NO_DEFAULT:
        raise SchemaDefinitionError("omit_if_default needs a default", path=path)
    if alias is not None and not IDENTIFIER_PATTERN.match(alias):
        raise SchemaDefinitionError(f"Invalid alias {alias!r}", path=path)
    if default is not NO_DEFAULT and default is not None:
        default = _coerce_default(field_type, default, path)
    return FieldSpec(
        name=name,
        type=field_type,
        required=required,
        default=default,
        omit_if_default=omit_if_default,
        alias=alias,
        description=description,
        json_encode=json_encode,
    )


def _parse_field(name: Any, spec: Any, path: str) -> FieldSpec:
    if not isinstance(name, str):
        raise SchemaDefinitionError(f"Field names must be strings, got {name!r}", path=path)
    if isinstance(spec, FieldSpec):
        if spec.name != name:
            raise SchemaDefinitionError(
                f"FieldSpec named {spec.name!r} registered under {name!r}", path=path
            )
        return make_field(
            spec.name,
            spec.type,
            spec.required,
            spec.default,
            spec.omit_if_default,
            spec.alias,
            spec.description,
            json_encode=spec.json_encode,
            path=path,
        )
    if isinstance(spec, Mapping):
        unknown = set(spec) - _FIELD_KEYS - _TYPE_KEYS
        if unknown:
            raise SchemaDefinitionError(
                f"Unknown spec keys: {', '.join(sorted(map(str, unknown)))}", path=path
            )
        type_spec = {k: v for k, v in spec.items() if k in _TYPE_KEYS}
        return make_field(
            name,
            _parse_type(type_spec, path),
            required=bool(spec.get("required", False)),
            default=spec.get("default", NO_DEFAULT),
            omit_if_default=bool(spec.get("omit_if_default", False)),
            alias=spec.get("alias"),
            description=spec.get("description", ""),
            json_encode=bool(spec.get("json_encode", False)),
            path=path,
        )
    return make_field(name, _parse_type(spec, path), path=path)


def define(
    spec: Mapping[str, Any],
    name: str = "",
    outputs: Sequence[str] = ("id",),
    invariants: Sequence[Invariant] = (),
    description: str = "",
) -> AttributeSchema:
    """Construct an AttributeSchema from a spec tree.

    Each entry maps a field name to a ``FieldSpec``, a ``FieldType``, a
    nested ``AttributeSchema``, a bare type name, or a shorthand mapping
    (``{"type": "integer", "min": 1, "required": True}``).

    Args:
        spec: Mapping of field name to field spec
        name: Schema name, used as the root of error paths
        outputs: Output attributes nodes of this schema expose
        invariants: Ordered cross-field invariants
        description: Free-form documentation

    Returns:
        New immutable AttributeSchema

    Raises:
        SchemaDefinitionError: Naming the offending path if the tree is invalid
    """
    if not isinstance(spec, Mapping):
        raise SchemaDefinitionError("Schema spec must be a mapping", path=name or None)
    fields = tuple(_parse_field(key, value, _join(name, str(key))) for key, value in spec.items())
    schema = AttributeSchema(
        fields=fields,
        name=name,
        outputs=tuple(outputs),
        invariants=tuple(invariants),
        description=description,
    )
    logger.debug(f"Defined schema '{name or 'anonymous'}' with {len(fields)} fields")
    return schema


class SchemaBuilder:
    """Explicit builder API for attribute schemas.

    Usage:
        schema = (
            SchemaBuilder("aws_ecs_task_definition")
            .string("family", required=True)
            .list_of("requires_compatibilities", EnumType(("EC2", "FARGATE")))
            .string("cpu")
            .string("memory")
            .invariant(RequiredWhen(("cpu", "memory"), when="requires_compatibilities", contains="FARGATE"))
            .output("arn", "revision")
            .build()
        )
    """

    def __init__(self, name: str = "", description: str = "") -> None:
        self.name = name
        self.description = description
        self._fields: Dict[str, FieldSpec] = {}
        self._outputs: list[str] = []
        self._invariants: list[Invariant] = []

    def field(
        self,
        name: str,
        field_type: FieldType,
        required: bool = False,
        default: Any = NO_DEFAULT,
        omit_if_default: bool = False,
        alias: Optional[str] = None,
        description: str = "",
        json_encode: bool = False,
    ) -> "SchemaBuilder":
        path = _join(self.name, name)
        if name in self._fields:
            raise SchemaDefinitionError(f"Field {name!r} is declared twice", path=path)
        self._fields[name] = make_field(
            name,
            field_type,
            required,
            default,
            omit_if_default,
            alias,
            description,
            json_encode=json_encode,
            path=path,
        )
        return self

    def string(
        self,
        name: str,
        pattern: Optional[str] = None,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
        **options: Any,
    ) -> "SchemaBuilder":
        return self.field(name, StringType(pattern, min_length, max_length), **options)

    def integer(
        self, name: str, minimum: Optional[int] = None, maximum: Optional[int] = None, **options: Any
    ) -> "SchemaBuilder":
        return self.field(name, IntegerType(minimum, maximum), **options)

    def number(
        self, name: str, minimum: Optional[float] = None, maximum: Optional[float] = None, **options: Any
    ) -> "SchemaBuilder":
        return self.field(name, FloatType(minimum, maximum), **options)

    def boolean(self, name: str, **options: Any) -> "SchemaBuilder":
        return self.field(name, BooleanType(), **options)

    def enum(self, name: str, values: Sequence[str], **options: Any) -> "SchemaBuilder":
        return self.field(name, EnumType(tuple(values)), **options)

    def nested(self, name: str, schema: AttributeSchema, **options: Any) -> "SchemaBuilder":
        return self.field(name, NestedType(schema), **options)

    def list_of(
        self,
        name: str,
        item: Union[FieldType, AttributeSchema],
        min_items: Optional[int] = None,
        max_items: Optional[int] = None,
        unique: bool = False,
        **options: Any,
    ) -> "SchemaBuilder":
        item_type = NestedType(item) if isinstance(item, AttributeSchema) else item
        return self.field(name, ListType(item_type, min_items, max_items, unique), **options)

    def map_of(
        self,
        name: str,
        value: Union[FieldType, AttributeSchema],
        min_items: Optional[int] = None,
        max_items: Optional[int] = None,
        key_pattern: Optional[str] = None,
        **options: Any,
    ) -> "SchemaBuilder":
        value_type = NestedType(value) if isinstance(value, AttributeSchema) else value
        return self.field(name, MapType(value_type, min_items, max_items, key_pattern), **options)

    def output(self, *names: str) -> "SchemaBuilder":
        for output in names:
            if output not in self._outputs:
                self._outputs.append(output)
        return self

    def invariant(self, *invariants: Invariant) -> "SchemaBuilder":
        self._invariants.extend(invariants)
        return self

    def build(self) -> AttributeSchema:
        return AttributeSchema(
            fields=tuple(self._fields.values()),
            name=self.name,
            outputs=tuple(self._outputs),
            invariants=tuple(self._invariants),
            description=self.description,
        )
