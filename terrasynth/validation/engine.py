"""
Validation engine turning raw, loosely-typed input into validated records.

Validation runs in two fail-fast phases:

1. Per-field: every declared field in declaration order is checked for
   presence, coerced to its semantic type, and checked against its own
   constraints. Unknown keys are rejected once all declared fields pass.
2. Struct: the schema's invariants run in order over the assembled record.

The first failure raises and nothing partial is returned.
"""

import logging
import math
import re
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from ..exceptions import (
    ConstraintViolationError,
    InvariantViolationError,
    MissingFieldError,
)
from ..references import ReferenceToken
from ..schema.schema import AttributeSchema
from ..schema.types import (
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
from .record import ValidatedAttributes

logger = logging.getLogger(__name__)

_INTEGER_STRING = re.compile(r"^[+-]?\d+$")


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def validate(
    schema: AttributeSchema, raw: Optional[Mapping[str, Any]], path: str = ""
) -> ValidatedAttributes:
    """Validate raw input against a schema.

    Args:
        schema: Schema describing the valid shape
        raw: Raw attribute mapping (None is treated as empty)
        path: Field path prefix used for nested records

    Returns:
        Immutable ValidatedAttributes record

    Raises:
        MissingFieldError: A required field is absent or None
        ConstraintViolationError: A value fails coercion or a constraint
        InvariantViolationError: A cross-field invariant does not hold
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConstraintViolationError(
            path or schema.name or "<root>", raw, "type", "expected a mapping of attributes"
        )

    values: Dict[str, Any] = {}
    for spec in schema.fields:
        field_path = _join(path, spec.name)
        value = raw.get(spec.name)
        if value is None:
            if spec.required:
                raise MissingFieldError(field_path)
            # Defaults were coerced and frozen when the schema was defined
            values[spec.name] = spec.default if spec.has_default else None
            continue
        values[spec.name] = coerce_value(spec.type, value, field_path)

    for key in raw:
        if key not in schema:
            raise ConstraintViolationError(
                _join(path, str(key)),
                raw[key],
                "unknown_field",
                f"schema '{schema.name or 'anonymous'}' declares: {', '.join(schema.field_names)}",
            )

    record = ValidatedAttributes(schema, values)

    for invariant in schema.invariants:
        try:
            invariant.check(record)
        except InvariantViolationError as e:
            if not path:
                raise
            raise InvariantViolationError(
                e.rule, [_join(path, f) for f in e.fields], e.detail
            ) from e

    return record


def coerce_value(field_type: FieldType, value: Any, path: str) -> Any:
    """Coerce one raw value to its field type and check its constraints.

    Reference tokens are accepted for every type and returned unchanged;
    their value is unknown until the external tool runs.
    """
    if isinstance(value, ReferenceToken):
        return value
    if value is None:
        raise ConstraintViolationError(path, value, "type", "value must not be null")

    if isinstance(field_type, StringType):
        return _coerce_string(field_type, value, path)
    if isinstance(field_type, IntegerType):
        return _coerce_integer(field_type, value, path)
    if isinstance(field_type, FloatType):
        return _coerce_float(field_type, value, path)
    if isinstance(field_type, BooleanType):
        return _coerce_boolean(value, path)
    if isinstance(field_type, EnumType):
        if not isinstance(value, str) or value not in field_type.values:
            raise ConstraintViolationError(
                path, value, "enum", f"expected one of: {', '.join(field_type.values)}"
            )
        return value
    if isinstance(field_type, NestedType):
        if not isinstance(value, Mapping):
            raise ConstraintViolationError(path, value, "type", "expected a mapping")
        return validate(field_type.schema, value, path)
    if isinstance(field_type, ListType):
        return _coerce_list(field_type, value, path)
    if isinstance(field_type, MapType):
        return _coerce_map(field_type, value, path)

    raise ConstraintViolationError(
        path, value, "type", f"unsupported field type {type(field_type).__name__}"
    )


def _coerce_string(field_type: StringType, value: Any, path: str) -> str:
    if not isinstance(value, str):
        raise ConstraintViolationError(path, value, "type", "expected a string")
    if field_type.min_length is not None and len(value) < field_type.min_length:
        raise ConstraintViolationError(
            path, value, "min_length", f"must be at least {field_type.min_length} characters"
        )
    if field_type.max_length is not None and len(value) > field_type.max_length:
        raise ConstraintViolationError(
            path, value, "max_length", f"must be at most {field_type.max_length} characters"
        )
    if field_type.pattern is not None and not re.fullmatch(field_type.pattern, value):
        raise ConstraintViolationError(
            path, value, "pattern", f"must match {field_type.pattern}"
        )
    if field_type.check is not None:
        problem = field_type.check(value)
        if problem:
            raise ConstraintViolationError(path, value, field_type.check_name, problem)
    return value


def _check_range(field_type: Any, number: Any, raw: Any, path: str) -> None:
    if field_type.minimum is not None and number < field_type.minimum:
        raise ConstraintViolationError(
            path, raw, "minimum", f"must be >= {field_type.minimum}"
        )
    if field_type.maximum is not None and number > field_type.maximum:
        raise ConstraintViolationError(
            path, raw, "maximum", f"must be <= {field_type.maximum}"
        )


def _coerce_integer(field_type: IntegerType, value: Any, path: str) -> int:
    if isinstance(value, bool):
        raise ConstraintViolationError(path, value, "type", "expected an integer, got a boolean")
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and math.isfinite(value) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and _INTEGER_STRING.match(value.strip()):
        try:
            number = int(value.strip())
        except ValueError:
            # past the interpreter's digit limit for str to int
            raise ConstraintViolationError(path, value, "type", "integer string is too long") from None
    else:
        raise ConstraintViolationError(path, value, "type", "expected an integer")
    _check_range(field_type, number, value, path)
    return number


def _coerce_float(field_type: FloatType, value: Any, path: str) -> float:
    if isinstance(value, bool):
        raise ConstraintViolationError(path, value, "type", "expected a number, got a boolean")
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            raise ConstraintViolationError(path, value, "type", "number is out of range") from None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ConstraintViolationError(path, value, "type", "expected a number") from None
    else:
        raise ConstraintViolationError(path, value, "type", "expected a number")
    if not math.isfinite(number):
        raise ConstraintViolationError(path, value, "type", "expected a finite number")
    _check_range(field_type, number, value, path)
    return number


def _coerce_boolean(value: Any, path: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise ConstraintViolationError(path, value, "type", "expected a boolean")


def _check_size(field_type: Any, size: int, value: Any, path: str) -> None:
    if field_type.min_items is not None and size < field_type.min_items:
        raise ConstraintViolationError(
            path, value, "min_items", f"must contain at least {field_type.min_items} items"
        )
    if field_type.max_items is not None and size > field_type.max_items:
        raise ConstraintViolationError(
            path, value, "max_items", f"must contain at most {field_type.max_items} items"
        )


def _coerce_list(field_type: ListType, value: Any, path: str) -> tuple:
    if not isinstance(value, (list, tuple)):
        raise ConstraintViolationError(path, value, "type", "expected a list")
    _check_size(field_type, len(value), value, path)
    items: List[Any] = [
        coerce_value(field_type.item, item, f"{path}[{index}]") for index, item in enumerate(value)
    ]
    if field_type.unique:
        seen: List[Any] = []
        for index, item in enumerate(items):
            if item in seen:
                raise ConstraintViolationError(
                    f"{path}[{index}]", value[index], "unique_items", "duplicate list item"
                )
            seen.append(item)
    return tuple(items)


def _coerce_map(field_type: MapType, value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConstraintViolationError(path, value, "type", "expected a mapping")
    _check_size(field_type, len(value), value, path)
    result: Dict[str, Any] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise ConstraintViolationError(path, key, "type", "map keys must be strings")
        item_path = f"{path}.{key}"
        if field_type.key_pattern is not None and not re.fullmatch(field_type.key_pattern, key):
            raise ConstraintViolationError(
                item_path, key, "key_pattern", f"keys must match {field_type.key_pattern}"
            )
        result[key] = coerce_value(field_type.value, item, item_path)
    return MappingProxyType(result)
