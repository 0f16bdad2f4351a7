"""Schema system: field types, attribute schemas and cross-field invariants."""

from .invariants import (
    AtLeastOneOf,
    CompatibilityTable,
    FieldOrdering,
    ForbiddenWhen,
    Invariant,
    MutuallyExclusive,
    Predicate,
    RequiredWhen,
)
from .schema import NO_DEFAULT, AttributeSchema, FieldSpec, SchemaBuilder, define, make_field
from .types import (
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
from .validators import (
    arn,
    availability_zone,
    cidr_block,
    cidr_is_valid,
    domain_name,
    port,
    region,
)

__all__ = [
    "AttributeSchema",
    "FieldSpec",
    "SchemaBuilder",
    "define",
    "make_field",
    "NO_DEFAULT",
    "FieldType",
    "StringType",
    "IntegerType",
    "FloatType",
    "BooleanType",
    "EnumType",
    "NestedType",
    "ListType",
    "MapType",
    "Invariant",
    "MutuallyExclusive",
    "AtLeastOneOf",
    "RequiredWhen",
    "ForbiddenWhen",
    "CompatibilityTable",
    "FieldOrdering",
    "Predicate",
    "cidr_block",
    "cidr_is_valid",
    "port",
    "domain_name",
    "region",
    "availability_zone",
    "arn",
]
