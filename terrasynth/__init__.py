"""terrasynth: declare infrastructure in Python, validate it early, emit Terraform JSON."""

__version__ = "0.1.0"

from .composites import Architecture, CompositeBuilder, CompositeReference, computed, extension_point
from .config import SynthConfig, load_config
from .emitters import IaCEmitter, get_emitter, register_emitter
from .emitters.terraform import TerraformEmitter
from .exceptions import (
    CompositeError,
    ConfigError,
    ConstraintViolationError,
    DuplicateIdentityError,
    InvariantViolationError,
    MissingFieldError,
    SchemaDefinitionError,
    TerrasynthError,
    UnknownKindError,
    UnresolvedReferenceError,
    ValidationError,
)
from .references import ReferenceToken, data_token, token_for, var_token
from .resources import KindRegistry, ResourceReference, computed_property, register_kind, resource_kind
from .run import Run
from .schema import AttributeSchema, SchemaBuilder, define
from .validation import ValidatedAttributes, validate

__all__ = [
    "__version__",
    "Architecture",
    "AttributeSchema",
    "CompositeBuilder",
    "CompositeError",
    "CompositeReference",
    "ConfigError",
    "ConstraintViolationError",
    "DuplicateIdentityError",
    "IaCEmitter",
    "InvariantViolationError",
    "KindRegistry",
    "MissingFieldError",
    "ReferenceToken",
    "ResourceReference",
    "Run",
    "SchemaBuilder",
    "SchemaDefinitionError",
    "SynthConfig",
    "TerraformEmitter",
    "TerrasynthError",
    "UnknownKindError",
    "UnresolvedReferenceError",
    "ValidatedAttributes",
    "ValidationError",
    "computed",
    "computed_property",
    "data_token",
    "define",
    "extension_point",
    "get_emitter",
    "load_config",
    "register_emitter",
    "register_kind",
    "resource_kind",
    "token_for",
    "validate",
    "var_token",
]
