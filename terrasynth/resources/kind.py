"""
Resource kind registry.

A kind pairs a resource type name (``aws_vpc``) with the AttributeSchema
its nodes are validated against and the computed properties every node of
that kind exposes. Kinds are registered either with ``register_kind`` or
with the ``@resource_kind`` class decorator used by the sample catalog.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from ..exceptions import SchemaDefinitionError, UnknownKindError
from ..schema.schema import IDENTIFIER_PATTERN, RESERVED_OUTPUT_NAMES, AttributeSchema

logger = logging.getLogger(__name__)

ComputedFn = Callable[[Mapping[str, Any]], Any]

_COMPUTED_MARKER = "__terrasynth_computed__"


@dataclass(frozen=True)
class ResourceKind:
    """A registered resource type.

    Attributes:
        kind: Resource type name used in the emitted document
        schema: Schema node attributes are validated against
        computed: Properties derived from the validated attributes
        description: Free-form documentation
    """

    kind: str
    schema: AttributeSchema
    computed: Mapping[str, ComputedFn] = field(default_factory=dict, hash=False)
    description: str = ""


class KindRegistry:
    """Maps kind names to their ResourceKind definitions."""

    def __init__(self) -> None:
        self._kinds: Dict[str, ResourceKind] = {}

    def register(self, resource_kind: ResourceKind) -> ResourceKind:
        if not IDENTIFIER_PATTERN.match(resource_kind.kind):
            raise SchemaDefinitionError(
                f"Invalid resource kind name {resource_kind.kind!r}", path=resource_kind.kind
            )
        if resource_kind.kind in self._kinds:
            logger.info(f"Replacing registered kind: {resource_kind.kind}")
        self._kinds[resource_kind.kind] = resource_kind
        logger.debug(f"Registered kind: {resource_kind.kind}")
        return resource_kind

    def get(self, kind: str) -> ResourceKind:
        try:
            return self._kinds[kind]
        except KeyError:
            raise UnknownKindError(kind) from None

    def __contains__(self, kind: object) -> bool:
        return kind in self._kinds

    def kinds(self) -> List[str]:
        return list(self._kinds.keys())

    def clear(self) -> None:
        self._kinds.clear()


_default_registry = KindRegistry()
_catalog_loaded = False


def ensure_catalog_registered() -> None:
    """Import the sample catalog so its kinds register with the default registry."""
    global _catalog_loaded
    if _catalog_loaded:
        return
    from .. import catalog  # noqa: F401

    _catalog_loaded = True
    logger.debug(f"Sample catalog loaded: {len(_default_registry.kinds())} kinds")


def default_registry() -> KindRegistry:
    ensure_catalog_registered()
    return _default_registry


def register_kind(
    kind: str,
    schema: AttributeSchema,
    computed: Optional[Mapping[str, ComputedFn]] = None,
    description: str = "",
    registry: Optional[KindRegistry] = None,
) -> ResourceKind:
    """Register a schema under a kind name.

    Args:
        kind: Resource type name
        schema: Attribute schema for nodes of this kind
        computed: Optional mapping of property name to function of the attributes
        description: Free-form documentation
        registry: Target registry (defaults to the process default)

    Returns:
        The registered ResourceKind
    """
    target = registry if registry is not None else _default_registry
    if not isinstance(schema, AttributeSchema):
        raise SchemaDefinitionError(
            f"Kind {kind!r} must be registered with an AttributeSchema", path=kind
        )
    computed = dict(computed or {})
    for prop in computed:
        if prop in RESERVED_OUTPUT_NAMES or prop in schema.outputs:
            raise SchemaDefinitionError(
                f"Computed property {prop!r} clashes with an output or reference attribute",
                path=f"{kind}.{prop}",
            )
    named = schema if schema.name else schema.renamed(kind)
    return target.register(
        ResourceKind(kind=kind, schema=named, computed=computed, description=description)
    )


def computed_property(func: Callable) -> Callable:
    """Mark a static method of a ``@resource_kind`` class as a computed property."""
    setattr(func, _COMPUTED_MARKER, True)
    return func


def resource_kind(
    kind: str, description: str = "", registry: Optional[KindRegistry] = None
) -> Callable[[Type], Type]:
    """Class decorator registering a kind from a class.

    The class provides ``SCHEMA`` (an AttributeSchema) and any number of
    ``@computed_property`` functions taking the validated attributes.

    Example:
        @resource_kind("aws_sqs_queue")
        class SqsQueue:
            SCHEMA = define({...})

            @computed_property
            def is_fifo(attributes):
                return attributes["fifo_queue"]
    """

    def decorator(cls: Type) -> Type:
        schema = getattr(cls, "SCHEMA", None)
        computed: Dict[str, ComputedFn] = {}
        for attr_name, value in vars(cls).items():
            func = value.__func__ if isinstance(value, staticmethod) else value
            if callable(func) and getattr(func, _COMPUTED_MARKER, False):
                computed[attr_name] = func
        cls.KIND = kind
        cls.resource_kind = register_kind(
            kind,
            schema,
            computed=computed,
            description=description or (cls.__doc__ or "").strip(),
            registry=registry,
        )
        return cls

    return decorator
