"""
A synthesis run: the explicit owner of the identity registry.

Everything an author declares (resources, data sources, composites,
variables, outputs, providers) is registered on a ``Run``. Nothing is
process-global: two runs never see each other's nodes.

Usage:
    run = Run()
    vpc = run.build("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})
    subnet = run.build("aws_subnet", "app", {"vpc_id": vpc.id, "cidr_block": "10.0.1.0/24"})
    document = run.emit()
"""

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type

import structlog

from .exceptions import DuplicateIdentityError, ValidationError
from .references import ReferenceToken, TokenScope, var_token
from .resources.kind import KindRegistry, default_registry
from .resources.node import ResourceNode, ResourceReference
from .schema.schema import IDENTIFIER_PATTERN, AttributeSchema, define
from .validation.engine import validate

if TYPE_CHECKING:
    from .composites.architecture import Architecture
    from .composites.builder import CompositeBuilder
    from .composites.reference import CompositeReference
    from .config.models import SynthConfig

logger = structlog.get_logger(__name__)

# Attributes accepted by a data source lookup when no schema is given
DATA_LOOKUP_SCHEMA = define(
    {
        "id": "string",
        "name": "string",
        "most_recent": "boolean",
        "tags": {"type": "map", "value": "string"},
        "filter": {
            "type": "list",
            "items": {
                "schema": {
                    "name": {"type": "string", "required": True},
                    "values": {"type": "list", "items": "string", "min_items": 1, "required": True},
                }
            },
        },
    },
    name="data_lookup",
    outputs=("id", "arn"),
)

VARIABLE_TYPES = ("string", "number", "bool", "list(string)", "map(string)", "any")


def _check_name(kind: str, name: str) -> None:
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
        raise ValidationError(
            f"Invalid name {name!r}: names must start with a letter or underscore "
            "and contain only letters, digits and underscores",
            kind=kind,
            name=str(name),
            error_code="INVALID_NAME",
        )


class Run:
    """Registry of everything declared in one synthesis.

    Args:
        registry: Kind registry used to look up schemas (defaults to the
            process default registry with the sample catalog loaded)
        name: Label used in log events
    """

    def __init__(self, registry: Optional[KindRegistry] = None, name: str = "default") -> None:
        self.registry = registry if registry is not None else default_registry()
        self.name = name
        self._resources: Dict[Tuple[str, str], ResourceReference] = {}
        self._data: Dict[Tuple[str, str], ResourceReference] = {}
        self._composites: List["CompositeReference"] = []
        self._composite_names: Dict[str, str] = {}
        self._variables: Dict[str, Dict[str, Any]] = {}
        self._outputs: Dict[str, Dict[str, Any]] = {}
        self._providers: Dict[Tuple[str, Optional[str]], Dict[str, Any]] = {}

    # Resources

    def build(self, kind: str, name: str, attributes: Optional[Mapping[str, Any]] = None) -> ResourceReference:
        """Validate attributes and register a resource node.

        Args:
            kind: Registered resource kind
            name: Node name, unique within the kind for this run
            attributes: Raw attribute mapping

        Returns:
            ResourceReference for wiring the node into others

        Raises:
            UnknownKindError: If the kind was never registered
            ValidationError: If the attributes fail validation
            DuplicateIdentityError: If (kind, name) is already registered
        """
        resource_kind = self.registry.get(kind)
        _check_name(kind, name)
        try:
            record = validate(resource_kind.schema, attributes)
        except ValidationError as e:
            e.with_identity(kind, name)
            logger.error("resource_validation_failed", kind=kind, name=name, error=e.message)
            raise

        identity = (kind, name)
        if identity in self._resources:
            raise DuplicateIdentityError(kind, name)

        reference = ResourceReference(ResourceNode(kind, name, record), resource_kind.computed)
        self._resources[identity] = reference
        logger.debug("resource_registered", run=self.name, kind=kind, name=name)
        return reference

    def data(
        self,
        kind: str,
        name: str,
        attributes: Optional[Mapping[str, Any]] = None,
        schema: Optional[AttributeSchema] = None,
    ) -> ResourceReference:
        """Declare a lookup of pre-existing infrastructure.

        Tokens taken from the returned reference are data-scoped and never
        checked against the run's resources.
        """
        if not IDENTIFIER_PATTERN.match(kind):
            raise ValidationError(f"Invalid data source kind {kind!r}", kind=kind, name=name)
        _check_name(kind, name)
        lookup_schema = schema if schema is not None else DATA_LOOKUP_SCHEMA
        try:
            record = validate(lookup_schema, attributes)
        except ValidationError as e:
            e.with_identity(kind, name)
            raise

        identity = (kind, name)
        if identity in self._data:
            raise DuplicateIdentityError(kind, name, scope="data source")

        reference = ResourceReference(ResourceNode(kind, name, record, TokenScope.DATA))
        self._data[identity] = reference
        logger.debug("data_source_registered", run=self.name, kind=kind, name=name)
        return reference

    def get(self, kind: str, name: str) -> ResourceReference:
        try:
            return self._resources[(kind, name)]
        except KeyError:
            raise KeyError(f"No resource '{kind}.{name}' in run '{self.name}'") from None

    def has_resource(self, kind: str, name: str) -> bool:
        return (kind, name) in self._resources

    def resources(self) -> List[ResourceReference]:
        """Resources in registration order."""
        return list(self._resources.values())

    def data_sources(self) -> List[ResourceReference]:
        return list(self._data.values())

    # Composites

    def composite(
        self,
        architecture: Type["Architecture"],
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        parent: Optional["CompositeReference"] = None,
    ) -> "CompositeBuilder":
        """Start building a composite; call ``override`` then ``finalize``."""
        from .composites.builder import CompositeBuilder

        _check_name(architecture.KIND, name)
        if name in self._composite_names:
            raise DuplicateIdentityError(self._composite_names[name], name, scope="composite")
        builder = CompositeBuilder(self, architecture, name, params, parent=parent)
        self._composite_names[name] = architecture.KIND
        return builder

    def compose(
        self,
        architecture: Type["Architecture"],
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Callable[["CompositeReference"], Any]]] = None,
        extensions: Iterable[Callable[["CompositeReference"], Any]] = (),
        parent: Optional["CompositeReference"] = None,
    ) -> "CompositeReference":
        """Build a composite in one step.

        Args:
            architecture: Architecture subclass to instantiate
            name: Composite name, unique within the run
            params: Raw parameters validated against the architecture's schema
            overrides: Extension point name to replacement builder
            extensions: Builders applied to the finalized composite, in order
            parent: Enclosing composite when nested

        Returns:
            Finalized CompositeReference
        """
        builder = self.composite(architecture, name, params, parent=parent)
        for point, replacement in (overrides or {}).items():
            builder.override(point, replacement)
        reference = builder.finalize()
        for extension in extensions:
            reference.extend(extension)
        return reference

    def _register_composite(self, reference: "CompositeReference") -> None:
        if reference.parent is None:
            self._composites.append(reference)
        logger.info(
            "composite_finalized",
            run=self.name,
            architecture=reference.kind,
            name=reference.name,
            overridden=list(reference.overridden),
        )

    @property
    def composites(self) -> Tuple["CompositeReference", ...]:
        """Top-level composites in finalization order."""
        return tuple(self._composites)

    # Variables, outputs and providers

    def variable(
        self,
        name: str,
        type: str = "string",
        default: Any = None,
        description: str = "",
        sensitive: bool = False,
    ) -> ReferenceToken:
        """Declare an input variable and return a token for it."""
        _check_name("var", name)
        if type not in VARIABLE_TYPES:
            raise ValidationError(
                f"Unsupported variable type {type!r}; expected one of: {', '.join(VARIABLE_TYPES)}",
                kind="var",
                name=name,
                field_path="type",
                error_code="CONSTRAINT_VIOLATION",
            )
        if name in self._variables:
            raise DuplicateIdentityError("var", name, scope="variable")
        block: Dict[str, Any] = {"type": type}
        if default is not None:
            block["default"] = default
        if description:
            block["description"] = description
        if sensitive:
            block["sensitive"] = True
        self._variables[name] = block
        return var_token(name)

    def has_variable(self, name: str) -> bool:
        return name in self._variables

    def output(self, name: str, value: Any, description: str = "", sensitive: bool = False) -> None:
        """Declare a document output; ``value`` is usually a token."""
        _check_name("output", name)
        if name in self._outputs:
            raise DuplicateIdentityError("output", name, scope="output")
        block: Dict[str, Any] = {"value": value}
        if description:
            block["description"] = description
        if sensitive:
            block["sensitive"] = True
        self._outputs[name] = block

    def provider(self, name: str, config: Optional[Mapping[str, Any]] = None, alias: Optional[str] = None) -> None:
        """Declare a provider block (optionally aliased)."""
        _check_name("provider", name)
        key = (name, alias)
        if key in self._providers:
            raise DuplicateIdentityError("provider", alias or name, scope="provider")
        block = dict(config or {})
        if alias:
            block["alias"] = alias
        self._providers[key] = block

    @property
    def variables(self) -> Mapping[str, Dict[str, Any]]:
        return MappingProxyType(self._variables)

    @property
    def outputs(self) -> Mapping[str, Dict[str, Any]]:
        return MappingProxyType(self._outputs)

    @property
    def providers(self) -> List[Tuple[str, Dict[str, Any]]]:
        return [(name, block) for (name, _alias), block in self._providers.items()]

    # Emission

    def emit(self, config: Optional["SynthConfig"] = None, emitter: str = "terraform") -> Dict[str, Any]:
        """Serialize the run with a registered emitter."""
        from .emitters import get_emitter

        return get_emitter(emitter)(config).emit(self)

    def render(self, config: Optional["SynthConfig"] = None, emitter: str = "terraform") -> str:
        from .emitters import get_emitter

        return get_emitter(emitter)(config).render(self)

    def __repr__(self) -> str:
        return (
            f"<Run {self.name}: {len(self._resources)} resources, "
            f"{len(self._data)} data sources, {len(self._composites)} composites>"
        )
