"""Composite references: the handle to a built architecture."""

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from ..exceptions import CompositeError
from ..resources.node import ResourceReference
from ..validation.record import thaw
from .helpers import architecture_resource_name, architecture_tags

if TYPE_CHECKING:
    from ..run import Run
    from .architecture import Architecture

COST_PROPERTY = "estimated_monthly_cost"


def _walk(member: Any) -> List[ResourceReference]:
    """Flatten a component (node, composite, or container of them) into nodes."""
    if isinstance(member, ResourceReference):
        return [member]
    if isinstance(member, CompositeReference):
        return member.all_resources()
    if isinstance(member, Mapping):
        return [node for value in member.values() for node in _walk(value)]
    if isinstance(member, (list, tuple)):
        return [node for value in member for node in _walk(value)]
    return []


def _member_cost(member: Any) -> float:
    if isinstance(member, ResourceReference):
        return float(member.computed.get(COST_PROPERTY) or 0.0)
    if isinstance(member, CompositeReference):
        return member.estimated_monthly_cost
    if isinstance(member, Mapping):
        return sum(_member_cost(value) for value in member.values())
    if isinstance(member, (list, tuple)):
        return sum(_member_cost(value) for value in member)
    return 0.0


def _addresses(member: Any) -> List[str]:
    return [node.address for node in _walk(member)]


class CompositeReference:
    """A finalized (or finalizing) composite.

    While extension points are being built the reference doubles as the
    builder context: ``build``, ``data`` and ``compose`` register nodes on
    the owning run, and components built so far are reachable as
    attributes (``composite.network``).

    Computed properties are evaluated on every access, so they always see
    members appended later through ``extend``.
    """

    def __init__(
        self,
        run: "Run",
        architecture: "Architecture",
        name: str,
        params: Mapping[str, Any],
        parent: Optional["CompositeReference"] = None,
        overridden: Tuple[str, ...] = (),
    ) -> None:
        self._run = run
        self._architecture = architecture
        self._name = name
        self._params = params
        self._parent = parent
        self._overridden = overridden
        self._components: Dict[str, Any] = {}
        self._extensions: List[Tuple[str, Any]] = []
        self._finalized = False

    # Identity and state

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> str:
        return self._architecture.KIND

    @property
    def architecture(self) -> "Architecture":
        return self._architecture

    @property
    def params(self) -> Mapping[str, Any]:
        return self._params

    @property
    def run(self) -> "Run":
        return self._run

    @property
    def parent(self) -> Optional["CompositeReference"]:
        return self._parent

    @property
    def overridden(self) -> Tuple[str, ...]:
        return self._overridden

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def components(self) -> Mapping[str, Any]:
        return MappingProxyType(self._components)

    @property
    def extensions(self) -> Tuple[Tuple[str, Any], ...]:
        return tuple(self._extensions)

    def _set_component(self, point: str, member: Any) -> None:
        self._components[point] = member

    def _finalize(self) -> None:
        self._finalized = True

    # Builder context

    def resource_name(self, suffix: str) -> str:
        return architecture_resource_name(self._name, suffix)

    def tags(self, additional_tags: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        return architecture_tags(
            self.kind, self._name, self._params.get("environment"), additional_tags
        )

    def build(self, kind: str, name: str, attributes: Optional[Mapping[str, Any]] = None) -> ResourceReference:
        return self._run.build(kind, name, attributes)

    def data(self, kind: str, name: str, attributes: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> ResourceReference:
        return self._run.data(kind, name, attributes, **kwargs)

    def compose(
        self,
        architecture: Type["Architecture"],
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Callable[["CompositeReference"], Any]]] = None,
        extensions: Tuple[Callable[["CompositeReference"], Any], ...] = (),
    ) -> "CompositeReference":
        """Build a nested composite owned by this one."""
        return self._run.compose(
            architecture, name, params, overrides=overrides, extensions=extensions, parent=self
        )

    # Members

    def component(self, point: str) -> Any:
        try:
            return self._components[point]
        except KeyError:
            raise KeyError(f"Composite '{self._name}' has no component '{point}'") from None

    def __getattr__(self, attr: str) -> Any:
        if attr.startswith("_"):
            raise AttributeError(attr)
        if attr in self._components:
            return self._components[attr]
        for extension_name, member in self._extensions:
            if extension_name == attr:
                return member
        if attr in self._architecture.computed_properties:
            return self._architecture.evaluate(attr, self)
        raise AttributeError(f"Composite '{self._name}' has no component or property '{attr}'")

    def extend(self, builder: Callable[["CompositeReference"], Any], name: Optional[str] = None) -> Any:
        """Append members to a finalized composite.

        The builder receives this composite and returns the new member(s).
        Existing components are never touched.
        """
        if not self._finalized:
            raise CompositeError(
                f"Composite '{self._name}' must be finalized before it can be extended",
                error_code="COMPOSITE_NOT_FINALIZED",
                context={"composite": self._name},
            )
        member_name = name or f"extension_{len(self._extensions)}"
        taken = set(self._components) | {existing for existing, _ in self._extensions}
        if member_name in taken:
            raise CompositeError(
                f"Composite '{self._name}' already has a member named '{member_name}'",
                error_code="DUPLICATE_MEMBER",
                context={"composite": self._name, "member": member_name},
            )
        member = builder(self)
        self._extensions.append((member_name, member))
        return member

    def all_resources(self) -> List[ResourceReference]:
        """Every node reachable from this composite, deduplicated, in build order."""
        seen = set()
        nodes = []
        members = list(self._components.values()) + [member for _, member in self._extensions]
        for node in _walk(members):
            if node.address not in seen:
                seen.add(node.address)
                nodes.append(node)
        return nodes

    # Roll-ups

    def computed_values(self) -> Dict[str, Any]:
        return {
            prop: self._architecture.evaluate(prop, self)
            for prop in self._architecture.computed_properties
        }

    def cost_breakdown(self) -> Dict[str, Any]:
        """Estimated monthly cost per component and extension member."""
        components = {point: _member_cost(member) for point, member in self._components.items()}
        extensions = {name: _member_cost(member) for name, member in self._extensions}
        return {
            "components": components,
            "extensions": extensions,
            "total": round(sum(components.values()) + sum(extensions.values()), 2),
        }

    @property
    def estimated_monthly_cost(self) -> float:
        return self.cost_breakdown()["total"]

    def summary(self) -> Dict[str, Any]:
        return {
            "name": self._name,
            "kind": self.kind,
            "params": thaw(self._params),
            "components": {point: _addresses(member) for point, member in self._components.items()},
            "extensions": {name: _addresses(member) for name, member in self._extensions},
            "overridden": list(self._overridden),
            "component_count": len(self._components),
            "resource_count": len(self.all_resources()),
            "estimated_monthly_cost": self.estimated_monthly_cost,
            "computed": self.computed_values(),
        }

    def __repr__(self) -> str:
        return f"<CompositeReference {self.kind}.{self._name}>"
