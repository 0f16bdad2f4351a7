"""Resource nodes and the references handed back to authors."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ..references import PathSegment, ReferenceToken, TokenScope, data_token, token_for
from ..validation.record import ValidatedAttributes
from .kind import ComputedFn


@dataclass(frozen=True)
class ResourceNode:
    """One declared resource (or data source) and its validated attributes."""

    kind: str
    name: str
    attributes: ValidatedAttributes
    scope: TokenScope = TokenScope.RESOURCE

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.kind, self.name)

    @property
    def is_data(self) -> bool:
        return self.scope is TokenScope.DATA

    @property
    def address(self) -> str:
        prefix = "data." if self.is_data else ""
        return f"{prefix}{self.kind}.{self.name}"


class ResourceReference:
    """Handle returned by ``Run.build`` / ``Run.data``.

    Declared outputs are exposed as reference tokens (``ref.id``,
    ``ref.output("arn")``); computed properties are evaluated once, when the
    node is built, and exposed as plain values (``ref.computed["cost"]`` or
    ``ref.cost``).
    """

    __slots__ = ("_node", "_computed")

    def __init__(self, node: ResourceNode, computed: Optional[Mapping[str, ComputedFn]] = None) -> None:
        self._node = node
        self._computed: Dict[str, Any] = {
            prop: fn(node.attributes) for prop, fn in (computed or {}).items()
        }

    @property
    def node(self) -> ResourceNode:
        return self._node

    @property
    def kind(self) -> str:
        return self._node.kind

    @property
    def name(self) -> str:
        return self._node.name

    @property
    def identity(self) -> Tuple[str, str]:
        return self._node.identity

    @property
    def address(self) -> str:
        return self._node.address

    @property
    def attributes(self) -> ValidatedAttributes:
        return self._node.attributes

    @property
    def outputs(self) -> Tuple[str, ...]:
        return self._node.attributes.schema.outputs

    @property
    def computed(self) -> Dict[str, Any]:
        return dict(self._computed)

    def ref(self, path: Union[str, Tuple[PathSegment, ...]] = "id") -> ReferenceToken:
        """Token for any attribute path of this node, declared output or not."""
        if self._node.is_data:
            return data_token(self.kind, self.name, path)
        return token_for(self.kind, self.name, path)

    def output(self, name: str) -> ReferenceToken:
        """Token for a declared output.

        Raises:
            KeyError: If the kind does not declare the output
        """
        if name not in self.outputs:
            raise KeyError(
                f"{self.address} has no output '{name}'; declared: {', '.join(self.outputs)}"
            )
        return self.ref(name)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self.outputs:
            return self.ref(name)
        if name in self._computed:
            return self._computed[name]
        raise AttributeError(f"{self.address} has no output or computed property '{name}'")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceReference):
            return NotImplemented
        return self.address == other.address

    def __hash__(self) -> int:
        return hash(self.address)

    def __repr__(self) -> str:
        return f"<ResourceReference {self.address}>"
