"""Reference tokens: lazy symbolic pointers to another node's outputs.

A ``ReferenceToken`` names an attribute of some node whose real value is
only known once the external tool runs. Tokens are plain immutable values
with structural equality; they are never evaluated by the engine and are
rendered to interpolation syntax only by the emitter.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Mapping, Tuple, Union

PathSegment = Union[str, int]


class TokenScope(str, Enum):
    """Namespace a token points into."""

    RESOURCE = "resource"  # node created by this run
    DATA = "data"  # pre-existing infrastructure looked up by the tool
    VARIABLE = "var"  # input variable declared on the run


@dataclass(frozen=True)
class ReferenceToken:
    """Forward-declared promise of a node attribute.

    Attributes:
        kind: Resource kind of the target (e.g. "aws_vpc"); "var" for variables
        name: Target node name (or variable name)
        path: Attribute path segments; integers index into lists
        scope: Whether the target is local, external data, or a variable
    """

    kind: str
    name: str
    path: Tuple[PathSegment, ...] = ()
    scope: TokenScope = TokenScope.RESOURCE

    @property
    def is_external(self) -> bool:
        """External tokens are exempt from local registry checks."""
        return self.scope is TokenScope.DATA

    @property
    def target(self) -> Tuple[str, str]:
        """The (kind, name) identity this token points at."""
        return (self.kind, self.name)

    def child(self, segment: PathSegment) -> "ReferenceToken":
        """Return a token for a nested attribute of this token's path."""
        return ReferenceToken(self.kind, self.name, self.path + (segment,), self.scope)

    def __getitem__(self, segment: PathSegment) -> "ReferenceToken":
        return self.child(segment)

    def dotted_path(self) -> str:
        """Render the path as ``a.b[0].c`` (no scope, kind or name)."""
        rendered = ""
        for segment in self.path:
            if isinstance(segment, int):
                rendered += f"[{segment}]"
            else:
                rendered += f".{segment}" if rendered else segment
        return rendered

    def __repr__(self) -> str:
        if self.scope is TokenScope.VARIABLE:
            address = f"var.{self.name}"
        elif self.scope is TokenScope.DATA:
            address = f"data.{self.kind}.{self.name}"
        else:
            address = f"{self.kind}.{self.name}"
        path = self.dotted_path()
        if path and not path.startswith("["):
            path = f".{path}"
        return f"<ReferenceToken {address}{path}>"


def _split_path(path: Union[str, PathSegment, Tuple[PathSegment, ...]]) -> Tuple[PathSegment, ...]:
    if isinstance(path, tuple):
        return path
    if isinstance(path, int):
        return (path,)
    if not path:
        return ()
    return tuple(path.split("."))


def token_for(kind: str, name: str, path: Union[str, Tuple[PathSegment, ...]] = "id") -> ReferenceToken:
    """Create a token for an attribute of a node built in this run.

    Args:
        kind: Target resource kind
        name: Target node name
        path: Dotted attribute path or tuple of segments

    Returns:
        Resource-scoped ReferenceToken
    """
    return ReferenceToken(kind, name, _split_path(path), TokenScope.RESOURCE)


def data_token(kind: str, name: str, path: Union[str, Tuple[PathSegment, ...]] = "id") -> ReferenceToken:
    """Create a token for pre-existing infrastructure (a data lookup)."""
    return ReferenceToken(kind, name, _split_path(path), TokenScope.DATA)


def var_token(name: str) -> ReferenceToken:
    """Create a token for an input variable declared on the run."""
    return ReferenceToken("var", name, (), TokenScope.VARIABLE)


def is_token(value: Any) -> bool:
    return isinstance(value, ReferenceToken)


def iter_tokens(value: Any, path: str = "") -> Iterator[Tuple[str, ReferenceToken]]:
    """Yield ``(field_path, token)`` for every token nested in a value.

    Walks mappings, lists and tuples; anything else is a leaf.
    """
    if isinstance(value, ReferenceToken):
        yield path, value
    elif isinstance(value, Mapping):
        for key, item in value.items():
            yield from iter_tokens(item, f"{path}.{key}" if path else str(key))
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            yield from iter_tokens(item, f"{path}[{index}]")
