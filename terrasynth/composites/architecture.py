"""
Architecture base class for composites.

An architecture bundles resource nodes into a named, reusable pattern.
Subclasses declare:

- ``PARAMETERS``: an AttributeSchema the composite's parameters are validated against
- extension points: methods decorated with ``@extension_point``, built in
  definition order, each returning the component it created
- ``assemble``: optional hook run after every extension point is built
- computed properties: methods decorated with ``@computed``, recomputed on
  every access

Usage:
    class QueueWorker(Architecture):
        PARAMETERS = define({"environment": {"type": "string", "default": "dev"}})

        @extension_point
        def queue(self, composite):
            return composite.build("aws_sqs_queue", composite.resource_name("queue"), {...})

        @computed
        def queue_count(self, composite):
            return 1
"""

import re
from typing import Any, Callable, ClassVar, Dict, Optional, TYPE_CHECKING, Union

from ..schema.schema import AttributeSchema

if TYPE_CHECKING:
    from .reference import CompositeReference

ExtensionBuilder = Callable[["CompositeReference"], Any]

_EXTENSION_POINT_ATTR = "__extension_point__"
_COMPUTED_ATTR = "__composite_computed__"


def extension_point(name: Union[str, Callable, None] = None) -> Any:
    """Mark a method as an overridable extension point.

    Usable bare (``@extension_point``) or with an explicit point name
    (``@extension_point("database")``).
    """
    if callable(name):
        setattr(name, _EXTENSION_POINT_ATTR, name.__name__)
        return name

    def decorator(func: Callable) -> Callable:
        setattr(func, _EXTENSION_POINT_ATTR, name or func.__name__)
        return func

    return decorator


def computed(func: Callable) -> Callable:
    """Mark a method as a computed property of the composite."""
    setattr(func, _COMPUTED_ATTR, True)
    return func


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


class Architecture:
    """Base class for composite architectures."""

    KIND: ClassVar[str] = "architecture"
    PARAMETERS: ClassVar[Optional[AttributeSchema]] = None

    extension_points: ClassVar[Dict[str, Callable]] = {}
    computed_properties: ClassVar[Dict[str, Callable]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "KIND" not in vars(cls):
            cls.KIND = _snake_case(cls.__name__)

        # Inherited points keep their position; redefinitions replace the builder
        points = dict(cls.extension_points)
        properties = dict(cls.computed_properties)
        for value in vars(cls).values():
            point = getattr(value, _EXTENSION_POINT_ATTR, None)
            if point:
                points[point] = value
            if getattr(value, _COMPUTED_ATTR, False):
                properties[value.__name__] = value
        cls.extension_points = points
        cls.computed_properties = properties

    def assemble(self, composite: "CompositeReference") -> None:
        """Cross-component wiring run after all extension points are built."""

    def default_builder(self, point: str) -> ExtensionBuilder:
        """Bound default builder of an extension point."""
        return self.extension_points[point].__get__(self, type(self))

    def evaluate(self, prop: str, composite: "CompositeReference") -> Any:
        return self.computed_properties[prop](self, composite)
