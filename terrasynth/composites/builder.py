"""Explicit build phase for composites: override, then finalize."""

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Type

import structlog

from ..exceptions import (
    CompositeFinalizedError,
    ExtensionPointAlreadyOverriddenError,
    UnknownExtensionPointError,
    ValidationError,
)
from ..validation.engine import validate
from .architecture import Architecture, ExtensionBuilder
from .reference import CompositeReference

if TYPE_CHECKING:
    from ..run import Run

logger = structlog.get_logger(__name__)


class CompositeBuilder:
    """Collects extension point overrides before a composite is built.

    Nothing is built until ``finalize``; an overridden default builder is
    never invoked, so the nodes it would have created never exist.
    """

    def __init__(
        self,
        run: "Run",
        architecture: Type[Architecture],
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        parent: Optional[CompositeReference] = None,
    ) -> None:
        self.run = run
        self.architecture = architecture
        self.name = name
        self.parent = parent
        self.params = self._validate_params(params)
        self._overrides: Dict[str, ExtensionBuilder] = {}
        self._finalized = False

    def _validate_params(self, params: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
        schema = self.architecture.PARAMETERS
        if schema is None:
            return MappingProxyType(dict(params or {}))
        try:
            return validate(schema, params)
        except ValidationError as e:
            e.with_identity(self.architecture.KIND, self.name)
            raise

    @property
    def finalized(self) -> bool:
        return self._finalized

    def override(self, point: str, builder: ExtensionBuilder) -> "CompositeBuilder":
        """Replace the default builder of an extension point.

        Raises:
            CompositeFinalizedError: If the composite was already finalized
            UnknownExtensionPointError: If the architecture has no such point
            ExtensionPointAlreadyOverriddenError: If the point was already overridden
        """
        if self._finalized:
            raise CompositeFinalizedError(self.name)
        if point not in self.architecture.extension_points:
            raise UnknownExtensionPointError(
                self.name, point, available=list(self.architecture.extension_points)
            )
        if point in self._overrides:
            raise ExtensionPointAlreadyOverriddenError(self.name, point)
        if not callable(builder):
            raise TypeError(f"Override for '{point}' must be callable")
        self._overrides[point] = builder
        logger.debug("extension_point_overridden", composite=self.name, point=point)
        return self

    def finalize(self) -> CompositeReference:
        """Build every extension point in order and return the composite."""
        if self._finalized:
            raise CompositeFinalizedError(self.name)
        self._finalized = True

        instance = self.architecture()
        reference = CompositeReference(
            run=self.run,
            architecture=instance,
            name=self.name,
            params=self.params,
            parent=self.parent,
            overridden=tuple(self._overrides),
        )
        for point in self.architecture.extension_points:
            builder = self._overrides.get(point) or instance.default_builder(point)
            reference._set_component(point, builder(reference))
        instance.assemble(reference)
        reference._finalize()

        self.run._register_composite(reference)
        return reference
