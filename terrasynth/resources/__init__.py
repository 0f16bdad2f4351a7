"""Resource kinds, nodes and references."""

from .kind import (
    KindRegistry,
    ResourceKind,
    computed_property,
    default_registry,
    ensure_catalog_registered,
    register_kind,
    resource_kind,
)
from .node import ResourceNode, ResourceReference

__all__ = [
    "KindRegistry",
    "ResourceKind",
    "ResourceNode",
    "ResourceReference",
    "computed_property",
    "default_registry",
    "ensure_catalog_registered",
    "register_kind",
    "resource_kind",
]
