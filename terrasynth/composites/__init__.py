"""Composite architectures: reusable, overridable bundles of resource nodes."""

from .architecture import Architecture, computed, extension_point
from .builder import CompositeBuilder
from .helpers import (
    architecture_resource_name,
    architecture_tags,
    calculate_subnet_cidr,
    sanitize_name,
)
from .reference import CompositeReference

__all__ = [
    "Architecture",
    "CompositeBuilder",
    "CompositeReference",
    "architecture_resource_name",
    "architecture_tags",
    "calculate_subnet_cidr",
    "computed",
    "extension_point",
    "sanitize_name",
]
