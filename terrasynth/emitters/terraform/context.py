"""EmitterContext - Shared state for one emission pass.

This module contains the EmitterContext dataclass that tracks the document
being built and every identity that references may resolve against.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Set


@dataclass
class EmitterContext:
    """Shared context for one emission pass.

    This dataclass encapsulates the state built while walking a run:
    - Terraform config being built
    - Resource, data source and variable tracking for reference resolution
    - Counters for statistics

    Usage:
        context = EmitterContext()
        context.add_resource("aws_vpc", "main", {...})
        context.resource_exists("aws_vpc", "main")
    """

    # Terraform config being built
    terraform_config: Dict[str, Any] = field(default_factory=dict)

    # Identity tracking for reference resolution
    available_resources: Dict[str, Set[str]] = field(default_factory=dict)
    available_data_sources: Dict[str, Set[str]] = field(default_factory=dict)
    declared_variables: Set[str] = field(default_factory=set)

    # Statistics
    token_count: int = 0

    def track_resource(self, kind: str, name: str) -> None:
        """Make a resource resolvable before its config is serialized.

        Args:
            kind: Resource kind (e.g., "aws_vpc")
            name: Node name
        """
        self.available_resources.setdefault(kind, set()).add(name)

    def resource_exists(self, kind: str, name: str) -> bool:
        """Check if a resource exists in tracking.

        Args:
            kind: Resource kind
            name: Node name

        Returns:
            True if resource is being tracked
        """
        return name in self.available_resources.get(kind, set())

    def track_data_source(self, kind: str, name: str) -> None:
        self.available_data_sources.setdefault(kind, set()).add(name)

    def data_source_exists(self, kind: str, name: str) -> bool:
        return name in self.available_data_sources.get(kind, set())

    def declare_variable(self, name: str) -> None:
        self.declared_variables.add(name)

    def variable_exists(self, name: str) -> bool:
        return name in self.declared_variables

    def add_resource(self, kind: str, name: str, config: Dict[str, Any]) -> None:
        """Add a resource to terraform config.

        Args:
            kind: Resource kind (e.g., "aws_sqs_queue")
            name: Node name
            config: Resource configuration dict
        """
        self.track_resource(kind, name)
        self.terraform_config.setdefault("resource", {}).setdefault(kind, {})[name] = config

    def add_data_source(self, kind: str, name: str, config: Dict[str, Any]) -> None:
        """Add a data source to terraform config.

        Data sources look up infrastructure that already exists
        (e.g., a shared VPC) without managing it.

        Example:
            context.add_data_source("aws_vpc", "shared", {"tags": {"Name": "shared"}})
        """
        self.track_data_source(kind, name)
        self.terraform_config.setdefault("data", {}).setdefault(kind, {})[name] = config

    def get_statistics(self) -> Dict[str, int]:
        return {
            "resources": sum(len(names) for names in self.available_resources.values()),
            "resource_kinds": len(self.available_resources),
            "data_sources": sum(len(names) for names in self.available_data_sources.values()),
            "variables": len(self.declared_variables),
            "tokens": self.token_count,
        }
