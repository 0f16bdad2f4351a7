"""Naming, tagging and addressing helpers shared by architectures."""

import ipaddress
import re
from typing import Dict, Mapping, Optional


def sanitize_name(name: str) -> str:
    """Sanitize a name for use as a node name.

    Args:
        name: Original name

    Returns:
        Name containing only letters, digits and underscores
    """
    # Replace invalid characters with underscores
    sanitized = re.sub(r"[^a-zA-Z0-9_]", "_", name)

    # Ensure it starts with a letter or underscore
    if sanitized and sanitized[0].isdigit():
        sanitized = f"resource_{sanitized}"

    return sanitized or "unnamed_resource"


def architecture_resource_name(architecture_name: str, suffix: str) -> str:
    """Name of a node created by a composite: ``{composite}_{suffix}``."""
    return sanitize_name(f"{architecture_name}_{suffix}")


def architecture_tags(
    architecture_kind: str,
    architecture_name: str,
    environment: Optional[str] = None,
    additional_tags: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Standard tags stamped on every node a composite creates."""
    tags = {
        "Architecture": architecture_kind,
        "ArchitectureName": architecture_name,
        "ManagedBy": "terrasynth",
    }
    if environment:
        tags["Environment"] = environment
    tags.update(additional_tags or {})
    return tags


def calculate_subnet_cidr(vpc_cidr: str, subnet_index: int, new_prefix: int = 24) -> str:
    """Carve the ``subnet_index``-th subnet of ``new_prefix`` out of a VPC block.

    Args:
        vpc_cidr: VPC CIDR block (e.g. "10.0.0.0/16")
        subnet_index: Zero-based subnet position
        new_prefix: Prefix length of each subnet

    Returns:
        Subnet CIDR block (e.g. "10.0.2.0/24" for index 2)

    Raises:
        ValueError: If the block cannot hold that many subnets
    """
    network = ipaddress.ip_network(vpc_cidr, strict=False)
    if new_prefix < network.prefixlen:
        raise ValueError(f"Subnet prefix /{new_prefix} is larger than {network}")
    count = 2 ** (new_prefix - network.prefixlen)
    if subnet_index < 0 or subnet_index >= count:
        raise ValueError(f"{network} holds {count} /{new_prefix} subnets; index {subnet_index} is out of range")
    size = 2 ** (network.max_prefixlen - new_prefix)
    address = network.network_address + subnet_index * size
    return f"{address}/{new_prefix}"
