"""VPC networking kinds: VPCs, subnets and security groups."""

import ipaddress

from ..references import is_token
from ..resources.kind import computed_property, resource_kind
from ..schema import FieldOrdering, MutuallyExclusive, cidr_block, define, port
from ..schema.validators import availability_zone
from .common import tags_field


@resource_kind("aws_vpc")
class Vpc:
    """Virtual private cloud."""

    SCHEMA = define(
        {
            "cidr_block": {"type": cidr_block(), "required": True},
            "enable_dns_hostnames": {"type": "boolean", "default": True},
            "enable_dns_support": {"type": "boolean", "default": True},
            "instance_tenancy": {
                "type": "enum",
                "values": ["default", "dedicated"],
                "default": "default",
                "omit_if_default": True,
            },
            "tags": tags_field(),
        },
        name="aws_vpc",
        outputs=("id", "arn", "default_security_group_id", "main_route_table_id"),
    )

    @staticmethod
    @computed_property
    def address_count(attributes):
        if is_token(attributes["cidr_block"]):
            return None
        return ipaddress.ip_network(attributes["cidr_block"], strict=False).num_addresses

    @staticmethod
    @computed_property
    def is_private(attributes):
        if is_token(attributes["cidr_block"]):
            return None
        return ipaddress.ip_network(attributes["cidr_block"], strict=False).is_private


@resource_kind("aws_subnet")
class Subnet:
    """Subnet inside a VPC."""

    SCHEMA = define(
        {
            "vpc_id": {"type": "string", "required": True},
            "cidr_block": {"type": cidr_block(), "required": True},
            "availability_zone": {"type": availability_zone()},
            "map_public_ip_on_launch": {
                "type": "boolean",
                "default": False,
                "omit_if_default": True,
            },
            "tags": tags_field(),
        },
        name="aws_subnet",
        outputs=("id", "arn", "availability_zone_id"),
    )

    @staticmethod
    @computed_property
    def is_public(attributes):
        return attributes["map_public_ip_on_launch"]


SECURITY_GROUP_RULE = define(
    {
        "from_port": {"type": port(), "required": True},
        "to_port": {"type": port(), "required": True},
        "protocol": {"type": "enum", "values": ["tcp", "udp", "icmp", "-1"], "default": "tcp"},
        "cidr_blocks": {"type": "list", "items": cidr_block()},
        "security_groups": {"type": "list", "items": "string"},
        "description": "string",
    },
    name="rule",
    invariants=(FieldOrdering("from_port", "to_port"),),
)


@resource_kind("aws_security_group")
class SecurityGroup:
    """Stateful firewall attached to VPC resources."""

    SCHEMA = define(
        {
            "name": {"type": "string", "max_length": 255},
            "name_prefix": {"type": "string", "max_length": 100},
            "description": {"type": "string", "default": "Managed by terrasynth"},
            "vpc_id": "string",
            "ingress": {"type": "list", "items": SECURITY_GROUP_RULE},
            "egress": {"type": "list", "items": SECURITY_GROUP_RULE},
            "tags": tags_field(),
        },
        name="aws_security_group",
        outputs=("id", "arn", "owner_id"),
        invariants=(MutuallyExclusive(("name", "name_prefix")),),
    )

    @staticmethod
    @computed_property
    def open_ports(attributes):
        ports = []
        for rule in attributes["ingress"] or ():
            ports.append((rule["from_port"], rule["to_port"]))
        return ports
