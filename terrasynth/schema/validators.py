"""Shared field types for common infrastructure values.

These are ready-made ``FieldType`` instances for values that show up across
many resource kinds (CIDR blocks, ports, domain names, regions). Each one
is a plain ``StringType``/``IntegerType`` carrying a pattern and, where a
regex is not enough, a semantic check callable.
"""

import ipaddress
import re
from typing import Optional

from .types import IntegerType, StringType

CIDR_PATTERN = r"^\d{1,3}(\.\d{1,3}){3}/\d{1,2}$"
DOMAIN_PATTERN = r"^([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,}$"
WILDCARD_DOMAIN_PATTERN = r"^(\*\.)?([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,}$"
REGION_PATTERN = r"^[a-z]{2}(-gov)?-[a-z]+-\d$"
AVAILABILITY_ZONE_PATTERN = r"^[a-z]{2}(-gov)?-[a-z]+-\d[a-z]$"
ARN_PATTERN = r"^arn:aws[a-z-]*:[a-z0-9-]+:[a-z0-9-]*:(\d{12})?:.+$"

_CIDR_SHAPE = re.compile(CIDR_PATTERN)


def cidr_problem(value: str) -> Optional[str]:
    """Return a description of what is wrong with a CIDR block, or None."""
    if not _CIDR_SHAPE.match(value):
        return "expected a.b.c.d/prefix"
    try:
        ipaddress.IPv4Network(value, strict=False)
    except ValueError as e:
        return str(e)
    return None


def cidr_is_valid(value: str) -> bool:
    return cidr_problem(value) is None


def cidr_block() -> StringType:
    """IPv4 CIDR block such as ``10.0.0.0/16``."""
    return StringType(pattern=CIDR_PATTERN, check=cidr_problem, check_name="cidr")


def port() -> IntegerType:
    return IntegerType(minimum=0, maximum=65535)


def domain_name(allow_wildcard: bool = False) -> StringType:
    pattern = WILDCARD_DOMAIN_PATTERN if allow_wildcard else DOMAIN_PATTERN
    return StringType(pattern=pattern, max_length=253)


def region() -> StringType:
    return StringType(pattern=REGION_PATTERN)


def availability_zone() -> StringType:
    return StringType(pattern=AVAILABILITY_ZONE_PATTERN)


def arn() -> StringType:
    return StringType(pattern=ARN_PATTERN)
