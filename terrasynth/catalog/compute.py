"""Container compute kinds."""

from ..references import is_token
from ..resources.kind import computed_property, resource_kind
from ..schema import CompatibilityTable, FieldOrdering, Predicate, RequiredWhen, define, port
from .common import string_list_field, tags_field

# Task-level CPU units to the memory sizes (MiB) each one allows
FARGATE_CPU_MEMORY = {
    "256": ("512", "1024", "2048"),
    "512": ("1024", "2048", "3072", "4096"),
    "1024": tuple(str(mib) for mib in range(2048, 8193, 1024)),
    "2048": tuple(str(mib) for mib in range(4096, 16385, 1024)),
    "4096": tuple(str(mib) for mib in range(8192, 30721, 1024)),
    "8192": tuple(str(mib) for mib in range(16384, 61441, 4096)),
    "16384": tuple(str(mib) for mib in range(32768, 122881, 8192)),
}

FARGATE_VCPU_HOUR = 0.04048
FARGATE_GB_HOUR = 0.004445
HOURS_PER_MONTH = 730

PORT_MAPPING = define(
    {
        "container_port": {"type": port(), "required": True, "alias": "containerPort"},
        "host_port": {"type": port(), "alias": "hostPort"},
        "protocol": {"type": "enum", "values": ["tcp", "udp"], "default": "tcp"},
    },
    name="port_mapping",
)

ENVIRONMENT_VARIABLE = define(
    {
        "name": {"type": "string", "required": True},
        "value": {"type": "string", "required": True},
    },
    name="environment_variable",
)

CONTAINER_DEFINITION = define(
    {
        "name": {"type": "string", "required": True, "pattern": r"[A-Za-z0-9_-]{1,255}"},
        "image": {"type": "string", "required": True},
        "cpu": {"type": "integer", "min": 0},
        "memory": {"type": "integer", "min": 4},
        "memory_reservation": {"type": "integer", "min": 4, "alias": "memoryReservation"},
        "essential": {"type": "boolean", "default": True},
        "port_mappings": {
            "type": "list",
            "items": PORT_MAPPING,
            "default": [],
            "omit_if_default": True,
            "alias": "portMappings",
        },
        "environment": {"type": "list", "items": ENVIRONMENT_VARIABLE, "default": [], "omit_if_default": True},
        "command": string_list_field(),
    },
    name="container_definition",
    invariants=(FieldOrdering("memory_reservation", "memory"),),
)


def _fargate_network_mode(record):
    compatibilities = record["requires_compatibilities"]
    if is_token(compatibilities) or "FARGATE" not in compatibilities:
        return True
    if record["network_mode"] != "awsvpc":
        return "network_mode must be 'awsvpc' for FARGATE"
    return True


def _essential_container(record):
    containers = record["container_definitions"]
    if is_token(containers):
        return True
    if not any(is_token(c) or c["essential"] for c in containers):
        return "at least one container must be essential"
    return True


@resource_kind("aws_ecs_task_definition")
class EcsTaskDefinition:
    """ECS task definition."""

    SCHEMA = define(
        {
            "family": {"type": "string", "required": True, "pattern": r"[A-Za-z0-9_-]{1,255}"},
            "container_definitions": {
                "type": "list",
                "items": CONTAINER_DEFINITION,
                "min_items": 1,
                "required": True,
                "json_encode": True,
            },
            "task_role_arn": "string",
            "execution_role_arn": "string",
            "network_mode": {
                "type": "enum",
                "values": ["bridge", "host", "awsvpc", "none"],
                "default": "bridge",
            },
            "requires_compatibilities": {
                "type": "list",
                "items": {"type": "enum", "values": ["EC2", "FARGATE", "EXTERNAL"]},
                "unique": True,
                "default": ["EC2"],
            },
            "cpu": {"type": "string", "pattern": r"\d+"},
            "memory": {"type": "string", "pattern": r"\d+"},
            "tags": tags_field(),
        },
        name="aws_ecs_task_definition",
        outputs=("id", "arn", "revision"),
        invariants=(
            RequiredWhen(("cpu", "memory"), when="requires_compatibilities", contains="FARGATE"),
            RequiredWhen("execution_role_arn", when="requires_compatibilities", contains="FARGATE"),
            Predicate("fargate_network_mode", ("requires_compatibilities", "network_mode"), _fargate_network_mode),
            CompatibilityTable("cpu", "memory", FARGATE_CPU_MEMORY),
            Predicate("essential_container", ("container_definitions",), _essential_container),
        ),
    )

    @staticmethod
    @computed_property
    def is_fargate(attributes):
        compatibilities = attributes["requires_compatibilities"]
        return not is_token(compatibilities) and "FARGATE" in compatibilities

    @staticmethod
    @computed_property
    def estimated_monthly_cost(attributes):
        cpu, memory = attributes["cpu"], attributes["memory"]
        if not EcsTaskDefinition.is_fargate(attributes) or not isinstance(cpu, str) or not isinstance(memory, str):
            return 0.0
        vcpu = int(cpu) / 1024
        memory_gb = int(memory) / 1024
        return round((vcpu * FARGATE_VCPU_HOUR + memory_gb * FARGATE_GB_HOUR) * HOURS_PER_MONTH, 2)
