"""Three-tier web application: network, database and container compute."""

from ..composites import Architecture, calculate_subnet_cidr, computed, extension_point
from ..resources import ResourceReference
from ..schema import availability_zone, cidr_block, define

DB_PORTS = {"postgres": 5432, "mysql": 3306, "mariadb": 3306}


class WebApplication(Architecture):
    """VPC with one subnet per availability zone, an RDS instance and a Fargate task."""

    KIND = "web_application"
    PARAMETERS = define(
        {
            "environment": {
                "type": "enum",
                "values": ["development", "staging", "production"],
                "default": "development",
            },
            "vpc_cidr": {"type": cidr_block(), "default": "10.0.0.0/16"},
            "availability_zones": {
                "type": "list",
                "items": availability_zone(),
                "min_items": 1,
                "max_items": 6,
                "unique": True,
                "default": ["us-east-1a", "us-east-1b"],
            },
            "db_engine": {"type": "enum", "values": ["postgres", "mysql", "mariadb"], "default": "postgres"},
            "db_instance_class": {"type": "string", "default": "db.t3.micro"},
            "db_allocated_storage": {"type": "integer", "min": 20, "max": 65536, "default": 20},
            "container_image": {"type": "string", "default": "nginx:latest"},
            "container_port": {"type": "integer", "min": 1, "max": 65535, "default": 80},
            "execution_role_arn": {"type": "string", "required": True},
            "tags": {"type": "map", "value": "string", "default": {}},
        },
        name="web_application",
    )

    @extension_point
    def network(self, composite):
        params = composite.params
        vpc = composite.build(
            "aws_vpc",
            composite.resource_name("vpc"),
            {"cidr_block": params.vpc_cidr, "tags": composite.tags(params.tags)},
        )
        subnets = [
            composite.build(
                "aws_subnet",
                composite.resource_name(f"subnet_{index}"),
                {
                    "vpc_id": vpc.id,
                    "cidr_block": calculate_subnet_cidr(params.vpc_cidr, index),
                    "availability_zone": zone,
                    "tags": composite.tags(params.tags),
                },
            )
            for index, zone in enumerate(params.availability_zones)
        ]
        database_port = DB_PORTS[params.db_engine]
        security_group = composite.build(
            "aws_security_group",
            composite.resource_name("db_sg"),
            {
                "name_prefix": f"{composite.name}-db-",
                "vpc_id": vpc.id,
                "ingress": [
                    {"from_port": database_port, "to_port": database_port, "cidr_blocks": [params.vpc_cidr]}
                ],
                "tags": composite.tags(params.tags),
            },
        )
        return {"vpc": vpc, "subnets": subnets, "security_group": security_group}

    @extension_point
    def database(self, composite):
        params = composite.params
        network = composite.network
        return composite.build(
            "aws_db_instance",
            composite.resource_name("db"),
            {
                "identifier_prefix": f"{composite.name}-".replace("_", "-"),
                "engine": params.db_engine,
                "instance_class": params.db_instance_class,
                "allocated_storage": params.db_allocated_storage,
                "multi_az": params.environment == "production",
                "deletion_protection": params.environment == "production",
                "vpc_security_group_ids": [network["security_group"].id],
                "tags": composite.tags(params.tags),
            },
        )

    @extension_point
    def compute(self, composite):
        params = composite.params
        return composite.build(
            "aws_ecs_task_definition",
            composite.resource_name("task"),
            {
                "family": composite.resource_name("app"),
                "requires_compatibilities": ["FARGATE"],
                "network_mode": "awsvpc",
                "cpu": "256" if params.environment != "production" else "1024",
                "memory": "512" if params.environment != "production" else "2048",
                "execution_role_arn": params.execution_role_arn,
                "container_definitions": [
                    {
                        "name": "app",
                        "image": params.container_image,
                        "port_mappings": [{"container_port": params.container_port}],
                    }
                ],
                "tags": composite.tags(params.tags),
            },
        )

    @computed
    def high_availability(self, composite):
        database = composite.database
        if not isinstance(database, ResourceReference):
            return False
        return len(composite.params.availability_zones) > 1 and database.attributes.get("multi_az") is True

    @computed
    def subnet_count(self, composite):
        return len(composite.network.get("subnets", ()))
