"""Relational database kinds."""

from ..references import is_token
from ..resources.kind import computed_property, resource_kind
from ..schema import ForbiddenWhen, MutuallyExclusive, Predicate, define
from .common import string_list_field, tags_field

RDS_ENGINES = (
    "mysql",
    "postgres",
    "mariadb",
    "oracle-se2",
    "oracle-ee",
    "sqlserver-ee",
    "sqlserver-se",
    "sqlserver-ex",
    "sqlserver-web",
    "aurora-mysql",
    "aurora-postgresql",
)

# Rough on-demand hourly rates used for monthly estimates
RDS_HOURLY_RATES = {
    "db.t3.micro": 0.017,
    "db.t3.small": 0.034,
    "db.t3.medium": 0.068,
    "db.t3.large": 0.136,
    "db.m5.large": 0.171,
    "db.m5.xlarge": 0.342,
    "db.r5.large": 0.250,
    "db.r5.xlarge": 0.500,
}
DEFAULT_HOURLY_RATE = 0.100
STORAGE_GB_MONTH = 0.10
HOURS_PER_MONTH = 730


def _is_aurora(engine):
    return isinstance(engine, str) and engine.startswith("aurora")


def _iops_storage(record):
    if record["iops"] is None or is_token(record["storage_type"]):
        return True
    if record["storage_type"] not in ("io1", "io2"):
        return "iops can only be set for io1 or io2 storage"
    return True


def _aurora_storage(record):
    engine = record["engine"]
    if is_token(engine):
        return True
    if _is_aurora(engine):
        if record["allocated_storage"] is not None:
            return "aurora engines size storage at the cluster level; remove allocated_storage"
        if record["multi_az"] is True:
            return "aurora engines handle multi-AZ at the cluster level"
    elif record["allocated_storage"] is None:
        return "non-aurora engines require allocated_storage"
    return True


def _sqlserver_db_name(record):
    engine = record["engine"]
    if isinstance(engine, str) and engine.startswith("sqlserver") and record["db_name"] is not None:
        return "SQL Server engines do not support db_name"
    return True


@resource_kind("aws_db_instance")
class DbInstance:
    """RDS database instance."""

    SCHEMA = define(
        {
            "identifier": {"type": "string", "pattern": r"[a-z][a-z0-9-]{0,62}"},
            "identifier_prefix": {"type": "string", "max_length": 36},
            "engine": {"type": "enum", "values": list(RDS_ENGINES), "required": True},
            "engine_version": "string",
            "instance_class": {"type": "string", "pattern": r"db\.[a-z0-9]+\.[a-z0-9]+", "required": True},
            "allocated_storage": {"type": "integer", "min": 20, "max": 65536},
            "storage_type": {
                "type": "enum",
                "values": ["standard", "gp2", "gp3", "io1", "io2"],
                "default": "gp3",
            },
            "storage_encrypted": {"type": "boolean", "default": True},
            "kms_key_id": "string",
            "iops": {"type": "integer", "min": 1000, "max": 256000},
            "db_name": "string",
            "username": "string",
            "password": {"type": "string", "min_length": 8},
            "manage_master_user_password": {"type": "boolean", "default": True},
            "db_subnet_group_name": "string",
            "vpc_security_group_ids": string_list_field(),
            "multi_az": {"type": "boolean", "default": False},
            "publicly_accessible": {"type": "boolean", "default": False},
            "backup_retention_period": {"type": "integer", "min": 0, "max": 35, "default": 7},
            "deletion_protection": {"type": "boolean", "default": False},
            "skip_final_snapshot": {"type": "boolean", "default": True},
            "tags": tags_field(),
        },
        name="aws_db_instance",
        outputs=("id", "arn", "endpoint", "port"),
        invariants=(
            MutuallyExclusive(("identifier", "identifier_prefix")),
            ForbiddenWhen("password", when="manage_master_user_password", equals=True),
            Predicate("iops_storage_type", ("iops", "storage_type"), _iops_storage),
            Predicate("engine_storage", ("engine", "allocated_storage", "multi_az"), _aurora_storage),
            Predicate("engine_db_name", ("engine", "db_name"), _sqlserver_db_name),
        ),
    )

    @staticmethod
    @computed_property
    def engine_family(attributes):
        engine = attributes["engine"]
        if is_token(engine):
            return None
        for family in ("mysql", "postgres", "mariadb", "oracle", "sqlserver"):
            if family in engine:
                return "postgresql" if family == "postgres" else family
        return engine

    @staticmethod
    @computed_property
    def is_aurora(attributes):
        return _is_aurora(attributes["engine"])

    @staticmethod
    @computed_property
    def estimated_monthly_cost(attributes):
        instance_class = attributes["instance_class"]
        hourly = DEFAULT_HOURLY_RATE
        if isinstance(instance_class, str):
            hourly = RDS_HOURLY_RATES.get(instance_class, DEFAULT_HOURLY_RATE)
        if attributes["multi_az"] is True:
            hourly *= 2
        storage = attributes["allocated_storage"]
        storage_cost = storage * STORAGE_GB_MONTH if isinstance(storage, int) else 0.0
        return round(hourly * HOURS_PER_MONTH + storage_cost, 2)

