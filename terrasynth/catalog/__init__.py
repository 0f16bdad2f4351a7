"""Sample resource catalog.

Importing this package registers its kinds with the default registry.
"""

from . import compute, database, messaging, network  # noqa: F401

CATALOG_KINDS = (
    "aws_vpc",
    "aws_subnet",
    "aws_security_group",
    "aws_db_instance",
    "aws_ecs_task_definition",
    "aws_sqs_queue",
)
