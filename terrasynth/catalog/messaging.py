"""Messaging kinds."""

from ..references import is_token
from ..resources.kind import computed_property, resource_kind
from ..schema import MutuallyExclusive, Predicate, define
from .common import tags_field


def _fifo_settings(record):
    if record["content_based_deduplication"] is True and record["fifo_queue"] is not True:
        return "content_based_deduplication requires fifo_queue"
    name = record["name"]
    if record["fifo_queue"] is True and isinstance(name, str) and not name.endswith(".fifo"):
        return "FIFO queue names must end with '.fifo'"
    return True


@resource_kind("aws_sqs_queue")
class SqsQueue:
    """SQS queue."""

    SCHEMA = define(
        {
            "name": {"type": "string", "pattern": r"[A-Za-z0-9_-]{1,75}(\.fifo)?"},
            "name_prefix": {"type": "string", "max_length": 75},
            "fifo_queue": {"type": "boolean", "default": False, "omit_if_default": True},
            "content_based_deduplication": {"type": "boolean", "default": False, "omit_if_default": True},
            "delay_seconds": {"type": "integer", "min": 0, "max": 900, "default": 0, "omit_if_default": True},
            "max_message_size": {
                "type": "integer",
                "min": 1024,
                "max": 262144,
                "default": 262144,
                "omit_if_default": True,
            },
            "message_retention_seconds": {
                "type": "integer",
                "min": 60,
                "max": 1209600,
                "default": 345600,
                "omit_if_default": True,
            },
            "receive_wait_time_seconds": {"type": "integer", "min": 0, "max": 20, "default": 0, "omit_if_default": True},
            "visibility_timeout_seconds": {
                "type": "integer",
                "min": 0,
                "max": 43200,
                "default": 30,
                "omit_if_default": True,
            },
            "kms_master_key_id": "string",
            "sqs_managed_sse_enabled": "boolean",
            "tags": tags_field(),
        },
        name="aws_sqs_queue",
        outputs=("id", "arn", "url"),
        invariants=(
            MutuallyExclusive(("name", "name_prefix")),
            MutuallyExclusive(("kms_master_key_id", "sqs_managed_sse_enabled")),
            Predicate("fifo_settings", ("name", "fifo_queue", "content_based_deduplication"), _fifo_settings),
        ),
    )

    @staticmethod
    @computed_property
    def is_fifo(attributes):
        return attributes["fifo_queue"] is True

    @staticmethod
    @computed_property
    def is_encrypted(attributes):
        key = attributes["kms_master_key_id"]
        return is_token(key) or bool(key) or attributes["sqs_managed_sse_enabled"] is True
