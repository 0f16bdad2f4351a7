import os

import pytest

from terrasynth.resources import KindRegistry, register_kind
from terrasynth.run import Run
from terrasynth.schema import (
    EnumType,
    ListType,
    MutuallyExclusive,
    RequiredWhen,
    cidr_block,
    define,
)

# ============================================================================
# Sample schemas
# ============================================================================


@pytest.fixture
def network_schema():
    """A minimal network kind exposing id and arn."""
    return define(
        {
            "cidr": {"type": cidr_block(), "required": True},
            "dns": {"type": "boolean", "default": True, "omit_if_default": True},
            "tags": {"type": "map", "value": "string", "default": {}, "omit_if_default": True},
        },
        outputs=("id", "arn"),
    )


@pytest.fixture
def queue_schema():
    """A queue with bounded integers and an exclusive naming pair."""
    return define(
        {
            "name": {"type": "string", "pattern": r"[a-z][a-z0-9-]*"},
            "name_prefix": "string",
            "delay_seconds": {"type": "integer", "min": 0, "max": 900, "default": 0},
            "fifo": {"type": "boolean", "default": False, "omit_if_default": True},
        },
        outputs=("id", "arn", "url"),
        invariants=(MutuallyExclusive(("name", "name_prefix")),),
    )


@pytest.fixture
def service_schema():
    """A task-like kind where memory becomes required on FARGATE."""
    return define(
        {
            "image": {"type": "string", "required": True},
            "compatibility": {
                "type": ListType(EnumType(("EC2", "FARGATE"))),
                "default": ["EC2"],
            },
            "memory": {"type": "integer", "min": 128},
            "network_id": "string",
        },
        invariants=(RequiredWhen("memory", when="compatibility", contains="FARGATE"),),
    )


@pytest.fixture
def database_schema():
    return define(
        {
            "engine": {"type": "enum", "values": ["postgres", "mysql"], "required": True},
            "size_gb": {"type": "integer", "min": 20, "default": 20},
            "network_id": "string",
        },
        outputs=("id", "endpoint"),
    )


# ============================================================================
# Registries and runs
# ============================================================================


@pytest.fixture
def registry(network_schema, queue_schema, service_schema, database_schema):
    """Fresh kind registry holding the sample kinds only."""
    kinds = KindRegistry()
    register_kind("network", network_schema, registry=kinds)
    register_kind("queue", queue_schema, registry=kinds)
    register_kind(
        "service",
        service_schema,
        computed={"is_fargate": lambda attrs: "FARGATE" in attrs["compatibility"]},
        registry=kinds,
    )
    register_kind(
        "database",
        database_schema,
        computed={"estimated_monthly_cost": lambda attrs: attrs["size_gb"] * 0.5},
        registry=kinds,
    )
    return kinds


@pytest.fixture
def run(registry):
    """A fresh run over the sample registry."""
    return Run(registry=registry, name="test")


@pytest.fixture
def catalog_run():
    """A fresh run over the default registry with the AWS sample catalog."""
    return Run(name="catalog")


@pytest.fixture(autouse=True)
def isolated_config_env(monkeypatch, tmp_path):
    """Keep TERRASYNTH_* variables and stray config files out of every test."""
    for key in list(os.environ):
        if key.startswith("TERRASYNTH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
