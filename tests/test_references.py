"""Tests for reference tokens."""

import pytest

from terrasynth.emitters.terraform import interpolation
from terrasynth.references import (
    ReferenceToken,
    TokenScope,
    data_token,
    is_token,
    iter_tokens,
    token_for,
    var_token,
)


def test_tokens_compare_structurally():
    assert token_for("network", "main", "id") == token_for("network", "main", ("id",))
    assert token_for("network", "main") == ReferenceToken("network", "main", ("id",))
    assert token_for("network", "main", "id") != data_token("network", "main", "id")


def test_tokens_are_hashable_and_immutable():
    token = token_for("network", "main")

    assert {token: 1}[token_for("network", "main")] == 1
    with pytest.raises(AttributeError):
        token.name = "other"  # type: ignore[misc]


def test_dotted_paths_and_indexing():
    token = token_for("cluster", "main", "endpoint.address")

    assert token.path == ("endpoint", "address")
    assert token_for("vpc", "main", "subnets")[0].child("id").dotted_path() == "subnets[0].id"
    assert repr(token) == "<ReferenceToken cluster.main.endpoint.address>"


def test_scopes():
    assert token_for("vpc", "main").scope is TokenScope.RESOURCE
    assert data_token("vpc", "shared").is_external
    assert var_token("region").scope is TokenScope.VARIABLE
    assert var_token("region").target == ("var", "region")
    assert not token_for("vpc", "main").is_external


def test_is_token():
    assert is_token(var_token("region"))
    assert not is_token("${var.region}")


def test_iter_tokens_reports_paths():
    vpc = token_for("vpc", "main")
    value = {"vpc_id": vpc, "rules": [{"cidr": "10.0.0.0/8"}, {"source": data_token("sg", "shared")}]}

    found = list(iter_tokens(value))

    assert found == [("vpc_id", vpc), ("rules[1].source", data_token("sg", "shared"))]


class TestInterpolation:
    """Tokens render to interpolation strings only in the emitter."""

    def test_resource_token(self):
        assert interpolation(token_for("network", "main", "id")) == "${network.main.id}"

    def test_data_token(self):
        assert interpolation(data_token("aws_vpc", "shared", "cidr_block")) == "${data.aws_vpc.shared.cidr_block}"

    def test_var_token(self):
        assert interpolation(var_token("region")) == "${var.region}"

    def test_index_segments(self):
        token = token_for("aws_lb", "web", "subnet_mapping")[0].child("subnet_id")

        assert interpolation(token) == "${aws_lb.web.subnet_mapping[0].subnet_id}"
