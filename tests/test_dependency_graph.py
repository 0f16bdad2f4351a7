"""Tests for the token-induced dependency graph."""

import pytest

from terrasynth.graph import dependencies, dependency_graph, dependents, find_unresolved, has_cycle
from terrasynth.references import data_token, token_for


@pytest.fixture
def wired_run(run):
    network = run.build("network", "main", {"cidr": "10.0.0.0/16"})
    run.build("database", "db", {"engine": "postgres", "network_id": network.id})
    run.build("service", "api", {"image": "nginx", "network_id": network.id})
    return run


def test_edges_point_at_referenced_nodes(wired_run):
    graph = dependency_graph(wired_run)

    assert set(graph.edges) == {("database.db", "network.main"), ("service.api", "network.main")}
    assert graph.edges["service.api", "network.main"]["fields"] == ["network_id"]
    assert graph.nodes["network.main"]["kind"] == "network"


def test_dependencies_and_dependents(wired_run):
    assert dependencies(wired_run, "service.api") == ["network.main"]
    assert dependents(wired_run, "network.main") == ["database.db", "service.api"]
    with pytest.raises(KeyError):
        dependents(wired_run, "network.other")


def test_find_unresolved_ignores_data_lookups(run):
    run.build("service", "api", {"image": "nginx", "network_id": token_for("network", "ghost")})
    run.build("service", "worker", {"image": "nginx", "network_id": data_token("network", "shared")})

    assert find_unresolved(run) == [("service.api", "network_id", "network.ghost")]


def test_variable_tokens_are_not_nodes(run):
    run.build("service", "api", {"image": run.variable("image")})

    graph = dependency_graph(run)

    assert list(graph.nodes) == ["service.api"]


def test_cycles_are_detected(run):
    run.build("service", "a", {"image": "nginx", "network_id": token_for("service", "b", "network_id")})
    run.build("service", "b", {"image": "nginx", "network_id": token_for("service", "a", "network_id")})

    assert has_cycle(run)


def test_acyclic(wired_run):
    assert not has_cycle(wired_run)
