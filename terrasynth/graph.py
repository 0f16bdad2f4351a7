"""
Dependency graph induced by reference tokens.

Edges point from the referencing node to the referenced node and carry the
field paths the references were found at. The graph is derived on demand
and is never used to order emission; the external tool computes its own
execution order.
"""

import logging
from typing import TYPE_CHECKING, List, Tuple

import networkx as nx

from .references import TokenScope, iter_tokens

if TYPE_CHECKING:
    from .run import Run

logger = logging.getLogger(__name__)


def _address(kind: str, name: str, scope: TokenScope) -> str:
    prefix = "data." if scope is TokenScope.DATA else ""
    return f"{prefix}{kind}.{name}"


def dependency_graph(run: "Run") -> nx.DiGraph:
    """
    Build the dependency graph of a run.

    Nodes are addresses (``aws_vpc.main``, ``data.aws_vpc.shared``) with
    ``kind``, ``name`` and ``data`` attributes. Targets of unresolved
    references are added with ``missing=True``.

    Args:
        run: Run to analyse

    Returns:
        Directed graph with an edge per referenced node and a ``fields``
        list of the field paths holding the references
    """
    from .emitters.terraform.emitter import TerraformEmitter

    graph = nx.DiGraph()
    nodes = TerraformEmitter(None).collect_nodes(run)
    for node in nodes:
        graph.add_node(node.address, kind=node.kind, name=node.name, data=node.node.is_data, missing=False)

    for node in nodes:
        for field_path, token in iter_tokens(node.attributes):
            if token.scope is TokenScope.VARIABLE:
                continue
            target = _address(token.kind, token.name, token.scope)
            if target not in graph:
                graph.add_node(
                    target,
                    kind=token.kind,
                    name=token.name,
                    data=token.scope is TokenScope.DATA,
                    missing=True,
                )
            if graph.has_edge(node.address, target):
                graph.edges[node.address, target]["fields"].append(field_path)
            else:
                graph.add_edge(node.address, target, fields=[field_path])

    logger.debug(
        f"Dependency graph: {graph.number_of_nodes()} nodes, {graph.number_of_edges()} edges"
    )
    return graph


def find_unresolved(run: "Run") -> List[Tuple[str, str, str]]:
    """List ``(source, field_path, target)`` for references to unregistered resources.

    Data lookups are external and never reported.
    """
    graph = dependency_graph(run)
    unresolved = []
    for source, target, attrs in graph.edges(data=True):
        target_attrs = graph.nodes[target]
        if target_attrs["missing"] and not target_attrs["data"]:
            for field_path in attrs["fields"]:
                unresolved.append((source, field_path, target))
    return unresolved


def dependencies(run: "Run", address: str) -> List[str]:
    """Addresses the given node references directly."""
    graph = dependency_graph(run)
    if address not in graph:
        raise KeyError(f"No node '{address}' in run")
    return sorted(graph.successors(address))


def dependents(run: "Run", address: str) -> List[str]:
    """Addresses of nodes that reference the given node directly."""
    graph = dependency_graph(run)
    if address not in graph:
        raise KeyError(f"No node '{address}' in run")
    return sorted(graph.predecessors(address))


def has_cycle(run: "Run") -> bool:
    return not nx.is_directed_acyclic_graph(dependency_graph(run))
