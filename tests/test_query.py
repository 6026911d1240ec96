"""Tests for neighbourhood queries and statistics."""

import pytest

from codeflow.models import (
    ComponentEdge,
    ComponentGraph,
    ComponentNode,
    ComponentType,
    Language,
    RelationshipType,
)
from codeflow.query import graph_stats, subgraph_around


def _node(name, kind=ComponentType.FUNCTION, language=Language.TYPESCRIPT):
    return ComponentNode(
        id=f"{name}_id", name=name, kind=kind, file_path=f"/proj/{name}.ts",
        line=1, column=0, language=language,
    )


def _edge(source, target, rel=RelationshipType.IMPORTS):
    return ComponentEdge(source=f"{source}_id", target=f"{target}_id", relationship=rel)


@pytest.fixture
def chain() -> ComponentGraph:
    """a -> b -> c -> d, plus e -> b and an isolated f."""
    nodes = [_node(n) for n in "abcdef"]
    edges = [_edge("a", "b"), _edge("b", "c"), _edge("c", "d"), _edge("e", "b")]
    return ComponentGraph(nodes=nodes, edges=edges, root_path="/proj", languages=[Language.TYPESCRIPT])


def _names(graph):
    return sorted(n.name for n in graph.nodes)


class TestSubgraph:
    def test_zero_hops_is_focus_only(self, chain):
        sub = subgraph_around(chain, "b_id", 0)

        assert _names(sub) == ["b"]
        assert sub.edges == []

    def test_one_hop_follows_both_directions(self, chain):
        sub = subgraph_around(chain, "b_id", 1)

        assert _names(sub) == ["a", "b", "c", "e"]
        assert len(sub.edges) == 3

    def test_two_hops(self, chain):
        sub = subgraph_around(chain, "a_id", 2)

        assert _names(sub) == ["a", "b", "c", "e"]

    def test_only_edges_between_visited_nodes(self, chain):
        sub = subgraph_around(chain, "d_id", 1)

        assert _names(sub) == ["c", "d"]
        assert [(e.source, e.target) for e in sub.edges] == [("c_id", "d_id")]

    def test_unknown_focus_gives_empty_graph(self, chain):
        sub = subgraph_around(chain, "missing", 3)

        assert sub.nodes == []
        assert sub.edges == []

    def test_subset_of_original(self, chain):
        for node in chain.nodes:
            for hops in range(4):
                sub = subgraph_around(chain, node.id, hops)
                assert node.id in {n.id for n in sub.nodes}
                assert all(n in chain.nodes for n in sub.nodes)
                assert all(e in chain.edges for e in sub.edges)


class TestStats:
    def test_counts(self, chain):
        chain.nodes[0].kind = ComponentType.COMPONENT
        chain.nodes[1].language = Language.PYTHON

        stats = graph_stats(chain)

        assert stats.total_nodes == 6
        assert stats.total_edges == 4
        assert stats.by_type == {"component": 1, "function": 5}
        assert stats.by_language == {"typescript": 5, "python": 1}

    def test_average_connections_rounded(self):
        nodes = [_node(n) for n in "abc"]
        graph = ComponentGraph(nodes=nodes, edges=[_edge("a", "b")])

        # touches: a=1, b=1, c=0 -> 2/3
        assert graph_stats(graph).avg_connections == 0.67

    def test_empty_graph(self):
        stats = graph_stats(ComponentGraph())

        assert stats.total_nodes == 0
        assert stats.avg_connections == 0
