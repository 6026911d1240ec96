"""Read-only queries over a built graph: neighbourhoods and statistics."""

from __future__ import annotations

from collections import deque
from typing import Dict, List, Set

from .models import ComponentGraph, GraphStats


def _adjacency(graph: ComponentGraph) -> Dict[str, List[str]]:
    adjacency: Dict[str, List[str]] = {node.id: [] for node in graph.nodes}
    for edge in graph.edges:
        adjacency.setdefault(edge.source, []).append(edge.target)
        adjacency.setdefault(edge.target, []).append(edge.source)
    return adjacency


def subgraph_around(graph: ComponentGraph, focus_id: str, max_hops: int = 2) -> ComponentGraph:
    """Nodes within *max_hops* undirected hops of *focus_id*, plus the edges among them.

    An unknown *focus_id* yields an empty graph.
    """
    if graph.get_node(focus_id) is None:
        return ComponentGraph(root_path=graph.root_path, generated_at=graph.generated_at)

    adjacency = _adjacency(graph)
    visited: Set[str] = {focus_id}
    queue = deque([(focus_id, 0)])
    while queue:
        current, hops = queue.popleft()
        if hops >= max_hops:
            continue
        for neighbour in adjacency.get(current, []):
            if neighbour not in visited:
                visited.add(neighbour)
                queue.append((neighbour, hops + 1))

    nodes = [node for node in graph.nodes if node.id in visited]
    edges = [e for e in graph.edges if e.source in visited and e.target in visited]
    languages = [lang for lang in graph.languages if any(n.language == lang for n in nodes)]
    return ComponentGraph(
        nodes=nodes,
        edges=edges,
        root_path=graph.root_path,
        generated_at=graph.generated_at,
        languages=languages,
    )


def graph_stats(graph: ComponentGraph) -> GraphStats:
    by_type: Dict[str, int] = {}
    by_language: Dict[str, int] = {}
    for node in graph.nodes:
        by_type[node.kind.value] = by_type.get(node.kind.value, 0) + 1
        by_language[node.language.value] = by_language.get(node.language.value, 0) + 1

    counts = graph.connection_counts()
    if graph.nodes:
        avg = round(sum(counts[n.id] for n in graph.nodes) / len(graph.nodes), 2)
    else:
        avg = 0.0

    return GraphStats(
        total_nodes=len(graph.nodes),
        total_edges=len(graph.edges),
        by_type=by_type,
        by_language=by_language,
        avg_connections=avg,
    )
