"""Render a component graph as Mermaid flowchart text and Markdown reports."""

from __future__ import annotations

import os
import re
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from .models import (
    ComponentEdge,
    ComponentGraph,
    ComponentNode,
    ComponentType,
    EditStatus,
    MermaidConfig,
    RelationshipType,
)
from .query import graph_stats, subgraph_around

SUBGRAPH_NAMES: Dict[ComponentType, str] = {
    ComponentType.COMPONENT: "Components",
    ComponentType.CLASS: "Classes",
    ComponentType.FUNCTION: "Functions",
    ComponentType.MODULE: "Modules",
    ComponentType.SERVICE: "Services",
    ComponentType.HOOK: "Hooks",
    ComponentType.CONTEXT: "Context",
    ComponentType.STORE: "State",
    ComponentType.API: "API",
    ComponentType.UTIL: "Utilities",
    ComponentType.TYPE: "Types",
    ComponentType.CONFIG: "Config",
    ComponentType.UNKNOWN: "Other",
}

NODE_SHAPES: Dict[ComponentType, Tuple[str, str]] = {
    ComponentType.COMPONENT: ("[", "]"),      # rectangle
    ComponentType.HOOK: ("([", "])"),         # stadium
    ComponentType.FUNCTION: ("([", "])"),
    ComponentType.SERVICE: ("[[", "]]"),      # subroutine
    ComponentType.API: ("[[", "]]"),
    ComponentType.CONTEXT: ("[(", ")]"),      # cylinder
    ComponentType.STORE: ("[(", ")]"),
    ComponentType.CLASS: ("[/", "/]"),        # parallelogram
    ComponentType.TYPE: ("{{", "}}"),         # hexagon
    ComponentType.CONFIG: ("{{", "}}"),
    ComponentType.UTIL: ("(", ")"),           # circle
}

STATUS_ICONS: Dict[EditStatus, str] = {
    EditStatus.QUEUED: "⏳",
    EditStatus.EDITING: "✏️",
    EditStatus.COMPLETED: "✅",
    EditStatus.ERROR: "❌",
    EditStatus.SKIPPED: "⏭️",
    EditStatus.MANUAL: "👤",
}

EDGE_ARROWS: Dict[RelationshipType, str] = {
    RelationshipType.IMPORTS: "-->",
    RelationshipType.EXPORTS: "-.->",
    RelationshipType.EXTENDS: "===>",
    RelationshipType.IMPLEMENTS: "-.->",
    RelationshipType.USES: "-->",
    RelationshipType.PROVIDES: "o-->",
    RelationshipType.CONSUMES: "-->o",
}

CLASS_DEFS = [
    "classDef component fill:#61dafb,stroke:#333,stroke-width:2px",
    "classDef service fill:#68d391,stroke:#333,stroke-width:2px",
    "classDef hook fill:#f6ad55,stroke:#333,stroke-width:2px",
    "classDef context fill:#b794f4,stroke:#333,stroke-width:2px",
    "classDef api fill:#fc8181,stroke:#333,stroke-width:2px",
    "classDef util fill:#90cdf4,stroke:#333,stroke-width:2px",
    "classDef editing fill:#fef3c7,stroke:#f59e0b,stroke-width:3px",
    "classDef completed fill:#d1fae5,stroke:#10b981,stroke-width:2px",
    "classDef error fill:#fee2e2,stroke:#ef4444,stroke-width:2px",
    "classDef queued fill:#e5e7eb,stroke:#6b7280,stroke-width:2px,stroke-dasharray: 5 5",
]

# Type classes first, status classes after so they take precedence.
TYPE_CLASSES: List[Tuple[str, Tuple[ComponentType, ...]]] = [
    ("component", (ComponentType.COMPONENT,)),
    ("service", (ComponentType.SERVICE,)),
    ("hook", (ComponentType.HOOK,)),
    ("context", (ComponentType.CONTEXT, ComponentType.STORE)),
    ("api", (ComponentType.API,)),
    ("util", (ComponentType.UTIL,)),
]
STATUS_CLASSES = [
    EditStatus.EDITING,
    EditStatus.COMPLETED,
    EditStatus.ERROR,
    EditStatus.QUEUED,
]

_INVALID_ID_CHARS = re.compile(r"[^A-Za-z0-9_]")


class IdSanitizer:
    """Maps graph node ids onto Mermaid-safe identifiers.

    Characters outside ``[A-Za-z0-9_]`` are stripped.  When two ids strip to
    the same identifier, later ones get ``_2``, ``_3``, ... in the order they
    are first seen.
    """

    def __init__(self) -> None:
        self._mapping: Dict[str, str] = {}
        self._used: Set[str] = set()

    def __call__(self, node_id: str) -> str:
        if node_id in self._mapping:
            return self._mapping[node_id]
        base = sanitize_id(node_id)
        candidate = base
        suffix = 1
        while candidate in self._used:
            suffix += 1
            candidate = f"{base}_{suffix}"
        self._used.add(candidate)
        self._mapping[node_id] = candidate
        return candidate


def sanitize_id(node_id: str) -> str:
    return _INVALID_ID_CHARS.sub("", node_id) or "node"


def select_nodes(graph: ComponentGraph, max_nodes: int) -> Tuple[List[ComponentNode], List[ComponentEdge]]:
    """Keep the *max_nodes* best-connected nodes and the edges among them."""
    if len(graph.nodes) <= max_nodes:
        return list(graph.nodes), list(graph.edges)

    counts = graph.connection_counts()
    ranked = sorted(graph.nodes, key=lambda n: counts.get(n.id, 0), reverse=True)
    keep = {n.id for n in ranked[:max_nodes]}
    nodes = [n for n in graph.nodes if n.id in keep]
    edges = [e for e in graph.edges if e.source in keep and e.target in keep]
    return nodes, edges


def _label(text: str) -> str:
    return text.replace('"', "#quot;")


def format_node(node: ComponentNode, diagram_id: str) -> str:
    open_, close = NODE_SHAPES.get(node.kind, ("[", "]"))
    icon = STATUS_ICONS.get(node.edit_status)
    label = f"{icon} {node.name}" if icon else node.name
    return f'{diagram_id}{open_}"{_label(label)}"{close}'


def format_edge(edge: ComponentEdge, source: str, target: str, show_labels: bool) -> str:
    arrow = EDGE_ARROWS.get(edge.relationship, "-->")
    if show_labels and edge.names:
        label = ", ".join(edge.names[:3])
        if len(edge.names) > 3:
            label += "..."
        return f'{source} {arrow}|"{_label(label)}"| {target}'
    return f"{source} {arrow} {target}"


def _relative(path: str, root: str) -> str:
    if not root:
        return path
    try:
        return os.path.relpath(path, root).replace("\\", "/")
    except ValueError:
        return path


def to_mermaid(graph: ComponentGraph, config: Optional[MermaidConfig] = None) -> str:
    config = config or MermaidConfig()
    nodes, edges = select_nodes(graph, config.max_nodes)
    ids = IdSanitizer()
    for node in nodes:
        ids(node.id)

    lines: List[str] = []
    if config.theme != "default":
        lines.append(f"%%{{init: {{'theme': '{config.theme}'}}}}%%")
    lines.append(f"flowchart {config.direction}")
    lines.append("")

    groups: Dict[ComponentType, List[ComponentNode]] = {}
    for node in nodes:
        groups.setdefault(node.kind, []).append(node)
    for kind, members in groups.items():
        lines.append(f"  subgraph {SUBGRAPH_NAMES.get(kind, 'Other')}")
        for node in members:
            lines.append(f"    {format_node(node, ids(node.id))}")
        lines.append("  end")
        lines.append("")

    lines.append("  %% Relationships")
    for edge in edges:
        lines.append(f"  {format_edge(edge, ids(edge.source), ids(edge.target), config.show_labels)}")

    lines.append("")
    lines.append("  %% Click handlers")
    for node in nodes:
        rel = _relative(node.file_path, graph.root_path)
        lines.append(f'  click {ids(node.id)} "vscode://file/{node.file_path}:{node.line}" "{rel}"')

    lines.append("")
    lines.append("  %% Styling")
    lines.extend(f"  {line}" for line in CLASS_DEFS)
    for class_name, kinds in TYPE_CLASSES:
        members = [ids(n.id) for n in nodes if n.kind in kinds]
        if members:
            lines.append(f"  class {','.join(members)} {class_name}")
    for status in STATUS_CLASSES:
        members = [ids(n.id) for n in nodes if n.edit_status is status]
        if members:
            lines.append(f"  class {','.join(members)} {status.value}")

    return "\n".join(lines)


def focused_diagram(
    graph: ComponentGraph,
    focus_id: str,
    depth: int = 2,
    config: Optional[MermaidConfig] = None,
) -> str:
    return to_mermaid(subgraph_around(graph, focus_id, depth), config)


def export_markdown(
    graph: ComponentGraph,
    title: str = "Component Map",
    config: Optional[MermaidConfig] = None,
) -> str:
    """Markdown report: diagram in a fenced ``mermaid`` block plus summary counts."""
    stats = graph_stats(graph)
    generated = datetime.fromtimestamp(graph.generated_at).strftime("%Y-%m-%d %H:%M:%S")

    counts: Dict[ComponentType, int] = {}
    for node in graph.nodes:
        counts[node.kind] = counts.get(node.kind, 0) + 1
    by_type = "\n".join(
        f"- **{SUBGRAPH_NAMES.get(kind, 'Other')}**: {count}" for kind, count in counts.items()
    )

    return (
        f"# {title}\n\n"
        f"Generated: {generated}\n\n"
        "## Component Diagram\n\n"
        "```mermaid\n"
        f"{to_mermaid(graph, config)}\n"
        "```\n\n"
        "## Statistics\n\n"
        f"- **Total Components**: {stats.total_nodes}\n"
        f"- **Total Relationships**: {stats.total_edges}\n"
        f"- **Languages**: {', '.join(lang.value for lang in graph.languages)}\n"
        f"- **Average Connections**: {stats.avg_connections}\n\n"
        "## Components by Type\n\n"
        f"{by_type}\n"
    )
