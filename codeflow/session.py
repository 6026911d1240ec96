"""Session object that owns one workspace's scanner, builder, graph and overlay."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .builder import GraphBuilder
from .config import DEFAULT_FOCUS_DEPTH
from .config_manager import Settings, load_settings
from .errors import GraphNotBuiltError, UnknownNodeError
from .mermaid import export_markdown, focused_diagram, to_mermaid
from .models import ComponentGraph, ComponentNode, EditStatus, GraphStats, MermaidConfig, ParseResult
from .query import graph_stats, subgraph_around
from .scanner import CancellationToken, WorkspaceScanner
from .status import StatusOverlay

logger = logging.getLogger(__name__)


class CodeFlowSession:
    """Coordinates scanning, graph building and projections for one root.

    Each session holds its own collaborators; nothing is shared through
    module-level state, so several sessions can coexist in one process.
    """

    def __init__(self, root: Path, settings: Optional[Settings] = None):
        self.root = Path(root).resolve()
        self.settings = settings if settings is not None else load_settings(self.root)
        self.scanner = WorkspaceScanner(self.settings.exclude_patterns)
        self.builder = GraphBuilder(fallback_resolution=self.settings.fallback_resolution)
        self.overlay = StatusOverlay()
        self._graph: Optional[ComponentGraph] = None
        self._token: Optional[CancellationToken] = None

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def refresh(self, token: Optional[CancellationToken] = None) -> ComponentGraph:
        """Rescan the root and rebuild the graph.

        Statuses for components that still exist survive the rebuild.
        """
        self._token = token or CancellationToken()
        results = self.scanner.scan(self.root, self._token)
        self._graph = self.builder.build(results, str(self.root))
        self.overlay.bind(self._graph)
        return self.graph

    def cancel(self) -> None:
        if self._token is not None:
            self._token.cancel()

    @property
    def has_graph(self) -> bool:
        return self._graph is not None

    @property
    def graph(self) -> ComponentGraph:
        """Latest graph with live statuses applied."""
        if self._graph is None:
            raise GraphNotBuiltError()
        return self.overlay.apply(self._graph)

    @property
    def errors(self) -> List[ParseResult]:
        return list(self.scanner.errors)

    # ------------------------------------------------------------------
    # Lookup and status
    # ------------------------------------------------------------------

    def find_node(self, ref: str) -> ComponentNode:
        """Resolve *ref* as a node id first, then as an exact name."""
        graph = self.graph
        node = graph.get_node(ref)
        if node is not None:
            return node
        matches = graph.find_by_name(ref)
        if not matches:
            raise UnknownNodeError(ref)
        if len(matches) > 1:
            logger.info("%d components named %s; using %s", len(matches), ref, matches[0].location)
        return matches[0]

    def set_status(self, node_id: str, status: EditStatus, error_message: Optional[str] = None) -> None:
        if self._graph is None:
            raise GraphNotBuiltError()
        self.overlay.set_status(node_id, status, error_message)

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    def diagram(self, config: Optional[MermaidConfig] = None) -> str:
        return to_mermaid(self.graph, config or self.settings.diagram)

    def focus(self, ref: str, depth: Optional[int] = None) -> ComponentGraph:
        node = self.find_node(ref)
        return subgraph_around(self.graph, node.id, self._depth(depth))

    def focus_diagram(self, ref: str, depth: Optional[int] = None) -> str:
        node = self.find_node(ref)
        return focused_diagram(self.graph, node.id, self._depth(depth), self.settings.diagram)

    def stats(self) -> GraphStats:
        return graph_stats(self.graph)

    def markdown(self, title: str = "Component Map") -> str:
        return export_markdown(self.graph, title, self.settings.diagram)

    def _depth(self, depth: Optional[int]) -> int:
        if depth is None:
            return min(DEFAULT_FOCUS_DEPTH, self.settings.max_depth)
        return min(depth, self.settings.max_depth)
