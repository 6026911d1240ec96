"""Assemble a :class:`ComponentGraph` from per-file extraction results.

Construction runs in three passes:

1. every declaration becomes a node and its exported names are indexed by
   absolute path, root-relative path and extension-less relative path;
2. import statements are resolved to target nodes, relative specifiers via
   the index and everything else (or anything relative resolution missed)
   via an optional workspace-wide name match;
3. ``Extends:`` / ``Implements:`` descriptions become inheritance edges.
"""

from __future__ import annotations

import logging
import os
import re
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import (
    DEFAULT_EXPORT,
    WILDCARD,
    ComponentEdge,
    ComponentGraph,
    ComponentNode,
    ImportStatement,
    Language,
    ParseResult,
    RelationshipType,
)
from .parser import RESOLUTION_EXTENSIONS

logger = logging.getLogger(__name__)

EXTENDS_MARKER = "Extends:"
IMPLEMENTS_MARKER = "Implements:"
DIRECTORY_INDEX_NAMES = ("index", "__init__")

_TYPE_NAME = re.compile(r"[A-Za-z_$][\w.$]*")


def _norm(path: str) -> str:
    return os.path.normpath(path).replace("\\", "/")


def _strip_ext(path: str) -> str:
    root, _ = os.path.splitext(path)
    return root


def parse_type_list(segment: str) -> List[str]:
    """``"models.Model, Generic[T], metaclass=Meta"`` -> ``["Model", "Generic"]``."""
    names: List[str] = []
    for part in segment.split(","):
        part = part.strip()
        if not part or "=" in part:
            continue
        match = _TYPE_NAME.match(part)
        if match:
            names.append(match.group(0).split(".")[-1])
    return names


def parse_inheritance(description: Optional[str]) -> Tuple[List[str], List[str]]:
    """Split a declaration description into (base classes, interfaces)."""
    if not description:
        return [], []
    bases: List[str] = []
    interfaces: List[str] = []
    if description.startswith(EXTENDS_MARKER):
        bases = parse_type_list(description[len(EXTENDS_MARKER):].split(";")[0])
    if IMPLEMENTS_MARKER in description:
        segment = description.split(IMPLEMENTS_MARKER, 1)[1].split(";")[0]
        interfaces = parse_type_list(segment)
    return bases, interfaces


class GraphBuilder:
    """Turns a batch of :class:`ParseResult` into one graph.

    ``fallback_resolution`` enables the permissive workspace-wide name match
    for imports that relative resolution cannot place.  It raises recall for
    bare and package-style specifiers but may link same-named symbols that
    are unrelated.
    """

    def __init__(self, fallback_resolution: bool = True):
        self.fallback_resolution = fallback_resolution
        self._reset()

    def _reset(self) -> None:
        self._nodes: List[ComponentNode] = []
        self._nodes_by_file: Dict[str, List[ComponentNode]] = {}
        self._export_index: Dict[Tuple[str, str], ComponentNode] = {}
        self._path_index: Dict[str, List[ComponentNode]] = {}
        self._name_index: Dict[str, List[ComponentNode]] = {}
        self._edges: Dict[tuple, ComponentEdge] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, results: Sequence[ParseResult], root_path: str) -> ComponentGraph:
        self._reset()
        root = _norm(str(Path(root_path).resolve()))

        for result in results:
            self._collect_nodes(result, root)

        for result in results:
            self._link_imports(result)

        self._link_inheritance()

        languages: List[Language] = []
        for node in self._nodes:
            if node.language not in languages:
                languages.append(node.language)

        graph = ComponentGraph(
            nodes=list(self._nodes),
            edges=list(self._edges.values()),
            root_path=root,
            generated_at=time.time(),
            languages=languages,
        )
        logger.info(
            "Built graph for %s: %d nodes, %d edges", root, len(graph.nodes), len(graph.edges),
        )
        return graph

    # ------------------------------------------------------------------
    # Phase 1: nodes and export index
    # ------------------------------------------------------------------

    def _collect_nodes(self, result: ParseResult, root: str) -> None:
        abs_path = _norm(os.path.abspath(result.file_path))
        rel_path = _norm(os.path.relpath(abs_path, root))
        keys = [abs_path, rel_path, _strip_ext(rel_path)]

        file_nodes = self._nodes_by_file.setdefault(abs_path, [])
        for decl in result.declarations:
            node = ComponentNode.from_declaration(decl)
            if any(existing.id == node.id for existing in file_nodes):
                continue
            self._nodes.append(node)
            file_nodes.append(node)
            self._path_index.setdefault(abs_path, []).append(node)
            for name in node.exports:
                self._name_index.setdefault(name, []).append(node)
                for key in keys:
                    self._export_index.setdefault((key, name), node)

    # ------------------------------------------------------------------
    # Phase 2: import edges
    # ------------------------------------------------------------------

    def _link_imports(self, result: ParseResult) -> None:
        importer = _norm(os.path.abspath(result.file_path))
        sources = self._nodes_by_file.get(importer, [])
        if not sources:
            return

        for statement in result.imports:
            targets = self.resolve(statement, importer)
            if not targets:
                logger.debug("Unresolved import %r in %s", statement.source, importer)
                continue
            for source in sources:
                for target, names in targets:
                    self._add_edge(source.id, target.id, RelationshipType.IMPORTS, names)

    def candidate_paths(self, specifier: str, importer: str) -> List[str]:
        """Absolute paths a relative *specifier* may refer to, in lookup order."""
        base = _norm(os.path.join(os.path.dirname(importer), specifier))
        candidates = [base + ext for ext in RESOLUTION_EXTENSIONS]
        for index_name in DIRECTORY_INDEX_NAMES:
            candidates.extend(
                f"{base}/{index_name}{ext}" for ext in RESOLUTION_EXTENSIONS if ext
            )
        return candidates

    def resolve(
        self, statement: ImportStatement, importer: str,
    ) -> List[Tuple[ComponentNode, List[str]]]:
        """Resolve one import statement to ``(target node, imported names)`` pairs."""
        matches: Dict[str, Tuple[ComponentNode, List[str]]] = {}

        def _add(node: ComponentNode, name: str) -> None:
            entry = matches.setdefault(node.id, (node, []))
            if name not in entry[1]:
                entry[1].append(name)

        if statement.is_relative:
            for path in self.candidate_paths(statement.source, importer):
                for name in statement.names:
                    if name == WILDCARD or statement.is_namespace:
                        for node in self._path_index.get(path, []):
                            _add(node, name)
                        continue
                    node = self._export_index.get((path, name))
                    if node is None and statement.is_default:
                        node = self._export_index.get((path, DEFAULT_EXPORT))
                    if node is not None:
                        _add(node, name)
            if matches:
                logger.debug("Resolved %r from %s by path", statement.source, importer)

        if not matches and self.fallback_resolution:
            for name in statement.names:
                if name in (WILDCARD, DEFAULT_EXPORT):
                    continue
                for node in self._name_index.get(name, []):
                    _add(node, name)
            if matches:
                logger.debug("Resolved %r from %s by name fallback", statement.source, importer)

        return list(matches.values())

    # ------------------------------------------------------------------
    # Phase 3: inheritance edges
    # ------------------------------------------------------------------

    def _link_inheritance(self) -> None:
        for node in self._nodes:
            bases, interfaces = parse_inheritance(node.description)
            for base in bases:
                target = self._first_named(base, exclude=node.id)
                if target is not None:
                    self._add_edge(node.id, target.id, RelationshipType.EXTENDS)
            for interface in interfaces:
                target = self._first_named(interface, exclude=node.id)
                if target is not None:
                    self._add_edge(node.id, target.id, RelationshipType.IMPLEMENTS)

    def _first_named(self, name: str, exclude: str) -> Optional[ComponentNode]:
        for node in self._nodes:
            if node.name == name and node.id != exclude:
                return node
        return None

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def _add_edge(
        self,
        source: str,
        target: str,
        relationship: RelationshipType,
        names: Optional[Iterable[str]] = None,
    ) -> None:
        if source == target:
            return
        key = (source, target, relationship)
        edge = self._edges.get(key)
        if edge is None:
            self._edges[key] = ComponentEdge(
                source=source,
                target=target,
                relationship=relationship,
                names=list(names) if names is not None else None,
            )
            return
        if names is None:
            return
        if edge.names is None:
            edge.names = []
        for name in names:
            if name not in edge.names:
                edge.names.append(name)


def build_graph(
    results: Sequence[ParseResult], root_path: str, fallback_resolution: bool = True,
) -> ComponentGraph:
    return GraphBuilder(fallback_resolution=fallback_resolution).build(results, root_path)
