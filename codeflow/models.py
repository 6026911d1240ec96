"""Core data models shared by the extractors, the graph builder and projections."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .config import DIAGRAM_DIRECTIONS, DIAGRAM_THEMES

WILDCARD = "*"
DEFAULT_EXPORT = "default"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class Language(str, Enum):
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    REACT = "react"
    PYTHON = "python"
    CSHARP = "csharp"


class ComponentType(str, Enum):
    """Coarse semantic category of a declaration (not a language type)."""

    COMPONENT = "component"
    CLASS = "class"
    FUNCTION = "function"
    MODULE = "module"
    SERVICE = "service"
    HOOK = "hook"
    CONTEXT = "context"
    STORE = "store"
    API = "api"
    UTIL = "util"
    TYPE = "type"
    CONFIG = "config"
    UNKNOWN = "unknown"


class RelationshipType(str, Enum):
    IMPORTS = "imports"
    EXPORTS = "exports"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    USES = "uses"
    PROVIDES = "provides"
    CONSUMES = "consumes"


class EditStatus(str, Enum):
    IDLE = "idle"
    QUEUED = "queued"
    EDITING = "editing"
    COMPLETED = "completed"
    ERROR = "error"
    SKIPPED = "skipped"
    MANUAL = "manual"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: List[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def path_hash(file_path: str) -> str:
    """32-bit rolling hash of *file_path*, rendered in base 36."""
    acc = 0
    for ch in file_path:
        acc = ((acc << 5) - acc + ord(ch)) & 0xFFFFFFFF
    if acc >= 0x80000000:
        acc -= 0x100000000
    return _to_base36(abs(acc))


def make_node_id(file_path: str, name: str) -> str:
    """Stable node id for a declaration: same file + name always gives the same id."""
    return f"{name}_{path_hash(file_path)}"


@dataclass
class Declaration:
    name: str
    kind: ComponentType
    file_path: str
    line: int
    column: int
    language: Language
    description: Optional[str] = None
    exported_names: List[str] = field(default_factory=list)

    @property
    def node_id(self) -> str:
        return make_node_id(self.file_path, self.name)


@dataclass
class ImportStatement:
    source: str
    names: List[str]
    is_default: bool = False
    is_namespace: bool = False
    is_reexport: bool = False

    @property
    def is_relative(self) -> bool:
        return self.source.startswith(".")


@dataclass
class ParseResult:
    """Output of one extractor invocation for one file."""

    file_path: str
    declarations: List[Declaration] = field(default_factory=list)
    imports: List[ImportStatement] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.declarations and not self.imports


@dataclass
class ComponentNode:
    id: str
    name: str
    kind: ComponentType
    file_path: str
    line: int
    column: int
    language: Language
    description: Optional[str] = None
    exports: List[str] = field(default_factory=list)
    edit_status: EditStatus = EditStatus.IDLE
    error_message: Optional[str] = None
    last_modified: Optional[float] = None

    @classmethod
    def from_declaration(cls, decl: Declaration) -> "ComponentNode":
        return cls(
            id=decl.node_id,
            name=decl.name,
            kind=decl.kind,
            file_path=decl.file_path,
            line=decl.line,
            column=decl.column,
            language=decl.language,
            description=decl.description,
            exports=list(decl.exported_names),
        )

    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.line}:{self.column}"


@dataclass
class ComponentEdge:
    source: str
    target: str
    relationship: RelationshipType
    names: Optional[List[str]] = None

    @property
    def key(self) -> tuple:
        return (self.source, self.target, self.relationship)


@dataclass
class ComponentGraph:
    nodes: List[ComponentNode] = field(default_factory=list)
    edges: List[ComponentEdge] = field(default_factory=list)
    root_path: str = ""
    generated_at: float = field(default_factory=time.time)
    languages: List[Language] = field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[ComponentNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def find_by_name(self, name: str) -> List[ComponentNode]:
        return [n for n in self.nodes if n.name == name]

    def connection_counts(self) -> Dict[str, int]:
        """Number of edges touching each node id, in either direction."""
        counts: Dict[str, int] = {n.id: 0 for n in self.nodes}
        for edge in self.edges:
            counts[edge.source] = counts.get(edge.source, 0) + 1
            counts[edge.target] = counts.get(edge.target, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        for node in payload["nodes"]:
            node["kind"] = node["kind"].value
            node["language"] = node["language"].value
            node["edit_status"] = node["edit_status"].value
        for edge in payload["edges"]:
            edge["relationship"] = edge["relationship"].value
        payload["languages"] = [lang.value for lang in self.languages]
        return payload


@dataclass
class MermaidConfig:
    direction: str = "TB"
    theme: str = "default"
    show_labels: bool = True
    max_nodes: int = 50

    def __post_init__(self):
        if self.direction not in DIAGRAM_DIRECTIONS:
            raise ValueError(f"Unsupported diagram direction: {self.direction}")
        if self.theme not in DIAGRAM_THEMES:
            raise ValueError(f"Unsupported diagram theme: {self.theme}")
        if self.max_nodes < 1:
            raise ValueError("max_nodes must be at least 1")


@dataclass
class GraphStats:
    total_nodes: int
    total_edges: int
    by_type: Dict[str, int]
    by_language: Dict[str, int]
    avg_connections: float
