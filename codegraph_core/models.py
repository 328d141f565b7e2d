"""Core data models shared by extraction, resolution and enrichment."""

from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .languages import Language


def normalize_path(path: str) -> str:
    """Canonical node id for a file path."""
    norm = path.replace("\\", "/")
    while norm.startswith("./"):
        norm = norm[2:]
    return norm


@dataclass(frozen=True)
class SourceFile:
    path: str
    content: Union[str, bytes]


@dataclass
class StructuralNode:
    kind: str
    text: str
    start_line: int
    end_line: int
    children: List["StructuralNode"] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "text": self.text,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "children": [c.to_dict() for c in self.children],
            "attributes": dict(self.attributes),
        }


@dataclass
class FunctionInfo:
    name: str
    start_line: int
    end_line: int
    complexity: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "complexityScore": self.complexity,
        }


@dataclass
class TypeInfo(FunctionInfo):
    pass


@dataclass
class ImportInfo:
    module_path: str
    symbols: List[str] = field(default_factory=list)
    line: int = 0

    @property
    def bare_name(self) -> str:
        """Last path segment of the module, or the first imported symbol."""
        if self.symbols and self.symbols[0] not in ("*", ""):
            return self.symbols[0]
        tail = self.module_path.replace("\\", "/").rstrip("/")
        for sep in ("/", "::", ".", ":"):
            if sep in tail:
                tail = tail.rsplit(sep, 1)[-1]
        return tail

    def to_dict(self) -> Dict[str, Any]:
        return {"modulePath": self.module_path, "symbols": list(self.symbols), "line": self.line}


@dataclass
class ParseResult:
    path: str
    language: Language
    structural_node: StructuralNode
    functions: List[FunctionInfo] = field(default_factory=list)
    types: List[TypeInfo] = field(default_factory=list)
    imports: List[ImportInfo] = field(default_factory=list)
    lines_of_code: int = 0
    comment_lines: int = 0
    namespace: Optional[str] = None
    degraded: bool = False
    content: str = field(default="", repr=False)

    @property
    def node_id(self) -> str:
        return normalize_path(self.path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "language": self.language.value,
            "structuralNode": self.structural_node.to_dict(),
            "functions": [f.to_dict() for f in self.functions],
            "types": [t.to_dict() for t in self.types],
            "imports": [i.to_dict() for i in self.imports],
            "linesOfCode": self.lines_of_code,
            "commentLines": self.comment_lines,
            "namespace": self.namespace,
        }


@dataclass
class ComplexityStats:
    average: float = 0.0
    highest: int = 0
    lowest: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"average": self.average, "highest": self.highest, "lowest": self.lowest}


@dataclass
class ProjectMetadata:
    total_files: int = 0
    total_lines: int = 0
    total_comment_lines: int = 0
    total_functions: int = 0
    total_types: int = 0
    languages: Dict[str, int] = field(default_factory=dict)
    dependencies: List[str] = field(default_factory=list)
    unresolved_imports: List[str] = field(default_factory=list)
    complexity: ComplexityStats = field(default_factory=ComplexityStats)
    skipped_files: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "totalLines": self.total_lines,
            "totalCommentLines": self.total_comment_lines,
            "totalFunctions": self.total_functions,
            "totalTypes": self.total_types,
            "languages": dict(self.languages),
            "dependencies": list(self.dependencies),
            "unresolvedImports": list(self.unresolved_imports),
            "complexity": self.complexity.to_dict(),
            "skippedFiles": list(self.skipped_files),
        }


@dataclass
class GraphNode:
    id: str
    label: str
    language: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "language": self.language}


@dataclass
class GraphEdge:
    source: str
    target: str
    kind: str = "import"
    weight: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "kind": self.kind, "weight": self.weight}


@dataclass
class ProjectGraph:
    """File-level dependency graph.

    Nodes are unique by normalized path. An edge between two distinct files
    is stored once; repeated references only bump its ``weight``.
    """

    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    _node_index: Dict[str, GraphNode] = field(default_factory=dict, init=False, repr=False, compare=False)
    _edge_index: Dict[Tuple[str, str], GraphEdge] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        nodes, edges = self.nodes, self.edges
        self.nodes, self.edges = [], []
        for node in nodes:
            self.add_node(node.id, node.label, node.language)
        for edge in edges:
            self.add_edge(edge.source, edge.target, edge.kind, edge.weight)

    def add_node(self, node_id: str, label: Optional[str] = None, language: str = "unknown") -> GraphNode:
        node_id = normalize_path(node_id)
        existing = self._node_index.get(node_id)
        if existing is not None:
            return existing
        node = GraphNode(id=node_id, label=label or posixpath.basename(node_id), language=language)
        self._node_index[node_id] = node
        self.nodes.append(node)
        return node

    def has_node(self, node_id: str) -> bool:
        return normalize_path(node_id) in self._node_index

    def add_edge(self, source: str, target: str, kind: str = "import", weight: int = 1) -> Optional[GraphEdge]:
        """Add or reinforce ``source -> target``; returns None for self or dangling edges."""
        source, target = normalize_path(source), normalize_path(target)
        if source == target:
            return None
        if source not in self._node_index or target not in self._node_index:
            return None
        existing = self._edge_index.get((source, target))
        if existing is not None:
            existing.weight += weight
            return existing
        edge = GraphEdge(source=source, target=target, kind=kind, weight=weight)
        self._edge_index[(source, target)] = edge
        self.edges.append(edge)
        return edge

    def has_edge(self, source: str, target: str) -> bool:
        return (normalize_path(source), normalize_path(target)) in self._edge_index

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def adjacency(self) -> Dict[str, List[str]]:
        adj: Dict[str, List[str]] = {n.id: [] for n in self.nodes}
        for edge in self.edges:
            adj[edge.source].append(edge.target)
        return adj

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass
class Cycle:
    """Directed cycle; the closing edge back to ``nodes[0]`` is implicit."""

    nodes: List[str]

    def __len__(self) -> int:
        return len(self.nodes)

    def canonical(self) -> "Cycle":
        if not self.nodes:
            return Cycle([])
        start = min(range(len(self.nodes)), key=lambda i: self.nodes[i])
        return Cycle(self.nodes[start:] + self.nodes[:start])

    def __str__(self) -> str:
        if not self.nodes:
            return ""
        return " -> ".join(self.nodes + [self.nodes[0]])

    def to_dict(self) -> Dict[str, Any]:
        return {"nodes": list(self.nodes), "path": str(self)}


@dataclass
class AnalysisResult:
    files: List[ParseResult]
    project_metadata: ProjectMetadata
    graph: ProjectGraph
    cycles: List[Cycle]
    enrichment: Optional[Any] = None
    structural_graph: Optional[ProjectGraph] = field(default=None, repr=False)
    # "merged" or "fallback" after an enrichment run; never serialized
    enrichment_state: Optional[str] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "files": [f.to_dict() for f in self.files],
            "projectMetadata": self.project_metadata.to_dict(),
            "graph": self.graph.to_dict(),
            "cycles": [c.to_dict() for c in self.cycles],
        }
        if self.enrichment is not None:
            payload["enrichment"] = self.enrichment.to_dict()
        return payload

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
