"""Core data models shared by the walkers, the dependency builder and exporters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

# Node role hints understood by the renderer.
KIND_INPUT = "input"
KIND_DEFAULT = "default"
KIND_OUTPUT = "output"


@dataclass(frozen=True)
class LayoutHint:
    depth: int
    sibling_index: int
    x: float
    y: float


@dataclass(frozen=True)
class GraphNode:
    id: str
    label: str
    kind: str
    layout: LayoutHint
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"label": self.label}
        data.update(self.metadata)
        return {
            "id": self.id,
            "type": self.kind,
            "data": data,
            "position": {"x": self.layout.x, "y": self.layout.y},
        }


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    label: Optional[str] = None
    emphasized: bool = False

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "animated": self.emphasized,
        }
        if self.label is not None:
            out["label"] = self.label
        return out


@dataclass
class Graph:
    """Ordered nodes and edges produced by one accumulation pass."""

    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)

    def node_ids(self) -> Set[str]:
        return {n.id for n in self.nodes}

    def labels(self) -> List[str]:
        return [n.label for n in self.nodes]

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass
class ProjectFile:
    path: str
    content: str


@dataclass(frozen=True)
class ResolvedImport:
    from_path: str
    specifier: str
    to_path: Optional[str]
    is_external: bool


def error_graph(message: str) -> Graph:
    """Single placeholder node delivered when a scratch buffer cannot be parsed."""
    return Graph(nodes=[GraphNode(
        id="error",
        label=f"Syntax Error: {message}",
        kind=KIND_OUTPUT,
        layout=LayoutHint(depth=0, sibling_index=0, x=100, y=100),
    )])


def loading_graph(label: str = "Loading Python runtime...") -> Graph:
    """Interim placeholder shown while a slow parser environment bootstraps."""
    return Graph(nodes=[GraphNode(
        id="loading",
        label=label,
        kind=KIND_OUTPUT,
        layout=LayoutHint(depth=0, sibling_index=0, x=100, y=100),
    )])
