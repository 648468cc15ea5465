"""Graph accumulation and the depth-first walk shared by all adapters.

Every adapter turns one parser's tree shape into the same :class:`Graph`.
The traversal itself is identical for all of them: pre-order, left to right,
tracking depth and sibling index for layout. Adapters only decide, per
source node, whether it becomes a graph node and where its children attach.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Set

from .models import (
    KIND_DEFAULT,
    KIND_INPUT,
    Graph,
    GraphEdge,
    GraphNode,
    LayoutHint,
)

logger = logging.getLogger(__name__)


class LabelError(Exception):
    """A sub-tree could not be turned into label text."""


class GraphAccumulator:
    """Mutable node/edge sequences owned by a single walk.

    Generated ids are ``<family>-<n>`` where ``n`` is the node count at the
    moment of creation, so ids are unique within one pass and always start
    from ``0``.
    """

    def __init__(
        self,
        family: str,
        horizontal_spacing: float = 220,
        vertical_spacing: float = 100,
    ) -> None:
        self.family = family
        self.horizontal_spacing = horizontal_spacing
        self.vertical_spacing = vertical_spacing
        self.nodes: List[GraphNode] = []
        self.edges: List[GraphEdge] = []
        self._node_ids: Set[str] = set()
        self._edge_ids: Set[str] = set()

    def next_id(self) -> str:
        return f"{self.family}-{len(self.nodes)}"

    def has_node(self, node_id: str) -> bool:
        return node_id in self._node_ids

    def add_node(
        self,
        label: str,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        kind: Optional[str] = None,
        node_id: Optional[str] = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        """Append a node and, when *parent_id* is set, the edge into it."""
        node_id = node_id or self.next_id()
        if node_id in self._node_ids:
            raise ValueError(f"Duplicate node id '{node_id}'")
        if kind is None:
            kind = KIND_INPUT if depth == 0 else KIND_DEFAULT
        layout = LayoutHint(
            depth=depth,
            sibling_index=sibling_index,
            x=sibling_index * self.horizontal_spacing if x is None else x,
            y=depth * self.vertical_spacing if y is None else y,
        )
        self.nodes.append(GraphNode(
            id=node_id, label=label, kind=kind, layout=layout, metadata=dict(metadata or {}),
        ))
        self._node_ids.add(node_id)
        if parent_id:
            self.add_edge(parent_id, node_id)
        return node_id

    def add_edge(
        self,
        source: str,
        target: str,
        label: Optional[str] = None,
        emphasized: bool = False,
    ) -> Optional[str]:
        """Append an edge between two existing nodes; duplicates are ignored."""
        for endpoint in (source, target):
            if endpoint not in self._node_ids:
                raise ValueError(f"Edge endpoint '{endpoint}' is not a node of this graph")
        edge_id = f"e-{source}-to-{target}"
        if edge_id in self._edge_ids:
            return None
        self.edges.append(GraphEdge(
            id=edge_id, source=source, target=target, label=label, emphasized=emphasized,
        ))
        self._edge_ids.add(edge_id)
        return edge_id

    def to_graph(self) -> Graph:
        return Graph(nodes=list(self.nodes), edges=list(self.edges))


class Scope(NamedTuple):
    """Where the children of a visited node attach."""

    parent_id: Optional[str]
    depth: int


class AstAdapter(ABC):
    """Turns one parser's tree shape into a :class:`Graph`."""

    family: str = "node"
    horizontal_spacing: float = 220
    vertical_spacing: float = 100

    def new_accumulator(self) -> GraphAccumulator:
        return GraphAccumulator(self.family, self.horizontal_spacing, self.vertical_spacing)

    def build(self, root: Any) -> Graph:
        """Walk *root* into a fresh accumulator and return the finished graph."""
        return self.walk(root, None, 0, 0, self.new_accumulator()).to_graph()

    @abstractmethod
    def walk(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
    ) -> GraphAccumulator:
        ...


class TreeWalker(AstAdapter):
    """Depth-first, pre-order driver specialised by each adapter.

    :meth:`visit` handles one source node and returns the effective
    :class:`Scope` for its children: the id of the node it just created, or
    the incoming parent for a transparent node. Returning ``None`` stops the
    descent at that node.
    """

    def walk(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
    ) -> GraphAccumulator:
        # Explicit stack: source nesting is unbounded, the interpreter stack is not.
        stack = [(node, parent_id, depth, sibling_index)]
        while stack:
            current, parent, level, index = stack.pop()
            if current is None:
                continue
            scope = self.visit(current, parent, level, index, acc)
            if scope is None:
                continue
            children = list(self.children(current))
            for child_index in range(len(children) - 1, -1, -1):
                stack.append((children[child_index], scope.parent_id, scope.depth, child_index))
        return acc

    @abstractmethod
    def visit(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
    ) -> Optional[Scope]:
        ...

    @abstractmethod
    def children(self, node: Any) -> Iterable[Any]:
        ...

    def materialize(
        self,
        label: str,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
        kind: Optional[str] = None,
    ) -> Scope:
        node_id = acc.add_node(label, parent_id, depth, sibling_index, kind=kind)
        return Scope(node_id, depth + 1)


# ---------------------------------------------------------------------------
# Tree-sitter helpers shared by the CST-based adapters
# ---------------------------------------------------------------------------

def node_text(ts_node: Any) -> str:
    """Decode the source text of a tree-sitter node."""
    if ts_node is None or ts_node.text is None:
        raise LabelError("node has no source text")
    return ts_node.text.decode("utf-8")


def named_children(ts_node: Any, skip_types: Iterable[str] = ("comment",)) -> List[Any]:
    skipped = set(skip_types)
    return [child for child in ts_node.named_children if child.type not in skipped]
