"""Walkers for Python syntax trees in their ``_type``-tagged JSON shape.

No child table exists for this shape, so children are discovered by scanning
every property of a node for ``_type``-tagged dicts or lists of them.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import KIND_DEFAULT, KIND_OUTPUT
from .walker import GraphAccumulator, Scope, TreeWalker

FUNCTION_TYPES = frozenset({"FunctionDef", "AsyncFunctionDef"})


def _is_node(value: Any) -> bool:
    return isinstance(value, dict) and "_type" in value


def discover_children(py_node: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Tagged children of *py_node* in property order."""
    found: List[Dict[str, Any]] = []
    for value in py_node.values():
        # Names, docstrings and other strings can never hold nodes.
        if isinstance(value, str):
            continue
        if isinstance(value, list):
            found.extend(item for item in value if _is_node(item))
        elif _is_node(value):
            found.append(value)
    return found


def dotted_name(expr: Any) -> str:
    """``foo``, ``self.add`` ... or ``...`` when the expression has no plain name."""
    if not _is_node(expr):
        return "..."
    if expr["_type"] == "Name":
        return expr.get("id") or "..."
    if expr["_type"] == "Attribute":
        parts: List[str] = []
        current = expr
        while _is_node(current) and current["_type"] == "Attribute":
            parts.append(current.get("attr") or "?")
            current = current.get("value")
        if _is_node(current) and current["_type"] == "Name":
            parts.append(current.get("id") or "?")
            return ".".join(reversed(parts))
    return "..."


class PythonFullAdapter(TreeWalker):
    """Every tagged node, labelled with its type."""

    family = "py"
    horizontal_spacing = 220

    def visit(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
    ) -> Optional[Scope]:
        if not _is_node(node):
            return None
        return self.materialize(node["_type"], parent_id, depth, sibling_index, acc)

    def children(self, node: Any) -> Iterable[Any]:
        return discover_children(node)


class PythonConceptualAdapter(TreeWalker):
    """Functions, classes, assignments and calls; everything else is transparent."""

    family = "simple-py"
    horizontal_spacing = 250

    def visit(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
    ) -> Optional[Scope]:
        if not _is_node(node):
            return None
        concept = self._concept(node)
        if concept is None:
            return Scope(parent_id, depth)
        label, kind = concept
        return self.materialize(label, parent_id, depth, sibling_index, acc, kind=kind)

    def children(self, node: Any) -> Iterable[Any]:
        return discover_children(node)

    @staticmethod
    def _concept(node: Dict[str, Any]) -> Optional[Tuple[str, str]]:
        node_type = node["_type"]
        if node_type in FUNCTION_TYPES:
            return f"[Function: {node.get('name')}]", KIND_OUTPUT
        if node_type == "ClassDef":
            return f"[Class: {node.get('name')}]", KIND_OUTPUT
        if node_type == "Assign":
            targets = node.get("targets") or [None]
            return f"[Variable: {dotted_name(targets[0])}]", KIND_DEFAULT
        if node_type == "AnnAssign":
            return f"[Variable: {dotted_name(node.get('target'))}]", KIND_DEFAULT
        if node_type == "Call":
            return f"[Call: {dotted_name(node.get('func'))}]", KIND_DEFAULT
        return None
