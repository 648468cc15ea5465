"""Stylesheet walker."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .walker import GraphAccumulator, LabelError, Scope, TreeWalker, named_children, node_text

logger = logging.getLogger(__name__)


def _selector_text(ts_node: Any) -> str:
    text = " ".join(node_text(ts_node).split())
    if not text:
        raise LabelError("empty selector")
    return text


def _property_name(declaration: Any) -> str:
    for child in declaration.named_children:
        if child.type == "property_name":
            return node_text(child)
    raise LabelError("declaration without a property name")


def css_label(ts_node: Any) -> str:
    """Label for a stylesheet node.

    Selector text is regenerated from the source; while the user is mid-edit
    that can fail, in which case the bare node type is used instead.
    """
    try:
        if ts_node.type == "selectors":
            return f"Selector: {_selector_text(ts_node)}"
        if ts_node.type == "declaration":
            return f"Declaration: {_property_name(ts_node)}: ..."
    except (LabelError, UnicodeDecodeError) as exc:
        logger.debug("Falling back to bare label for %s: %s", ts_node.type, exc)
    return ts_node.type


class CssAdapter(TreeWalker):
    family = "css"
    horizontal_spacing = 200

    def visit(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
    ) -> Optional[Scope]:
        scope = self.materialize(css_label(node), parent_id, depth, sibling_index, acc)
        # Declaration values are not part of the structure.
        if node.type == "declaration":
            return None
        return scope

    def children(self, node: Any) -> Iterable[Any]:
        return named_children(node)
