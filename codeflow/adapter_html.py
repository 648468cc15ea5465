"""HTML element-tree walker."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .walker import GraphAccumulator, LabelError, Scope, TreeWalker, node_text

logger = logging.getLogger(__name__)

ELEMENT_TYPES = frozenset({"element", "script_element", "style_element"})
# Containers that hold elements but are not elements themselves.
CONTAINER_TYPES = frozenset({"document", "ERROR"})
TAG_TYPES = ("start_tag", "self_closing_tag")


def tag_name(element: Any) -> str:
    for child in element.named_children:
        if child.type in TAG_TYPES:
            for part in child.named_children:
                if part.type == "tag_name":
                    return node_text(part).lower()
    raise LabelError(f"{element.type} has no tag name")


class HtmlAdapter(TreeWalker):
    """One node per element, labelled ``<tag>``; text and comments are skipped."""

    family = "dom"
    horizontal_spacing = 170

    def visit(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
    ) -> Optional[Scope]:
        if node.type in CONTAINER_TYPES:
            return Scope(parent_id, depth)
        if node.type not in ELEMENT_TYPES:
            return None
        try:
            label = f"<{tag_name(node)}>"
        except (LabelError, UnicodeDecodeError) as exc:
            logger.debug("Element without a readable tag: %s", exc)
            label = node.type
        return self.materialize(label, parent_id, depth, sibling_index, acc)

    def children(self, node: Any) -> Iterable[Any]:
        return [
            child for child in node.named_children
            if child.type in ELEMENT_TYPES or child.type in CONTAINER_TYPES
        ]
