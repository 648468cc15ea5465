"""JavaScript / TypeScript walkers over tree-sitter syntax trees."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Tuple

from .models import KIND_DEFAULT, KIND_OUTPUT
from .walker import GraphAccumulator, LabelError, Scope, TreeWalker, named_children, node_text

logger = logging.getLogger(__name__)

IDENTIFIER_TYPES = frozenset({
    "identifier",
    "property_identifier",
    "private_property_identifier",
    "shorthand_property_identifier",
    "shorthand_property_identifier_pattern",
    "statement_identifier",
    "type_identifier",
})
LITERAL_TYPES = frozenset({"number", "string"})

FUNCTION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})
# Declaration wrappers (let/const/var) never become nodes; their declarators
# attach straight to the enclosing node.
ELIDED_WRAPPERS = frozenset({"lexical_declaration", "variable_declaration"})
# Child fields already captured in a conceptual label (declaration name, callee).
SKIPPED_FIELDS = ("name", "function")


def _string_value(ts_node: Any) -> str:
    text = node_text(ts_node)
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def full_label(ts_node: Any) -> str:
    """``identifier: add``, ``number: 1``, ``string: x`` or the bare node type."""
    try:
        if ts_node.type in IDENTIFIER_TYPES:
            return f"{ts_node.type}: {node_text(ts_node)}"
        if ts_node.type == "number":
            return f"number: {node_text(ts_node)}"
        if ts_node.type == "string":
            return f"string: {_string_value(ts_node)}"
    except (LabelError, UnicodeDecodeError) as exc:
        logger.debug("Falling back to bare label for %s: %s", ts_node.type, exc)
    return ts_node.type


class JsFullAdapter(TreeWalker):
    """One graph node per named syntax node."""

    family = "js"
    horizontal_spacing = 220

    def visit(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
    ) -> Optional[Scope]:
        scope = self.materialize(full_label(node), parent_id, depth, sibling_index, acc)
        if node.type in LITERAL_TYPES:
            return None
        return scope

    def children(self, node: Any) -> Iterable[Any]:
        return named_children(node)


class JsConceptualAdapter(TreeWalker):
    """Functions, classes, variables and calls only.

    Every other node is transparent: it is not drawn, but its children are
    still walked and attach to the nearest drawn ancestor.
    """

    family = "simple-js"
    horizontal_spacing = 250

    def visit(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
    ) -> Optional[Scope]:
        if node.type in ELIDED_WRAPPERS:
            return Scope(parent_id, depth)
        try:
            concept = self._concept(node)
        except (LabelError, UnicodeDecodeError) as exc:
            logger.debug("Treating unnamed %s as transparent: %s", node.type, exc)
            concept = None
        if concept is None:
            return Scope(parent_id, depth)
        label, kind = concept
        return self.materialize(label, parent_id, depth, sibling_index, acc, kind=kind)

    def children(self, node: Any) -> Iterable[Any]:
        skipped = [node.child_by_field_name(field) for field in SKIPPED_FIELDS]
        skipped = [s for s in skipped if s is not None]
        return [
            child for child in named_children(node)
            if not any(child == s for s in skipped)
        ]

    @staticmethod
    def _concept(node: Any) -> Optional[Tuple[str, str]]:
        node_type = node.type
        if node_type in FUNCTION_TYPES:
            return f"[Function: {node_text(node.child_by_field_name('name'))}]", KIND_OUTPUT
        if node_type == "class_declaration":
            return f"[Class: {node_text(node.child_by_field_name('name'))}]", KIND_OUTPUT
        if node_type == "variable_declarator":
            return f"[Variable: {node_text(node.child_by_field_name('name'))}]", KIND_DEFAULT
        if node_type == "call_expression":
            callee = node.child_by_field_name("function")
            name = node_text(callee) if callee is not None and callee.type == "identifier" else "..."
            return f"[Call: {name}]", KIND_DEFAULT
        return None


# ---------------------------------------------------------------------------
# Import extraction (dependency graph pass)
# ---------------------------------------------------------------------------

def extract_import_specifiers(root: Any) -> List[str]:
    """Module specifiers of the top-level ``import`` statements, in source order.

    A shallow pass over the program's statements; nothing below them is
    visited.
    """
    specifiers: List[str] = []
    for child in root.named_children:
        if child.type != "import_statement":
            continue
        source = child.child_by_field_name("source")
        if source is None:
            continue
        try:
            specifiers.append(_string_value(source))
        except (LabelError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable import source: %s", exc)
    return specifiers
