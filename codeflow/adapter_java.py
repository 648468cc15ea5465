"""Java walkers over the tree-sitter concrete syntax tree.

The Java tree keeps every grammar production, so the interesting
declarations sit under several layers of wrapper nodes (``class_body``,
``block``, ``expression_statement`` ...). The conceptual walker therefore
carries a small context down the walk: the class currently open and how
many classes have been laid out so far.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, NamedTuple, Optional

from .models import KIND_DEFAULT, KIND_INPUT
from .walker import (
    AstAdapter,
    GraphAccumulator,
    LabelError,
    Scope,
    TreeWalker,
    named_children,
    node_text,
)

logger = logging.getLogger(__name__)


class ProductionMismatch(LookupError):
    """A production lacks the nested field the walker expected."""


@dataclass(frozen=True)
class JavaContext:
    current_class_id: Optional[str] = None
    class_index: int = 0


class _Step(NamedTuple):
    parent_id: Optional[str]
    depth: int
    context: JavaContext
    recurse: bool = True


def field_path(node: Any, *fields: str) -> Any:
    """Follow named fields from *node*; a missing link raises ProductionMismatch."""
    current = node
    for name in fields:
        current = current.child_by_field_name(name)
        if current is None:
            raise ProductionMismatch(f"{node.type} has no '{'.'.join(fields)}'")
    return current


def field_text(node: Any, *fields: str) -> str:
    try:
        return node_text(field_path(node, *fields))
    except (LabelError, UnicodeDecodeError) as exc:
        raise ProductionMismatch(str(exc)) from exc


def _superclass_name(class_node: Any) -> Optional[str]:
    superclass = class_node.child_by_field_name("superclass")
    if superclass is None:
        return None
    for child in superclass.named_children:
        # Generic parents (Base<T>) are reported by their raw type name.
        if child.type == "generic_type" and child.named_children:
            child = child.named_children[0]
        try:
            return node_text(child)
        except (LabelError, UnicodeDecodeError):
            return None
    return None


class JavaFullAdapter(TreeWalker):
    """One node per named production, labelled with the production name."""

    family = "java"
    horizontal_spacing = 220

    def visit(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
    ) -> Optional[Scope]:
        return self.materialize(node.type, parent_id, depth, sibling_index, acc)

    def children(self, node: Any) -> Iterable[Any]:
        return named_children(node, skip_types=("line_comment", "block_comment"))


class JavaConceptualAdapter(AstAdapter):
    """Classes, fields, methods, local variables and method calls.

    Each class becomes a root of its own, laid out left to right. Fields and
    methods hang off the class that declares them; locals and calls hang off
    the enclosing method (or the class for initializer blocks). Any other
    production is transparent.
    """

    family = "simple-java"
    horizontal_spacing = 300
    vertical_spacing = 120
    class_spacing = 350

    def walk(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
        context: Optional[JavaContext] = None,
    ) -> GraphAccumulator:
        self._walk(node, parent_id, depth, sibling_index, acc, context or JavaContext())
        return acc

    def _walk(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
        context: JavaContext,
    ) -> JavaContext:
        """Walk *node* in pre-order; returns *context* with the updated class count.

        The open class is scoped to each subtree, the class count runs across
        the whole walk in visiting order.
        """
        class_index = context.class_index
        stack = [(node, parent_id, depth, sibling_index, context.current_class_id)]
        while stack:
            current, parent, level, index, class_id = stack.pop()
            if current is None:
                continue
            local = JavaContext(class_id, class_index)
            try:
                step = self.match(current, parent, level, index, acc, local)
            except ProductionMismatch as exc:
                logger.debug("No match for %s: %s", current.type, exc)
                step = None
            if step is None:
                step = _Step(parent, level, local)
            class_index = step.context.class_index
            if not step.recurse:
                continue

            children = named_children(current, skip_types=("line_comment", "block_comment"))
            for child_index in range(len(children) - 1, -1, -1):
                stack.append(
                    (children[child_index], step.parent_id, step.depth, child_index, step.context.current_class_id)
                )
        return replace(context, class_index=class_index)

    def match(
        self,
        node: Any,
        parent_id: Optional[str],
        depth: int,
        sibling_index: int,
        acc: GraphAccumulator,
        context: JavaContext,
    ) -> Optional[_Step]:
        """Materialize *node* if it is one of the tracked productions.

        Names are looked up before anything is appended, so a mismatch leaves
        the accumulator untouched.
        """
        node_type = node.type

        if node_type == "class_declaration":
            class_name = field_text(node, "name")
            label = f"[Class: {class_name}]"
            parent_class = _superclass_name(node)
            if parent_class:
                label += f" extends {parent_class}"
            class_id = acc.add_node(
                label, None, 0, sibling_index,
                kind=KIND_INPUT,
                x=context.class_index * self.class_spacing,
                y=0,
                metadata={"class_name": class_name},
            )
            return _Step(class_id, 1, JavaContext(class_id, context.class_index + 1))

        if node_type == "field_declaration":
            field_name = field_text(node, "declarator", "name")
            if context.current_class_id is None:
                raise ProductionMismatch("field outside of a class")
            acc.add_node(
                f"[Field: {field_name}]", context.current_class_id, depth, sibling_index,
                kind=KIND_DEFAULT,
            )
            return _Step(parent_id, depth, context, recurse=False)

        if node_type == "method_declaration":
            method_name = field_text(node, "name")
            if context.current_class_id is None:
                raise ProductionMismatch("method outside of a class")
            method_id = acc.add_node(
                f"[Method: {method_name}]", context.current_class_id, depth, sibling_index,
                kind=KIND_DEFAULT,
            )
            return _Step(method_id, depth + 1, context)

        if node_type == "local_variable_declaration":
            var_name = field_text(node, "declarator", "name")
            if parent_id is None:
                raise ProductionMismatch("local variable without an enclosing scope")
            acc.add_node(f"[Variable: {var_name}]", parent_id, depth, sibling_index, kind=KIND_DEFAULT)
            return _Step(parent_id, depth, context, recurse=False)

        if node_type == "method_invocation":
            called = field_text(node, "name")
            if parent_id is None:
                raise ProductionMismatch("call without an enclosing scope")
            acc.add_node(f"[Call: {called}]", parent_id, depth, sibling_index, kind=KIND_DEFAULT)
            return _Step(parent_id, depth, context, recurse=False)

        return None
