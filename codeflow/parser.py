"""Source parsing front-end shared by every graph walker.

Wraps the external parsers behind one interface:

- Tree-sitter grammars for JavaScript / TypeScript / TSX, HTML, CSS and Java.
  Tree-sitter produces a *concrete syntax tree* and recovers from syntax
  errors, so a half-typed buffer still yields a usable partial tree.
- CPython's ``ast`` module for Python, serialized by :class:`PythonBridge`
  into ``_type``-tagged dicts (the JSON shape the Python walkers consume).

Grammar packages are imported lazily on first use of a language.
"""

from __future__ import annotations

import ast
import asyncio
import importlib
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

from tree_sitter import Language, Parser as TSParser

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Language <-> file-extension mapping
# ---------------------------------------------------------------------------
LANGUAGE_MAP: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".java": "java",
    ".py": "python",
}

JS_FAMILY = frozenset({"javascript", "typescript", "tsx"})
JS_FAMILY_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx")
LANGUAGES = frozenset(LANGUAGE_MAP.values())


def language_for_path(path: str) -> str:
    """Pick the editor language for *path*; unknown extensions are treated as JS."""
    for ext, lang in LANGUAGE_MAP.items():
        if path.endswith(ext):
            return lang
    return "javascript"


class SourceParseError(Exception):
    """Raised when a buffer cannot be parsed by the selected grammar."""

    def __init__(
        self,
        message: str,
        language: str = "",
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.language = language
        self.line = line
        self.column = column


class GrammarUnavailableError(RuntimeError):
    """Raised when the tree-sitter grammar package for a language is missing."""


# ===================================================================
# Tree-sitter parsers
# ===================================================================

class SourceParser:
    """Lazily loads tree-sitter grammars and parses buffers with them."""

    # Map language name -> (module, function returning the Language capsule)
    _GRAMMAR_MODULES: Dict[str, Tuple[str, str]] = {
        "javascript": ("tree_sitter_javascript", "language"),
        "typescript": ("tree_sitter_typescript", "language_typescript"),
        "tsx": ("tree_sitter_typescript", "language_tsx"),
        "html": ("tree_sitter_html", "language"),
        "css": ("tree_sitter_css", "language"),
        "java": ("tree_sitter_java", "language"),
    }

    def __init__(self) -> None:
        self._parsers: Dict[str, Any] = {}

    def supports_language(self, language: str) -> bool:
        return language in self._GRAMMAR_MODULES

    def is_loaded(self, language: str) -> bool:
        return language in self._parsers

    def _load(self, language: str) -> Any:
        parser = self._parsers.get(language)
        if parser is not None:
            return parser

        spec = self._GRAMMAR_MODULES.get(language)
        if spec is None:
            raise GrammarUnavailableError(f"No grammar mapped for language '{language}'")
        mod_name, func_name = spec

        try:
            mod = importlib.import_module(mod_name)
        except ImportError as exc:
            logger.warning(
                "Grammar package '%s' not installed for language '%s'. Install with: pip install %s",
                mod_name, language, mod_name.replace("_", "-"),
            )
            raise GrammarUnavailableError(
                f"tree-sitter grammar '{mod_name}' is not installed"
            ) from exc

        # tree-sitter >=0.22 per-language packages expose a function that
        # returns the Language capsule.
        parser = TSParser(Language(getattr(mod, func_name)()))
        self._parsers[language] = parser
        logger.debug("Loaded tree-sitter parser for %s", language)
        return parser

    def parse(self, source: str, language: str, tolerant: bool = True) -> Any:
        """Parse *source* and return the tree-sitter root node.

        With ``tolerant=True`` error recovery is accepted and the parse only
        fails when nothing in the buffer could be recovered. With
        ``tolerant=False`` any error or missing token fails the parse.
        """
        parser = self._load(language)
        tree = parser.parse(source.encode("utf-8"))
        root = tree.root_node
        if not root.has_error:
            return root

        if not tolerant or _nothing_recovered(root):
            raise _error_from_tree(root, language)
        return root

    async def parse_async(self, source: str, language: str, tolerant: bool = True) -> Any:
        """Async variant used by the recompute pipeline.

        Yields to the event loop before loading a grammar for the first time so
        pending edits get a chance to supersede this pass.
        """
        if not self.is_loaded(language):
            await asyncio.sleep(0)
        return self.parse(source, language, tolerant=tolerant)


def _nothing_recovered(root: Any) -> bool:
    return root.is_error or root.type == "ERROR"


def _iter_error_nodes(node: Any) -> Iterator[Any]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.is_error or current.is_missing:
            yield current
            continue
        stack.extend(
            child for child in reversed(current.children) if child.has_error or child.is_missing
        )


def _error_from_tree(root: Any, language: str) -> SourceParseError:
    first = next(_iter_error_nodes(root), root)
    line, column = first.start_point[0] + 1, first.start_point[1] + 1
    if first.is_missing:
        message = f"missing '{first.type}' at line {line}, column {column}"
    else:
        message = f"unexpected input at line {line}, column {column}"
    return SourceParseError(message, language=language, line=line, column=column)


# ===================================================================
# Python bridge
# ===================================================================

class PythonBridge:
    """Turns Python source into ``_type``-tagged JSON-shaped dicts.

    The first parse goes through :meth:`bootstrap`, which callers may await
    ahead of time; the recompute pipeline shows a loading placeholder while it
    runs.
    """

    def __init__(self) -> None:
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def bootstrap(self) -> None:
        if self._ready:
            return
        await asyncio.sleep(0)
        # Warm the compiler so the first real parse is not the slow one.
        ast.parse("pass")
        self._ready = True
        logger.debug("Python bridge ready")

    def parse(self, source: str) -> Dict[str, Any]:
        try:
            tree = ast.parse(source)
        except SyntaxError as exc:
            raise SourceParseError(
                exc.msg or "invalid syntax",
                language="python",
                line=exc.lineno,
                column=exc.offset,
            ) from exc
        except (RecursionError, MemoryError) as exc:
            # CPython gives up on very deeply nested source.
            raise SourceParseError("source is nested too deeply", language="python") from exc
        self._ready = True
        return ast_to_json(tree)

    async def parse_async(self, source: str) -> Dict[str, Any]:
        await self.bootstrap()
        return self.parse(source)


_JSON_SCALARS = (str, int, float, bool, type(None))


def ast_to_json(node: Any) -> Any:
    """Serialize an ``ast`` tree into plain dicts and lists.

    Every AST node becomes ``{"_type": <class name>, <field>: ..., lineno: ...}``.
    Expression contexts (``Load``/``Store``/``Del``) are dropped.
    """
    root: List[Any] = [None]
    # (value, container, key): each value is converted into container[key].
    pending: List[Tuple[Any, Any, Any]] = [(node, root, 0)]
    while pending:
        value, target, key = pending.pop()
        if isinstance(value, ast.AST):
            out: Dict[str, Any] = {"_type": type(value).__name__}
            for name, field in ast.iter_fields(value):
                if name == "ctx":
                    continue
                out[name] = None
                pending.append((field, out, name))
            for attr in value._attributes:
                out[attr] = getattr(value, attr, None)
            target[key] = out
        elif isinstance(value, list):
            items: List[Any] = [None] * len(value)
            pending.extend((item, items, index) for index, item in enumerate(value))
            target[key] = items
        elif isinstance(value, _JSON_SCALARS):
            target[key] = value
        else:
            target[key] = repr(value)
    return root[0]
