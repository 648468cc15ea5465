"""File-level dependency graph for a set of project files."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

from .adapter_js import extract_import_specifiers
from .models import KIND_DEFAULT, Graph, ProjectFile, ResolvedImport
from .parser import (
    JS_FAMILY_EXTENSIONS,
    GrammarUnavailableError,
    SourceParseError,
    SourceParser,
    language_for_path,
)
from .resolver import classify_import
from .walker import GraphAccumulator

logger = logging.getLogger(__name__)


@dataclass
class DependencyGraph:
    graph: Graph
    imports: List[ResolvedImport] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def external_modules(self) -> List[str]:
        return [n.id for n in self.graph.nodes if n.metadata.get("external") == "true"]


def is_js_family_file(path: str) -> bool:
    return path.endswith(JS_FAMILY_EXTENSIONS)


def unique_by_path(files: Sequence[ProjectFile]) -> List[ProjectFile]:
    """One entry per path: the last content wins, at the first position."""
    latest: Dict[str, ProjectFile] = {}
    for file in files:
        latest[file.path] = file
    return list(latest.values())


class DependencyGraphBuilder:
    """Builds ``imports`` relations between files.

    Every file gets a node up front, whether or not it parses, so files
    nobody imports still show up. Edges point from the imported file to the
    importing one. Imports of packages outside the project get a synthetic
    node and an edge labelled ``external``.
    """

    columns = 5
    horizontal_spacing = 200
    vertical_spacing = 100

    def __init__(self, parser: Optional[SourceParser] = None) -> None:
        self.parser = parser or SourceParser()

    def build(self, files: Sequence[ProjectFile]) -> DependencyGraph:
        files = unique_by_path(files)
        acc, result, known = self._start(files)
        for file in files:
            if not is_js_family_file(file.path):
                continue
            try:
                root = self.parser.parse(file.content, language_for_path(file.path))
            except (SourceParseError, GrammarUnavailableError) as exc:
                self._skip(file, exc, result)
                continue
            self._add_imports(acc, file, root, known, result)
        result.graph = acc.to_graph()
        return result

    async def build_async(self, files: Sequence[ProjectFile]) -> DependencyGraph:
        files = unique_by_path(files)
        acc, result, known = self._start(files)
        for file in files:
            if not is_js_family_file(file.path):
                continue
            try:
                root = await self.parser.parse_async(file.content, language_for_path(file.path))
            except (SourceParseError, GrammarUnavailableError) as exc:
                self._skip(file, exc, result)
                continue
            self._add_imports(acc, file, root, known, result)
        result.graph = acc.to_graph()
        return result

    # ------------------------------------------------------------------

    def _start(self, files: Sequence[ProjectFile]):
        acc = GraphAccumulator("file", self.horizontal_spacing, self.vertical_spacing)
        for i, file in enumerate(files):
            row, col = divmod(i, self.columns)
            acc.add_node(
                posixpath.basename(file.path),
                None,
                row,
                col,
                kind=KIND_DEFAULT,
                node_id=file.path,
            )
        known: Set[str] = {f.path for f in files}
        return acc, DependencyGraph(graph=Graph()), known

    @staticmethod
    def _skip(file: ProjectFile, exc: Exception, result: DependencyGraph) -> None:
        message = f"Could not parse {file.path}: {exc}"
        logger.warning(message)
        result.warnings.append(message)

    def _add_imports(
        self,
        acc: GraphAccumulator,
        file: ProjectFile,
        root: Any,
        known: Set[str],
        result: DependencyGraph,
    ) -> None:
        for specifier in extract_import_specifiers(root):
            resolved = classify_import(file.path, specifier, known)
            result.imports.append(resolved)
            target = resolved.to_path
            if target is None:
                logger.debug("Unresolved import '%s' in %s", specifier, file.path)
                continue
            if target in known:
                acc.add_edge(target, file.path, emphasized=True)
                continue
            if not acc.has_node(target):
                self._add_external_node(acc, target, len(known))
            acc.add_edge(target, file.path, label="external")

    def _add_external_node(self, acc: GraphAccumulator, module: str, file_count: int) -> None:
        # External modules get their own row beneath the file grid.
        row = -(-file_count // self.columns) + 1
        col = len(acc.nodes) - file_count
        acc.add_node(
            module,
            None,
            row,
            col,
            kind=KIND_DEFAULT,
            node_id=module,
            metadata={"external": "true"},
        )
