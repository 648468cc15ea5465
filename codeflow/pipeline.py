"""Debounced recomputation of the graph shown for the current buffer or project.

Two modes:

- **Project mode**: a file set is open. Edits replace the active file's
  content and the whole file-level dependency graph is rebuilt.
- **Scratch mode**: no project. The single buffer is parsed (language
  auto-detected unless pinned) and walked into a structural (``advanced``) or
  conceptual (``simple``) graph.

Edits are coalesced through a debounce timer. Each firing issues a token and
only the result carrying the latest token reaches the sink, so a slow parse
finishing after a newer one never overwrites it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from . import config
from .adapters import select_adapter
from .dependency_graph import DependencyGraphBuilder
from .models import Graph, ProjectFile, error_graph, loading_graph
from .parser import (
    GrammarUnavailableError,
    PythonBridge,
    SourceParseError,
    SourceParser,
    language_for_path,
)

logger = logging.getLogger(__name__)

GraphSink = Callable[[Graph], None]


def looks_like_html(text: str) -> bool:
    stripped = text.strip()
    return stripped.startswith("<") and stripped.endswith(">")


async def analyze_source(
    text: str,
    language: Optional[str] = None,
    mode: str = config.MODE_ADVANCED,
    parser: Optional[SourceParser] = None,
    bridge: Optional[PythonBridge] = None,
) -> Tuple[Optional[str], Graph]:
    """Parse one buffer and walk it; returns ``(language, graph)``.

    With no *language*, HTML is assumed for bracket-delimited text, otherwise
    a clean JavaScript parse is tried, then a clean CSS parse. Parse failures
    come back as the error placeholder graph with a ``None`` language.
    """
    parser = parser or SourceParser()
    if not text.strip():
        return language, Graph()

    try:
        if language is None:
            language, root = await _detect_and_parse(text, parser)
        elif language == "python":
            root = await (bridge or PythonBridge()).parse_async(text)
        else:
            root = await parser.parse_async(text, language, tolerant=True)
    except SourceParseError as exc:
        logger.debug("Parse failed (%s): %s", exc.language or language, exc.message)
        return None, error_graph(exc.message)
    except GrammarUnavailableError as exc:
        return None, error_graph(str(exc))

    return language, select_adapter(language, mode).build(root)


async def build_source_graph(
    text: str,
    language: Optional[str] = None,
    mode: str = config.MODE_ADVANCED,
    parser: Optional[SourceParser] = None,
    bridge: Optional[PythonBridge] = None,
) -> Graph:
    """Graph for one buffer; parse failures become the error placeholder."""
    _, graph = await analyze_source(text, language, mode, parser, bridge)
    return graph


async def _detect_and_parse(text: str, parser: SourceParser):
    if looks_like_html(text):
        return "html", await parser.parse_async(text, "html", tolerant=True)
    try:
        return "javascript", await parser.parse_async(text, "javascript", tolerant=False)
    except SourceParseError as js_error:
        try:
            return "css", await parser.parse_async(text, "css", tolerant=False)
        except SourceParseError:
            raise js_error from None


def choose_entry_file(files: Sequence[ProjectFile]) -> Optional[ProjectFile]:
    for f in files:
        if f.path.endswith("index.js") or f.path.endswith("App.js"):
            return f
    return files[0] if files else None


class RecomputePipeline:
    """Reruns graph construction whenever the observed text settles.

    Must be driven from a running asyncio event loop. *sink* receives every
    accepted graph, whole.
    """

    def __init__(
        self,
        sink: GraphSink,
        debounce_ms: Optional[int] = None,
        mode: Optional[str] = None,
        parser: Optional[SourceParser] = None,
        bridge: Optional[PythonBridge] = None,
    ) -> None:
        self.sink = sink
        self.debounce_seconds = (config.DEBOUNCE_MS if debounce_ms is None else debounce_ms) / 1000
        self.mode = mode or config.DEFAULT_MODE
        self.parser = parser or SourceParser()
        self.bridge = bridge or PythonBridge()
        self.builder = DependencyGraphBuilder(self.parser)

        self.scratch_text = ""
        self.scratch_language: Optional[str] = None
        self.files: Dict[str, ProjectFile] = {}
        self.active_path: Optional[str] = None

        self._timer: Optional[asyncio.TimerHandle] = None
        self._latest_token = 0
        self._tasks: Set["asyncio.Task[None]"] = set()
        self.last_graph: Optional[Graph] = None
        self.last_language: Optional[str] = None

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    @property
    def project_mode(self) -> bool:
        return bool(self.files)

    def edit(self, text: str) -> None:
        """Replace the observed text (active project file or scratch buffer)."""
        if self.project_mode and self.active_path is not None:
            self.files[self.active_path] = ProjectFile(self.active_path, text)
        else:
            self.scratch_text = text
        self._schedule()

    def edit_file(self, path: str, content: str) -> None:
        """Replace one project file's content wholesale."""
        self.files[path] = ProjectFile(path, content)
        self._schedule()

    def remove_file(self, path: str) -> None:
        if self.files.pop(path, None) is None:
            return
        if self.active_path == path:
            entry = choose_entry_file(list(self.files.values()))
            self.active_path = entry.path if entry else None
        self._schedule()

    def open_project(self, files: Sequence[ProjectFile], active_path: Optional[str] = None) -> None:
        self.files = {f.path: ProjectFile(f.path, f.content) for f in files}
        if active_path is None:
            entry = choose_entry_file(files)
            active_path = entry.path if entry else None
        self.active_path = active_path
        self._schedule()

    def select_file(self, path: str) -> Optional[str]:
        """Make *path* the active file; returns its editor language."""
        if path not in self.files:
            raise KeyError(path)
        self.active_path = path
        return language_for_path(path)

    def close_project(self) -> None:
        self.files = {}
        self.active_path = None
        self._schedule()

    def set_mode(self, mode: str) -> None:
        if mode not in config.MODES:
            raise ValueError(f"Unknown mode '{mode}'")
        self.mode = mode
        self._schedule()

    def set_language(self, language: Optional[str]) -> None:
        """Pin the scratch buffer's language, or ``None`` to auto-detect."""
        self.scratch_language = language
        self._schedule()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _schedule(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._fire)

    def _fire(self) -> None:
        self._timer = None
        self._latest_token += 1
        token = self._latest_token
        if self.project_mode:
            coro = self._recompute_project(token, list(self.files.values()))
        else:
            coro = self._recompute_scratch(token, self.scratch_text, self.scratch_language, self.mode)
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Recompute pass failed: %s", exc, exc_info=exc)

    def is_current(self, token: int) -> bool:
        return token == self._latest_token

    def _deliver(self, token: int, graph: Graph, language: Optional[str] = None) -> bool:
        if not self.is_current(token):
            logger.debug("Dropping stale result for pass %d (latest is %d)", token, self._latest_token)
            return False
        self.last_graph = graph
        self.last_language = language
        self.sink(graph)
        return True

    async def _recompute_project(self, token: int, files: List[ProjectFile]) -> None:
        result = await self.builder.build_async(files)
        self._deliver(token, result.graph)

    async def _recompute_scratch(
        self,
        token: int,
        text: str,
        language: Optional[str],
        mode: str,
    ) -> None:
        if language == "python" and not self.bridge.is_ready:
            self._deliver(token, loading_graph(), language)
            await self.bridge.bootstrap()
        detected, graph = await analyze_source(text, language, mode, self.parser, self.bridge)
        self._deliver(token, graph, detected)

    async def drain(self) -> None:
        """Wait until no debounce timer or recompute task is pending."""
        while self._timer is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(self.debounce_seconds / 2 or 0.001)
