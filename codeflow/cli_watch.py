"""Watch mode: feed file changes into a recompute pipeline."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import typer
from rich.console import Console
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from . import config
from .models import Graph
from .pipeline import RecomputePipeline
from .project_files import is_ignored, load_project_files

logger = logging.getLogger(__name__)

console = Console()

Dispatch = Callable[..., Any]


def relative_project_path(root: Path, src_path: str, ignore_patterns: Sequence[str]) -> Optional[str]:
    """Slash-separated path of *src_path* inside *root*, or None if it is not watched."""
    try:
        rel = Path(src_path).resolve().relative_to(root)
    except ValueError:
        return None
    if any(is_ignored(part, ignore_patterns) for part in rel.parts):
        return None
    if rel.name.endswith(config.SKIPPED_SUFFIXES):
        return None
    return rel.as_posix()


class ProjectChangeHandler(FileSystemEventHandler):
    """Translate watchdog events into pipeline edits.

    Runs on the observer thread; *dispatch* must hand calls over to the
    event loop that owns *pipeline* (``loop.call_soon_threadsafe``).
    """

    def __init__(
        self,
        root: Path,
        pipeline: RecomputePipeline,
        dispatch: Dispatch,
        ignore_patterns: Optional[Sequence[str]] = None,
    ):
        super().__init__()
        self.root = root.resolve()
        self.pipeline = pipeline
        self.dispatch = dispatch
        self.ignore_patterns = config.IGNORE_PATTERNS if ignore_patterns is None else list(ignore_patterns)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._changed(event.src_path, event.is_directory)

    def on_created(self, event: FileSystemEvent) -> None:
        self._changed(event.src_path, event.is_directory)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        rel = relative_project_path(self.root, str(event.src_path), self.ignore_patterns)
        if rel is not None:
            self.dispatch(self.pipeline.remove_file, rel)

    def on_moved(self, event: FileSystemEvent) -> None:
        self.on_deleted(event)
        self._changed(getattr(event, "dest_path", ""), event.is_directory)

    def _changed(self, src_path: Any, is_directory: bool) -> None:
        if is_directory or not src_path:
            return
        rel = relative_project_path(self.root, str(src_path), self.ignore_patterns)
        if rel is None:
            return
        path = self.root / rel
        try:
            if path.stat().st_size > config.MAX_FILE_SIZE:
                return
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Not reading %s: %s", rel, exc)
            return
        self.dispatch(self.pipeline.edit_file, rel, content)


def describe_graph(graph: Graph) -> str:
    stamp = datetime.now().strftime("%H:%M:%S")
    external = sum(1 for n in graph.nodes if n.metadata.get("external") == "true")
    return f"[{stamp}] {len(graph.nodes)} nodes, {len(graph.edges)} edges, {external} external"


async def _watch(root: Path, debounce_ms: int) -> None:
    loop = asyncio.get_running_loop()

    def show(graph: Graph) -> None:
        console.print(f"  [green]✓[/green] {describe_graph(graph)}")

    pipeline = RecomputePipeline(show, debounce_ms=debounce_ms)
    pipeline.open_project(load_project_files(root))

    handler = ProjectChangeHandler(root, pipeline, loop.call_soon_threadsafe)
    observer = Observer()
    observer.schedule(handler, str(root), recursive=True)
    observer.start()
    try:
        while True:
            await asyncio.sleep(1)
    finally:
        observer.stop()
        observer.join()


def watch(
    path: Path = typer.Argument(Path("."), exists=True, file_okay=False, help="Project directory to watch."),
    interval: Optional[float] = typer.Option(None, "--interval", "-i", min=0.0, help="Debounce interval in seconds."),
):
    """👀 Rebuild the dependency graph whenever project files change.

    Example:
      codeflow watch ./my-app
      codeflow watch ./my-app --interval 1.5
    """
    root = path.resolve()
    debounce_ms = config.DEBOUNCE_MS if interval is None else int(interval * 1000)

    console.print(f"\n[bold green]👀 Watching[/bold green] [cyan]{root}[/cyan] for changes...")
    console.print(f"[dim]  Debounce:  {debounce_ms} ms")
    console.print("  Press Ctrl+C to stop[/dim]\n")

    try:
        asyncio.run(_watch(root, debounce_ms))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped watching.[/yellow]")
