"""Tests for the watch-mode event handler."""

from pathlib import Path

from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from codeflow.cli_watch import ProjectChangeHandler, describe_graph, relative_project_path
from codeflow.models import error_graph
from codeflow.pipeline import RecomputePipeline


class _Recorder:
    """Stands in for ``loop.call_soon_threadsafe``."""

    def __init__(self):
        self.calls = []

    def __call__(self, fn, *args):
        self.calls.append((fn.__name__, args))


def _handler(root: Path):
    recorder = _Recorder()
    pipeline = RecomputePipeline(lambda graph: None, debounce_ms=0)
    handler = ProjectChangeHandler(root, pipeline, recorder, ignore_patterns=["node_modules", ".git"])
    return handler, recorder


def test_relative_project_path(temp_dir: Path):
    root = temp_dir.resolve()
    patterns = ["node_modules"]

    assert relative_project_path(root, str(root / "src" / "a.js"), patterns) == "src/a.js"
    assert relative_project_path(root, str(root / "node_modules" / "x.js"), patterns) is None
    assert relative_project_path(root, str(root / "yarn.lock"), patterns) is None
    assert relative_project_path(root, "/somewhere/else.js", patterns) is None


def test_modified_file_is_forwarded(temp_dir: Path):
    (temp_dir / "src").mkdir()
    source = temp_dir / "src" / "a.js"
    source.write_text("import b from './b';")
    handler, recorder = _handler(temp_dir)

    handler.on_modified(FileModifiedEvent(str(source)))

    assert recorder.calls == [("edit_file", ("src/a.js", "import b from './b';"))]


def test_created_file_is_forwarded(temp_dir: Path):
    source = temp_dir / "new.js"
    source.write_text("")
    handler, recorder = _handler(temp_dir)

    handler.on_created(FileCreatedEvent(str(source)))

    assert recorder.calls == [("edit_file", ("new.js", ""))]


def test_ignored_and_directory_events_dropped(temp_dir: Path):
    (temp_dir / "node_modules").mkdir()
    vendored = temp_dir / "node_modules" / "lib.js"
    vendored.write_text("")
    handler, recorder = _handler(temp_dir)

    handler.on_modified(FileModifiedEvent(str(vendored)))
    handler.on_modified(DirModifiedEvent(str(temp_dir)))

    assert recorder.calls == []


def test_deleted_and_moved_files(temp_dir: Path):
    moved_to = temp_dir / "b.js"
    moved_to.write_text("export const b = 1;")
    handler, recorder = _handler(temp_dir)

    handler.on_deleted(FileDeletedEvent(str(temp_dir / "gone.js")))
    handler.on_moved(FileMovedEvent(str(temp_dir / "a.js"), str(moved_to)))

    assert recorder.calls == [
        ("remove_file", ("gone.js",)),
        ("remove_file", ("a.js",)),
        ("edit_file", ("b.js", "export const b = 1;")),
    ]


def test_describe_graph():
    line = describe_graph(error_graph("boom"))
    assert line.endswith("1 nodes, 0 edges, 0 external")
