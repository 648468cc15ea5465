"""Tests for single-buffer analysis and the debounced recompute pipeline."""

import asyncio

import pytest

pytest.importorskip("tree_sitter_javascript")

from codeflow.models import Graph, ProjectFile
from codeflow.parser import PythonBridge
from codeflow.pipeline import (
    RecomputePipeline,
    analyze_source,
    choose_entry_file,
    looks_like_html,
)


class _SlowBridge(PythonBridge):
    """Bootstrap takes long enough for a newer edit to overtake it."""

    async def bootstrap(self) -> None:
        if self.is_ready:
            return
        await asyncio.sleep(0.05)
        self._ready = True


def test_looks_like_html():
    assert looks_like_html("  <div></div>\n")
    assert not looks_like_html("a < b")


def test_analyze_pinned_language():
    language, graph = asyncio.run(analyze_source("function add(a,b) { return a+b; }", "javascript", "simple"))

    assert language == "javascript"
    assert graph.labels() == ["[Function: add]"]


def test_auto_detects_javascript():
    language, graph = asyncio.run(analyze_source("const x = f(1);", None, "simple"))

    assert language == "javascript"
    assert graph.labels() == ["[Variable: x]", "[Call: f]"]


def test_auto_detects_html():
    pytest.importorskip("tree_sitter_html")
    language, graph = asyncio.run(analyze_source("<div><p>hi</p></div>", None, "advanced"))

    assert language == "html"
    assert graph.labels() == ["<div>", "<p>"]


def test_auto_detects_css():
    pytest.importorskip("tree_sitter_css")
    language, graph = asyncio.run(analyze_source("body { margin: 0; }", None, "advanced"))

    assert language == "css"
    assert graph.labels()[0] == "stylesheet"
    assert "Selector: body" in graph.labels()


def test_undetectable_buffer_gives_error_placeholder():
    pytest.importorskip("tree_sitter_css")
    language, graph = asyncio.run(analyze_source("let = ;", None, "advanced"))

    assert language is None
    assert [n.id for n in graph.nodes] == ["error"]
    assert graph.nodes[0].label.startswith("Syntax Error: ")
    assert graph.edges == []


def test_python_syntax_error_placeholder():
    language, graph = asyncio.run(analyze_source("def broken(:", "python", "simple"))

    assert language is None
    assert graph.nodes[0].id == "error"


def test_empty_buffer_gives_empty_graph():
    _, graph = asyncio.run(analyze_source("   \n", None, "simple"))
    assert len(graph) == 0


def test_choose_entry_file():
    files = [ProjectFile("src/util.js", ""), ProjectFile("src/App.js", ""), ProjectFile("index.js", "")]
    assert choose_entry_file(files).path == "src/App.js"
    assert choose_entry_file([ProjectFile("main.ts", "")]).path == "main.ts"
    assert choose_entry_file([]) is None


def test_edits_within_window_coalesce():
    delivered = []

    async def scenario():
        pipeline = RecomputePipeline(delivered.append, debounce_ms=20, mode="simple")
        pipeline.edit("const a = 1;")
        pipeline.edit("const b = 2;")
        pipeline.edit("function add(a,b) { return a+b; }")
        await pipeline.drain()
        return pipeline

    pipeline = asyncio.run(scenario())

    assert len(delivered) == 1
    assert delivered[0].labels() == ["[Function: add]"]
    assert pipeline.last_graph is delivered[0]
    assert pipeline.last_language == "javascript"


def test_mode_switch_recomputes():
    delivered = []

    async def scenario():
        pipeline = RecomputePipeline(delivered.append, debounce_ms=0, mode="simple")
        pipeline.edit("function add(a,b) { return a+b; }")
        await pipeline.drain()
        pipeline.set_mode("advanced")
        await pipeline.drain()

    asyncio.run(scenario())

    assert len(delivered) == 2
    assert len(delivered[1]) > len(delivered[0])
    assert delivered[1].labels()[0] == "program"


def test_unknown_mode_rejected():
    pipeline = RecomputePipeline(lambda graph: None, debounce_ms=0)
    with pytest.raises(ValueError):
        pipeline.set_mode("fancy")


def test_python_shows_loading_placeholder_first():
    delivered = []

    async def scenario():
        pipeline = RecomputePipeline(delivered.append, debounce_ms=0, mode="simple")
        pipeline.set_language("python")
        pipeline.edit("x = f(1)")
        await pipeline.drain()

    asyncio.run(scenario())

    assert [n.id for n in delivered[0].nodes] == ["loading"]
    assert delivered[-1].labels() == ["[Variable: x]", "[Call: f]"]


def test_stale_result_is_dropped():
    delivered = []

    async def scenario():
        pipeline = RecomputePipeline(delivered.append, debounce_ms=0, mode="simple", bridge=_SlowBridge())
        pipeline.set_language("python")
        pipeline.edit("a = 1")
        await asyncio.sleep(0.01)
        pipeline.edit("b = 2")
        await pipeline.drain()

    asyncio.run(scenario())

    results = [g for g in delivered if g.get_node("loading") is None]
    assert [g.labels() for g in results] == [["[Variable: b]"]]


def test_project_mode_rebuilds_dependency_graph(two_file_project):
    delivered = []

    async def scenario():
        pipeline = RecomputePipeline(delivered.append, debounce_ms=0)
        pipeline.open_project(two_file_project)
        await pipeline.drain()
        assert pipeline.active_path == "a.js"

        pipeline.edit("// no imports any more")
        await pipeline.drain()
        return pipeline

    pipeline = asyncio.run(scenario())

    first, second = delivered
    assert [(e.source, e.target) for e in first.edges] == [("b.js", "a.js")]
    assert second.edges == []
    assert pipeline.files["a.js"].content == "// no imports any more"


def test_edit_file_and_remove_file(two_file_project):
    delivered = []

    async def scenario():
        pipeline = RecomputePipeline(delivered.append, debounce_ms=0)
        pipeline.open_project(two_file_project)
        pipeline.edit_file("c.js", "import {x} from './b'")
        await pipeline.drain()
        pipeline.remove_file("a.js")
        await pipeline.drain()
        return pipeline

    pipeline = asyncio.run(scenario())

    assert {(e.source, e.target) for e in delivered[0].edges} == {("b.js", "a.js"), ("b.js", "c.js")}
    assert [n.id for n in delivered[-1].nodes] == ["b.js", "c.js"]
    assert pipeline.active_path == "b.js"


def test_select_file_returns_language(two_file_project):
    pipeline = RecomputePipeline(lambda graph: None, debounce_ms=0)
    pipeline.files = {f.path: f for f in two_file_project}

    assert pipeline.select_file("b.js") == "javascript"
    assert pipeline.active_path == "b.js"
    with pytest.raises(KeyError):
        pipeline.select_file("missing.css")


def test_close_project_returns_to_scratch(two_file_project):
    delivered = []

    async def scenario():
        pipeline = RecomputePipeline(delivered.append, debounce_ms=0, mode="simple")
        pipeline.open_project(two_file_project)
        await pipeline.drain()
        pipeline.close_project()
        pipeline.edit("const y = g();")
        await pipeline.drain()
        return pipeline

    pipeline = asyncio.run(scenario())

    assert not pipeline.project_mode
    assert delivered[-1].labels() == ["[Variable: y]", "[Call: g]"]
    assert isinstance(delivered[-1], Graph)


def test_deeply_nested_buffer_is_delivered():
    delivered = []

    async def scenario():
        pipeline = RecomputePipeline(delivered.append, debounce_ms=0, mode="simple")
        pipeline.edit("f(" * 1200 + ")" * 1200)
        await pipeline.drain()

    asyncio.run(scenario())

    assert len(delivered) == 1
    assert delivered[0].labels() == ["[Call: f]"] * 1200


def test_failed_pass_is_logged(caplog):
    class _BrokenBridge(PythonBridge):
        async def parse_async(self, source):
            raise RuntimeError("bridge crashed")

    delivered = []

    async def scenario():
        bridge = _BrokenBridge()
        await bridge.bootstrap()
        pipeline = RecomputePipeline(delivered.append, debounce_ms=0, mode="simple", bridge=bridge)
        pipeline.set_language("python")
        pipeline.edit("x = 1")
        await pipeline.drain()
        return pipeline

    pipeline = asyncio.run(scenario())

    assert delivered == []
    assert not pipeline._tasks
    assert "Recompute pass failed: bridge crashed" in caplog.text
