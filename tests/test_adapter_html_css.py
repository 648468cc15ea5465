"""Tests for the HTML and CSS walkers."""

import pytest

from codeflow.adapter_css import CssAdapter
from codeflow.adapter_html import HtmlAdapter
from codeflow.models import KIND_INPUT
from codeflow.parser import SourceParser


@pytest.fixture(scope="module")
def parser() -> SourceParser:
    return SourceParser()


def test_html_element_tree(parser: SourceParser):
    pytest.importorskip("tree_sitter_html")
    source = "<html><body><div></div><p>Hello</p></body></html>"
    graph = HtmlAdapter().build(parser.parse(source, "html"))

    assert graph.labels() == ["<html>", "<body>", "<div>", "<p>"]
    html, body, div, p = graph.nodes
    assert html.id == "dom-0"
    assert html.kind == KIND_INPUT
    assert body.layout.depth == 1
    assert (div.layout.x, p.layout.x) == (0, 170)
    assert [(e.source, e.target) for e in graph.edges] == [
        (html.id, body.id),
        (body.id, div.id),
        (body.id, p.id),
    ]


def test_html_multiple_roots(parser: SourceParser):
    pytest.importorskip("tree_sitter_html")
    graph = HtmlAdapter().build(parser.parse("<div></div><span></span>", "html"))

    assert graph.labels() == ["<div>", "<span>"]
    assert all(n.layout.depth == 0 for n in graph.nodes)
    assert graph.edges == []


def test_html_script_and_style_elements(parser: SourceParser):
    pytest.importorskip("tree_sitter_html")
    source = "<head><style>p { color: red; }</style><script>let a = 1;</script></head>"
    graph = HtmlAdapter().build(parser.parse(source, "html"))

    assert graph.labels() == ["<head>", "<style>", "<script>"]


def test_css_rule_structure(parser: SourceParser, sample_project_path):
    pytest.importorskip("tree_sitter_css")
    source = (sample_project_path / "src" / "styles.css").read_text()
    graph = CssAdapter().build(parser.parse(source, "css"))

    labels = graph.labels()
    assert labels[0] == "stylesheet"
    assert labels.count("rule_set") == 2
    assert "Selector: body" in labels
    assert "Selector: .button > span" in labels
    assert "Declaration: margin: ..." in labels
    assert "Declaration: font-family: ..." in labels
    assert "Declaration: color: ..." in labels


def test_css_declarations_are_leaves(parser: SourceParser):
    pytest.importorskip("tree_sitter_css")
    graph = CssAdapter().build(parser.parse("a { color: red; }", "css"))

    declaration = next(n for n in graph.nodes if n.label.startswith("Declaration:"))
    assert not any(e.source == declaration.id for e in graph.edges)
    ids = graph.node_ids()
    assert all(e.source in ids and e.target in ids for e in graph.edges)


def test_css_malformed_fragment_does_not_crash():
    """Half-typed CSS still yields the root node."""
    tree_sitter_css = pytest.importorskip("tree_sitter_css")
    from tree_sitter import Language, Parser

    root = Parser(Language(tree_sitter_css.language())).parse(b"a { color: ").root_node
    graph = CssAdapter().build(root)

    assert len(graph) >= 1
    assert graph.nodes[0].id == "css-0"
    assert graph.nodes[0].layout.depth == 0
    assert graph.nodes[0].label == root.type


def test_html_walk_is_closed_and_repeatable(parser: SourceParser):
    pytest.importorskip("tree_sitter_html")
    root = parser.parse("<ul><li><a>x</a></li><li></li></ul>", "html")

    first = HtmlAdapter().build(root)
    ids = first.node_ids()
    assert all(e.source in ids and e.target in ids for e in first.edges)
    assert first.to_dict() == HtmlAdapter().build(root).to_dict()


def test_css_walk_is_closed_and_repeatable(parser: SourceParser, sample_project_path):
    pytest.importorskip("tree_sitter_css")
    source = (sample_project_path / "src" / "styles.css").read_text()
    root = parser.parse(source, "css")

    first = CssAdapter().build(root)
    ids = first.node_ids()
    assert all(e.source in ids and e.target in ids for e in first.edges)
    assert first.to_dict() == CssAdapter().build(root).to_dict()
