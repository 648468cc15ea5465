"""Tests for language selection and the parser front-ends."""

import asyncio

import pytest

from codeflow.adapters import select_adapter
from codeflow.adapter_js import JsConceptualAdapter, JsFullAdapter
from codeflow.adapter_html import HtmlAdapter
from codeflow.parser import GrammarUnavailableError, SourceParseError, SourceParser, language_for_path


@pytest.mark.parametrize(
    "path, language",
    [
        ("styles.css", "css"),
        ("index.html", "html"),
        ("Main.java", "java"),
        ("tool.py", "python"),
        ("api.ts", "typescript"),
        ("App.tsx", "tsx"),
        ("App.jsx", "javascript"),
        ("Makefile", "javascript"),
    ],
)
def test_language_for_path(path, language):
    assert language_for_path(path) == language


def test_select_adapter():
    assert isinstance(select_adapter("javascript", "advanced"), JsFullAdapter)
    assert isinstance(select_adapter("tsx", "simple"), JsConceptualAdapter)
    assert isinstance(select_adapter("html", "simple"), HtmlAdapter)
    with pytest.raises(ValueError):
        select_adapter("cobol", "simple")
    with pytest.raises(ValueError):
        select_adapter("javascript", "fancy")


def test_unknown_grammar():
    with pytest.raises(GrammarUnavailableError):
        SourceParser().parse("x", "python")


def test_missing_grammar_package(monkeypatch):
    parser = SourceParser()
    monkeypatch.setitem(parser._GRAMMAR_MODULES, "javascript", ("tree_sitter_not_installed", "language"))

    with pytest.raises(GrammarUnavailableError):
        parser.parse("const a = 1;", "javascript")


def test_tolerant_parse_keeps_partial_tree():
    pytest.importorskip("tree_sitter_javascript")
    root = SourceParser().parse("const a = ;\nfunction ok() {}", "javascript", tolerant=True)

    assert root.type == "program"
    assert root.has_error


def test_strict_parse_reports_position():
    pytest.importorskip("tree_sitter_javascript")
    with pytest.raises(SourceParseError) as exc_info:
        SourceParser().parse("const a = ;", "javascript", tolerant=False)

    error = exc_info.value
    assert error.language == "javascript"
    assert error.line == 1
    assert "line 1" in error.message


def test_parse_async_loads_grammar_once():
    pytest.importorskip("tree_sitter_javascript")
    parser = SourceParser()
    assert not parser.is_loaded("javascript")

    root = asyncio.run(parser.parse_async("let x = 1;", "javascript"))

    assert root.type == "program"
    assert parser.is_loaded("javascript")
