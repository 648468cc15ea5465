"""Typer-based CLI for CodeFlow graph visualisation."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config
from .cli_watch import watch
from .config_manager import load_visualizer_config, save_visualizer_config
from .dependency_graph import DependencyGraphBuilder
from .graph_export import FORMATS, export_graph
from .models import Graph
from .parser import LANGUAGES, language_for_path
from .pipeline import analyze_source
from .project_files import load_project_files
from .readme import ReadmeError, generate_readme

console = Console(stderr=True)

app = typer.Typer(
    help="🌊 CodeFlow: turn source code into node/edge graphs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("watch")(watch)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"CodeFlow v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log parser and pipeline activity."),
):
    """CodeFlow: structural, conceptual and dependency graphs from source."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _check_mode(mode: str) -> str:
    mode = mode.lower()
    if mode not in config.MODES:
        raise typer.BadParameter(f"Mode must be one of: {', '.join(config.MODES)}")
    return mode


def _check_format(fmt: str) -> str:
    fmt = fmt.lower()
    if fmt not in FORMATS:
        raise typer.BadParameter(f"Format must be one of: {', '.join(FORMATS)}")
    return fmt


def _emit(graph: Graph, fmt: str, output: Optional[Path]) -> None:
    doc = export_graph(graph, fmt, output)
    if output is None:
        typer.echo(doc)
    else:
        typer.echo(f"Exported graph to {output}")


def _fail_on_error_graph(graph: Graph) -> None:
    error = graph.get_node("error")
    if error is not None:
        typer.echo(error.label, err=True)
        raise typer.Exit(code=1)


@app.command("graph")
def graph_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file to visualise."),
    mode: str = typer.Option(config.DEFAULT_MODE, "--mode", "-m", help="simple (conceptual) or advanced (full)."),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Override the language picked from the extension."),
    fmt: str = typer.Option("json", "--format", "-f", help="Export format: json, dot or html."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
):
    """Build the structural or conceptual graph of one file."""
    mode = _check_mode(mode)
    fmt = _check_format(fmt)
    language = language or language_for_path(file.name)
    if language not in LANGUAGES:
        raise typer.BadParameter(f"Unsupported language '{language}'")

    text = file.read_text(encoding="utf-8")
    _, graph = asyncio.run(analyze_source(text, language, mode))
    _fail_on_error_graph(graph)
    _emit(graph, fmt, output)


@app.command("scratch")
def scratch_command(
    mode: str = typer.Option(config.DEFAULT_MODE, "--mode", "-m", help="simple (conceptual) or advanced (full)."),
    fmt: str = typer.Option("json", "--format", "-f", help="Export format: json, dot or html."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
):
    """Graph a buffer read from stdin, detecting HTML, JavaScript or CSS."""
    mode = _check_mode(mode)
    fmt = _check_format(fmt)
    text = sys.stdin.read()

    language, graph = asyncio.run(analyze_source(text, None, mode))
    _fail_on_error_graph(graph)
    if language:
        console.print(f"[dim]Detected language: {language}[/dim]")
    _emit(graph, fmt, output)


@app.command("deps")
def deps_command(
    project_path: Path = typer.Argument(..., exists=True, file_okay=False, help="Project directory."),
    fmt: str = typer.Option("json", "--format", "-f", help="Export format: json, dot or html."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
):
    """Build the file-level import graph of a project."""
    fmt = _check_format(fmt)
    files = load_project_files(project_path)
    if not files:
        raise typer.BadParameter(f"No readable files under {project_path}")

    result = DependencyGraphBuilder().build(files)
    internal = sum(1 for edge in result.graph.edges if edge.emphasized)

    table = Table(title="📦 Dependency summary", show_header=False, box=None, padding=(0, 2))
    table.add_column(style="cyan")
    table.add_column(style="bold")
    table.add_row("Files", str(len(files)))
    table.add_row("Imports", str(len(result.imports)))
    table.add_row("Internal edges", str(internal))
    table.add_row("External modules", ", ".join(result.external_modules) or "-")
    console.print(table)
    for warning in result.warnings:
        console.print(f"[yellow]⚠[/yellow] {warning}")

    _emit(result.graph, fmt, output)


@app.command("readme")
def readme_command(
    project_path: Path = typer.Argument(..., exists=True, file_okay=False, help="Project directory."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the README here."),
):
    """Generate a README.md from package.json and the file layout."""
    files = load_project_files(project_path)
    try:
        text = generate_readme(files)
    except ReadmeError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    if output is None:
        typer.echo(text)
    else:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Wrote README to {output}")


@app.command("configure")
def configure_command(
    debounce_ms: Optional[int] = typer.Option(None, "--debounce-ms", min=0, help="Quiet period before recomputing."),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="Default graph mode."),
    max_file_size: Optional[int] = typer.Option(None, "--max-file-size", min=1, help="Largest file read, in bytes."),
    ignore: Optional[List[str]] = typer.Option(None, "--ignore", help="Replace ignore patterns (repeatable)."),
    show: bool = typer.Option(False, "--show", help="Print the stored settings and exit."),
):
    """Store default settings in the [visualizer] table of config.toml."""
    current = load_visualizer_config(config.CONFIG_FILE)
    if show:
        if not current:
            typer.echo(f"No settings stored in {config.CONFIG_FILE}")
        for key, value in sorted(current.items()):
            typer.echo(f"{key} = {value}")
        raise typer.Exit()

    if debounce_ms is not None:
        current["debounce_ms"] = debounce_ms
    if mode is not None:
        current["mode"] = _check_mode(mode)
    if max_file_size is not None:
        current["max_file_size"] = max_file_size
    if ignore:
        current["ignore_patterns"] = list(ignore)

    if not save_visualizer_config(config.CONFIG_FILE, current):
        typer.echo(f"Error: could not write {config.CONFIG_FILE}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Saved settings to {config.CONFIG_FILE}")


if __name__ == "__main__":
    app()
