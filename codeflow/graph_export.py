"""Graph export helpers for JSON, DOT and standalone HTML outputs."""

from __future__ import annotations

import html
import json
from pathlib import Path
from typing import Callable, Dict, Optional

from .models import Graph

FORMATS = ("json", "dot", "html")


def render_json(graph: Graph) -> str:
    """The renderer's node/edge payload."""
    return json.dumps(graph.to_dict(), indent=2)


def render_dot(graph: Graph) -> str:
    lines = ["digraph CodeFlow {"]
    lines.append("  rankdir=TB;")

    for node in graph.nodes:
        attrs = [f'label="{_esc(node.label)}"']
        if node.kind == "input":
            attrs.append("shape=box")
        elif node.kind == "output":
            attrs.append("style=bold")
        if node.metadata.get("external") == "true":
            attrs.append('color="#ff0000"')
            attrs.append('fillcolor="#ffdddd"')
            attrs.append("style=filled")
        lines.append(f'  "{_esc(node.id)}" [{", ".join(attrs)}];')

    for edge in graph.edges:
        attrs = []
        if edge.label:
            attrs.append(f'label="{_esc(edge.label)}"')
        if edge.emphasized:
            attrs.append("style=dashed")
        suffix = f" [{', '.join(attrs)}]" if attrs else ""
        lines.append(f'  "{_esc(edge.source)}" -> "{_esc(edge.target)}"{suffix};')

    lines.append("}")
    return "\n".join(lines)


def render_html(graph: Graph, title: str = "CodeFlow Graph") -> str:
    """Standalone page listing nodes and edges, positioned by their layout hints."""
    # No literal "<" inside the script element, so labels cannot close it.
    payload = json.dumps(graph.to_dict()).replace("<", "\\u003c")
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{html.escape(title)}</title>
  <style>
    body {{ font-family: ui-monospace, SFMono-Regular, Menlo, monospace; margin: 20px; }}
    #canvas {{ position: relative; min-height: 600px; border: 1px solid #ddd; border-radius: 8px; }}
    .node {{ position: absolute; padding: 4px 8px; border: 1px solid #555; border-radius: 4px; background: #fff; }}
    .node.input {{ border-color: #0041d0; }}
    .node.output {{ border-color: #ff0072; font-weight: bold; }}
    .node.external {{ background: #fdd; border-color: #f00; }}
    ul {{ list-style: none; padding: 0; }}
  </style>
</head>
<body>
  <h1>{html.escape(title)}</h1>
  <div id="canvas"></div>
  <h2>Edges</h2>
  <ul id="edges"></ul>
  <script>
    const graph = {payload};
    const canvas = document.getElementById('canvas');
    const edgesEl = document.getElementById('edges');
    graph.nodes.forEach(n => {{
      const div = document.createElement('div');
      div.className = 'node ' + n.type + (n.data.external ? ' external' : '');
      div.style.left = n.position.x + 'px';
      div.style.top = n.position.y + 'px';
      div.textContent = n.data.label;
      canvas.appendChild(div);
    }});
    graph.edges.forEach(e => {{
      const li = document.createElement('li');
      li.textContent = `${{e.source}} --${{e.label || (e.animated ? 'imports' : '')}}--> ${{e.target}}`;
      edgesEl.appendChild(li);
    }});
  </script>
</body>
</html>
"""


_RENDERERS: Dict[str, Callable[[Graph], str]] = {
    "json": render_json,
    "dot": render_dot,
    "html": render_html,
}


def render(graph: Graph, fmt: str) -> str:
    try:
        renderer = _RENDERERS[fmt]
    except KeyError:
        raise ValueError(f"Unknown export format '{fmt}', expected one of {', '.join(FORMATS)}") from None
    return renderer(graph)


def export_graph(graph: Graph, fmt: str, output_file: Optional[Path] = None) -> str:
    """Render *graph* and, when *output_file* is given, write it there."""
    doc = render(graph, fmt)
    if output_file is not None:
        output_file.write_text(doc, encoding="utf-8")
    return doc


def _esc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
