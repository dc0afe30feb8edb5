"""Export helpers for positioned layouts: JSON, Graphviz DOT and standalone SVG."""

from __future__ import annotations

import html
import json
from pathlib import Path
from typing import Any, Dict, Optional

from .graph_index import node_lookup
from .interaction import link_opacity, node_radius
from .models import GraphData, LayoutResult, PathResult
from .pathfinding import is_in_path, is_path_link

ACCENTS = {
    "function": "#00f2ff",
    "func": "#00f2ff",
    "struct": "#10b981",
    "interface": "#f59e0b",
    "file": "#0ea5e9",
    "package": "#8b5cf6",
}
DEFAULT_ACCENT = "#94a3b8"
TRACE_COLOR = "#00f2ff"


def accent_for(kind: Optional[str]) -> str:
    return ACCENTS.get((kind or "").lower(), DEFAULT_ACCENT)


def layout_to_dict(result: LayoutResult) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "mode": result.mode,
        "width": result.width,
        "height": result.height,
        "settled": result.settled,
        "tick": result.tick,
        "positions": {
            node_id: {"x": round(pos.x, 3), "y": round(pos.y, 3)}
            for node_id, pos in result.positions.items()
        },
        "edges": [
            {
                "source": edge.source_id,
                "target": edge.target_id,
                "kind": edge.kind,
                "points": [[round(p.x, 3), round(p.y, 3)] for p in edge.points],
                "path": edge.path_data(),
            }
            for edge in result.edges
        ],
    }
    if result.radii:
        payload["radii"] = {node_id: round(r, 3) for node_id, r in result.radii.items()}
    if result.selected_id:
        payload["selected"] = result.selected_id
    if result.viewport is not None:
        payload["viewport"] = {
            "translateX": round(result.viewport.translate_x, 3),
            "translateY": round(result.viewport.translate_y, 3),
            "scale": result.viewport.scale,
        }
    return payload


def export_json(result: LayoutResult, output_file: Path) -> None:
    output_file.write_text(json.dumps(layout_to_dict(result), indent=2), encoding="utf-8")


def render_dot(result: LayoutResult, graph: GraphData) -> str:
    """DOT with pinned positions (render with ``neato -n``)."""
    nodes = node_lookup(graph.nodes)
    lines = ["digraph CodeGraph {"]
    lines.append("  node [shape=circle, fontsize=10];")

    for node_id, pos in result.positions.items():
        node = nodes.get(node_id)
        label = node.display_name if node else node_id.rsplit("/", 1)[-1]
        extra = ", penwidth=3" if node_id == result.selected_id else ""
        # DOT's y axis points up
        lines.append(
            f'  "{_esc(node_id)}" [label="{_esc(label)}", pos="{pos.x:.2f},{-pos.y:.2f}!"{extra}];'
        )

    for edge in result.edges:
        label = edge.relation.relation if edge.relation else ""
        lines.append(f'  "{_esc(edge.source_id)}" -> "{_esc(edge.target_id)}" [label="{_esc(label)}"];')

    lines.append("}")
    return "\n".join(lines)


def export_dot(result: LayoutResult, graph: GraphData, output_file: Path) -> None:
    output_file.write_text(render_dot(result, graph), encoding="utf-8")


def render_svg(result: LayoutResult, graph: GraphData, trace: Optional[PathResult] = None) -> str:
    nodes = node_lookup(graph.nodes)
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{result.width:.0f}" '
        f'height="{result.height:.0f}" viewBox="0 0 {result.width:.0f} {result.height:.0f}">',
        '<rect width="100%" height="100%" fill="#020617"/>',
    ]
    if result.viewport is not None:
        vp = result.viewport
        parts.append(f'<g transform="translate({vp.translate_x:.2f},{vp.translate_y:.2f}) scale({vp.scale})">')
    else:
        parts.append("<g>")

    parts.append('<g fill="none" stroke-width="1.5">')
    for edge in result.edges:
        on_path = is_path_link(edge.source_id, edge.target_id, trace)
        opacity = 1.0 if on_path else (link_opacity(edge.relation) if edge.relation else 0.6)
        stroke = TRACE_COLOR if on_path else "#475569"
        parts.append(f'<path d="{edge.path_data()}" stroke="{stroke}" stroke-opacity="{opacity:.2f}"/>')
    parts.append("</g>")

    for node_id, pos in result.positions.items():
        node = nodes.get(node_id)
        accent = TRACE_COLOR if is_in_path(node_id, trace) else accent_for(node.kind if node else "package")
        radius = result.radii.get(node_id) or (node_radius(node) if node else 6.0)
        selected = node_id == result.selected_id
        ring = ' stroke="#ffffff" stroke-width="3"' if selected else f' stroke="{accent}" stroke-width="1.5"'
        label = node.display_name if node else node_id.rsplit("/", 1)[-1]
        parts.append(
            f'<g transform="translate({pos.x:.2f},{pos.y:.2f})">'
            f'<circle r="{radius:.2f}" fill="{accent}" fill-opacity="0.15"{ring}/>'
            f'<text dy="2.5em" text-anchor="middle" font-size="10" fill="#94a3b8">{html.escape(label)}</text>'
            "</g>"
        )

    parts.append("</g>")
    parts.append("</svg>")
    return "\n".join(parts)


def export_svg(
    result: LayoutResult,
    graph: GraphData,
    output_file: Path,
    trace: Optional[PathResult] = None,
) -> None:
    output_file.write_text(render_svg(result, graph, trace), encoding="utf-8")


def _esc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
