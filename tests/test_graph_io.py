"""Tests for reading graph files and exporting layouts."""

import json
from pathlib import Path

import pytest

from codegraph_viz.errors import GraphFileError
from codegraph_viz.graph_export import (
    accent_for,
    export_dot,
    export_json,
    export_svg,
    layout_to_dict,
    render_dot,
    render_svg,
)
from codegraph_viz.graph_io import focus_subgraph, load_graph, parse_graph, read_path_list
from codegraph_viz.layout_manager import compute_layout
from codegraph_viz.models import Entity, GraphData
from codegraph_viz.pathfinding import find_path


class TestParseGraph:
    """Tests for payload decoding."""

    def test_aliases(self):
        graph = parse_graph(
            {
                "nodes": [
                    {"id": "a.go:F", "node_type": "function", "start_line": 3, "end_line": 9},
                    {"id": "b.go", "kind": "file"},
                    {"name": "no id"},
                    "garbage",
                ],
                "edges": [
                    {"src": "a.go:F", "dst": "b.go", "edge_type": "imports", "weight": 0.5},
                    {"source": {"id": "b.go"}, "target": {"id": "a.go:F"}},
                    {"source": "a.go:F"},
                ],
                "file_paths": ["a.go", "b.go", 7],
            }
        )

        assert [n.id for n in graph.nodes] == ["a.go:F", "b.go"]
        assert graph.nodes[0].kind == "function"
        assert graph.nodes[0].line_count == 7
        assert len(graph.links) == 2
        assert graph.links[0].relation == "imports"
        assert graph.links[0].weight == 0.5
        assert graph.links[1].source_id == "b.go"
        assert graph.links[1].relation == "contains"
        assert graph.file_paths == ["a.go", "b.go"]

    def test_position_hints_read(self):
        graph = parse_graph({"nodes": [{"id": "a", "x": 10, "y": 20}], "links": []})
        assert graph.nodes[0].hint.as_tuple() == (10.0, 20.0)

    def test_empty_payload(self):
        graph = parse_graph({})
        assert graph.nodes == [] and graph.links == [] and graph.file_paths == []


class TestLoadGraph:
    """Tests for load_graph and read_path_list."""

    def test_round_trip_file(self, graph_file: Path, code_graph):
        graph = load_graph(graph_file)
        assert [n.id for n in graph.nodes] == [n.id for n in code_graph.nodes]
        assert len(graph.links) == len(code_graph.links)
        assert graph.file_paths == code_graph.file_paths

    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(GraphFileError, match="Cannot read"):
            load_graph(temp_dir / "nope.json")

    def test_invalid_json(self, temp_dir: Path):
        bad = temp_dir / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        with pytest.raises(GraphFileError, match="not valid JSON"):
            load_graph(bad)

    def test_non_object_payload(self, temp_dir: Path):
        bad = temp_dir / "list.json"
        bad.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(GraphFileError, match="JSON object"):
            load_graph(bad)

    def test_read_path_list(self, temp_dir: Path):
        paths = temp_dir / "paths.txt"
        paths.write_text("# generated\nsrc/a.go\n\n  src/b.go  \n", encoding="utf-8")
        assert read_path_list(paths) == ["src/a.go", "src/b.go"]


class TestFocusSubgraph:
    """Tests for focus_subgraph."""

    def test_keeps_matches_and_neighbours(self, code_graph):
        focused = focus_subgraph(code_graph, "Open")
        ids = {n.id for n in focused.nodes}
        assert ids == {"pkg/store/db.go:Open", "pkg/api/server.go:Serve", "pkg/store/db.go:Query"}
        assert all(l.source_id in ids and l.target_id in ids for l in focused.links)

    def test_no_match_returns_graph(self, code_graph):
        assert focus_subgraph(code_graph, "zzz") is code_graph
        assert focus_subgraph(code_graph, "") is code_graph


class TestExport:
    """Tests for JSON, DOT and SVG exports."""

    def test_layout_to_dict(self, settings, line_graph):
        result = compute_layout("flow", line_graph.nodes, line_graph.links, selected_id="B", settings=settings)
        payload = layout_to_dict(result)

        assert payload["mode"] == "flow"
        assert set(payload["positions"]) == {"A", "B", "C", "D"}
        assert payload["selected"] == "B"
        assert set(payload["viewport"]) == {"translateX", "translateY", "scale"}
        assert payload["edges"][0]["path"].startswith("M")
        json.dumps(payload)

    def test_export_json(self, temp_dir: Path, settings, line_graph):
        result = compute_layout("columns", line_graph.nodes, line_graph.links, settings=settings)
        out = temp_dir / "layout.json"
        export_json(result, out)
        assert json.loads(out.read_text(encoding="utf-8"))["mode"] == "columns"

    def test_render_dot(self, settings, code_graph):
        result = compute_layout(
            "columns", code_graph.nodes, code_graph.links, selected_id="main.go:main", settings=settings
        )
        dot = render_dot(result, code_graph)

        assert dot.startswith("digraph CodeGraph {")
        assert dot.rstrip().endswith("}")
        assert '"main.go:main" [label="main"' in dot
        assert "penwidth=3" in dot
        assert '"pkg/api/server.go:Serve" -> "pkg/store/db.go:Open"' in dot

    def test_render_dot_escapes_backslash_and_quote(self, settings):
        graph = GraphData(nodes=[Entity(id="dir\\"), Entity(id='say"hi')], links=[])
        result = compute_layout("columns", graph.nodes, graph.links, settings=settings)
        dot = render_dot(result, graph)

        assert '"dir\\\\" [' in dot
        assert '"say\\"hi" [' in dot

    def test_export_dot(self, temp_dir: Path, settings, line_graph):
        result = compute_layout("columns", line_graph.nodes, line_graph.links, settings=settings)
        out = temp_dir / "graph.dot"
        export_dot(result, line_graph, out)
        assert "digraph" in out.read_text(encoding="utf-8")

    def test_render_svg_highlights_trace(self, settings, line_graph):
        result = compute_layout("flow", line_graph.nodes, line_graph.links, settings=settings)
        trace = find_path(line_graph.nodes, line_graph.links, "A", "C")
        svg = render_svg(result, line_graph, trace)

        assert svg.startswith("<svg")
        assert svg.count("<circle") == 4
        assert svg.count('stroke="#00f2ff"') >= 2

    def test_export_svg(self, temp_dir: Path, settings, code_graph):
        result = compute_layout("pack", code_graph.nodes, [], code_graph.file_paths, settings=settings)
        out = temp_dir / "pack.svg"
        export_svg(result, code_graph, out)
        assert out.read_text(encoding="utf-8").endswith("</svg>")

    def test_accent_for(self):
        assert accent_for("Function") == "#00f2ff"
        assert accent_for(None) == "#94a3b8"
