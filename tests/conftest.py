"""Pytest configuration and fixtures for CodeGraph Viz tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Generator, List

import pytest

from codegraph_viz.config import LayoutSettings
from codegraph_viz.models import Entity, GraphData, Relation


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch):
    """Point the TOML config at a throwaway file so tests never read ~/.codegraph-viz."""
    config_file = tmp_path_factory.mktemp("config") / "config.toml"
    monkeypatch.setattr("codegraph_viz.config_manager.CONFIG_FILE", config_file)
    return config_file


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def settings() -> LayoutSettings:
    """Small canvas with a short tick budget so force runs stay quick."""
    return LayoutSettings(width=800.0, height=600.0, max_ticks=120)


@pytest.fixture
def line_graph() -> GraphData:
    """A -> B -> C -> D, unweighted."""
    nodes = [Entity(id=name, name=name, kind="function") for name in "ABCD"]
    links = [
        Relation("A", "B", "calls"),
        Relation("B", "C", "calls"),
        Relation("C", "D", "calls"),
    ]
    return GraphData(nodes=nodes, links=links)


@pytest.fixture
def code_graph() -> GraphData:
    """Two packages with files and symbols, wired by calls."""
    nodes: List[Entity] = [
        Entity(id="pkg/api", kind="package"),
        Entity(id="pkg/api/server.go", kind="file"),
        Entity(id="pkg/api/server.go:Serve", name="Serve", kind="function", start_line=10, end_line=49),
        Entity(id="pkg/api/server.go:Handler", name="Handler", kind="struct", start_line=1, end_line=8),
        Entity(id="pkg/store/db.go", kind="file"),
        Entity(id="pkg/store/db.go:Open", name="Open", kind="function", start_line=3, end_line=12),
        Entity(id="pkg/store/db.go:Query", name="Query", kind="function", start_line=14, end_line=30),
        Entity(id="main.go:main", name="main", kind="function", start_line=1, end_line=5),
    ]
    links = [
        Relation("main.go:main", "pkg/api/server.go:Serve", "calls"),
        Relation("pkg/api/server.go:Serve", "pkg/store/db.go:Open", "calls"),
        Relation("pkg/api/server.go:Serve", "pkg/store/db.go:Query", "calls"),
        Relation("pkg/store/db.go:Open", "pkg/store/db.go:Query", "calls"),
        Relation("pkg/api/server.go", "pkg/api/server.go:Serve", "contains"),
    ]
    return GraphData(nodes=nodes, links=links, file_paths=["pkg/api/server.go", "pkg/store/db.go", "main.go"])


@pytest.fixture
def graph_file(temp_dir: Path, code_graph: GraphData) -> Path:
    """The code graph written as a ``{nodes, links, filePaths}`` JSON file."""
    from codegraph_viz.graph_io import graph_to_dict

    path = temp_dir / "graph.json"
    path.write_text(json.dumps(graph_to_dict(code_graph)), encoding="utf-8")
    return path
