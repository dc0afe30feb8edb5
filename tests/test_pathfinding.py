"""Tests for trace-path search."""

from codegraph_viz.graph_index import build_index
from codegraph_viz.models import Entity, Relation
from codegraph_viz.pathfinding import bfs_path, dijkstra_path, find_path, is_in_path, is_path_link


def _nodes(*ids):
    return [Entity(id=node_id) for node_id in ids]


class TestFindPathUnweighted:
    """BFS behaviour."""

    def test_line_graph(self, line_graph):
        result = find_path(line_graph.nodes, line_graph.links, "A", "D")

        assert result.path == ["A", "B", "C", "D"]
        assert result.length == 3
        assert [n.id for n in result.nodes] == ["A", "B", "C", "D"]
        assert len(result.links) == 3

    def test_shortcut_taken(self, line_graph):
        links = line_graph.links + [Relation("A", "D")]
        result = find_path(line_graph.nodes, links, "A", "D")
        assert result.path == ["A", "D"]
        assert result.length == 1

    def test_walks_against_edge_direction(self, line_graph):
        result = find_path(line_graph.nodes, line_graph.links, "D", "A")
        assert result.path == ["D", "C", "B", "A"]
        assert result.links[0].source_id == "C"

    def test_disconnected_returns_none(self):
        assert find_path(_nodes("A", "B"), [], "A", "B") is None

    def test_unknown_end_returns_none(self, line_graph):
        assert find_path(line_graph.nodes, line_graph.links, "A", "nope") is None

    def test_same_start_and_end(self, line_graph):
        result = find_path(line_graph.nodes, line_graph.links, "B", "B")
        assert result.path == ["B"]
        assert [n.id for n in result.nodes] == ["B"]
        assert result.links == []
        assert result.length == 0

    def test_same_unknown_id(self):
        result = find_path([], [], "X", "X")
        assert result.path == ["X"]
        assert result.nodes == []


class TestFindPathWeighted:
    """Dijkstra behaviour."""

    def test_cheap_direct_link(self):
        links = [
            Relation("A", "B", weight=5),
            Relation("B", "C", weight=1),
            Relation("C", "D", weight=1),
            Relation("A", "D", weight=2),
        ]
        result = find_path(_nodes("A", "B", "C", "D"), links, "A", "D")
        assert result.path == ["A", "D"]
        assert result.length == 2

    def test_weights_beat_hop_count(self):
        links = [
            Relation("A", "B", weight=1),
            Relation("B", "C", weight=1),
            Relation("C", "D", weight=1),
            Relation("A", "D", weight=5),
        ]
        nodes = _nodes("A", "B", "C", "D")

        weighted = find_path(nodes, links, "A", "D")
        assert weighted.path == ["A", "B", "C", "D"]
        assert weighted.length == 3

        unweighted = find_path(nodes, links, "A", "D", use_weights=False)
        assert unweighted.path == ["A", "D"]
        assert unweighted.length == 1

    def test_missing_weights_count_as_one(self):
        links = [Relation("A", "B", weight=4), Relation("A", "C"), Relation("C", "B")]
        result = find_path(_nodes("A", "B", "C"), links, "A", "B")
        assert result.path == ["A", "C", "B"]
        assert result.length == 2

    def test_dijkstra_unknown_start(self):
        index = build_index(_nodes("A"), [])
        assert dijkstra_path(index, "ghost", "A") is None

    def test_bfs_direct(self):
        index = build_index(_nodes("A", "B"), [Relation("A", "B")])
        assert bfs_path(index, "A", "B").path == ["A", "B"]


class TestPathMembership:
    """Highlight helpers."""

    def test_membership(self, line_graph):
        result = find_path(line_graph.nodes, line_graph.links, "A", "C")

        assert is_in_path("B", result)
        assert not is_in_path("D", result)
        assert is_path_link("B", "A", result)
        assert is_path_link("B", "C", result)
        assert not is_path_link("C", "D", result)
        assert not is_in_path("A", None)
        assert not is_path_link("A", "B", None)
