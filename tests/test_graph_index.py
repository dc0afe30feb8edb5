"""Tests for the degree/adjacency index and ranking."""

from codegraph_viz.graph_index import build_index, node_lookup, resolve_links
from codegraph_viz.models import Entity, Position, Relation
from codegraph_viz.ranking import assign_ranks, group_by_rank, rank_bands


def _nodes(*ids):
    return [Entity(id=node_id) for node_id in ids]


class TestBuildIndex:
    """Tests for build_index."""

    def test_degree_counts_both_ends(self):
        index = build_index(_nodes("A", "B", "C"), [Relation("A", "B"), Relation("A", "C")])
        assert index.degree == {"A": 2, "B": 1, "C": 1}

    def test_isolated_node_has_empty_entry(self):
        index = build_index(_nodes("A", "B", "Z"), [Relation("A", "B")])
        assert index.degree["Z"] == 0
        assert index.neighbors("Z") == []

    def test_adjacency_is_bidirectional(self):
        index = build_index(_nodes("A", "B"), [Relation("A", "B", weight=3)])
        assert [n.neighbor_id for n in index.neighbors("A")] == ["B"]
        assert [n.neighbor_id for n in index.neighbors("B")] == ["A"]
        assert index.neighbors("B")[0].weight == 3

    def test_dangling_links_dropped(self):
        index = build_index(_nodes("A"), [Relation("A", "ghost"), None])
        assert index.links == []
        assert index.degree == {"A": 0}

    def test_entity_endpoints_resolved(self):
        a, b = _nodes("A", "B")
        index = build_index([a, b], [Relation(a, b)])
        assert index.links[0].source is a
        assert index.links[0].target is b

    def test_neighborhood(self):
        index = build_index(_nodes("A", "B", "C", "D"), [Relation("A", "B"), Relation("C", "A")])
        assert index.neighborhood("A") == {"A", "B", "C"}
        assert index.neighborhood("missing") == set()

    def test_zero_weight_counts_as_one(self):
        index = build_index(_nodes("A", "B"), [Relation("A", "B", weight=0)])
        assert index.links[0].weight == 1


class TestNodeLookup:
    """Tests for node_lookup and resolve_links."""

    def test_first_duplicate_wins(self):
        first = Entity(id="A", name="first")
        lookup = node_lookup([first, Entity(id="A", name="second"), None])
        assert lookup == {"A": first}

    def test_resolve_links_keeps_order(self):
        lookup = node_lookup(_nodes("A", "B", "C"))
        resolved = resolve_links(lookup, [Relation("B", "C"), Relation("A", "B")])
        assert [(r.source.id, r.target.id) for r in resolved] == [("B", "C"), ("A", "B")]


class TestAssignRanks:
    """Tests for topological ranks."""

    def test_chain(self):
        ranks = assign_ranks(_nodes("A", "B", "C"), [Relation("A", "B"), Relation("B", "C")])
        assert ranks == {"A": 0, "B": 1, "C": 2}

    def test_longest_caller_chain_wins(self):
        nodes = _nodes("A", "B", "C", "D")
        links = [Relation("A", "B"), Relation("B", "C"), Relation("A", "C"), Relation("C", "D")]
        assert assign_ranks(nodes, links) == {"A": 0, "B": 1, "C": 2, "D": 3}

    def test_two_cycle_ranks(self):
        ranks = assign_ranks(_nodes("A", "B"), [Relation("A", "B"), Relation("B", "A")])
        assert ranks == {"A": 2, "B": 1}

    def test_self_loop_ranks_one(self):
        assert assign_ranks(_nodes("A"), [Relation("A", "A")]) == {"A": 1}

    def test_no_links_all_zero(self):
        assert assign_ranks(_nodes("A", "B"), []) == {"A": 0, "B": 0}

    def test_long_chain_does_not_recurse(self):
        ids = [f"n{i}" for i in range(5000)]
        links = [Relation(ids[i], ids[i + 1]) for i in range(len(ids) - 1)]
        ranks = assign_ranks(_nodes(*ids), links)
        assert ranks["n4999"] == 4999


class TestRankBands:
    """Tests for band placement."""

    def test_bands_spread_across_width(self):
        ranks = {"A": 0, "B": 1, "C": 1}
        positions = rank_bands(["A", "B", "C"], ranks, width=900, height=500, margin=100)

        assert positions["A"].x == 450
        assert positions["A"].y == 100
        assert positions["B"].x == 300
        assert positions["C"].x == 600
        assert positions["B"].y == 400

    def test_single_band_sits_on_top_margin(self):
        positions = rank_bands(["A", "B"], {"A": 0, "B": 0}, width=300, height=400, margin=100)
        assert positions["A"] == Position(100.0, 100.0)
        assert positions["B"] == Position(200.0, 100.0)

    def test_group_by_rank_keeps_order(self):
        assert group_by_rank(["C", "A", "B"], {"A": 1, "B": 0, "C": 1}) == {1: ["C", "A"], 0: ["B"]}
