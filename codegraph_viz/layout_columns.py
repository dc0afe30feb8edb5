"""Layered-column (sankey-like) layout keyed on id path depth."""

from __future__ import annotations

from typing import Dict, List

from .layout_base import LayoutRun, LayoutStrategy, StaticRun, cubic_route
from .models import Position


def path_depth(entity_id: str) -> int:
    """Number of ``/``-separated segments in the id (at least one)."""
    return len(entity_id.split("/"))


class ColumnsLayout(LayoutStrategy):
    mode = "columns"

    def _start(self, index, file_paths, hints) -> LayoutRun:
        s = self.settings
        spacing = s.column_spacing or s.width / 5
        columns: Dict[int, List[str]] = {}
        for node_id in index.node_map:
            columns.setdefault(path_depth(node_id), []).append(node_id)

        result = self.empty_result()
        for depth, members in columns.items():
            x = (depth - 1) * spacing
            step = (s.height - 2 * s.band_margin) / (len(members) + 1)
            for i, node_id in enumerate(members):
                result.positions[node_id] = Position(x, (i + 1) * step + s.band_margin)

        for r in index.links:
            a, b = result.positions[r.source.id], result.positions[r.target.id]
            mid_x = (a.x + b.x) / 2
            result.edges.append(cubic_route(r.source.id, r.target.id, a, Position(mid_x, a.y), Position(mid_x, b.y), b, r.link))
        return StaticRun(result)
