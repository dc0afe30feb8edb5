"""Layered flow layout: nodes pinned to rank bands, edges as cubic curves."""

from __future__ import annotations

from typing import Dict, List, Mapping

from .layout_base import LayoutRun, LayoutStrategy, cubic_route
from .layout_force import ForceRun, simulation_for
from .models import EdgeRoute, Position
from .ranking import assign_ranks, rank_bands


def ease_cubic_out(t: float) -> float:
    t = min(max(t, 0.0), 1.0)
    return 1 - (1 - t) ** 3


class FlowRun(ForceRun):
    """Pinned run; keeps the start positions so a renderer can tween to the pins."""

    def __init__(self, *args, start_positions: Dict[str, Position], targets: Dict[str, Position], **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.start_positions = start_positions
        self.targets = targets

    def route(self, positions: Mapping[str, Position]) -> List[EdgeRoute]:
        routes = []
        for r in self.links:
            a, b = positions.get(r.source.id), positions.get(r.target.id)
            if a is None or b is None:
                continue
            mid_y = (a.y + b.y) / 2
            routes.append(cubic_route(r.source.id, r.target.id, a, Position(a.x, mid_y), Position(b.x, mid_y), b, r.link))
        return routes

    def interpolate(self, t: float) -> Dict[str, Position]:
        """Positions at fraction ``t`` of the transition from start to pins."""
        k = ease_cubic_out(t)
        frame = {}
        for node_id, target in self.targets.items():
            start = self.start_positions.get(node_id, target)
            frame[node_id] = Position(start.x + (target.x - start.x) * k, start.y + (target.y - start.y) * k)
        return frame


class FlowLayout(LayoutStrategy):
    mode = "flow"

    def _start(self, index, file_paths, hints) -> LayoutRun:
        ranks = assign_ranks(index.nodes, [r.link for r in index.links])
        pins = rank_bands(list(index.node_map), ranks, self.settings.width, self.settings.height, self.settings.band_margin)
        start = {node_id: self.center for node_id in index.node_map}
        start.update({node.id: node.hint for node in index.nodes if node.hint is not None})
        start.update({node_id: pos for node_id, pos in hints.items() if node_id in index.node_map})
        simulation = simulation_for(index, self.settings, hints=start, pins=pins)
        return FlowRun(
            self.mode,
            simulation,
            index.links,
            self.settings,
            start_positions=start,
            targets=pins,
        )
