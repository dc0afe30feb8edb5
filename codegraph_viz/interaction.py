"""Selection focus, hover dimming and per-link styling.

These are pure transforms over a finished layout: nothing here moves a node.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Optional

from .config import LayoutSettings
from .graph_index import GraphIndex
from .models import Entity, LayoutResult, Position, Relation, Viewport


@dataclass
class Emphasis:
    """Opacity per node id and per link position in ``GraphIndex.links``."""

    nodes: Dict[str, float] = field(default_factory=dict)
    links: Dict[int, float] = field(default_factory=dict)


def focus_viewport(target: Position, width: float, height: float, scale: float = 1.5) -> Viewport:
    """Transform that puts ``target`` at the canvas center, zoomed by ``scale``."""
    return Viewport(
        translate_x=width / 2 - scale * target.x,
        translate_y=height / 2 - scale * target.y,
        scale=scale,
    )


def apply_selection(
    result: LayoutResult,
    selected_id: Optional[str],
    settings: Optional[LayoutSettings] = None,
) -> LayoutResult:
    """Mark ``selected_id`` for the highlight ring.

    The viewport is only recentred once the layout has settled and the node
    has a position.
    """
    settings = settings or LayoutSettings()
    result.selected_id = selected_id
    result.viewport = None
    if selected_id and result.settled:
        target = result.positions.get(selected_id)
        if target is not None:
            result.viewport = focus_viewport(target, result.width, result.height, settings.focus_scale)
    return result


def hover_emphasis(
    index: GraphIndex,
    hovered_id: Optional[str],
    settings: Optional[LayoutSettings] = None,
) -> Emphasis:
    """Opacities while ``hovered_id`` is under the pointer.

    The hovered node, its one-hop neighbours and its incident links stay fully
    opaque; everything else drops to ``dim_opacity``. ``None`` (pointer left)
    restores nodes to ``1`` and links to the resting ``link_opacity``.
    """
    settings = settings or LayoutSettings()
    emphasis = Emphasis()
    if hovered_id is None or hovered_id not in index.node_map:
        emphasis.nodes = {node_id: 1.0 for node_id in index.node_map}
        emphasis.links = {i: settings.link_opacity for i in range(len(index.links))}
        return emphasis

    related = index.neighborhood(hovered_id)
    emphasis.nodes = {
        node_id: 1.0 if node_id in related else settings.dim_opacity for node_id in index.node_map
    }
    emphasis.links = {
        i: 1.0 if hovered_id in (r.source.id, r.target.id) else settings.dim_opacity
        for i, r in enumerate(index.links)
    }
    return emphasis


def is_virtual_link(link: Relation) -> bool:
    return link.source_type == "virtual" or (link.relation or "").startswith("v:")


def link_opacity(link: Relation) -> float:
    if link.weight is not None:
        return 0.2 + link.weight * 0.8
    return 0.6 if is_virtual_link(link) else 0.7


def node_radius(entity: Entity, line_count: Optional[int] = None) -> float:
    """Drawn radius grown with the square root of the line count (20 if unknown)."""
    lines = line_count or entity.line_count or 20
    return math.sqrt(lines) * 3 + 8
