"""Radial dendrogram over the folder -> file -> symbol hierarchy.

Angles follow a cluster layout: leaves are spaced evenly around the circle
(siblings one unit apart, cousins two), parents sit at the mean angle of their
children. The radius of an item is its tree depth times a fixed ring spacing.
"""

from __future__ import annotations

import math
from typing import Dict, List

from .hierarchy import HierarchyItem, build_hierarchy, to_layout_tree
from .layout_base import LayoutRun, LayoutStrategy, StaticRun, cubic_route, place_entities
from .models import EdgeRoute, LayoutResult, Position


def _separation(a: HierarchyItem, b: HierarchyItem) -> float:
    return 1.0 if a.parent is b.parent else 2.0


def cluster_angles(root: HierarchyItem) -> Dict[int, float]:
    """Angle in degrees ``[0, 360)`` per item, keyed by ``id(item)``."""
    raw: Dict[int, float] = {}
    previous = None
    cursor = 0.0
    first_leaf = last_leaf = None
    for item in _post_order(root):
        if item.children:
            raw[id(item)] = sum(raw[id(c)] for c in item.children) / len(item.children)
            continue
        if previous is not None:
            cursor += _separation(item, previous)
        else:
            first_leaf = item
        raw[id(item)] = cursor
        previous = last_leaf = item

    x0 = raw[id(first_leaf)] - _separation(first_leaf, last_leaf) / 2
    x1 = raw[id(last_leaf)] + _separation(last_leaf, first_leaf) / 2
    return {key: (value - x0) / (x1 - x0) * 360 for key, value in raw.items()}


def _post_order(root: HierarchyItem) -> List[HierarchyItem]:
    order: List[HierarchyItem] = []
    stack = [(root, False)]
    while stack:
        item, expanded = stack.pop()
        if expanded or not item.children:
            order.append(item)
            continue
        stack.append((item, True))
        stack.extend((child, False) for child in reversed(item.children))
    return order


def polar_to_point(center: Position, angle: float, radius: float) -> Position:
    """``angle`` in degrees, ``0`` pointing up, clockwise."""
    theta = math.radians(angle - 90)
    return Position(center.x + radius * math.cos(theta), center.y + radius * math.sin(theta))


class RadialLayout(LayoutStrategy):
    mode = "radial"

    def ring_spacing(self, max_depth: int) -> float:
        if self.settings.ring_spacing > 0:
            return self.settings.ring_spacing
        outer = min(self.settings.width, self.settings.height) / 2 - self.settings.radial_margin
        return max(outer, 1.0) / max(max_depth, 1)

    def _start(self, index, file_paths, hints) -> LayoutRun:
        root = to_layout_tree(build_hierarchy(index.nodes, file_paths), self.settings.leaf_weight)
        result = self.empty_result()
        center = self.center
        if root.children:
            result = self._project(root, result)
        place_entities(result.positions, index, center)
        return StaticRun(result)

    def _project(self, root: HierarchyItem, result: LayoutResult) -> LayoutResult:
        items = [item for item in root.descendants() if item is not root]
        angles = cluster_angles(root)
        spacing = self.ring_spacing(max(item.depth for item in items))
        center = self.center

        polar = {id(item): (angles[id(item)], item.depth * spacing) for item in items}
        for item in items:
            angle, radius = polar[id(item)]
            result.positions[item.key] = polar_to_point(center, angle, radius)

        edges: List[EdgeRoute] = []
        for item in items:
            if item.parent is None or item.parent is root:
                continue
            a0, r0 = polar[id(item.parent)]
            a1, r1 = polar[id(item)]
            mid = (r0 + r1) / 2
            edges.append(
                cubic_route(
                    item.parent.key,
                    item.key,
                    polar_to_point(center, a0, r0),
                    polar_to_point(center, a0, mid),
                    polar_to_point(center, a1, mid),
                    polar_to_point(center, a1, r1),
                )
            )
        result.edges = edges
        return result
