"""Force-directed (organic) layout.

A velocity-Verlet style simulation with four forces applied each tick, in
order: link springs, many-body repulsion (Barnes-Hut approximated), a
centering shift and collision. Alpha cools geometrically from ``1`` toward
``0``; the run ends when alpha drops under ``alpha_min`` or the tick budget is
spent.

Positions and velocities live in the simulation's own arrays keyed by node
index. Entities are never mutated; hints seed the starting positions and pins
(``fx``/``fy``) hold nodes in place.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import LayoutSettings
from .graph_index import GraphIndex, ResolvedLink
from .layout_base import LayoutRun, LayoutStrategy, straight_routes
from .models import LayoutResult, Position

logger = logging.getLogger(__name__)

THETA2 = 0.81
DISTANCE_MIN2 = 1.0
INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))
_MAX_QUAD_DEPTH = 32


def collision_radius(degree: int, k: float, offset: float) -> float:
    """Personal-space radius; isolated nodes are sized like degree one."""
    return math.sqrt(degree or 1) * k + offset


class _Quad:
    __slots__ = ("x0", "y0", "x1", "y1", "children", "items", "strength", "cx", "cy", "radius")

    def __init__(self, x0: float, y0: float, x1: float, y1: float) -> None:
        self.x0, self.y0, self.x1, self.y1 = x0, y0, x1, y1
        self.children: Optional[List[Optional["_Quad"]]] = None
        self.items: List[int] = []
        self.strength = 0.0
        self.cx = 0.0
        self.cy = 0.0
        self.radius = 0.0


def _build_quadtree(xs: Sequence[float], ys: Sequence[float]) -> _Quad:
    x0, x1 = min(xs), max(xs)
    y0, y1 = min(ys), max(ys)
    size = max(x1 - x0, y1 - y0, 1.0)
    return _split(list(range(len(xs))), xs, ys, x0, y0, x0 + size, y0 + size, 0)


def _split(
    items: List[int],
    xs: Sequence[float],
    ys: Sequence[float],
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    depth: int,
) -> _Quad:
    quad = _Quad(x0, y0, x1, y1)
    first = items[0]
    coincident = all(xs[i] == xs[first] and ys[i] == ys[first] for i in items)
    if len(items) == 1 or coincident or depth >= _MAX_QUAD_DEPTH:
        quad.items = items
        return quad

    xm, ym = (x0 + x1) / 2, (y0 + y1) / 2
    buckets: List[List[int]] = [[], [], [], []]
    for i in items:
        buckets[(xs[i] >= xm) + 2 * (ys[i] >= ym)].append(i)
    bounds = [(x0, y0, xm, ym), (xm, y0, x1, ym), (x0, ym, xm, y1), (xm, ym, x1, y1)]
    quad.children = [
        _split(bucket, xs, ys, *box, depth + 1) if bucket else None
        for bucket, box in zip(buckets, bounds)
    ]
    return quad


def _walk_post_order(root: _Quad) -> List[_Quad]:
    order: List[_Quad] = []
    stack = [root]
    while stack:
        quad = stack.pop()
        order.append(quad)
        if quad.children:
            stack.extend(child for child in quad.children if child is not None)
    order.reverse()
    return order


class ForceSimulation:
    """Tick-driven physics over an index-keyed side table of bodies."""

    def __init__(
        self,
        node_ids: Sequence[str],
        links: Sequence[Tuple[int, int]],
        radii: Sequence[float],
        settings: LayoutSettings,
        hints: Optional[Mapping[str, Position]] = None,
        pins: Optional[Mapping[str, Position]] = None,
    ) -> None:
        self.node_ids = list(node_ids)
        self.settings = settings
        self.radii = list(radii)
        self.alpha = 1.0
        self.alpha_target = 0.0
        self.ticks = 0
        self._random = random.Random(settings.seed)

        n = len(self.node_ids)
        self.x = [0.0] * n
        self.y = [0.0] * n
        self.vx = [0.0] * n
        self.vy = [0.0] * n
        self.fx: List[Optional[float]] = [None] * n
        self.fy: List[Optional[float]] = [None] * n

        hints = hints or {}
        pins = pins or {}
        cx, cy = settings.width / 2, settings.height / 2
        for i, node_id in enumerate(self.node_ids):
            pin = pins.get(node_id)
            if pin is not None:
                self.fx[i], self.fy[i] = pin.x, pin.y
            hint = hints.get(node_id)
            if hint is not None:
                self.x[i], self.y[i] = hint.x, hint.y
            else:
                radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * INITIAL_ANGLE
                self.x[i] = cx + radius * math.cos(angle)
                self.y[i] = cy + radius * math.sin(angle)
            if pin is not None and hint is None:
                self.x[i], self.y[i] = pin.x, pin.y

        count = [0] * n
        for s, t in links:
            count[s] += 1
            count[t] += 1
        self.links = [
            (s, t, 1 / min(count[s], count[t]), count[s] / (count[s] + count[t]))
            for s, t in links
        ]

    @property
    def all_pinned(self) -> bool:
        return all(f is not None for f in self.fx) and all(f is not None for f in self.fy)

    @property
    def converged(self) -> bool:
        return self.alpha < self.settings.alpha_min

    def positions(self) -> Dict[str, Position]:
        return {node_id: Position(self.x[i], self.y[i]) for i, node_id in enumerate(self.node_ids)}

    def tick(self) -> None:
        s = self.settings
        self.alpha += (self.alpha_target - self.alpha) * s.alpha_decay
        self._apply_links(self.alpha)
        self._apply_many_body(self.alpha)
        self._apply_center()
        self._apply_collide()

        keep = 1 - s.velocity_decay
        for i in range(len(self.node_ids)):
            if self.fx[i] is None:
                self.vx[i] *= keep
                self.x[i] += self.vx[i]
            else:
                self.x[i] = self.fx[i]
                self.vx[i] = 0.0
            if self.fy[i] is None:
                self.vy[i] *= keep
                self.y[i] += self.vy[i]
            else:
                self.y[i] = self.fy[i]
                self.vy[i] = 0.0
        self.ticks += 1

    def _jiggle(self) -> float:
        return (self._random.random() - 0.5) * 1e-6

    def _apply_links(self, alpha: float) -> None:
        distance = self.settings.link_distance
        x, y, vx, vy = self.x, self.y, self.vx, self.vy
        for s, t, strength, bias in self.links:
            dx = x[t] + vx[t] - x[s] - vx[s] or self._jiggle()
            dy = y[t] + vy[t] - y[s] - vy[s] or self._jiggle()
            length = math.sqrt(dx * dx + dy * dy)
            scale = (length - distance) / length * alpha * strength
            dx *= scale
            dy *= scale
            vx[t] -= dx * bias
            vy[t] -= dy * bias
            vx[s] += dx * (1 - bias)
            vy[s] += dy * (1 - bias)

    def _apply_many_body(self, alpha: float) -> None:
        strength = self.settings.charge_strength
        if not strength or len(self.node_ids) < 2:
            return
        root = _build_quadtree(self.x, self.y)
        for quad in _walk_post_order(root):
            if quad.children is None:
                quad.strength = strength * len(quad.items)
                quad.cx, quad.cy = self.x[quad.items[0]], self.y[quad.items[0]]
                continue
            total = weight = sx = sy = 0.0
            for child in quad.children:
                if child is None:
                    continue
                c = abs(child.strength)
                total += child.strength
                weight += c
                sx += c * child.cx
                sy += c * child.cy
            quad.strength = total
            if weight:
                quad.cx, quad.cy = sx / weight, sy / weight

        for i in range(len(self.node_ids)):
            xi, yi = self.x[i], self.y[i]
            stack = [root]
            while stack:
                quad = stack.pop()
                if not quad.strength:
                    continue
                dx, dy = quad.cx - xi, quad.cy - yi
                w = quad.x1 - quad.x0
                dist2 = dx * dx + dy * dy
                if w * w / THETA2 < dist2:
                    if dx == 0:
                        dx = self._jiggle()
                        dist2 += dx * dx
                    if dy == 0:
                        dy = self._jiggle()
                        dist2 += dy * dy
                    if dist2 < DISTANCE_MIN2:
                        dist2 = math.sqrt(DISTANCE_MIN2 * dist2)
                    self.vx[i] += dx * quad.strength * alpha / dist2
                    self.vy[i] += dy * quad.strength * alpha / dist2
                    continue
                if quad.children is not None:
                    stack.extend(child for child in quad.children if child is not None)
                    continue
                if quad.items == [i]:
                    continue
                if dx == 0:
                    dx = self._jiggle()
                    dist2 += dx * dx
                if dy == 0:
                    dy = self._jiggle()
                    dist2 += dy * dy
                if dist2 < DISTANCE_MIN2:
                    dist2 = math.sqrt(DISTANCE_MIN2 * dist2)
                for j in quad.items:
                    if j != i:
                        w = strength * alpha / dist2
                        self.vx[i] += dx * w
                        self.vy[i] += dy * w

    def _apply_center(self) -> None:
        n = len(self.node_ids)
        k = self.settings.center_strength
        if not n or not k:
            return
        shift_x = (sum(self.x) / n - self.settings.width / 2) * k
        shift_y = (sum(self.y) / n - self.settings.height / 2) * k
        for i in range(n):
            self.x[i] -= shift_x
            self.y[i] -= shift_y

    def _apply_collide(self) -> None:
        n = len(self.node_ids)
        if n < 2:
            return
        px = [self.x[i] + self.vx[i] for i in range(n)]
        py = [self.y[i] + self.vy[i] for i in range(n)]
        root = _build_quadtree(px, py)
        for quad in _walk_post_order(root):
            if quad.children is None:
                quad.radius = max(self.radii[i] for i in quad.items)
            else:
                quad.radius = max(c.radius for c in quad.children if c is not None)

        for i in range(n):
            ri = self.radii[i]
            ri2 = ri * ri
            xi, yi = self.x[i] + self.vx[i], self.y[i] + self.vy[i]
            stack = [root]
            while stack:
                quad = stack.pop()
                reach = ri + quad.radius
                if quad.x0 > xi + reach or quad.x1 < xi - reach or quad.y0 > yi + reach or quad.y1 < yi - reach:
                    continue
                if quad.children is not None:
                    stack.extend(child for child in quad.children if child is not None)
                    continue
                for j in quad.items:
                    if j <= i:
                        continue
                    rj = self.radii[j]
                    reach = ri + rj
                    dx = xi - self.x[j] - self.vx[j]
                    dy = yi - self.y[j] - self.vy[j]
                    dist2 = dx * dx + dy * dy
                    if dist2 >= reach * reach:
                        continue
                    if dx == 0:
                        dx = self._jiggle()
                        dist2 += dx * dx
                    if dy == 0:
                        dy = self._jiggle()
                        dist2 += dy * dy
                    dist = math.sqrt(dist2)
                    scale = (reach - dist) / dist
                    dx *= scale
                    dy *= scale
                    rj2 = rj * rj
                    share = rj2 / (ri2 + rj2)
                    self.vx[i] += dx * share
                    self.vy[i] += dy * share
                    self.vx[j] -= dx * (1 - share)
                    self.vy[j] -= dy * (1 - share)


class ForceRun(LayoutRun):
    """Steps a :class:`ForceSimulation` and snapshots positions per tick."""

    def __init__(
        self,
        mode: str,
        simulation: ForceSimulation,
        links: Sequence[ResolvedLink],
        settings: LayoutSettings,
    ) -> None:
        super().__init__(mode)
        self.simulation = simulation
        self.links = list(links)
        self.settings = settings
        if simulation.all_pinned:
            # pinned nodes cannot move; one tick puts them on their pins
            simulation.tick()
            self.ticks = simulation.ticks
            self.done = True

    def step(self) -> LayoutResult:
        if not self.done:
            self.simulation.tick()
            self.ticks = self.simulation.ticks
            if self.simulation.converged:
                self.done = True
            elif self.ticks >= self.settings.max_ticks:
                logger.info("Force layout stopped at tick budget %d (alpha=%.4f)", self.ticks, self.simulation.alpha)
                self.done = True
        return self.snapshot()

    def snapshot(self) -> LayoutResult:
        positions = self.simulation.positions()
        return LayoutResult(
            mode=self.mode,
            width=self.settings.width,
            height=self.settings.height,
            positions=positions,
            edges=self.route(positions),
            radii={node_id: self.simulation.radii[i] for i, node_id in enumerate(self.simulation.node_ids)},
            tick=self.ticks,
            settled=self.done,
        )

    def route(self, positions: Mapping[str, Position]):
        return straight_routes(self.links, positions)


def simulation_for(
    index: GraphIndex,
    settings: LayoutSettings,
    hints: Optional[Mapping[str, Position]] = None,
    pins: Optional[Mapping[str, Position]] = None,
) -> ForceSimulation:
    node_ids = list(index.node_map)
    slot = {node_id: i for i, node_id in enumerate(node_ids)}
    pairs = [(slot[r.source.id], slot[r.target.id]) for r in index.links if r.source.id != r.target.id]
    radii = [collision_radius(index.degree[node_id], settings.collide_k, settings.collide_offset) for node_id in node_ids]
    return ForceSimulation(node_ids, pairs, radii, settings, hints=hints, pins=pins)


class ForceLayout(LayoutStrategy):
    mode = "force"

    def _start(self, index, file_paths, hints) -> LayoutRun:
        merged = {node.id: node.hint for node in index.nodes if node.hint is not None}
        merged.update(hints)
        return ForceRun(self.mode, simulation_for(index, self.settings, hints=merged), index.links, self.settings)
