"""Containment layout: nested circle packing of the hierarchy.

Leaves get a radius of ``sqrt(weight)`` (line count, or a constant fallback).
Siblings are packed with a front-chain placement, each parent is the smallest
circle enclosing its children (randomized incremental enclosure), and the
whole tree is scaled to fit the canvas with a fixed padding between siblings.
"""

from __future__ import annotations

import logging
import math
import random
from typing import List, Optional, Sequence

from .hierarchy import HierarchyItem, build_hierarchy, to_layout_tree
from .layout_base import LayoutRun, LayoutStrategy, StaticRun, place_entities
from .models import Position

logger = logging.getLogger(__name__)

# Leaves with no positive weight still need area for the front chain.
MIN_LEAF_RADIUS = 1e-3


class Circle:
    __slots__ = ("x", "y", "r")

    def __init__(self, x: float = 0.0, y: float = 0.0, r: float = 0.0) -> None:
        self.x, self.y, self.r = x, y, r

    def __repr__(self) -> str:
        return f"Circle({self.x:.3f}, {self.y:.3f}, r={self.r:.3f})"


# ---------------------------------------------------------------------------
# Smallest enclosing circle
# ---------------------------------------------------------------------------


def _encloses_not(a: Circle, b: Circle) -> bool:
    dr = a.r - b.r
    dx, dy = b.x - a.x, b.y - a.y
    return dr < 0 or dr * dr < dx * dx + dy * dy


def _encloses_weak(a: Circle, b: Circle) -> bool:
    dr = a.r - b.r + max(a.r, b.r, 1) * 1e-9
    dx, dy = b.x - a.x, b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


def _encloses_weak_all(a: Circle, basis: Sequence[Circle]) -> bool:
    return all(_encloses_weak(a, b) for b in basis)


def _enclose_basis2(a: Circle, b: Circle) -> Circle:
    x21, y21, r21 = b.x - a.x, b.y - a.y, b.r - a.r
    length = math.sqrt(x21 * x21 + y21 * y21)
    if not length:
        return Circle(a.x, a.y, max(a.r, b.r))
    return Circle(
        (a.x + b.x + x21 / length * r21) / 2,
        (a.y + b.y + y21 / length * r21) / 2,
        (length + a.r + b.r) / 2,
    )


def _enclose_basis3(a: Circle, b: Circle, c: Circle) -> Circle:
    x1, y1, r1 = a.x, a.y, a.r
    a2, a3 = x1 - b.x, x1 - c.x
    b2, b3 = y1 - b.y, y1 - c.y
    c2, c3 = b.r - r1, c.r - r1
    d1 = x1 * x1 + y1 * y1 - r1 * r1
    d2 = d1 - b.x * b.x - b.y * b.y + b.r * b.r
    d3 = d1 - c.x * c.x - c.y * c.y + c.r * c.r
    ab = a3 * b2 - a2 * b3
    xa = (b2 * d3 - b3 * d2) / (ab * 2) - x1
    xb = (b3 * c2 - b2 * c3) / ab
    ya = (a3 * d2 - a2 * d3) / (ab * 2) - y1
    yb = (a2 * c3 - a3 * c2) / ab
    qa = xb * xb + yb * yb - 1
    qb = 2 * (r1 + xa * xb + ya * yb)
    qc = xa * xa + ya * ya - r1 * r1
    if abs(qa) > 1e-6:
        r = -(qb + math.sqrt(max(qb * qb - 4 * qa * qc, 0.0))) / (2 * qa)
    else:
        r = -qc / qb
    return Circle(x1 + xa + xb * r, y1 + ya + yb * r, r)


def _enclose_basis(basis: Sequence[Circle]) -> Circle:
    if len(basis) == 1:
        only = basis[0]
        return Circle(only.x, only.y, only.r)
    if len(basis) == 2:
        return _enclose_basis2(*basis)
    return _enclose_basis3(*basis)


def _extend_basis(basis: List[Circle], p: Circle) -> Optional[List[Circle]]:
    if _encloses_weak_all(p, basis):
        return [p]
    for b in basis:
        if _encloses_not(p, b) and _encloses_weak_all(_enclose_basis2(b, p), basis):
            return [b, p]
    for i in range(len(basis) - 1):
        for j in range(i + 1, len(basis)):
            bi, bj = basis[i], basis[j]
            if (
                _encloses_not(_enclose_basis2(bi, bj), p)
                and _encloses_not(_enclose_basis2(bi, p), bj)
                and _encloses_not(_enclose_basis2(bj, p), bi)
                and _encloses_weak_all(_enclose_basis3(bi, bj, p), basis)
            ):
                return [bi, bj, p]
    return None


def _bounding_enclosure(circles: Sequence[Circle]) -> Circle:
    cx = sum(c.x for c in circles) / len(circles)
    cy = sum(c.y for c in circles) / len(circles)
    r = max(math.hypot(c.x - cx, c.y - cy) + c.r for c in circles)
    return Circle(cx, cy, r)


def enclose(circles: Sequence[Circle], rng: Optional[random.Random] = None) -> Optional[Circle]:
    """Smallest circle enclosing ``circles`` (``None`` for an empty input)."""
    if not circles:
        return None
    pending = list(circles)
    (rng or random.Random(0)).shuffle(pending)
    basis: List[Circle] = []
    e: Optional[Circle] = None
    i = 0
    while i < len(pending):
        p = pending[i]
        if e is not None and _encloses_weak(e, p):
            i += 1
            continue
        extended = _extend_basis(basis, p)
        if extended is None:
            # numerical corner case; fall back to a loose but valid enclosure
            logger.debug("Enclosure basis failed for %d circles", len(circles))
            return _bounding_enclosure(circles)
        basis = extended
        e = _enclose_basis(basis)
        i = 0
    return e


# ---------------------------------------------------------------------------
# Sibling packing
# ---------------------------------------------------------------------------


def _place(b: Circle, a: Circle, c: Circle) -> None:
    """Put ``c`` tangent to both ``a`` and ``b``."""
    dx, dy = b.x - a.x, b.y - a.y
    d2 = dx * dx + dy * dy
    if d2:
        a2 = (a.r + c.r) ** 2
        b2 = (b.r + c.r) ** 2
        if a2 > b2:
            x = (d2 + b2 - a2) / (2 * d2)
            y = math.sqrt(max(0.0, b2 / d2 - x * x))
            c.x = b.x - x * dx - y * dy
            c.y = b.y - x * dy + y * dx
        else:
            x = (d2 + a2 - b2) / (2 * d2)
            y = math.sqrt(max(0.0, a2 / d2 - x * x))
            c.x = a.x + x * dx - y * dy
            c.y = a.y + x * dy + y * dx
    else:
        c.x = a.x + c.r
        c.y = a.y


def _intersects(a: Circle, b: Circle) -> bool:
    dr = a.r + b.r - 1e-6
    dx, dy = b.x - a.x, b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


class _Link:
    __slots__ = ("circle", "next", "previous")

    def __init__(self, circle: Circle) -> None:
        self.circle = circle
        self.next: "_Link" = self
        self.previous: "_Link" = self


def _score(node: _Link) -> float:
    a, b = node.circle, node.next.circle
    ab = a.r + b.r
    if ab <= 0:
        dx, dy = (a.x + b.x) / 2, (a.y + b.y) / 2
        return dx * dx + dy * dy
    dx = (a.x * b.r + b.x * a.r) / ab
    dy = (a.y * b.r + b.y * a.r) / ab
    return dx * dx + dy * dy


def pack_siblings(circles: Sequence[Circle], rng: Optional[random.Random] = None) -> float:
    """Pack ``circles`` around the origin without overlap; returns the enclosing radius."""
    n = len(circles)
    if not n:
        return 0.0

    a = circles[0]
    a.x = a.y = 0.0
    if n == 1:
        return a.r

    b = circles[1]
    a.x, b.x, b.y = -b.r, a.r, 0.0
    if n == 2:
        return a.r + b.r

    _place(b, a, circles[2])
    la, lb, lc = _Link(a), _Link(b), _Link(circles[2])
    la.next = lc.previous = lb
    lb.next = la.previous = lc
    lc.next = lb.previous = la

    i = 3
    while i < n:
        c = circles[i]
        _place(la.circle, lb.circle, c)
        lc = _Link(c)

        # closest intersecting circle on the front chain, searching both ways
        j, k = lb.next, la.previous
        sj, sk = lb.circle.r, la.circle.r
        retry = False
        while True:
            if sj <= sk:
                if _intersects(j.circle, c):
                    lb = j
                    la.next, lb.previous = lb, la
                    retry = True
                    break
                sj += j.circle.r
                j = j.next
            else:
                if _intersects(k.circle, c):
                    la = k
                    la.next, lb.previous = lb, la
                    retry = True
                    break
                sk += k.circle.r
                k = k.previous
            if j is k.next:
                break
        if retry:
            continue

        lc.previous, lc.next = la, lb
        la.next = lb.previous = lb = lc

        best = _score(la)
        node = lc.next
        while node is not lb:
            value = _score(node)
            if value < best:
                la, best = node, value
            node = node.next
        lb = la.next
        i += 1

    chain = [lb.circle]
    node = lb.next
    while node is not lb:
        chain.append(node.circle)
        node = node.next
    e = enclose(chain, rng)
    for circle in circles:
        circle.x -= e.x
        circle.y -= e.y
    return e.r


# ---------------------------------------------------------------------------
# Hierarchy packing
# ---------------------------------------------------------------------------


def _post_order(root: HierarchyItem) -> List[HierarchyItem]:
    order = list(root.descendants())
    order.reverse()
    return order


def pack_hierarchy(
    root: HierarchyItem,
    width: float,
    height: float,
    padding: float,
    rng: Optional[random.Random] = None,
) -> dict:
    """Return ``{id(item): Circle}`` in canvas coordinates for every item."""
    rng = rng or random.Random(0)
    circles = {
        id(item): Circle(r=math.sqrt(item.weight) if item.weight > 0 else MIN_LEAF_RADIUS)
        for item in root.descendants()
    }
    for item in root.descendants():
        if item.children:
            circles[id(item)].r = 0.0
    order = _post_order(root)
    size = min(width, height)

    def pack_pass(pad: float) -> None:
        for item in order:
            if not item.children:
                continue
            kids = [circles[id(c)] for c in item.children]
            for kid in kids:
                kid.r += pad
            e = pack_siblings(kids, rng)
            for kid in kids:
                kid.r -= pad
            circles[id(item)].r = e + pad

    pack_pass(0.0)
    pack_pass(padding * circles[id(root)].r / size if size else 0.0)

    top = circles[id(root)]
    k = size / (2 * top.r) if top.r else 1.0
    top.x, top.y = width / 2, height / 2
    top.r *= k
    for item in root.descendants():
        if item is root:
            continue
        node, parent = circles[id(item)], circles[id(item.parent)]
        node.r *= k
        node.x = parent.x + k * node.x
        node.y = parent.y + k * node.y
    return circles


class PackLayout(LayoutStrategy):
    mode = "pack"

    def _start(self, index, file_paths, hints) -> LayoutRun:
        s = self.settings
        root = to_layout_tree(build_hierarchy(index.nodes, file_paths), s.leaf_weight, sort_by="weight")
        result = self.empty_result()
        if root.children:
            circles = pack_hierarchy(root, s.width, s.height, s.pack_padding, random.Random(s.seed))
            for item in root.descendants():
                if item is root:
                    continue
                circle = circles[id(item)]
                result.positions[item.key] = Position(circle.x, circle.y)
                result.radii[item.key] = circle.r
        place_entities(result.positions, index, self.center)
        for node_id in result.positions:
            result.radii.setdefault(node_id, 0.0)
        return StaticRun(result)
