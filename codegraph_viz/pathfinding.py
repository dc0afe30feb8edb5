"""Shortest-path search for "trace path" queries.

Traversal is undirected: a relation ``a -> b`` can be walked from either end,
so a reported path may cross an edge against its declared direction. BFS
counts hops; Dijkstra sums link weights (absent weights count as ``1``).
"""

from __future__ import annotations

import heapq
import itertools
from collections import deque
from typing import Dict, Iterable, List, Optional, Tuple

from .graph_index import GraphIndex, build_index
from .models import Entity, PathResult, Relation

# child id -> (parent id, link walked to reach the child)
ParentMap = Dict[str, Tuple[str, Relation]]


def find_path(
    nodes: Iterable[Optional[Entity]],
    links: Iterable[Optional[Relation]],
    start_id: str,
    end_id: str,
    use_weights: bool = True,
) -> Optional[PathResult]:
    """Find the shortest path between two entity ids.

    Dijkstra runs when ``use_weights`` is set and at least one link carries an
    explicit weight; otherwise BFS. Returns ``None`` when the ends are not
    connected or either id is unknown.
    """
    links = list(links or [])
    index = build_index(nodes, links)
    if start_id == end_id:
        return _trivial(index, start_id)
    if use_weights and any(link is not None and link.has_weight for link in links):
        return dijkstra_path(index, start_id, end_id)
    return bfs_path(index, start_id, end_id)


def bfs_path(index: GraphIndex, start_id: str, end_id: str) -> Optional[PathResult]:
    if start_id == end_id:
        return _trivial(index, start_id)

    queue = deque([start_id])
    visited = {start_id}
    parent: ParentMap = {}
    while queue:
        current = queue.popleft()
        if current == end_id:
            result = _reconstruct(index, parent, start_id, end_id)
            result.length = len(result.links)
            return result
        for neighbor in index.neighbors(current):
            if neighbor.neighbor_id in visited:
                continue
            visited.add(neighbor.neighbor_id)
            parent[neighbor.neighbor_id] = (current, neighbor.link)
            queue.append(neighbor.neighbor_id)
    return None


def dijkstra_path(index: GraphIndex, start_id: str, end_id: str) -> Optional[PathResult]:
    if start_id == end_id:
        return _trivial(index, start_id)
    if start_id not in index.node_map:
        return None

    distances: Dict[str, float] = {start_id: 0.0}
    parent: ParentMap = {}
    settled = set()
    order = itertools.count()
    heap = [(0.0, next(order), start_id)]
    while heap:
        dist, _, current = heapq.heappop(heap)
        if current in settled:
            continue
        if current == end_id:
            result = _reconstruct(index, parent, start_id, end_id)
            result.length = dist
            return result
        settled.add(current)
        for neighbor in index.neighbors(current):
            if neighbor.neighbor_id in settled:
                continue
            candidate = dist + neighbor.weight
            if candidate < distances.get(neighbor.neighbor_id, float("inf")):
                distances[neighbor.neighbor_id] = candidate
                parent[neighbor.neighbor_id] = (current, neighbor.link)
                heapq.heappush(heap, (candidate, next(order), neighbor.neighbor_id))
    return None


def _trivial(index: GraphIndex, node_id: str) -> PathResult:
    entity = index.node_map.get(node_id)
    return PathResult(path=[node_id], nodes=[entity] if entity else [], links=[], length=0)


def _reconstruct(index: GraphIndex, parent: ParentMap, start_id: str, end_id: str) -> PathResult:
    path: List[str] = [end_id]
    path_links: List[Relation] = []
    current = end_id
    while current != start_id:
        previous, link = parent[current]
        path_links.append(link)
        path.append(previous)
        current = previous
    path.reverse()
    path_links.reverse()
    return PathResult(
        path=path,
        nodes=[index.node_map[node_id] for node_id in path if node_id in index.node_map],
        links=path_links,
        length=0,
    )


def is_in_path(node_id: str, result: Optional[PathResult]) -> bool:
    return result is not None and node_id in result.path


def is_path_link(source_id: str, target_id: str, result: Optional[PathResult]) -> bool:
    """True when the path walks a link between the two ids, in either direction."""
    if result is None:
        return False
    wanted = {(source_id, target_id), (target_id, source_id)}
    return any((link.source_id, link.target_id) in wanted for link in result.links)
