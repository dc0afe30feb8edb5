"""Topological rank assignment for directed call graphs.

``rank(v)`` is ``0`` when nothing points at ``v`` and otherwise one more than
the largest rank among its callers. Cycles are cut by a visited-on-current-path
guard: revisiting a node that is still being explored contributes ``0``. Ranks
inside a cycle are therefore underestimates of the true longest chain, which
keeps recursive functions on sensible bands.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set

from .graph_index import node_lookup, resolve_links
from .models import Entity, Position, Relation


def caller_table(node_map: Dict[str, Entity], links: Iterable[Optional[Relation]]) -> Dict[str, List[str]]:
    """target id -> source ids of every resolvable link, in link order."""
    callers: Dict[str, List[str]] = defaultdict(list)
    for resolved in resolve_links(node_map, links):
        callers[resolved.target.id].append(resolved.source.id)
    return callers


def assign_ranks(nodes: Iterable[Optional[Entity]], links: Iterable[Optional[Relation]]) -> Dict[str, int]:
    node_map = node_lookup(nodes)
    callers = caller_table(node_map, links)
    ranks: Dict[str, int] = {}
    for node_id in node_map:
        if node_id not in ranks:
            _rank_from(node_id, callers, ranks)
    return {node_id: ranks.get(node_id, 0) for node_id in node_map}


class _Frame:
    __slots__ = ("node_id", "pending", "best", "has_callers")

    def __init__(self, node_id: str, pending: Iterator[str], has_callers: bool) -> None:
        self.node_id = node_id
        self.pending = pending
        self.best = 0
        self.has_callers = has_callers


def _rank_from(start: str, callers: Dict[str, List[str]], ranks: Dict[str, int]) -> int:
    # Explicit stack so long call chains cannot hit the interpreter recursion limit.
    on_path: Set[str] = {start}
    stack = [_Frame(start, iter(callers.get(start, ())), bool(callers.get(start)))]
    result = 0

    while stack:
        frame = stack[-1]
        descended = False
        for caller in frame.pending:
            if caller in ranks:
                frame.best = max(frame.best, ranks[caller])
            elif caller in on_path:
                frame.best = max(frame.best, 0)
            else:
                on_path.add(caller)
                stack.append(_Frame(caller, iter(callers.get(caller, ())), bool(callers.get(caller))))
                descended = True
                break
        if descended:
            continue

        result = frame.best + 1 if frame.has_callers else 0
        ranks[frame.node_id] = result
        on_path.discard(frame.node_id)
        stack.pop()
        if stack:
            stack[-1].best = max(stack[-1].best, result)

    return result


def group_by_rank(node_ids: Sequence[str], ranks: Dict[str, int]) -> Dict[int, List[str]]:
    """Bands keyed by rank; members keep ``node_ids`` order."""
    bands: Dict[int, List[str]] = {}
    for node_id in node_ids:
        bands.setdefault(ranks.get(node_id, 0), []).append(node_id)
    return bands


def rank_bands(
    node_ids: Sequence[str],
    ranks: Dict[str, int],
    width: float,
    height: float,
    margin: float = 100.0,
) -> Dict[str, Position]:
    """Spread each band evenly across ``width`` and stack bands vertically.

    Band ``r`` sits at ``r / max_rank`` of the drawable height between the top
    and bottom margins; ``max_rank`` is at least ``1``, so rank ``0`` always sits
    on the top margin.
    """
    bands = group_by_rank(node_ids, ranks)
    max_rank = max(max(bands, default=0), 1)
    positions: Dict[str, Position] = {}
    for rank, members in bands.items():
        x_step = width / (len(members) + 1)
        y = (rank / max_rank) * (height - 2 * margin) + margin
        for i, node_id in enumerate(members):
            positions[node_id] = Position((i + 1) * x_step, y)
    return positions
