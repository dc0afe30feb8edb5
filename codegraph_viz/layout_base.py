"""Shared plumbing for the layout strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional

from .config import LayoutSettings
from .graph_index import GraphIndex, ResolvedLink, build_index
from .hierarchy import entity_tree_key
from .models import EdgeRoute, Entity, LayoutResult, Position, Relation


class LayoutRun:
    """A layout in progress.

    ``step()`` advances one tick and returns a snapshot; ``result()`` runs to
    completion. Static strategies finish in their first step.
    """

    def __init__(self, mode: str) -> None:
        self.mode = mode
        self.done = False
        self.ticks = 0

    def step(self) -> LayoutResult:
        raise NotImplementedError

    def snapshot(self) -> LayoutResult:
        raise NotImplementedError

    def stop(self) -> None:
        self.done = True

    def result(self) -> LayoutResult:
        snapshot = self.snapshot()
        while not self.done:
            snapshot = self.step()
        return snapshot


class StaticRun(LayoutRun):
    def __init__(self, result: LayoutResult) -> None:
        super().__init__(result.mode)
        self._result = result
        self.done = True

    def step(self) -> LayoutResult:
        return self._result

    def snapshot(self) -> LayoutResult:
        return self._result


class LayoutStrategy(ABC):
    mode = ""

    def __init__(self, settings: Optional[LayoutSettings] = None) -> None:
        self.settings = settings or LayoutSettings()

    @property
    def center(self) -> Position:
        return Position(self.settings.width / 2, self.settings.height / 2)

    def start(
        self,
        nodes: Iterable[Optional[Entity]],
        links: Iterable[Optional[Relation]],
        file_paths: Optional[Iterable[str]] = None,
        hints: Optional[Mapping[str, Position]] = None,
    ) -> LayoutRun:
        index = build_index(nodes, links)
        if len(index.node_map) <= 1:
            return StaticRun(self.degenerate(index))
        return self._start(index, list(file_paths or []), dict(hints or {}))

    def layout(
        self,
        nodes: Iterable[Optional[Entity]],
        links: Iterable[Optional[Relation]],
        file_paths: Optional[Iterable[str]] = None,
        hints: Optional[Mapping[str, Position]] = None,
    ) -> LayoutResult:
        return self.start(nodes, links, file_paths, hints).result()

    @abstractmethod
    def _start(
        self,
        index: GraphIndex,
        file_paths: List[str],
        hints: Dict[str, Position],
    ) -> LayoutRun:
        ...

    def degenerate(self, index: GraphIndex) -> LayoutResult:
        """Empty graph: nothing placed. Single node: centered, no edges."""
        result = self.empty_result()
        for node_id in index.node_map:
            result.positions[node_id] = self.center
        return result

    def empty_result(self) -> LayoutResult:
        return LayoutResult(mode=self.mode, width=self.settings.width, height=self.settings.height)


def straight_routes(links: Iterable[ResolvedLink], positions: Mapping[str, Position]) -> List[EdgeRoute]:
    return [
        EdgeRoute(
            source_id=r.source.id,
            target_id=r.target.id,
            kind="line",
            points=[positions[r.source.id], positions[r.target.id]],
            relation=r.link,
        )
        for r in links
        if r.source.id in positions and r.target.id in positions
    ]


def cubic_route(
    source_id: str,
    target_id: str,
    start: Position,
    c1: Position,
    c2: Position,
    end: Position,
    relation: Optional[Relation] = None,
) -> EdgeRoute:
    return EdgeRoute(source_id, target_id, "cubic", [start, c1, c2, end], relation)


def place_entities(
    positions: Dict[str, Position],
    index: GraphIndex,
    fallback: Position,
) -> Dict[str, Position]:
    """Make sure every entity id has a position in a tree projection.

    File-level ids map onto their tree item; ids the hierarchy could not
    place sit at ``fallback``.
    """
    for node_id, entity in index.node_map.items():
        if node_id in positions:
            continue
        key = entity_tree_key(entity)
        positions[node_id] = positions.get(key, fallback) if key else fallback
    return positions
