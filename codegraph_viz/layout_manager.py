"""Layout mode registry and single-owner layout handles.

Only one layout may own a given node set at a time. ``start_layout`` hands out
a :class:`LayoutHandle`; the caller must ``cancel`` it before starting another
layout over the same ids, otherwise :class:`LayoutConflictError` is raised.
"""

from __future__ import annotations

import logging
import uuid
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Type

from .config import LayoutSettings
from .errors import LayoutConflictError, UnknownLayoutModeError
from .graph_index import node_lookup
from .interaction import apply_selection
from .layout_base import LayoutRun, LayoutStrategy
from .layout_columns import ColumnsLayout
from .layout_flow import FlowLayout
from .layout_force import ForceLayout
from .layout_pack import PackLayout
from .layout_radial import RadialLayout
from .models import Entity, LayoutResult, Position, Relation

logger = logging.getLogger(__name__)

STRATEGIES: Dict[str, Type[LayoutStrategy]] = {
    ForceLayout.mode: ForceLayout,
    FlowLayout.mode: FlowLayout,
    RadialLayout.mode: RadialLayout,
    PackLayout.mode: PackLayout,
    ColumnsLayout.mode: ColumnsLayout,
}


def get_strategy(mode: str, settings: Optional[LayoutSettings] = None) -> LayoutStrategy:
    try:
        strategy_cls = STRATEGIES[mode]
    except KeyError:
        raise UnknownLayoutModeError(
            f"Unknown layout mode '{mode}'. Choose one of: {', '.join(STRATEGIES)}"
        ) from None
    return strategy_cls(settings)


class LayoutHandle:
    """Ownership token for one running layout."""

    def __init__(
        self,
        mode: str,
        nodes: List[Entity],
        links: List[Relation],
        file_paths: List[str],
        run: LayoutRun,
        settings: LayoutSettings,
        selected_id: Optional[str] = None,
    ) -> None:
        self.token = uuid.uuid4().hex[:12]
        self.mode = mode
        self.nodes = nodes
        self.links = links
        self.file_paths = file_paths
        self.run = run
        self.settings = settings
        self.selected_id = selected_id
        self.cancelled = False
        self._last: Optional[LayoutResult] = None

    @property
    def node_set(self) -> FrozenSet[str]:
        return frozenset(node_lookup(self.nodes))

    @property
    def done(self) -> bool:
        return self.cancelled or self.run.done

    @property
    def last(self) -> Optional[LayoutResult]:
        return self._last

    def step(self) -> LayoutResult:
        """Advance one tick; a cancelled handle keeps returning its last frame."""
        if self.cancelled:
            return self._last if self._last is not None else self._decorate(self.run.snapshot())
        return self._decorate(self.run.step())

    def frames(self) -> Iterator[LayoutResult]:
        while not self.done:
            yield self.step()

    def result(self) -> LayoutResult:
        frame = self._last if self._last is not None else self._decorate(self.run.snapshot())
        for frame in self.frames():
            pass
        return frame

    def select(self, node_id: Optional[str]) -> Optional[LayoutResult]:
        self.selected_id = node_id
        if self._last is None:
            return None
        return apply_selection(self._last, node_id, self.settings)

    def _decorate(self, result: LayoutResult) -> LayoutResult:
        self._last = apply_selection(result, self.selected_id, self.settings)
        return self._last


class LayoutManager:
    def __init__(self, settings: Optional[LayoutSettings] = None) -> None:
        self.settings = settings or LayoutSettings()
        self._active: Dict[FrozenSet[str], LayoutHandle] = {}

    def active(self, node_ids: Iterable[str]) -> Optional[LayoutHandle]:
        return self._active.get(frozenset(node_ids))

    def start_layout(
        self,
        mode: str,
        nodes: Iterable[Optional[Entity]],
        links: Iterable[Optional[Relation]],
        file_paths: Optional[Iterable[str]] = None,
        hints: Optional[Mapping[str, Position]] = None,
        selected_id: Optional[str] = None,
    ) -> LayoutHandle:
        """Begin laying out ``nodes``.

        Raises:
            LayoutConflictError: another handle still owns the same node set.
            UnknownLayoutModeError: ``mode`` is not registered.
        """
        strategy = get_strategy(mode, self.settings)
        node_list = [node for node in nodes or [] if node is not None]
        link_list = [link for link in links or [] if link is not None]
        path_list = list(file_paths or [])
        key = frozenset(node_lookup(node_list))

        owner = self._active.get(key)
        if owner is not None and not owner.cancelled:
            raise LayoutConflictError(owner.token)

        run = strategy.start(node_list, link_list, path_list, hints)
        handle = LayoutHandle(mode, node_list, link_list, path_list, run, self.settings, selected_id)
        self._active[key] = handle
        logger.debug("Layout %s (%s) started on %d nodes", handle.token, mode, len(key))
        return handle

    def cancel(self, handle: LayoutHandle) -> None:
        handle.run.stop()
        handle.cancelled = True
        key = handle.node_set
        if self._active.get(key) is handle:
            del self._active[key]
        logger.debug("Layout %s cancelled", handle.token)

    def switch_mode(self, handle: LayoutHandle, mode: str) -> LayoutHandle:
        """Replace ``handle`` with a layout in ``mode`` over the same data snapshot.

        Current positions are passed on as hints so the new layout starts where
        the old one left off.
        """
        hints = dict(handle.last.positions) if handle.last is not None else None
        self.cancel(handle)
        return self.start_layout(
            mode,
            handle.nodes,
            handle.links,
            handle.file_paths,
            hints=hints,
            selected_id=handle.selected_id,
        )


def compute_layout(
    mode: str,
    nodes: Iterable[Optional[Entity]],
    links: Iterable[Optional[Relation]],
    file_paths: Optional[Iterable[str]] = None,
    hints: Optional[Mapping[str, Position]] = None,
    selected_id: Optional[str] = None,
    settings: Optional[LayoutSettings] = None,
) -> LayoutResult:
    """One-shot layout to completion, outside any manager."""
    settings = settings or LayoutSettings()
    result = get_strategy(mode, settings).layout(nodes, links, file_paths, hints)
    return apply_selection(result, selected_id, settings)
