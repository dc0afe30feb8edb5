"""Degree and undirected adjacency index over a node/link set."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Union

from .models import Entity, Relation

logger = logging.getLogger(__name__)


@dataclass
class ResolvedLink:
    """A relation whose endpoints have been resolved to known entities."""

    source: Entity
    target: Entity
    link: Relation

    @property
    def weight(self) -> float:
        return self.link.effective_weight


@dataclass
class Neighbor:
    neighbor_id: str
    link: Relation
    weight: float


@dataclass
class GraphIndex:
    node_map: Dict[str, Entity] = field(default_factory=dict)
    links: List[ResolvedLink] = field(default_factory=list)
    degree: Dict[str, int] = field(default_factory=dict)
    adjacency: Dict[str, List[Neighbor]] = field(default_factory=dict)

    @property
    def nodes(self) -> List[Entity]:
        return list(self.node_map.values())

    def neighbors(self, node_id: str) -> List[Neighbor]:
        return self.adjacency.get(node_id, [])

    def neighborhood(self, node_id: str) -> Set[str]:
        """The node itself plus every node one hop away in either direction."""
        if node_id not in self.node_map:
            return set()
        related = {node_id}
        related.update(n.neighbor_id for n in self.neighbors(node_id))
        return related


def node_lookup(nodes: Iterable[Optional[Entity]]) -> Dict[str, Entity]:
    """Map id -> entity; records without an id are dropped, first id wins."""
    lookup: Dict[str, Entity] = {}
    for node in nodes or []:
        if node is None or not getattr(node, "id", None):
            continue
        if node.id in lookup:
            logger.debug("Duplicate entity id %r ignored", node.id)
            continue
        lookup[node.id] = node
    return lookup


def resolve_links(
    node_map: Dict[str, Entity],
    links: Iterable[Optional[Relation]],
) -> List[ResolvedLink]:
    """Normalize id-or-entity endpoints to entities; dangling links are dropped."""
    resolved: List[ResolvedLink] = []
    for link in links or []:
        if link is None:
            continue
        source = node_map.get(link.source_id)
        target = node_map.get(link.target_id)
        if source is None or target is None:
            logger.debug("Dropping link %s -> %s with unknown endpoint", link.source_id, link.target_id)
            continue
        resolved.append(ResolvedLink(source=source, target=target, link=link))
    return resolved


def build_index(
    nodes: Union[Iterable[Optional[Entity]], Dict[str, Entity]],
    links: Iterable[Optional[Relation]],
) -> GraphIndex:
    """Build degree counts and a bidirectional adjacency list.

    Every known node gets an entry (degree ``0`` and no neighbours when it has
    no links). Each link increments both endpoints' degree and is listed under
    both endpoints.
    """
    node_map = nodes if isinstance(nodes, dict) else node_lookup(nodes)
    index = GraphIndex(node_map=node_map)
    index.degree = {node_id: 0 for node_id in node_map}
    index.adjacency = {node_id: [] for node_id in node_map}

    index.links = resolve_links(node_map, links)
    for resolved in index.links:
        source_id, target_id = resolved.source.id, resolved.target.id
        index.degree[source_id] += 1
        index.degree[target_id] += 1
        index.adjacency[source_id].append(Neighbor(target_id, resolved.link, resolved.weight))
        index.adjacency[target_id].append(Neighbor(source_id, resolved.link, resolved.weight))

    return index
