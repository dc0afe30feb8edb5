"""Reading ``{nodes, links}`` graph payloads and narrowing them to a focus."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .errors import GraphFileError
from .graph_index import node_lookup
from .models import Entity, GraphData, Relation

logger = logging.getLogger(__name__)


def parse_graph(payload: Mapping[str, Any]) -> GraphData:
    """Build :class:`GraphData` from a decoded payload.

    Accepts ``links`` or ``edges``, and ``filePaths`` or ``file_paths``.
    Records that cannot be decoded are skipped.
    """
    raw_nodes = payload.get("nodes") or []
    raw_links = payload.get("links", payload.get("edges")) or []
    raw_paths = payload.get("filePaths", payload.get("file_paths")) or []

    nodes: List[Entity] = []
    for record in raw_nodes:
        entity = Entity.from_dict(record) if isinstance(record, Mapping) else None
        if entity is None:
            logger.debug("Skipping node record without id: %r", record)
            continue
        nodes.append(entity)

    links: List[Relation] = []
    for record in raw_links:
        relation = Relation.from_dict(record) if isinstance(record, Mapping) else None
        if relation is None:
            logger.debug("Skipping link record without endpoints: %r", record)
            continue
        links.append(relation)

    paths = [p for p in raw_paths if isinstance(p, str)]
    return GraphData(nodes=nodes, links=links, file_paths=paths)


def load_graph(path: Path) -> GraphData:
    """Read a JSON graph file.

    Raises:
        GraphFileError: the file is missing, unreadable or not a JSON object.
    """
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise GraphFileError(f"Cannot read graph file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise GraphFileError(f"Graph file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise GraphFileError(f"Graph file {path} must contain a JSON object with 'nodes' and 'links'.")
    return parse_graph(payload)


def read_path_list(path: Path) -> List[str]:
    """One file path per line; blank lines and ``#`` comments ignored."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise GraphFileError(f"Cannot read path list {path}: {exc}") from exc
    return [line.strip() for line in text.splitlines() if line.strip() and not line.startswith("#")]


def graph_to_dict(graph: GraphData) -> Dict[str, Any]:
    return {
        "nodes": [
            {
                key: value
                for key, value in {
                    "id": n.id,
                    "name": n.name,
                    "kind": n.kind,
                    "startLine": n.start_line,
                    "endLine": n.end_line,
                }.items()
                if value is not None
            }
            for n in graph.nodes
        ],
        "links": [
            {
                key: value
                for key, value in {
                    "source": link.source_id,
                    "target": link.target_id,
                    "relation": link.relation,
                    "weight": link.weight,
                    "sourceType": link.source_type,
                }.items()
                if value is not None
            }
            for link in graph.links
        ],
        "filePaths": list(graph.file_paths),
    }


def focus_subgraph(graph: GraphData, focus: str) -> GraphData:
    """Entities whose id or name contains ``focus``, plus their one-hop neighbours.

    An empty focus, or one that matches nothing, returns the graph unchanged.
    """
    if not focus:
        return graph

    nodes = node_lookup(graph.nodes)
    focus_ids = {
        node_id
        for node_id, node in nodes.items()
        if focus in node_id or (node.name and focus in node.name)
    }
    if not focus_ids:
        return graph

    link_subset = [
        link
        for link in graph.links
        if (link.source_id in focus_ids or link.target_id in focus_ids)
        and link.source_id in nodes
        and link.target_id in nodes
    ]
    keep = set(focus_ids)
    for link in link_subset:
        keep.add(link.source_id)
        keep.add(link.target_id)
    return GraphData(
        nodes=[node for node_id, node in nodes.items() if node_id in keep],
        links=link_subset,
        file_paths=list(graph.file_paths),
    )
