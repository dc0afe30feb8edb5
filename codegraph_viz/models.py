"""Core data models shared by the hierarchy, index, layout and path layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


@dataclass
class Entity:
    id: str
    name: Optional[str] = None
    kind: str = "unknown"
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    x: Optional[float] = None
    y: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Label shown next to the node; falls back to the last id segment."""
        if self.name:
            return self.name
        tail = self.id.rsplit(":", 1)[-1]
        return tail.rsplit("/", 1)[-1] or self.id

    @property
    def file_path(self) -> str:
        return self.id.split(":", 1)[0]

    @property
    def line_count(self) -> Optional[int]:
        explicit = self.metadata.get("line_count")
        if explicit:
            return int(explicit)
        if self.start_line is not None and self.end_line is not None:
            return max(self.end_line - self.start_line + 1, 1)
        return None

    @property
    def hint(self) -> Optional["Position"]:
        if self.x is None or self.y is None:
            return None
        return Position(self.x, self.y)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Optional["Entity"]:
        """Build an entity from a loose record; ``None`` when it has no usable id."""
        node_id = payload.get("id")
        if not isinstance(node_id, str) or not node_id:
            return None
        metadata = payload.get("metadata")
        return cls(
            id=node_id,
            name=payload.get("name") or None,
            kind=payload.get("kind") or payload.get("node_type") or "unknown",
            start_line=_first_int(payload, "startLine", "start_line"),
            end_line=_first_int(payload, "endLine", "end_line"),
            x=_first_float(payload, "x"),
            y=_first_float(payload, "y"),
            metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
        )


@dataclass
class Relation:
    source: Union[str, Entity]
    target: Union[str, Entity]
    relation: str = "contains"
    weight: Optional[float] = None
    source_type: Optional[str] = None

    @property
    def source_id(self) -> str:
        return _endpoint_id(self.source)

    @property
    def target_id(self) -> str:
        return _endpoint_id(self.target)

    @property
    def has_weight(self) -> bool:
        return self.weight is not None

    @property
    def effective_weight(self) -> float:
        # zero counts as absent
        return self.weight or 1

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Optional["Relation"]:
        source = payload.get("source", payload.get("src"))
        target = payload.get("target", payload.get("dst"))
        if isinstance(source, Mapping):
            source = source.get("id")
        if isinstance(target, Mapping):
            target = target.get("id")
        if not isinstance(source, str) or not isinstance(target, str):
            return None
        weight = payload.get("weight")
        return cls(
            source=source,
            target=target,
            relation=payload.get("relation") or payload.get("edge_type") or "contains",
            weight=float(weight) if isinstance(weight, (int, float)) else None,
            source_type=payload.get("sourceType") or payload.get("source_type"),
        )


@dataclass
class GraphData:
    nodes: List[Entity] = field(default_factory=list)
    links: List[Relation] = field(default_factory=list)
    file_paths: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass
class EdgeRoute:
    """Geometry of one drawn edge.

    ``kind`` is ``"line"`` (two points) or ``"cubic"`` (start, two control
    points, end).
    """

    source_id: str
    target_id: str
    kind: str
    points: List[Position]
    relation: Optional[Relation] = None

    def path_data(self) -> str:
        """SVG path ``d`` attribute for this route."""
        start = self.points[0]
        if self.kind == "cubic" and len(self.points) == 4:
            c1, c2, end = self.points[1:]
            return (
                f"M{start.x:.2f},{start.y:.2f}"
                f"C{c1.x:.2f},{c1.y:.2f} {c2.x:.2f},{c2.y:.2f} {end.x:.2f},{end.y:.2f}"
            )
        end = self.points[-1]
        return f"M{start.x:.2f},{start.y:.2f}L{end.x:.2f},{end.y:.2f}"


@dataclass(frozen=True)
class Viewport:
    """Zoom transform: screen = point * scale + (translate_x, translate_y)."""

    translate_x: float
    translate_y: float
    scale: float


@dataclass
class LayoutResult:
    mode: str
    width: float
    height: float
    positions: Dict[str, Position] = field(default_factory=dict)
    edges: List[EdgeRoute] = field(default_factory=list)
    radii: Dict[str, float] = field(default_factory=dict)
    selected_id: Optional[str] = None
    viewport: Optional[Viewport] = None
    tick: int = 0
    settled: bool = True


@dataclass
class PathResult:
    path: List[str]
    nodes: List[Entity]
    links: List[Relation]
    length: float


@dataclass
class SymbolLeaf:
    name: str
    node: Entity


@dataclass
class TreeNode:
    name: str
    path: str
    is_folder: bool
    is_file: bool
    children: Dict[str, "TreeNode"] = field(default_factory=dict)
    symbols: List[SymbolLeaf] = field(default_factory=list)
    entity: Optional[Entity] = None


def _endpoint_id(endpoint: Union[str, Entity]) -> str:
    if isinstance(endpoint, Entity):
        return endpoint.id
    return endpoint


def _first_int(payload: Mapping[str, Any], *keys: str) -> Optional[int]:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(value)
    return None


def _first_float(payload: Mapping[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return None
