"""Folder -> file -> symbol containment tree built from delimiter-encoded ids.

Entity ids look like ``path/to/file.go:Symbol`` (or a bare path for files and
packages). The part before the first ``:`` is walked segment by segment into a
nested tree; the remainder becomes a symbol leaf on the file node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

from .models import Entity, SymbolLeaf, TreeNode

logger = logging.getLogger(__name__)

DEFAULT_LEAF_WEIGHT = 10.0


def split_entity_id(entity_id: str) -> Tuple[str, str]:
    """Return ``(file_path, symbol)``; ``symbol`` is empty for file-level ids."""
    file_path, _, symbol = entity_id.partition(":")
    return file_path, symbol


def path_segments(path: str) -> List[str]:
    return [part for part in path.split("/") if part]


def build_hierarchy(
    nodes: Iterable[Optional[Entity]],
    explicit_paths: Optional[Iterable[str]] = None,
) -> TreeNode:
    """Build the containment tree.

    Args:
        nodes: Entities to place. Records without an id or without a leading
            file segment are skipped.
        explicit_paths: Authoritative file paths; seeds folders and files even
            when no entity lives there yet.

    Returns:
        The root :class:`TreeNode` (an unnamed folder).
    """
    root = TreeNode(name="", path="", is_folder=True, is_file=False)

    for path in explicit_paths or []:
        if not isinstance(path, str):
            continue
        parts = path_segments(path)
        if parts:
            _walk(root, parts)

    for node in nodes or []:
        if node is None or not getattr(node, "id", None):
            continue
        file_path, symbol = split_entity_id(node.id)
        parts = path_segments(file_path)
        if not parts:
            logger.debug("Skipping entity without file segment: %r", node.id)
            continue
        file_node = _walk(root, parts)
        if not symbol:
            if file_node.entity is None:
                file_node.entity = node
            continue
        if not any(leaf.node.id == node.id for leaf in file_node.symbols):
            file_node.symbols.append(SymbolLeaf(name=symbol, node=node))

    return root


def _walk(root: TreeNode, parts: List[str]) -> TreeNode:
    current = root
    for i, part in enumerate(parts):
        is_last = i == len(parts) - 1
        child = current.children.get(part)
        if child is None:
            child = TreeNode(
                name=part,
                path="/".join(parts[: i + 1]),
                is_folder=not is_last,
                is_file=is_last,
            )
            current.children[part] = child
        current = child
    return current


def iter_tree(root: TreeNode) -> Iterator[Tuple[TreeNode, int]]:
    """Depth-first ``(node, depth)`` pairs, root first at depth 0."""
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        for child in reversed(list(node.children.values())):
            stack.append((child, depth + 1))


# ---------------------------------------------------------------------------
# Layout view of the tree
# ---------------------------------------------------------------------------


@dataclass
class HierarchyItem:
    """One drawable node of the tree projections.

    ``key`` is the entity id for symbol leaves and the slash path for folders
    and files (which equals the entity id for file-level entities).
    """

    key: str
    name: str
    depth: int
    entity: Optional[Entity] = None
    weight: float = 0.0
    parent: Optional["HierarchyItem"] = None
    children: List["HierarchyItem"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def descendants(self) -> Iterator["HierarchyItem"]:
        """Pre-order walk including ``self``."""
        stack = [self]
        while stack:
            item = stack.pop()
            yield item
            stack.extend(reversed(item.children))

    def leaves(self) -> Iterator["HierarchyItem"]:
        return (item for item in self.descendants() if item.is_leaf)


def leaf_weight(entity: Optional[Entity], fallback: float = DEFAULT_LEAF_WEIGHT) -> float:
    if entity is not None and entity.line_count:
        return float(entity.line_count)
    return fallback


def to_layout_tree(
    root: TreeNode,
    fallback_weight: float = DEFAULT_LEAF_WEIGHT,
    sort_by: str = "name",
) -> HierarchyItem:
    """Convert a :class:`TreeNode` into weighted, ordered layout items.

    Leaves carry their line count (or ``fallback_weight``); internal items carry
    the sum of their leaves. ``sort_by`` is ``"name"`` (ascending) or
    ``"weight"`` (descending, ties by name).
    """

    def convert(node: TreeNode, depth: int, parent: Optional[HierarchyItem]) -> HierarchyItem:
        item = HierarchyItem(key=node.path, name=node.name, depth=depth, entity=node.entity, parent=parent)
        for child in node.children.values():
            item.children.append(convert(child, depth + 1, item))
        for leaf in node.symbols:
            item.children.append(
                HierarchyItem(
                    key=leaf.node.id,
                    name=leaf.name,
                    depth=depth + 1,
                    entity=leaf.node,
                    weight=leaf_weight(leaf.node, fallback_weight),
                    parent=item,
                )
            )
        if item.children:
            if sort_by == "weight":
                _sum_weights(item, fallback_weight)
                item.children.sort(key=lambda c: (-c.weight, c.name))
            else:
                item.children.sort(key=lambda c: c.name)
        return item

    top = convert(root, 0, None)
    _sum_weights(top, fallback_weight)
    return top


def _sum_weights(item: HierarchyItem, fallback_weight: float) -> float:
    if item.is_leaf:
        if not item.weight:
            item.weight = leaf_weight(item.entity, fallback_weight)
        return item.weight
    item.weight = sum(_sum_weights(child, fallback_weight) for child in item.children)
    return item.weight


def entity_tree_key(entity: Entity) -> Optional[str]:
    """Key of the layout item that stands for ``entity``; ``None`` if it has no place."""
    file_path, symbol = split_entity_id(entity.id)
    parts = path_segments(file_path)
    if not parts:
        return None
    return entity.id if symbol else "/".join(parts)
