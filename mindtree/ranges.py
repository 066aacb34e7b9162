"""Summary range resolution.

A summary brackets a contiguous run of one parent's children. Given an
arbitrary selection, `find_minimum_common_parent` works out which parent
and which run of its children the bracket has to cover.
"""

from typing import Iterable, List, Tuple

from mindtree.errors import InvalidRange, InvalidSelection
from mindtree.models import TopicNode
from mindtree.tree import ancestor_chain, dedupe_preserve_order


def find_minimum_common_parent(root: TopicNode, node_ids: Iterable[str]) -> Tuple[str, int, int]:
    """Return ``(parent_id, start_index, end_index)`` covering the selection.

    The parent is the deepest node that is a strict ancestor of every
    selected node. The range spans from the leftmost to the rightmost
    anchor (the child of that parent leading to a selected node), so
    unselected siblings in between are included.
    """
    ids = dedupe_preserve_order(node_ids)
    if not ids:
        raise InvalidSelection("No nodes selected")

    chains: List[List[Tuple[TopicNode, int]]] = []
    for node_id in ids:
        chain = ancestor_chain(root, node_id)
        if chain is None:
            raise InvalidSelection(f"Node not found: {node_id}", {"node_id": node_id})
        if not chain:
            raise InvalidSelection("The root node cannot be part of a summary", {"node_id": node_id})
        chains.append(chain)

    # Depth of the deepest ancestor shared by every chain.
    depth = 0
    shortest = min(len(chain) for chain in chains)
    while depth < shortest and all(chain[depth][0].id == chains[0][depth][0].id for chain in chains):
        depth += 1
    if depth == 0:
        raise InvalidSelection("Selected nodes have no common parent")

    parent = chains[0][depth - 1][0]
    anchors = [chain[depth - 1][1] for chain in chains]
    return parent.id, min(anchors), max(anchors)


def validate_range(parent: TopicNode, start_index: int, end_index: int) -> None:
    """Reject bounds outside ``parent``'s children or with start > end."""
    if start_index < 0 or end_index >= len(parent.children) or start_index > end_index:
        raise InvalidRange(
            f"Invalid child range [{start_index}, {end_index}] for {parent.id}",
            {"parent_id": parent.id, "start_index": start_index, "end_index": end_index},
        )
