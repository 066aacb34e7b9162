"""Tree accessors and structural edits.

Every edit takes a root and returns a new root; the input is never changed.
Only the spine from the edited node up to the root is rebuilt, every other
subtree is reused as-is. Parentage is always derived by traversal.
"""

from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from mindtree.errors import CycleViolation, InvalidNodeId, RootNodeViolation
from mindtree.models import TopicNode


# ==================== Accessors ====================

def iter_preorder(root: TopicNode) -> Iterator[TopicNode]:
    """Yield nodes root-first, then children left to right."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find(root: TopicNode, node_id: str) -> Optional[TopicNode]:
    """Depth-first search; the first match wins."""
    for node in iter_preorder(root):
        if node.id == node_id:
            return node
    return None


def path_to(root: TopicNode, node_id: str) -> Optional[List[int]]:
    """Child-index path from the root to ``node_id`` (empty for the root)."""
    stack: List[Tuple[TopicNode, List[int]]] = [(root, [])]
    while stack:
        node, path = stack.pop()
        if node.id == node_id:
            return path
        for i in range(len(node.children) - 1, -1, -1):
            stack.append((node.children[i], path + [i]))
    return None


def ancestor_chain(root: TopicNode, node_id: str) -> Optional[List[Tuple[TopicNode, int]]]:
    """Ancestors of ``node_id`` from the root down, each paired with the
    index of the next step on the path.

    Returns an empty list for the root and None for an absent id.
    """
    path = path_to(root, node_id)
    if path is None:
        return None
    chain = []
    node = root
    for index in path:
        chain.append((node, index))
        node = node.children[index]
    return chain


def index_in_parent(root: TopicNode, node_id: str) -> Optional[Tuple[TopicNode, int]]:
    chain = ancestor_chain(root, node_id)
    if not chain:
        return None
    return chain[-1]


def find_parent(root: TopicNode, node_id: str) -> Optional[TopicNode]:
    """Node whose children contain ``node_id``; None for the root or an absent id."""
    located = index_in_parent(root, node_id)
    return located[0] if located else None


def is_descendant(ancestor: TopicNode, node_id: str) -> bool:
    """True if ``node_id`` is ``ancestor`` itself or anywhere below it."""
    return any(node.id == node_id for node in iter_preorder(ancestor))


def build_preorder_index(root: TopicNode) -> Dict[str, int]:
    """Map every id to its preorder rank."""
    order: Dict[str, int] = {}
    for rank, node in enumerate(iter_preorder(root)):
        order.setdefault(node.id, rank)
    return order


def dedupe_preserve_order(ids: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for node_id in ids:
        if node_id not in seen:
            seen.add(node_id)
            result.append(node_id)
    return result


# ==================== Spine rebuild ====================

def _require_path(root: TopicNode, node_id: str) -> List[int]:
    path = path_to(root, node_id)
    if path is None:
        raise InvalidNodeId(node_id)
    return path


def _rebuild(root: TopicNode, path: List[int],
             transform: Callable[[TopicNode], TopicNode]) -> TopicNode:
    """Apply ``transform`` to the node at ``path`` and rebuild its ancestors."""
    spine = [root]
    for index in path:
        spine.append(spine[-1].children[index])

    node = transform(spine[-1])
    for depth in range(len(path) - 1, -1, -1):
        parent = spine[depth]
        index = path[depth]
        node = replace(parent, children=parent.children[:index] + (node,) + parent.children[index + 1:])
    return node


def _insert(parent: TopicNode, node: TopicNode, index: Optional[int]) -> TopicNode:
    children = list(parent.children)
    if index is None or not 0 <= index <= len(children):
        children.append(node)
    else:
        children.insert(index, node)
    return replace(parent, children=tuple(children))


# ==================== Mutations ====================

def add_child(root: TopicNode, parent_id: str, node: TopicNode,
              index: Optional[int] = None) -> TopicNode:
    """Append ``node`` under ``parent_id`` (or insert at ``index``).

    A collapsed parent is expanded.
    """
    path = _require_path(root, parent_id)
    return _rebuild(root, path, lambda p: replace(_insert(p, node, index), expanded=True))


def insert_child_at(root: TopicNode, parent_id: str, index: Optional[int],
                    node: TopicNode) -> TopicNode:
    """Insert without touching the parent's expanded flag."""
    path = _require_path(root, parent_id)
    return _rebuild(root, path, lambda p: _insert(p, node, index))


def add_sibling(root: TopicNode, node_id: str, node: TopicNode) -> TopicNode:
    """Insert ``node`` directly after ``node_id`` in its parent's children."""
    path = _require_path(root, node_id)
    if not path:
        raise InvalidNodeId(node_id, "The root node has no parent to add a sibling to")
    index = path[-1]
    return _rebuild(root, path[:-1], lambda p: _insert(p, node, index + 1))


def remove_node(root: TopicNode, node_id: str) -> TopicNode:
    """Detach ``node_id`` and its whole subtree."""
    if node_id == root.id:
        raise RootNodeViolation("Cannot remove the root node", {"node_id": node_id})
    path = _require_path(root, node_id)
    index = path[-1]
    return _rebuild(
        root, path[:-1],
        lambda p: replace(p, children=p.children[:index] + p.children[index + 1:]),
    )


def _check_replacement_children(root: TopicNode, target: TopicNode,
                                children: Iterable[TopicNode]) -> None:
    """Replacement children may reuse ids from ``target``'s own subtree only."""
    own = {node.id for node in iter_preorder(target)}
    elsewhere = {node.id for node in iter_preorder(root)} - own
    seen = set()
    for child in children:
        for node in iter_preorder(child):
            if node.id == target.id:
                raise CycleViolation("A node cannot contain itself", {"node_id": target.id})
            if node.id in elsewhere or node.id in seen:
                raise InvalidNodeId(node.id, f"Node id already in the tree: {node.id}")
            seen.add(node.id)


def update_node(root: TopicNode, node_id: str, **fields) -> TopicNode:
    """Replace fields of ``node_id``; a supplied ``children`` overrides the old list.

    Replacement children must not repeat ids found elsewhere in the tree.
    """
    if fields.get("id", node_id) != node_id:
        raise ValueError("Node ids are immutable")
    path = _require_path(root, node_id)
    if "children" in fields:
        fields["children"] = tuple(fields["children"])
        target = root
        for index in path:
            target = target.children[index]
        _check_replacement_children(root, target, fields["children"])
    return _rebuild(root, path, lambda n: n.copy_with(**fields))


def set_expanded(root: TopicNode, node_id: str, expanded: bool) -> TopicNode:
    path = _require_path(root, node_id)
    return _rebuild(root, path, lambda n: replace(n, expanded=expanded))


def toggle_expanded(root: TopicNode, node_id: str) -> TopicNode:
    path = _require_path(root, node_id)
    return _rebuild(root, path, lambda n: replace(n, expanded=not n.expanded))


def replace_child_at(root: TopicNode, parent_id: str, index: int,
                     replacement: TopicNode) -> TopicNode:
    path = _require_path(root, parent_id)

    def swap(parent: TopicNode) -> TopicNode:
        if not 0 <= index < len(parent.children):
            raise IndexError(f"No child at index {index} of {parent_id}")
        return replace(parent, children=parent.children[:index] + (replacement,) + parent.children[index + 1:])

    return _rebuild(root, path, swap)


def insert_parent_node(root: TopicNode, node_id: str, new_parent: TopicNode) -> TopicNode:
    """Put ``new_parent`` into the slot currently held by ``node_id``.

    ``new_parent`` must already hold the current ``node_id`` subtree as its
    only child.
    """
    if node_id == root.id:
        raise RootNodeViolation("Cannot insert a parent above the root node", {"node_id": node_id})
    path = _require_path(root, node_id)
    if len(new_parent.children) != 1 or new_parent.children[0].id != node_id:
        raise ValueError("new_parent must have the reparented node as its only child")
    parent = ancestor_chain(root, node_id)[-1][0]
    return replace_child_at(root, parent.id, path[-1], new_parent)


# ==================== Moves ====================

@dataclass(frozen=True)
class MovePlan:
    """Resolved context of a single move, captured before it happens."""
    node_id: str
    old_parent_id: str
    old_index: int
    new_parent_id: str
    new_index: int
    target_was_collapsed: bool

    @property
    def is_reorder(self) -> bool:
        return self.old_parent_id == self.new_parent_id


@dataclass(frozen=True)
class MoveStep:
    node_id: str
    old_parent_id: str
    old_index: int
    new_index: int


@dataclass(frozen=True)
class BatchMovePlan:
    """Resolved context of a multi-node move; steps are in preorder."""
    new_parent_id: str
    steps: Tuple[MoveStep, ...]
    target_was_collapsed: bool

    @property
    def node_ids(self) -> List[str]:
        return [step.node_id for step in self.steps]


def _hides_children(node: TopicNode) -> bool:
    """A move target is expanded only when it is collapsed over existing children."""
    return not node.expanded and bool(node.children)


def plan_move(root: TopicNode, node_id: str, new_parent_id: str,
              index: Optional[int] = None) -> MovePlan:
    """Validate a move and compute its effective insertion index."""
    if node_id == root.id:
        raise RootNodeViolation("Cannot move the root node", {"node_id": node_id})
    if node_id == new_parent_id:
        raise CycleViolation("Cannot move a node into itself", {"node_id": node_id})

    node = find(root, node_id)
    if node is None:
        raise InvalidNodeId(node_id)
    new_parent = find(root, new_parent_id)
    if new_parent is None:
        raise InvalidNodeId(new_parent_id)
    if is_descendant(node, new_parent_id):
        raise CycleViolation(
            "Cannot move a node into its own descendant",
            {"node_id": node_id, "new_parent_id": new_parent_id},
        )

    old_parent, old_index = index_in_parent(root, node_id)
    is_reorder = old_parent.id == new_parent_id
    # Length of the target's children once the node has been taken out.
    remaining = len(new_parent.children) - (1 if is_reorder else 0)

    if index is None:
        new_index = remaining
    else:
        new_index = index - 1 if is_reorder and index > old_index else index
        if not 0 <= new_index <= remaining:
            new_index = remaining

    return MovePlan(
        node_id=node_id,
        old_parent_id=old_parent.id,
        old_index=old_index,
        new_parent_id=new_parent_id,
        new_index=new_index,
        target_was_collapsed=_hides_children(new_parent),
    )


def apply_move(root: TopicNode, plan: MovePlan) -> TopicNode:
    node = find(root, plan.node_id)
    if node is None:
        raise InvalidNodeId(plan.node_id)
    updated = remove_node(root, plan.node_id)
    if plan.target_was_collapsed:
        updated = set_expanded(updated, plan.new_parent_id, True)
    return insert_child_at(updated, plan.new_parent_id, plan.new_index, node)


def move_node(root: TopicNode, node_id: str, new_parent_id: str,
              index: Optional[int] = None) -> TopicNode:
    return apply_move(root, plan_move(root, node_id, new_parent_id, index))


def plan_moves(root: TopicNode, node_ids: Iterable[str], new_parent_id: str,
               index: Optional[int] = None) -> BatchMovePlan:
    """Validate a batch move.

    Ids are de-duplicated (first occurrence wins) and the root is dropped.
    Nodes whose ancestor is also being moved travel with that ancestor and
    get no step of their own. The rest are processed in preorder so siblings
    keep their visual order whatever the selection order was.
    """
    candidates = [i for i in dedupe_preserve_order(node_ids) if i != root.id]
    if not candidates:
        return BatchMovePlan(new_parent_id, (), False)
    if new_parent_id in candidates:
        raise CycleViolation(
            "Cannot move nodes into the set being moved",
            {"new_parent_id": new_parent_id},
        )

    new_parent = find(root, new_parent_id)
    if new_parent is None:
        raise InvalidNodeId(new_parent_id)

    chains = {}
    for node_id in candidates:
        node = find(root, node_id)
        if node is None:
            raise InvalidNodeId(node_id)
        if is_descendant(node, new_parent_id):
            raise CycleViolation(
                "Cannot move a node into its own descendant",
                {"node_id": node_id, "new_parent_id": new_parent_id},
            )
        chains[node_id] = ancestor_chain(root, node_id)

    moving = set(candidates)
    kept = [
        node_id for node_id in candidates
        if not any(ancestor.id in moving for ancestor, _ in chains[node_id])
    ]
    order = build_preorder_index(root)
    kept.sort(key=order.__getitem__)

    located = []
    for node_id in kept:
        parent, old_index = chains[node_id][-1]
        located.append((node_id, parent.id, old_index))

    remaining = len(new_parent.children) - sum(1 for _, p, _ in located if p == new_parent_id)
    if index is None:
        start = remaining
    else:
        removed_before = sum(1 for _, p, i in located if p == new_parent_id and i < index)
        start = max(0, min(index - removed_before, remaining))

    steps = tuple(
        MoveStep(node_id=node_id, old_parent_id=parent_id, old_index=old_index, new_index=start + offset)
        for offset, (node_id, parent_id, old_index) in enumerate(located)
    )
    return BatchMovePlan(new_parent_id, steps, _hides_children(new_parent))


def apply_moves(root: TopicNode, plan: BatchMovePlan) -> TopicNode:
    if not plan.steps:
        return root
    nodes = []
    for step in plan.steps:
        node = find(root, step.node_id)
        if node is None:
            raise InvalidNodeId(step.node_id)
        nodes.append(node)

    updated = root
    for step in plan.steps:
        updated = remove_node(updated, step.node_id)
    if plan.target_was_collapsed:
        updated = set_expanded(updated, plan.new_parent_id, True)
    for step, node in zip(plan.steps, nodes):
        updated = insert_child_at(updated, plan.new_parent_id, step.new_index, node)
    return updated


def move_nodes(root: TopicNode, node_ids: Iterable[str], new_parent_id: str,
               index: Optional[int] = None) -> TopicNode:
    return apply_moves(root, plan_moves(root, node_ids, new_parent_id, index))
