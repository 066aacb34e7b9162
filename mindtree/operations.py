"""Reversible edit operations.

Each operation is a frozen record holding exactly what it needs to be
re-applied or reverted. `execute` and `revert` are the only places that
interpret them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional, Tuple, TypeVar, Union

from mindtree import tree
from mindtree.errors import InvalidNodeId
from mindtree.models import Arrow, Document, NodeStyle, Summary, TopicNode
from mindtree.tree import BatchMovePlan, MovePlan, MoveStep


class ActionType(Enum):
    """Types of undoable actions."""
    NODE_CREATE = "node_create"
    NODE_DELETE = "node_delete"
    NODE_EDIT = "node_edit"
    NODE_EXPAND = "node_expand"
    NODE_MOVE = "node_move"
    NODE_INSERT_PARENT = "node_insert_parent"
    NODE_STYLE = "node_style"
    NODE_FIELDS = "node_fields"
    ARROW_EDIT = "arrow_edit"
    SUMMARY_EDIT = "summary_edit"


def _short(text: str) -> str:
    return f"{text[:20]}..." if len(text) > 20 else text


@dataclass(frozen=True)
class CreateNode:
    """Insert ``node`` under ``parent_id``.

    ``parent_was_collapsed`` marks a parent that this operation expands and
    that has to be collapsed again on undo.
    """
    action_type: ClassVar[ActionType] = ActionType.NODE_CREATE
    parent_id: str
    node: TopicNode
    index: Optional[int] = None
    parent_was_collapsed: bool = False

    @property
    def description(self) -> str:
        return f"Create node '{_short(self.node.topic)}'"


@dataclass(frozen=True)
class DeleteNode:
    action_type: ClassVar[ActionType] = ActionType.NODE_DELETE
    node_id: str
    parent_id: str
    node: TopicNode
    index: int

    @property
    def description(self) -> str:
        return f"Delete node '{_short(self.node.topic)}'"


@dataclass(frozen=True)
class EditTopic:
    action_type: ClassVar[ActionType] = ActionType.NODE_EDIT
    node_id: str
    old_topic: str
    new_topic: str

    @property
    def description(self) -> str:
        return "Edit node text"


@dataclass(frozen=True)
class ToggleExpand:
    action_type: ClassVar[ActionType] = ActionType.NODE_EXPAND
    node_id: str
    old_expanded: bool
    new_expanded: bool

    @property
    def description(self) -> str:
        return "Expand node" if self.new_expanded else "Collapse node"


@dataclass(frozen=True)
class MoveNode:
    action_type: ClassVar[ActionType] = ActionType.NODE_MOVE
    node_id: str
    old_parent_id: str
    old_index: int
    new_parent_id: str
    new_index: int
    target_was_collapsed: bool = False

    @classmethod
    def from_plan(cls, plan: MovePlan) -> "MoveNode":
        return cls(
            node_id=plan.node_id,
            old_parent_id=plan.old_parent_id,
            old_index=plan.old_index,
            new_parent_id=plan.new_parent_id,
            new_index=plan.new_index,
            target_was_collapsed=plan.target_was_collapsed,
        )

    @property
    def plan(self) -> MovePlan:
        return MovePlan(self.node_id, self.old_parent_id, self.old_index,
                        self.new_parent_id, self.new_index, self.target_was_collapsed)

    @property
    def description(self) -> str:
        return "Move node"


@dataclass(frozen=True)
class MoveNodes:
    """A batch move, undone and redone as one step."""
    action_type: ClassVar[ActionType] = ActionType.NODE_MOVE
    new_parent_id: str
    steps: Tuple[MoveStep, ...]
    target_was_collapsed: bool = False

    @classmethod
    def from_plan(cls, plan: BatchMovePlan) -> "MoveNodes":
        return cls(plan.new_parent_id, plan.steps, plan.target_was_collapsed)

    @property
    def plan(self) -> BatchMovePlan:
        return BatchMovePlan(self.new_parent_id, self.steps, self.target_was_collapsed)

    @property
    def description(self) -> str:
        return f"Move {len(self.steps)} nodes"


@dataclass(frozen=True)
class InsertParent:
    action_type: ClassVar[ActionType] = ActionType.NODE_INSERT_PARENT
    node_id: str
    parent_id: str
    index: int
    new_parent: TopicNode

    @property
    def description(self) -> str:
        return "Insert parent node"


@dataclass(frozen=True)
class StyleChange:
    action_type: ClassVar[ActionType] = ActionType.NODE_STYLE
    node_id: str
    old_style: Optional[NodeStyle]
    new_style: Optional[NodeStyle]

    @property
    def description(self) -> str:
        return "Change node style"


@dataclass(frozen=True)
class UpdateFields:
    """Field replacement on one node; ``before`` holds the old values."""
    action_type: ClassVar[ActionType] = ActionType.NODE_FIELDS
    node_id: str
    before: Mapping[str, Any]
    after: Mapping[str, Any]

    @property
    def description(self) -> str:
        return "Update " + ", ".join(sorted(self.after))


@dataclass(frozen=True)
class ArrowEdit:
    """Add (``before`` is None), remove (``after`` is None) or replace an arrow."""
    action_type: ClassVar[ActionType] = ActionType.ARROW_EDIT
    index: int
    before: Optional[Arrow]
    after: Optional[Arrow]

    @property
    def description(self) -> str:
        if self.before is None:
            return "Add arrow"
        return "Remove arrow" if self.after is None else "Update arrow"


@dataclass(frozen=True)
class SummaryEdit:
    """Add (``before`` is None), remove (``after`` is None) or replace a summary."""
    action_type: ClassVar[ActionType] = ActionType.SUMMARY_EDIT
    index: int
    before: Optional[Summary]
    after: Optional[Summary]

    @property
    def description(self) -> str:
        if self.before is None:
            return "Add summary"
        return "Remove summary" if self.after is None else "Update summary"


Operation = Union[
    CreateNode, DeleteNode, EditTopic, ToggleExpand, MoveNode, MoveNodes,
    InsertParent, StyleChange, UpdateFields, ArrowEdit, SummaryEdit,
]

T = TypeVar("T")


def _edit_items(items: Tuple[T, ...], index: int, old: Optional[T], new: Optional[T]) -> Tuple[T, ...]:
    result = list(items)
    if old is None:
        result.insert(index, new)
    elif new is None:
        del result[index]
    else:
        result[index] = new
    return tuple(result)


def _revert_move(root: TopicNode, op: MoveNode) -> TopicNode:
    node = tree.find(root, op.node_id)
    if node is None:
        raise InvalidNodeId(op.node_id)
    updated = tree.remove_node(root, op.node_id)
    updated = tree.insert_child_at(updated, op.old_parent_id, op.old_index, node)
    if op.target_was_collapsed:
        updated = tree.set_expanded(updated, op.new_parent_id, False)
    return updated


def _revert_moves(root: TopicNode, op: MoveNodes) -> TopicNode:
    nodes = {}
    for step in op.steps:
        node = tree.find(root, step.node_id)
        if node is None:
            raise InvalidNodeId(step.node_id)
        nodes[step.node_id] = node

    updated = root
    for step in op.steps:
        updated = tree.remove_node(updated, step.node_id)
    if op.target_was_collapsed:
        updated = tree.set_expanded(updated, op.new_parent_id, False)
    # Ascending original index puts every node back in its own slot.
    for step in sorted(op.steps, key=lambda s: s.old_index):
        updated = tree.insert_child_at(updated, step.old_parent_id, step.old_index, nodes[step.node_id])
    return updated


def execute(op: Operation, document: Document) -> Document:
    """Apply ``op`` to ``document`` and return the new document."""
    root = document.root
    if isinstance(op, CreateNode):
        updated = tree.insert_child_at(root, op.parent_id, op.index, op.node)
        if op.parent_was_collapsed:
            updated = tree.set_expanded(updated, op.parent_id, True)
        return document.copy_with(root=updated)
    if isinstance(op, DeleteNode):
        return document.copy_with(root=tree.remove_node(root, op.node_id))
    if isinstance(op, EditTopic):
        return document.copy_with(root=tree.update_node(root, op.node_id, topic=op.new_topic))
    if isinstance(op, ToggleExpand):
        return document.copy_with(root=tree.set_expanded(root, op.node_id, op.new_expanded))
    if isinstance(op, MoveNode):
        return document.copy_with(root=tree.apply_move(root, op.plan))
    if isinstance(op, MoveNodes):
        return document.copy_with(root=tree.apply_moves(root, op.plan))
    if isinstance(op, InsertParent):
        return document.copy_with(root=tree.insert_parent_node(root, op.node_id, op.new_parent))
    if isinstance(op, StyleChange):
        return document.copy_with(root=tree.update_node(root, op.node_id, style=op.new_style))
    if isinstance(op, UpdateFields):
        return document.copy_with(root=tree.update_node(root, op.node_id, **op.after))
    if isinstance(op, ArrowEdit):
        return document.copy_with(arrows=_edit_items(document.arrows, op.index, op.before, op.after))
    if isinstance(op, SummaryEdit):
        return document.copy_with(summaries=_edit_items(document.summaries, op.index, op.before, op.after))
    raise TypeError(f"Unknown operation: {op!r}")


def revert(op: Operation, document: Document) -> Document:
    """Undo ``op`` on a document it was previously applied to."""
    root = document.root
    if isinstance(op, CreateNode):
        updated = tree.remove_node(root, op.node.id)
        if op.parent_was_collapsed:
            updated = tree.set_expanded(updated, op.parent_id, False)
        return document.copy_with(root=updated)
    if isinstance(op, DeleteNode):
        return document.copy_with(root=tree.insert_child_at(root, op.parent_id, op.index, op.node))
    if isinstance(op, EditTopic):
        return document.copy_with(root=tree.update_node(root, op.node_id, topic=op.old_topic))
    if isinstance(op, ToggleExpand):
        return document.copy_with(root=tree.set_expanded(root, op.node_id, op.old_expanded))
    if isinstance(op, MoveNode):
        return document.copy_with(root=_revert_move(root, op))
    if isinstance(op, MoveNodes):
        return document.copy_with(root=_revert_moves(root, op))
    if isinstance(op, InsertParent):
        inserted = tree.find(root, op.new_parent.id)
        if inserted is None:
            raise InvalidNodeId(op.new_parent.id)
        return document.copy_with(root=tree.replace_child_at(root, op.parent_id, op.index, inserted.children[0]))
    if isinstance(op, StyleChange):
        return document.copy_with(root=tree.update_node(root, op.node_id, style=op.old_style))
    if isinstance(op, UpdateFields):
        return document.copy_with(root=tree.update_node(root, op.node_id, **op.before))
    if isinstance(op, ArrowEdit):
        return document.copy_with(arrows=_edit_items(document.arrows, op.index, op.after, op.before))
    if isinstance(op, SummaryEdit):
        return document.copy_with(summaries=_edit_items(document.summaries, op.index, op.after, op.before))
    raise TypeError(f"Unknown operation: {op!r}")
