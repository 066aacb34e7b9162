"""High-level editing API for a mind-map document.

`MindMapController` owns the current `Document`, the caller's selection, a
clipboard and the undo history. Every editing action resolves its context
with the tree accessors, builds a reversible operation, applies it and
records it. On success the new document is returned; a rejected action
returns the `MindMapError` describing why and changes nothing.
"""

import functools
import logging
import random
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Tuple, Union

from mindtree import tree
from mindtree.colors import assign_root_child_color, resolve_color
from mindtree.config import MindMapConfig
from mindtree.errors import (
    EmptyClipboard,
    InvalidArrowId,
    InvalidNodeId,
    InvalidSummaryId,
    MindMapError,
    RootNodeViolation,
)
from mindtree.models import (
    Arrow,
    Document,
    ImageRef,
    LayoutDirection,
    NodeStyle,
    Offset,
    Summary,
    Tag,
    TopicNode,
    new_id,
)
from mindtree.operations import (
    ArrowEdit,
    CreateNode,
    DeleteNode,
    EditTopic,
    InsertParent,
    MoveNode,
    MoveNodes,
    Operation,
    StyleChange,
    SummaryEdit,
    ToggleExpand,
    UpdateFields,
    execute,
)
from mindtree.ranges import find_minimum_common_parent, validate_range
from mindtree.undo import HistoryManager

logger = logging.getLogger(__name__)

EditResult = Union[Document, MindMapError]


def _rejects_as_value(method):
    """Return a raised `MindMapError` instead of propagating it."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except MindMapError as exc:
            logger.warning("%s rejected: %s", method.__name__, exc.message)
            return exc
    return wrapper


def _clone_with_new_ids(node: TopicNode) -> TopicNode:
    return replace(node, id=new_id(), children=tuple(_clone_with_new_ids(c) for c in node.children))


class MindMapController:
    """Edits a `Document` and keeps its undo history."""

    def __init__(self, document: Optional[Document] = None,
                 config: Optional[MindMapConfig] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or MindMapConfig()
        self.document = document or Document.empty()
        self.selection: List[str] = []
        self.clipboard: Optional[TopicNode] = None
        self.rng = rng or random.Random()
        self.history = HistoryManager(
            max_history_size=self.config.max_history_size,
            enabled=self.config.allow_undo,
        )

        # Callbacks
        self.on_document_changed: Optional[Callable[[Document], None]] = None

    @property
    def root(self) -> TopicNode:
        return self.document.root

    # ==================== Internals ====================

    def _require(self, node_id: str) -> TopicNode:
        node = tree.find(self.root, node_id)
        if node is None:
            raise InvalidNodeId(node_id)
        return node

    def _require_located(self, node_id: str) -> Tuple[TopicNode, TopicNode, int]:
        """Node plus its parent and index; the root has neither."""
        node = self._require(node_id)
        located = tree.index_in_parent(self.root, node_id)
        if located is None:
            raise InvalidNodeId(node_id, f"Cannot find parent of node {node_id}")
        parent, index = located
        return node, parent, index

    def _apply(self, operation: Operation,
               selection_after: Optional[Iterable[str]] = None) -> Document:
        document = execute(operation, self.document)
        before = list(self.selection)
        after = before if selection_after is None else list(selection_after)
        self.history.record(operation, before, after)
        self.document = document
        self.selection = after
        logger.debug("Applied %s", operation.description)
        self._notify_changed()
        return document

    def _notify_changed(self):
        if self.on_document_changed:
            self.on_document_changed(self.document)

    def _child_direction(self, parent: TopicNode) -> Optional[LayoutDirection]:
        if parent.id != self.root.id or self.document.direction != LayoutDirection.SIDE:
            return parent.direction

        # Put new first-level branches on the lighter side.
        left = right = 0
        for child in parent.children:
            if child.direction == LayoutDirection.LEFT:
                left += 1
            elif child.direction == LayoutDirection.RIGHT:
                right += 1
            elif right <= left:
                right += 1
            else:
                left += 1
        return LayoutDirection.RIGHT if right <= left else LayoutDirection.LEFT

    def _branch_color_under(self, parent_id: str) -> Optional[str]:
        if parent_id == self.root.id:
            return assign_root_child_color(self.root, self.rng)
        return resolve_color(self.root, parent_id)

    # ==================== Node Operations ====================

    @_rejects_as_value
    def add_child(self, parent_id: str, topic: Optional[str] = None) -> EditResult:
        """Append a new child; a collapsed parent is expanded.

        Without a topic the default label is used and the new node becomes
        the selection, ready for editing.
        """
        parent = self._require(parent_id)
        node = TopicNode.create(
            self.config.default_topic if topic is None else topic,
            direction=self._child_direction(parent),
            branch_color=self._branch_color_under(parent_id),
        )
        operation = CreateNode(parent_id=parent_id, node=node,
                               parent_was_collapsed=not parent.expanded)
        return self._apply(operation, selection_after=[node.id] if topic is None else None)

    @_rejects_as_value
    def add_sibling(self, node_id: str, topic: Optional[str] = None) -> EditResult:
        """Insert a new node right after ``node_id``."""
        node, parent, index = self._require_located(node_id)
        sibling = TopicNode.create(
            self.config.default_topic if topic is None else topic,
            direction=node.direction,
            branch_color=(assign_root_child_color(self.root, self.rng)
                          if parent.id == self.root.id else resolve_color(self.root, node_id)),
        )
        operation = CreateNode(parent_id=parent.id, node=sibling, index=index + 1)
        return self._apply(operation, selection_after=[sibling.id] if topic is None else None)

    @_rejects_as_value
    def add_parent(self, node_id: str, topic: Optional[str] = None) -> EditResult:
        """Insert a new node between ``node_id`` and its parent."""
        if node_id == self.root.id:
            raise RootNodeViolation("Cannot insert a parent above the root node", {"node_id": node_id})
        node, parent, index = self._require_located(node_id)
        new_parent = TopicNode.create(
            self.config.default_topic if topic is None else topic,
            children=(node,),
            direction=node.direction,
            branch_color=resolve_color(self.root, node_id),
        )
        operation = InsertParent(node_id=node_id, parent_id=parent.id, index=index, new_parent=new_parent)
        return self._apply(operation, selection_after=[new_parent.id] if topic is None else None)

    @_rejects_as_value
    def remove_node(self, node_id: str) -> EditResult:
        """Delete a node and its whole subtree."""
        if node_id == self.root.id:
            raise RootNodeViolation("Cannot remove the root node", {"node_id": node_id})
        node, parent, index = self._require_located(node_id)
        operation = DeleteNode(node_id=node_id, parent_id=parent.id, node=node, index=index)
        remaining = [i for i in self.selection if not tree.is_descendant(node, i)]
        return self._apply(operation, selection_after=remaining)

    @_rejects_as_value
    def edit_topic(self, node_id: str, topic: str) -> EditResult:
        node = self._require(node_id)
        if node.topic == topic:
            return self.document
        return self._apply(EditTopic(node_id=node_id, old_topic=node.topic, new_topic=topic))

    @_rejects_as_value
    def update_node(self, node_id: str, **fields) -> EditResult:
        """Replace arbitrary fields of a node; ``children`` overrides the subtree."""
        node = self._require(node_id)
        if fields.get("id", node_id) != node_id:
            raise ValueError("Node ids are immutable")
        fields.pop("id", None)
        if "children" in fields:
            fields["children"] = tuple(fields["children"])
        before = {name: getattr(node, name) for name in fields}
        if before == fields:
            return self.document
        return self._apply(UpdateFields(node_id=node_id, before=before, after=dict(fields)))

    @_rejects_as_value
    def set_style(self, node_id: str, style: Optional[NodeStyle]) -> EditResult:
        node = self._require(node_id)
        if node.style == style:
            return self.document
        return self._apply(StyleChange(node_id=node_id, old_style=node.style, new_style=style))

    def update_style(self, node_id: str, **changes) -> EditResult:
        """Merge ``changes`` (font_size, color, ...) into the node's style."""
        node = tree.find(self.root, node_id)
        if node is None:
            return InvalidNodeId(node_id)
        return self.set_style(node_id, replace(node.style or NodeStyle(), **changes))

    def set_branch_color(self, node_id: str, color: Optional[str]) -> EditResult:
        return self.update_node(node_id, branch_color=color)

    def set_direction(self, node_id: str, direction: Optional[LayoutDirection]) -> EditResult:
        return self.update_node(node_id, direction=direction)

    def set_hyperlink(self, node_id: str, hyperlink: Optional[str]) -> EditResult:
        return self.update_node(node_id, hyperlink=hyperlink)

    def set_note(self, node_id: str, note: Optional[str]) -> EditResult:
        return self.update_node(node_id, note=note)

    @_rejects_as_value
    def add_tag(self, node_id: str, tag: Tag) -> EditResult:
        """Attach a tag unless one with the same text is already there."""
        node = self._require(node_id)
        if any(t.text == tag.text for t in node.tags):
            return self.document
        return self.update_node(node_id, tags=node.tags + (tag,))

    @_rejects_as_value
    def remove_tag(self, node_id: str, text: str) -> EditResult:
        node = self._require(node_id)
        return self.update_node(node_id, tags=tuple(t for t in node.tags if t.text != text))

    @_rejects_as_value
    def add_icon(self, node_id: str, icon: str) -> EditResult:
        node = self._require(node_id)
        if icon in node.icons:
            return self.document
        return self.update_node(node_id, icons=node.icons + (icon,))

    @_rejects_as_value
    def remove_icon(self, node_id: str, icon: str) -> EditResult:
        node = self._require(node_id)
        return self.update_node(node_id, icons=tuple(i for i in node.icons if i != icon))

    @_rejects_as_value
    def add_image(self, node_id: str, image: ImageRef) -> EditResult:
        node = self._require(node_id)
        return self.update_node(node_id, images=node.images + (image,))

    def clear_images(self, node_id: str) -> EditResult:
        return self.update_node(node_id, images=())

    # ==================== Expand / Collapse ====================

    @_rejects_as_value
    def toggle_expanded(self, node_id: str) -> EditResult:
        node = self._require(node_id)
        return self._apply(ToggleExpand(node_id=node_id, old_expanded=node.expanded,
                                        new_expanded=not node.expanded))

    @_rejects_as_value
    def expand_node(self, node_id: str) -> EditResult:
        node = self._require(node_id)
        if node.expanded:
            return self.document
        return self._apply(ToggleExpand(node_id=node_id, old_expanded=False, new_expanded=True))

    @_rejects_as_value
    def collapse_node(self, node_id: str) -> EditResult:
        node = self._require(node_id)
        if not node.expanded:
            return self.document
        return self._apply(ToggleExpand(node_id=node_id, old_expanded=True, new_expanded=False))

    # ==================== Move Node ====================

    @_rejects_as_value
    def move_node(self, node_id: str, new_parent_id: str, index: Optional[int] = None) -> EditResult:
        """Reparent or reorder one node.

        ``index`` is a position in the target's current children; when
        reordering downwards it is shifted to account for the node leaving
        its old slot. Without an index the node goes last.
        """
        plan = tree.plan_move(self.root, node_id, new_parent_id, index)
        return self._apply(MoveNode.from_plan(plan))

    @_rejects_as_value
    def move_nodes(self, node_ids: Iterable[str], new_parent_id: str,
                   index: Optional[int] = None) -> EditResult:
        """Move several nodes at once, keeping their current visual order."""
        plan = tree.plan_moves(self.root, node_ids, new_parent_id, index)
        if not plan.steps:
            return self.document
        return self._apply(MoveNodes.from_plan(plan))

    # ==================== Copy/Paste ====================

    @_rejects_as_value
    def copy_node(self, node_id: str) -> Union[TopicNode, MindMapError]:
        """Copy a node and its subtree to the clipboard."""
        self.clipboard = self._require(node_id)
        return self.clipboard

    @_rejects_as_value
    def paste_node(self, parent_id: str) -> EditResult:
        """Paste the clipboard under ``parent_id`` with fresh ids throughout."""
        if self.clipboard is None:
            raise EmptyClipboard("Nothing to paste")
        parent = self._require(parent_id)
        pasted = _clone_with_new_ids(self.clipboard)
        return self._apply(CreateNode(parent_id=parent_id, node=pasted,
                                      parent_was_collapsed=not parent.expanded))

    # ==================== Arrows ====================

    def get_arrow(self, arrow_id: str) -> Optional[Arrow]:
        for arrow in self.document.arrows:
            if arrow.id == arrow_id:
                return arrow
        return None

    def _arrow_index(self, arrow_id: str) -> int:
        for index, arrow in enumerate(self.document.arrows):
            if arrow.id == arrow_id:
                return index
        raise InvalidArrowId(f"Arrow not found: {arrow_id}", {"arrow_id": arrow_id})

    @_rejects_as_value
    def add_arrow(self, from_node_id: str, to_node_id: str, label: Optional[str] = None,
                  bidirectional: bool = False,
                  control_offsets: Optional[Tuple[Offset, Offset]] = None) -> EditResult:
        self._require(from_node_id)
        self._require(to_node_id)
        arrow = Arrow.create(from_node_id, to_node_id, label=label, bidirectional=bidirectional,
                             control_offsets=control_offsets or ((0.0, 0.0), (0.0, 0.0)))
        return self._apply(ArrowEdit(index=len(self.document.arrows), before=None, after=arrow))

    @_rejects_as_value
    def remove_arrow(self, arrow_id: str) -> EditResult:
        index = self._arrow_index(arrow_id)
        return self._apply(ArrowEdit(index=index, before=self.document.arrows[index], after=None))

    @_rejects_as_value
    def update_arrow(self, arrow_id: str, **changes) -> EditResult:
        index = self._arrow_index(arrow_id)
        if changes.get("id", arrow_id) != arrow_id:
            raise ValueError("Arrow ids are immutable")
        for key in ("from_node_id", "to_node_id"):
            if key in changes:
                self._require(changes[key])
        old = self.document.arrows[index]
        return self._apply(ArrowEdit(index=index, before=old, after=replace(old, **changes)))

    # ==================== Summaries ====================

    def get_summary(self, summary_id: str) -> Optional[Summary]:
        for summary in self.document.summaries:
            if summary.id == summary_id:
                return summary
        return None

    def _summary_index(self, summary_id: str) -> int:
        for index, summary in enumerate(self.document.summaries):
            if summary.id == summary_id:
                return index
        raise InvalidSummaryId(f"Summary not found: {summary_id}", {"summary_id": summary_id})

    @_rejects_as_value
    def add_summary(self, parent_id: str, start_index: int, end_index: int,
                    label: Optional[str] = None, style: Optional[dict] = None) -> EditResult:
        validate_range(self._require(parent_id), start_index, end_index)
        summary = Summary.create(parent_id, start_index, end_index, label=label, style=style)
        return self._apply(SummaryEdit(index=len(self.document.summaries), before=None, after=summary))

    @_rejects_as_value
    def create_summary(self, node_ids: Iterable[str], label: Optional[str] = None) -> EditResult:
        """Bracket the selected nodes under their minimum common parent."""
        parent_id, start_index, end_index = find_minimum_common_parent(self.root, node_ids)
        summary = Summary.create(
            parent_id, start_index, end_index,
            label=self.config.default_summary_label if label is None else label,
        )
        return self._apply(SummaryEdit(index=len(self.document.summaries), before=None, after=summary))

    @_rejects_as_value
    def remove_summary(self, summary_id: str) -> EditResult:
        index = self._summary_index(summary_id)
        return self._apply(SummaryEdit(index=index, before=self.document.summaries[index], after=None))

    @_rejects_as_value
    def update_summary(self, summary_id: str, **changes) -> EditResult:
        index = self._summary_index(summary_id)
        if changes.get("id", summary_id) != summary_id:
            raise ValueError("Summary ids are immutable")
        old = self.document.summaries[index]
        new = replace(old, **changes)
        if {"parent_node_id", "start_index", "end_index"} & changes.keys():
            validate_range(self._require(new.parent_node_id), new.start_index, new.end_index)
        return self._apply(SummaryEdit(index=index, before=old, after=new))

    # ==================== Undo/Redo ====================

    def undo(self) -> bool:
        """Undo the last action. Returns False if there was nothing to undo."""
        return self._step(self.history.undo)

    def redo(self) -> bool:
        """Redo the last undone action. Returns False if there was nothing to redo."""
        return self._step(self.history.redo)

    def _step(self, move: Callable[[Document], Optional[Tuple[Document, Tuple[str, ...]]]]) -> bool:
        try:
            result = move(self.document)
        except MindMapError as exc:
            # The entry no longer matches the document, e.g. after it was replaced directly.
            logger.warning("Discarding history that no longer applies: %s", exc.message)
            self.history.clear()
            return False
        if result is None:
            return False
        self.document, selection = result
        self.selection = list(selection)
        self._notify_changed()
        return True

    def can_undo(self) -> bool:
        return self.history.can_undo

    def can_redo(self) -> bool:
        return self.history.can_redo

    # ==================== State ====================

    def select(self, node_ids: Iterable[str]):
        """Set the selection that history entries snapshot."""
        self.selection = tree.dedupe_preserve_order(node_ids)

    def update_config(self, config: MindMapConfig):
        """Apply new options; turning undo off drops the existing history."""
        self.config = config
        self.history.enabled = config.allow_undo
        self.history.max_history_size = config.max_history_size

    def load(self, document: Document):
        """Replace the document; selection, clipboard and history start over."""
        self.document = document
        self.selection = []
        self.clipboard = None
        self.history.clear()
        self._notify_changed()
