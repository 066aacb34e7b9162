"""Tests for MindMapController actions, failures and undo/redo."""

import random

import pytest

from mindtree.config import MindMapConfig
from mindtree.controller import MindMapController
from mindtree.errors import (
    CycleViolation,
    EmptyClipboard,
    InvalidArrowId,
    InvalidNodeId,
    InvalidRange,
    InvalidSelection,
    InvalidSummaryId,
    MindMapError,
    RootNodeViolation,
)
from mindtree.models import Document, LayoutDirection, NodeStyle, Tag
from mindtree.tree import find, iter_preorder


def topics(root, node_id=None):
    target = root if node_id is None else find(root, node_id)
    return [c.topic for c in target.children]


@pytest.fixture
def small(make_node):
    """R with children A and B."""
    return MindMapController(Document(root=make_node("r", make_node("a"), make_node("b"))),
                             rng=random.Random(3))


class TestExamples:

    def test_add_undo_redo(self, small):
        result = small.add_child("r", "New")
        assert isinstance(result, Document)
        assert topics(small.root) == ["A", "B", "New"]
        assert small.can_undo()

        assert small.undo()
        assert topics(small.root) == ["A", "B"]
        assert small.redo()
        assert topics(small.root) == ["A", "B", "New"]

    def test_move_reparent(self, small, ids_of):
        small.move_node("b", "a")
        assert ids_of(small.root) == ["a"]
        assert ids_of(small.root, "a") == ["b"]

        assert small.undo()
        assert ids_of(small.root) == ["a", "b"]
        assert ids_of(small.root, "a") == []


class TestFailures:
    """Rejected actions come back as values and change nothing."""

    def test_remove_root(self, controller):
        before = controller.document
        result = controller.remove_node("r")
        assert isinstance(result, RootNodeViolation)
        assert controller.document is before
        assert not controller.can_undo()

    def test_move_into_descendant(self, controller):
        controller.select(["b"])
        result = controller.move_node("b", "b1x")
        assert isinstance(result, CycleViolation)
        assert controller.selection == ["b"]
        assert controller.history.undo_count == 0

    @pytest.mark.parametrize("action,args,error", [
        ("add_child", ("missing",), InvalidNodeId),
        ("add_sibling", ("r",), InvalidNodeId),
        ("add_parent", ("r",), RootNodeViolation),
        ("move_node", ("r", "a"), RootNodeViolation),
        ("move_nodes", (["a", "b"], "b"), CycleViolation),
        ("edit_topic", ("missing", "x"), InvalidNodeId),
        ("create_summary", ([],), InvalidSelection),
        ("add_summary", ("a", 1, 5), InvalidRange),
        ("remove_arrow", ("missing",), InvalidArrowId),
        ("remove_summary", ("missing",), InvalidSummaryId),
        ("paste_node", ("a",), EmptyClipboard),
    ])
    def test_rejected_actions(self, controller, action, args, error):
        before = controller.document
        result = getattr(controller, action)(*args)
        assert isinstance(result, error)
        assert isinstance(result, MindMapError)
        assert result.message
        assert controller.document is before
        assert controller.history.undo_count == 0

    def test_programming_errors_propagate(self, controller):
        with pytest.raises(ValueError):
            controller.update_node("a", id="other")

    def test_children_override_cannot_duplicate_ids(self, controller):
        before = controller.document
        result = controller.update_node("a", children=(find(controller.root, "b"),))
        assert isinstance(result, InvalidNodeId)
        assert controller.document is before

        ids = [n.id for n in iter_preorder(controller.root)]
        assert len(ids) == len(set(ids))

    def test_children_override_cannot_contain_node(self, controller, make_node):
        result = controller.update_node("a", children=(make_node("n", make_node("a")),))
        assert isinstance(result, CycleViolation)
        assert controller.history.undo_count == 0

    def test_children_override_reusing_own_subtree(self, controller, ids_of):
        controller.update_node("a", children=(find(controller.root, "a2"),))
        assert ids_of(controller.root, "a") == ["a2"]
        controller.undo()
        assert ids_of(controller.root, "a") == ["a1", "a2"]


class TestNodeActions:

    def test_add_child_defaults(self, controller):
        controller.select(["a"])
        controller.add_child("a")
        new = controller.root.children[0].children[-1]
        assert new.topic == "New Topic"
        assert controller.selection == [new.id]

        controller.undo()
        assert controller.selection == ["a"]

    def test_add_child_with_topic_keeps_selection(self, controller):
        controller.select(["c"])
        controller.add_child("a", "Named")
        assert controller.selection == ["c"]

    def test_add_child_expands_collapsed_parent(self, controller):
        controller.collapse_node("a")
        controller.add_child("a", "x")
        assert find(controller.root, "a").expanded
        controller.undo()
        assert not find(controller.root, "a").expanded
        assert topics(controller.root, "a") == ["A1", "A2"]

    def test_root_child_gets_branch_color_and_side(self, controller):
        controller.add_child("r", "x")
        new = controller.root.children[-1]
        assert new.branch_color is not None and new.branch_color.startswith("#")
        assert new.direction == LayoutDirection.LEFT

    def test_child_inherits_resolved_color(self, controller):
        controller.set_branch_color("a", "#112233")
        controller.add_child("a1", "x")
        assert find(controller.root, "a1").children[0].branch_color == "#112233"

    @pytest.mark.parametrize("color", ["red", "#f00", "", "#12345g"])
    def test_root_children_with_odd_colors(self, controller, color):
        controller.set_branch_color("a", color)
        assert isinstance(controller.add_child("r", "y"), Document)
        assert isinstance(controller.add_sibling("b"), Document)
        assert controller.root.children[-1].topic == "y"

    def test_add_sibling_keeps_collapsed_parent(self, controller):
        controller.collapse_node("a")
        controller.add_sibling("a1", "x")
        assert topics(controller.root, "a") == ["A1", "x", "A2"]
        assert not find(controller.root, "a").expanded
        controller.undo()
        assert topics(controller.root, "a") == ["A1", "A2"]

    def test_add_parent(self, controller, ids_of):
        controller.add_parent("b", "Group")
        group = controller.root.children[1]
        assert group.topic == "Group"
        assert ids_of(controller.root, group.id) == ["b"]

        controller.undo()
        assert ids_of(controller.root) == ["a", "b", "c"]
        controller.redo()
        assert ids_of(controller.root) == ["a", group.id, "c"]

    def test_remove_node_prunes_selection(self, controller):
        controller.select(["b1x", "c"])
        controller.remove_node("b")
        assert find(controller.root, "b") is None
        assert controller.selection == ["c"]
        controller.undo()
        assert controller.selection == ["b1x", "c"]
        assert find(controller.root, "b1x") is not None

    def test_edit_topic_unchanged_is_not_recorded(self, controller):
        controller.edit_topic("a", "A")
        assert not controller.can_undo()
        controller.edit_topic("a", "Alpha")
        assert find(controller.root, "a").topic == "Alpha"
        assert controller.history.undo_description == "Edit node text"

    def test_update_node_is_undoable(self, controller):
        controller.update_node("a1", note="remember", hyperlink="https://example.com")
        node = find(controller.root, "a1")
        assert (node.note, node.hyperlink) == ("remember", "https://example.com")
        controller.undo()
        node = find(controller.root, "a1")
        assert (node.note, node.hyperlink) == (None, None)

    def test_update_style_merges(self, controller):
        controller.update_style("a", font_size=20)
        controller.update_style("a", color="#ffffff")
        assert find(controller.root, "a").style == NodeStyle(font_size=20, color="#ffffff")
        controller.undo()
        assert find(controller.root, "a").style == NodeStyle(font_size=20)
        assert isinstance(controller.update_style("missing", color="#000000"), InvalidNodeId)

    def test_tags_and_icons(self, controller):
        controller.add_tag("a", Tag("todo", "#ff0000"))
        controller.add_tag("a", Tag("todo"))
        controller.add_icon("a", "star")
        controller.add_icon("a", "star")
        node = find(controller.root, "a")
        assert node.tags == (Tag("todo", "#ff0000"),)
        assert node.icons == ("star",)
        assert controller.history.undo_count == 2

        controller.remove_tag("a", "todo")
        controller.remove_icon("a", "star")
        node = find(controller.root, "a")
        assert (node.tags, node.icons) == ((), ())

    def test_expand_collapse(self, controller):
        controller.collapse_node("a")
        controller.collapse_node("a")
        assert controller.history.undo_count == 1
        controller.toggle_expanded("a")
        assert find(controller.root, "a").expanded
        controller.expand_node("a")
        assert controller.history.undo_count == 2


class TestMoves:

    def test_batch_move_undoes_in_one_step(self, controller, ids_of):
        controller.move_nodes(["c", "a2", "a1"], "b1x")
        assert ids_of(controller.root, "b1x") == ["a1", "a2", "c"]
        assert controller.history.undo_count == 1

        controller.undo()
        assert ids_of(controller.root) == ["a", "b", "c"]
        assert ids_of(controller.root, "a") == ["a1", "a2"]

    def test_root_only_batch_is_noop(self, controller):
        before = controller.document
        assert controller.move_nodes(["r"], "a") is before
        assert not controller.can_undo()

    def test_move_into_collapsed_target(self, controller):
        controller.collapse_node("b1")
        controller.move_node("a1", "b1")
        assert find(controller.root, "b1").expanded
        controller.undo()
        assert not find(controller.root, "b1").expanded

    def test_move_into_collapsed_leaf(self, controller):
        controller.collapse_node("c")
        controller.move_node("a1", "c")
        assert not find(controller.root, "c").expanded
        controller.undo()
        assert not find(controller.root, "c").expanded
        assert topics(controller.root, "a") == ["A1", "A2"]


class TestClipboard:

    def test_paste_clones_with_fresh_ids(self, controller):
        controller.copy_node("b")
        controller.paste_node("c")
        pasted = find(controller.root, "c").children[0]
        assert pasted.topic == "B"
        assert pasted.id != "b"
        assert pasted.children[0].topic == "B1"
        assert pasted.children[0].children[0].id != "b1x"

        ids = [n.id for n in iter_preorder(controller.root)]
        assert len(ids) == len(set(ids))

    def test_copy_unknown(self, controller):
        assert isinstance(controller.copy_node("missing"), InvalidNodeId)
        assert controller.clipboard is None


class TestArrowsAndSummaries:

    def test_arrow_lifecycle(self, controller):
        controller.add_arrow("a1", "c", label="see")
        arrow = controller.document.arrows[0]
        assert (arrow.from_node_id, arrow.to_node_id, arrow.label) == ("a1", "c", "see")
        assert controller.get_arrow(arrow.id) == arrow

        controller.update_arrow(arrow.id, label="link", bidirectional=True)
        assert controller.get_arrow(arrow.id).bidirectional

        controller.remove_arrow(arrow.id)
        assert controller.document.arrows == ()
        controller.undo()
        assert controller.get_arrow(arrow.id).label == "link"

    def test_arrow_needs_existing_nodes(self, controller):
        assert isinstance(controller.add_arrow("a1", "missing"), InvalidNodeId)
        assert isinstance(controller.update_arrow("missing", label="x"), InvalidArrowId)

    def test_create_summary_uses_common_parent(self, controller):
        controller.create_summary(["a1", "c"])
        summary = controller.document.summaries[0]
        assert (summary.parent_node_id, summary.start_index, summary.end_index) == ("r", 0, 2)
        assert summary.label == "Summary"

    def test_summary_lifecycle(self, controller):
        controller.add_summary("a", 0, 1, label="both")
        summary = controller.document.summaries[0]
        assert isinstance(controller.update_summary(summary.id, end_index=4), InvalidRange)

        controller.update_summary(summary.id, start_index=1)
        assert controller.get_summary(summary.id).start_index == 1
        controller.remove_summary(summary.id)
        assert controller.get_summary(summary.id) is None

        controller.undo()
        controller.undo()
        assert controller.get_summary(summary.id) == summary


class TestHistory:

    def test_full_undo_redo_round_trip(self, controller):
        initial = controller.document
        controller.add_child("r", "X")
        controller.edit_topic("c", "Gamma")
        controller.move_node("c", "a")
        controller.add_parent("b", "Group")
        controller.remove_node("a1")
        controller.toggle_expanded("b1")
        controller.add_arrow("a2", "b1x")
        controller.create_summary(["a2", "c"])
        controller.update_node("b1x", note="deep")
        controller.move_nodes(["a2", "c"], "b1")
        final = controller.document

        while controller.undo():
            pass
        assert controller.document == initial
        assert controller.document.to_dict() == initial.to_dict()

        while controller.redo():
            pass
        assert controller.document == final

    def test_new_action_discards_redo(self, controller):
        controller.edit_topic("a", "One")
        controller.undo()
        controller.edit_topic("a", "Two")
        assert not controller.can_redo()
        assert not controller.redo()

    def test_undo_disabled(self, sample_root):
        controller = MindMapController(Document(root=sample_root),
                                       config=MindMapConfig(allow_undo=False))
        controller.edit_topic("a", "One")
        assert find(controller.root, "a").topic == "One"
        assert not controller.can_undo()
        assert not controller.undo()

    def test_unrecorded_edits_do_not_break_undo(self, controller):
        controller.add_child("a", "x")
        added = find(controller.root, "a").children[-1].id
        controller.update_config(MindMapConfig(allow_undo=False))
        controller.remove_node(added)
        controller.update_config(MindMapConfig(allow_undo=True))

        assert not controller.can_undo()
        assert controller.undo() is False
        assert find(controller.root, added) is None

        controller.edit_topic("a", "Alpha")
        assert controller.undo() is True
        assert find(controller.root, "a").topic == "A"

    def test_stale_history_is_discarded(self, controller):
        controller.add_child("a", "x")
        controller.document = Document(root=controller.root.copy_with(children=()))
        assert controller.undo() is False
        assert not controller.can_undo()

    def test_update_config_resizes_history(self, controller):
        for i in range(5):
            controller.edit_topic("a", f"v{i}")
        controller.update_config(MindMapConfig(max_history_size=2))
        assert controller.history.undo_count == 2

    def test_load_resets(self, controller, sample_root):
        controller.select(["a"])
        controller.edit_topic("a", "One")
        controller.load(Document(root=sample_root))
        assert controller.selection == []
        assert not controller.can_undo()
        assert find(controller.root, "a").topic == "A"

    def test_document_changed_callback(self, controller):
        seen = []
        controller.on_document_changed = seen.append
        controller.edit_topic("a", "One")
        controller.remove_node("r")
        controller.undo()
        assert len(seen) == 2
        assert seen[-1] is controller.document
