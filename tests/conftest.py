"""Shared fixtures for mindtree tests."""

import random

import pytest

from mindtree.controller import MindMapController
from mindtree.models import Document, TopicNode
from mindtree.tree import find


def node(node_id, *children, **fields):
    """Build a node whose topic is its upper-cased id."""
    return TopicNode(id=node_id, topic=node_id.upper(), children=tuple(children), **fields)


@pytest.fixture
def make_node():
    return node


@pytest.fixture
def sample_root():
    """
    r
    ├─ a
    │  ├─ a1
    │  └─ a2
    ├─ b
    │  └─ b1
    │     └─ b1x
    └─ c
    """
    return node(
        "r",
        node("a", node("a1"), node("a2")),
        node("b", node("b1", node("b1x"))),
        node("c"),
    )


@pytest.fixture
def controller(sample_root):
    return MindMapController(Document(root=sample_root), rng=random.Random(7))


def child_ids(root, node_id=None):
    target = root if node_id is None else find(root, node_id)
    return [c.id for c in target.children]


@pytest.fixture
def ids_of():
    return child_ids
