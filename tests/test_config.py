"""Tests for controller configuration."""

import json

from mindtree.config import MindMapConfig


def test_defaults():
    config = MindMapConfig()
    assert config.allow_undo is True
    assert config.max_history_size == 50
    assert config.default_topic == "New Topic"


def test_json_round_trip():
    config = MindMapConfig(allow_undo=False, max_history_size=10, default_topic="Idea")
    assert MindMapConfig.from_json(config.to_json()) == config


def test_unknown_keys_are_dropped():
    data = json.dumps({"max_history_size": 5, "theme": "dark"})
    assert MindMapConfig.from_json(data) == MindMapConfig(max_history_size=5)


def test_bad_input_gives_defaults():
    assert MindMapConfig.from_json(None) == MindMapConfig()
    assert MindMapConfig.from_json("not json") == MindMapConfig()
    assert MindMapConfig.from_json("[1, 2]") == MindMapConfig()


def test_copy_with():
    config = MindMapConfig()
    changed = config.copy_with(allow_undo=False)
    assert changed.allow_undo is False
    assert config.allow_undo is True
