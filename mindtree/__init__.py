"""mindtree: the structural core of a mind-map editor."""

from mindtree.config import MindMapConfig
from mindtree.controller import EditResult, MindMapController
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
from mindtree.models import Arrow, Document, ImageRef, LayoutDirection, NodeStyle, Summary, Tag, TopicNode
from mindtree.undo import HistoryManager

__version__ = "1.0.0"

__all__ = [
    "Arrow",
    "CycleViolation",
    "Document",
    "EditResult",
    "EmptyClipboard",
    "HistoryManager",
    "ImageRef",
    "InvalidArrowId",
    "InvalidNodeId",
    "InvalidRange",
    "InvalidSelection",
    "InvalidSummaryId",
    "LayoutDirection",
    "MindMapConfig",
    "MindMapController",
    "MindMapError",
    "NodeStyle",
    "RootNodeViolation",
    "Summary",
    "Tag",
    "TopicNode",
]
