"""Error taxonomy for mindtree.

All of these are recoverable, caller-facing conditions. The tree functions
raise them; `MindMapController` hands them back to the caller as values.
"""

from typing import Any, Dict, Optional


class MindMapError(Exception):
    """Base class for rejected mind-map edits."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidNodeId(MindMapError):
    """A referenced node id is not present in the tree."""

    def __init__(self, node_id: str, message: Optional[str] = None):
        super().__init__(message or f"Invalid node id: {node_id}", {"node_id": node_id})
        self.node_id = node_id


class RootNodeViolation(MindMapError):
    """Attempted to delete, move or reparent the root node."""


class CycleViolation(MindMapError):
    """Move target is the node itself, one of its descendants, or in the moved set."""


class InvalidSelection(MindMapError):
    """Empty or unresolvable selection passed to the common-parent resolver."""


class InvalidRange(MindMapError):
    """Summary bounds fall outside the parent's children or start > end."""


class InvalidArrowId(MindMapError):
    """No arrow with the given id."""


class InvalidSummaryId(MindMapError):
    """No summary with the given id."""


class EmptyClipboard(MindMapError):
    """Paste requested with nothing copied."""
