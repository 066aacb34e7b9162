"""Undo/Redo system for mindtree."""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from mindtree.models import Document
from mindtree.operations import Operation, execute, revert

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """A recorded operation with the selection around it."""
    operation: Operation
    selection_before: Tuple[str, ...] = ()
    selection_after: Tuple[str, ...] = ()


class HistoryManager:
    """Manages undo/redo history.

    Entries live in a single list. Everything before the cursor has been
    applied; everything from the cursor on can be redone.
    """

    def __init__(self, max_history_size: int = 50, enabled: bool = True):
        self._max_history_size = max_history_size
        self._enabled = enabled
        self._entries: List[HistoryEntry] = []
        self._cursor = 0

        # Callbacks
        self.on_state_changed: Optional[Callable[[], None]] = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool):
        if self._enabled and not value:
            # Edits made while disabled go unrecorded, so older entries stop matching the document.
            self._entries.clear()
            self._cursor = 0
        self._enabled = value
        self._notify_changed()

    @property
    def max_history_size(self) -> int:
        return self._max_history_size

    @max_history_size.setter
    def max_history_size(self, value: int):
        self._max_history_size = value
        self._trim()
        self._notify_changed()

    @property
    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self._enabled and self._cursor > 0

    @property
    def can_redo(self) -> bool:
        """Check if redo is available."""
        return self._enabled and self._cursor < len(self._entries)

    @property
    def undo_count(self) -> int:
        return self._cursor

    @property
    def redo_count(self) -> int:
        return len(self._entries) - self._cursor

    @property
    def undo_description(self) -> str:
        """Get description of next undo action."""
        if self.can_undo:
            return self._entries[self._cursor - 1].operation.description
        return ""

    @property
    def redo_description(self) -> str:
        """Get description of next redo action."""
        if self.can_redo:
            return self._entries[self._cursor].operation.description
        return ""

    def record(self, operation: Operation,
               selection_before: Iterable[str] = (),
               selection_after: Iterable[str] = ()):
        """Record an applied operation, discarding any redo tail."""
        if not self._enabled:
            return

        del self._entries[self._cursor:]
        self._entries.append(HistoryEntry(
            operation=operation,
            selection_before=tuple(selection_before),
            selection_after=tuple(selection_after),
        ))
        self._cursor = len(self._entries)
        logger.debug("Recorded %s", operation.description)
        self._trim()
        self._notify_changed()

    def undo(self, document: Document) -> Optional[Tuple[Document, Tuple[str, ...]]]:
        """Revert the last applied entry.

        Returns the reverted document and the selection to restore, or None
        if there is nothing to undo.
        """
        if not self.can_undo:
            return None

        entry = self._entries[self._cursor - 1]
        reverted = revert(entry.operation, document)
        self._cursor -= 1
        logger.debug("Undid %s", entry.operation.description)
        self._notify_changed()
        return reverted, entry.selection_before

    def redo(self, document: Document) -> Optional[Tuple[Document, Tuple[str, ...]]]:
        """Re-apply the next undone entry."""
        if not self.can_redo:
            return None

        entry = self._entries[self._cursor]
        applied = execute(entry.operation, document)
        self._cursor += 1
        logger.debug("Redid %s", entry.operation.description)
        self._notify_changed()
        return applied, entry.selection_after

    def clear(self):
        """Clear all history."""
        self._entries.clear()
        self._cursor = 0
        self._notify_changed()

    def _trim(self):
        if self._max_history_size <= 0:
            return
        while len(self._entries) > self._max_history_size:
            evicted = self._entries.pop(0)
            self._cursor = max(0, self._cursor - 1)
            logger.debug("Evicted oldest history entry %s", evicted.operation.description)

    def _notify_changed(self):
        """Notify that undo/redo state changed."""
        if self.on_state_changed:
            self.on_state_changed()
