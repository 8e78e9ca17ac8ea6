"""Linear undo/redo history over document commands."""

import logging
from typing import Optional
from pydantic import BaseModel, Field

from .commands import Command
from .slides import Document

logger = logging.getLogger("ManualMCP.core.history")

MAX_HISTORY = 50


def _resolve_focus(document: Document, focus: Optional[str]) -> Optional[str]:
    """Keep ``focus`` if it still names a slide, else fall back to the first slide."""
    if focus is not None and document.slides.get(focus) is not None:
        return focus
    return document.slides.slides[0].id if document.slides.slides else None


class HistoryEntry(BaseModel):
    """A command plus the selection around it, for focus restoration."""
    command: Command
    selection_before: Optional[str] = None
    selection_after: Optional[str] = None


class HistoryStep(BaseModel):
    """Result of an undo or redo: what ran and which slide to focus."""
    command: Command
    focus: Optional[str] = None


class CommandHistory(BaseModel):
    """Undo and redo stacks of applied commands.

    A fresh ``apply`` clears the redo stack. The undo stack keeps at most
    ``max_size`` entries, dropping the oldest first.
    """
    undo_stack: list[HistoryEntry] = Field(default_factory=list)
    redo_stack: list[HistoryEntry] = Field(default_factory=list)
    max_size: int = MAX_HISTORY

    def apply(self, document: Document, command: Command,
              selection_before: Optional[str] = None) -> Optional[str]:
        """Apply ``command`` to ``document`` and record it.

        Returns the slide id the command wants focused, falling back to
        ``selection_before``.
        """
        focus = _resolve_focus(document, command.apply(document) or selection_before)
        self.undo_stack.append(HistoryEntry(
            command=command,
            selection_before=selection_before,
            selection_after=focus,
        ))
        self.redo_stack.clear()
        if len(self.undo_stack) > self.max_size:
            self.undo_stack = self.undo_stack[-self.max_size:]
        logger.debug(f"Applied: {command.description} (undo depth {len(self.undo_stack)})")
        return focus

    def can_undo(self) -> bool:
        return len(self.undo_stack) > 0

    def can_redo(self) -> bool:
        return len(self.redo_stack) > 0

    def undo(self, document: Document) -> Optional[HistoryStep]:
        if not self.undo_stack:
            return None
        entry = self.undo_stack.pop()
        focus = _resolve_focus(document, entry.command.revert(document) or entry.selection_before)
        self.redo_stack.append(entry)
        logger.debug(f"Undone: {entry.command.description}")
        return HistoryStep(command=entry.command, focus=focus)

    def redo(self, document: Document) -> Optional[HistoryStep]:
        if not self.redo_stack:
            return None
        entry = self.redo_stack.pop()
        focus = _resolve_focus(document, entry.command.apply(document) or entry.selection_after)
        self.undo_stack.append(entry)
        logger.debug(f"Redone: {entry.command.description}")
        return HistoryStep(command=entry.command, focus=focus)

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()
