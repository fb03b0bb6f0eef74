"""Single-slot undo for rejections."""

from src.applications.undo.buffer import (
    DEFAULT_UNDO_WINDOW_SECONDS,
    UndoBuffer,
    UndoEntry,
)

__all__ = ["DEFAULT_UNDO_WINDOW_SECONDS", "UndoBuffer", "UndoEntry"]
