"""Debounced persistence for notes fields."""

from src.applications.notes.debounce import (
    PANEL_NOTES_DELAY_SECONDS,
    QUICK_NOTES_DELAY_SECONDS,
    DebouncedFieldSaver,
    SaverClosedError,
)

__all__ = [
    "PANEL_NOTES_DELAY_SECONDS",
    "QUICK_NOTES_DELAY_SECONDS",
    "DebouncedFieldSaver",
    "SaverClosedError",
]
