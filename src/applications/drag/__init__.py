"""Drag-and-drop gesture handling for the pipeline board."""

from src.applications.drag.adapter import (
    DEFAULT_ACTIVATION_DISTANCE,
    ApplicationDragPayload,
    DragGestureAdapter,
    DropResult,
    Ignored,
    IgnoreReason,
    PointerGesture,
    parse_drag_payload,
)

__all__ = [
    "DEFAULT_ACTIVATION_DISTANCE",
    "ApplicationDragPayload",
    "DragGestureAdapter",
    "DropResult",
    "IgnoreReason",
    "Ignored",
    "PointerGesture",
    "parse_drag_payload",
]
