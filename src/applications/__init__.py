"""Application stage pipeline for tracked research opportunities.

This package implements the stage board behind the application tracker,
providing:
- Stage state machine with confirmation gates for Accepted and Rejected
- Optimistic local updates with exact rollback against a PostgreSQL store
- Single-slot undo for confirmed rejections
- Drag-and-drop gesture to transition mapping
- Debounced auto-save for notes
- Append-only event history and promotion into research tracking
"""
