"""Single-slot undo for confirmed rejections.

The buffer holds at most one entry: the most recent committed rejection
and the stage the application was in just before it. Arming again
replaces the entry; there is no undo history.

Entries expire after ``window_seconds``, matching how long the undo action
stays on screen. Expiry is checked lazily against an injectable clock, so
no timer runs in the background.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from src.applications.stages.models import ApplicationStage


logger = logging.getLogger(__name__)

DEFAULT_UNDO_WINDOW_SECONDS = 5.0


@dataclass(frozen=True)
class UndoEntry:
    """A reversible rejection.

    Attributes:
        application_id: The rejected application.
        previous_stage: The stage to restore.
        created_at: When the entry was armed (UTC).
        expires_at: Clock reading after which the entry is gone.
    """

    application_id: str
    previous_stage: ApplicationStage
    expires_at: float
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class UndoBuffer:
    """Holds the latest reversible rejection for a bounded time.

    Example:
        >>> buffer = UndoBuffer(window_seconds=5.0)
        >>> entry = buffer.arm("app-1", ApplicationStage.SAVED)
        >>> buffer.consume().previous_stage
        <ApplicationStage.SAVED: 'Saved'>
        >>> buffer.consume() is None
        True
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_UNDO_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.window_seconds = window_seconds
        self._clock = clock
        self._entry: Optional[UndoEntry] = None

    def arm(self, application_id: str, previous_stage: ApplicationStage) -> UndoEntry:
        """Record a rejection, discarding any earlier entry."""
        if self._entry is not None:
            logger.debug(
                "Replacing armed undo entry",
                extra={"application_id": self._entry.application_id},
            )
        self._entry = UndoEntry(
            application_id=application_id,
            previous_stage=previous_stage,
            expires_at=self._clock() + self.window_seconds,
        )
        return self._entry

    def peek(self) -> Optional[UndoEntry]:
        """Return the live entry without consuming it."""
        entry = self._entry
        if entry is not None and self._clock() >= entry.expires_at:
            self._entry = None
            return None
        return entry

    @property
    def armed(self) -> bool:
        return self.peek() is not None

    def consume(self) -> Optional[UndoEntry]:
        """Take the live entry. Returns None once expired or cleared."""
        entry = self.peek()
        self._entry = None
        return entry

    def clear(self) -> None:
        """Discard the entry (user dismissed the undo action)."""
        self._entry = None

    def discard_for(self, application_id: str) -> bool:
        """Discard the entry if it refers to ``application_id``."""
        if self._entry is not None and self._entry.application_id == application_id:
            self._entry = None
            return True
        return False
