"""Board lifecycle events for observability.

These are not the application's audit history (see ApplicationEvent in
stages/models.py). They describe what the engine did locally: commits,
rollbacks, undos, promotions. Emitters route them to logs and metrics.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class BoardEventType(str, Enum):
    """Types of events emitted by the board.

    Attributes:
        TRANSITION_COMMITTED: A stage change was confirmed by the remote store.
        TRANSITION_ROLLED_BACK: A mutation failed and local state was restored.
        NOTES_SAVED: Notes were persisted.
        UNDO_CONSUMED: A rejection was reverted from the undo buffer.
        APPLICATION_PROMOTED: An accepted application was handed to
            research tracking.
        APPLICATION_REMOVED: An application was deleted.
    """

    TRANSITION_COMMITTED = "transition_committed"
    TRANSITION_ROLLED_BACK = "transition_rolled_back"
    NOTES_SAVED = "notes_saved"
    UNDO_CONSUMED = "undo_consumed"
    APPLICATION_PROMOTED = "application_promoted"
    APPLICATION_REMOVED = "application_removed"


class BoardEvent(BaseModel):
    """Structured event emitted by the board.

    Attributes:
        event_type: The category of event.
        application_id: The application concerned.
        timestamp: When the event occurred (UTC timezone).
        details: Additional context specific to the event type.

    Details Field Conventions:
        TRANSITION_COMMITTED: from_stage, to_stage
        TRANSITION_ROLLED_BACK: mutation, error_message, error_type
        UNDO_CONSUMED: restored_stage
        APPLICATION_PROMOTED: opportunity_id
    """

    event_type: BoardEventType = Field(
        ...,
        description="The category of event being emitted",
    )

    application_id: str = Field(
        ...,
        min_length=1,
        description="The application the event concerns",
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC timezone)",
    )

    details: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional context specific to the event type",
    )

    def to_log_dict(self) -> Dict[str, Any]:
        """Flatten the event for structured logging.

        Example:
            >>> event = BoardEvent(
            ...     event_type=BoardEventType.UNDO_CONSUMED,
            ...     application_id="app-1",
            ...     details={"restored_stage": "Saved"},
            ... )
            >>> event.to_log_dict()["restored_stage"]
            'Saved'
        """
        return {
            "event_type": self.event_type.value,
            "application_id": self.application_id,
            "timestamp": self.timestamp.isoformat(),
            **self.details,
        }
