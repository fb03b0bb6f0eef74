"""Application pipeline models.

This module defines the data models the stage engine operates on:
- ApplicationStage: Enum of the seven pipeline stages
- Priority: Enum of application priorities
- Opportunity: Read-only opportunity data joined onto an application
- Application: A tracked application and its current stage
- ApplicationEvent: Append-only audit record of a committed transition

Models are immutable. Local updates always produce a new value via
``model_copy(update=...)`` so that snapshots taken before an optimistic
patch stay structurally equal to what was on screen.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UnknownStageError(ValueError):
    """Raised when a value does not name one of the seven pipeline stages.

    Attributes:
        value: The rejected value.
    """

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Unknown application stage: {value!r}")


class ApplicationStage(str, Enum):
    """Stages an application moves through.

    The four active stages carry no ordering constraint between them; a card
    may move from SAVED straight to INTERVIEW or back again. ACCEPTED,
    REJECTED and WITHDRAWN are outcomes.

    Values are the names stored remotely and used as drop-target tags.
    """

    SAVED = "Saved"
    FIRST_EMAIL = "First Email"
    RESPONDED = "Responded"
    INTERVIEW = "Interview"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"

    @classmethod
    def parse(cls, value: Any) -> "ApplicationStage":
        """Parse a stage at the boundary.

        Accepts an ApplicationStage, a stored value ("First Email"), the
        compact identifier ("FirstEmail") or the member name ("FIRST_EMAIL").

        Raises:
            UnknownStageError: If the value names no stage.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise UnknownStageError(value)
        try:
            return cls(value)
        except ValueError:
            pass
        compact = value.replace(" ", "").replace("_", "").lower()
        for stage in cls:
            if stage.name.replace("_", "").lower() == compact:
                return stage
        raise UnknownStageError(value)

    @classmethod
    def is_stage(cls, value: Any) -> bool:
        """Return True if ``value`` is exactly a stored stage value."""
        return isinstance(value, str) and value in _STAGE_VALUES

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STAGES

    @property
    def is_outcome(self) -> bool:
        return self in OUTCOME_STAGES


ACTIVE_STAGES = (
    ApplicationStage.SAVED,
    ApplicationStage.FIRST_EMAIL,
    ApplicationStage.RESPONDED,
    ApplicationStage.INTERVIEW,
)

OUTCOME_STAGES = (
    ApplicationStage.ACCEPTED,
    ApplicationStage.REJECTED,
    ApplicationStage.WITHDRAWN,
)

_STAGE_VALUES = frozenset(stage.value for stage in ApplicationStage)


class Priority(str, Enum):
    """Priority of an application. Carried through, never changed here."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Opportunity(BaseModel):
    """Research opportunity an application points at.

    Read-only: supplies title and PI contact for display and for the
    promotion payload.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: Optional[str] = None
    leader_name: Optional[str] = None
    leader_email: Optional[str] = None


class Application(BaseModel):
    """A tracked application and its position in the pipeline.

    Attributes:
        id: Opaque stable identifier.
        opportunity_id: Identifier of the joined opportunity.
        stage: Current pipeline stage.
        priority: Application priority (never mutated by the engine).
        notes: Free-text notes owned by the debounced saver.
        created_at: When the application was first tracked (UTC).
        updated_at: Set by every committed mutation (UTC).
        opportunity: Joined opportunity row, if available.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    opportunity_id: str = Field(..., min_length=1)
    stage: ApplicationStage = ApplicationStage.SAVED
    priority: Priority = Priority.MEDIUM
    notes: Optional[str] = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    opportunity: Optional[Opportunity] = None


class ApplicationEvent(BaseModel):
    """Append-only audit record of one committed stage transition.

    Attributes:
        id: Store-assigned identifier, absent until persisted.
        application_id: The application that moved.
        stage: The stage transitioned into.
        notes: Human readable description, e.g. "Moved to Rejected".
        created_at: When the event was recorded (UTC).
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    application_id: str = Field(..., min_length=1)
    stage: Optional[ApplicationStage] = None
    notes: Optional[str] = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


def transition_note(stage: ApplicationStage) -> str:
    """Event note recorded for a move into ``stage``."""
    return f"Moved to {stage.value}"


def group_by_stage(
    applications: List[Application],
) -> Dict[ApplicationStage, List[Application]]:
    """Group applications into one bucket per stage, preserving order.

    Every stage gets a bucket, empty or not.
    """
    buckets: Dict[ApplicationStage, List[Application]] = {
        stage: [] for stage in ApplicationStage
    }
    for application in applications:
        buckets[application.stage].append(application)
    return buckets
