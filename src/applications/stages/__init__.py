"""Application stages and the transition engine.

Applications move through Saved → First Email → Responded → Interview and
end in Accepted, Rejected or Withdrawn. Accepted and Rejected are gated
behind an explicit confirmation.
"""

from src.applications.stages.engine import (
    AcceptedChoice,
    Classification,
    ConfirmationKind,
    ConfirmationNotPendingError,
    Decision,
    NoOpDecision,
    PendingConfirmation,
    StageTransitionEngine,
    TransitionIntent,
    TransitionKind,
    classify,
)
from src.applications.stages.models import (
    ACTIVE_STAGES,
    OUTCOME_STAGES,
    Application,
    ApplicationEvent,
    ApplicationStage,
    Opportunity,
    Priority,
    UnknownStageError,
    group_by_stage,
    transition_note,
)

__all__ = [
    # Models
    "ACTIVE_STAGES",
    "OUTCOME_STAGES",
    "Application",
    "ApplicationEvent",
    "ApplicationStage",
    "Opportunity",
    "Priority",
    "UnknownStageError",
    "group_by_stage",
    "transition_note",
    # Engine
    "AcceptedChoice",
    "Classification",
    "ConfirmationKind",
    "ConfirmationNotPendingError",
    "Decision",
    "NoOpDecision",
    "PendingConfirmation",
    "StageTransitionEngine",
    "TransitionIntent",
    "TransitionKind",
    "classify",
]
