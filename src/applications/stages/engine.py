"""Stage transition engine.

This module implements the StageTransitionEngine, the pure state-machine
logic deciding how a requested stage change is handled:

- NO_OP: the target is the stage the application is already in
- REQUIRES_CONFIRMATION: the target is ACCEPTED or REJECTED
- IMMEDIATE: everything else, WITHDRAWN included

Confirmation is modelled as state rather than as a dialog. Requesting a
gated transition records a PendingConfirmation in the engine; the caller
resolves it with confirm() or cancel(). Nothing here talks to storage.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Union

from src.applications.stages.models import ApplicationStage


logger = logging.getLogger(__name__)


class TransitionKind(str, Enum):
    """How a requested transition is handled."""

    IMMEDIATE = "immediate"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    NO_OP = "no_op"


class ConfirmationKind(str, Enum):
    """Which gate a transition has to pass."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"


class AcceptedChoice(str, Enum):
    """Caller-resolved branch of the Accepted confirmation.

    Both choices commit the same stage. START_TRACKING additionally hands
    the opportunity to the promotion bridge after the commit.
    """

    MARK_ONLY = "mark_only"
    START_TRACKING = "start_tracking"


_GATED_TARGETS: Dict[ApplicationStage, ConfirmationKind] = {
    ApplicationStage.ACCEPTED: ConfirmationKind.ACCEPTED,
    ApplicationStage.REJECTED: ConfirmationKind.REJECTED,
}


class ConfirmationNotPendingError(Exception):
    """Raised when confirming a transition that was never requested.

    Attributes:
        application_id: The application with no pending confirmation.
    """

    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__(
            f"No confirmation pending for application: {application_id}"
        )


@dataclass(frozen=True)
class Classification:
    """Result of classifying a (current, target) stage pair."""

    kind: TransitionKind
    confirmation: Optional[ConfirmationKind] = None

    @property
    def requires_confirmation(self) -> bool:
        return self.kind == TransitionKind.REQUIRES_CONFIRMATION


@dataclass(frozen=True)
class TransitionIntent:
    """A transition ready to be applied.

    Attributes:
        application_id: The application to move.
        target_stage: The stage to move it into.
    """

    application_id: str
    target_stage: ApplicationStage


@dataclass(frozen=True)
class PendingConfirmation:
    """A gated transition waiting for an explicit second action.

    Attributes:
        application_id: The application the request was made for.
        from_stage: The stage the application was in when requested.
        target_stage: ACCEPTED or REJECTED.
        kind: The confirmation gate.
        requested_at: When the request was recorded (UTC).
    """

    application_id: str
    from_stage: ApplicationStage
    target_stage: ApplicationStage
    kind: ConfirmationKind
    requested_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    def to_intent(self) -> TransitionIntent:
        return TransitionIntent(self.application_id, self.target_stage)


@dataclass(frozen=True)
class NoOpDecision:
    """The request changes nothing."""

    application_id: str
    stage: ApplicationStage


Decision = Union[TransitionIntent, PendingConfirmation, NoOpDecision]


def classify(
    current_stage: ApplicationStage,
    target_stage: ApplicationStage,
) -> Classification:
    """Classify a transition from ``current_stage`` to ``target_stage``.

    Total over the seven stages. No ordering is imposed between active
    stages, so any move that is neither a no-op nor gated is immediate.

    Example:
        >>> classify(ApplicationStage.SAVED, ApplicationStage.INTERVIEW).kind
        <TransitionKind.IMMEDIATE: 'immediate'>
        >>> classify(ApplicationStage.INTERVIEW, ApplicationStage.ACCEPTED).confirmation
        <ConfirmationKind.ACCEPTED: 'accepted'>
    """
    if target_stage == current_stage:
        return Classification(TransitionKind.NO_OP)
    gate = _GATED_TARGETS.get(target_stage)
    if gate is not None:
        return Classification(TransitionKind.REQUIRES_CONFIRMATION, gate)
    return Classification(TransitionKind.IMMEDIATE)


class StageTransitionEngine:
    """State machine for application stage changes.

    The engine keeps at most one PendingConfirmation per application. A new
    request for the same application replaces whatever was pending, which
    mirrors a user changing their mind before confirming.

    Example:
        >>> engine = StageTransitionEngine()
        >>> decision = engine.request("app-1", ApplicationStage.SAVED,
        ...                           ApplicationStage.REJECTED)
        >>> isinstance(decision, PendingConfirmation)
        True
        >>> engine.confirm("app-1").target_stage
        <ApplicationStage.REJECTED: 'Rejected'>
    """

    def __init__(self) -> None:
        self._pending: Dict[str, PendingConfirmation] = {}

    classify = staticmethod(classify)

    def request(
        self,
        application_id: str,
        current_stage: ApplicationStage,
        target_stage: ApplicationStage,
    ) -> Decision:
        """Request a move of ``application_id`` into ``target_stage``.

        Returns:
            NoOpDecision if nothing changes, a TransitionIntent if the move
            is immediate, or the recorded PendingConfirmation if it is gated.
        """
        result = classify(current_stage, target_stage)

        if result.kind == TransitionKind.NO_OP:
            self._pending.pop(application_id, None)
            return NoOpDecision(application_id, current_stage)

        if result.kind == TransitionKind.IMMEDIATE:
            self._pending.pop(application_id, None)
            return TransitionIntent(application_id, target_stage)

        pending = PendingConfirmation(
            application_id=application_id,
            from_stage=current_stage,
            target_stage=target_stage,
            kind=_GATED_TARGETS[target_stage],
        )
        self._pending[application_id] = pending

        logger.debug(
            "Transition awaiting confirmation",
            extra={
                "application_id": application_id,
                "from_stage": current_stage.value,
                "to_stage": target_stage.value,
            },
        )
        return pending

    def pending(self, application_id: str) -> Optional[PendingConfirmation]:
        """Return the pending confirmation for an application, if any."""
        return self._pending.get(application_id)

    def confirm(self, application_id: str) -> PendingConfirmation:
        """Resolve the pending confirmation for ``application_id``.

        The pending entry is removed; the caller commits
        ``pending.to_intent()``.

        Raises:
            ConfirmationNotPendingError: If nothing is pending.
        """
        pending = self._pending.pop(application_id, None)
        if pending is None:
            raise ConfirmationNotPendingError(application_id)
        return pending

    def cancel(self, application_id: str) -> bool:
        """Drop the pending confirmation. Returns True if one existed."""
        return self._pending.pop(application_id, None) is not None

    def forget(self, application_id: str) -> None:
        """Forget any state held for a removed application."""
        self._pending.pop(application_id, None)
