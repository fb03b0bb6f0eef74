"""Drag-and-drop to transition mapping.

The drag surface tags every draggable card as
``{"type": "application", "application": {...}}`` and every droppable
column with the stage it represents. DragGestureAdapter turns a finished
drop into at most one TransitionIntent and ignores everything else:

- the pointer never moved past the activation distance (a click)
- there is no drop target, or it is not one of the seven stage ids
- the dragged payload is not an application
- the target is the column the card already sits in

Payloads are parsed into the ApplicationDragPayload model; nothing inspects
ad hoc fields on the raw object.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from src.applications.stages.engine import TransitionIntent
from src.applications.stages.models import Application, ApplicationStage


logger = logging.getLogger(__name__)

DEFAULT_ACTIVATION_DISTANCE = 8.0


class ApplicationDragPayload(BaseModel):
    """Tagged drag payload carrying an application.

    Accepts both ``{"kind": "application", "payload": ...}`` and the drag
    surface's ``{"type": "application", "application": ...}``.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["application"] = Field(
        ...,
        validation_alias=AliasChoices("kind", "type"),
    )
    payload: Application = Field(
        ...,
        validation_alias=AliasChoices("payload", "application"),
    )


def parse_drag_payload(raw: Any) -> Optional[ApplicationDragPayload]:
    """Parse a raw drag payload, returning None for anything else."""
    if isinstance(raw, ApplicationDragPayload):
        return raw
    if not isinstance(raw, Mapping):
        return None
    try:
        return ApplicationDragPayload.model_validate(raw)
    except ValidationError:
        return None


class IgnoreReason(str, Enum):
    NOT_ACTIVATED = "not_activated"
    NO_TARGET = "no_target"
    UNKNOWN_TARGET = "unknown_target"
    NOT_AN_APPLICATION = "not_an_application"
    UNKNOWN_APPLICATION = "unknown_application"
    SAME_STAGE = "same_stage"


@dataclass(frozen=True)
class Ignored:
    """A drop that produces no transition."""

    reason: IgnoreReason


DropResult = Union[TransitionIntent, Ignored]


class PointerGesture:
    """Tracks one pointer-down until it is released.

    The gesture becomes a drag only once the pointer has travelled more
    than ``activation_distance`` from where it went down. Until then it is
    a click, and a click opens the card rather than moving it.
    """

    def __init__(
        self,
        origin_x: float,
        origin_y: float,
        activation_distance: float = DEFAULT_ACTIVATION_DISTANCE,
    ):
        self.origin_x = origin_x
        self.origin_y = origin_y
        self.activation_distance = activation_distance
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def move(self, x: float, y: float) -> bool:
        """Record pointer movement. Returns True once the drag is active."""
        if not self._active:
            distance = math.hypot(x - self.origin_x, y - self.origin_y)
            if distance > self.activation_distance:
                self._active = True
        return self._active


class DragGestureAdapter:
    """Converts drops onto stage columns into transition intents.

    Args:
        current_stage_of: Looks up an application's current stage. Defaults
            to the stage carried in the drag payload; the board passes its
            store so a card that moved mid-drag is judged by where it is now.
        activation_distance: Pointer travel, in pixels, before a
            pointer-down counts as a drag.

    Example:
        >>> adapter = DragGestureAdapter()
        >>> adapter.on_drop(
        ...     {"type": "application", "application": card}, "Interview"
        ... )
        TransitionIntent(application_id='app-1', target_stage=<ApplicationStage.INTERVIEW: 'Interview'>)
    """

    def __init__(
        self,
        current_stage_of: Optional[Callable[[str], Optional[ApplicationStage]]] = None,
        activation_distance: float = DEFAULT_ACTIVATION_DISTANCE,
    ):
        if activation_distance < 0:
            raise ValueError("activation_distance cannot be negative")
        self._current_stage_of = current_stage_of
        self.activation_distance = activation_distance

    def begin(self, x: float, y: float) -> PointerGesture:
        """Start tracking a pointer-down at (x, y)."""
        return PointerGesture(x, y, self.activation_distance)

    def on_drop(
        self,
        payload: Any,
        drop_target_id: Optional[str],
        gesture: Optional[PointerGesture] = None,
    ) -> DropResult:
        """Map a finished drop to a TransitionIntent or Ignored.

        Args:
            payload: The dragged object's tag data.
            drop_target_id: The id of the droppable under the pointer.
            gesture: The pointer gesture, when the caller tracks one.
        """
        if gesture is not None and not gesture.active:
            return Ignored(IgnoreReason.NOT_ACTIVATED)

        if drop_target_id is None:
            return Ignored(IgnoreReason.NO_TARGET)

        if not ApplicationStage.is_stage(drop_target_id):
            return Ignored(IgnoreReason.UNKNOWN_TARGET)
        target_stage = ApplicationStage(drop_target_id)

        dragged = parse_drag_payload(payload)
        if dragged is None:
            logger.debug("Ignoring drop of a non-application payload")
            return Ignored(IgnoreReason.NOT_AN_APPLICATION)

        application = dragged.payload
        current_stage: Optional[ApplicationStage] = application.stage
        if self._current_stage_of is not None:
            current_stage = self._current_stage_of(application.id)
            if current_stage is None:
                return Ignored(IgnoreReason.UNKNOWN_APPLICATION)

        if current_stage == target_stage:
            return Ignored(IgnoreReason.SAME_STAGE)

        return TransitionIntent(application.id, target_stage)
