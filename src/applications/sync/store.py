"""Single-owner local collection of applications.

ApplicationStore holds the locally visible applications and the event
lists loaded for them. It is the only mutable shared state in the engine:
the coordinator and the reader write to it, everything else reads through
the projection helpers.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from src.applications.stages.models import (
    Application,
    ApplicationEvent,
    ApplicationStage,
    group_by_stage,
)


@dataclass(frozen=True)
class StoreSnapshot:
    """Immutable copy of the application collection.

    Applications are frozen models, so holding the tuple is enough to
    restore the exact prior state.
    """

    applications: Tuple[Application, ...]
    loaded: bool


class ApplicationStore:
    """Local, mutable collection of applications.

    Order is preserved as loaded (newest first). Patches replace the
    affected Application value in place; they never reorder.
    """

    def __init__(self, applications: Optional[List[Application]] = None):
        self._applications: Tuple[Application, ...] = tuple(applications or ())
        self._loaded = applications is not None
        self._events: Dict[str, Tuple[ApplicationEvent, ...]] = {}

    @property
    def loaded(self) -> bool:
        """True once the collection has been populated at least once."""
        return self._loaded

    @property
    def applications(self) -> Tuple[Application, ...]:
        return self._applications

    def get(self, application_id: str) -> Optional[Application]:
        for application in self._applications:
            if application.id == application_id:
                return application
        return None

    def stage_of(self, application_id: str) -> Optional[ApplicationStage]:
        application = self.get(application_id)
        return application.stage if application is not None else None

    def by_stage(self) -> Dict[ApplicationStage, List[Application]]:
        return group_by_stage(list(self._applications))

    def events_for(self, application_id: str) -> Tuple[ApplicationEvent, ...]:
        return self._events.get(application_id, ())

    # ------------------------------------------------------------------
    # Writes (coordinator and reader only)
    # ------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(self._applications, self._loaded)

    def restore(self, snapshot: StoreSnapshot) -> None:
        self._applications = snapshot.applications
        self._loaded = snapshot.loaded

    def replace(self, applications: List[Application]) -> None:
        self._applications = tuple(applications)
        self._loaded = True
        live = {application.id for application in self._applications}
        for application_id in list(self._events):
            if application_id not in live:
                del self._events[application_id]

    def patch(
        self,
        application_id: str,
        updated_at: datetime,
        **changes: Any,
    ) -> Optional[Application]:
        """Replace one application with a copy carrying ``changes``.

        Returns:
            The patched application, or None if the id is unknown.
        """
        patched: Optional[Application] = None
        applications = []
        for application in self._applications:
            if application.id == application_id:
                patched = application.model_copy(
                    update=dict(changes, updated_at=updated_at),
                )
                applications.append(patched)
            else:
                applications.append(application)
        if patched is not None:
            self._applications = tuple(applications)
        return patched

    def discard(self, application_id: str) -> bool:
        before = len(self._applications)
        self._applications = tuple(
            a for a in self._applications if a.id != application_id
        )
        return len(self._applications) != before

    def set_events(
        self,
        application_id: str,
        events: List[ApplicationEvent],
    ) -> None:
        self._events[application_id] = tuple(events)
