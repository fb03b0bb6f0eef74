"""Client for the application event log.

The event log is append-only from the engine's side: ``append`` is the only
write it performs, and nothing here updates or removes an event. Stage
changes append their event inside the remote store's own transaction (see
ApplicationRemote.update_stage); ``append`` covers any other history entry
a caller wants recorded.
"""

import logging
from typing import List, Optional

from src.applications.remote.protocol import ApplicationRemote
from src.applications.stages.models import ApplicationEvent, ApplicationStage


logger = logging.getLogger(__name__)


class EventLog:
    """Append/list access to ApplicationEvent records."""

    def __init__(self, remote: ApplicationRemote):
        self._remote = remote

    async def append(
        self,
        application_id: str,
        stage: Optional[ApplicationStage],
        note: Optional[str],
    ) -> ApplicationEvent:
        """Append one event.

        Args:
            application_id: The application the event belongs to.
            stage: The stage the event records, if any.
            note: Human-readable description.

        Returns:
            The event as stored.
        """
        event = await self._remote.append_event(application_id, stage, note)
        logger.debug(
            "Appended application event",
            extra={
                "application_id": application_id,
                "stage": stage.value if stage is not None else None,
            },
        )
        return event

    async def list(self, application_id: str) -> List[ApplicationEvent]:
        """Return the application's events, most recent first."""
        events = await self._remote.list_events(application_id)
        return sorted(events, key=lambda e: e.created_at, reverse=True)
