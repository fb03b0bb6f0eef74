"""Contracts for the remote store and identity resolution.

The remote store is the system of record. The engine only ever reaches it
through ApplicationRemote; the PostgreSQL implementation lives in
postgres.py and tests use an in-memory fake.
"""

from typing import List, Optional, Protocol, runtime_checkable

from src.applications.stages.models import (
    Application,
    ApplicationEvent,
    ApplicationStage,
)


@runtime_checkable
class IdentityResolver(Protocol):
    """Resolves the signed-in user."""

    async def resolve(self) -> Optional[str]:
        """Return the current user id, or None when signed out."""
        ...


class StaticIdentity:
    """IdentityResolver for an identity resolved once, up front."""

    def __init__(self, user_id: Optional[str]):
        self.user_id = user_id

    async def resolve(self) -> Optional[str]:
        return self.user_id


@runtime_checkable
class ApplicationRemote(Protocol):
    """Protocol for the remote application store.

    Every method resolves the identity first and raises
    NotAuthenticatedError when there is none. Driver failures surface as
    RemoteStoreError.
    """

    async def fetch_applications(self) -> List[Application]:
        """Fetch all applications with their opportunity, newest first."""
        ...

    async def update_stage(
        self,
        application_id: str,
        stage: ApplicationStage,
    ) -> Application:
        """Persist a stage change and append its event atomically.

        On success ``stage`` and ``updated_at`` are stored and exactly one
        ApplicationEvent ``{stage, notes="Moved to {stage}"}`` is appended.
        On failure neither happens.

        Returns:
            The application as stored.
        """
        ...

    async def update_notes(
        self,
        application_id: str,
        notes: Optional[str],
    ) -> Application:
        """Persist notes and ``updated_at``. Appends no event."""
        ...

    async def remove_application(self, application_id: str) -> None:
        """Delete an application."""
        ...

    async def list_events(self, application_id: str) -> List[ApplicationEvent]:
        """List events for an application, most recent first."""
        ...

    async def append_event(
        self,
        application_id: str,
        stage: Optional[ApplicationStage],
        note: Optional[str],
    ) -> ApplicationEvent:
        """Append one event to an application's history."""
        ...
