"""Pytest configuration and shared fixtures for all tests.

Provides an in-memory ApplicationRemote so engine, coordinator and board
tests run without a database while exercising the same contract as
PostgresApplicationRemote.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from src.applications.remote.errors import (
    ApplicationNotFoundError,
    NotAuthenticatedError,
)
from src.applications.remote.protocol import StaticIdentity
from src.applications.stages.models import (
    Application,
    ApplicationEvent,
    ApplicationStage,
    Opportunity,
    transition_note,
)


BASE_TIME = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryApplicationRemote:
    """In-memory implementation of the ApplicationRemote protocol.

    Failures are injected per method with ``fail(method, error)``; the
    error is raised by the next call to that method only. Setting
    ``fetch_gate`` holds fetch_applications until the event is set, after
    the result has been read, so a held fetch returns stale data.
    """

    def __init__(
        self,
        applications: Optional[List[Application]] = None,
        user_id: Optional[str] = "user-1",
    ) -> None:
        self.identity = StaticIdentity(user_id)
        self._applications: Dict[str, Application] = {
            a.id: a for a in applications or []
        }
        self._events: Dict[str, List[ApplicationEvent]] = {}
        self._failures: Dict[str, BaseException] = {}
        self._clock = 0
        self.calls: List[Tuple[str, ...]] = []
        self.fetch_gate: Optional[asyncio.Event] = None

    def fail(self, method: str, error: BaseException) -> None:
        self._failures[method] = error

    def stored(self, application_id: str) -> Optional[Application]:
        return self._applications.get(application_id)

    def stored_events(self, application_id: str) -> List[ApplicationEvent]:
        return list(self._events.get(application_id, []))

    def _now(self) -> datetime:
        self._clock += 1
        return BASE_TIME + timedelta(minutes=self._clock)

    async def _check(self, method: str, *args: str) -> None:
        self.calls.append((method,) + args)
        if await self.identity.resolve() is None:
            raise NotAuthenticatedError()
        error = self._failures.pop(method, None)
        if error is not None:
            raise error

    def _require(self, application_id: str) -> Application:
        application = self._applications.get(application_id)
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return application

    async def fetch_applications(self) -> List[Application]:
        await self._check("fetch_applications")
        result = sorted(
            self._applications.values(),
            key=lambda a: a.created_at,
            reverse=True,
        )
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        return result

    async def update_stage(
        self,
        application_id: str,
        stage: ApplicationStage,
    ) -> Application:
        await self._check("update_stage", application_id, stage.value)
        updated = self._require(application_id).model_copy(
            update={"stage": stage, "updated_at": self._now()},
        )
        self._applications[application_id] = updated
        self._record_event(application_id, stage, transition_note(stage))
        return updated

    async def update_notes(
        self,
        application_id: str,
        notes: Optional[str],
    ) -> Application:
        await self._check("update_notes", application_id)
        updated = self._require(application_id).model_copy(
            update={"notes": notes or None, "updated_at": self._now()},
        )
        self._applications[application_id] = updated
        return updated

    async def remove_application(self, application_id: str) -> None:
        await self._check("remove_application", application_id)
        self._require(application_id)
        del self._applications[application_id]
        self._events.pop(application_id, None)

    async def list_events(self, application_id: str) -> List[ApplicationEvent]:
        await self._check("list_events", application_id)
        self._require(application_id)
        return list(reversed(self._events.get(application_id, [])))

    async def append_event(
        self,
        application_id: str,
        stage: Optional[ApplicationStage],
        note: Optional[str],
    ) -> ApplicationEvent:
        await self._check("append_event", application_id)
        self._require(application_id)
        return self._record_event(application_id, stage, note)

    def _record_event(
        self,
        application_id: str,
        stage: Optional[ApplicationStage],
        note: Optional[str],
    ) -> ApplicationEvent:
        events = self._events.setdefault(application_id, [])
        event = ApplicationEvent(
            id=f"evt-{application_id}-{len(events) + 1}",
            application_id=application_id,
            stage=stage,
            notes=note,
            created_at=self._now(),
        )
        events.append(event)
        return event


def make_application(
    application_id: str = "app-1",
    stage: ApplicationStage = ApplicationStage.SAVED,
    notes: Optional[str] = None,
    title: Optional[str] = "Protein Folding Lab",
    leader_name: Optional[str] = "Dr. Ada Lee",
    age_minutes: int = 0,
) -> Application:
    created = BASE_TIME - timedelta(days=1, minutes=age_minutes)
    return Application(
        id=application_id,
        opportunity_id=f"opp-{application_id}",
        stage=stage,
        notes=notes,
        created_at=created,
        updated_at=created,
        opportunity=Opportunity(
            id=f"opp-{application_id}",
            title=title,
            leader_name=leader_name,
            leader_email="lab@example.edu",
        ),
    )


@pytest.fixture
def application_factory() -> Callable[..., Application]:
    """Factory building Application values with sensible defaults."""
    return make_application


@pytest.fixture
def remote_factory() -> Callable[..., InMemoryApplicationRemote]:
    """Factory building in-memory remotes seeded with applications."""
    return InMemoryApplicationRemote


@pytest.fixture
def remote() -> InMemoryApplicationRemote:
    """Remote seeded with one Saved and one Interview application."""
    return InMemoryApplicationRemote(
        [
            make_application("app-1", ApplicationStage.SAVED),
            make_application("app-2", ApplicationStage.INTERVIEW, age_minutes=5),
        ]
    )
