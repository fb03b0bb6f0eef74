"""Optimistic update coordinator.

This module implements the OptimisticUpdateCoordinator, which keeps the
local collection responsive while the remote store stays the system of
record:

1. cancel any in-flight read of the collection
2. snapshot the collection
3. patch local state synchronously
4. await the remote mutation
5. on success, refresh the collection and the application's event list
6. on failure, restore the snapshot exactly and report the failure

Steps 2 and 3 run without yielding to the event loop, so nothing can slip
in between the snapshot and the patch.

Step 4 is never cancelled. If the task calling apply() is cancelled while
the write is in flight, the write still runs to completion and is settled
(committed or rolled back) before the cancellation is re-raised. The
post-commit refresh is skipped in that case.

Writes are not serialized per application. Two applies for the same
application may overlap and whichever settles last decides the local
state; a rollback restores its own snapshot even if a later apply has
patched since.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from src.applications.events.emitter import (
    EventEmitter,
    NullEventEmitter,
    emit_safely,
)
from src.applications.events.models import BoardEvent, BoardEventType
from src.applications.notifications import (
    Notification,
    NotificationLevel,
    Notifier,
    log_notification,
)
from src.applications.remote.errors import (
    ApplicationNotFoundError,
    NotAuthenticatedError,
)
from src.applications.remote.protocol import ApplicationRemote
from src.applications.stages.models import Application, ApplicationStage
from src.applications.sync.reader import CollectionReader
from src.applications.sync.store import ApplicationStore


logger = logging.getLogger(__name__)


async def _wait_through_cancellation(write: "asyncio.Future[Any]") -> bool:
    """Wait until ``write`` is done, absorbing cancellation of the caller.

    Returns:
        True if the calling task was cancelled while waiting.
    """
    cancelled = False
    while not write.done():
        try:
            await asyncio.wait({write})
        except asyncio.CancelledError:
            cancelled = True
    return cancelled


class Mutation(ABC):
    """A change applied locally first and then remotely."""

    name: str = "mutation"

    @abstractmethod
    def apply_local(
        self,
        store: ApplicationStore,
        application_id: str,
        now: datetime,
    ) -> None:
        """Patch the local store. Must not await."""

    @abstractmethod
    async def dispatch(self, remote: ApplicationRemote, application_id: str) -> Any:
        """Perform the remote write."""

    def failure_message(self) -> str:
        return "Couldn't save your change. It has been undone."

    def describe(self) -> Dict[str, Any]:
        return {"mutation": self.name}


@dataclass(frozen=True)
class StageMutation(Mutation):
    """Move an application into ``target_stage``."""

    target_stage: ApplicationStage
    name = "stage"

    def apply_local(self, store, application_id, now):
        store.patch(application_id, now, stage=self.target_stage)

    async def dispatch(self, remote, application_id):
        return await remote.update_stage(application_id, self.target_stage)

    def failure_message(self) -> str:
        return f"Couldn't move to {self.target_stage.value}. Please try again."

    def describe(self) -> Dict[str, Any]:
        return {"mutation": self.name, "to_stage": self.target_stage.value}


@dataclass(frozen=True)
class NotesMutation(Mutation):
    """Replace an application's notes. Empty text clears them."""

    notes: str
    name = "notes"

    def apply_local(self, store, application_id, now):
        store.patch(application_id, now, notes=self.notes or None)

    async def dispatch(self, remote, application_id):
        return await remote.update_notes(application_id, self.notes or None)

    def failure_message(self) -> str:
        return "Couldn't save your notes."


@dataclass(frozen=True)
class RemovalMutation(Mutation):
    """Remove an application from the pipeline."""

    name = "removal"

    def apply_local(self, store, application_id, now):
        store.discard(application_id)

    async def dispatch(self, remote, application_id):
        return await remote.remove_application(application_id)

    def failure_message(self) -> str:
        return "Couldn't remove this application."


class CommitStatus(str, Enum):
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class CommitResult:
    """Outcome of one OptimisticUpdateCoordinator.apply call.

    Attributes:
        status: COMMITTED or ROLLED_BACK.
        application_id: The application the mutation targeted.
        mutation: The mutation that was applied.
        previous: The application as it was before the patch.
        application: The application after the call resolved; None when it
            was removed.
        error: The remote failure for a rollback.
    """

    status: CommitStatus
    application_id: str
    mutation: Mutation
    previous: Application
    application: Optional[Application] = None
    error: Optional[BaseException] = None

    @property
    def committed(self) -> bool:
        return self.status == CommitStatus.COMMITTED


class OptimisticUpdateCoordinator:
    """Applies mutations optimistically against an ApplicationStore.

    The coordinator is the only writer of the store's application
    collection besides the reader it drives.

    Example:
        >>> coordinator = OptimisticUpdateCoordinator(remote, store, reader)
        >>> result = await coordinator.apply(
        ...     "app-1", StageMutation(ApplicationStage.INTERVIEW)
        ... )
        >>> result.committed
        True
    """

    def __init__(
        self,
        remote: ApplicationRemote,
        store: ApplicationStore,
        reader: CollectionReader,
        emitter: Optional[EventEmitter] = None,
        notifier: Optional[Notifier] = None,
    ):
        self._remote = remote
        self._store = store
        self._reader = reader
        self._emitter = emitter or NullEventEmitter()
        self._notifier = notifier or log_notification

    @property
    def store(self) -> ApplicationStore:
        return self._store

    async def apply(self, application_id: str, mutation: Mutation) -> CommitResult:
        """Apply ``mutation`` locally, then remotely.

        Returns:
            A COMMITTED result, or a ROLLED_BACK result carrying the error.
            After either, local state is the committed value or exactly the
            state before the call.

        Raises:
            ApplicationNotFoundError: If the application is not in the local
                collection. Nothing is changed.
            NotAuthenticatedError: If the remote could not resolve an
                identity. Local state is rolled back first.
            asyncio.CancelledError: If the calling task was cancelled. The
                write has already been settled when this is raised.
        """
        await self._reader.cancel_inflight()

        previous = self._store.get(application_id)
        if previous is None:
            raise ApplicationNotFoundError(application_id)

        snapshot = self._store.snapshot()
        mutation.apply_local(self._store, application_id, datetime.now(timezone.utc))

        write = asyncio.ensure_future(mutation.dispatch(self._remote, application_id))
        cancelled = await _wait_through_cancellation(write)
        if cancelled:
            logger.info(
                "Apply cancelled while writing, settling before re-raising",
                extra={"application_id": application_id, **mutation.describe()},
            )

        if write.cancelled():
            self._store.restore(snapshot)
            cancellation = asyncio.CancelledError()
            await self._emit_rollback(application_id, mutation, cancellation)
            raise cancellation

        error = write.exception()
        if isinstance(error, NotAuthenticatedError):
            self._store.restore(snapshot)
            await self._emit_rollback(application_id, mutation, error)
            raise error
        if error is not None:
            self._store.restore(snapshot)
            logger.warning(
                "Remote mutation failed, rolled back",
                extra={
                    "application_id": application_id,
                    "error": str(error),
                    **mutation.describe(),
                },
            )
            await self._emit_rollback(application_id, mutation, error)
            self._notifier(
                Notification(
                    level=NotificationLevel.ERROR,
                    message=mutation.failure_message(),
                    application_id=application_id,
                )
            )
            if cancelled:
                raise asyncio.CancelledError()
            return CommitResult(
                status=CommitStatus.ROLLED_BACK,
                application_id=application_id,
                mutation=mutation,
                previous=previous,
                application=self._store.get(application_id),
                error=error,
            )

        await self._emit_commit(application_id, mutation, previous)
        if cancelled:
            raise asyncio.CancelledError()
        await self._refresh_after_write(application_id, mutation)

        return CommitResult(
            status=CommitStatus.COMMITTED,
            application_id=application_id,
            mutation=mutation,
            previous=previous,
            application=self._store.get(application_id),
        )

    async def _refresh_after_write(self, application_id: str, mutation: Mutation) -> None:
        try:
            await self._reader.refresh()
            if not isinstance(mutation, RemovalMutation):
                await self._reader.refresh_events(application_id)
        except Exception as e:
            logger.warning(
                "Refresh after commit failed",
                extra={"application_id": application_id, "error": str(e)},
            )

    async def _emit_commit(
        self,
        application_id: str,
        mutation: Mutation,
        previous: Application,
    ) -> None:
        if isinstance(mutation, StageMutation):
            event_type = BoardEventType.TRANSITION_COMMITTED
            details = {
                "from_stage": previous.stage.value,
                "to_stage": mutation.target_stage.value,
            }
        elif isinstance(mutation, RemovalMutation):
            event_type = BoardEventType.APPLICATION_REMOVED
            details = {"stage": previous.stage.value}
        else:
            event_type = BoardEventType.NOTES_SAVED
            details = {}
        await emit_safely(
            self._emitter,
            BoardEvent(
                event_type=event_type,
                application_id=application_id,
                details=details,
            ),
        )

    async def _emit_rollback(
        self,
        application_id: str,
        mutation: Mutation,
        error: BaseException,
    ) -> None:
        await emit_safely(
            self._emitter,
            BoardEvent(
                event_type=BoardEventType.TRANSITION_ROLLED_BACK,
                application_id=application_id,
                details={
                    **mutation.describe(),
                    "error_message": str(error),
                    "error_type": type(error).__name__,
                },
            ),
        )
