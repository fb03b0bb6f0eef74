"""Cancellable reads of the remote collection.

CollectionReader runs every collection fetch as its own asyncio task so
the coordinator can cancel a fetch still in flight before it writes an
optimistic patch. A cancelled fetch never touches the store, which is how
a slow background refresh is kept from overwriting a fresher local value.
"""

import asyncio
import logging
from typing import Dict, Optional

from src.applications.events.log import EventLog
from src.applications.remote.protocol import ApplicationRemote
from src.applications.sync.store import ApplicationStore


logger = logging.getLogger(__name__)


class CollectionReader:
    """Loads the application collection and event lists into a store.

    At most one collection fetch runs at a time: starting a refresh
    cancels the one before it. Event-list fetches are tracked per
    application the same way.
    """

    def __init__(
        self,
        remote: ApplicationRemote,
        store: ApplicationStore,
        event_log: Optional[EventLog] = None,
    ):
        self._remote = remote
        self._store = store
        self._event_log = event_log or EventLog(remote)
        self._collection_task: Optional["asyncio.Task[None]"] = None
        self._event_tasks: Dict[str, "asyncio.Task[None]"] = {}

    @property
    def in_flight(self) -> bool:
        """True while a collection fetch is running."""
        task = self._collection_task
        return task is not None and not task.done()

    def start_refresh(self) -> "asyncio.Task[None]":
        """Start a collection fetch in the background and return its task.

        Any fetch already running is cancelled first.
        """
        previous = self._collection_task
        if previous is not None and not previous.done():
            previous.cancel()
        task = asyncio.ensure_future(self._load_collection())
        self._collection_task = task
        return task

    async def refresh(self) -> bool:
        """Fetch the collection and wait for it.

        Returns:
            True if the store was updated, False if the fetch was
            cancelled by a later write or refresh.

        Raises:
            Exception: Whatever the remote raised for the fetch.
        """
        task = self.start_refresh()
        await asyncio.wait({task})
        if task.cancelled():
            return False
        task.result()
        return True

    async def refresh_events(self, application_id: str) -> bool:
        """Fetch the event list for one application and wait for it."""
        previous = self._event_tasks.get(application_id)
        if previous is not None and not previous.done():
            previous.cancel()
        task = asyncio.ensure_future(self._load_events(application_id))
        self._event_tasks[application_id] = task
        await asyncio.wait({task})
        if self._event_tasks.get(application_id) is task:
            del self._event_tasks[application_id]
        if task.cancelled():
            return False
        task.result()
        return True

    async def cancel_inflight(self) -> None:
        """Cancel a running collection fetch and wait until it has stopped."""
        task = self._collection_task
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait({task})
        logger.debug("Cancelled in-flight collection read")

    async def close(self) -> None:
        """Cancel every outstanding read."""
        await self.cancel_inflight()
        tasks = [t for t in self._event_tasks.values() if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.wait(tasks)
        self._event_tasks.clear()

    async def _load_collection(self) -> None:
        applications = await self._remote.fetch_applications()
        self._store.replace(applications)
        logger.debug(
            "Loaded application collection",
            extra={"count": len(applications)},
        )

    async def _load_events(self, application_id: str) -> None:
        events = await self._event_log.list(application_id)
        self._store.set_events(application_id, events)
