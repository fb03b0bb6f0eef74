"""Pipeline board.

PipelineBoard is the object a user interface drives. It owns one of each
engine component and routes every user action through them:

    drop / stage picker -> StageTransitionEngine -> OptimisticUpdateCoordinator
                                                  -> UndoBuffer (rejections)
                                                  -> PromotionBridge (accepted)

The board exposes read-only projections of the local collection
(``columns``, ``applications``, ``events``); only the coordinator and the
reader write to the store.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

from src.applications.drag.adapter import (
    DEFAULT_ACTIVATION_DISTANCE,
    DragGestureAdapter,
    Ignored,
    PointerGesture,
)
from src.applications.events.emitter import (
    EventEmitter,
    NullEventEmitter,
    emit_safely,
)
from src.applications.events.log import EventLog
from src.applications.events.models import BoardEvent, BoardEventType
from src.applications.notes.debounce import (
    PANEL_NOTES_DELAY_SECONDS,
    QUICK_NOTES_DELAY_SECONDS,
    DebouncedFieldSaver,
)
from src.applications.notifications import Notifier
from src.applications.promotion.bridge import (
    DEFAULT_POSITION_TITLE,
    NullPromotionBridge,
    PromotionBridge,
    PromotionMeta,
)
from src.applications.remote.errors import ApplicationNotFoundError
from src.applications.remote.protocol import ApplicationRemote
from src.applications.stages.engine import (
    AcceptedChoice,
    NoOpDecision,
    PendingConfirmation,
    StageTransitionEngine,
    TransitionIntent,
)
from src.applications.stages.models import (
    Application,
    ApplicationEvent,
    ApplicationStage,
)
from src.applications.sync.coordinator import (
    CommitResult,
    NotesMutation,
    OptimisticUpdateCoordinator,
    RemovalMutation,
    StageMutation,
)
from src.applications.sync.reader import CollectionReader
from src.applications.sync.store import ApplicationStore
from src.applications.undo.buffer import (
    DEFAULT_UNDO_WINDOW_SECONDS,
    UndoBuffer,
    UndoEntry,
)


logger = logging.getLogger(__name__)


StageRequestResult = Union[CommitResult, PendingConfirmation, NoOpDecision]
DropOutcome = Union[Ignored, CommitResult, PendingConfirmation, NoOpDecision]


class PipelineBoard:
    """Stage board for one signed-in user.

    Args:
        remote: The remote store, already bound to an identity.
        promotion: Bridge to research tracking. Defaults to a bridge that
            only logs.
        emitter: Sink for board lifecycle events.
        notifier: Receives transient failure notifications.
        undo_window_seconds: How long a rejection stays undoable.
        activation_distance: Pointer travel before a press becomes a drag.
        quick_notes_delay_seconds: Debounce for card quick notes.
        panel_notes_delay_seconds: Debounce for the detail panel's notes.
        clock: Monotonic clock for undo expiry.

    Example:
        >>> board = PipelineBoard(remote)
        >>> await board.load()
        >>> pending = await board.request_stage("app-1", "Rejected")
        >>> result = await board.confirm("app-1")
        >>> await board.undo_rejection()
    """

    def __init__(
        self,
        remote: ApplicationRemote,
        promotion: Optional[PromotionBridge] = None,
        emitter: Optional[EventEmitter] = None,
        notifier: Optional[Notifier] = None,
        undo_window_seconds: float = DEFAULT_UNDO_WINDOW_SECONDS,
        activation_distance: float = DEFAULT_ACTIVATION_DISTANCE,
        quick_notes_delay_seconds: float = QUICK_NOTES_DELAY_SECONDS,
        panel_notes_delay_seconds: float = PANEL_NOTES_DELAY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = ApplicationStore()
        self._event_log = EventLog(remote)
        self._reader = CollectionReader(remote, self._store, self._event_log)
        self._emitter = emitter or NullEventEmitter()
        self._coordinator = OptimisticUpdateCoordinator(
            remote,
            self._store,
            self._reader,
            emitter=self._emitter,
            notifier=notifier,
        )
        self._engine = StageTransitionEngine()
        self._undo = UndoBuffer(window_seconds=undo_window_seconds, clock=clock)
        self._adapter = DragGestureAdapter(
            current_stage_of=self._store.stage_of,
            activation_distance=activation_distance,
        )
        self._promotion = promotion or NullPromotionBridge()
        self._promotions: Set[asyncio.Task] = set()
        self.quick_notes_delay_seconds = quick_notes_delay_seconds
        self.panel_notes_delay_seconds = panel_notes_delay_seconds

    @property
    def engine(self) -> StageTransitionEngine:
        return self._engine

    @property
    def undo_buffer(self) -> UndoBuffer:
        return self._undo

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    @property
    def loaded(self) -> bool:
        return self._store.loaded

    @property
    def applications(self) -> Tuple[Application, ...]:
        return self._store.applications

    def get(self, application_id: str) -> Optional[Application]:
        return self._store.get(application_id)

    def columns(self) -> Dict[ApplicationStage, List[Application]]:
        """Applications grouped by stage, one entry per stage."""
        return self._store.by_stage()

    def events(self, application_id: str) -> Tuple[ApplicationEvent, ...]:
        """The loaded history of one application, most recent first."""
        return self._store.events_for(application_id)

    def pending_confirmation(
        self,
        application_id: str,
    ) -> Optional[PendingConfirmation]:
        return self._engine.pending(application_id)

    @property
    def undo_entry(self) -> Optional[UndoEntry]:
        """The rejection that can still be undone, if any."""
        return self._undo.peek()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """Fetch the collection. Returns False if the read was superseded."""
        return await self._reader.refresh()

    async def load_events(self, application_id: str) -> Tuple[ApplicationEvent, ...]:
        """Fetch the history of one application."""
        await self._reader.refresh_events(application_id)
        return self._store.events_for(application_id)

    # ------------------------------------------------------------------
    # Stage changes
    # ------------------------------------------------------------------

    async def request_stage(
        self,
        application_id: str,
        target: Any,
    ) -> StageRequestResult:
        """Request a move of ``application_id`` into ``target``.

        Immediate moves are applied before returning. A move into Accepted
        or Rejected returns the recorded PendingConfirmation and changes
        nothing until ``confirm`` is called.

        Raises:
            UnknownStageError: If ``target`` names no stage.
            ApplicationNotFoundError: If the application is not loaded.
        """
        target_stage = ApplicationStage.parse(target)
        current = self._require(application_id)

        decision = self._engine.request(application_id, current.stage, target_stage)
        if isinstance(decision, TransitionIntent):
            return await self._commit_stage(decision)
        return decision

    async def confirm(
        self,
        application_id: str,
        choice: Union[AcceptedChoice, str] = AcceptedChoice.MARK_ONLY,
    ) -> Union[CommitResult, NoOpDecision]:
        """Commit the pending confirmation for ``application_id``.

        A committed rejection arms the undo buffer with the stage the
        application was in. A committed acceptance with START_TRACKING is
        handed to the promotion bridge in a background task; confirm does
        not wait for it. ``wait_for_promotions`` and ``close`` wait for
        pending hand-offs. If the application reached the
        target some other way while the confirmation was pending, nothing
        is written.

        Raises:
            ConfirmationNotPendingError: If nothing is pending.
            ApplicationNotFoundError: If the application is gone.
        """
        choice = AcceptedChoice(choice)
        pending = self._engine.confirm(application_id)
        current = self._require(application_id)
        if current.stage == pending.target_stage:
            return NoOpDecision(application_id, current.stage)

        result = await self._commit_stage(pending.to_intent())
        if not result.committed:
            return result

        if pending.target_stage == ApplicationStage.REJECTED:
            self._undo.arm(application_id, result.previous.stage)
        elif (
            pending.target_stage == ApplicationStage.ACCEPTED
            and choice == AcceptedChoice.START_TRACKING
        ):
            self._schedule_promotion(result.previous)
        return result

    def cancel_confirmation(self, application_id: str) -> bool:
        """Drop a pending confirmation. Returns True if one was pending."""
        return self._engine.cancel(application_id)

    def begin_drag(self, x: float, y: float) -> PointerGesture:
        return self._adapter.begin(x, y)

    async def handle_drop(
        self,
        payload: Any,
        drop_target_id: Optional[str],
        gesture: Optional[PointerGesture] = None,
    ) -> DropOutcome:
        """Handle a finished drag.

        A valid drop is routed through ``request_stage``, so dropping onto
        Accepted or Rejected yields a PendingConfirmation like the picker.
        """
        outcome = self._adapter.on_drop(payload, drop_target_id, gesture)
        if isinstance(outcome, Ignored):
            logger.debug(
                "Drop ignored",
                extra={"reason": outcome.reason.value, "target": drop_target_id},
            )
            return outcome
        return await self.request_stage(outcome.application_id, outcome.target_stage)

    # ------------------------------------------------------------------
    # Undo
    # ------------------------------------------------------------------

    async def undo_rejection(self) -> Optional[CommitResult]:
        """Revert the most recent confirmed rejection.

        The revert is an ordinary stage change back to the stage held by
        the undo entry and records its own event. A revert to Accepted
        needs no second confirmation; pressing undo is the confirmation.

        Returns:
            The commit result, or None if there was nothing to undo or the
            application is no longer rejected.
        """
        entry = self._undo.consume()
        if entry is None:
            return None

        application_id = entry.application_id
        current = self._store.get(application_id)
        if current is None or current.stage != ApplicationStage.REJECTED:
            logger.info(
                "Discarding undo for an application that is no longer rejected",
                extra={"application_id": application_id},
            )
            return None

        decision = self._engine.request(
            application_id,
            current.stage,
            entry.previous_stage,
        )
        if isinstance(decision, PendingConfirmation):
            decision = self._engine.confirm(application_id).to_intent()
        if not isinstance(decision, TransitionIntent):
            return None

        result = await self._commit_stage(decision)
        if result.committed:
            await emit_safely(
                self._emitter,
                BoardEvent(
                    event_type=BoardEventType.UNDO_CONSUMED,
                    application_id=application_id,
                    details={"restored_stage": entry.previous_stage.value},
                ),
            )
        return result

    def dismiss_undo(self) -> None:
        self._undo.clear()

    # ------------------------------------------------------------------
    # Notes and removal
    # ------------------------------------------------------------------

    async def update_notes(self, application_id: str, notes: str) -> CommitResult:
        """Persist notes optimistically. Empty text clears them."""
        return await self._coordinator.apply(application_id, NotesMutation(notes))

    def notes_saver(
        self,
        application_id: str,
        delay_seconds: Optional[float] = None,
    ) -> DebouncedFieldSaver[str]:
        """Build a debounced saver for one application's notes.

        Defaults to the detail panel's delay; see ``quick_notes_saver``
        for the card field.
        """
        application = self._require(application_id)
        if delay_seconds is None:
            delay_seconds = self.panel_notes_delay_seconds

        async def save(notes: str) -> CommitResult:
            return await self.update_notes(application_id, notes)

        return DebouncedFieldSaver(
            save,
            initial=application.notes or "",
            delay_seconds=delay_seconds,
            name=f"notes:{application_id}",
        )

    def quick_notes_saver(self, application_id: str) -> DebouncedFieldSaver[str]:
        return self.notes_saver(application_id, self.quick_notes_delay_seconds)

    async def remove(self, application_id: str) -> CommitResult:
        """Remove an application, dropping any undo entry or pending
        confirmation held for it once the removal commits."""
        result = await self._coordinator.apply(application_id, RemovalMutation())
        if result.committed:
            self._undo.discard_for(application_id)
            self._engine.forget(application_id)
        return result

    async def wait_for_promotions(self) -> None:
        """Wait until every scheduled promotion hand-off has finished."""
        while self._promotions:
            await asyncio.gather(*self._promotions)

    async def close(self) -> None:
        """Finish pending promotions, cancel outstanding reads and release
        the emitter."""
        await self.wait_for_promotions()
        await self._reader.close()
        await self._emitter.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, application_id: str) -> Application:
        application = self._store.get(application_id)
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return application

    async def _commit_stage(self, intent: TransitionIntent) -> CommitResult:
        return await self._coordinator.apply(
            intent.application_id,
            StageMutation(intent.target_stage),
        )

    def _schedule_promotion(self, application: Application) -> None:
        task = asyncio.create_task(self._promote(application))
        self._promotions.add(task)
        task.add_done_callback(self._promotions.discard)

    async def _promote(self, application: Application) -> None:
        opportunity = application.opportunity
        meta = PromotionMeta(
            title=(opportunity.title if opportunity else None) or DEFAULT_POSITION_TITLE,
            pi_name=opportunity.leader_name if opportunity else None,
        )
        try:
            await self._promotion.promote(application.opportunity_id, meta)
        except Exception as e:
            logger.error(
                "Promotion bridge raised",
                extra={"application_id": application.id, "error": str(e)},
            )
            return

        await emit_safely(
            self._emitter,
            BoardEvent(
                event_type=BoardEventType.APPLICATION_PROMOTED,
                application_id=application.id,
                details={"opportunity_id": application.opportunity_id},
            ),
        )
