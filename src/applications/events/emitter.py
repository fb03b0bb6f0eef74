"""Event emitter implementations for board observability.

- EventEmitter: Abstract base class for event emission
- LoggingEventEmitter: Emits events as structured log entries
- CompositeEventEmitter: Emits to multiple sinks simultaneously
- NullEventEmitter: Discards events

Emitters never raise into the engine. A failing sink is logged and
skipped; the commit or rollback that produced the event stands.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from src.applications.events.models import BoardEvent, BoardEventType


logger = logging.getLogger(__name__)


class EventSinkType(str, Enum):
    """Types of event sinks supported by the board.

    Attributes:
        LOGGING: Emit events as structured log entries.
        METRICS: Emit events as Prometheus counters.
    """

    LOGGING = "logging"
    METRICS = "metrics"


class EventEmitter(ABC):
    """Abstract base class for board event emitters.

    Implementations are called from the event loop and must not block.
    """

    @abstractmethod
    async def emit(self, event: BoardEvent) -> None:
        """Emit a board event."""
        pass

    async def close(self) -> None:
        """Release resources. The default implementation does nothing."""
        pass


class LoggingEventEmitter(EventEmitter):
    """Event emitter that writes structured log entries.

    Rollbacks are logged at WARNING, everything else at INFO.
    """

    def __init__(self, logger_name: Optional[str] = None):
        self._logger = (
            logging.getLogger(logger_name)
            if logger_name
            else logger
        )
        self._log_level_map = {
            BoardEventType.TRANSITION_COMMITTED: logging.INFO,
            BoardEventType.TRANSITION_ROLLED_BACK: logging.WARNING,
            BoardEventType.NOTES_SAVED: logging.DEBUG,
            BoardEventType.UNDO_CONSUMED: logging.INFO,
            BoardEventType.APPLICATION_PROMOTED: logging.INFO,
            BoardEventType.APPLICATION_REMOVED: logging.INFO,
        }

    async def emit(self, event: BoardEvent) -> None:
        log_level = self._log_level_map.get(event.event_type, logging.INFO)
        self._logger.log(
            log_level,
            "Board event: %s for %s",
            event.event_type.value,
            event.application_id,
            extra=event.to_log_dict(),
        )


class CompositeEventEmitter(EventEmitter):
    """Event emitter that delegates to multiple child emitters.

    Each child is called independently; a failure in one is logged and
    does not stop the others.
    """

    def __init__(self, emitters: Optional[List[EventEmitter]] = None):
        self._emitters: List[EventEmitter] = emitters or []

    def add_emitter(self, emitter: EventEmitter) -> None:
        self._emitters.append(emitter)

    @property
    def emitters(self) -> List[EventEmitter]:
        """Child emitters (read-only copy)."""
        return list(self._emitters)

    async def emit(self, event: BoardEvent) -> None:
        for emitter in self._emitters:
            try:
                await emitter.emit(event)
            except Exception as e:
                logger.error(
                    "Failed to emit event to %s: %s",
                    type(emitter).__name__,
                    str(e),
                    extra={
                        "emitter_type": type(emitter).__name__,
                        "event_type": event.event_type.value,
                        "application_id": event.application_id,
                    },
                )

    async def close(self) -> None:
        for emitter in self._emitters:
            try:
                await emitter.close()
            except Exception as e:
                logger.error(
                    "Failed to close emitter %s: %s",
                    type(emitter).__name__,
                    str(e),
                )


class NullEventEmitter(EventEmitter):
    """Event emitter that discards all events."""

    async def emit(self, event: BoardEvent) -> None:
        pass


async def emit_safely(emitter: EventEmitter, event: BoardEvent) -> None:
    """Emit ``event`` and log, rather than raise, any sink failure."""
    try:
        await emitter.emit(event)
    except Exception as e:
        logger.error(
            "Failed to emit board event: %s",
            str(e),
            extra={
                "event_type": event.event_type.value,
                "application_id": event.application_id,
            },
        )


def create_event_emitter(
    sink_types: Optional[List[EventSinkType]] = None,
    logger_name: Optional[str] = None,
) -> EventEmitter:
    """Create an emitter for the requested sinks.

    Returns a LoggingEventEmitter when no sinks are given, the single
    emitter when one is, and a CompositeEventEmitter otherwise.

    Example:
        >>> isinstance(create_event_emitter(), LoggingEventEmitter)
        True
        >>> emitter = create_event_emitter(
        ...     [EventSinkType.LOGGING, EventSinkType.METRICS]
        ... )
        >>> isinstance(emitter, CompositeEventEmitter)
        True
    """
    if not sink_types:
        return LoggingEventEmitter(logger_name=logger_name)

    emitters: List[EventEmitter] = []

    for sink_type in sink_types:
        if sink_type == EventSinkType.LOGGING:
            emitters.append(LoggingEventEmitter(logger_name=logger_name))
        elif sink_type == EventSinkType.METRICS:
            # Imported here; metrics.py imports EventEmitter from this module
            from src.applications.events.metrics import MetricsEventEmitter

            emitters.append(MetricsEventEmitter())
        else:
            logger.warning(
                "Unknown event sink type: %s, skipping",
                sink_type,
            )

    if not emitters:
        return LoggingEventEmitter(logger_name=logger_name)

    if len(emitters) == 1:
        return emitters[0]

    return CompositeEventEmitter(emitters)
